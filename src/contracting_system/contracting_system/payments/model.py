from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.constants import DEFAULT_CURRENCY
from ..core.enums import PaymentStatus


@dataclass(frozen=True)
class Payment:
    id: str
    tenant_id: str
    branch_id: str
    payment_number: str
    amount: float
    status: PaymentStatus = PaymentStatus.PENDING
    contract_id: Optional[str] = None
    project_id: Optional[str] = None
    expense_category: Optional[str] = None
    due_date: Optional[date] = None
    paid_date: Optional[date] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    is_general_expense: bool = False
    currency: str = DEFAULT_CURRENCY
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "payment_number": self.payment_number,
            "contract_id": self.contract_id,
            "project_id": self.project_id,
            "category": self.expense_category,
            "amount": self.amount,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "paid_date": self.paid_date.isoformat() if self.paid_date else None,
            "status": self.status.value,
            "payment_method": self.payment_method,
            "notes": self.notes,
            "is_general_expense": self.is_general_expense,
            "currency": self.currency,
        }
