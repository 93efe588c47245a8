from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from ..common.datetime_utils import as_date, now_utc
from ..common.validators import optional_text, to_float
from ..core.constants import DEFAULT_CURRENCY
from ..core.enums import PaymentStatus
from ..core.exceptions import ValidationError
from ..core.result import ServiceResult
from ..database.mysql_base import new_id
from ..scope import Scope, guarded
from .model import Payment
from .repository import PaymentRepository

logger = logging.getLogger(__name__)


def _payment_status(value: Any) -> PaymentStatus:
    try:
        return PaymentStatus(value)
    except ValueError:
        raise ValidationError(f"Unknown payment status: {value}", "INVALID_STATUS")


def payment_number_for(*, is_general_expense: bool, project_id: Optional[str], contract_id: Optional[str]) -> str:
    """``GE-`` general expense, ``PE-`` project expense, ``P-`` contract payment."""
    stamp = int(now_utc().timestamp() * 1000)
    if is_general_expense:
        return f"GE-{stamp}"
    if project_id and not contract_id:
        return f"PE-{stamp}"
    return f"P-{stamp}"


class PaymentService:
    """Payments and expenses of the selected branch."""

    def __init__(self, payments: PaymentRepository):
        self._payments = payments

    @guarded(requires_branch=True)
    def list_payments(self, scope: Scope) -> Sequence[Payment]:
        return self._payments.list_payments(tenant_id=scope.tenant_id, branch_id=scope.branch_id)

    @guarded(requires_branch=True, empty=lambda: None)
    def get_payment(self, scope: Scope, payment_id: str) -> Optional[Payment]:
        if not payment_id:
            return None
        return self._payments.get_payment(tenant_id=scope.tenant_id, branch_id=scope.branch_id, payment_id=payment_id)

    @guarded(requires_branch=True)
    def list_by_project(self, scope: Scope, project_id: str) -> Sequence[Payment]:
        if not project_id:
            return []
        return self._payments.list_payments(
            tenant_id=scope.tenant_id, branch_id=scope.branch_id, project_id=project_id
        )

    @guarded(requires_branch=True)
    def list_by_status(self, scope: Scope, status: PaymentStatus | str) -> Sequence[Payment]:
        return self._payments.list_payments(
            tenant_id=scope.tenant_id, branch_id=scope.branch_id, status=_payment_status(status)
        )

    @guarded(requires_branch=True, write=True, failure_code="CREATE_PAYMENT_FAILED")
    def create_payment(self, scope: Scope, data: dict[str, Any]) -> ServiceResult:
        """Insert a payment; tenant and branch come from ``scope`` only.

        A contract id is required unless the payment is a general expense or
        a project expense (project id set).
        """
        row = scope.stamp(data, branch=True)
        is_general = bool(row.get("is_general_expense", False))
        project_id = None if is_general else optional_text(row.get("project_id"))
        contract_id = None if is_general else optional_text(row.get("contract_id"))
        if not is_general and not project_id and not contract_id:
            return ServiceResult.fail(
                "Contract id is required (or mark the payment as a general or project expense)",
                "CONTRACT_ID_REQUIRED",
            )

        due_date = as_date(row["due_date"]) if row.get("due_date") else None
        paid_date = as_date(row["paid_date"]) if row.get("paid_date") else None
        payment = Payment(
            id=new_id(),
            tenant_id=row["tenant_id"],
            branch_id=row["branch_id"],
            payment_number=optional_text(row.get("payment_number"))
            or payment_number_for(is_general_expense=is_general, project_id=project_id, contract_id=contract_id),
            amount=to_float(row.get("amount")),
            status=_payment_status(row.get("status") or PaymentStatus.PENDING.value),
            contract_id=contract_id,
            project_id=project_id,
            expense_category=optional_text(row.get("category")),
            due_date=due_date,
            paid_date=paid_date,
            payment_method=optional_text(row.get("payment_method")),
            notes=optional_text(row.get("notes")),
            is_general_expense=is_general,
            currency=optional_text(row.get("currency")) or DEFAULT_CURRENCY,
            created_by=optional_text(row.get("created_by")),
        )
        created = self._payments.create_payment(payment)
        logger.info("Payment %s created: %.2f %s", created.payment_number, created.amount, created.currency)
        return ServiceResult.ok(payment=created.to_dict())

    @guarded(requires_branch=True, write=True, failure_code="UPDATE_STATUS_FAILED")
    def update_status(self, scope: Scope, payment_id: str, status: PaymentStatus | str) -> ServiceResult:
        if not payment_id:
            raise ValidationError("Payment id is required", "INVALID_ID")
        if not status:
            raise ValidationError("New status is required", "INVALID_STATUS")
        updated = self._payments.update_status(
            tenant_id=scope.tenant_id,
            branch_id=scope.branch_id,
            payment_id=payment_id,
            status=_payment_status(status),
        )
        if updated is None:
            return ServiceResult.fail("Payment not found", "PAYMENT_NOT_FOUND")
        return ServiceResult.ok(payment=updated.to_dict())

    @guarded(requires_branch=True, write=True, failure_code="DELETE_PAYMENT_FAILED")
    def delete_payment(self, scope: Scope, payment_id: str) -> ServiceResult:
        if not payment_id:
            raise ValidationError("Payment id is required", "INVALID_ID")
        if not self._payments.delete_payment(
            tenant_id=scope.tenant_id, branch_id=scope.branch_id, payment_id=payment_id
        ):
            return ServiceResult.fail("Payment not found", "PAYMENT_NOT_FOUND")
        return ServiceResult.ok()
