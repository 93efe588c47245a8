from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import PaymentStatus
from .model import Payment


class PaymentRepository(Protocol):
    """Every method filters by tenant_id and branch_id."""

    def list_payments(
        self,
        *,
        tenant_id: str,
        branch_id: str,
        project_id: Optional[str] = None,
        status: Optional[PaymentStatus] = None,
    ) -> Sequence[Payment]:
        raise NotImplementedError

    def get_payment(self, *, tenant_id: str, branch_id: str, payment_id: str) -> Optional[Payment]:
        raise NotImplementedError

    def create_payment(self, payment: Payment) -> Payment:
        raise NotImplementedError

    def update_status(
        self, *, tenant_id: str, branch_id: str, payment_id: str, status: PaymentStatus
    ) -> Optional[Payment]:
        raise NotImplementedError

    def delete_payment(self, *, tenant_id: str, branch_id: str, payment_id: str) -> bool:
        raise NotImplementedError
