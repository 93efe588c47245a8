from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import PaymentStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_float, db_cursor, fetchall, fetchone
from .model import Payment
from .repository import PaymentRepository

_COLUMNS = (
    "id, tenant_id, branch_id, contract_id, project_id, expense_category, payment_number, amount, "
    "due_date, paid_date, status, payment_method, notes, is_general_expense, currency, created_by, created_at"
)


def _row_to_payment(r: dict) -> Payment:
    return Payment(
        id=r["id"],
        tenant_id=r["tenant_id"],
        branch_id=r["branch_id"],
        payment_number=r["payment_number"],
        amount=as_float(r.get("amount")),
        status=PaymentStatus(r["status"]),
        contract_id=r.get("contract_id"),
        project_id=r.get("project_id"),
        expense_category=r.get("expense_category"),
        due_date=r.get("due_date"),
        paid_date=r.get("paid_date"),
        payment_method=r.get("payment_method"),
        notes=r.get("notes"),
        is_general_expense=bool(r.get("is_general_expense")),
        currency=r.get("currency") or "SAR",
        created_by=r.get("created_by"),
        created_at=r.get("created_at"),
    )


class MySQLPaymentRepository(PaymentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_payments(
        self,
        *,
        tenant_id: str,
        branch_id: str,
        project_id: Optional[str] = None,
        status: Optional[PaymentStatus] = None,
    ) -> Sequence[Payment]:
        clauses = ["tenant_id=%s", "branch_id=%s"]
        params: list[object] = [tenant_id, branch_id]
        if project_id is not None:
            clauses.append("project_id=%s")
            params.append(project_id)
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM payments WHERE {' AND '.join(clauses)} ORDER BY due_date DESC, created_at DESC",
                tuple(params),
            )
            return [_row_to_payment(r) for r in fetchall(cur)]

    def get_payment(self, *, tenant_id: str, branch_id: str, payment_id: str) -> Optional[Payment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM payments WHERE id=%s AND tenant_id=%s AND branch_id=%s",
                (payment_id, tenant_id, branch_id),
            )
            r = fetchone(cur)
            return _row_to_payment(r) if r else None

    def create_payment(self, payment: Payment) -> Payment:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO payments(
                    id, tenant_id, branch_id, contract_id, project_id, expense_category, payment_number,
                    amount, due_date, paid_date, status, payment_method, notes, is_general_expense,
                    currency, created_by
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    payment.id,
                    payment.tenant_id,
                    payment.branch_id,
                    payment.contract_id,
                    payment.project_id,
                    payment.expense_category,
                    payment.payment_number,
                    payment.amount,
                    payment.due_date,
                    payment.paid_date,
                    payment.status.value,
                    payment.payment_method,
                    payment.notes,
                    1 if payment.is_general_expense else 0,
                    payment.currency,
                    payment.created_by,
                ),
            )
        return payment

    def update_status(
        self, *, tenant_id: str, branch_id: str, payment_id: str, status: PaymentStatus
    ) -> Optional[Payment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE payments SET status=%s WHERE id=%s AND tenant_id=%s AND branch_id=%s",
                (status.value, payment_id, tenant_id, branch_id),
            )
            cur.execute(
                f"SELECT {_COLUMNS} FROM payments WHERE id=%s AND tenant_id=%s AND branch_id=%s",
                (payment_id, tenant_id, branch_id),
            )
            r = fetchone(cur)
            return _row_to_payment(r) if r else None

    def delete_payment(self, *, tenant_id: str, branch_id: str, payment_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM payments WHERE id=%s AND tenant_id=%s AND branch_id=%s",
                (payment_id, tenant_id, branch_id),
            )
            return cur.rowcount > 0
