from __future__ import annotations

from typing import Any, Optional, Sequence

from ..core.enums import WorkerStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_float, db_cursor, fetchall, fetchone
from .model import Worker
from .repository import WorkerRepository

_COLUMNS = "id, tenant_id, branch_id, name, trade, default_daily_rate, phone, status, created_by, created_at"
_UPDATABLE = frozenset({"name", "trade", "default_daily_rate", "phone", "status"})


def _row_to_worker(r: dict) -> Worker:
    return Worker(
        id=r["id"],
        tenant_id=r["tenant_id"],
        branch_id=r["branch_id"],
        name=r["name"],
        trade=r["trade"],
        default_daily_rate=as_float(r.get("default_daily_rate")),
        phone=r.get("phone"),
        status=WorkerStatus(r.get("status") or WorkerStatus.ACTIVE.value),
        created_by=r.get("created_by"),
        created_at=r.get("created_at"),
    )


class MySQLWorkerRepository(WorkerRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_workers(
        self, *, tenant_id: str, branch_id: str, status: Optional[WorkerStatus] = None
    ) -> Sequence[Worker]:
        clauses = ["tenant_id=%s", "branch_id=%s"]
        params: list[object] = [tenant_id, branch_id]
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM workers WHERE {' AND '.join(clauses)} ORDER BY name",
                tuple(params),
            )
            return [_row_to_worker(r) for r in fetchall(cur)]

    def get_worker(self, *, tenant_id: str, branch_id: str, worker_id: str) -> Optional[Worker]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM workers WHERE id=%s AND tenant_id=%s AND branch_id=%s",
                (worker_id, tenant_id, branch_id),
            )
            r = fetchone(cur)
            return _row_to_worker(r) if r else None

    def create_worker(self, worker: Worker) -> Worker:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO workers(
                    id, tenant_id, branch_id, name, trade, default_daily_rate, phone, status, created_by
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    worker.id,
                    worker.tenant_id,
                    worker.branch_id,
                    worker.name,
                    worker.trade,
                    worker.default_daily_rate,
                    worker.phone,
                    worker.status.value,
                    worker.created_by,
                ),
            )
        return worker

    def update_worker(
        self, *, tenant_id: str, branch_id: str, worker_id: str, changes: dict[str, Any]
    ) -> Optional[Worker]:
        fields = [k for k in changes if k in _UPDATABLE]
        with db_cursor(self._conn_factory) as (_, cur):
            if fields:
                values = [changes[k].value if isinstance(changes[k], WorkerStatus) else changes[k] for k in fields]
                cur.execute(
                    f"UPDATE workers SET {', '.join(f'{k}=%s' for k in fields)} "
                    "WHERE id=%s AND tenant_id=%s AND branch_id=%s",
                    (*values, worker_id, tenant_id, branch_id),
                )
            cur.execute(
                f"SELECT {_COLUMNS} FROM workers WHERE id=%s AND tenant_id=%s AND branch_id=%s",
                (worker_id, tenant_id, branch_id),
            )
            r = fetchone(cur)
            return _row_to_worker(r) if r else None

    def delete_worker(self, *, tenant_id: str, branch_id: str, worker_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM workers WHERE id=%s AND tenant_id=%s AND branch_id=%s",
                (worker_id, tenant_id, branch_id),
            )
            return cur.rowcount > 0
