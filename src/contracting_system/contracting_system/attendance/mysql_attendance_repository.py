from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_float, db_cursor, fetchall, fetchone
from .model import AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = (
    "id, batch_id, tenant_id, branch_id, worker_id, project_id, work_date, "
    "daily_rate_at_time, hours_worked, notes, created_by, created_at"
)


def _row_to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        id=r["id"],
        tenant_id=r["tenant_id"],
        branch_id=r["branch_id"],
        worker_id=r["worker_id"],
        project_id=r["project_id"],
        work_date=r["work_date"],
        daily_rate_at_time=as_float(r.get("daily_rate_at_time")),
        hours_worked=as_float(r.get("hours_worked"), 1.0),
        notes=r.get("notes"),
        created_by=r.get("created_by"),
        batch_id=r.get("batch_id"),
        created_at=r.get("created_at"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_records(
        self,
        *,
        tenant_id: str,
        branch_id: str,
        project_id: Optional[str] = None,
        work_date: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        clauses = ["tenant_id=%s", "branch_id=%s"]
        params: list[object] = [tenant_id, branch_id]
        if project_id is not None:
            clauses.append("project_id=%s")
            params.append(project_id)
        if work_date is not None:
            clauses.append("work_date=%s")
            params.append(work_date)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM daily_records WHERE {' AND '.join(clauses)} ORDER BY work_date DESC",
                tuple(params),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def get_record(self, *, tenant_id: str, branch_id: str, record_id: str) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM daily_records WHERE id=%s AND tenant_id=%s AND branch_id=%s",
                (record_id, tenant_id, branch_id),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def insert_batch(
        self,
        *,
        batch_id: str,
        tenant_id: str,
        branch_id: str,
        project_id: str,
        work_date: date,
        records: Sequence[AttendanceRecord],
    ) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_batches(id, tenant_id, branch_id, project_id, work_date)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (batch_id, tenant_id, branch_id, project_id, work_date),
            )
            cur.executemany(
                """
                INSERT INTO daily_records(
                    id, batch_id, tenant_id, branch_id, worker_id, project_id, work_date,
                    daily_rate_at_time, hours_worked, notes, created_by
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                [
                    (
                        rec.id,
                        batch_id,
                        rec.tenant_id,
                        rec.branch_id,
                        rec.worker_id,
                        rec.project_id,
                        rec.work_date,
                        rec.daily_rate_at_time,
                        rec.hours_worked,
                        rec.notes,
                        rec.created_by,
                    )
                    for rec in records
                ],
            )
        return list(records)

    def delete_record(self, *, tenant_id: str, branch_id: str, record_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT batch_id FROM daily_records WHERE id=%s AND tenant_id=%s AND branch_id=%s",
                (record_id, tenant_id, branch_id),
            )
            r = fetchone(cur)
            if not r:
                return False
            cur.execute(
                "DELETE FROM daily_records WHERE id=%s AND tenant_id=%s AND branch_id=%s",
                (record_id, tenant_id, branch_id),
            )
            # Free the (project, date) slot once its last record is gone.
            if r.get("batch_id"):
                cur.execute(
                    """
                    DELETE FROM attendance_batches
                    WHERE id=%s AND NOT EXISTS (SELECT 1 FROM daily_records WHERE batch_id=%s)
                    """,
                    (r["batch_id"], r["batch_id"]),
                )
            return True
