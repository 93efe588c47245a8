from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    """Every method filters by tenant_id and branch_id."""

    def list_records(
        self,
        *,
        tenant_id: str,
        branch_id: str,
        project_id: Optional[str] = None,
        work_date: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def get_record(self, *, tenant_id: str, branch_id: str, record_id: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

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
        """Insert the batch marker and all records in one transaction.

        Raises StoreError(DUPLICATE_KEY) when (tenant, branch, project,
        date) already has a batch; nothing is written in that case.
        """

        raise NotImplementedError

    def delete_record(self, *, tenant_id: str, branch_id: str, record_id: str) -> bool:
        raise NotImplementedError
