from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.constants import DEFAULT_HOURS_WORKED


@dataclass(frozen=True)
class AttendanceRecord:
    """One worker's presence on one project for one day."""

    id: str
    tenant_id: str
    branch_id: str
    worker_id: str
    project_id: str
    work_date: date
    daily_rate_at_time: float = 0.0
    hours_worked: float = DEFAULT_HOURS_WORKED
    notes: Optional[str] = None
    created_by: Optional[str] = None
    batch_id: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def cost(self) -> float:
        return self.daily_rate_at_time * self.hours_worked

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "worker_id": self.worker_id,
            "project_id": self.project_id,
            "date": self.work_date.isoformat(),
            "daily_rate_at_time": self.daily_rate_at_time,
            "hours_worked": self.hours_worked,
            "notes": self.notes,
            "created_by": self.created_by,
        }
