from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import WorkerStatus


@dataclass(frozen=True)
class Worker:
    id: str
    tenant_id: str
    branch_id: str
    name: str
    trade: str
    default_daily_rate: float = 0.0
    phone: Optional[str] = None
    status: WorkerStatus = WorkerStatus.ACTIVE
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "trade": self.trade,
            "default_daily_rate": self.default_daily_rate,
            "phone": self.phone,
            "status": self.status.value,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
