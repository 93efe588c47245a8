from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class SystemSettings:
    id: str
    is_setup_completed: bool
    setup_completed_at: Optional[datetime] = None
    setup_completed_by: Optional[str] = None
