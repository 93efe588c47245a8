from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from .model import SystemSettings


class SystemSettingsRepository(Protocol):
    def fetch_setup_flag(self) -> bool:
        """Read ``is_setup_completed`` of the singleton row.

        Raises StoreError with code NO_ROWS when the row is absent and
        RELATION_MISSING when the table does not exist.
        """

        raise NotImplementedError

    def get_settings(self) -> Optional[SystemSettings]:
        raise NotImplementedError

    def update_completion(self, *, completed_at: datetime, completed_by: Optional[str]) -> int:
        """Update the singleton row; returns the affected row count."""

        raise NotImplementedError

    def upsert_completion(self, *, completed_at: datetime, completed_by: Optional[str]) -> None:
        raise NotImplementedError
