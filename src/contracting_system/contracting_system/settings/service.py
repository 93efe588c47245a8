from __future__ import annotations

import logging
from typing import Optional

from ..common.datetime_utils import now_utc
from ..core.exceptions import StoreError
from ..core.result import ServiceResult
from .model import SystemSettings
from .repository import SystemSettingsRepository

logger = logging.getLogger(__name__)


class SystemSettingsService:
    """Singleton system settings. Not tenant-scoped, so not guarded."""

    def __init__(self, settings: SystemSettingsRepository):
        self._settings = settings

    def is_setup_completed(self) -> bool:
        try:
            return self._settings.fetch_setup_flag()
        except StoreError as e:
            if not e.is_missing:
                logger.error("Error checking setup status: %s", e.message)
            return False

    def get_system_settings(self) -> Optional[SystemSettings]:
        try:
            return self._settings.get_settings()
        except StoreError as e:
            if not e.is_missing:
                logger.error("Error fetching system settings: %s", e.message)
            return None

    def mark_setup_completed(self, actor_id: Optional[str] = None) -> ServiceResult:
        """Set the completion flag; falls back to an upsert when the update fails."""
        completed_at = now_utc().replace(tzinfo=None)
        try:
            if self._settings.update_completion(completed_at=completed_at, completed_by=actor_id) > 0:
                return ServiceResult.ok()
            logger.warning("System settings row missing, inserting it")
        except StoreError as e:
            logger.warning("Settings update failed, trying upsert: %s", e.message)

        try:
            self._settings.upsert_completion(completed_at=completed_at, completed_by=actor_id)
        except StoreError as e:
            logger.error("Error marking setup as completed: %s", e.message)
            return ServiceResult.fail(
                f"Failed to mark setup as completed: {e.message}",
                "MARK_SETUP_COMPLETE_FAILED",
            )
        return ServiceResult.ok()
