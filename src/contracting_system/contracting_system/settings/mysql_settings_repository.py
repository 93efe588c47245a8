from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..core.constants import SYSTEM_SETTINGS_ID
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetch_single, fetchone
from .model import SystemSettings
from .repository import SystemSettingsRepository


class MySQLSystemSettingsRepository(SystemSettingsRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def fetch_setup_flag(self) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT is_setup_completed FROM system_settings WHERE id=%s",
                (SYSTEM_SETTINGS_ID,),
            )
            row = fetch_single(cur)
            return bool(row.get("is_setup_completed"))

    def get_settings(self) -> Optional[SystemSettings]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, is_setup_completed, setup_completed_at, setup_completed_by
                FROM system_settings
                WHERE id=%s
                """,
                (SYSTEM_SETTINGS_ID,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return SystemSettings(
                id=r["id"],
                is_setup_completed=bool(r["is_setup_completed"]),
                setup_completed_at=r.get("setup_completed_at"),
                setup_completed_by=r.get("setup_completed_by"),
            )

    def update_completion(self, *, completed_at: datetime, completed_by: Optional[str]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE system_settings
                SET is_setup_completed=1, setup_completed_at=%s, setup_completed_by=%s
                WHERE id=%s
                """,
                (completed_at, completed_by, SYSTEM_SETTINGS_ID),
            )
            return int(cur.rowcount or 0)

    def upsert_completion(self, *, completed_at: datetime, completed_by: Optional[str]) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO system_settings(id, is_setup_completed, setup_completed_at, setup_completed_by)
                VALUES(%s,1,%s,%s)
                ON DUPLICATE KEY UPDATE
                    is_setup_completed=1,
                    setup_completed_at=VALUES(setup_completed_at),
                    setup_completed_by=VALUES(setup_completed_by)
                """,
                (SYSTEM_SETTINGS_ID, completed_at, completed_by),
            )
