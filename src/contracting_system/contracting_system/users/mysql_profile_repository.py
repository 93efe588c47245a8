from __future__ import annotations

from typing import Optional

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import Profile
from .repository import ProfileRepository


class MySQLProfileRepository(ProfileRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_profile(self, profile_id: str) -> Optional[Profile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT id, email, full_name, role, tenant_id, branch_id FROM profiles WHERE id=%s",
                (profile_id,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Profile(
                id=r["id"],
                email=r["email"],
                full_name=r["full_name"],
                role=Role(r["role"]),
                tenant_id=r.get("tenant_id"),
                branch_id=r.get("branch_id"),
            )

    def upsert_profile(self, profile: Profile) -> Profile:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO profiles(id, email, full_name, role, tenant_id, branch_id)
                VALUES(%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    email=VALUES(email),
                    full_name=VALUES(full_name),
                    role=VALUES(role),
                    tenant_id=VALUES(tenant_id),
                    branch_id=VALUES(branch_id)
                """,
                (
                    profile.id,
                    profile.email,
                    profile.full_name,
                    profile.role.value,
                    profile.tenant_id,
                    profile.branch_id,
                ),
            )
        return profile
