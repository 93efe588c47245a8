from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, new_id
from .model import Branch, Tenant, TreasuryAccount
from .repository import TenantRepository


def _branch(r: dict) -> Branch:
    return Branch(
        id=r["id"],
        tenant_id=r["tenant_id"],
        name=r["name"],
        currency=r["currency"],
        is_main=bool(r["is_main"]),
    )


class MySQLTenantRepository(TenantRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    # -------- Tenants --------
    def create_tenant(self, *, name: str, industry_type: str) -> Tenant:
        tenant = Tenant(id=new_id(), name=name, industry_type=industry_type)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO tenants(id, name, industry_type) VALUES(%s,%s,%s)",
                (tenant.id, tenant.name, tenant.industry_type),
            )
        return tenant

    def get_tenant(self, tenant_id: str) -> Optional[Tenant]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT id, name, industry_type FROM tenants WHERE id=%s", (tenant_id,))
            r = fetchone(cur)
            if not r:
                return None
            return Tenant(id=r["id"], name=r["name"], industry_type=r["industry_type"])

    def list_tenants(self) -> Sequence[Tenant]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT id, name, industry_type FROM tenants ORDER BY name")
            return [Tenant(id=r["id"], name=r["name"], industry_type=r["industry_type"]) for r in fetchall(cur)]

    # -------- Branches --------
    def create_branch(self, *, tenant_id: str, name: str, currency: str, is_main: bool) -> Branch:
        branch = Branch(id=new_id(), tenant_id=tenant_id, name=name, currency=currency, is_main=bool(is_main))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO branches(id, tenant_id, name, currency, is_main) VALUES(%s,%s,%s,%s,%s)",
                (branch.id, branch.tenant_id, branch.name, branch.currency, 1 if branch.is_main else 0),
            )
        return branch

    def get_branch(self, branch_id: str) -> Optional[Branch]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT id, tenant_id, name, currency, is_main FROM branches WHERE id=%s",
                (branch_id,),
            )
            r = fetchone(cur)
            return _branch(r) if r else None

    def list_branches(self, tenant_id: str) -> Sequence[Branch]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, tenant_id, name, currency, is_main
                FROM branches
                WHERE tenant_id=%s
                ORDER BY is_main DESC, name
                """,
                (tenant_id,),
            )
            return [_branch(r) for r in fetchall(cur)]

    # -------- Treasury accounts --------
    def create_treasury(self, *, tenant_id: str, branch_id: str, name: str, currency: str) -> TreasuryAccount:
        account = TreasuryAccount(id=new_id(), tenant_id=tenant_id, branch_id=branch_id, name=name, currency=currency)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO treasury_accounts(
                    id, tenant_id, branch_id, name, type, currency, initial_balance, current_balance
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    account.id,
                    account.tenant_id,
                    account.branch_id,
                    account.name,
                    account.type,
                    account.currency,
                    0,
                    0,
                ),
            )
        return account
