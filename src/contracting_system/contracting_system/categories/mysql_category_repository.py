from __future__ import annotations

from typing import Any, Optional, Sequence

from ..core.enums import CategoryType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import ExpenseCategory
from .repository import CategoryRepository

_COLUMNS = "id, tenant_id, name, name_ar, type, is_system, created_by"
_UPDATABLE = frozenset({"name", "name_ar", "type"})


def _row_to_category(r: dict) -> ExpenseCategory:
    return ExpenseCategory(
        id=r["id"],
        tenant_id=r["tenant_id"],
        name=r["name"],
        type=CategoryType(r["type"]),
        name_ar=r.get("name_ar"),
        is_system=bool(r.get("is_system")),
        created_by=r.get("created_by"),
    )


class MySQLCategoryRepository(CategoryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_categories(self, *, tenant_id: str, type: Optional[CategoryType] = None) -> Sequence[ExpenseCategory]:
        clauses = ["tenant_id=%s"]
        params: list[object] = [tenant_id]
        if type is not None:
            clauses.append("type=%s")
            params.append(type.value)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM expense_categories WHERE {' AND '.join(clauses)} ORDER BY name",
                tuple(params),
            )
            return [_row_to_category(r) for r in fetchall(cur)]

    def get_category(self, *, tenant_id: str, category_id: str) -> Optional[ExpenseCategory]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM expense_categories WHERE id=%s AND tenant_id=%s",
                (category_id, tenant_id),
            )
            r = fetchone(cur)
            return _row_to_category(r) if r else None

    def find_by_name(
        self, *, tenant_id: str, name: str, type: CategoryType, exclude_id: Optional[str] = None
    ) -> Optional[ExpenseCategory]:
        sql = f"SELECT {_COLUMNS} FROM expense_categories WHERE tenant_id=%s AND name=%s AND type=%s"
        params: list[object] = [tenant_id, name, type.value]
        if exclude_id:
            sql += " AND id<>%s"
            params.append(exclude_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " LIMIT 1", tuple(params))
            r = fetchone(cur)
            return _row_to_category(r) if r else None

    def create_category(self, category: ExpenseCategory) -> ExpenseCategory:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO expense_categories(id, tenant_id, name, name_ar, type, is_system, created_by)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    category.id,
                    category.tenant_id,
                    category.name,
                    category.name_ar,
                    category.type.value,
                    1 if category.is_system else 0,
                    category.created_by,
                ),
            )
        return category

    def update_category(
        self, *, tenant_id: str, category_id: str, changes: dict[str, Any]
    ) -> Optional[ExpenseCategory]:
        fields = [k for k in changes if k in _UPDATABLE]
        with db_cursor(self._conn_factory) as (_, cur):
            if fields:
                values = [changes[k].value if isinstance(changes[k], CategoryType) else changes[k] for k in fields]
                cur.execute(
                    f"UPDATE expense_categories SET {', '.join(f'{k}=%s' for k in fields)} "
                    "WHERE id=%s AND tenant_id=%s",
                    (*values, category_id, tenant_id),
                )
            cur.execute(
                f"SELECT {_COLUMNS} FROM expense_categories WHERE id=%s AND tenant_id=%s",
                (category_id, tenant_id),
            )
            r = fetchone(cur)
            return _row_to_category(r) if r else None

    def delete_category(self, *, tenant_id: str, category_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM expense_categories WHERE id=%s AND tenant_id=%s", (category_id, tenant_id))
            return cur.rowcount > 0

    def is_in_use(self, *, tenant_id: str, name: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT 1 AS used FROM payments WHERE tenant_id=%s AND expense_category=%s LIMIT 1",
                (tenant_id, name),
            )
            return fetchone(cur) is not None
