from __future__ import annotations

import json
from typing import Any, Optional, Sequence

from ..core.enums import TemplateType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_float, db_cursor, fetchall, fetchone
from .model import QuotationDraft, QuotationTemplate
from .repository import QuotationDraftRepository, QuotationTemplateRepository

_DRAFT_COLUMNS = (
    "id, tenant_id, draft_name, customer_id, customer_name, project_id, subject, ref_number, "
    "quotation_date, boq_items, boq_total, status, notes"
)
_DRAFT_UPDATABLE = frozenset(
    {
        "draft_name",
        "customer_id",
        "customer_name",
        "project_id",
        "subject",
        "ref_number",
        "quotation_date",
        "boq_items",
        "boq_total",
        "status",
        "notes",
    }
)
_TEMPLATE_COLUMNS = "id, tenant_id, template_name, template_type, content, is_default"
_TEMPLATE_UPDATABLE = frozenset({"template_name", "template_type", "content", "is_default"})


def _load_json(raw: Any, default: Any) -> Any:
    if raw is None or raw == "":
        return default
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")
    if isinstance(raw, str):
        return json.loads(raw)
    return raw


def _to_db(value: Any) -> Any:
    if isinstance(value, TemplateType):
        return value.value
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return value


def _row_to_draft(r: dict) -> QuotationDraft:
    return QuotationDraft(
        id=r["id"],
        tenant_id=r["tenant_id"],
        customer_name=r.get("customer_name") or "",
        draft_name=r.get("draft_name"),
        customer_id=r.get("customer_id"),
        project_id=r.get("project_id"),
        subject=r.get("subject"),
        ref_number=r.get("ref_number"),
        quotation_date=r.get("quotation_date"),
        boq_items=list(_load_json(r.get("boq_items"), [])),
        boq_total=as_float(r.get("boq_total")),
        status=r.get("status") or "draft",
        notes=r.get("notes"),
    )


def _row_to_template(r: dict) -> QuotationTemplate:
    return QuotationTemplate(
        id=r["id"],
        tenant_id=r["tenant_id"],
        template_type=TemplateType(r["template_type"]),
        template_name=r.get("template_name") or "",
        content=dict(_load_json(r.get("content"), {})),
        is_default=bool(r.get("is_default")),
    )


def _set_clause(changes: dict[str, Any], allowed: frozenset[str]) -> tuple[list[str], list[Any]]:
    fields = [k for k in changes if k in allowed]
    return [f"{k}=%s" for k in fields], [_to_db(changes[k]) for k in fields]


class MySQLQuotationDraftRepository(QuotationDraftRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_drafts(self, *, tenant_id: str) -> Sequence[QuotationDraft]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_DRAFT_COLUMNS} FROM quotation_drafts WHERE tenant_id=%s ORDER BY updated_at DESC",
                (tenant_id,),
            )
            return [_row_to_draft(r) for r in fetchall(cur)]

    def get_draft(self, *, tenant_id: str, draft_id: str) -> Optional[QuotationDraft]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_DRAFT_COLUMNS} FROM quotation_drafts WHERE id=%s AND tenant_id=%s",
                (draft_id, tenant_id),
            )
            r = fetchone(cur)
            return _row_to_draft(r) if r else None

    def latest_ref_number(self, *, tenant_id: str, prefix: str) -> Optional[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT ref_number FROM quotation_drafts
                WHERE tenant_id=%s AND ref_number LIKE %s
                ORDER BY ref_number DESC
                LIMIT 1
                """,
                (tenant_id, f"{prefix}%"),
            )
            r = fetchone(cur)
            return r["ref_number"] if r else None

    def create_draft(self, draft: QuotationDraft) -> QuotationDraft:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO quotation_drafts(
                    id, tenant_id, draft_name, customer_id, customer_name, project_id, subject,
                    ref_number, quotation_date, boq_items, boq_total, status, notes
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    draft.id,
                    draft.tenant_id,
                    draft.draft_name,
                    draft.customer_id,
                    draft.customer_name,
                    draft.project_id,
                    draft.subject,
                    draft.ref_number,
                    draft.quotation_date,
                    json.dumps(draft.boq_items),
                    draft.boq_total,
                    draft.status,
                    draft.notes,
                ),
            )
        return draft

    def update_draft(self, *, tenant_id: str, draft_id: str, changes: dict[str, Any]) -> Optional[QuotationDraft]:
        assignments, values = _set_clause(changes, _DRAFT_UPDATABLE)
        with db_cursor(self._conn_factory) as (_, cur):
            if assignments:
                cur.execute(
                    f"UPDATE quotation_drafts SET {', '.join(assignments)} WHERE id=%s AND tenant_id=%s",
                    (*values, draft_id, tenant_id),
                )
            cur.execute(
                f"SELECT {_DRAFT_COLUMNS} FROM quotation_drafts WHERE id=%s AND tenant_id=%s",
                (draft_id, tenant_id),
            )
            r = fetchone(cur)
            return _row_to_draft(r) if r else None

    def delete_draft(self, *, tenant_id: str, draft_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM quotation_drafts WHERE id=%s AND tenant_id=%s", (draft_id, tenant_id))
            return cur.rowcount > 0


class MySQLQuotationTemplateRepository(QuotationTemplateRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_templates(
        self, *, tenant_id: str, template_type: Optional[TemplateType] = None, defaults_only: bool = False
    ) -> Sequence[QuotationTemplate]:
        clauses = ["tenant_id=%s"]
        params: list[object] = [tenant_id]
        if template_type is not None:
            clauses.append("template_type=%s")
            params.append(template_type.value)
        if defaults_only:
            clauses.append("is_default=1")

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_TEMPLATE_COLUMNS} FROM quotation_templates WHERE {' AND '.join(clauses)} "
                "ORDER BY created_at DESC",
                tuple(params),
            )
            return [_row_to_template(r) for r in fetchall(cur)]

    def get_template(self, *, tenant_id: str, template_id: str) -> Optional[QuotationTemplate]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_TEMPLATE_COLUMNS} FROM quotation_templates WHERE id=%s AND tenant_id=%s",
                (template_id, tenant_id),
            )
            r = fetchone(cur)
            return _row_to_template(r) if r else None

    def create_template(self, template: QuotationTemplate) -> QuotationTemplate:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO quotation_templates(id, tenant_id, template_name, template_type, content, is_default)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    template.id,
                    template.tenant_id,
                    template.template_name,
                    template.template_type.value,
                    json.dumps(template.content),
                    1 if template.is_default else 0,
                ),
            )
        return template

    def update_template(
        self, *, tenant_id: str, template_id: str, changes: dict[str, Any]
    ) -> Optional[QuotationTemplate]:
        assignments, values = _set_clause(changes, _TEMPLATE_UPDATABLE)
        with db_cursor(self._conn_factory) as (_, cur):
            if assignments:
                cur.execute(
                    f"UPDATE quotation_templates SET {', '.join(assignments)} WHERE id=%s AND tenant_id=%s",
                    (*values, template_id, tenant_id),
                )
            cur.execute(
                f"SELECT {_TEMPLATE_COLUMNS} FROM quotation_templates WHERE id=%s AND tenant_id=%s",
                (template_id, tenant_id),
            )
            r = fetchone(cur)
            return _row_to_template(r) if r else None

    def delete_template(self, *, tenant_id: str, template_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM quotation_templates WHERE id=%s AND tenant_id=%s", (template_id, tenant_id))
            return cur.rowcount > 0

    def unset_defaults(self, *, tenant_id: str, template_type: TemplateType, exclude_id: Optional[str] = None) -> None:
        sql = "UPDATE quotation_templates SET is_default=0 WHERE tenant_id=%s AND template_type=%s AND is_default=1"
        params: list[object] = [tenant_id, template_type.value]
        if exclude_id:
            sql += " AND id<>%s"
            params.append(exclude_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
