from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional, Sequence

from ..common.datetime_utils import as_date, now_utc
from ..common.validators import optional_text, to_float
from ..core.enums import TemplateType
from ..core.exceptions import ValidationError
from ..core.result import ServiceResult
from ..database.mysql_base import new_id
from ..scope import Scope, guarded
from .model import QuotationDraft, QuotationTemplate
from .repository import QuotationDraftRepository, QuotationTemplateRepository

logger = logging.getLogger(__name__)


def boq_total(items: Sequence[dict[str, Any]]) -> float:
    return sum(to_float(item.get("amount")) for item in items or [])


def _ref_prefix() -> str:
    return f"REF-{now_utc().year}-"


def _first_ref_number() -> str:
    return f"{_ref_prefix()}001"


def next_ref_number(latest: Optional[str], prefix: str) -> str:
    """``REF-YYYY-NNN`` following ``latest`` (or 001)."""
    if latest:
        match = re.match(rf"{re.escape(prefix)}(\d+)", latest)
        if match:
            return f"{prefix}{int(match.group(1)) + 1:03d}"
    return f"{prefix}001"


class QuotationDraftService:
    def __init__(self, drafts: QuotationDraftRepository):
        self._drafts = drafts

    @guarded(empty=_first_ref_number)
    def generate_ref_number(self, scope: Scope) -> str:
        prefix = _ref_prefix()
        return next_ref_number(self._drafts.latest_ref_number(tenant_id=scope.tenant_id, prefix=prefix), prefix)

    @guarded()
    def list_drafts(self, scope: Scope) -> Sequence[QuotationDraft]:
        return self._drafts.list_drafts(tenant_id=scope.tenant_id)

    @guarded(empty=lambda: None)
    def get_draft(self, scope: Scope, draft_id: str) -> Optional[QuotationDraft]:
        if not draft_id:
            return None
        return self._drafts.get_draft(tenant_id=scope.tenant_id, draft_id=draft_id)

    @guarded(write=True, failure_code="CREATE_DRAFT_FAILED")
    def create_draft(self, scope: Scope, data: dict[str, Any]) -> ServiceResult:
        items = list(data.get("boq_items") or [])
        ref_number = optional_text(data.get("ref_number")) or self.generate_ref_number(scope)
        draft = QuotationDraft(
            id=new_id(),
            tenant_id=scope.tenant_id,
            customer_name=data.get("customer_name") or "",
            draft_name=optional_text(data.get("draft_name")),
            customer_id=optional_text(data.get("customer_id")),
            project_id=optional_text(data.get("project_id")),
            subject=optional_text(data.get("subject")),
            ref_number=ref_number,
            quotation_date=as_date(data["quotation_date"]) if data.get("quotation_date") else now_utc().date(),
            boq_items=items,
            boq_total=boq_total(items),
            status=data.get("status") or "draft",
            notes=optional_text(data.get("notes")),
        )
        created = self._drafts.create_draft(draft)
        logger.info("Quotation draft %s created (total %.2f)", created.ref_number, created.boq_total)
        return ServiceResult.ok(draft=created.to_dict())

    @guarded(write=True, failure_code="UPDATE_DRAFT_FAILED")
    def update_draft(self, scope: Scope, draft_id: str, data: dict[str, Any]) -> ServiceResult:
        if not draft_id:
            raise ValidationError("Draft ID is required", "INVALID_ID")

        changes: dict[str, Any] = {}
        for key in ("draft_name", "customer_id", "project_id", "subject", "ref_number", "notes"):
            if key in data:
                changes[key] = optional_text(data[key])
        if "customer_name" in data:
            changes["customer_name"] = data["customer_name"] or ""
        if "status" in data:
            changes["status"] = data["status"]
        if "quotation_date" in data:
            changes["quotation_date"] = as_date(data["quotation_date"]) if data["quotation_date"] else None
        if "boq_items" in data:
            items = list(data["boq_items"] or [])
            changes["boq_items"] = items
            changes["boq_total"] = boq_total(items)

        draft = self._drafts.update_draft(tenant_id=scope.tenant_id, draft_id=draft_id, changes=changes)
        if draft is None:
            return ServiceResult.fail("Draft not found", "DRAFT_NOT_FOUND")
        return ServiceResult.ok(draft=draft.to_dict())

    @guarded(write=True, failure_code="DELETE_DRAFT_FAILED")
    def delete_draft(self, scope: Scope, draft_id: str) -> ServiceResult:
        if not draft_id:
            raise ValidationError("Draft ID is required", "INVALID_ID")
        self._drafts.delete_draft(tenant_id=scope.tenant_id, draft_id=draft_id)
        return ServiceResult.ok()


def _template_type(value: Any) -> TemplateType:
    try:
        return TemplateType(value)
    except ValueError:
        raise ValidationError(f"Unknown template type: {value}")


def _template_content(value: Any) -> dict[str, Any]:
    """Templates store a JSON object; older clients send it as a string."""
    if not value:
        return {}
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return {}
    return dict(value) if isinstance(value, dict) else {}


class QuotationTemplateService:
    """Reusable quotation sections. At most one default per template type."""

    def __init__(self, templates: QuotationTemplateRepository):
        self._templates = templates

    @guarded()
    def list_templates(self, scope: Scope, template_type: Optional[TemplateType | str] = None) -> Sequence[QuotationTemplate]:
        return self._templates.list_templates(
            tenant_id=scope.tenant_id,
            template_type=_template_type(template_type) if template_type else None,
        )

    @guarded(empty=lambda: None)
    def get_default_template(self, scope: Scope, template_type: TemplateType | str) -> Optional[QuotationTemplate]:
        found = self._templates.list_templates(
            tenant_id=scope.tenant_id, template_type=_template_type(template_type), defaults_only=True
        )
        return found[0] if found else None

    @guarded(empty=dict)
    def get_all_default_templates(self, scope: Scope) -> dict[str, QuotationTemplate]:
        defaults: dict[str, QuotationTemplate] = {}
        for template in self._templates.list_templates(tenant_id=scope.tenant_id, defaults_only=True):
            defaults.setdefault(template.template_type.value, template)
        return defaults

    @guarded(write=True, failure_code="CREATE_TEMPLATE_FAILED")
    def create_template(self, scope: Scope, data: dict[str, Any]) -> ServiceResult:
        if not data.get("template_type"):
            raise ValidationError("Template type is required")
        template_type = _template_type(data["template_type"])
        is_default = bool(data.get("is_default", False))
        if is_default:
            self._templates.unset_defaults(tenant_id=scope.tenant_id, template_type=template_type)

        template = QuotationTemplate(
            id=new_id(),
            tenant_id=scope.tenant_id,
            template_type=template_type,
            template_name=data.get("template_name") or "",
            content=_template_content(data.get("content")),
            is_default=is_default,
        )
        created = self._templates.create_template(template)
        return ServiceResult.ok(template=created.to_dict())

    @guarded(write=True, failure_code="UPDATE_TEMPLATE_FAILED")
    def update_template(self, scope: Scope, template_id: str, data: dict[str, Any]) -> ServiceResult:
        if not template_id:
            raise ValidationError("Template ID is required", "INVALID_ID")

        changes: dict[str, Any] = {}
        if "template_name" in data:
            changes["template_name"] = data["template_name"] or ""
        if "template_type" in data:
            changes["template_type"] = _template_type(data["template_type"])
        if "content" in data:
            changes["content"] = _template_content(data["content"])
        if "is_default" in data:
            changes["is_default"] = bool(data["is_default"])

        if changes.get("is_default"):
            template_type = changes.get("template_type")
            if template_type is None:
                current = self._templates.get_template(tenant_id=scope.tenant_id, template_id=template_id)
                if current is None:
                    return ServiceResult.fail("Template not found", "TEMPLATE_NOT_FOUND")
                template_type = current.template_type
            self._templates.unset_defaults(
                tenant_id=scope.tenant_id, template_type=template_type, exclude_id=template_id
            )

        template = self._templates.update_template(tenant_id=scope.tenant_id, template_id=template_id, changes=changes)
        if template is None:
            return ServiceResult.fail("Template not found", "TEMPLATE_NOT_FOUND")
        return ServiceResult.ok(template=template.to_dict())

    @guarded(write=True, failure_code="DELETE_TEMPLATE_FAILED")
    def delete_template(self, scope: Scope, template_id: str) -> ServiceResult:
        if not template_id:
            raise ValidationError("Template ID is required", "INVALID_ID")
        self._templates.delete_template(tenant_id=scope.tenant_id, template_id=template_id)
        return ServiceResult.ok()
