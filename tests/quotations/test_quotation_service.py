from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace

from src.contracting_system.contracting_system.core.enums import TemplateType
from src.contracting_system.contracting_system.quotations.service import (
    QuotationDraftService,
    QuotationTemplateService,
    boq_total,
    next_ref_number,
)
from src.contracting_system.contracting_system.scope import Scope

TENANT = str(uuid.uuid4())
SCOPE = Scope(tenant_id=TENANT)


@dataclass
class InMemoryDrafts:
    drafts: dict = field(default_factory=dict)

    def list_drafts(self, *, tenant_id):
        return [d for d in self.drafts.values() if d.tenant_id == tenant_id]

    def get_draft(self, *, tenant_id, draft_id):
        return self.drafts.get(draft_id)

    def latest_ref_number(self, *, tenant_id, prefix):
        refs = sorted(d.ref_number for d in self.list_drafts(tenant_id=tenant_id) if (d.ref_number or "").startswith(prefix))
        return refs[-1] if refs else None

    def create_draft(self, draft):
        self.drafts[draft.id] = draft
        return draft

    def update_draft(self, *, tenant_id, draft_id, changes):
        if draft_id not in self.drafts:
            return None
        self.drafts[draft_id] = replace(self.drafts[draft_id], **changes)
        return self.drafts[draft_id]

    def delete_draft(self, *, tenant_id, draft_id):
        return self.drafts.pop(draft_id, None) is not None


@dataclass
class InMemoryTemplates:
    templates: dict = field(default_factory=dict)

    def list_templates(self, *, tenant_id, template_type=None, defaults_only=False):
        return [
            t
            for t in self.templates.values()
            if (template_type is None or t.template_type == template_type) and (not defaults_only or t.is_default)
        ]

    def get_template(self, *, tenant_id, template_id):
        return self.templates.get(template_id)

    def create_template(self, template):
        self.templates[template.id] = template
        return template

    def update_template(self, *, tenant_id, template_id, changes):
        if template_id not in self.templates:
            return None
        self.templates[template_id] = replace(self.templates[template_id], **changes)
        return self.templates[template_id]

    def delete_template(self, *, tenant_id, template_id):
        return self.templates.pop(template_id, None) is not None

    def unset_defaults(self, *, tenant_id, template_type, exclude_id=None):
        for key, t in list(self.templates.items()):
            if t.template_type == template_type and t.id != exclude_id:
                self.templates[key] = replace(t, is_default=False)


def test_next_ref_number_increments_and_pads():
    assert next_ref_number(None, "REF-2025-") == "REF-2025-001"
    assert next_ref_number("REF-2025-009", "REF-2025-") == "REF-2025-010"
    assert next_ref_number("garbage", "REF-2025-") == "REF-2025-001"


def test_drafts_get_sequential_refs_and_boq_totals():
    service = QuotationDraftService(InMemoryDrafts())
    items = [{"description": "Excavation", "amount": 1200}, {"description": "Concrete", "amount": "800.5"}]

    first = service.create_draft(SCOPE, {"customer_name": "ACME", "boq_items": items})
    second = service.create_draft(SCOPE, {"customer_name": "ACME"})

    assert first["draft"]["boq_total"] == 2000.5
    assert first["draft"]["ref_number"].endswith("-001")
    assert second["draft"]["ref_number"].endswith("-002")
    assert boq_total([]) == 0.0


def test_update_unknown_draft_is_not_found():
    service = QuotationDraftService(InMemoryDrafts())

    assert service.update_draft(SCOPE, "missing", {"subject": "x"}).error_code == "DRAFT_NOT_FOUND"


def test_only_one_default_template_per_type():
    repo = InMemoryTemplates()
    service = QuotationTemplateService(repo)

    first = service.create_template(SCOPE, {"template_type": "terms", "template_name": "A", "is_default": True})
    second = service.create_template(SCOPE, {"template_type": "terms", "template_name": "B", "is_default": True})
    service.create_template(SCOPE, {"template_type": "scope", "template_name": "S", "is_default": True})

    default = service.get_default_template(SCOPE, TemplateType.TERMS)
    assert default.id == second["template"]["id"]
    assert repo.templates[first["template"]["id"]].is_default is False
    assert set(service.get_all_default_templates(SCOPE)) == {"terms", "scope"}


def test_promoting_template_to_default_demotes_others():
    repo = InMemoryTemplates()
    service = QuotationTemplateService(repo)
    a = service.create_template(SCOPE, {"template_type": "terms", "template_name": "A", "is_default": True})
    b = service.create_template(SCOPE, {"template_type": "terms", "template_name": "B", "content": '{"body": "x"}'})

    service.update_template(SCOPE, b["template"]["id"], {"is_default": True})

    assert repo.templates[a["template"]["id"]].is_default is False
    assert repo.templates[b["template"]["id"]].is_default is True
    assert repo.templates[b["template"]["id"]].content == {"body": "x"}


def test_templates_without_tenant_are_empty():
    service = QuotationTemplateService(InMemoryTemplates())

    assert service.list_templates(Scope()) == []
    assert service.get_all_default_templates(Scope()) == {}
