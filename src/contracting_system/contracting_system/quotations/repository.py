from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence

from ..core.enums import TemplateType
from .model import QuotationDraft, QuotationTemplate


class QuotationDraftRepository(Protocol):
    """Every method filters by tenant_id."""

    def list_drafts(self, *, tenant_id: str) -> Sequence[QuotationDraft]:
        raise NotImplementedError

    def get_draft(self, *, tenant_id: str, draft_id: str) -> Optional[QuotationDraft]:
        raise NotImplementedError

    def latest_ref_number(self, *, tenant_id: str, prefix: str) -> Optional[str]:
        """Highest ref_number starting with ``prefix``."""

        raise NotImplementedError

    def create_draft(self, draft: QuotationDraft) -> QuotationDraft:
        raise NotImplementedError

    def update_draft(self, *, tenant_id: str, draft_id: str, changes: dict[str, Any]) -> Optional[QuotationDraft]:
        raise NotImplementedError

    def delete_draft(self, *, tenant_id: str, draft_id: str) -> bool:
        raise NotImplementedError


class QuotationTemplateRepository(Protocol):
    """Every method filters by tenant_id."""

    def list_templates(
        self, *, tenant_id: str, template_type: Optional[TemplateType] = None, defaults_only: bool = False
    ) -> Sequence[QuotationTemplate]:
        raise NotImplementedError

    def get_template(self, *, tenant_id: str, template_id: str) -> Optional[QuotationTemplate]:
        raise NotImplementedError

    def create_template(self, template: QuotationTemplate) -> QuotationTemplate:
        raise NotImplementedError

    def update_template(
        self, *, tenant_id: str, template_id: str, changes: dict[str, Any]
    ) -> Optional[QuotationTemplate]:
        raise NotImplementedError

    def delete_template(self, *, tenant_id: str, template_id: str) -> bool:
        raise NotImplementedError

    def unset_defaults(self, *, tenant_id: str, template_type: TemplateType, exclude_id: Optional[str] = None) -> None:
        raise NotImplementedError
