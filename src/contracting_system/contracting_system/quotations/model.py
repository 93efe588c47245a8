from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

from ..core.enums import TemplateType


@dataclass(frozen=True)
class QuotationDraft:
    id: str
    tenant_id: str
    customer_name: str = ""
    draft_name: Optional[str] = None
    customer_id: Optional[str] = None
    project_id: Optional[str] = None
    subject: Optional[str] = None
    ref_number: Optional[str] = None
    quotation_date: Optional[date] = None
    boq_items: list[dict[str, Any]] = field(default_factory=list)
    boq_total: float = 0.0
    status: str = "draft"
    notes: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "draft_name": self.draft_name,
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "project_id": self.project_id,
            "subject": self.subject,
            "ref_number": self.ref_number,
            "quotation_date": self.quotation_date.isoformat() if self.quotation_date else None,
            "boq_items": list(self.boq_items),
            "boq_total": self.boq_total,
            "status": self.status,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class QuotationTemplate:
    id: str
    tenant_id: str
    template_type: TemplateType
    template_name: str = ""
    content: dict[str, Any] = field(default_factory=dict)
    is_default: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "template_name": self.template_name,
            "template_type": self.template_type.value,
            "content": dict(self.content),
            "is_default": self.is_default,
        }
