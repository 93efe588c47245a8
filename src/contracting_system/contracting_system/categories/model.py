from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import CategoryType


@dataclass(frozen=True)
class ExpenseCategory:
    id: str
    tenant_id: str
    name: str
    type: CategoryType
    name_ar: Optional[str] = None
    is_system: bool = False
    created_by: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "name_ar": self.name_ar or self.name,
            "type": self.type.value,
            "is_system": self.is_system,
            "created_by": self.created_by,
        }
