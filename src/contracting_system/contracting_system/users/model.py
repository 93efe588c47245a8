from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class Profile:
    """Application profile; ``id`` is the auth principal id."""

    id: str
    email: str
    full_name: str
    role: Role
    tenant_id: Optional[str] = None
    branch_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role.value,
            "tenant_id": self.tenant_id,
            "branch_id": self.branch_id,
        }
