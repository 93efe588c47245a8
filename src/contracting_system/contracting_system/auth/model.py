from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class Principal:
    """An authenticated identity from the auth provider."""

    id: str
    email: str
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def full_name(self) -> Optional[str]:
        return self.metadata.get("full_name")

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "email": self.email, "full_name": self.full_name}
