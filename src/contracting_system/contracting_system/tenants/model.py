from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Tenant:
    id: str
    name: str
    industry_type: str


@dataclass(frozen=True)
class Branch:
    id: str
    tenant_id: str
    name: str
    currency: str
    is_main: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "name": self.name,
            "currency": self.currency,
            "is_main": self.is_main,
        }


@dataclass(frozen=True)
class TreasuryAccount:
    id: str
    tenant_id: str
    branch_id: str
    name: str
    currency: str
    type: str = "cash"
    initial_balance: float = 0.0
    current_balance: float = 0.0
