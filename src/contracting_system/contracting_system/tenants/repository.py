from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Branch, Tenant, TreasuryAccount


class TenantRepository(Protocol):
    # Tenants
    def create_tenant(self, *, name: str, industry_type: str) -> Tenant:
        raise NotImplementedError

    def get_tenant(self, tenant_id: str) -> Optional[Tenant]:
        raise NotImplementedError

    def list_tenants(self) -> Sequence[Tenant]:
        raise NotImplementedError

    # Branches
    def create_branch(self, *, tenant_id: str, name: str, currency: str, is_main: bool) -> Branch:
        raise NotImplementedError

    def get_branch(self, branch_id: str) -> Optional[Branch]:
        raise NotImplementedError

    def list_branches(self, tenant_id: str) -> Sequence[Branch]:
        raise NotImplementedError

    # Treasury accounts
    def create_treasury(self, *, tenant_id: str, branch_id: str, name: str, currency: str) -> TreasuryAccount:
        """Create a cash treasury with zero initial and current balance."""

        raise NotImplementedError
