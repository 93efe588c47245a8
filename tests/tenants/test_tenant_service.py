from __future__ import annotations

import uuid
from dataclasses import dataclass, field

import pytest

from src.contracting_system.contracting_system.core.exceptions import ScopeError, ValidationError
from src.contracting_system.contracting_system.scope import ScopeResolver
from src.contracting_system.contracting_system.tenants.model import Branch, Tenant
from src.contracting_system.contracting_system.tenants.service import TenantService


@dataclass
class InMemoryTenants:
    tenants: dict[str, Tenant] = field(default_factory=dict)
    branches: list[Branch] = field(default_factory=list)

    def get_tenant(self, tenant_id):
        return self.tenants.get(tenant_id)

    def list_tenants(self):
        return list(self.tenants.values())

    def get_branch(self, branch_id):
        return next((b for b in self.branches if b.id == branch_id), None)

    def list_branches(self, tenant_id):
        return [b for b in self.branches if b.tenant_id == tenant_id]


def _setup():
    tenant = Tenant(id=str(uuid.uuid4()), name="Acme", industry_type="engineering")
    main = Branch(id=str(uuid.uuid4()), tenant_id=tenant.id, name="HQ", currency="SAR", is_main=True)
    side = Branch(id=str(uuid.uuid4()), tenant_id=tenant.id, name="Site", currency="SAR")
    foreign = Branch(id=str(uuid.uuid4()), tenant_id=str(uuid.uuid4()), name="Other", currency="EGP")
    repo = InMemoryTenants({tenant.id: tenant}, [main, side, foreign])
    return TenantService(repo), tenant, main, side, foreign


def test_select_tenant_picks_main_branch():
    service, tenant, main, _, _ = _setup()
    resolver = ScopeResolver()

    scope = service.select_tenant(resolver, tenant.id)

    assert (scope.tenant_id, scope.branch_id) == (tenant.id, main.id)


def test_select_unknown_tenant_is_scope_error():
    service, *_ = _setup()

    with pytest.raises(ScopeError):
        service.select_tenant(ScopeResolver(), str(uuid.uuid4()))
    with pytest.raises(ScopeError):
        service.select_tenant(ScopeResolver(), "not-a-uuid")


def test_select_branch_must_belong_to_selected_tenant():
    service, tenant, _, side, foreign = _setup()
    resolver = ScopeResolver()

    with pytest.raises(ScopeError):
        service.select_branch(resolver, side.id)

    service.select_tenant(resolver, tenant.id)
    assert service.select_branch(resolver, side.id).branch_id == side.id
    with pytest.raises(ValidationError):
        service.select_branch(resolver, foreign.id)
    assert resolver.get_branch() == side.id
