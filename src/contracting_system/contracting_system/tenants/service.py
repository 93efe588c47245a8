from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..common.validators import is_valid_uuid
from ..core.constants import INVALID_TENANT_MESSAGE, NO_TENANT_MESSAGE
from ..core.exceptions import ScopeError, ValidationError
from ..scope.context import Scope, ScopeResolver
from .model import Branch, Tenant
from .repository import TenantRepository

logger = logging.getLogger(__name__)


class TenantService:
    """Tenant/branch lookups and the operator-driven scope switch."""

    def __init__(self, tenants: TenantRepository):
        self._tenants = tenants

    def list_tenants(self) -> Sequence[Tenant]:
        return self._tenants.list_tenants()

    def get_tenant(self, tenant_id: str) -> Optional[Tenant]:
        if not is_valid_uuid(tenant_id):
            return None
        return self._tenants.get_tenant(tenant_id)

    def list_branches(self, tenant_id: Optional[str]) -> Sequence[Branch]:
        if not tenant_id or not is_valid_uuid(tenant_id):
            return []
        return self._tenants.list_branches(tenant_id)

    def select_tenant(self, resolver: ScopeResolver, tenant_id: str) -> Scope:
        """Switch the resolver to ``tenant_id`` and its main branch."""
        tenant = self.get_tenant(tenant_id)
        if tenant is None:
            raise ScopeError(INVALID_TENANT_MESSAGE, "NO_TENANT_ID")

        resolver.set_tenant(tenant.id)
        main = next((b for b in self._tenants.list_branches(tenant.id) if b.is_main), None)
        if main is not None:
            resolver.set_branch(main.id)
        logger.info("Scope switched to tenant %s (branch %s)", tenant.id, main.id if main else None)
        return resolver.snapshot()

    def select_branch(self, resolver: ScopeResolver, branch_id: str) -> Scope:
        tenant_id = resolver.get_tenant()
        if not tenant_id:
            raise ScopeError(NO_TENANT_MESSAGE, "NO_TENANT_ID")

        branch = self._tenants.get_branch(branch_id) if branch_id else None
        if branch is None or branch.tenant_id != tenant_id:
            raise ValidationError("Branch does not belong to the selected company")

        resolver.set_branch(branch.id)
        logger.info("Scope switched to branch %s", branch.id)
        return resolver.snapshot()
