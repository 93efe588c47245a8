from __future__ import annotations

from dataclasses import dataclass
from typing import Any, MutableMapping, Optional


@dataclass(frozen=True)
class Scope:
    """The (tenant, branch) pair a data-access call runs under.

    Passed explicitly to every guarded service call; services never read
    ambient tenant/branch state.
    """

    tenant_id: Optional[str] = None
    branch_id: Optional[str] = None

    @property
    def has_tenant(self) -> bool:
        return bool(self.tenant_id)

    @property
    def has_branch(self) -> bool:
        return bool(self.branch_id)

    def stamp(self, payload: dict[str, Any], *, branch: bool) -> dict[str, Any]:
        """Copy ``payload`` with tenant_id (and branch_id) taken from this scope.

        Caller-supplied ids are overwritten.
        """
        row = dict(payload)
        row["tenant_id"] = self.tenant_id
        if branch:
            row["branch_id"] = self.branch_id
        else:
            row.pop("branch_id", None)
        return row


class ScopeResolver:
    """Holds the currently selected tenant and branch.

    Optionally mirrors both values into a mapping (e.g. the Flask session)
    so a later request can restore them. No validation happens here.
    """

    TENANT_KEY = "current_tenant_id"
    BRANCH_KEY = "selected_branch_id"

    def __init__(self, mirror: Optional[MutableMapping[str, Any]] = None):
        self._mirror = mirror
        self._tenant_id: Optional[str] = None
        self._branch_id: Optional[str] = None
        if mirror is not None:
            self._tenant_id = mirror.get(self.TENANT_KEY) or None
            self._branch_id = mirror.get(self.BRANCH_KEY) or None

    def get_tenant(self) -> Optional[str]:
        return self._tenant_id

    def get_branch(self) -> Optional[str]:
        return self._branch_id

    def set_tenant(self, tenant_id: Optional[str]) -> None:
        # A branch belongs to one tenant; switching tenants drops it.
        if tenant_id != self._tenant_id:
            self.set_branch(None)
        self._tenant_id = tenant_id or None
        self._write(self.TENANT_KEY, self._tenant_id)

    def set_branch(self, branch_id: Optional[str]) -> None:
        self._branch_id = branch_id or None
        self._write(self.BRANCH_KEY, self._branch_id)

    def clear(self) -> None:
        self.set_tenant(None)
        self.set_branch(None)

    def snapshot(self) -> Scope:
        return Scope(tenant_id=self._tenant_id, branch_id=self._branch_id)

    def _write(self, key: str, value: Optional[str]) -> None:
        if self._mirror is None:
            return
        if value:
            self._mirror[key] = value
        else:
            self._mirror.pop(key, None)
