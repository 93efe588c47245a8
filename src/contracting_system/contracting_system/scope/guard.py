"""Tenant/branch isolation guard.

Every data-access entry point of a feature service is wrapped with
:func:`guarded`. The wrapper resolves scope before the body runs and fails
closed: reads return an empty value, writes return a rejected
:class:`ServiceResult`. The wrapped body never sees a scope without a tenant
(or without a branch, when ``requires_branch`` is set).
"""

from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Callable, Optional

from ..common.validators import is_valid_uuid
from ..core.constants import INVALID_TENANT_MESSAGE, NO_BRANCH_MESSAGE, NO_TENANT_MESSAGE
from ..core.exceptions import DomainError, ScopeError, StoreError
from ..core.result import ServiceResult
from .context import Scope

logger = logging.getLogger(__name__)


def resolve_scope(scope: Optional[Scope], *, requires_branch: bool) -> Scope:
    if scope is None or not scope.has_tenant:
        raise ScopeError(NO_TENANT_MESSAGE, "NO_TENANT_ID")
    if not is_valid_uuid(scope.tenant_id):
        raise ScopeError(INVALID_TENANT_MESSAGE, "NO_TENANT_ID")
    if requires_branch and not scope.has_branch:
        raise ScopeError(NO_BRANCH_MESSAGE, "NO_BRANCH_ID")
    return scope


def guarded(
    *,
    requires_branch: bool = False,
    write: bool = False,
    empty: Callable[[], Any] = list,
    failure_code: Optional[str] = None,
):
    """Wrap a service method whose first argument after ``self`` is a Scope.

    ``empty`` builds the fail-closed value for reads. ``failure_code``
    replaces the store's own error code on failed writes.
    """

    def decorator(fn):
        name = fn.__qualname__

        @wraps(fn)
        def wrapper(self, scope: Optional[Scope], *args, **kwargs):
            try:
                resolved = resolve_scope(scope, requires_branch=requires_branch)
            except ScopeError as e:
                logger.warning("%s blocked: %s", name, e.message)
                return ServiceResult.from_error(e) if write else empty()

            try:
                return fn(self, resolved, *args, **kwargs)
            except StoreError as e:
                if not write:
                    if not e.is_missing:
                        logger.error("%s failed: %s", name, e.message)
                    return empty()
                logger.error("%s failed: %s", name, e.message)
                return ServiceResult.fail(e.message, failure_code or e.code)
            except DomainError as e:
                if not write:
                    logger.warning("%s rejected: %s", name, e.message)
                    return empty()
                return ServiceResult.from_error(e)

        wrapper.requires_branch = requires_branch
        wrapper.is_write = write
        return wrapper

    return decorator
