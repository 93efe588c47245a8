from .context import Scope, ScopeResolver
from .guard import guarded, resolve_scope

__all__ = ["Scope", "ScopeResolver", "guarded", "resolve_scope"]
