"""Small Flask helpers shared by the feature controllers."""

from __future__ import annotations

from functools import wraps
from typing import Any

from flask import g, jsonify, session

from ..auth.mysql_auth_provider import MySQLAuthProvider
from ..core.result import ServiceResult
from ..scope.context import Scope, ScopeResolver


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if MySQLAuthProvider.SESSION_KEY not in session:
            return jsonify({"success": False, "error": "Login required", "errorCode": "NOT_AUTHENTICATED"}), 401
        return view(*args, **kwargs)

    return wrapper


def current_resolver() -> ScopeResolver:
    """The per-request resolver, mirrored into the Flask session."""
    if "resolver" not in g:
        g.resolver = ScopeResolver(mirror=session)
    return g.resolver


def current_scope() -> Scope:
    return current_resolver().snapshot()


def result_response(result: ServiceResult, *, created: bool = False) -> Any:
    if not result.success:
        return jsonify(result.to_dict()), 400
    return jsonify(result.to_dict()), 201 if created else 200


def items_response(items) -> Any:
    return jsonify({"success": True, "items": [item.to_dict() for item in items]})
