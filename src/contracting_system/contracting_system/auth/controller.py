from __future__ import annotations

import logging

from flask import Flask, jsonify, request

from ..common.validators import require_non_empty
from ..common.web import current_resolver, login_required
from ..core.exceptions import AuthenticationError, DomainError, StoreError, ValidationError
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/login", methods=["POST"], endpoint="login")
    def login():
        data = request.get_json(silent=True) or request.form
        try:
            email = require_non_empty(data.get("email"), "Email")
            require_non_empty(data.get("password"), "Password")
        except ValidationError as e:
            return jsonify({"success": False, "error": e.message, "errorCode": e.code}), 400
        try:
            principal = container.auth.sign_in(email, data["password"])
        except AuthenticationError as e:
            return jsonify({"success": False, "error": e.message, "errorCode": e.code}), 401

        resolver = current_resolver()
        resolver.clear()
        profile = None
        try:
            profile = container.profiles_repo.get_profile(principal.id)
        except StoreError as e:
            logger.warning("Could not load profile for %s: %s", principal.id, e.message)

        if profile is not None and profile.tenant_id:
            try:
                container.tenant_service.select_tenant(resolver, profile.tenant_id)
                if profile.branch_id:
                    container.tenant_service.select_branch(resolver, profile.branch_id)
            except DomainError as e:
                logger.warning("Could not restore scope for %s: %s", principal.id, e.message)

        scope = resolver.snapshot()
        return jsonify(
            {
                "success": True,
                "user": profile.to_dict() if profile else principal.to_dict(),
                "tenant_id": scope.tenant_id,
                "branch_id": scope.branch_id,
            }
        )

    @app.route("/logout", methods=["POST"], endpoint="logout")
    @login_required
    def logout():
        container.auth.sign_out()
        current_resolver().clear()
        return jsonify({"success": True})

    @app.route("/", methods=["GET"], endpoint="home")
    def home():
        principal = container.auth.get_current_principal()
        scope = current_resolver().snapshot()
        return jsonify(
            {
                "success": True,
                "authenticated": principal is not None,
                "user": principal.to_dict() if principal else None,
                "tenant_id": scope.tenant_id,
                "branch_id": scope.branch_id,
            }
        )
