from __future__ import annotations

import logging
from typing import Optional

from flask import Flask, jsonify, redirect, request

from ..common.web import current_resolver, result_response
from ..core.constants import SETUP_ROUTE
from ..core.enums import Role
from ..core.exceptions import DomainError, StoreError
from ..core.result import ServiceResult
from ..container import Container
from ..provisioning.model import ProvisioningRequest
from .gate import GateAction, GateDecision

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    def current_role() -> Optional[Role]:
        """Profile role of the signed-in principal; None when anonymous or unlinked."""
        principal = container.auth.get_current_principal()
        if principal is None:
            return None
        profile = container.profiles_repo.get_profile(principal.id)
        if profile is not None:
            return profile.role
        try:
            return Role(principal.metadata.get("role"))
        except ValueError:
            return None

    @app.before_request
    def require_setup():
        if request.endpoint in (None, "static"):
            return None
        try:
            decision = container.setup_gate.decide(current_role(), request.path)
        except StoreError as e:
            logger.warning("Could not resolve role for setup gate: %s", e.message)
            decision = GateDecision.pending()

        if decision.action == GateAction.PENDING:
            response = jsonify({"success": False, "status": "checking", "message": "Checking system configuration..."})
            response.headers["Retry-After"] = "1"
            return response, 503
        if decision.action == GateAction.REDIRECT:
            return redirect(decision.location)
        return None

    @app.route(SETUP_ROUTE, methods=["GET"], endpoint="setup_wizard")
    def setup_wizard():
        return jsonify({"success": True, "status": "setup_required", "submit": SETUP_ROUTE})

    @app.route(SETUP_ROUTE, methods=["POST"], endpoint="setup_wizard_submit")
    def setup_wizard_submit():
        data = request.get_json(silent=True) or {}
        try:
            provisioning_request = ProvisioningRequest.from_payload(data)
        except DomainError as e:
            return result_response(ServiceResult.from_error(e))
        result = container.provisioning_service.provision(provisioning_request, current_resolver())
        return result_response(result, created=result.success and not result.get("already_provisioned"))
