from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import current_resolver, login_required
from ..core.exceptions import DomainError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/scope/tenant", methods=["POST"], endpoint="select_tenant")
    @login_required
    def select_tenant():
        data = request.get_json(silent=True) or request.form
        try:
            scope = container.tenant_service.select_tenant(current_resolver(), data.get("tenant_id", ""))
        except DomainError as e:
            return jsonify({"success": False, "error": e.message, "errorCode": e.code}), 400
        return jsonify({"success": True, "tenant_id": scope.tenant_id, "branch_id": scope.branch_id})

    @app.route("/scope/branch", methods=["POST"], endpoint="select_branch")
    @login_required
    def select_branch():
        data = request.get_json(silent=True) or request.form
        try:
            scope = container.tenant_service.select_branch(current_resolver(), data.get("branch_id", ""))
        except DomainError as e:
            return jsonify({"success": False, "error": e.message, "errorCode": e.code}), 400
        return jsonify({"success": True, "tenant_id": scope.tenant_id, "branch_id": scope.branch_id})

    @app.route("/scope/branches", methods=["GET"], endpoint="list_branches")
    @login_required
    def list_branches():
        branches = container.tenant_service.list_branches(current_resolver().get_tenant())
        return jsonify({"success": True, "items": [b.to_dict() for b in branches]})
