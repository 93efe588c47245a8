from __future__ import annotations

from flask import Flask, request

from ..common.web import current_scope, items_response, login_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/payments", methods=["GET"], endpoint="api_payments")
    @login_required
    def api_payments():
        scope = current_scope()
        project_id = request.args.get("project_id")
        status = request.args.get("status")
        if project_id:
            payments = container.payment_service.list_by_project(scope, project_id)
        elif status:
            payments = container.payment_service.list_by_status(scope, status)
        else:
            payments = container.payment_service.list_payments(scope)
        return items_response(payments)
