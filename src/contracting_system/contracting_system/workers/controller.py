from __future__ import annotations

from flask import Flask, request

from ..common.web import current_scope, items_response, login_required, result_response
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/workers", methods=["GET"], endpoint="api_workers")
    @login_required
    def api_workers():
        scope = current_scope()
        if request.args.get("active") in ("1", "true"):
            return items_response(container.worker_service.list_active_workers(scope))
        return items_response(container.worker_service.list_workers(scope))

    @app.route("/api/workers", methods=["POST"], endpoint="api_add_worker")
    @login_required
    def api_add_worker():
        result = container.worker_service.add_worker(current_scope(), request.get_json(silent=True) or {})
        return result_response(result, created=True)
