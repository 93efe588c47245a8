from __future__ import annotations

from flask import Flask, request, session

from ..auth.mysql_auth_provider import MySQLAuthProvider
from ..common.web import current_scope, items_response, login_required, result_response
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance", methods=["GET"], endpoint="api_attendance")
    @login_required
    def api_attendance():
        scope = current_scope()
        project_id = request.args.get("project_id")
        work_date = request.args.get("date")
        if project_id and work_date:
            records = container.attendance_service.list_by_date_and_project(scope, project_id, work_date)
        elif project_id:
            records = container.attendance_service.list_by_project(scope, project_id)
        else:
            records = container.attendance_service.list_records(scope)
        return items_response(records)

    @app.route("/api/attendance", methods=["POST"], endpoint="api_create_attendance")
    @login_required
    def api_create_attendance():
        data = dict(request.get_json(silent=True) or {})
        data.setdefault("created_by", session.get(MySQLAuthProvider.SESSION_KEY))
        result = container.attendance_service.create_attendance_records(current_scope(), data)
        return result_response(result, created=True)
