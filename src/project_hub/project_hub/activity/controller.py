from __future__ import annotations

from flask import Flask, request
from flask_login import login_required

from ..common.validators import optional_date, positive_int
from ..common.web import arg_int, current_actor, ok, page_args, paged
from ..container import Container
from ..core.constants import DEFAULT_AUDIT_PAGE_SIZE


def register(app: Flask, container: Container) -> None:
    activity = container.activity_service

    @app.route("/api/activity", methods=["GET"], endpoint="api_activity")
    @login_required
    def api_activity():
        actor = current_actor()
        visible = container.project_service.visible_project_ids(actor) or []
        items = activity.recent(
            actor=actor,
            visible_project_ids=visible,
            limit=positive_int(request.args.get("limit"), "limit", 10),
            project_id=arg_int("projectId"),
        )
        return ok(items)

    @app.route("/api/attendance/audit-log", methods=["GET"], endpoint="api_attendance_audit_log")
    @login_required
    def api_attendance_audit_log():
        page, limit = page_args(DEFAULT_AUDIT_PAGE_SIZE)
        result = activity.audit_log(
            actor=current_actor(),
            page=page,
            limit=limit,
            user_id=arg_int("userId"),
            action=request.args.get("action") or None,
            start=optional_date(request.args.get("startDate"), "startDate"),
            end=optional_date(request.args.get("endDate"), "endDate"),
        )
        return paged(result)
