from __future__ import annotations

from datetime import timedelta

from flask import Flask, flash, redirect, render_template, request, send_file, url_for
from flask_login import current_user, login_required

from ..common.datetime_utils import now_local
from ..common.validators import optional_date, optional_datetime, positive_int
from ..common.web import arg_int, current_actor, ok, page_args, payload, roles_required
from ..container import Container
from ..core.constants import DEFAULT_ANALYTICS_DAYS, DEFAULT_HISTORY_LIMIT, DEFAULT_REPORT_DAYS
from ..core.enums import CorrectionStatus, Role
from ..core.exceptions import DomainError, ValidationError
from ..reports.export import EXCEL_MIMETYPE, to_csv_bytes, to_excel_bytes

SETTINGS_FIELDS = {
    "workHoursPerDay": "work_hours_per_day",
    "workDays": "work_days",
    "reminderEnabled": "reminder_enabled",
    "reminderTime": "reminder_time",
    "autoCheckoutEnabled": "auto_checkout_enabled",
    "autoCheckoutTime": "auto_checkout_time",
}


def _client() -> tuple[str, str]:
    ip = request.headers.get("X-Forwarded-For", request.remote_addr or "")
    return ip.split(",")[0].strip(), (request.user_agent.string or "")[:255]


def register(app: Flask, container: Container) -> None:
    attendance = container.attendance_service
    analytics = container.attendance_analytics_service
    corrections = container.correction_service

    # pages

    @app.route("/attendance", methods=["GET"], endpoint="attendance_page")
    @login_required
    def attendance_page():
        actor = current_actor()
        return render_template(
            "attendance/index.html",
            current=attendance.current(user_id=actor.user_id),
            stats=attendance.stats(actor=actor, period="month"),
            history=attendance.history(actor=actor, group_by="day", limit=DEFAULT_HISTORY_LIMIT),
            corrections=corrections.list_corrections(actor=actor) if not actor.is_admin_or_manager else [],
            active_page="attendance",
        )

    @app.route("/attendance/check-in", methods=["POST"], endpoint="attendance_check_in_form")
    @login_required
    def attendance_check_in_form():
        ip, device = _client()
        try:
            attendance.check_in(
                actor=current_actor(),
                project_id=request.form.get("projectId") or None,
                notes=request.form.get("notes"),
                ip=ip,
                device=device,
            )
            flash("Checked in", "success")
        except DomainError as e:
            flash(str(e), "warning")
        return redirect(url_for("attendance_page"))

    @app.route("/attendance/check-out", methods=["POST"], endpoint="attendance_check_out_form")
    @login_required
    def attendance_check_out_form():
        ip, device = _client()
        try:
            record = attendance.check_out(actor=current_actor(), notes=request.form.get("notes"), ip=ip, device=device)
            flash(f"Checked out after {record.total_hours} hours", "success")
        except DomainError as e:
            flash(str(e), "warning")
        return redirect(url_for("attendance_page"))

    @app.route("/attendance/admin", methods=["GET"], endpoint="attendance_admin_page")
    @login_required
    @roles_required(Role.ADMIN, Role.MANAGER)
    def attendance_admin_page():
        actor = current_actor()
        return render_template(
            "attendance/admin.html",
            metrics=analytics.admin_dashboard_metrics(actor=actor),
            exceptions=analytics.exceptions(actor=actor, start=now_local().date() - timedelta(days=DEFAULT_REPORT_DAYS)),
            pending=corrections.list_corrections(actor=actor, status=CorrectionStatus.PENDING.value),
            analytics=analytics.team_analytics(actor=actor, days=DEFAULT_ANALYTICS_DAYS),
            active_page="attendance_admin",
        )

    # check-in / check-out

    @app.route("/api/attendance/check-in", methods=["POST"], endpoint="api_attendance_check_in")
    @login_required
    def api_attendance_check_in():
        data = payload()
        ip, device = _client()
        record = attendance.check_in(
            actor=current_actor(),
            project_id=data.get("projectId") or None,
            task_id=data.get("taskId") or None,
            notes=data.get("notes"),
            ip=ip,
            device=device,
        )
        app.logger.info("user %s checked in (%s)", current_user.user_id, record.attendance_id)
        return ok(record, message="Checked in successfully", status=201)

    @app.route("/api/attendance/check-out", methods=["POST"], endpoint="api_attendance_check_out")
    @login_required
    def api_attendance_check_out():
        data = payload()
        ip, device = _client()
        record = attendance.check_out(
            actor=current_actor(),
            attendance_id=data.get("attendanceId") or None,
            notes=data.get("notes"),
            ip=ip,
            device=device,
        )
        app.logger.info("user %s checked out (%s)", current_user.user_id, record.attendance_id)
        return ok(record, message="Checked out successfully")

    @app.route("/api/attendance/current", methods=["GET"], endpoint="api_attendance_current")
    @login_required
    def api_attendance_current():
        status = attendance.current(user_id=current_user.user_id)
        return ok({"checkedIn": status.checked_in, "record": status.record})

    @app.route("/api/attendance/history", methods=["GET"], endpoint="api_attendance_history")
    @login_required
    def api_attendance_history():
        page, limit = page_args(DEFAULT_HISTORY_LIMIT)
        history = attendance.history(
            actor=current_actor(),
            user_id=arg_int("userId"),
            period=request.args.get("period"),
            start=optional_date(request.args.get("startDate"), "startDate"),
            end=optional_date(request.args.get("endDate"), "endDate"),
            page=page,
            limit=limit,
            group_by=request.args.get("groupBy") or None,
        )
        if history.groups is not None:
            return ok(history.groups, pagination=history.page.meta())
        return ok(history.page.items, pagination=history.page.meta())

    @app.route("/api/attendance/stats", methods=["GET"], endpoint="api_attendance_stats")
    @login_required
    def api_attendance_stats():
        return ok(
            attendance.stats(
                actor=current_actor(),
                user_id=arg_int("userId"),
                period=request.args.get("period") or "month",
            )
        )

    # settings

    @app.route("/api/attendance/settings", methods=["GET"], endpoint="api_attendance_settings")
    @login_required
    def api_attendance_settings():
        return ok(container.attendance_settings_service.get_settings(user_id=current_user.user_id))

    @app.route("/api/attendance/settings", methods=["PATCH", "PUT"], endpoint="api_attendance_settings_update")
    @login_required
    def api_attendance_settings_update():
        data = payload()
        changes = {target: data[source] for source, target in SETTINGS_FIELDS.items() if source in data}
        settings = container.attendance_settings_service.update_settings(user_id=current_user.user_id, **changes)
        return ok(settings, message="Settings updated")

    # adjustments and corrections

    @app.route("/api/attendance/adjust", methods=["POST"], endpoint="api_attendance_adjust")
    @login_required
    def api_attendance_adjust():
        data = payload()
        if data.get("attendanceId") in (None, ""):
            raise ValidationError("attendanceId is required")
        record = attendance.adjust(
            actor=current_actor(),
            attendance_id=data["attendanceId"],
            check_in_time=optional_datetime(data.get("checkInTime"), "checkInTime"),
            check_out_time=optional_datetime(data.get("checkOutTime"), "checkOutTime"),
            notes=data.get("notes"),
            reason=data.get("reason", ""),
        )
        app.logger.info("user %s adjusted attendance %s", current_user.user_id, record.attendance_id)
        return ok(record, message="Attendance adjusted")

    @app.route("/api/attendance/corrections", methods=["GET"], endpoint="api_attendance_corrections")
    @login_required
    def api_attendance_corrections():
        return ok(corrections.list_corrections(actor=current_actor(), status=request.args.get("status")))

    @app.route("/api/attendance/corrections", methods=["POST"], endpoint="api_attendance_correction_create")
    @login_required
    def api_attendance_correction_create():
        data = payload()
        if data.get("attendanceId") in (None, ""):
            raise ValidationError("attendanceId is required")
        request_id = corrections.request_correction(
            actor=current_actor(),
            attendance_id=data["attendanceId"],
            requested_check_in=data.get("requestedCheckIn"),
            requested_check_out=data.get("requestedCheckOut"),
            reason=data.get("reason", ""),
        )
        return ok({"id": request_id}, message="Correction requested", status=201)

    @app.route(
        "/api/attendance/corrections/<int:request_id>/approve", methods=["POST"], endpoint="api_correction_approve"
    )
    @login_required
    def api_correction_approve(request_id: int):
        req = corrections.approve_correction(
            actor=current_actor(), request_id=request_id, notes=payload().get("notes", "")
        )
        app.logger.info("user %s approved correction %s", current_user.user_id, request_id)
        return ok(req, message="Correction approved")

    @app.route(
        "/api/attendance/corrections/<int:request_id>/reject", methods=["POST"], endpoint="api_correction_reject"
    )
    @login_required
    def api_correction_reject(request_id: int):
        req = corrections.reject_correction(
            actor=current_actor(), request_id=request_id, notes=payload().get("notes", "")
        )
        app.logger.info("user %s rejected correction %s", current_user.user_id, request_id)
        return ok(req, message="Correction rejected")

    # admin views

    @app.route("/api/attendance/exceptions", methods=["GET"], endpoint="api_attendance_exceptions")
    @login_required
    def api_attendance_exceptions():
        report = analytics.exceptions(
            actor=current_actor(),
            start=optional_date(request.args.get("startDate"), "startDate"),
            end=optional_date(request.args.get("endDate"), "endDate"),
            exception_type=request.args.get("type") or None,
        )
        return ok(report.items, counts=report.counts)

    @app.route("/api/attendance/today/present-count", methods=["GET"], endpoint="api_today_present")
    @login_required
    def api_today_present():
        return ok({"count": analytics.today_counts(actor=current_actor()).present})

    @app.route("/api/attendance/today/late-count", methods=["GET"], endpoint="api_today_late")
    @login_required
    def api_today_late():
        return ok({"count": analytics.today_counts(actor=current_actor()).late})

    @app.route("/api/attendance/today/absent-count", methods=["GET"], endpoint="api_today_absent")
    @login_required
    def api_today_absent():
        counts = analytics.today_counts(actor=current_actor())
        return ok({"count": counts.absent, "isWeekend": counts.is_weekend})

    @app.route("/api/attendance/admin/dashboard-metrics", methods=["GET"], endpoint="api_attendance_metrics")
    @login_required
    def api_attendance_metrics():
        return ok(analytics.admin_dashboard_metrics(actor=current_actor()))

    @app.route("/api/attendance/team/analytics", methods=["GET"], endpoint="api_team_analytics")
    @login_required
    def api_team_analytics():
        return ok(
            analytics.team_analytics(
                actor=current_actor(),
                days=positive_int(request.args.get("days"), "days", DEFAULT_ANALYTICS_DAYS),
                project_id=arg_int("projectId"),
            )
        )

    @app.route("/api/attendance/team/<int:project_id>", methods=["GET"], endpoint="api_team_attendance")
    @login_required
    def api_team_attendance(project_id: int):
        return ok(
            analytics.team_attendance(
                actor=current_actor(),
                project_id=project_id,
                day=optional_date(request.args.get("date"), "date"),
            )
        )

    @app.route("/api/attendance/export", methods=["GET"], endpoint="api_attendance_export")
    @login_required
    def api_attendance_export():
        today = now_local().date()
        start = optional_date(request.args.get("startDate"), "startDate") or today - timedelta(days=DEFAULT_REPORT_DAYS)
        end = optional_date(request.args.get("endDate"), "endDate") or today
        data = container.attendance_report_service.build_attendance_report(
            actor=current_actor(),
            start=start,
            end=end,
            user_id=arg_int("userId"),
            project_id=arg_int("projectId"),
        )
        app.logger.info("user %s exported attendance %s..%s", current_user.user_id, start, end)

        stem = f"attendance_{start:%Y%m%d}_{end:%Y%m%d}"
        fmt = (request.args.get("format") or "csv").lower()
        if fmt in {"xlsx", "excel"}:
            return send_file(
                to_excel_bytes(data), download_name=f"{stem}.xlsx", as_attachment=True, mimetype=EXCEL_MIMETYPE
            )
        if fmt == "json":
            return ok({"rows": data.rows, "summary": data.summary})
        if fmt != "csv":
            raise ValidationError("format must be csv, xlsx or json")
        return app.response_class(
            to_csv_bytes(data),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={stem}.csv"},
        )
