from __future__ import annotations

from flask import Flask, render_template
from flask_login import login_required

from ..common.serialization import to_json
from ..common.web import current_actor, ok, permission_required
from ..container import Container
from ..core.enums import Permission
from ..projects.controller import summary_json
from .service import DashboardStats


def stats_json(stats: DashboardStats) -> dict:
    return {
        "totalProjects": stats.total_projects,
        "totalTasks": stats.total_tasks,
        "myOpenTasks": stats.my_open_tasks,
        "recentProjects": [
            {**summary_json(r.summary), "team": to_json(r.team)} for r in stats.recent_projects
        ],
        "projectGrowth": to_json(stats.project_growth),
        "recentActivity": to_json(stats.recent_activity),
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/dashboard", methods=["GET"], endpoint="dashboard")
    @login_required
    @permission_required(Permission.VIEW_DASHBOARD)
    def dashboard():
        actor = current_actor()
        stats = container.dashboard_service.stats(actor=actor)
        metrics = None
        if actor.is_admin_or_manager:
            metrics = container.attendance_analytics_service.admin_dashboard_metrics(actor=actor)
        current = container.attendance_service.current(user_id=actor.user_id)
        return render_template(
            "dashboard.html",
            stats=stats,
            metrics=metrics,
            current=current,
            active_page="dashboard",
        )

    @app.route("/api/dashboard/stats", methods=["GET"], endpoint="api_dashboard_stats")
    @login_required
    def api_dashboard_stats():
        return ok(stats_json(container.dashboard_service.stats(actor=current_actor())))
