from __future__ import annotations

from flask import Flask, flash, redirect, render_template, request, url_for
from flask_login import current_user, login_required

from ..common.serialization import to_json
from ..common.web import arg_int, current_actor, ok, page_args, payload
from ..container import Container
from ..core.constants import DEFAULT_PROJECT_PAGE_SIZE
from ..core.exceptions import DomainError, ValidationError
from .model import NewStatus, ProjectSummary

# JSON body keys -> service keyword arguments
PROJECT_FIELDS = {
    "title": "title",
    "description": "description",
    "startDate": "start_date",
    "endDate": "end_date",
    "dueDate": "due_date",
    "estimatedTime": "estimated_time",
    "totalTimeSpent": "total_time_spent",
}
STATUS_FIELDS = {
    "name": "name",
    "color": "color",
    "description": "description",
    "isDefault": "is_default",
    "isCompletedStatus": "is_completed_status",
}


def _pick(data: dict, mapping: dict) -> dict:
    return {target: data[source] for source, target in mapping.items() if source in data}


def summary_json(summary: ProjectSummary) -> dict:
    out = to_json(summary.project)
    out.update(
        {
            "team_count": summary.team_count,
            "task_count": summary.task_count,
            "completed_task_count": summary.completed_task_count,
            "progress": summary.progress,
        }
    )
    return out


def _initial_statuses(raw) -> list[NewStatus]:
    if raw in (None, ""):
        return []
    if not isinstance(raw, list):
        raise ValidationError("statuses must be a list")
    return [NewStatus(**{"name": "", **_pick(item, STATUS_FIELDS)}) for item in raw if isinstance(item, dict)]


def register(app: Flask, container: Container) -> None:
    projects = container.project_service
    statuses = container.status_service

    def _list_from_args():
        page, limit = page_args(DEFAULT_PROJECT_PAGE_SIZE)
        members = request.args.get("teamMembers") or ""
        return projects.list_projects(
            actor=current_actor(),
            page=page,
            limit=limit,
            status_id=arg_int("statusId"),
            title=request.args.get("title"),
            start_date=request.args.get("startDate"),
            end_date=request.args.get("endDate"),
            team_member_ids=[int(m) for m in members.split(",") if m.strip().isdigit()],
            sort_field=request.args.get("sortField") or "updated_at",
            sort_direction=request.args.get("sortDirection") or "desc",
        )

    # pages

    @app.route("/projects", methods=["GET"], endpoint="projects_page")
    @login_required
    def projects_page():
        result = _list_from_args()
        return render_template("projects/list.html", page=result, active_page="projects")

    @app.route("/projects/new", methods=["POST"], endpoint="project_create_form")
    @login_required
    def project_create_form():
        try:
            project = projects.create_project(
                actor=current_actor(),
                title=request.form.get("title", ""),
                description=request.form.get("description"),
                start_date=request.form.get("startDate"),
                end_date=request.form.get("endDate"),
                due_date=request.form.get("dueDate"),
            )
            app.logger.info("user %s created project %s", current_user.user_id, project.project_id)
            flash("Project created", "success")
            return redirect(url_for("project_page", project_id=project.project_id))
        except DomainError as e:
            flash(str(e), "danger")
            return redirect(url_for("projects_page"))

    @app.route("/projects/<int:project_id>", methods=["GET"], endpoint="project_page")
    @login_required
    def project_page(project_id: int):
        actor = current_actor()
        try:
            detail = projects.get_project(actor=actor, project_id=project_id)
        except DomainError as e:
            flash(str(e), "danger")
            return redirect(url_for("projects_page"))

        tasks = container.task_service.list_tasks(actor=actor, project_id=project_id, include_subtasks=False, limit=500)
        columns = [(s, [t for t in tasks.items if t.status_id == s.status_id]) for s in detail.statuses]
        return render_template(
            "projects/detail.html",
            detail=detail,
            columns=columns,
            unassigned=[t for t in tasks.items if t.status_id is None],
            membership=projects.membership(actor=actor, project_id=project_id),
            active_page="projects",
        )

    # JSON API

    @app.route("/api/projects", methods=["GET"], endpoint="api_projects")
    @login_required
    def api_projects():
        result = _list_from_args()
        return ok([summary_json(s) for s in result.items], pagination=result.meta())

    @app.route("/api/projects", methods=["POST"], endpoint="api_project_create")
    @login_required
    def api_project_create():
        data = payload()
        fields = _pick(data, PROJECT_FIELDS)
        fields.pop("total_time_spent", None)
        fields.setdefault("title", "")
        project = projects.create_project(
            actor=current_actor(),
            initial_statuses=_initial_statuses(data.get("statuses")),
            **fields,
        )
        app.logger.info("user %s created project %s", current_user.user_id, project.project_id)
        return ok(project, message="Project created", status=201)

    @app.route("/api/projects/<int:project_id>", methods=["GET"], endpoint="api_project_get")
    @login_required
    def api_project_get(project_id: int):
        detail = projects.get_project(actor=current_actor(), project_id=project_id)
        data = summary_json(detail.summary)
        data["statuses"] = to_json(detail.statuses)
        data["team"] = to_json(detail.team)
        return ok(data)

    @app.route("/api/projects/<int:project_id>", methods=["PATCH", "PUT"], endpoint="api_project_update")
    @login_required
    def api_project_update(project_id: int):
        project = projects.update_project(
            actor=current_actor(), project_id=project_id, **_pick(payload(), PROJECT_FIELDS)
        )
        app.logger.info("user %s updated project %s", current_user.user_id, project_id)
        return ok(project, message="Project updated")

    @app.route("/api/projects/<int:project_id>", methods=["DELETE"], endpoint="api_project_delete")
    @login_required
    def api_project_delete(project_id: int):
        projects.delete_project(actor=current_actor(), project_id=project_id)
        app.logger.info("user %s deleted project %s", current_user.user_id, project_id)
        return ok(message="Project deleted")

    @app.route("/api/projects/<int:project_id>/membership", methods=["GET"], endpoint="api_project_membership")
    @login_required
    def api_project_membership(project_id: int):
        return ok(projects.membership(actor=current_actor(), project_id=project_id))

    # statuses

    @app.route("/api/project-statuses", methods=["GET"], endpoint="api_all_statuses")
    @login_required
    def api_all_statuses():
        return ok(statuses.list_visible_statuses(actor=current_actor()))

    @app.route("/api/projects/<int:project_id>/statuses", methods=["GET"], endpoint="api_statuses")
    @login_required
    def api_statuses(project_id: int):
        return ok(statuses.list_statuses(actor=current_actor(), project_id=project_id))

    @app.route("/api/projects/<int:project_id>/statuses", methods=["POST"], endpoint="api_status_create")
    @login_required
    def api_status_create(project_id: int):
        fields = _pick(payload(), STATUS_FIELDS)
        fields.setdefault("name", "")
        status = statuses.create_status(actor=current_actor(), project_id=project_id, **fields)
        app.logger.info("user %s added status %s to project %s", current_user.user_id, status.status_id, project_id)
        return ok(status, message="Status created", status=201)

    @app.route("/api/projects/<int:project_id>/statuses/reorder", methods=["POST", "PUT"], endpoint="api_status_reorder")
    @login_required
    def api_status_reorder(project_id: int):
        ids = payload().get("statusIds")
        if not isinstance(ids, list):
            raise ValidationError("statusIds must be a list")
        return ok(statuses.reorder_statuses(actor=current_actor(), project_id=project_id, status_ids=ids))

    @app.route(
        "/api/projects/<int:project_id>/statuses/<int:status_id>", methods=["PATCH", "PUT"], endpoint="api_status_update"
    )
    @login_required
    def api_status_update(project_id: int, status_id: int):
        status = statuses.update_status(
            actor=current_actor(), project_id=project_id, status_id=status_id, **_pick(payload(), STATUS_FIELDS)
        )
        return ok(status, message="Status updated")

    @app.route(
        "/api/projects/<int:project_id>/statuses/<int:status_id>", methods=["DELETE"], endpoint="api_status_delete"
    )
    @login_required
    def api_status_delete(project_id: int, status_id: int):
        statuses.delete_status(actor=current_actor(), project_id=project_id, status_id=status_id)
        app.logger.info("user %s deleted status %s", current_user.user_id, status_id)
        return ok(message="Status deleted")
