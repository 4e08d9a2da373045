from __future__ import annotations

from flask import Flask, flash, redirect, render_template, request, url_for
from flask_login import current_user, login_required

from ..common.serialization import to_json
from ..common.web import arg_int, current_actor, ok, page_args, payload
from ..container import Container
from ..core.constants import DEFAULT_TEAM_PAGE_SIZE
from ..core.exceptions import DomainError, ValidationError
from .model import TeamMemberView


def member_json(view: TeamMemberView) -> dict:
    data = to_json(view)
    data["role"] = view.effective_role.value
    return data


def register(app: Flask, container: Container) -> None:
    team = container.team_service

    def _members(project_id):
        page, limit = page_args(DEFAULT_TEAM_PAGE_SIZE)
        result = team.list_members(actor=current_actor(), project_id=project_id, page=page, limit=limit)
        return ok([member_json(m) for m in result.items], pagination=result.meta())

    def _add(project_id, data: dict):
        user_id = data.get("userId")
        if user_id in (None, ""):
            raise ValidationError("userId is required")
        view = team.add_member(actor=current_actor(), project_id=project_id, user_id=int(user_id), role=data.get("role"))
        app.logger.info("user %s added %s to project %s", current_user.user_id, user_id, project_id)
        return ok(member_json(view), message="Team member added", status=201)

    @app.route("/team", methods=["GET"], endpoint="team_page")
    @login_required
    def team_page():
        actor = current_actor()
        project_id = arg_int("projectId")
        try:
            result = team.list_members(actor=actor, project_id=project_id, page=1, limit=DEFAULT_TEAM_PAGE_SIZE)
        except DomainError as e:
            flash(str(e), "danger")
            return redirect(url_for("team_page"))
        projects = container.project_service.list_visible(user_id=None if actor.is_admin else actor.user_id)
        return render_template(
            "team/list.html", members=result.items, projects=projects, project_id=project_id, active_page="team"
        )

    @app.route("/team/add", methods=["POST"], endpoint="team_add_form")
    @login_required
    def team_add_form():
        project_id = request.form.get("projectId")
        try:
            team.add_member(
                actor=current_actor(),
                project_id=int(project_id or 0),
                user_id=int(request.form.get("userId") or 0),
                role=request.form.get("role") or None,
            )
            flash("Team member added", "success")
        except DomainError as e:
            flash(str(e), "danger")
        return redirect(url_for("team_page", projectId=project_id))

    # JSON API

    @app.route("/api/team", methods=["GET"], endpoint="api_team")
    @login_required
    def api_team():
        return _members(arg_int("projectId"))

    @app.route("/api/team", methods=["POST"], endpoint="api_team_add")
    @login_required
    def api_team_add():
        data = payload()
        if data.get("projectId") in (None, ""):
            raise ValidationError("projectId is required")
        return _add(int(data["projectId"]), data)

    @app.route("/api/team/<int:member_id>", methods=["GET"], endpoint="api_team_member")
    @login_required
    def api_team_member(member_id: int):
        return ok(member_json(team.get_member(actor=current_actor(), member_id=member_id)))

    @app.route("/api/team/<int:member_id>", methods=["PATCH", "PUT"], endpoint="api_team_update")
    @login_required
    def api_team_update(member_id: int):
        view = team.update_member(actor=current_actor(), member_id=member_id, role=payload().get("role"))
        return ok(member_json(view), message="Team member updated")

    @app.route("/api/team/<int:member_id>", methods=["DELETE"], endpoint="api_team_remove")
    @login_required
    def api_team_remove(member_id: int):
        team.remove_member(actor=current_actor(), member_id=member_id)
        app.logger.info("user %s removed team member %s", current_user.user_id, member_id)
        return ok(message="Team member removed")

    @app.route("/api/projects/<int:project_id>/team", methods=["GET"], endpoint="api_project_team")
    @login_required
    def api_project_team(project_id: int):
        return _members(project_id)

    @app.route("/api/projects/<int:project_id>/team", methods=["POST"], endpoint="api_project_team_add")
    @login_required
    def api_project_team_add(project_id: int):
        return _add(project_id, payload())

    @app.route(
        "/api/projects/<int:project_id>/team/<int:user_id>", methods=["DELETE"], endpoint="api_project_team_remove"
    )
    @login_required
    def api_project_team_remove(project_id: int, user_id: int):
        team.remove_user_from_project(actor=current_actor(), project_id=project_id, user_id=user_id)
        app.logger.info("user %s removed %s from project %s", current_user.user_id, user_id, project_id)
        return ok(message="Team member removed")
