from __future__ import annotations

from flask import Flask, flash, redirect, render_template, request, url_for
from flask_login import current_user, login_required

from ..common.web import arg_int, current_actor, ok, page_args, paged, payload
from ..container import Container
from ..core.constants import DEFAULT_TASK_PAGE_SIZE
from ..core.exceptions import DomainError, ValidationError

TASK_FIELDS = {
    "title": "title",
    "description": "description",
    "priority": "priority",
    "dueDate": "due_date",
    "startDate": "start_date",
    "endDate": "end_date",
    "estimatedTime": "estimated_time",
    "timeSpent": "time_spent",
    "statusId": "status_id",
    "assigneeIds": "assignee_ids",
}


def _task_fields(data: dict) -> dict:
    return {target: data[source] for source, target in TASK_FIELDS.items() if source in data}


def register(app: Flask, container: Container) -> None:
    tasks = container.task_service

    @app.route("/tasks/<int:task_id>", methods=["GET"], endpoint="task_page")
    @login_required
    def task_page(task_id: int):
        actor = current_actor()
        try:
            detail = tasks.get_task(actor=actor, task_id=task_id)
        except DomainError as e:
            flash(str(e), "danger")
            return redirect(url_for("projects_page"))
        statuses = container.status_service.list_statuses(actor=actor, project_id=detail.task.project_id)
        return render_template("tasks/detail.html", detail=detail, statuses=statuses, active_page="projects")

    @app.route("/tasks/<int:task_id>/comments", methods=["POST"], endpoint="task_comment_form")
    @login_required
    def task_comment_form(task_id: int):
        try:
            tasks.add_comment(actor=current_actor(), task_id=task_id, content=request.form.get("content", ""))
            flash("Comment added", "success")
        except DomainError as e:
            flash(str(e), "danger")
        return redirect(url_for("task_page", task_id=task_id))

    # JSON API

    @app.route("/api/tasks", methods=["GET"], endpoint="api_tasks")
    @login_required
    def api_tasks():
        page, limit = page_args(DEFAULT_TASK_PAGE_SIZE)
        result = tasks.list_tasks(
            actor=current_actor(),
            project_id=arg_int("projectId"),
            priority=request.args.get("priority"),
            parent_id=arg_int("parentId"),
            include_subtasks=request.args.get("includeSubtasks", "").lower() in {"1", "true", "yes"},
            page=page,
            limit=limit,
        )
        return paged(result)

    @app.route("/api/tasks", methods=["POST"], endpoint="api_task_create")
    @login_required
    def api_task_create():
        data = payload()
        fields = _task_fields(data)
        fields.pop("time_spent", None)
        if not fields.get("assignee_ids"):
            fields.pop("assignee_ids", None)
        task = tasks.create_task(
            actor=current_actor(),
            project_id=data.get("projectId"),
            parent_id=data.get("parentId"),
            **{"title": "", **fields},
        )
        app.logger.info("user %s created task %s", current_user.user_id, task.task_id)
        return ok(task, message="Task created", status=201)

    @app.route("/api/tasks/reorder", methods=["POST"], endpoint="api_task_reorder")
    @login_required
    def api_task_reorder():
        data = payload()
        if data.get("taskId") in (None, ""):
            raise ValidationError("taskId is required")
        task = tasks.reorder_task(
            actor=current_actor(),
            task_id=data.get("taskId"),
            new_parent_id=data.get("newParentId"),
            target_task_id=data.get("targetTaskId"),
            same_parent=bool(data.get("sameParent")),
        )
        return ok(task, message="Task moved")

    @app.route("/api/tasks/<int:task_id>", methods=["GET"], endpoint="api_task_get")
    @login_required
    def api_task_get(task_id: int):
        return ok(tasks.get_task(actor=current_actor(), task_id=task_id))

    @app.route("/api/tasks/<int:task_id>", methods=["PATCH", "PUT"], endpoint="api_task_update")
    @login_required
    def api_task_update(task_id: int):
        task = tasks.update_task(actor=current_actor(), task_id=task_id, **_task_fields(payload()))
        app.logger.info("user %s updated task %s", current_user.user_id, task_id)
        return ok(task, message="Task updated")

    @app.route("/api/tasks/<int:task_id>", methods=["DELETE"], endpoint="api_task_delete")
    @login_required
    def api_task_delete(task_id: int):
        tasks.delete_task(actor=current_actor(), task_id=task_id)
        app.logger.info("user %s deleted task %s", current_user.user_id, task_id)
        return ok(message="Task deleted")

    @app.route("/api/tasks/<int:task_id>/status", methods=["PATCH", "PUT"], endpoint="api_task_status")
    @login_required
    def api_task_status(task_id: int):
        task = tasks.change_status(actor=current_actor(), task_id=task_id, status_id=payload().get("statusId"))
        return ok(task, message="Status updated")

    @app.route("/api/tasks/<int:task_id>/assignees", methods=["POST"], endpoint="api_task_assign")
    @login_required
    def api_task_assign(task_id: int):
        user_id = payload().get("userId")
        if user_id in (None, ""):
            raise ValidationError("userId is required")
        return ok(tasks.assign(actor=current_actor(), task_id=task_id, user_id=int(user_id)), message="User assigned")

    @app.route("/api/tasks/<int:task_id>/assignees/<int:user_id>", methods=["DELETE"], endpoint="api_task_unassign")
    @login_required
    def api_task_unassign(task_id: int, user_id: int):
        return ok(tasks.unassign(actor=current_actor(), task_id=task_id, user_id=user_id), message="User unassigned")

    @app.route("/api/tasks/<int:task_id>/comments", methods=["GET"], endpoint="api_task_comments")
    @login_required
    def api_task_comments(task_id: int):
        return ok(tasks.list_comments(actor=current_actor(), task_id=task_id))

    @app.route("/api/tasks/<int:task_id>/comments", methods=["POST"], endpoint="api_task_comment_create")
    @login_required
    def api_task_comment_create(task_id: int):
        comment = tasks.add_comment(actor=current_actor(), task_id=task_id, content=payload().get("content", ""))
        return ok(comment, message="Comment added", status=201)
