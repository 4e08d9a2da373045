from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from ..activity.service import ActivityService
from ..common.pagination import Page
from ..common.validators import optional_date, optional_float, require_min_length, require_non_empty
from ..core.constants import DEFAULT_TASK_PAGE_SIZE, TASK_ORDER_STEP, TASK_TITLE_MIN
from ..core.enums import TaskPriority
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..permissions.model import Actor
from ..permissions.policy import AccessPolicy, TaskFacts
from ..projects.model import Project, ProjectStatus
from ..projects.repository import StatusRepository
from ..projects.service import ProjectService
from ..team.repository import TeamRepository
from .model import Task, TaskComment, TaskDetail
from .repository import TaskRepository

logger = logging.getLogger(__name__)


def parse_priority(value) -> TaskPriority:
    if isinstance(value, TaskPriority):
        return value
    try:
        return TaskPriority(str(value or TaskPriority.MEDIUM.value).strip().lower())
    except ValueError:
        raise ValidationError("Priority must be one of low, medium, high")


def order_before(target_order: int, previous_order: Optional[int]) -> Optional[int]:
    """Integer order strictly between ``previous_order`` and ``target_order``.

    Returns None when no gap is left and siblings must be renumbered.
    """
    lower = previous_order if previous_order is not None else 0
    if target_order - lower < 2:
        return None
    return (lower + target_order) // 2


class TaskService:
    def __init__(
        self,
        tasks: TaskRepository,
        statuses: StatusRepository,
        team: TeamRepository,
        projects: ProjectService,
        activity: ActivityService,
        *,
        policy: Optional[AccessPolicy] = None,
    ):
        self._tasks = tasks
        self._statuses = statuses
        self._team = team
        self._projects = projects
        self._activity = activity
        self._policy = policy or AccessPolicy()

    # helpers

    def _require_task(self, task_id: int) -> Task:
        task = self._tasks.get_by_id(int(task_id))
        if not task:
            raise NotFoundError("Task not found")
        return task

    def _facts(self, actor: Actor, task: Task, project: Optional[Project] = None) -> TaskFacts:
        project = project or self._projects.require_project(task.project_id)
        return TaskFacts(
            project=self._projects.facts(actor, project),
            created_by=task.created_by,
            is_assignee=actor.user_id in task.assignee_ids,
            parent_id=task.parent_id,
        )

    def _parent_facts(self, actor: Actor):
        def lookup(parent_id: int) -> Optional[TaskFacts]:
            parent = self._tasks.get_by_id(parent_id)
            return self._facts(actor, parent) if parent else None

        return lookup

    def _status_for(self, project_id: int, status_id) -> Optional[ProjectStatus]:
        if status_id is None or status_id == "":
            return None
        status = self._statuses.get_by_id(int(status_id))
        if not status or status.project_id != int(project_id):
            raise ValidationError("Status does not belong to this project")
        return status

    def _default_status_id(self, project_id: int) -> Optional[int]:
        statuses = self._statuses.list_for_project(project_id)
        for s in statuses:
            if s.is_default:
                return s.status_id
        return statuses[0].status_id if statuses else None

    def _validate_assignees(self, project: Project, assignee_ids: Iterable) -> list[int]:
        ids = list(dict.fromkeys(int(u) for u in assignee_ids))
        for uid in ids:
            if uid != project.created_by and not self._team.is_member(user_id=uid, project_id=project.project_id):
                raise ValidationError(f"User {uid} is not a member of this project")
        return ids

    def _next_order(self, project_id: int, parent_id: Optional[int]) -> int:
        current = self._tasks.max_sibling_order(project_id=project_id, parent_id=parent_id)
        return TASK_ORDER_STEP if current is None else current + TASK_ORDER_STEP

    # queries

    def list_tasks(
        self,
        *,
        actor: Actor,
        project_id: Optional[int] = None,
        priority=None,
        parent_id: Optional[int] = None,
        include_subtasks: bool = False,
        page: int = 1,
        limit: int = DEFAULT_TASK_PAGE_SIZE,
    ) -> Page[Task]:
        if int(page) < 1 or int(limit) < 1:
            raise ValidationError("page and limit must be at least 1")
        if project_id is not None:
            self._projects.require_viewable(actor, project_id)

        items, total = self._tasks.list_page(
            project_ids=self._projects.visible_project_ids(actor),
            project_id=project_id,
            priority=parse_priority(priority) if priority else None,
            parent_id=parent_id,
            top_level_only=not include_subtasks,
            page=int(page),
            limit=int(limit),
        )
        return Page(items=items, total=total, page=int(page), limit=int(limit))

    def get_task(self, *, actor: Actor, task_id: int) -> TaskDetail:
        task = self._require_task(task_id)
        if not self._policy.can_view_task(actor, self._facts(actor, task)):
            raise AuthorizationError("You do not have access to this task")
        return TaskDetail(
            task=task,
            subtasks=self._tasks.list_children(task.task_id),
            comments=self._tasks.list_comments(task.task_id),
        )

    # commands

    def create_task(
        self,
        *,
        actor: Actor,
        project_id: int,
        title: str,
        description: Optional[str] = None,
        priority=None,
        due_date=None,
        start_date=None,
        end_date=None,
        estimated_time=None,
        status_id=None,
        parent_id=None,
        assignee_ids: Iterable = (),
    ) -> Task:
        project = self._projects.require_project(project_id)
        if not self._policy.can_create_task(actor, self._projects.facts(actor, project)):
            raise AuthorizationError("You do not have permission to create tasks in this project")

        title = require_min_length(require_non_empty(title, "Title"), "Title", TASK_TITLE_MIN)
        prio = parse_priority(priority)

        parent: Optional[Task] = None
        if parent_id not in (None, ""):
            parent = self._tasks.get_by_id(int(parent_id))
            if not parent:
                raise NotFoundError("Parent task not found")
            if parent.project_id != project.project_id:
                raise ValidationError("Parent task must belong to the same project")

        status = self._status_for(project.project_id, status_id)
        resolved_status_id = status.status_id if status else self._default_status_id(project.project_id)
        assignees = self._validate_assignees(project, assignee_ids)

        start = optional_date(start_date, "startDate")
        end = optional_date(end_date, "endDate")
        if start and end and end < start:
            raise ValidationError("End date must be on or after the start date")

        parent_key = parent.task_id if parent else None
        task_id = self._tasks.create(
            project_id=project.project_id,
            title=title,
            description=(description or "").strip() or None,
            priority=prio,
            due_date=optional_date(due_date, "dueDate"),
            start_date=start,
            end_date=end,
            estimated_time=optional_float(estimated_time, "estimatedTime"),
            status_id=resolved_status_id,
            parent_id=parent_key,
            order=self._next_order(project.project_id, parent_key),
            created_by=actor.user_id,
        )
        if assignees:
            self._tasks.set_assignees(task_id, assignees)

        self._activity.log(
            action="created",
            entity_type="task",
            entity_id=task_id,
            user_id=actor.user_id,
            description=f'Task "{title}" created',
            project_id=project.project_id,
            task_id=task_id,
        )
        return self._require_task(task_id)

    def update_task(self, *, actor: Actor, task_id: int, **changes) -> Task:
        task = self._require_task(task_id)
        project = self._projects.require_project(task.project_id)
        facts = self._facts(actor, task, project)
        if not self._policy.can_update_task(actor, facts):
            raise AuthorizationError("You do not have permission to update this task")

        fields: dict = {}
        if "title" in changes:
            fields["title"] = require_min_length(require_non_empty(changes["title"], "Title"), "Title", TASK_TITLE_MIN)
        if "description" in changes:
            fields["description"] = (changes["description"] or "").strip() or None
        if "priority" in changes:
            fields["priority"] = parse_priority(changes["priority"])
        for key, label in (("due_date", "dueDate"), ("start_date", "startDate"), ("end_date", "endDate")):
            if key in changes:
                fields[key] = optional_date(changes[key], label)
        for key, label in (("estimated_time", "estimatedTime"), ("time_spent", "timeSpent")):
            if key in changes:
                fields[key] = optional_float(changes[key], label)
        if "status_id" in changes:
            status = self._status_for(project.project_id, changes["status_id"])
            fields["status_id"] = status.status_id if status else None

        start = fields.get("start_date", task.start_date)
        end = fields.get("end_date", task.end_date)
        if start and end and end < start:
            raise ValidationError("End date must be on or after the start date")

        assignees: Optional[list[int]] = None
        if "assignee_ids" in changes and changes["assignee_ids"] is not None:
            if not self._policy.can_assign_task(actor, facts):
                raise AuthorizationError("You do not have permission to assign this task")
            assignees = self._validate_assignees(project, changes["assignee_ids"])

        if fields:
            self._tasks.update(task.task_id, **fields)
        if assignees is not None:
            self._tasks.set_assignees(task.task_id, assignees)

        self._activity.log(
            action="updated",
            entity_type="task",
            entity_id=task.task_id,
            user_id=actor.user_id,
            description=f'Task "{fields.get("title", task.title)}" updated',
            project_id=project.project_id,
            task_id=task.task_id,
        )
        return self._require_task(task.task_id)

    def delete_task(self, *, actor: Actor, task_id: int) -> None:
        task = self._require_task(task_id)
        facts = self._facts(actor, task)
        if not self._policy.can_delete_task(actor, facts, parent_facts=self._parent_facts(actor)):
            raise AuthorizationError("You do not have permission to delete this task")

        self._tasks.delete(task.task_id)
        self._activity.log(
            action="deleted",
            entity_type="task",
            entity_id=task.task_id,
            user_id=actor.user_id,
            description=f'Task "{task.title}" deleted',
            project_id=task.project_id,
        )

    def change_status(self, *, actor: Actor, task_id: int, status_id) -> Task:
        task = self._require_task(task_id)
        if not self._policy.can_change_task_status(actor, self._facts(actor, task)):
            raise AuthorizationError("You do not have permission to change the status of this task")

        new_status = self._status_for(task.project_id, status_id)
        if new_status is None:
            raise ValidationError("statusId is required")
        old_status = self._statuses.get_by_id(task.status_id) if task.status_id else None

        self._tasks.update(task.task_id, status_id=new_status.status_id)
        old_label = f'"{old_status.name}"' if old_status else "no status"
        self._activity.log(
            action="status_changed",
            entity_type="task",
            entity_id=task.task_id,
            user_id=actor.user_id,
            description=f'Task "{task.title}" moved from {old_label} to "{new_status.name}"',
            project_id=task.project_id,
            task_id=task.task_id,
        )
        return self._require_task(task.task_id)

    def _assert_not_descendant(self, task: Task, new_parent: Task) -> None:
        cur: Optional[Task] = new_parent
        seen: set[int] = set()
        while cur is not None:
            if cur.task_id == task.task_id:
                raise ValidationError("A task cannot be moved under one of its own subtasks")
            if cur.task_id in seen:
                break
            seen.add(cur.task_id)
            cur = self._tasks.get_by_id(cur.parent_id) if cur.parent_id is not None else None

    def reorder_task(
        self,
        *,
        actor: Actor,
        task_id: int,
        new_parent_id=None,
        target_task_id=None,
        same_parent: bool = False,
    ) -> Task:
        task = self._require_task(task_id)
        if not self._policy.can_update_task(actor, self._facts(actor, task)):
            raise AuthorizationError("You do not have permission to move this task")

        if same_parent and target_task_id not in (None, ""):
            target = self._require_task(target_task_id)
            if target.task_id == task.task_id:
                return task
            if target.project_id != task.project_id or target.parent_id != task.parent_id:
                raise ValidationError("Target task must share the same parent")
            self._place_before(task, target)
            action, description = "reordered", f'Task "{task.title}" reordered'
        else:
            parent: Optional[Task] = None
            if new_parent_id not in (None, ""):
                if int(new_parent_id) == task.task_id:
                    raise ValidationError("A task cannot be its own parent")
                parent = self._tasks.get_by_id(int(new_parent_id))
                if not parent:
                    raise NotFoundError("Parent task not found")
                if parent.project_id != task.project_id:
                    raise ValidationError("Parent task must belong to the same project")
                self._assert_not_descendant(task, parent)

            parent_key = parent.task_id if parent else None
            self._tasks.set_position(task.task_id, parent_id=parent_key, order=self._next_order(task.project_id, parent_key))
            action = "moved"
            description = (
                f'Task "{task.title}" moved under "{parent.title}"' if parent else f'Task "{task.title}" moved to top level'
            )

        self._activity.log(
            action=action,
            entity_type="task",
            entity_id=task.task_id,
            user_id=actor.user_id,
            description=description,
            project_id=task.project_id,
            task_id=task.task_id,
        )
        return self._require_task(task.task_id)

    def _place_before(self, task: Task, target: Task) -> None:
        siblings = [s for s in self._tasks.list_siblings(project_id=task.project_id, parent_id=task.parent_id) if s.task_id != task.task_id]
        index = next(i for i, s in enumerate(siblings) if s.task_id == target.task_id)
        previous = siblings[index - 1].order if index > 0 else None

        new_order = order_before(target.order, previous)
        if new_order is not None:
            self._tasks.set_position(task.task_id, parent_id=task.parent_id, order=new_order)
            return

        ordered = siblings[:index] + [task] + siblings[index:]
        for position, sibling in enumerate(ordered, start=1):
            self._tasks.set_position(sibling.task_id, parent_id=task.parent_id, order=position * TASK_ORDER_STEP)

    def assign(self, *, actor: Actor, task_id: int, user_id: int) -> Task:
        task = self._require_task(task_id)
        project = self._projects.require_project(task.project_id)
        if not self._policy.can_assign_task(actor, self._facts(actor, task, project)):
            raise AuthorizationError("You do not have permission to assign this task")
        self._validate_assignees(project, [user_id])
        if not self._tasks.add_assignee(task.task_id, int(user_id)):
            raise ValidationError("User is already assigned to this task")
        self._activity.log(
            action="assigned",
            entity_type="task",
            entity_id=task.task_id,
            user_id=actor.user_id,
            description=f'User {user_id} assigned to task "{task.title}"',
            project_id=task.project_id,
            task_id=task.task_id,
        )
        return self._require_task(task.task_id)

    def unassign(self, *, actor: Actor, task_id: int, user_id: int) -> Task:
        task = self._require_task(task_id)
        facts = self._facts(actor, task)
        if actor.user_id != int(user_id) and not self._policy.can_assign_task(actor, facts):
            raise AuthorizationError("You do not have permission to assign this task")
        if not self._tasks.remove_assignee(task.task_id, int(user_id)):
            raise NotFoundError("User is not assigned to this task")
        return self._require_task(task.task_id)

    def add_comment(self, *, actor: Actor, task_id: int, content: str) -> TaskComment:
        task = self._require_task(task_id)
        if not self._policy.can_view_task(actor, self._facts(actor, task)):
            raise AuthorizationError("You do not have access to this task")
        content = require_non_empty(content, "Comment")
        comment_id = self._tasks.add_comment(task_id=task.task_id, user_id=actor.user_id, content=content)
        self._activity.log(
            action="commented",
            entity_type="task",
            entity_id=task.task_id,
            user_id=actor.user_id,
            description=f'Comment added to task "{task.title}"',
            project_id=task.project_id,
            task_id=task.task_id,
        )
        return next(c for c in self._tasks.list_comments(task.task_id) if c.comment_id == comment_id)

    def list_comments(self, *, actor: Actor, task_id: int) -> Sequence[TaskComment]:
        task = self._require_task(task_id)
        if not self._policy.can_view_task(actor, self._facts(actor, task)):
            raise AuthorizationError("You do not have access to this task")
        return self._tasks.list_comments(task.task_id)
