from __future__ import annotations

import logging
from contextlib import nullcontext
from dataclasses import dataclass
from datetime import date
from typing import Callable, ContextManager, Iterable, Optional, Sequence

from ..activity.service import ActivityService
from ..common.pagination import Page
from ..common.validators import (
    optional_date,
    optional_float,
    require_color,
    require_length_between,
)
from ..core.constants import (
    DEFAULT_PROJECT_PAGE_SIZE,
    DEFAULT_PROJECT_STATUSES,
    DEFAULT_STATUS_COLOR,
    PROJECT_TITLE_MAX,
    PROJECT_TITLE_MIN,
)
from ..core.enums import Permission
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..permissions.model import Actor
from ..permissions.policy import AccessPolicy, ProjectFacts
from ..permissions.service import has_permission
from ..tasks.repository import TaskRepository
from ..team.model import TeamMember
from ..team.repository import TeamRepository
from .model import NewStatus, Project, ProjectFilter, ProjectStatus, ProjectSummary
from .repository import SORT_FIELDS, ProjectRepository, StatusRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProjectDetail:
    summary: ProjectSummary
    statuses: Sequence[ProjectStatus]
    team: Sequence[TeamMember]


@dataclass(frozen=True)
class Membership:
    project_id: int
    is_member: bool
    is_creator: bool
    can_edit: bool
    can_delete: bool


class ProjectService:
    def __init__(
        self,
        projects: ProjectRepository,
        statuses: StatusRepository,
        team: TeamRepository,
        tasks: TaskRepository,
        activity: ActivityService,
        *,
        policy: Optional[AccessPolicy] = None,
        unit_of_work: Callable[[], ContextManager] = nullcontext,
    ):
        self._projects = projects
        self._statuses = statuses
        self._team = team
        self._tasks = tasks
        self._activity = activity
        self._policy = policy or AccessPolicy()
        self._unit_of_work = unit_of_work

    # helpers shared with other services

    def require_project(self, project_id: int) -> Project:
        project = self._projects.get_by_id(int(project_id))
        if not project:
            raise NotFoundError("Project not found")
        return project

    def facts(self, actor: Actor, project: Project) -> ProjectFacts:
        return ProjectFacts(
            project_id=project.project_id,
            created_by=project.created_by,
            is_member=self._team.is_member(user_id=actor.user_id, project_id=project.project_id),
        )

    def require_viewable(self, actor: Actor, project_id: int) -> Project:
        project = self.require_project(project_id)
        if not self._policy.can_view_project(actor, self.facts(actor, project)):
            raise AuthorizationError("You do not have access to this project")
        return project

    def list_visible(self, *, user_id: Optional[int]) -> Sequence[Project]:
        return self._projects.list_visible(user_id=user_id)

    def visible_project_ids(self, actor: Actor) -> Optional[list[int]]:
        """None means every project (admin)."""
        if actor.is_admin:
            return None
        return [p.project_id for p in self._projects.list_visible(user_id=actor.user_id)]

    def summarize(self, projects: Sequence[Project]) -> list[ProjectSummary]:
        ids = [p.project_id for p in projects]
        if not ids:
            return []
        completed = {s.status_id for s in self._statuses.list_for_projects(ids) if s.is_completed_status}
        tasks = self._tasks.list_for_projects(ids)
        members = self._team.list_for_projects(ids)

        out = []
        for p in projects:
            project_tasks = [t for t in tasks if t.project_id == p.project_id]
            out.append(
                ProjectSummary(
                    project=p,
                    team_count=sum(1 for m in members if m.project_id == p.project_id),
                    task_count=len(project_tasks),
                    completed_task_count=sum(1 for t in project_tasks if t.status_id in completed),
                )
            )
        return out

    # use cases

    def list_projects(
        self,
        *,
        actor: Actor,
        page: int = 1,
        limit: int = DEFAULT_PROJECT_PAGE_SIZE,
        status_id: Optional[int] = None,
        title: Optional[str] = None,
        start_date=None,
        end_date=None,
        team_member_ids: Iterable[int] = (),
        sort_field: str = "updated_at",
        sort_direction: str = "desc",
    ) -> Page[ProjectSummary]:
        if int(page) < 1 or int(limit) < 1:
            raise ValidationError("page and limit must be at least 1")
        if sort_field not in SORT_FIELDS:
            sort_field = "updated_at"
        if sort_direction not in {"asc", "desc"}:
            sort_direction = "desc"

        filters = ProjectFilter(
            status_id=status_id,
            title=(title or "").strip() or None,
            start_date=optional_date(start_date, "startDate"),
            end_date=optional_date(end_date, "endDate"),
            team_member_ids=tuple(int(i) for i in team_member_ids),
        )
        items, total = self._projects.list_page(
            filters=filters,
            visible_to_user_id=None if actor.is_admin else actor.user_id,
            page=int(page),
            limit=int(limit),
            sort_field=sort_field,
            sort_direction=sort_direction,
        )
        return Page(items=self.summarize(items), total=total, page=int(page), limit=int(limit))

    def get_project(self, *, actor: Actor, project_id: int) -> ProjectDetail:
        project = self.require_viewable(actor, project_id)
        return ProjectDetail(
            summary=self.summarize([project])[0],
            statuses=self._statuses.list_for_project(project.project_id),
            team=self._team.list_for_project(project.project_id),
        )

    def create_project(
        self,
        *,
        actor: Actor,
        title: str,
        description: Optional[str] = None,
        start_date=None,
        end_date=None,
        due_date=None,
        estimated_time=None,
        initial_statuses: Optional[Sequence[NewStatus]] = None,
    ) -> Project:
        if not has_permission(actor.role, Permission.PROJECT_CREATION):
            raise AuthorizationError("You do not have permission to create projects")

        title = require_length_between(title, "Title", PROJECT_TITLE_MIN, PROJECT_TITLE_MAX)
        start = optional_date(start_date, "startDate")
        end = optional_date(end_date, "endDate")
        if start and end and end < start:
            raise ValidationError("End date must be on or after the start date")

        statuses = self._normalize_statuses(initial_statuses)

        due = optional_date(due_date, "dueDate")
        estimate = optional_float(estimated_time, "estimatedTime")

        # project, creator membership and statuses land together or not at all
        with self._unit_of_work():
            project_id = self._projects.create(
                title=title,
                description=(description or "").strip() or None,
                start_date=start,
                end_date=end,
                due_date=due,
                estimated_time=estimate,
                created_by=actor.user_id,
            )
            self._team.add(project_id=project_id, user_id=actor.user_id)
            for index, s in enumerate(statuses):
                self._statuses.create(
                    project_id=project_id,
                    name=s.name,
                    color=s.color or DEFAULT_STATUS_COLOR,
                    description=s.description,
                    is_default=s.is_default,
                    is_completed_status=s.is_completed_status,
                    order=index,
                )

            self._activity.log(
                action="created",
                entity_type="project",
                entity_id=project_id,
                user_id=actor.user_id,
                description=f'Project "{title}" created',
                project_id=project_id,
            )
        return self.require_project(project_id)

    @staticmethod
    def _normalize_statuses(initial: Optional[Sequence[NewStatus]]) -> list[NewStatus]:
        if not initial:
            return [NewStatus(**preset) for preset in DEFAULT_PROJECT_STATUSES]

        seen: set[str] = set()
        cleaned: list[NewStatus] = []
        for s in initial:
            name = (s.name or "").strip()
            if not name:
                raise ValidationError("Status name is required")
            if name.lower() in seen:
                raise ValidationError(f'Duplicate status name "{name}"')
            seen.add(name.lower())
            cleaned.append(
                NewStatus(
                    name=name,
                    color=require_color(s.color, DEFAULT_STATUS_COLOR),
                    description=s.description,
                    is_default=bool(s.is_default),
                    is_completed_status=bool(s.is_completed_status),
                )
            )

        # exactly one default, at most one completed
        default_index = next((i for i, s in enumerate(cleaned) if s.is_default), 0)
        completed_index = next((i for i, s in enumerate(cleaned) if s.is_completed_status), None)
        return [
            NewStatus(
                name=s.name,
                color=s.color,
                description=s.description,
                is_default=i == default_index,
                is_completed_status=i == completed_index,
            )
            for i, s in enumerate(cleaned)
        ]

    def update_project(self, *, actor: Actor, project_id: int, **changes) -> Project:
        project = self.require_project(project_id)
        if not self._policy.can_edit_project(actor, self.facts(actor, project)):
            raise AuthorizationError("You do not have permission to edit this project")

        fields: dict = {}
        if "title" in changes:
            fields["title"] = require_length_between(changes["title"], "Title", PROJECT_TITLE_MIN, PROJECT_TITLE_MAX)
        if "description" in changes:
            fields["description"] = (changes["description"] or "").strip() or None
        for key, label in (("start_date", "startDate"), ("end_date", "endDate"), ("due_date", "dueDate")):
            if key in changes:
                fields[key] = optional_date(changes[key], label)
        for key, label in (("estimated_time", "estimatedTime"), ("total_time_spent", "totalTimeSpent")):
            if key in changes:
                fields[key] = optional_float(changes[key], label)

        start: Optional[date] = fields.get("start_date", project.start_date)
        end: Optional[date] = fields.get("end_date", project.end_date)
        if start and end and end < start:
            raise ValidationError("End date must be on or after the start date")

        if fields:
            self._projects.update(project.project_id, **fields)
            self._activity.log(
                action="updated",
                entity_type="project",
                entity_id=project.project_id,
                user_id=actor.user_id,
                description=f'Project "{fields.get("title", project.title)}" updated',
                project_id=project.project_id,
            )
        return self.require_project(project.project_id)

    def delete_project(self, *, actor: Actor, project_id: int) -> None:
        project = self.require_project(project_id)
        if not self._policy.can_delete_project(actor, self.facts(actor, project)):
            raise AuthorizationError("You do not have permission to delete this project")

        self._projects.delete(project.project_id)
        self._activity.log(
            action="deleted",
            entity_type="project",
            entity_id=project.project_id,
            user_id=actor.user_id,
            description=f'Project "{project.title}" deleted',
        )

    def membership(self, *, actor: Actor, project_id: int) -> Membership:
        project = self.require_project(project_id)
        facts = self.facts(actor, project)
        return Membership(
            project_id=project.project_id,
            is_member=facts.is_member,
            is_creator=project.created_by == actor.user_id,
            can_edit=self._policy.can_edit_project(actor, facts),
            can_delete=self._policy.can_delete_project(actor, facts),
        )
