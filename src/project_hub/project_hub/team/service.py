from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..activity.service import ActivityService
from ..common.pagination import Page
from ..core.constants import DEFAULT_TEAM_PAGE_SIZE
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..permissions.model import Actor
from ..permissions.policy import AccessPolicy
from ..projects.model import Project
from ..projects.service import ProjectService
from ..tasks.repository import TaskRepository
from ..users.repository import UserRepository
from .model import TeamMember, TeamMemberView
from .repository import TeamRepository

logger = logging.getLogger(__name__)


class TeamService:
    def __init__(
        self,
        team: TeamRepository,
        users: UserRepository,
        projects: ProjectService,
        tasks: TaskRepository,
        activity: ActivityService,
        *,
        policy: Optional[AccessPolicy] = None,
    ):
        self._team = team
        self._users = users
        self._projects = projects
        self._tasks = tasks
        self._activity = activity
        self._policy = policy or AccessPolicy()

    def _parse_role(self, role) -> Optional[Role]:
        if role is None or role == "":
            return None
        parsed = Role.parse(str(role))
        if parsed is None:
            raise ValidationError("Invalid role")
        return parsed

    def _deny(self, actor: Actor, project: Project, member_user_id: int, action: str) -> None:
        logger.warning("user %s denied %s on project %s", actor.user_id, action, project.project_id)
        self._activity.log(
            action="permission_denied",
            entity_type="team_member",
            entity_id=f"{project.project_id}:{member_user_id}",
            user_id=actor.user_id,
            description=f"Denied {action} for user {member_user_id} in project \"{project.title}\"",
            project_id=project.project_id,
        )
        raise AuthorizationError(f"You do not have permission to {action} this team member")

    def _views(self, members: Sequence[TeamMember], projects: dict[int, Project]) -> list[TeamMemberView]:
        users = {u.user_id: u for u in self._users.list_by_ids({m.user_id for m in members})}
        out = []
        for m in members:
            user = users.get(m.user_id)
            project = projects.get(m.project_id)
            if not user or not project:
                continue
            out.append(
                TeamMemberView(
                    member_id=m.member_id,
                    project_id=m.project_id,
                    project_title=project.title,
                    user_id=user.user_id,
                    name=user.name,
                    email=user.email,
                    image=user.image,
                    global_role=user.role,
                    project_role=m.role,
                    joined_at=m.joined_at,
                    task_count=self._tasks.count_assigned(user_id=user.user_id, project_id=m.project_id),
                )
            )
        return out

    def _require_member(self, member_id: int) -> TeamMember:
        member = self._team.get_by_id(int(member_id))
        if not member:
            raise NotFoundError("Team member not found")
        return member

    def list_members(
        self,
        *,
        actor: Actor,
        project_id: Optional[int] = None,
        page: int = 1,
        limit: int = DEFAULT_TEAM_PAGE_SIZE,
    ) -> Page[TeamMemberView]:
        if int(page) < 1 or int(limit) < 1:
            raise ValidationError("page and limit must be at least 1")

        if project_id is not None:
            project = self._projects.require_project(project_id)
            if not actor.is_admin_or_manager and not self._policy.can_view_project(
                actor, self._projects.facts(actor, project)
            ):
                raise AuthorizationError("You can only view teams of your own projects")
            projects = {project.project_id: project}
        else:
            visible_to = None if actor.is_admin_or_manager else actor.user_id
            projects = {p.project_id: p for p in self._projects_visible(visible_to)}

        views = self._views(self._team.list_for_projects(list(projects)), projects)
        start = (int(page) - 1) * int(limit)
        return Page(items=views[start : start + int(limit)], total=len(views), page=int(page), limit=int(limit))

    def _projects_visible(self, user_id: Optional[int]) -> Sequence[Project]:
        return self._projects.list_visible(user_id=user_id)

    def get_member(self, *, actor: Actor, member_id: int) -> TeamMemberView:
        member = self._require_member(member_id)
        project = self._projects.require_project(member.project_id)
        if not self._policy.can_view_team_member(actor, self._projects.facts(actor, project), member.user_id):
            raise AuthorizationError("You do not have permission to view this team member")
        return self._views([member], {project.project_id: project})[0]

    def add_member(self, *, actor: Actor, project_id: int, user_id: int, role=None) -> TeamMemberView:
        project = self._projects.require_project(project_id)
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")

        if not self._policy.can_add_team_member(actor, self._projects.facts(actor, project)):
            self._deny(actor, project, user.user_id, "add")

        if self._team.is_member(user_id=user.user_id, project_id=project.project_id):
            raise ValidationError("User is already a member of this project")

        member_id = self._team.add(project_id=project.project_id, user_id=user.user_id, role=self._parse_role(role))
        self._activity.log(
            action="member_added",
            entity_type="team_member",
            entity_id=member_id,
            user_id=actor.user_id,
            description=f'{user.name} added to project "{project.title}"',
            project_id=project.project_id,
        )
        return self._views([self._require_member(member_id)], {project.project_id: project})[0]

    def update_member(self, *, actor: Actor, member_id: int, role=None) -> TeamMemberView:
        member = self._require_member(member_id)
        project = self._projects.require_project(member.project_id)
        if not self._policy.can_update_team_member(actor, self._projects.facts(actor, project), member.user_id):
            self._deny(actor, project, member.user_id, "update")

        self._team.update_role(member_id=member.member_id, role=self._parse_role(role))
        self._activity.log(
            action="member_updated",
            entity_type="team_member",
            entity_id=member.member_id,
            user_id=actor.user_id,
            description=f'Team member {member.user_id} updated in project "{project.title}"',
            project_id=project.project_id,
        )
        return self._views([self._require_member(member.member_id)], {project.project_id: project})[0]

    def remove_member(self, *, actor: Actor, member_id: int) -> None:
        member = self._require_member(member_id)
        project = self._projects.require_project(member.project_id)
        if not self._policy.can_remove_team_member(actor, self._projects.facts(actor, project), member.user_id):
            self._deny(actor, project, member.user_id, "remove")

        self._team.remove(member.member_id)
        self._activity.log(
            action="member_removed",
            entity_type="team_member",
            entity_id=member.member_id,
            user_id=actor.user_id,
            description=f'User {member.user_id} removed from project "{project.title}"',
            project_id=project.project_id,
        )

    def remove_user_from_project(self, *, actor: Actor, project_id: int, user_id: int) -> None:
        member = self._team.get_by_user_and_project(user_id=int(user_id), project_id=int(project_id))
        if not member:
            raise NotFoundError("Team member not found")
        self.remove_member(actor=actor, member_id=member.member_id)
