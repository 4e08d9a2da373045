"""Ownership-aware access rules.

Each rule receives the facts it needs (creator, membership, assignment)
so it stays a pure function of the actor and the target.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from ..core.enums import Permission
from .model import Actor
from .service import has_permission


@dataclass(frozen=True)
class ProjectFacts:
    project_id: int
    created_by: int
    is_member: bool


@dataclass(frozen=True)
class TaskFacts:
    project: ProjectFacts
    created_by: Optional[int]
    is_assignee: bool
    parent_id: Optional[int] = None


class AccessPolicy:
    @staticmethod
    def is_creator(actor: Actor, project: ProjectFacts) -> bool:
        return actor.user_id == project.created_by

    # Projects

    def can_view_project(self, actor: Actor, project: ProjectFacts) -> bool:
        return actor.is_admin or self.is_creator(actor, project) or project.is_member

    def can_edit_project(self, actor: Actor, project: ProjectFacts) -> bool:
        return (
            actor.is_admin
            or self.is_creator(actor, project)
            or has_permission(actor.role, Permission.PROJECT_MANAGEMENT)
        )

    def can_delete_project(self, actor: Actor, project: ProjectFacts) -> bool:
        return (
            actor.is_admin
            or self.is_creator(actor, project)
            or has_permission(actor.role, Permission.PROJECT_DELETION)
        )

    # Tasks

    def can_create_task(self, actor: Actor, project: ProjectFacts) -> bool:
        if not has_permission(actor.role, Permission.TASK_CREATION):
            return False
        return actor.is_admin or self.is_creator(actor, project) or project.is_member

    def can_view_task(self, actor: Actor, task: TaskFacts) -> bool:
        if task.is_assignee or actor.user_id == task.created_by:
            return True
        return has_permission(actor.role, Permission.VIEW_PROJECTS) and self.can_view_project(actor, task.project)

    def can_update_task(self, actor: Actor, task: TaskFacts) -> bool:
        if task.is_assignee or actor.user_id == task.created_by:
            return True
        if not has_permission(actor.role, Permission.TASK_MANAGEMENT):
            return False
        return self.can_view_project(actor, task.project)

    def can_delete_task(
        self,
        actor: Actor,
        task: TaskFacts,
        *,
        parent_facts: Optional[Callable[[int], Optional[TaskFacts]]] = None,
    ) -> bool:
        if actor.user_id == task.created_by:
            return True
        if has_permission(actor.role, Permission.TASK_DELETION):
            return True
        # Subtasks can be removed by whoever may edit the parent.
        if task.parent_id is not None and parent_facts is not None:
            parent = parent_facts(task.parent_id)
            if parent is not None:
                return self.can_update_task(actor, parent)
        return False

    def can_change_task_status(self, actor: Actor, task: TaskFacts) -> bool:
        if task.project.is_member or self.is_creator(actor, task.project):
            return True
        return has_permission(actor.role, Permission.TASK_MANAGEMENT)

    def can_assign_task(self, actor: Actor, task: TaskFacts) -> bool:
        if actor.user_id == task.created_by or self.is_creator(actor, task.project):
            return True
        return has_permission(actor.role, Permission.TASK_ASSIGNMENT) and self.can_view_project(actor, task.project)

    # Team membership

    def can_view_team_member(self, actor: Actor, project: ProjectFacts, member_user_id: int) -> bool:
        if actor.user_id == member_user_id or self.is_creator(actor, project) or project.is_member:
            return True
        return has_permission(actor.role, Permission.TEAM_VIEW)

    def can_add_team_member(self, actor: Actor, project: ProjectFacts) -> bool:
        if self.is_creator(actor, project):
            return True
        return has_permission(actor.role, Permission.TEAM_ADD) and (actor.is_admin or project.is_member)

    def can_update_team_member(self, actor: Actor, project: ProjectFacts, member_user_id: int) -> bool:
        if member_user_id == project.created_by:
            return False
        if self.is_creator(actor, project):
            return True
        return has_permission(actor.role, Permission.TEAM_MANAGEMENT) and (actor.is_admin or project.is_member)

    def can_remove_team_member(self, actor: Actor, project: ProjectFacts, member_user_id: int) -> bool:
        if member_user_id == project.created_by:
            return False
        if actor.user_id == member_user_id or self.is_creator(actor, project):
            return True
        return has_permission(actor.role, Permission.TEAM_REMOVE) and (actor.is_admin or project.is_member)
