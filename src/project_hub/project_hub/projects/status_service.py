from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..common.validators import require_color, require_non_empty
from ..core.constants import DEFAULT_STATUS_COLOR
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..permissions.model import Actor
from ..permissions.policy import AccessPolicy
from .model import ProjectStatus
from .repository import StatusRepository
from .service import ProjectService

logger = logging.getLogger(__name__)


def sort_for_display(statuses: Sequence[ProjectStatus]) -> list[ProjectStatus]:
    """Default status first, then by order."""
    return sorted(statuses, key=lambda s: (not s.is_default, s.order, s.status_id))


class ProjectStatusService:
    """Use cases for the workflow columns of a project."""

    def __init__(self, statuses: StatusRepository, projects: ProjectService, *, policy: Optional[AccessPolicy] = None):
        self._statuses = statuses
        self._projects = projects
        self._policy = policy or AccessPolicy()

    def _require_editable(self, actor: Actor, project_id: int):
        project = self._projects.require_project(project_id)
        if not self._policy.can_edit_project(actor, self._projects.facts(actor, project)):
            raise AuthorizationError("You do not have permission to manage statuses of this project")
        return project

    def _require_status(self, project_id: int, status_id: int) -> ProjectStatus:
        status = self._statuses.get_by_id(int(status_id))
        if not status or status.project_id != int(project_id):
            raise NotFoundError("Status not found")
        return status

    def list_statuses(self, *, actor: Actor, project_id: int) -> list[ProjectStatus]:
        project = self._projects.require_viewable(actor, project_id)
        return sort_for_display(self._statuses.list_for_project(project.project_id))

    def list_visible_statuses(self, *, actor: Actor) -> list[ProjectStatus]:
        return sort_for_display(self._statuses.list_for_projects(self._projects.visible_project_ids(actor)))

    def create_status(
        self,
        *,
        actor: Actor,
        project_id: int,
        name: str,
        color: Optional[str] = None,
        description: Optional[str] = None,
        is_default: bool = False,
        is_completed_status: bool = False,
    ) -> ProjectStatus:
        project = self._require_editable(actor, project_id)
        name = require_non_empty(name, "Status name")
        if self._statuses.get_by_name(project.project_id, name):
            raise ConflictError(f'A status named "{name}" already exists in this project')

        existing = self._statuses.list_for_project(project.project_id)
        next_order = max((s.order for s in existing), default=-1) + 1
        status_id = self._statuses.create(
            project_id=project.project_id,
            name=name,
            color=require_color(color, DEFAULT_STATUS_COLOR),
            description=(description or "").strip() or None,
            # the first status of a project is always the default
            is_default=bool(is_default) or not existing,
            is_completed_status=bool(is_completed_status),
            order=next_order,
        )
        self._enforce_single_flags(project.project_id, status_id, bool(is_default) or not existing, bool(is_completed_status))
        return self._require_status(project.project_id, status_id)

    def update_status(self, *, actor: Actor, project_id: int, status_id: int, **changes) -> ProjectStatus:
        project = self._require_editable(actor, project_id)
        status = self._require_status(project.project_id, status_id)

        fields: dict = {}
        if "name" in changes:
            name = require_non_empty(changes["name"], "Status name")
            other = self._statuses.get_by_name(project.project_id, name)
            if other and other.status_id != status.status_id:
                raise ConflictError(f'A status named "{name}" already exists in this project')
            fields["name"] = name
        if "color" in changes:
            fields["color"] = require_color(changes["color"], status.color)
        if "description" in changes:
            fields["description"] = (changes["description"] or "").strip() or None
        if "is_default" in changes:
            if status.is_default and not changes["is_default"]:
                raise ValidationError("Choose another default status instead of clearing this one")
            fields["is_default"] = bool(changes["is_default"])
        if "is_completed_status" in changes:
            fields["is_completed_status"] = bool(changes["is_completed_status"])

        if fields:
            self._statuses.update(status.status_id, **fields)
            self._enforce_single_flags(
                project.project_id,
                status.status_id,
                fields.get("is_default", False),
                fields.get("is_completed_status", False),
            )
        return self._require_status(project.project_id, status.status_id)

    def _enforce_single_flags(self, project_id: int, status_id: int, is_default: bool, is_completed: bool) -> None:
        if is_default:
            self._statuses.clear_flag(project_id=project_id, flag="is_default", except_id=status_id)
        if is_completed:
            self._statuses.clear_flag(project_id=project_id, flag="is_completed_status", except_id=status_id)

    def delete_status(self, *, actor: Actor, project_id: int, status_id: int) -> None:
        project = self._require_editable(actor, project_id)
        status = self._require_status(project.project_id, status_id)

        remaining = [s for s in self._statuses.list_for_project(project.project_id) if s.status_id != status.status_id]
        if not remaining:
            raise ValidationError("A project must keep at least one status")

        self._statuses.delete(status.status_id)
        if status.is_default:
            successor = min(remaining, key=lambda s: (s.order, s.status_id))
            self._statuses.update(successor.status_id, is_default=True)
        logger.info("status %s removed from project %s", status.status_id, project.project_id)

    def reorder_statuses(self, *, actor: Actor, project_id: int, status_ids: Sequence[int]) -> list[ProjectStatus]:
        project = self._require_editable(actor, project_id)
        current = {s.status_id for s in self._statuses.list_for_project(project.project_id)}
        wanted = [int(i) for i in status_ids]
        if set(wanted) != current or len(wanted) != len(current):
            raise ValidationError("statusIds must list every status of the project exactly once")

        for index, sid in enumerate(wanted):
            self._statuses.update(sid, order=index)
        return sort_for_display(self._statuses.list_for_project(project.project_id))
