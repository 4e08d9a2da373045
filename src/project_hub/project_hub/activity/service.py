from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Iterable, Optional, Sequence

from ..common.datetime_utils import end_of_day, now_local, start_of_day
from ..common.pagination import Page
from ..core.constants import DEFAULT_AUDIT_PAGE_SIZE
from ..core.exceptions import AuthorizationError
from ..permissions.model import Actor
from .model import Activity
from .repository import ActivityRepository

logger = logging.getLogger(__name__)

ATTENDANCE_ENTITY = "attendance"


class ActivityService:
    def __init__(self, activities: ActivityRepository, *, clock: Callable[[], datetime] = now_local):
        self._activities = activities
        self._clock = clock

    def log(
        self,
        *,
        action: str,
        entity_type: str,
        entity_id,
        user_id: int,
        description: Optional[str] = None,
        project_id: Optional[int] = None,
        task_id: Optional[int] = None,
    ) -> int:
        logger.info("activity %s %s:%s by user %s", action, entity_type, entity_id, user_id)
        return self._activities.add(
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id),
            description=description,
            user_id=int(user_id),
            project_id=project_id,
            task_id=task_id,
            created_at=self._clock(),
        )

    def recent(
        self,
        *,
        actor: Actor,
        visible_project_ids: Iterable[int],
        limit: int = 10,
        project_id: Optional[int] = None,
    ) -> Sequence[Activity]:
        if project_id is not None:
            if not actor.is_admin and int(project_id) not in set(visible_project_ids):
                raise AuthorizationError("You do not have access to this project")
            return self._activities.list_recent(limit=limit, project_ids=[int(project_id)])

        if actor.is_admin:
            return self._activities.list_recent(limit=limit)
        return self._activities.list_recent(limit=limit, project_ids=list(visible_project_ids), user_id=actor.user_id)

    def audit_log(
        self,
        *,
        actor: Actor,
        page: int = 1,
        limit: int = DEFAULT_AUDIT_PAGE_SIZE,
        user_id: Optional[int] = None,
        action: Optional[str] = None,
        start=None,
        end=None,
    ) -> Page[Activity]:
        if not actor.is_admin_or_manager:
            raise AuthorizationError("You don't have permission to view audit logs")

        start_dt = start_of_day(start) if start is not None else None
        end_dt = end_of_day(end) if end is not None else None
        items, total = self._activities.list_page(
            page=page,
            limit=limit,
            entity_type=ATTENDANCE_ENTITY,
            user_id=user_id,
            action=action,
            start=start_dt,
            end=end_dt,
        )
        return Page(items=items, total=total, page=page, limit=limit)
