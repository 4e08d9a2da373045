from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Callable, Optional, Sequence

from ..activity.model import Activity
from ..activity.service import ActivityService
from ..common.datetime_utils import month_start, now_local
from ..core.constants import DASHBOARD_GROWTH_MONTHS, DASHBOARD_RECENT_PROJECTS
from ..core.enums import Permission
from ..core.exceptions import AuthorizationError
from ..permissions.model import Actor
from ..permissions.service import has_permission
from ..projects.model import ProjectSummary
from ..projects.repository import StatusRepository
from ..projects.service import ProjectService
from ..tasks.repository import TaskRepository
from ..team.repository import TeamRepository
from ..team.model import TeamMember


@dataclass(frozen=True)
class RecentProject:
    summary: ProjectSummary
    team: Sequence[TeamMember] = field(default_factory=tuple)


@dataclass(frozen=True)
class MonthCount:
    month: str
    count: int


@dataclass(frozen=True)
class DashboardStats:
    total_projects: int
    total_tasks: int
    my_open_tasks: int
    recent_projects: Sequence[RecentProject]
    project_growth: Sequence[MonthCount]
    recent_activity: Sequence[Activity]


def _months_back(today: date, count: int) -> list[date]:
    """First day of the last ``count`` months, oldest first."""
    first = month_start(today)
    months = []
    for _ in range(count):
        months.append(first)
        first = (first - timedelta(days=1)).replace(day=1)
    return list(reversed(months))


class DashboardService:
    def __init__(
        self,
        projects: ProjectService,
        statuses: StatusRepository,
        tasks: TaskRepository,
        team: TeamRepository,
        activity: ActivityService,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._projects = projects
        self._statuses = statuses
        self._tasks = tasks
        self._team = team
        self._activity = activity
        self._clock = clock

    def stats(self, *, actor: Actor, now: Optional[datetime] = None) -> DashboardStats:
        if not has_permission(actor.role, Permission.VIEW_DASHBOARD):
            raise AuthorizationError("You do not have permission to view the dashboard")
        now = now or self._clock()

        projects = list(self._projects.list_visible(user_id=None if actor.is_admin else actor.user_id))
        ids = [p.project_id for p in projects]
        tasks = self._tasks.list_for_projects(ids) if ids else []
        completed = {s.status_id for s in self._statuses.list_for_projects(ids) if s.is_completed_status} if ids else set()

        my_open = sum(1 for t in tasks if actor.user_id in t.assignee_ids and t.status_id not in completed)

        newest = sorted(projects, key=lambda p: p.created_at or datetime.min, reverse=True)[:DASHBOARD_RECENT_PROJECTS]
        recent = [
            RecentProject(summary=s, team=self._team.list_for_project(s.project.project_id))
            for s in self._projects.summarize(newest)
        ]

        growth = []
        for first in _months_back(now.date(), DASHBOARD_GROWTH_MONTHS):
            key = first.strftime("%Y-%m")
            growth.append(
                MonthCount(
                    month=key,
                    count=sum(1 for p in projects if p.created_at and p.created_at.strftime("%Y-%m") == key),
                )
            )

        return DashboardStats(
            total_projects=len(projects),
            total_tasks=len(tasks),
            my_open_tasks=my_open,
            recent_projects=recent,
            project_growth=growth,
            recent_activity=self._activity.recent(actor=actor, visible_project_ids=ids, limit=10),
        )
