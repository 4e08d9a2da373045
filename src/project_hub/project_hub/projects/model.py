from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Sequence


@dataclass(frozen=True)
class Project:
    """Domain entity: a project."""

    project_id: int
    title: str
    description: Optional[str]
    start_date: Optional[date]
    end_date: Optional[date]
    due_date: Optional[date]
    estimated_time: Optional[float]
    total_time_spent: Optional[float]
    created_by: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class ProjectStatus:
    """Workflow column of a project; tasks point at one of these."""

    status_id: int
    project_id: int
    name: str
    color: str
    description: Optional[str]
    is_default: bool
    is_completed_status: bool
    order: int


@dataclass(frozen=True)
class NewStatus:
    name: str
    color: Optional[str] = None
    description: Optional[str] = None
    is_default: bool = False
    is_completed_status: bool = False


@dataclass(frozen=True)
class ProjectFilter:
    status_id: Optional[int] = None
    title: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    team_member_ids: Sequence[int] = field(default_factory=tuple)


@dataclass(frozen=True)
class ProjectSummary:
    """Read-model: project plus counters for lists and dashboards."""

    project: Project
    team_count: int
    task_count: int
    completed_task_count: int

    @property
    def progress(self) -> int:
        if self.task_count <= 0:
            return 0
        return int(round(self.completed_task_count * 100.0 / self.task_count))
