from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import TaskPriority


@dataclass(frozen=True)
class Task:
    """Domain entity: a task or a subtask (``parent_id`` set)."""

    task_id: int
    project_id: int
    title: str
    description: Optional[str]
    priority: TaskPriority
    due_date: Optional[date]
    start_date: Optional[date]
    end_date: Optional[date]
    estimated_time: Optional[float]
    time_spent: Optional[float]
    status_id: Optional[int]
    parent_id: Optional[int]
    order: int
    created_by: Optional[int]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    assignee_ids: tuple[int, ...] = ()


@dataclass(frozen=True)
class TaskComment:
    comment_id: int
    task_id: int
    user_id: int
    content: str
    created_at: datetime
    user_name: Optional[str] = None


@dataclass(frozen=True)
class TaskDetail:
    task: Task
    subtasks: Sequence[Task] = field(default_factory=tuple)
    comments: Sequence[TaskComment] = field(default_factory=tuple)
