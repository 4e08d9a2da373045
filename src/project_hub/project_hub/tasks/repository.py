from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import TaskPriority
from .model import Task, TaskComment


class TaskRepository(Protocol):
    def get_by_id(self, task_id: int) -> Optional[Task]:
        raise NotImplementedError

    def list_page(
        self,
        *,
        project_ids: Optional[Iterable[int]],
        project_id: Optional[int] = None,
        priority: Optional[TaskPriority] = None,
        parent_id: Optional[int] = None,
        top_level_only: bool = True,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[Sequence[Task], int]:
        """Ordered by priority desc, order asc, due date asc (nulls last).

        ``project_ids=None`` means no visibility restriction.
        """

        raise NotImplementedError

    def list_children(self, parent_id: int) -> Sequence[Task]:
        """Direct subtasks ordered by ``order``."""

        raise NotImplementedError

    def list_siblings(self, *, project_id: int, parent_id: Optional[int]) -> Sequence[Task]:
        raise NotImplementedError

    def list_for_projects(self, project_ids: Optional[Iterable[int]]) -> Sequence[Task]:
        raise NotImplementedError

    def max_sibling_order(self, *, project_id: int, parent_id: Optional[int]) -> Optional[int]:
        raise NotImplementedError

    def create(
        self,
        *,
        project_id: int,
        title: str,
        description: Optional[str],
        priority: TaskPriority,
        due_date: Optional[date],
        start_date: Optional[date],
        end_date: Optional[date],
        estimated_time: Optional[float],
        status_id: Optional[int],
        parent_id: Optional[int],
        order: int,
        created_by: int,
    ) -> int:
        raise NotImplementedError

    def update(self, task_id: int, **fields) -> bool:
        raise NotImplementedError

    def set_position(self, task_id: int, *, parent_id: Optional[int], order: int) -> bool:
        raise NotImplementedError

    def delete(self, task_id: int) -> bool:
        """Delete the task and all of its descendants."""

        raise NotImplementedError

    def set_assignees(self, task_id: int, user_ids: Iterable[int]) -> None:
        raise NotImplementedError

    def add_assignee(self, task_id: int, user_id: int) -> bool:
        raise NotImplementedError

    def remove_assignee(self, task_id: int, user_id: int) -> bool:
        raise NotImplementedError

    def count_assigned(self, *, user_id: int, project_id: Optional[int] = None) -> int:
        raise NotImplementedError

    def add_comment(self, *, task_id: int, user_id: int, content: str) -> int:
        raise NotImplementedError

    def list_comments(self, task_id: int) -> Sequence[TaskComment]:
        raise NotImplementedError
