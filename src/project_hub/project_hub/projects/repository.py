from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Protocol, Sequence

from .model import Project, ProjectFilter, ProjectStatus

SORT_FIELDS = ("title", "start_date", "end_date", "created_at", "updated_at")


class ProjectRepository(Protocol):
    def get_by_id(self, project_id: int) -> Optional[Project]:
        raise NotImplementedError

    def list_by_ids(self, project_ids: Iterable[int]) -> Sequence[Project]:
        raise NotImplementedError

    def list_page(
        self,
        *,
        filters: ProjectFilter,
        visible_to_user_id: Optional[int],
        page: int,
        limit: int,
        sort_field: str,
        sort_direction: str,
    ) -> tuple[Sequence[Project], int]:
        """``visible_to_user_id=None`` means no visibility restriction."""

        raise NotImplementedError

    def list_visible(self, *, user_id: Optional[int]) -> Sequence[Project]:
        raise NotImplementedError

    def count_created_by(self, user_id: int) -> int:
        raise NotImplementedError

    def create(
        self,
        *,
        title: str,
        description: Optional[str],
        start_date: Optional[date],
        end_date: Optional[date],
        due_date: Optional[date],
        estimated_time: Optional[float],
        created_by: int,
    ) -> int:
        raise NotImplementedError

    def update(self, project_id: int, **fields) -> bool:
        raise NotImplementedError

    def delete(self, project_id: int) -> bool:
        """Remove the project with its statuses, tasks and team."""

        raise NotImplementedError


class StatusRepository(Protocol):
    def list_for_project(self, project_id: int) -> Sequence[ProjectStatus]:
        raise NotImplementedError

    def list_for_projects(self, project_ids: Optional[Iterable[int]]) -> Sequence[ProjectStatus]:
        raise NotImplementedError

    def get_by_id(self, status_id: int) -> Optional[ProjectStatus]:
        raise NotImplementedError

    def get_by_name(self, project_id: int, name: str) -> Optional[ProjectStatus]:
        raise NotImplementedError

    def create(
        self,
        *,
        project_id: int,
        name: str,
        color: str,
        description: Optional[str],
        is_default: bool,
        is_completed_status: bool,
        order: int,
    ) -> int:
        raise NotImplementedError

    def update(self, status_id: int, **fields) -> bool:
        raise NotImplementedError

    def clear_flag(self, *, project_id: int, flag: str, except_id: Optional[int] = None) -> None:
        """Unset ``is_default``/``is_completed_status`` on the other statuses."""

        raise NotImplementedError

    def delete(self, status_id: int) -> bool:
        """Delete the status; tasks pointing at it lose their status."""

        raise NotImplementedError
