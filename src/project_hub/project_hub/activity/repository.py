from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Protocol, Sequence

from .model import Activity


class ActivityRepository(Protocol):
    def add(
        self,
        *,
        action: str,
        entity_type: str,
        entity_id: str,
        description: Optional[str],
        user_id: int,
        project_id: Optional[int] = None,
        task_id: Optional[int] = None,
        created_at: Optional[datetime] = None,
    ) -> int:
        raise NotImplementedError

    def list_recent(
        self,
        *,
        limit: int,
        project_ids: Optional[Iterable[int]] = None,
        user_id: Optional[int] = None,
    ) -> Sequence[Activity]:
        """Newest first. With both filters, match either of them."""

        raise NotImplementedError

    def list_page(
        self,
        *,
        page: int,
        limit: int,
        entity_type: Optional[str] = None,
        user_id: Optional[int] = None,
        action: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> tuple[Sequence[Activity], int]:
        raise NotImplementedError

    def list_actions_since(self, *, actions: Iterable[str], since: datetime, limit: int) -> Sequence[Activity]:
        raise NotImplementedError
