from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Activity:
    """Append-only audit entry."""

    activity_id: int
    action: str
    entity_type: str
    entity_id: str
    description: Optional[str]
    user_id: int
    project_id: Optional[int]
    task_id: Optional[int]
    created_at: datetime
    user_name: Optional[str] = None
