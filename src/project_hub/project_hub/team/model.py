from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class TeamMember:
    """Association between a user and a project, with an optional project-scoped role."""

    member_id: int
    project_id: int
    user_id: int
    role: Optional[Role] = None
    joined_at: Optional[datetime] = None


@dataclass(frozen=True)
class TeamMemberView:
    """Read-model for team listings."""

    member_id: int
    project_id: int
    project_title: str
    user_id: int
    name: str
    email: str
    image: Optional[str]
    global_role: Role
    project_role: Optional[Role]
    joined_at: Optional[datetime]
    task_count: int = 0

    @property
    def effective_role(self) -> Role:
        return self.project_role or self.global_role
