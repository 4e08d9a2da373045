from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Role


@dataclass(frozen=True)
class Actor:
    """The authenticated user performing an operation."""

    user_id: int
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_admin_or_manager(self) -> bool:
        return self.role in {Role.ADMIN, Role.MANAGER}


@dataclass(frozen=True)
class RoleInfo:
    id: str
    name: str
    description: str
    color: str


@dataclass(frozen=True)
class PermissionInfo:
    id: str
    name: str
    description: str
    category: str
