from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from flask_login import UserMixin

from ..core.enums import Role
from ..permissions.model import Actor


@dataclass(frozen=True)
class User:
    """Domain entity: an account.

    Plain data, no database access here.
    """

    user_id: int
    name: str
    email: str
    password_hash: str
    role: Role
    image: Optional[str] = None
    is_active: bool = True
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class PublicUser:
    """User fields safe to return from the API."""

    user_id: int
    name: str
    email: str
    role: Role
    image: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def of(cls, user: User) -> "PublicUser":
        return cls(
            user_id=user.user_id,
            name=user.name,
            email=user.email,
            role=user.role,
            image=user.image,
            created_at=user.created_at,
        )


@dataclass(frozen=True)
class SessionUser(UserMixin):
    """What Flask-Login keeps for the logged-in user."""

    user_id: int
    name: str
    email: str
    role: Role
    image: Optional[str] = None

    def get_id(self) -> str:
        return str(self.user_id)

    @property
    def actor(self) -> Actor:
        return Actor(user_id=self.user_id, role=self.role)
