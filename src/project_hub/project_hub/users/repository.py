from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def list_users(self, *, search: Optional[str] = None, limit: Optional[int] = None) -> Sequence[User]:
        raise NotImplementedError

    def list_by_ids(self, user_ids: Iterable[int]) -> Sequence[User]:
        raise NotImplementedError

    def list_non_admin(self) -> Sequence[User]:
        raise NotImplementedError

    def create_user(self, *, name: str, email: str, password_hash: str, role: Role) -> int:
        raise NotImplementedError

    def update_profile(
        self,
        *,
        user_id: int,
        name: Optional[str] = None,
        image: Optional[str] = None,
        password_hash: Optional[str] = None,
    ) -> bool:
        raise NotImplementedError

    def update_role(self, *, user_id: int, role: Role) -> bool:
        raise NotImplementedError

    def touch_last_login(self, *, user_id: int, at: datetime) -> bool:
        raise NotImplementedError

    def delete_by_id(self, user_id: int) -> bool:
        raise NotImplementedError
