from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import Role
from .model import TeamMember


class TeamRepository(Protocol):
    def get_by_id(self, member_id: int) -> Optional[TeamMember]:
        raise NotImplementedError

    def get_by_user_and_project(self, *, user_id: int, project_id: int) -> Optional[TeamMember]:
        raise NotImplementedError

    def is_member(self, *, user_id: int, project_id: int) -> bool:
        raise NotImplementedError

    def list_for_project(self, project_id: int) -> Sequence[TeamMember]:
        raise NotImplementedError

    def list_for_projects(self, project_ids: Iterable[int]) -> Sequence[TeamMember]:
        raise NotImplementedError

    def list_for_user(self, user_id: int) -> Sequence[TeamMember]:
        raise NotImplementedError

    def project_ids_for_user(self, user_id: int) -> Sequence[int]:
        raise NotImplementedError

    def add(self, *, project_id: int, user_id: int, role: Optional[Role] = None) -> int:
        raise NotImplementedError

    def update_role(self, *, member_id: int, role: Optional[Role]) -> bool:
        raise NotImplementedError

    def remove(self, member_id: int) -> bool:
        raise NotImplementedError
