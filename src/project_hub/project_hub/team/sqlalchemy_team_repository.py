from __future__ import annotations

from typing import Iterable, Optional, Sequence

from flask_sqlalchemy import SQLAlchemy

from ..core.enums import Role
from ..database.orm import TeamMemberModel
from ..database.session import transaction
from .model import TeamMember


def _to_member(row: TeamMemberModel) -> TeamMember:
    return TeamMember(
        member_id=int(row.id),
        project_id=int(row.project_id),
        user_id=int(row.user_id),
        role=Role.parse(row.role) if row.role else None,
        joined_at=row.joined_at,
    )


class SqlAlchemyTeamRepository:
    def __init__(self, db: SQLAlchemy):
        self._db = db

    def _query(self):
        return self._db.session.query(TeamMemberModel)

    def get_by_id(self, member_id: int) -> Optional[TeamMember]:
        row = self._db.session.get(TeamMemberModel, int(member_id))
        return _to_member(row) if row else None

    def get_by_user_and_project(self, *, user_id: int, project_id: int) -> Optional[TeamMember]:
        row = (
            self._query()
            .filter(TeamMemberModel.user_id == int(user_id), TeamMemberModel.project_id == int(project_id))
            .first()
        )
        return _to_member(row) if row else None

    def is_member(self, *, user_id: int, project_id: int) -> bool:
        return self.get_by_user_and_project(user_id=user_id, project_id=project_id) is not None

    def list_for_project(self, project_id: int) -> Sequence[TeamMember]:
        rows = (
            self._query()
            .filter(TeamMemberModel.project_id == int(project_id))
            .order_by(TeamMemberModel.joined_at.asc(), TeamMemberModel.id.asc())
            .all()
        )
        return [_to_member(r) for r in rows]

    def list_for_projects(self, project_ids: Iterable[int]) -> Sequence[TeamMember]:
        ids = [int(i) for i in project_ids]
        if not ids:
            return []
        rows = (
            self._query()
            .filter(TeamMemberModel.project_id.in_(ids))
            .order_by(TeamMemberModel.joined_at.asc(), TeamMemberModel.id.asc())
            .all()
        )
        return [_to_member(r) for r in rows]

    def list_for_user(self, user_id: int) -> Sequence[TeamMember]:
        rows = self._query().filter(TeamMemberModel.user_id == int(user_id)).order_by(TeamMemberModel.id.asc()).all()
        return [_to_member(r) for r in rows]

    def project_ids_for_user(self, user_id: int) -> Sequence[int]:
        return [m.project_id for m in self.list_for_user(user_id)]

    def add(self, *, project_id: int, user_id: int, role: Optional[Role] = None) -> int:
        with transaction(self._db) as session:
            row = TeamMemberModel(project_id=int(project_id), user_id=int(user_id), role=role.value if role else None)
            session.add(row)
            session.flush()
            return int(row.id)

    def update_role(self, *, member_id: int, role: Optional[Role]) -> bool:
        with transaction(self._db) as session:
            row = session.get(TeamMemberModel, int(member_id))
            if not row:
                return False
            row.role = role.value if role else None
            return True

    def remove(self, member_id: int) -> bool:
        with transaction(self._db) as session:
            row = session.get(TeamMemberModel, int(member_id))
            if not row:
                return False
            session.delete(row)
            return True
