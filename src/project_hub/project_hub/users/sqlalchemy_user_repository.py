from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sequence

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import or_

from ..core.enums import Role
from ..database.orm import AttendanceCorrectionModel, TaskModel, UserModel
from ..database.session import transaction
from .model import User


def _to_user(row: UserModel) -> User:
    return User(
        user_id=int(row.id),
        name=row.name,
        email=row.email,
        password_hash=row.password,
        role=Role.parse(row.role) or Role.USER,
        image=row.image,
        is_active=bool(row.is_active),
        last_login=row.last_login,
        created_at=row.created_at,
    )


class SqlAlchemyUserRepository:
    def __init__(self, db: SQLAlchemy):
        self._db = db

    def get_by_id(self, user_id: int) -> Optional[User]:
        row = self._db.session.get(UserModel, int(user_id))
        return _to_user(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        row = self._db.session.query(UserModel).filter(UserModel.email == (email or "").strip().lower()).first()
        return _to_user(row) if row else None

    def list_users(self, *, search: Optional[str] = None, limit: Optional[int] = None) -> Sequence[User]:
        q = self._db.session.query(UserModel)
        if search:
            pattern = f"%{search.strip()}%"
            q = q.filter(or_(UserModel.name.ilike(pattern), UserModel.email.ilike(pattern)))
        q = q.order_by(UserModel.name.asc())
        if limit:
            q = q.limit(int(limit))
        return [_to_user(r) for r in q.all()]

    def list_by_ids(self, user_ids: Iterable[int]) -> Sequence[User]:
        ids = [int(i) for i in user_ids]
        if not ids:
            return []
        rows = self._db.session.query(UserModel).filter(UserModel.id.in_(ids)).order_by(UserModel.name.asc()).all()
        return [_to_user(r) for r in rows]

    def list_non_admin(self) -> Sequence[User]:
        rows = (
            self._db.session.query(UserModel)
            .filter(UserModel.role != Role.ADMIN.value, UserModel.is_active.is_(True))
            .order_by(UserModel.name.asc())
            .all()
        )
        return [_to_user(r) for r in rows]

    def create_user(self, *, name: str, email: str, password_hash: str, role: Role) -> int:
        with transaction(self._db) as session:
            row = UserModel(name=name, email=email.lower(), password=password_hash, role=role.value, is_active=True)
            session.add(row)
            session.flush()
            return int(row.id)

    def update_profile(
        self,
        *,
        user_id: int,
        name: Optional[str] = None,
        image: Optional[str] = None,
        password_hash: Optional[str] = None,
    ) -> bool:
        with transaction(self._db) as session:
            row = session.get(UserModel, int(user_id))
            if not row:
                return False
            if name is not None:
                row.name = name
            if image is not None:
                row.image = image or None
            if password_hash is not None:
                row.password = password_hash
            return True

    def update_role(self, *, user_id: int, role: Role) -> bool:
        with transaction(self._db) as session:
            row = session.get(UserModel, int(user_id))
            if not row:
                return False
            row.role = role.value
            return True

    def touch_last_login(self, *, user_id: int, at: datetime) -> bool:
        with transaction(self._db) as session:
            row = session.get(UserModel, int(user_id))
            if not row:
                return False
            row.last_login = at
            return True

    def delete_by_id(self, user_id: int) -> bool:
        with transaction(self._db) as session:
            row = session.get(UserModel, int(user_id))
            if not row:
                return False
            # keep tasks and reviewed corrections, drop the reference
            session.query(TaskModel).filter(TaskModel.created_by_id == row.id).update(
                {TaskModel.created_by_id: None}, synchronize_session=False
            )
            session.query(AttendanceCorrectionModel).filter(AttendanceCorrectionModel.reviewed_by == row.id).update(
                {AttendanceCorrectionModel.reviewed_by: None}, synchronize_session=False
            )
            session.delete(row)
            return True
