from __future__ import annotations

from typing import Iterable, Optional, Sequence

from flask_sqlalchemy import SQLAlchemy

from ..database.orm import ProjectStatusModel, TaskModel
from ..database.session import transaction
from .model import ProjectStatus

_FLAGS = {"is_default", "is_completed_status"}
_UPDATABLE = {"name", "color", "description", "is_default", "is_completed_status", "order"}


def _to_status(row: ProjectStatusModel) -> ProjectStatus:
    return ProjectStatus(
        status_id=int(row.id),
        project_id=int(row.project_id),
        name=row.name,
        color=row.color,
        description=row.description,
        is_default=bool(row.is_default),
        is_completed_status=bool(row.is_completed_status),
        order=int(row.sort_order or 0),
    )


class SqlAlchemyStatusRepository:
    def __init__(self, db: SQLAlchemy):
        self._db = db

    def _ordered(self, q):
        return q.order_by(ProjectStatusModel.sort_order.asc(), ProjectStatusModel.id.asc())

    def list_for_project(self, project_id: int) -> Sequence[ProjectStatus]:
        q = self._db.session.query(ProjectStatusModel).filter(ProjectStatusModel.project_id == int(project_id))
        return [_to_status(r) for r in self._ordered(q).all()]

    def list_for_projects(self, project_ids: Optional[Iterable[int]]) -> Sequence[ProjectStatus]:
        q = self._db.session.query(ProjectStatusModel)
        if project_ids is not None:
            ids = [int(i) for i in project_ids]
            if not ids:
                return []
            q = q.filter(ProjectStatusModel.project_id.in_(ids))
        return [_to_status(r) for r in self._ordered(q).all()]

    def get_by_id(self, status_id: int) -> Optional[ProjectStatus]:
        row = self._db.session.get(ProjectStatusModel, int(status_id))
        return _to_status(row) if row else None

    def get_by_name(self, project_id: int, name: str) -> Optional[ProjectStatus]:
        row = (
            self._db.session.query(ProjectStatusModel)
            .filter(ProjectStatusModel.project_id == int(project_id), ProjectStatusModel.name == name)
            .first()
        )
        return _to_status(row) if row else None

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
        with transaction(self._db) as session:
            row = ProjectStatusModel(
                project_id=int(project_id),
                name=name,
                color=color,
                description=description,
                is_default=bool(is_default),
                is_completed_status=bool(is_completed_status),
                sort_order=int(order),
            )
            session.add(row)
            session.flush()
            return int(row.id)

    def update(self, status_id: int, **fields) -> bool:
        with transaction(self._db) as session:
            row = session.get(ProjectStatusModel, int(status_id))
            if not row:
                return False
            for key, value in fields.items():
                if key not in _UPDATABLE:
                    continue
                setattr(row, "sort_order" if key == "order" else key, value)
            return True

    def clear_flag(self, *, project_id: int, flag: str, except_id: Optional[int] = None) -> None:
        if flag not in _FLAGS:
            raise ValueError(f"Unknown status flag: {flag!r}")
        with transaction(self._db) as session:
            q = session.query(ProjectStatusModel).filter(ProjectStatusModel.project_id == int(project_id))
            if except_id is not None:
                q = q.filter(ProjectStatusModel.id != int(except_id))
            q.update({flag: False}, synchronize_session=False)

    def delete(self, status_id: int) -> bool:
        with transaction(self._db) as session:
            row = session.get(ProjectStatusModel, int(status_id))
            if not row:
                return False
            session.query(TaskModel).filter(TaskModel.status_id == row.id).update(
                {"status_id": None}, synchronize_session=False
            )
            session.delete(row)
            return True
