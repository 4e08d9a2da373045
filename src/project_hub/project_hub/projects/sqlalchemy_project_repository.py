from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Sequence

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import or_, select

from ..database.orm import (
    ProjectModel,
    ProjectStatusModel,
    TaskAssigneeModel,
    TaskCommentModel,
    TaskModel,
    TeamMemberModel,
)
from ..database.session import paginate_query, transaction
from .model import Project, ProjectFilter

_SORT_COLUMNS = {
    "title": ProjectModel.title,
    "start_date": ProjectModel.start_date,
    "end_date": ProjectModel.end_date,
    "created_at": ProjectModel.created_at,
    "updated_at": ProjectModel.updated_at,
}

_UPDATABLE = {"title", "description", "start_date", "end_date", "due_date", "estimated_time", "total_time_spent"}


def _to_project(row: ProjectModel) -> Project:
    return Project(
        project_id=int(row.id),
        title=row.title,
        description=row.description,
        start_date=row.start_date,
        end_date=row.end_date,
        due_date=row.due_date,
        estimated_time=row.estimated_time,
        total_time_spent=row.total_time_spent,
        created_by=int(row.created_by_id),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class SqlAlchemyProjectRepository:
    def __init__(self, db: SQLAlchemy):
        self._db = db

    def _visible(self, q, user_id: Optional[int]):
        if user_id is None:
            return q
        member_projects = select(TeamMemberModel.project_id).where(TeamMemberModel.user_id == int(user_id))
        return q.filter(or_(ProjectModel.created_by_id == int(user_id), ProjectModel.id.in_(member_projects)))

    def get_by_id(self, project_id: int) -> Optional[Project]:
        row = self._db.session.get(ProjectModel, int(project_id))
        return _to_project(row) if row else None

    def list_by_ids(self, project_ids: Iterable[int]) -> Sequence[Project]:
        ids = [int(i) for i in project_ids]
        if not ids:
            return []
        rows = self._db.session.query(ProjectModel).filter(ProjectModel.id.in_(ids)).all()
        return [_to_project(r) for r in rows]

    def list_page(
        self,
        *,
        filters: ProjectFilter,
        visible_to_user_id: Optional[int],
        page: int,
        limit: int,
        sort_field: str,
        sort_direction: str,
    ) -> tuple[Sequence[Project], int]:
        q = self._visible(self._db.session.query(ProjectModel), visible_to_user_id)

        if filters.status_id is not None:
            owning = select(ProjectStatusModel.project_id).where(ProjectStatusModel.id == int(filters.status_id))
            q = q.filter(ProjectModel.id.in_(owning))
        if filters.title:
            q = q.filter(ProjectModel.title.ilike(f"%{filters.title}%"))
        if filters.start_date is not None:
            q = q.filter(ProjectModel.start_date >= filters.start_date)
        if filters.end_date is not None:
            q = q.filter(ProjectModel.end_date <= filters.end_date)
        if filters.team_member_ids:
            with_members = select(TeamMemberModel.project_id).where(
                TeamMemberModel.user_id.in_([int(i) for i in filters.team_member_ids])
            )
            q = q.filter(ProjectModel.id.in_(with_members))

        column = _SORT_COLUMNS.get(sort_field, ProjectModel.updated_at)
        ordering = column.asc() if sort_direction == "asc" else column.desc()
        q = q.order_by(ordering, ProjectModel.id.desc())

        rows, total = paginate_query(q, page=page, limit=limit)
        return [_to_project(r) for r in rows], total

    def list_visible(self, *, user_id: Optional[int]) -> Sequence[Project]:
        q = self._visible(self._db.session.query(ProjectModel), user_id)
        rows = q.order_by(ProjectModel.updated_at.desc(), ProjectModel.id.desc()).all()
        return [_to_project(r) for r in rows]

    def count_created_by(self, user_id: int) -> int:
        return self._db.session.query(ProjectModel).filter(ProjectModel.created_by_id == int(user_id)).count()

    def create(
        self,
        *,
        title: str,
        description: Optional[str],
        start_date: Optional[date],
        end_date: Optional[date],
        due_date: Optional[date],
        estimated_time: Optional[float],
        created_by: int,
    ) -> int:
        with transaction(self._db) as session:
            row = ProjectModel(
                title=title,
                description=description,
                start_date=start_date,
                end_date=end_date,
                due_date=due_date,
                estimated_time=estimated_time,
                total_time_spent=0,
                created_by_id=int(created_by),
            )
            session.add(row)
            session.flush()
            return int(row.id)

    def update(self, project_id: int, **fields) -> bool:
        with transaction(self._db) as session:
            row = session.get(ProjectModel, int(project_id))
            if not row:
                return False
            for key, value in fields.items():
                if key in _UPDATABLE:
                    setattr(row, key, value)
            return True

    def delete(self, project_id: int) -> bool:
        with transaction(self._db) as session:
            row = session.get(ProjectModel, int(project_id))
            if not row:
                return False
            task_ids = select(TaskModel.id).where(TaskModel.project_id == row.id)
            session.query(TaskAssigneeModel).filter(TaskAssigneeModel.task_id.in_(task_ids)).delete(
                synchronize_session=False
            )
            session.query(TaskCommentModel).filter(TaskCommentModel.task_id.in_(task_ids)).delete(
                synchronize_session=False
            )
            # children first so self-referencing rows never dangle
            session.query(TaskModel).filter(
                TaskModel.project_id == row.id, TaskModel.parent_id.isnot(None)
            ).delete(synchronize_session=False)
            session.query(TaskModel).filter(TaskModel.project_id == row.id).delete(synchronize_session=False)
            session.query(ProjectStatusModel).filter(ProjectStatusModel.project_id == row.id).delete(
                synchronize_session=False
            )
            session.query(TeamMemberModel).filter(TeamMemberModel.project_id == row.id).delete(
                synchronize_session=False
            )
            session.delete(row)
            return True
