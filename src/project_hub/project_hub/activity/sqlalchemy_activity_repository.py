from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sequence

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import or_

from ..database.orm import ActivityModel, UserModel
from ..database.session import paginate_query, transaction
from .model import Activity


def _to_model(row: ActivityModel, user_name: Optional[str] = None) -> Activity:
    return Activity(
        activity_id=int(row.id),
        action=row.action,
        entity_type=row.entity_type,
        entity_id=str(row.entity_id),
        description=row.description,
        user_id=int(row.user_id),
        project_id=row.project_id,
        task_id=row.task_id,
        created_at=row.created_at,
        user_name=user_name,
    )


class SqlAlchemyActivityRepository:
    def __init__(self, db: SQLAlchemy):
        self._db = db

    def _query(self):
        return self._db.session.query(ActivityModel, UserModel.name).outerjoin(
            UserModel, UserModel.id == ActivityModel.user_id
        )

    def add(
        self,
        *,
        action: str,
        entity_type: str,
        entity_id: str,
        description: Optional[str],
        user_id: int,
        project_id: Optional[int] = None,
        task_id: Optional[int] = None,
        created_at: Optional[datetime] = None,
    ) -> int:
        with transaction(self._db) as session:
            row = ActivityModel(
                action=action,
                entity_type=entity_type,
                entity_id=str(entity_id),
                description=description,
                user_id=int(user_id),
                project_id=project_id,
                task_id=task_id,
                created_at=created_at or datetime.now(),
            )
            session.add(row)
            session.flush()
            return int(row.id)

    def list_recent(
        self,
        *,
        limit: int,
        project_ids: Optional[Iterable[int]] = None,
        user_id: Optional[int] = None,
    ) -> Sequence[Activity]:
        q = self._query()
        conditions = []
        if project_ids is not None:
            ids = list(project_ids)
            if ids:
                conditions.append(ActivityModel.project_id.in_(ids))
        if user_id is not None:
            conditions.append(ActivityModel.user_id == int(user_id))
        if project_ids is not None or user_id is not None:
            if not conditions:
                return []
            q = q.filter(or_(*conditions))
        rows = q.order_by(ActivityModel.created_at.desc(), ActivityModel.id.desc()).limit(int(limit)).all()
        return [_to_model(r, name) for r, name in rows]

    def list_page(
        self,
        *,
        page: int,
        limit: int,
        entity_type: Optional[str] = None,
        user_id: Optional[int] = None,
        action: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> tuple[Sequence[Activity], int]:
        q = self._query()
        if entity_type:
            q = q.filter(ActivityModel.entity_type == entity_type)
        if user_id is not None:
            q = q.filter(ActivityModel.user_id == int(user_id))
        if action:
            q = q.filter(ActivityModel.action == action)
        if start is not None:
            q = q.filter(ActivityModel.created_at >= start)
        if end is not None:
            q = q.filter(ActivityModel.created_at <= end)
        q = q.order_by(ActivityModel.created_at.desc(), ActivityModel.id.desc())
        rows, total = paginate_query(q, page=page, limit=limit)
        return [_to_model(r, name) for r, name in rows], total

    def list_actions_since(self, *, actions: Iterable[str], since: datetime, limit: int) -> Sequence[Activity]:
        rows = (
            self._query()
            .filter(ActivityModel.action.in_(list(actions)), ActivityModel.created_at >= since)
            .order_by(ActivityModel.created_at.desc(), ActivityModel.id.desc())
            .limit(int(limit))
            .all()
        )
        return [_to_model(r, name) for r, name in rows]
