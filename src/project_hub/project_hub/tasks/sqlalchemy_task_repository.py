from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Sequence

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import case, func

from ..core.enums import TaskPriority
from ..database.orm import TaskAssigneeModel, TaskCommentModel, TaskModel, UserModel
from ..database.session import paginate_query, transaction
from .model import Task, TaskComment

_UPDATABLE = {
    "title",
    "description",
    "priority",
    "due_date",
    "start_date",
    "end_date",
    "estimated_time",
    "time_spent",
    "status_id",
}

_PRIORITY_RANK = case(
    (TaskModel.priority == TaskPriority.HIGH.value, 2),
    (TaskModel.priority == TaskPriority.MEDIUM.value, 1),
    else_=0,
)


def _priority(value: Optional[str]) -> TaskPriority:
    try:
        return TaskPriority(value or TaskPriority.MEDIUM.value)
    except ValueError:
        return TaskPriority.MEDIUM


class SqlAlchemyTaskRepository:
    def __init__(self, db: SQLAlchemy):
        self._db = db

    def _assignees(self, task_ids: Sequence[int]) -> dict[int, tuple[int, ...]]:
        if not task_ids:
            return {}
        rows = (
            self._db.session.query(TaskAssigneeModel.task_id, TaskAssigneeModel.user_id)
            .filter(TaskAssigneeModel.task_id.in_(list(task_ids)))
            .order_by(TaskAssigneeModel.id.asc())
            .all()
        )
        out: dict[int, list[int]] = {}
        for task_id, user_id in rows:
            out.setdefault(int(task_id), []).append(int(user_id))
        return {k: tuple(v) for k, v in out.items()}

    def _to_tasks(self, rows: Sequence[TaskModel]) -> list[Task]:
        assignees = self._assignees([int(r.id) for r in rows])
        return [
            Task(
                task_id=int(r.id),
                project_id=int(r.project_id),
                title=r.title,
                description=r.description,
                priority=_priority(r.priority),
                due_date=r.due_date,
                start_date=r.start_date,
                end_date=r.end_date,
                estimated_time=r.estimated_time,
                time_spent=r.time_spent,
                status_id=r.status_id,
                parent_id=r.parent_id,
                order=int(r.sort_order or 0),
                created_by=r.created_by_id,
                created_at=r.created_at,
                updated_at=r.updated_at,
                assignee_ids=assignees.get(int(r.id), ()),
            )
            for r in rows
        ]

    def get_by_id(self, task_id: int) -> Optional[Task]:
        row = self._db.session.get(TaskModel, int(task_id))
        return self._to_tasks([row])[0] if row else None

    def list_page(
        self,
        *,
        project_ids: Optional[Iterable[int]],
        project_id: Optional[int] = None,
        priority: Optional[TaskPriority] = None,
        parent_id: Optional[int] = None,
        top_level_only: bool = True,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[Sequence[Task], int]:
        q = self._db.session.query(TaskModel)
        if project_ids is not None:
            ids = [int(i) for i in project_ids]
            if not ids:
                return [], 0
            q = q.filter(TaskModel.project_id.in_(ids))
        if project_id is not None:
            q = q.filter(TaskModel.project_id == int(project_id))
        if priority is not None:
            q = q.filter(TaskModel.priority == priority.value)
        if parent_id is not None:
            q = q.filter(TaskModel.parent_id == int(parent_id))
        elif top_level_only:
            q = q.filter(TaskModel.parent_id.is_(None))

        q = q.order_by(
            _PRIORITY_RANK.desc(),
            TaskModel.sort_order.asc(),
            TaskModel.due_date.is_(None).asc(),
            TaskModel.due_date.asc(),
            TaskModel.id.asc(),
        )
        rows, total = paginate_query(q, page=page, limit=limit)
        return self._to_tasks(rows), total

    def list_children(self, parent_id: int) -> Sequence[Task]:
        rows = (
            self._db.session.query(TaskModel)
            .filter(TaskModel.parent_id == int(parent_id))
            .order_by(TaskModel.sort_order.asc(), TaskModel.id.asc())
            .all()
        )
        return self._to_tasks(rows)

    def list_siblings(self, *, project_id: int, parent_id: Optional[int]) -> Sequence[Task]:
        q = self._db.session.query(TaskModel).filter(TaskModel.project_id == int(project_id))
        if parent_id is None:
            q = q.filter(TaskModel.parent_id.is_(None))
        else:
            q = q.filter(TaskModel.parent_id == int(parent_id))
        return self._to_tasks(q.order_by(TaskModel.sort_order.asc(), TaskModel.id.asc()).all())

    def list_for_projects(self, project_ids: Optional[Iterable[int]]) -> Sequence[Task]:
        q = self._db.session.query(TaskModel)
        if project_ids is not None:
            ids = [int(i) for i in project_ids]
            if not ids:
                return []
            q = q.filter(TaskModel.project_id.in_(ids))
        return self._to_tasks(q.order_by(TaskModel.sort_order.asc(), TaskModel.id.asc()).all())

    def max_sibling_order(self, *, project_id: int, parent_id: Optional[int]) -> Optional[int]:
        q = self._db.session.query(func.max(TaskModel.sort_order)).filter(TaskModel.project_id == int(project_id))
        if parent_id is None:
            q = q.filter(TaskModel.parent_id.is_(None))
        else:
            q = q.filter(TaskModel.parent_id == int(parent_id))
        value = q.scalar()
        return int(value) if value is not None else None

    def create(
        self,
        *,
        project_id: int,
        title: str,
        description: Optional[str],
        priority: TaskPriority,
        due_date: Optional[date],
        start_date: Optional[date],
        end_date: Optional[date],
        estimated_time: Optional[float],
        status_id: Optional[int],
        parent_id: Optional[int],
        order: int,
        created_by: int,
    ) -> int:
        with transaction(self._db) as session:
            row = TaskModel(
                project_id=int(project_id),
                title=title,
                description=description,
                priority=priority.value,
                due_date=due_date,
                start_date=start_date,
                end_date=end_date,
                estimated_time=estimated_time,
                time_spent=0,
                status_id=status_id,
                parent_id=parent_id,
                sort_order=int(order),
                created_by_id=int(created_by),
            )
            session.add(row)
            session.flush()
            return int(row.id)

    def update(self, task_id: int, **fields) -> bool:
        with transaction(self._db) as session:
            row = session.get(TaskModel, int(task_id))
            if not row:
                return False
            for key, value in fields.items():
                if key not in _UPDATABLE:
                    continue
                if isinstance(value, TaskPriority):
                    value = value.value
                setattr(row, key, value)
            return True

    def set_position(self, task_id: int, *, parent_id: Optional[int], order: int) -> bool:
        with transaction(self._db) as session:
            row = session.get(TaskModel, int(task_id))
            if not row:
                return False
            row.parent_id = parent_id
            row.sort_order = int(order)
            return True

    def _descendant_ids(self, task_id: int) -> list[int]:
        found: list[int] = []
        frontier = [int(task_id)]
        while frontier:
            children = [
                int(cid)
                for (cid,) in self._db.session.query(TaskModel.id).filter(TaskModel.parent_id.in_(frontier)).all()
            ]
            found.extend(children)
            frontier = children
        return found

    def delete(self, task_id: int) -> bool:
        descendants = self._descendant_ids(task_id)
        with transaction(self._db) as session:
            row = session.get(TaskModel, int(task_id))
            if not row:
                return False
            ids = [int(task_id)] + descendants
            session.query(TaskAssigneeModel).filter(TaskAssigneeModel.task_id.in_(ids)).delete(
                synchronize_session=False
            )
            session.query(TaskCommentModel).filter(TaskCommentModel.task_id.in_(ids)).delete(
                synchronize_session=False
            )
            # deepest rows first
            for tid in reversed(descendants):
                session.query(TaskModel).filter(TaskModel.id == tid).delete(synchronize_session=False)
            session.delete(row)
            return True

    def set_assignees(self, task_id: int, user_ids: Iterable[int]) -> None:
        wanted = list(dict.fromkeys(int(u) for u in user_ids))
        with transaction(self._db) as session:
            session.query(TaskAssigneeModel).filter(TaskAssigneeModel.task_id == int(task_id)).delete(
                synchronize_session=False
            )
            for uid in wanted:
                session.add(TaskAssigneeModel(task_id=int(task_id), user_id=uid))

    def add_assignee(self, task_id: int, user_id: int) -> bool:
        with transaction(self._db) as session:
            exists = (
                session.query(TaskAssigneeModel)
                .filter(TaskAssigneeModel.task_id == int(task_id), TaskAssigneeModel.user_id == int(user_id))
                .first()
            )
            if exists:
                return False
            session.add(TaskAssigneeModel(task_id=int(task_id), user_id=int(user_id)))
            return True

    def remove_assignee(self, task_id: int, user_id: int) -> bool:
        with transaction(self._db) as session:
            deleted = (
                session.query(TaskAssigneeModel)
                .filter(TaskAssigneeModel.task_id == int(task_id), TaskAssigneeModel.user_id == int(user_id))
                .delete(synchronize_session=False)
            )
            return bool(deleted)

    def count_assigned(self, *, user_id: int, project_id: Optional[int] = None) -> int:
        q = self._db.session.query(TaskAssigneeModel).filter(TaskAssigneeModel.user_id == int(user_id))
        if project_id is not None:
            q = q.join(TaskModel, TaskModel.id == TaskAssigneeModel.task_id).filter(
                TaskModel.project_id == int(project_id)
            )
        return q.count()

    def add_comment(self, *, task_id: int, user_id: int, content: str) -> int:
        with transaction(self._db) as session:
            row = TaskCommentModel(task_id=int(task_id), user_id=int(user_id), content=content)
            session.add(row)
            session.flush()
            return int(row.id)

    def list_comments(self, task_id: int) -> Sequence[TaskComment]:
        rows = (
            self._db.session.query(TaskCommentModel, UserModel.name)
            .outerjoin(UserModel, UserModel.id == TaskCommentModel.user_id)
            .filter(TaskCommentModel.task_id == int(task_id))
            .order_by(TaskCommentModel.created_at.asc(), TaskCommentModel.id.asc())
            .all()
        )
        return [
            TaskComment(
                comment_id=int(c.id),
                task_id=int(c.task_id),
                user_id=int(c.user_id),
                content=c.content,
                created_at=c.created_at,
                user_name=name,
            )
            for c, name in rows
        ]
