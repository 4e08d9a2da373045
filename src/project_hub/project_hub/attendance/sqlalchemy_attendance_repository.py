from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sequence

from flask_sqlalchemy import SQLAlchemy

from ..database.orm import AttendanceModel, AttendanceSettingsModel, ProjectModel, UserModel
from ..database.session import transaction
from .model import AttendanceRecord, AttendanceReportRow, AttendanceSettings


def _to_record(row: AttendanceModel) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(row.id),
        user_id=int(row.user_id),
        check_in_time=row.check_in_time,
        check_out_time=row.check_out_time,
        total_hours=row.total_hours,
        notes=row.notes,
        project_id=row.project_id,
        task_id=row.task_id,
        auto_checkout=bool(row.auto_checkout),
        check_in_ip=row.check_in_ip,
        check_in_device=row.check_in_device,
        check_out_ip=row.check_out_ip,
        check_out_device=row.check_out_device,
    )


class SqlAlchemyAttendanceRepository:
    def __init__(self, db: SQLAlchemy):
        self._db = db

    def _for_user(self, user_id: int, start: Optional[datetime], end: Optional[datetime]):
        q = self._db.session.query(AttendanceModel).filter(AttendanceModel.user_id == int(user_id))
        if start is not None:
            q = q.filter(AttendanceModel.check_in_time >= start)
        if end is not None:
            q = q.filter(AttendanceModel.check_in_time <= end)
        return q

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        row = self._db.session.get(AttendanceModel, int(attendance_id))
        return _to_record(row) if row else None

    def get_open_for_user(self, user_id: int) -> Optional[AttendanceRecord]:
        row = (
            self._db.session.query(AttendanceModel)
            .filter(AttendanceModel.user_id == int(user_id), AttendanceModel.check_out_time.is_(None))
            .order_by(AttendanceModel.check_in_time.desc(), AttendanceModel.id.desc())
            .first()
        )
        return _to_record(row) if row else None

    def get_latest_for_user(
        self,
        user_id: int,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Optional[AttendanceRecord]:
        row = (
            self._for_user(user_id, start, end)
            .order_by(AttendanceModel.check_in_time.desc(), AttendanceModel.id.desc())
            .first()
        )
        return _to_record(row) if row else None

    def list_for_user(
        self,
        user_id: int,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> tuple[Sequence[AttendanceRecord], int]:
        q = self._for_user(user_id, start, end)
        total = q.count()
        q = q.order_by(AttendanceModel.check_in_time.desc(), AttendanceModel.id.desc()).offset(int(offset))
        if limit is not None:
            q = q.limit(int(limit))
        return [_to_record(r) for r in q.all()], total

    def list_between(
        self,
        *,
        start: datetime,
        end: datetime,
        user_ids: Optional[Iterable[int]] = None,
        project_id: Optional[int] = None,
    ) -> Sequence[AttendanceRecord]:
        q = self._db.session.query(AttendanceModel).filter(
            AttendanceModel.check_in_time >= start, AttendanceModel.check_in_time <= end
        )
        if user_ids is not None:
            ids = [int(i) for i in user_ids]
            if not ids:
                return []
            q = q.filter(AttendanceModel.user_id.in_(ids))
        if project_id is not None:
            q = q.filter(AttendanceModel.project_id == int(project_id))
        rows = q.order_by(AttendanceModel.check_in_time.asc(), AttendanceModel.id.asc()).all()
        return [_to_record(r) for r in rows]

    def create_checkin(
        self,
        *,
        user_id: int,
        check_in_time: datetime,
        project_id: Optional[int] = None,
        task_id: Optional[int] = None,
        notes: Optional[str] = None,
        ip: Optional[str] = None,
        device: Optional[str] = None,
    ) -> int:
        with transaction(self._db) as session:
            row = AttendanceModel(
                user_id=int(user_id),
                check_in_time=check_in_time,
                project_id=project_id,
                task_id=task_id,
                notes=notes,
                check_in_ip=ip,
                check_in_device=device,
                auto_checkout=False,
            )
            session.add(row)
            session.flush()
            return int(row.id)

    def update_checkout(
        self,
        *,
        attendance_id: int,
        check_out_time: datetime,
        total_hours: float,
        auto_checkout: bool = False,
        notes: Optional[str] = None,
        ip: Optional[str] = None,
        device: Optional[str] = None,
    ) -> bool:
        with transaction(self._db) as session:
            row = session.get(AttendanceModel, int(attendance_id))
            if not row:
                return False
            row.check_out_time = check_out_time
            row.total_hours = total_hours
            row.auto_checkout = bool(auto_checkout)
            row.notes = notes
            row.check_out_ip = ip
            row.check_out_device = device
            return True

    def admin_update_record(
        self,
        *,
        attendance_id: int,
        check_in_time: datetime,
        check_out_time: Optional[datetime],
        total_hours: Optional[float],
        notes: Optional[str] = None,
    ) -> bool:
        with transaction(self._db) as session:
            row = session.get(AttendanceModel, int(attendance_id))
            if not row:
                return False
            row.check_in_time = check_in_time
            row.check_out_time = check_out_time
            row.total_hours = total_hours
            row.notes = notes
            return True

    def get_report_rows(
        self,
        *,
        start: datetime,
        end: datetime,
        user_id: Optional[int] = None,
        project_id: Optional[int] = None,
    ) -> Sequence[AttendanceReportRow]:
        q = (
            self._db.session.query(AttendanceModel, UserModel.name, UserModel.email, ProjectModel.title)
            .join(UserModel, UserModel.id == AttendanceModel.user_id)
            .outerjoin(ProjectModel, ProjectModel.id == AttendanceModel.project_id)
            .filter(AttendanceModel.check_in_time >= start, AttendanceModel.check_in_time <= end)
        )
        if user_id is not None:
            q = q.filter(AttendanceModel.user_id == int(user_id))
        if project_id is not None:
            q = q.filter(AttendanceModel.project_id == int(project_id))
        rows = q.order_by(AttendanceModel.check_in_time.asc(), AttendanceModel.id.asc()).all()
        return [
            AttendanceReportRow(
                attendance_id=int(a.id),
                user_id=int(a.user_id),
                name=name,
                email=email,
                project_title=title,
                check_in_time=a.check_in_time,
                check_out_time=a.check_out_time,
                total_hours=a.total_hours,
                auto_checkout=bool(a.auto_checkout),
                notes=a.notes,
            )
            for a, name, email, title in rows
        ]


class SqlAlchemyAttendanceSettingsRepository:
    def __init__(self, db: SQLAlchemy):
        self._db = db

    @staticmethod
    def _to_settings(row: AttendanceSettingsModel) -> AttendanceSettings:
        return AttendanceSettings(
            user_id=int(row.user_id),
            work_hours_per_day=float(row.work_hours_per_day),
            work_days=row.work_days,
            reminder_enabled=bool(row.reminder_enabled),
            reminder_time=row.reminder_time,
            auto_checkout_enabled=bool(row.auto_checkout_enabled),
            auto_checkout_time=row.auto_checkout_time,
        )

    def get_for_user(self, user_id: int) -> Optional[AttendanceSettings]:
        row = (
            self._db.session.query(AttendanceSettingsModel)
            .filter(AttendanceSettingsModel.user_id == int(user_id))
            .first()
        )
        return self._to_settings(row) if row else None

    def save(self, settings: AttendanceSettings) -> AttendanceSettings:
        with transaction(self._db) as session:
            row = (
                session.query(AttendanceSettingsModel)
                .filter(AttendanceSettingsModel.user_id == int(settings.user_id))
                .first()
            )
            if row is None:
                row = AttendanceSettingsModel(user_id=int(settings.user_id))
                session.add(row)
            row.work_hours_per_day = settings.work_hours_per_day
            row.work_days = settings.work_days
            row.reminder_enabled = settings.reminder_enabled
            row.reminder_time = settings.reminder_time
            row.auto_checkout_enabled = settings.auto_checkout_enabled
            row.auto_checkout_time = settings.auto_checkout_time
            session.flush()
            return self._to_settings(row)
