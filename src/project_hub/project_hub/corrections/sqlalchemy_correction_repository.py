from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from flask_sqlalchemy import SQLAlchemy

from ..core.enums import CorrectionStatus
from ..database.orm import AttendanceCorrectionModel, UserModel
from ..database.session import transaction
from .model import CorrectionRequest


def _to_request(row: AttendanceCorrectionModel, user_name: Optional[str] = None) -> CorrectionRequest:
    return CorrectionRequest(
        request_id=int(row.id),
        attendance_id=int(row.attendance_id),
        user_id=int(row.user_id),
        original_check_in=row.original_check_in,
        original_check_out=row.original_check_out,
        requested_check_in=row.requested_check_in,
        requested_check_out=row.requested_check_out,
        reason=row.reason,
        status=CorrectionStatus(row.status),
        created_at=row.created_at,
        reviewed_by=row.reviewed_by,
        reviewed_at=row.reviewed_at,
        review_notes=row.review_notes,
        user_name=user_name,
    )


class SqlAlchemyCorrectionRepository:
    def __init__(self, db: SQLAlchemy):
        self._db = db

    def create(
        self,
        *,
        attendance_id: int,
        user_id: int,
        original_check_in: datetime,
        original_check_out: Optional[datetime],
        requested_check_in: Optional[datetime],
        requested_check_out: Optional[datetime],
        reason: str,
    ) -> int:
        with transaction(self._db) as session:
            row = AttendanceCorrectionModel(
                attendance_id=int(attendance_id),
                user_id=int(user_id),
                original_check_in=original_check_in,
                original_check_out=original_check_out,
                requested_check_in=requested_check_in,
                requested_check_out=requested_check_out,
                reason=reason,
                status=CorrectionStatus.PENDING.value,
            )
            session.add(row)
            session.flush()
            return int(row.id)

    def get_by_id(self, request_id: int) -> Optional[CorrectionRequest]:
        row = self._db.session.get(AttendanceCorrectionModel, int(request_id))
        return _to_request(row) if row else None

    def list_requests(
        self,
        *,
        status: Optional[CorrectionStatus] = None,
        user_id: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[CorrectionRequest]:
        q = self._db.session.query(AttendanceCorrectionModel, UserModel.name).join(
            UserModel, UserModel.id == AttendanceCorrectionModel.user_id
        )
        if status is not None:
            q = q.filter(AttendanceCorrectionModel.status == status.value)
        if user_id is not None:
            q = q.filter(AttendanceCorrectionModel.user_id == int(user_id))
        rows = q.order_by(AttendanceCorrectionModel.created_at.desc(), AttendanceCorrectionModel.id.desc())
        return [_to_request(r, name) for r, name in rows.limit(int(limit)).all()]

    def decide(
        self,
        *,
        request_id: int,
        status: CorrectionStatus,
        reviewed_by: int,
        reviewed_at: datetime,
        review_notes: Optional[str] = None,
    ) -> bool:
        with transaction(self._db) as session:
            row = session.get(AttendanceCorrectionModel, int(request_id))
            if not row or row.status != CorrectionStatus.PENDING.value:
                return False
            row.status = status.value
            row.reviewed_by = int(reviewed_by)
            row.reviewed_at = reviewed_at
            row.review_notes = review_notes
            return True
