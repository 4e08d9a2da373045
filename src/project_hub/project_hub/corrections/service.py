from __future__ import annotations

import logging
from contextlib import nullcontext
from datetime import datetime
from typing import Callable, ContextManager, Optional, Sequence

from ..activity.service import ATTENDANCE_ENTITY, ActivityService
from ..attendance.repository import AttendanceRepository
from ..attendance.service import AttendanceService
from ..common.datetime_utils import now_local
from ..common.validators import optional_datetime, require_non_empty
from ..core.constants import MAX_ADJUSTED_HOURS
from ..core.enums import CorrectionStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..permissions.model import Actor
from .model import CorrectionRequest
from .repository import CorrectionRepository

logger = logging.getLogger(__name__)


class CorrectionService:
    def __init__(
        self,
        corrections: CorrectionRepository,
        attendance: AttendanceRepository,
        activity: ActivityService,
        *,
        clock: Callable[[], datetime] = now_local,
        unit_of_work: Callable[[], ContextManager] = nullcontext,
    ):
        self._corrections = corrections
        self._attendance = attendance
        self._activity = activity
        self._clock = clock
        self._unit_of_work = unit_of_work

    def _require_pending(self, request_id: int) -> CorrectionRequest:
        req = self._corrections.get_by_id(int(request_id))
        if not req:
            raise NotFoundError("Correction request not found")
        if not req.is_pending:
            raise ValidationError("Correction request has already been reviewed")
        return req

    @staticmethod
    def _require_reviewer(actor: Actor) -> None:
        if not actor.is_admin_or_manager:
            raise AuthorizationError("Only admins and managers can review corrections")

    def request_correction(
        self,
        *,
        actor: Actor,
        attendance_id: int,
        requested_check_in=None,
        requested_check_out=None,
        reason: str = "",
    ) -> int:
        record = self._attendance.get_by_id(int(attendance_id))
        if not record:
            raise NotFoundError("Attendance record not found")
        if record.user_id != actor.user_id:
            raise AuthorizationError("You can only request corrections for your own attendance")

        new_in = optional_datetime(requested_check_in, "requestedCheckIn")
        new_out = optional_datetime(requested_check_out, "requestedCheckOut")
        if new_in is None and new_out is None:
            raise ValidationError("Please request at least one change")
        reason = require_non_empty(reason, "Reason")

        # the resulting pair must still be ordered
        AttendanceService.bounded_hours(
            new_in or record.check_in_time, new_out or record.check_out_time, cap=MAX_ADJUSTED_HOURS
        )

        request_id = self._corrections.create(
            attendance_id=record.attendance_id,
            user_id=actor.user_id,
            original_check_in=record.check_in_time,
            original_check_out=record.check_out_time,
            requested_check_in=new_in,
            requested_check_out=new_out,
            reason=reason,
        )
        self._activity.log(
            action="correction-requested",
            entity_type=ATTENDANCE_ENTITY,
            entity_id=record.attendance_id,
            user_id=actor.user_id,
            description=f"Correction requested: {reason}",
            project_id=record.project_id,
        )
        return request_id

    def approve_correction(self, *, actor: Actor, request_id: int, notes: str = "") -> CorrectionRequest:
        self._require_reviewer(actor)
        req = self._require_pending(request_id)

        record = self._attendance.get_by_id(req.attendance_id)
        if not record:
            raise NotFoundError("Attendance record not found")

        new_in = req.requested_check_in or record.check_in_time
        new_out = req.requested_check_out or record.check_out_time
        total_hours = AttendanceService.bounded_hours(new_in, new_out, cap=MAX_ADJUSTED_HOURS)

        with self._unit_of_work():
            ok = self._attendance.admin_update_record(
                attendance_id=record.attendance_id,
                check_in_time=new_in,
                check_out_time=new_out,
                total_hours=total_hours,
                notes=record.notes,
            )
            if not ok:
                raise ValidationError("Failed to apply the correction")

            decided = self._corrections.decide(
                request_id=req.request_id,
                status=CorrectionStatus.APPROVED,
                reviewed_by=actor.user_id,
                reviewed_at=self._clock(),
                review_notes=(notes or "").strip() or None,
            )
            if not decided:
                raise ValidationError("Failed to approve the correction")

            self._activity.log(
                action="attendance-adjusted",
                entity_type=ATTENDANCE_ENTITY,
                entity_id=record.attendance_id,
                user_id=actor.user_id,
                description=f"Approved correction #{req.request_id}: {req.reason}",
                project_id=record.project_id,
            )
        logger.info("correction %s approved by %s", req.request_id, actor.user_id)
        return self._corrections.get_by_id(req.request_id)

    def reject_correction(self, *, actor: Actor, request_id: int, notes: str = "") -> CorrectionRequest:
        self._require_reviewer(actor)
        req = self._require_pending(request_id)

        decided = self._corrections.decide(
            request_id=req.request_id,
            status=CorrectionStatus.REJECTED,
            reviewed_by=actor.user_id,
            reviewed_at=self._clock(),
            review_notes=(notes or "").strip() or None,
        )
        if not decided:
            raise ValidationError("Failed to reject the correction")
        return self._corrections.get_by_id(req.request_id)

    def list_corrections(self, *, actor: Actor, status: Optional[str] = None) -> Sequence[CorrectionRequest]:
        wanted: Optional[CorrectionStatus] = None
        if status:
            try:
                wanted = CorrectionStatus(status)
            except ValueError:
                raise ValidationError("status must be pending, approved or rejected")
        user_id = None if actor.is_admin_or_manager else actor.user_id
        return self._corrections.list_requests(status=wanted, user_id=user_id)
