from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Sequence

from ..activity.service import ATTENDANCE_ENTITY, ActivityService
from ..common.datetime_utils import (
    end_of_day,
    is_late,
    month_start,
    now_local,
    start_of_day,
    week_start_monday,
    week_start_sunday,
    working_days_between,
)
from ..common.pagination import Page
from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_HISTORY_LIMIT, MAX_ADJUSTED_HOURS, MAX_HOURS_PER_DAY
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..permissions.model import Actor
from ..projects.service import ProjectService
from ..reports.calculator.base import HoursCalculator
from ..reports.calculator.standard_calculator import StandardHoursCalculator
from ..tasks.repository import TaskRepository
from .factory import CheckoutStrategyFactory
from .model import AttendanceRecord
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

GROUP_BY = ("day", "week", "month")
STATS_PERIODS = ("day", "week", "month", "year")


@dataclass(frozen=True)
class CurrentStatus:
    record: Optional[AttendanceRecord]
    checked_in: bool


@dataclass(frozen=True)
class HistoryGroup:
    period: str
    records: Sequence[AttendanceRecord]
    total_hours: float
    check_in_count: int


@dataclass(frozen=True)
class AttendanceHistory:
    page: Page[AttendanceRecord]
    groups: Optional[Sequence[HistoryGroup]] = None


@dataclass(frozen=True)
class AttendanceStats:
    period: str
    total_hours: float
    average_hours: float
    total_days: int
    attendance_days: int
    on_time_days: int
    total_working_days: int
    attendance_rate: float
    on_time_rate: float


def _round2(value: float) -> float:
    return round(float(value), 2)


def group_key(moment: datetime, group_by: str) -> str:
    d = moment.date()
    if group_by == "week":
        return week_start_monday(d).isoformat()
    if group_by == "month":
        return d.strftime("%Y-%m")
    return d.isoformat()


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        projects: ProjectService,
        tasks: TaskRepository,
        activity: ActivityService,
        *,
        strategy_factory: Optional[CheckoutStrategyFactory] = None,
        calculator: Optional[HoursCalculator] = None,
        max_hours_per_day: float = MAX_HOURS_PER_DAY,
    ):
        self._attendance = attendance
        self._projects = projects
        self._tasks = tasks
        self._activity = activity
        self._factory = strategy_factory or CheckoutStrategyFactory()
        self._calculator = calculator or StandardHoursCalculator()
        self._max_hours = float(max_hours_per_day)

    # helpers

    def _require_record(self, attendance_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(int(attendance_id))
        if not record:
            raise NotFoundError("Attendance record not found")
        return record

    @staticmethod
    def _require_self_or_staff(actor: Actor, user_id: int) -> None:
        if actor.user_id != int(user_id) and not actor.is_admin_or_manager:
            raise AuthorizationError("You can only view your own attendance")

    def _close(
        self,
        record: AttendanceRecord,
        *,
        now: datetime,
        notes: Optional[str] = None,
        ip: Optional[str] = None,
        device: Optional[str] = None,
    ) -> AttendanceRecord:
        strategy = self._factory.for_checkout(record=record, now=now)
        decision = strategy.decide_checkout(record=record, now=now)

        worked = (decision.check_out_time - record.check_in_time).total_seconds() / 3600.0
        total_hours = _round2(min(max(worked, 0.0), self._max_hours))

        merged_notes = record.notes
        for extra in (notes, decision.note):
            if extra:
                merged_notes = f"{merged_notes}\n{extra}" if merged_notes else extra

        self._attendance.update_checkout(
            attendance_id=record.attendance_id,
            check_out_time=decision.check_out_time,
            total_hours=total_hours,
            auto_checkout=decision.auto_checkout,
            notes=merged_notes,
            ip=ip,
            device=device,
        )
        action = "auto-checkout" if decision.auto_checkout else "check-out"
        self._activity.log(
            action=action,
            entity_type=ATTENDANCE_ENTITY,
            entity_id=record.attendance_id,
            user_id=record.user_id,
            description=f"{action} after {total_hours} hours",
            project_id=record.project_id,
            task_id=record.task_id,
        )
        return self._require_record(record.attendance_id)

    # commands

    def check_in(
        self,
        *,
        actor: Actor,
        project_id: Optional[int] = None,
        task_id: Optional[int] = None,
        notes: Optional[str] = None,
        ip: Optional[str] = None,
        device: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        now = now or now_local()

        open_record = self._attendance.get_open_for_user(actor.user_id)
        if open_record:
            if open_record.check_in_time.date() >= now.date():
                raise ValidationError("Already checked in")
            self._close(open_record, now=now)

        if task_id is not None:
            task = self._tasks.get_by_id(int(task_id))
            if not task:
                raise NotFoundError("Task not found")
            if project_id is not None and int(project_id) != task.project_id:
                raise ValidationError("Task does not belong to the selected project")
            project_id = task.project_id
        if project_id is not None:
            self._projects.require_viewable(actor, project_id)

        attendance_id = self._attendance.create_checkin(
            user_id=actor.user_id,
            check_in_time=now,
            project_id=int(project_id) if project_id is not None else None,
            task_id=int(task_id) if task_id is not None else None,
            notes=(notes or "").strip() or None,
            ip=ip,
            device=device,
        )
        self._activity.log(
            action="check-in",
            entity_type=ATTENDANCE_ENTITY,
            entity_id=attendance_id,
            user_id=actor.user_id,
            description="late check-in" if is_late(now) else "check-in",
            project_id=int(project_id) if project_id is not None else None,
            task_id=int(task_id) if task_id is not None else None,
        )
        return self._require_record(attendance_id)

    def check_out(
        self,
        *,
        actor: Actor,
        attendance_id: Optional[int] = None,
        notes: Optional[str] = None,
        ip: Optional[str] = None,
        device: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        now = now or now_local()

        if attendance_id is not None:
            record = self._require_record(attendance_id)
        else:
            record = self._attendance.get_open_for_user(actor.user_id)
            if not record:
                raise NotFoundError("No active check-in found")

        if record.user_id != actor.user_id:
            raise AuthorizationError("You can only check out your own attendance")
        if record.check_out_time is not None:
            raise ValidationError("Already checked out")

        return self._close(record, now=now, notes=(notes or "").strip() or None, ip=ip, device=device)

    def adjust(
        self,
        *,
        actor: Actor,
        attendance_id: int,
        check_in_time: Optional[datetime] = None,
        check_out_time: Optional[datetime] = None,
        notes: Optional[str] = None,
        reason: str = "",
    ) -> AttendanceRecord:
        if not actor.is_admin_or_manager:
            raise AuthorizationError("Only admins and managers can adjust attendance")
        reason = require_non_empty(reason, "Reason")
        record = self._require_record(attendance_id)

        new_in = check_in_time or record.check_in_time
        new_out = check_out_time if check_out_time is not None else record.check_out_time
        total_hours = self.bounded_hours(new_in, new_out, cap=MAX_ADJUSTED_HOURS)

        self._attendance.admin_update_record(
            attendance_id=record.attendance_id,
            check_in_time=new_in,
            check_out_time=new_out,
            total_hours=total_hours,
            notes=notes if notes is not None else record.notes,
        )
        self._activity.log(
            action="attendance-adjusted",
            entity_type=ATTENDANCE_ENTITY,
            entity_id=record.attendance_id,
            user_id=actor.user_id,
            description=f"Adjusted attendance of user {record.user_id}: {reason}",
            project_id=record.project_id,
        )
        return self._require_record(record.attendance_id)

    @staticmethod
    def bounded_hours(check_in: datetime, check_out: Optional[datetime], *, cap: float) -> Optional[float]:
        if check_out is None:
            return None
        if check_out <= check_in:
            raise ValidationError("Check-out time must be after check-in time")
        return _round2(min((check_out - check_in).total_seconds() / 3600.0, cap))

    # queries

    def current(self, *, user_id: int, now: Optional[datetime] = None) -> CurrentStatus:
        now = now or now_local()
        record = self._attendance.get_latest_for_user(
            int(user_id), start=start_of_day(now.date()), end=end_of_day(now.date())
        )
        if record is None:
            record = self._attendance.get_latest_for_user(int(user_id))
        return CurrentStatus(record=record, checked_in=bool(record and record.is_open))

    def history(
        self,
        *,
        actor: Actor,
        user_id: Optional[int] = None,
        period: Optional[str] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
        page: int = 1,
        limit: int = DEFAULT_HISTORY_LIMIT,
        group_by: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceHistory:
        now = now or now_local()
        user_id = actor.user_id if user_id is None else int(user_id)
        self._require_self_or_staff(actor, user_id)
        if int(page) < 1 or int(limit) < 1:
            raise ValidationError("page and limit must be at least 1")
        if group_by is not None and group_by not in GROUP_BY:
            raise ValidationError("groupBy must be one of day, week, month")

        range_start: Optional[datetime] = None
        range_end: Optional[datetime] = None
        if period == "week":
            range_start, range_end = start_of_day(week_start_monday(now.date())), now
        elif period == "month":
            range_start, range_end = start_of_day(month_start(now.date())), now
        else:
            if start is not None:
                range_start = start_of_day(start)
            if end is not None:
                range_end = end_of_day(end)
            if range_start and range_end and range_end < range_start:
                raise ValidationError("End date must be on or after the start date")

        records, total = self._attendance.list_for_user(
            user_id,
            start=range_start,
            end=range_end,
            offset=(int(page) - 1) * int(limit),
            limit=int(limit),
        )
        result_page = Page(items=records, total=total, page=int(page), limit=int(limit))
        if not group_by:
            return AttendanceHistory(page=result_page)
        return AttendanceHistory(page=result_page, groups=self.group_records(records, group_by))

    def group_records(self, records: Sequence[AttendanceRecord], group_by: str) -> list[HistoryGroup]:
        buckets: dict[str, list[AttendanceRecord]] = {}
        for r in records:
            buckets.setdefault(group_key(r.check_in_time, group_by), []).append(r)

        groups = []
        for key in sorted(buckets, reverse=True):
            items = buckets[key]
            hours = sum(self._calculator.worked_hours(r) for r in items)
            if group_by == "day":
                hours = min(hours, 24.0)
            groups.append(HistoryGroup(period=key, records=items, total_hours=_round2(hours), check_in_count=len(items)))
        return groups

    def stats(
        self,
        *,
        actor: Actor,
        user_id: Optional[int] = None,
        period: str = "month",
        now: Optional[datetime] = None,
    ) -> AttendanceStats:
        now = now or now_local()
        user_id = actor.user_id if user_id is None else int(user_id)
        self._require_self_or_staff(actor, user_id)
        if period not in STATS_PERIODS:
            period = "month"

        today = now.date()
        if period == "day":
            first = today
        elif period == "week":
            first = week_start_sunday(today)
        elif period == "year":
            first = date(today.year, 1, 1)
        else:
            first = month_start(today)

        records, _ = self._attendance.list_for_user(user_id, start=start_of_day(first), end=now)
        completed = [r for r in records if r.check_out_time is not None]
        total_hours = sum(self._calculator.worked_hours(r) for r in records)
        on_time = sum(1 for r in completed if not is_late(r.check_in_time))
        working_days = working_days_between(first, today)

        return AttendanceStats(
            period=period,
            total_hours=_round2(total_hours),
            average_hours=_round2(total_hours / len(completed)) if completed else 0.0,
            total_days=len({r.check_in_time.date() for r in records}),
            attendance_days=len(completed),
            on_time_days=on_time,
            total_working_days=working_days,
            attendance_rate=_round2(len(completed) * 100.0 / working_days) if working_days else 0.0,
            on_time_rate=_round2(on_time * 100.0 / len(completed)) if completed else 0.0,
        )
