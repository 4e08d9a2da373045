"""Read-only aggregations over attendance rows for admins and managers."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from ..activity.model import Activity
from ..activity.repository import ActivityRepository
from ..common.datetime_utils import end_of_day, is_late, is_weekend, now_local, start_of_day
from ..core.constants import (
    ANALYTICS_MAX_WORKING_DAYS,
    DEFAULT_ANALYTICS_DAYS,
    LATE_PATTERN_COUNT,
    RECENT_EXCEPTION_DAYS,
    WORK_START_TIME,
)
from ..core.enums import ExceptionType, Permission
from ..core.exceptions import AuthorizationError, ValidationError
from ..permissions.model import Actor
from ..permissions.service import has_permission
from ..projects.service import ProjectService
from ..reports.calculator.base import HoursCalculator
from ..reports.calculator.standard_calculator import StandardHoursCalculator
from ..team.repository import TeamRepository
from ..users.model import User
from ..users.repository import UserRepository
from .model import AttendanceRecord
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

EXCEPTION_ACTIONS = ("attendance-exception", "attendance-adjusted", "auto-checkout")


@dataclass(frozen=True)
class TodayCounts:
    present: int
    late: int
    absent: int
    total_employees: int
    is_weekend: bool


@dataclass(frozen=True)
class DashboardMetrics:
    present_count: int
    late_count: int
    absent_count: int
    total_employees: int
    is_weekend: bool
    recent_exceptions: Sequence[Activity] = field(default_factory=tuple)


@dataclass(frozen=True)
class AttendanceException:
    id: str
    user_id: int
    user_name: str
    user_email: str
    date: Optional[date]
    type: ExceptionType
    details: str


@dataclass(frozen=True)
class ExceptionReport:
    items: Sequence[AttendanceException]
    counts: dict


@dataclass(frozen=True)
class TeamAttendanceRow:
    user_id: int
    name: str
    email: str
    record: Optional[AttendanceRecord]
    status: str


@dataclass(frozen=True)
class DailyStat:
    date: date
    total_hours: float
    attendance_count: int
    on_time_count: int


@dataclass(frozen=True)
class UserStat:
    user_id: int
    name: str
    email: str
    image: Optional[str]
    total_hours: float
    attendance_days: int
    average_hours_per_day: float
    attendance_rate: float
    on_time_count: int
    on_time_rate: float


@dataclass(frozen=True)
class TeamAnalytics:
    total_members: int
    active_members: int
    total_hours: float
    average_hours_per_day: float
    attendance_rate: float
    on_time_rate: float
    daily_stats: Sequence[DailyStat] = field(default_factory=tuple)
    user_stats: Sequence[UserStat] = field(default_factory=tuple)


def _pct(part: float, whole: float) -> float:
    return round(part * 100.0 / whole, 2) if whole else 0.0


def _require_staff(actor: Actor, message: str) -> None:
    if not actor.is_admin_or_manager:
        raise AuthorizationError(message)


class AttendanceAnalyticsService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        team: TeamRepository,
        projects: ProjectService,
        activities: ActivityRepository,
        *,
        calculator: Optional[HoursCalculator] = None,
    ):
        self._attendance = attendance
        self._users = users
        self._team = team
        self._projects = projects
        self._activities = activities
        self._calculator = calculator or StandardHoursCalculator()

    def _today_records(self, today: date, user_ids) -> Sequence[AttendanceRecord]:
        return self._attendance.list_between(start=start_of_day(today), end=end_of_day(today), user_ids=user_ids)

    def today_counts(self, *, actor: Actor, now: Optional[datetime] = None) -> TodayCounts:
        _require_staff(actor, "You don't have permission to view attendance counts")
        today = (now or now_local()).date()

        employees = self._users.list_non_admin()
        records = self._today_records(today, [u.user_id for u in employees])
        present = {r.user_id for r in records}
        late = {r.user_id for r in records if is_late(r.check_in_time)}
        weekend = is_weekend(today)
        return TodayCounts(
            present=len(present),
            late=len(late),
            absent=0 if weekend else max(len(employees) - len(present), 0),
            total_employees=len(employees),
            is_weekend=weekend,
        )

    def admin_dashboard_metrics(self, *, actor: Actor, now: Optional[datetime] = None) -> DashboardMetrics:
        _require_staff(actor, "You don't have permission to view attendance metrics")
        now = now or now_local()
        if is_weekend(now.date()):
            return DashboardMetrics(present_count=0, late_count=0, absent_count=0, total_employees=0, is_weekend=True)

        counts = self.today_counts(actor=actor, now=now)
        recent = self._activities.list_actions_since(
            actions=EXCEPTION_ACTIONS,
            since=now - timedelta(days=RECENT_EXCEPTION_DAYS),
            limit=5,
        )
        return DashboardMetrics(
            present_count=counts.present,
            late_count=counts.late,
            absent_count=counts.absent,
            total_employees=counts.total_employees,
            is_weekend=False,
            recent_exceptions=recent,
        )

    def exceptions(
        self,
        *,
        actor: Actor,
        start: Optional[date] = None,
        end: Optional[date] = None,
        exception_type: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ExceptionReport:
        _require_staff(actor, "You don't have permission to view attendance exceptions")
        today = (now or now_local()).date()

        wanted: Optional[ExceptionType] = None
        if exception_type:
            try:
                wanted = ExceptionType(exception_type)
            except ValueError:
                raise ValidationError("Unknown exception type")

        end = end or today
        start = start or (end - timedelta(days=DEFAULT_ANALYTICS_DAYS))
        if end < start:
            raise ValidationError("End date must be on or after the start date")

        users = {u.user_id: u for u in self._users.list_non_admin()}
        records = self._attendance.list_between(start=start_of_day(start), end=end_of_day(end), user_ids=list(users))

        items: list[AttendanceException] = []
        if wanted in (None, ExceptionType.ABSENT):
            items.extend(self._absences(users, records, start, min(end, today - timedelta(days=1))))
        late = [r for r in records if is_late(r.check_in_time)]
        if wanted in (None, ExceptionType.LATE):
            items.extend(self._late(users, late))
        if wanted in (None, ExceptionType.FORGOT_CHECKOUT):
            for r in records:
                if r.auto_checkout:
                    items.append(
                        self._exception(
                            users,
                            r.user_id,
                            r.check_in_time.date(),
                            ExceptionType.FORGOT_CHECKOUT,
                            f"Forgot to check out after checking in at {r.check_in_time:%H:%M}",
                            suffix=str(r.attendance_id),
                        )
                    )
        if wanted in (None, ExceptionType.PATTERN):
            per_user: dict[int, int] = {}
            for r in late:
                per_user[r.user_id] = per_user.get(r.user_id, 0) + 1
            for user_id, count in sorted(per_user.items()):
                if count >= LATE_PATTERN_COUNT:
                    items.append(
                        self._exception(
                            users, user_id, None, ExceptionType.PATTERN, f"Late {count} times in the selected period"
                        )
                    )

        counts = {t.value: sum(1 for e in items if e.type == t) for t in ExceptionType}
        counts["total"] = len(items)
        return ExceptionReport(items=items, counts=counts)

    @staticmethod
    def _exception(
        users: dict[int, User],
        user_id: int,
        day: Optional[date],
        kind: ExceptionType,
        details: str,
        *,
        suffix: Optional[str] = None,
    ) -> AttendanceException:
        user = users.get(user_id)
        key = "-".join(str(p) for p in (kind.value, user_id, day.isoformat() if day else None, suffix) if p)
        return AttendanceException(
            id=key,
            user_id=user_id,
            user_name=user.name if user else "",
            user_email=user.email if user else "",
            date=day,
            type=kind,
            details=details,
        )

    def _absences(self, users, records, start: date, last: date) -> list[AttendanceException]:
        present = {(r.user_id, r.check_in_time.date()) for r in records}
        out = []
        day = start
        while day <= last:
            if not is_weekend(day):
                for user_id in users:
                    if (user_id, day) not in present:
                        out.append(
                            self._exception(
                                users, user_id, day, ExceptionType.ABSENT, f"Absent without notice on {day:%A, %B %d}"
                            )
                        )
            day += timedelta(days=1)
        return out

    def _late(self, users, late_records) -> list[AttendanceException]:
        out = []
        for r in late_records:
            start = datetime.combine(r.check_in_time.date(), WORK_START_TIME)
            minutes = int((r.check_in_time - start).total_seconds() // 60)
            out.append(
                self._exception(
                    users,
                    r.user_id,
                    r.check_in_time.date(),
                    ExceptionType.LATE,
                    f"Late arrival at {r.check_in_time:%H:%M} ({minutes // 60}h {minutes % 60}m late)",
                    suffix=str(r.attendance_id),
                )
            )
        return out

    def team_attendance(
        self,
        *,
        actor: Actor,
        project_id: int,
        day: Optional[date] = None,
        now: Optional[datetime] = None,
    ) -> list[TeamAttendanceRow]:
        project = self._projects.require_project(project_id)
        if not (
            has_permission(actor.role, Permission.VIEW_TEAM_ATTENDANCE) or project.created_by == actor.user_id
        ):
            raise AuthorizationError("You don't have permission to view team attendance")

        day = day or (now or now_local()).date()
        member_ids = [m.user_id for m in self._team.list_for_project(project.project_id)]
        users = self._users.list_by_ids(member_ids)
        latest: dict[int, AttendanceRecord] = {}
        for r in self._today_records(day, member_ids):
            latest[r.user_id] = r

        rows = []
        for u in users:
            record = latest.get(u.user_id)
            if record is None:
                status = "absent"
            elif record.check_out_time is None:
                status = "checked_in"
            else:
                status = "checked_out"
            rows.append(TeamAttendanceRow(user_id=u.user_id, name=u.name, email=u.email, record=record, status=status))
        return rows

    def team_analytics(
        self,
        *,
        actor: Actor,
        days: int = DEFAULT_ANALYTICS_DAYS,
        project_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> TeamAnalytics:
        _require_staff(actor, "You don't have permission to view team analytics")
        if int(days) < 1:
            raise ValidationError("days must be at least 1")
        days = int(days)
        now = now or now_local()

        if project_id is not None:
            project = self._projects.require_project(project_id)
            users = list(self._users.list_by_ids([m.user_id for m in self._team.list_for_project(project.project_id)]))
        else:
            users = list(self._users.list_non_admin())

        if not users:
            return TeamAnalytics(
                total_members=0,
                active_members=0,
                total_hours=0.0,
                average_hours_per_day=0.0,
                attendance_rate=0.0,
                on_time_rate=0.0,
            )

        first_day = now.date() - timedelta(days=days - 1)
        records = self._attendance.list_between(
            start=start_of_day(first_day), end=now, user_ids=[u.user_id for u in users]
        )
        working_days = min(days, ANALYTICS_MAX_WORKING_DAYS)

        hours = {r.attendance_id: self._calculator.worked_hours(r) for r in records}
        total_hours = sum(hours.values())
        active = {r.user_id for r in records}
        user_days = {(r.user_id, r.check_in_time.date()) for r in records}
        on_time_records = [r for r in records if not is_late(r.check_in_time)]

        daily: dict[date, list[AttendanceRecord]] = {first_day + timedelta(days=i): [] for i in range(days)}
        for r in records:
            daily.setdefault(r.check_in_time.date(), []).append(r)
        daily_stats = [
            DailyStat(
                date=d,
                total_hours=round(sum(hours[r.attendance_id] for r in items), 2),
                attendance_count=len(items),
                on_time_count=sum(1 for r in items if not is_late(r.check_in_time)),
            )
            for d, items in sorted(daily.items())
        ]

        user_stats = []
        for u in users:
            mine = [r for r in records if r.user_id == u.user_id]
            mine_hours = sum(hours[r.attendance_id] for r in mine)
            mine_days = len({r.check_in_time.date() for r in mine})
            mine_on_time = sum(1 for r in mine if not is_late(r.check_in_time))
            user_stats.append(
                UserStat(
                    user_id=u.user_id,
                    name=u.name,
                    email=u.email,
                    image=u.image,
                    total_hours=round(mine_hours, 2),
                    attendance_days=mine_days,
                    average_hours_per_day=round(mine_hours / mine_days, 2) if mine_days else 0.0,
                    attendance_rate=_pct(mine_days, working_days),
                    on_time_count=mine_on_time,
                    on_time_rate=_pct(mine_on_time, len(mine)),
                )
            )
        user_stats.sort(key=lambda s: s.total_hours, reverse=True)

        return TeamAnalytics(
            total_members=len(users),
            active_members=len(active),
            total_hours=round(total_hours, 2),
            average_hours_per_day=round(total_hours / (len(active) * working_days), 2) if active else 0.0,
            attendance_rate=_pct(len(user_days), len(users) * working_days),
            on_time_rate=_pct(len(on_time_records), len(records)),
            daily_stats=daily_stats,
            user_stats=user_stats,
        )
