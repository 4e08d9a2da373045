from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from types import SimpleNamespace

import pytest

from src.project_hub.project_hub.attendance.analytics_service import AttendanceAnalyticsService
from src.project_hub.project_hub.core.enums import Role
from src.project_hub.project_hub.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.project_hub.project_hub.permissions.model import Actor
from src.project_hub.project_hub.team.model import TeamMember

from tests.fakes import InMemoryAttendance, InMemoryUsers

NOW = datetime(2026, 2, 4, 12, 0)  # Wednesday
ADMIN = Actor(1, Role.ADMIN)
MANAGER = Actor(2, Role.MANAGER)
USER = Actor(7, Role.USER)


@dataclass
class InMemoryTeam:
    members: list = field(default_factory=list)

    def list_for_project(self, project_id):
        return [m for m in self.members if m.project_id == project_id]


@dataclass
class StubProjects:
    rows: dict = field(default_factory=dict)

    def require_project(self, project_id):
        if int(project_id) not in self.rows:
            raise NotFoundError("Project not found")
        return self.rows[int(project_id)]


@dataclass
class StubActivities:
    calls: list = field(default_factory=list)

    def list_actions_since(self, *, actions, since, limit):
        self.calls.append((tuple(actions), since, limit))
        return ["entry"]


def _service():
    users = InMemoryUsers()
    users.add(1, Role.ADMIN)
    users.add(2, Role.MANAGER)
    users.add(7)
    users.add(8)

    attendance = InMemoryAttendance()
    attendance.add(7, datetime(2026, 2, 2, 9, 0), datetime(2026, 2, 2, 17, 0))
    attendance.add(7, datetime(2026, 2, 3, 9, 30), datetime(2026, 2, 3, 17, 30), total_hours=8.0, auto_checkout=True)
    attendance.add(7, datetime(2026, 2, 4, 9, 20))
    attendance.add(8, datetime(2026, 2, 2, 9, 40), datetime(2026, 2, 2, 17, 40))

    team = InMemoryTeam([TeamMember(1, 3, 7), TeamMember(2, 3, 8)])
    projects = StubProjects({3: SimpleNamespace(project_id=3, created_by=2)})
    activities = StubActivities()
    service = AttendanceAnalyticsService(attendance, users, team, projects, activities)
    return service, attendance, activities


def test_today_counts():
    service, _, _ = _service()

    counts = service.today_counts(actor=MANAGER, now=NOW)

    assert counts.total_employees == 3
    assert counts.present == 1
    assert counts.late == 1
    assert counts.absent == 2
    assert counts.is_weekend is False


def test_counts_are_for_staff_only():
    service, _, _ = _service()
    with pytest.raises(AuthorizationError):
        service.today_counts(actor=USER, now=NOW)


def test_dashboard_metrics_on_weekend_are_zero():
    service, _, activities = _service()

    metrics = service.admin_dashboard_metrics(actor=ADMIN, now=datetime(2026, 2, 7, 10, 0))

    assert metrics.is_weekend is True
    assert metrics.present_count == 0
    assert activities.calls == []


def test_dashboard_metrics_include_recent_exceptions():
    service, _, activities = _service()

    metrics = service.admin_dashboard_metrics(actor=ADMIN, now=NOW)

    assert metrics.present_count == 1
    assert metrics.recent_exceptions == ["entry"]
    actions, since, limit = activities.calls[0]
    assert "auto-checkout" in actions
    assert since == datetime(2026, 1, 28, 12, 0)
    assert limit == 5


def test_exceptions_report():
    service, _, _ = _service()

    report = service.exceptions(actor=MANAGER, start=date(2026, 2, 2), end=date(2026, 2, 4), now=NOW)

    assert report.counts == {"absent": 3, "late": 3, "forgot_checkout": 1, "pattern": 0, "total": 7}
    ids = {e.id for e in report.items}
    assert "absent-8-2026-02-03" in ids
    assert "absent-2-2026-02-02" in ids
    assert "forgot_checkout-7-2026-02-03-2" in ids
    late = [e for e in report.items if e.type.value == "late"]
    assert late[0].details == "Late arrival at 09:40 (0h 40m late)"


def test_today_is_never_counted_as_absent():
    service, _, _ = _service()
    report = service.exceptions(actor=MANAGER, start=date(2026, 2, 4), end=date(2026, 2, 4), now=NOW)
    assert report.counts["absent"] == 0


def test_exceptions_filter_by_type():
    service, _, _ = _service()

    report = service.exceptions(
        actor=MANAGER, start=date(2026, 2, 2), end=date(2026, 2, 4), exception_type="late", now=NOW
    )

    assert {e.type.value for e in report.items} == {"late"}
    with pytest.raises(ValidationError):
        service.exceptions(actor=MANAGER, exception_type="sleepy", now=NOW)


def test_repeated_lateness_is_a_pattern():
    service, attendance, _ = _service()
    attendance.add(8, datetime(2026, 2, 3, 10, 0), datetime(2026, 2, 3, 18, 0))
    attendance.add(8, datetime(2026, 2, 4, 9, 45))

    report = service.exceptions(
        actor=MANAGER, start=date(2026, 2, 2), end=date(2026, 2, 4), exception_type="pattern", now=NOW
    )

    assert [e.id for e in report.items] == ["pattern-8"]
    assert report.items[0].details == "Late 3 times in the selected period"


def test_team_attendance_statuses():
    service, _, _ = _service()

    rows = service.team_attendance(actor=MANAGER, project_id=3, now=NOW)

    assert {r.user_id: r.status for r in rows} == {7: "checked_in", 8: "absent"}
    past = service.team_attendance(actor=MANAGER, project_id=3, day=date(2026, 2, 2), now=NOW)
    assert {r.user_id: r.status for r in past} == {7: "checked_out", 8: "checked_out"}


def test_team_attendance_needs_permission():
    service, _, _ = _service()
    with pytest.raises(AuthorizationError):
        service.team_attendance(actor=USER, project_id=3, now=NOW)


def test_team_analytics():
    service, _, _ = _service()

    analytics = service.team_analytics(actor=MANAGER, days=3, project_id=3, now=NOW)

    assert analytics.total_members == 2
    assert analytics.active_members == 2
    assert analytics.total_hours == 24.0
    assert analytics.average_hours_per_day == 4.0
    assert analytics.attendance_rate == 66.67
    assert analytics.on_time_rate == 25.0
    assert [d.date for d in analytics.daily_stats] == [date(2026, 2, 2), date(2026, 2, 3), date(2026, 2, 4)]
    assert analytics.daily_stats[0].total_hours == 16.0
    assert analytics.daily_stats[0].on_time_count == 1

    top = analytics.user_stats[0]
    assert top.user_id == 7
    assert top.attendance_days == 3
    assert top.average_hours_per_day == 5.33
    assert top.attendance_rate == 100.0


def test_team_analytics_rejects_bad_days():
    service, _, _ = _service()
    with pytest.raises(ValidationError):
        service.team_analytics(actor=MANAGER, days=0, now=NOW)
