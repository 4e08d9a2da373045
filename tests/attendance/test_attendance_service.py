from __future__ import annotations

from datetime import date, datetime
from types import SimpleNamespace

import pytest

from src.project_hub.project_hub.attendance.service import AttendanceService, group_key
from src.project_hub.project_hub.core.enums import Role
from src.project_hub.project_hub.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.project_hub.project_hub.permissions.model import Actor

from tests.fakes import InMemoryAttendance, RecordingActivity, StubProjects, StubTasks

USER = Actor(7, Role.USER)
OTHER = Actor(8, Role.USER)
MANAGER = Actor(2, Role.MANAGER)


def _service(attendance=None, *, projects=None, tasks=None):
    attendance = attendance or InMemoryAttendance()
    activity = RecordingActivity()
    service = AttendanceService(
        attendance,
        projects or StubProjects(),
        tasks or StubTasks(),
        activity,
    )
    return service, attendance, activity


def test_check_in_creates_open_record(fixed_now):
    service, repo, activity = _service()

    record = service.check_in(actor=USER, notes="  remote  ", ip="10.0.0.1", now=fixed_now)

    assert record.is_open
    assert record.notes == "remote"
    assert record.check_in_ip == "10.0.0.1"
    assert activity.actions() == ["check-in"]
    assert activity.entries[0]["description"] == "check-in"


def test_late_check_in_is_logged_as_late():
    service, _, activity = _service()
    service.check_in(actor=USER, now=datetime(2026, 2, 2, 9, 16))
    assert activity.entries[0]["description"] == "late check-in"


def test_check_in_within_grace_is_on_time():
    service, _, activity = _service()
    service.check_in(actor=USER, now=datetime(2026, 2, 2, 9, 15))
    assert activity.entries[0]["description"] == "check-in"


def test_second_check_in_same_day_is_rejected(fixed_now):
    service, _, _ = _service()
    service.check_in(actor=USER, now=fixed_now)
    with pytest.raises(ValidationError):
        service.check_in(actor=USER, now=datetime(2026, 2, 2, 13, 0))


def test_check_in_closes_forgotten_record_from_previous_day():
    service, repo, activity = _service()
    old = repo.add(USER.user_id, datetime(2026, 2, 2, 9, 0))

    new = service.check_in(actor=USER, now=datetime(2026, 2, 3, 8, 50))

    closed = repo.get_by_id(old.attendance_id)
    assert closed.check_out_time == datetime(2026, 2, 2, 17, 0)
    assert closed.total_hours == 8.0
    assert closed.auto_checkout is True
    assert new.is_open
    assert activity.actions() == ["auto-checkout", "check-in"]


def test_check_in_with_task_takes_its_project():
    tasks = StubTasks({5: SimpleNamespace(task_id=5, project_id=3)})
    projects = StubProjects({3: {USER.user_id}})
    service, _, _ = _service(projects=projects, tasks=tasks)

    record = service.check_in(actor=USER, task_id=5, now=datetime(2026, 2, 2, 9, 0))

    assert record.project_id == 3
    assert record.task_id == 5


def test_check_in_task_from_other_project_is_rejected():
    tasks = StubTasks({5: SimpleNamespace(task_id=5, project_id=3)})
    service, _, _ = _service(projects=StubProjects({3: {7}, 4: {7}}), tasks=tasks)
    with pytest.raises(ValidationError):
        service.check_in(actor=USER, project_id=4, task_id=5, now=datetime(2026, 2, 2, 9, 0))


def test_check_in_to_foreign_project_is_forbidden():
    service, _, _ = _service(projects=StubProjects({3: {OTHER.user_id}}))
    with pytest.raises(AuthorizationError):
        service.check_in(actor=USER, project_id=3, now=datetime(2026, 2, 2, 9, 0))


def test_check_out_computes_hours():
    service, repo, activity = _service()
    repo.add(USER.user_id, datetime(2026, 2, 2, 9, 0), notes="morning")

    record = service.check_out(actor=USER, notes="done", now=datetime(2026, 2, 2, 17, 30))

    assert record.total_hours == 8.5
    assert record.auto_checkout is False
    assert record.notes == "morning\ndone"
    assert activity.actions() == ["check-out"]


def test_check_out_hours_are_capped():
    service, repo, _ = _service()
    repo.add(USER.user_id, datetime(2026, 2, 2, 6, 0))
    record = service.check_out(actor=USER, now=datetime(2026, 2, 2, 22, 0))
    assert record.total_hours == 12.0


def test_check_out_without_open_record():
    service, _, _ = _service()
    with pytest.raises(NotFoundError):
        service.check_out(actor=USER, now=datetime(2026, 2, 2, 17, 0))


def test_check_out_of_someone_else_is_forbidden():
    service, repo, _ = _service()
    record = repo.add(OTHER.user_id, datetime(2026, 2, 2, 9, 0))
    with pytest.raises(AuthorizationError):
        service.check_out(actor=USER, attendance_id=record.attendance_id, now=datetime(2026, 2, 2, 17, 0))


def test_check_out_twice_is_rejected():
    service, repo, _ = _service()
    record = repo.add(USER.user_id, datetime(2026, 2, 2, 9, 0), datetime(2026, 2, 2, 17, 0))
    with pytest.raises(ValidationError):
        service.check_out(actor=USER, attendance_id=record.attendance_id, now=datetime(2026, 2, 2, 18, 0))


def test_adjust_requires_staff_and_reason():
    service, repo, _ = _service()
    record = repo.add(USER.user_id, datetime(2026, 2, 2, 9, 0), datetime(2026, 2, 2, 17, 0), total_hours=8.0)

    with pytest.raises(AuthorizationError):
        service.adjust(actor=USER, attendance_id=record.attendance_id, reason="oops")
    with pytest.raises(ValidationError):
        service.adjust(actor=MANAGER, attendance_id=record.attendance_id, reason="  ")


def test_adjust_recomputes_hours():
    service, repo, activity = _service()
    record = repo.add(USER.user_id, datetime(2026, 2, 2, 9, 0), datetime(2026, 2, 2, 17, 0), total_hours=8.0)

    updated = service.adjust(
        actor=MANAGER,
        attendance_id=record.attendance_id,
        check_in_time=datetime(2026, 2, 2, 8, 0),
        reason="badge reader was down",
    )

    assert updated.check_in_time == datetime(2026, 2, 2, 8, 0)
    assert updated.total_hours == 9.0
    assert activity.entries[-1]["action"] == "attendance-adjusted"
    assert activity.entries[-1]["user_id"] == MANAGER.user_id


def test_adjust_rejects_inverted_times():
    service, repo, _ = _service()
    record = repo.add(USER.user_id, datetime(2026, 2, 2, 9, 0), datetime(2026, 2, 2, 17, 0))
    with pytest.raises(ValidationError):
        service.adjust(
            actor=MANAGER,
            attendance_id=record.attendance_id,
            check_out_time=datetime(2026, 2, 2, 8, 0),
            reason="typo",
        )


def test_current_reports_open_record():
    service, repo, _ = _service()
    repo.add(USER.user_id, datetime(2026, 2, 2, 9, 0))

    status = service.current(user_id=USER.user_id, now=datetime(2026, 2, 2, 12, 0))

    assert status.checked_in is True
    assert status.record.check_in_time == datetime(2026, 2, 2, 9, 0)


def test_current_without_records():
    service, _, _ = _service()
    status = service.current(user_id=USER.user_id, now=datetime(2026, 2, 2, 12, 0))
    assert status.checked_in is False
    assert status.record is None


def test_history_of_other_user_needs_staff():
    service, _, _ = _service()
    with pytest.raises(AuthorizationError):
        service.history(actor=USER, user_id=OTHER.user_id)
    assert service.history(actor=MANAGER, user_id=OTHER.user_id).page.total == 0


def test_history_groups_by_day_with_cap():
    service, repo, _ = _service()
    for hour, hours in ((0, 12.0), (8, 12.0), (20, 3.0)):
        repo.add(USER.user_id, datetime(2026, 2, 2, hour, 0), datetime(2026, 2, 2, hour + 1, 0), total_hours=hours)
    repo.add(USER.user_id, datetime(2026, 2, 3, 9, 0), datetime(2026, 2, 3, 17, 0), total_hours=8.0)

    history = service.history(actor=USER, group_by="day", now=datetime(2026, 2, 4, 9, 0))

    assert history.page.total == 4
    assert [g.period for g in history.groups] == ["2026-02-03", "2026-02-02"]
    assert history.groups[1].total_hours == 24.0
    assert history.groups[1].check_in_count == 3


def test_history_rejects_unknown_grouping():
    service, _, _ = _service()
    with pytest.raises(ValidationError):
        service.history(actor=USER, group_by="decade")


def test_history_date_range_is_inclusive():
    service, repo, _ = _service()
    repo.add(USER.user_id, datetime(2026, 2, 2, 9, 0), datetime(2026, 2, 2, 17, 0))
    repo.add(USER.user_id, datetime(2026, 2, 5, 9, 0), datetime(2026, 2, 5, 17, 0))

    history = service.history(actor=USER, start=date(2026, 2, 1), end=date(2026, 2, 2))

    assert [r.check_in_time.day for r in history.page.items] == [2]


def test_group_key_week_starts_on_monday():
    assert group_key(datetime(2026, 2, 8, 10, 0), "week") == "2026-02-02"
    assert group_key(datetime(2026, 2, 8, 10, 0), "month") == "2026-02"


def test_month_stats():
    service, repo, _ = _service()
    repo.add(USER.user_id, datetime(2026, 2, 2, 9, 0), datetime(2026, 2, 2, 17, 0), total_hours=8.0)
    repo.add(USER.user_id, datetime(2026, 2, 3, 9, 30), datetime(2026, 2, 3, 17, 30), total_hours=8.0)
    repo.add(USER.user_id, datetime(2026, 2, 6, 9, 5))

    stats = service.stats(actor=USER, period="month", now=datetime(2026, 2, 6, 18, 0))

    assert stats.total_hours == 16.0
    assert stats.average_hours == 8.0
    assert stats.total_days == 3
    assert stats.attendance_days == 2
    assert stats.on_time_days == 1
    assert stats.total_working_days == 5
    assert stats.attendance_rate == 40.0
    assert stats.on_time_rate == 50.0


def test_unknown_stats_period_falls_back_to_month():
    service, _, _ = _service()
    stats = service.stats(actor=USER, period="fortnight", now=datetime(2026, 2, 6, 18, 0))
    assert stats.period == "month"
    assert stats.attendance_rate == 0.0
