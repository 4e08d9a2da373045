from __future__ import annotations

from datetime import datetime

import pytest

from src.project_hub.project_hub.core.enums import CorrectionStatus, Role
from src.project_hub.project_hub.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.project_hub.project_hub.corrections.service import CorrectionService
from src.project_hub.project_hub.permissions.model import Actor

from tests.fakes import InMemoryAttendance, InMemoryCorrections, RecordingActivity

NOW = datetime(2026, 2, 5, 10, 0)
USER = Actor(7, Role.USER)
OTHER = Actor(8, Role.USER)
MANAGER = Actor(2, Role.MANAGER)


def _setup():
    attendance = InMemoryAttendance()
    corrections = InMemoryCorrections(lambda: NOW)
    activity = RecordingActivity()
    service = CorrectionService(corrections, attendance, activity, clock=lambda: NOW)
    record = attendance.add(
        USER.user_id, datetime(2026, 2, 2, 9, 30), datetime(2026, 2, 2, 17, 0), total_hours=7.5
    )
    return service, attendance, corrections, activity, record


def test_request_is_stored_as_pending():
    service, _, corrections, activity, record = _setup()

    request_id = service.request_correction(
        actor=USER,
        attendance_id=record.attendance_id,
        requested_check_in="2026-02-02T09:00:00",
        reason="Forgot to badge in",
    )

    req = corrections.get_by_id(request_id)
    assert req.status == CorrectionStatus.PENDING
    assert req.requested_check_in == datetime(2026, 2, 2, 9, 0)
    assert req.original_check_in == datetime(2026, 2, 2, 9, 30)
    assert activity.actions() == ["correction-requested"]


def test_request_for_someone_else_is_forbidden():
    service, _, _, _, record = _setup()
    with pytest.raises(AuthorizationError):
        service.request_correction(
            actor=OTHER,
            attendance_id=record.attendance_id,
            requested_check_in="2026-02-02T09:00:00",
            reason="nope",
        )


def test_request_needs_a_change_and_a_reason():
    service, _, _, _, record = _setup()
    with pytest.raises(ValidationError):
        service.request_correction(actor=USER, attendance_id=record.attendance_id, reason="nothing")
    with pytest.raises(ValidationError):
        service.request_correction(
            actor=USER, attendance_id=record.attendance_id, requested_check_out="2026-02-02T18:00:00"
        )


def test_request_with_inverted_times_is_rejected():
    service, _, _, _, record = _setup()
    with pytest.raises(ValidationError):
        service.request_correction(
            actor=USER,
            attendance_id=record.attendance_id,
            requested_check_out="2026-02-02T08:00:00",
            reason="typo",
        )


def test_request_for_missing_record():
    service, _, _, _, _ = _setup()
    with pytest.raises(NotFoundError):
        service.request_correction(actor=USER, attendance_id=999, requested_check_in=NOW, reason="x")


def test_approve_applies_times():
    service, attendance, _, activity, record = _setup()
    request_id = service.request_correction(
        actor=USER,
        attendance_id=record.attendance_id,
        requested_check_in=datetime(2026, 2, 2, 9, 0),
        reason="Forgot to badge in",
    )

    decided = service.approve_correction(actor=MANAGER, request_id=request_id, notes=" ok ")

    assert decided.status == CorrectionStatus.APPROVED
    assert decided.reviewed_by == MANAGER.user_id
    assert decided.reviewed_at == NOW
    assert decided.review_notes == "ok"
    updated = attendance.get_by_id(record.attendance_id)
    assert updated.check_in_time == datetime(2026, 2, 2, 9, 0)
    assert updated.total_hours == 8.0
    assert activity.actions() == ["correction-requested", "attendance-adjusted"]


def test_only_staff_can_review():
    service, _, _, _, record = _setup()
    request_id = service.request_correction(
        actor=USER, attendance_id=record.attendance_id, requested_check_in=datetime(2026, 2, 2, 9, 0), reason="x"
    )
    with pytest.raises(AuthorizationError):
        service.approve_correction(actor=USER, request_id=request_id)
    with pytest.raises(AuthorizationError):
        service.reject_correction(actor=OTHER, request_id=request_id)


def test_reviewed_request_cannot_be_decided_again():
    service, attendance, _, _, record = _setup()
    request_id = service.request_correction(
        actor=USER, attendance_id=record.attendance_id, requested_check_in=datetime(2026, 2, 2, 9, 0), reason="x"
    )

    rejected = service.reject_correction(actor=MANAGER, request_id=request_id, notes="no proof")

    assert rejected.status == CorrectionStatus.REJECTED
    assert attendance.get_by_id(record.attendance_id).check_in_time == datetime(2026, 2, 2, 9, 30)
    with pytest.raises(ValidationError):
        service.approve_correction(actor=MANAGER, request_id=request_id)


def test_listing_is_scoped_for_regular_users():
    service, attendance, _, _, record = _setup()
    other_record = attendance.add(OTHER.user_id, datetime(2026, 2, 2, 9, 0), datetime(2026, 2, 2, 17, 0))
    service.request_correction(
        actor=USER, attendance_id=record.attendance_id, requested_check_out=datetime(2026, 2, 2, 18, 0), reason="a"
    )
    service.request_correction(
        actor=OTHER, attendance_id=other_record.attendance_id, requested_check_out=datetime(2026, 2, 2, 18, 0), reason="b"
    )

    assert [r.user_id for r in service.list_corrections(actor=USER)] == [USER.user_id]
    assert len(service.list_corrections(actor=MANAGER, status="pending")) == 2
    with pytest.raises(ValidationError):
        service.list_corrections(actor=MANAGER, status="lost")


def test_failed_approval_keeps_record_and_request(ctx, container, actors, monkeypatch):
    user, manager = actors["user"], actors["manager"]
    container.attendance_service.check_in(actor=user, now=datetime(2026, 2, 2, 9, 30))
    record = container.attendance_service.check_out(actor=user, now=datetime(2026, 2, 2, 17, 0))
    request_id = container.correction_service.request_correction(
        actor=user,
        attendance_id=record.attendance_id,
        requested_check_in=datetime(2026, 2, 2, 8, 0),
        reason="Badge reader was down",
    )

    def broken_decide(**kwargs):
        raise RuntimeError("review table unavailable")

    monkeypatch.setattr(container.corrections_repo, "decide", broken_decide)

    with pytest.raises(RuntimeError):
        container.correction_service.approve_correction(actor=manager, request_id=request_id)

    stored = container.attendance_repo.get_by_id(record.attendance_id)
    assert stored.check_in_time == datetime(2026, 2, 2, 9, 30)
    assert stored.total_hours == record.total_hours
    assert container.corrections_repo.get_by_id(request_id).status == CorrectionStatus.PENDING
