from __future__ import annotations

from datetime import date, datetime

import pytest
from openpyxl import load_workbook

from src.project_hub.project_hub.attendance.model import AttendanceRecord
from src.project_hub.project_hub.core.enums import Role
from src.project_hub.project_hub.core.exceptions import AuthorizationError, ValidationError
from src.project_hub.project_hub.permissions.model import Actor
from src.project_hub.project_hub.reports.calculator.standard_calculator import StandardHoursCalculator
from src.project_hub.project_hub.reports.export import to_csv_bytes, to_excel_bytes
from src.project_hub.project_hub.reports.service import REPORT_COLUMNS, AttendanceReportService

from tests.fakes import InMemoryAttendance

MANAGER = Actor(2, Role.MANAGER)


def _report():
    repo = InMemoryAttendance()
    repo.add(7, datetime(2026, 2, 2, 9, 0), datetime(2026, 2, 2, 17, 30))
    repo.add(7, datetime(2026, 2, 3, 9, 0), datetime(2026, 2, 3, 12, 0), total_hours=3.0)
    repo.add(8, datetime(2026, 2, 3, 10, 0), None)
    repo.add(8, datetime(2026, 3, 1, 10, 0), datetime(2026, 3, 1, 11, 0))
    service = AttendanceReportService(repo, calculator=StandardHoursCalculator())
    return service.build_attendance_report(actor=MANAGER, start=date(2026, 2, 1), end=date(2026, 2, 28))


def test_calculator_prefers_stored_total():
    calc = StandardHoursCalculator()
    rec = AttendanceRecord(1, 1, datetime(2026, 2, 2, 9, 0), datetime(2026, 2, 2, 17, 0), total_hours=7.25)
    assert calc.worked_hours(rec) == 7.25
    assert calc.worked_minutes(rec) == 435


def test_calculator_open_record_is_zero():
    rec = AttendanceRecord(1, 1, datetime(2026, 2, 2, 9, 0))
    assert StandardHoursCalculator().worked_hours(rec) == 0.0


def test_report_rows_and_summary():
    data = _report()

    assert len(data.rows) == 3
    first = data.rows[0]
    assert first["date"] == "2026-02-02"
    assert first["worked_hours"] == "08:30"
    assert first["project"] == "-"
    assert data.rows[2]["check_out"] == "-"

    assert [s["user_id"] for s in data.summary] == [7, 8]
    assert data.summary[0]["days"] == 2
    assert data.summary[0]["total_hours"] == "11:30"
    assert data.summary[1]["total_hours"] == "00:00"


def test_report_is_for_staff_only():
    service = AttendanceReportService(InMemoryAttendance())
    with pytest.raises(AuthorizationError):
        service.build_attendance_report(actor=Actor(7, Role.USER), start=date(2026, 2, 1), end=date(2026, 2, 2))


def test_report_rejects_inverted_range():
    service = AttendanceReportService(InMemoryAttendance())
    with pytest.raises(ValidationError):
        service.build_attendance_report(actor=MANAGER, start=date(2026, 2, 2), end=date(2026, 2, 1))


def test_csv_export_has_header_and_bom():
    raw = to_csv_bytes(_report())
    assert raw.startswith(b"\xef\xbb\xbf")
    header = raw.decode("utf-8-sig").splitlines()[0]
    assert header.split(",") == list(REPORT_COLUMNS)


def test_excel_export_has_two_sheets():
    workbook = load_workbook(to_excel_bytes(_report()))
    assert workbook.sheetnames == ["Attendance", "Summary"]
    assert workbook["Attendance"].max_row == 4
