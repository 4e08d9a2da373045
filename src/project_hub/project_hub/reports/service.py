from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import end_of_day, format_hhmm, start_of_day
from ..core.exceptions import AuthorizationError, ValidationError
from ..permissions.model import Actor
from .calculator.base import HoursCalculator
from .calculator.standard_calculator import StandardHoursCalculator

REPORT_COLUMNS = (
    "date",
    "user_id",
    "name",
    "email",
    "project",
    "check_in",
    "check_out",
    "worked_hours",
    "auto_checkout",
    "notes",
)


@dataclass(frozen=True)
class ReportData:
    rows: list[dict]
    summary: list[dict]


class AttendanceReportService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        *,
        calculator: Optional[HoursCalculator] = None,
    ):
        self._attendance = attendance
        self._calculator = calculator or StandardHoursCalculator()

    def build_attendance_report(
        self,
        *,
        actor: Actor,
        start: date,
        end: date,
        user_id: Optional[int] = None,
        project_id: Optional[int] = None,
    ) -> ReportData:
        if not actor.is_admin_or_manager:
            raise AuthorizationError("Only admins and managers can export attendance")
        if end < start:
            raise ValidationError("End date must be on or after the start date")

        query_rows = self._attendance.get_report_rows(
            start=start_of_day(start),
            end=end_of_day(end),
            user_id=user_id,
            project_id=project_id,
        )

        summary_map: dict[int, dict] = {}
        out_rows: list[dict] = []

        for r in query_rows:
            minutes = self._calculator.worked_minutes(r)
            out_rows.append(
                {
                    "date": r.check_in_time.strftime("%Y-%m-%d"),
                    "user_id": r.user_id,
                    "name": r.name,
                    "email": r.email,
                    "project": r.project_title or "-",
                    "check_in": r.check_in_time.strftime("%H:%M"),
                    "check_out": r.check_out_time.strftime("%H:%M") if r.check_out_time else "-",
                    "worked_hours": format_hhmm(minutes),
                    "auto_checkout": "yes" if r.auto_checkout else "no",
                    "notes": r.notes or "",
                }
            )

            s = summary_map.get(r.user_id)
            if not s:
                s = {"user_id": r.user_id, "name": r.name, "email": r.email, "days": set(), "total_minutes": 0}
                summary_map[r.user_id] = s
            s["days"].add(r.check_in_time.date())
            s["total_minutes"] += minutes

        ordered = sorted(summary_map.values(), key=lambda s: s["total_minutes"], reverse=True)
        summary = [
            {
                "user_id": s["user_id"],
                "name": s["name"],
                "email": s["email"],
                "days": len(s["days"]),
                "total_hours": format_hhmm(s["total_minutes"]),
            }
            for s in ordered
        ]
        return ReportData(rows=out_rows, summary=summary)
