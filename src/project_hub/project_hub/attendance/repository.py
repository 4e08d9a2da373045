from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Protocol, Sequence

from .model import AttendanceRecord, AttendanceReportRow, AttendanceSettings


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_open_for_user(self, user_id: int) -> Optional[AttendanceRecord]:
        """Latest record of the user without a check-out."""

        raise NotImplementedError

    def get_latest_for_user(
        self,
        user_id: int,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_for_user(
        self,
        user_id: int,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> tuple[Sequence[AttendanceRecord], int]:
        """Newest first, with the total count before paging."""

        raise NotImplementedError

    def list_between(
        self,
        *,
        start: datetime,
        end: datetime,
        user_ids: Optional[Iterable[int]] = None,
        project_id: Optional[int] = None,
    ) -> Sequence[AttendanceRecord]:
        """Records whose check-in falls in [start, end], oldest first."""

        raise NotImplementedError

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
        raise NotImplementedError

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
        raise NotImplementedError

    def admin_update_record(
        self,
        *,
        attendance_id: int,
        check_in_time: datetime,
        check_out_time: Optional[datetime],
        total_hours: Optional[float],
        notes: Optional[str] = None,
    ) -> bool:
        """Override used by adjustments and approved corrections."""

        raise NotImplementedError

    def get_report_rows(
        self,
        *,
        start: datetime,
        end: datetime,
        user_id: Optional[int] = None,
        project_id: Optional[int] = None,
    ) -> Sequence[AttendanceReportRow]:
        raise NotImplementedError


class AttendanceSettingsRepository(Protocol):
    def get_for_user(self, user_id: int) -> Optional[AttendanceSettings]:
        raise NotImplementedError

    def save(self, settings: AttendanceSettings) -> AttendanceSettings:
        """Insert or update the row for ``settings.user_id``."""

        raise NotImplementedError
