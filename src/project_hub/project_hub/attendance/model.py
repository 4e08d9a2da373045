from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one check-in/check-out pair."""

    attendance_id: int
    user_id: int
    check_in_time: datetime
    check_out_time: Optional[datetime] = None
    total_hours: Optional[float] = None
    notes: Optional[str] = None
    project_id: Optional[int] = None
    task_id: Optional[int] = None
    auto_checkout: bool = False
    check_in_ip: Optional[str] = None
    check_in_device: Optional[str] = None
    check_out_ip: Optional[str] = None
    check_out_device: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.check_out_time is None


@dataclass(frozen=True)
class AttendanceSettings:
    user_id: int
    work_hours_per_day: float
    work_days: str
    reminder_enabled: bool
    reminder_time: Optional[str]
    auto_checkout_enabled: bool
    auto_checkout_time: Optional[str]


@dataclass(frozen=True)
class AttendanceReportRow:
    """Read-model for reports and exports."""

    attendance_id: int
    user_id: int
    name: str
    email: str
    project_title: Optional[str]
    check_in_time: datetime
    check_out_time: Optional[datetime]
    total_hours: Optional[float]
    auto_checkout: bool
    notes: Optional[str] = None
