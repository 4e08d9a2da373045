from __future__ import annotations

from dataclasses import replace
from typing import Optional

from ..common.validators import optional_float, optional_hhmm
from ..core.constants import DEFAULT_WORK_DAYS, DEFAULT_WORK_HOURS_PER_DAY
from ..core.exceptions import ValidationError
from .model import AttendanceSettings
from .repository import AttendanceSettingsRepository


def default_settings(user_id: int) -> AttendanceSettings:
    return AttendanceSettings(
        user_id=int(user_id),
        work_hours_per_day=float(DEFAULT_WORK_HOURS_PER_DAY),
        work_days=DEFAULT_WORK_DAYS,
        reminder_enabled=True,
        reminder_time=None,
        auto_checkout_enabled=False,
        auto_checkout_time=None,
    )


def parse_work_days(value) -> str:
    """Normalise "1,2,3" style ISO weekday lists (1 = Monday)."""
    if isinstance(value, (list, tuple)):
        parts = [str(v) for v in value]
    else:
        parts = str(value or "").split(",")
    days: set[int] = set()
    for p in parts:
        p = p.strip()
        if not p:
            continue
        if not p.isdigit() or not 1 <= int(p) <= 7:
            raise ValidationError("workDays must be weekday numbers between 1 and 7")
        days.add(int(p))
    if not days:
        raise ValidationError("workDays must contain at least one day")
    return ",".join(str(d) for d in sorted(days))


class AttendanceSettingsService:
    def __init__(self, settings: AttendanceSettingsRepository):
        self._settings = settings

    def get_settings(self, *, user_id: int) -> AttendanceSettings:
        current = self._settings.get_for_user(int(user_id))
        if current is None:
            current = self._settings.save(default_settings(user_id))
        return current

    def update_settings(
        self,
        *,
        user_id: int,
        work_hours_per_day=None,
        work_days=None,
        reminder_enabled: Optional[bool] = None,
        reminder_time=None,
        auto_checkout_enabled: Optional[bool] = None,
        auto_checkout_time=None,
    ) -> AttendanceSettings:
        current = self.get_settings(user_id=user_id)
        changes: dict = {}

        hours = optional_float(work_hours_per_day, "workHoursPerDay")
        if hours is not None:
            if not 1 <= hours <= 24:
                raise ValidationError("workHoursPerDay must be between 1 and 24")
            changes["work_hours_per_day"] = hours
        if work_days is not None:
            changes["work_days"] = parse_work_days(work_days)
        if reminder_enabled is not None:
            changes["reminder_enabled"] = bool(reminder_enabled)
        if reminder_time is not None:
            changes["reminder_time"] = optional_hhmm(reminder_time, "reminderTime")
        if auto_checkout_enabled is not None:
            changes["auto_checkout_enabled"] = bool(auto_checkout_enabled)
        if auto_checkout_time is not None:
            changes["auto_checkout_time"] = optional_hhmm(auto_checkout_time, "autoCheckoutTime")

        if not changes:
            return current
        return self._settings.save(replace(current, **changes))
