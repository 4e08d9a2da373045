from __future__ import annotations

from datetime import date, datetime, time, timedelta

from ..core.constants import LATE_GRACE_MINUTES, WEEKEND_DAYS, WORK_START_TIME


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def start_of_day(d: date) -> datetime:
    return datetime.combine(d, time.min)


def end_of_day(d: date) -> datetime:
    return datetime.combine(d, time(23, 59, 59, 999999))


def is_weekend(d: date) -> bool:
    return d.weekday() in WEEKEND_DAYS


def late_threshold(d: date) -> datetime:
    """Latest check-in time on ``d`` still counted as on time."""
    return datetime.combine(d, WORK_START_TIME) + timedelta(minutes=LATE_GRACE_MINUTES)


def is_late(check_in: datetime) -> bool:
    return check_in > late_threshold(check_in.date())


def week_start_monday(d: date) -> date:
    return d - timedelta(days=d.weekday())


def week_start_sunday(d: date) -> date:
    return d - timedelta(days=(d.weekday() + 1) % 7)


def month_start(d: date) -> date:
    return d.replace(day=1)


def working_days_between(start: date, end: date) -> int:
    """Weekdays in [start, end], inclusive."""
    if end < start:
        return 0
    count = 0
    cur = start
    while cur <= end:
        if not is_weekend(cur):
            count += 1
        cur += timedelta(days=1)
    return count


def format_hhmm(minutes: int) -> str:
    minutes = max(int(minutes), 0)
    return f"{minutes // 60:02d}:{minutes % 60:02d}"
