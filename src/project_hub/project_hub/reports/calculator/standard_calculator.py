from __future__ import annotations

from .base import HoursCalculator, WorkedTime


class StandardHoursCalculator(HoursCalculator):
    """Stored total if present, else (out - in), else 0 for open records."""

    def worked_hours(self, row: WorkedTime) -> float:
        if row.total_hours is not None:
            return max(float(row.total_hours), 0.0)
        if not row.check_out_time:
            return 0.0
        seconds = (row.check_out_time - row.check_in_time).total_seconds()
        return max(seconds, 0.0) / 3600.0
