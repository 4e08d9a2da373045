from __future__ import annotations

from datetime import datetime

from ..model import AttendanceRecord
from .base import CheckoutDecision, CheckoutStrategy


class SameDayCheckoutStrategy(CheckoutStrategy):
    """Check-out happens on the check-in day: use the current time."""

    def decide_checkout(self, *, record: AttendanceRecord, now: datetime) -> CheckoutDecision:
        return CheckoutDecision(check_out_time=max(now, record.check_in_time))
