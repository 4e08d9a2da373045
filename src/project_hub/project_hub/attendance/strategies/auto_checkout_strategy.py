from __future__ import annotations

from datetime import datetime, timedelta

from ...common.datetime_utils import end_of_day
from ...core.constants import DEFAULT_CHECKOUT_HOURS
from ..model import AttendanceRecord
from .base import CheckoutDecision, CheckoutStrategy


class AutoCheckoutStrategy(CheckoutStrategy):
    """Check-in left open past midnight.

    Close it at ``check_in + default_hours`` but never after the end of the
    check-in day.
    """

    def __init__(self, default_hours: float = DEFAULT_CHECKOUT_HOURS):
        self._default_hours = float(default_hours)

    def decide_checkout(self, *, record: AttendanceRecord, now: datetime) -> CheckoutDecision:
        proposed = record.check_in_time + timedelta(hours=self._default_hours)
        cutoff = end_of_day(record.check_in_time.date())
        return CheckoutDecision(
            check_out_time=min(proposed, cutoff),
            auto_checkout=True,
            note="Automatically checked out (no check-out recorded that day)",
        )
