from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..core.constants import DEFAULT_CHECKOUT_HOURS
from .model import AttendanceRecord
from .strategies.auto_checkout_strategy import AutoCheckoutStrategy
from .strategies.base import CheckoutStrategy
from .strategies.same_day_strategy import SameDayCheckoutStrategy


@dataclass
class CheckoutStrategyFactory:
    """Factory Pattern: choose the check-out strategy for an open record."""

    default_checkout_hours: float = DEFAULT_CHECKOUT_HOURS

    def for_checkout(self, *, record: AttendanceRecord, now: datetime) -> CheckoutStrategy:
        if record.check_in_time.date() < now.date():
            return AutoCheckoutStrategy(self.default_checkout_hours)
        return SameDayCheckoutStrategy()
