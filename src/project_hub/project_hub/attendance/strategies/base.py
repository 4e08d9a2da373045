from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..model import AttendanceRecord


@dataclass(frozen=True)
class CheckoutDecision:
    check_out_time: datetime
    auto_checkout: bool = False
    note: Optional[str] = None


class CheckoutStrategy(ABC):
    """Strategy Pattern: encapsulate how a check-out time is decided."""

    @abstractmethod
    def decide_checkout(self, *, record: AttendanceRecord, now: datetime) -> CheckoutDecision:
        raise NotImplementedError
