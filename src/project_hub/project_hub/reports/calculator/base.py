from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, Protocol


class WorkedTime(Protocol):
    check_in_time: datetime
    check_out_time: Optional[datetime]
    total_hours: Optional[float]


class HoursCalculator(ABC):
    """Calculator interface (Strategy Pattern for worked time)."""

    @abstractmethod
    def worked_hours(self, row: WorkedTime) -> float:
        raise NotImplementedError

    def worked_minutes(self, row: WorkedTime) -> int:
        return int(round(self.worked_hours(row) * 60))
