from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import CorrectionStatus


@dataclass(frozen=True)
class CorrectionRequest:
    """A user's request to fix the times of one attendance record."""

    request_id: int
    attendance_id: int
    user_id: int
    original_check_in: datetime
    original_check_out: Optional[datetime]
    requested_check_in: Optional[datetime]
    requested_check_out: Optional[datetime]
    reason: str
    status: CorrectionStatus
    created_at: datetime
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None
    user_name: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.status == CorrectionStatus.PENDING
