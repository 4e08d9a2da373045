from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import CorrectionStatus
from .model import CorrectionRequest


class CorrectionRepository(Protocol):
    def create(
        self,
        *,
        attendance_id: int,
        user_id: int,
        original_check_in: datetime,
        original_check_out: Optional[datetime],
        requested_check_in: Optional[datetime],
        requested_check_out: Optional[datetime],
        reason: str,
    ) -> int:
        raise NotImplementedError

    def get_by_id(self, request_id: int) -> Optional[CorrectionRequest]:
        raise NotImplementedError

    def list_requests(
        self,
        *,
        status: Optional[CorrectionStatus] = None,
        user_id: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[CorrectionRequest]:
        """Newest first, joined with the requester's name."""

        raise NotImplementedError

    def decide(
        self,
        *,
        request_id: int,
        status: CorrectionStatus,
        reviewed_by: int,
        reviewed_at: datetime,
        review_notes: Optional[str] = None,
    ) -> bool:
        """Only pending requests can be decided."""

        raise NotImplementedError
