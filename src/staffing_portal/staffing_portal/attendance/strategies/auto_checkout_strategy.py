from __future__ import annotations

from ...core.enums import AttendanceFlag, AttendanceStatus
from ..model import AttendanceSession
from .base import CheckOutStrategy, StatusDecision


class AutoCheckoutStrategy(CheckOutStrategy):
    """Session force-closed by the end-of-day sweep."""

    def decide_checkout(self, *, session: AttendanceSession) -> StatusDecision:
        return StatusDecision(
            status=AttendanceStatus.AUTO_CHECKED_OUT,
            is_late=session.is_late,
            late_minutes=session.late_minutes,
            auto_checked_out=True,
            flags=frozenset(session.flags | {AttendanceFlag.AUTO_CHECKED_OUT}),
        )
