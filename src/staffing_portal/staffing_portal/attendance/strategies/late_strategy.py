from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from ..model import AttendanceSession
from .base import AttendanceStrategy, StatusDecision


class LateStrategy(AttendanceStrategy):
    """Late check-in; minutes late are whole minutes past the expected time."""

    def decide_checkin(self, *, now: datetime, expected: datetime) -> StatusDecision:
        late_minutes = max(int((now - expected).total_seconds() // 60), 0)
        return StatusDecision(status=AttendanceStatus.LATE, is_late=True, late_minutes=late_minutes)

    def decide_checkout(self, *, session: AttendanceSession) -> StatusDecision:
        return StatusDecision(status=session.status, is_late=True, late_minutes=session.late_minutes)
