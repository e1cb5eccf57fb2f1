from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..common.datetime_utils import is_late
from .model import AttendanceSession
from .strategies.auto_checkout_strategy import AutoCheckoutStrategy
from .strategies.base import AttendanceStrategy, CheckOutStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.on_time_strategy import OnTimeStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    def for_checkin(self, *, now: datetime) -> AttendanceStrategy:
        if is_late(now):
            return LateStrategy()
        return OnTimeStrategy()

    def for_checkout(self, *, session: AttendanceSession, auto: bool = False) -> CheckOutStrategy:
        if auto:
            return AutoCheckoutStrategy()
        if session.is_late:
            return LateStrategy()
        return OnTimeStrategy()
