from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ...core.enums import AttendanceFlag, AttendanceStatus
from ..model import AttendanceSession


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    is_late: bool = False
    late_minutes: Optional[int] = None
    auto_checked_out: bool = False
    flags: frozenset[AttendanceFlag] = field(default_factory=frozenset)


class CheckOutStrategy(ABC):
    """Strategy Pattern: decide the status a session closes with."""

    @abstractmethod
    def decide_checkout(self, *, session: AttendanceSession) -> StatusDecision:
        raise NotImplementedError


class AttendanceStrategy(CheckOutStrategy):
    """Strategy Pattern: decide the status a session opens with (and keeps on check-out)."""

    @abstractmethod
    def decide_checkin(self, *, now: datetime, expected: datetime) -> StatusDecision:
        raise NotImplementedError
