from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Optional

from ..core.enums import HalfDayType, LeaveStatus, LeaveType


@dataclass(frozen=True)
class LeaveRequest:
    request_id: int
    user_id: int
    leave_type: LeaveType
    status: LeaveStatus
    start_date: date
    end_date: date
    is_half_day: bool
    half_day_type: Optional[HalfDayType]
    reason: str
    total_days: float
    notes: Optional[str] = None
    approved_by_id: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def ledger_year(self) -> int:
        return self.start_date.year


@dataclass(frozen=True)
class LedgerDelta:
    """Signed change applied atomically to one ledger row."""

    pending_delta: float = 0.0
    used_delta: float = 0.0
    balance_delta: float = 0.0

    def __neg__(self) -> "LedgerDelta":
        return LedgerDelta(-self.pending_delta, -self.used_delta, -self.balance_delta)


@dataclass(frozen=True)
class LeaveBalance:
    """Ledger row keyed by (user_id, year, leave_type).

    ``balance`` is maintained incrementally and always equals
    ``total_allocated - total_used - total_pending``.
    """

    user_id: int
    year: int
    leave_type: LeaveType
    total_allocated: float = 0.0
    total_used: float = 0.0
    total_pending: float = 0.0
    balance: float = 0.0

    def apply(self, delta: LedgerDelta) -> "LeaveBalance":
        return replace(
            self,
            total_pending=self.total_pending + delta.pending_delta,
            total_used=self.total_used + delta.used_delta,
            balance=self.balance + delta.balance_delta,
        )

    @property
    def is_consistent(self) -> bool:
        return abs(self.balance - (self.total_allocated - self.total_used - self.total_pending)) < 1e-9


@dataclass(frozen=True)
class LedgerPosting:
    """A delta addressed to one ledger row, written together with a request change."""

    user_id: int
    year: int
    leave_type: LeaveType
    delta: LedgerDelta


@dataclass(frozen=True)
class LeaveWrite:
    """A saved request and the ledger rows its postings touched."""

    leave: LeaveRequest
    balances: tuple[LeaveBalance, ...] = ()


@dataclass(frozen=True)
class NewLeaveRequest:
    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: str
    is_half_day: bool = False
    half_day_type: Optional[HalfDayType] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class LeaveUpdate:
    """Partial edit of a pending request; ``None`` keeps the current value."""

    leave_type: Optional[LeaveType] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_half_day: Optional[bool] = None
    half_day_type: Optional[HalfDayType] = None
    reason: Optional[str] = None
    notes: Optional[str] = None
