from __future__ import annotations

from datetime import date, datetime
from typing import AbstractSet, Optional, Protocol, Sequence

from ..core.enums import HalfDayType, LeaveStatus, LeaveType
from .model import LeaveBalance, LeaveRequest, LeaveWrite, LedgerPosting


class LeaveRepository(Protocol):
    """Leave requests and their ledger rows.

    Every write takes the ledger ``postings`` that go with it and applies them in
    the same transaction: either the request change and all postings are saved,
    or nothing is. A posting upserts its (user, year, type) row, a missing row
    starting from zero, and adds the delta in SQL.
    """

    def create_leave(
        self,
        *,
        user_id: int,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        is_half_day: bool,
        half_day_type: Optional[HalfDayType],
        reason: str,
        notes: Optional[str],
        total_days: float,
        postings: Sequence[LedgerPosting] = (),
    ) -> LeaveWrite:
        raise NotImplementedError

    def get_leave(self, request_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def update_leave(
        self,
        *,
        request_id: int,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        is_half_day: bool,
        half_day_type: Optional[HalfDayType],
        reason: str,
        notes: Optional[str],
        total_days: float,
        postings: Sequence[LedgerPosting] = (),
    ) -> Optional[LeaveWrite]:
        """Edit a request that is still PENDING; ``None`` (and no postings) if it no longer is."""

        raise NotImplementedError

    def set_leave_status(
        self,
        *,
        request_id: int,
        from_status: LeaveStatus,
        to_status: LeaveStatus,
        approved_by_id: Optional[int] = None,
        approved_at: Optional[datetime] = None,
        rejection_reason: Optional[str] = None,
        postings: Sequence[LedgerPosting] = (),
    ) -> Optional[LeaveWrite]:
        """Conditional status change guarded by ``from_status``.

        Approver fields are written as given (``None`` clears them).
        """

        raise NotImplementedError

    def list_leaves(
        self,
        *,
        status: Optional[LeaveStatus] = None,
        user_id: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[LeaveRequest]:
        raise NotImplementedError

    def get_balance(self, *, user_id: int, year: int, leave_type: LeaveType) -> Optional[LeaveBalance]:
        raise NotImplementedError

    def list_balances(self, *, user_id: int, year: int) -> Sequence[LeaveBalance]:
        raise NotImplementedError


class HolidayRepository(Protocol):
    def list_holidays_in_range(self, start: date, end: date) -> AbstractSet[str]:
        """ISO dates (YYYY-MM-DD) of holidays within [start, end]."""

        raise NotImplementedError
