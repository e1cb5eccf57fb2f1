from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import now_utc
from ..common.validators import clean_optional, require_min_length
from ..core.constants import DEFAULT_LIST_LIMIT, MIN_LEAVE_REASON_LENGTH
from ..core.enums import (
    ADMIN_ROLES,
    ATTENDANCE_ROLES,
    LEAVE_APPROVER_ROLES,
    ErrorKind,
    HalfDayType,
    LeaveAction,
    LeaveStatus,
    LeaveType,
    NotificationCategory,
    Role,
)
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..core.result import Ok, returns_result
from ..notifications.effects import build_effects
from ..notifications.model import NotifyEvent
from ..users.repository import UserRepository
from .ledger import LedgerTransition, delta_for, ensure_transition, transition_for
from .model import (
    LeaveBalance,
    LeaveRequest,
    LeaveUpdate,
    LeaveWrite,
    LedgerDelta,
    LedgerPosting,
    NewLeaveRequest,
)
from .repository import HolidayRepository, LeaveRepository
from .working_days import count_working_days

logger = logging.getLogger(__name__)


def format_days(days: float) -> str:
    return f"{days:g} day{'' if days == 1 else 's'}"


def _parse_leave_type(value) -> LeaveType:
    try:
        return LeaveType(value)
    except ValueError:
        raise ValidationError(f"Unknown leave type: {value}", ErrorKind.INVALID_LEAVE_INPUT) from None


class LeaveService:
    """Leave request workflow and the pending/used/balance ledger behind it."""

    def __init__(
        self,
        leaves: LeaveRepository,
        holidays: HolidayRepository,
        users: UserRepository,
        *,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._leaves = leaves
        self._holidays = holidays
        self._users = users
        self._clock = clock

    def _display_name(self, user_id: int) -> str:
        user = self._users.get_by_id(user_id)
        return user.display_name if user else f"User #{user_id}"

    def _get_leave(self, request_id: int) -> LeaveRequest:
        leave = self._leaves.get_leave(int(request_id))
        if not leave:
            raise NotFoundError("Leave request not found", ErrorKind.LEAVE_NOT_FOUND)
        return leave

    def _charged_days(
        self,
        *,
        start_date: date,
        end_date: date,
        is_half_day: bool,
        half_day_type: Optional[HalfDayType],
    ) -> float:
        if end_date < start_date:
            raise ValidationError("End date must be after or equal to start date", ErrorKind.INVALID_RANGE)

        if is_half_day:
            if start_date != end_date:
                raise ValidationError(
                    "For half day leave, start and end date must be the same", ErrorKind.INVALID_HALF_DAY
                )
            if half_day_type is None:
                raise ValidationError("Half day type is required for half day leave", ErrorKind.INVALID_HALF_DAY)
            return count_working_days(start_date, end_date, frozenset(), is_half_day=True)

        try:
            holidays = self._holidays.list_holidays_in_range(start_date, end_date)
        except Exception as e:
            logger.exception("Holiday lookup failed for %s..%s", start_date, end_date)
            raise ValidationError(
                "Holiday calendar is unavailable, leave days could not be calculated",
                ErrorKind.HOLIDAY_LOOKUP_FAILURE,
            ) from e
        return count_working_days(start_date, end_date, holidays)

    def _posting(self, leave: LeaveRequest, delta: LedgerDelta) -> LedgerPosting:
        return LedgerPosting(user_id=leave.user_id, year=leave.ledger_year, leave_type=leave.leave_type, delta=delta)

    def _check_balances(self, write: LeaveWrite) -> LeaveRequest:
        for balance in write.balances:
            if balance.total_pending < 0 or balance.total_used < 0 or not balance.is_consistent:
                logger.warning(
                    "Leave ledger row out of range: user=%s year=%s type=%s pending=%s used=%s balance=%s",
                    balance.user_id,
                    balance.year,
                    balance.leave_type.value,
                    balance.total_pending,
                    balance.total_used,
                    balance.balance,
                )
        return write.leave

    @returns_result
    def create_leave(self, *, current_role: Role, user_id: int, request: NewLeaveRequest):
        if current_role not in ATTENDANCE_ROLES:
            raise AuthorizationError("Only STAFF and FINANCE can create leave requests")

        reason = require_min_length(request.reason, "Reason", MIN_LEAVE_REASON_LENGTH)
        leave_type = _parse_leave_type(request.leave_type)
        total_days = self._charged_days(
            start_date=request.start_date,
            end_date=request.end_date,
            is_half_day=request.is_half_day,
            half_day_type=request.half_day_type,
        )

        posting = LedgerPosting(
            user_id=int(user_id),
            year=request.start_date.year,
            leave_type=leave_type,
            delta=delta_for(LedgerTransition.CREATE, total_days),
        )
        leave = self._check_balances(
            self._leaves.create_leave(
                user_id=int(user_id),
                leave_type=leave_type,
                start_date=request.start_date,
                end_date=request.end_date,
                is_half_day=request.is_half_day,
                half_day_type=request.half_day_type if request.is_half_day else None,
                reason=reason,
                notes=clean_optional(request.notes),
                total_days=total_days,
                postings=(posting,),
            )
        )
        return Ok(leave, build_effects(lambda: self._requested_event(leave)))

    def _requested_event(self, leave: LeaveRequest) -> NotifyEvent:
        name = self._display_name(leave.user_id)
        return NotifyEvent(
            user_ids=tuple(self._users.list_active_ids_by_roles(ADMIN_ROLES)),
            title=f"{name} requested leave",
            body=f"{leave.leave_type.value} leave for {format_days(leave.total_days)}",
            category=NotificationCategory.LEAVE,
            entity_type="LEAVE",
            entity_id=leave.request_id,
            data={
                "type": "LEAVE_REQUEST",
                "user_id": leave.user_id,
                "user_name": name,
                "leave_type": leave.leave_type.value,
                "start_date": leave.start_date.isoformat(),
                "end_date": leave.end_date.isoformat(),
                "total_days": leave.total_days,
            },
        )

    @returns_result
    def update_leave(self, *, user_id: int, request_id: int, update: LeaveUpdate) -> LeaveRequest:
        leave = self._get_leave(request_id)
        if leave.user_id != int(user_id):
            raise AuthorizationError("You can only update your own leave requests")
        if leave.status != LeaveStatus.PENDING:
            raise ValidationError("Only pending leave requests can be updated", ErrorKind.INVALID_STATE_TRANSITION)

        start_date = update.start_date or leave.start_date
        end_date = update.end_date or leave.end_date
        is_half_day = leave.is_half_day if update.is_half_day is None else update.is_half_day
        half_day_type = None
        if is_half_day:
            half_day_type = update.half_day_type or leave.half_day_type
        reason = leave.reason
        if update.reason is not None:
            reason = require_min_length(update.reason, "Reason", MIN_LEAVE_REASON_LENGTH)

        total_days = self._charged_days(
            start_date=start_date,
            end_date=end_date,
            is_half_day=is_half_day,
            half_day_type=half_day_type,
        )

        leave_type = _parse_leave_type(update.leave_type or leave.leave_type)
        # Move the pending debit: release it on the old row, take it on the new one.
        postings = (
            self._posting(leave, -delta_for(LedgerTransition.CREATE, leave.total_days)),
            LedgerPosting(
                user_id=leave.user_id,
                year=start_date.year,
                leave_type=leave_type,
                delta=delta_for(LedgerTransition.CREATE, total_days),
            ),
        )
        write = self._leaves.update_leave(
            request_id=leave.request_id,
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            is_half_day=is_half_day,
            half_day_type=half_day_type,
            reason=reason,
            notes=clean_optional(update.notes) if update.notes is not None else leave.notes,
            total_days=total_days,
            postings=postings,
        )
        if write is None:
            raise ValidationError("Only pending leave requests can be updated", ErrorKind.INVALID_STATE_TRANSITION)
        return self._check_balances(write)

    @returns_result
    def cancel_leave(self, *, current_role: Role, user_id: int, request_id: int) -> LeaveRequest:
        leave = self._get_leave(request_id)
        if leave.user_id != int(user_id) and current_role not in ADMIN_ROLES:
            raise AuthorizationError("You can only cancel your own leave requests")

        target = ensure_transition(leave.status, LedgerTransition.CANCEL)
        write = self._leaves.set_leave_status(
            request_id=leave.request_id,
            from_status=leave.status,
            to_status=target,
            postings=(self._posting(leave, delta_for(LedgerTransition.CANCEL, leave.total_days)),),
        )
        if write is None:
            raise ValidationError("Only pending leave requests can be cancelled", ErrorKind.INVALID_STATE_TRANSITION)
        return self._check_balances(write)

    @returns_result
    def decide_leave(
        self,
        *,
        current_role: Role,
        approver_id: int,
        request_id: int,
        action: LeaveAction,
        rejection_reason: Optional[str] = None,
        now: datetime | None = None,
    ):
        try:
            action = LeaveAction(action)
        except ValueError:
            raise ValidationError(
                "Action must be approve, reject or unapprove", ErrorKind.INVALID_LEAVE_INPUT
            ) from None

        allowed = ADMIN_ROLES if action is LeaveAction.UNAPPROVE else LEAVE_APPROVER_ROLES
        if current_role not in allowed:
            raise AuthorizationError(f"You do not have permission to {action.value} leave requests")

        leave = self._get_leave(request_id)
        transition = transition_for(action)
        target = ensure_transition(leave.status, transition)

        reason = clean_optional(rejection_reason)
        if action is LeaveAction.REJECT and not reason:
            raise ValidationError("Rejection reason is required", ErrorKind.MISSING_REASON)

        postings = (self._posting(leave, delta_for(transition, leave.total_days)),)
        if action is LeaveAction.UNAPPROVE:
            write = self._leaves.set_leave_status(
                request_id=leave.request_id,
                from_status=leave.status,
                to_status=target,
                postings=postings,
            )
        else:
            write = self._leaves.set_leave_status(
                request_id=leave.request_id,
                from_status=leave.status,
                to_status=target,
                approved_by_id=int(approver_id),
                approved_at=now or self._clock(),
                rejection_reason=reason if action is LeaveAction.REJECT else None,
                postings=postings,
            )
        if write is None:
            raise ValidationError(
                "Leave request changed while it was being processed", ErrorKind.INVALID_STATE_TRANSITION
            )
        updated = self._check_balances(write)

        if action is LeaveAction.UNAPPROVE:
            return Ok(updated)

        approved = action is LeaveAction.APPROVE
        event = NotifyEvent(
            user_ids=(leave.user_id,),
            title=f"Your leave request has been {'approved' if approved else 'rejected'}",
            body=(
                f"{leave.leave_type.value} leave for {format_days(leave.total_days)}"
                if approved
                else reason or "Your leave request was rejected"
            ),
            category=NotificationCategory.LEAVE,
            entity_type="LEAVE",
            entity_id=leave.request_id,
            data={
                "type": "LEAVE_APPROVED" if approved else "LEAVE_REJECTED",
                "leave_id": leave.request_id,
                "leave_type": leave.leave_type.value,
                "total_days": leave.total_days,
                "rejection_reason": None if approved else reason,
            },
        )
        return Ok(updated, (event,))

    def approve_leave(self, *, current_role: Role, approver_id: int, request_id: int):
        return self.decide_leave(
            current_role=current_role, approver_id=approver_id, request_id=request_id, action=LeaveAction.APPROVE
        )

    def reject_leave(self, *, current_role: Role, approver_id: int, request_id: int, rejection_reason: Optional[str]):
        return self.decide_leave(
            current_role=current_role,
            approver_id=approver_id,
            request_id=request_id,
            action=LeaveAction.REJECT,
            rejection_reason=rejection_reason,
        )

    def unapprove_leave(self, *, current_role: Role, approver_id: int, request_id: int):
        return self.decide_leave(
            current_role=current_role, approver_id=approver_id, request_id=request_id, action=LeaveAction.UNAPPROVE
        )

    def list_my_leaves(self, *, user_id: int, limit: int = DEFAULT_LIST_LIMIT) -> Sequence[LeaveRequest]:
        return self._leaves.list_leaves(user_id=int(user_id), limit=limit)

    def list_pending(self, *, limit: int = DEFAULT_LIST_LIMIT) -> Sequence[LeaveRequest]:
        return self._leaves.list_leaves(status=LeaveStatus.PENDING, limit=limit)

    def get_balances(self, *, user_id: int, year: int) -> Sequence[LeaveBalance]:
        return self._leaves.list_balances(user_id=int(user_id), year=int(year))
