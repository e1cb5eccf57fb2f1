"""Leave request state machine and its effect on the balance ledger.

    transition              pending   used    balance
    create     (-> PENDING)  +days     .       -days
    approve    (-> APPROVED) -days    +days     .
    reject     (-> REJECTED) -days     .       +days
    cancel     (-> CANCELLED)-days     .       +days
    unapprove  (-> PENDING)  +days    -days     .
"""

from __future__ import annotations

from enum import Enum

from ..core.enums import ErrorKind, LeaveAction, LeaveStatus
from ..core.exceptions import ValidationError
from .model import LedgerDelta


class LedgerTransition(str, Enum):
    CREATE = "CREATE"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    CANCEL = "CANCEL"
    UNAPPROVE = "UNAPPROVE"


# (required source status, target status); CREATE has no source.
_TRANSITIONS: dict[LedgerTransition, tuple[LeaveStatus | None, LeaveStatus]] = {
    LedgerTransition.CREATE: (None, LeaveStatus.PENDING),
    LedgerTransition.APPROVE: (LeaveStatus.PENDING, LeaveStatus.APPROVED),
    LedgerTransition.REJECT: (LeaveStatus.PENDING, LeaveStatus.REJECTED),
    LedgerTransition.CANCEL: (LeaveStatus.PENDING, LeaveStatus.CANCELLED),
    LedgerTransition.UNAPPROVE: (LeaveStatus.APPROVED, LeaveStatus.PENDING),
}

_ACTIONS = {
    LeaveAction.APPROVE: LedgerTransition.APPROVE,
    LeaveAction.REJECT: LedgerTransition.REJECT,
    LeaveAction.UNAPPROVE: LedgerTransition.UNAPPROVE,
}


def delta_for(transition: LedgerTransition, days: float) -> LedgerDelta:
    days = float(days)
    if transition is LedgerTransition.CREATE:
        return LedgerDelta(pending_delta=days, balance_delta=-days)
    if transition is LedgerTransition.APPROVE:
        return LedgerDelta(pending_delta=-days, used_delta=days)
    if transition in (LedgerTransition.REJECT, LedgerTransition.CANCEL):
        return LedgerDelta(pending_delta=-days, balance_delta=days)
    if transition is LedgerTransition.UNAPPROVE:
        return LedgerDelta(pending_delta=days, used_delta=-days)
    raise ValueError(f"Unknown ledger transition: {transition!r}")


def transition_for(action: LeaveAction) -> LedgerTransition:
    return _ACTIONS[LeaveAction(action)]


_PAST_TENSE = {
    LedgerTransition.APPROVE: "approved",
    LedgerTransition.REJECT: "rejected",
    LedgerTransition.CANCEL: "cancelled",
    LedgerTransition.UNAPPROVE: "unapproved",
}


def ensure_transition(current: LeaveStatus, transition: LedgerTransition) -> LeaveStatus:
    """Return the target status, or raise if ``current`` is not the required source."""
    required, target = _TRANSITIONS[transition]
    if required is None:
        raise ValueError(f"{transition.value} has no source status")
    if current != required:
        raise ValidationError(
            f"Only {required.value.lower()} leave requests can be {_PAST_TENSE[transition]}",
            ErrorKind.INVALID_STATE_TRANSITION,
        )
    return target
