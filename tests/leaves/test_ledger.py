import pytest

from src.staffing_portal.staffing_portal.core.enums import ErrorKind, LeaveAction, LeaveStatus, LeaveType
from src.staffing_portal.staffing_portal.core.exceptions import ValidationError
from src.staffing_portal.staffing_portal.leaves.ledger import (
    LedgerTransition,
    delta_for,
    ensure_transition,
    transition_for,
)
from src.staffing_portal.staffing_portal.leaves.model import LeaveBalance, LedgerDelta


def _row(**kw) -> LeaveBalance:
    return LeaveBalance(user_id=1, year=2024, leave_type=LeaveType.ANNUAL, **kw)


def _run(row: LeaveBalance, *steps) -> LeaveBalance:
    for transition, days in steps:
        row = row.apply(delta_for(transition, days))
        assert row.is_consistent
    return row


@pytest.mark.parametrize(
    "transition, expected",
    [
        (LedgerTransition.CREATE, LedgerDelta(pending_delta=3, balance_delta=-3)),
        (LedgerTransition.APPROVE, LedgerDelta(pending_delta=-3, used_delta=3)),
        (LedgerTransition.REJECT, LedgerDelta(pending_delta=-3, balance_delta=3)),
        (LedgerTransition.CANCEL, LedgerDelta(pending_delta=-3, balance_delta=3)),
        (LedgerTransition.UNAPPROVE, LedgerDelta(pending_delta=3, used_delta=-3)),
    ],
)
def test_delta_table(transition, expected):
    assert delta_for(transition, 3) == expected


def test_create_then_approve():
    row = _run(_row(total_allocated=10, balance=10), (LedgerTransition.CREATE, 3), (LedgerTransition.APPROVE, 3))

    assert (row.total_pending, row.total_used, row.balance) == (0, 3, 7)


def test_create_then_reject_restores_row():
    row = _run(_row(total_allocated=10, balance=10), (LedgerTransition.CREATE, 3), (LedgerTransition.REJECT, 3))

    assert (row.total_pending, row.total_used, row.balance) == (0, 0, 10)


def test_half_day_on_fresh_row():
    row = _run(_row(), (LedgerTransition.CREATE, 0.5))

    assert (row.total_allocated, row.total_pending, row.total_used, row.balance) == (0, 0.5, 0, -0.5)


def test_approve_unapprove_cancel_cycle():
    row = _run(
        _row(total_allocated=12, balance=12),
        (LedgerTransition.CREATE, 2),
        (LedgerTransition.APPROVE, 2),
        (LedgerTransition.UNAPPROVE, 2),
        (LedgerTransition.CANCEL, 2),
    )

    assert (row.total_pending, row.total_used, row.balance) == (0, 0, 12)


def test_negated_delta_undoes_create():
    row = _row(total_allocated=5, balance=5)

    assert row.apply(delta_for(LedgerTransition.CREATE, 2)).apply(-delta_for(LedgerTransition.CREATE, 2)) == row


def test_actions_map_to_transitions():
    assert transition_for(LeaveAction.APPROVE) is LedgerTransition.APPROVE
    assert transition_for("reject") is LedgerTransition.REJECT
    assert transition_for(LeaveAction.UNAPPROVE) is LedgerTransition.UNAPPROVE


@pytest.mark.parametrize(
    "current, transition",
    [
        (LeaveStatus.APPROVED, LedgerTransition.APPROVE),
        (LeaveStatus.REJECTED, LedgerTransition.REJECT),
        (LeaveStatus.CANCELLED, LedgerTransition.CANCEL),
        (LeaveStatus.PENDING, LedgerTransition.UNAPPROVE),
        (LeaveStatus.REJECTED, LedgerTransition.UNAPPROVE),
    ],
)
def test_illegal_transitions_are_rejected(current, transition):
    with pytest.raises(ValidationError) as exc:
        ensure_transition(current, transition)

    assert exc.value.kind == ErrorKind.INVALID_STATE_TRANSITION


def test_legal_transition_returns_target():
    assert ensure_transition(LeaveStatus.PENDING, LedgerTransition.CANCEL) == LeaveStatus.CANCELLED
    assert ensure_transition(LeaveStatus.APPROVED, LedgerTransition.UNAPPROVE) == LeaveStatus.PENDING


def test_inconsistent_row_is_detected():
    assert not _row(total_allocated=10, total_used=2, balance=10).is_consistent
