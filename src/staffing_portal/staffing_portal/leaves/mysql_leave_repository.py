from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Optional, Sequence

from ..core.enums import HalfDayType, LeaveStatus, LeaveType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_instant, to_db_instant
from .model import LeaveBalance, LeaveRequest, LeaveWrite, LedgerPosting
from .repository import LeaveRepository

_LEAVE_COLUMNS = """
    request_id, user_id, leave_type, status, start_date, end_date,
    is_half_day, half_day_type, reason, total_days, notes,
    approved_by_id, approved_at, rejection_reason, created_at
"""

_BALANCE_COLUMNS = "user_id, year, leave_type, total_allocated, total_used, total_pending, balance"


def _row_to_leave(r: Dict[str, Any]) -> LeaveRequest:
    return LeaveRequest(
        request_id=int(r["request_id"]),
        user_id=int(r["user_id"]),
        leave_type=LeaveType(r["leave_type"]),
        status=LeaveStatus(r["status"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        is_half_day=bool(r.get("is_half_day")),
        half_day_type=HalfDayType(r["half_day_type"]) if r.get("half_day_type") else None,
        reason=r["reason"],
        total_days=float(r["total_days"]),
        notes=r.get("notes"),
        approved_by_id=int(r["approved_by_id"]) if r.get("approved_by_id") is not None else None,
        approved_at=from_db_instant(r.get("approved_at")),
        rejection_reason=r.get("rejection_reason"),
        created_at=from_db_instant(r.get("created_at")),
    )


def _row_to_balance(r: Dict[str, Any]) -> LeaveBalance:
    return LeaveBalance(
        user_id=int(r["user_id"]),
        year=int(r["year"]),
        leave_type=LeaveType(r["leave_type"]),
        total_allocated=float(r["total_allocated"]),
        total_used=float(r["total_used"]),
        total_pending=float(r["total_pending"]),
        balance=float(r["balance"]),
    )


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _fetch_leave(self, cur, request_id: int) -> Optional[LeaveRequest]:
        cur.execute(f"SELECT {_LEAVE_COLUMNS} FROM leave_requests WHERE request_id=%s", (int(request_id),))
        r = fetchone(cur)
        return _row_to_leave(r) if r else None

    def _post(self, cur, postings: Sequence[LedgerPosting]) -> tuple[LeaveBalance, ...]:
        balances = []
        for p in postings:
            key = (int(p.user_id), int(p.year), p.leave_type.value)
            # A missing row starts from zero; existing rows are incremented in place.
            cur.execute(
                """
                INSERT INTO leave_balances(
                    user_id, year, leave_type, total_allocated, total_used, total_pending, balance
                )
                VALUES(%s,%s,%s,0,%s,%s,%s) AS new
                ON DUPLICATE KEY UPDATE
                    total_used = leave_balances.total_used + new.total_used,
                    total_pending = leave_balances.total_pending + new.total_pending,
                    balance = leave_balances.balance + new.balance
                """,
                key + (float(p.delta.used_delta), float(p.delta.pending_delta), float(p.delta.balance_delta)),
            )
            cur.execute(
                f"SELECT {_BALANCE_COLUMNS} FROM leave_balances WHERE user_id=%s AND year=%s AND leave_type=%s",
                key,
            )
            balances.append(_row_to_balance(fetchone(cur)))
        return tuple(balances)

    # -------- Leave requests --------
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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(
                    user_id, leave_type, status, start_date, end_date,
                    is_half_day, half_day_type, reason, total_days, notes
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(user_id),
                    leave_type.value,
                    LeaveStatus.PENDING.value,
                    start_date,
                    end_date,
                    1 if is_half_day else 0,
                    half_day_type.value if half_day_type else None,
                    reason,
                    float(total_days),
                    notes,
                ),
            )
            leave = self._fetch_leave(cur, int(cur.lastrowid))
            assert leave is not None
            return LeaveWrite(leave=leave, balances=self._post(cur, postings))

    def get_leave(self, request_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._fetch_leave(cur, request_id)

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET leave_type=%s, start_date=%s, end_date=%s, is_half_day=%s, half_day_type=%s,
                    reason=%s, notes=%s, total_days=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    leave_type.value,
                    start_date,
                    end_date,
                    1 if is_half_day else 0,
                    half_day_type.value if half_day_type else None,
                    reason,
                    notes,
                    float(total_days),
                    int(request_id),
                    LeaveStatus.PENDING.value,
                ),
            )
            if cur.rowcount <= 0:
                return None
            balances = self._post(cur, postings)
            return LeaveWrite(leave=self._fetch_leave(cur, request_id), balances=balances)

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s, approved_by_id=%s, approved_at=%s, rejection_reason=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    to_status.value,
                    int(approved_by_id) if approved_by_id is not None else None,
                    to_db_instant(approved_at),
                    rejection_reason,
                    int(request_id),
                    from_status.value,
                ),
            )
            if cur.rowcount <= 0:
                return None
            balances = self._post(cur, postings)
            return LeaveWrite(leave=self._fetch_leave(cur, request_id), balances=balances)

    def list_leaves(
        self,
        *,
        status: Optional[LeaveStatus] = None,
        user_id: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[LeaveRequest]:
        clauses = ["1=1"]
        params: list[object] = []

        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if user_id is not None:
            clauses.append("user_id=%s")
            params.append(int(user_id))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_LEAVE_COLUMNS}
                FROM leave_requests
                WHERE {where}
                ORDER BY created_at DESC, request_id DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_row_to_leave(r) for r in fetchall(cur)]


    def get_balance(self, *, user_id: int, year: int, leave_type: LeaveType) -> Optional[LeaveBalance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_BALANCE_COLUMNS} FROM leave_balances WHERE user_id=%s AND year=%s AND leave_type=%s",
                (int(user_id), int(year), leave_type.value),
            )
            r = fetchone(cur)
            return _row_to_balance(r) if r else None

    def list_balances(self, *, user_id: int, year: int) -> Sequence[LeaveBalance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_BALANCE_COLUMNS}
                FROM leave_balances
                WHERE user_id=%s AND year=%s
                ORDER BY leave_type
                """,
                (int(user_id), int(year)),
            )
            return [_row_to_balance(r) for r in fetchall(cur)]
