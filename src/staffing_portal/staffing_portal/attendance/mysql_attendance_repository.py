from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Sequence

from mysql.connector import errorcode
from mysql.connector.errors import IntegrityError

from ..core.enums import AttendanceFlag, AttendanceStatus, Role, WorkLocation
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_instant, optional_float, to_db_instant
from .model import AttendanceExportRow, AttendanceLocation, AttendanceSession, GeoPoint, SessionClose
from .repository import AttendanceRepository

_SESSION_COLUMNS = """
    s.session_id, s.user_id, s.civil_day, s.work_location, s.status, s.flags,
    s.check_in_time, s.expected_check_in_time, s.is_late, s.late_minutes, s.late_reason,
    s.check_in_lat, s.check_in_lng, s.check_in_address, s.check_in_notes,
    s.check_out_time, s.check_out_lat, s.check_out_lng, s.check_out_address, s.check_out_notes,
    s.total_hours, s.auto_checked_out
"""


def _point(lat: Any, lng: Any, address: Optional[str]) -> Optional[GeoPoint]:
    if lat is None or lng is None:
        return None
    return GeoPoint(latitude=float(lat), longitude=float(lng), address=address)


def _flags(raw: Optional[str]) -> frozenset[AttendanceFlag]:
    return frozenset(AttendanceFlag(f) for f in (raw or "").split(",") if f)


def _row_to_session(r: Dict[str, Any]) -> AttendanceSession:
    return AttendanceSession(
        session_id=int(r["session_id"]),
        user_id=int(r["user_id"]),
        civil_day=from_db_instant(r["civil_day"]),
        work_location=WorkLocation(r["work_location"]),
        status=AttendanceStatus(r["status"]),
        check_in_time=from_db_instant(r["check_in_time"]),
        expected_check_in_time=from_db_instant(r.get("expected_check_in_time")),
        is_late=bool(r.get("is_late")),
        late_minutes=int(r["late_minutes"]) if r.get("late_minutes") is not None else None,
        late_reason=r.get("late_reason"),
        check_in_location=_point(r.get("check_in_lat"), r.get("check_in_lng"), r.get("check_in_address")),
        check_in_notes=r.get("check_in_notes"),
        check_out_time=from_db_instant(r.get("check_out_time")),
        check_out_location=_point(r.get("check_out_lat"), r.get("check_out_lng"), r.get("check_out_address")),
        check_out_notes=r.get("check_out_notes"),
        total_hours=optional_float(r.get("total_hours")),
        auto_checked_out=bool(r.get("auto_checked_out")),
        flags=_flags(r.get("flags")),
    )


def _row_to_location(r: Dict[str, Any]) -> AttendanceLocation:
    return AttendanceLocation(
        location_id=int(r["location_id"]),
        session_id=int(r["session_id"]),
        timestamp=from_db_instant(r["timestamp"]),
        latitude=float(r["latitude"]),
        longitude=float(r["longitude"]),
        address=r.get("address"),
        accuracy=optional_float(r.get("accuracy")),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _fetch_session(self, cur, session_id: int) -> Optional[AttendanceSession]:
        cur.execute(f"SELECT {_SESSION_COLUMNS} FROM attendance_sessions s WHERE s.session_id=%s", (int(session_id),))
        r = fetchone(cur)
        return _row_to_session(r) if r else None

    def get_session(self, session_id: int) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._fetch_session(cur, session_id)

    def find_active_session(self, user_id: int, civil_day: datetime) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SESSION_COLUMNS}
                FROM attendance_sessions s
                WHERE s.user_id=%s AND s.civil_day=%s AND s.check_out_time IS NULL
                ORDER BY s.check_in_time DESC
                LIMIT 1
                """,
                (int(user_id), to_db_instant(civil_day)),
            )
            r = fetchone(cur)
            return _row_to_session(r) if r else None

    def list_sessions_for_day(self, user_id: int, civil_day: datetime) -> Sequence[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SESSION_COLUMNS}
                FROM attendance_sessions s
                WHERE s.user_id=%s AND s.civil_day=%s
                ORDER BY s.check_in_time DESC
                """,
                (int(user_id), to_db_instant(civil_day)),
            )
            return [_row_to_session(r) for r in fetchall(cur)]

    def list_active_sessions_for_day(self, civil_day: datetime, roles: Iterable[Role]) -> Sequence[AttendanceSession]:
        values = [Role(r).value for r in roles]
        if not values:
            return []
        placeholders = ",".join(["%s"] * len(values))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SESSION_COLUMNS}
                FROM attendance_sessions s
                JOIN users u ON u.user_id = s.user_id
                WHERE s.civil_day=%s
                  AND s.check_out_time IS NULL
                  AND u.is_active=1
                  AND u.role IN ({placeholders})
                ORDER BY s.check_in_time ASC
                """,
                tuple([to_db_instant(civil_day)] + values),
            )
            return [_row_to_session(r) for r in fetchall(cur)]

    def get_recent_for_user(self, user_id: int, limit: int) -> Sequence[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SESSION_COLUMNS}
                FROM attendance_sessions s
                WHERE s.user_id=%s
                ORDER BY s.check_in_time DESC
                LIMIT %s
                """,
                (int(user_id), int(limit)),
            )
            return [_row_to_session(r) for r in fetchall(cur)]

    def create_session(
        self,
        *,
        user_id: int,
        civil_day: datetime,
        work_location: WorkLocation,
        status: AttendanceStatus,
        check_in_time: datetime,
        expected_check_in_time: datetime,
        is_late: bool,
        late_minutes: Optional[int],
        late_reason: Optional[str],
        check_in_location: GeoPoint,
        check_in_notes: Optional[str] = None,
    ) -> AttendanceSession:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_sessions(
                        user_id, civil_day, work_location, status, flags,
                        check_in_time, expected_check_in_time, is_late, late_minutes, late_reason,
                        check_in_lat, check_in_lng, check_in_address, check_in_notes
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(user_id),
                        to_db_instant(civil_day),
                        work_location.value,
                        status.value,
                        "",
                        to_db_instant(check_in_time),
                        to_db_instant(expected_check_in_time),
                        1 if is_late else 0,
                        late_minutes,
                        late_reason,
                        check_in_location.latitude,
                        check_in_location.longitude,
                        check_in_location.address,
                        check_in_notes,
                    ),
                )
                session = self._fetch_session(cur, int(cur.lastrowid))
        except IntegrityError as e:
            # uq_sessions_one_open_per_day: a concurrent check-in got there first.
            if e.errno == errorcode.ER_DUP_ENTRY:
                raise ConflictError(
                    "You already have an active check-in session today. Check out before checking in again."
                ) from e
            raise
        assert session is not None
        return session

    def close_session(self, session_id: int, close: SessionClose) -> Optional[AttendanceSession]:
        loc = close.check_out_location
        assignments = [
            "check_out_time=%s",
            "check_out_lat=%s",
            "check_out_lng=%s",
            "check_out_address=%s",
            "check_out_notes=%s",
            "total_hours=%s",
            "auto_checked_out=%s",
        ]
        params: list[object] = [
            to_db_instant(close.check_out_time),
            loc.latitude if loc else None,
            loc.longitude if loc else None,
            loc.address if loc else None,
            close.check_out_notes,
            float(close.total_hours),
            1 if close.auto_checked_out else 0,
        ]
        if close.status is not None:
            assignments.append("status=%s")
            params.append(close.status.value)
        if close.flags:
            assignments.append("flags=%s")
            params.append(",".join(sorted(f.value for f in close.flags)))

        with db_cursor(self._conn_factory) as (_, cur):
            # Guarded write: at most one closer wins.
            cur.execute(
                f"""
                UPDATE attendance_sessions
                SET {", ".join(assignments)}
                WHERE session_id=%s AND check_out_time IS NULL
                """,
                tuple(params + [int(session_id)]),
            )
            if cur.rowcount <= 0:
                return None
            return self._fetch_session(cur, session_id)

    def append_location(
        self,
        *,
        session_id: int,
        timestamp: datetime,
        latitude: float,
        longitude: float,
        address: Optional[str] = None,
        accuracy: Optional[float] = None,
    ) -> AttendanceLocation:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_locations(session_id, timestamp, latitude, longitude, address, accuracy)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(session_id), to_db_instant(timestamp), float(latitude), float(longitude), address, accuracy),
            )
            return AttendanceLocation(
                location_id=int(cur.lastrowid),
                session_id=int(session_id),
                timestamp=from_db_instant(to_db_instant(timestamp)),
                latitude=float(latitude),
                longitude=float(longitude),
                address=address,
                accuracy=accuracy,
            )

    def latest_location(self, session_id: int) -> Optional[AttendanceLocation]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT location_id, session_id, timestamp, latitude, longitude, address, accuracy
                FROM attendance_locations
                WHERE session_id=%s
                ORDER BY timestamp DESC, location_id DESC
                LIMIT 1
                """,
                (int(session_id),),
            )
            r = fetchone(cur)
            return _row_to_location(r) if r else None

    def get_export_rows(
        self,
        *,
        start: datetime,
        end: datetime,
        user_id: Optional[int] = None,
    ) -> Sequence[AttendanceExportRow]:
        clauses = ["s.civil_day BETWEEN %s AND %s"]
        params: list[object] = [to_db_instant(start), to_db_instant(end)]

        if user_id is not None:
            clauses.append("s.user_id=%s")
            params.append(int(user_id))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SESSION_COLUMNS}, u.name AS user_name, u.email AS user_email
                FROM attendance_sessions s
                JOIN users u ON u.user_id = s.user_id
                WHERE {where}
                ORDER BY s.check_in_time DESC
                """,
                tuple(params),
            )
            return [
                AttendanceExportRow(
                    session=_row_to_session(r),
                    user_name=r.get("user_name"),
                    user_email=r["user_email"],
                )
                for r in fetchall(cur)
            ]
