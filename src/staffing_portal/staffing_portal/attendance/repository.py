from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus, Role, WorkLocation
from .model import AttendanceExportRow, AttendanceLocation, AttendanceSession, GeoPoint, SessionClose


class AttendanceRepository(Protocol):
    def get_session(self, session_id: int) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def find_active_session(self, user_id: int, civil_day: datetime) -> Optional[AttendanceSession]:
        """Most recent session of ``user_id`` on ``civil_day`` with no check-out."""

        raise NotImplementedError

    def list_sessions_for_day(self, user_id: int, civil_day: datetime) -> Sequence[AttendanceSession]:
        raise NotImplementedError

    def list_active_sessions_for_day(self, civil_day: datetime, roles: Iterable[Role]) -> Sequence[AttendanceSession]:
        """Open sessions on ``civil_day`` whose owners are active and hold one of ``roles``."""

        raise NotImplementedError

    def get_recent_for_user(self, user_id: int, limit: int) -> Sequence[AttendanceSession]:
        raise NotImplementedError

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
        raise NotImplementedError

    def close_session(self, session_id: int, close: SessionClose) -> Optional[AttendanceSession]:
        """Conditional close: only applies while ``check_out_time IS NULL``.

        Returns the updated session, or ``None`` when another writer closed it first.
        """

        raise NotImplementedError

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
        raise NotImplementedError

    def latest_location(self, session_id: int) -> Optional[AttendanceLocation]:
        raise NotImplementedError

    def get_export_rows(
        self,
        *,
        start: datetime,
        end: datetime,
        user_id: Optional[int] = None,
    ) -> Sequence[AttendanceExportRow]:
        """Sessions whose ``civil_day`` lies in [start, end], joined with the owner."""

        raise NotImplementedError
