from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..core.enums import AttendanceFlag, AttendanceStatus, WorkLocation


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float
    address: Optional[str] = None


@dataclass(frozen=True)
class AttendanceSession:
    """Domain entity: one check-in/check-out session.

    ``civil_day`` is the UTC instant of civil midnight for the day the session
    was opened on; ``check_out_time`` stays ``None`` while the session is active.
    """

    session_id: int
    user_id: int
    civil_day: datetime
    work_location: WorkLocation
    status: AttendanceStatus
    check_in_time: datetime
    expected_check_in_time: Optional[datetime]
    is_late: bool
    late_minutes: Optional[int]
    late_reason: Optional[str]
    check_in_location: Optional[GeoPoint]
    check_in_notes: Optional[str] = None
    check_out_time: Optional[datetime] = None
    check_out_location: Optional[GeoPoint] = None
    check_out_notes: Optional[str] = None
    total_hours: Optional[float] = None
    auto_checked_out: bool = False
    flags: frozenset[AttendanceFlag] = field(default_factory=frozenset)

    @property
    def is_active(self) -> bool:
        return self.check_out_time is None


@dataclass(frozen=True)
class AttendanceLocation:
    """Location ping recorded while a session is active. Never updated."""

    location_id: int
    session_id: int
    timestamp: datetime
    latitude: float
    longitude: float
    address: Optional[str] = None
    accuracy: Optional[float] = None

    def as_point(self) -> GeoPoint:
        return GeoPoint(latitude=self.latitude, longitude=self.longitude, address=self.address)


@dataclass(frozen=True)
class SessionClose:
    """Fields written when a session is closed (manually or by the sweep)."""

    check_out_time: datetime
    check_out_location: Optional[GeoPoint]
    total_hours: float
    check_out_notes: Optional[str] = None
    status: Optional[AttendanceStatus] = None
    auto_checked_out: bool = False
    flags: frozenset[AttendanceFlag] = field(default_factory=frozenset)


@dataclass(frozen=True)
class SweepOutcome:
    session_id: int
    user_id: int
    success: bool
    error: Optional[str] = None


@dataclass(frozen=True)
class SweepReport:
    processed: int
    results: tuple[SweepOutcome, ...]

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)


@dataclass(frozen=True)
class CurrentAttendance:
    """Read-model for the attendance widget: today's state for one user."""

    active_session: Optional[AttendanceSession]
    latest_location: Optional[AttendanceLocation]
    today_sessions: tuple[AttendanceSession, ...]

    @property
    def has_active_session(self) -> bool:
        return self.active_session is not None


@dataclass(frozen=True)
class AttendanceExportRow:
    """Read-model for CSV export (session joined with its owner)."""

    session: AttendanceSession
    user_name: Optional[str]
    user_email: str
