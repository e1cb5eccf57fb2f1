from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import as_utc, expected_check_in_instant, now_utc, today_civil_midnight
from ..common.validators import clean_optional, require_location
from ..core.constants import CHECKOUT_RADIUS_METERS, DEFAULT_HISTORY_LIMIT
from ..core.enums import ADMIN_ROLES, ATTENDANCE_ROLES, ErrorKind, NotificationCategory, WorkLocation
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..core.result import Ok, returns_result
from ..notifications.effects import build_effects
from ..notifications.model import NotifyEvent
from ..users.repository import UserRepository
from .factory import AttendanceStrategyFactory
from .geofence import distance_between, is_within_radius
from .model import (
    AttendanceLocation,
    AttendanceSession,
    CurrentAttendance,
    GeoPoint,
    SessionClose,
    SweepOutcome,
    SweepReport,
)
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def _plural(n: int, unit: str) -> str:
    return f"{n} {unit}{'s' if n > 1 else ''}"


def format_late_text(late_minutes: Optional[int]) -> str:
    """`` (1 hour 5 minutes late)`` suffix for the check-in notification."""
    if not late_minutes:
        return ""
    hours, minutes = divmod(int(late_minutes), 60)
    if hours > 0 and minutes > 0:
        return f" ({_plural(hours, 'hour')} {_plural(minutes, 'minute')} late)"
    if hours > 0:
        return f" ({_plural(hours, 'hour')} late)"
    return f" ({_plural(minutes, 'minute')} late)"


def _parse_work_location(value) -> WorkLocation:
    try:
        return WorkLocation(value)
    except ValueError:
        raise ValidationError("Work location must be OFFICE or SITE", ErrorKind.INVALID_WORK_LOCATION)


def _hours_between(start: datetime, end: datetime) -> float:
    return (as_utc(end) - as_utc(start)).total_seconds() / 3600


class AttendanceService:
    """Attendance session lifecycle: NoSession -> Active -> Closed, per user and civil day."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        *,
        strategy_factory: AttendanceStrategyFactory | None = None,
        clock: Callable[[], datetime] = now_utc,
        checkout_radius_m: float = CHECKOUT_RADIUS_METERS,
    ):
        self._attendance = attendance
        self._users = users
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._clock = clock
        self._radius_m = float(checkout_radius_m)

    def _now(self, now: datetime | None) -> datetime:
        return as_utc(now or self._clock())

    def _admin_ids(self) -> tuple[int, ...]:
        return tuple(self._users.list_active_ids_by_roles(ADMIN_ROLES))

    def _display_name(self, user_id: int) -> str:
        user = self._users.get_by_id(user_id)
        return user.display_name if user else f"User #{user_id}"

    @returns_result
    def check_in(
        self,
        user_id: int,
        *,
        work_location,
        latitude: Optional[float],
        longitude: Optional[float],
        address: Optional[str] = None,
        notes: Optional[str] = None,
        late_reason: Optional[str] = None,
        now: datetime | None = None,
    ):
        lat, lng = require_location(latitude, longitude, action="check-in")
        location = _parse_work_location(work_location)

        now = self._now(now)
        civil_day = today_civil_midnight(now)
        expected = expected_check_in_instant(now)

        strategy = self._factory.for_checkin(now=now)
        decision = strategy.decide_checkin(now=now, expected=expected)

        reason = clean_optional(late_reason)
        if decision.is_late and not reason:
            raise ValidationError("Late reason is required when checking in late", ErrorKind.MISSING_LATE_REASON)

        if self._attendance.find_active_session(user_id, civil_day):
            raise ConflictError("You already have an active check-in session today. Check out before checking in again.")

        session = self._attendance.create_session(
            user_id=user_id,
            civil_day=civil_day,
            work_location=location,
            status=decision.status,
            check_in_time=now,
            expected_check_in_time=expected,
            is_late=decision.is_late,
            late_minutes=decision.late_minutes,
            late_reason=reason if decision.is_late else None,
            check_in_location=GeoPoint(latitude=lat, longitude=lng, address=clean_optional(address)),
            check_in_notes=clean_optional(notes),
        )
        self._attendance.append_location(
            session_id=session.session_id,
            timestamp=now,
            latitude=lat,
            longitude=lng,
            address=clean_optional(address),
        )

        return Ok(session, build_effects(lambda: self._checked_in_event(session)))

    def _checked_in_event(self, session: AttendanceSession) -> NotifyEvent:
        name = self._display_name(session.user_id)
        return NotifyEvent(
            user_ids=self._admin_ids(),
            title=f"{name} checked in",
            body=f"Work location: {session.work_location.value}{format_late_text(session.late_minutes)}",
            category=NotificationCategory.ATTENDANCE,
            entity_type="ATTENDANCE",
            entity_id=session.session_id,
            data={
                "type": "CHECK_IN",
                "user_id": session.user_id,
                "user_name": name,
                "work_location": session.work_location.value,
                "check_in_time": session.check_in_time.isoformat(),
                "is_late": session.is_late,
                "late_minutes": session.late_minutes,
            },
        )

    @returns_result
    def record_location(
        self,
        session_id: int,
        user_id: int,
        *,
        latitude: Optional[float],
        longitude: Optional[float],
        address: Optional[str] = None,
        accuracy: Optional[float] = None,
        now: datetime | None = None,
    ) -> AttendanceLocation:
        lat, lng = require_location(latitude, longitude, action="location tracking")

        session = self._attendance.get_session(session_id)
        if not session or session.user_id != user_id or not session.is_active:
            raise NotFoundError("Active session not found", ErrorKind.SESSION_NOT_ACTIVE)

        return self._attendance.append_location(
            session_id=session.session_id,
            timestamp=self._now(now),
            latitude=lat,
            longitude=lng,
            address=clean_optional(address),
            accuracy=float(accuracy) if accuracy else None,
        )

    @returns_result
    def check_out(
        self,
        user_id: int,
        *,
        latitude: Optional[float],
        longitude: Optional[float],
        address: Optional[str] = None,
        notes: Optional[str] = None,
        now: datetime | None = None,
    ):
        lat, lng = require_location(latitude, longitude, action="check-out")
        now = self._now(now)

        session = self._attendance.find_active_session(user_id, today_civil_midnight(now))
        if not session:
            raise NotFoundError("No active check-in session found")

        if session.check_in_location is None:
            raise ValidationError(
                "Check-in location is missing for this session, so the check-out location cannot be "
                "validated. Check-out is blocked for this session.",
                ErrorKind.CHECK_IN_LOCATION_MISSING,
            )

        check_out_point = GeoPoint(latitude=lat, longitude=lng, address=clean_optional(address))
        distance = distance_between(session.check_in_location, check_out_point)
        if not is_within_radius(distance, self._radius_m):
            radius = int(self._radius_m)
            raise ValidationError(
                f"Check-out location is {round(distance)} meters away from check-in location "
                f"(maximum allowed: {radius} meters). Check-out is only allowed within "
                f"{radius} meters of your check-in location.",
                ErrorKind.OUT_OF_RADIUS,
            )

        total_hours = _hours_between(session.check_in_time, now)
        decision = self._factory.for_checkout(session=session).decide_checkout(session=session)
        closed = self._attendance.close_session(
            session.session_id,
            SessionClose(
                check_out_time=now,
                check_out_location=check_out_point,
                total_hours=total_hours,
                check_out_notes=clean_optional(notes),
                status=decision.status,
            ),
        )
        if closed is None:
            raise NotFoundError("No active check-in session found")

        self._attendance.append_location(
            session_id=session.session_id,
            timestamp=now,
            latitude=lat,
            longitude=lng,
            address=check_out_point.address,
        )

        return Ok(closed, build_effects(lambda: self._checked_out_event(closed, admin_ids=self._admin_ids())))

    @returns_result
    def auto_checkout(self, *, as_of: datetime | None = None):
        """End-of-day sweep: force-close every still-open session of the civil day.

        Sessions are processed independently; a failure is recorded in the report
        and the sweep moves on. The check-out radius is not applied here.
        """

        now = self._now(as_of)
        sessions = self._attendance.list_active_sessions_for_day(today_civil_midnight(now), ATTENDANCE_ROLES)
        try:
            admin_ids = self._admin_ids()
        except Exception:
            logger.exception("Could not load admins to notify about auto-checkout")
            admin_ids = ()

        results: list[SweepOutcome] = []
        effects: list[NotifyEvent] = []
        for session in sessions:
            try:
                closed = self._auto_close(session, now=now)
            except Exception as e:
                logger.exception("Failed to auto-checkout session %s", session.session_id)
                results.append(
                    SweepOutcome(session_id=session.session_id, user_id=session.user_id, success=False, error=str(e))
                )
                continue
            results.append(SweepOutcome(session_id=session.session_id, user_id=session.user_id, success=True))
            effects.extend(build_effects(lambda: self._checked_out_event(closed, admin_ids=admin_ids)))

        report = SweepReport(processed=len(results), results=tuple(results))
        logger.info("Auto-checkout processed %d session(s), %d failed", report.processed, report.failed)
        return Ok(report, tuple(effects))

    def _auto_close(self, session: AttendanceSession, *, now: datetime) -> AttendanceSession:
        latest = self._attendance.latest_location(session.session_id)
        location = latest.as_point() if latest else session.check_in_location

        total_hours = _hours_between(session.check_in_time, now)
        decision = self._factory.for_checkout(session=session, auto=True).decide_checkout(session=session)
        closed = self._attendance.close_session(
            session.session_id,
            SessionClose(
                check_out_time=now,
                check_out_location=location,
                total_hours=total_hours,
                status=decision.status,
                auto_checked_out=decision.auto_checked_out,
                flags=decision.flags,
            ),
        )
        if closed is None:
            raise ConflictError(f"Session {session.session_id} was already closed")

        if location is not None:
            self._attendance.append_location(
                session_id=session.session_id,
                timestamp=now,
                latitude=location.latitude,
                longitude=location.longitude,
                address=location.address,
            )

        return closed

    def _checked_out_event(self, closed: AttendanceSession, *, admin_ids: tuple[int, ...]) -> NotifyEvent:
        name = self._display_name(closed.user_id)
        auto = closed.auto_checked_out
        return NotifyEvent(
            user_ids=admin_ids,
            title=f"{name} was auto-checked out" if auto else f"{name} checked out",
            body=f"Total hours: {closed.total_hours:.2f}",
            category=NotificationCategory.ATTENDANCE,
            entity_type="ATTENDANCE",
            entity_id=closed.session_id,
            data={
                "type": "AUTO_CHECK_OUT" if auto else "CHECK_OUT",
                "user_id": closed.user_id,
                "user_name": name,
                "check_out_time": closed.check_out_time.isoformat(),
                "total_hours": closed.total_hours,
            },
        )

    def get_current(self, user_id: int, *, now: datetime | None = None) -> CurrentAttendance:
        civil_day = today_civil_midnight(self._now(now))
        active = self._attendance.find_active_session(user_id, civil_day)
        latest = self._attendance.latest_location(active.session_id) if active else None
        return CurrentAttendance(
            active_session=active,
            latest_location=latest,
            today_sessions=tuple(self._attendance.list_sessions_for_day(user_id, civil_day)),
        )

    def get_history(self, user_id: int, *, limit: int = DEFAULT_HISTORY_LIMIT) -> Sequence[AttendanceSession]:
        return self._attendance.get_recent_for_user(user_id, int(limit))
