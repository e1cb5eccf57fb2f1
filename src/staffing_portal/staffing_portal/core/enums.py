from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for access decisions."""

    PLATFORM_ADMIN = "PLATFORM_ADMIN"
    ADMIN = "ADMIN"
    FINANCE = "FINANCE"
    STAFF = "STAFF"


# Roles that track attendance and request leave.
ATTENDANCE_ROLES = frozenset({Role.STAFF, Role.FINANCE})
# Roles that receive operational notifications.
ADMIN_ROLES = frozenset({Role.PLATFORM_ADMIN, Role.ADMIN})
# Roles allowed to approve or reject leave.
LEAVE_APPROVER_ROLES = frozenset({Role.PLATFORM_ADMIN, Role.ADMIN, Role.FINANCE})


class WorkLocation(str, Enum):
    OFFICE = "OFFICE"
    SITE = "SITE"


class AttendanceStatus(str, Enum):
    """Session status stored in the database."""

    ON_TIME = "ON_TIME"
    LATE = "LATE"
    ABSENT = "ABSENT"
    HALF_DAY = "HALF_DAY"
    AUTO_CHECKED_OUT = "AUTO_CHECKED_OUT"


class AttendanceFlag(str, Enum):
    MISSING_LOCATION_CHECKS = "MISSING_LOCATION_CHECKS"
    LOCATION_OUT_OF_BOUNDS = "LOCATION_OUT_OF_BOUNDS"
    AUTO_CHECKED_OUT = "AUTO_CHECKED_OUT"
    INCOMPLETE_SESSION = "INCOMPLETE_SESSION"


class LeaveType(str, Enum):
    ANNUAL = "ANNUAL"
    SICK = "SICK"
    CASUAL = "CASUAL"
    PERSONAL = "PERSONAL"
    EMERGENCY = "EMERGENCY"
    UNPAID = "UNPAID"
    MATERNITY = "MATERNITY"
    PATERNITY = "PATERNITY"
    COMPENSATORY = "COMPENSATORY"


class LeaveStatus(str, Enum):
    """Approval workflow state of a leave request."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class HalfDayType(str, Enum):
    FIRST_HALF = "FIRST_HALF"
    SECOND_HALF = "SECOND_HALF"


class LeaveAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    UNAPPROVE = "unapprove"


class NotificationCategory(str, Enum):
    ATTENDANCE = "ATTENDANCE"
    LEAVE = "LEAVE"


class ErrorKind(str, Enum):
    """Failure kinds returned to callers; the HTTP layer maps them to status codes."""

    MISSING_LOCATION = "MissingLocation"
    INVALID_WORK_LOCATION = "InvalidWorkLocation"
    MISSING_LATE_REASON = "MissingLateReason"
    SESSION_NOT_ACTIVE = "SessionNotActive"
    NO_ACTIVE_SESSION = "NoActiveSession"
    ACTIVE_SESSION_EXISTS = "ActiveSessionExists"
    CHECK_IN_LOCATION_MISSING = "CheckInLocationMissing"
    OUT_OF_RADIUS = "OutOfRadius"
    INVALID_RANGE = "InvalidRange"
    INVALID_HALF_DAY = "InvalidHalfDay"
    INVALID_STATE_TRANSITION = "InvalidStateTransition"
    INVALID_LEAVE_INPUT = "InvalidLeaveInput"
    MISSING_REASON = "MissingReason"
    LEAVE_NOT_FOUND = "LeaveNotFound"
    HOLIDAY_LOOKUP_FAILURE = "HolidayLookupFailure"
    FORBIDDEN = "Forbidden"
