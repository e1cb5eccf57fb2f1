from __future__ import annotations

from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from enum import Enum
from functools import wraps
from typing import Any, Iterable

from flask import jsonify, session

from .enums import ErrorKind, Role
from .result import Err

ERROR_STATUS: dict[ErrorKind, int] = {
    ErrorKind.MISSING_LOCATION: 400,
    ErrorKind.INVALID_WORK_LOCATION: 400,
    ErrorKind.MISSING_LATE_REASON: 400,
    ErrorKind.INVALID_RANGE: 400,
    ErrorKind.INVALID_HALF_DAY: 400,
    ErrorKind.INVALID_STATE_TRANSITION: 400,
    ErrorKind.MISSING_REASON: 400,
    ErrorKind.INVALID_LEAVE_INPUT: 400,
    ErrorKind.CHECK_IN_LOCATION_MISSING: 403,
    ErrorKind.OUT_OF_RADIUS: 403,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NO_ACTIVE_SESSION: 404,
    ErrorKind.SESSION_NOT_ACTIVE: 404,
    ErrorKind.LEAVE_NOT_FOUND: 404,
    ErrorKind.ACTIVE_SESSION_EXISTS: 409,
    ErrorKind.HOLIDAY_LOOKUP_FAILURE: 503,
}


def status_for(kind: ErrorKind) -> int:
    return ERROR_STATUS.get(ErrorKind(kind), 400)


def to_jsonable(value: Any) -> Any:
    """Dataclasses/enums/datetimes -> plain JSON types."""
    if is_dataclass(value) and not isinstance(value, type):
        return to_jsonable(asdict(value))
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (frozenset, set)):
        return sorted(to_jsonable(v) for v in value)
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def error_response(err: Err):
    return jsonify({"error": err.kind.value, "message": err.message}), status_for(err.kind)


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"error": "Unauthorized", "message": "Please sign in to continue"}), 401
        return view(*args, **kwargs)

    return wrapper


def roles_required(roles: Iterable[Role], message: str = "Forbidden"):
    allowed = {Role(r).value for r in roles}

    def decorator(view):
        @wraps(view)
        @login_required
        def wrapper(*args, **kwargs):
            if session.get("role") not in allowed:
                return jsonify({"error": ErrorKind.FORBIDDEN.value, "message": message}), 403
            return view(*args, **kwargs)

        return wrapper

    return decorator


def current_user_id() -> int:
    return int(session["user_id"])


def current_role() -> Role:
    return Role(session.get("role"))
