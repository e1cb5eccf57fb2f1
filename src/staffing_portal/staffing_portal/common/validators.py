from __future__ import annotations

from typing import Optional

from ..core.enums import ErrorKind
from ..core.exceptions import ValidationError


def require_non_empty(value: Optional[str], field_name: str, *, kind: ErrorKind = ErrorKind.INVALID_LEAVE_INPUT) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required", kind)
    return value.strip()


def require_min_length(
    value: Optional[str],
    field_name: str,
    min_len: int,
    *,
    kind: ErrorKind = ErrorKind.INVALID_LEAVE_INPUT,
) -> str:
    if value is None or len(value.strip()) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters", kind)
    return value.strip()


def require_location(latitude: Optional[float], longitude: Optional[float], *, action: str) -> tuple[float, float]:
    """Coordinates must be present and non-zero, the way clients report "no fix"."""
    if not latitude or not longitude:
        raise ValidationError(f"Location is required for {action}", ErrorKind.MISSING_LOCATION)
    return float(latitude), float(longitude)


def clean_optional(value: Optional[str]) -> Optional[str]:
    return (value or "").strip() or None
