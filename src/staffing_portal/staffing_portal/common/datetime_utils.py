"""Civil time helpers.

Instants are stored and passed around as timezone-aware UTC datetimes. Every
"today", "expected check-in" and "is late" decision goes through the fixed
UTC+05:45 civil calendar defined here, whatever the server timezone is.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

from ..core.constants import CIVIL_UTC_OFFSET_MINUTES, EXPECTED_CHECK_IN_HOUR, EXPECTED_CHECK_OUT_HOUR

CIVIL_TZ = timezone(timedelta(minutes=CIVIL_UTC_OFFSET_MINUTES), name="UTC+05:45")


@dataclass(frozen=True)
class CivilParts:
    year: int
    month: int
    day: int
    hour: int
    minute: int
    second: int

    def as_tuple(self) -> tuple[int, int, int, int, int, int]:
        return (self.year, self.month, self.day, self.hour, self.minute, self.second)


def as_utc(instant: datetime) -> datetime:
    """Normalize to an aware UTC datetime. Naive values are taken as UTC."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def civil_parts_of(instant: datetime) -> CivilParts:
    local = as_utc(instant).astimezone(CIVIL_TZ)
    return CivilParts(
        year=local.year,
        month=local.month,
        day=local.day,
        hour=local.hour,
        minute=local.minute,
        second=local.second,
    )


def instant_from_civil(
    year: int,
    month: int,
    day: int,
    hour: int = 0,
    minute: int = 0,
    second: int = 0,
) -> datetime:
    """UTC instant for the given civil wall-clock time."""
    return datetime(year, month, day, hour, minute, second, tzinfo=CIVIL_TZ).astimezone(timezone.utc)


def civil_date_of(instant: datetime) -> date:
    p = civil_parts_of(instant)
    return date(p.year, p.month, p.day)


def today_civil_midnight(now: datetime) -> datetime:
    """Day-partition key for attendance sessions."""
    p = civil_parts_of(now)
    return instant_from_civil(p.year, p.month, p.day)


def expected_check_in_instant(now: datetime) -> datetime:
    p = civil_parts_of(now)
    return instant_from_civil(p.year, p.month, p.day, EXPECTED_CHECK_IN_HOUR)


def expected_check_out_instant(now: datetime) -> datetime:
    p = civil_parts_of(now)
    return instant_from_civil(p.year, p.month, p.day, EXPECTED_CHECK_OUT_HOUR)


def is_late(now: datetime) -> bool:
    """Late from civil 10:01 onwards.

    Seconds are ignored on purpose: 10:00:30 is still on time.
    """
    p = civil_parts_of(now)
    return p.hour > EXPECTED_CHECK_IN_HOUR or (p.hour == EXPECTED_CHECK_IN_HOUR and p.minute >= 1)


def now_utc() -> datetime:
    """Current instant.

    Note: Wrapped so tests can patch/mock easier.
    """
    return datetime.now(timezone.utc)


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def format_civil_date(instant: datetime) -> str:
    return as_utc(instant).astimezone(CIVIL_TZ).strftime("%Y-%m-%d")


def format_civil_datetime(instant: datetime) -> str:
    return as_utc(instant).astimezone(CIVIL_TZ).strftime("%Y-%m-%d %I:%M:%S %p")
