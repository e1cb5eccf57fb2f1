from __future__ import annotations

from datetime import date, timedelta
from typing import AbstractSet

from ..core.constants import HALF_DAY_LENGTH

SATURDAY = 5  # date.weekday()


def count_working_days(start: date, end: date, holidays: AbstractSet[str], *, is_half_day: bool = False) -> float:
    """Leave days charged for [start, end].

    Half-day requests always cost 0.5. Otherwise every calendar day counts
    except Saturdays and dates whose ISO string is in ``holidays``.
    """

    if is_half_day:
        return HALF_DAY_LENGTH

    days = 0
    current = start
    while current <= end:
        if current.weekday() != SATURDAY and current.isoformat() not in holidays:
            days += 1
        current += timedelta(days=1)
    return float(days)
