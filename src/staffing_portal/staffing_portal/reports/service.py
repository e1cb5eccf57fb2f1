from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import (
    expected_check_out_instant,
    format_civil_date,
    format_civil_datetime,
    instant_from_civil,
)

EXPORT_FIELDS = [
    "employee_name",
    "employee_email",
    "date",
    "work_location",
    "status",
    "check_in",
    "check_out",
    "expected_check_out",
    "total_hours",
    "is_late",
    "late_minutes",
    "late_reason",
    "check_in_location",
    "check_out_location",
    "auto_checked_out",
]


def _plural(n: int, unit: str) -> str:
    return f"{n} {unit}{'s' if n > 1 else ''}"


def format_hours_worked(hours: float) -> str:
    """Human form of a fractional hour count, e.g. 8.5 -> "8 hours 30 minutes"."""
    whole = math.floor(hours)
    minutes = math.floor((hours - whole) * 60 + 0.5)
    if minutes == 60:
        whole, minutes = whole + 1, 0

    if whole > 0 and minutes > 0:
        return f"{_plural(whole, 'hour')} {_plural(minutes, 'minute')}"
    if whole > 0:
        return _plural(whole, "hour")
    if minutes > 0:
        return _plural(minutes, "minute")
    return "0 minutes"


@dataclass(frozen=True)
class ExportData:
    rows: list[dict]
    total_hours: float


class AttendanceExportService:
    def __init__(self, attendance: AttendanceRepository):
        self._attendance = attendance

    def build_export(self, *, start: date, end: date, user_id: Optional[int] = None) -> ExportData:
        """Sessions whose civil day falls in [start, end], newest first, in civil time."""

        query_rows = self._attendance.get_export_rows(
            start=instant_from_civil(start.year, start.month, start.day),
            end=instant_from_civil(end.year, end.month, end.day),
            user_id=user_id,
        )

        out_rows: list[dict] = []
        total = 0.0
        for r in query_rows:
            s = r.session
            total += s.total_hours or 0.0
            out_rows.append(
                {
                    "employee_name": r.user_name or "Unnamed user",
                    "employee_email": r.user_email,
                    "date": format_civil_date(s.civil_day),
                    "work_location": s.work_location.value,
                    "status": s.status.value,
                    "check_in": format_civil_datetime(s.check_in_time),
                    "check_out": format_civil_datetime(s.check_out_time) if s.check_out_time else "",
                    "expected_check_out": format_civil_datetime(expected_check_out_instant(s.check_in_time)),
                    "total_hours": format_hours_worked(s.total_hours) if s.total_hours else "",
                    "is_late": "Yes" if s.is_late else "No",
                    "late_minutes": str(s.late_minutes) if s.late_minutes else "",
                    "late_reason": s.late_reason or "",
                    "check_in_location": (s.check_in_location.address or "") if s.check_in_location else "",
                    "check_out_location": (s.check_out_location.address or "") if s.check_out_location else "",
                    "auto_checked_out": "Yes" if s.auto_checked_out else "No",
                }
            )

        return ExportData(rows=out_rows, total_hours=round(total, 2))
