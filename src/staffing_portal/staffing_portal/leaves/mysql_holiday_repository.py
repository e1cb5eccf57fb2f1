from __future__ import annotations

from datetime import date
from typing import AbstractSet

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .repository import HolidayRepository


class MySQLHolidayRepository(HolidayRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_holidays_in_range(self, start: date, end: date) -> AbstractSet[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT holiday_date FROM holidays WHERE holiday_date BETWEEN %s AND %s",
                (start, end),
            )
            return frozenset(r["holiday_date"].strftime("%Y-%m-%d") for r in fetchall(cur))
