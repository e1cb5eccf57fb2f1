from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from src.staffing_portal.staffing_portal.common.datetime_utils import (
    civil_date_of,
    civil_parts_of,
    expected_check_in_instant,
    expected_check_out_instant,
    format_civil_datetime,
    instant_from_civil,
    is_late,
    today_civil_midnight,
)


def test_civil_projection_is_utc_plus_0545():
    instant = datetime(2024, 6, 10, 4, 15, 0, tzinfo=timezone.utc)

    assert civil_parts_of(instant).as_tuple() == (2024, 6, 10, 10, 0, 0)


def test_civil_round_trip():
    instant = datetime(2024, 12, 31, 20, 7, 42, tzinfo=timezone.utc)
    p = civil_parts_of(instant)

    assert instant_from_civil(p.year, p.month, p.day, p.hour, p.minute, p.second) == instant


def test_naive_values_are_taken_as_utc():
    assert civil_parts_of(datetime(2024, 6, 10, 4, 15)).as_tuple() == (2024, 6, 10, 10, 0, 0)


def test_late_evening_utc_already_belongs_to_next_civil_day():
    instant = datetime(2024, 6, 10, 18, 30, tzinfo=timezone.utc)  # 00:15 civil on 11th

    assert civil_date_of(instant) == date(2024, 6, 11)
    assert today_civil_midnight(instant) == datetime(2024, 6, 10, 18, 15, tzinfo=timezone.utc)


def test_instants_on_same_civil_day_share_midnight_key():
    morning = instant_from_civil(2024, 6, 10, 0, 0, 1)
    night = instant_from_civil(2024, 6, 10, 23, 59, 59)

    assert today_civil_midnight(morning) == today_civil_midnight(night)
    assert today_civil_midnight(night + timedelta(seconds=1)) != today_civil_midnight(night)


def test_expected_times_are_civil_ten_and_eighteen():
    now = instant_from_civil(2024, 6, 10, 13, 30)

    assert expected_check_in_instant(now) == datetime(2024, 6, 10, 4, 15, tzinfo=timezone.utc)
    assert expected_check_out_instant(now) == datetime(2024, 6, 10, 12, 15, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "hms, late",
    [
        ((9, 59, 59), False),
        ((10, 0, 0), False),
        ((10, 0, 30), False),
        ((10, 0, 59), False),
        ((10, 1, 0), True),
        ((11, 0, 0), True),
        ((0, 5, 0), False),
    ],
)
def test_is_late_boundary(hms, late):
    assert is_late(instant_from_civil(2024, 6, 10, *hms)) is late


def test_format_civil_datetime_uses_12_hour_clock():
    assert format_civil_datetime(instant_from_civil(2024, 6, 10, 17, 30, 5)) == "2024-06-10 05:30:05 PM"
