from dataclasses import replace

from src.staffing_portal.staffing_portal.attendance.factory import AttendanceStrategyFactory
from src.staffing_portal.staffing_portal.attendance.model import AttendanceSession, GeoPoint
from src.staffing_portal.staffing_portal.attendance.strategies.auto_checkout_strategy import AutoCheckoutStrategy
from src.staffing_portal.staffing_portal.attendance.strategies.base import AttendanceStrategy, CheckOutStrategy
from src.staffing_portal.staffing_portal.attendance.strategies.late_strategy import LateStrategy
from src.staffing_portal.staffing_portal.attendance.strategies.on_time_strategy import OnTimeStrategy
from src.staffing_portal.staffing_portal.common.datetime_utils import expected_check_in_instant, instant_from_civil
from src.staffing_portal.staffing_portal.core.enums import AttendanceFlag, AttendanceStatus, WorkLocation


def _session(**kw) -> AttendanceSession:
    base = AttendanceSession(
        session_id=1,
        user_id=7,
        civil_day=instant_from_civil(2025, 1, 1),
        work_location=WorkLocation.OFFICE,
        status=AttendanceStatus.ON_TIME,
        check_in_time=instant_from_civil(2025, 1, 1, 9, 0),
        expected_check_in_time=instant_from_civil(2025, 1, 1, 10, 0),
        is_late=False,
        late_minutes=None,
        late_reason=None,
        check_in_location=GeoPoint(27.7172, 85.3240),
    )
    return replace(base, **kw)


def test_factory_checkin_on_time_until_ten_o_one():
    factory = AttendanceStrategyFactory()

    assert isinstance(factory.for_checkin(now=instant_from_civil(2025, 1, 1, 10, 0, 59)), OnTimeStrategy)
    assert isinstance(factory.for_checkin(now=instant_from_civil(2025, 1, 1, 10, 1, 0)), LateStrategy)


def test_late_strategy_counts_whole_minutes():
    now = instant_from_civil(2025, 1, 1, 11, 5, 59)
    decision = LateStrategy().decide_checkin(now=now, expected=expected_check_in_instant(now))

    assert decision.status == AttendanceStatus.LATE
    assert decision.is_late is True
    assert decision.late_minutes == 65


def test_factory_checkout_keeps_check_in_status():
    factory = AttendanceStrategyFactory()
    late = _session(status=AttendanceStatus.LATE, is_late=True, late_minutes=12)

    decision = factory.for_checkout(session=late).decide_checkout(session=late)

    assert decision.status == AttendanceStatus.LATE
    assert decision.auto_checked_out is False


def test_factory_auto_checkout_sets_status_and_flag():
    session = _session(flags=frozenset({AttendanceFlag.MISSING_LOCATION_CHECKS}))
    strategy = AttendanceStrategyFactory().for_checkout(session=session, auto=True)

    decision = strategy.decide_checkout(session=session)

    assert isinstance(strategy, AutoCheckoutStrategy)
    assert decision.status == AttendanceStatus.AUTO_CHECKED_OUT
    assert decision.auto_checked_out is True
    assert decision.flags == {AttendanceFlag.MISSING_LOCATION_CHECKS, AttendanceFlag.AUTO_CHECKED_OUT}


def test_auto_checkout_strategy_only_decides_check_out():
    strategy = AutoCheckoutStrategy()

    assert isinstance(strategy, CheckOutStrategy)
    assert not isinstance(strategy, AttendanceStrategy)
    assert not hasattr(strategy, "decide_checkin")
