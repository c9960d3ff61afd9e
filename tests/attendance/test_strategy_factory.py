from datetime import datetime

from src.hrms.hrms.attendance.derivation import compute_work_hours
from src.hrms.hrms.attendance.factory import AttendanceStrategyFactory
from src.hrms.hrms.attendance.strategies.half_day_strategy import HalfDayStrategy
from src.hrms.hrms.attendance.strategies.present_strategy import PresentStrategy
from src.hrms.hrms.core.enums import AttendanceStatus


def test_factory_checkin_is_present():
    decision = AttendanceStrategyFactory().for_checkin().decide_checkin(now=datetime(2025, 1, 1, 23, 59))

    assert decision.status == AttendanceStatus.PRESENT


def test_factory_checkout_under_threshold_is_half_day():
    strategy = AttendanceStrategyFactory().for_checkout(work_hours=3.99)

    assert isinstance(strategy, HalfDayStrategy)
    assert strategy.decide_checkout(work_hours=3.99, current=AttendanceStatus.PRESENT).status == AttendanceStatus.HALF_DAY


def test_factory_checkout_at_threshold_keeps_status():
    strategy = AttendanceStrategyFactory().for_checkout(work_hours=4)

    assert isinstance(strategy, PresentStrategy)
    assert strategy.decide_checkout(work_hours=4, current=AttendanceStatus.PRESENT).status == AttendanceStatus.PRESENT


def test_custom_threshold():
    factory = AttendanceStrategyFactory(half_day_threshold_hours=6)

    assert isinstance(factory.for_checkout(work_hours=5.5), HalfDayStrategy)


def test_compute_work_hours_needs_both_ends():
    assert compute_work_hours(datetime(2025, 1, 1, 9), None) == 0.0
    assert compute_work_hours(None, datetime(2025, 1, 1, 9)) == 0.0
    assert compute_work_hours(datetime(2025, 1, 1, 9), datetime(2025, 1, 1, 9, 10)) == 0.17
