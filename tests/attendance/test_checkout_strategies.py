from __future__ import annotations

from datetime import datetime

from src.project_hub.project_hub.attendance.factory import CheckoutStrategyFactory
from src.project_hub.project_hub.attendance.model import AttendanceRecord
from src.project_hub.project_hub.attendance.strategies.auto_checkout_strategy import AutoCheckoutStrategy
from src.project_hub.project_hub.attendance.strategies.same_day_strategy import SameDayCheckoutStrategy


def _record(check_in: datetime) -> AttendanceRecord:
    return AttendanceRecord(attendance_id=1, user_id=7, check_in_time=check_in)


def test_factory_picks_same_day_strategy():
    record = _record(datetime(2026, 2, 2, 9, 0))
    strategy = CheckoutStrategyFactory().for_checkout(record=record, now=datetime(2026, 2, 2, 17, 30))
    assert isinstance(strategy, SameDayCheckoutStrategy)


def test_factory_picks_auto_checkout_for_previous_day():
    record = _record(datetime(2026, 2, 2, 9, 0))
    strategy = CheckoutStrategyFactory().for_checkout(record=record, now=datetime(2026, 2, 3, 8, 0))
    assert isinstance(strategy, AutoCheckoutStrategy)


def test_same_day_uses_now():
    record = _record(datetime(2026, 2, 2, 9, 0))
    decision = SameDayCheckoutStrategy().decide_checkout(record=record, now=datetime(2026, 2, 2, 17, 30))
    assert decision.check_out_time == datetime(2026, 2, 2, 17, 30)
    assert decision.auto_checkout is False


def test_auto_checkout_adds_default_hours():
    record = _record(datetime(2026, 2, 2, 9, 0))
    decision = AutoCheckoutStrategy(8).decide_checkout(record=record, now=datetime(2026, 2, 4, 8, 0))
    assert decision.check_out_time == datetime(2026, 2, 2, 17, 0)
    assert decision.auto_checkout is True
    assert decision.note


def test_auto_checkout_never_crosses_midnight():
    record = _record(datetime(2026, 2, 2, 20, 0))
    decision = AutoCheckoutStrategy(8).decide_checkout(record=record, now=datetime(2026, 2, 3, 9, 0))
    assert decision.check_out_time.date() == datetime(2026, 2, 2).date()
    assert decision.check_out_time.hour == 23
