from src.worklog_tracker.worklog_tracker.core.enums import CheckInType, PresenceStatus
from src.worklog_tracker.worklog_tracker.organizations.model import CheckInWindow
from src.worklog_tracker.worklog_tracker.presence.factory import CheckInStrategyFactory
from src.worklog_tracker.worklog_tracker.presence.strategies.early_strategy import EarlyStrategy
from src.worklog_tracker.worklog_tracker.presence.strategies.late_strategy import LateStrategy
from src.worklog_tracker.worklog_tracker.presence.strategies.on_time_strategy import OnTimeStrategy

WINDOW = CheckInWindow(start_time="08:00", end_time="10:00", timezone="UTC+3")


def test_factory_before_window_is_early():
    strategy = CheckInStrategyFactory().for_checkin(current="07:59", window=WINDOW)

    assert isinstance(strategy, EarlyStrategy)
    assert strategy.decide(current="07:59", window=WINDOW).check_in_type == CheckInType.EARLY


def test_factory_window_bounds_are_on_time():
    factory = CheckInStrategyFactory()

    assert isinstance(factory.for_checkin(current="08:00", window=WINDOW), OnTimeStrategy)
    assert isinstance(factory.for_checkin(current="10:00", window=WINDOW), OnTimeStrategy)


def test_factory_after_window_is_late():
    strategy = CheckInStrategyFactory().for_checkin(current="10:01", window=WINDOW)

    decision = strategy.decide(current="10:01", window=WINDOW)
    assert isinstance(strategy, LateStrategy)
    assert decision.check_in_type == CheckInType.LATE
    assert decision.status == PresenceStatus.PRESENT
