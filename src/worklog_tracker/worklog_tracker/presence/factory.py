from __future__ import annotations

from dataclasses import dataclass

from ..common.datetime_utils import minutes_of
from ..organizations.model import CheckInWindow
from .strategies.base import CheckInStrategy
from .strategies.early_strategy import EarlyStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.on_time_strategy import OnTimeStrategy


@dataclass
class CheckInStrategyFactory:
    """Factory Pattern: choose the strategy from the "HH:MM" check-in time."""

    def for_checkin(self, *, current: str, window: CheckInWindow) -> CheckInStrategy:
        now_minutes = minutes_of(current)
        if now_minutes < minutes_of(window.start_time):
            return EarlyStrategy()
        if now_minutes > minutes_of(window.end_time):
            return LateStrategy()
        return OnTimeStrategy()
