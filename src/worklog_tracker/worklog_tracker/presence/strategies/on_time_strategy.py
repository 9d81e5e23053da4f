from __future__ import annotations

from ...core.enums import CheckInType
from ...organizations.model import CheckInWindow
from .base import CheckInDecision, CheckInStrategy


class OnTimeStrategy(CheckInStrategy):
    """Checked in inside the window (both ends inclusive)."""

    def decide(self, *, current: str, window: CheckInWindow) -> CheckInDecision:
        return CheckInDecision(check_in_type=CheckInType.ON_TIME)
