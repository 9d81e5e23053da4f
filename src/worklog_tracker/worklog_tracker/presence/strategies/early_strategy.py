from __future__ import annotations

from ...core.enums import CheckInType
from ...organizations.model import CheckInWindow
from .base import CheckInDecision, CheckInStrategy


class EarlyStrategy(CheckInStrategy):
    """Checked in before the window opened."""

    def decide(self, *, current: str, window: CheckInWindow) -> CheckInDecision:
        return CheckInDecision(check_in_type=CheckInType.EARLY)
