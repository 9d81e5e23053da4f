from __future__ import annotations

from ...core.enums import CheckInType
from ...organizations.model import CheckInWindow
from .base import CheckInDecision, CheckInStrategy


class LateStrategy(CheckInStrategy):
    """Checked in after the window closed."""

    def decide(self, *, current: str, window: CheckInWindow) -> CheckInDecision:
        return CheckInDecision(check_in_type=CheckInType.LATE)
