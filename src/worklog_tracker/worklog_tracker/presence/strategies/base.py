from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ...core.enums import CheckInType, PresenceStatus
from ...organizations.model import CheckInWindow


@dataclass(frozen=True)
class CheckInDecision:
    check_in_type: CheckInType
    status: PresenceStatus = PresenceStatus.PRESENT


class CheckInStrategy(ABC):
    """Strategy Pattern: encapsulate how a check-in is classified."""

    @abstractmethod
    def decide(self, *, current: str, window: CheckInWindow) -> CheckInDecision:
        raise NotImplementedError
