"""Streak, punctuality and rate helpers over check-in history."""

from __future__ import annotations

from typing import Iterable, Sequence

from ..common.time_format import round_half_up
from ..core.enums import CheckInType
from .model import PresenceRecord


def compute_streaks(records: Sequence[PresenceRecord]) -> tuple[int, int]:
    """(current, longest) runs of present records; ``records`` newest first."""
    current = 0
    for record in records:
        if not record.is_present:
            break
        current += 1

    longest = run = 0
    for record in records:
        if record.is_present:
            run += 1
            longest = max(longest, run)
        else:
            run = 0
    return current, longest


def punctuality_stats(records: Iterable[PresenceRecord]) -> dict[str, int]:
    counts = {CheckInType.EARLY: 0, CheckInType.ON_TIME: 0, CheckInType.LATE: 0}
    total = 0
    for record in records:
        counts[record.check_in_type] += 1
        total += 1
    return {
        "early": counts[CheckInType.EARLY],
        "onTime": counts[CheckInType.ON_TIME],
        "late": counts[CheckInType.LATE],
        "total": total,
    }


def attendance_rate(present: int, total: int) -> int:
    if total <= 0:
        return 0
    return int(round_half_up(present / total * 100))


def check_in_hour(record: PresenceRecord) -> float:
    return record.check_in_time.hour + record.check_in_time.minute / 60
