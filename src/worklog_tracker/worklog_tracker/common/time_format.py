"""Hour/minute formatting shared by the Jira dashboards."""

from __future__ import annotations

import math
import re

_HOURS = re.compile(r"(\d+(?:\.\d+)?)\s*h")
_MINUTES = re.compile(r"(\d+)\s*m")


def round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def format_hours(hours: float) -> str:
    """11.87 -> "11h52m", 2.0 -> "2h", 0 -> "0h"."""
    if not hours:
        return "0h"
    whole = int(hours)
    minutes = int(round_half_up((hours - whole) * 60))
    if minutes == 60:
        whole += 1
        minutes = 0
    if minutes == 0:
        return f"{whole}h"
    return f"{whole}h{minutes}m"


def round_hours(hours: float) -> float:
    return round_half_up(hours, 2)


def format_hours_for_stats(hours: float) -> str:
    rounded = round_half_up(hours, 1)
    if rounded == int(rounded):
        return str(int(rounded))
    return f"{rounded:.1f}"


def parse_time_spent(value: str) -> float:
    """Parse Jira-style durations: "1h 30m" -> 1.5."""
    if not value:
        return 0.0
    hours = sum(float(h) for h in _HOURS.findall(value))
    minutes = sum(int(m) for m in _MINUTES.findall(value))
    return hours + minutes / 60


def seconds_to_hours(seconds: float) -> float:
    return (seconds or 0) / 3600


def hours_to_seconds(hours: float) -> int:
    return int(round_half_up((hours or 0) * 3600))


def format_time_from_seconds(seconds: float) -> str:
    if not seconds:
        return "0m"
    return format_hours(seconds_to_hours(seconds))
