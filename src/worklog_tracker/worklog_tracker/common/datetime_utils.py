from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

_UTC_OFFSET = re.compile(r"^UTC(?:([+-])(\d{1,2})(?::?(\d{2}))?)?$", re.IGNORECASE)


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def parse_utc_offset(label: str) -> Optional[timedelta]:
    """Turn labels like "UTC", "UTC+3" or "UTC-05:30" into an offset.

    Returns None when the label is not in that form.
    """
    match = _UTC_OFFSET.match((label or "").strip())
    if not match:
        return None
    sign, hours, minutes = match.groups()
    if not sign:
        return timedelta(0)
    offset = timedelta(hours=int(hours), minutes=int(minutes or 0))
    if offset > timedelta(hours=14):
        return None
    return -offset if sign == "-" else offset


def now_in_zone(label: str, *, now: Optional[datetime] = None) -> datetime:
    """Wall-clock time in the given UTC offset, as a naive datetime.

    A naive ``now`` is taken as already being wall-clock time. Unknown labels
    fall back to server local time.
    """
    if now is not None and now.tzinfo is None:
        return now
    offset = parse_utc_offset(label)
    if offset is None:
        return now.replace(tzinfo=None) if now is not None else now_local()
    current = now or datetime.now(timezone.utc)
    return current.astimezone(timezone(offset)).replace(tzinfo=None)


def hhmm(value: time | datetime) -> str:
    return value.strftime("%H:%M")


def minutes_of(value: str) -> int:
    """Minutes since midnight for an "HH:MM" string."""
    hours, minutes = value.split(":", 1)
    return int(hours) * 60 + int(minutes)


def start_of_week(day: date) -> date:
    """Monday of the week containing ``day``."""
    return day - timedelta(days=day.weekday())


def parse_jira_datetime(value: str) -> datetime:
    """Parse Jira timestamps such as 2024-05-01T09:30:00.000+0300."""
    for fmt in ("%Y-%m-%dT%H:%M:%S.%f%z", "%Y-%m-%dT%H:%M:%S%z"):
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def utc_now() -> datetime:
    """Current UTC time as a naive datetime (Jira timestamps are compared in UTC)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
