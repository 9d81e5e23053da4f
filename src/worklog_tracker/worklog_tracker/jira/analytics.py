"""Per-developer aggregation of worklogs for dashboards."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any, Iterable, Optional

from ..common.time_format import round_hours, seconds_to_hours
from ..core.constants import ONLINE_THRESHOLD_HOURS, WEEKLY_TARGET_HOURS
from .worklogs import started_at


def worklog_hours(worklog: dict[str, Any]) -> float:
    return seconds_to_hours(worklog.get("timeSpentSeconds") or 0)


def author_of(worklog: dict[str, Any]) -> dict[str, Any]:
    return worklog.get("author") or {}


def initials(name: str) -> str:
    letters = [part[0] for part in name.split() if part]
    return "".join(letters[:2]).upper() or "?"


def relative_time(moment: Optional[datetime], now: datetime) -> str:
    if moment is None:
        return "Never"
    delta = now - moment
    hours = int(delta.total_seconds() // 3600)
    if hours < 1:
        return "Just now"
    if hours < 24:
        return f"{hours} hours ago"
    days = delta.days
    if days < 7:
        return f"{days} days ago"
    return moment.date().isoformat()


def trend_of(worklogs: list[dict[str, Any]], now: datetime) -> str:
    """Compare the 3 most recent worklogs of the last week with the 3 before them."""
    week_ago = now - timedelta(days=7)
    recent = sorted(
        (w for w in worklogs if (started_at(w) or datetime.min) >= week_ago),
        key=lambda w: started_at(w) or datetime.min,
        reverse=True,
    )
    latest = sum(worklog_hours(w) for w in recent[:3])
    previous = sum(worklog_hours(w) for w in recent[3:6])
    if previous == 0:
        return "up" if latest > 0 else "stable"
    if latest > previous * 1.1:
        return "up"
    if latest < previous * 0.9:
        return "down"
    return "stable"


def transform_worklogs(worklogs: Iterable[dict[str, Any]], *, now: datetime) -> list[dict[str, Any]]:
    """Group worklogs by author into dashboard rows, most hours first."""
    grouped: dict[str, list[dict[str, Any]]] = defaultdict(list)
    for worklog in worklogs:
        name = author_of(worklog).get("displayName") or "Unknown"
        grouped[name].append(worklog)

    rows = []
    for name, items in grouped.items():
        author = author_of(items[0])
        hours = sum(worklog_hours(w) for w in items)
        tasks = len({w.get("issueKey") for w in items if w.get("issueKey")})
        last_active = max((started_at(w) for w in items if started_at(w)), default=None)
        online = last_active is not None and now - last_active < timedelta(hours=ONLINE_THRESHOLD_HOURS)
        rows.append(
            {
                "id": author.get("accountId"),
                "name": name,
                "email": author.get("emailAddress"),
                "avatar": initials(name),
                "hours": round_hours(hours),
                "tasks": tasks,
                "completed": tasks,
                "productivity": round_hours(min(100.0, hours / WEEKLY_TARGET_HOURS * 100)),
                "trend": trend_of(items, now),
                "status": "online" if online else "offline",
                "lastActive": relative_time(last_active, now),
            }
        )
    rows.sort(key=lambda r: r["hours"], reverse=True)
    return rows
