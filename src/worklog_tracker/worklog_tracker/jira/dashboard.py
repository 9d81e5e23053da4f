from __future__ import annotations

import logging
from collections import Counter, defaultdict
from datetime import date, datetime, timedelta
from typing import Any

from ..common.datetime_utils import parse_jira_datetime, to_naive_utc, utc_now
from ..common.time_format import format_hours, round_hours, round_half_up
from ..core.exceptions import NotFoundError, ValidationError
from ..organizations.service import OrganizationService
from ..users.repository import UserRepository
from .analytics import author_of, initials, relative_time, transform_worklogs, worklog_hours
from .service import JiraService
from .worklogs import started_at

logger = logging.getLogger(__name__)

TEAM_NAME = "Development Team"
SKILL_KEYWORDS = ("react", "typescript", "node", "css", "git")


def date_range_for(name: str | None, today: date) -> tuple[date, date]:
    """Inclusive (start, end) for this-week (the default), last-week, this-month, or the last 7 days."""
    name = name or "this-week"
    sunday = today - timedelta(days=(today.weekday() + 1) % 7)
    if name == "this-week":
        return sunday, today
    if name == "last-week":
        return sunday - timedelta(days=7), sunday - timedelta(days=1)
    if name == "this-month":
        return today.replace(day=1), today
    return today - timedelta(days=6), today


def change_percent(current: float, previous: float) -> str:
    if previous == 0:
        return "+100%" if current > 0 else "0%"
    pct = (current - previous) / previous * 100
    sign = "+" if pct >= 0 else ""
    return f"{sign}{pct:.1f}%"


def current_streak(days_with_work: set[date], today: date) -> int:
    streak = 0
    day = today
    while day in days_with_work:
        streak += 1
        day -= timedelta(days=1)
    return streak


def _issue_done(issue: dict[str, Any]) -> bool:
    status = (issue.get("fields") or {}).get("status") or {}
    category = (status.get("statusCategory") or {}).get("key")
    return category == "done" or status.get("name") == "Done"


def _issue_updated(issue: dict[str, Any]) -> datetime:
    value = (issue.get("fields") or {}).get("updated")
    return to_naive_utc(parse_jira_datetime(value)) if value else datetime.min


def _is_review(worklog: dict[str, Any]) -> bool:
    text = f"{worklog.get('comment') or ''} {worklog.get('summary') or ''}".lower()
    return "review" in text


class DeveloperDashboardService:
    """Personal dashboard: hours, tasks, projects and activity from Jira."""

    def __init__(self, users: UserRepository, organizations: OrganizationService, jira: JiraService):
        self._users = users
        self._organizations = organizations
        self._jira = jira

    def build(self, user_id: int, *, date_range: str | None = None, now: datetime | None = None) -> dict[str, Any]:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        if not user.atlassian_account_id:
            raise ValidationError("Atlassian account not linked")
        if not user.organization_id:
            raise ValidationError("No organization assigned")
        organization = self._organizations.organization_of(user)
        credentials = organization.jira_organization
        if not credentials:
            raise ValidationError("No Jira integration configured")

        now = now or utc_now()
        today = now.date()
        start, end = date_range_for(date_range, today)
        length = (end - start).days + 1
        prev_end = start - timedelta(days=1)
        prev_start = prev_end - timedelta(days=length - 1)

        account_id = user.atlassian_account_id
        fetched = self._jira.worklogs(credentials, start=min(prev_start, end - timedelta(days=6)), end=max(end, today), today=today)
        mine = [w for w in fetched if author_of(w).get("accountId") == account_id]
        current = [w for w in mine if start <= started_at(w).date() <= end]
        previous = [w for w in mine if prev_start <= started_at(w).date() <= prev_end]

        issues = [
            i
            for i in self._jira.recent_issues(credentials, max_results=50, today=today)
            if ((i.get("fields") or {}).get("assignee") or {}).get("accountId") == account_id
        ][:20]

        hours_now = sum(worklog_hours(w) for w in current)
        hours_before = sum(worklog_hours(w) for w in previous)
        tasks_now = len({w.get("issueKey") for w in current})
        tasks_before = len({w.get("issueKey") for w in previous})
        reviews_now = sum(1 for w in current if _is_review(w))
        reviews_before = sum(1 for w in previous if _is_review(w))
        summary_row = next(iter(transform_worklogs(current, now=now)), None)

        name = user.display_name
        logger.info("Dashboard for user_id=%s range=%s worklogs=%d", user.user_id, date_range or "last-7-days", len(current))
        return {
            "personal": {
                "name": name,
                "role": "Developer",
                "avatar": initials(name),
                "team": TEAM_NAME,
                "joinDate": user.created_at.date().isoformat() if user.created_at else None,
                "currentStreak": current_streak({started_at(w).date() for w in mine}, today),
                "totalContributions": len(current),
                "productivity": summary_row["productivity"] if summary_row else 0,
                "trend": summary_row["trend"] if summary_row else "stable",
                "status": summary_row["status"] if summary_row else "offline",
                "lastActive": summary_row["lastActive"] if summary_row else "Never",
            },
            "stats": {
                "hoursThisPeriod": round_hours(hours_now),
                "hoursLastPeriod": round_hours(hours_before),
                "hoursChange": change_percent(hours_now, hours_before),
                "tasksCompleted": tasks_now,
                "tasksLastPeriod": tasks_before,
                "tasksChange": change_percent(tasks_now, tasks_before),
                "codeReviews": reviews_now,
                "codeReviewsLastPeriod": reviews_before,
                "codeReviewsChange": change_percent(reviews_now, reviews_before),
                "projectsActive": len({str(w.get("issueKey", "")).split("-")[0] for w in current if w.get("issueKey")}),
            },
            "projects": self._projects(issues),
            "recentActivity": self._activity(current, issues, now),
            "weeklyBreakdown": self._breakdown(current, start, end),
            "skills": self._skills(current),
            "dateRange": {"start": start.isoformat(), "end": end.isoformat()},
        }

    @staticmethod
    def _projects(issues: list[dict[str, Any]]) -> list[dict[str, Any]]:
        grouped: dict[str, dict[str, Any]] = {}
        for issue in issues:
            project = (issue.get("fields") or {}).get("project") or {}
            key = project.get("key") or str(issue.get("key", "")).split("-")[0]
            entry = grouped.setdefault(key, {"key": key, "name": project.get("name") or key, "completed": 0, "inProgress": 0})
            if _issue_done(issue):
                entry["completed"] += 1
            else:
                entry["inProgress"] += 1
        out = []
        for entry in grouped.values():
            total = entry["completed"] + entry["inProgress"]
            entry["totalIssues"] = total
            entry["progress"] = int(round_half_up(entry["completed"] / total * 100)) if total else 0
            out.append(entry)
        return out

    @staticmethod
    def _activity(worklogs: list[dict[str, Any]], issues: list[dict[str, Any]], now: datetime) -> list[dict[str, Any]]:
        items: list[tuple[datetime, dict[str, Any]]] = []
        newest_worklogs = sorted(worklogs, key=started_at, reverse=True)[:10]
        for w in newest_worklogs:
            moment = started_at(w)
            items.append(
                (
                    moment,
                    {
                        "type": "worklog",
                        "title": f"Logged {format_hours(worklog_hours(w))} on {w.get('issueKey')}",
                        "description": w.get("summary"),
                        "timestamp": relative_time(moment, now),
                    },
                )
            )
        for issue in sorted(issues, key=_issue_updated, reverse=True)[:5]:
            moment = _issue_updated(issue)
            fields = issue.get("fields") or {}
            items.append(
                (
                    moment,
                    {
                        "type": "issue",
                        "title": f"{issue.get('key')} updated",
                        "description": fields.get("summary"),
                        "status": (fields.get("status") or {}).get("name"),
                        "timestamp": relative_time(moment, now),
                    },
                )
            )
        items.sort(key=lambda pair: pair[0], reverse=True)
        return [item for _, item in items[:10]]

    @staticmethod
    def _breakdown(worklogs: list[dict[str, Any]], start: date, end: date) -> list[dict[str, Any]]:
        hours: dict[date, float] = defaultdict(float)
        tasks: dict[date, set] = defaultdict(set)
        for w in worklogs:
            day = started_at(w).date()
            hours[day] += worklog_hours(w)
            tasks[day].add(w.get("issueKey"))
        out = []
        day = start
        while day <= end:
            out.append({"day": day.strftime("%a"), "date": day.isoformat(), "hours": round_hours(hours[day]), "tasks": len(tasks[day])})
            day += timedelta(days=1)
        return out

    @staticmethod
    def _skills(worklogs: list[dict[str, Any]]) -> list[dict[str, Any]]:
        counts: Counter[str] = Counter()
        for w in worklogs:
            text = f"{w.get('summary') or ''} {w.get('comment') or ''}".lower()
            for keyword in SKILL_KEYWORDS:
                if keyword in text:
                    counts[keyword] += 1
        return [
            {"name": keyword, "level": min(100, counts[keyword] * 10), "projects": min(5, counts[keyword])}
            for keyword in SKILL_KEYWORDS
            if counts[keyword]
        ]
