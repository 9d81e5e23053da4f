from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any, Iterable, Optional

from ..common.datetime_utils import start_of_week, utc_now
from ..common.time_format import round_hours
from ..core.exceptions import NotFoundError, ValidationError
from ..organizations.service import OrganizationService
from ..users.repository import UserRepository
from .analytics import author_of, worklog_hours
from .service import JiraService

logger = logging.getLogger(__name__)

_RANK_REWARDS = {
    1: {
        "reward": "Weekly Champion",
        "rewardIcon": "Crown",
        "rewardColor": "text-yellow-500",
        "badge": "Gold",
        "badgeColor": "bg-yellow-100 text-yellow-800",
        "performance": "excellent",
        "achievements": ["Most hours logged", "Team leader"],
    },
    2: {
        "reward": "Silver Star",
        "rewardIcon": "Star",
        "rewardColor": "text-gray-400",
        "badge": "Silver",
        "badgeColor": "bg-gray-100 text-gray-800",
        "performance": "excellent",
        "achievements": ["Runner-up", "Consistent contributor"],
    },
    3: {
        "reward": "Bronze Medal",
        "rewardIcon": "Medal",
        "rewardColor": "text-orange-500",
        "badge": "Bronze",
        "badgeColor": "bg-orange-100 text-orange-800",
        "performance": "good",
        "achievements": ["Top three finish"],
    },
}

# (minimum hours, reward) checked in order once the podium is filled.
_HOUR_REWARDS = (
    (35, {
        "reward": "High Performer",
        "rewardIcon": "Zap",
        "rewardColor": "text-purple-500",
        "badge": "High Performer",
        "badgeColor": "bg-purple-100 text-purple-800",
        "performance": "good",
        "achievements": ["35+ hours this week"],
    }),
    (25, {
        "reward": "On Target",
        "rewardIcon": "Target",
        "rewardColor": "text-green-500",
        "badge": "On Target",
        "badgeColor": "bg-green-100 text-green-800",
        "performance": "average",
        "achievements": ["25+ hours this week"],
    }),
    (15, {
        "reward": "Growing",
        "rewardIcon": "TrendingUp",
        "rewardColor": "text-blue-500",
        "badge": "Growing",
        "badgeColor": "bg-blue-100 text-blue-800",
        "performance": "needs-improvement",
        "achievements": ["Building momentum"],
    }),
)

_DEFAULT_REWARD = {
    "reward": "Keep Going!",
    "rewardIcon": "Heart",
    "rewardColor": "text-pink-500",
    "badge": "Participant",
    "badgeColor": "bg-pink-100 text-pink-800",
    "performance": "needs-improvement",
    "achievements": ["Every hour counts"],
}


def reward_for(rank: int, hours: float) -> dict[str, Any]:
    if rank in _RANK_REWARDS:
        return dict(_RANK_REWARDS[rank])
    for minimum, reward in _HOUR_REWARDS:
        if hours >= minimum:
            return dict(reward)
    return dict(_DEFAULT_REWARD)


def rank_developers(worklogs: Iterable[dict[str, Any]], *, current_account_id: Optional[str]) -> dict[str, Any]:
    totals: dict[str, dict[str, Any]] = defaultdict(lambda: {"hours_total": 0.0, "issues": set()})
    for worklog in worklogs:
        author = author_of(worklog)
        name = author.get("displayName") or "Unknown"
        entry = totals[name]
        entry["id"] = author.get("accountId")
        entry["email"] = author.get("emailAddress")
        entry["hours_total"] += worklog_hours(worklog)
        if worklog.get("issueKey"):
            entry["issues"].add(worklog["issueKey"])

    ordered = sorted(totals.items(), key=lambda kv: kv[1]["hours_total"], reverse=True)
    developers = []
    for rank, (name, entry) in enumerate(ordered, start=1):
        hours = round_hours(entry["hours_total"])
        developers.append(
            {
                "id": entry.get("id"),
                "name": name,
                "email": entry.get("email"),
                "hours": hours,
                "tasks": len(entry["issues"]),
                "rank": rank,
                "isCurrentUser": bool(current_account_id) and entry.get("id") == current_account_id,
                **reward_for(rank, hours),
            }
        )

    total_hours = round_hours(sum(d["hours"] for d in developers))
    me = next((d for d in developers if d["isCurrentUser"]), None)
    return {
        "rankedDevelopers": developers,
        "weeklyStats": {
            "totalHours": total_hours,
            "averageHours": round_hours(total_hours / len(developers)) if developers else 0,
            "topPerformer": developers[0] if developers else None,
            "totalDevelopers": len(developers),
            "currentUserRank": me["rank"] if me else 0,
            "currentUserHours": me["hours"] if me else 0,
        },
    }


class RewardsService:
    """Weekly leaderboard built from the organization's Jira worklogs."""

    def __init__(self, users: UserRepository, organizations: OrganizationService, jira: JiraService):
        self._users = users
        self._organizations = organizations
        self._jira = jira

    def weekly(self, user_id: int, *, now: datetime | None = None) -> dict[str, Any]:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        if not user.organization_id:
            raise ValidationError("No organization assigned")
        organization = self._organizations.organization_of(user)
        if not organization.jira_organization:
            raise ValidationError("No Jira integration configured")

        today = (now or utc_now()).date()
        monday = start_of_week(today)
        sunday = monday + timedelta(days=6)
        worklogs = self._jira.worklogs(organization.jira_organization, start=monday, end=sunday, today=today)

        result = rank_developers(worklogs, current_account_id=user.atlassian_account_id)
        result["weekRange"] = {"start": monday.isoformat(), "end": sunday.isoformat()}
        return result
