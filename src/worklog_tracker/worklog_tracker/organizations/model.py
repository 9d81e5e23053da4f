from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from ..core.constants import DEFAULT_CHECK_IN_END, DEFAULT_CHECK_IN_START, DEFAULT_CHECK_IN_TIMEZONE
from ..users.model import JiraCredentials

DEFAULT_WORKING_DAYS = ("monday", "tuesday", "wednesday", "thursday", "friday")
DEFAULT_FEATURES = ("basic_worklog_tracking", "team_management")


@dataclass(frozen=True)
class CheckInWindow:
    """Daily window (zero-padded HH:MM) used to classify check-ins."""

    start_time: str = DEFAULT_CHECK_IN_START
    end_time: str = DEFAULT_CHECK_IN_END
    timezone: str = DEFAULT_CHECK_IN_TIMEZONE

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> Optional["CheckInWindow"]:
        if not data:
            return None
        return cls(
            start_time=data.get("start_time") or data.get("startTime") or DEFAULT_CHECK_IN_START,
            end_time=data.get("end_time") or data.get("endTime") or DEFAULT_CHECK_IN_END,
            timezone=data.get("timezone") or DEFAULT_CHECK_IN_TIMEZONE,
        )

    def to_dict(self) -> dict[str, str]:
        return {"start_time": self.start_time, "end_time": self.end_time, "timezone": self.timezone}

    def to_json(self) -> dict[str, str]:
        return {"startTime": self.start_time, "endTime": self.end_time, "timezone": self.timezone}


@dataclass(frozen=True)
class OrganizationSettings:
    timezone: str = "UTC"
    working_days: tuple[str, ...] = DEFAULT_WORKING_DAYS
    working_hours_start: str = "09:00"
    working_hours_end: str = "17:00"

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "OrganizationSettings":
        data = data or {}
        hours = data.get("working_hours") or {}
        return cls(
            timezone=data.get("timezone", "UTC"),
            working_days=tuple(data.get("working_days") or DEFAULT_WORKING_DAYS),
            working_hours_start=hours.get("start", "09:00"),
            working_hours_end=hours.get("end", "17:00"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "timezone": self.timezone,
            "working_days": list(self.working_days),
            "working_hours": {"start": self.working_hours_start, "end": self.working_hours_end},
        }

    def to_json(self) -> dict[str, Any]:
        return {
            "timezone": self.timezone,
            "workingDays": list(self.working_days),
            "workingHours": {"start": self.working_hours_start, "end": self.working_hours_end},
        }


@dataclass(frozen=True)
class Subscription:
    plan: str = "free"
    status: str = "trial"
    trial_ends_at: Optional[datetime] = None
    max_users: int = 5
    features: tuple[str, ...] = DEFAULT_FEATURES

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "Subscription":
        data = data or {}
        trial_ends_at = data.get("trial_ends_at")
        return cls(
            plan=data.get("plan", "free"),
            status=data.get("status", "trial"),
            trial_ends_at=datetime.fromisoformat(trial_ends_at) if trial_ends_at else None,
            max_users=int(data.get("max_users", 5)),
            features=tuple(data.get("features") or DEFAULT_FEATURES),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "plan": self.plan,
            "status": self.status,
            "trial_ends_at": self.trial_ends_at.isoformat() if self.trial_ends_at else None,
            "max_users": self.max_users,
            "features": list(self.features),
        }

    def to_json(self) -> dict[str, Any]:
        return {
            "plan": self.plan,
            "status": self.status,
            "trialEndsAt": self.trial_ends_at.isoformat() if self.trial_ends_at else None,
            "maxUsers": self.max_users,
            "features": list(self.features),
        }


@dataclass(frozen=True)
class Organization:
    """Domain entity: a tenant with its Jira site and check-in policy."""

    organization_id: int
    name: str
    slug: str
    description: Optional[str] = None
    owner_id: Optional[int] = None
    jira_organization: Optional[JiraCredentials] = None
    settings: OrganizationSettings = field(default_factory=OrganizationSettings)
    check_in_window: Optional[CheckInWindow] = None
    subscription: Subscription = field(default_factory=Subscription)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def effective_check_in_window(self) -> CheckInWindow:
        return self.check_in_window or CheckInWindow()

    def to_json(self) -> dict[str, Any]:
        jira = self.jira_organization
        return {
            "id": self.organization_id,
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "jiraOrganization": (
                {"organizationName": jira.organization_name, "domain": jira.domain, "email": jira.email}
                if jira
                else None
            ),
            "settings": self.settings.to_json(),
            "checkInWindow": self.effective_check_in_window.to_json(),
            "subscription": self.subscription.to_json(),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    def summary_json(self) -> dict[str, Any]:
        jira = self.jira_organization
        return {
            "id": self.organization_id,
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "domain": jira.domain if jira else None,
            "email": jira.email if jira else None,
            "settings": self.settings.to_json(),
            "subscription": {
                "plan": self.subscription.plan,
                "status": self.subscription.status,
                "maxUsers": self.subscription.max_users,
            },
        }
