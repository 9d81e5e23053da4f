from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from ..core.constants import OAUTH_PLACEHOLDER_DOMAIN
from ..core.enums import AuthMethod, Role, UserStatus


@dataclass(frozen=True)
class JiraCredentials:
    """Jira Cloud site plus the API token used for Basic auth."""

    domain: str
    email: str
    api_token: str
    organization_name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> Optional["JiraCredentials"]:
        if not data:
            return None
        domain = data.get("domain") or ""
        email = data.get("email") or ""
        api_token = data.get("api_token") or data.get("apiToken") or ""
        if not (domain and email and api_token):
            return None
        return cls(
            domain=domain,
            email=email,
            api_token=api_token,
            organization_name=data.get("organization_name") or data.get("organizationName"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "organization_name": self.organization_name,
            "domain": self.domain,
            "email": self.email,
            "api_token": self.api_token,
        }


@dataclass(frozen=True)
class NotificationSettings:
    email_notifications: bool = True
    worklog_reminders: bool = True
    project_updates: bool = True
    weekly_reports: bool = False

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "NotificationSettings":
        defaults = cls()
        data = data or {}
        return cls(
            email_notifications=bool(data.get("email_notifications", defaults.email_notifications)),
            worklog_reminders=bool(data.get("worklog_reminders", defaults.worklog_reminders)),
            project_updates=bool(data.get("project_updates", defaults.project_updates)),
            weekly_reports=bool(data.get("weekly_reports", defaults.weekly_reports)),
        )

    def to_dict(self) -> dict[str, bool]:
        return {
            "email_notifications": self.email_notifications,
            "worklog_reminders": self.worklog_reminders,
            "project_updates": self.project_updates,
            "weekly_reports": self.weekly_reports,
        }

    def to_json(self) -> dict[str, bool]:
        return {
            "emailNotifications": self.email_notifications,
            "worklogReminders": self.worklog_reminders,
            "projectUpdates": self.project_updates,
            "weeklyReports": self.weekly_reports,
        }


@dataclass(frozen=True)
class User:
    """Domain entity: an account of any role.

    Plain data object; persistence lives in the repositories.
    """

    user_id: int
    email: str
    first_name: str
    last_name: str
    role: Role
    password_hash: Optional[str] = None
    status: UserStatus = UserStatus.ACTIVE
    is_active: bool = True
    is_email_verified: bool = False
    auth_methods: tuple[AuthMethod, ...] = (AuthMethod.PASSWORD,)
    organization_id: Optional[int] = None
    department: Optional[str] = None
    invitation_token: Optional[str] = None
    invitation_expires: Optional[datetime] = None
    invited_at: Optional[datetime] = None
    invited_by: Optional[int] = None
    oauth_state: Optional[str] = None
    oauth_state_expires: Optional[datetime] = None
    atlassian_account_id: Optional[str] = None
    atlassian_email: Optional[str] = None
    atlassian_display_name: Optional[str] = None
    atlassian_avatar_url: Optional[str] = None
    atlassian_access_token: Optional[str] = None
    atlassian_refresh_token: Optional[str] = None
    atlassian_token_expires: Optional[datetime] = None
    reset_password_token: Optional[str] = None
    reset_password_expires: Optional[datetime] = None
    jira_organization: Optional[JiraCredentials] = None
    notification_settings: NotificationSettings = field(default_factory=NotificationSettings)
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def display_name(self) -> str:
        if self.first_name and self.last_name:
            return f"{self.first_name} {self.last_name}"
        return self.atlassian_display_name or self.first_name or self.last_name or "Unknown Developer"

    @property
    def is_oauth_placeholder(self) -> bool:
        return self.email.endswith("@" + OAUTH_PLACEHOLDER_DOMAIN)

    def has_auth_method(self, method: AuthMethod) -> bool:
        return method in self.auth_methods

    def with_auth_method(self, method: AuthMethod) -> tuple[AuthMethod, ...]:
        if method in self.auth_methods:
            return self.auth_methods
        return self.auth_methods + (method,)

    def public_dict(self) -> dict[str, Any]:
        """JSON view without passwords or tokens."""
        return {
            "id": self.user_id,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "name": self.display_name,
            "role": self.role.value,
            "status": self.status.value,
            "isActive": self.is_active,
            "isEmailVerified": self.is_email_verified,
            "authMethods": [m.value for m in self.auth_methods],
            "organizationId": self.organization_id,
            "department": self.department,
            "invitedAt": _iso(self.invited_at),
            "invitedBy": self.invited_by,
            "atlassianAccountId": self.atlassian_account_id,
            "atlassianEmail": self.atlassian_email,
            "atlassianDisplayName": self.atlassian_display_name,
            "atlassianAvatarUrl": self.atlassian_avatar_url,
            "hasJiraOrganization": self.jira_organization is not None,
            "lastLogin": _iso(self.last_login),
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None
