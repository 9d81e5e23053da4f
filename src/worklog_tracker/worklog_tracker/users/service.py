from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.datetime_utils import now_local
from ..common.validators import (
    optional_bool,
    require_email,
    require_matching_passwords,
    require_non_empty,
    require_password,
)
from ..core.enums import AuthMethod, Role, UserStatus
from ..core.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from ..organizations.repository import OrganizationRepository
from .model import JiraCredentials, NotificationSettings, User
from .repository import UserRepository
from .tokens import TokenService

logger = logging.getLogger(__name__)


def password_matches(user: User, password: str) -> bool:
    if not user.password_hash or not password:
        return False
    try:
        return check_password_hash(user.password_hash, password)
    except ValueError:
        # e.g. a hash written by an unsupported method
        return False


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after sign-in."""

    user_id: int
    email: str
    first_name: str
    last_name: str
    role: Role
    is_email_verified: bool
    organization_id: Optional[int]
    atlassian_account_id: Optional[str]

    @classmethod
    def from_user(cls, user: User) -> "SessionUser":
        return cls(
            user_id=user.user_id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            role=user.role,
            is_email_verified=user.is_email_verified,
            organization_id=user.organization_id,
            atlassian_account_id=user.atlassian_account_id,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.user_id,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "role": self.role.value,
            "isEmailVerified": self.is_email_verified,
            "organizationId": self.organization_id,
            "atlassianAccountId": self.atlassian_account_id,
        }


class AuthService:
    """Use cases: sign up, sign in with credentials, JWT login."""

    def __init__(self, users: UserRepository, tokens: TokenService):
        self._users = users
        self._tokens = tokens

    def get_user(self, user_id: int) -> User:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def signup(
        self,
        *,
        email: Any,
        password: Any,
        confirm_password: Any,
        first_name: Any,
        last_name: Any,
        now: datetime | None = None,
    ) -> User:
        email = require_email(email)
        password = require_password(password)
        require_matching_passwords(password, confirm_password)
        first_name = require_non_empty(first_name, "First name")
        last_name = require_non_empty(last_name, "Last name")

        if self._users.get_by_email(email):
            raise ConflictError("User with this email already exists")

        now = now or now_local()
        user_id = self._users.create(
            User(
                user_id=0,
                email=email,
                password_hash=generate_password_hash(password),
                first_name=first_name,
                last_name=last_name,
                role=Role.MANAGER,
                status=UserStatus.ACTIVE,
                is_email_verified=True,
                auth_methods=(AuthMethod.PASSWORD,),
                created_at=now,
                updated_at=now,
            )
        )
        logger.info("Manager account created user_id=%s", user_id)
        return self.get_user(user_id)

    def authorize_credentials(self, email: Any, password: Any, *, now: datetime | None = None) -> SessionUser:
        """Credentials sign-in, also used after Atlassian OAuth with the synthetic password."""
        if not isinstance(email, str) or not email or not isinstance(password, str) or not password:
            raise AuthenticationError("Invalid credentials")

        user = self._users.get_by_email(email.strip().lower())
        if not user:
            raise AuthenticationError("Invalid credentials")

        if user.role == Role.DEVELOPER and not user.has_auth_method(AuthMethod.PASSWORD):
            raise AuthenticationError("Please use Atlassian OAuth to sign in")

        if not password_matches(user, password):
            raise AuthenticationError("Invalid credentials")

        if not user.is_email_verified:
            raise AuthenticationError("Please verify your email before signing in")

        if not user.is_active or user.status == UserStatus.SUSPENDED:
            raise AuthenticationError("Account is disabled")

        user = replace(user, last_login=now or now_local())
        self._users.save(user)
        return SessionUser.from_user(user)

    def login(self, email: Any, password: Any, *, now: datetime | None = None) -> tuple[User, str]:
        """Sign in and issue the ``token`` JWT."""
        if not isinstance(email, str) or not isinstance(password, str):
            raise AuthenticationError("Invalid email or password")

        user = self._users.get_by_email(email.strip().lower())
        if not user or not user.password_hash or not password_matches(user, password):
            raise AuthenticationError("Invalid email or password")

        user = replace(user, last_login=now or now_local())
        self._users.save(user)
        return user, self._tokens.issue(user)

    def session_user(self, user_id: int) -> SessionUser:
        user = self._users.get_by_id(user_id)
        if not user:
            raise AuthenticationError("Not authenticated")
        return SessionUser.from_user(user)


_NOTIFICATION_FIELDS = {
    "emailNotifications": "email_notifications",
    "worklogReminders": "worklog_reminders",
    "projectUpdates": "project_updates",
    "weeklyReports": "weekly_reports",
}


class ProfileService:
    """Use cases: profile, notification preferences, personal Jira connection."""

    def __init__(self, users: UserRepository, organizations: Optional[OrganizationRepository] = None):
        self._users = users
        self._organizations = organizations

    def jira_credentials_for(self, user_id: int) -> Optional[JiraCredentials]:
        """The user's own Jira connection, else their organization's."""
        user = self._users.get_by_id(user_id)
        if not user:
            return None
        if user.jira_organization:
            return user.jira_organization
        if user.organization_id and self._organizations:
            organization = self._organizations.get_by_id(user.organization_id)
            return organization.jira_organization if organization else None
        return None

    def _get(self, user_id: int) -> User:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def update_profile(self, user_id: int, *, first_name: Any, last_name: Any, now: datetime | None = None) -> User:
        if not first_name or not last_name:
            raise ValidationError("First name and last name are required")
        user = replace(
            self._get(user_id),
            first_name=require_non_empty(first_name, "First name"),
            last_name=require_non_empty(last_name, "Last name"),
            updated_at=now or now_local(),
        )
        self._users.save(user)
        return user

    def get_notifications(self, user_id: int) -> NotificationSettings:
        return self._get(user_id).notification_settings

    def update_notifications(self, user_id: int, updates: dict[str, Any]) -> NotificationSettings:
        user = self._get(user_id)
        changes: dict[str, bool] = {}
        for key, attr in _NOTIFICATION_FIELDS.items():
            if key in updates:
                changes[attr] = optional_bool(updates[key], key)
        settings = replace(user.notification_settings, **changes)
        self._users.save(replace(user, notification_settings=settings))
        return settings

    def set_jira_organization(
        self,
        user_id: int,
        *,
        domain: Any,
        email: Any,
        api_token: Any,
        organization_name: Any = None,
    ) -> JiraCredentials:
        if not domain or not email or not api_token:
            raise ValidationError("Domain, email, and API token are required")
        credentials = JiraCredentials(
            domain=str(domain).strip(),
            email=str(email).strip(),
            api_token=str(api_token).strip(),
            organization_name=str(organization_name).strip() if organization_name else None,
        )
        self._users.save(replace(self._get(user_id), jira_organization=credentials))
        logger.info("Jira organization saved for user_id=%s domain=%s", user_id, credentials.domain)
        return credentials
