from __future__ import annotations

import logging
import re
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, Optional

from ..common.datetime_utils import minutes_of, now_local, parse_utc_offset
from ..common.validators import normalize_hhmm
from ..core.constants import MIN_ORGANIZATION_NAME_LENGTH, TRIAL_DAYS
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..users.model import JiraCredentials, User
from ..users.repository import UserRepository
from .model import CheckInWindow, Organization, OrganizationSettings, Subscription
from .repository import OrganizationRepository

logger = logging.getLogger(__name__)


def slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-") or "organization"


class OrganizationService:
    """Use cases: create/look up the caller's organization and its check-in window."""

    def __init__(self, organizations: OrganizationRepository, users: UserRepository):
        self._organizations = organizations
        self._users = users

    def _user(self, user_id: int) -> User:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def organization_of(self, user: User) -> Organization:
        """The user's organization; 400 when unassigned, 404 when it no longer exists."""
        if not user.organization_id:
            raise ValidationError("User not assigned to an organization")
        organization = self._organizations.get_by_id(user.organization_id)
        if not organization:
            raise NotFoundError("Organization not found")
        return organization

    def _unique_slug(self, name: str) -> str:
        base = slugify(name)
        slug, n = base, 2
        while self._organizations.slug_exists(slug):
            slug = f"{base}-{n}"
            n += 1
        return slug

    def create_for_user(
        self,
        user_id: int,
        *,
        name: Any,
        description: Any = None,
        jira_organization: Optional[dict[str, Any]] = None,
        now: datetime | None = None,
    ) -> Organization:
        if not isinstance(name, str) or len(name.strip()) < MIN_ORGANIZATION_NAME_LENGTH:
            raise ValidationError(f"Organization name must be at least {MIN_ORGANIZATION_NAME_LENGTH} characters")

        user = self._user(user_id)
        if user.organization_id:
            raise ValidationError("User already belongs to an organization")

        jira = None
        if jira_organization:
            jira = JiraCredentials.from_dict(jira_organization)
            if jira is None:
                raise ValidationError("Jira organization requires domain, email, and API token")

        now = now or now_local()
        name = name.strip()
        organization_id = self._organizations.create(
            Organization(
                organization_id=0,
                name=name,
                slug=self._unique_slug(name),
                description=str(description).strip() if description else None,
                owner_id=user.user_id,
                jira_organization=jira,
                settings=OrganizationSettings(),
                subscription=Subscription(trial_ends_at=now + timedelta(days=TRIAL_DAYS)),
                created_at=now,
                updated_at=now,
            )
        )
        self._users.save(replace(user, organization_id=organization_id, updated_at=now))
        logger.info("Organization %s created by user_id=%s", organization_id, user.user_id)

        organization = self._organizations.get_by_id(organization_id)
        if not organization:
            raise NotFoundError("Organization not found")
        return organization

    def get_for_user(self, user_id: int) -> Organization:
        user = self._user(user_id)
        if not user.organization_id:
            raise NotFoundError("No organization found")
        organization = self._organizations.get_by_id(user.organization_id)
        if not organization:
            raise NotFoundError("No organization found")
        return organization

    def get_check_in_window(self, user_id: int) -> CheckInWindow:
        return self.organization_of(self._user(user_id)).effective_check_in_window

    def update_check_in_window(
        self,
        user_id: int,
        *,
        start_time: Any,
        end_time: Any,
        timezone: Any,
    ) -> CheckInWindow:
        user = self._user(user_id)
        if user.role not in (Role.MANAGER, Role.ADMIN):
            raise AuthorizationError("Insufficient permissions")

        if not start_time or not end_time or not timezone:
            raise ValidationError("Start time, end time, and timezone are required")

        start = normalize_hhmm(start_time)
        end = normalize_hhmm(end_time)
        if minutes_of(start) >= minutes_of(end):
            raise ValidationError("Start time must be before end time")
        if parse_utc_offset(str(timezone)) is None:
            raise ValidationError("Invalid timezone. Use UTC or UTC+HH:MM format (e.g., UTC+3)")

        organization = self.organization_of(user)
        window = CheckInWindow(start_time=start, end_time=end, timezone=str(timezone).strip())
        self._organizations.save(replace(organization, check_in_window=window))
        logger.info("Check-in window for organization %s set to %s-%s %s", organization.organization_id, start, end, window.timezone)
        return window
