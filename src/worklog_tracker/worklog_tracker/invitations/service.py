from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional

from ..common.datetime_utils import now_local
from ..common.validators import require_email, require_non_empty
from ..core.constants import INVITATION_TTL_DAYS, INVITE_RESET_TOKEN_TTL_HOURS
from ..core.enums import AuthMethod, Role, UserStatus
from ..core.exceptions import AuthorizationError, ConflictError, GoneError, NotFoundError, ValidationError
from ..notifications.email_service import EmailService
from ..users.model import User
from ..users.repository import UserRepository
from ..users.tokens import generate_token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InvitationResult:
    user: User
    email_sent: bool


class InvitationService:
    """Use case: a manager invites a developer into their organization."""

    def __init__(self, users: UserRepository, email: Optional[EmailService], *, base_url: str):
        self._users = users
        self._email = email
        self._base_url = base_url.rstrip("/")

    def invite_developer(
        self,
        *,
        inviter_id: int,
        first_name: Any,
        last_name: Any,
        email: Any,
        department: Any = None,
        now: datetime | None = None,
    ) -> InvitationResult:
        inviter = self._users.get_by_id(inviter_id)
        if not inviter or inviter.role != Role.MANAGER:
            raise AuthorizationError("Only managers can invite new users")

        if not first_name or not last_name or not email:
            raise ValidationError("First name, last name, and email are required")
        first_name = require_non_empty(first_name, "First name")
        last_name = require_non_empty(last_name, "Last name")
        email = require_email(email)

        if self._users.get_by_email(email):
            raise ConflictError("User with this email already exists")

        now = now or now_local()
        invitation_token = generate_token()
        reset_token = generate_token()
        user_id = self._users.create(
            User(
                user_id=0,
                email=email,
                first_name=first_name,
                last_name=last_name,
                role=Role.DEVELOPER,
                status=UserStatus.INVITED,
                is_email_verified=False,
                auth_methods=(AuthMethod.ATLASSIAN,),
                organization_id=inviter.organization_id,
                department=str(department).strip() if department else None,
                invitation_token=invitation_token,
                invitation_expires=now + timedelta(days=INVITATION_TTL_DAYS),
                invited_at=now,
                invited_by=inviter.user_id,
                reset_password_token=reset_token,
                reset_password_expires=now + timedelta(hours=INVITE_RESET_TOKEN_TTL_HOURS),
                created_at=now,
                updated_at=now,
            )
        )
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")

        email_sent = False
        if self._email:
            email_sent = self._email.send_invitation(
                to=user.email,
                first_name=user.first_name,
                inviter_name=inviter.display_name,
                set_password_url=f"{self._base_url}/auth/set-password?token={reset_token}",
                accept_url=f"{self._base_url}/invite/accept?token={invitation_token}",
            )
        if not email_sent:
            logger.warning("Invitation email not sent for user_id=%s", user.user_id)

        logger.info("Manager %s invited user_id=%s", inviter.user_id, user.user_id)
        return InvitationResult(user=user, email_sent=email_sent)

    def validate(self, token: Any, *, now: datetime | None = None) -> User:
        if not token:
            raise ValidationError("Invitation token is required")
        user = self._users.get_by_invitation_token(str(token))
        if not user or user.status != UserStatus.INVITED:
            raise NotFoundError("Invalid invitation token")
        if user.invitation_expires and user.invitation_expires < (now or now_local()):
            raise GoneError("Invitation has expired")
        return user
