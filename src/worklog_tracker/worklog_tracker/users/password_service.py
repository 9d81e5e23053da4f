from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, Optional

from werkzeug.security import generate_password_hash

from ..common.datetime_utils import now_local
from ..common.validators import require_matching_passwords, require_password
from ..core.constants import RESET_TOKEN_TTL_HOURS
from ..core.enums import AuthMethod, UserStatus
from ..core.exceptions import NotFoundError, ValidationError
from ..notifications.email_service import EmailService
from .model import User
from .repository import UserRepository
from .service import password_matches
from .tokens import generate_token

logger = logging.getLogger(__name__)

FORGOT_PASSWORD_MESSAGE = "If an account with that email exists, we've sent a password reset link."


class PasswordService:
    """Use cases: forgot/reset password, invitation set-password, change and setup."""

    def __init__(self, users: UserRepository, email: Optional[EmailService], *, base_url: str):
        self._users = users
        self._email = email
        self._base_url = base_url.rstrip("/")

    def _valid_reset_user(self, token: Any, now: datetime) -> User:
        if not isinstance(token, str) or not token:
            raise ValidationError("Token is required")
        user = self._users.get_by_reset_token(token)
        if not user or not user.reset_password_expires or user.reset_password_expires <= now:
            raise ValidationError("Invalid or expired reset token")
        return user

    def forgot_password(self, email: Any, *, now: datetime | None = None) -> str:
        now = now or now_local()
        if not isinstance(email, str) or not email.strip():
            raise ValidationError("Email is required")

        user = self._users.get_by_email(email.strip().lower())
        if not user:
            return FORGOT_PASSWORD_MESSAGE

        token = generate_token()
        self._users.save(
            replace(
                user,
                reset_password_token=token,
                reset_password_expires=now + timedelta(hours=RESET_TOKEN_TTL_HOURS),
            )
        )
        if self._email:
            sent = self._email.send_password_reset(
                to=user.email,
                first_name=user.first_name,
                reset_url=f"{self._base_url}/auth/reset-password?token={token}",
            )
            if not sent:
                logger.warning("Password reset email could not be sent to user_id=%s", user.user_id)
        return FORGOT_PASSWORD_MESSAGE

    def validate_reset_token(self, token: Any, *, now: datetime | None = None) -> User:
        return self._valid_reset_user(token, now or now_local())

    def reset_password(self, token: Any, password: Any, confirm_password: Any, *, now: datetime | None = None) -> None:
        password = require_password(password)
        require_matching_passwords(password, confirm_password)
        user = self._valid_reset_user(token, now or now_local())
        self._users.save(
            replace(
                user,
                password_hash=generate_password_hash(password),
                is_email_verified=True,
                reset_password_token=None,
                reset_password_expires=None,
                auth_methods=user.with_auth_method(AuthMethod.PASSWORD),
            )
        )

    def set_password(self, token: Any, password: Any, *, now: datetime | None = None) -> User:
        """Finish an invitation by choosing a password."""
        password = require_password(password)
        now = now or now_local()
        user = self._valid_reset_user(token, now)
        user = replace(
            user,
            password_hash=generate_password_hash(password),
            is_email_verified=True,
            is_active=True,
            status=UserStatus.ACTIVE,
            invitation_token=None,
            invitation_expires=None,
            reset_password_token=None,
            reset_password_expires=None,
            auth_methods=user.with_auth_method(AuthMethod.PASSWORD),
            updated_at=now,
        )
        self._users.save(user)
        logger.info("Invitation completed with password for user_id=%s", user.user_id)
        return user

    def change_password(self, user_id: int, *, current_password: Any, new_password: Any) -> None:
        if not current_password or not new_password:
            raise ValidationError("Current password and new password are required")
        new_password = require_password(new_password, field_name="New password")

        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        if not user.password_hash:
            raise ValidationError("No password set for this account. Use setup-password instead")
        if not password_matches(user, str(current_password)):
            raise ValidationError("Current password is incorrect")

        self._users.save(replace(user, password_hash=generate_password_hash(new_password)))

    def setup_password(self, user_id: int, *, password: Any, confirm_password: Any) -> None:
        password = require_password(password)
        require_matching_passwords(password, confirm_password)

        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        if user.password_hash:
            raise ValidationError("Password already set")

        self._users.save(
            replace(
                user,
                password_hash=generate_password_hash(password),
                auth_methods=user.with_auth_method(AuthMethod.PASSWORD),
            )
        )
