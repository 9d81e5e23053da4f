from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Any, Optional

from werkzeug.security import generate_password_hash

from ..common.datetime_utils import now_local
from ..core.constants import OAUTH_PLACEHOLDER_DOMAIN, OAUTH_STATE_TTL_MINUTES
from ..core.enums import AuthMethod, Role, UserStatus
from ..core.exceptions import AuthorizationError, ExternalServiceError, NotFoundError, ValidationError
from ..users.model import User
from ..users.repository import UserRepository
from ..users.tokens import generate_token
from .atlassian_client import AtlassianOAuthClient, AtlassianProfile, TokenSet

logger = logging.getLogger(__name__)

INVITE_PAGE = "/invite/accept"
LOGIN_PAGE = "/auth/login"


class OAuthFlowError(Exception):
    """A callback failure that is reported by redirecting to ``page?error=code``."""

    def __init__(self, page: str, code: str):
        super().__init__(code)
        self.page = page
        self.code = code


@dataclass(frozen=True)
class SessionCredentials:
    user: User
    password: str


def _split_name(name: Optional[str]) -> tuple[str, str]:
    parts = (name or "").split()
    first = parts[0] if parts else "Developer"
    last = " ".join(parts[1:]) if len(parts) > 1 else "User"
    return first, last


class AtlassianOAuthService:
    """Account linking for Atlassian sign-in.

    A login without an invitation stores its state on a short-lived placeholder
    user; the callback either links an invited user or signs in (or creates)
    the developer owning the Atlassian account.
    """

    def __init__(self, users: UserRepository, client: AtlassianOAuthClient):
        self._users = users
        self._client = client

    def start_login(self, invitation_token: Optional[str] = None, *, now: datetime | None = None) -> str:
        now = now or now_local()
        state = generate_token(16)
        expires = now + timedelta(minutes=OAUTH_STATE_TTL_MINUTES)

        if invitation_token:
            user = self._users.get_by_invitation_token(invitation_token)
            if not user or user.status != UserStatus.INVITED or user.role != Role.DEVELOPER:
                raise ValidationError("Invalid invitation token")
            self._users.save(replace(user, oauth_state=state, oauth_state_expires=expires))
        else:
            purged = self._users.delete_expired_placeholders(now=now)
            if purged:
                logger.info("Purged %d expired OAuth placeholder users", purged)
            self._users.create(
                User(
                    user_id=0,
                    email=f"temp-{state}@{OAUTH_PLACEHOLDER_DOMAIN}",
                    first_name="OAuth",
                    last_name="User",
                    role=Role.DEVELOPER,
                    status=UserStatus.ACTIVE,
                    auth_methods=(AuthMethod.ATLASSIAN,),
                    oauth_state=state,
                    oauth_state_expires=expires,
                    created_at=now,
                    updated_at=now,
                )
            )

        return self._client.authorize_url(state)

    def _linked(self, user: User, profile: AtlassianProfile, tokens: TokenSet, now: datetime) -> User:
        return replace(
            user,
            atlassian_account_id=profile.account_id,
            atlassian_email=profile.email,
            atlassian_display_name=profile.name,
            atlassian_avatar_url=profile.picture,
            atlassian_access_token=tokens.access_token,
            atlassian_refresh_token=tokens.refresh_token,
            atlassian_token_expires=now + timedelta(seconds=tokens.expires_in),
            auth_methods=user.with_auth_method(AuthMethod.ATLASSIAN),
            oauth_state=None,
            oauth_state_expires=None,
            last_login=now,
            updated_at=now,
        )

    def _save(self, user: User) -> None:
        try:
            self._users.save(user)
        except Exception as e:
            logger.exception("Failed to store Atlassian link for user_id=%s", user.user_id)
            raise OAuthFlowError(LOGIN_PAGE, "user_update_failed") from e

    def handle_callback(self, code: Optional[str], state: Optional[str], *, now: datetime | None = None) -> int:
        """Finish the OAuth dance and return the id of the signed-in developer."""
        now = now or now_local()
        if not code or not state:
            raise OAuthFlowError(INVITE_PAGE, "invalid_state")

        holder = self._users.get_by_oauth_state(state)
        if (
            not holder
            or holder.role != Role.DEVELOPER
            or not holder.oauth_state_expires
            or holder.oauth_state_expires <= now
        ):
            raise OAuthFlowError(LOGIN_PAGE, "invalid_state")

        try:
            tokens = self._client.exchange_code(code)
        except ExternalServiceError as e:
            raise OAuthFlowError(INVITE_PAGE, "token_exchange_failed") from e

        try:
            profile = self._client.fetch_profile(tokens.access_token)
        except ExternalServiceError as e:
            raise OAuthFlowError(INVITE_PAGE, "profile_fetch_failed") from e

        if holder.status == UserStatus.INVITED:
            if holder.invitation_expires and holder.invitation_expires < now:
                raise OAuthFlowError(INVITE_PAGE, "invitation_expired")
            linked = replace(
                self._linked(holder, profile, tokens, now),
                status=UserStatus.ACTIVE,
                is_email_verified=True,
                invitation_token=None,
                invitation_expires=None,
            )
            self._save(linked)
            logger.info("Invitation accepted via Atlassian for user_id=%s", linked.user_id)
            return linked.user_id

        if holder.status != UserStatus.ACTIVE:
            raise OAuthFlowError(LOGIN_PAGE, "invalid_user_status")

        existing = self._users.get_by_atlassian_account(
            profile.account_id, role=Role.DEVELOPER, status=UserStatus.ACTIVE
        )
        if existing and existing.user_id != holder.user_id:
            self._save(self._linked(existing, profile, tokens, now))
            user_id = existing.user_id
        elif holder.is_oauth_placeholder:
            first, last = _split_name(profile.name)
            email = (profile.email or "").lower()
            if not email or self._users.get_by_email(email):
                raise OAuthFlowError(LOGIN_PAGE, "user_update_failed")
            try:
                user_id = self._users.create(
                    replace(
                        self._linked(holder, profile, tokens, now),
                        user_id=0,
                        email=email,
                        first_name=first,
                        last_name=last,
                        is_email_verified=True,
                        created_at=now,
                    )
                )
            except Exception as e:
                logger.exception("Failed to create developer for Atlassian account")
                raise OAuthFlowError(LOGIN_PAGE, "user_update_failed") from e
            logger.info("Developer user_id=%s created from Atlassian sign-in", user_id)
        else:
            self._save(self._linked(holder, profile, tokens, now))
            user_id = holder.user_id

        if holder.is_oauth_placeholder:
            self._users.delete_by_id(holder.user_id)
        return user_id

    def session_target(self, user_id: Any, *, pending_user_id: Optional[int]) -> User:
        """Check the post-callback hop; raises OAuthFlowError for the login page."""
        try:
            user_id = int(user_id)
        except (TypeError, ValueError):
            raise OAuthFlowError(LOGIN_PAGE, "invalid_user")
        user = self._users.get_by_id(user_id)
        if not user:
            raise OAuthFlowError(LOGIN_PAGE, "user_not_found")
        if pending_user_id != user.user_id:
            raise OAuthFlowError(LOGIN_PAGE, "invalid_user")
        return user

    def create_session(self, user_id: Any, *, pending_user_id: Optional[int], now: datetime | None = None) -> SessionCredentials:
        """Issue a one-off password so the browser can sign in with credentials."""
        if not user_id:
            raise ValidationError("User ID is required")
        try:
            user_id = int(user_id)
        except (TypeError, ValueError):
            raise ValidationError("User ID is required")

        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        if pending_user_id != user.user_id:
            raise AuthorizationError("No pending Atlassian sign-in for this user")

        now = now or now_local()
        password = f"atlassian_{user.user_id}_{int(now.timestamp() * 1000)}"
        user = replace(
            user,
            password_hash=generate_password_hash(password),
            auth_methods=user.with_auth_method(AuthMethod.PASSWORD),
        )
        self._users.save(user)
        return SessionCredentials(user=user, password=password)

    def refresh_tokens(self, user_id: int, *, now: datetime | None = None) -> User:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        if not user.atlassian_refresh_token:
            raise ValidationError("No Atlassian refresh token available")

        now = now or now_local()
        tokens = self._client.refresh(user.atlassian_refresh_token)
        user = replace(
            user,
            atlassian_access_token=tokens.access_token,
            atlassian_refresh_token=tokens.refresh_token or user.atlassian_refresh_token,
            atlassian_token_expires=now + timedelta(seconds=tokens.expires_in),
        )
        self._users.save(user)
        return user
