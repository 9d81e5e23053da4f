from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt

from ..core.constants import DEFAULT_JWT_EXPIRES_DAYS
from .model import User

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"


def generate_token(nbytes: int = 32) -> str:
    """Random hex token for reset links and invitations."""
    return secrets.token_hex(nbytes)


class TokenService:
    """Issues and checks the login JWT (``{userId, email}``)."""

    def __init__(self, secret_key: str, *, expires_days: int = DEFAULT_JWT_EXPIRES_DAYS):
        self._secret_key = secret_key
        self.expires_days = int(expires_days)

    def issue(self, user: User, *, now: Optional[datetime] = None) -> str:
        issued = now or datetime.now(timezone.utc)
        payload = {
            "userId": user.user_id,
            "email": user.email,
            "iat": issued,
            "exp": issued + timedelta(days=self.expires_days),
        }
        return jwt.encode(payload, self._secret_key, algorithm=JWT_ALGORITHM)

    def decode(self, token: str) -> Optional[dict[str, Any]]:
        try:
            return jwt.decode(token, self._secret_key, algorithms=[JWT_ALGORITHM])
        except jwt.ExpiredSignatureError:
            logger.info("Rejected expired JWT")
            return None
        except jwt.InvalidTokenError:
            logger.warning("Rejected invalid JWT (length=%d)", len(token))
            return None

    def user_id_from(self, token: str) -> Optional[int]:
        payload = self.decode(token)
        if not payload or "userId" not in payload:
            return None
        return int(payload["userId"])
