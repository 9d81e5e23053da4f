from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urlencode

import requests

from ..core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

AUTHORIZE_URL = "https://auth.atlassian.com/authorize"
TOKEN_URL = "https://auth.atlassian.com/oauth/token"
PROFILE_URL = "https://api.atlassian.com/me"
SCOPES = "read:me read:account"


class AtlassianConfigError(RuntimeError):
    """Raised when the OAuth app credentials are missing."""


@dataclass(frozen=True)
class AtlassianOAuthConfig:
    client_id: str
    client_secret: str
    redirect_uri: str


@dataclass(frozen=True)
class TokenSet:
    access_token: str
    refresh_token: Optional[str]
    expires_in: int


@dataclass(frozen=True)
class AtlassianProfile:
    account_id: str
    email: Optional[str]
    name: Optional[str]
    picture: Optional[str]


class AtlassianOAuthClient:
    """OAuth 2.0 (3LO) endpoints of Atlassian, over requests."""

    def __init__(self, config: AtlassianOAuthConfig, *, timeout: int = 15, session: Optional[requests.Session] = None):
        self._config = config
        self._timeout = timeout
        self._session = session or requests.Session()

    def _require_config(self) -> None:
        if not self._config.client_id or not self._config.client_secret:
            raise AtlassianConfigError("ATLASSIAN_CLIENT_ID and ATLASSIAN_CLIENT_SECRET must be set")

    def authorize_url(self, state: str) -> str:
        self._require_config()
        params = {
            "audience": "api.atlassian.com",
            "client_id": self._config.client_id,
            "scope": SCOPES,
            "redirect_uri": self._config.redirect_uri,
            "state": state,
            "response_type": "code",
            "prompt": "consent",
        }
        return f"{AUTHORIZE_URL}?{urlencode(params)}"

    def _post_token(self, payload: dict[str, Any]) -> TokenSet:
        self._require_config()
        body = {
            "client_id": self._config.client_id,
            "client_secret": self._config.client_secret,
            **payload,
        }
        try:
            resp = self._session.post(
                TOKEN_URL,
                json=body,
                headers={"Content-Type": "application/json"},
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            logger.warning("Atlassian token request failed: %s", e)
            raise ExternalServiceError("Token exchange failed") from e

        if resp.status_code != 200:
            logger.warning("Atlassian token endpoint returned %s", resp.status_code)
            raise ExternalServiceError("Token exchange failed", upstream_status=resp.status_code)

        data = resp.json()
        logger.info("Atlassian token received (length=%d)", len(data.get("access_token", "")))
        return TokenSet(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            expires_in=int(data.get("expires_in", 3600)),
        )

    def exchange_code(self, code: str) -> TokenSet:
        return self._post_token(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self._config.redirect_uri,
            }
        )

    def refresh(self, refresh_token: str) -> TokenSet:
        return self._post_token({"grant_type": "refresh_token", "refresh_token": refresh_token})

    def fetch_profile(self, access_token: str) -> AtlassianProfile:
        try:
            resp = self._session.get(
                PROFILE_URL,
                headers={"Authorization": f"Bearer {access_token}", "Accept": "application/json"},
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            logger.warning("Atlassian profile request failed: %s", e)
            raise ExternalServiceError("Profile fetch failed") from e

        if resp.status_code != 200:
            logger.warning("Atlassian profile endpoint returned %s", resp.status_code)
            raise ExternalServiceError("Profile fetch failed", upstream_status=resp.status_code)

        data = resp.json()
        return AtlassianProfile(
            account_id=data["account_id"],
            email=data.get("email"),
            name=data.get("name"),
            picture=data.get("picture"),
        )
