from urllib.parse import parse_qs, urlparse

import pytest

from src.worklog_tracker.worklog_tracker.core.exceptions import ExternalServiceError
from src.worklog_tracker.worklog_tracker.oauth.atlassian_client import (
    AtlassianConfigError,
    AtlassianOAuthClient,
    AtlassianOAuthConfig,
)

CONFIG = AtlassianOAuthConfig(client_id="cid", client_secret="secret", redirect_uri="http://app.test/api/auth/atlassian/callback")


class _Response:
    def __init__(self, status_code, payload=None):
        self.status_code = status_code
        self._payload = payload or {}

    def json(self):
        return self._payload


class _Session:
    def __init__(self, response):
        self.response = response
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append(("POST", url, kwargs))
        return self.response

    def get(self, url, **kwargs):
        self.calls.append(("GET", url, kwargs))
        return self.response


def test_authorize_url_carries_state_and_consent():
    url = AtlassianOAuthClient(CONFIG).authorize_url("abc")

    query = parse_qs(urlparse(url).query)
    assert url.startswith("https://auth.atlassian.com/authorize?")
    assert query["state"] == ["abc"]
    assert query["client_id"] == ["cid"]
    assert query["prompt"] == ["consent"]
    assert query["scope"] == ["read:me read:account"]


def test_missing_client_credentials_are_reported():
    client = AtlassianOAuthClient(AtlassianOAuthConfig(client_id="", client_secret="", redirect_uri="x"))

    with pytest.raises(AtlassianConfigError):
        client.authorize_url("abc")


def test_exchange_code_posts_grant():
    session = _Session(_Response(200, {"access_token": "at", "refresh_token": "rt", "expires_in": 1800}))

    tokens = AtlassianOAuthClient(CONFIG, session=session).exchange_code("the-code")

    assert (tokens.access_token, tokens.refresh_token, tokens.expires_in) == ("at", "rt", 1800)
    _, _, kwargs = session.calls[0]
    assert kwargs["json"]["grant_type"] == "authorization_code"
    assert kwargs["json"]["code"] == "the-code"


def test_non_200_token_response_raises():
    client = AtlassianOAuthClient(CONFIG, session=_Session(_Response(400)))

    with pytest.raises(ExternalServiceError) as exc:
        client.exchange_code("bad")

    assert exc.value.upstream_status == 400
