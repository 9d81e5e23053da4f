from __future__ import annotations

from urllib.parse import parse_qs, urlparse

import pytest

from src.worklog_tracker.worklog_tracker.core.enums import Role
from src.worklog_tracker.worklog_tracker.main import create_app

from tests.fakes import PASSWORD, InMemoryOrganizations, InMemoryUsers, build_container, make_org, make_user


@pytest.fixture
def container():
    users = InMemoryUsers(
        make_user(1, Role.ADMIN),
        make_user(2, Role.MANAGER, organization_id=1),
        make_user(3, Role.DEVELOPER, organization_id=1),
    )
    return build_container(users=users, organizations=InMemoryOrganizations(make_org(1)))


@pytest.fixture
def client(container):
    app = create_app(container=container, settings_module="config.testing")
    return app.test_client()


def _bearer(container, user_id):
    token = container.tokens.issue(container.users_repo.get_by_id(user_id))
    return {"Authorization": f"Bearer {token}"}


def test_protected_routes_require_identity(client):
    resp = client.get("/api/auth/me")

    assert resp.status_code == 401
    assert resp.get_json() == {"error": "Unauthorized"}


def test_signup_then_credentials_session(client):
    resp = client.post(
        "/api/auth/signup",
        json={
            "email": "boss@example.com",
            "password": "longenough",
            "confirmPassword": "longenough",
            "firstName": "Bo",
            "lastName": "Ss",
        },
    )
    assert resp.status_code == 201
    assert resp.get_json()["user"]["role"] == "MANAGER"

    resp = client.post("/api/auth/callback/credentials", json={"email": "boss@example.com", "password": "longenough"})
    assert resp.status_code == 200

    session_user = client.get("/api/auth/session").get_json()["user"]
    assert session_user["email"] == "boss@example.com"

    client.post("/api/auth/logout")
    assert client.get("/api/auth/session").status_code == 401


def test_validation_errors_are_json(client):
    resp = client.post(
        "/api/auth/signup",
        json={"email": "x@example.com", "password": "longenough", "confirmPassword": "nope-nope", "firstName": "A", "lastName": "B"},
    )

    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Passwords don't match"}


def test_login_sets_token_cookie(client):
    resp = client.post("/api/auth/login", json={"email": "user3@example.com", "password": PASSWORD})

    assert resp.status_code == 200
    cookie = resp.headers["Set-Cookie"]
    assert cookie.startswith("token=")
    assert "HttpOnly" in cookie


def test_bearer_token_identifies_user(client, container):
    resp = client.get("/api/auth/me", headers=_bearer(container, 3))

    assert resp.status_code == 200
    assert resp.get_json()["user"]["id"] == 3


def test_check_in_and_team_view(client, container):
    first = client.post("/api/developer/online-status/check-in", json={"mood": "happy"}, headers=_bearer(container, 3))
    assert first.status_code == 201
    assert first.get_json()["checkIn"]["mood"] == "happy"

    again = client.post("/api/developer/online-status/check-in", json={}, headers=_bearer(container, 3))
    assert again.status_code == 400
    assert again.get_json()["checkIn"]["id"] == first.get_json()["checkIn"]["id"]

    team = client.get("/api/manager/online-status", headers=_bearer(container, 2))
    assert team.status_code == 200
    assert team.get_json()["todayStatus"]["total"] == 1

    assert client.get("/api/manager/online-status", headers=_bearer(container, 3)).status_code == 403


def test_check_in_window_update(client, container):
    resp = client.put(
        "/api/organization/check-in-window",
        json={"startTime": "9:00", "endTime": "11:00", "timezone": "UTC"},
        headers=_bearer(container, 2),
    )

    assert resp.status_code == 200
    assert resp.get_json()["checkInWindow"] == {"startTime": "09:00", "endTime": "11:00", "timezone": "UTC"}


def test_jira_action_requires_credentials(client):
    resp = client.post("/api/jira", json={"action": "test-connection"})

    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Missing credentials"}


def test_admin_routes_reject_non_admins(client, container):
    assert client.get("/api/admin/stats", headers=_bearer(container, 2)).status_code == 403
    assert client.get("/api/admin/stats", headers=_bearer(container, 1)).get_json()["totalUsers"] == 3


def test_invite_and_validate(client, container):
    resp = client.post(
        "/api/users/invite",
        json={"firstName": "New", "lastName": "Dev", "email": "new.dev@example.com"},
        headers=_bearer(container, 2),
    )
    assert resp.status_code == 201
    assert resp.get_json()["emailSent"] is True

    token = container.users_repo.get_by_email("new.dev@example.com").invitation_token
    valid = client.get(f"/api/invite/validate?token={token}")
    assert valid.get_json()["user"]["email"] == "new.dev@example.com"
    assert client.get("/api/invite/validate?token=nope").status_code == 404


def test_atlassian_sign_in_round_trip(client, container):
    login = client.get("/api/auth/atlassian/login")
    assert login.status_code == 302
    state = parse_qs(urlparse(login.headers["Location"]).query)["state"][0]

    callback = client.get(f"/api/auth/atlassian/callback?code=abc&state={state}")
    assert callback.status_code == 302
    user_id = int(parse_qs(urlparse(callback.headers["Location"]).query)["userId"][0])

    hop = client.get(f"/api/auth/atlassian/session?userId={user_id}")
    assert urlparse(hop.headers["Location"]).path == "/auth/atlassian-success"

    created = client.post("/api/auth/atlassian/create-session", json={"userId": user_id}).get_json()
    creds = created["credentials"]
    assert creds["email"] == "dev@acme.test"

    signed_in = client.post("/api/auth/callback/credentials", json=creds)
    assert signed_in.get_json()["user"]["atlassianAccountId"] == "acc-1"


def test_atlassian_callback_with_bad_state_redirects(client):
    resp = client.get("/api/auth/atlassian/callback?code=abc&state=unknown")

    assert resp.status_code == 302
    assert resp.headers["Location"] == "http://localhost:5000/auth/login?error=invalid_state"


def test_admin_update_with_bad_organization_id_is_a_client_error(client, container):
    resp = client.put("/api/admin/users/3", json={"organizationId": "abc"}, headers=_bearer(container, 1))

    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Invalid organization id"}
