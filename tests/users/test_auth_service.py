from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from src.worklog_tracker.worklog_tracker.core.enums import AuthMethod, Role, UserStatus
from src.worklog_tracker.worklog_tracker.core.exceptions import AuthenticationError, ConflictError, ValidationError
from src.worklog_tracker.worklog_tracker.users.service import AuthService
from src.worklog_tracker.worklog_tracker.users.tokens import TokenService

from tests.fakes import PASSWORD, InMemoryUsers, make_user


@pytest.fixture
def users():
    return InMemoryUsers(make_user(1, Role.MANAGER))


@pytest.fixture
def tokens():
    return TokenService("test-secret", expires_days=7)


def test_signup_creates_verified_manager(users, tokens, fixed_now):
    service = AuthService(users, tokens)

    user = service.signup(
        email=" New.Manager@Example.com ",
        password="longenough",
        confirm_password="longenough",
        first_name="Nina",
        last_name="Manager",
        now=fixed_now,
    )

    assert user.email == "new.manager@example.com"
    assert user.role == Role.MANAGER
    assert user.is_email_verified is True
    assert user.auth_methods == (AuthMethod.PASSWORD,)
    assert user.password_hash and user.password_hash != "longenough"


def test_signup_rejects_duplicates_and_bad_input(users, tokens):
    service = AuthService(users, tokens)
    base = dict(password="longenough", confirm_password="longenough", first_name="A", last_name="B")

    with pytest.raises(ConflictError):
        service.signup(email="user1@example.com", **base)
    with pytest.raises(ValidationError, match="match"):
        service.signup(email="x@example.com", password="longenough", confirm_password="different", first_name="A", last_name="B")
    with pytest.raises(ValidationError, match="at least 8"):
        service.signup(email="x@example.com", password="short", confirm_password="short", first_name="A", last_name="B")
    with pytest.raises(ValidationError, match="email"):
        service.signup(email="not-an-email", **base)


def test_authorize_credentials_success_updates_last_login(users, tokens, fixed_now):
    service = AuthService(users, tokens)

    s_user = service.authorize_credentials("USER1@example.com", PASSWORD, now=fixed_now)

    assert s_user.user_id == 1
    assert s_user.to_dict()["role"] == "MANAGER"
    assert users.get_by_id(1).last_login == fixed_now


def test_authorize_credentials_error_order(users, tokens):
    service = AuthService(users, tokens)
    users.add(make_user(2, Role.DEVELOPER, auth_methods=(AuthMethod.ATLASSIAN,)))
    users.add(make_user(3, is_email_verified=False))
    users.add(make_user(4, is_active=False))
    users.add(make_user(5, status=UserStatus.SUSPENDED))

    with pytest.raises(AuthenticationError, match="Invalid credentials"):
        service.authorize_credentials("", PASSWORD)
    with pytest.raises(AuthenticationError, match="Invalid credentials"):
        service.authorize_credentials("nobody@example.com", PASSWORD)
    with pytest.raises(AuthenticationError, match="Atlassian OAuth"):
        service.authorize_credentials("user2@example.com", PASSWORD)
    with pytest.raises(AuthenticationError, match="Invalid credentials"):
        service.authorize_credentials("user3@example.com", "wrong-password")
    with pytest.raises(AuthenticationError, match="verify your email"):
        service.authorize_credentials("user3@example.com", PASSWORD)
    with pytest.raises(AuthenticationError, match="disabled"):
        service.authorize_credentials("user4@example.com", PASSWORD)
    with pytest.raises(AuthenticationError, match="disabled"):
        service.authorize_credentials("user5@example.com", PASSWORD)


def test_login_issues_jwt_for_user(users, tokens):
    service = AuthService(users, tokens)

    user, token = service.login("user1@example.com", PASSWORD)

    assert tokens.user_id_from(token) == user.user_id
    assert tokens.decode(token)["email"] == "user1@example.com"
    with pytest.raises(AuthenticationError, match="Invalid email or password"):
        service.login("user1@example.com", "nope")


def test_login_rejects_accounts_without_password(users, tokens):
    users.add(replace(make_user(2), password_hash=None))

    with pytest.raises(AuthenticationError):
        AuthService(users, tokens).login("user2@example.com", PASSWORD)


def test_tokens_reject_tampered_and_expired(tokens):
    user = make_user(7)
    token = tokens.issue(user)

    assert tokens.user_id_from(token) == 7
    assert tokens.user_id_from(token + "x") is None
    assert TokenService("other-secret").user_id_from(token) is None

    expired = tokens.issue(user, now=datetime.now(timezone.utc) - timedelta(days=8))
    assert tokens.decode(expired) is None


def test_session_user_requires_existing_account(users, tokens):
    service = AuthService(users, tokens)

    assert service.session_user(1).email == "user1@example.com"
    with pytest.raises(AuthenticationError):
        service.session_user(99)
