from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from src.worklog_tracker.worklog_tracker.admin.service import AdminService
from src.worklog_tracker.worklog_tracker.admin.settings_model import env_defaults
from src.worklog_tracker.worklog_tracker.core.enums import Role, UserStatus
from src.worklog_tracker.worklog_tracker.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)

from tests.fakes import InMemoryOrganizations, InMemorySettings, InMemoryUsers, make_org, make_user


@pytest.fixture
def users(fixed_now):
    return InMemoryUsers(
        make_user(1, Role.ADMIN, created_at=datetime(2024, 1, 1)),
        make_user(2, Role.MANAGER, organization_id=1, department="Eng", created_at=datetime(2024, 6, 1)),
        make_user(3, Role.DEVELOPER, organization_id=1, created_at=fixed_now - timedelta(days=2), invited_by=2),
        make_user(4, Role.DEVELOPER, organization_id=1, is_active=False, is_email_verified=False, created_at=fixed_now - timedelta(days=1)),
    )


@pytest.fixture
def settings():
    return InMemorySettings()


@pytest.fixture
def service(users, settings):
    organizations = InMemoryOrganizations(make_org(1))
    return AdminService(users, organizations, settings, defaults=env_defaults({"MAX_USERS_PER_ORG": "250"}))


def test_only_admins_pass(service):
    with pytest.raises(AuthorizationError, match="Only admins"):
        service.stats(2)


def test_stats(service, fixed_now):
    assert service.stats(1, now=fixed_now) == {
        "totalUsers": 4,
        "totalManagers": 1,
        "totalDevelopers": 2,
        "activeUsers": 3,
        "recentSignups": 2,
        "systemHealth": "warning",
    }


def test_list_users_filters_and_paginates(service):
    page = service.list_users(1, page="1", limit="2")

    assert [u["id"] for u in page["users"]] == [4, 3]
    assert page["pagination"] == {
        "currentPage": 1,
        "totalPages": 2,
        "totalCount": 4,
        "hasNextPage": True,
        "hasPrevPage": False,
        "limit": 2,
    }
    assert [u["id"] for u in service.list_users(1, role="developer", status="active")["users"]] == [3]
    with pytest.raises(ValidationError):
        service.list_users(1, role="owner")


def test_get_user_includes_organization_and_inviter(service, users, fixed_now):
    users.add(make_user(5, last_login=fixed_now - timedelta(hours=1), organization_id=1, invited_by=2))

    detail = service.get_user(1, 5, now=fixed_now)["user"]

    assert detail["organization"] == {"id": 1, "name": "Acme", "slug": "acme"}
    assert detail["invitedByUser"]["id"] == 2
    assert detail["stats"] == {"lastLoginDays": 0, "isOnline": True}
    with pytest.raises(NotFoundError):
        service.get_user(1, 99)


def test_update_user_applies_known_fields(service, users):
    user = service.update_user(1, 3, {"role": "MANAGER", "isActive": False, "department": " Ops "})

    assert user.role == Role.MANAGER
    assert user.is_active is False
    assert user.department == "Ops"
    assert users.get_by_id(3) == user
    with pytest.raises(ValidationError):
        service.update_user(1, 3, {"status": "sleeping"})
    with pytest.raises(NotFoundError):
        service.update_user(1, 3, {"organizationId": 42})


def test_update_user_rejects_malformed_values(service, users):
    with pytest.raises(ValidationError, match="Invalid organization id"):
        service.update_user(1, 3, {"organizationId": "abc"})
    with pytest.raises(ValidationError, match="isActive must be a boolean"):
        service.update_user(1, 3, {"isActive": "false"})
    with pytest.raises(ValidationError, match="isEmailVerified must be a boolean"):
        service.update_user(1, 3, {"isEmailVerified": "false"})

    assert users.get_by_id(3).is_active is True


def test_deactivate_user(service, users):
    service.deactivate_user(1, 3)

    assert users.get_by_id(3).is_active is False
    assert users.get_by_id(3).status == UserStatus.SUSPENDED
    with pytest.raises(ValidationError, match="own account"):
        service.deactivate_user(1, 1)


def test_managers_listing_counts_developers(service):
    result = service.list_managers(1, department="Eng")

    manager = result["managers"][0]
    assert manager["id"] == 2
    assert manager["managedTeams"] == 1
    assert manager["managedDevelopers"] == 2
    assert result["pagination"] == {"page": 1, "limit": 10, "total": 1, "pages": 1}


def test_create_manager(service):
    manager = service.create_manager(1, first_name="Max", last_name="Boss", email="Max@Example.com", department="Sales")

    assert manager.email == "max@example.com"
    assert manager.role == Role.MANAGER
    assert manager.auth_methods == ()
    with pytest.raises(ConflictError):
        service.create_manager(1, first_name="Max", last_name="Boss", email="max@example.com", department="Sales")
    with pytest.raises(ValidationError):
        service.create_manager(1, first_name="Max", last_name="Boss", email="max2@example.com", department="")


def test_settings_merge_defaults_and_stored(service, settings, fixed_now):
    data = service.get_settings(1, now=fixed_now)
    assert data["platformConfig"]["MAX_USERS_PER_ORG"] == 250
    assert data["systemStats"]["totalOrganizations"] == 1

    result = service.update_settings(1, section="security", settings={"MAX_LOGIN_ATTEMPTS": 3}, now=fixed_now)

    assert result["settings"]["MAX_LOGIN_ATTEMPTS"] == 3
    assert result["settings"]["LOCKOUT_DURATION"] == 30
    assert settings.get_section("security").updated_by == 1
    assert service.get_settings(1, now=fixed_now)["securitySettings"]["MAX_LOGIN_ATTEMPTS"] == 3


def test_settings_validation(service):
    with pytest.raises(ValidationError, match="section"):
        service.update_settings(1, section="billing", settings={"X": 1})
    with pytest.raises(ValidationError, match="Unknown setting"):
        service.update_settings(1, section="security", settings={"X": 1})
    with pytest.raises(ValidationError, match="Invalid value"):
        service.update_settings(1, section="security", settings={"MAX_LOGIN_ATTEMPTS": "many"})
    with pytest.raises(ValidationError, match="Invalid value"):
        service.update_settings(1, section="platform", settings={"MAINTENANCE_MODE": 1})
