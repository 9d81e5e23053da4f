from __future__ import annotations

from datetime import timedelta

import pytest

from src.worklog_tracker.worklog_tracker.core.enums import Role
from src.worklog_tracker.worklog_tracker.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.worklog_tracker.worklog_tracker.organizations.model import CheckInWindow
from src.worklog_tracker.worklog_tracker.organizations.service import OrganizationService, slugify

from tests.fakes import InMemoryOrganizations, InMemoryUsers, make_org, make_user


@pytest.fixture
def users():
    return InMemoryUsers(
        make_user(1, Role.MANAGER),
        make_user(2, Role.MANAGER),
        make_user(3, Role.DEVELOPER, organization_id=1),
    )


@pytest.fixture
def organizations():
    return InMemoryOrganizations(make_org(1, name="Acme", slug="acme"))


def test_slugify():
    assert slugify("Acme Corp, Inc.") == "acme-corp-inc"
    assert slugify("!!!") == "organization"


def test_create_for_user_assigns_owner_and_unique_slug(users, organizations, fixed_now):
    service = OrganizationService(organizations, users)

    organization = service.create_for_user(
        1,
        name="  Acme ",
        description="Tools",
        jira_organization={"domain": "acme.atlassian.net", "email": "a@acme.test", "apiToken": "t"},
        now=fixed_now,
    )

    assert organization.slug == "acme-2"
    assert organization.owner_id == 1
    assert organization.jira_organization.api_token == "t"
    assert organization.subscription.status == "trial"
    assert organization.subscription.trial_ends_at == fixed_now + timedelta(days=14)
    assert users.get_by_id(1).organization_id == organization.organization_id
    assert service.get_for_user(1) == organization


def test_create_for_user_validation(users, organizations):
    service = OrganizationService(organizations, users)

    with pytest.raises(ValidationError, match="at least 2"):
        service.create_for_user(1, name="A")
    with pytest.raises(ValidationError, match="already belongs"):
        service.create_for_user(3, name="Other")
    with pytest.raises(ValidationError, match="API token"):
        service.create_for_user(2, name="Other", jira_organization={"domain": "x.atlassian.net"})


def test_get_for_user_without_organization(users, organizations):
    with pytest.raises(NotFoundError):
        OrganizationService(organizations, users).get_for_user(2)


def test_check_in_window_defaults_then_updates(users, organizations):
    users.add(make_user(4, Role.MANAGER, organization_id=1))
    service = OrganizationService(organizations, users)

    assert service.get_check_in_window(3) == CheckInWindow()

    window = service.update_check_in_window(4, start_time="7:30", end_time="09:15", timezone="UTC+2")

    assert window.to_json() == {"startTime": "07:30", "endTime": "09:15", "timezone": "UTC+2"}
    assert service.get_check_in_window(3) == window


def test_update_check_in_window_validation(users, organizations):
    users.add(make_user(4, Role.MANAGER, organization_id=1))
    service = OrganizationService(organizations, users)

    with pytest.raises(AuthorizationError):
        service.update_check_in_window(3, start_time="08:00", end_time="10:00", timezone="UTC")
    with pytest.raises(ValidationError, match="HH:MM"):
        service.update_check_in_window(4, start_time="8am", end_time="10:00", timezone="UTC")
    with pytest.raises(ValidationError, match="before end"):
        service.update_check_in_window(4, start_time="10:00", end_time="10:00", timezone="UTC")
    with pytest.raises(ValidationError, match="Invalid timezone"):
        service.update_check_in_window(4, start_time="08:00", end_time="10:00", timezone="Europe/Kyiv")
    with pytest.raises(ValidationError, match="required"):
        service.update_check_in_window(4, start_time="08:00", end_time="", timezone="UTC")
