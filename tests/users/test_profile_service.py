from __future__ import annotations

import pytest

from src.worklog_tracker.worklog_tracker.core.exceptions import ValidationError
from src.worklog_tracker.worklog_tracker.users.model import JiraCredentials
from src.worklog_tracker.worklog_tracker.users.service import ProfileService

from tests.fakes import JIRA, InMemoryOrganizations, InMemoryUsers, make_org, make_user


@pytest.fixture
def users():
    return InMemoryUsers(make_user(1, organization_id=1), make_user(2))


@pytest.fixture
def service(users):
    return ProfileService(users, InMemoryOrganizations(make_org(1, jira_organization=JIRA)))


def test_update_profile_trims_names(service, users):
    user = service.update_profile(1, first_name=" Ada ", last_name="Lovelace")

    assert (user.first_name, user.last_name) == ("Ada", "Lovelace")
    with pytest.raises(ValidationError):
        service.update_profile(1, first_name="", last_name="Lovelace")


def test_update_notifications_is_partial(service):
    settings = service.update_notifications(1, {"weeklyReports": True, "unknown": False})

    assert settings.to_json() == {
        "emailNotifications": True,
        "worklogReminders": True,
        "projectUpdates": True,
        "weeklyReports": True,
    }
    assert service.get_notifications(1).weekly_reports is True


def test_update_notifications_rejects_non_booleans(service):
    with pytest.raises(ValidationError, match="boolean"):
        service.update_notifications(1, {"emailNotifications": "yes"})


def test_jira_credentials_prefer_personal_connection(service):
    assert service.jira_credentials_for(1) == JIRA
    assert service.jira_credentials_for(2) is None

    personal = service.set_jira_organization(
        1, domain="me.atlassian.net", email="me@acme.test", api_token="abc", organization_name="Me"
    )
    assert service.jira_credentials_for(1) == personal
    assert personal == JiraCredentials(domain="me.atlassian.net", email="me@acme.test", api_token="abc", organization_name="Me")


def test_jira_organization_requires_all_fields(service):
    with pytest.raises(ValidationError):
        service.set_jira_organization(1, domain="x", email="", api_token="abc")
