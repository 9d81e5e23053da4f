"""In-memory repositories and external-service doubles shared by the tests."""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Any, Optional

from werkzeug.security import generate_password_hash

from src.worklog_tracker.worklog_tracker.admin.settings_model import StoredSettings, env_defaults
from src.worklog_tracker.worklog_tracker.container import Container, assemble
from src.worklog_tracker.worklog_tracker.core.constants import OAUTH_PLACEHOLDER_DOMAIN
from src.worklog_tracker.worklog_tracker.core.enums import Role, UserStatus
from src.worklog_tracker.worklog_tracker.core.exceptions import ExternalServiceError
from src.worklog_tracker.worklog_tracker.jira.client import JiraApiError
from src.worklog_tracker.worklog_tracker.oauth.atlassian_client import AtlassianProfile, TokenSet
from src.worklog_tracker.worklog_tracker.organizations.model import Organization
from src.worklog_tracker.worklog_tracker.presence.model import PresenceRecord
from src.worklog_tracker.worklog_tracker.users.model import JiraCredentials, User
from src.worklog_tracker.worklog_tracker.users.tokens import TokenService

PASSWORD = "Secret123!"


def make_user(user_id: int, role: Role = Role.DEVELOPER, **overrides: Any) -> User:
    fields: dict[str, Any] = {
        "user_id": user_id,
        "email": f"user{user_id}@example.com",
        "first_name": "User",
        "last_name": str(user_id),
        "role": role,
        "password_hash": generate_password_hash(PASSWORD),
        "is_email_verified": True,
        "created_at": datetime(2025, 1, 1, 9, 0),
    }
    fields.update(overrides)
    return User(**fields)


def make_org(organization_id: int = 1, **overrides: Any) -> Organization:
    fields: dict[str, Any] = {"organization_id": organization_id, "name": "Acme", "slug": "acme"}
    fields.update(overrides)
    return Organization(**fields)


JIRA = JiraCredentials(domain="acme.atlassian.net", email="bot@acme.test", api_token="token")


class InMemoryUsers:
    def __init__(self, *users: User):
        self.by_id: dict[int, User] = {u.user_id: u for u in users}
        self._next_id = max(self.by_id, default=0) + 1

    def add(self, user: User) -> User:
        self.by_id[user.user_id] = user
        self._next_id = max(self._next_id, user.user_id + 1)
        return user

    def _find(self, predicate) -> Optional[User]:
        return next((u for u in self.by_id.values() if predicate(u)), None)

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.by_id.get(user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        return self._find(lambda u: u.email == email.strip().lower())

    def get_by_atlassian_account(self, account_id: str, *, role: Role, status: UserStatus) -> Optional[User]:
        return self._find(lambda u: u.atlassian_account_id == account_id and u.role == role and u.status == status)

    def get_by_invitation_token(self, token: str) -> Optional[User]:
        return self._find(lambda u: u.invitation_token == token)

    def get_by_oauth_state(self, state: str) -> Optional[User]:
        return self._find(lambda u: u.oauth_state == state)

    def get_by_reset_token(self, token: str) -> Optional[User]:
        return self._find(lambda u: u.reset_password_token == token)

    def create(self, user: User) -> int:
        if self.get_by_email(user.email):
            raise RuntimeError("Duplicate entry for key 'email'")
        user_id = self._next_id
        self._next_id += 1
        self.by_id[user_id] = replace(user, user_id=user_id)
        return user_id

    def save(self, user: User) -> None:
        self.by_id[user.user_id] = user

    def delete_by_id(self, user_id: int) -> bool:
        return self.by_id.pop(user_id, None) is not None

    def delete_expired_placeholders(self, *, now: datetime) -> int:
        expired = [
            u.user_id
            for u in self.by_id.values()
            if u.email.endswith("@" + OAUTH_PLACEHOLDER_DOMAIN)
            and (u.oauth_state_expires is None or u.oauth_state_expires < now)
        ]
        for user_id in expired:
            del self.by_id[user_id]
        return len(expired)

    def list_by_organization(self, organization_id: int, *, role: Optional[Role] = None):
        users = [u for u in self.by_id.values() if u.organization_id == organization_id and (role is None or u.role == role)]
        return sorted(users, key=lambda u: (u.first_name, u.last_name))

    def _filtered(self, *, role=None, is_active=None, is_email_verified=None, department=None, search=None, created_since=None):
        out = []
        for u in self.by_id.values():
            if role is not None and u.role != role:
                continue
            if is_active is not None and u.is_active != is_active:
                continue
            if is_email_verified is not None and u.is_email_verified != is_email_verified:
                continue
            if department and u.department != department:
                continue
            if search and search.lower() not in f"{u.first_name} {u.last_name} {u.email}".lower():
                continue
            if created_since is not None and (u.created_at is None or u.created_at < created_since):
                continue
            out.append(u)
        return out

    def list_filtered(self, *, role=None, is_active=None, department=None, search=None, offset=0, limit=None):
        users = self._filtered(role=role, is_active=is_active, department=department, search=search)
        users.sort(key=lambda u: (u.created_at or datetime.min, u.user_id), reverse=True)
        end = None if limit is None else offset + limit
        return users[offset:end]

    def count(self, **filters) -> int:
        return len(self._filtered(**filters))


class InMemoryOrganizations:
    def __init__(self, *organizations: Organization):
        self.by_id: dict[int, Organization] = {o.organization_id: o for o in organizations}
        self._next_id = max(self.by_id, default=0) + 1

    def get_by_id(self, organization_id: int) -> Optional[Organization]:
        return self.by_id.get(organization_id)

    def slug_exists(self, slug: str) -> bool:
        return any(o.slug == slug for o in self.by_id.values())

    def create(self, organization: Organization) -> int:
        organization_id = self._next_id
        self._next_id += 1
        self.by_id[organization_id] = replace(organization, organization_id=organization_id)
        return organization_id

    def save(self, organization: Organization) -> None:
        self.by_id[organization.organization_id] = organization

    def count(self) -> int:
        return len(self.by_id)


class InMemoryPresence:
    def __init__(self, *records: PresenceRecord):
        self.by_id: dict[int, PresenceRecord] = {r.record_id: r for r in records}
        self._next_id = max(self.by_id, default=0) + 1

    def _newest_first(self, records):
        return sorted(records, key=lambda r: r.sort_key, reverse=True)

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[PresenceRecord]:
        return next((r for r in self.by_id.values() if r.user_id == user_id and r.work_date == work_date), None)

    def get_in_organization(self, record_id: int, organization_id: int) -> Optional[PresenceRecord]:
        record = self.by_id.get(record_id)
        return record if record and record.organization_id == organization_id else None

    def create(self, record: PresenceRecord) -> int:
        if self.get_for_user_and_date(record.user_id, record.work_date):
            raise RuntimeError("Duplicate entry for key 'uq_online_status_user_day'")
        record_id = self._next_id
        self._next_id += 1
        self.by_id[record_id] = replace(record, record_id=record_id)
        return record_id

    def save(self, record: PresenceRecord) -> None:
        self.by_id[record.record_id] = record

    def delete_in_organization(self, record_id: int, organization_id: int) -> bool:
        if not self.get_in_organization(record_id, organization_id):
            return False
        del self.by_id[record_id]
        return True

    def list_for_user_since(self, user_id: int, since: date, *, limit: Optional[int] = None):
        records = self._newest_first(r for r in self.by_id.values() if r.user_id == user_id and r.work_date >= since)
        return records[:limit] if limit is not None else records

    def list_for_organization_since(self, organization_id: int, since: date, *, user_id: Optional[int] = None):
        return self._newest_first(
            r
            for r in self.by_id.values()
            if r.organization_id == organization_id
            and r.work_date >= since
            and (user_id is None or r.user_id == user_id)
        )


class InMemorySettings:
    def __init__(self):
        self.sections: dict[str, StoredSettings] = {}

    def get_section(self, section: str) -> Optional[StoredSettings]:
        return self.sections.get(section)

    def save_section(self, section: str, settings: dict[str, Any], *, updated_by: int, updated_at: datetime) -> None:
        self.sections[section] = StoredSettings(section=section, settings=dict(settings), updated_at=updated_at, updated_by=updated_by)


class FakeEmail:
    def __init__(self, *, succeed: bool = True):
        self.succeed = succeed
        self.sent: list[tuple[str, dict[str, Any]]] = []

    def send_invitation(self, **kwargs: Any) -> bool:
        self.sent.append(("invitation", kwargs))
        return self.succeed

    def send_password_reset(self, **kwargs: Any) -> bool:
        self.sent.append(("password_reset", kwargs))
        return self.succeed


class FakeOAuthClient:
    def __init__(self, profile: Optional[AtlassianProfile] = None, *, fail_exchange: bool = False, fail_profile: bool = False):
        self.profile = profile or AtlassianProfile(
            account_id="acc-1",
            email="dev@acme.test",
            name="Dana Developer",
            picture="https://avatar.test/dana.png",
        )
        self.fail_exchange = fail_exchange
        self.fail_profile = fail_profile
        self.refreshed: list[str] = []

    def authorize_url(self, state: str) -> str:
        return f"https://auth.atlassian.test/authorize?state={state}"

    def exchange_code(self, code: str) -> TokenSet:
        if self.fail_exchange:
            raise ExternalServiceError("Token exchange failed", upstream_status=400)
        return TokenSet(access_token=f"access-{code}", refresh_token="refresh-1", expires_in=3600)

    def refresh(self, refresh_token: str) -> TokenSet:
        self.refreshed.append(refresh_token)
        return TokenSet(access_token="access-new", refresh_token=None, expires_in=3600)

    def fetch_profile(self, access_token: str) -> AtlassianProfile:
        if self.fail_profile:
            raise ExternalServiceError("Profile fetch failed", upstream_status=401)
        return self.profile


class FakeJiraClient:
    """Answers the JiraClient calls used by JiraService from canned data."""

    def __init__(self, credentials: JiraCredentials, *, issues=None, users=None, projects=None, counts=None, error: Optional[JiraApiError] = None):
        self.credentials = credentials
        self.issues = issues or []
        self.users = users or []
        self.projects = projects or []
        self.counts = counts or {}
        self.error = error
        self.searches: list[dict[str, Any]] = []

    def _check(self) -> None:
        if self.error:
            raise self.error

    def get_myself(self):
        self._check()
        return {"accountId": "me", "emailAddress": self.credentials.email}

    def search(self, jql, *, fields, max_results=50, expand=None):
        self._check()
        self.searches.append({"jql": jql, "fields": fields, "max_results": max_results, "expand": expand})
        return {"issues": list(self.issues)}

    def count(self, jql: str) -> int:
        self._check()
        return self.counts.get(jql, 0)

    def search_users(self, *, max_results: int = 1000):
        self._check()
        return list(self.users)

    def get_projects(self):
        self._check()
        return list(self.projects)

    def fetch_attachment(self, media_id: str):
        raise JiraApiError(404, f"no attachment {media_id}")


def jira_factory(**canned: Any):
    """Client factory handing out one shared FakeJiraClient, exposed as ``.last``."""

    def factory(credentials: JiraCredentials) -> FakeJiraClient:
        factory.last = FakeJiraClient(credentials, **canned)
        return factory.last

    factory.last = None
    return factory


def build_container(
    *,
    users: Optional[InMemoryUsers] = None,
    organizations: Optional[InMemoryOrganizations] = None,
    presence: Optional[InMemoryPresence] = None,
    email: Optional[FakeEmail] = None,
    oauth_client: Optional[FakeOAuthClient] = None,
    jira_client_factory=None,
) -> Container:
    return assemble(
        users_repo=users or InMemoryUsers(),
        organizations_repo=organizations or InMemoryOrganizations(),
        presence_repo=presence or InMemoryPresence(),
        settings_repo=InMemorySettings(),
        tokens=TokenService("test-secret", expires_days=7),
        email=email or FakeEmail(),
        oauth_client=oauth_client or FakeOAuthClient(),
        jira_client_factory=jira_client_factory or jira_factory(),
        base_url="http://localhost:5000",
        settings_defaults=env_defaults({}),
    )

