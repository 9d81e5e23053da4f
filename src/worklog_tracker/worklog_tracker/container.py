from __future__ import annotations

import os
from dataclasses import dataclass
from functools import partial
from types import ModuleType
from typing import Any, Optional

from .admin.mysql_settings_repository import MySQLSettingsRepository
from .admin.service import AdminService
from .admin.settings_model import env_defaults
from .admin.settings_repository import SettingsRepository
from .database.connection import DBConfig, DatabaseConnection
from .invitations.service import InvitationService
from .jira.client import JiraClient
from .jira.dashboard import DeveloperDashboardService
from .jira.rewards import RewardsService
from .jira.service import ClientFactory, JiraService
from .notifications.email_service import EmailService, SMTPConfig
from .oauth.atlassian_client import AtlassianOAuthClient, AtlassianOAuthConfig
from .oauth.service import AtlassianOAuthService
from .organizations.mysql_organization_repository import MySQLOrganizationRepository
from .organizations.repository import OrganizationRepository
from .organizations.service import OrganizationService
from .presence.factory import CheckInStrategyFactory
from .presence.manager_service import TeamPresenceService
from .presence.mysql_presence_repository import MySQLPresenceRepository
from .presence.repository import PresenceRepository
from .presence.service import PresenceService
from .users.mysql_user_repository import MySQLUserRepository
from .users.password_service import PasswordService
from .users.repository import UserRepository
from .users.service import AuthService, ProfileService
from .users.tokens import TokenService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]
    base_url: str

    users_repo: UserRepository
    organizations_repo: OrganizationRepository
    presence_repo: PresenceRepository
    settings_repo: SettingsRepository

    tokens: TokenService
    auth_service: AuthService
    password_service: PasswordService
    profile_service: ProfileService
    invitation_service: InvitationService
    oauth_service: AtlassianOAuthService
    organization_service: OrganizationService
    presence_service: PresenceService
    team_presence_service: TeamPresenceService
    jira_service: JiraService
    rewards_service: RewardsService
    dashboard_service: DeveloperDashboardService
    admin_service: AdminService


def assemble(
    *,
    users_repo: UserRepository,
    organizations_repo: OrganizationRepository,
    presence_repo: PresenceRepository,
    settings_repo: SettingsRepository,
    tokens: TokenService,
    email: Optional[EmailService],
    oauth_client: AtlassianOAuthClient,
    jira_client_factory: ClientFactory,
    base_url: str,
    settings_defaults: dict[str, dict[str, Any]],
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Wire services over the given repositories (MySQL in production, in-memory in tests)."""
    organization_service = OrganizationService(organizations_repo, users_repo)
    jira_service = JiraService(jira_client_factory)

    return Container(
        conn=conn,
        base_url=base_url.rstrip("/"),
        users_repo=users_repo,
        organizations_repo=organizations_repo,
        presence_repo=presence_repo,
        settings_repo=settings_repo,
        tokens=tokens,
        auth_service=AuthService(users_repo, tokens),
        password_service=PasswordService(users_repo, email, base_url=base_url),
        profile_service=ProfileService(users_repo, organizations_repo),
        invitation_service=InvitationService(users_repo, email, base_url=base_url),
        oauth_service=AtlassianOAuthService(users_repo, oauth_client),
        organization_service=organization_service,
        presence_service=PresenceService(
            presence_repo,
            users_repo,
            organization_service,
            strategy_factory=CheckInStrategyFactory(),
        ),
        team_presence_service=TeamPresenceService(presence_repo, users_repo, organization_service),
        jira_service=jira_service,
        rewards_service=RewardsService(users_repo, organization_service, jira_service),
        dashboard_service=DeveloperDashboardService(users_repo, organization_service, jira_service),
        admin_service=AdminService(
            users_repo,
            organizations_repo,
            settings_repo,
            defaults=settings_defaults,
        ),
    )


def build_container(*, db_config: dict, settings: ModuleType) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))
    base_url = str(getattr(settings, "APP_BASE_URL"))
    timeout = int(getattr(settings, "JIRA_TIMEOUT_SECONDS", 15))

    email = EmailService(
        SMTPConfig(
            host=getattr(settings, "SMTP_HOST", ""),
            port=int(getattr(settings, "SMTP_PORT", 587)),
            user=getattr(settings, "SMTP_USER", None),
            password=getattr(settings, "SMTP_PASSWORD", None),
            use_tls=bool(getattr(settings, "SMTP_USE_TLS", True)),
            sender=getattr(settings, "EMAIL_FROM", None),
        ),
        company_name=getattr(settings, "COMPANY_NAME", "Worklog Tracker"),
    )
    oauth_client = AtlassianOAuthClient(
        AtlassianOAuthConfig(
            client_id=getattr(settings, "ATLASSIAN_CLIENT_ID", ""),
            client_secret=getattr(settings, "ATLASSIAN_CLIENT_SECRET", ""),
            redirect_uri=getattr(settings, "ATLASSIAN_REDIRECT_URI", f"{base_url}/api/auth/atlassian/callback"),
        ),
        timeout=timeout,
    )

    return assemble(
        conn=conn,
        users_repo=MySQLUserRepository(conn),
        organizations_repo=MySQLOrganizationRepository(conn),
        presence_repo=MySQLPresenceRepository(conn),
        settings_repo=MySQLSettingsRepository(conn),
        tokens=TokenService(getattr(settings, "SECRET_KEY"), expires_days=int(getattr(settings, "JWT_EXPIRES_DAYS", 7))),
        email=email,
        oauth_client=oauth_client,
        jira_client_factory=partial(JiraClient, timeout=timeout),
        base_url=base_url,
        settings_defaults=env_defaults(os.environ),
    )
