from __future__ import annotations

from typing import Any, Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchone, load_json
from ..users.model import JiraCredentials
from .model import CheckInWindow, Organization, OrganizationSettings, Subscription
from .repository import OrganizationRepository


def _row_to_organization(row: dict[str, Any]) -> Organization:
    return Organization(
        organization_id=int(row["organization_id"]),
        name=row["name"],
        slug=row["slug"],
        description=row.get("description"),
        owner_id=row.get("owner_id"),
        jira_organization=JiraCredentials.from_dict(load_json(row.get("jira_organization"))),
        settings=OrganizationSettings.from_dict(load_json(row.get("settings"))),
        check_in_window=CheckInWindow.from_dict(load_json(row.get("check_in_window"))),
        subscription=Subscription.from_dict(load_json(row.get("subscription"))),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def _params(org: Organization) -> tuple:
    return (
        org.name,
        org.slug,
        org.description,
        org.owner_id,
        dump_json(org.jira_organization.to_dict()) if org.jira_organization else None,
        dump_json(org.settings.to_dict()),
        dump_json(org.check_in_window.to_dict()) if org.check_in_window else None,
        dump_json(org.subscription.to_dict()),
    )


class MySQLOrganizationRepository(OrganizationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, organization_id: int) -> Optional[Organization]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT organization_id, name, slug, description, owner_id, jira_organization,
                       settings, check_in_window, subscription, created_at, updated_at
                FROM organizations
                WHERE organization_id=%s
                """,
                (organization_id,),
            )
            row = fetchone(cur)
            return _row_to_organization(row) if row else None

    def slug_exists(self, slug: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT 1 AS found FROM organizations WHERE slug=%s LIMIT 1", (slug,))
            return fetchone(cur) is not None

    def create(self, organization: Organization) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO organizations(name, slug, description, owner_id, jira_organization,
                                          settings, check_in_window, subscription)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                _params(organization),
            )
            return int(cur.lastrowid)

    def save(self, organization: Organization) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE organizations
                SET name=%s, slug=%s, description=%s, owner_id=%s, jira_organization=%s,
                    settings=%s, check_in_window=%s, subscription=%s
                WHERE organization_id=%s
                """,
                _params(organization) + (organization.organization_id,),
            )

    def count(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS total FROM organizations")
            row = fetchone(cur)
            return int(row["total"]) if row else 0
