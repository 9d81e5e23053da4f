from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Sequence

from ..core.constants import OAUTH_PLACEHOLDER_DOMAIN
from ..core.enums import AuthMethod, Role, UserStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json
from .model import JiraCredentials, NotificationSettings, User
from .repository import UserRepository

_WRITABLE_COLUMNS = (
    "email",
    "password_hash",
    "first_name",
    "last_name",
    "role",
    "status",
    "is_active",
    "is_email_verified",
    "auth_methods",
    "organization_id",
    "department",
    "invitation_token",
    "invitation_expires",
    "invited_at",
    "invited_by",
    "oauth_state",
    "oauth_state_expires",
    "atlassian_account_id",
    "atlassian_email",
    "atlassian_display_name",
    "atlassian_avatar_url",
    "atlassian_access_token",
    "atlassian_refresh_token",
    "atlassian_token_expires",
    "reset_password_token",
    "reset_password_expires",
    "jira_organization",
    "notification_settings",
    "last_login",
)

_SELECT = "SELECT user_id, " + ", ".join(_WRITABLE_COLUMNS) + ", created_at, updated_at FROM users"


def _row_to_user(row: dict[str, Any]) -> User:
    return User(
        user_id=int(row["user_id"]),
        email=row["email"],
        password_hash=row.get("password_hash"),
        first_name=row["first_name"],
        last_name=row["last_name"],
        role=Role(row["role"]),
        status=UserStatus(row["status"]),
        is_active=bool(row.get("is_active", True)),
        is_email_verified=bool(row.get("is_email_verified", False)),
        auth_methods=tuple(AuthMethod(m) for m in load_json(row.get("auth_methods"), [])),
        organization_id=row.get("organization_id"),
        department=row.get("department"),
        invitation_token=row.get("invitation_token"),
        invitation_expires=row.get("invitation_expires"),
        invited_at=row.get("invited_at"),
        invited_by=row.get("invited_by"),
        oauth_state=row.get("oauth_state"),
        oauth_state_expires=row.get("oauth_state_expires"),
        atlassian_account_id=row.get("atlassian_account_id"),
        atlassian_email=row.get("atlassian_email"),
        atlassian_display_name=row.get("atlassian_display_name"),
        atlassian_avatar_url=row.get("atlassian_avatar_url"),
        atlassian_access_token=row.get("atlassian_access_token"),
        atlassian_refresh_token=row.get("atlassian_refresh_token"),
        atlassian_token_expires=row.get("atlassian_token_expires"),
        reset_password_token=row.get("reset_password_token"),
        reset_password_expires=row.get("reset_password_expires"),
        jira_organization=JiraCredentials.from_dict(load_json(row.get("jira_organization"))),
        notification_settings=NotificationSettings.from_dict(load_json(row.get("notification_settings"))),
        last_login=row.get("last_login"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def _params(user: User) -> tuple:
    return (
        user.email.lower(),
        user.password_hash,
        user.first_name,
        user.last_name,
        user.role.value,
        user.status.value,
        int(user.is_active),
        int(user.is_email_verified),
        dump_json([m.value for m in user.auth_methods]),
        user.organization_id,
        user.department,
        user.invitation_token,
        user.invitation_expires,
        user.invited_at,
        user.invited_by,
        user.oauth_state,
        user.oauth_state_expires,
        user.atlassian_account_id,
        user.atlassian_email,
        user.atlassian_display_name,
        user.atlassian_avatar_url,
        user.atlassian_access_token,
        user.atlassian_refresh_token,
        user.atlassian_token_expires,
        user.reset_password_token,
        user.reset_password_expires,
        dump_json(user.jira_organization.to_dict()) if user.jira_organization else None,
        dump_json(user.notification_settings.to_dict()),
        user.last_login,
    )


def _where(
    *,
    role: Optional[Role] = None,
    is_active: Optional[bool] = None,
    is_email_verified: Optional[bool] = None,
    department: Optional[str] = None,
    search: Optional[str] = None,
    created_since: Optional[datetime] = None,
) -> tuple[str, list[Any]]:
    clauses: list[str] = []
    args: list[Any] = []
    if role is not None:
        clauses.append("role=%s")
        args.append(role.value)
    if is_active is not None:
        clauses.append("is_active=%s")
        args.append(int(is_active))
    if is_email_verified is not None:
        clauses.append("is_email_verified=%s")
        args.append(int(is_email_verified))
    if department:
        clauses.append("department=%s")
        args.append(department)
    if search:
        like = f"%{search.lower()}%"
        clauses.append("(LOWER(first_name) LIKE %s OR LOWER(last_name) LIKE %s OR LOWER(email) LIKE %s)")
        args.extend([like, like, like])
    if created_since is not None:
        clauses.append("created_at >= %s")
        args.append(created_since)
    sql = (" WHERE " + " AND ".join(clauses)) if clauses else ""
    return sql, args


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, where: str, args: tuple) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE {where} LIMIT 1", args)
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._get_one("user_id=%s", (user_id,))

    def get_by_email(self, email: str) -> Optional[User]:
        return self._get_one("email=%s", (email.strip().lower(),))

    def get_by_atlassian_account(self, account_id: str, *, role: Role, status: UserStatus) -> Optional[User]:
        return self._get_one(
            "atlassian_account_id=%s AND role=%s AND status=%s",
            (account_id, role.value, status.value),
        )

    def get_by_invitation_token(self, token: str) -> Optional[User]:
        return self._get_one("invitation_token=%s", (token,))

    def get_by_oauth_state(self, state: str) -> Optional[User]:
        return self._get_one("oauth_state=%s", (state,))

    def get_by_reset_token(self, token: str) -> Optional[User]:
        return self._get_one("reset_password_token=%s", (token,))

    def create(self, user: User) -> int:
        placeholders = ",".join(["%s"] * len(_WRITABLE_COLUMNS))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO users({', '.join(_WRITABLE_COLUMNS)}) VALUES({placeholders})",
                _params(user),
            )
            return int(cur.lastrowid)

    def save(self, user: User) -> None:
        assignments = ", ".join(f"{col}=%s" for col in _WRITABLE_COLUMNS)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE users SET {assignments} WHERE user_id=%s", _params(user) + (user.user_id,))

    def delete_by_id(self, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM users WHERE user_id=%s", (user_id,))
            return cur.rowcount > 0

    def delete_expired_placeholders(self, *, now: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM users WHERE email LIKE %s AND (oauth_state_expires IS NULL OR oauth_state_expires < %s)",
                (f"%@{OAUTH_PLACEHOLDER_DOMAIN}", now),
            )
            return cur.rowcount

    def list_by_organization(self, organization_id: int, *, role: Optional[Role] = None) -> Sequence[User]:
        sql = f"{_SELECT} WHERE organization_id=%s"
        args: list[Any] = [organization_id]
        if role is not None:
            sql += " AND role=%s"
            args.append(role.value)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY first_name, last_name", tuple(args))
            return [_row_to_user(r) for r in fetchall(cur)]

    def list_filtered(
        self,
        *,
        role: Optional[Role] = None,
        is_active: Optional[bool] = None,
        department: Optional[str] = None,
        search: Optional[str] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> Sequence[User]:
        where, args = _where(role=role, is_active=is_active, department=department, search=search)
        sql = f"{_SELECT}{where} ORDER BY created_at DESC, user_id DESC"
        if limit is not None:
            sql += " LIMIT %s OFFSET %s"
            args.extend([limit, offset])
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(args))
            return [_row_to_user(r) for r in fetchall(cur)]

    def count(
        self,
        *,
        role: Optional[Role] = None,
        is_active: Optional[bool] = None,
        is_email_verified: Optional[bool] = None,
        department: Optional[str] = None,
        search: Optional[str] = None,
        created_since: Optional[datetime] = None,
    ) -> int:
        where, args = _where(
            role=role,
            is_active=is_active,
            is_email_verified=is_email_verified,
            department=department,
            search=search,
            created_since=created_since,
        )
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM users{where}", tuple(args))
            row = fetchone(cur)
            return int(row["total"]) if row else 0
