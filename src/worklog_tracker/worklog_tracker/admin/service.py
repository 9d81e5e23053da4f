from __future__ import annotations

import logging
import math
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, Optional

from ..common.datetime_utils import now_local
from ..common.validators import optional_bool, parse_positive_int, require_email, require_non_empty
from ..core.constants import ONLINE_THRESHOLD_HOURS
from ..core.enums import Role, UserStatus
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..organizations.repository import OrganizationRepository
from ..users.model import User
from ..users.repository import UserRepository
from .settings_model import SETTING_SECTIONS
from .settings_repository import SettingsRepository

logger = logging.getLogger(__name__)

MANAGER_PERMISSIONS = ["team-management", "project-oversight", "reporting"]


def _parse_role(value: Any) -> Optional[Role]:
    if not value or value == "all":
        return None
    try:
        return Role(str(value).upper())
    except ValueError:
        raise ValidationError("Invalid role")


def _parse_active(value: Any) -> Optional[bool]:
    if not value or value == "all":
        return None
    if value == "active":
        return True
    if value == "inactive":
        return False
    raise ValidationError("Invalid status")


def _accepts(default: Any, value: Any) -> bool:
    if isinstance(default, bool):
        return isinstance(value, bool)
    if isinstance(default, int):
        return isinstance(value, int) and not isinstance(value, bool) and value >= 0
    return isinstance(value, str) and bool(value.strip())


class AdminService:
    """Use cases for platform admins: stats, user administration, settings."""

    def __init__(
        self,
        users: UserRepository,
        organizations: OrganizationRepository,
        settings: SettingsRepository,
        *,
        defaults: dict[str, dict[str, Any]],
    ):
        self._users = users
        self._organizations = organizations
        self._settings = settings
        self._defaults = defaults

    def _require_admin(self, admin_id: int) -> User:
        admin = self._users.get_by_id(admin_id)
        if not admin or admin.role != Role.ADMIN:
            raise AuthorizationError("Only admins can access this resource")
        return admin

    def _get_user(self, user_id: Any) -> User:
        try:
            user = self._users.get_by_id(int(user_id))
        except (TypeError, ValueError):
            user = None
        if not user:
            raise NotFoundError("User not found")
        return user

    def _stats(self, now: datetime) -> dict[str, Any]:
        total = self._users.count()
        active = self._users.count(is_active=True)
        unverified = self._users.count(is_email_verified=False)
        warning = total > 0 and ((total - active) / total > 0.1 or unverified / total > 0.2)
        return {
            "totalUsers": total,
            "totalManagers": self._users.count(role=Role.MANAGER),
            "totalDevelopers": self._users.count(role=Role.DEVELOPER),
            "activeUsers": active,
            "recentSignups": self._users.count(created_since=now - timedelta(days=7)),
            "systemHealth": "warning" if warning else "healthy",
        }

    def stats(self, admin_id: int, *, now: datetime | None = None) -> dict[str, Any]:
        self._require_admin(admin_id)
        return self._stats(now or now_local())

    def list_users(
        self,
        admin_id: int,
        *,
        page: Any = 1,
        limit: Any = 50,
        role: Any = None,
        status: Any = None,
        search: Any = None,
    ) -> dict[str, Any]:
        self._require_admin(admin_id)
        page = parse_positive_int(page, 1)
        limit = parse_positive_int(limit, 50, maximum=200)
        filters = {
            "role": _parse_role(role),
            "is_active": _parse_active(status),
            "search": str(search).strip() if search else None,
        }
        total = self._users.count(**filters)
        users = self._users.list_filtered(**filters, offset=(page - 1) * limit, limit=limit)
        pages = math.ceil(total / limit) if total else 0
        return {
            "users": [u.public_dict() for u in users],
            "pagination": {
                "currentPage": page,
                "totalPages": pages,
                "totalCount": total,
                "hasNextPage": page < pages,
                "hasPrevPage": page > 1,
                "limit": limit,
            },
        }

    def get_user(self, admin_id: int, user_id: Any, *, now: datetime | None = None) -> dict[str, Any]:
        self._require_admin(admin_id)
        user = self._get_user(user_id)
        now = now or now_local()

        organization = self._organizations.get_by_id(user.organization_id) if user.organization_id else None
        inviter = self._users.get_by_id(user.invited_by) if user.invited_by else None
        return {
            "user": {
                **user.public_dict(),
                "organization": (
                    {"id": organization.organization_id, "name": organization.name, "slug": organization.slug}
                    if organization
                    else None
                ),
                "invitedByUser": (
                    {"id": inviter.user_id, "name": inviter.display_name, "email": inviter.email} if inviter else None
                ),
                "stats": {
                    "lastLoginDays": (now - user.last_login).days if user.last_login else None,
                    "isOnline": bool(user.last_login and now - user.last_login < timedelta(hours=ONLINE_THRESHOLD_HOURS)),
                },
            }
        }

    def update_user(self, admin_id: int, user_id: Any, data: dict[str, Any], *, now: datetime | None = None) -> User:
        self._require_admin(admin_id)
        user = self._get_user(user_id)

        changes: dict[str, Any] = {}
        if "firstName" in data:
            changes["first_name"] = require_non_empty(data["firstName"], "First name")
        if "lastName" in data:
            changes["last_name"] = require_non_empty(data["lastName"], "Last name")
        if "role" in data:
            role = _parse_role(data["role"])
            if role is None:
                raise ValidationError("Invalid role")
            changes["role"] = role
        if "status" in data:
            try:
                changes["status"] = UserStatus(data["status"])
            except ValueError:
                raise ValidationError("Invalid status")
        if "isActive" in data:
            changes["is_active"] = optional_bool(data["isActive"], "isActive")
        if "isEmailVerified" in data:
            changes["is_email_verified"] = optional_bool(data["isEmailVerified"], "isEmailVerified")
        if "department" in data:
            changes["department"] = str(data["department"]).strip() if data["department"] else None
        if "organizationId" in data:
            organization_id = data["organizationId"]
            if organization_id is not None:
                try:
                    organization_id = int(organization_id)
                except (TypeError, ValueError):
                    raise ValidationError("Invalid organization id")
                if not self._organizations.get_by_id(organization_id):
                    raise NotFoundError("Organization not found")
            changes["organization_id"] = organization_id

        user = replace(user, **changes, updated_at=now or now_local())
        self._users.save(user)
        logger.info("Admin %s updated user_id=%s fields=%s", admin_id, user.user_id, sorted(changes))
        return user

    def deactivate_user(self, admin_id: int, user_id: Any, *, now: datetime | None = None) -> None:
        self._require_admin(admin_id)
        user = self._get_user(user_id)
        if user.user_id == admin_id:
            raise ValidationError("Cannot delete your own account")
        self._users.save(replace(user, is_active=False, status=UserStatus.SUSPENDED, updated_at=now or now_local()))
        logger.info("Admin %s deactivated user_id=%s", admin_id, user.user_id)

    def list_managers(
        self,
        admin_id: int,
        *,
        page: Any = 1,
        limit: Any = 10,
        status: Any = None,
        department: Any = None,
    ) -> dict[str, Any]:
        self._require_admin(admin_id)
        page = parse_positive_int(page, 1)
        limit = parse_positive_int(limit, 10, maximum=100)
        filters = {
            "role": Role.MANAGER,
            "is_active": _parse_active(status),
            "department": str(department).strip() if department and department != "all" else None,
        }
        total = self._users.count(**filters)
        managers = self._users.list_filtered(**filters, offset=(page - 1) * limit, limit=limit)

        out = []
        for manager in managers:
            developers = (
                self._users.list_by_organization(manager.organization_id, role=Role.DEVELOPER)
                if manager.organization_id
                else []
            )
            out.append(
                {
                    **manager.public_dict(),
                    "managedTeams": 1 if manager.organization_id else 0,
                    "managedDevelopers": len(developers),
                    "permissions": list(MANAGER_PERMISSIONS),
                }
            )
        return {
            "managers": out,
            "pagination": {"page": page, "limit": limit, "total": total, "pages": math.ceil(total / limit) if total else 0},
        }

    def create_manager(
        self,
        admin_id: int,
        *,
        first_name: Any,
        last_name: Any,
        email: Any,
        department: Any,
        now: datetime | None = None,
    ) -> User:
        self._require_admin(admin_id)
        if not first_name or not last_name or not email or not department:
            raise ValidationError("First name, last name, email, and department are required")
        email = require_email(email)
        if self._users.get_by_email(email):
            raise ConflictError("User with this email already exists")

        now = now or now_local()
        user_id = self._users.create(
            User(
                user_id=0,
                email=email,
                first_name=require_non_empty(first_name, "First name"),
                last_name=require_non_empty(last_name, "Last name"),
                role=Role.MANAGER,
                status=UserStatus.ACTIVE,
                is_active=True,
                is_email_verified=False,
                auth_methods=(),
                department=require_non_empty(department, "Department"),
                created_at=now,
                updated_at=now,
            )
        )
        logger.info("Admin %s created manager user_id=%s", admin_id, user_id)
        return self._get_user(user_id)

    def _section_values(self, section: str) -> dict[str, Any]:
        values = dict(self._defaults.get(section, {}))
        stored = self._settings.get_section(section)
        if stored:
            values.update({k: v for k, v in stored.settings.items() if k in values})
        return values

    def get_settings(self, admin_id: int, *, now: datetime | None = None) -> dict[str, Any]:
        self._require_admin(admin_id)
        out: dict[str, Any] = {
            "systemStats": {**self._stats(now or now_local()), "totalOrganizations": self._organizations.count()},
        }
        for section, (response_key, _) in SETTING_SECTIONS.items():
            out[response_key] = self._section_values(section)
        return out

    def update_settings(self, admin_id: int, *, section: Any, settings: Any, now: datetime | None = None) -> dict[str, Any]:
        admin = self._require_admin(admin_id)
        if section not in SETTING_SECTIONS:
            raise ValidationError("Invalid settings section")
        if not isinstance(settings, dict) or not settings:
            raise ValidationError("Settings are required")

        _, schema = SETTING_SECTIONS[section]
        for key, value in settings.items():
            if key not in schema:
                raise ValidationError(f"Unknown setting {key}")
            if not _accepts(schema[key], value):
                raise ValidationError(f"Invalid value for {key}")

        now = now or now_local()
        merged = {**self._section_values(section), **settings}
        self._settings.save_section(section, merged, updated_by=admin.user_id, updated_at=now)
        logger.info("Admin %s updated %s settings: %s", admin.user_id, section, sorted(settings))
        return {"section": section, "settings": merged, "updatedAt": now.isoformat(), "updatedBy": admin.user_id}
