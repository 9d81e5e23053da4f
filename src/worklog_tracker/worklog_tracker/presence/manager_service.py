from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Any, Optional

from ..common.datetime_utils import now_in_zone, now_local, parse_iso_date, start_of_week
from ..common.validators import parse_positive_int
from ..core.constants import DEFAULT_HISTORY_DAYS, MAX_EDIT_REASON_LENGTH
from ..core.enums import PresenceStatus, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..organizations.model import Organization
from ..organizations.service import OrganizationService
from ..users.model import User
from ..users.repository import UserRepository
from .model import PresenceRecord
from .repository import PresenceRepository
from .service import parse_description, parse_mood
from .stats import attendance_rate, check_in_hour, compute_streaks, punctuality_stats

logger = logging.getLogger(__name__)


def _user_json(user: Optional[User]) -> Optional[dict[str, Any]]:
    if not user:
        return None
    return {
        "id": user.user_id,
        "name": user.display_name,
        "email": user.email,
        "atlassianAccountId": user.atlassian_account_id,
    }


def _record_id(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError("Record ID is required")


class TeamPresenceService:
    """Use cases for managers: team presence dashboard and record corrections."""

    def __init__(self, presence: PresenceRepository, users: UserRepository, organizations: OrganizationService):
        self._presence = presence
        self._users = users
        self._organizations = organizations

    def _manager_and_org(self, manager_id: int) -> tuple[User, Organization]:
        manager = self._users.get_by_id(manager_id)
        if not manager:
            raise NotFoundError("User not found")
        if manager.role not in (Role.MANAGER, Role.ADMIN):
            raise AuthorizationError("Only managers can access this resource")
        return manager, self._organizations.organization_of(manager)

    def _with_user(self, record: PresenceRecord, users: dict[int, User]) -> dict[str, Any]:
        data = record.to_json()
        data["user"] = _user_json(users.get(record.user_id) or self._users.get_by_id(record.user_id))
        return data

    def team_overview(
        self,
        manager_id: int,
        *,
        date: Optional[str] = None,
        user_id: Optional[int] = None,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        _, organization = self._manager_and_org(manager_id)
        window = organization.effective_check_in_window
        today = now_in_zone(window.timezone, now=now).date()
        try:
            target = parse_iso_date(date) if date else today
        except ValueError:
            raise ValidationError("Invalid date. Use YYYY-MM-DD")

        developers = list(self._users.list_by_organization(organization.organization_id, role=Role.DEVELOPER))
        by_id = {d.user_id: d for d in developers}
        total = len(developers)

        since = min(today - timedelta(days=DEFAULT_HISTORY_DAYS), target)
        records = list(self._presence.list_for_organization_since(organization.organization_id, since, user_id=user_id))
        recent = [r for r in records if r.work_date >= today - timedelta(days=DEFAULT_HISTORY_DAYS)]

        def on_day(day: date) -> list[PresenceRecord]:
            return [r for r in records if r.work_date == day and r.user_id in by_id]

        target_records = on_day(target)
        present = sum(1 for r in target_records if r.is_present)

        daily = []
        for i in range(6, -1, -1):
            day = today - timedelta(days=i)
            day_present = [r for r in on_day(day) if r.is_present]
            daily.append(
                {
                    "date": day.isoformat(),
                    "onlineCount": len(day_present),
                    "totalCount": total,
                    "averageHours": sum(check_in_hour(r) for r in day_present) / total if total else 0,
                }
            )

        monday = start_of_week(today)
        weekly = []
        for offset in range(7):
            day = monday + timedelta(days=offset)
            weekly.append(
                {
                    "date": day.isoformat(),
                    "dayName": day.strftime("%A"),
                    "isToday": day == today,
                    "records": [self._with_user(r, by_id) for r in on_day(day)],
                }
            )
        weekly.sort(key=lambda d: (not d["isToday"], d["date"]))

        return {
            "developers": [_user_json(d) for d in developers],
            "todayStatus": {
                "present": present,
                "absent": max(total - present, 0),
                "total": total,
                "attendanceRate": attendance_rate(present, total),
            },
            "punctualityStats": punctuality_stats(target_records),
            "organizationCheckInWindow": window.to_json(),
            "dailyPresenceData": daily,
            "weeklyRecords": weekly,
            "onlineStatusRecords": [self._with_user(r, by_id) for r in recent],
        }

    def developer_detail(
        self,
        manager_id: int,
        *,
        developer_id: Any,
        days: Any = None,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        if not developer_id:
            raise ValidationError("Developer ID is required")
        _, organization = self._manager_and_org(manager_id)
        try:
            developer = self._users.get_by_id(int(developer_id))
        except (TypeError, ValueError):
            developer = None
        if (
            not developer
            or developer.role != Role.DEVELOPER
            or developer.organization_id != organization.organization_id
        ):
            raise NotFoundError("Developer not found")

        span = parse_positive_int(days, DEFAULT_HISTORY_DAYS, maximum=365)
        today = now_in_zone(organization.effective_check_in_window.timezone, now=now).date()
        records = list(self._presence.list_for_user_since(developer.user_id, today - timedelta(days=span)))

        current_streak, longest_streak = compute_streaks(records)
        present = sum(1 for r in records if r.is_present)
        return {
            "developer": _user_json(developer),
            "stats": {
                "currentStreak": current_streak,
                "longestStreak": longest_streak,
                "totalDaysPresent": present,
                "totalDaysTracked": len(records),
                "attendanceRate": attendance_rate(present, span),
                "days": span,
            },
            "punctualityStats": punctuality_stats(records),
            "records": [r.to_json() for r in records],
        }

    def edit_record(
        self,
        manager_id: int,
        *,
        record_id: Any,
        status: Any = None,
        mood: Any = None,
        description: Any = None,
        edit_reason: Any = None,
        now: datetime | None = None,
    ) -> PresenceRecord:
        if not record_id:
            raise ValidationError("Record ID is required")
        manager, organization = self._manager_and_org(manager_id)
        record = self._presence.get_in_organization(_record_id(record_id), organization.organization_id)
        if not record:
            raise NotFoundError("Record not found")

        changes: dict[str, Any] = {}
        if status not in (None, ""):
            try:
                changes["status"] = PresenceStatus(status)
            except ValueError:
                raise ValidationError("Invalid status")
        if mood not in (None, ""):
            changes["mood"] = parse_mood(mood)
        if description is not None:
            changes["description"] = parse_description(description)

        reason = str(edit_reason).strip() if edit_reason else "Updated by manager"
        if len(reason) > MAX_EDIT_REASON_LENGTH:
            raise ValidationError(f"Edit reason must be at most {MAX_EDIT_REASON_LENGTH} characters")

        edited_at = now or now_local()
        updated = replace(
            record,
            **changes,
            is_edited=True,
            edited_by=manager.user_id,
            edited_at=edited_at,
            edit_reason=reason,
            original_status={
                "status": record.status.value,
                "mood": record.mood.value,
                "description": record.description,
                "time": record.time_label,
                "checkInType": record.check_in_type.value,
            },
            updated_at=edited_at,
        )
        self._presence.save(updated)
        logger.info("Manager %s edited check-in %s", manager.user_id, record.record_id)
        return updated

    def delete_record(self, manager_id: int, *, record_id: Any) -> None:
        if not record_id:
            raise ValidationError("Record ID is required")
        manager, organization = self._manager_and_org(manager_id)
        if not self._presence.delete_in_organization(_record_id(record_id), organization.organization_id):
            raise NotFoundError("Record not found")
        logger.info("Manager %s deleted check-in %s", manager.user_id, record_id)
