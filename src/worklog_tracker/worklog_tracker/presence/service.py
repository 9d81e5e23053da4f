from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Optional

from ..common.datetime_utils import hhmm, now_in_zone, parse_iso_date
from ..core.constants import DEFAULT_HISTORY_DAYS, DEFAULT_HISTORY_LIMIT, DEFAULT_RECENT_ACTIVITY, MAX_DESCRIPTION_LENGTH
from ..core.enums import Mood
from ..core.exceptions import NotFoundError, ValidationError
from ..organizations.service import OrganizationService
from ..users.repository import UserRepository
from .factory import CheckInStrategyFactory
from .model import PresenceRecord
from .repository import PresenceRepository
from .stats import attendance_rate, compute_streaks, punctuality_stats

logger = logging.getLogger(__name__)


class AlreadyCheckedInError(ValidationError):
    def __init__(self, record: PresenceRecord):
        super().__init__("Already checked in today")
        self.record = record


def parse_mood(value: Any) -> Mood:
    if value in (None, ""):
        return Mood.PRESENT
    try:
        return Mood(value)
    except ValueError:
        raise ValidationError("Invalid mood")


def parse_description(value: Any) -> Optional[str]:
    if value in (None, ""):
        return None
    if not isinstance(value, str):
        raise ValidationError("Description must be a string")
    if len(value) > MAX_DESCRIPTION_LENGTH:
        raise ValidationError(f"Description must be at most {MAX_DESCRIPTION_LENGTH} characters")
    return value.strip() or None


class PresenceService:
    """Use cases for developers: daily check-in and personal attendance stats."""

    def __init__(
        self,
        presence: PresenceRepository,
        users: UserRepository,
        organizations: OrganizationService,
        *,
        strategy_factory: CheckInStrategyFactory | None = None,
    ):
        self._presence = presence
        self._users = users
        self._organizations = organizations
        self._factory = strategy_factory or CheckInStrategyFactory()

    def check_in(self, user_id: int, *, mood: Any = None, description: Any = None, now: datetime | None = None) -> PresenceRecord:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        organization = self._organizations.organization_of(user)

        mood_value = parse_mood(mood)
        description_value = parse_description(description)

        window = organization.effective_check_in_window
        current = now_in_zone(window.timezone, now=now)
        today = current.date()

        existing = self._presence.get_for_user_and_date(user.user_id, today)
        if existing:
            raise AlreadyCheckedInError(existing)

        strategy = self._factory.for_checkin(current=hhmm(current), window=window)
        decision = strategy.decide(current=hhmm(current), window=window)

        record = PresenceRecord(
            record_id=0,
            user_id=user.user_id,
            atlassian_account_id=user.atlassian_account_id,
            organization_id=organization.organization_id,
            work_date=today,
            check_in_time=current.time().replace(second=0, microsecond=0),
            check_in_type=decision.check_in_type,
            status=decision.status,
            mood=mood_value,
            description=description_value,
            window_snapshot=window,
            created_at=current,
            updated_at=current,
        )
        record_id = self._presence.create(record)
        logger.info("user_id=%s checked in %s (%s)", user.user_id, today, decision.check_in_type.value)

        saved = self._presence.get_for_user_and_date(user.user_id, today)
        if not saved:
            raise NotFoundError(f"Check-in {record_id} was not stored")
        return saved

    def overview(self, user_id: int, *, date: Optional[str] = None, now: datetime | None = None) -> dict[str, Any]:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")

        window = self._organizations.organization_of(user).effective_check_in_window

        today = now_in_zone(window.timezone, now=now).date()
        try:
            target = parse_iso_date(date) if date else today
        except ValueError:
            raise ValidationError("Invalid date. Use YYYY-MM-DD")

        today_status = self._presence.get_for_user_and_date(user.user_id, target)
        history = list(
            self._presence.list_for_user_since(
                user.user_id,
                today - timedelta(days=DEFAULT_HISTORY_DAYS),
                limit=DEFAULT_HISTORY_LIMIT,
            )
        )

        current_streak, longest_streak = compute_streaks(history)
        present = sum(1 for r in history if r.is_present)

        return {
            "todayStatus": today_status.to_json() if today_status else None,
            "stats": {
                "currentStreak": current_streak,
                "longestStreak": longest_streak,
                "totalDaysPresent": present,
                "totalDaysTracked": len(history),
                "attendanceRate": attendance_rate(present, len(history)),
            },
            "punctualityStats": punctuality_stats(history),
            "organizationCheckInWindow": window.to_json(),
            "recentActivity": [r.to_json() for r in history[:DEFAULT_RECENT_ACTIVITY]],
        }
