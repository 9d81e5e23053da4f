from __future__ import annotations

from datetime import date, datetime, time, timezone

import pytest

from src.worklog_tracker.worklog_tracker.core.enums import CheckInType, Mood, PresenceStatus
from src.worklog_tracker.worklog_tracker.core.exceptions import ValidationError
from src.worklog_tracker.worklog_tracker.organizations.model import CheckInWindow
from src.worklog_tracker.worklog_tracker.organizations.service import OrganizationService
from src.worklog_tracker.worklog_tracker.presence.model import PresenceRecord
from src.worklog_tracker.worklog_tracker.presence.service import AlreadyCheckedInError, PresenceService

from tests.fakes import InMemoryOrganizations, InMemoryPresence, InMemoryUsers, make_org, make_user


def _service(*, window=None, presence=None, organization_id=1):
    users = InMemoryUsers(make_user(1, organization_id=organization_id, atlassian_account_id="acc-1"))
    organizations = InMemoryOrganizations(make_org(1, check_in_window=window))
    presence = presence or InMemoryPresence()
    service = PresenceService(presence, users, OrganizationService(organizations, users))
    return service, presence


def test_check_in_inside_window_is_on_time(fixed_now):
    service, presence = _service()

    record = service.check_in(1, mood="focused", description="  Sprint planning  ", now=fixed_now)

    assert record.check_in_type == CheckInType.ON_TIME
    assert record.status == PresenceStatus.PRESENT
    assert record.mood == Mood.FOCUSED
    assert record.description == "Sprint planning"
    assert record.work_date == date(2025, 3, 12)
    assert record.time_label == "09:00"
    assert record.atlassian_account_id == "acc-1"
    assert record.window_snapshot == CheckInWindow()
    assert len(presence.by_id) == 1


def test_check_in_uses_window_timezone_for_aware_now():
    window = CheckInWindow(start_time="08:00", end_time="10:00", timezone="UTC+3")
    service, _ = _service(window=window)

    # 04:30 UTC is 07:30 at UTC+3
    record = service.check_in(1, now=datetime(2025, 3, 12, 4, 30, tzinfo=timezone.utc))

    assert record.check_in_type == CheckInType.EARLY
    assert record.time_label == "07:30"


def test_check_in_after_window_is_late():
    service, _ = _service(window=CheckInWindow(start_time="08:00", end_time="09:30", timezone="UTC"))

    record = service.check_in(1, now=datetime(2025, 3, 12, 9, 31))

    assert record.check_in_type == CheckInType.LATE


def test_second_check_in_same_day_is_rejected(fixed_now):
    service, _ = _service()
    first = service.check_in(1, now=fixed_now)

    with pytest.raises(AlreadyCheckedInError) as exc:
        service.check_in(1, now=fixed_now.replace(hour=11))

    assert exc.value.record.record_id == first.record_id
    assert exc.value.status_code == 400


def test_presence_requires_organization(fixed_now):
    service, _ = _service(organization_id=None)

    with pytest.raises(ValidationError, match="not assigned"):
        service.check_in(1, now=fixed_now)
    with pytest.raises(ValidationError, match="not assigned"):
        service.overview(1, now=fixed_now)


def test_check_in_validates_mood_and_description(fixed_now):
    service, _ = _service()

    with pytest.raises(ValidationError, match="Invalid mood"):
        service.check_in(1, mood="grumpy", now=fixed_now)
    with pytest.raises(ValidationError, match="at most 500"):
        service.check_in(1, description="x" * 501, now=fixed_now)


def test_overview_reports_streaks_and_today(fixed_now):
    history = InMemoryPresence(
        *[
            PresenceRecord(
                record_id=i + 1,
                user_id=1,
                organization_id=1,
                work_date=date(2025, 3, 11 - i),
                check_in_time=time(8, 15),
                check_in_type=CheckInType.LATE if i == 0 else CheckInType.ON_TIME,
                status=PresenceStatus.ABSENT if i == 2 else PresenceStatus.PRESENT,
            )
            for i in range(4)
        ]
    )
    service, _ = _service(presence=history)
    service.check_in(1, now=fixed_now)

    overview = service.overview(1, now=fixed_now)

    assert overview["todayStatus"]["date"] == "2025-03-12"
    assert overview["stats"] == {
        "currentStreak": 3,
        "longestStreak": 3,
        "totalDaysPresent": 4,
        "totalDaysTracked": 5,
        "attendanceRate": 80,
    }
    assert overview["punctualityStats"] == {"early": 0, "onTime": 4, "late": 1, "total": 5}
    assert overview["organizationCheckInWindow"] == {"startTime": "08:00", "endTime": "10:00", "timezone": "UTC+3"}
    assert [r["date"] for r in overview["recentActivity"]][:2] == ["2025-03-12", "2025-03-11"]


def test_overview_for_specific_date_and_bad_date(fixed_now):
    service, _ = _service()

    assert service.overview(1, date="2025-03-01", now=fixed_now)["todayStatus"] is None
    with pytest.raises(ValidationError):
        service.overview(1, date="03/01/2025", now=fixed_now)
