from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, Optional

from ..core.enums import CheckInType, Mood, PresenceStatus
from ..organizations.model import CheckInWindow


@dataclass(frozen=True)
class PresenceRecord:
    """Domain entity: one developer check-in for one day."""

    record_id: int
    user_id: int
    organization_id: int
    work_date: date
    check_in_time: time
    check_in_type: CheckInType
    status: PresenceStatus = PresenceStatus.PRESENT
    mood: Mood = Mood.PRESENT
    description: Optional[str] = None
    atlassian_account_id: Optional[str] = None
    window_snapshot: Optional[CheckInWindow] = None
    is_edited: bool = False
    edited_by: Optional[int] = None
    edited_at: Optional[datetime] = None
    edit_reason: Optional[str] = None
    original_status: Optional[dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_present(self) -> bool:
        return self.status == PresenceStatus.PRESENT

    @property
    def time_label(self) -> str:
        return self.check_in_time.strftime("%H:%M")

    @property
    def sort_key(self) -> tuple[date, time]:
        return (self.work_date, self.check_in_time)

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.record_id,
            "userId": self.user_id,
            "organizationId": self.organization_id,
            "atlassianAccountId": self.atlassian_account_id,
            "status": self.status.value,
            "mood": self.mood.value,
            "description": self.description,
            "date": self.work_date.isoformat(),
            "time": self.time_label,
            "checkInType": self.check_in_type.value,
            "organizationCheckInWindow": self.window_snapshot.to_json() if self.window_snapshot else None,
            "isEdited": self.is_edited,
            "editedBy": self.edited_by,
            "editedAt": self.edited_at.isoformat() if self.edited_at else None,
            "editReason": self.edit_reason,
            "originalStatus": self.original_status,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
