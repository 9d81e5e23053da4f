from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import PresenceRecord


class PresenceRepository(Protocol):
    """Check-in records. List methods return newest first (date, then time)."""

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[PresenceRecord]:
        raise NotImplementedError

    def get_in_organization(self, record_id: int, organization_id: int) -> Optional[PresenceRecord]:
        raise NotImplementedError

    def create(self, record: PresenceRecord) -> int:
        raise NotImplementedError

    def save(self, record: PresenceRecord) -> None:
        raise NotImplementedError

    def delete_in_organization(self, record_id: int, organization_id: int) -> bool:
        raise NotImplementedError

    def list_for_user_since(self, user_id: int, since: date, *, limit: Optional[int] = None) -> Sequence[PresenceRecord]:
        raise NotImplementedError

    def list_for_organization_since(
        self,
        organization_id: int,
        since: date,
        *,
        user_id: Optional[int] = None,
    ) -> Sequence[PresenceRecord]:
        raise NotImplementedError
