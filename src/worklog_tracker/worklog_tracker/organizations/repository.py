from __future__ import annotations

from typing import Optional, Protocol

from .model import Organization


class OrganizationRepository(Protocol):
    def get_by_id(self, organization_id: int) -> Optional[Organization]:
        raise NotImplementedError

    def slug_exists(self, slug: str) -> bool:
        raise NotImplementedError

    def create(self, organization: Organization) -> int:
        raise NotImplementedError

    def save(self, organization: Organization) -> None:
        raise NotImplementedError

    def count(self) -> int:
        raise NotImplementedError
