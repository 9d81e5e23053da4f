from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import Role, UserStatus
from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def get_by_atlassian_account(self, account_id: str, *, role: Role, status: UserStatus) -> Optional[User]:
        raise NotImplementedError

    def get_by_invitation_token(self, token: str) -> Optional[User]:
        raise NotImplementedError

    def get_by_oauth_state(self, state: str) -> Optional[User]:
        raise NotImplementedError

    def get_by_reset_token(self, token: str) -> Optional[User]:
        raise NotImplementedError

    def create(self, user: User) -> int:
        """Insert ``user`` (its ``user_id`` is ignored) and return the new id."""
        raise NotImplementedError

    def save(self, user: User) -> None:
        raise NotImplementedError

    def delete_by_id(self, user_id: int) -> bool:
        raise NotImplementedError

    def delete_expired_placeholders(self, *, now: datetime) -> int:
        raise NotImplementedError

    def list_by_organization(self, organization_id: int, *, role: Optional[Role] = None) -> Sequence[User]:
        raise NotImplementedError

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
        """Newest first."""
        raise NotImplementedError

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
        raise NotImplementedError
