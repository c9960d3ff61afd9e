from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Protocol, Sequence

from ..common.pagination import Page
from ..core.enums import Role
from .model import NewUser, User


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): the service layer depends on this interface, never on a
    concrete store. Implementations must enforce unique email and employee id.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def get_by_employee_id(self, employee_id: str) -> Optional[User]:
        raise NotImplementedError

    def get_by_ids(self, user_ids: Sequence[int]) -> dict[int, User]:
        raise NotImplementedError

    def create_user(self, new_user: NewUser) -> int:
        raise NotImplementedError

    def update_fields(self, user_id: int, changes: dict[str, Any]) -> bool:
        raise NotImplementedError

    def delete_by_id(self, user_id: int) -> bool:
        raise NotImplementedError

    def find_by_token(self, *, kind: str, token_hash: str, now: datetime) -> Optional[User]:
        """Find a user whose `kind` token ('reset_password' or
        'email_verification') hash matches and has not expired."""

        raise NotImplementedError

    def search(
        self,
        *,
        search: Optional[str] = None,
        department: Optional[str] = None,
        role: Optional[Role] = None,
        page: int,
        limit: int,
    ) -> Page[User]:
        raise NotImplementedError

    def list_active(self, *, user_ids: Optional[Sequence[int]] = None) -> Sequence[User]:
        raise NotImplementedError

    def count(self, *, active_only: bool = False) -> int:
        raise NotImplementedError

    def count_by(self, column: str) -> Sequence[dict]:
        """Group counts by 'department' or 'role' as [{'_id': value, 'count': n}]."""

        raise NotImplementedError
