from __future__ import annotations

import dataclasses
import threading
from collections import Counter
from datetime import datetime
from typing import Any, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.pagination import Page, slice_page
from ..core.enums import Role
from ..core.exceptions import DuplicateIdentityError
from .model import NewUser, User
from .repository import UserRepository

_TOKEN_FIELDS = {
    "reset_password": ("reset_password_token", "reset_password_expire"),
    "email_verification": ("email_verification_token", "email_verification_expire"),
}


class InMemoryUserRepository(UserRepository):
    """Process-local user store with the same uniqueness rules as the SQL schema.

    Writes hold `_lock`; reads iterate over a snapshot of the rows.
    """

    def __init__(self):
        self._by_id: dict[int, User] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._by_id.get(int(user_id))

    def get_by_email(self, email: str) -> Optional[User]:
        email = (email or "").lower()
        return next((u for u in list(self._by_id.values()) if u.email == email), None)

    def get_by_employee_id(self, employee_id: str) -> Optional[User]:
        return next((u for u in list(self._by_id.values()) if u.employee_id == employee_id), None)

    def get_by_ids(self, user_ids: Sequence[int]) -> dict[int, User]:
        return {int(i): self._by_id[int(i)] for i in user_ids if int(i) in self._by_id}

    def create_user(self, new_user: NewUser) -> int:
        with self._lock:
            self._check_unique(email=new_user.email, employee_id=new_user.employee_id)
            user_id = self._next_id
            self._next_id += 1
            fields = {f.name: getattr(new_user, f.name) for f in dataclasses.fields(NewUser)}
            self._by_id[user_id] = User(user_id=user_id, created_at=now_local(), **fields)
            return user_id

    def update_fields(self, user_id: int, changes: dict[str, Any]) -> bool:
        with self._lock:
            user = self._by_id.get(int(user_id))
            if not user:
                return False
            if "email" in changes or "employee_id" in changes:
                self._check_unique(
                    email=changes.get("email", user.email),
                    employee_id=changes.get("employee_id", user.employee_id),
                    exclude_id=user.user_id,
                )
            self._by_id[user.user_id] = dataclasses.replace(user, **changes)
            return True

    def delete_by_id(self, user_id: int) -> bool:
        with self._lock:
            return self._by_id.pop(int(user_id), None) is not None

    def find_by_token(self, *, kind: str, token_hash: str, now: datetime) -> Optional[User]:
        token_field, expire_field = _TOKEN_FIELDS[kind]
        for user in list(self._by_id.values()):
            expire = getattr(user, expire_field)
            if getattr(user, token_field) == token_hash and expire is not None and expire > now:
                return user
        return None

    def search(
        self,
        *,
        search: Optional[str] = None,
        department: Optional[str] = None,
        role: Optional[Role] = None,
        page: int,
        limit: int,
    ) -> Page[User]:
        items = list(self._by_id.values())
        if search:
            needle = search.lower()
            items = [
                u
                for u in items
                if any(needle in (v or "").lower() for v in (u.first_name, u.last_name, u.email, u.employee_id))
            ]
        if department:
            items = [u for u in items if u.department == department]
        if role:
            items = [u for u in items if u.role == role]
        items.sort(key=lambda u: (u.created_at or datetime.min, u.user_id), reverse=True)
        return slice_page(items, page=page, limit=limit)

    def list_active(self, *, user_ids: Optional[Sequence[int]] = None) -> Sequence[User]:
        wanted = {int(i) for i in user_ids} if user_ids else None
        return [
            u
            for u in sorted(self._by_id.values(), key=lambda u: u.user_id)
            if u.is_active and (wanted is None or u.user_id in wanted)
        ]

    def count(self, *, active_only: bool = False) -> int:
        return sum(1 for u in list(self._by_id.values()) if u.is_active or not active_only)

    def count_by(self, column: str) -> Sequence[dict]:
        if column not in {"department", "role"}:
            raise ValueError(f"Unsupported group column: {column!r}")
        counts = Counter()
        for u in list(self._by_id.values()):
            value = getattr(u, column)
            counts[value.value if isinstance(value, Role) else value] += 1
        return [{"_id": k, "count": v} for k, v in counts.items()]

    def _check_unique(self, *, email: str, employee_id: str, exclude_id: Optional[int] = None) -> None:
        for u in list(self._by_id.values()):
            if u.user_id != exclude_id and (u.email == email or u.employee_id == employee_id):
                raise DuplicateIdentityError("User with this email or employee ID already exists")
