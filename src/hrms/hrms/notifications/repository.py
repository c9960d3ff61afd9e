from __future__ import annotations

from typing import Optional, Protocol

from ..common.pagination import Page
from ..core.enums import NotificationType
from .model import Notification


class NotificationRepository(Protocol):
    """Per-user notifications. Every mutation is scoped to the owning user."""

    def create(
        self,
        *,
        user_id: int,
        title: str,
        message: str,
        type: NotificationType,
        link: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def get_by_id(self, notification_id: int) -> Optional[Notification]:
        raise NotImplementedError

    def list_for_user(self, *, user_id: int, unread_only: bool, page: int, limit: int) -> Page[Notification]:
        """Newest first."""

        raise NotImplementedError

    def count_unread(self, user_id: int) -> int:
        raise NotImplementedError

    def mark_read(self, *, notification_id: int, user_id: int) -> bool:
        raise NotImplementedError

    def mark_all_read(self, user_id: int) -> int:
        raise NotImplementedError

    def delete(self, *, notification_id: int, user_id: int) -> bool:
        raise NotImplementedError
