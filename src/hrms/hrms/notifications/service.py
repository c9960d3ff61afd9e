from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from ..common.pagination import Page
from ..common.validators import require_enum, require_int, require_non_empty
from ..core.enums import NotificationType
from ..core.exceptions import NotFoundError
from ..users.repository import UserRepository
from .model import Notification
from .repository import NotificationRepository

_NOT_FOUND = "Notification not found"


@dataclass(frozen=True)
class NotificationPage:
    page: Page[Notification]
    unread_count: int


class NotificationService:
    def __init__(self, notifications: NotificationRepository, users: UserRepository):
        self._notifications = notifications
        self._users = users

    def create(
        self,
        *,
        user_id: Any,
        title: str,
        message: str,
        type: Any = NotificationType.INFO,
        link: Optional[str] = None,
    ) -> Notification:
        recipient_id = require_int(user_id, "User id")
        if self._users.get_by_id(recipient_id) is None:
            raise NotFoundError("User not found")
        notification_id = self._notifications.create(
            user_id=recipient_id,
            title=require_non_empty(title, "Title"),
            message=require_non_empty(message, "Message"),
            type=require_enum(NotificationType, type or NotificationType.INFO, "Type"),
            link=link or None,
        )
        return self._notifications.get_by_id(notification_id)

    def list(self, user_id: int, *, unread_only: bool = False, page: int, limit: int) -> NotificationPage:
        return NotificationPage(
            page=self._notifications.list_for_user(user_id=user_id, unread_only=unread_only, page=page, limit=limit),
            unread_count=self._notifications.count_unread(user_id),
        )

    def mark_read(self, notification_id: int, *, user_id: int) -> Notification:
        if not self._notifications.mark_read(notification_id=notification_id, user_id=user_id):
            raise NotFoundError(_NOT_FOUND)
        return self._notifications.get_by_id(notification_id)

    def mark_all_read(self, user_id: int) -> int:
        return self._notifications.mark_all_read(user_id)

    def delete(self, notification_id: int, *, user_id: int) -> None:
        if not self._notifications.delete(notification_id=notification_id, user_id=user_id):
            raise NotFoundError(_NOT_FOUND)
