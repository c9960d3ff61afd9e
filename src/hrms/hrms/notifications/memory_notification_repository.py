from __future__ import annotations

import dataclasses
import threading
from typing import Optional

from ..common.datetime_utils import now_local
from ..common.pagination import Page, slice_page
from ..core.enums import NotificationType
from .model import Notification
from .repository import NotificationRepository


class InMemoryNotificationRepository(NotificationRepository):
    def __init__(self):
        self._by_id: dict[int, Notification] = {}
        self._id = 0
        self._lock = threading.Lock()

    def create(
        self,
        *,
        user_id: int,
        title: str,
        message: str,
        type: NotificationType,
        link: Optional[str] = None,
    ) -> int:
        with self._lock:
            self._id += 1
            self._by_id[self._id] = Notification(
                notification_id=self._id,
                user_id=int(user_id),
                title=title,
                message=message,
                type=type,
                link=link,
                created_at=now_local(),
            )
            return self._id

    def get_by_id(self, notification_id: int) -> Optional[Notification]:
        return self._by_id.get(int(notification_id))

    def list_for_user(self, *, user_id: int, unread_only: bool, page: int, limit: int) -> Page[Notification]:
        items = [
            n for n in list(self._by_id.values()) if n.user_id == int(user_id) and not (unread_only and n.is_read)
        ]
        items.sort(key=lambda n: (n.created_at, n.notification_id), reverse=True)
        return slice_page(items, page=page, limit=limit)

    def count_unread(self, user_id: int) -> int:
        return sum(1 for n in list(self._by_id.values()) if n.user_id == int(user_id) and not n.is_read)

    def _owned(self, notification_id: int, user_id: int) -> Optional[Notification]:
        n = self._by_id.get(int(notification_id))
        if n is None or n.user_id != int(user_id):
            return None
        return n

    def mark_read(self, *, notification_id: int, user_id: int) -> bool:
        with self._lock:
            n = self._owned(notification_id, user_id)
            if n is None:
                return False
            self._by_id[n.notification_id] = dataclasses.replace(n, is_read=True)
            return True

    def mark_all_read(self, user_id: int) -> int:
        with self._lock:
            unread = [n for n in list(self._by_id.values()) if n.user_id == int(user_id) and not n.is_read]
            for n in unread:
                self._by_id[n.notification_id] = dataclasses.replace(n, is_read=True)
            return len(unread)

    def delete(self, *, notification_id: int, user_id: int) -> bool:
        with self._lock:
            n = self._owned(notification_id, user_id)
            if n is None:
                return False
            del self._by_id[n.notification_id]
            return True

