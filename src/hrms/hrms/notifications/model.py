from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import isoformat_or_none
from ..core.enums import NotificationType


@dataclass(frozen=True)
class Notification:
    notification_id: int
    user_id: int
    title: str
    message: str
    type: NotificationType = NotificationType.INFO
    is_read: bool = False
    link: Optional[str] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.notification_id,
            "user": self.user_id,
            "title": self.title,
            "message": self.message,
            "type": self.type.value,
            "isRead": self.is_read,
            "link": self.link,
            "createdAt": isoformat_or_none(self.created_at),
        }
