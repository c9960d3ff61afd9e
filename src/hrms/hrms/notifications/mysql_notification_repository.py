from __future__ import annotations

from typing import Optional

from ..common.pagination import Page, offset_for
from ..core.enums import NotificationType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Notification
from .repository import NotificationRepository

_COLUMNS = "notification_id, user_id, title, message, type, is_read, link, created_at"


def _row_to_notification(r: dict) -> Notification:
    return Notification(
        notification_id=int(r["notification_id"]),
        user_id=int(r["user_id"]),
        title=r["title"],
        message=r["message"],
        type=NotificationType(r["type"]),
        is_read=bool(r.get("is_read")),
        link=r.get("link"),
        created_at=r.get("created_at"),
    )


class MySQLNotificationRepository(NotificationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        user_id: int,
        title: str,
        message: str,
        type: NotificationType,
        link: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO notifications(user_id, title, message, type, link)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (int(user_id), title, message, type.value, link),
            )
            return int(cur.lastrowid)

    def get_by_id(self, notification_id: int) -> Optional[Notification]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM notifications WHERE notification_id=%s", (int(notification_id),))
            r = fetchone(cur)
            return _row_to_notification(r) if r else None

    def list_for_user(self, *, user_id: int, unread_only: bool, page: int, limit: int) -> Page[Notification]:
        where = "user_id=%s AND is_read=0" if unread_only else "user_id=%s"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM notifications WHERE {where}", (int(user_id),))
            total = int(fetchone(cur)["n"])
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM notifications
                WHERE {where}
                ORDER BY created_at DESC, notification_id DESC
                LIMIT %s OFFSET %s
                """,
                (int(user_id), int(limit), offset_for(page, limit)),
            )
            items = [_row_to_notification(r) for r in fetchall(cur)]
        return Page(items=items, total=total, page=page, limit=limit)

    def count_unread(self, user_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM notifications WHERE user_id=%s AND is_read=0", (int(user_id),))
            return int(fetchone(cur)["n"])

    def mark_read(self, *, notification_id: int, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE notifications SET is_read=1 WHERE notification_id=%s AND user_id=%s",
                (int(notification_id), int(user_id)),
            )
            if cur.rowcount > 0:
                return True
            # Already read: still a match as long as the caller owns it.
            cur.execute(
                "SELECT 1 AS found FROM notifications WHERE notification_id=%s AND user_id=%s",
                (int(notification_id), int(user_id)),
            )
            return fetchone(cur) is not None

    def mark_all_read(self, user_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE notifications SET is_read=1 WHERE user_id=%s AND is_read=0", (int(user_id),))
            return int(cur.rowcount)

    def delete(self, *, notification_id: int, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM notifications WHERE notification_id=%s AND user_id=%s",
                (int(notification_id), int(user_id)),
            )
            return cur.rowcount > 0
