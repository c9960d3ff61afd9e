from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..common.pagination import Page, offset_for
from ..core.enums import LeaveStatus, LeaveType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, where_clause
from .model import LeaveRequest
from .repository import LeaveRepository

_COLUMNS = """
    request_id, user_id, leave_type, start_date, end_date, total_days, reason,
    status, created_at, approved_by, approver_comments, approved_at
"""


def _row_to_request(r: dict) -> LeaveRequest:
    return LeaveRequest(
        request_id=int(r["request_id"]),
        user_id=int(r["user_id"]),
        leave_type=LeaveType(r["leave_type"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        total_days=int(r["total_days"]),
        reason=r["reason"],
        status=LeaveStatus(r["status"]),
        created_at=r.get("created_at"),
        approved_by=int(r["approved_by"]) if r.get("approved_by") is not None else None,
        approver_comments=r.get("approver_comments"),
        approved_at=r.get("approved_at"),
    )


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        user_id: int,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        total_days: int,
        reason: str,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(user_id, leave_type, start_date, end_date, total_days, reason, status)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(user_id),
                    leave_type.value,
                    start_date,
                    end_date,
                    int(total_days),
                    reason,
                    LeaveStatus.PENDING.value,
                ),
            )
            return int(cur.lastrowid)

    def get_by_id(self, request_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM leave_requests WHERE request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return _row_to_request(r) if r else None

    def find_overlapping(self, *, user_id: int, start: date, end: date) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM leave_requests
                WHERE user_id=%s AND status<>%s AND start_date<=%s AND end_date>=%s
                LIMIT 1
                """,
                (int(user_id), LeaveStatus.REJECTED.value, end, start),
            )
            r = fetchone(cur)
            return _row_to_request(r) if r else None

    def decide(
        self,
        *,
        request_id: int,
        status: LeaveStatus,
        approved_by: int,
        approver_comments: Optional[str],
        approved_at: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s, approved_by=%s, approver_comments=%s, approved_at=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    status.value,
                    int(approved_by),
                    approver_comments,
                    approved_at,
                    int(request_id),
                    LeaveStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    def delete_pending(self, request_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM leave_requests WHERE request_id=%s AND status=%s",
                (int(request_id), LeaveStatus.PENDING.value),
            )
            return cur.rowcount > 0

    def list_for_user(
        self,
        *,
        user_id: int,
        status: Optional[LeaveStatus] = None,
        year: Optional[int] = None,
    ) -> Sequence[LeaveRequest]:
        clauses = ["user_id=%s"]
        params: list[object] = [int(user_id)]
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if year is not None:
            clauses.append("start_date BETWEEN %s AND %s")
            params.extend([date(int(year), 1, 1), date(int(year), 12, 31)])

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM leave_requests
                WHERE {where_clause(clauses)}
                ORDER BY created_at DESC, request_id DESC
                """,
                tuple(params),
            )
            return [_row_to_request(r) for r in fetchall(cur)]

    def list_page(self, *, status: Optional[LeaveStatus] = None, page: int, limit: int) -> Page[LeaveRequest]:
        clauses: list[str] = []
        params: list[object] = []
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        where = where_clause(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM leave_requests WHERE {where}", tuple(params))
            total = int(fetchone(cur)["n"])
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM leave_requests
                WHERE {where}
                ORDER BY created_at DESC, request_id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(limit), offset_for(page, limit)]),
            )
            items = [_row_to_request(r) for r in fetchall(cur)]
        return Page(items=items, total=total, page=page, limit=limit)

    def list_approved_between(self, *, user_id: int, start: date, end: date) -> Sequence[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM leave_requests
                WHERE user_id=%s AND status=%s AND start_date BETWEEN %s AND %s
                """,
                (int(user_id), LeaveStatus.APPROVED.value, start, end),
            )
            return [_row_to_request(r) for r in fetchall(cur)]

    def count_by_status(self) -> dict[str, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT status, COUNT(*) AS n FROM leave_requests GROUP BY status")
            return {r["status"]: int(r["n"]) for r in fetchall(cur)}

    def approved_by_type(self) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT leave_type, COUNT(*) AS n, COALESCE(SUM(total_days), 0) AS days
                FROM leave_requests
                WHERE status=%s
                GROUP BY leave_type
                """,
                (LeaveStatus.APPROVED.value,),
            )
            return [
                {"_id": r["leave_type"], "count": int(r["n"]), "totalDays": int(r["days"])} for r in fetchall(cur)
            ]

    def approved_by_month(self, *, limit: int) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT YEAR(start_date) AS y, MONTH(start_date) AS m,
                       COUNT(*) AS n, COALESCE(SUM(total_days), 0) AS days
                FROM leave_requests
                WHERE status=%s
                GROUP BY YEAR(start_date), MONTH(start_date)
                ORDER BY y DESC, m DESC
                LIMIT %s
                """,
                (LeaveStatus.APPROVED.value, int(limit)),
            )
            return [
                {
                    "_id": {"month": int(r["m"]), "year": int(r["y"])},
                    "count": int(r["n"]),
                    "totalDays": int(r["days"]),
                }
                for r in fetchall(cur)
            ]
