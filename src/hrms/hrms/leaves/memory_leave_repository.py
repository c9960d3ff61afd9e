from __future__ import annotations

import dataclasses
import threading
from collections import defaultdict
from datetime import date, datetime
from typing import Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.pagination import Page, slice_page
from ..core.enums import LeaveStatus, LeaveType
from .model import LeaveRequest
from .repository import LeaveRepository


def _newest_first(items: list[LeaveRequest]) -> list[LeaveRequest]:
    return sorted(items, key=lambda r: (r.created_at, r.request_id), reverse=True)


class InMemoryLeaveRepository(LeaveRepository):
    def __init__(self):
        self._by_id: dict[int, LeaveRequest] = {}
        self._id = 0
        self._lock = threading.Lock()

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
        with self._lock:
            self._id += 1
            self._by_id[self._id] = LeaveRequest(
                request_id=self._id,
                user_id=int(user_id),
                leave_type=leave_type,
                start_date=start_date,
                end_date=end_date,
                total_days=total_days,
                reason=reason,
                status=LeaveStatus.PENDING,
                created_at=now_local(),
            )
            return self._id

    def get_by_id(self, request_id: int) -> Optional[LeaveRequest]:
        return self._by_id.get(int(request_id))

    def find_overlapping(self, *, user_id: int, start: date, end: date) -> Optional[LeaveRequest]:
        return next(
            (
                r
                for r in list(self._by_id.values())
                if r.user_id == int(user_id) and r.status != LeaveStatus.REJECTED and r.overlaps(start, end)
            ),
            None,
        )

    def decide(
        self,
        *,
        request_id: int,
        status: LeaveStatus,
        approved_by: int,
        approver_comments: Optional[str],
        approved_at: datetime,
    ) -> bool:
        with self._lock:
            req = self._by_id.get(int(request_id))
            if not req or req.status != LeaveStatus.PENDING:
                return False
            self._by_id[req.request_id] = dataclasses.replace(
                req,
                status=status,
                approved_by=int(approved_by),
                approver_comments=approver_comments,
                approved_at=approved_at,
            )
            return True

    def delete_pending(self, request_id: int) -> bool:
        with self._lock:
            req = self._by_id.get(int(request_id))
            if not req or req.status != LeaveStatus.PENDING:
                return False
            del self._by_id[req.request_id]
            return True

    def list_for_user(
        self,
        *,
        user_id: int,
        status: Optional[LeaveStatus] = None,
        year: Optional[int] = None,
    ) -> Sequence[LeaveRequest]:
        items = [r for r in list(self._by_id.values()) if r.user_id == int(user_id)]
        if status is not None:
            items = [r for r in items if r.status == status]
        if year is not None:
            items = [r for r in items if r.start_date.year == int(year)]
        return _newest_first(items)

    def list_page(self, *, status: Optional[LeaveStatus] = None, page: int, limit: int) -> Page[LeaveRequest]:
        items = list(self._by_id.values())
        if status is not None:
            items = [r for r in items if r.status == status]
        return slice_page(_newest_first(items), page=page, limit=limit)

    def list_approved_between(self, *, user_id: int, start: date, end: date) -> Sequence[LeaveRequest]:
        return [
            r
            for r in list(self._by_id.values())
            if r.user_id == int(user_id) and r.status == LeaveStatus.APPROVED and start <= r.start_date <= end
        ]

    def count_by_status(self) -> dict[str, int]:
        counts: dict[str, int] = defaultdict(int)
        for r in list(self._by_id.values()):
            counts[r.status.value] += 1
        return dict(counts)

    def approved_by_type(self) -> Sequence[dict]:
        groups: dict[str, dict] = {}
        for r in list(self._by_id.values()):
            if r.status != LeaveStatus.APPROVED:
                continue
            g = groups.setdefault(r.leave_type.value, {"_id": r.leave_type.value, "count": 0, "totalDays": 0})
            g["count"] += 1
            g["totalDays"] += r.total_days
        return list(groups.values())

    def approved_by_month(self, *, limit: int) -> Sequence[dict]:
        groups: dict[tuple[int, int], dict] = {}
        for r in list(self._by_id.values()):
            if r.status != LeaveStatus.APPROVED:
                continue
            key = (r.start_date.year, r.start_date.month)
            g = groups.setdefault(
                key, {"_id": {"month": key[1], "year": key[0]}, "count": 0, "totalDays": 0}
            )
            g["count"] += 1
            g["totalDays"] += r.total_days
        return [groups[k] for k in sorted(groups, reverse=True)[:limit]]
