from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..common.pagination import Page
from ..core.enums import LeaveStatus, LeaveType
from .model import LeaveRequest


class LeaveRepository(Protocol):
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
        raise NotImplementedError

    def get_by_id(self, request_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def find_overlapping(self, *, user_id: int, start: date, end: date) -> Optional[LeaveRequest]:
        """First non-rejected request of the user intersecting [start, end]."""

        raise NotImplementedError

    def decide(
        self,
        *,
        request_id: int,
        status: LeaveStatus,
        approved_by: int,
        approver_comments: Optional[str],
        approved_at: datetime,
    ) -> bool:
        """Pending -> status. False when the request is no longer pending."""

        raise NotImplementedError

    def delete_pending(self, request_id: int) -> bool:
        raise NotImplementedError

    def list_for_user(
        self,
        *,
        user_id: int,
        status: Optional[LeaveStatus] = None,
        year: Optional[int] = None,
    ) -> Sequence[LeaveRequest]:
        """Newest first; `year` filters on the start date."""

        raise NotImplementedError

    def list_page(self, *, status: Optional[LeaveStatus] = None, page: int, limit: int) -> Page[LeaveRequest]:
        raise NotImplementedError

    def list_approved_between(self, *, user_id: int, start: date, end: date) -> Sequence[LeaveRequest]:
        """Approved requests of the user starting inside [start, end]."""

        raise NotImplementedError

    def count_by_status(self) -> dict[str, int]:
        raise NotImplementedError

    def approved_by_type(self) -> Sequence[dict]:
        """[{'_id': leave_type, 'count': n, 'totalDays': d}]"""

        raise NotImplementedError

    def approved_by_month(self, *, limit: int) -> Sequence[dict]:
        """[{'_id': {'month': m, 'year': y}, 'count': n, 'totalDays': d}], newest first."""

        raise NotImplementedError
