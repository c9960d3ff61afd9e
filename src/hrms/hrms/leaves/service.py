from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional, Sequence

from ..common.datetime_utils import inclusive_days, now_local, parse_iso_date
from ..common.pagination import Page
from ..common.validators import require_enum, require_int, require_non_empty
from ..core.constants import LEAVE_TREND_MONTHS
from ..core.enums import LeaveStatus, LeaveType, NotificationType
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..notifications.service import NotificationService
from ..users.repository import UserRepository
from ..users.tokens import Identity
from .balance import compute_balance
from .model import BalanceEntry, LeaveRequest
from .repository import LeaveRepository

logger = logging.getLogger(__name__)

_NOT_FOUND = "Leave request not found"
_DECISIONS = (LeaveStatus.APPROVED, LeaveStatus.REJECTED)


@dataclass(frozen=True)
class MyLeaves:
    requests: list[LeaveRequest]
    balance: dict[LeaveType, BalanceEntry]


class LeaveService:
    """Use cases: apply for leave, approve/reject, cancel, balances, stats."""

    def __init__(self, leaves: LeaveRepository, users: UserRepository, notifications: NotificationService):
        self._leaves = leaves
        self._users = users
        self._notifications = notifications

    def apply(
        self,
        user_id: int,
        *,
        leave_type: Any,
        start_date: Any,
        end_date: Any,
        reason: str,
    ) -> LeaveRequest:
        kind = require_enum(LeaveType, leave_type, "Leave type")
        start = parse_iso_date(require_non_empty(start_date, "Start date"))
        end = parse_iso_date(require_non_empty(end_date, "End date"))
        reason = require_non_empty(reason, "Reason")
        if end < start:
            raise ValidationError("End date cannot be before start date")

        if self._leaves.find_overlapping(user_id=user_id, start=start, end=end):
            raise ConflictError("You already have a leave request for these dates")

        request_id = self._leaves.create(
            user_id=user_id,
            leave_type=kind,
            start_date=start,
            end_date=end,
            total_days=inclusive_days(start, end),
            reason=reason,
        )
        logger.info("Leave request %s submitted by user %s (%s, %s..%s)", request_id, user_id, kind.value, start, end)
        return self._leaves.get_by_id(request_id)

    def decide(
        self,
        request_id: int,
        *,
        status: Any,
        approver_id: int,
        comments: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> LeaveRequest:
        decision = require_enum(LeaveStatus, status, "Status")
        if decision not in _DECISIONS:
            raise ValidationError("Status must be approved or rejected")

        request = self._require(request_id)
        if request.status != LeaveStatus.PENDING:
            raise ConflictError("Leave request has already been processed")

        # The store only flips pending rows, so a racing second decision lands here.
        if not self._leaves.decide(
            request_id=request.request_id,
            status=decision,
            approved_by=approver_id,
            approver_comments=(comments or "").strip() or None,
            approved_at=now or now_local(),
        ):
            raise ConflictError("Leave request has already been processed")

        self._notifications.create(
            user_id=request.user_id,
            title=f"Leave Request {decision.value.capitalize()}",
            message=(
                f"Your leave request from {request.start_date.isoformat()} to "
                f"{request.end_date.isoformat()} has been {decision.value}."
            ),
            type=NotificationType.LEAVE,
        )
        logger.info("Leave request %s %s by user %s", request.request_id, decision.value, approver_id)
        return self._leaves.get_by_id(request.request_id)

    def cancel(self, request_id: int, *, caller: Identity) -> None:
        request = self._require(request_id)
        if request.user_id != caller.user_id and not caller.is_privileged:
            raise AuthorizationError("Not authorized to cancel this leave request")
        if request.status != LeaveStatus.PENDING or not self._leaves.delete_pending(request.request_id):
            raise ConflictError("Only pending leave requests can be cancelled")

    def get(self, request_id: int, *, caller: Identity) -> LeaveRequest:
        request = self._require(request_id)
        if not caller.is_privileged and request.user_id != caller.user_id:
            raise AuthorizationError("Not authorized to view this leave request")
        return request

    def list_mine(
        self,
        user_id: int,
        *,
        status: Any = None,
        year: Any = None,
        today: Optional[date] = None,
    ) -> MyLeaves:
        requests = self._leaves.list_for_user(
            user_id=user_id,
            status=require_enum(LeaveStatus, status, "Status") if status else None,
            year=require_int(year, "Year") if year else None,
        )
        return MyLeaves(requests=list(requests), balance=self.balance(user_id, today=today))

    def list_all(self, *, status: Any = None, page: int, limit: int) -> Page[dict]:
        result = self._leaves.list_page(
            status=require_enum(LeaveStatus, status, "Status") if status else None,
            page=page,
            limit=limit,
        )
        return dataclasses.replace(result, items=self.present(result.items))

    def balance(self, user_id: int, *, today: Optional[date] = None) -> dict[LeaveType, BalanceEntry]:
        year = (today or now_local().date()).year
        approved = self._leaves.list_approved_between(
            user_id=user_id, start=date(year, 1, 1), end=date(year, 12, 31)
        )
        return compute_balance(approved)

    def stats(self) -> dict:
        counts = self._leaves.count_by_status()
        pending = counts.get(LeaveStatus.PENDING.value, 0)
        approved = counts.get(LeaveStatus.APPROVED.value, 0)
        rejected = counts.get(LeaveStatus.REJECTED.value, 0)
        return {
            "pending": pending,
            "approved": approved,
            "rejected": rejected,
            "total": pending + approved + rejected,
            "leaveTypeStats": list(self._leaves.approved_by_type()),
            "monthlyStats": list(self._leaves.approved_by_month(limit=LEAVE_TREND_MONTHS)),
        }

    def present(self, requests: Sequence[LeaveRequest]) -> list[dict]:
        """Serialize requests with requester and approver summaries embedded."""
        ids = {r.user_id for r in requests} | {r.approved_by for r in requests if r.approved_by}
        people = self._users.get_by_ids(list(ids))

        def _summary(user_id: Optional[int]) -> Optional[dict]:
            user = people.get(user_id) if user_id else None
            return user.to_summary_dict() if user else None

        return [r.to_dict(user=_summary(r.user_id), approver=_summary(r.approved_by)) for r in requests]

    def _require(self, request_id: int) -> LeaveRequest:
        request = self._leaves.get_by_id(int(request_id))
        if not request:
            raise NotFoundError(_NOT_FOUND)
        return request
