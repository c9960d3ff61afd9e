from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional

from ..common.datetime_utils import isoformat_or_none
from ..core.enums import LeaveStatus, LeaveType


@dataclass(frozen=True)
class LeaveRequest:
    request_id: int
    user_id: int
    leave_type: LeaveType
    start_date: date
    end_date: date
    total_days: int
    reason: str
    status: LeaveStatus
    created_at: Optional[datetime] = None
    approved_by: Optional[int] = None
    approver_comments: Optional[str] = None
    approved_at: Optional[datetime] = None

    def overlaps(self, start: date, end: date) -> bool:
        return self.start_date <= end and self.end_date >= start

    def to_dict(self, *, user: Optional[dict] = None, approver: Optional[dict] = None) -> dict[str, Any]:
        return {
            "id": self.request_id,
            "user": user if user is not None else self.user_id,
            "leaveType": self.leave_type.value,
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "totalDays": self.total_days,
            "reason": self.reason,
            "status": self.status.value,
            "approvedBy": approver if approver is not None else self.approved_by,
            "approverComments": self.approver_comments,
            "approvedAt": isoformat_or_none(self.approved_at),
            "createdAt": isoformat_or_none(self.created_at),
        }


@dataclass(frozen=True)
class BalanceEntry:
    total: int
    used: int

    @property
    def remaining(self) -> int:
        return self.total - self.used

    def to_dict(self) -> dict:
        return {"total": self.total, "used": self.used, "remaining": self.remaining}
