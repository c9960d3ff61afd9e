from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional

from ..common.datetime_utils import isoformat_or_none
from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one attendance record per (user, calendar day)."""

    attendance_id: int
    user_id: int
    work_date: date
    check_in_time: Optional[datetime]
    check_out_time: Optional[datetime]
    status: AttendanceStatus
    work_hours: float = 0.0
    note: Optional[str] = None

    def to_dict(self, user: Optional[dict] = None) -> dict[str, Any]:
        return {
            "id": self.attendance_id,
            "user": user if user is not None else self.user_id,
            "date": self.work_date.isoformat(),
            "checkIn": isoformat_or_none(self.check_in_time),
            "checkOut": isoformat_or_none(self.check_out_time),
            "workHours": self.work_hours,
            "status": self.status.value,
            "notes": self.note,
        }


@dataclass(frozen=True)
class AttendanceSummary:
    present: int
    absent: int
    half_day: int
    leave: int
    total_work_hours: float

    def to_dict(self) -> dict:
        return {
            "present": self.present,
            "absent": self.absent,
            "halfDay": self.half_day,
            "leave": self.leave,
            "totalWorkHours": self.total_work_hours,
        }


@dataclass(frozen=True)
class MonthlyAttendance:
    records: list[AttendanceRecord]
    summary: AttendanceSummary
