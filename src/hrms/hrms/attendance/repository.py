from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..common.pagination import Page
from ..core.enums import AttendanceStatus
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    """Attendance store. At most one record per (user_id, work_date); a second
    insert for the same pair must raise ConflictError."""

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create_checkin(
        self,
        *,
        user_id: int,
        work_date: date,
        check_in_time: datetime,
        status: AttendanceStatus,
        note: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def record_checkin(self, *, attendance_id: int, check_in_time: datetime, status: AttendanceStatus) -> bool:
        """Set check-in on an existing record that has none yet."""

        raise NotImplementedError

    def update_checkout(
        self,
        *,
        attendance_id: int,
        check_out_time: datetime,
        work_hours: float,
        status: AttendanceStatus,
    ) -> bool:
        """Set check-out only if the record has a check-in and no check-out."""

        raise NotImplementedError

    def admin_update_record(
        self,
        *,
        attendance_id: int,
        check_in_time: Optional[datetime],
        check_out_time: Optional[datetime],
        work_hours: float,
        status: AttendanceStatus,
        note: Optional[str] = None,
    ) -> bool:
        """HR/admin correction of a record."""

        raise NotImplementedError

    def list_for_user_between(self, *, user_id: int, start: date, end: date) -> Sequence[AttendanceRecord]:
        """Records in [start, end], newest first."""

        raise NotImplementedError

    def list_page(
        self,
        *,
        work_date: Optional[date] = None,
        user_id: Optional[int] = None,
        page: int,
        limit: int,
    ) -> Page[AttendanceRecord]:
        raise NotImplementedError

    def count_by_status(self, *, start: date, end: date) -> dict[str, int]:
        raise NotImplementedError
