from __future__ import annotations

import dataclasses
import threading
from collections import Counter
from datetime import date, datetime
from typing import Optional, Sequence

from ..common.pagination import Page, slice_page
from ..core.enums import AttendanceStatus
from ..core.exceptions import ConflictError
from .model import AttendanceRecord
from .repository import AttendanceRepository


class InMemoryAttendanceRepository(AttendanceRepository):
    def __init__(self):
        self._by_id: dict[int, AttendanceRecord] = {}
        self._id = 0
        self._lock = threading.Lock()

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        return self._by_id.get(int(attendance_id))

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        return next(
            (r for r in list(self._by_id.values()) if r.user_id == int(user_id) and r.work_date == work_date),
            None,
        )

    def create_checkin(
        self,
        *,
        user_id: int,
        work_date: date,
        check_in_time: datetime,
        status: AttendanceStatus,
        note: Optional[str] = None,
    ) -> int:
        with self._lock:
            if self.get_for_user_and_date(user_id, work_date):
                raise ConflictError("Already checked in today")
            self._id += 1
            self._by_id[self._id] = AttendanceRecord(
                attendance_id=self._id,
                user_id=int(user_id),
                work_date=work_date,
                check_in_time=check_in_time,
                check_out_time=None,
                status=status,
                note=note,
            )
            return self._id

    def record_checkin(self, *, attendance_id: int, check_in_time: datetime, status: AttendanceStatus) -> bool:
        with self._lock:
            rec = self._by_id.get(int(attendance_id))
            if not rec or rec.check_in_time is not None:
                return False
            self._by_id[rec.attendance_id] = dataclasses.replace(rec, check_in_time=check_in_time, status=status)
            return True

    def update_checkout(
        self,
        *,
        attendance_id: int,
        check_out_time: datetime,
        work_hours: float,
        status: AttendanceStatus,
    ) -> bool:
        with self._lock:
            rec = self._by_id.get(int(attendance_id))
            if not rec or rec.check_in_time is None or rec.check_out_time is not None:
                return False
            self._by_id[rec.attendance_id] = dataclasses.replace(
                rec, check_out_time=check_out_time, work_hours=work_hours, status=status
            )
            return True

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
        with self._lock:
            rec = self._by_id.get(int(attendance_id))
            if not rec:
                return False
            self._by_id[rec.attendance_id] = dataclasses.replace(
                rec,
                check_in_time=check_in_time,
                check_out_time=check_out_time,
                work_hours=work_hours,
                status=status,
                note=note,
            )
            return True

    def list_for_user_between(self, *, user_id: int, start: date, end: date) -> Sequence[AttendanceRecord]:
        items = [r for r in list(self._by_id.values()) if r.user_id == int(user_id) and start <= r.work_date <= end]
        items.sort(key=lambda r: r.work_date, reverse=True)
        return items

    def list_page(
        self,
        *,
        work_date: Optional[date] = None,
        user_id: Optional[int] = None,
        page: int,
        limit: int,
    ) -> Page[AttendanceRecord]:
        items = list(self._by_id.values())
        if work_date is not None:
            items = [r for r in items if r.work_date == work_date]
        if user_id is not None:
            items = [r for r in items if r.user_id == int(user_id)]
        items.sort(key=lambda r: (r.work_date, r.attendance_id), reverse=True)
        return slice_page(items, page=page, limit=limit)

    def count_by_status(self, *, start: date, end: date) -> dict[str, int]:
        counts = Counter(r.status.value for r in list(self._by_id.values()) if start <= r.work_date <= end)
        return dict(counts)
