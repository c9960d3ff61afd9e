from __future__ import annotations

import dataclasses
import logging
from datetime import date, datetime
from typing import Any, Mapping, Optional

from ..common.datetime_utils import month_bounds, now_local, parse_iso_date, parse_iso_datetime
from ..common.pagination import Page
from ..common.validators import require_enum, require_int
from ..core.enums import AttendanceStatus
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..users.repository import UserRepository
from .derivation import compute_work_hours, summarize
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord, MonthlyAttendance
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

_ALREADY_CHECKED_IN = "Already checked in today"
_NOT_CHECKED_IN = "Please check in first"
_ALREADY_CHECKED_OUT = "Already checked out today"


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        *,
        strategy_factory: AttendanceStrategyFactory | None = None,
    ):
        self._attendance = attendance
        self._users = users
        self._factory = strategy_factory or AttendanceStrategyFactory()

    def check_in(self, user_id: int, *, now: datetime | None = None) -> AttendanceRecord:
        now = now or now_local()
        today = now.date()

        existing = self._attendance.get_for_user_and_date(user_id, today)
        if existing and existing.check_in_time is not None:
            raise ConflictError(_ALREADY_CHECKED_IN)

        decision = self._factory.for_checkin().decide_checkin(now=now)

        if existing:
            # A pre-created day (e.g. marked absent) gets its check-in filled in.
            if not self._attendance.record_checkin(
                attendance_id=existing.attendance_id, check_in_time=now, status=decision.status
            ):
                raise ConflictError(_ALREADY_CHECKED_IN)
            attendance_id = existing.attendance_id
        else:
            attendance_id = self._attendance.create_checkin(
                user_id=user_id,
                work_date=today,
                check_in_time=now,
                status=decision.status,
                note=decision.note,
            )

        logger.info("User %s checked in at %s", user_id, now.isoformat())
        return self._attendance.get_by_id(attendance_id)

    def check_out(self, user_id: int, *, now: datetime | None = None) -> AttendanceRecord:
        now = now or now_local()
        today = now.date()

        record = self._attendance.get_for_user_and_date(user_id, today)
        if not record or record.check_in_time is None:
            raise ConflictError(_NOT_CHECKED_IN)
        if record.check_out_time is not None:
            raise ConflictError(_ALREADY_CHECKED_OUT)

        work_hours = compute_work_hours(record.check_in_time, now)
        strategy = self._factory.for_checkout(work_hours=work_hours)
        decision = strategy.decide_checkout(work_hours=work_hours, current=record.status)

        # Guarded write: a concurrent checkout loses here.
        if not self._attendance.update_checkout(
            attendance_id=record.attendance_id,
            check_out_time=now,
            work_hours=work_hours,
            status=decision.status,
        ):
            raise ConflictError(_ALREADY_CHECKED_OUT)

        logger.info("User %s checked out (%.2f h, %s)", user_id, work_hours, decision.status.value)
        return self._attendance.get_by_id(record.attendance_id)

    def today(self, user_id: int, *, now: datetime | None = None) -> Optional[AttendanceRecord]:
        now = now or now_local()
        return self._attendance.get_for_user_and_date(user_id, now.date())

    def list_mine(
        self,
        user_id: int,
        *,
        month: Any = None,
        year: Any = None,
        today: date | None = None,
    ) -> MonthlyAttendance:
        """Records of one calendar month, newest first, with a status summary.

        Without both month and year the current month is used.
        """
        today = today or now_local().date()
        if month and year:
            start, end = month_bounds(require_int(year, "Year"), require_int(month, "Month"))
        else:
            start, end = month_bounds(today.year, today.month)

        records = list(self._attendance.list_for_user_between(user_id=user_id, start=start, end=end))
        return MonthlyAttendance(records=records, summary=summarize(records))

    def list_all(
        self,
        *,
        work_date: Optional[str] = None,
        user_id: Any = None,
        page: int,
        limit: int,
    ) -> Page[dict]:
        result = self._attendance.list_page(
            work_date=parse_iso_date(work_date) if work_date else None,
            user_id=require_int(user_id, "User id") if user_id not in (None, "") else None,
            page=page,
            limit=limit,
        )
        users = self._users.get_by_ids([r.user_id for r in result.items])

        def _with_user(record: AttendanceRecord) -> dict:
            user = users.get(record.user_id)
            return record.to_dict(user=user.to_summary_dict() if user else None)

        return dataclasses.replace(result, items=result.map(_with_user))

    def update(self, attendance_id: int, payload: Mapping[str, Any]) -> AttendanceRecord:
        record = self._attendance.get_by_id(require_int(attendance_id, "Attendance id"))
        if not record:
            raise NotFoundError("Attendance record not found")

        check_in = parse_iso_datetime(payload["checkIn"]) if "checkIn" in payload else record.check_in_time
        check_out = parse_iso_datetime(payload["checkOut"]) if "checkOut" in payload else record.check_out_time
        status = require_enum(AttendanceStatus, payload["status"], "Status") if "status" in payload else record.status
        note = payload["notes"] if "notes" in payload else record.note

        if check_out is not None and check_in is None:
            raise ValidationError("Check-out requires a check-in time")
        if check_in and check_out and check_out < check_in:
            raise ValidationError("Check-out cannot be before check-in")

        self._attendance.admin_update_record(
            attendance_id=record.attendance_id,
            check_in_time=check_in,
            check_out_time=check_out,
            work_hours=compute_work_hours(check_in, check_out),
            status=status,
            note=note,
        )
        return self._attendance.get_by_id(record.attendance_id)

    def stats(self, *, today: date | None = None) -> dict:
        today = today or now_local().date()

        today_counts = self._attendance.count_by_status(start=today, end=today)
        total_employees = self._users.count(active_only=True)
        present_today = today_counts.get(AttendanceStatus.PRESENT.value, 0)

        month_start, _ = month_bounds(today.year, today.month)
        monthly_counts = self._attendance.count_by_status(start=month_start, end=today)

        return {
            "today": {
                "present": present_today,
                # Every active employee without a "present" record counts as absent.
                "absent": total_employees - present_today,
                "stats": [{"_id": k, "count": v} for k, v in today_counts.items()],
            },
            "monthly": [{"_id": k, "count": v} for k, v in monthly_counts.items()],
            "totalEmployees": total_employees,
        }
