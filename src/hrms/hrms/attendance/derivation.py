from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from ..common.numbers import round2
from ..core.enums import AttendanceStatus
from .model import AttendanceRecord, AttendanceSummary


def compute_work_hours(check_in: Optional[datetime], check_out: Optional[datetime]) -> float:
    """Hours between check-in and check-out, 0 until both are known."""
    if not check_in or not check_out:
        return 0.0
    return round2((check_out - check_in).total_seconds() / 3600)


def summarize(records: Iterable[AttendanceRecord]) -> AttendanceSummary:
    records = list(records)

    def _count(status: AttendanceStatus) -> int:
        return sum(1 for r in records if r.status == status)

    return AttendanceSummary(
        present=_count(AttendanceStatus.PRESENT),
        absent=_count(AttendanceStatus.ABSENT),
        half_day=_count(AttendanceStatus.HALF_DAY),
        leave=_count(AttendanceStatus.LEAVE),
        total_work_hours=round2(sum(r.work_hours or 0 for r in records)),
    )
