from __future__ import annotations

import sys
import threading
from datetime import date, datetime, timedelta

import pytest

from src.hrms.hrms.attendance.memory_attendance_repository import InMemoryAttendanceRepository
from src.hrms.hrms.core.enums import AttendanceStatus
from src.hrms.hrms.core.exceptions import ConflictError

THREADS = 8
ROUNDS = 100


@pytest.fixture(autouse=True)
def frequent_thread_switches():
    previous = sys.getswitchinterval()
    sys.setswitchinterval(1e-6)
    yield
    sys.setswitchinterval(previous)


def _race(target):
    barrier = threading.Barrier(THREADS)
    outcomes = []

    def worker():
        barrier.wait()
        try:
            outcomes.append(target())
        except ConflictError as exc:
            outcomes.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(THREADS)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return outcomes


def test_concurrent_checkins_keep_one_record_per_day():
    repo = InMemoryAttendanceRepository()

    for day in range(ROUNDS):
        work_date = date(2024, 1, 1) + timedelta(days=day)
        outcomes = _race(
            lambda: repo.create_checkin(
                user_id=1,
                work_date=work_date,
                check_in_time=datetime(work_date.year, work_date.month, work_date.day, 9),
                status=AttendanceStatus.PRESENT,
            )
        )

        created = [o for o in outcomes if isinstance(o, int)]
        assert len(created) == 1
        assert sum(isinstance(o, ConflictError) for o in outcomes) == THREADS - 1

    records = repo.list_for_user_between(user_id=1, start=date(2024, 1, 1), end=date(2025, 1, 1))
    assert len(records) == ROUNDS
    assert len({r.attendance_id for r in records}) == ROUNDS


def test_concurrent_checkouts_apply_once():
    repo = InMemoryAttendanceRepository()
    attendance_id = repo.create_checkin(
        user_id=1,
        work_date=date(2024, 3, 4),
        check_in_time=datetime(2024, 3, 4, 9),
        status=AttendanceStatus.PRESENT,
    )

    outcomes = _race(
        lambda: repo.update_checkout(
            attendance_id=attendance_id,
            check_out_time=datetime(2024, 3, 4, 17),
            work_hours=8.0,
            status=AttendanceStatus.PRESENT,
        )
    )

    assert outcomes.count(True) == 1
    assert outcomes.count(False) == THREADS - 1
