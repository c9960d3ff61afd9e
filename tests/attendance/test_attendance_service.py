from __future__ import annotations

from datetime import date, datetime

import pytest

from src.hrms.hrms.attendance.memory_attendance_repository import InMemoryAttendanceRepository
from src.hrms.hrms.attendance.service import AttendanceService
from src.hrms.hrms.core.enums import AttendanceStatus, Role
from src.hrms.hrms.core.exceptions import ConflictError, NotFoundError, ValidationError
from src.hrms.hrms.users.memory_user_repository import InMemoryUserRepository
from src.hrms.hrms.users.model import NewUser

DAY = date(2024, 3, 4)


def at(hour, minute=0, day=DAY):
    return datetime(day.year, day.month, day.day, hour, minute)


def _add_user(users, employee_id, role=Role.EMPLOYEE):
    return users.create_user(
        NewUser(
            employee_id=employee_id,
            email=f"{employee_id.lower()}@example.com",
            password_hash="x",
            first_name=employee_id,
            last_name="Tester",
            role=role,
        )
    )


def _setup():
    users = InMemoryUserRepository()
    records = InMemoryAttendanceRepository()
    user_id = _add_user(users, "EMP1")
    return AttendanceService(records, users), records, users, user_id


def test_full_day_stays_present():
    service, _, _, user_id = _setup()

    checked_in = service.check_in(user_id, now=at(9))
    assert checked_in.status == AttendanceStatus.PRESENT
    assert checked_in.work_hours == 0

    record = service.check_out(user_id, now=at(13, 30))

    assert record.work_hours == 4.5
    assert record.status == AttendanceStatus.PRESENT
    assert record.check_out_time == at(13, 30)


def test_short_day_becomes_half_day():
    service, _, _, user_id = _setup()
    service.check_in(user_id, now=at(9))

    record = service.check_out(user_id, now=at(12, 30))

    assert record.work_hours == 3.5
    assert record.status == AttendanceStatus.HALF_DAY


def test_work_hours_rounded_to_two_decimals():
    service, _, _, user_id = _setup()
    service.check_in(user_id, now=at(9))

    record = service.check_out(user_id, now=at(17, 20))

    assert record.work_hours == 8.33


def test_second_check_in_same_day_conflicts():
    service, _, _, user_id = _setup()
    service.check_in(user_id, now=at(9))

    with pytest.raises(ConflictError, match="Already checked in today"):
        service.check_in(user_id, now=at(10))


def test_check_in_next_day_is_a_new_record():
    service, _, _, user_id = _setup()
    first = service.check_in(user_id, now=at(9))

    second = service.check_in(user_id, now=at(9, day=date(2024, 3, 5)))

    assert second.attendance_id != first.attendance_id
    assert second.work_date == date(2024, 3, 5)


def test_check_out_requires_check_in():
    service, _, _, user_id = _setup()

    with pytest.raises(ConflictError, match="Please check in first"):
        service.check_out(user_id, now=at(17))


def test_second_check_out_conflicts():
    service, _, _, user_id = _setup()
    service.check_in(user_id, now=at(9))
    service.check_out(user_id, now=at(17))

    with pytest.raises(ConflictError, match="Already checked out today"):
        service.check_out(user_id, now=at(18))


def test_check_in_fills_a_day_that_was_marked_absent():
    service, records, _, user_id = _setup()
    attendance_id = records.create_checkin(
        user_id=user_id, work_date=DAY, check_in_time=at(0), status=AttendanceStatus.ABSENT
    )
    records.admin_update_record(
        attendance_id=attendance_id,
        check_in_time=None,
        check_out_time=None,
        work_hours=0,
        status=AttendanceStatus.ABSENT,
    )

    record = service.check_in(user_id, now=at(9, 15))

    assert record.attendance_id == attendance_id
    assert record.status == AttendanceStatus.PRESENT
    assert record.check_in_time == at(9, 15)


def test_today_returns_none_before_check_in():
    service, _, _, user_id = _setup()

    assert service.today(user_id, now=at(8)) is None
    service.check_in(user_id, now=at(9))
    assert service.today(user_id, now=at(10)).check_in_time == at(9)


def test_list_mine_returns_one_month_with_summary():
    service, _, _, user_id = _setup()
    service.check_in(user_id, now=at(9, day=date(2024, 3, 4)))
    service.check_out(user_id, now=at(17, day=date(2024, 3, 4)))
    service.check_in(user_id, now=at(9, day=date(2024, 3, 5)))
    service.check_out(user_id, now=at(11, day=date(2024, 3, 5)))
    service.check_in(user_id, now=at(9, day=date(2024, 4, 1)))

    result = service.list_mine(user_id, month="3", year="2024")

    assert [r.work_date for r in result.records] == [date(2024, 3, 5), date(2024, 3, 4)]
    assert result.summary.to_dict() == {
        "present": 1,
        "absent": 0,
        "halfDay": 1,
        "leave": 0,
        "totalWorkHours": 10.0,
    }

    current = service.list_mine(user_id, today=date(2024, 4, 20))
    assert [r.work_date for r in current.records] == [date(2024, 4, 1)]


def test_list_mine_rejects_bad_month():
    service, _, _, user_id = _setup()

    with pytest.raises(ValidationError):
        service.list_mine(user_id, month="13", year="2024")


def test_admin_update_recomputes_work_hours():
    service, _, _, user_id = _setup()
    service.check_in(user_id, now=at(9))
    record = service.check_out(user_id, now=at(12))

    updated = service.update(
        record.attendance_id,
        {"checkIn": "2024-03-04T08:00:00", "checkOut": "2024-03-04T16:30:00", "status": "present", "notes": "fixed"},
    )

    assert updated.work_hours == 8.5
    assert updated.status == AttendanceStatus.PRESENT
    assert updated.note == "fixed"


def test_admin_update_rejects_checkout_before_checkin():
    service, _, _, user_id = _setup()
    record = service.check_in(user_id, now=at(9))

    with pytest.raises(ValidationError):
        service.update(record.attendance_id, {"checkOut": "2024-03-04T08:00:00"})
    with pytest.raises(ValidationError):
        service.update(record.attendance_id, {"status": "sleeping"})
    with pytest.raises(NotFoundError):
        service.update(999, {"notes": "x"})


def test_list_all_embeds_user_summary_and_filters():
    service, _, users, user_id = _setup()
    other_id = _add_user(users, "EMP2")
    service.check_in(user_id, now=at(9))
    service.check_in(other_id, now=at(9))
    service.check_in(other_id, now=at(9, day=date(2024, 3, 5)))

    page = service.list_all(work_date="2024-03-04", page=1, limit=20)
    assert page.total == 2
    assert {row["user"]["employeeId"] for row in page.items} == {"EMP1", "EMP2"}

    page = service.list_all(user_id=str(other_id), page=1, limit=1)
    assert page.total == 2
    assert page.pages == 2
    assert page.items[0]["date"] == "2024-03-05"


def test_stats_counts_absent_as_active_minus_present():
    service, _, users, user_id = _setup()
    _add_user(users, "EMP2")
    _add_user(users, "EMP3")
    service.check_in(user_id, now=at(9))

    stats = service.stats(today=DAY)

    assert stats["totalEmployees"] == 3
    assert stats["today"]["present"] == 1
    assert stats["today"]["absent"] == 2
    assert stats["today"]["stats"] == [{"_id": "present", "count": 1}]
    assert stats["monthly"] == [{"_id": "present", "count": 1}]
