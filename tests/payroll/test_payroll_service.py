from __future__ import annotations

from datetime import datetime

import pytest

from src.hrms.hrms.core.enums import PayrollStatus, Role
from src.hrms.hrms.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from src.hrms.hrms.payroll.memory_payroll_repository import InMemoryPayrollRepository
from src.hrms.hrms.payroll.service import PayrollService
from src.hrms.hrms.users.memory_user_repository import InMemoryUserRepository
from src.hrms.hrms.users.model import NewUser, SalaryProfile
from src.hrms.hrms.users.tokens import Identity


def _add(users, employee_id, salary, role=Role.EMPLOYEE, **extra):
    user_id = users.create_user(
        NewUser(
            employee_id=employee_id,
            email=f"{employee_id.lower()}@example.com",
            password_hash="x",
            first_name=employee_id,
            last_name="Tester",
            role=role,
            salary=salary,
            **extra,
        )
    )
    return Identity(user_id=user_id, role=role)


def _setup(payrolls=None):
    users = InMemoryUserRepository()
    payrolls = payrolls or InMemoryPayrollRepository()
    emp = _add(
        users,
        "EMP1",
        SalaryProfile(basic=1000, hra=200, allowances=100),
        bank_details={"accountNumber": "001"},
    )
    other = _add(users, "EMP2", SalaryProfile(basic=2000))
    return PayrollService(payrolls, users), payrolls, users, emp, other


def test_generate_creates_one_pending_slip_per_active_employee():
    service, _, users, emp, other = _setup()
    _add(users, "GONE", SalaryProfile(basic=500), is_active=False)

    result = service.generate(month=3, year=2024)

    assert result.errors == []
    assert {p.user_id for p in result.created} == {emp.user_id, other.user_id}
    slip = next(p for p in result.created if p.user_id == emp.user_id)
    assert slip.status == PayrollStatus.PENDING
    assert (slip.deductions.pf, slip.deductions.tax, slip.deductions.other) == (120, 130, 0)
    assert slip.total_earnings == 1300
    assert slip.total_deductions == 250
    assert slip.net_salary == 1050


def test_generate_skips_existing_periods():
    service, _, _, emp, _ = _setup()
    service.generate(month=3, year=2024)

    rerun = service.generate(month="3", year="2024")

    assert rerun.created == []
    assert "Payroll already exists for EMP1 Tester" in rerun.errors
    assert len(rerun.errors) == 2


def test_generate_for_selected_employees():
    service, _, _, emp, _ = _setup()

    result = service.generate(month=3, year=2024, employee_ids=[emp.user_id])

    assert [p.user_id for p in result.created] == [emp.user_id]


def test_generate_validates_input():
    service, _, _, _, _ = _setup()

    with pytest.raises(ValidationError):
        service.generate(month=13, year=2024)
    with pytest.raises(ValidationError):
        service.generate(month=3, year="soon")
    with pytest.raises(ValidationError):
        service.generate(month=3, year=2024, employee_ids="1,2")
    with pytest.raises(ValidationError):
        service.generate(month=3.7, year=2024)
    with pytest.raises(ValidationError):
        service.generate(month=True, year=2024)

    created = service.generate(month=3.0, year=2024.0).created
    assert {(p.month, p.year) for p in created} == {(3, 2024)}


class FlakyPayrolls(InMemoryPayrollRepository):
    def __init__(self, failing_user_id):
        super().__init__()
        self._failing_user_id = failing_user_id

    def create(self, new_payroll):
        if new_payroll.user_id == self._failing_user_id:
            raise RuntimeError("disk full")
        return super().create(new_payroll)


def test_generate_collects_per_employee_failures():
    service, _, _, emp, other = _setup(FlakyPayrolls(failing_user_id=2))

    result = service.generate(month=3, year=2024)

    assert [p.user_id for p in result.created] == [emp.user_id]
    assert result.errors == ["Error generating payroll for EMP2 Tester: disk full"]


def test_update_recomputes_totals_and_ignores_given_totals():
    service, _, _, emp, _ = _setup()
    slip = service.generate(month=3, year=2024, employee_ids=[emp.user_id]).created[0]

    updated = service.update(
        slip.payroll_id,
        {"bonus": 100, "deductions": {"other": 25}, "netSalary": 1, "remarks": "Q1 bonus"},
    )

    assert updated.total_earnings == 1400
    assert updated.deductions.pf == 120
    assert updated.total_deductions == 275
    assert updated.net_salary == 1125
    assert updated.remarks == "Q1 bonus"


def test_update_to_paid_stamps_paid_at():
    service, _, _, emp, _ = _setup()
    slip = service.generate(month=3, year=2024, employee_ids=[emp.user_id]).created[0]

    updated = service.update(slip.payroll_id, {"status": "paid"}, now=datetime(2024, 4, 1, 9))

    assert updated.status == PayrollStatus.PAID
    assert updated.paid_at == datetime(2024, 4, 1, 9)


def test_update_validates_values():
    service, _, _, emp, _ = _setup()
    slip = service.generate(month=3, year=2024, employee_ids=[emp.user_id]).created[0]

    with pytest.raises(ValidationError):
        service.update(slip.payroll_id, {"basic": -5})
    with pytest.raises(ValidationError):
        service.update(slip.payroll_id, {"deductions": 10})
    with pytest.raises(ValidationError):
        service.update(slip.payroll_id, {"status": "lost"})
    with pytest.raises(NotFoundError):
        service.update(999, {"bonus": 1})


def test_process_marks_paid_once():
    service, _, _, emp, _ = _setup()
    slip = service.generate(month=3, year=2024, employee_ids=[emp.user_id]).created[0]

    paid = service.process(slip.payroll_id, now=datetime(2024, 4, 1))

    assert paid.status == PayrollStatus.PAID
    assert paid.paid_at == datetime(2024, 4, 1)
    with pytest.raises(ConflictError, match="already been paid"):
        service.process(slip.payroll_id)


def test_processed_slip_can_still_be_paid():
    service, _, _, emp, _ = _setup()
    slip = service.generate(month=3, year=2024, employee_ids=[emp.user_id]).created[0]
    service.update(slip.payroll_id, {"status": "processed"})

    assert service.process(slip.payroll_id).status == PayrollStatus.PAID


def test_get_visibility_and_slip_view():
    service, _, _, emp, other = _setup()
    result = service.generate(month=3, year=2024)
    mine = next(p for p in result.created if p.user_id == emp.user_id)
    admin = Identity(user_id=99, role=Role.ADMIN)

    assert service.get(mine.payroll_id, caller=emp).payroll_id == mine.payroll_id
    assert service.get(mine.payroll_id, caller=admin).payroll_id == mine.payroll_id
    with pytest.raises(AuthorizationError):
        service.get(mine.payroll_id, caller=other)

    view = service.slip(mine)
    assert view["user"]["employeeId"] == "EMP1"
    assert view["user"]["bankDetails"] == {"accountNumber": "001"}


def test_listings():
    service, _, _, emp, _ = _setup()
    service.generate(month=1, year=2024)
    service.generate(month=2, year=2024)
    service.generate(month=12, year=2023)

    mine = service.list_mine(emp.user_id, year="2024")
    assert [(p.year, p.month) for p in mine] == [(2024, 2), (2024, 1)]

    page = service.list_all(year=2024, status="pending", page=1, limit=3)
    assert page.total == 4
    assert page.pages == 2
    assert page.items[0]["user"]["employeeId"] in {"EMP1", "EMP2"}


def test_stats_per_year():
    service, _, _, emp, _ = _setup()
    service.generate(month=1, year=2024)
    service.generate(month=2, year=2024, employee_ids=[emp.user_id])
    service.generate(month=1, year=2023)
    slip = service.list_mine(emp.user_id, year=2024)[0]
    service.process(slip.payroll_id)

    stats = service.stats(year=2024)

    # EMP1 nets 1050, EMP2 nets 2000 - 240 - 200 = 1560
    assert [m["_id"] for m in stats["monthlyStats"]] == [1, 2]
    assert stats["monthlyStats"][0]["count"] == 2
    assert stats["monthlyStats"][0]["totalNetSalary"] == 2610
    assert stats["yearlyTotal"]["totalNetSalary"] == 3660
    assert {"_id": "paid", "count": 1, "total": 1050} in stats["statusStats"]
    assert {"_id": "pending", "count": 2, "total": 2610} in stats["statusStats"]
