from __future__ import annotations

import pytest

from src.hrms.hrms.core.enums import Role
from src.hrms.hrms.core.exceptions import AuthorizationError, DuplicateIdentityError, NotFoundError, ValidationError
from src.hrms.hrms.users.memory_user_repository import InMemoryUserRepository
from src.hrms.hrms.users.model import NewUser, SalaryProfile
from src.hrms.hrms.users.service import EmployeeService
from src.hrms.hrms.users.tokens import Identity


def _add(users, employee_id, role=Role.EMPLOYEE, **extra):
    user_id = users.create_user(
        NewUser(
            employee_id=employee_id,
            email=f"{employee_id.lower()}@example.com",
            password_hash="x",
            first_name=employee_id,
            last_name="Tester",
            role=role,
            **extra,
        )
    )
    return Identity(user_id=user_id, role=role)


def _setup():
    users = InMemoryUserRepository()
    admin = _add(users, "ADM1", Role.ADMIN, department="Management")
    hr = _add(users, "HR1", Role.HR, department="Human Resources")
    emp = _add(users, "EMP1", department="Engineering", salary=SalaryProfile(basic=1000, hra=200, allowances=100))
    return EmployeeService(users), users, admin, hr, emp


def test_employee_sees_only_own_profile():
    service, _, admin, _, emp = _setup()

    assert service.get(caller=emp, user_id=emp.user_id).employee_id == "EMP1"
    with pytest.raises(AuthorizationError):
        service.get(caller=emp, user_id=admin.user_id)


def test_get_unknown_employee():
    service, _, admin, _, _ = _setup()

    with pytest.raises(NotFoundError):
        service.get(caller=admin, user_id=999)


def test_employee_self_update_ignores_fields_outside_self_service():
    service, _, _, _, emp = _setup()

    updated = service.update(
        caller=emp,
        user_id=emp.user_id,
        payload={"phone": " 555-0100 ", "department": "Finance", "role": "admin", "salary": {"basic": 1}},
    )

    assert updated.phone == "555-0100"
    assert updated.department == "Engineering"
    assert updated.role == Role.EMPLOYEE
    assert updated.salary.basic == 1000


def test_hr_updates_salary_partially():
    service, _, _, hr, emp = _setup()

    updated = service.update(caller=hr, user_id=emp.user_id, payload={"salary": {"hra": 300}})

    assert updated.salary == SalaryProfile(basic=1000, hra=300, allowances=100, deductions=0)


def test_hr_cannot_touch_admins_or_grant_admin():
    service, _, admin, hr, emp = _setup()

    with pytest.raises(AuthorizationError):
        service.update(caller=hr, user_id=admin.user_id, payload={"department": "X"})
    with pytest.raises(AuthorizationError):
        service.update(caller=hr, user_id=emp.user_id, payload={"role": "admin"})
    with pytest.raises(AuthorizationError):
        service.create(
            caller=hr,
            payload={
                "employeeId": "ADM2",
                "email": "adm2@example.com",
                "password": "secret1",
                "firstName": "A",
                "lastName": "B",
                "role": "admin",
            },
        )


def test_update_rejects_taken_email():
    service, _, admin, hr, emp = _setup()

    with pytest.raises(DuplicateIdentityError):
        service.update(caller=admin, user_id=emp.user_id, payload={"email": "hr1@example.com"})


def test_create_employee_with_profile():
    service, _, _, hr, _ = _setup()

    user = service.create(
        caller=hr,
        payload={
            "employeeId": "EMP2",
            "email": "emp2@example.com",
            "password": "secret1",
            "firstName": "Ada",
            "lastName": "Lovelace",
            "department": "Engineering",
            "salary": {"basic": 3000},
            "bankDetails": {"accountNumber": "123"},
        },
    )

    assert user.role == Role.EMPLOYEE
    assert user.salary.basic == 3000
    assert user.bank_details == {"accountNumber": "123"}
    assert user.date_of_joining is not None
    assert "password_hash" not in user.to_public_dict()


def test_create_requires_privileged_caller():
    service, _, _, _, emp = _setup()

    with pytest.raises(AuthorizationError):
        service.create(caller=emp, payload={})


def test_delete_rules():
    service, users, admin, hr, emp = _setup()

    with pytest.raises(AuthorizationError):
        service.delete(caller=hr, user_id=emp.user_id)
    with pytest.raises(ValidationError):
        service.delete(caller=admin, user_id=admin.user_id)
    with pytest.raises(NotFoundError):
        service.delete(caller=admin, user_id=999)

    service.delete(caller=admin, user_id=emp.user_id)
    assert users.get_by_id(emp.user_id) is None


def test_list_filters_and_paginates():
    service, _, _, _, _ = _setup()

    page = service.list(search="emp", page=1, limit=10)
    assert [u.employee_id for u in page.items] == ["EMP1"]

    page = service.list(role="hr", page=1, limit=10)
    assert [u.employee_id for u in page.items] == ["HR1"]

    page = service.list(page=2, limit=2)
    assert page.total == 3
    assert page.meta() == {"total": 3, "page": 2, "pages": 2}
    assert len(page.items) == 1

    with pytest.raises(ValidationError):
        service.list(role="boss", page=1, limit=10)


def test_stats():
    service, users, _, _, emp = _setup()
    users.update_fields(emp.user_id, {"is_active": False})

    stats = service.stats()

    assert stats["totalEmployees"] == 3
    assert stats["activeEmployees"] == 2
    assert stats["inactiveEmployees"] == 1
    assert {"_id": "employee", "count": 1} in stats["roleStats"]
    assert {"_id": "Engineering", "count": 1} in stats["departmentStats"]
