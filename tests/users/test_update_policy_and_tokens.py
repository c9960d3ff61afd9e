from datetime import date

import pytest

from src.hrms.hrms.core.enums import Role
from src.hrms.hrms.core.exceptions import AuthenticationError, ValidationError
from src.hrms.hrms.users.tokens import SessionTokenIssuer
from src.hrms.hrms.users.update_policy import narrow_update

SECRET = "unit-test-secret-0123456789abcdef0123"


def test_employee_update_keeps_self_service_fields_only():
    update = narrow_update(Role.EMPLOYEE, {"phone": "1", "avatar": "a.png", "email": "x@y.io", "isActive": False})

    assert update.changes == {"phone": "1", "avatar": "a.png"}


def test_privileged_update_parses_fields():
    update = narrow_update(
        Role.HR,
        {"dateOfJoining": "2024-01-15", "isActive": False, "role": "hr", "salary": {"basic": "2500", "bogus": 1}},
    )

    assert update.changes == {
        "date_of_joining": date(2024, 1, 15),
        "is_active": False,
        "role": Role.HR,
        "salary": {"basic": 2500.0},
    }


@pytest.mark.parametrize(
    "payload",
    [
        {"salary": {"basic": -1}},
        {"isActive": "yes"},
        {"address": "Main street"},
        {"documents": [{"name": "cv"}]},
        {"dateOfBirth": "15/01/1990"},
    ],
)
def test_privileged_update_rejects_bad_values(payload):
    with pytest.raises(ValidationError):
        narrow_update(Role.ADMIN, payload)


def test_token_carries_user_and_role():
    issuer = SessionTokenIssuer(SECRET)

    identity = issuer.decode(issuer.issue(42, Role.HR))

    assert identity.user_id == 42
    assert identity.role == Role.HR
    assert identity.is_privileged


def test_token_signed_with_other_secret_is_rejected():
    token = SessionTokenIssuer("other-secret-0123456789abcdef0123456").issue(1, Role.ADMIN)

    with pytest.raises(AuthenticationError):
        SessionTokenIssuer(SECRET).decode(token)


def test_expired_token_is_rejected():
    token = SessionTokenIssuer(SECRET, expire_days=-1).issue(1, Role.EMPLOYEE)

    with pytest.raises(AuthenticationError, match="expired"):
        SessionTokenIssuer(SECRET).decode(token)


def test_garbage_token_is_rejected():
    with pytest.raises(AuthenticationError):
        SessionTokenIssuer(SECRET).decode("not-a-jwt")
