from __future__ import annotations

import re
from datetime import datetime, timedelta

import pytest

from src.hrms.hrms.core.enums import Role
from src.hrms.hrms.core.exceptions import (
    AccountDisabledError,
    AuthenticationError,
    DuplicateIdentityError,
    NotFoundError,
    TokenInvalidOrExpiredError,
    ValidationError,
)
from src.hrms.hrms.users.memory_user_repository import InMemoryUserRepository
from src.hrms.hrms.users.service import AuthService
from src.hrms.hrms.users.tokens import SessionTokenIssuer

SECRET = "unit-test-secret-0123456789abcdef0123"
NOW = datetime(2024, 3, 1, 9, 0, 0)


class RecordingMailer:
    def __init__(self):
        self.sent = []

    def send(self, *, to, subject, body):
        self.sent.append({"to": to, "subject": subject, "body": body})
        return True


def _token_from(mail: dict, route: str) -> str:
    return re.search(rf"/{route}/(\w+)", mail["body"]).group(1)


def _service():
    users = InMemoryUserRepository()
    mailer = RecordingMailer()
    service = AuthService(users, SessionTokenIssuer(SECRET), mailer, frontend_url="http://app.local/")
    return service, users, mailer


def _register(service, **overrides):
    data = {
        "employee_id": "EMP100",
        "email": "Jane@Example.com",
        "password": "secret1",
        "first_name": "Jane",
        "last_name": "Roe",
        "now": NOW,
    }
    data.update(overrides)
    return service.register(**data)


def test_register_creates_employee_and_sends_verification_mail():
    service, users, mailer = _service()

    result = _register(service)

    assert result.user.role == Role.EMPLOYEE
    assert result.user.email == "jane@example.com"
    assert result.user.is_email_verified is False
    assert service.identify(result.token).user_id == result.user.user_id

    assert len(mailer.sent) == 1
    assert mailer.sent[0]["to"] == "jane@example.com"
    assert "http://app.local/verify-email/" in mailer.sent[0]["body"]
    # Only the hash of the token is stored.
    stored = users.get_by_id(result.user.user_id)
    assert stored.email_verification_token != _token_from(mailer.sent[0], "verify-email")


def test_register_rejects_duplicate_email_or_employee_id():
    service, _, _ = _service()
    _register(service)

    with pytest.raises(DuplicateIdentityError):
        _register(service, employee_id="EMP200")
    with pytest.raises(DuplicateIdentityError):
        _register(service, email="other@example.com")


def test_register_validates_input():
    service, _, _ = _service()

    with pytest.raises(ValidationError):
        _register(service, password="12345")
    with pytest.raises(ValidationError):
        _register(service, email="not-an-email")
    with pytest.raises(ValidationError):
        _register(service, first_name="  ")


def test_authenticate_rejects_bad_credentials_with_one_message():
    service, _, _ = _service()
    _register(service)

    with pytest.raises(AuthenticationError) as wrong_password:
        service.authenticate("jane@example.com", "nope-nope")
    with pytest.raises(AuthenticationError) as unknown_email:
        service.authenticate("ghost@example.com", "secret1")

    assert str(wrong_password.value) == str(unknown_email.value) == "Invalid credentials"


def test_authenticate_requires_both_fields():
    service, _, _ = _service()

    with pytest.raises(ValidationError):
        service.authenticate("jane@example.com", "")


def test_deactivated_account_cannot_log_in_or_use_its_token():
    service, users, _ = _service()
    registered = _register(service)

    users.update_fields(registered.user.user_id, {"is_active": False})

    with pytest.raises(AccountDisabledError):
        service.authenticate("jane@example.com", "secret1")
    with pytest.raises(AccountDisabledError):
        service.identify(registered.token)


def test_identify_uses_current_role_from_store():
    service, users, _ = _service()
    registered = _register(service)

    users.update_fields(registered.user.user_id, {"role": Role.HR})

    assert service.identify(registered.token).role == Role.HR


def test_identify_rejects_token_of_deleted_user():
    service, users, _ = _service()
    registered = _register(service)
    users.delete_by_id(registered.user.user_id)

    with pytest.raises(AuthenticationError):
        service.identify(registered.token)


def test_verify_email_is_single_use():
    service, _, mailer = _service()
    _register(service)
    token = _token_from(mailer.sent[0], "verify-email")

    user = service.verify_email(token, now=NOW + timedelta(hours=1))
    assert user.is_email_verified is True

    with pytest.raises(TokenInvalidOrExpiredError):
        service.verify_email(token, now=NOW + timedelta(hours=1))


def test_verify_email_token_expires_after_a_day():
    service, _, mailer = _service()
    _register(service)
    token = _token_from(mailer.sent[0], "verify-email")

    with pytest.raises(TokenInvalidOrExpiredError):
        service.verify_email(token, now=NOW + timedelta(hours=25))


def test_password_reset_flow():
    service, _, mailer = _service()
    _register(service)

    service.forgot_password("jane@example.com", now=NOW)
    token = _token_from(mailer.sent[-1], "reset-password")

    result = service.reset_password(token, "newpass1", now=NOW + timedelta(minutes=5))

    assert result.token
    assert service.authenticate("jane@example.com", "newpass1").user.user_id == result.user.user_id
    with pytest.raises(AuthenticationError):
        service.authenticate("jane@example.com", "secret1")
    with pytest.raises(TokenInvalidOrExpiredError):
        service.reset_password(token, "another1", now=NOW + timedelta(minutes=6))


def test_password_reset_token_expires_after_ten_minutes():
    service, _, mailer = _service()
    _register(service)
    service.forgot_password("jane@example.com", now=NOW)
    token = _token_from(mailer.sent[-1], "reset-password")

    with pytest.raises(TokenInvalidOrExpiredError):
        service.reset_password(token, "newpass1", now=NOW + timedelta(minutes=11))


def test_forgot_password_for_unknown_email():
    service, _, _ = _service()

    with pytest.raises(NotFoundError):
        service.forgot_password("ghost@example.com")
