from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Mapping, Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.datetime_utils import now_local
from ..common.mailer import Mailer
from ..common.pagination import Page
from ..common.validators import (
    require_email,
    require_enum,
    require_min_length,
    require_non_empty,
    require_non_negative,
)
from ..core.constants import EMAIL_VERIFICATION_HOURS, MIN_PASSWORD_LENGTH, PASSWORD_RESET_MINUTES
from ..core.enums import Role
from ..core.exceptions import (
    AccountDisabledError,
    AuthenticationError,
    AuthorizationError,
    DuplicateIdentityError,
    NotFoundError,
    TokenInvalidOrExpiredError,
    ValidationError,
)
from .model import NewUser, SalaryProfile, User
from .repository import UserRepository
from .tokens import Identity, SessionTokenIssuer, generate_random_token, hash_token
from .update_policy import narrow_update

logger = logging.getLogger(__name__)

_INVALID_CREDENTIALS = "Invalid credentials"


@dataclass(frozen=True)
class AuthResult:
    """What the login/register endpoints hand back to the client."""

    user: User
    token: str


def authorize(identity: Identity, required_roles: Sequence[Role]) -> bool:
    return identity.role in set(required_roles)


def _ensure_unique(users: UserRepository, *, email: str, employee_id: str, exclude_id: Optional[int] = None) -> None:
    for existing in (users.get_by_email(email), users.get_by_employee_id(employee_id)):
        if existing and existing.user_id != exclude_id:
            raise DuplicateIdentityError("User with this email or employee ID already exists")


class AuthService:
    """Use cases: register, login, session identity, password reset, email verification."""

    def __init__(
        self,
        users: UserRepository,
        tokens: SessionTokenIssuer,
        mailer: Mailer,
        *,
        frontend_url: str = "http://localhost:5173",
    ):
        self._users = users
        self._tokens = tokens
        self._mailer = mailer
        self._frontend_url = frontend_url.rstrip("/")

    def register(
        self,
        *,
        employee_id: str,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        now: Optional[datetime] = None,
    ) -> AuthResult:
        """Self-registration always creates an employee account."""
        now = now or now_local()
        employee_id = require_non_empty(employee_id, "Employee ID")
        email = require_email(email)
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
        first_name = require_non_empty(first_name, "First name")
        last_name = require_non_empty(last_name, "Last name")

        _ensure_unique(self._users, email=email, employee_id=employee_id)

        user_id = self._users.create_user(
            NewUser(
                employee_id=employee_id,
                email=email,
                password_hash=generate_password_hash(password),
                first_name=first_name,
                last_name=last_name,
                role=Role.EMPLOYEE,
                date_of_joining=now.date(),
            )
        )

        verification_token = generate_random_token()
        self._users.update_fields(
            user_id,
            {
                "email_verification_token": hash_token(verification_token),
                "email_verification_expire": now + timedelta(hours=EMAIL_VERIFICATION_HOURS),
            },
        )
        self._mailer.send(
            to=email,
            subject="Dayflow HRMS - Email Verification",
            body=f"Please open the link below to verify your email:\n{self._frontend_url}/verify-email/{verification_token}",
        )
        logger.info("Registered user %s (%s)", user_id, email)

        user = self._require_user(user_id)
        return AuthResult(user=user, token=self._tokens.issue(user.user_id, user.role))

    def authenticate(self, email: str, password: str) -> AuthResult:
        if not email or not password:
            raise ValidationError("Please provide email and password")

        user = self._users.get_by_email(str(email).strip().lower())
        if not user:
            logger.info("Login failed: unknown email")
            raise AuthenticationError(_INVALID_CREDENTIALS)

        try:
            ok = check_password_hash(user.password_hash, password)
        except (TypeError, ValueError):
            # e.g. placeholder hashes or corrupted values
            ok = False

        if not ok:
            logger.info("Login failed for user %s", user.user_id)
            raise AuthenticationError(_INVALID_CREDENTIALS)

        if not user.is_active:
            raise AccountDisabledError("Your account has been deactivated")

        return AuthResult(user=user, token=self._tokens.issue(user.user_id, user.role))

    def identify(self, token: str) -> Identity:
        """Resolve a bearer token to the current identity.

        The role is re-read from the store so demotions and deactivation
        apply immediately.
        """
        claimed = self._tokens.decode(token)
        user = self._users.get_by_id(claimed.user_id)
        if not user:
            raise AuthenticationError("Not authorized")
        if not user.is_active:
            raise AccountDisabledError("Your account has been deactivated")
        return Identity(user_id=user.user_id, role=user.role)

    def me(self, user_id: int) -> User:
        return self._require_user(user_id)

    def forgot_password(self, email: str, *, now: Optional[datetime] = None) -> None:
        now = now or now_local()
        user = self._users.get_by_email(require_email(email))
        if not user:
            raise NotFoundError("No user found with this email")

        reset_token = generate_random_token()
        self._users.update_fields(
            user.user_id,
            {
                "reset_password_token": hash_token(reset_token),
                "reset_password_expire": now + timedelta(minutes=PASSWORD_RESET_MINUTES),
            },
        )
        self._mailer.send(
            to=user.email,
            subject="Dayflow HRMS - Password Reset",
            body=(
                "You requested a password reset. Open the link below:\n"
                f"{self._frontend_url}/reset-password/{reset_token}\n"
                f"This link will expire in {PASSWORD_RESET_MINUTES} minutes."
            ),
        )

    def reset_password(self, token: str, password: str, *, now: Optional[datetime] = None) -> AuthResult:
        now = now or now_local()
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)

        user = self._users.find_by_token(kind="reset_password", token_hash=hash_token(token or ""), now=now)
        if not user:
            raise TokenInvalidOrExpiredError("Invalid or expired token")

        self._users.update_fields(
            user.user_id,
            {
                "password_hash": generate_password_hash(password),
                "reset_password_token": None,
                "reset_password_expire": None,
            },
        )
        logger.info("Password reset for user %s", user.user_id)
        user = self._require_user(user.user_id)
        return AuthResult(user=user, token=self._tokens.issue(user.user_id, user.role))

    def verify_email(self, token: str, *, now: Optional[datetime] = None) -> User:
        now = now or now_local()
        user = self._users.find_by_token(kind="email_verification", token_hash=hash_token(token or ""), now=now)
        if not user:
            raise TokenInvalidOrExpiredError("Invalid or expired token")

        self._users.update_fields(
            user.user_id,
            {
                "is_email_verified": True,
                "email_verification_token": None,
                "email_verification_expire": None,
            },
        )
        return self._require_user(user.user_id)

    def _require_user(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        return user


class EmployeeService:
    """Use cases: manage employee records (hr/admin, self-service profile)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def list(
        self,
        *,
        search: Optional[str] = None,
        department: Optional[str] = None,
        role: Optional[str] = None,
        page: int,
        limit: int,
    ) -> Page[User]:
        role_filter = require_enum(Role, role, "Role") if role else None
        return self._users.search(
            search=(search or "").strip() or None,
            department=department or None,
            role=role_filter,
            page=page,
            limit=limit,
        )

    def get(self, *, caller: Identity, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("Employee not found")
        if not caller.is_privileged and caller.user_id != user.user_id:
            raise AuthorizationError("Not authorized to view this profile")
        return user

    def create(self, *, caller: Identity, payload: Mapping[str, Any], now: Optional[datetime] = None) -> User:
        if not caller.is_privileged:
            raise AuthorizationError("Not authorized")

        now = now or now_local()
        employee_id = require_non_empty(payload.get("employeeId", ""), "Employee ID")
        email = require_email(payload.get("email", ""))
        password = payload.get("password") or ""
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
        role = require_enum(Role, payload.get("role") or Role.EMPLOYEE.value, "Role")
        if role == Role.ADMIN and caller.role != Role.ADMIN:
            raise AuthorizationError("Only admins can create admin accounts")

        _ensure_unique(self._users, email=email, employee_id=employee_id)

        # Reuse the privileged allow-list parsers for the optional profile parts.
        profile = narrow_update(Role.ADMIN, {k: v for k, v in payload.items() if k not in {"employeeId", "email", "role"}})
        fields = dict(profile.changes)
        salary_parts = fields.pop("salary", {})

        new_user = NewUser(
            employee_id=employee_id,
            email=email,
            password_hash=generate_password_hash(password),
            first_name=require_non_empty(payload.get("firstName", ""), "First name"),
            last_name=require_non_empty(payload.get("lastName", ""), "Last name"),
            role=role,
            is_active=fields.pop("is_active", True),
            phone=fields.pop("phone", None),
            avatar=fields.pop("avatar", ""),
            department=fields.pop("department", None),
            designation=fields.pop("designation", None),
            date_of_birth=fields.pop("date_of_birth", None),
            date_of_joining=fields.pop("date_of_joining", None) or now.date(),
            address=fields.pop("address", {}),
            emergency_contact=fields.pop("emergency_contact", {}),
            bank_details=fields.pop("bank_details", {}),
            salary=SalaryProfile(**salary_parts),
            documents=fields.pop("documents", []),
        )
        user_id = self._users.create_user(new_user)
        logger.info("Employee %s created by user %s", user_id, caller.user_id)
        return self._users.get_by_id(user_id)

    def update(self, *, caller: Identity, user_id: int, payload: Mapping[str, Any]) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("Employee not found")
        if not caller.is_privileged and caller.user_id != user.user_id:
            raise AuthorizationError("Not authorized to update this profile")
        if user.role == Role.ADMIN and caller.role == Role.HR:
            raise AuthorizationError("Only admins can modify admin accounts")

        command = narrow_update(caller.role, payload)
        changes = dict(command.changes)

        if changes.get("role") == Role.ADMIN and caller.role != Role.ADMIN:
            raise AuthorizationError("Only admins can grant the admin role")

        if "email" in changes or "employee_id" in changes:
            _ensure_unique(
                self._users,
                email=changes.get("email", user.email),
                employee_id=changes.get("employee_id", user.employee_id),
                exclude_id=user.user_id,
            )

        if "salary" in changes:
            changes["salary"] = dataclasses.replace(user.salary, **changes["salary"])

        if changes:
            self._users.update_fields(user.user_id, changes)
        return self._users.get_by_id(user.user_id)

    def delete(self, *, caller: Identity, user_id: int) -> None:
        if caller.role != Role.ADMIN:
            raise AuthorizationError("Not authorized")

        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("Employee not found")
        if user.user_id == caller.user_id:
            raise ValidationError("You cannot delete your own account")

        if not self._users.delete_by_id(user.user_id):
            raise NotFoundError("Employee not found")
        logger.info("Employee %s deleted by user %s", user.user_id, caller.user_id)

    def stats(self) -> dict:
        total = self._users.count()
        active = self._users.count(active_only=True)
        return {
            "totalEmployees": total,
            "activeEmployees": active,
            "inactiveEmployees": total - active,
            "departmentStats": list(self._users.count_by("department")),
            "roleStats": list(self._users.count_by("role")),
        }


def parse_salary(payload: Mapping[str, Any]) -> SalaryProfile:
    """Salary profile from a loose mapping (seed data, imports)."""
    return SalaryProfile(
        **{k: require_non_negative(payload.get(k, 0), f"salary.{k}") for k in ("basic", "hra", "allowances", "deductions")}
    )
