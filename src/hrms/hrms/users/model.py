from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional

from ..common.datetime_utils import isoformat_or_none
from ..core.enums import Role


@dataclass(frozen=True)
class SalaryProfile:
    """Monthly salary components used as the payroll source."""

    basic: float = 0.0
    hra: float = 0.0
    allowances: float = 0.0
    deductions: float = 0.0

    def to_dict(self) -> dict:
        return {
            "basic": self.basic,
            "hra": self.hra,
            "allowances": self.allowances,
            "deductions": self.deductions,
        }


@dataclass(frozen=True)
class User:
    """Domain entity: User (identity + HR profile).

    Note: plain data object, no storage code. Secrets never leave through
    `to_public_dict`.
    """

    user_id: int
    employee_id: str
    email: str
    password_hash: str
    first_name: str
    last_name: str
    role: Role = Role.EMPLOYEE
    is_active: bool = True
    phone: Optional[str] = None
    avatar: str = ""
    department: Optional[str] = None
    designation: Optional[str] = None
    date_of_birth: Optional[date] = None
    date_of_joining: Optional[date] = None
    address: dict = field(default_factory=dict)
    emergency_contact: dict = field(default_factory=dict)
    bank_details: dict = field(default_factory=dict)
    salary: SalaryProfile = field(default_factory=SalaryProfile)
    documents: list = field(default_factory=list)
    is_email_verified: bool = False
    email_verification_token: Optional[str] = None
    email_verification_expire: Optional[datetime] = None
    reset_password_token: Optional[str] = None
    reset_password_expire: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_public_dict(self) -> dict[str, Any]:
        return {
            "id": self.user_id,
            "employeeId": self.employee_id,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "fullName": self.full_name,
            "role": self.role.value,
            "isActive": self.is_active,
            "phone": self.phone,
            "avatar": self.avatar,
            "department": self.department,
            "designation": self.designation,
            "dateOfBirth": isoformat_or_none(self.date_of_birth),
            "dateOfJoining": isoformat_or_none(self.date_of_joining),
            "address": dict(self.address),
            "emergencyContact": dict(self.emergency_contact),
            "bankDetails": dict(self.bank_details),
            "salary": self.salary.to_dict(),
            "documents": list(self.documents),
            "isEmailVerified": self.is_email_verified,
            "createdAt": isoformat_or_none(self.created_at),
        }

    def to_summary_dict(self) -> dict[str, Any]:
        """Short form embedded in attendance/leave/payroll rows."""
        return {
            "id": self.user_id,
            "employeeId": self.employee_id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "department": self.department,
            "designation": self.designation,
            "avatar": self.avatar,
        }


@dataclass(frozen=True)
class NewUser:
    employee_id: str
    email: str
    password_hash: str
    first_name: str
    last_name: str
    role: Role = Role.EMPLOYEE
    is_active: bool = True
    phone: Optional[str] = None
    avatar: str = ""
    department: Optional[str] = None
    designation: Optional[str] = None
    date_of_birth: Optional[date] = None
    date_of_joining: Optional[date] = None
    address: dict = field(default_factory=dict)
    emergency_contact: dict = field(default_factory=dict)
    bank_details: dict = field(default_factory=dict)
    salary: SalaryProfile = field(default_factory=SalaryProfile)
    documents: list = field(default_factory=list)


@dataclass(frozen=True)
class EmployeeUpdate:
    """A validated, role-narrowed set of profile changes.

    Only the keys present in `changes` are written. Keys are `User` field
    names.
    """

    changes: dict[str, Any]

    def is_empty(self) -> bool:
        return not self.changes
