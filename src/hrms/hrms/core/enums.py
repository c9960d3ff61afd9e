from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    EMPLOYEE = "employee"
    HR = "hr"
    ADMIN = "admin"


PRIVILEGED_ROLES = frozenset({Role.HR, Role.ADMIN})


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    HALF_DAY = "half-day"
    LEAVE = "leave"
    HOLIDAY = "holiday"


class LeaveType(str, Enum):
    PAID = "paid"
    SICK = "sick"
    UNPAID = "unpaid"
    MATERNITY = "maternity"
    PATERNITY = "paternity"
    CASUAL = "casual"
    ANNUAL = "annual"


class LeaveStatus(str, Enum):
    """Leave approval workflow states."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PayrollStatus(str, Enum):
    PENDING = "pending"
    PROCESSED = "processed"
    PAID = "paid"


class NotificationType(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    LEAVE = "leave"
    ATTENDANCE = "attendance"
    PAYROLL = "payroll"
