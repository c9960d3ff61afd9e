from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .attendance.factory import AttendanceStrategyFactory
from .attendance.memory_attendance_repository import InMemoryAttendanceRepository
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .common.mailer import LogMailer, Mailer
from .core.constants import DEFAULT_SESSION_DAYS
from .database.connection import DBConfig, DatabaseConnection
from .leaves.memory_leave_repository import InMemoryLeaveRepository
from .leaves.mysql_leave_repository import MySQLLeaveRepository
from .leaves.repository import LeaveRepository
from .leaves.service import LeaveService
from .notifications.memory_notification_repository import InMemoryNotificationRepository
from .notifications.mysql_notification_repository import MySQLNotificationRepository
from .notifications.repository import NotificationRepository
from .notifications.service import NotificationService
from .payroll.calculator.standard_calculator import StandardPayrollCalculator
from .payroll.memory_payroll_repository import InMemoryPayrollRepository
from .payroll.mysql_payroll_repository import MySQLPayrollRepository
from .payroll.repository import PayrollRepository
from .payroll.service import PayrollService
from .users.demo_seed import seed_demo_users
from .users.memory_user_repository import InMemoryUserRepository
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, EmployeeService
from .users.tokens import SessionTokenIssuer

logger = logging.getLogger(__name__)

BACKENDS = ("mysql", "memory")


@dataclass(frozen=True)
class Container:
    backend: str
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    attendance_repo: AttendanceRepository
    leaves_repo: LeaveRepository
    payroll_repo: PayrollRepository
    notifications_repo: NotificationRepository

    auth_service: AuthService
    employee_service: EmployeeService
    attendance_service: AttendanceService
    leave_service: LeaveService
    payroll_service: PayrollService
    notification_service: NotificationService


def db_connection(db_config: Mapping[str, Any]) -> DatabaseConnection:
    return DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))


def build_container(
    *,
    backend: str = "mysql",
    db_config: Optional[Mapping[str, Any]] = None,
    jwt_secret: str,
    jwt_expire_days: int = DEFAULT_SESSION_DAYS,
    frontend_url: str = "http://localhost:5173",
    seed_demo: bool = False,
    mailer: Optional[Mailer] = None,
) -> Container:
    """Wire repositories and services for one storage backend.

    The backend is picked here, once; services only see the repository
    protocols.
    """
    if backend not in BACKENDS:
        raise ValueError(f"Unknown STORE_BACKEND {backend!r} (expected one of {', '.join(BACKENDS)})")

    conn: Optional[DatabaseConnection] = None
    if backend == "mysql":
        if not db_config:
            raise ValueError("DB_CONFIG is required for the mysql backend")
        conn = db_connection(db_config)
        users_repo = MySQLUserRepository(conn)
        attendance_repo = MySQLAttendanceRepository(conn)
        leaves_repo = MySQLLeaveRepository(conn)
        payroll_repo = MySQLPayrollRepository(conn)
        notifications_repo = MySQLNotificationRepository(conn)
    else:
        users_repo = InMemoryUserRepository()
        attendance_repo = InMemoryAttendanceRepository()
        leaves_repo = InMemoryLeaveRepository()
        payroll_repo = InMemoryPayrollRepository()
        notifications_repo = InMemoryNotificationRepository()

    if seed_demo:
        seed_demo_users(users_repo)

    auth_service = AuthService(
        users_repo,
        SessionTokenIssuer(jwt_secret, expire_days=jwt_expire_days),
        mailer or LogMailer(),
        frontend_url=frontend_url,
    )
    notification_service = NotificationService(notifications_repo, users_repo)

    logger.info("Container ready (backend=%s%s)", backend, f", db={conn.target}" if conn else "")

    return Container(
        backend=backend,
        conn=conn,
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        leaves_repo=leaves_repo,
        payroll_repo=payroll_repo,
        notifications_repo=notifications_repo,
        auth_service=auth_service,
        employee_service=EmployeeService(users_repo),
        attendance_service=AttendanceService(
            attendance_repo,
            users_repo,
            strategy_factory=AttendanceStrategyFactory(),
        ),
        leave_service=LeaveService(leaves_repo, users_repo, notification_service),
        payroll_service=PayrollService(payroll_repo, users_repo, calculator=StandardPayrollCalculator()),
        notification_service=notification_service,
    )
