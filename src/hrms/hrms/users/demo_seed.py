from __future__ import annotations

import logging

from werkzeug.security import generate_password_hash

from ..common.datetime_utils import now_local
from ..core.enums import Role
from .model import NewUser
from .repository import UserRepository
from .service import parse_salary

logger = logging.getLogger(__name__)

# email, password, employee id, first, last, role, department, designation, salary
DEMO_USERS = (
    ("admin@demo.com", "admin123", "ADM001", "Admin", "User", Role.ADMIN, "Management", "System Administrator",
     {"basic": 8000, "hra": 1600, "allowances": 800}),
    ("hr@demo.com", "hr123", "HR001", "Hannah", "Reed", Role.HR, "Human Resources", "HR Manager",
     {"basic": 5000, "hra": 1000, "allowances": 500}),
    ("employee@demo.com", "emp123", "EMP001", "John", "Doe", Role.EMPLOYEE, "Engineering", "Software Engineer",
     {"basic": 4000, "hra": 800, "allowances": 400}),
)


def seed_demo_users(users: UserRepository) -> int:
    """Create the demo accounts that do not exist yet. Returns how many were added."""
    added = 0
    for email, password, employee_id, first, last, role, department, designation, salary in DEMO_USERS:
        if users.get_by_email(email):
            continue
        users.create_user(
            NewUser(
                employee_id=employee_id,
                email=email,
                password_hash=generate_password_hash(password),
                first_name=first,
                last_name=last,
                role=role,
                department=department,
                designation=designation,
                date_of_joining=now_local().date(),
                salary=parse_salary(salary),
            )
        )
        added += 1
    if added:
        logger.info("Seeded %s demo users", added)
    return added
