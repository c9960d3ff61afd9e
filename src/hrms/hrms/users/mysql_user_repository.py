from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Sequence

from ..common.pagination import Page, offset_for
from ..core.enums import Role
from ..core.exceptions import DuplicateIdentityError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_json, to_json, unique_violation_as, where_clause
from .model import NewUser, SalaryProfile, User
from .repository import UserRepository

_COLUMNS = """
    user_id, employee_id, email, password_hash, first_name, last_name, role, is_active,
    phone, avatar, department, designation, date_of_birth, date_of_joining,
    address, emergency_contact, bank_details, documents,
    salary_basic, salary_hra, salary_allowances, salary_deductions,
    is_email_verified, email_verification_token, email_verification_expire,
    reset_password_token, reset_password_expire, created_at
"""

# User field -> column(s); salary and JSON columns are handled in _to_columns.
_SCALAR_COLUMNS = {
    "employee_id",
    "email",
    "password_hash",
    "first_name",
    "last_name",
    "phone",
    "avatar",
    "department",
    "designation",
    "date_of_birth",
    "date_of_joining",
    "email_verification_token",
    "email_verification_expire",
    "reset_password_token",
    "reset_password_expire",
}
_JSON_COLUMNS = {"address", "emergency_contact", "bank_details", "documents"}
_BOOL_COLUMNS = {"is_active", "is_email_verified"}

_TOKEN_COLUMNS = {
    "reset_password": ("reset_password_token", "reset_password_expire"),
    "email_verification": ("email_verification_token", "email_verification_expire"),
}

_DUPLICATE = "User with this email or employee ID already exists"


def _row_to_user(r: dict) -> User:
    return User(
        user_id=int(r["user_id"]),
        employee_id=r["employee_id"],
        email=r["email"],
        password_hash=r["password_hash"],
        first_name=r["first_name"],
        last_name=r["last_name"],
        role=Role(r["role"]),
        is_active=bool(r.get("is_active", True)),
        phone=r.get("phone"),
        avatar=r.get("avatar") or "",
        department=r.get("department"),
        designation=r.get("designation"),
        date_of_birth=r.get("date_of_birth"),
        date_of_joining=r.get("date_of_joining"),
        address=from_json(r.get("address"), {}),
        emergency_contact=from_json(r.get("emergency_contact"), {}),
        bank_details=from_json(r.get("bank_details"), {}),
        documents=from_json(r.get("documents"), []),
        salary=SalaryProfile(
            basic=float(r.get("salary_basic") or 0),
            hra=float(r.get("salary_hra") or 0),
            allowances=float(r.get("salary_allowances") or 0),
            deductions=float(r.get("salary_deductions") or 0),
        ),
        is_email_verified=bool(r.get("is_email_verified", False)),
        email_verification_token=r.get("email_verification_token"),
        email_verification_expire=r.get("email_verification_expire"),
        reset_password_token=r.get("reset_password_token"),
        reset_password_expire=r.get("reset_password_expire"),
        created_at=r.get("created_at"),
    )


def _to_columns(changes: dict[str, Any]) -> dict[str, Any]:
    cols: dict[str, Any] = {}
    for key, value in changes.items():
        if key in _SCALAR_COLUMNS:
            cols[key] = value
        elif key in _JSON_COLUMNS:
            cols[key] = to_json(value)
        elif key in _BOOL_COLUMNS:
            cols[key] = 1 if value else 0
        elif key == "role":
            cols["role"] = Role(value).value
        elif key == "salary":
            cols.update(
                salary_basic=value.basic,
                salary_hra=value.hra,
                salary_allowances=value.allowances,
                salary_deductions=value.deductions,
            )
        else:
            raise ValueError(f"Unknown user field: {key!r}")
    return cols


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, column: str, value: Any) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE {column}=%s", (value,))
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._get_one("user_id", int(user_id))

    def get_by_email(self, email: str) -> Optional[User]:
        return self._get_one("email", (email or "").lower())

    def get_by_employee_id(self, employee_id: str) -> Optional[User]:
        return self._get_one("employee_id", employee_id)

    def get_by_ids(self, user_ids: Sequence[int]) -> dict[int, User]:
        ids = sorted({int(i) for i in user_ids})
        if not ids:
            return {}
        placeholders = ",".join(["%s"] * len(ids))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id IN ({placeholders})", tuple(ids))
            return {u.user_id: u for u in map(_row_to_user, fetchall(cur))}

    def create_user(self, new_user: NewUser) -> int:
        cols = _to_columns(
            {
                "employee_id": new_user.employee_id,
                "email": new_user.email,
                "password_hash": new_user.password_hash,
                "first_name": new_user.first_name,
                "last_name": new_user.last_name,
                "role": new_user.role,
                "is_active": new_user.is_active,
                "phone": new_user.phone,
                "avatar": new_user.avatar,
                "department": new_user.department,
                "designation": new_user.designation,
                "date_of_birth": new_user.date_of_birth,
                "date_of_joining": new_user.date_of_joining,
                "address": new_user.address,
                "emergency_contact": new_user.emergency_contact,
                "bank_details": new_user.bank_details,
                "documents": new_user.documents,
                "salary": new_user.salary,
            }
        )
        names = ", ".join(cols)
        placeholders = ",".join(["%s"] * len(cols))
        with unique_violation_as(_DUPLICATE, DuplicateIdentityError):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(f"INSERT INTO users({names}) VALUES({placeholders})", tuple(cols.values()))
                return int(cur.lastrowid)

    def update_fields(self, user_id: int, changes: dict[str, Any]) -> bool:
        cols = _to_columns(changes)
        if not cols:
            return False
        assignments = ", ".join(f"{name}=%s" for name in cols)
        with unique_violation_as(_DUPLICATE, DuplicateIdentityError):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    f"UPDATE users SET {assignments} WHERE user_id=%s",
                    tuple(cols.values()) + (int(user_id),),
                )
                if cur.rowcount > 0:
                    return True
                # MySQL reports 0 affected rows when values are unchanged.
                cur.execute("SELECT 1 AS found FROM users WHERE user_id=%s", (int(user_id),))
                return fetchone(cur) is not None

    def delete_by_id(self, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM users WHERE user_id=%s", (int(user_id),))
            return cur.rowcount > 0

    def find_by_token(self, *, kind: str, token_hash: str, now: datetime) -> Optional[User]:
        token_col, expire_col = _TOKEN_COLUMNS[kind]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM users WHERE {token_col}=%s AND {expire_col} > %s",
                (token_hash, now),
            )
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def search(
        self,
        *,
        search: Optional[str] = None,
        department: Optional[str] = None,
        role: Optional[Role] = None,
        page: int,
        limit: int,
    ) -> Page[User]:
        clauses: list[str] = []
        params: list[object] = []

        if search:
            like = f"%{search.lower()}%"
            clauses.append(
                "(LOWER(first_name) LIKE %s OR LOWER(last_name) LIKE %s OR LOWER(email) LIKE %s OR LOWER(employee_id) LIKE %s)"
            )
            params.extend([like, like, like, like])
        if department:
            clauses.append("department=%s")
            params.append(department)
        if role is not None:
            clauses.append("role=%s")
            params.append(role.value)

        where = where_clause(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM users WHERE {where}", tuple(params))
            total = int(fetchone(cur)["n"])
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM users
                WHERE {where}
                ORDER BY created_at DESC, user_id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(limit), offset_for(page, limit)]),
            )
            items = [_row_to_user(r) for r in fetchall(cur)]
        return Page(items=items, total=total, page=page, limit=limit)

    def list_active(self, *, user_ids: Optional[Sequence[int]] = None) -> Sequence[User]:
        clauses = ["is_active=1"]
        params: list[object] = []
        if user_ids:
            ids = sorted({int(i) for i in user_ids})
            clauses.append(f"user_id IN ({','.join(['%s'] * len(ids))})")
            params.extend(ids)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM users WHERE {where_clause(clauses)} ORDER BY user_id",
                tuple(params),
            )
            return [_row_to_user(r) for r in fetchall(cur)]

    def count(self, *, active_only: bool = False) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM users WHERE {'is_active=1' if active_only else '1=1'}")
            return int(fetchone(cur)["n"])

    def count_by(self, column: str) -> Sequence[dict]:
        if column not in {"department", "role"}:
            raise ValueError(f"Unsupported group column: {column!r}")
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {column} AS _id, COUNT(*) AS count FROM users GROUP BY {column}")
            return [{"_id": r["_id"], "count": int(r["count"])} for r in fetchall(cur)]
