from __future__ import annotations

from typing import Any, Callable, Mapping

from ..common.datetime_utils import parse_iso_date
from ..common.validators import require_email, require_enum, require_non_empty, require_non_negative
from ..core.enums import Role
from ..core.exceptions import ValidationError
from .model import EmployeeUpdate

EMPLOYEE_SELF_SERVICE_FIELDS = frozenset({"phone", "address", "emergencyContact", "avatar"})

SALARY_KEYS = ("basic", "hra", "allowances", "deductions")


def _optional_text(value: Any, field_name: str) -> Any:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string")
    return value.strip()


def _mapping(value: Any, field_name: str) -> dict:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValidationError(f"{field_name} must be an object")
    return {str(k): v for k, v in value.items()}


def _boolean(value: Any, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    raise ValidationError(f"{field_name} must be true or false")


def _salary(value: Any, field_name: str) -> dict:
    parts = _mapping(value, field_name)
    out = {}
    for key in SALARY_KEYS:
        if key in parts:
            out[key] = require_non_negative(parts[key], f"salary.{key}")
    return out


def _documents(value: Any, field_name: str) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError(f"{field_name} must be a list")
    docs = []
    for item in value:
        doc = _mapping(item, field_name)
        docs.append(
            {
                "name": require_non_empty(doc.get("name", ""), "Document name"),
                "url": require_non_empty(doc.get("url", ""), "Document url"),
                "uploadedAt": doc.get("uploadedAt"),
            }
        )
    return docs


# payload key -> (User field, parser)
_FIELD_PARSERS: dict[str, tuple[str, Callable[[Any, str], Any]]] = {
    "employeeId": ("employee_id", lambda v, f: require_non_empty(v, f)),
    "email": ("email", lambda v, f: require_email(v)),
    "firstName": ("first_name", lambda v, f: require_non_empty(v, f)),
    "lastName": ("last_name", lambda v, f: require_non_empty(v, f)),
    "role": ("role", lambda v, f: require_enum(Role, v, f)),
    "isActive": ("is_active", _boolean),
    "phone": ("phone", _optional_text),
    "avatar": ("avatar", lambda v, f: _optional_text(v, f) or ""),
    "department": ("department", _optional_text),
    "designation": ("designation", _optional_text),
    "dateOfBirth": ("date_of_birth", lambda v, f: parse_iso_date(v) if v else None),
    "dateOfJoining": ("date_of_joining", lambda v, f: parse_iso_date(v) if v else None),
    "address": ("address", _mapping),
    "emergencyContact": ("emergency_contact", _mapping),
    "bankDetails": ("bank_details", _mapping),
    "salary": ("salary", _salary),
    "documents": ("documents", _documents),
}


def allowed_fields_for(role: Role) -> frozenset[str]:
    if role == Role.EMPLOYEE:
        return EMPLOYEE_SELF_SERVICE_FIELDS
    return frozenset(_FIELD_PARSERS)


def narrow_update(role: Role, payload: Mapping[str, Any]) -> EmployeeUpdate:
    """Build an update command from the keys `role` may change.

    Keys outside the role's allow-list are ignored; the payload itself is
    left untouched. `salary` is returned as a partial dict of components.
    """

    allowed = allowed_fields_for(role)
    changes: dict[str, Any] = {}
    for key, value in payload.items():
        if key not in allowed:
            continue
        field_name, parser = _FIELD_PARSERS[key]
        changes[field_name] = parser(value, key)
    return EmployeeUpdate(changes=changes)
