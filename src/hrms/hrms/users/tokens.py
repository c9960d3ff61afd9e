from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

from ..core.constants import DEFAULT_SESSION_DAYS
from ..core.enums import Role
from ..core.exceptions import AuthenticationError


def generate_random_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class Identity:
    """The authenticated actor carried by a bearer token."""

    user_id: int
    role: Role

    @property
    def is_privileged(self) -> bool:
        return self.role in (Role.HR, Role.ADMIN)


class SessionTokenIssuer:
    """HS256 JWT bearer tokens carrying user id and role."""

    def __init__(self, secret: str, *, expire_days: int = DEFAULT_SESSION_DAYS, algorithm: str = "HS256"):
        self._secret = secret
        self._expire = timedelta(days=int(expire_days))
        self._algorithm = algorithm

    def issue(self, user_id: int, role: Role) -> str:
        payload = {
            "sub": str(user_id),
            "role": role.value,
            "exp": datetime.now(timezone.utc) + self._expire,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def decode(self, token: str) -> Identity:
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token expired")
        except jwt.InvalidTokenError:
            raise AuthenticationError("Invalid token")

        try:
            return Identity(user_id=int(payload["sub"]), role=Role(payload["role"]))
        except (KeyError, ValueError):
            raise AuthenticationError("Invalid token")
