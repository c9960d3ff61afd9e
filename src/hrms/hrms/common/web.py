from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Callable, Optional

from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException

from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    TokenInvalidOrExpiredError,
    ValidationError,
)
from .pagination import Page, normalize_paging

logger = logging.getLogger(__name__)

# Most specific first; DuplicateIdentityError/AccountDisabledError inherit their parent's status.
_STATUS_BY_ERROR: tuple[tuple[type[DomainError], int], ...] = (
    (ValidationError, 400),
    (ConflictError, 400),
    (TokenInvalidOrExpiredError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
)


def status_for(exc: DomainError) -> int:
    for exc_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, exc_type):
            return status
    return 400


_MISSING = object()


def ok(data: Any = _MISSING, *, message: Optional[str] = None, status: int = 200, **extra):
    body: dict[str, Any] = {"success": True}
    if message is not None:
        body["message"] = message
    if data is not _MISSING:
        body["data"] = data
    body.update(extra)
    return jsonify(body), status


def ok_page(page: Page, items: list, **extra):
    return ok(items, pagination=page.meta(), **extra)


def fail(message: str, status: int, **extra):
    body: dict[str, Any] = {"success": False, "message": message}
    body.update(extra)
    return jsonify(body), status


def json_body() -> dict:
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


def paging_args(*, default_limit: int) -> tuple[int, int]:
    return normalize_paging(request.args.get("page"), request.args.get("limit"), default_limit=default_limit)


def bearer_token() -> Optional[str]:
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        return None
    return auth.split(" ", 1)[1].strip() or None


class AuthGuards:
    """Route decorators: resolve the bearer token to `g.identity` and check roles."""

    def __init__(self, identify: Callable):
        self._identify = identify

    def login_required(self, view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            token = bearer_token()
            if not token:
                raise AuthenticationError("Not authorized to access this route")
            g.identity = self._identify(token)
            return view(*args, **kwargs)

        return wrapper

    def roles_required(self, *roles: Role):
        allowed = frozenset(roles)

        def decorator(view):
            @wraps(view)
            def wrapper(*args, **kwargs):
                if g.identity.role not in allowed:
                    raise AuthorizationError(
                        f"User role '{g.identity.role.value}' is not authorized to access this route"
                    )
                return view(*args, **kwargs)

            return self.login_required(wrapper)

        return decorator


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def _domain_error(exc: DomainError):
        return fail(str(exc) or exc.__class__.__name__, status_for(exc))

    @app.errorhandler(HTTPException)
    def _http_error(exc: HTTPException):
        return fail(exc.description or exc.name, exc.code or 500)

    @app.errorhandler(Exception)
    def _unexpected(exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        message = str(exc) if app.config.get("DEBUG") else "Server error"
        return fail(message, 500)
