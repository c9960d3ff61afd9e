class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class ConflictError(DomainError):
    """Raised when an operation clashes with the current state of a record."""


class DuplicateIdentityError(ConflictError):
    """Raised when an email or employee id is already registered."""


class AuthenticationError(DomainError):
    """Raised when login credentials or a session token are invalid."""


class AccountDisabledError(AuthenticationError):
    """Raised when a deactivated account tries to authenticate."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when an id does not resolve to a record visible to the caller."""


class TokenInvalidOrExpiredError(DomainError):
    """Raised when a reset or verification token does not match or has expired."""
