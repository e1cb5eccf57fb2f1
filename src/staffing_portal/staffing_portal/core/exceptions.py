from __future__ import annotations

from .enums import ErrorKind


class DomainError(Exception):
    """Base exception for business rule violations.

    Every domain error carries an ``ErrorKind`` so the service boundary can turn
    it into a typed failure result.
    """

    default_kind = ErrorKind.INVALID_STATE_TRANSITION

    def __init__(self, message: str, kind: ErrorKind | None = None):
        super().__init__(message)
        self.message = message
        self.kind = kind or self.default_kind


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    default_kind = ErrorKind.FORBIDDEN


class NotFoundError(DomainError):
    """Raised when the record an operation targets does not exist (or is no longer active)."""

    default_kind = ErrorKind.NO_ACTIVE_SESSION


class ConflictError(DomainError):
    """Raised when the current persisted state forbids the operation."""

    default_kind = ErrorKind.ACTIVE_SESSION_EXISTS


class AuthenticationError(DomainError):
    """Raised when login fails."""

    default_kind = ErrorKind.FORBIDDEN
