"""Domain errors raised by the user management service."""

from typing import Dict, Optional


class UserManagementError(Exception):
    """Base class for every error the service reports to a client."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(UserManagementError):
    """Structural validation failure, optionally with per-field details."""

    status_code = 400
    default_message = "Validation failed"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[Dict[str, str]] = None,
    ):
        super().__init__(message)
        self.details = details or None


class InvalidDate(UserManagementError):
    status_code = 400
    default_message = "invalid date of birth format, use YYYY-MM-DD"


class TooYoung(UserManagementError):
    status_code = 400
    default_message = "user must be older than 18 years"


class DuplicateEmail(UserManagementError):
    status_code = 400
    default_message = "email already exists"


class NotFound(UserManagementError):
    status_code = 404
    default_message = "User not found"


class StorageError(UserManagementError):
    """Persistence failure; the message is safe to show to clients."""

    status_code = 500
    default_message = "Database operation failed"


class InternalError(UserManagementError):
    status_code = 500
    default_message = "Internal server error"


__all__ = [
    "DuplicateEmail",
    "InternalError",
    "InvalidDate",
    "NotFound",
    "StorageError",
    "TooYoung",
    "UserManagementError",
    "ValidationError",
]
