"""
Application error taxonomy.

Services raise these; the exception handlers in api/main.py turn them into the
JSON envelope with the matching HTTP status.
"""

from typing import Optional


class AppError(Exception):
    """Base class for errors that map to an HTTP response."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    """Missing or malformed input."""

    status_code = 400
    default_message = "Invalid request"


class UnauthorizedError(AppError):
    """Missing, invalid or expired credentials."""

    status_code = 401
    default_message = "Not authenticated"


class ForbiddenError(AppError):
    """Authenticated, but the role does not allow the action."""

    status_code = 403
    default_message = "Access denied"


class NotFoundError(AppError):
    """A referenced entity does not exist."""

    status_code = 404
    default_message = "Not found"


class ConflictError(AppError):
    """Duplicate unique key or a disallowed state transition."""

    status_code = 409
    default_message = "Conflict"


class InternalError(AppError):
    """Unexpected backing-store or I/O failure."""

    status_code = 500
