"""Application error taxonomy and the JSON error shape.

Every failure a handler can report maps to one AppError subclass with
a fixed HTTP status. Handlers raise; the exception handlers registered
in main.create_app() turn them into {"error": message} responses.
"""

from typing import Optional


class AppError(Exception):
    """Base class for errors that are safe to show to API clients."""

    status_code: int = 500
    default_message: str = "Internal server error"
    headers: Optional[dict[str, str]] = None

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.message}


class ValidationError(AppError):
    """Malformed or out-of-range input."""

    status_code = 400
    default_message = "Invalid input"


class DuplicateEmail(AppError):
    status_code = 400
    default_message = "User already exists with this email"


class Unauthenticated(AppError):
    """Missing, invalid, expired or revoked session token."""

    status_code = 401
    default_message = "Token is not valid"
    headers = {"WWW-Authenticate": "Bearer"}


class InvalidCredentials(AppError):
    """Login failure. Same message whether the email or the password was wrong."""

    status_code = 401
    default_message = "Invalid credentials"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class InternalError(AppError):
    status_code = 500
    default_message = "Internal server error"
