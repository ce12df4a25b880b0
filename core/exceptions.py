"""
core/exceptions.py -- Application error taxonomy.

Stores and the token service raise these; api/main.py owns the exception
handlers that turn them into JSON responses. Keeping HTTP status codes on the
exception (rather than raising HTTPException from the data layer) lets the
stores stay free of any FastAPI import.

Layer rule: core/ is the kernel. No imports from api/, auth/, or employees/.
"""

from __future__ import annotations


class AppError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = 500
    default_message: str = "server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"message": self.message, "status": self.status_code}


class ValidationError(AppError):
    """Malformed, missing, or conflicting input.

    errors maps a field name to the list of messages for that field, e.g.
    {"email": ["The email has already been taken."]}.
    """

    status_code = 400
    default_message = "validation error"

    def __init__(self, errors: dict[str, list[str]], message: str | None = None) -> None:
        super().__init__(message)
        self.errors = errors

    def to_dict(self) -> dict:
        return {"message": self.message, "errors": self.errors, "status": self.status_code}


class Unauthenticated(AppError):
    """Missing or invalid bearer token, or bad credentials."""

    status_code = 401
    default_message = "Unauthenticated."


class NotFound(AppError):
    status_code = 404
    default_message = "not found"


class InternalError(AppError):
    """Persistence failure or any other unexpected server-side error."""

    status_code = 500
    default_message = "server error"
