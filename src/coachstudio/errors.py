"""Domain errors raised by the scheduling engine.

Each error carries the HTTP status it maps to, so the API layer can translate
any of them with a single exception handler.
"""

from typing import Any


class SchedulingError(Exception):
    """Base class for all scheduling errors."""

    status_code = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.code = self.__class__.__name__
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "code": self.code, "details": self.details}


class ValidationError(SchedulingError):
    """Malformed input, e.g. an inverted time range (end <= start)."""

    status_code = 422


class ConflictError(SchedulingError):
    """The requested window overlaps an existing session."""

    status_code = 409


class NotFoundError(SchedulingError):
    """A referenced coach, room, session or recurring booking is absent."""

    status_code = 404


class UnauthorizedError(SchedulingError):
    """A job trigger was called without a valid credential."""

    status_code = 401
