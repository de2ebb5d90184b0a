"""Domain error taxonomy shared by the store, the service and the HTTP layer."""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel


class ErrorKind(str, Enum):
    BAD_INPUT = "bad-input"
    NOT_FOUND = "not-found"
    INTERNAL = "internal"


class FieldError(BaseModel):
    """A single violated constraint, reported against the offending field."""
    field: str
    message: str


class ExpenseTrackerError(Exception):
    """
    Base class for every error the application raises on purpose.

    Each subclass fixes its kind and HTTP status so the error handlers never
    have to inspect messages or exception names.
    """
    kind: ErrorKind = ErrorKind.INTERNAL
    status_code: int = 500

    def __init__(self, message: str, errors: Optional[List[FieldError]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []


class BadInputError(ExpenseTrackerError):
    kind = ErrorKind.BAD_INPUT
    status_code = 400


class ValidationFailed(BadInputError):
    """Raised when a request source or a stored document violates the schema."""

    def __init__(self, errors: List[FieldError], source: str = "body"):
        super().__init__("Validation error", errors)
        self.source = source


class ConflictError(BadInputError):
    status_code = 409


class NotFoundError(ExpenseTrackerError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404


class InternalError(ExpenseTrackerError):
    kind = ErrorKind.INTERNAL
    status_code = 500
