"""Error taxonomy for the events API.

Stores and services raise these; the HTTP layer maps each ErrorCode to a
status and a response envelope.
"""

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """Domain error codes."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    INVALID_EVENT_ID = "INVALID_EVENT_ID"
    STORE_ERROR = "STORE_ERROR"


class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class EventValidationError(DomainError):
    """Raised when input fails one or more field rules."""

    code = ErrorCode.VALIDATION_ERROR

    def __init__(self, errors: list[dict[str, str]]) -> None:
        super().__init__("Validation errors")
        self.errors = errors


class EventNotFoundError(DomainError):
    """Raised when an event is not found."""

    code = ErrorCode.EVENT_NOT_FOUND

    def __init__(self, event_id) -> None:
        super().__init__("Event not found")
        self.event_id = event_id


class InvalidEventIdError(DomainError):
    """Raised when an event ID does not match the store's identifier format."""

    code = ErrorCode.INVALID_EVENT_ID

    def __init__(self, raw_id: str) -> None:
        super().__init__("Invalid event ID")
        self.raw_id = raw_id


class StoreError(DomainError):
    """Raised when the backing store is unreachable or rejects an operation."""

    code = ErrorCode.STORE_ERROR

    def __init__(self, message: str, detail: Optional[str] = None) -> None:
        super().__init__(message)
        self.detail = detail or message
