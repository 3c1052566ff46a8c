"""
Error hierarchy for cloudlog.

Local errors (translation, buffering, lifecycle) and remote errors
(``ServiceError``) share a common base so callers can catch
``CloudLogError`` at API boundaries and still dispatch on category.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Broad error categories used for diagnostics and metrics labels."""

    VALIDATION = "validation"
    SERIALIZATION = "serialization"
    BACKPRESSURE = "backpressure"
    LIFECYCLE = "lifecycle"
    NETWORK = "network"
    SERVICE = "service"


class StatusCode(str, Enum):
    """Canonical status codes returned by the remote service."""

    OK = "OK"
    CANCELLED = "CANCELLED"
    UNKNOWN = "UNKNOWN"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    DEADLINE_EXCEEDED = "DEADLINE_EXCEEDED"
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    RESOURCE_EXHAUSTED = "RESOURCE_EXHAUSTED"
    FAILED_PRECONDITION = "FAILED_PRECONDITION"
    ABORTED = "ABORTED"
    OUT_OF_RANGE = "OUT_OF_RANGE"
    UNIMPLEMENTED = "UNIMPLEMENTED"
    INTERNAL = "INTERNAL"
    UNAVAILABLE = "UNAVAILABLE"
    DATA_LOSS = "DATA_LOSS"
    UNAUTHENTICATED = "UNAUTHENTICATED"


# Codes worth retrying for idempotent-enough writes
RETRYABLE_CODES: frozenset[StatusCode] = frozenset(
    {
        StatusCode.DEADLINE_EXCEEDED,
        StatusCode.INTERNAL,
        StatusCode.UNAVAILABLE,
        StatusCode.RESOURCE_EXHAUSTED,
    }
)


class CloudLogError(Exception):
    """Base error for cloudlog with a category and structured context."""

    category: ErrorCategory = ErrorCategory.VALIDATION

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        cause: BaseException | None = None,
        **context: Any,
    ) -> None:
        super().__init__(message)
        self.message = message
        if category is not None:
            self.category = category
        self.context: dict[str, Any] = dict(context)
        if cause is not None:
            self.__cause__ = cause

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly representation for diagnostics."""
        data: dict[str, Any] = {
            "error.type": type(self).__name__,
            "error.message": self.message,
            "error.category": self.category.value,
        }
        if self.context:
            data["error.context"] = dict(self.context)
        if self.__cause__ is not None:
            data["error.cause"] = repr(self.__cause__)
        return data


class UnsupportedPayloadTypeError(CloudLogError, TypeError):
    """Raised when an entry payload is neither text nor a structured mapping."""

    category = ErrorCategory.SERIALIZATION


class InvalidEntryError(CloudLogError, ValueError):
    """Raised when entry fields do not fit the wire schema."""

    category = ErrorCategory.VALIDATION


class MalformedURLError(CloudLogError, ValueError):
    """Raised when a wire HTTP request carries an unparseable URL."""

    category = ErrorCategory.VALIDATION


class MalformedTimestampError(CloudLogError, ValueError):
    """Raised when a wire timestamp is not a valid RFC3339 instant."""

    category = ErrorCategory.VALIDATION


class BufferOverflowError(CloudLogError):
    """Raised when buffering an entry would exceed the buffered byte limit."""

    category = ErrorCategory.BACKPRESSURE


class OversizedEntryError(CloudLogError):
    """Raised when a single entry exceeds the per-entry byte limit."""

    category = ErrorCategory.BACKPRESSURE


class WriterClosedError(CloudLogError):
    """Raised when writing to a logger or bundler after close."""

    category = ErrorCategory.LIFECYCLE


class ServiceError(CloudLogError):
    """Error reported by the remote logging service or its transport."""

    category = ErrorCategory.SERVICE

    def __init__(
        self,
        message: str,
        *,
        code: StatusCode = StatusCode.UNKNOWN,
        http_status: int | None = None,
        cause: BaseException | None = None,
        **context: Any,
    ) -> None:
        super().__init__(message, cause=cause, **context)
        self.code = code
        self.http_status = http_status
        if code in (StatusCode.DEADLINE_EXCEEDED, StatusCode.UNAVAILABLE):
            self.category = ErrorCategory.NETWORK

    @property
    def retryable(self) -> bool:
        return self.code in RETRYABLE_CODES

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["error.code"] = self.code.value
        if self.http_status is not None:
            data["error.http_status"] = self.http_status
        return data


__all__ = [
    "BufferOverflowError",
    "CloudLogError",
    "ErrorCategory",
    "InvalidEntryError",
    "MalformedTimestampError",
    "MalformedURLError",
    "OversizedEntryError",
    "RETRYABLE_CODES",
    "ServiceError",
    "StatusCode",
    "UnsupportedPayloadTypeError",
    "WriterClosedError",
]
