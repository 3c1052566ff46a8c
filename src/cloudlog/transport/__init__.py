from __future__ import annotations

from typing import Protocol, runtime_checkable

from .wire import (
    ListLogEntriesRequest,
    ListLogEntriesResponse,
    MonitoredResource,
    WireHttpRequest,
    WireLogEntry,
    WriteLogEntriesRequest,
    global_resource,
)


@runtime_checkable
class LoggingTransport(Protocol):
    """Boundary to the remote logging service.

    Implementations raise ``ServiceError`` for anything the service (or
    the network on the way to it) rejects; they never retry on their own.
    """

    async def write_log_entries(self, request: WriteLogEntriesRequest) -> None:
        """Write a grouped list of entries sharing request-level defaults."""
        ...

    async def list_log_entries(
        self, request: ListLogEntriesRequest
    ) -> ListLogEntriesResponse:
        """Return one page of entries and the token of the next page."""
        ...

    async def delete_log(self, log_name: str) -> None:
        """Delete every entry stored under ``log_name``."""
        ...

    async def close(self) -> None:  # Optional lifecycle hook
        ...


__all__ = [
    "ListLogEntriesRequest",
    "ListLogEntriesResponse",
    "LoggingTransport",
    "MonitoredResource",
    "WireHttpRequest",
    "WireLogEntry",
    "WriteLogEntriesRequest",
    "global_resource",
]
