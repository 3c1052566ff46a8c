"""
Native log entry types.

``Entry`` is what callers build and what queries return. ``HTTPRequest``
describes the HTTP transaction an entry is about and only ever appears
nested under an entry.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import httpx

from ..transport.wire import MonitoredResource
from .severity import Severity


@dataclass
class HTTPRequest:
    """HTTP transaction associated with a log entry."""

    method: str = ""
    url: httpx.URL | None = None
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    request_size: int = 0
    status: int = 0
    response_size: int = 0
    remote_ip: str = ""
    cache_hit: bool = False
    cache_validated_with_origin_server: bool = False

    @classmethod
    def from_httpx(cls, request: httpx.Request, **fields: Any) -> HTTPRequest:
        """Build from an ``httpx.Request``; extra fields fill sizes and status."""
        return cls(
            method=request.method,
            url=request.url,
            headers=httpx.Headers(request.headers),
            **fields,
        )


@dataclass
class Entry:
    """A single structured log record.

    ``payload`` is either a ``str`` (sent as a text payload) or an object
    that encodes to a string-keyed mapping: a ``dict``, a dataclass instance
    or a pydantic model. Entries read back from the service carry structured
    payloads as plain ``dict`` values.

    Unset ``timestamp`` is filled with the submission time by ``Logger``;
    ``insert_id`` and ``log_name`` are normally assigned by the service or
    the logger.
    """

    payload: Any = None
    timestamp: datetime | None = None
    severity: Severity = Severity.DEFAULT
    labels: dict[str, str] = field(default_factory=dict)
    insert_id: str = ""
    http_request: HTTPRequest | None = None
    log_name: str = ""
    resource: MonitoredResource | None = None


__all__ = ["Entry", "HTTPRequest"]
