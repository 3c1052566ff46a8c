"""
Public entrypoints for cloudlog, an async client for a remote
structured-logging service.

```python
from cloudlog import Client, Entry, Filter, Severity

async with Client("my-project") as client:
    logger = client.logger("app")
    logger.log(Entry(payload={"event": "started"}, severity=Severity.INFO))
    await logger.flush()

    async for entry in client.entries(Filter('severity >= ERROR')):
        print(entry.timestamp, entry.payload)
```
"""

from __future__ import annotations

from ._version import __version__
from .client import (
    Client,
    EntriesOption,
    EntryIterator,
    Filter,
    OrderBy,
    PageSize,
    ProjectIds,
    list_log_entries_request,
)
from .core.entry import Entry, HTTPRequest
from .core.errors import (
    BufferOverflowError,
    CloudLogError,
    ErrorCategory,
    InvalidEntryError,
    MalformedTimestampError,
    MalformedURLError,
    OversizedEntryError,
    ServiceError,
    StatusCode,
    UnsupportedPayloadTypeError,
    WriterClosedError,
)
from .core.retry import AsyncRetrier, RetryCallable, RetryConfig
from .core.serialization import json_field
from .core.settings import Settings
from .core.severity import Severity, parse_severity
from .core.stdlib_bridge import CloudLogHandler, enable_stdlib_bridge
from .core.translate import (
    from_wire,
    http_request_from_wire,
    http_request_to_wire,
    to_wire,
)
from .logger import Logger, LoggerConfig
from .transport import LoggingTransport, MonitoredResource

__all__ = [
    "AsyncRetrier",
    "BufferOverflowError",
    "Client",
    "CloudLogError",
    "CloudLogHandler",
    "EntriesOption",
    "Entry",
    "EntryIterator",
    "ErrorCategory",
    "Filter",
    "HTTPRequest",
    "InvalidEntryError",
    "Logger",
    "LoggerConfig",
    "LoggingTransport",
    "MalformedTimestampError",
    "MalformedURLError",
    "MonitoredResource",
    "OrderBy",
    "OversizedEntryError",
    "PageSize",
    "ProjectIds",
    "RetryCallable",
    "RetryConfig",
    "ServiceError",
    "Settings",
    "Severity",
    "StatusCode",
    "UnsupportedPayloadTypeError",
    "WriterClosedError",
    "__version__",
    "VERSION",
    "enable_stdlib_bridge",
    "from_wire",
    "http_request_from_wire",
    "http_request_to_wire",
    "json_field",
    "list_log_entries_request",
    "parse_severity",
    "to_wire",
]

VERSION = __version__
