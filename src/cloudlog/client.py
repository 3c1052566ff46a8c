"""
Client for the remote structured-logging service.

A ``Client`` is bound to one project. It creates ``Logger`` writers,
lists entries through a lazily paginated ``EntryIterator``, checks
connectivity with ``ping`` and deletes logs. Background write failures of
every logger created by the client are delivered to its ``on_error``
callback.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Protocol

from .core import diagnostics
from .core.entry import Entry
from .core.retry import AsyncRetrier, RetryCallable, RetryConfig
from .core.serialization import format_timestamp
from .core.settings import Settings
from .core.translate import from_wire
from .logger import Logger, LoggerConfig, log_name_for
from .metrics.metrics import MetricsCollector
from .transport import (
    ListLogEntriesRequest,
    LoggingTransport,
    WireLogEntry,
    WriteLogEntriesRequest,
    global_resource,
)
from .transport.http import HttpTransport

_LOGGER = logging.getLogger("cloudlog.client")

ErrorCallback = Callable[[BaseException], None]

PING_LOG_ID = "ping"
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EntriesOption(Protocol):
    """Modifier applied to a list request; later options win."""

    def apply(self, request: ListLogEntriesRequest) -> ListLogEntriesRequest: ...


@dataclass(frozen=True)
class Filter:
    """Restrict results with a service filter expression."""

    expression: str

    def apply(self, request: ListLogEntriesRequest) -> ListLogEntriesRequest:
        return request.model_copy(update={"filter": self.expression})


@dataclass(frozen=True)
class OrderBy:
    """Sort results, e.g. ``OrderBy("timestamp desc")``."""

    order: str

    def apply(self, request: ListLogEntriesRequest) -> ListLogEntriesRequest:
        return request.model_copy(update={"order_by": self.order})


@dataclass(frozen=True, init=False)
class ProjectIds:
    """Search these projects instead of the client's own."""

    project_ids: tuple[str, ...]

    def __init__(self, *project_ids: str) -> None:
        object.__setattr__(self, "project_ids", tuple(project_ids))

    def apply(self, request: ListLogEntriesRequest) -> ListLogEntriesRequest:
        return request.model_copy(update={"project_ids": list(self.project_ids)})


@dataclass(frozen=True)
class PageSize:
    """Ask the service for at most ``size`` entries per page."""

    size: int

    def apply(self, request: ListLogEntriesRequest) -> ListLogEntriesRequest:
        if self.size < 0:
            raise ValueError("page size must be >= 0")
        return request.model_copy(update={"page_size": self.size})


def list_log_entries_request(
    project_id: str, options: Iterable[EntriesOption] = ()
) -> ListLogEntriesRequest:
    """Build the list request for ``project_id`` with ``options`` applied in order."""
    request = ListLogEntriesRequest(project_ids=[project_id])
    for option in options:
        request = option.apply(request)
    return request


class EntryIterator:
    """Async iterator over matching entries, fetching pages on demand.

    ``next_page_token`` holds the token of the page after the one being
    consumed ("" once the last page has been fetched). The first failure,
    whether from the service or from translating an entry, ends the
    iteration after being raised. Iterators are not restartable.
    """

    def __init__(
        self, transport: LoggingTransport, request: ListLogEntriesRequest
    ) -> None:
        self._transport = transport
        self._request = request
        self._buffer: deque[WireLogEntry] = deque()
        self.next_page_token: str = request.page_token
        self._fetched = False
        self._done = False

    def __aiter__(self) -> EntryIterator:
        return self

    async def __anext__(self) -> Entry:
        while not self._buffer:
            if self._done or (self._fetched and not self.next_page_token):
                self._done = True
                raise StopAsyncIteration
            await self._fetch_page()
        wire = self._buffer.popleft()
        try:
            return from_wire(wire)
        except Exception:
            self._abort()
            raise

    async def _fetch_page(self) -> None:
        request = self._request.model_copy(update={"page_token": self.next_page_token})
        try:
            response = await self._transport.list_log_entries(request)
        except Exception:
            self._abort()
            raise
        self._fetched = True
        self.next_page_token = response.next_page_token
        self._buffer.extend(response.entries)

    def _abort(self) -> None:
        self._done = True
        self._buffer.clear()


class Client:
    """Entry point for writing and reading logs of one project.

    Args:
        project_id: Project that owns the logs.
        transport: Service boundary; defaults to ``HttpTransport`` built
            from ``settings.core``.
        settings: Configuration; defaults to ``Settings()`` (environment).
        on_error: Receives every error of the asynchronous write path. It
            may be called from any thread and must not block. Without it
            errors are logged on the ``cloudlog.client`` logger.
        retry: ``RetryConfig`` for the built-in retrier or any
            ``RetryCallable``.
        metrics: Collector for write-path metrics; created from
            ``settings.core.enable_metrics`` when omitted.
        clock: Source of timestamps for entries logged without one.
    """

    def __init__(
        self,
        project_id: str,
        *,
        transport: LoggingTransport | None = None,
        settings: Settings | None = None,
        on_error: ErrorCallback | None = None,
        retry: RetryConfig | RetryCallable | None = None,
        metrics: MetricsCollector | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if not project_id:
            raise ValueError("project_id must not be empty")
        self.project_id = project_id
        self._settings = settings or Settings()
        if transport is None:
            transport = HttpTransport(
                endpoint=self._settings.core.endpoint,
                timeout_seconds=self._settings.core.request_timeout_seconds,
            )
        self._transport = transport
        self.on_error = on_error
        if retry is None or isinstance(retry, RetryConfig):
            self._retry: RetryCallable = AsyncRetrier(retry)
        else:
            self._retry = retry
        if metrics is None and self._settings.core.enable_metrics:
            metrics = MetricsCollector(enabled=True)
        self._metrics = metrics
        self._clock = clock or _utcnow
        self._loggers: list[Logger] = []
        self._closed = False

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def transport(self) -> LoggingTransport:
        return self._transport

    @property
    def metrics(self) -> MetricsCollector | None:
        return self._metrics

    @property
    def closed(self) -> bool:
        return self._closed

    def now(self) -> datetime:
        return self._clock()

    def logger(self, log_id: str, **options: Any) -> Logger:
        """Create a writer for ``log_id``.

        ``options`` override ``LoggerConfig`` fields; thresholds not given
        fall back to ``settings.logger``.
        """
        if not log_id:
            raise ValueError("log_id must not be empty")
        config = LoggerConfig(**{**self._settings.logger.model_dump(), **options})
        logger = Logger(self, log_id, config)
        self._loggers.append(logger)
        return logger

    def entries(self, *options: EntriesOption) -> EntryIterator:
        """Iterate over entries of the client's project matching ``options``."""
        return EntryIterator(
            self._transport, list_log_entries_request(self.project_id, options)
        )

    async def ping(self, *, timeout: float | None = None) -> None:
        """Write a fixed entry to the ``ping`` log to check connectivity.

        The entry has a constant timestamp and insert id, so repeated pings
        are deduplicated by the service.
        """
        request = WriteLogEntriesRequest(
            log_name=log_name_for(self.project_id, PING_LOG_ID),
            resource=global_resource(),
            entries=[
                WireLogEntry(
                    text_payload="ping",
                    timestamp=format_timestamp(_EPOCH),
                    insert_id="ping",
                )
            ],
        )
        await asyncio.wait_for(self._transport.write_log_entries(request), timeout)

    async def delete_log(self, log_id: str, *, timeout: float | None = None) -> None:
        """Delete every entry of ``log_id``."""
        await asyncio.wait_for(
            self._transport.delete_log(log_name_for(self.project_id, log_id)), timeout
        )

    async def write(self, request: WriteLogEntriesRequest) -> None:
        """Send one grouped write through the retry strategy."""
        await self._retry(lambda: self._transport.write_log_entries(request))

    def report_error(self, exc: BaseException) -> None:
        """Deliver a background error to ``on_error``."""
        callback = self.on_error
        if callback is None:
            _LOGGER.error("cloudlog: %s", exc)
            return
        try:
            callback(exc)
        except Exception as cb_exc:
            diagnostics.warn(
                "client",
                "on_error callback raised",
                error_type=type(cb_exc).__name__,
                error=str(cb_exc),
            )

    async def close(self) -> None:
        """Flush and close every logger, then release the transport."""
        if self._closed:
            return
        self._closed = True
        loggers, self._loggers = self._loggers, []
        for logger in loggers:
            await logger.close()
        await self._transport.close()

    async def __aenter__(self) -> Client:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


__all__ = [
    "Client",
    "EntriesOption",
    "EntryIterator",
    "Filter",
    "OrderBy",
    "PageSize",
    "ProjectIds",
    "list_log_entries_request",
]
