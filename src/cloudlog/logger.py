"""
Per-log batching writer.

A ``Logger`` is bound to one log name. ``log`` translates an entry and
buffers it in the logger's ``Bundler``; a background task ships bundles as
grouped write requests. ``log`` never raises: translation failures, buffer
overflow and write errors all reach the client's ``on_error`` callback.
Use ``log_sync`` when the caller needs the service's answer.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import threading
import time
from typing import TYPE_CHECKING
from urllib.parse import quote

from pydantic import ConfigDict, Field

from .core.bundler import Bundler
from .core.entry import Entry
from .core.errors import CloudLogError, ServiceError, StatusCode
from .core.serialization import encoded_size
from .core.settings import LoggerSettings
from .core.severity import Severity
from .core.stdlib_bridge import CloudLogHandler
from .core.translate import to_wire
from .transport.wire import (
    MonitoredResource,
    WireLogEntry,
    WriteLogEntriesRequest,
    global_resource,
)

if TYPE_CHECKING:
    from .client import Client


def log_name_for(project_id: str, log_id: str) -> str:
    """Fully qualified resource name of a log."""
    return f"projects/{project_id}/logs/{quote(log_id, safe='')}"


class LoggerConfig(LoggerSettings):
    """Immutable per-logger configuration.

    Thresholds default to the client's ``Settings.logger`` values.
    ``resource=None`` sends entries without a request-level resource.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    resource: MonitoredResource | None = Field(default_factory=global_resource)
    common_labels: dict[str, str] = Field(default_factory=dict)


class Logger:
    """Client-side handle for one named log."""

    def __init__(self, client: Client, log_id: str, config: LoggerConfig) -> None:
        self._client = client
        self.log_id = log_id
        self.log_name = log_name_for(client.project_id, log_id)
        self._config = config
        self._bundler: Bundler[WireLogEntry] = Bundler(
            self._write_bundle,
            delay_threshold=config.delay_threshold,
            bundle_count_threshold=config.entry_count_threshold,
            bundle_byte_threshold=config.entry_byte_threshold,
            bundle_byte_limit=config.entry_byte_limit,
            buffered_byte_limit=config.buffered_byte_limit,
            name=f"logger:{log_id}",
        )
        self._std_loggers: dict[Severity, logging.Logger] = {}
        self._std_lock = threading.Lock()

    @property
    def config(self) -> LoggerConfig:
        """A copy of the configuration fixed at creation."""
        return self._config.model_copy(deep=True)

    @property
    def resource(self) -> MonitoredResource | None:
        return self._config.resource

    @property
    def common_labels(self) -> dict[str, str]:
        return dict(self._config.common_labels)

    @property
    def closed(self) -> bool:
        return self._bundler.closed

    def log(self, entry: Entry) -> None:
        """Buffer ``entry`` for a background write. Safe from any thread."""
        try:
            wire = self._prepare(entry)
            self._bundler.add(wire, encoded_size(wire.to_json_dict()))
        except Exception as exc:
            self._reject(exc)

    async def alog(self, entry: Entry, *, timeout: float | None = None) -> None:
        """Like ``log``, but wait up to ``timeout`` seconds for buffer room."""
        try:
            wire = self._prepare(entry)
            await self._bundler.add_wait(
                wire, encoded_size(wire.to_json_dict()), timeout=timeout
            )
        except Exception as exc:
            self._reject(exc)

    async def flush(self) -> None:
        """Write every buffered entry and wait until the writes complete.

        Raises:
            WriterClosedError: the logger has been closed.
        """
        await self._bundler.flush()

    async def close(self) -> None:
        """Flush buffered entries and reject any further ``log`` calls."""
        await self._bundler.close()

    async def log_sync(self, entry: Entry, *, timeout: float | None = None) -> None:
        """Write a single entry immediately, bypassing the buffer.

        Raises:
            UnsupportedPayloadTypeError: the payload cannot be encoded.
            ServiceError: the service rejected the write.
            TimeoutError: ``timeout`` elapsed first.
        """
        wire = self._prepare(entry)
        await asyncio.wait_for(self._send([wire]), timeout=timeout)

    def standard_logger(self, severity: Severity) -> logging.Logger:
        """Return a stdlib logger writing text entries at ``severity``.

        The same instance is returned for repeated calls with one severity.
        """
        with self._std_lock:
            std = self._std_loggers.get(severity)
            if std is None:
                # Standalone logger, kept out of the global logging hierarchy
                std = logging.Logger(f"cloudlog.{self.log_id}.{str(severity).lower()}")
                std.propagate = False
                std.addHandler(
                    CloudLogHandler(self, severity=severity, label_logger_name=False)
                )
                self._std_loggers[severity] = std
            return std

    def _prepare(self, entry: Entry) -> WireLogEntry:
        if entry.timestamp is None:
            entry = dataclasses.replace(entry, timestamp=self._client.now())
        return to_wire(entry)

    def _reject(self, exc: Exception) -> None:
        metrics = self._client.metrics
        if metrics is not None:
            reason = exc.category.value if isinstance(exc, CloudLogError) else "unknown"
            metrics.record_rejected(log=self.log_id, reason=reason)
        self._client.report_error(exc)

    async def _send(self, entries: list[WireLogEntry]) -> None:
        request = WriteLogEntriesRequest(
            log_name=self.log_name,
            resource=self._config.resource,
            labels=dict(self._config.common_labels),
            entries=entries,
        )
        metrics = self._client.metrics
        start = time.perf_counter()
        try:
            await self._client.write(request)
        except Exception as exc:
            if metrics is not None:
                code = exc.code if isinstance(exc, ServiceError) else StatusCode.UNKNOWN
                await metrics.record_write_error(
                    log=self.log_id, code=code.value, entries=len(entries)
                )
            raise
        if metrics is not None:
            await metrics.record_flush(
                log=self.log_id,
                entries=len(entries),
                latency_seconds=time.perf_counter() - start,
            )

    async def _write_bundle(self, entries: list[WireLogEntry]) -> None:
        try:
            await self._send(entries)
        except Exception as exc:
            self._client.report_error(exc)


__all__ = ["Logger", "LoggerConfig", "log_name_for"]
