"""
Async-first client metrics collection.

Implements minimal Prometheus-compatible counters and a histogram for the
write path: entries written, entries dropped, write errors and flush
latency.

Design goals:
- Zero global state; instances are client-scoped
- Safe no-op exporters when metrics are disabled, while still tracking
  in-memory counters for tests
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any

from prometheus_client import CollectorRegistry, Counter, Histogram


@dataclass
class WriterMetrics:
    """Captured runtime metrics for quick assertions in tests."""

    entries_written: int = 0
    entries_dropped: int = 0
    write_errors: int = 0
    flushes: int = 0


class MetricsCollector:
    """Client-scoped async metrics collector."""

    def __init__(self, *, enabled: bool = False) -> None:
        self._enabled = bool(enabled)
        # State is updated from the event loop and from caller threads
        self._lock = threading.Lock()
        self._state = WriterMetrics()

        self._c_written: Any | None = None
        self._c_dropped: Any | None = None
        self._c_errors: Any | None = None
        self._h_flush_latency: Any | None = None
        self._registry: CollectorRegistry | None = None

        if self._enabled:
            # Isolated registry to avoid global duplication in tests
            self._registry = CollectorRegistry()
            self._c_written = Counter(
                "cloudlog_entries_written_total",
                "Total number of entries accepted by the logging service",
                ["log"],
                registry=self._registry,
            )
            self._c_dropped = Counter(
                "cloudlog_entries_dropped_total",
                "Total number of entries that were never delivered",
                ["log", "reason"],
                registry=self._registry,
            )
            self._c_errors = Counter(
                "cloudlog_write_errors_total",
                "Total number of failed write requests",
                ["log", "code"],
                registry=self._registry,
            )
            self._h_flush_latency = Histogram(
                "cloudlog_flush_seconds",
                "Latency of a single grouped write request",
                buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
                registry=self._registry,
            )

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    @property
    def registry(self) -> CollectorRegistry | None:
        """Expose the isolated Prometheus registry when enabled."""
        return self._registry

    async def record_flush(
        self, *, log: str, entries: int, latency_seconds: float
    ) -> None:
        with self._lock:
            self._state.entries_written += entries
            self._state.flushes += 1
        if not self._enabled:
            return
        if self._c_written is not None:
            self._c_written.labels(log=log).inc(entries)
        if self._h_flush_latency is not None:
            self._h_flush_latency.observe(latency_seconds)

    async def record_write_error(self, *, log: str, code: str, entries: int) -> None:
        with self._lock:
            self._state.write_errors += 1
            self._state.entries_dropped += entries
        if not self._enabled:
            return
        if self._c_errors is not None:
            self._c_errors.labels(log=log, code=code).inc()
        if self._c_dropped is not None:
            self._c_dropped.labels(log=log, reason="write_error").inc(entries)

    def record_rejected(self, *, log: str, reason: str) -> None:
        with self._lock:
            self._state.entries_dropped += 1
        if self._enabled and self._c_dropped is not None:
            self._c_dropped.labels(log=log, reason=reason).inc()

    async def snapshot(self) -> WriterMetrics:
        with self._lock:
            return WriterMetrics(
                entries_written=self._state.entries_written,
                entries_dropped=self._state.entries_dropped,
                write_errors=self._state.write_errors,
                flushes=self._state.flushes,
            )
