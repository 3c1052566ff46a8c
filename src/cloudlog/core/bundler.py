"""
Size- and count-bounded batch buffer with a background flush worker.

Callers on any thread ``add`` items under a short-lived lock. Items
accumulate in an open bundle that is handed off once it reaches the count
or byte threshold, once its delay elapses, or on ``flush``/``close``.
Handed-off bundles are processed strictly in creation order by a single
asyncio task, so one bundler never reorders its stream.

Byte accounting covers every item that has been added but whose bundle has
not yet been handled. When that total would exceed ``buffered_byte_limit``
the item is rejected (``add``) or the caller waits for room
(``add_wait``).
"""

from __future__ import annotations

import asyncio
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Generic, TypeVar

from . import diagnostics
from .errors import BufferOverflowError, OversizedEntryError, WriterClosedError

T = TypeVar("T")


@dataclass
class _Bundle(Generic[T]):
    deadline: float
    items: list[T] = field(default_factory=list)
    size: int = 0


class Bundler(Generic[T]):
    """Group items into bundles and hand them to an async handler.

    Usage:
        async def send(items: list[bytes]) -> None: ...

        bundler = Bundler(
            send,
            delay_threshold=1.0,
            bundle_count_threshold=10,
            bundle_byte_threshold=1 << 20,
            buffered_byte_limit=1 << 30,
        )
        bundler.add(b"payload", size=7)
        await bundler.flush()
    """

    def __init__(
        self,
        handler: Callable[[list[T]], Awaitable[None]],
        *,
        delay_threshold: float,
        bundle_count_threshold: int,
        bundle_byte_threshold: int,
        bundle_byte_limit: int = 0,
        buffered_byte_limit: int,
        name: str = "bundler",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if delay_threshold <= 0:
            raise ValueError("delay_threshold must be > 0")
        if bundle_count_threshold <= 0:
            raise ValueError("bundle_count_threshold must be > 0")
        if bundle_byte_threshold <= 0:
            raise ValueError("bundle_byte_threshold must be > 0")
        if bundle_byte_limit < 0:
            raise ValueError("bundle_byte_limit must be >= 0")
        if buffered_byte_limit <= 0:
            raise ValueError("buffered_byte_limit must be > 0")
        self.delay_threshold = delay_threshold
        self.bundle_count_threshold = bundle_count_threshold
        self.bundle_byte_threshold = bundle_byte_threshold
        self.bundle_byte_limit = bundle_byte_limit
        self.buffered_byte_limit = buffered_byte_limit
        self.name = name
        self._handler = handler
        self._clock = clock

        # Guards everything below up to the asyncio primitives
        self._lock = threading.Lock()
        self._current: _Bundle[T] | None = None
        self._ready: deque[_Bundle[T]] = deque()
        self._buffered_bytes = 0
        self._closed = False

        # Owning loop; off-loop callers schedule the worker onto it
        self._loop: asyncio.AbstractEventLoop | None
        try:
            self._loop = asyncio.get_running_loop()
        except RuntimeError:
            self._loop = None
        self._worker: asyncio.Task[None] | None = None
        self._wakeup = asyncio.Event()
        self._send_lock = asyncio.Lock()
        self._space = asyncio.Condition()

    @property
    def buffered_bytes(self) -> int:
        with self._lock:
            return self._buffered_bytes

    @property
    def closed(self) -> bool:
        return self._closed

    def add(self, item: T, size: int) -> None:
        """Buffer ``item`` without blocking.

        Raises:
            OversizedEntryError: ``size`` exceeds ``bundle_byte_limit``.
            BufferOverflowError: buffering would exceed ``buffered_byte_limit``.
            WriterClosedError: the bundler has been closed.
        """
        if self.bundle_byte_limit > 0 and size > self.bundle_byte_limit:
            raise OversizedEntryError(
                f"item of {size} bytes exceeds the {self.bundle_byte_limit} byte limit",
                size=size,
                limit=self.bundle_byte_limit,
            )
        with self._lock:
            if self._closed:
                raise WriterClosedError(f"{self.name} is closed")
            if self._buffered_bytes + size > self.buffered_byte_limit:
                raise BufferOverflowError(
                    f"{self.name} buffer full ({self._buffered_bytes} bytes buffered)",
                    size=size,
                    buffered=self._buffered_bytes,
                    limit=self.buffered_byte_limit,
                )
            self._buffered_bytes += size
            wake = self._append_locked(item, size)
        self._ensure_started()
        if wake:
            self._notify()

    async def add_wait(
        self, item: T, size: int, *, timeout: float | None = None
    ) -> None:
        """Buffer ``item``, waiting up to ``timeout`` seconds for room."""
        self._ensure_started()
        while True:
            try:
                self.add(item, size)
                return
            except BufferOverflowError:
                if size > self.buffered_byte_limit:
                    raise
            # Hand off the open bundle so the worker can free its bytes
            with self._lock:
                self._handoff_locked()
            self._notify()
            try:
                await asyncio.wait_for(self._wait_for_room(size), timeout=timeout)
            except asyncio.TimeoutError as e:
                raise BufferOverflowError(
                    f"timed out waiting for room in {self.name}",
                    size=size,
                    limit=self.buffered_byte_limit,
                ) from e

    async def flush(self) -> None:
        """Hand off buffered items and wait until all of them are handled."""
        with self._lock:
            if self._closed:
                raise WriterClosedError(f"{self.name} is closed")
            self._handoff_locked()
        self._ensure_started()
        await self._drain()

    async def close(self) -> None:
        """Flush remaining items, reject new ones and stop the worker."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._handoff_locked()
        await self._drain()
        async with self._space:
            self._space.notify_all()
        worker, self._worker = self._worker, None
        if worker is not None:
            worker.cancel()
            await asyncio.gather(worker, return_exceptions=True)

    def _append_locked(self, item: T, size: int) -> bool:
        wake = False
        current = self._current
        if (
            current is not None
            and current.items
            and current.size + size > self.bundle_byte_threshold
        ):
            self._handoff_locked()
            current = None
        if current is None:
            current = _Bundle(deadline=self._clock() + self.delay_threshold)
            self._current = current
            wake = True
        current.items.append(item)
        current.size += size
        if (
            len(current.items) >= self.bundle_count_threshold
            or current.size >= self.bundle_byte_threshold
        ):
            self._handoff_locked()
            wake = True
        return wake

    def _handoff_locked(self) -> None:
        if self._current is not None and self._current.items:
            self._ready.append(self._current)
        self._current = None

    def _has_room(self, size: int) -> bool:
        with self._lock:
            if self._closed:
                return True
            return self._buffered_bytes + size <= self.buffered_byte_limit

    async def _wait_for_room(self, size: int) -> None:
        async with self._space:
            await self._space.wait_for(lambda: self._has_room(size))

    def _ensure_started(self) -> None:
        if self._worker is not None or self._closed:
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is None:
            # No loop on this thread; items wait for flush() without an owner
            if self._loop is not None:
                self._call_soon_threadsafe(self._ensure_started)
            return
        self._loop = running
        self._worker = running.create_task(
            self._run(), name=f"{self.name}-worker"
        )

    def _notify(self) -> None:
        loop = self._loop
        if loop is None:
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            self._wakeup.set()
            return
        self._call_soon_threadsafe(self._wakeup.set)

    def _call_soon_threadsafe(self, callback: Callable[[], None]) -> None:
        loop = self._loop
        if loop is None:
            return
        try:
            loop.call_soon_threadsafe(callback)
        except RuntimeError:
            diagnostics.warn(
                "bundler",
                "worker loop closed; items held until flush",
                bundler=self.name,
                _rate_limit_key=f"bundler-loop-closed:{self.name}",
            )

    def _seconds_until_due(self) -> float | None:
        with self._lock:
            if self._current is None:
                return None
            return max(0.0, self._current.deadline - self._clock())

    async def _run(self) -> None:
        try:
            while True:
                timeout = self._seconds_until_due()
                try:
                    await asyncio.wait_for(self._wakeup.wait(), timeout=timeout)
                except asyncio.TimeoutError:
                    pass  # Delay elapsed; expire the open bundle below
                self._wakeup.clear()
                with self._lock:
                    current = self._current
                    if current is not None and self._clock() >= current.deadline:
                        self._handoff_locked()
                await self._drain()
        except asyncio.CancelledError:
            return
        except Exception as exc:  # pragma: no cover
            diagnostics.error(
                "bundler",
                "worker stopped",
                bundler=self.name,
                error_type=type(exc).__name__,
                error=str(exc),
            )

    async def _drain(self) -> None:
        async with self._send_lock:
            while True:
                with self._lock:
                    if not self._ready:
                        return
                    bundle = self._ready.popleft()
                try:
                    await self._handler(bundle.items)
                except Exception as exc:
                    diagnostics.warn(
                        "bundler",
                        "bundle handler failed",
                        bundler=self.name,
                        items=len(bundle.items),
                        error_type=type(exc).__name__,
                        error=str(exc),
                    )
                finally:
                    with self._lock:
                        self._buffered_bytes -= bundle.size
                    async with self._space:
                        self._space.notify_all()


__all__ = ["Bundler"]
