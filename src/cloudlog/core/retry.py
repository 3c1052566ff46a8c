"""
Retry with exponential backoff for calls to the logging service.

The retry strategy is pluggable: anything matching ``RetryCallable`` (an
async callable that receives a zero-argument coroutine factory and returns
its result) can replace ``AsyncRetrier``.
"""

from __future__ import annotations

import asyncio
import random
from typing import Awaitable, Callable, TypeVar

import httpx
from pydantic import BaseModel, ConfigDict, Field

from .errors import ServiceError

T = TypeVar("T")

RetryCallable = Callable[[Callable[[], Awaitable[T]]], Awaitable[T]]


def is_transient(exc: BaseException) -> bool:
    """Default retry predicate: transient service or transport failures."""
    if isinstance(exc, ServiceError):
        return exc.retryable
    return isinstance(exc, httpx.TransportError)


class RetryConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    max_attempts: int = Field(default=3, ge=1)
    base_delay: float = Field(default=0.1, ge=0.0)
    max_delay: float = Field(default=5.0, ge=0.0)
    multiplier: float = Field(default=2.0, ge=1.0)
    jitter: bool = True

    def delay_for(self, attempt: int) -> float:
        """Backoff before retry number ``attempt`` (1-based)."""
        delay = min(self.max_delay, self.base_delay * self.multiplier ** (attempt - 1))
        if self.jitter and delay > 0:
            delay = random.uniform(delay / 2, delay)
        return delay


class AsyncRetrier:
    """Retry an async operation while the predicate calls its error transient.

    Permanent errors and the error of the final attempt are re-raised
    unchanged, so callers see exactly what the service reported.
    """

    def __init__(
        self,
        config: RetryConfig | None = None,
        *,
        is_retryable: Callable[[BaseException], bool] = is_transient,
    ) -> None:
        self._config = config or RetryConfig()
        self._is_retryable = is_retryable

    @property
    def config(self) -> RetryConfig:
        return self._config

    async def retry(self, operation: Callable[[], Awaitable[T]]) -> T:
        attempt = 1
        while True:
            try:
                return await operation()
            except Exception as exc:
                if attempt >= self._config.max_attempts or not self._is_retryable(exc):
                    raise
            await asyncio.sleep(self._config.delay_for(attempt))
            attempt += 1

    async def __call__(self, operation: Callable[[], Awaitable[T]]) -> T:
        return await self.retry(operation)


__all__ = ["AsyncRetrier", "RetryCallable", "RetryConfig", "is_transient"]
