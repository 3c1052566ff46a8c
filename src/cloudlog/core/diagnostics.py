"""
Internal diagnostics for non-fatal errors.

Background paths (worker loops, error callbacks, transport cleanup) must
never raise into user code, but their failures still need to be visible.
``warn`` emits a structured record through the stdlib ``logging`` logger
``cloudlog.diagnostics`` when internal logging is enabled, with a simple
per-key rate limit so a failing endpoint cannot flood the process log.

Enable with ``CLOUDLOG_CORE__INTERNAL_LOGGING_ENABLED=true``.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

_LOGGER = logging.getLogger("cloudlog.diagnostics")

# Minimum seconds between two emissions sharing a rate limit key
_RATE_LIMIT_SECONDS = 5.0

_internal_logging_enabled: bool | None = None
_last_emitted: dict[str, float] = {}


def _default_writer(payload: dict[str, Any]) -> None:
    level = logging.ERROR if payload.get("level") == "ERROR" else logging.WARNING
    _LOGGER.log(
        level,
        "%s: %s",
        payload["component"],
        payload["message"],
        extra={"diagnostic": payload},
    )


_writer: Callable[[dict[str, Any]], None] = _default_writer


def _enabled() -> bool:
    global _internal_logging_enabled
    if _internal_logging_enabled is None:
        try:
            from .settings import Settings

            _internal_logging_enabled = bool(Settings().core.internal_logging_enabled)
        except Exception:
            _internal_logging_enabled = False
    return _internal_logging_enabled


def _emit(level: str, component: str, message: str, fields: dict[str, Any]) -> None:
    rate_key = fields.pop("_rate_limit_key", None)
    if not _enabled():
        return
    if rate_key is not None:
        now = time.monotonic()
        last = _last_emitted.get(rate_key)
        if last is not None and now - last < _RATE_LIMIT_SECONDS:
            return
        _last_emitted[rate_key] = now
    payload: dict[str, Any] = {
        "level": level,
        "component": component,
        "message": message,
        **fields,
    }
    try:
        _writer(payload)
    except Exception:
        # Diagnostics must never break the caller
        pass


def warn(component: str, message: str, **fields: Any) -> None:
    """Emit a WARN diagnostic for a contained failure."""
    _emit("WARN", component, message, fields)


def error(component: str, message: str, **fields: Any) -> None:
    """Emit an ERROR diagnostic, used when an error has no other channel."""
    _emit("ERROR", component, message, fields)


def set_writer_for_tests(writer: Callable[[dict[str, Any]], None]) -> None:
    """Replace the diagnostics writer (tests only)."""
    global _writer
    _writer = writer


def _reset_for_tests() -> None:
    global _internal_logging_enabled, _writer
    _internal_logging_enabled = None
    _writer = _default_writer
    _last_emitted.clear()
