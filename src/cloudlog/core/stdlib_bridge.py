"""
Bridge Python's standard ``logging`` module onto a cloud ``Logger``.

``CloudLogHandler`` turns each ``LogRecord`` into a text ``Entry`` and
hands it to ``Logger.log``, so emitting never blocks on the network.
Records from the library's own ``cloudlog`` loggers are skipped to avoid
feedback loops when the bridge is attached to the root logger.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from .entry import Entry
from .severity import Severity

if TYPE_CHECKING:
    from ..logger import Logger

# Standard LogRecord attributes that are never copied into labels
_STANDARD_LOGRECORD_ATTRS = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)

# Library loggers whose records would feed back into the bridge
_INTERNAL_LOGGERS = frozenset({"cloudlog", "cloudlog.client", "cloudlog.diagnostics"})

_LEVEL_SEVERITIES: tuple[tuple[int, Severity], ...] = (
    (logging.CRITICAL, Severity.CRITICAL),
    (logging.ERROR, Severity.ERROR),
    (logging.WARNING, Severity.WARNING),
    (logging.INFO, Severity.INFO),
    (logging.DEBUG, Severity.DEBUG),
)


def severity_for_level(levelno: int) -> Severity:
    """Map a stdlib level number to the closest severity at or below it."""
    for threshold, severity in _LEVEL_SEVERITIES:
        if levelno >= threshold:
            return severity
    return Severity.DEFAULT


class CloudLogHandler(logging.Handler):
    """Logging handler that writes records through a cloud ``Logger``.

    Args:
        logger: Destination logger.
        severity: Fixed severity for every record; by default the record's
            level is mapped with ``severity_for_level``.
        label_logger_name: Add the record's logger name as the
            ``python_logger`` label.
    """

    def __init__(
        self,
        logger: Logger,
        *,
        severity: Severity | None = None,
        level: int = logging.NOTSET,
        label_logger_name: bool = True,
    ) -> None:
        super().__init__(level)
        self._logger = logger
        self._severity = severity
        self._label_logger_name = label_logger_name

    def emit(self, record: logging.LogRecord) -> None:
        if record.name in _INTERNAL_LOGGERS:
            return
        try:
            labels: dict[str, str] = {}
            if self._label_logger_name:
                labels["python_logger"] = record.name
            for key, value in record.__dict__.items():
                if key not in _STANDARD_LOGRECORD_ATTRS and isinstance(value, str):
                    labels[key] = value
            severity = (
                self._severity
                if self._severity is not None
                else severity_for_level(record.levelno)
            )
            entry = Entry(
                payload=self.format(record),
                timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc),
                severity=severity,
                labels=labels,
            )
        except Exception:
            self.handleError(record)
            return
        self._logger.log(entry)


def enable_stdlib_bridge(
    logger: Logger,
    *,
    level: int = logging.INFO,
    target: logging.Logger | None = None,
    remove_existing_handlers: bool = False,
) -> CloudLogHandler:
    """Attach a ``CloudLogHandler`` to ``target`` (the root logger by default).

    Returns the installed handler so callers can remove it later.
    """
    std = target if target is not None else logging.getLogger()
    if remove_existing_handlers:
        for handler in list(std.handlers):
            std.removeHandler(handler)
    handler = CloudLogHandler(logger, level=level)
    std.addHandler(handler)
    if std.level == logging.NOTSET or std.level > level:
        std.setLevel(level)
    return handler


__all__ = ["CloudLogHandler", "enable_stdlib_bridge", "severity_for_level"]
