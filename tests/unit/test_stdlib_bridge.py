"""Tests for forwarding stdlib logging records into a Logger."""

from __future__ import annotations

import logging
from collections.abc import Generator

import pytest

from cloudlog.client import Client
from cloudlog.core.severity import Severity
from cloudlog.core.stdlib_bridge import (
    CloudLogHandler,
    enable_stdlib_bridge,
    severity_for_level,
)
from cloudlog.testing import FakeLoggingService


@pytest.fixture
def std_logger() -> Generator[logging.Logger, None, None]:
    std = logging.getLogger("tests.bridge")
    std.propagate = False
    yield std
    for handler in list(std.handlers):
        std.removeHandler(handler)
    std.setLevel(logging.NOTSET)
    std.propagate = True


@pytest.mark.parametrize(
    ("level", "severity"),
    [
        (logging.CRITICAL, Severity.CRITICAL),
        (logging.ERROR, Severity.ERROR),
        (logging.WARNING, Severity.WARNING),
        (25, Severity.INFO),
        (logging.INFO, Severity.INFO),
        (15, Severity.DEBUG),
        (5, Severity.DEFAULT),
    ],
)
def test_severity_for_level(level: int, severity: Severity) -> None:
    assert severity_for_level(level) is severity


async def test_bridge_forwards_records(
    client: Client, fake_service: FakeLoggingService, std_logger: logging.Logger
) -> None:
    lg = client.logger("bridge")
    handler = enable_stdlib_bridge(lg, target=std_logger, level=logging.DEBUG)
    assert isinstance(handler, CloudLogHandler)

    std_logger.warning("disk at %d%%", 91, extra={"request_id": "abc"})
    std_logger.debug("details")
    await lg.flush()

    first, second = fake_service.entries(lg.log_name)
    assert first.text_payload == "disk at 91%"
    assert first.severity == int(Severity.WARNING)
    assert first.labels == {"python_logger": "tests.bridge", "request_id": "abc"}
    assert second.severity == int(Severity.DEBUG)


async def test_bridge_respects_level_and_can_replace_handlers(
    client: Client, fake_service: FakeLoggingService, std_logger: logging.Logger
) -> None:
    existing = logging.NullHandler()
    std_logger.addHandler(existing)
    lg = client.logger("bridge")
    enable_stdlib_bridge(
        lg, target=std_logger, level=logging.ERROR, remove_existing_handlers=True
    )
    assert existing not in std_logger.handlers

    std_logger.info("ignored")
    std_logger.error("kept")
    await lg.flush()
    assert [e.text_payload for e in fake_service.entries(lg.log_name)] == ["kept"]


async def test_bridge_skips_internal_loggers(
    client: Client, fake_service: FakeLoggingService
) -> None:
    lg = client.logger("bridge")
    handler = CloudLogHandler(lg)
    record = logging.LogRecord(
        name="cloudlog.diagnostics",
        level=logging.WARNING,
        pathname="",
        lineno=0,
        msg="internal",
        args=(),
        exc_info=None,
    )
    handler.emit(record)
    await lg.flush()
    assert fake_service.entries(lg.log_name) == []


async def test_exception_text_is_included(
    client: Client, fake_service: FakeLoggingService, std_logger: logging.Logger
) -> None:
    lg = client.logger("bridge")
    enable_stdlib_bridge(lg, target=std_logger)
    try:
        raise RuntimeError("kaboom")
    except RuntimeError:
        std_logger.exception("request failed")
    await lg.flush()

    (entry,) = fake_service.entries(lg.log_name)
    assert entry.text_payload is not None
    assert entry.text_payload.startswith("request failed")
    assert "RuntimeError: kaboom" in entry.text_payload
    assert entry.severity == int(Severity.ERROR)
