"""
Pytest fixtures for code that writes through cloudlog.

Register with ``pytest_plugins = ("cloudlog.testing.fixtures",)``.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Generator
from typing import Any

import pytest
import pytest_asyncio

from ..client import Client
from ..core import diagnostics
from ..core.retry import RetryConfig
from .fake import FakeLoggingService

TEST_PROJECT = "PROJECT_ID"


@pytest.fixture
def fake_service() -> FakeLoggingService:
    """Fake service that knows ``TEST_PROJECT``."""
    return FakeLoggingService(projects=(TEST_PROJECT,))


@pytest.fixture
def reported_errors() -> list[BaseException]:
    """Errors delivered to the ``on_error`` callback of the ``client`` fixture."""
    return []


@pytest_asyncio.fixture
async def client(
    fake_service: FakeLoggingService, reported_errors: list[BaseException]
) -> AsyncGenerator[Client, None]:
    """Client on the fake service with fast, jitter-free retries."""
    c = Client(
        TEST_PROJECT,
        transport=fake_service,
        on_error=reported_errors.append,
        retry=RetryConfig(base_delay=0.0, jitter=False),
    )
    yield c
    await c.close()


@pytest.fixture
def diagnostics_records(
    monkeypatch: pytest.MonkeyPatch,
) -> Generator[list[dict[str, Any]], None, None]:
    """Capture internal diagnostics with internal logging enabled."""
    records: list[dict[str, Any]] = []
    monkeypatch.setenv("CLOUDLOG_CORE__INTERNAL_LOGGING_ENABLED", "true")
    diagnostics._reset_for_tests()
    diagnostics.set_writer_for_tests(records.append)
    yield records
    diagnostics._reset_for_tests()
