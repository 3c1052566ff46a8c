"""Tests for environment-driven Settings and their nested groups."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from cloudlog.core.settings import (
    DEFAULT_BUFFERED_BYTE_LIMIT,
    DEFAULT_ENDPOINT,
    CoreSettings,
    Settings,
)


def test_defaults() -> None:
    s = Settings()
    assert s.core.endpoint == DEFAULT_ENDPOINT
    assert s.core.internal_logging_enabled is False
    assert s.logger.delay_threshold == 1.0
    assert s.logger.entry_count_threshold == 10
    assert s.logger.entry_byte_threshold == 1 << 20
    assert s.logger.entry_byte_limit == 0
    assert s.logger.buffered_byte_limit == DEFAULT_BUFFERED_BYTE_LIMIT


def test_nested_environment_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CLOUDLOG_LOGGER__ENTRY_COUNT_THRESHOLD", "50")
    monkeypatch.setenv("CLOUDLOG_CORE__ENDPOINT", "http://localhost:8080/")
    monkeypatch.setenv("CLOUDLOG_CORE__ENABLE_METRICS", "true")
    s = Settings()
    assert s.logger.entry_count_threshold == 50
    assert s.core.endpoint == "http://localhost:8080"
    assert s.core.enable_metrics is True


def test_invalid_values_are_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CLOUDLOG_LOGGER__DELAY_THRESHOLD", "0")
    with pytest.raises(ValidationError):
        Settings()


def test_blank_endpoint_is_rejected() -> None:
    with pytest.raises(ValidationError):
        CoreSettings(endpoint="  / ")
