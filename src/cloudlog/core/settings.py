"""
Configuration models for cloudlog using Pydantic v2 Settings.

Environment variables use the ``CLOUDLOG_`` prefix with ``__`` separating
groups from fields, e.g. ``CLOUDLOG_LOGGER__ENTRY_COUNT_THRESHOLD=50``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Documented bundling defaults for a Logger
DEFAULT_DELAY_THRESHOLD = 1.0
DEFAULT_ENTRY_COUNT_THRESHOLD = 10
DEFAULT_ENTRY_BYTE_THRESHOLD = 1 << 20  # 1 MiB
DEFAULT_BUFFERED_BYTE_LIMIT = 1 << 30  # 1 GiB

DEFAULT_ENDPOINT = "https://logging.googleapis.com"


class CoreSettings(BaseModel):
    """Client-wide transport and observability settings."""

    endpoint: str = Field(
        default=DEFAULT_ENDPOINT,
        description="Base URL of the logging service REST API",
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0.0,
        description="Per-request timeout for calls to the logging service",
    )
    internal_logging_enabled: bool = Field(
        default=False,
        description="Emit WARN/ERROR diagnostics for contained internal errors",
    )
    enable_metrics: bool = Field(
        default=False,
        description="Enable Prometheus-compatible client metrics",
    )

    @field_validator("endpoint")
    @classmethod
    def _strip_endpoint(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if not value:
            raise ValueError("endpoint must not be empty")
        return value


class LoggerSettings(BaseModel):
    """Default bundling thresholds applied to every Logger of a client."""

    delay_threshold: float = Field(
        default=DEFAULT_DELAY_THRESHOLD,
        gt=0.0,
        description="Seconds an entry may stay buffered before a flush",
    )
    entry_count_threshold: int = Field(
        default=DEFAULT_ENTRY_COUNT_THRESHOLD,
        ge=1,
        description="Number of buffered entries that triggers a flush",
    )
    entry_byte_threshold: int = Field(
        default=DEFAULT_ENTRY_BYTE_THRESHOLD,
        ge=1,
        description="Encoded size of a write request that triggers a flush",
    )
    entry_byte_limit: int = Field(
        default=0,
        ge=0,
        description="Maximum encoded size of a single entry (0 = unlimited)",
    )
    buffered_byte_limit: int = Field(
        default=DEFAULT_BUFFERED_BYTE_LIMIT,
        ge=1,
        description="Maximum bytes held in memory before entries are rejected",
    )


class Settings(BaseSettings):
    """Top-level configuration model."""

    core: CoreSettings = Field(default_factory=CoreSettings)
    logger: LoggerSettings = Field(default_factory=LoggerSettings)

    model_config = SettingsConfigDict(
        env_prefix="CLOUDLOG_",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )


# Mark Pydantic validators as used for vulture
_VULTURE_USED: tuple[object, ...] = (CoreSettings._strip_endpoint,)
