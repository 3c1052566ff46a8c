"""
Wire models for the remote logging service.

These mirror the service's JSON schema (camelCase field names). Timestamps
stay as RFC3339 strings here; conversion to ``datetime`` happens in the
translator so that malformed values surface as translation errors rather
than schema errors.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from ..core.severity import Severity


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_json_dict(self) -> dict[str, Any]:
        """Dump using wire field names, omitting unset optional members."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class MonitoredResource(_WireModel):
    """Typed descriptor of the resource that produced an entry."""

    type: str
    labels: dict[str, str] = Field(default_factory=dict)


def global_resource() -> MonitoredResource:
    """Return a fresh ``global`` resource descriptor."""
    return MonitoredResource(type="global")


class WireHttpRequest(_WireModel):
    request_method: str = ""
    request_url: str = ""
    request_size: int = 0
    status: int = 0
    response_size: int = 0
    user_agent: str = ""
    remote_ip: str = ""
    referer: str = ""
    cache_hit: bool = False
    cache_validated_with_origin_server: bool = False


class WireLogEntry(_WireModel):
    log_name: str = ""
    resource: MonitoredResource | None = None
    text_payload: str | None = None
    json_payload: dict[str, Any] | None = None
    timestamp: str | None = None
    severity: int = 0
    insert_id: str = ""
    http_request: WireHttpRequest | None = None
    labels: dict[str, str] = Field(default_factory=dict)

    @field_validator("severity", mode="before")
    @classmethod
    def _coerce_severity(cls, value: Any) -> Any:
        # The service may spell severities by name
        if isinstance(value, str) and not value.lstrip("-").isdigit():
            member = Severity.__members__.get(value.upper())
            if member is None:
                raise ValueError(f"unknown severity name {value!r}")
            return int(member)
        return value

    @model_validator(mode="after")
    def _single_payload(self) -> WireLogEntry:
        if self.text_payload is not None and self.json_payload is not None:
            raise ValueError("textPayload and jsonPayload are mutually exclusive")
        return self


class WriteLogEntriesRequest(_WireModel):
    log_name: str = ""
    resource: MonitoredResource | None = None
    labels: dict[str, str] = Field(default_factory=dict)
    entries: list[WireLogEntry] = Field(default_factory=list)
    partial_success: bool = False


class ListLogEntriesRequest(_WireModel):
    project_ids: list[str] = Field(default_factory=list)
    filter: str = ""
    order_by: str = ""
    page_size: int = 0
    page_token: str = ""


class ListLogEntriesResponse(_WireModel):
    entries: list[WireLogEntry] = Field(default_factory=list)
    next_page_token: str = ""


# Mark Pydantic validators as used for vulture
_VULTURE_USED: tuple[object, ...] = (
    WireLogEntry._coerce_severity,
    WireLogEntry._single_payload,
)

__all__ = [
    "ListLogEntriesRequest",
    "ListLogEntriesResponse",
    "MonitoredResource",
    "WireHttpRequest",
    "WireLogEntry",
    "WriteLogEntriesRequest",
    "global_resource",
]
