"""
Translation between native entries and wire log entries.

Both directions are pure mappings. ``to_wire`` decides the payload kind
(text or structured) and ``from_wire`` hands structured payloads back as
plain dicts: the round trip is structural, not nominal.
"""

from __future__ import annotations

import httpx
from pydantic import ValidationError

from ..transport.wire import WireHttpRequest, WireLogEntry
from .entry import Entry, HTTPRequest
from .errors import (
    InvalidEntryError,
    MalformedURLError,
    UnsupportedPayloadTypeError,
)
from .serialization import format_timestamp, parse_timestamp, to_struct
from .severity import Severity, render_severity


def http_request_to_wire(req: HTTPRequest) -> WireHttpRequest:
    """Map a native HTTP request descriptor to its compact wire form."""
    return WireHttpRequest(
        request_method=req.method,
        request_url=str(req.url) if req.url is not None else "",
        request_size=req.request_size,
        status=req.status,
        response_size=req.response_size,
        user_agent=req.headers.get("User-Agent", ""),
        remote_ip=req.remote_ip,
        referer=req.headers.get("Referer", ""),
        cache_hit=req.cache_hit,
        cache_validated_with_origin_server=req.cache_validated_with_origin_server,
    )


def http_request_from_wire(wire: WireHttpRequest) -> HTTPRequest:
    """Rebuild a native HTTP request descriptor.

    Only ``User-Agent`` and ``Referer`` can be recovered; the wire format
    carries no other headers. Empty header values and an empty URL are
    left unset.
    """
    url: httpx.URL | None = None
    if wire.request_url:
        try:
            url = httpx.URL(wire.request_url)
        except (httpx.InvalidURL, TypeError, ValueError) as e:
            raise MalformedURLError(
                f"malformed request URL {wire.request_url!r}",
                url=wire.request_url,
                cause=e,
            ) from e
    return HTTPRequest(
        method=wire.request_method,
        url=url,
        headers=httpx.Headers(
            {
                name: value
                for name, value in (
                    ("User-Agent", wire.user_agent),
                    ("Referer", wire.referer),
                )
                if value
            }
        ),
        request_size=wire.request_size,
        status=wire.status,
        response_size=wire.response_size,
        remote_ip=wire.remote_ip,
        cache_hit=wire.cache_hit,
        cache_validated_with_origin_server=wire.cache_validated_with_origin_server,
    )


def to_wire(entry: Entry) -> WireLogEntry:
    """Translate a native entry into a wire log entry.

    Raises:
        UnsupportedPayloadTypeError: if the payload is neither text nor an
            object encoding to a string-keyed mapping, or is text that is
            not valid Unicode (lone surrogates).
        InvalidEntryError: if another field does not fit the wire schema,
            e.g. a non-string label value.
    """
    text_payload: str | None = None
    json_payload = None
    if isinstance(entry.payload, str):
        text_payload = _checked_text(entry.payload)
    elif entry.payload is not None:
        json_payload = to_struct(entry.payload)
    try:
        return _build_wire(entry, text_payload, json_payload)
    except ValidationError as e:
        raise InvalidEntryError(
            f"entry does not fit the wire schema: {e.error_count()} error(s)",
            errors=[err["loc"] for err in e.errors()],
            cause=e,
        ) from e


def _checked_text(text: str) -> str:
    try:
        text.encode("utf-8")
    except UnicodeEncodeError as e:
        raise UnsupportedPayloadTypeError(
            "text payload is not valid Unicode",
            payload_type="str",
            cause=e,
        ) from e
    return text


def _build_wire(
    entry: Entry, text_payload: str | None, json_payload: dict | None
) -> WireLogEntry:
    return WireLogEntry(
        log_name=entry.log_name,
        resource=entry.resource,
        text_payload=text_payload,
        json_payload=json_payload,
        timestamp=(
            format_timestamp(entry.timestamp) if entry.timestamp is not None else None
        ),
        severity=render_severity(entry.severity),
        insert_id=entry.insert_id,
        http_request=(
            http_request_to_wire(entry.http_request)
            if entry.http_request is not None
            else None
        ),
        labels=dict(entry.labels),
    )


def from_wire(wire: WireLogEntry) -> Entry:
    """Translate a wire log entry back into a native entry.

    Raises:
        MalformedTimestampError: if the wire timestamp cannot be parsed.
        MalformedURLError: if the nested HTTP request URL cannot be parsed.
    """
    payload: object = None
    if wire.text_payload is not None:
        payload = wire.text_payload
    elif wire.json_payload is not None:
        payload = dict(wire.json_payload)
    return Entry(
        payload=payload,
        timestamp=parse_timestamp(wire.timestamp) if wire.timestamp else None,
        severity=Severity(wire.severity),
        labels=dict(wire.labels),
        insert_id=wire.insert_id,
        http_request=(
            http_request_from_wire(wire.http_request)
            if wire.http_request is not None
            else None
        ),
        log_name=wire.log_name,
        resource=wire.resource,
    )


__all__ = [
    "from_wire",
    "http_request_from_wire",
    "http_request_to_wire",
    "to_wire",
]
