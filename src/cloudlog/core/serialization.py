"""
Serialization helpers for entries and structured payloads.

Structured payloads are encoded the same way regardless of their Python
type: the object is rendered to JSON with orjson and read back, which
yields a closed value tree of ``None | bool | float | str | list | dict``.
Anything that does not come back as a string-keyed mapping is rejected.
"""

from __future__ import annotations

import dataclasses
import re
from datetime import datetime, timezone
from typing import Any, Mapping

import orjson

from .errors import MalformedTimestampError, UnsupportedPayloadTypeError

_JSON_NAME = "cloudlog.json_name"
_OMIT_EMPTY = "cloudlog.omitempty"

_EXCESS_FRACTION = re.compile(r"(\.\d{6})\d+")


def json_field(
    *,
    name: str | None = None,
    omitempty: bool = False,
    **kwargs: Any,
) -> Any:
    """Declare a dataclass field with payload encoding options.

    ``name`` overrides the key used in structured payloads (``"-"`` skips
    the field entirely); ``omitempty`` drops the key when the value is
    empty (``None``, ``False``, zero, or an empty string or container).

    Example:
        @dataclass
        class Job:
            job_id: str = json_field(name="id")
            retries: int = json_field(default=0, omitempty=True)
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    if name is not None:
        metadata[_JSON_NAME] = name
    if omitempty:
        metadata[_OMIT_EMPTY] = True
    return dataclasses.field(metadata=metadata, **kwargs)


def _is_empty(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0
    if isinstance(value, (str, bytes, list, tuple, dict, set, frozenset)):
        return len(value) == 0
    return False


def _dataclass_mapping(obj: Any) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for f in dataclasses.fields(obj):
        key = f.metadata.get(_JSON_NAME, f.name)
        if key == "-":
            continue
        value = getattr(obj, f.name)
        if f.metadata.get(_OMIT_EMPTY) and _is_empty(value):
            continue
        out[key] = value
    return out


def _default(obj: Any) -> Any:
    """orjson hook for types it does not encode natively."""
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return _dataclass_mapping(obj)
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(obj, Mapping):
        return dict(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def _normalize(value: Any) -> Any:
    # Numbers travel as doubles
    if isinstance(value, bool) or value is None or isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, list):
        return [_normalize(v) for v in value]
    if isinstance(value, dict):
        return {k: _normalize(v) for k, v in value.items()}
    raise UnsupportedPayloadTypeError(
        f"unsupported value of type {type(value).__name__} in payload"
    )


def dumps_json(payload: Any) -> bytes:
    """Encode a JSON-compatible payload with orjson."""
    return orjson.dumps(payload, default=_default)


def to_struct(obj: Any) -> dict[str, Any]:
    """Convert a structured payload object into a generic value tree.

    Raises:
        UnsupportedPayloadTypeError: when ``obj`` does not encode to a
            string-keyed mapping (functions, bare scalars, strings, lists).
    """
    try:
        data = orjson.dumps(
            obj,
            default=_default,
            option=orjson.OPT_PASSTHROUGH_DATACLASS,
        )
    except TypeError as e:
        raise UnsupportedPayloadTypeError(
            f"cannot encode payload of type {type(obj).__name__}",
            payload_type=type(obj).__name__,
            cause=e,
        ) from e
    value = orjson.loads(data)
    if not isinstance(value, dict):
        raise UnsupportedPayloadTypeError(
            f"payload of type {type(obj).__name__} does not encode to a mapping",
            payload_type=type(obj).__name__,
        )
    normalized: dict[str, Any] = _normalize(value)
    return normalized


def format_timestamp(ts: datetime) -> str:
    """Render an instant as RFC3339 UTC; naive datetimes are taken as UTC."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    utc = ts.astimezone(timezone.utc).replace(tzinfo=None)
    return utc.isoformat(timespec="microseconds") + "Z"


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC3339 timestamp into an aware UTC datetime.

    Fractions finer than microseconds are truncated.
    """
    text = value.strip()
    if text[-1:] in ("Z", "z"):
        text = text[:-1] + "+00:00"
    text = _EXCESS_FRACTION.sub(r"\1", text)
    try:
        ts = datetime.fromisoformat(text)
    except ValueError as e:
        raise MalformedTimestampError(
            f"malformed timestamp {value!r}", timestamp=value, cause=e
        ) from e
    if ts.tzinfo is None:
        raise MalformedTimestampError(
            f"timestamp {value!r} has no UTC offset", timestamp=value
        )
    return ts.astimezone(timezone.utc)


def encoded_size(payload: Mapping[str, Any]) -> int:
    """Size in bytes of a mapping once encoded for the wire.

    Raises:
        UnsupportedPayloadTypeError: when the mapping cannot be encoded,
            e.g. a string holding a lone surrogate.
    """
    try:
        return len(dumps_json(payload))
    except orjson.JSONEncodeError as e:
        raise UnsupportedPayloadTypeError(
            f"cannot encode entry: {e}", cause=e
        ) from e


__all__ = [
    "dumps_json",
    "encoded_size",
    "format_timestamp",
    "json_field",
    "parse_timestamp",
    "to_struct",
]
