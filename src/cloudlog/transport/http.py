"""
HTTP JSON transport for the logging service using ``httpx.AsyncClient``.

Maps the service's REST endpoints onto ``LoggingTransport`` and converts
HTTP failures into ``ServiceError`` with a canonical status code:

* ``POST /v2/entries:write``
* ``POST /v2/entries:list``
* ``DELETE /v2/{logName}``
"""

from __future__ import annotations

from typing import Any, Mapping

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..core.errors import ServiceError, StatusCode
from ..core.serialization import dumps_json
from ..core.settings import DEFAULT_ENDPOINT
from .wire import ListLogEntriesRequest, ListLogEntriesResponse, WriteLogEntriesRequest

__all__ = ["HttpTransport", "HttpTransportConfig", "error_from_response"]

_HTTP_STATUS_CODES: dict[int, StatusCode] = {
    400: StatusCode.INVALID_ARGUMENT,
    401: StatusCode.UNAUTHENTICATED,
    403: StatusCode.PERMISSION_DENIED,
    404: StatusCode.NOT_FOUND,
    409: StatusCode.ABORTED,
    412: StatusCode.FAILED_PRECONDITION,
    429: StatusCode.RESOURCE_EXHAUSTED,
    499: StatusCode.CANCELLED,
    500: StatusCode.INTERNAL,
    501: StatusCode.UNIMPLEMENTED,
    503: StatusCode.UNAVAILABLE,
    504: StatusCode.DEADLINE_EXCEEDED,
}


class HttpTransportConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    endpoint: str = DEFAULT_ENDPOINT
    headers: dict[str, str] = Field(default_factory=dict)
    timeout_seconds: float = Field(default=30.0, gt=0.0)

    @field_validator("headers", mode="before")
    @classmethod
    def _coerce_headers(cls, value: Mapping[str, str] | None) -> dict[str, str]:
        if value is None:
            return {}
        return dict(value)


def error_from_response(response: httpx.Response) -> ServiceError:
    """Build a ``ServiceError`` from a failed HTTP response.

    Prefers the ``error.status`` field of the service's JSON error body and
    falls back to the HTTP status code.
    """
    code = _HTTP_STATUS_CODES.get(response.status_code, StatusCode.UNKNOWN)
    if code is StatusCode.UNKNOWN and response.status_code >= 500:
        code = StatusCode.INTERNAL
    message = response.reason_phrase or f"HTTP {response.status_code}"
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        err = body["error"]
        message = str(err.get("message") or message)
        status = err.get("status")
        if isinstance(status, str) and status in StatusCode.__members__:
            code = StatusCode[status]
    return ServiceError(message, code=code, http_status=response.status_code)


class HttpTransport:
    """Transport that talks to the service's REST API."""

    name = "http"

    def __init__(
        self,
        config: HttpTransportConfig | dict | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        **kwargs: Any,
    ) -> None:
        if config is None:
            cfg = HttpTransportConfig(**kwargs)
        elif isinstance(config, dict):
            cfg = HttpTransportConfig(**{**config, **kwargs})
        else:
            cfg = config.model_copy(update=kwargs) if kwargs else config
        self._config = cfg
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=cfg.endpoint,
            headers=cfg.headers,
            timeout=cfg.timeout_seconds,
        )

    @property
    def config(self) -> HttpTransportConfig:
        return self._config

    async def write_log_entries(self, request: WriteLogEntriesRequest) -> None:
        await self._call("POST", "/v2/entries:write", request.to_json_dict())

    async def list_log_entries(
        self, request: ListLogEntriesRequest
    ) -> ListLogEntriesResponse:
        data = await self._call("POST", "/v2/entries:list", request.to_json_dict())
        return ListLogEntriesResponse.model_validate(data or {})

    async def delete_log(self, log_name: str) -> None:
        # Log names arrive with the log id already URL-escaped
        await self._call("DELETE", f"/v2/{log_name}")

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _call(
        self, method: str, path: str, payload: Mapping[str, Any] | None = None
    ) -> Any:
        content: bytes | None = None
        headers: dict[str, str] = {}
        if payload is not None:
            content = dumps_json(payload)
            headers["Content-Type"] = "application/json"
        try:
            response = await self._client.request(
                method, path, content=content, headers=headers
            )
        except httpx.TimeoutException as e:
            raise ServiceError(
                str(e) or "request timed out",
                code=StatusCode.DEADLINE_EXCEEDED,
                cause=e,
                path=path,
            ) from e
        except httpx.TransportError as e:
            raise ServiceError(
                str(e) or type(e).__name__,
                code=StatusCode.UNAVAILABLE,
                cause=e,
                path=path,
            ) from e
        if response.status_code >= 400:
            raise error_from_response(response)
        if not response.content:
            return None
        return response.json()


# Mark Pydantic validators as used for vulture
_VULTURE_USED: tuple[object, ...] = (HttpTransportConfig._coerce_headers,)
