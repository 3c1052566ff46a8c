"""
Unit tests for HttpTransport against httpx.MockTransport.

Checks request paths and bodies for write, list and delete, and the
mapping of HTTP status, error bodies and transport failures to
ServiceError codes.
"""

from __future__ import annotations

from typing import Any, Callable

import httpx
import orjson
import pytest

from cloudlog.core.errors import ServiceError, StatusCode
from cloudlog.transport import LoggingTransport
from cloudlog.transport.http import (
    HttpTransport,
    HttpTransportConfig,
    error_from_response,
)
from cloudlog.transport.wire import (
    ListLogEntriesRequest,
    WireLogEntry,
    WriteLogEntriesRequest,
    global_resource,
)

_ENDPOINT = "https://logging.example.com"


def _transport(
    handler: Callable[[httpx.Request], httpx.Response],
) -> tuple[HttpTransport, list[httpx.Request]]:
    seen: list[httpx.Request] = []

    def _record(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    client = httpx.AsyncClient(base_url=_ENDPOINT, transport=httpx.MockTransport(_record))
    return HttpTransport(endpoint=_ENDPOINT, client=client), seen


def test_http_transport_satisfies_protocol() -> None:
    transport, _ = _transport(lambda r: httpx.Response(200))
    assert isinstance(transport, LoggingTransport)


@pytest.mark.asyncio
async def test_write_posts_camel_case_json() -> None:
    transport, seen = _transport(lambda r: httpx.Response(200, json={}))
    await transport.write_log_entries(
        WriteLogEntriesRequest(
            log_name="projects/p/logs/app",
            resource=global_resource(),
            entries=[WireLogEntry(text_payload="hi", severity=200)],
        )
    )

    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/v2/entries:write"
    assert request.headers["Content-Type"] == "application/json"
    body: dict[str, Any] = orjson.loads(request.content)
    assert body["logName"] == "projects/p/logs/app"
    assert body["resource"]["type"] == "global"
    assert body["entries"] == [
        {"textPayload": "hi", "severity": 200, "logName": "", "insertId": "", "labels": {}}
    ]


@pytest.mark.asyncio
async def test_list_parses_page() -> None:
    page = {
        "entries": [
            {
                "logName": "projects/p/logs/app",
                "textPayload": "a",
                "severity": "WARNING",
                "timestamp": "2024-01-01T00:00:00Z",
            }
        ],
        "nextPageToken": "next",
    }
    transport, seen = _transport(lambda r: httpx.Response(200, json=page))
    response = await transport.list_log_entries(
        ListLogEntriesRequest(project_ids=["p"], filter="severity>=WARNING", page_size=5)
    )

    body = orjson.loads(seen[0].content)
    assert seen[0].url.path == "/v2/entries:list"
    assert body["projectIds"] == ["p"]
    assert body["filter"] == "severity>=WARNING"
    assert body["pageSize"] == 5
    assert response.entries[0].severity == 400
    assert response.next_page_token == "next"


@pytest.mark.asyncio
async def test_empty_list_body_yields_empty_page() -> None:
    transport, _ = _transport(lambda r: httpx.Response(200))
    response = await transport.list_log_entries(ListLogEntriesRequest(project_ids=["p"]))
    assert response.entries == []
    assert response.next_page_token == ""


@pytest.mark.asyncio
async def test_delete_log_uses_delete_verb() -> None:
    transport, seen = _transport(lambda r: httpx.Response(200, json={}))
    await transport.delete_log("projects/p/logs/app")
    assert seen[0].method == "DELETE"
    assert seen[0].url.path == "/v2/projects/p/logs/app"


@pytest.mark.asyncio
async def test_service_error_body_is_preferred() -> None:
    body = {"error": {"code": 404, "message": "log not found", "status": "NOT_FOUND"}}
    transport, _ = _transport(lambda r: httpx.Response(404, json=body))
    with pytest.raises(ServiceError) as exc_info:
        await transport.delete_log("projects/p/logs/missing")
    assert exc_info.value.code is StatusCode.NOT_FOUND
    assert exc_info.value.message == "log not found"
    assert exc_info.value.http_status == 404


@pytest.mark.parametrize(
    ("status", "code"),
    [
        (400, StatusCode.INVALID_ARGUMENT),
        (403, StatusCode.PERMISSION_DENIED),
        (429, StatusCode.RESOURCE_EXHAUSTED),
        (502, StatusCode.INTERNAL),
        (503, StatusCode.UNAVAILABLE),
        (418, StatusCode.UNKNOWN),
    ],
)
def test_status_codes_map_without_body(status: int, code: StatusCode) -> None:
    err = error_from_response(httpx.Response(status, content=b"not json"))
    assert err.code is code
    assert err.http_status == status


@pytest.mark.asyncio
async def test_timeouts_map_to_deadline_exceeded() -> None:
    def _slow(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("read timed out", request=request)

    transport, _ = _transport(_slow)
    with pytest.raises(ServiceError) as exc_info:
        await transport.write_log_entries(WriteLogEntriesRequest())
    assert exc_info.value.code is StatusCode.DEADLINE_EXCEEDED
    assert exc_info.value.retryable
    assert isinstance(exc_info.value.__cause__, httpx.ReadTimeout)


@pytest.mark.asyncio
async def test_connection_errors_map_to_unavailable() -> None:
    def _refused(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    transport, _ = _transport(_refused)
    with pytest.raises(ServiceError) as exc_info:
        await transport.write_log_entries(WriteLogEntriesRequest())
    assert exc_info.value.code is StatusCode.UNAVAILABLE


@pytest.mark.asyncio
async def test_close_leaves_injected_client_open() -> None:
    client = httpx.AsyncClient(
        base_url=_ENDPOINT, transport=httpx.MockTransport(lambda r: httpx.Response(200))
    )
    await HttpTransport(client=client).close()
    assert not client.is_closed
    await client.aclose()


@pytest.mark.asyncio
async def test_close_releases_owned_client() -> None:
    transport = HttpTransport({"endpoint": _ENDPOINT, "timeout_seconds": 2.0})
    assert transport.config.timeout_seconds == 2.0
    await transport.close()
    assert transport._client.is_closed  # type: ignore[attr-defined]


def test_config_is_frozen_and_strict() -> None:
    cfg = HttpTransportConfig(headers={"X-Api-Key": "k"})
    assert cfg.headers == {"X-Api-Key": "k"}
    with pytest.raises(ValueError):
        HttpTransportConfig(url="https://x")  # type: ignore[call-arg]
