#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import asyncio
import json
from collections.abc import AsyncIterator

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer as EchoServer
from aiohttp.test_utils import unused_port
from aws_service_core.testing import MockTransport, MockTransportError
from aws_service_core.transport import AIOHTTPTransport, TransportRequest


async def echo(request: web.Request) -> web.Response:
    if request.path == "/slow":
        await asyncio.sleep(1)
    body = await request.read()
    response = web.json_response(
        {
            "method": request.method,
            "path": request.raw_path,
            "body": body.decode("utf-8"),
            "headers": dict(request.headers),
        },
        status=201 if request.method == "POST" else 200,
    )
    response.headers.add("X-Multi", "a")
    response.headers.add("X-Multi", "b")
    return response


@pytest.fixture
async def server() -> AsyncIterator[EchoServer]:
    app = web.Application()
    app.router.add_route("*", "/{tail:.*}", echo)
    server = EchoServer(app)
    await server.start_server()
    yield server
    await server.close()


@pytest.fixture
async def transport() -> AsyncIterator[AIOHTTPTransport]:
    transport = AIOHTTPTransport()
    yield transport
    await transport.aclose()


def _request(server: EchoServer, **kwargs) -> TransportRequest:
    values = {
        "scheme": "http",
        "host": server.host,
        "port": server.port,
        "path": "/",
        "method": "GET",
    }
    values.update(kwargs)
    return TransportRequest(**values)


@pytest.mark.parametrize(
    "scheme, port, expected",
    [
        ("http", 80, "http://example.com/a?b=c"),
        ("https", 443, "https://example.com/a?b=c"),
        ("http", 8080, "http://example.com:8080/a?b=c"),
        ("https", 80, "https://example.com:80/a?b=c"),
    ],
)
def test_request_url(scheme: str, port: int, expected: str):
    request = TransportRequest(
        scheme=scheme, host="example.com", port=port, path="/a?b=c", method="GET"
    )
    assert request.url == expected


async def test_sends_request_as_assembled(
    server: EchoServer, transport: AIOHTTPTransport
):
    path = "/?Action=Publish&Message=a%26b&Subject=a=b"
    result = await transport.execute(
        _request(
            server,
            path=path,
            method="POST",
            body=b'{"KeyId":"123"}',
            headers={"X-Amz-Target": "kms.GenerateDataKey"},
        )
    )

    assert result.ok is True
    assert result.status == 201
    assert result.reason == "Created"
    assert result.headers["X-Multi"] == "a, b"
    assert result.body is not None
    echoed = json.loads(result.body)
    assert echoed["method"] == "POST"
    assert echoed["path"] == path
    assert echoed["body"] == '{"KeyId":"123"}'
    assert echoed["headers"]["X-Amz-Target"] == "kms.GenerateDataKey"


async def test_empty_body_is_not_sent(server: EchoServer, transport: AIOHTTPTransport):
    result = await transport.execute(_request(server))
    assert result.status == 200
    assert result.body is not None
    assert json.loads(result.body)["body"] == ""


async def test_connection_failure_is_not_raised(transport: AIOHTTPTransport):
    result = await transport.execute(
        TransportRequest(
            scheme="http", host="127.0.0.1", port=unused_port(), path="/", method="GET"
        )
    )
    assert result.ok is False
    assert result.status is None
    assert result.headers == {}
    assert result.body is None
    assert result.reason


async def test_timeout_is_not_raised(server: EchoServer, transport: AIOHTTPTransport):
    result = await transport.execute(_request(server, path="/slow", timeout_ms=50))
    assert result.ok is False
    assert result.status is None
    assert result.reason


async def test_sessions_are_pooled_by_settings(
    server: EchoServer, transport: AIOHTTPTransport
):
    await transport.execute(_request(server))
    await transport.execute(_request(server))
    assert len(transport._sessions) == 1  # type: ignore

    await transport.execute(_request(server, pool_size=5))
    await transport.execute(_request(server, keepalive_ms=1000))
    assert set(transport._sessions) == {  # type: ignore
        (30000, 100),
        (30000, 5),
        (1000, 100),
    }


async def test_aclose_closes_sessions(server: EchoServer):
    transport = AIOHTTPTransport()
    await transport.execute(_request(server))
    sessions = list(transport._sessions.values())  # type: ignore
    await transport.aclose()
    assert all(session.closed for session in sessions)

    result = await transport.execute(_request(server))
    assert result.ok is True
    await transport.aclose()


async def test_mock_transport():
    transport = MockTransport()
    transport.add_response(204, {"A": "b"}, b"", "No Content")
    transport.add_failure("reset")
    request = TransportRequest(
        scheme="http", host="example.com", port=80, path="/", method="GET"
    )

    assert await transport.execute(request) == (True, 204, {"A": "b"}, "No Content", b"")
    assert await transport.execute(request) == (False, None, {}, "reset", None)
    with pytest.raises(MockTransportError):
        await transport.execute(request)
    assert transport.call_count == 3
    assert transport.captured_requests == [request] * 3

    await transport.aclose()
    assert transport.closed
