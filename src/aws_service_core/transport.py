#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Final, NamedTuple, Protocol

import aiohttp
from yarl import URL

logger: Final = logging.getLogger(__name__)

DEFAULT_PORTS: Final = MappingProxyType({"http": 80, "https": 443})
DEFAULT_TIMEOUT_MS: Final = 60000
DEFAULT_KEEPALIVE_MS: Final = 30000
DEFAULT_POOL_SIZE: Final = 100


class ActionResult(NamedTuple):
    """The outcome of a single dispatched request.

    ``ok`` only reflects whether the transport completed the exchange. A response
    with any status code, including 4xx and 5xx, is ``ok``.
    """

    ok: bool
    status: int | None
    headers: Mapping[str, str]
    reason: str | None
    body: bytes | None


@dataclass(frozen=True, kw_only=True)
class TransportRequest:
    """A fully assembled request, ready to be sent.

    The path already carries the query string where one applies.
    """

    scheme: str
    host: str
    port: int
    path: str
    method: str
    body: bytes = field(repr=False, default=b"")
    headers: Mapping[str, str] = field(default_factory=dict)
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    keepalive_ms: int = DEFAULT_KEEPALIVE_MS
    pool_size: int = DEFAULT_POOL_SIZE

    @property
    def netloc(self) -> str:
        if DEFAULT_PORTS.get(self.scheme) == self.port:
            return self.host
        return f"{self.host}:{self.port}"

    @property
    def url(self) -> str:
        return f"{self.scheme}://{self.netloc}{self.path}"


class Transport(Protocol):
    """Executes one HTTP request over a pooled connection."""

    async def execute(self, request: TransportRequest) -> ActionResult:
        """Send the request and return its outcome.

        Network failures and timeouts are returned as a result with ``ok`` set to
        False rather than raised.

        :param request: The request to send.
        """
        ...

    async def aclose(self) -> None:
        """Release every pooled connection."""
        ...


class AIOHTTPTransport(Transport):
    """Implementation of :py:class:`Transport` using aiohttp.

    One client session is kept per distinct ``(keepalive_ms, pool_size)`` pair, so
    every service client configured the same way borrows from the same pool.
    """

    def __init__(self) -> None:
        self._sessions: dict[tuple[int, int], aiohttp.ClientSession] = {}
        self._lock = asyncio.Lock()

    async def execute(self, request: TransportRequest) -> ActionResult:
        session = await self._get_session(request.keepalive_ms, request.pool_size)
        timeout = aiohttp.ClientTimeout(total=request.timeout_ms / 1000)
        try:
            async with session.request(
                method=request.method,
                # The path is sent exactly as assembled, without re-quoting.
                url=URL(request.url, encoded=True),
                headers=dict(request.headers),
                data=request.body or None,
                timeout=timeout,
            ) as resp:
                return await self._marshal_response(resp)
        except (aiohttp.ClientError, TimeoutError) as e:
            reason = str(e) or type(e).__name__
            logger.debug(
                "Request %s %s failed: %s", request.method, request.url, reason
            )
            return ActionResult(
                ok=False, status=None, headers={}, reason=reason, body=None
            )

    async def _get_session(
        self, keepalive_ms: int, pool_size: int
    ) -> aiohttp.ClientSession:
        key = (keepalive_ms, pool_size)
        if (session := self._sessions.get(key)) is not None and not session.closed:
            return session
        async with self._lock:
            session = self._sessions.get(key)
            if session is None or session.closed:
                connector = aiohttp.TCPConnector(
                    limit=pool_size,
                    keepalive_timeout=keepalive_ms / 1000,
                )
                session = aiohttp.ClientSession(connector=connector)
                self._sessions[key] = session
                logger.debug(
                    "Created connection pool with keepalive=%sms and size=%s",
                    keepalive_ms,
                    pool_size,
                )
            return session

    async def _marshal_response(self, resp: aiohttp.ClientResponse) -> ActionResult:
        """Convert an ``aiohttp.ClientResponse`` to an :py:class:`ActionResult`."""
        headers: dict[str, str] = {}
        for name, value in resp.headers.items():
            if name in headers:
                headers[name] = f"{headers[name]}, {value}"
            else:
                headers[name] = value
        return ActionResult(
            ok=True,
            status=resp.status,
            headers=headers,
            reason=resp.reason,
            body=await resp.read(),
        )

    async def aclose(self) -> None:
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            await session.close()
