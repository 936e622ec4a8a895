"""
HTTP transfer client.

All network I/O goes through a single ``aiohttp.ClientSession`` managed via
async-context-manager protocol (``async with TransferClient() as client: ...``).
Transport errors never escape raw: they are classified into a
:class:`NetworkFault` so the benchmarks above can decide what to retry.
This layer itself never retries.
"""
from __future__ import annotations

import asyncio
import errno
import logging
import time
from contextlib import AsyncExitStack, asynccontextmanager
from enum import Enum
from typing import AsyncIterator, Callable, Optional

import aiohttp

from .config import TransferConfig
from .constants import (
    CHUNK_SIZE,
    COMMON_HEADERS,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_REQUEST_TIMEOUT,
)

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Faults
# ---------------------------------------------------------------------------

class FaultKind(Enum):
    TIMEOUT = "timeout"
    CONNECT_FAILURE = "connect_failure"
    RESET_OR_MID_STREAM = "reset_or_mid_stream"
    OTHER = "other"


class NetworkFault(Exception):
    """A classified transport failure."""

    def __init__(self, kind: FaultKind, message: str = "") -> None:
        super().__init__(message or kind.value)
        self.kind = kind

    @property
    def is_timeout(self) -> bool:
        return self.kind is FaultKind.TIMEOUT


_RESET_ERRNOS = {errno.ECONNRESET, errno.EPIPE, errno.ECONNABORTED}

# Everything aiohttp (or the socket below it) may raise during a request.
_TRANSPORT_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, OSError)


def classify_fault(exc: BaseException) -> NetworkFault:
    """Map an aiohttp / asyncio / OS exception onto a :class:`NetworkFault`."""
    if isinstance(exc, NetworkFault):
        return exc

    # ServerTimeoutError is also a ClientConnectionError; test timeouts first.
    if isinstance(exc, (asyncio.TimeoutError, aiohttp.ServerTimeoutError)):
        kind = FaultKind.TIMEOUT
    elif isinstance(exc, aiohttp.ClientConnectorError):
        kind = FaultKind.CONNECT_FAILURE
    elif isinstance(
        exc,
        (aiohttp.ClientPayloadError, aiohttp.ServerDisconnectedError, ConnectionResetError),
    ):
        kind = FaultKind.RESET_OR_MID_STREAM
    elif isinstance(exc, OSError) and exc.errno in _RESET_ERRNOS:
        kind = FaultKind.RESET_OR_MID_STREAM
    elif isinstance(exc, ConnectionRefusedError):
        kind = FaultKind.CONNECT_FAILURE
    else:
        kind = FaultKind.OTHER

    message = str(exc) or type(exc).__name__
    return NetworkFault(kind, message)


# ---------------------------------------------------------------------------
# Streaming response
# ---------------------------------------------------------------------------

class StreamingResponse:
    """Body of an established GET, readable chunk by chunk."""

    def __init__(self, response: aiohttp.ClientResponse, chunk_size: int = CHUNK_SIZE) -> None:
        self._response = response
        self._chunk_size = chunk_size

    @property
    def status(self) -> int:
        return self._response.status

    @property
    def total_size(self) -> Optional[int]:
        """``Content-Length`` if the server sent one."""
        return self._response.content_length

    async def iter_chunks(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._response.content.iter_chunked(self._chunk_size):
                yield chunk
        except _TRANSPORT_ERRORS as exc:
            raise classify_fault(exc) from exc


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class TransferClient:
    """Async context-manager issuing the HEAD / GET / POST requests."""

    def __init__(
        self,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        chunk_size: int = CHUNK_SIZE,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.timeout = aiohttp.ClientTimeout(total=request_timeout, connect=connect_timeout)
        self.chunk_size = chunk_size
        self._clock = clock
        self._session: Optional[aiohttp.ClientSession] = None

    # -- Context manager ----------------------------------------------------

    async def __aenter__(self) -> TransferClient:
        self._session = aiohttp.ClientSession(headers=COMMON_HEADERS, timeout=self.timeout)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._session:
            await self._session.close()
            self._session = None

    # -- Internal helpers ---------------------------------------------------

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise RuntimeError(
                "TransferClient must be used as an async context manager "
                "(async with TransferClient() as client: ...)"
            )
        return self._session

    @staticmethod
    def _request_timeout(config: Optional[TransferConfig]) -> Optional[aiohttp.ClientTimeout]:
        if config is None:
            return None
        return aiohttp.ClientTimeout(total=config.request_timeout, connect=config.connect_timeout)

    # -- Public methods -----------------------------------------------------

    async def head(self, url: str) -> float:
        """Issue a HEAD request and return seconds until headers arrived."""
        session = self._ensure_session()
        start = self._clock()
        try:
            async with session.head(url, allow_redirects=True) as resp:
                elapsed = self._clock() - start
                log.debug("HEAD %s -> %s in %.3f s", url, resp.status, elapsed)
        except _TRANSPORT_ERRORS as exc:
            raise classify_fault(exc) from exc
        return elapsed

    @asynccontextmanager
    async def get_streaming(
        self,
        url: str,
        config: Optional[TransferConfig] = None,
    ) -> AsyncIterator[StreamingResponse]:
        """Open a GET and yield its body as a :class:`StreamingResponse`.

        Faults raised while opening surface from the ``async with`` line;
        faults raised while reading surface from ``iter_chunks()``.
        """
        session = self._ensure_session()
        kwargs = {"headers": {"Accept-Encoding": "identity"}}
        timeout = self._request_timeout(config)
        if timeout is not None:
            kwargs["timeout"] = timeout

        async with AsyncExitStack() as stack:
            try:
                resp = await stack.enter_async_context(session.get(url, **kwargs))
            except _TRANSPORT_ERRORS as exc:
                raise classify_fault(exc) from exc

            log.debug("GET %s -> %s (content-length=%s)", url, resp.status, resp.content_length)
            if resp.status >= 400:
                raise NetworkFault(FaultKind.OTHER, f"HTTP {resp.status} {resp.reason} for {url}")
            yield StreamingResponse(resp, self.chunk_size)

    async def post_body(
        self,
        url: str,
        payload: bytes,
        config: Optional[TransferConfig] = None,
    ) -> int:
        """POST *payload* as the raw body, drain the response, return drained bytes."""
        session = self._ensure_session()
        kwargs = {"data": payload, "headers": {"Content-Type": "application/octet-stream"}}
        timeout = self._request_timeout(config)
        if timeout is not None:
            kwargs["timeout"] = timeout

        drained = 0
        try:
            async with session.post(url, **kwargs) as resp:
                async for chunk in resp.content.iter_any():
                    drained += len(chunk)
                log.debug("POST %s (%d bytes) -> %s, drained %d", url, len(payload), resp.status, drained)
        except _TRANSPORT_ERRORS as exc:
            raise classify_fault(exc) from exc
        return drained
