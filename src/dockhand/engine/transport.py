"""
HTTP/1.1 transport over the engine's Unix domain socket.

The engine listens on a filesystem socket rather than a TCP host, so the
connection is opened with httpx's ``uds`` transport and requests are sent to
the synthetic base URL ``http://localhost`` (which also supplies the Host
header). The socket path itself never becomes part of a URL, so paths
containing spaces, tildes or other URL-hostile characters need no escaping.

Responses are available two ways:
    - request(): fully buffered, capped at ``max_body_bytes``
    - stream(): an async context manager exposing the body incrementally

httpx failures are translated into TransportError. Nothing here retries.
"""

from contextlib import asynccontextmanager, contextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Mapping

import httpx

from dockhand.engine.exceptions import TransportError, TransportErrorKind
from dockhand.utils.logger import get_logger

log = get_logger(__name__)

BASE_URL = "http://localhost"


# =============================================================================
# Response Types
# =============================================================================


@dataclass(frozen=True)
class TransportResponse:
    """A fully buffered response."""

    status_code: int
    reason_phrase: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


class StreamResponse:
    """
    A response whose body is consumed incrementally.

    Only valid inside the ``UnixSocketTransport.stream()`` block that
    produced it.
    """

    def __init__(self, response: httpx.Response, max_body_bytes: int, translate):
        self._response = response
        self._max_body_bytes = max_body_bytes
        self._translate = translate

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def reason_phrase(self) -> str:
        return self._response.reason_phrase

    @property
    def headers(self) -> Mapping[str, str]:
        return self._response.headers

    @property
    def is_success(self) -> bool:
        return self._response.is_success

    async def aiter_bytes(self) -> AsyncIterator[bytes]:
        """Yield body chunks as they arrive from the socket."""
        with self._translate():
            async for chunk in self._response.aiter_bytes():
                yield chunk

    async def aread(self) -> bytes:
        """
        Read the remaining body into memory.

        Raises:
            TransportError: OVERSIZE if the body exceeds the buffer cap.
        """
        buffer = bytearray()
        async for chunk in self.aiter_bytes():
            buffer.extend(chunk)
            if len(buffer) > self._max_body_bytes:
                raise TransportError(
                    TransportErrorKind.OVERSIZE,
                    f"response body exceeds {self._max_body_bytes} bytes",
                )
        return bytes(buffer)


# =============================================================================
# Transport
# =============================================================================


class UnixSocketTransport:
    """
    Speaks HTTP/1.1 to a Unix domain socket.

    Attributes:
        socket_path: Filesystem path of the socket.
        connect_timeout: Seconds allowed to open the socket.
        read_timeout: Default read/write timeout for a call.
        max_body_bytes: Cap applied to buffered bodies.
    """

    def __init__(
        self,
        socket_path: str,
        *,
        connect_timeout: float = 5.0,
        read_timeout: float = 10.0,
        max_body_bytes: int = 8 * 1024 * 1024,
        transport: httpx.AsyncBaseTransport | None = None,
        logger=None,
    ):
        """
        Args:
            socket_path: Socket to connect to.
            connect_timeout: Connect timeout in seconds.
            read_timeout: Default read/write timeout in seconds.
            max_body_bytes: Largest body request() will buffer.
            transport: Replacement httpx transport (used by tests).
            logger: Logger to use instead of the module logger.
        """
        self.socket_path = socket_path
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout
        self.max_body_bytes = max_body_bytes
        self._log = logger or log

        if transport is None:
            transport = httpx.AsyncHTTPTransport(uds=socket_path)
        self._client = httpx.AsyncClient(
            transport=transport,
            base_url=BASE_URL,
            timeout=self._timeout_for(None),
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "UnixSocketTransport":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    # =========================================================================
    # Requests
    # =========================================================================

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        content: bytes | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> TransportResponse:
        """
        Send a request and buffer the whole response body.

        Raises:
            TransportError: On connect failure, timeout, dropped connection
                or an oversized body.
        """
        async with self.stream(
            method,
            path,
            params=params,
            content=content,
            headers=headers,
            timeout=timeout,
        ) as response:
            body = await response.aread()
            return TransportResponse(
                status_code=response.status_code,
                reason_phrase=response.reason_phrase,
                headers=dict(response.headers),
                body=body,
            )

    @asynccontextmanager
    async def stream(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        content: bytes | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> AsyncIterator[StreamResponse]:
        """
        Send a request and expose the response body as a stream.

        The response is closed when the block exits, including when the
        consumer stops early.
        """
        request_headers = {"Content-Type": "application/json"} if content else {}
        if headers:
            request_headers.update(headers)

        with self._translate_errors(method, path):
            async with self._client.stream(
                method,
                path,
                params=params,
                content=content,
                headers=request_headers,
                timeout=self._timeout_for(timeout),
            ) as response:
                self._log.debug(f"{method} {path} -> {response.status_code}")
                yield StreamResponse(
                    response, self.max_body_bytes, self._translate_errors
                )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _timeout_for(self, read_timeout: float | None) -> httpx.Timeout:
        read = self.read_timeout if read_timeout is None else read_timeout
        return httpx.Timeout(read, connect=self.connect_timeout)

    @contextmanager
    def _translate_errors(self, method: str = "", path: str = ""):
        target = f"{method} {path}".strip() or self.socket_path
        try:
            yield
        except httpx.TimeoutException as e:
            self._log.warning(f"Timeout on {target} via {self.socket_path}: {e}")
            raise TransportError(TransportErrorKind.TIMEOUT, str(e) or "timed out") from e
        except httpx.ConnectError as e:
            self._log.warning(f"Cannot connect to {self.socket_path}: {e}")
            raise TransportError(TransportErrorKind.CONNECT, str(e) or "connect failed") from e
        except httpx.TransportError as e:
            self._log.warning(f"Connection reset on {target}: {e}")
            raise TransportError(TransportErrorKind.RESET, str(e) or "connection reset") from e
