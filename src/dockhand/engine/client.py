"""
Engine API client over a Unix socket.

This module provides the EngineClient class, a typed async client for the
container engine's versioned HTTP API.

Features:
    - Container lifecycle (list, inspect, create, start, stop, restart,
      pause, unpause, remove)
    - Image operations (list, inspect, streaming pull, remove)
    - Network operations (list, inspect, create, connect, disconnect, remove)
    - Volume operations (list, inspect, create, remove)
    - System info, version and ping

The class is composed from four mixins:
    - ContainerOpsMixin: Container lifecycle and queries
    - ImageOpsMixin: Image operations and the pull stream
    - NetworkOpsMixin: Network operations
    - VolumeOpsMixin: Volume operations

Every call is exactly one request. Nothing is retried; errors surface as
TransportError, DecodeError or APIError.
"""

import json
from typing import Any, Mapping, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel

from dockhand.config import EngineSettings, config, resolve_socket_path
from dockhand.engine import codec
from dockhand.engine.container_ops import ContainerOpsMixin
from dockhand.engine.exceptions import APIError, DecodeError, api_error_for_status
from dockhand.engine.image_ops import ImageOpsMixin
from dockhand.engine.network_ops import NetworkOpsMixin
from dockhand.engine.transport import TransportResponse, UnixSocketTransport
from dockhand.engine.volume_ops import VolumeOpsMixin
from dockhand.models.resources import EngineVersion, SystemInfo
from dockhand.utils.logger import get_logger

log = get_logger(__name__)

T = TypeVar("T")


def extract_error_message(body: bytes, reason_phrase: str = "") -> str:
    """
    Pull the engine's message out of an error body.

    The engine answers failures with ``{"message": "..."}``; anything else
    is returned as raw text, and an empty body falls back to the HTTP
    reason phrase.
    """
    text = body.decode("utf-8", errors="replace").strip()
    if not text:
        return reason_phrase or "API error"
    try:
        document = json.loads(text)
    except json.JSONDecodeError:
        return text
    if isinstance(document, dict) and isinstance(document.get("message"), str):
        return document["message"]
    return text


# =============================================================================
# EngineClient Class
# =============================================================================


class EngineClient(ContainerOpsMixin, ImageOpsMixin, NetworkOpsMixin, VolumeOpsMixin):
    """
    Typed client for one engine endpoint.

    The endpoint (socket path and API version) is fixed at construction.
    Talking to another socket means building another client.

    Attributes:
        socket_path: Resolved filesystem path of the engine socket.
        api_version: API version used in the path prefix.
        api_base: Path prefix, e.g. ``/v1.47``.
        request_timeout: Read timeout for ordinary calls.
        pull_timeout: Read timeout for the pull stream.
        transport: The underlying UnixSocketTransport.
    """

    def __init__(
        self,
        socket_path: str | None = None,
        *,
        api_version: str | None = None,
        connect_timeout: float | None = None,
        request_timeout: float | None = None,
        pull_timeout: float | None = None,
        max_body_bytes: int | None = None,
        settings: EngineSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        logger=None,
    ):
        """
        Build a client. Unset arguments come from ``settings`` (default: the
        global config).

        Args:
            socket_path: Engine socket; ``unix://`` and ``~`` are accepted.
            api_version: API version for the path prefix.
            connect_timeout: Socket connect timeout in seconds.
            request_timeout: Read/write timeout for ordinary calls.
            pull_timeout: Read timeout for the image pull stream.
            max_body_bytes: Cap on buffered response bodies.
            settings: Settings supplying the defaults.
            transport: Replacement httpx transport (used by tests).
            logger: Logger to use instead of the module logger.
        """
        settings = settings or config
        self._log = logger or log

        self.socket_path = resolve_socket_path(socket_path or settings.SOCKET_PATH)
        self.api_version = api_version or settings.API_VERSION
        self.api_base = f"/v{self.api_version}"
        self.request_timeout = request_timeout or settings.REQUEST_TIMEOUT
        self.pull_timeout = pull_timeout or settings.PULL_TIMEOUT

        self.transport = UnixSocketTransport(
            self.socket_path,
            connect_timeout=connect_timeout or settings.CONNECT_TIMEOUT,
            read_timeout=self.request_timeout,
            max_body_bytes=max_body_bytes or settings.MAX_RESPONSE_BYTES,
            transport=transport,
            logger=self._log,
        )
        self._log.debug(f"Engine client for {self.socket_path} ({self.api_base})")

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def aclose(self) -> None:
        await self.transport.aclose()

    async def __aenter__(self) -> "EngineClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # =========================================================================
    # System Operations
    # =========================================================================

    async def info(self) -> SystemInfo:
        """Get engine-wide system information."""
        return await self._request_json("GET", self._path("info"), SystemInfo)

    async def version(self) -> EngineVersion:
        """Get engine version information."""
        return await self._request_json("GET", self._path("version"), EngineVersion)

    async def ping(self) -> bool:
        """Check that the engine answers. Returns True on ``OK``."""
        response = await self._request("GET", self._path("_ping"))
        return response.text.strip() == "OK"

    # =========================================================================
    # Request Helpers
    # =========================================================================

    def _path(self, *segments: str) -> str:
        """Build a versioned path; each segment is percent-encoded."""
        encoded = "/".join(quote(str(segment), safe="/:") for segment in segments)
        return f"{self.api_base}/{encoded}"

    @staticmethod
    def _query(**params: Any) -> dict[str, str]:
        """
        Render query parameters the way the engine expects them.

        None values are dropped, booleans become ``true``/``false`` and
        mappings or lists are JSON-encoded (used for ``filters``).
        """
        query = {}
        for key, value in params.items():
            if value is None:
                continue
            if isinstance(value, bool):
                query[key] = "true" if value else "false"
            elif isinstance(value, (dict, list)):
                query[key] = json.dumps(value)
            else:
                query[key] = str(value)
        return query

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        body: BaseModel | None = None,
        timeout: float | None = None,
    ) -> TransportResponse:
        """Send one request and raise APIError for a non-2xx status."""
        content = codec.encode(body) if body is not None else None
        response = await self.transport.request(
            method, path, params=params, content=content, timeout=timeout
        )
        if not response.is_success:
            raise self._api_error(
                method, path, response.status_code, response.body, response.reason_phrase
            )
        return response

    async def _request_json(
        self,
        method: str,
        path: str,
        result_type: type[T] | Any,
        **kwargs,
    ) -> T:
        """Send one request and decode the body into ``result_type``."""
        response = await self._request(method, path, **kwargs)
        return self._decode_body(method, path, response, result_type)

    def _decode_body(
        self, method: str, path: str, response: TransportResponse, result_type: Any
    ) -> Any:
        try:
            return codec.decode(response.body, result_type)
        except DecodeError as e:
            self._log.error(f"Decoding error on {method} {path}: {e}")
            self._log.debug(f"Response body: {response.text[:2000]}")
            raise

    async def _request_no_content(self, method: str, path: str, **kwargs) -> None:
        """Send one request whose success carries no useful body."""
        await self._request(method, path, **kwargs)

    def _api_error(
        self,
        method: str,
        path: str,
        status_code: int,
        body: bytes,
        reason_phrase: str = "",
    ) -> APIError:
        message = extract_error_message(body, reason_phrase)
        if status_code >= 500:
            self._log.error(f"HTTP {status_code} on {method} {path}: {message}")
        else:
            self._log.warning(f"HTTP {status_code} on {method} {path}: {message}")
        return api_error_for_status(status_code, message)
