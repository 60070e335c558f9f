"""
Engine API client for dockhand.

Provides typed access to a container engine over its Unix socket:
- Containers, images, networks and volumes
- Streaming image pulls
- System info, version and ping
"""

from dockhand.engine.client import EngineClient, extract_error_message
from dockhand.engine.exceptions import (
    APIError,
    ConflictError,
    DecodeError,
    EncodeError,
    EngineError,
    NotConnectedError,
    NotFoundError,
    PullError,
    TransportError,
    TransportErrorKind,
)
from dockhand.engine.image_ops import split_image_reference
from dockhand.engine.stream import NDJSONDecoder, iter_ndjson
from dockhand.engine.transport import UnixSocketTransport

__all__ = [
    # Client
    "EngineClient",
    "UnixSocketTransport",
    "extract_error_message",
    "split_image_reference",
    # Streaming
    "NDJSONDecoder",
    "iter_ndjson",
    # Exceptions
    "EngineError",
    "TransportError",
    "TransportErrorKind",
    "DecodeError",
    "EncodeError",
    "APIError",
    "NotFoundError",
    "ConflictError",
    "PullError",
    "NotConnectedError",
]
