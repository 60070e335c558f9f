"""Engine client exception classes."""

from enum import Enum


class EngineError(Exception):
    """Base exception for engine operations."""

    pass


# =============================================================================
# Connectivity
# =============================================================================


class TransportErrorKind(str, Enum):
    CONNECT = "connect"
    TIMEOUT = "timeout"
    RESET = "reset"
    OVERSIZE = "oversize"


class TransportError(EngineError):
    """The engine socket could not be reached or the exchange broke off."""

    def __init__(self, kind: TransportErrorKind, message: str):
        self.kind = kind
        self.message = message
        super().__init__(f"Cannot reach the engine ({kind.value}): {message}")


class NotConnectedError(EngineError):
    """A mutating operation was issued before a successful connect()."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Not connected to the engine, cannot {operation}")


# =============================================================================
# Serialization
# =============================================================================


class DecodeError(EngineError):
    """A response document did not match the expected type."""

    def __init__(self, field: str, expected_type: str, raw: str):
        self.field = field
        self.expected_type = expected_type
        self.raw = raw
        super().__init__(
            f"Unexpected response: field '{field}' expected {expected_type}, got {raw}"
        )


class EncodeError(EngineError):
    """A request body failed to serialize."""

    pass


# =============================================================================
# Engine Rejections
# =============================================================================


class APIError(EngineError):
    """The engine understood the request and rejected it."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"Engine error {status_code}: {message}")


class NotFoundError(APIError):
    """The addressed container, image, network or volume does not exist."""

    pass


class ConflictError(APIError):
    """The request conflicts with the resource's current state."""

    pass


class PullError(APIError):
    """The engine reported an error record inside a pull stream."""

    def __init__(self, image: str, message: str, status_code: int = 200):
        self.image = image
        super().__init__(status_code, message)


def api_error_for_status(status_code: int, message: str) -> APIError:
    """Build the most specific APIError for a status code."""
    if status_code == 404:
        return NotFoundError(status_code, message)
    if status_code == 409:
        return ConflictError(status_code, message)
    return APIError(status_code, message)
