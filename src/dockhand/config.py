"""
Engine connection configuration for dockhand.

This module defines the configuration dataclass for the engine client and
the orchestration state, providing a centralized place for socket location,
API version, timeouts and logging options.

Configuration can be modified at runtime by importing the global config
instance and updating its attributes before building a client.

Usage:
    from dockhand.config import config

    config.SOCKET_PATH = "~/.colima/default/docker.sock"
    config.PULL_TIMEOUT = 600.0
"""

import os
from dataclasses import dataclass, field

from dockhand.models.enums import LogLevel, SocketPreset
from dockhand.utils.logger import configure_logging

DEFAULT_SOCKET_PATH = SocketPreset.DOCKER_DESKTOP.default_path
DEFAULT_API_VERSION = "1.47"


# =============================================================================
# Socket Path Helpers
# =============================================================================


def resolve_socket_path(path: str) -> str:
    """
    Normalize a user-supplied socket path.

    Strips a ``unix://`` scheme and expands a leading ``~``. The result is a
    plain filesystem path; it may contain spaces or other characters that
    would need escaping inside a URL.
    """
    if path.startswith("unix://"):
        path = path[len("unix://") :]
    return os.path.expanduser(path)


def detect_socket_path() -> str:
    """
    Find the engine socket to talk to.

    Order:
        1. ``DOCKER_HOST`` when it uses the unix scheme
        2. The first preset socket that exists on disk
        3. The Docker default path
    """
    docker_host = os.environ.get("DOCKER_HOST", "")
    if docker_host.startswith("unix://"):
        return resolve_socket_path(docker_host)

    for preset in SocketPreset:
        if preset is SocketPreset.CUSTOM:
            continue
        candidate = resolve_socket_path(preset.default_path)
        if os.path.exists(candidate):
            return candidate

    return DEFAULT_SOCKET_PATH


# =============================================================================
# Configuration Dataclass
# =============================================================================


@dataclass
class EngineSettings:
    """
    Engine client configuration.

    Attributes:
        SOCKET_PATH: Filesystem path of the engine's Unix socket.
        API_VERSION: Engine API version used as the path prefix.
        CONNECT_TIMEOUT: Seconds allowed to open the socket.
        REQUEST_TIMEOUT: Read/write timeout for ordinary calls.
        PULL_TIMEOUT: Read timeout for the streaming image pull.
        MAX_RESPONSE_BYTES: Cap on a buffered response body.
        STOP_TIMEOUT: Grace period passed to stop/restart when unspecified.
        LOG_LEVEL: Logging verbosity level.
        LOG_FILE: Optional log file path.
    """

    # -------------------------------------------------------------------------
    # Endpoint Configuration
    # -------------------------------------------------------------------------

    SOCKET_PATH: str = DEFAULT_SOCKET_PATH
    API_VERSION: str = DEFAULT_API_VERSION

    # -------------------------------------------------------------------------
    # Timing Configuration
    # -------------------------------------------------------------------------

    CONNECT_TIMEOUT: float = 5.0
    REQUEST_TIMEOUT: float = 10.0
    # Pulls of large images legitimately run for minutes
    PULL_TIMEOUT: float = 300.0
    STOP_TIMEOUT: int = 10

    # -------------------------------------------------------------------------
    # Transport Limits
    # -------------------------------------------------------------------------

    MAX_RESPONSE_BYTES: int = 8 * 1024 * 1024

    # -------------------------------------------------------------------------
    # Logging Configuration
    # -------------------------------------------------------------------------

    LOG_LEVEL: LogLevel = LogLevel.INFO
    LOG_FILE: str = ""

    # Named socket locations offered to a settings UI
    PRESETS: dict[str, str] = field(
        default_factory=lambda: {
            preset.value: preset.default_path
            for preset in SocketPreset
            if preset is not SocketPreset.CUSTOM
        }
    )

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def get_socket_path(self) -> str:
        """Get the resolved socket path (``unix://`` stripped, ``~`` expanded)."""
        return resolve_socket_path(self.SOCKET_PATH)

    def get_api_prefix(self) -> str:
        """Get the versioned path prefix, e.g. ``/v1.47``."""
        return f"/v{self.API_VERSION}"

    def setup_logging(self) -> None:
        """Install the loguru sinks described by LOG_LEVEL and LOG_FILE."""
        configure_logging(self.LOG_LEVEL, self.LOG_FILE or None)

    @classmethod
    def from_env(cls) -> "EngineSettings":
        """
        Build settings from ``DOCKHAND_*`` environment variables.

        Unset variables keep their defaults. Without ``DOCKHAND_SOCKET`` the
        socket is auto-detected.
        """
        settings = cls()
        settings.SOCKET_PATH = os.environ.get("DOCKHAND_SOCKET") or detect_socket_path()
        settings.API_VERSION = os.environ.get("DOCKHAND_API_VERSION", settings.API_VERSION)

        for attr, env_name in (
            ("CONNECT_TIMEOUT", "DOCKHAND_CONNECT_TIMEOUT"),
            ("REQUEST_TIMEOUT", "DOCKHAND_REQUEST_TIMEOUT"),
            ("PULL_TIMEOUT", "DOCKHAND_PULL_TIMEOUT"),
        ):
            value = os.environ.get(env_name)
            if value:
                setattr(settings, attr, float(value))

        log_level = os.environ.get("DOCKHAND_LOG_LEVEL")
        if log_level:
            settings.LOG_LEVEL = LogLevel(log_level.lower())
        settings.LOG_FILE = os.environ.get("DOCKHAND_LOG_FILE", settings.LOG_FILE)
        return settings


# =============================================================================
# Global Instance
# =============================================================================

# Global config instance - modify before building a client
config = EngineSettings()
