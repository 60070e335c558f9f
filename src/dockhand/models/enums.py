"""
Enumeration types for dockhand.

This module defines the enumerations shared by the engine client, the
pull-progress aggregator and the orchestration state.
"""

from enum import Enum


# =============================================================================
# Resource Enums
# =============================================================================


class ContainerState(str, Enum):
    """
    Container lifecycle state as reported by the engine.

    The engine reports the state as a lowercase string. Strings this
    enum does not know map to UNKNOWN instead of failing the decode.
    """

    CREATED = "created"
    RUNNING = "running"
    PAUSED = "paused"
    RESTARTING = "restarting"
    REMOVING = "removing"
    EXITED = "exited"
    DEAD = "dead"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str) -> "ContainerState":
        try:
            return cls(value.lower())
        except ValueError:
            return cls.UNKNOWN


# =============================================================================
# Pull Progress Enums
# =============================================================================


class LayerState(str, Enum):
    """
    Display state of one image layer during a pull.

    Derived from the layer's latest status text:
        - EXISTING: layer was already present locally
        - COMPLETE: layer finished downloading or extracting
        - DOWNLOADING: bytes are being transferred
        - EXTRACTING: layer is being unpacked
        - WAITING: anything else (queued, verifying, ...)
    """

    WAITING = "waiting"
    DOWNLOADING = "downloading"
    EXTRACTING = "extracting"
    COMPLETE = "complete"
    EXISTING = "existing"


# =============================================================================
# Connection Enums
# =============================================================================


class ConnectionState(str, Enum):
    """
    Connection status of an EngineContext.

    State transitions:
        DISCONNECTED -> CONNECTING -> CONNECTED
        CONNECTING -> DISCONNECTED (connection error recorded)
    """

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class SocketPreset(str, Enum):
    """Well-known engine socket locations."""

    DOCKER_DESKTOP = "docker_desktop"
    COLIMA = "colima"
    PODMAN = "podman"
    CUSTOM = "custom"

    @property
    def default_path(self) -> str:
        return _PRESET_PATHS[self]

    @property
    def display_name(self) -> str:
        return _PRESET_NAMES[self]

    @property
    def description(self) -> str:
        if self is SocketPreset.CUSTOM:
            return "Specify a custom engine socket path"
        return f"Default {self.display_name} socket path"


_PRESET_PATHS = {
    SocketPreset.DOCKER_DESKTOP: "/var/run/docker.sock",
    SocketPreset.COLIMA: "~/.colima/default/docker.sock",
    SocketPreset.PODMAN: "~/.local/share/containers/podman/machine/podman-machine-default/podman.sock",
    SocketPreset.CUSTOM: "",
}

_PRESET_NAMES = {
    SocketPreset.DOCKER_DESKTOP: "Docker Desktop",
    SocketPreset.COLIMA: "Colima",
    SocketPreset.PODMAN: "Podman",
    SocketPreset.CUSTOM: "Custom",
}


# =============================================================================
# Configuration Enums
# =============================================================================


class LogLevel(str, Enum):
    """
    Logging verbosity levels for dockhand.

    Levels (from most to least verbose):
        - FULL: Trace output including every decoded stream record
        - DEBUG: Debug messages and above
        - INFO: Informational messages and above
        - WARNING: Only warnings and errors
    """

    FULL = "full"
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
