import json

import httpx
import pytest

from dockhand.engine.client import EngineClient

SOCKET = "/tmp/dockhand test/docker.sock"


class ChunkStream(httpx.AsyncByteStream):
    """Response body delivered in fixed chunks; records whether it was closed."""

    def __init__(self, chunks, error: Exception | None = None):
        self.chunks = chunks
        self.error = error
        self.closed = False

    async def __aiter__(self):
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error

    async def aclose(self):
        self.closed = True


def json_response(status_code: int, document) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(document).encode())


def make_client(handler, **kwargs) -> EngineClient:
    return EngineClient(
        SOCKET,
        api_version="1.47",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


@pytest.fixture
def system_info_doc():
    return {
        "ID": "7TRN:IPZB:QYBB",
        "Containers": 3,
        "ContainersRunning": 1,
        "ContainersPaused": 0,
        "ContainersStopped": 2,
        "Images": 5,
        "Name": "docker-desktop",
        "ServerVersion": "27.3.1",
        "OperatingSystem": "Docker Desktop",
        "OSType": "linux",
        "Architecture": "aarch64",
        "NCPU": 8,
        "MemTotal": 8218923008,
        "Driver": "overlay2",
        "Swarm": {"LocalNodeState": "inactive"},
        "SomethingNew": {"nested": True},
    }


@pytest.fixture
def container_doc():
    return {
        "Id": "4fa6e0f0c6786287e131c3852c58a2e01cc697a68231826813597e4994f1d6e2",
        "Names": ["/web"],
        "Image": "nginx:latest",
        "ImageID": "sha256:9c7a54a9a43cca047013b82af109fe963fde787f63f9e016fdc3384500c2823d",
        "Command": "nginx -g 'daemon off;'",
        "Created": 1700000000,
        "Status": "Up 2 minutes",
        "State": "running",
        "Ports": [{"IP": "0.0.0.0", "PrivatePort": 80, "PublicPort": 8080, "Type": "tcp"}],
        "Labels": {"com.example.team": "web"},
    }


@pytest.fixture
def image_doc():
    return {
        "Id": "sha256:9c7a54a9a43cca047013b82af109fe963fde787f63f9e016fdc3384500c2823d",
        "ParentId": "",
        "RepoTags": ["nginx:latest"],
        "RepoDigests": None,
        "Created": 1699000000,
        "Size": 187654321,
        "SharedSize": -1,
        "Labels": None,
        "Containers": -1,
    }


@pytest.fixture
def network_doc():
    return {
        "Id": "7d86d31b1478e7cca9ebed7e73aa0fdeec46c5ca29497431d3007d2d9e15ed99",
        "Name": "backend",
        "Driver": "bridge",
        "Scope": "local",
        "IPAM": {"Driver": "default", "Config": [{"Subnet": "172.20.0.0/16"}]},
        "Containers": {
            "4fa6e0f0c678": {"Name": "web", "EndpointID": "ep1", "IPv4Address": "172.20.0.2/16"}
        },
        "Internal": False,
    }


@pytest.fixture
def volume_doc():
    return {
        "Name": "pgdata",
        "Driver": "local",
        "Mountpoint": "/var/lib/docker/volumes/pgdata/_data",
        "Scope": "local",
        "Labels": None,
    }
