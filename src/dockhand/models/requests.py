"""
Pydantic models for engine request bodies.

Request models serialize with wire names (``by_alias``) and drop fields left
as None, so only what the caller set is sent.

Model Categories:
    - Container Requests: create request and the form-style builder
    - Network Requests: create, connect, disconnect
    - Volume Requests: create
"""

import shlex

from pydantic import BaseModel, ConfigDict, Field


class RequestModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# =============================================================================
# Container Requests
# =============================================================================


class PortBinding(RequestModel):
    host_ip: str | None = Field(default=None, alias="HostIp")
    host_port: str | None = Field(default=None, alias="HostPort")


class HostConfig(RequestModel):
    binds: list[str] | None = Field(default=None, alias="Binds")
    port_bindings: dict[str, list[PortBinding]] | None = Field(
        default=None, alias="PortBindings"
    )


class ContainerCreateRequest(RequestModel):
    """
    Body of a container create call.

    The container name is not part of the body; the engine takes it as the
    ``name`` query parameter.
    """

    image: str = Field(..., alias="Image")
    cmd: list[str] | None = Field(default=None, alias="Cmd")
    env: list[str] | None = Field(default=None, alias="Env")
    labels: dict[str, str] | None = Field(default=None, alias="Labels")
    volumes: dict[str, dict] | None = Field(default=None, alias="Volumes")
    exposed_ports: dict[str, dict] | None = Field(default=None, alias="ExposedPorts")
    host_config: HostConfig | None = Field(default=None, alias="HostConfig")
    name: str | None = Field(default=None, exclude=True)


class CreateContainerConfig(RequestModel):
    """
    Free-text container form, as a settings sheet or CLI collects it.

    Fields:
        name: Optional container name.
        image: Image reference.
        command: Command line, split shell-style.
        environment: One ``KEY=VALUE`` per line.
        ports: One ``host:container[/proto]`` mapping per line.
        start_immediately: Start the container right after creating it.
    """

    name: str = ""
    image: str = ""
    command: str = ""
    environment: str = ""
    ports: str = ""
    start_immediately: bool = True

    def parse_port_bindings(self) -> dict[str, list[PortBinding]]:
        bindings: dict[str, list[PortBinding]] = {}
        for line in self.ports.splitlines():
            parts = [part.strip() for part in line.split(":")]
            if len(parts) != 2 or not all(parts):
                continue
            host_port, container_port = parts
            if "/" not in container_port:
                container_port = f"{container_port}/tcp"
            bindings.setdefault(container_port, []).append(
                PortBinding(host_port=host_port)
            )
        return bindings

    def parse_environment(self) -> list[str]:
        return [line.strip() for line in self.environment.splitlines() if line.strip()]

    def parse_command(self) -> list[str]:
        return shlex.split(self.command)

    def to_create_request(self) -> ContainerCreateRequest:
        """
        Translate the form into a create request.

        Raises:
            ValueError: If the command line has an unclosed quote.
        """
        port_bindings = self.parse_port_bindings()
        env = self.parse_environment()
        cmd = self.parse_command()

        return ContainerCreateRequest(
            image=self.image.strip(),
            cmd=cmd or None,
            env=env or None,
            exposed_ports={port: {} for port in port_bindings} or None,
            host_config=HostConfig(port_bindings=port_bindings or None),
            name=self.name.strip() or None,
        )


# =============================================================================
# Network Requests
# =============================================================================


class IPAMPool(RequestModel):
    subnet: str | None = Field(default=None, alias="Subnet")
    gateway: str | None = Field(default=None, alias="Gateway")


class IPAMRequest(RequestModel):
    driver: str = Field(default="default", alias="Driver")
    config: list[IPAMPool] | None = Field(default=None, alias="Config")


class NetworkCreateRequest(RequestModel):
    name: str = Field(..., alias="Name")
    driver: str = Field(default="bridge", alias="Driver")
    ipam: IPAMRequest | None = Field(default=None, alias="IPAM")
    labels: dict[str, str] | None = Field(default=None, alias="Labels")
    internal: bool | None = Field(default=None, alias="Internal")


class EndpointIPAMConfig(RequestModel):
    ipv4_address: str | None = Field(default=None, alias="IPv4Address")


class EndpointConfig(RequestModel):
    ipam_config: EndpointIPAMConfig | None = Field(default=None, alias="IPAMConfig")


class NetworkConnectRequest(RequestModel):
    container: str = Field(..., alias="Container")
    endpoint_config: EndpointConfig | None = Field(default=None, alias="EndpointConfig")


class NetworkDisconnectRequest(RequestModel):
    container: str = Field(..., alias="Container")
    force: bool = Field(default=False, alias="Force")


# =============================================================================
# Volume Requests
# =============================================================================


class VolumeCreateRequest(RequestModel):
    name: str = Field(..., alias="Name")
    driver: str = Field(default="local", alias="Driver")
    labels: dict[str, str] | None = Field(default=None, alias="Labels")
