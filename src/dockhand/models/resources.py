"""
Pydantic models for engine resource documents.

Each model maps the engine's PascalCase wire names onto snake_case
attributes through field aliases. Models are immutable, ignore wire fields
they do not declare, and default optional fields to None so an engine that
omits them still decodes.

Model Categories:
    - Containers: list shape and inspect shape
    - Images: list shape, inspect shape, removal report
    - Networks: network, IPAM and attached-endpoint records
    - Volumes: volume and usage records
    - System: engine info and version
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dockhand.models.enums import ContainerState


class WireModel(BaseModel):
    """Base for every decoded engine document."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


def _short_id(value: str) -> str:
    if value.startswith("sha256:"):
        value = value[len("sha256:") :]
    return value[:12]


# =============================================================================
# Container Models
# =============================================================================


class Port(WireModel):
    """One published or exposed container port."""

    ip: str | None = Field(default=None, alias="IP")
    private_port: int = Field(..., alias="PrivatePort")
    public_port: int | None = Field(default=None, alias="PublicPort")
    type: str = Field(..., alias="Type")


class Container(WireModel):
    """A container as returned by the container list."""

    id: str = Field(..., alias="Id")
    names: list[str] = Field(..., alias="Names")
    image: str = Field(..., alias="Image")
    image_id: str = Field(..., alias="ImageID")
    command: str = Field(..., alias="Command")
    created: int = Field(..., alias="Created")
    status: str = Field(..., alias="Status")
    state: ContainerState | None = Field(default=None, alias="State")
    ports: list[Port] | None = Field(default=None, alias="Ports")
    labels: dict[str, str] | None = Field(default=None, alias="Labels")
    size_rw: int | None = Field(default=None, alias="SizeRw")
    size_root_fs: int | None = Field(default=None, alias="SizeRootFs")

    @field_validator("state", mode="before")
    @classmethod
    def _parse_state(cls, value):
        if isinstance(value, str):
            return ContainerState.parse(value)
        return value

    @property
    def display_name(self) -> str:
        if self.names:
            return self.names[0].removeprefix("/")
        return self.id[:12]

    @property
    def short_id(self) -> str:
        return _short_id(self.id)


class ContainerStateDetail(WireModel):
    """Runtime state block of an inspected container."""

    status: ContainerState = Field(..., alias="Status")
    running: bool = Field(default=False, alias="Running")
    paused: bool = Field(default=False, alias="Paused")
    restarting: bool = Field(default=False, alias="Restarting")
    oom_killed: bool = Field(default=False, alias="OOMKilled")
    dead: bool = Field(default=False, alias="Dead")
    pid: int | None = Field(default=None, alias="Pid")
    exit_code: int | None = Field(default=None, alias="ExitCode")
    error: str | None = Field(default=None, alias="Error")
    started_at: str | None = Field(default=None, alias="StartedAt")
    finished_at: str | None = Field(default=None, alias="FinishedAt")

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value):
        if isinstance(value, str):
            return ContainerState.parse(value)
        return value


class ContainerConfig(WireModel):
    """Creation-time configuration of an inspected container."""

    image: str | None = Field(default=None, alias="Image")
    cmd: list[str] | None = Field(default=None, alias="Cmd")
    entrypoint: list[str] | None = Field(default=None, alias="Entrypoint")
    env: list[str] | None = Field(default=None, alias="Env")
    labels: dict[str, str] | None = Field(default=None, alias="Labels")
    exposed_ports: dict[str, dict] | None = Field(default=None, alias="ExposedPorts")
    working_dir: str | None = Field(default=None, alias="WorkingDir")


class ContainerDetail(WireModel):
    """A container as returned by inspect."""

    id: str = Field(..., alias="Id")
    name: str = Field(..., alias="Name")
    created: str = Field(..., alias="Created")
    image: str = Field(..., alias="Image")
    state: ContainerStateDetail | None = Field(default=None, alias="State")
    config: ContainerConfig | None = Field(default=None, alias="Config")
    restart_count: int | None = Field(default=None, alias="RestartCount")
    driver: str | None = Field(default=None, alias="Driver")
    platform: str | None = Field(default=None, alias="Platform")
    mounts: list[dict[str, Any]] | None = Field(default=None, alias="Mounts")
    host_config: dict[str, Any] | None = Field(default=None, alias="HostConfig")
    network_settings: dict[str, Any] | None = Field(
        default=None, alias="NetworkSettings"
    )

    @property
    def display_name(self) -> str:
        return self.name.removeprefix("/") or self.id[:12]


class ContainerCreateResponse(WireModel):
    """Reply to a container create call."""

    id: str = Field(..., alias="Id")
    warnings: list[str] | None = Field(default=None, alias="Warnings")


# =============================================================================
# Image Models
# =============================================================================


class Image(WireModel):
    """An image as returned by the image list."""

    id: str = Field(..., alias="Id")
    parent_id: str = Field(..., alias="ParentId")
    repo_tags: list[str] | None = Field(default=None, alias="RepoTags")
    repo_digests: list[str] | None = Field(default=None, alias="RepoDigests")
    created: int = Field(..., alias="Created")
    size: int = Field(..., alias="Size")
    shared_size: int = Field(..., alias="SharedSize")
    labels: dict[str, str] | None = Field(default=None, alias="Labels")
    containers: int = Field(..., alias="Containers")

    @property
    def display_name(self) -> str:
        if self.repo_tags and self.repo_tags[0] != "<none>:<none>":
            return self.repo_tags[0]
        return self.short_id

    @property
    def short_id(self) -> str:
        return _short_id(self.id)


class ImageDetail(WireModel):
    """An image as returned by inspect."""

    id: str = Field(..., alias="Id")
    repo_tags: list[str] | None = Field(default=None, alias="RepoTags")
    repo_digests: list[str] | None = Field(default=None, alias="RepoDigests")
    parent: str | None = Field(default=None, alias="Parent")
    comment: str | None = Field(default=None, alias="Comment")
    created: str | None = Field(default=None, alias="Created")
    author: str | None = Field(default=None, alias="Author")
    architecture: str | None = Field(default=None, alias="Architecture")
    os: str | None = Field(default=None, alias="Os")
    size: int | None = Field(default=None, alias="Size")
    config: ContainerConfig | None = Field(default=None, alias="Config")

    @property
    def short_id(self) -> str:
        return _short_id(self.id)


class ImageDeleteItem(WireModel):
    """One entry of an image removal report."""

    untagged: str | None = Field(default=None, alias="Untagged")
    deleted: str | None = Field(default=None, alias="Deleted")


# =============================================================================
# Network Models
# =============================================================================


class IPAMConfig(WireModel):
    subnet: str | None = Field(default=None, alias="Subnet")
    gateway: str | None = Field(default=None, alias="Gateway")
    ip_range: str | None = Field(default=None, alias="IPRange")


class IPAM(WireModel):
    driver: str | None = Field(default=None, alias="Driver")
    config: list[IPAMConfig] | None = Field(default=None, alias="Config")
    options: dict[str, str] | None = Field(default=None, alias="Options")


class NetworkContainer(WireModel):
    """A container endpoint attached to a network."""

    name: str | None = Field(default=None, alias="Name")
    endpoint_id: str = Field(..., alias="EndpointID")
    mac_address: str | None = Field(default=None, alias="MacAddress")
    ipv4_address: str | None = Field(default=None, alias="IPv4Address")
    ipv6_address: str | None = Field(default=None, alias="IPv6Address")


class Network(WireModel):
    """A network, same shape for list and inspect."""

    id: str = Field(..., alias="Id")
    name: str = Field(..., alias="Name")
    driver: str | None = Field(default=None, alias="Driver")
    scope: str = Field(..., alias="Scope")
    ipam: IPAM | None = Field(default=None, alias="IPAM")
    containers: dict[str, NetworkContainer] | None = Field(
        default=None, alias="Containers"
    )
    options: dict[str, str] | None = Field(default=None, alias="Options")
    labels: dict[str, str] | None = Field(default=None, alias="Labels")
    internal: bool | None = Field(default=None, alias="Internal")
    attachable: bool | None = Field(default=None, alias="Attachable")
    enable_ipv6: bool | None = Field(default=None, alias="EnableIPv6")
    created: str | None = Field(default=None, alias="Created")

    @property
    def short_id(self) -> str:
        return self.id[:12]


class NetworkCreateResponse(WireModel):
    id: str = Field(..., alias="Id")
    warning: str | None = Field(default=None, alias="Warning")


# =============================================================================
# Volume Models
# =============================================================================


class VolumeUsage(WireModel):
    size: int = Field(..., alias="Size")
    ref_count: int = Field(..., alias="RefCount")


class Volume(WireModel):
    """A volume. Volumes are identified by name."""

    name: str = Field(..., alias="Name")
    driver: str = Field(..., alias="Driver")
    mountpoint: str = Field(..., alias="Mountpoint")
    created_at: str | None = Field(default=None, alias="CreatedAt")
    status: dict[str, Any] | None = Field(default=None, alias="Status")
    labels: dict[str, str] | None = Field(default=None, alias="Labels")
    scope: str = Field(..., alias="Scope")
    options: dict[str, str] | None = Field(default=None, alias="Options")
    usage_data: VolumeUsage | None = Field(default=None, alias="UsageData")

    @property
    def id(self) -> str:
        return self.name


class VolumeListResponse(WireModel):
    volumes: list[Volume] | None = Field(default=None, alias="Volumes")
    warnings: list[str] | None = Field(default=None, alias="Warnings")


# =============================================================================
# System Models
# =============================================================================


class IndexConfig(WireModel):
    name: str = Field(..., alias="Name")
    mirrors: list[str] | None = Field(default=None, alias="Mirrors")
    secure: bool = Field(default=True, alias="Secure")
    official: bool = Field(default=False, alias="Official")


class RegistryConfig(WireModel):
    insecure_registry_cidrs: list[str] | None = Field(
        default=None, alias="InsecureRegistryCIDRs"
    )
    index_configs: dict[str, IndexConfig] | None = Field(
        default=None, alias="IndexConfigs"
    )
    mirrors: list[str] | None = Field(default=None, alias="Mirrors")


class Runtime(WireModel):
    path: str | None = Field(default=None, alias="path")
    runtime_args: list[str] | None = Field(default=None, alias="runtimeArgs")


class Commit(WireModel):
    id: str = Field(..., alias="ID")
    expected: str | None = Field(default=None, alias="Expected")


class SwarmInfo(WireModel):
    node_id: str | None = Field(default=None, alias="NodeID")
    node_addr: str | None = Field(default=None, alias="NodeAddr")
    local_node_state: str = Field(..., alias="LocalNodeState")
    control_available: bool | None = Field(default=None, alias="ControlAvailable")
    error: str | None = Field(default=None, alias="Error")
    nodes: int | None = Field(default=None, alias="Nodes")
    managers: int | None = Field(default=None, alias="Managers")
    # Cluster spec is large and only meaningful on managers; kept raw
    cluster: dict[str, Any] | None = Field(default=None, alias="Cluster")


class SystemInfo(WireModel):
    """Engine-wide information returned by the info endpoint."""

    id: str = Field(..., alias="ID")
    containers: int = Field(..., alias="Containers")
    containers_running: int = Field(..., alias="ContainersRunning")
    containers_paused: int = Field(..., alias="ContainersPaused")
    containers_stopped: int = Field(..., alias="ContainersStopped")
    images: int = Field(..., alias="Images")
    name: str = Field(..., alias="Name")
    server_version: str = Field(..., alias="ServerVersion")
    operating_system: str = Field(..., alias="OperatingSystem")
    os_type: str = Field(..., alias="OSType")
    architecture: str = Field(..., alias="Architecture")
    ncpu: int = Field(..., alias="NCPU")
    mem_total: int = Field(..., alias="MemTotal")

    driver: str | None = Field(default=None, alias="Driver")
    kernel_version: str | None = Field(default=None, alias="KernelVersion")
    os_version: str | None = Field(default=None, alias="OSVersion")
    memory_limit: bool | None = Field(default=None, alias="MemoryLimit")
    swap_limit: bool | None = Field(default=None, alias="SwapLimit")
    cpu_cfs_period: bool | None = Field(default=None, alias="CpuCfsPeriod")
    cpu_cfs_quota: bool | None = Field(default=None, alias="CpuCfsQuota")
    cpu_shares: bool | None = Field(default=None, alias="CPUShares")
    cpu_set: bool | None = Field(default=None, alias="CPUSet")
    pids_limit: bool | None = Field(default=None, alias="PidsLimit")
    oom_kill_disable: bool | None = Field(default=None, alias="OomKillDisable")
    ipv4_forwarding: bool | None = Field(default=None, alias="IPv4Forwarding")
    debug: bool | None = Field(default=None, alias="Debug")
    nfd: int | None = Field(default=None, alias="NFd")
    n_goroutines: int | None = Field(default=None, alias="NGoroutines")
    system_time: str | None = Field(default=None, alias="SystemTime")
    logging_driver: str | None = Field(default=None, alias="LoggingDriver")
    cgroup_driver: str | None = Field(default=None, alias="CgroupDriver")
    cgroup_version: str | None = Field(default=None, alias="CgroupVersion")
    n_events_listener: int | None = Field(default=None, alias="NEventsListener")
    index_server_address: str | None = Field(default=None, alias="IndexServerAddress")
    registry_config: RegistryConfig | None = Field(default=None, alias="RegistryConfig")
    docker_root_dir: str | None = Field(default=None, alias="DockerRootDir")
    http_proxy: str | None = Field(default=None, alias="HttpProxy")
    https_proxy: str | None = Field(default=None, alias="HttpsProxy")
    no_proxy: str | None = Field(default=None, alias="NoProxy")
    labels: list[str] | None = Field(default=None, alias="Labels")
    experimental_build: bool | None = Field(default=None, alias="ExperimentalBuild")
    runtimes: dict[str, Runtime] | None = Field(default=None, alias="Runtimes")
    default_runtime: str | None = Field(default=None, alias="DefaultRuntime")
    swarm: SwarmInfo | None = Field(default=None, alias="Swarm")
    live_restore_enabled: bool | None = Field(default=None, alias="LiveRestoreEnabled")
    isolation: str | None = Field(default=None, alias="Isolation")
    init_binary: str | None = Field(default=None, alias="InitBinary")
    containerd_commit: Commit | None = Field(default=None, alias="ContainerdCommit")
    runc_commit: Commit | None = Field(default=None, alias="RuncCommit")
    init_commit: Commit | None = Field(default=None, alias="InitCommit")
    security_options: list[str] | None = Field(default=None, alias="SecurityOptions")
    warnings: list[str] | None = Field(default=None, alias="Warnings")


class EngineVersion(WireModel):
    """Engine build information returned by the version endpoint."""

    version: str = Field(..., alias="Version")
    api_version: str = Field(..., alias="ApiVersion")
    min_api_version: str | None = Field(default=None, alias="MinAPIVersion")
    git_commit: str | None = Field(default=None, alias="GitCommit")
    go_version: str | None = Field(default=None, alias="GoVersion")
    os: str | None = Field(default=None, alias="Os")
    arch: str | None = Field(default=None, alias="Arch")
    kernel_version: str | None = Field(default=None, alias="KernelVersion")
