import asyncio

import pytest

from dockhand.config import EngineSettings
from dockhand.engine.exceptions import (
    APIError,
    EncodeError,
    EngineError,
    NotConnectedError,
    NotFoundError,
    PullError,
    TransportError,
    TransportErrorKind,
)
from dockhand.models.enums import ConnectionState
from dockhand.models.progress import PullProgressEvent
from dockhand.models.requests import CreateContainerConfig
from dockhand.models.resources import (
    Container,
    ContainerCreateResponse,
    Image,
    Network,
    SystemInfo,
    Volume,
)
from dockhand.state.context import EngineContext


class FakeEngineClient:
    """
    In-memory engine. Missing resources raise NotFoundError; ``failures``
    maps a method name to the exception it should raise.
    """

    def __init__(self, socket_path="/tmp/fake.sock", settings=None, logger=None, *, docs=None):
        self.socket_path = socket_path
        self.docs = docs or {}
        self.containers = {}
        self.images = {}
        self.networks = {}
        self.volumes = {}
        self.pull_events = []
        self.failures = {}
        self.calls = []
        self.closed = False

    def _call(self, name, *args):
        self.calls.append((name, *args))
        if name in self.failures:
            raise self.failures[name]

    async def aclose(self):
        self.closed = True

    async def info(self):
        self._call("info")
        return SystemInfo.model_validate(self.docs["info"])

    async def list_containers(self, all=True):
        self._call("list_containers")
        return list(self.containers.values())

    async def list_images(self):
        self._call("list_images")
        return list(self.images.values())

    async def list_networks(self):
        self._call("list_networks")
        return list(self.networks.values())

    async def list_volumes(self):
        self._call("list_volumes")
        return list(self.volumes.values())

    async def create_container(self, request, name=None):
        self._call("create_container", request.image, name)
        doc = dict(self.docs["container"], Id=f"id-{name}", Names=[f"/{name}"], State="created")
        self.containers[doc["Id"]] = Container.model_validate(doc)
        return ContainerCreateResponse(id=doc["Id"])

    async def start_container(self, id):
        self._call("start_container", id)
        if id not in self.containers:
            raise NotFoundError(404, f"No such container: {id}")
        doc = self.containers[id].model_dump(by_alias=True)
        doc["State"] = "running"
        self.containers[id] = Container.model_validate(doc)

    async def stop_container(self, id, timeout=10):
        self._call("stop_container", id, timeout)

    async def restart_container(self, id, timeout=10):
        self._call("restart_container", id, timeout)

    async def pause_container(self, id):
        self._call("pause_container", id)

    async def unpause_container(self, id):
        self._call("unpause_container", id)

    async def remove_image(self, id, force=False):
        self._call("remove_image", id, force)
        if self.images.pop(id, None) is None:
            raise NotFoundError(404, f"No such image: {id}")
        return []

    async def connect_container_to_network(self, network_id, container_id, ipv4_address=None):
        self._call("connect_container_to_network", network_id, container_id, ipv4_address)

    async def disconnect_container_from_network(self, network_id, container_id, force=False):
        self._call("disconnect_container_from_network", network_id, container_id, force)

    async def remove_container(self, id, force=False, remove_volumes=False):
        self._call("remove_container", id, force, remove_volumes)
        if self.containers.pop(id, None) is None:
            raise NotFoundError(404, f"No such container: {id}")

    async def pull_image(self, name):
        self._call("pull_image", name)
        for event in self.pull_events:
            if isinstance(event, Exception):
                raise event
            yield event
        self.images[name] = Image.model_validate(dict(self.docs["image"], RepoTags=[name]))

    async def create_network(self, name, driver="bridge", subnet=None, gateway=None, labels=None, internal=False):
        self._call("create_network", name, subnet)
        self.networks[name] = Network.model_validate(dict(self.docs["network"], Id=name, Name=name))
        return name

    async def remove_volume(self, name, force=False):
        self._call("remove_volume", name)
        if self.volumes.pop(name, None) is None:
            raise NotFoundError(404, f"get {name}: no such volume")

    async def create_volume(self, name, driver="local", labels=None):
        self._call("create_volume", name)
        volume = Volume.model_validate(dict(self.docs["volume"], Name=name))
        self.volumes[name] = volume
        return volume


@pytest.fixture
def docs(system_info_doc, container_doc, image_doc, network_doc, volume_doc):
    return {
        "info": system_info_doc,
        "container": container_doc,
        "image": image_doc,
        "network": network_doc,
        "volume": volume_doc,
    }


@pytest.fixture
def fake(docs):
    return FakeEngineClient(docs=docs)


@pytest.fixture
def settings():
    return EngineSettings(SOCKET_PATH="/tmp/fake.sock", STOP_TIMEOUT=7)


@pytest.fixture
def context(fake, settings):
    return EngineContext(fake, settings=settings)


@pytest.fixture
async def connected(context):
    await context.connect()
    return context


def ev(status, id=None, current=None, total=None):
    data = {"status": status}
    if id:
        data["id"] = id
    if total is not None:
        data["progressDetail"] = {"current": current, "total": total}
    return PullProgressEvent.model_validate(data)


# =============================================================================
# Connection
# =============================================================================


async def test_connect_reads_system_info(context):
    seen = []
    context.subscribe(seen.append)

    await context.connect()

    assert context.is_connected
    assert context.info.name == "docker-desktop"
    assert context.system_info.loaded
    assert "connection_state" in seen
    assert context.version == len(seen)


async def test_connect_failure_records_error(context, fake):
    fake.failures["info"] = TransportError(TransportErrorKind.CONNECT, "no such file")

    with pytest.raises(TransportError):
        await context.connect()

    assert context.connection_state is ConnectionState.DISCONNECTED
    assert context.connection_error is fake.failures["info"]
    assert context.last_error is fake.failures["info"]
    assert not context.system_info.is_loading


async def test_loads_are_noops_while_disconnected(context, fake):
    await context.load_containers()
    assert fake.calls == []
    assert not context.containers.loaded


async def test_mutations_require_connection(context, fake):
    with pytest.raises(NotConnectedError):
        await context.remove_volume("pgdata")
    assert fake.calls == []


async def test_reconnect_builds_new_client(docs, settings):
    built = []

    def factory(socket_path, settings=None, logger=None):
        client = FakeEngineClient(socket_path, settings, logger, docs=docs)
        built.append(client)
        return client

    context = EngineContext(settings=settings, client_factory=factory)
    await context.connect()
    first = context.client

    await context.reconnect("unix://~/engine.sock")

    assert first.closed
    assert context.client is built[-1]
    assert context.client is not first
    assert context.socket_path.endswith("/engine.sock")
    assert not context.socket_path.startswith("unix://")
    assert context.is_connected


async def test_close_disconnects(connected, fake):
    await connected.close()
    assert fake.closed
    assert connected.connection_state is ConnectionState.DISCONNECTED


# =============================================================================
# Loads
# =============================================================================


async def test_refresh_all_survives_one_failed_load(connected, fake, docs):
    fake.images["nginx"] = Image.model_validate(docs["image"])
    fake.volumes["pgdata"] = Volume.model_validate(docs["volume"])
    fake.networks["backend"] = Network.model_validate(docs["network"])
    fake.failures["list_containers"] = APIError(500, "daemon busy")

    with pytest.raises(APIError):
        await connected.refresh_all()

    assert connected.containers.error is fake.failures["list_containers"]
    assert not connected.containers.loaded
    assert len(connected.images) == 1
    assert len(connected.volumes) == 1
    assert len(connected.networks) == 1
    assert connected.images.error is None
    assert not any(c.is_loading for c in connected.collections)


async def test_successful_load_clears_error(connected, fake):
    fake.failures["list_volumes"] = APIError(500, "daemon busy")
    with pytest.raises(APIError):
        await connected.load_volumes()
    assert connected.volumes.error is not None

    del fake.failures["list_volumes"]
    await connected.load_volumes()
    assert connected.volumes.error is None
    assert connected.volumes.loaded


# =============================================================================
# Mutations
# =============================================================================


async def test_create_container_from_form_starts_and_reloads(connected, fake):
    form = CreateContainerConfig(name="web", image="nginx", ports="8080:80")

    response = await connected.create_container(form)

    assert response.id == "id-web"
    assert ("start_container", "id-web") in fake.calls
    assert fake.calls[-1] == ("list_containers",)
    assert connected.containers.items[0].state.value == "running"


async def test_create_container_without_start(connected, fake):
    form = CreateContainerConfig(name="web", image="nginx", start_immediately=False)
    await connected.create_container(form)
    assert not any(call[0] == "start_container" for call in fake.calls)


async def test_stop_uses_configured_timeout(connected, fake):
    await connected.stop_container("web")
    assert ("stop_container", "web", 7) in fake.calls


async def test_remove_missing_volume_is_an_error(connected, fake):
    with pytest.raises(NotFoundError):
        await connected.remove_volume("ghost")

    assert isinstance(connected.last_error, NotFoundError)
    assert ("list_volumes",) not in fake.calls


async def test_remove_volume_reloads(connected, fake, docs):
    fake.volumes["pgdata"] = Volume.model_validate(docs["volume"])
    await connected.load_volumes()
    assert len(connected.volumes) == 1

    await connected.remove_volume("pgdata")
    assert len(connected.volumes) == 0


async def test_loading_flag_spans_mutation_and_reload(connected, fake):
    states = []
    connected.subscribe(
        lambda field: states.append(connected.networks.is_loading) if field == "networks" else None
    )

    await connected.create_network("backend", subnet="10.0.0.0/24")

    assert states[0] is True
    assert states[-1] is False
    assert states.count(False) == 1
    assert len(connected.networks) == 1


async def test_create_volume_reloads(connected):
    volume = await connected.create_volume("cache")
    assert volume.name == "cache"
    assert [v.name for v in connected.volumes] == ["cache"]


# =============================================================================
# Pulls
# =============================================================================


async def test_pull_image_tracks_progress(connected, fake):
    fake.pull_events = [
        ev("Pulling from library/alpine"),
        ev("Downloading", "A", 5, 10),
        ev("Pull complete", "A"),
        ev("Already exists", "B"),
    ]
    seen = []

    def on_progress(snapshot):
        seen.append(snapshot.overall_progress)
        assert "alpine" in connected.pulls

    final = await connected.pull_image("alpine", on_progress=on_progress)

    assert seen == [0.0, 0.5, 1.0, 1.0]
    assert final.overall_progress == 1.0
    assert final.completed_count == 2
    assert connected.pulls == {}
    assert [image.repo_tags for image in connected.images] == [["alpine"]]


async def test_pull_image_error_clears_aggregate(connected, fake):
    fake.pull_events = [ev("Downloading", "A", 1, 10), PullError("nope", "manifest unknown")]

    with pytest.raises(PullError):
        await connected.pull_image("nope")

    assert connected.pulls == {}
    assert isinstance(connected.last_error, PullError)
    assert not connected.images.loaded


async def test_unsubscribe_stops_notifications(connected):
    seen = []
    unsubscribe = connected.subscribe(seen.append)
    unsubscribe()
    await connected.load_containers()
    assert seen == []


async def test_concurrent_pulls_of_same_image_share_the_slot(connected, fake):
    first_waiting = asyncio.Event()
    release_first = asyncio.Event()
    started = []

    async def pull(name):
        started.append(name)
        is_first = len(started) == 1
        yield ev("Downloading", "A", 1, 10)
        if is_first:
            first_waiting.set()
            await release_first.wait()
        yield ev("Pull complete", "A")

    fake.pull_image = pull

    first = asyncio.create_task(connected.pull_image("alpine"))
    await first_waiting.wait()
    await connected.pull_image("alpine")

    assert "alpine" in connected.pulls

    release_first.set()
    await first
    assert connected.pulls == {}


# =============================================================================
# Partial failures
# =============================================================================


async def test_failed_start_after_create_still_reloads(connected, fake):
    fake.failures["start_container"] = APIError(500, "port is already allocated")
    form = CreateContainerConfig(name="web", image="nginx", ports="8080:80")

    with pytest.raises(APIError):
        await connected.create_container(form)

    assert [c.id for c in connected.containers] == list(fake.containers)
    assert connected.containers.items[0].state.value == "created"
    assert connected.last_error is fake.failures["start_container"]
    assert not connected.containers.is_loading


async def test_unbalanced_quote_in_form_is_encode_error(connected, fake):
    form = CreateContainerConfig(name="web", image="nginx", command='sh -c "echo hi')

    with pytest.raises(EngineError) as exc_info:
        await connected.create_container(form)

    assert isinstance(exc_info.value, EncodeError)
    assert isinstance(exc_info.value.__cause__, ValueError)
    assert connected.last_error is exc_info.value
    assert not any(call[0] == "create_container" for call in fake.calls)


# =============================================================================
# Reload wiring
# =============================================================================


@pytest.mark.parametrize(
    "operation, args, client_call, reload_call",
    [
        ("restart_container", ("web",), ("restart_container", "web", 7), ("list_containers",)),
        ("pause_container", ("web",), ("pause_container", "web"), ("list_containers",)),
        ("unpause_container", ("web",), ("unpause_container", "web"), ("list_containers",)),
        (
            "connect_network",
            ("backend", "web"),
            ("connect_container_to_network", "backend", "web", None),
            ("list_networks",),
        ),
        (
            "disconnect_network",
            ("backend", "web"),
            ("disconnect_container_from_network", "backend", "web", False),
            ("list_networks",),
        ),
    ],
)
async def test_mutation_calls_client_then_reloads(connected, fake, operation, args, client_call, reload_call):
    await getattr(connected, operation)(*args)
    assert fake.calls[-2:] == [client_call, reload_call]


async def test_remove_image_reloads(connected, fake, docs):
    fake.images["nginx:latest"] = Image.model_validate(docs["image"])
    await connected.load_images()
    assert len(connected.images) == 1

    await connected.remove_image("nginx:latest", force=True)

    assert fake.calls[-2:] == [("remove_image", "nginx:latest", True), ("list_images",)]
    assert len(connected.images) == 0


async def test_refresh_all_connects_only_when_disconnected(context, fake):
    await context.refresh_all()

    assert context.is_connected
    assert [c for c in fake.calls if c == ("info",)] == [("info",), ("info",)]

    fake.calls.clear()
    await context.refresh_all()

    assert sorted(fake.calls) == [
        ("info",),
        ("list_containers",),
        ("list_images",),
        ("list_networks",),
        ("list_volumes",),
    ]
