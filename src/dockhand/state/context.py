"""
Engine orchestration state.

EngineContext is the single owner of what the application knows about one
engine endpoint: the connection status, the last-known resource collections,
in-flight image pulls and the most recent error. It is driven from the
asyncio event loop; every state change happens in a coroutine on that loop,
so nothing here is locked.

Change notification:
    Presentation code calls ``subscribe(callback)``. The callback receives
    the name of the field that changed (``"containers"``, ``"pulls"``,
    ``"connection_state"``, ...). ``version`` increments on every change so
    pollers can compare a number instead of subscribing.

Loads and mutations:
    - Loads are a no-op while disconnected.
    - Mutations raise NotConnectedError while disconnected.
    - A successful mutation re-runs the load of the affected collection.
    - Errors are recorded (collection error and ``last_error``), logged and
      re-raised.
"""

import asyncio
from contextlib import aclosing
from typing import Awaitable, Callable

from dockhand.config import EngineSettings, config, resolve_socket_path
from dockhand.engine.client import EngineClient
from dockhand.engine.exceptions import EncodeError, EngineError, NotConnectedError
from dockhand.models.enums import ConnectionState
from dockhand.models.requests import ContainerCreateRequest, CreateContainerConfig
from dockhand.models.resources import (
    Container,
    ContainerCreateResponse,
    Image,
    ImageDeleteItem,
    Network,
    SystemInfo,
    Volume,
)
from dockhand.state.collection import Collection
from dockhand.state.pull_progress import PullAggregate, PullSnapshot, reduce_pull_event
from dockhand.utils.logger import get_logger

log = get_logger(__name__)

ChangeCallback = Callable[[str], None]


class EngineContext:
    """
    Connection, collections and pulls for one engine endpoint.

    Args:
        client: Client to use. Built from ``client_factory`` when omitted.
        socket_path: Engine socket; defaults to the settings' socket.
        settings: Settings for timeouts and defaults (global config if None).
        client_factory: Callable building a client from
            ``(socket_path, settings=..., logger=...)``; used again by
            ``reconnect``.
        logger: Logger to use instead of the module logger.
    """

    def __init__(
        self,
        client=None,
        *,
        socket_path: str | None = None,
        settings: EngineSettings | None = None,
        client_factory: Callable[..., EngineClient] = EngineClient,
        logger=None,
    ):
        self.settings = settings or config
        self._log = logger or log
        self._client_factory = client_factory
        self._listeners: list[ChangeCallback] = []
        self.version = 0

        self.socket_path = resolve_socket_path(
            socket_path or self.settings.get_socket_path()
        )
        self.client = client if client is not None else self._build_client()

        self.connection_state = ConnectionState.DISCONNECTED
        self.connection_error: Exception | None = None
        self.last_error: Exception | None = None

        self.system_info: Collection[SystemInfo] = Collection("system_info", self._changed)
        self.containers: Collection[Container] = Collection("containers", self._changed)
        self.images: Collection[Image] = Collection("images", self._changed)
        self.networks: Collection[Network] = Collection("networks", self._changed)
        self.volumes: Collection[Volume] = Collection("volumes", self._changed)

        self.pulls: dict[str, PullAggregate] = {}
        self._active_pulls: dict[str, int] = {}

    # =========================================================================
    # Observation
    # =========================================================================

    def subscribe(self, callback: ChangeCallback) -> Callable[[], None]:
        """Register a change listener. Returns a function that removes it."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _changed(self, field: str) -> None:
        self.version += 1
        for callback in list(self._listeners):
            try:
                callback(field)
            except Exception as e:
                self._log.exception(f"Change listener failed for {field}: {e}")

    @property
    def is_connected(self) -> bool:
        return self.connection_state == ConnectionState.CONNECTED

    @property
    def info(self) -> SystemInfo | None:
        return self.system_info.items[0] if self.system_info.items else None

    @property
    def collections(self) -> tuple[Collection, ...]:
        return (self.system_info, self.containers, self.images, self.networks, self.volumes)

    def pull_snapshots(self) -> dict[str, PullSnapshot]:
        return {name: aggregate.snapshot() for name, aggregate in self.pulls.items()}

    # =========================================================================
    # Connection
    # =========================================================================

    def _build_client(self):
        return self._client_factory(
            self.socket_path, settings=self.settings, logger=self._log
        )

    def _set_connection(self, state: ConnectionState, error: Exception | None = None) -> None:
        self.connection_state = state
        self.connection_error = error
        self._changed("connection_state")

    async def connect(self) -> None:
        """
        Connect by reading system information.

        Raises:
            EngineError: If the engine cannot be reached; the state returns
                to DISCONNECTED with ``connection_error`` set.
        """
        self._log.info(f"Connecting to engine at {self.socket_path}")
        self._set_connection(ConnectionState.CONNECTING)
        with self.system_info.loading():
            try:
                info = await self.client.info()
            except EngineError as e:
                self.system_info.fail(e)
                self._set_connection(ConnectionState.DISCONNECTED, e)
                self._record_error(f"connect to {self.socket_path}", e)
                raise
        self.system_info.replace([info])
        self._set_connection(ConnectionState.CONNECTED)
        self._log.info(
            f"Connected to {info.name} (engine {info.server_version}, {info.operating_system})"
        )

    async def reconnect(self, socket_path: str | None = None) -> None:
        """Discard the current client, build one for ``socket_path`` and connect."""
        old_client = self.client
        await old_client.aclose()

        self.socket_path = resolve_socket_path(socket_path or self.socket_path)
        self.client = self._build_client()
        for collection in self.collections:
            collection.clear()
        self.pulls.clear()
        self._active_pulls.clear()
        self._set_connection(ConnectionState.DISCONNECTED)

        await self.connect()

    async def close(self) -> None:
        await self.client.aclose()
        if self.connection_state != ConnectionState.DISCONNECTED:
            self._set_connection(ConnectionState.DISCONNECTED)

    async def __aenter__(self) -> "EngineContext":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # =========================================================================
    # Loads
    # =========================================================================

    async def _load(
        self, collection: Collection, fetch: Callable[[], Awaitable[list]]
    ) -> None:
        if not self.is_connected:
            return
        with collection.loading():
            try:
                items = await fetch()
            except EngineError as e:
                collection.fail(e)
                self._record_error(f"load {collection.name}", e)
                raise
            collection.replace(items)

    async def load_system_info(self) -> None:
        async def fetch():
            return [await self.client.info()]

        await self._load(self.system_info, fetch)

    async def load_containers(self) -> None:
        await self._load(self.containers, lambda: self.client.list_containers(all=True))

    async def load_images(self) -> None:
        await self._load(self.images, self.client.list_images)

    async def load_networks(self) -> None:
        await self._load(self.networks, self.client.list_networks)

    async def load_volumes(self) -> None:
        await self._load(self.volumes, self.client.list_volumes)

    async def refresh_all(self) -> None:
        """
        Connect if needed, then reload every collection concurrently.

        A failing load leaves its siblings untouched: they complete and
        replace their own collections. The first failure is re-raised once
        all loads have finished.
        """
        if not self.is_connected:
            await self.connect()

        results = await asyncio.gather(
            self.load_system_info(),
            self.load_containers(),
            self.load_images(),
            self.load_networks(),
            self.load_volumes(),
            return_exceptions=True,
        )
        errors = [result for result in results if isinstance(result, BaseException)]
        if errors:
            self._log.warning(f"Refresh finished with {len(errors)} failed load(s)")
            raise errors[0]

    # =========================================================================
    # Mutations
    # =========================================================================

    def _require_connection(self, operation: str) -> None:
        if not self.is_connected:
            raise NotConnectedError(operation)

    def _record_error(self, operation: str, error: Exception) -> None:
        self.last_error = error
        self._changed("last_error")
        self._log.error(f"Failed to {operation}: {error}")

    async def _mutate(
        self,
        operation: str,
        call: Callable[[], Awaitable],
        collection: Collection,
        reload: Callable[[], Awaitable[None]],
    ):
        """Run one client call, then reload ``collection`` on success."""
        self._require_connection(operation)
        with collection.loading():
            try:
                result = await call()
            except EngineError as e:
                self._record_error(operation, e)
                raise
            await reload()
        return result

    # -------------------------------------------------------------------------
    # Containers
    # -------------------------------------------------------------------------

    async def create_container(
        self,
        config_or_request: CreateContainerConfig | ContainerCreateRequest,
        name: str | None = None,
    ) -> ContainerCreateResponse:
        """
        Create a container, starting it when the form asks for it.

        If the container is created but fails to start, containers are
        reloaded before the start error is raised.

        Args:
            config_or_request: A create form or a ready create request.
            name: Container name overriding the one in the form or request.

        Raises:
            EncodeError: If the form's command line cannot be split.
        """
        if isinstance(config_or_request, CreateContainerConfig):
            image = config_or_request.image.strip()
            start = config_or_request.start_immediately
        else:
            image = config_or_request.image
            start = False

        async def call():
            request = self._create_request(config_or_request)
            container_name = name or request.name
            response = await self.client.create_container(request, name=container_name)
            self._log.info(
                f"Created container {container_name or response.id[:12]} from {image}"
            )
            if start:
                try:
                    await self.client.start_container(response.id)
                except EngineError:
                    await self._reload_after_failure(self.load_containers)
                    raise
            return response

        return await self._mutate(
            f"create container from {image}", call, self.containers, self.load_containers
        )

    @staticmethod
    def _create_request(
        config_or_request: CreateContainerConfig | ContainerCreateRequest,
    ) -> ContainerCreateRequest:
        if not isinstance(config_or_request, CreateContainerConfig):
            return config_or_request
        try:
            return config_or_request.to_create_request()
        except ValueError as e:
            raise EncodeError(f"Invalid container form: {e}") from e

    async def _reload_after_failure(self, reload: Callable[[], Awaitable[None]]) -> None:
        """Resync after a partly applied action. Load errors are recorded by the load itself."""
        try:
            await reload()
        except EngineError as e:
            self._log.warning(f"Reload after failed action also failed: {e}")

    async def start_container(self, id: str) -> None:
        await self._mutate(
            f"start container {id}",
            lambda: self.client.start_container(id),
            self.containers,
            self.load_containers,
        )

    async def stop_container(self, id: str, timeout: int | None = None) -> None:
        if timeout is None:
            timeout = self.settings.STOP_TIMEOUT
        await self._mutate(
            f"stop container {id}",
            lambda: self.client.stop_container(id, timeout=timeout),
            self.containers,
            self.load_containers,
        )

    async def restart_container(self, id: str, timeout: int | None = None) -> None:
        if timeout is None:
            timeout = self.settings.STOP_TIMEOUT
        await self._mutate(
            f"restart container {id}",
            lambda: self.client.restart_container(id, timeout=timeout),
            self.containers,
            self.load_containers,
        )

    async def pause_container(self, id: str) -> None:
        await self._mutate(
            f"pause container {id}",
            lambda: self.client.pause_container(id),
            self.containers,
            self.load_containers,
        )

    async def unpause_container(self, id: str) -> None:
        await self._mutate(
            f"unpause container {id}",
            lambda: self.client.unpause_container(id),
            self.containers,
            self.load_containers,
        )

    async def remove_container(
        self, id: str, force: bool = False, remove_volumes: bool = False
    ) -> None:
        await self._mutate(
            f"remove container {id}",
            lambda: self.client.remove_container(
                id, force=force, remove_volumes=remove_volumes
            ),
            self.containers,
            self.load_containers,
        )

    # -------------------------------------------------------------------------
    # Images
    # -------------------------------------------------------------------------

    async def pull_image(
        self,
        name: str,
        on_progress: Callable[[PullSnapshot], None] | None = None,
    ) -> PullSnapshot:
        """
        Pull an image while tracking per-layer progress in ``pulls``.

        The aggregate for ``name`` exists while any pull of that reference is
        still streaming; concurrent pulls of one reference share the slot.
        Images are reloaded after a successful pull.

        Args:
            name: Image reference.
            on_progress: Called with a fresh snapshot after every record.

        Returns:
            The snapshot at the end of the stream.
        """
        self._require_connection(f"pull image {name}")
        aggregate = PullAggregate()
        self.pulls[name] = aggregate
        self._active_pulls[name] = self._active_pulls.get(name, 0) + 1
        self._changed("pulls")

        try:
            async with aclosing(self.client.pull_image(name)) as events:
                async for event in events:
                    aggregate = reduce_pull_event(aggregate, event)
                    self.pulls[name] = aggregate
                    self._changed("pulls")
                    if on_progress is not None:
                        on_progress(aggregate.snapshot())
        except EngineError as e:
            self._record_error(f"pull image {name}", e)
            raise
        finally:
            remaining = self._active_pulls.get(name, 1) - 1
            if remaining > 0:
                self._active_pulls[name] = remaining
            else:
                self._active_pulls.pop(name, None)
                self.pulls.pop(name, None)
            self._changed("pulls")

        self._log.info(f"Pulled image {name}")
        await self.load_images()
        return aggregate.snapshot()

    async def remove_image(self, id: str, force: bool = False) -> list[ImageDeleteItem]:
        return await self._mutate(
            f"remove image {id}",
            lambda: self.client.remove_image(id, force=force),
            self.images,
            self.load_images,
        )

    # -------------------------------------------------------------------------
    # Networks
    # -------------------------------------------------------------------------

    async def create_network(
        self,
        name: str,
        driver: str = "bridge",
        subnet: str | None = None,
        gateway: str | None = None,
        labels: dict[str, str] | None = None,
        internal: bool = False,
    ) -> str:
        return await self._mutate(
            f"create network {name}",
            lambda: self.client.create_network(
                name,
                driver=driver,
                subnet=subnet,
                gateway=gateway,
                labels=labels,
                internal=internal,
            ),
            self.networks,
            self.load_networks,
        )

    async def connect_network(
        self, network_id: str, container_id: str, ipv4_address: str | None = None
    ) -> None:
        await self._mutate(
            f"connect container {container_id} to network {network_id}",
            lambda: self.client.connect_container_to_network(
                network_id, container_id, ipv4_address=ipv4_address
            ),
            self.networks,
            self.load_networks,
        )

    async def disconnect_network(
        self, network_id: str, container_id: str, force: bool = False
    ) -> None:
        await self._mutate(
            f"disconnect container {container_id} from network {network_id}",
            lambda: self.client.disconnect_container_from_network(
                network_id, container_id, force=force
            ),
            self.networks,
            self.load_networks,
        )

    async def remove_network(self, id: str) -> None:
        await self._mutate(
            f"remove network {id}",
            lambda: self.client.remove_network(id),
            self.networks,
            self.load_networks,
        )

    # -------------------------------------------------------------------------
    # Volumes
    # -------------------------------------------------------------------------

    async def create_volume(
        self,
        name: str,
        driver: str = "local",
        labels: dict[str, str] | None = None,
    ) -> Volume:
        return await self._mutate(
            f"create volume {name}",
            lambda: self.client.create_volume(name, driver=driver, labels=labels),
            self.volumes,
            self.load_volumes,
        )

    async def remove_volume(self, name: str, force: bool = False) -> None:
        await self._mutate(
            f"remove volume {name}",
            lambda: self.client.remove_volume(name, force=force),
            self.volumes,
            self.load_volumes,
        )
