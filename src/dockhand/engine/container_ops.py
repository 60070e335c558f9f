"""
Container operations mixin for EngineClient.

This module provides the ContainerOpsMixin class with methods for:
    - Container listing and inspection
    - Container creation
    - Container lifecycle (start, stop, restart, pause, unpause, remove)
"""

from dockhand.models.requests import ContainerCreateRequest
from dockhand.models.resources import (
    Container,
    ContainerCreateResponse,
    ContainerDetail,
)


class ContainerOpsMixin:
    """
    Mixin providing container operations.

    Expects the request helpers of ``EngineClient`` (``_path``, ``_query``,
    ``_request_json``, ``_request_no_content``).
    """

    # =========================================================================
    # Queries
    # =========================================================================

    async def list_containers(
        self, all: bool = True, filters: dict[str, list[str]] | None = None
    ) -> list[Container]:
        """
        List containers in engine order.

        Args:
            all: Include stopped containers.
            filters: Engine filters, e.g. ``{"name": ["web"]}``.
        """
        return await self._request_json(
            "GET",
            self._path("containers", "json"),
            list[Container],
            params=self._query(all=all, filters=filters),
        )

    async def inspect_container(self, id: str) -> ContainerDetail:
        """
        Get detailed information about a container.

        Raises:
            NotFoundError: If no container has this id or name.
        """
        return await self._request_json(
            "GET", self._path("containers", id, "json"), ContainerDetail
        )

    # =========================================================================
    # Creation
    # =========================================================================

    async def create_container(
        self, request: ContainerCreateRequest, name: str | None = None
    ) -> ContainerCreateResponse:
        """
        Create a container without starting it.

        Args:
            request: Create request body.
            name: Container name; falls back to ``request.name``.

        Returns:
            The new container's id and any engine warnings.
        """
        response = await self._request_json(
            "POST",
            self._path("containers", "create"),
            ContainerCreateResponse,
            params=self._query(name=name or request.name),
            body=request,
        )
        if response.warnings:
            self._log.warning(
                f"Container {response.id[:12]} created with warnings: "
                f"{', '.join(response.warnings)}"
            )
        return response

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start_container(self, id: str) -> None:
        await self._request_no_content("POST", self._path("containers", id, "start"))

    async def stop_container(self, id: str, timeout: int = 10) -> None:
        """
        Stop a container.

        Args:
            id: Container id or name.
            timeout: Seconds the engine waits before killing the container.
        """
        await self._request_no_content(
            "POST",
            self._path("containers", id, "stop"),
            params=self._query(t=timeout),
            timeout=self.request_timeout + timeout,
        )

    async def restart_container(self, id: str, timeout: int = 10) -> None:
        """
        Restart a container.

        Args:
            id: Container id or name.
            timeout: Seconds the engine waits before killing the container.
        """
        await self._request_no_content(
            "POST",
            self._path("containers", id, "restart"),
            params=self._query(t=timeout),
            timeout=self.request_timeout + timeout,
        )

    async def pause_container(self, id: str) -> None:
        await self._request_no_content("POST", self._path("containers", id, "pause"))

    async def unpause_container(self, id: str) -> None:
        await self._request_no_content("POST", self._path("containers", id, "unpause"))

    async def remove_container(
        self, id: str, force: bool = False, remove_volumes: bool = False
    ) -> None:
        """
        Remove a container.

        Args:
            id: Container id or name.
            force: Kill the container first if it is running.
            remove_volumes: Also remove anonymous volumes.

        Raises:
            ConflictError: If the container is running and ``force`` is False.
        """
        await self._request_no_content(
            "DELETE",
            self._path("containers", id),
            params=self._query(force=force, v=remove_volumes),
        )
