"""
Volume operations mixin for EngineClient.

This module provides the VolumeOpsMixin class with methods for:
    - Volume listing and inspection
    - Volume creation and removal
"""

from dockhand.models.requests import VolumeCreateRequest
from dockhand.models.resources import Volume, VolumeListResponse


class VolumeOpsMixin:
    """
    Mixin providing volume operations.

    Expects the request helpers of ``EngineClient``.
    """

    async def list_volumes(
        self, filters: dict[str, list[str]] | None = None
    ) -> list[Volume]:
        """
        List volumes.

        The engine wraps the list as ``{"Volumes": [...], "Warnings": [...]}``
        and sends ``null`` when there are none.
        """
        response = await self._request_json(
            "GET",
            self._path("volumes"),
            VolumeListResponse,
            params=self._query(filters=filters),
        )
        for warning in response.warnings or []:
            self._log.warning(f"Volume listing: {warning}")
        return list(response.volumes or [])

    async def inspect_volume(self, name: str) -> Volume:
        """
        Get detailed information about a volume.

        Raises:
            NotFoundError: If no volume has this name.
        """
        return await self._request_json("GET", self._path("volumes", name), Volume)

    async def create_volume(
        self,
        name: str,
        driver: str = "local",
        labels: dict[str, str] | None = None,
    ) -> Volume:
        request = VolumeCreateRequest(name=name, driver=driver, labels=labels or None)
        return await self._request_json(
            "POST", self._path("volumes", "create"), Volume, body=request
        )

    async def remove_volume(self, name: str, force: bool = False) -> None:
        """
        Remove a volume.

        Raises:
            ConflictError: If a container still uses the volume.
        """
        await self._request_no_content(
            "DELETE", self._path("volumes", name), params=self._query(force=force)
        )
