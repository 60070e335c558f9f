"""
Network operations mixin for EngineClient.

This module provides the NetworkOpsMixin class with methods for:
    - Network listing and inspection
    - Network creation and removal
    - Connecting and disconnecting containers
"""

from dockhand.models.requests import (
    EndpointConfig,
    EndpointIPAMConfig,
    IPAMPool,
    IPAMRequest,
    NetworkConnectRequest,
    NetworkCreateRequest,
    NetworkDisconnectRequest,
)
from dockhand.models.resources import Network, NetworkCreateResponse


class NetworkOpsMixin:
    """
    Mixin providing network operations.

    Expects the request helpers of ``EngineClient``.
    """

    async def list_networks(
        self, filters: dict[str, list[str]] | None = None
    ) -> list[Network]:
        """List networks in engine order."""
        return await self._request_json(
            "GET",
            self._path("networks"),
            list[Network],
            params=self._query(filters=filters),
        )

    async def inspect_network(self, id: str) -> Network:
        """
        Get detailed information about a network.

        Raises:
            NotFoundError: If no network has this id or name.
        """
        return await self._request_json("GET", self._path("networks", id), Network)

    async def create_network(
        self,
        name: str,
        driver: str = "bridge",
        subnet: str | None = None,
        gateway: str | None = None,
        labels: dict[str, str] | None = None,
        internal: bool = False,
    ) -> str:
        """
        Create a network.

        An IPAM block is sent only when a subnet or gateway is given;
        otherwise the engine picks an address pool itself.

        Returns:
            The new network id.
        """
        ipam = None
        if subnet or gateway:
            ipam = IPAMRequest(config=[IPAMPool(subnet=subnet or None, gateway=gateway or None)])

        request = NetworkCreateRequest(
            name=name,
            driver=driver,
            ipam=ipam,
            labels=labels or None,
            internal=internal or None,
        )
        response = await self._request_json(
            "POST", self._path("networks", "create"), NetworkCreateResponse, body=request
        )
        if response.warning:
            self._log.warning(f"Network {name} created with warning: {response.warning}")
        return response.id

    async def connect_container_to_network(
        self, network_id: str, container_id: str, ipv4_address: str | None = None
    ) -> None:
        """
        Attach a container to a network.

        Args:
            network_id: Network id or name.
            container_id: Container id or name.
            ipv4_address: Static address inside the network's subnet.
        """
        endpoint = None
        if ipv4_address:
            endpoint = EndpointConfig(
                ipam_config=EndpointIPAMConfig(ipv4_address=ipv4_address)
            )
        request = NetworkConnectRequest(container=container_id, endpoint_config=endpoint)
        await self._request_no_content(
            "POST", self._path("networks", network_id, "connect"), body=request
        )

    async def disconnect_container_from_network(
        self, network_id: str, container_id: str, force: bool = False
    ) -> None:
        request = NetworkDisconnectRequest(container=container_id, force=force)
        await self._request_no_content(
            "POST", self._path("networks", network_id, "disconnect"), body=request
        )

    async def remove_network(self, id: str) -> None:
        """
        Remove a network.

        Raises:
            ConflictError: If containers are still attached.
        """
        await self._request_no_content("DELETE", self._path("networks", id))
