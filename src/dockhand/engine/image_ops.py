"""
Image operations mixin for EngineClient.

This module provides the ImageOpsMixin class with methods for:
    - Image listing and inspection
    - Streaming image pull
    - Image removal
"""

from typing import AsyncIterator

from dockhand.engine.exceptions import PullError
from dockhand.engine.stream import iter_ndjson
from dockhand.models.progress import PullProgressEvent
from dockhand.models.resources import Image, ImageDeleteItem, ImageDetail


def split_image_reference(reference: str) -> tuple[str, str | None]:
    """
    Split an image reference into ``fromImage`` and ``tag`` query values.

    A reference without tag or digest gets ``latest``; the engine would
    otherwise pull every tag of the repository. A colon before the last
    ``/`` belongs to a registry port, not a tag. Digest references are
    passed through whole with no tag.

    Examples:
        ``alpine`` -> (``alpine``, ``latest``)
        ``alpine:3.20`` -> (``alpine``, ``3.20``)
        ``registry:5000/team/app`` -> (``registry:5000/team/app``, ``latest``)
        ``alpine@sha256:abc`` -> (``alpine@sha256:abc``, None)
    """
    reference = reference.strip()
    if "@" in reference:
        return reference, None
    slash = reference.rfind("/")
    colon = reference.rfind(":")
    if colon > slash:
        return reference[:colon], reference[colon + 1 :]
    return reference, "latest"


class ImageOpsMixin:
    """
    Mixin providing image operations.

    Expects the request helpers of ``EngineClient`` and its ``transport``.
    """

    async def list_images(
        self, all: bool = False, filters: dict[str, list[str]] | None = None
    ) -> list[Image]:
        """
        List local images in engine order.

        Args:
            all: Include intermediate images.
            filters: Engine filters, e.g. ``{"reference": ["alpine"]}``.
        """
        return await self._request_json(
            "GET",
            self._path("images", "json"),
            list[Image],
            params=self._query(all=all, filters=filters),
        )

    async def inspect_image(self, id: str) -> ImageDetail:
        """
        Get detailed information about an image.

        Raises:
            NotFoundError: If the image does not exist locally.
        """
        return await self._request_json("GET", self._path("images", id, "json"), ImageDetail)

    async def pull_image(self, name: str) -> AsyncIterator[PullProgressEvent]:
        """
        Pull an image, yielding progress records as the engine sends them.

        The stream holds one connection open for the whole pull and uses the
        long pull timeout. Closing the iterator early (``aclosing``, or
        ``break`` out of ``async for`` followed by ``aclose()``) closes the
        connection.

        Args:
            name: Image reference, e.g. ``ubuntu:24.04``.

        Yields:
            PullProgressEvent records. Malformed lines are skipped.

        Raises:
            APIError: If the engine rejects the pull before streaming.
            PullError: If the stream carries an error record.
            TransportError: If the connection drops mid-stream.
        """
        from_image, tag = split_image_reference(name)
        method = "POST"
        path = self._path("images", "create")
        self._log.info(f"Pulling image {name}...")

        async with self.transport.stream(
            method,
            path,
            params=self._query(fromImage=from_image, tag=tag),
            timeout=self.pull_timeout,
        ) as response:
            if not response.is_success:
                body = await response.aread()
                raise self._api_error(
                    method, path, response.status_code, body, response.reason_phrase
                )

            async for event in iter_ndjson(
                response.aiter_bytes(), PullProgressEvent, logger=self._log
            ):
                message = event.error_message
                if message:
                    self._log.error(f"Pull of {name} failed: {message}")
                    raise PullError(name, message, response.status_code)
                yield event

        self._log.info(f"Pull of {name} finished")

    async def remove_image(
        self, id: str, force: bool = False, prune_children: bool = True
    ) -> list[ImageDeleteItem]:
        """
        Remove an image.

        Args:
            id: Image id or reference.
            force: Remove even if containers use the image.
            prune_children: Also delete untagged parent images.

        Returns:
            The engine's report of untagged and deleted layers.
        """
        method = "DELETE"
        path = self._path("images", id)
        response = await self._request(
            method, path, params=self._query(force=force, noprune=not prune_children)
        )
        if not response.body.strip():
            return []
        return self._decode_body(method, path, response, list[ImageDeleteItem])
