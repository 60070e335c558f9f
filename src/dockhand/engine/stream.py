"""
Incremental newline-delimited JSON decoding.

Network reads do not respect record boundaries, so bytes are buffered until
a newline completes a record. Blank lines are skipped. A record that is not
valid JSON, or that does not fit the requested model, is logged and skipped.
"""

import json
from typing import Any, AsyncIterable, AsyncIterator, TypeVar

from pydantic import BaseModel, ValidationError

from dockhand.utils.logger import get_logger

log = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


class NDJSONDecoder:
    """
    Splits a byte stream into JSON documents.

    Usage:
        decoder = NDJSONDecoder()
        for chunk in chunks:
            for doc in decoder.feed(chunk):
                ...
        for doc in decoder.flush():
            ...
    """

    def __init__(self, logger=None):
        self._buffer = bytearray()
        self._log = logger or log
        self.skipped = 0

    def feed(self, chunk: bytes) -> list[Any]:
        """Add bytes and return every document completed by them."""
        self._buffer.extend(chunk)
        documents = []
        while True:
            newline = self._buffer.find(b"\n")
            if newline < 0:
                break
            line = bytes(self._buffer[:newline])
            del self._buffer[: newline + 1]
            document = self._decode_line(line)
            if document is not None:
                documents.append(document)
        return documents

    def flush(self) -> list[Any]:
        """Decode whatever is left once the stream has ended."""
        line = bytes(self._buffer)
        self._buffer.clear()
        document = self._decode_line(line)
        return [] if document is None else [document]

    @property
    def pending(self) -> int:
        """Number of buffered bytes not yet terminated by a newline."""
        return len(self._buffer)

    def _decode_line(self, line: bytes) -> Any | None:
        line = line.strip()
        if not line:
            return None
        try:
            return json.loads(line)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            self.skipped += 1
            self._log.warning(f"Skipping malformed stream record: {e} in {line[:200]!r}")
            return None


async def iter_ndjson(
    chunks: AsyncIterable[bytes],
    model: type[M] | None = None,
    logger=None,
) -> AsyncIterator[Any]:
    """
    Decode an async byte stream into JSON documents as they arrive.

    Args:
        chunks: Byte chunks in arrival order.
        model: Optional model each document is validated into. Documents
            that fail validation are logged and skipped.
        logger: Logger to use instead of the module logger.

    Yields:
        Parsed documents, or model instances when ``model`` is given.

    Errors raised by ``chunks`` (a dropped connection) propagate and end
    the sequence.
    """
    _log = logger or log
    decoder = NDJSONDecoder(logger=_log)

    def _convert(document):
        if model is None:
            return document
        try:
            return model.model_validate(document)
        except ValidationError as e:
            _log.warning(
                f"Skipping stream record that does not fit {model.__name__}: "
                f"{e.errors()[0].get('msg')}"
            )
            return None

    async for chunk in chunks:
        for document in decoder.feed(chunk):
            converted = _convert(document)
            if converted is not None:
                yield converted

    for document in decoder.flush():
        converted = _convert(document)
        if converted is not None:
            yield converted
