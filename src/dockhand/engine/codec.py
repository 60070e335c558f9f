"""
JSON codec between wire documents and typed models.

Models declare their wire (PascalCase) names as pydantic aliases, so the
codec only has to pick the right direction:

    encode(model)          -> bytes, wire names, None fields omitted
    decode(data, SomeType) -> validated instance of SomeType

Decoding ignores unknown fields and treats absent optional fields as None.
Any mismatch raises DecodeError carrying the JSON path of the offending
field in wire names, so schema drift can be diagnosed from the log.
"""

from functools import lru_cache
from typing import Any, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from dockhand.engine.exceptions import DecodeError, EncodeError

T = TypeVar("T")

RAW_EXCERPT_LIMIT = 200


@lru_cache(maxsize=None)
def _adapter(type_: Any) -> TypeAdapter:
    return TypeAdapter(type_)


def _type_name(type_: Any) -> str:
    return getattr(type_, "__name__", None) or str(type_)


def format_location(loc: tuple) -> str:
    """
    Render a pydantic error location as a JSON path.

    ``("Ports", 1, "PrivatePort")`` becomes ``Ports[1].PrivatePort``; an
    empty location is the document root.
    """
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path or "<root>"


def _excerpt(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode("utf-8", errors="replace")
    text = value if isinstance(value, str) else repr(value)
    if len(text) > RAW_EXCERPT_LIMIT:
        return text[:RAW_EXCERPT_LIMIT] + "..."
    return text


def decode_error_from_validation(
    error: ValidationError, type_: Any, raw: Any
) -> DecodeError:
    """Convert the first pydantic error into a DecodeError."""
    first = error.errors()[0]
    field = format_location(tuple(first.get("loc", ())))
    if first.get("type") == "json_invalid":
        return DecodeError(field, f"JSON document for {_type_name(type_)}", _excerpt(raw))

    expected = f"{first.get('msg', 'valid value')} ({_type_name(type_)})"
    if first.get("type") == "missing":
        offending = f"no value in {_excerpt(raw)}"
    else:
        offending = _excerpt(first.get("input"))
    return DecodeError(field, expected, offending)


# =============================================================================
# Public API
# =============================================================================


def encode(value: BaseModel) -> bytes:
    """
    Serialize a request model to JSON using wire names.

    Raises:
        EncodeError: If the model cannot be serialized.
    """
    try:
        return value.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")
    except (PydanticSerializationError, ValueError, TypeError) as e:
        raise EncodeError(
            f"Failed to encode {type(value).__name__}: {e}"
        ) from e


def decode(data: bytes | str, type_: type[T] | Any) -> T:
    """
    Deserialize a JSON document into ``type_``.

    Args:
        data: Raw JSON text.
        type_: A model class or any type pydantic can validate
            (``list[Container]``, ``dict[str, str]``, ...).

    Raises:
        DecodeError: If the document is not JSON or does not fit the type.
    """
    try:
        return _adapter(type_).validate_json(data)
    except ValidationError as e:
        raise decode_error_from_validation(e, type_, data) from e


def decode_value(value: Any, type_: type[T] | Any) -> T:
    """Validate an already-parsed JSON value into ``type_``."""
    try:
        return _adapter(type_).validate_python(value)
    except ValidationError as e:
        raise decode_error_from_validation(e, type_, value) from e
