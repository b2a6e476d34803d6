"""MessagePack serialization for stream and request/reply payloads."""

from typing import Any, TypeVar

import msgpack
from pydantic import BaseModel, ValidationError

from ..domain.exceptions import DecodeError, SerializationError
from ..domain.models import CHANGE_EVENT_SCHEMA_VERSION, ChangeEvent

T = TypeVar("T", bound=BaseModel)


def serialize_to_msgpack(obj: BaseModel) -> bytes:
    """Serialize a Pydantic model to MessagePack bytes."""
    try:
        data = obj.model_dump(mode="json")
        return bytes(msgpack.packb(data, use_bin_type=True))
    except Exception as e:
        raise SerializationError(f"Failed to serialize to msgpack: {e}") from e


def unpack_map(data: bytes) -> dict[str, Any]:
    """Unpack bytes holding exactly one MessagePack map.

    Raises:
        SerializationError: Empty input, invalid or trailing bytes, or a
            payload that is not a map.
    """
    if not data:
        raise SerializationError("Empty data received")
    try:
        unpacked = msgpack.unpackb(data, raw=False, strict_map_key=True)
    except (msgpack.ExtraData, msgpack.FormatError, msgpack.StackError) as e:
        raise SerializationError(f"Malformed msgpack payload: {e}") from e
    except (ValueError, TypeError) as e:
        # Truncated input surfaces as ValueError from the unpacker
        raise SerializationError(f"Failed to unpack msgpack payload: {e}") from e
    if not isinstance(unpacked, dict):
        raise SerializationError(f"Expected a msgpack map, got {type(unpacked).__name__}")
    return unpacked


def deserialize_from_msgpack(data: bytes, model_class: type[T]) -> T:
    """Deserialize MessagePack bytes to a Pydantic model."""
    unpacked = unpack_map(data)
    try:
        return model_class.model_validate(unpacked)
    except ValidationError as e:
        raise SerializationError(f"Payload does not match {model_class.__name__}: {e}") from e


def encode_change_event(event: ChangeEvent) -> bytes:
    """Encode a change event for the stream."""
    return serialize_to_msgpack(event)


def decode_change_event(data: bytes) -> ChangeEvent:
    """Decode a stream payload into a change event.

    Raises:
        DecodeError: The payload is not a version 1 ``subject.created`` event.
    """
    size = len(data) if data is not None else 0
    try:
        unpacked = unpack_map(data)
    except SerializationError as e:
        raise DecodeError(e.message, payload_size=size) from e

    version = unpacked.get("schema_version")
    if version != CHANGE_EVENT_SCHEMA_VERSION:
        raise DecodeError(
            f"Unsupported change event schema version: {version!r}", payload_size=size
        )

    try:
        return ChangeEvent.model_validate(unpacked)
    except ValidationError as e:
        raise DecodeError(
            f"Change event failed validation ({e.error_count()} errors)", payload_size=size
        ) from e
