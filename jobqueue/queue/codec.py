"""
Payload encoding for queued jobs.

The queue stores opaque bytes. A codec turns producer payloads into those
bytes on enqueue and, for handlers that want it, back into typed values.
"""

from typing import Any, Protocol, TypeVar

import pydantic_core
from pydantic import BaseModel, TypeAdapter

from jobqueue.errors import SerializationError

T = TypeVar("T")


class PayloadCodec(Protocol):
    """Encode/decode contract for job payloads."""

    def encode(self, payload: Any) -> bytes: ...

    def decode(self, data: bytes, model: type[T]) -> T: ...


class JsonCodec:
    """
    JSON codec built on pydantic.

    Raw bytes pass through unchanged so producers that already serialized
    their payload are not double-encoded.
    """

    def encode(self, payload: Any) -> bytes:
        """
        Encode a payload to bytes.

        Args:
            payload: bytes, a pydantic model, or any value pydantic can
                serialize to JSON (dicts, lists, dataclasses, UUIDs, ...).

        Returns:
            The encoded payload.

        Raises:
            SerializationError: If the payload cannot be encoded.
        """
        if isinstance(payload, (bytes, bytearray, memoryview)):
            return bytes(payload)

        try:
            if isinstance(payload, BaseModel):
                return payload.model_dump_json().encode("utf-8")
            return pydantic_core.to_json(payload)
        except (pydantic_core.PydanticSerializationError, TypeError, ValueError) as e:
            raise SerializationError(
                f"Failed to encode job payload: {e}",
                payload_type=type(payload).__name__,
                cause=e,
            ) from e

    def decode(self, data: bytes, model: type[T]) -> T:
        """
        Decode bytes into an instance of model.

        Raises:
            pydantic.ValidationError: If the data does not match the model.
        """
        return TypeAdapter(model).validate_json(data)
