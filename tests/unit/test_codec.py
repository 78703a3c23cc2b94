"""
Unit tests for the JSON payload codec.
"""

from dataclasses import dataclass
from uuid import UUID

import pytest
from pydantic import ValidationError

from jobqueue.errors import SerializationError
from jobqueue.queue.codec import JsonCodec
from jobqueue.types.job import JobPayload


@dataclass
class SendEmail:
    to: str
    subject: str


class TestJsonCodec:
    """Tests for JsonCodec."""

    @pytest.fixture
    def codec(self) -> JsonCodec:
        return JsonCodec()

    def test_bytes_pass_through(self, codec: JsonCodec):
        """Test that already-encoded payloads are not re-encoded."""
        assert codec.encode(b'{"a":1}') == b'{"a":1}'
        assert codec.encode(bytearray(b"raw")) == b"raw"

    def test_encode_dict(self, codec: JsonCodec):
        """Test encoding a plain dictionary."""
        assert codec.encode({"task_id": 7, "action": "archive"}) == b'{"task_id":7,"action":"archive"}'

    def test_encode_model(self, codec: JsonCodec):
        """Test encoding a pydantic model."""
        payload = JobPayload(job_type="echo", data={"message": "hi"})

        encoded = codec.encode(payload)

        assert codec.decode(encoded, JobPayload) == payload

    def test_encode_dataclass_and_uuid(self, codec: JsonCodec):
        """Test encoding values pydantic knows how to serialize."""
        job_id = UUID("12345678-1234-5678-1234-567812345678")

        assert codec.encode({"id": job_id}) == b'{"id":"12345678-1234-5678-1234-567812345678"}'
        assert codec.encode(SendEmail(to="a@b.c", subject="Hi")) == b'{"to":"a@b.c","subject":"Hi"}'

    def test_encode_unserializable(self, codec: JsonCodec):
        """Test that unserializable payloads raise SerializationError."""
        with pytest.raises(SerializationError) as exc_info:
            codec.encode({"callback": object()})

        assert exc_info.value.error_code == "SERIALIZATION_ERROR"
        assert exc_info.value.details == {"payload_type": "dict"}
        assert exc_info.value.cause is not None

    def test_decode_invalid(self, codec: JsonCodec):
        """Test decoding data that does not match the model."""
        with pytest.raises(ValidationError):
            codec.decode(b'{"data": {}}', JobPayload)
