"""Tests for MessagePack serialization."""

import msgpack
import pytest

from subject_registry.domain.exceptions import DecodeError, SerializationError
from subject_registry.domain.models import ProvisionedAccount
from subject_registry.infrastructure.serialization import (
    decode_change_event,
    deserialize_from_msgpack,
    encode_change_event,
    serialize_to_msgpack,
    unpack_map,
)
from tests.builders import ChangeEventBuilder


def pack(obj) -> bytes:
    return msgpack.packb(obj, use_bin_type=True)


VALID = {
    "schema_version": 1,
    "event_type": "subject.created",
    "subject_id": "1",
    "name": "John Doe",
    "email": "john@example.com",
}


class TestChangeEventCodec:
    def test_encoded_event_is_a_msgpack_map(self):
        payload = encode_change_event(ChangeEventBuilder().build())

        assert msgpack.unpackb(payload, raw=False) == VALID

    def test_decode_valid_payload(self):
        event = decode_change_event(pack(VALID))

        assert event.subject_id == "1"
        assert event.name == "John Doe"
        assert event.email == "john@example.com"

    def test_garbage_bytes(self):
        with pytest.raises(DecodeError) as exc_info:
            decode_change_event(b"\x01\x02\x03\x04\x05")

        assert exc_info.value.payload_size == 5

    @pytest.mark.parametrize(
        "payload",
        [
            b"",
            b"\xc1",
            pack(VALID)[:-3],
            pack(VALID) + b"\x00",
            pack([1, 2, 3]),
            pack("subject.created"),
        ],
        ids=["empty", "reserved-byte", "truncated", "trailing", "array", "string"],
    )
    def test_malformed_payloads(self, payload):
        with pytest.raises(DecodeError):
            decode_change_event(payload)

    @pytest.mark.parametrize(
        "change",
        [
            {"schema_version": 2},
            {"event_type": "subject.deleted"},
            {"subject_id": 1},
            {"extra": "field"},
        ],
        ids=["version", "event-type", "mistyped-id", "extra-field"],
    )
    def test_schema_violations(self, change):
        with pytest.raises(DecodeError):
            decode_change_event(pack({**VALID, **change}))

    def test_missing_field(self):
        payload = {k: v for k, v in VALID.items() if k != "email"}

        with pytest.raises(DecodeError):
            decode_change_event(pack(payload))

    def test_missing_schema_version(self):
        payload = {k: v for k, v in VALID.items() if k != "schema_version"}

        with pytest.raises(DecodeError, match="schema version"):
            decode_change_event(pack(payload))

    def test_decode_error_is_a_serialization_error(self):
        with pytest.raises(SerializationError):
            decode_change_event(b"\x01\x02\x03\x04\x05")


class TestGenericHelpers:
    def test_model_roundtrip(self):
        account = ProvisionedAccount(account_id="a-1", status="PENDING")

        restored = deserialize_from_msgpack(serialize_to_msgpack(account), ProvisionedAccount)

        assert restored == account

    def test_validation_failure(self):
        with pytest.raises(SerializationError, match="ProvisionedAccount"):
            deserialize_from_msgpack(pack({"account_id": ""}), ProvisionedAccount)

    def test_unpack_map_requires_map(self):
        with pytest.raises(SerializationError, match="map"):
            unpack_map(pack(5))
