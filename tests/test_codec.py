"""Tests for the Entity State PDU codec."""

from __future__ import annotations

import struct

import pytest

from conftest import build_pdu
from disrelay.core.codec import (
    ESPDU_MIN_LENGTH,
    decode_entity_state,
    decode_marking,
    encode_articulation_record,
    encode_entity_state,
)
from disrelay.core.errors import (
    DecodeError,
    NotEntityState,
    TooShort,
    TruncatedPdu,
    UnsupportedVersion,
)
from disrelay.core.models import (
    DeadReckoningParameters,
    EntityID,
    EntityType,
    EulerAngles,
    Marking,
    PduHeader,
    Vector3Double,
    Vector3Float,
)


def _full_pdu(records=()):
    # Every float below is exactly representable as f32.
    return build_pdu(
        header=PduHeader(protocol_version=6, exercise_id=7, pdu_type=1,
                         protocol_family=1, timestamp=0x01020304,
                         length=ESPDU_MIN_LENGTH + 16 * len(records), padding=0),
        entity_id=EntityID(17, 23, 42),
        force_id=2,
        entity_type=EntityType(1, 2, 225, 1, 9, 3, 4),
        alternative_entity_type=EntityType(1, 2, 222, 1, 5, 6, 7),
        linear_velocity=Vector3Float(1.5, -2.25, 100.0),
        location=Vector3Double(-2707304.5, -4353675.25, 3781566.125),
        orientation=EulerAngles(0.5, -0.25, 1.0),
        appearance=0x00A1B2C3,
        dead_reckoning=DeadReckoningParameters(
            algorithm=4,
            other_parameters=bytes(range(15)),
            linear_acceleration=Vector3Float(0.5, 0.0, -9.75),
            angular_velocity=Vector3Float(0.125, 0.25, 0.0),
        ),
        marking=Marking(1, b"VIPER01" + bytes(4), "VIPER01"),
        capabilities=0x0000000F,
        articulation_records=tuple(records),
    )


def test_round_trip_fixed_fields():
    pdu = _full_pdu()
    data = encode_entity_state(pdu)

    assert len(data) == ESPDU_MIN_LENGTH
    assert decode_entity_state(data) == pdu


def test_round_trip_with_articulation_records():
    records = [
        encode_articulation_record(0, 1, struct.pack(">HHH", 1, 2, 3)),
        encode_articulation_record(0, 4096, b"\x3f\xf0" + bytes(6), change_indicator=3, attached_to=0),
    ]
    pdu = _full_pdu(records)
    data = encode_entity_state(pdu)

    assert len(data) == ESPDU_MIN_LENGTH + 32
    decoded = decode_entity_state(data)
    assert decoded == pdu
    assert decoded.articulation_count == 2
    assert data[19] == 2


def test_documented_byte_offsets():
    data = encode_entity_state(_full_pdu())

    assert struct.unpack_from(">HHH", data, 12) == (17, 23, 42)
    assert struct.unpack_from(">ddd", data, 48) == (-2707304.5, -4353675.25, 3781566.125)
    assert struct.unpack_from(">fff", data, 72) == (0.5, -0.25, 1.0)
    assert struct.unpack_from(">I", data, 84) == (0x00A1B2C3,)
    assert data[128] == 1
    assert data[129:136] == b"VIPER01"
    assert struct.unpack_from(">I", data, 140) == (0x0F,)


@pytest.mark.parametrize("length", [0, 1, 12, 100, 143])
def test_too_short(length, espdu):
    data = espdu()[:length]
    with pytest.raises(TooShort) as exc_info:
        decode_entity_state(data)
    assert exc_info.value.length == length
    assert exc_info.value.minimum == 144


@pytest.mark.parametrize("version", [0, 5, 7, 255])
def test_unsupported_version_carries_value(version, espdu):
    data = bytearray(espdu())
    data[0] = version
    with pytest.raises(UnsupportedVersion) as exc_info:
        decode_entity_state(bytes(data))
    assert exc_info.value.version == version


def test_version_checked_before_pdu_type(espdu):
    data = bytearray(espdu())
    data[0] = 7
    data[2] = 2
    with pytest.raises(UnsupportedVersion):
        decode_entity_state(bytes(data))


def test_other_pdu_types_are_filtered(espdu):
    data = bytearray(espdu())
    data[2] = 2  # Fire PDU
    with pytest.raises(NotEntityState) as exc_info:
        decode_entity_state(bytes(data))
    assert exc_info.value.pdu_type == 2
    assert isinstance(exc_info.value, DecodeError)


def test_declared_articulations_missing(espdu):
    data = bytearray(espdu())
    data[19] = 2
    with pytest.raises(TruncatedPdu):
        decode_entity_state(bytes(data))


def test_partial_articulation_record(espdu):
    record = encode_articulation_record(0, 1, struct.pack(">HHH", 1, 2, 3))
    data = bytearray(espdu(articulation_records=(record,)))
    data[19] = 2
    data += record[:10]
    with pytest.raises(TruncatedPdu):
        decode_entity_state(bytes(data))


def test_trailing_bytes_are_ignored(espdu):
    data = espdu() + b"\x00" * 8
    assert decode_entity_state(data).entity_id == EntityID(1, 2, 3)


def test_marking_alpha(espdu):
    pdu = decode_entity_state(espdu())
    assert pdu.marking.text == "ALPHA"
    assert pdu.marking.characters == b"ALPHA\x00\x00\x00\x00\x00\x00"


def test_marking_encoded_from_text_only(espdu):
    pdu = decode_entity_state(espdu(marking=Marking(1, bytes(11), "BRAVO")))
    assert pdu.marking.text == "BRAVO"


def test_marking_stops_at_non_printable():
    assert decode_marking(1, b"AB\x07CD" + bytes(6)).text == "AB"
    assert decode_marking(1, b"ELEVENCHARS").text == "ELEVENCHARS"
    assert decode_marking(1, bytes(11)).text == ""


def test_marking_other_character_set_is_best_effort():
    marking = decode_marking(2, b"caf\xe9" + bytes(7))
    assert marking.character_set == 2
    assert marking.text == "café"


def test_encoder_rejects_bad_record_length():
    with pytest.raises(ValueError):
        encode_entity_state(build_pdu(articulation_records=(b"\x00" * 10,)))
