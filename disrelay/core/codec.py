"""Entity State PDU codec for DIS version 6 (IEEE 1278.1-1995 / 1278.1a-1998).

Fixed layout, big-endian, 144 bytes plus 16 bytes per articulation
parameter::

    0   header           protocol version, exercise, PDU type, family,
                         timestamp (u32), length (u16), padding (u16)
    12  entity ID        site, application, entity (3 x u16)
    18  force ID         u8
    19  articulations    u8 count
    20  entity type      kind, domain, country (u16), category,
                         subcategory, specific, extra
    28  alternative type same layout
    36  linear velocity  3 x f32
    48  location         3 x f64, ECEF metres
    72  orientation      psi, theta, phi (3 x f32, radians)
    84  appearance       u32
    88  dead reckoning   algorithm u8, 15 opaque bytes, 2 x (3 x f32)
    128 marking          character set u8, 11 characters
    140 capabilities     u32
    144 articulation parameters, 16 bytes each

Only decoding happens on the live path. ``encode_entity_state`` exists for
tests and the traffic simulator.
"""

from __future__ import annotations

import struct

from disrelay.core.errors import (
    NotEntityState,
    TooShort,
    TruncatedBuffer,
    TruncatedPdu,
    UnsupportedVersion,
)
from disrelay.core.models import (
    DeadReckoningParameters,
    EntityID,
    EntityStatePdu,
    EntityType,
    EulerAngles,
    Marking,
    PduHeader,
    Vector3Double,
    Vector3Float,
)
from disrelay.core.reader import PduReader

DIS_PROTOCOL_VERSION = 6
ENTITY_STATE_PDU_TYPE = 1
ENTITY_INFORMATION_FAMILY = 1

ESPDU_MIN_LENGTH = 144
ARTICULATION_RECORD_LENGTH = 16
MARKING_LENGTH = 11

MARKING_ASCII = 1


def decode_entity_state(data: bytes) -> EntityStatePdu:
    """Decode one datagram into an EntityStatePdu.

    Raises TooShort, UnsupportedVersion, NotEntityState or TruncatedPdu.
    Nothing is returned for a PDU that fails part-way through.
    """
    if len(data) < ESPDU_MIN_LENGTH:
        raise TooShort(len(data), ESPDU_MIN_LENGTH)

    reader = PduReader(data)
    try:
        header = _read_header(reader)
        if header.protocol_version != DIS_PROTOCOL_VERSION:
            raise UnsupportedVersion(header.protocol_version)
        if header.pdu_type != ENTITY_STATE_PDU_TYPE:
            raise NotEntityState(header.pdu_type)

        entity_id = _read_entity_id(reader)
        force_id = reader.u8()
        articulation_count = reader.u8()
        entity_type = _read_entity_type(reader)
        alternative_type = _read_entity_type(reader)
        linear_velocity = _read_vector3_float(reader)
        location = Vector3Double(reader.f64(), reader.f64(), reader.f64())
        orientation = EulerAngles(reader.f32(), reader.f32(), reader.f32())
        appearance = reader.u32()
        dead_reckoning = DeadReckoningParameters(
            algorithm=reader.u8(),
            other_parameters=reader.raw(15),
            linear_acceleration=_read_vector3_float(reader),
            angular_velocity=_read_vector3_float(reader),
        )
        marking = decode_marking(reader.u8(), reader.raw(MARKING_LENGTH))
        capabilities = reader.u32()
        records = tuple(
            reader.raw(ARTICULATION_RECORD_LENGTH) for _ in range(articulation_count)
        )
    except TruncatedBuffer as e:
        raise TruncatedPdu(len(data), str(e)) from e

    return EntityStatePdu(
        header=header,
        entity_id=entity_id,
        force_id=force_id,
        entity_type=entity_type,
        alternative_entity_type=alternative_type,
        linear_velocity=linear_velocity,
        location=location,
        orientation=orientation,
        appearance=appearance,
        dead_reckoning=dead_reckoning,
        marking=marking,
        capabilities=capabilities,
        articulation_records=records,
    )


def decode_marking(character_set: int, characters: bytes) -> Marking:
    """Turn the 11 marking bytes into a display string.

    ASCII markings stop at the first NUL or non-printable byte. Any other
    character set is rendered byte-for-byte (latin-1) up to the first NUL.
    """
    if character_set == MARKING_ASCII:
        end = 0
        for b in characters:
            if b < 0x20 or b > 0x7E:
                break
            end += 1
        text = characters[:end].decode("ascii")
    else:
        text = characters.split(b"\x00", 1)[0].decode("latin-1")
    return Marking(character_set=character_set, characters=bytes(characters), text=text)


def _read_header(reader: PduReader) -> PduHeader:
    return PduHeader(
        protocol_version=reader.u8(),
        exercise_id=reader.u8(),
        pdu_type=reader.u8(),
        protocol_family=reader.u8(),
        timestamp=reader.u32(),
        length=reader.u16(),
        padding=reader.u16(),
    )


def _read_entity_id(reader: PduReader) -> EntityID:
    return EntityID(reader.u16(), reader.u16(), reader.u16())


def _read_entity_type(reader: PduReader) -> EntityType:
    return EntityType(
        kind=reader.u8(),
        domain=reader.u8(),
        country=reader.u16(),
        category=reader.u8(),
        subcategory=reader.u8(),
        specific=reader.u8(),
        extra=reader.u8(),
    )


def _read_vector3_float(reader: PduReader) -> Vector3Float:
    return Vector3Float(reader.f32(), reader.f32(), reader.f32())


# --- Encoding ---------------------------------------------------------------

_HEADER = struct.Struct(">BBBBIHH")
_ENTITY_ID = struct.Struct(">HHH")
_ENTITY_TYPE = struct.Struct(">BBHBBBB")
_VEC3F = struct.Struct(">fff")
_VEC3D = struct.Struct(">ddd")


def encode_entity_state(pdu: EntityStatePdu) -> bytes:
    """Serialize an EntityStatePdu to wire format.

    The header length field is recomputed from the record count; the
    articulation count byte always matches ``pdu.articulation_records``.
    """
    for i, record in enumerate(pdu.articulation_records):
        if len(record) != ARTICULATION_RECORD_LENGTH:
            raise ValueError(f"articulation record #{i} is {len(record)} bytes, expected 16")

    length = ESPDU_MIN_LENGTH + ARTICULATION_RECORD_LENGTH * pdu.articulation_count
    h = pdu.header
    dr = pdu.dead_reckoning
    characters = pdu.marking.characters
    if pdu.marking.text and not characters.strip(b"\x00"):
        characters = pdu.marking.text.encode("ascii", errors="replace")
    characters = characters[:MARKING_LENGTH].ljust(MARKING_LENGTH, b"\x00")
    other = dr.other_parameters[:15].ljust(15, b"\x00")

    parts = [
        _HEADER.pack(h.protocol_version, h.exercise_id, h.pdu_type,
                     h.protocol_family, h.timestamp, length, h.padding),
        _ENTITY_ID.pack(pdu.entity_id.site, pdu.entity_id.application, pdu.entity_id.entity),
        struct.pack(">BB", pdu.force_id, pdu.articulation_count),
        _pack_entity_type(pdu.entity_type),
        _pack_entity_type(pdu.alternative_entity_type),
        _VEC3F.pack(pdu.linear_velocity.x, pdu.linear_velocity.y, pdu.linear_velocity.z),
        _VEC3D.pack(pdu.location.x, pdu.location.y, pdu.location.z),
        _VEC3F.pack(pdu.orientation.psi, pdu.orientation.theta, pdu.orientation.phi),
        struct.pack(">I", pdu.appearance),
        struct.pack(">B", dr.algorithm),
        other,
        _VEC3F.pack(dr.linear_acceleration.x, dr.linear_acceleration.y, dr.linear_acceleration.z),
        _VEC3F.pack(dr.angular_velocity.x, dr.angular_velocity.y, dr.angular_velocity.z),
        struct.pack(">B", pdu.marking.character_set),
        characters,
        struct.pack(">I", pdu.capabilities),
    ]
    parts.extend(pdu.articulation_records)
    return b"".join(parts)


def _pack_entity_type(et: EntityType) -> bytes:
    return _ENTITY_TYPE.pack(et.kind, et.domain, et.country, et.category,
                             et.subcategory, et.specific, et.extra)


def encode_articulation_record(
    designator: int,
    parameter_type: int,
    value: bytes,
    change_indicator: int = 0,
    attached_to: int = 0,
) -> bytes:
    """Pack one 16-byte articulation parameter record."""
    return struct.pack(">BBHI", designator, change_indicator, attached_to,
                       parameter_type) + value[:8].ljust(8, b"\x00")
