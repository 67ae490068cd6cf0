"""Articulation parameter decoding.

Record layout (16 bytes, big-endian)::

    0  parameter type designator  u8   0 = articulated part, 1 = attached part
    1  change indicator           u8
    2  part attached to           u16
    4  parameter type             u32
    8  parameter value            8 bytes

Parameter type 1 on either designator carries an Entity ID in the first six
value bytes, which is decoded eagerly. Everything else stays opaque.
"""

from __future__ import annotations

import struct
from collections.abc import Iterable

from disrelay.core.errors import MalformedArticulationParameter
from disrelay.core.models import ArticulationParameter, EntityID

ARTICULATED_PART = 0
ATTACHED_PART = 1

ENTITY_ID_PARAMETER_TYPE = 1

_RECORD = struct.Struct(">BBHI8s")
_ENTITY_ID = struct.Struct(">HHH")


def carries_entity_id(designator: int, parameter_type: int) -> bool:
    return (designator in (ARTICULATED_PART, ATTACHED_PART)
            and parameter_type == ENTITY_ID_PARAMETER_TYPE)


def decode_articulation_parameter(record: bytes) -> ArticulationParameter:
    """Decode a single record. Raises ValueError if it is not 16 bytes."""
    if len(record) != _RECORD.size:
        raise ValueError(f"record is {len(record)} bytes, expected {_RECORD.size}")

    designator, change, attached_to, ptype, value = _RECORD.unpack(record)
    entity_id = None
    if carries_entity_id(designator, ptype):
        entity_id = EntityID(*_ENTITY_ID.unpack_from(value))

    return ArticulationParameter(
        designator=designator,
        change_indicator=change,
        attached_to=attached_to,
        parameter_type=ptype,
        value=value,
        entity_id=entity_id,
    )


def decode_articulation_parameters(
    records: Iterable[bytes],
) -> tuple[list[ArticulationParameter], list[MalformedArticulationParameter]]:
    """Decode every record, skipping (and reporting) the ones that fail."""
    parameters: list[ArticulationParameter] = []
    errors: list[MalformedArticulationParameter] = []
    for index, record in enumerate(records):
        try:
            parameters.append(decode_articulation_parameter(record))
        except (ValueError, struct.error) as e:
            errors.append(MalformedArticulationParameter(index, str(e)))
    return parameters, errors
