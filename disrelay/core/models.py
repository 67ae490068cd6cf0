"""disrelay: core internal data models.

These are plain dataclasses with no framework dependencies.
Wire bytes are converted to/from these by the codec at the boundary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from disrelay.core.appearance import AppearanceFlags
    from disrelay.core.errors import MalformedArticulationParameter


@dataclass(frozen=True)
class RawDatagram:
    data: bytes
    address: str = ""
    port: int = 0

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class EntityID:
    site: int = 0
    application: int = 0
    entity: int = 0

    def __str__(self) -> str:
        return f"{self.site}:{self.application}:{self.entity}"


@dataclass(frozen=True)
class EntityType:
    kind: int = 0
    domain: int = 0
    country: int = 0
    category: int = 0
    subcategory: int = 0
    specific: int = 0
    extra: int = 0

    def __str__(self) -> str:
        return (f"{self.kind}.{self.domain}.{self.country}.{self.category}."
                f"{self.subcategory}.{self.specific}.{self.extra}")


@dataclass(frozen=True)
class Vector3Float:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


@dataclass(frozen=True)
class Vector3Double:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


@dataclass(frozen=True)
class EulerAngles:
    """DIS body orientation relative to ECEF, in radians."""
    psi: float = 0.0
    theta: float = 0.0
    phi: float = 0.0


@dataclass(frozen=True)
class DeadReckoningParameters:
    """Carried through untouched; nothing here interprets it."""
    algorithm: int = 0
    other_parameters: bytes = bytes(15)
    linear_acceleration: Vector3Float = field(default_factory=Vector3Float)
    angular_velocity: Vector3Float = field(default_factory=Vector3Float)


@dataclass(frozen=True)
class Marking:
    character_set: int = 1
    characters: bytes = bytes(11)
    text: str = ""


@dataclass(frozen=True)
class PduHeader:
    protocol_version: int = 6
    exercise_id: int = 0
    pdu_type: int = 1
    protocol_family: int = 1
    timestamp: int = 0
    length: int = 0
    padding: int = 0


@dataclass(frozen=True)
class EntityStatePdu:
    header: PduHeader = field(default_factory=PduHeader)
    entity_id: EntityID = field(default_factory=EntityID)
    force_id: int = 0
    entity_type: EntityType = field(default_factory=EntityType)
    alternative_entity_type: EntityType = field(default_factory=EntityType)
    linear_velocity: Vector3Float = field(default_factory=Vector3Float)
    location: Vector3Double = field(default_factory=Vector3Double)
    orientation: EulerAngles = field(default_factory=EulerAngles)
    appearance: int = 0
    dead_reckoning: DeadReckoningParameters = field(default_factory=DeadReckoningParameters)
    marking: Marking = field(default_factory=Marking)
    capabilities: int = 0
    # Raw 16-byte records in wire order; see core.articulation.
    articulation_records: tuple[bytes, ...] = ()

    @property
    def articulation_count(self) -> int:
        return len(self.articulation_records)


@dataclass(frozen=True)
class ArticulationParameter:
    designator: int
    change_indicator: int
    attached_to: int
    parameter_type: int
    value: bytes
    entity_id: EntityID | None = None

    @property
    def value_hex(self) -> str:
        return self.value.hex()


@dataclass(frozen=True)
class GeodeticPosition:
    """WGS-84 position. Longitude is in (-180, 180]."""
    latitude: float
    longitude: float
    altitude: float


@dataclass(frozen=True)
class OrientationAngles:
    """Local NED orientation in degrees."""
    heading: float
    pitch: float
    roll: float


@dataclass(frozen=True)
class DecodedEntityState:
    """An Entity State PDU plus everything derived from it."""
    pdu: EntityStatePdu
    position: GeodeticPosition
    orientation: OrientationAngles
    appearance: AppearanceFlags
    articulation: tuple[ArticulationParameter, ...] = ()
    articulation_errors: tuple[MalformedArticulationParameter, ...] = ()
    source: RawDatagram | None = None

    def to_summary(self) -> dict:
        """JSON-serializable representation relayed to subscribers."""
        pdu = self.pdu
        et = pdu.entity_type
        summary = {
            "entity_id": {
                "site": pdu.entity_id.site,
                "application": pdu.entity_id.application,
                "entity": pdu.entity_id.entity,
            },
            "exercise_id": pdu.header.exercise_id,
            "timestamp": pdu.header.timestamp,
            "force_id": pdu.force_id,
            "entity_type": {
                "kind": et.kind,
                "domain": et.domain,
                "country": et.country,
                "category": et.category,
                "subcategory": et.subcategory,
                "specific": et.specific,
                "extra": et.extra,
            },
            "marking": pdu.marking.text,
            "location": {
                "x": pdu.location.x,
                "y": pdu.location.y,
                "z": pdu.location.z,
            },
            "position": {
                "lat": self.position.latitude,
                "lon": self.position.longitude,
                "alt": self.position.altitude,
            },
            "orientation": {
                "heading": self.orientation.heading,
                "pitch": self.orientation.pitch,
                "roll": self.orientation.roll,
            },
            "appearance": self.appearance.to_dict(),
            "articulation": [_articulation_to_dict(ap) for ap in self.articulation],
        }
        if self.source is not None:
            summary["source"] = {
                "address": self.source.address,
                "port": self.source.port,
            }
        return summary


def _articulation_to_dict(ap: ArticulationParameter) -> dict:
    entry = {
        "designator": ap.designator,
        "change_indicator": ap.change_indicator,
        "attached_to": ap.attached_to,
        "parameter_type": ap.parameter_type,
        "value_hex": ap.value_hex,
    }
    if ap.entity_id is not None:
        entry["entity_id"] = {
            "site": ap.entity_id.site,
            "application": ap.entity_id.application,
            "entity": ap.entity_id.entity,
        }
    return entry


@dataclass(frozen=True)
class RelayEvent:
    """What the relay hub fans out. Either part may be absent per relay mode."""
    raw: bytes | None = None
    summary: dict | None = None
