"""Entity appearance bitfield decoding.

The 32-bit appearance word means different things per entity domain. Each
platform domain gets its own flag record; anything else (other kinds,
unrecognized domains) comes back as UnknownAppearance with just the raw word.
Decoding never raises.

Bit numbers below count from the least significant bit.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import IntEnum
from typing import Union


class EntityKind(IntEnum):
    OTHER = 0
    PLATFORM = 1
    MUNITION = 2
    LIFE_FORM = 3
    ENVIRONMENTAL = 4
    CULTURAL_FEATURE = 5
    SUPPLY = 6
    RADIO = 7
    EXPENDABLE = 8
    SENSOR_EMITTER = 9


class Domain(IntEnum):
    OTHER = 0
    LAND = 1
    AIR = 2
    SURFACE = 3
    SUBSURFACE = 4
    SPACE = 5


class DamageState(IntEnum):
    NO_DAMAGE = 0
    SLIGHT = 1
    MODERATE = 2
    DESTROYED = 3


class SmokeState(IntEnum):
    NONE = 0
    SMOKE_PLUME = 1
    ENGINE_SMOKE = 2
    ENGINE_SMOKE_AND_PLUME = 3


class TrailingEffects(IntEnum):
    NONE = 0
    SMALL = 1
    MEDIUM = 2
    LARGE = 3


class HatchState(IntEnum):
    """Also used for air platform canopies."""
    NOT_APPLICABLE = 0
    CLOSED = 1
    POPPED = 2
    POPPED_PERSON_VISIBLE = 3
    OPEN = 4
    OPEN_PERSON_VISIBLE = 5


class Camouflage(IntEnum):
    DESERT = 0
    WINTER = 1
    FOREST = 2
    OTHER = 3


def _bits(word: int, shift: int, width: int = 1) -> int:
    return (word >> shift) & ((1 << width) - 1)


def _flag(word: int, bit: int) -> bool:
    return bool(_bits(word, bit))


def _hatch(value: int) -> HatchState | int:
    # Values 6 and 7 are unassigned; keep them as plain ints.
    try:
        return HatchState(value)
    except ValueError:
        return value


def _jsonable(value):
    if isinstance(value, IntEnum):
        return value.name
    return value


@dataclass(frozen=True)
class _PlatformAppearance:
    domain: Domain
    raw: int
    paint_scheme_camouflage: bool
    damage: DamageState
    smoke: SmokeState
    trailing_effects: TrailingEffects
    flaming: bool
    frozen: bool
    power_plant_on: bool
    deactivated: bool
    spot_lights: bool
    interior_lights: bool

    def to_dict(self) -> dict:
        return {k: _jsonable(v) for k, v in asdict(self).items()}


def _common(word: int) -> dict:
    return {
        "raw": word,
        "paint_scheme_camouflage": _flag(word, 0),
        "damage": DamageState(_bits(word, 3, 2)),
        "smoke": SmokeState(_bits(word, 5, 2)),
        "trailing_effects": TrailingEffects(_bits(word, 7, 2)),
        "flaming": _flag(word, 15),
        "frozen": _flag(word, 21),
        "power_plant_on": _flag(word, 22),
        "deactivated": _flag(word, 23),
        "spot_lights": _flag(word, 28),
        "interior_lights": _flag(word, 29),
    }


@dataclass(frozen=True)
class LandAppearance(_PlatformAppearance):
    mobility_kill: bool = False
    firepower_kill: bool = False
    hatch: HatchState | int = HatchState.NOT_APPLICABLE
    head_lights: bool = False
    tail_lights: bool = False
    brake_lights: bool = False
    launcher_raised: bool = False
    camouflage: Camouflage = Camouflage.DESERT
    concealed: bool = False
    tent_extended: bool = False
    ramp_down: bool = False
    blackout_lights: bool = False
    blackout_brake_lights: bool = False
    surrendered: bool = False
    masked: bool = False


@dataclass(frozen=True)
class AirAppearance(_PlatformAppearance):
    propulsion_kill: bool = False
    canopy: HatchState | int = HatchState.NOT_APPLICABLE
    landing_lights: bool = False
    navigation_lights: bool = False
    anti_collision_lights: bool = False
    afterburner_on: bool = False
    formation_lights: bool = False


@dataclass(frozen=True)
class SurfaceAppearance(_PlatformAppearance):
    mobility_kill: bool = False
    running_lights: bool = False


@dataclass(frozen=True)
class SubsurfaceAppearance(_PlatformAppearance):
    mobility_kill: bool = False
    hatch: HatchState | int = HatchState.NOT_APPLICABLE
    running_lights: bool = False


@dataclass(frozen=True)
class UnknownAppearance:
    domain: int
    raw: int
    damage = None

    def to_dict(self) -> dict:
        return {"domain": _jsonable(self.domain), "raw": self.raw}


AppearanceFlags = Union[
    LandAppearance, AirAppearance, SurfaceAppearance, SubsurfaceAppearance, UnknownAppearance,
]


def _decode_land(word: int) -> LandAppearance:
    return LandAppearance(
        domain=Domain.LAND,
        **_common(word),
        mobility_kill=_flag(word, 1),
        firepower_kill=_flag(word, 2),
        hatch=_hatch(_bits(word, 9, 3)),
        head_lights=_flag(word, 12),
        tail_lights=_flag(word, 13),
        brake_lights=_flag(word, 14),
        launcher_raised=_flag(word, 16),
        camouflage=Camouflage(_bits(word, 17, 2)),
        concealed=_flag(word, 19),
        tent_extended=_flag(word, 24),
        ramp_down=_flag(word, 25),
        blackout_lights=_flag(word, 26),
        blackout_brake_lights=_flag(word, 27),
        surrendered=_flag(word, 30),
        masked=_flag(word, 31),
    )


def _decode_air(word: int) -> AirAppearance:
    return AirAppearance(
        domain=Domain.AIR,
        **_common(word),
        propulsion_kill=_flag(word, 1),
        canopy=_hatch(_bits(word, 9, 3)),
        landing_lights=_flag(word, 12),
        navigation_lights=_flag(word, 13),
        anti_collision_lights=_flag(word, 14),
        afterburner_on=_flag(word, 16),
        formation_lights=_flag(word, 24),
    )


def _decode_surface(word: int) -> SurfaceAppearance:
    return SurfaceAppearance(
        domain=Domain.SURFACE,
        **_common(word),
        mobility_kill=_flag(word, 1),
        running_lights=_flag(word, 12),
    )


def _decode_subsurface(word: int) -> SubsurfaceAppearance:
    return SubsurfaceAppearance(
        domain=Domain.SUBSURFACE,
        **_common(word),
        mobility_kill=_flag(word, 1),
        hatch=_hatch(_bits(word, 9, 3)),
        running_lights=_flag(word, 12),
    )


_DECODERS = {
    Domain.LAND: _decode_land,
    Domain.AIR: _decode_air,
    Domain.SURFACE: _decode_surface,
    Domain.SUBSURFACE: _decode_subsurface,
}


def decode_appearance(domain: int, word: int, kind: int = EntityKind.PLATFORM) -> AppearanceFlags:
    """Decode an appearance word for the given entity domain.

    Only platform layouts are modelled; other kinds and unknown domains
    yield UnknownAppearance.
    """
    word &= 0xFFFFFFFF
    decoder = _DECODERS.get(domain) if kind == EntityKind.PLATFORM else None
    if decoder is None:
        try:
            domain = Domain(domain)
        except ValueError:
            pass
        return UnknownAppearance(domain=domain, raw=word)
    return decoder(word)
