"""Tests for domain-dependent appearance decoding."""

from __future__ import annotations

import pytest

from disrelay.core.appearance import (
    AirAppearance,
    Camouflage,
    DamageState,
    Domain,
    EntityKind,
    HatchState,
    LandAppearance,
    SmokeState,
    SubsurfaceAppearance,
    SurfaceAppearance,
    TrailingEffects,
    UnknownAppearance,
    decode_appearance,
)


def test_zero_word_surface():
    app = decode_appearance(Domain.SURFACE, 0)
    assert isinstance(app, SurfaceAppearance)
    assert app.domain == Domain.SURFACE
    assert app.damage == DamageState.NO_DAMAGE
    assert app.smoke == SmokeState.NONE
    assert not app.flaming
    assert not app.mobility_kill
    assert not app.running_lights


@pytest.mark.parametrize("domain, cls", [
    (Domain.LAND, LandAppearance),
    (Domain.AIR, AirAppearance),
    (Domain.SURFACE, SurfaceAppearance),
    (Domain.SUBSURFACE, SubsurfaceAppearance),
])
@pytest.mark.parametrize("value, damage", [
    (0, DamageState.NO_DAMAGE),
    (1, DamageState.SLIGHT),
    (2, DamageState.MODERATE),
    (3, DamageState.DESTROYED),
])
def test_damage_field_is_bits_3_and_4(domain, cls, value, damage):
    app = decode_appearance(domain, value << 3)
    assert isinstance(app, cls)
    assert app.damage == damage


def test_common_flags():
    word = (1 << 0) | (2 << 5) | (3 << 7) | (1 << 15) | (1 << 21) | (1 << 22) | (1 << 23)
    app = decode_appearance(Domain.SURFACE, word)
    assert app.paint_scheme_camouflage
    assert app.smoke == SmokeState.ENGINE_SMOKE
    assert app.trailing_effects == TrailingEffects.LARGE
    assert app.flaming
    assert app.frozen
    assert app.power_plant_on
    assert app.deactivated
    assert app.raw == word


def test_land_flags():
    word = (1 << 1) | (1 << 2) | (4 << 9) | (1 << 12) | (2 << 17) | (1 << 25) | (1 << 31)
    app = decode_appearance(Domain.LAND, word)
    assert isinstance(app, LandAppearance)
    assert app.mobility_kill
    assert app.firepower_kill
    assert app.hatch == HatchState.OPEN
    assert app.head_lights
    assert not app.tail_lights
    assert app.camouflage == Camouflage.FOREST
    assert app.ramp_down
    assert app.masked
    assert not app.surrendered


def test_air_flags():
    word = (1 << 1) | (1 << 9) | (1 << 13) | (1 << 16) | (1 << 24)
    app = decode_appearance(Domain.AIR, word)
    assert isinstance(app, AirAppearance)
    assert app.propulsion_kill
    assert app.canopy == HatchState.CLOSED
    assert app.navigation_lights
    assert app.afterburner_on
    assert app.formation_lights
    assert not app.landing_lights


def test_subsurface_flags():
    app = decode_appearance(Domain.SUBSURFACE, (2 << 9) | (1 << 12))
    assert isinstance(app, SubsurfaceAppearance)
    assert app.hatch == HatchState.POPPED
    assert app.running_lights


def test_all_bits_set_never_raises():
    app = decode_appearance(Domain.LAND, 0xFFFFFFFF)
    assert app.damage == DamageState.DESTROYED
    # Hatch value 7 is unassigned and comes back as a plain int.
    assert app.hatch == 7
    assert app.to_dict()["hatch"] == 7


def test_unknown_domain():
    app = decode_appearance(9, 0x12345678)
    assert isinstance(app, UnknownAppearance)
    assert app.raw == 0x12345678
    assert app.damage is None
    assert app.to_dict() == {"domain": 9, "raw": 0x12345678}


def test_space_domain_is_unknown():
    app = decode_appearance(Domain.SPACE, 3 << 3)
    assert isinstance(app, UnknownAppearance)
    assert app.to_dict()["domain"] == "SPACE"


def test_non_platform_kind_is_unknown():
    app = decode_appearance(Domain.LAND, 1 << 3, kind=EntityKind.LIFE_FORM)
    assert isinstance(app, UnknownAppearance)


def test_to_dict_uses_enum_names():
    d = decode_appearance(Domain.SURFACE, 2 << 3).to_dict()
    assert d["domain"] == "SURFACE"
    assert d["damage"] == "MODERATE"
    assert d["running_lights"] is False
