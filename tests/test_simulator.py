"""Tests for the traffic simulator's PDU generation."""

from __future__ import annotations

import pytest

from disrelay.core.appearance import DamageState, Domain, LandAppearance
from disrelay.core.codec import decode_entity_state, encode_entity_state
from disrelay.core.errors import DecodeError
from disrelay.core.models import EntityID
from disrelay.core.processor import enrich
from tools.simulator.simulate import SimEntity, make_bad_datagram, make_pdu, move_entity
from tools.simulator.ws_listen import format_summary


def _tank(**overrides) -> SimEntity:
    fields = dict(
        entity_id=EntityID(1, 1, 7), domain=Domain.LAND, marking="LAN0007",
        lat=36.6, lon=-121.9, alt=0.0, heading=135.0, speed_mps=10.0,
    )
    fields.update(overrides)
    return SimEntity(**fields)


def test_generated_pdu_decodes_to_entity_state():
    tank = _tank(damage=2, carrier=EntityID(1, 1, 3))
    data = encode_entity_state(make_pdu(tank, exercise_id=4, timestamp=0))
    decoded = enrich(decode_entity_state(data))

    assert decoded.pdu.header.exercise_id == 4
    assert decoded.pdu.marking.text == "LAN0007"
    assert decoded.position.latitude == pytest.approx(36.6, abs=1e-7)
    assert decoded.position.longitude == pytest.approx(-121.9, abs=1e-7)
    assert decoded.orientation.heading == pytest.approx(135.0, abs=1e-3)
    assert isinstance(decoded.appearance, LandAppearance)
    assert decoded.appearance.damage == DamageState.MODERATE
    assert [ap.entity_id for ap in decoded.articulation] == [None, EntityID(1, 1, 3)]

    line = format_summary(decoded.to_summary())
    assert "LAN0007" in line
    assert "attached=1:1:3" in line


def test_move_entity_advances_position():
    tank = _tank(heading=0.0)
    move_entity(tank, 10.0)
    assert tank.lat > 36.6
    assert any(v != 0.0 for v in tank.velocity)


def test_bad_datagrams_are_rejected():
    good = encode_entity_state(make_pdu(_tank(), exercise_id=1, timestamp=0))
    for _ in range(50):
        with pytest.raises(DecodeError):
            decode_entity_state(make_bad_datagram(good))
