"""Tests for body <-> local orientation conversion."""

from __future__ import annotations

import math

import pytest

from disrelay.core.orientation import body_to_local, local_to_body


def _angle_close(a: float, b: float, tol: float = 1e-6) -> bool:
    diff = (a - b + 180.0) % 360.0 - 180.0
    return abs(diff) < tol


def test_level_north_at_origin():
    # At 0N 0E, north is ECEF +Z: the body x-axis is pitched -90 deg about ECEF Y.
    ori = body_to_local(0.0, -math.pi / 2, 0.0, 0.0, 0.0)
    assert ori.heading == pytest.approx(0.0, abs=1e-9)
    assert ori.pitch == pytest.approx(0.0, abs=1e-9)
    assert ori.roll == pytest.approx(0.0, abs=1e-9)


def test_level_east_at_origin_inverse():
    euler = local_to_body(90.0, 0.0, 0.0, 0.0, 0.0)
    assert euler.psi == pytest.approx(math.pi / 2)
    assert euler.theta == pytest.approx(0.0, abs=1e-12)
    assert euler.phi == pytest.approx(-math.pi / 2)


def test_nose_up_at_origin():
    # Body x along ECEF +X (straight up at 0N 0E).
    ori = body_to_local(0.0, 0.0, 0.0, 0.0, 0.0)
    assert ori.pitch == pytest.approx(90.0)


@pytest.mark.parametrize("lat, lon", [
    (45.0, 0.0),
    (36.6, -121.9),
    (-33.8688, 151.2093),
])
@pytest.mark.parametrize("heading, pitch, roll", [
    (0.0, 0.0, 0.0),
    (90.0, 0.0, 0.0),
    (271.5, 10.0, -20.0),
    (45.0, -30.0, 179.0),
    (359.0, 85.0, 5.0),
])
def test_local_body_local(lat, lon, heading, pitch, roll):
    euler = local_to_body(heading, pitch, roll, lat, lon)
    ori = body_to_local(euler.psi, euler.theta, euler.phi, lat, lon)
    assert _angle_close(ori.heading, heading)
    assert ori.pitch == pytest.approx(pitch, abs=1e-6)
    assert _angle_close(ori.roll, roll)


def test_output_ranges():
    for psi in (-3.0, -1.0, 0.0, 1.0, 3.0):
        for theta in (-1.5, -0.5, 0.0, 0.5, 1.5):
            for phi in (-3.1, -1.0, 0.0, 2.0, 3.1):
                ori = body_to_local(psi, theta, phi, 52.0, 4.0)
                assert 0.0 <= ori.heading < 360.0
                assert -90.0 <= ori.pitch <= 90.0
                assert -180.0 < ori.roll <= 180.0


def test_inverted_roll_stays_in_range():
    euler = local_to_body(10.0, 0.0, 180.0, 20.0, 30.0)
    ori = body_to_local(euler.psi, euler.theta, euler.phi, 20.0, 30.0)
    assert -180.0 < ori.roll <= 180.0
    assert abs(ori.roll) == pytest.approx(180.0, abs=1e-6)


def test_vertical_climb_keeps_heading():
    euler = local_to_body(30.0, 90.0, 0.0, 10.0, 20.0)
    ori = body_to_local(euler.psi, euler.theta, euler.phi, 10.0, 20.0)
    assert ori.pitch == pytest.approx(90.0, abs=1e-6)
    assert ori.heading == pytest.approx(30.0, abs=1e-4)
    assert ori.roll == pytest.approx(0.0, abs=1e-4)


def test_same_euler_different_place_gives_different_heading():
    a = body_to_local(0.3, -0.8, 0.1, 10.0, 10.0)
    b = body_to_local(0.3, -0.8, 0.1, 60.0, -100.0)
    assert not _angle_close(a.heading, b.heading, tol=1.0)
