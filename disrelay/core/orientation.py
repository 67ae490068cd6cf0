"""DIS body orientation <-> local heading/pitch/roll.

DIS orientation (psi, theta, phi) is a Z-Y-X Euler rotation taking the ECEF
axes onto the entity body axes. Local angles are the same Z-Y-X rotation
taken from the North-East-Down frame at the entity's latitude/longitude.
Converting between them means expressing the body axes in the other frame
and reading the angles back off the rotation matrix.

Inputs: DIS angles in radians, latitude/longitude in degrees.
Outputs: heading [0, 360), pitch [-90, 90], roll (-180, 180], in degrees.
"""

from __future__ import annotations

import math

from disrelay.core.models import EulerAngles, OrientationAngles

# cos(pitch) below this is treated as gimbal lock.
_GIMBAL_EPS = 1e-9

Vector = tuple[float, float, float]


def _dot(a: Vector, b: Vector) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def _ned_axes(lat_deg: float, lon_deg: float) -> tuple[Vector, Vector, Vector]:
    """Unit North, East and Down vectors in ECEF at the given position."""
    lat = math.radians(lat_deg)
    lon = math.radians(lon_deg)
    sin_lat, cos_lat = math.sin(lat), math.cos(lat)
    sin_lon, cos_lon = math.sin(lon), math.cos(lon)
    north = (-sin_lat * cos_lon, -sin_lat * sin_lon, cos_lat)
    east = (-sin_lon, cos_lon, 0.0)
    down = (-cos_lat * cos_lon, -cos_lat * sin_lon, -sin_lat)
    return north, east, down


def _body_axes(yaw: float, pitch: float, roll: float) -> tuple[Vector, Vector, Vector]:
    """Body x, y, z axes expressed in the reference frame of a Z-Y-X rotation."""
    cy, sy = math.cos(yaw), math.sin(yaw)
    cp, sp = math.cos(pitch), math.sin(pitch)
    cr, sr = math.cos(roll), math.sin(roll)
    x_axis = (cp * cy, cp * sy, -sp)
    y_axis = (sr * sp * cy - cr * sy, sr * sp * sy + cr * cy, sr * cp)
    z_axis = (cr * sp * cy + sr * sy, cr * sp * sy - sr * cy, cr * cp)
    return x_axis, y_axis, z_axis


def _euler_from_axes(x_axis: Vector, y_axis: Vector, z_axis: Vector) -> tuple[float, float, float]:
    """Recover Z-Y-X (yaw, pitch, roll) radians from body axes in the reference frame."""
    pitch = math.atan2(-x_axis[2], math.hypot(x_axis[0], x_axis[1]))
    if math.cos(pitch) < _GIMBAL_EPS:
        # Yaw and roll are coupled here; pin roll to zero.
        return math.atan2(-y_axis[0], y_axis[1]), pitch, 0.0
    yaw = math.atan2(x_axis[1], x_axis[0])
    roll = math.atan2(y_axis[2], z_axis[2])
    return yaw, pitch, roll


def body_to_local(psi: float, theta: float, phi: float,
                  lat_deg: float, lon_deg: float) -> OrientationAngles:
    """DIS Euler angles (radians) to local heading/pitch/roll (degrees)."""
    north, east, down = _ned_axes(lat_deg, lon_deg)
    bx, by, bz = _body_axes(psi, theta, phi)

    # Body axes re-expressed in NED.
    x_ned = (_dot(bx, north), _dot(bx, east), _dot(bx, down))
    y_ned = (_dot(by, north), _dot(by, east), _dot(by, down))
    z_ned = (_dot(bz, north), _dot(bz, east), _dot(bz, down))

    yaw, pitch, roll = _euler_from_axes(x_ned, y_ned, z_ned)

    heading = math.degrees(yaw) % 360.0
    if heading >= 360.0:
        heading = 0.0
    roll_deg = math.degrees(roll)
    if roll_deg <= -180.0:
        roll_deg += 360.0
    return OrientationAngles(heading=heading, pitch=math.degrees(pitch), roll=roll_deg)


def local_to_body(heading_deg: float, pitch_deg: float, roll_deg: float,
                  lat_deg: float, lon_deg: float) -> EulerAngles:
    """Local heading/pitch/roll (degrees) to DIS Euler angles (radians)."""
    north, east, down = _ned_axes(lat_deg, lon_deg)
    bx, by, bz = _body_axes(
        math.radians(heading_deg), math.radians(pitch_deg), math.radians(roll_deg),
    )

    def to_ecef(v: Vector) -> Vector:
        return (
            v[0] * north[0] + v[1] * east[0] + v[2] * down[0],
            v[0] * north[1] + v[1] * east[1] + v[2] * down[1],
            v[0] * north[2] + v[1] * east[2] + v[2] * down[2],
        )

    psi, theta, phi = _euler_from_axes(to_ecef(bx), to_ecef(by), to_ecef(bz))
    return EulerAngles(psi=psi, theta=theta, phi=phi)
