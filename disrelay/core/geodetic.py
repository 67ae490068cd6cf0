"""ECEF <-> WGS-84 geodetic conversion.

Longitudes are returned in (-180, 180]. Latitudes and longitudes are in
degrees, altitude in metres above the ellipsoid.
"""

from __future__ import annotations

import math

from disrelay.core.models import GeodeticPosition

WGS84_A = 6378137.0                       # Semi-major axis [m]
WGS84_F = 1.0 / 298.257223563             # Flattening
WGS84_B = WGS84_A * (1 - WGS84_F)         # Semi-minor axis
WGS84_E2 = 2 * WGS84_F - WGS84_F ** 2     # First eccentricity squared
WGS84_EP2 = WGS84_E2 / (1 - WGS84_E2)     # Second eccentricity squared

# Bowring's first estimate is already sub-millimetre near the surface;
# two refinements keep it there out to orbital altitudes.
_REFINEMENTS = 2


def normalize_longitude(lon_deg: float) -> float:
    """Wrap a longitude into (-180, 180]."""
    lon = math.fmod(lon_deg, 360.0)
    if lon > 180.0:
        lon -= 360.0
    elif lon <= -180.0:
        lon += 360.0
    return lon


def ecef_to_geodetic(x: float, y: float, z: float) -> GeodeticPosition:
    """ECEF metres to WGS-84 geodetic (Bowring, fixed iteration count)."""
    p = math.hypot(x, y)

    if p == 0.0:
        # On the polar axis longitude is undefined; report 0.
        return GeodeticPosition(
            latitude=90.0 if z >= 0 else -90.0,
            longitude=0.0,
            altitude=abs(z) - WGS84_B,
        )

    lon = math.atan2(y, x)

    theta = math.atan2(z * WGS84_A, p * WGS84_B)
    lat = math.atan2(
        z + WGS84_EP2 * WGS84_B * math.sin(theta) ** 3,
        p - WGS84_E2 * WGS84_A * math.cos(theta) ** 3,
    )
    for _ in range(_REFINEMENTS):
        sin_lat = math.sin(lat)
        n = WGS84_A / math.sqrt(1 - WGS84_E2 * sin_lat ** 2)
        lat = math.atan2(z + WGS84_E2 * n * sin_lat, p)

    sin_lat = math.sin(lat)
    cos_lat = math.cos(lat)
    # Stable at every latitude, unlike p / cos(lat) - N.
    alt = p * cos_lat + z * sin_lat - WGS84_A * math.sqrt(1 - WGS84_E2 * sin_lat ** 2)

    return GeodeticPosition(
        latitude=math.degrees(lat),
        longitude=normalize_longitude(math.degrees(lon)),
        altitude=alt,
    )


def geodetic_to_ecef(lat_deg: float, lon_deg: float, alt_m: float) -> tuple[float, float, float]:
    """WGS-84 geodetic to ECEF metres."""
    lat = math.radians(lat_deg)
    lon = math.radians(lon_deg)
    sin_lat = math.sin(lat)
    cos_lat = math.cos(lat)

    n = WGS84_A / math.sqrt(1 - WGS84_E2 * sin_lat ** 2)

    x = (n + alt_m) * cos_lat * math.cos(lon)
    y = (n + alt_m) * cos_lat * math.sin(lon)
    z = (n * (1 - WGS84_E2) + alt_m) * sin_lat
    return x, y, z
