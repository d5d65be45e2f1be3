"""Geospatial utilities (no external dependencies).

The planar projection is a local equirectangular approximation: good enough
for 100 m cells, not a geodesic projection.
"""

from __future__ import annotations

import math
from typing import Final, Iterable

from footprint_grid.models import Coordinate, PlanarPosition

METERS_PER_DEGREE: Final[float] = 111_320.0


def east_scale(latitude: float) -> float:
    """Meters per degree of longitude at the given latitude."""

    return METERS_PER_DEGREE * math.cos(math.radians(latitude))


def to_planar(c: Coordinate) -> PlanarPosition:
    """Project a coordinate to approximate planar meters.

    The longitude scale is evaluated at the coordinate's own latitude.
    """

    return PlanarPosition(
        north_m=c.latitude * METERS_PER_DEGREE,
        east_m=c.longitude * east_scale(c.latitude),
    )


def from_planar(p: PlanarPosition, ref_latitude: float) -> Coordinate:
    """Invert `to_planar` using the longitude scale at ``ref_latitude``.

    Args:
        p: Planar position in meters.
        ref_latitude: Latitude (degrees) at which the east scale is evaluated.

    Returns:
        Coordinate. Undefined at the poles where the east scale is zero.
    """

    return Coordinate(
        latitude=p.north_m / METERS_PER_DEGREE,
        longitude=p.east_m / east_scale(ref_latitude),
    )


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute Haversine distance in meters between two lat/lon points.

    Args:
        lat1: Latitude 1 in degrees.
        lon1: Longitude 1 in degrees.
        lat2: Latitude 2 in degrees.
        lon2: Longitude 2 in degrees.

    Returns:
        Distance in meters.
    """

    r = 6_371_000.0  # mean Earth radius in meters
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2.0) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2.0) ** 2
    c = 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))
    return r * c


def path_length_m(coordinates: Iterable[Coordinate]) -> float:
    """Sum of great-circle distances between consecutive coordinates."""

    total = 0.0
    prev: Coordinate | None = None
    for cur in coordinates:
        if prev is not None:
            total += haversine_m(prev.latitude, prev.longitude, cur.latitude, cur.longitude)
        prev = cur
    return total
