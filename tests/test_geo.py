import math

import pytest

from footprint_grid.geo import METERS_PER_DEGREE, east_scale, from_planar, haversine_m, path_length_m, to_planar
from footprint_grid.models import Coordinate, PlanarPosition


def test_to_planar_uses_constant_latitude_scale():
    p = to_planar(Coordinate(1.0, 0.0))
    assert p.north_m == METERS_PER_DEGREE
    assert p.east_m == 0.0


def test_to_planar_longitude_scale_depends_on_latitude():
    at_equator = to_planar(Coordinate(0.0, 1.0))
    at_sixty = to_planar(Coordinate(60.0, 1.0))
    assert at_equator.east_m == pytest.approx(111_320.0)
    assert at_sixty.east_m == pytest.approx(111_320.0 * math.cos(math.radians(60.0)))
    assert at_sixty.east_m == pytest.approx(55_660.0, rel=1e-9)


def test_from_planar_inverts_to_planar_at_same_latitude():
    c = Coordinate(35.6812, 139.7671)
    back = from_planar(to_planar(c), c.latitude)
    assert back.latitude == pytest.approx(c.latitude, abs=1e-12)
    assert back.longitude == pytest.approx(c.longitude, abs=1e-12)


def test_from_planar_uses_reference_latitude():
    p = PlanarPosition(north_m=0.0, east_m=1000.0)
    assert from_planar(p, 60.0).longitude == pytest.approx(1000.0 / east_scale(60.0))


def test_haversine_one_degree_latitude():
    assert haversine_m(0.0, 0.0, 1.0, 0.0) == pytest.approx(111_195.0, abs=1.0)


def test_path_length_sums_segments():
    coords = [Coordinate(0.0, 0.0), Coordinate(1.0, 0.0), Coordinate(2.0, 0.0)]
    assert path_length_m(coords) == pytest.approx(2 * haversine_m(0.0, 0.0, 1.0, 0.0))
    assert path_length_m(coords[:1]) == 0.0
    assert path_length_m([]) == 0.0
