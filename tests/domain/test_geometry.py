# tests/domain/test_geometry.py
import math

import numpy as np
import pytest

from route_mesh.domain.entities.geography import Coordinate, clean_polyline
from route_mesh.domain.geometry import (
    EARTH_RADIUS_M,
    bearing_deg,
    compass_direction,
    distance_m,
    distances_from,
    nearest_point_on_polyline,
    polyline_length_m,
)

ONE_DEG_M = EARTH_RADIUS_M * math.pi / 180.0

PAIRS = [
    (Coordinate(0.0, 0.0), Coordinate(0.0, 1.0)),
    (Coordinate(27.696354, 85.336537), Coordinate(27.696662677926415, 85.33526643980764)),
    (Coordinate(-33.86, 151.21), Coordinate(51.5, -0.12)),
    (Coordinate(89.9, 10.0), Coordinate(-89.9, -170.0)),
]


@pytest.mark.parametrize("a,b", PAIRS)
def test_distance_is_zero_to_self_and_symmetric(a, b):
    assert distance_m(a, a) == 0.0
    assert distance_m(b, b) == 0.0
    assert distance_m(a, b) == pytest.approx(distance_m(b, a), abs=1e-9)
    assert distance_m(a, b) > 0


def test_one_degree_of_latitude():
    assert abs(distance_m(Coordinate(0.0, 0.0), Coordinate(1.0, 0.0)) - ONE_DEG_M) < 1e-6


def test_vectorized_distances_match_scalar():
    p = Coordinate(27.7, 85.3)
    others = [b for _, b in PAIRS]
    d = distances_from(p, np.array([o.lat for o in others]), np.array([o.lng for o in others]))
    assert np.allclose(d, [distance_m(p, o) for o in others], rtol=1e-9, atol=1e-6)


def test_polyline_length_sums_legs():
    line = (Coordinate(0, 0), Coordinate(0, 0.5), Coordinate(0, 1.0))
    assert polyline_length_m(line) == pytest.approx(ONE_DEG_M, rel=1e-9)
    assert polyline_length_m(line[:1]) == 0.0


@pytest.mark.parametrize(
    "to,expected",
    [
        (Coordinate(1.0, 0.0), 0.0),
        (Coordinate(0.0, 1.0), 90.0),
        (Coordinate(-1.0, 0.0), 180.0),
        (Coordinate(0.0, -1.0), 270.0),
    ],
)
def test_bearing_cardinal_points(to, expected):
    b = bearing_deg(Coordinate(0.0, 0.0), to)
    assert 0.0 <= b < 360.0
    assert b == pytest.approx(expected, abs=1e-9)


@pytest.mark.parametrize(
    "bearing,label",
    [
        (0.0, "N"),
        (22.4, "N"),
        (22.5, "NE"),
        (44.0, "NE"),
        (90.0, "E"),
        (135.0, "SE"),
        (180.0, "S"),
        (225.0, "SW"),
        (270.0, "W"),
        (315.0, "NW"),
        (337.4, "NW"),
        (337.5, "N"),
        (359.9, "N"),
    ],
)
def test_compass_direction_buckets(bearing, label):
    assert compass_direction(bearing) == label


def test_projection_needs_two_vertices():
    p = Coordinate(1.0, 1.0)
    assert nearest_point_on_polyline(p, ()).nearest is None
    proj = nearest_point_on_polyline(p, (Coordinate(0.0, 0.0),))
    assert proj.distance_m == 0.0 and proj.nearest is None


def test_projection_onto_vertex_is_exact():
    line = (Coordinate(0.0, 0.0), Coordinate(0.0, 0.01), Coordinate(0.01, 0.01))
    proj = nearest_point_on_polyline(Coordinate(0.0, 0.01), line)
    assert proj.distance_m == 0.0
    assert proj.nearest == Coordinate(0.0, 0.01)


def test_projection_is_perpendicular_inside_segment():
    line = (Coordinate(0.0, 0.0), Coordinate(0.0, 1.0))
    proj = nearest_point_on_polyline(Coordinate(0.001, 0.5), line)
    assert abs(proj.nearest.lat) < 1e-9
    assert proj.nearest.lng == pytest.approx(0.5, abs=1e-9)
    assert proj.distance_m == pytest.approx(0.001 * ONE_DEG_M, abs=1e-3)


def test_projection_clamps_to_segment_end():
    line = (Coordinate(0.0, 0.0), Coordinate(0.0, 1.0))
    proj = nearest_point_on_polyline(Coordinate(0.0, 1.5), line)
    assert proj.nearest == Coordinate(0.0, 1.0)
    assert proj.distance_m == pytest.approx(0.5 * ONE_DEG_M, rel=1e-9)


def test_projection_picks_closest_segment():
    line = (Coordinate(0.0, 0.0), Coordinate(0.0, 0.01), Coordinate(0.01, 0.01))
    proj = nearest_point_on_polyline(Coordinate(0.005, 0.0102), line)
    assert proj.nearest.lng == pytest.approx(0.01, abs=1e-9)
    assert proj.nearest.lat == pytest.approx(0.005, abs=1e-9)


def test_clean_polyline_drops_bad_and_repeated_vertices():
    line = clean_polyline(
        [
            Coordinate(0.0, 0.0),
            Coordinate(0.0, 0.0000001),
            Coordinate(float("nan"), 1.0),
            Coordinate(0.0, 1.0),
            Coordinate(0.0, float("inf")),
        ]
    )
    assert line == (Coordinate(0.0, 0.0), Coordinate(0.0, 1.0))
