# domain/geometry.py
import math
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from route_mesh.domain.entities.geography import Coordinate

EARTH_RADIUS_M = 6_371_000.0
_M_PER_RAD = EARTH_RADIUS_M
COMPASS = ("N", "NE", "E", "SE", "S", "SW", "W", "NW")


@dataclass(frozen=True)
class Projection:
    distance_m: float
    nearest: Coordinate | None
    segment: int | None = None  # index j of the closest edge (vertex j to j + 1)


def distance_m(a: Coordinate, b: Coordinate) -> float:
    """Haversine great-circle distance in meters."""
    phi1, phi2 = math.radians(a.lat), math.radians(b.lat)
    dphi = phi2 - phi1
    dlmb = math.radians(b.lng - a.lng)
    h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.atan2(math.sqrt(h), math.sqrt(max(0.0, 1 - h)))


def distances_from(p: Coordinate, lats: np.ndarray, lngs: np.ndarray) -> np.ndarray:
    """Vectorized haversine from one point to many (degrees in, meters out)."""
    phi1 = math.radians(p.lat)
    phi2 = np.radians(lats)
    dphi = phi2 - phi1
    dlmb = np.radians(lngs - p.lng)
    h = np.sin(dphi / 2) ** 2 + math.cos(phi1) * np.cos(phi2) * np.sin(dlmb / 2) ** 2
    return 2 * EARTH_RADIUS_M * np.arctan2(np.sqrt(h), np.sqrt(np.clip(1 - h, 0.0, None)))


def polyline_length_m(line: Sequence[Coordinate]) -> float:
    return sum(distance_m(a, b) for a, b in zip(line, line[1:]))


def bearing_deg(a: Coordinate, b: Coordinate) -> float:
    """Initial compass bearing from a to b, in [0, 360)."""
    phi1, phi2 = math.radians(a.lat), math.radians(b.lat)
    dlmb = math.radians(b.lng - a.lng)
    y = math.sin(dlmb) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(dlmb)
    return math.degrees(math.atan2(y, x)) % 360.0


def compass_direction(bearing: float) -> str:
    idx = (math.floor(bearing / 45.0 + 0.5) * 45) % 360 // 45
    return COMPASS[idx]


# ---------------- projection onto polylines ----------------


def _wrap_lng(d: float) -> float:
    return (d + 180.0) % 360.0 - 180.0


def nearest_point_on_polyline(p: Coordinate, line: Sequence[Coordinate]) -> Projection:
    """
    Project p onto the closest segment of line.

    Segments are flattened on a local equirectangular plane centred on p, which
    is accurate at the scales stitching cares about; the reported distance is
    the haversine distance from p to the projected location.
    """
    if len(line) < 2:
        return Projection(0.0, None)

    kx = math.cos(math.radians(p.lat)) * math.radians(1.0) * _M_PER_RAD
    ky = math.radians(1.0) * _M_PER_RAD
    kx = max(kx, 1e-9)

    best: Projection | None = None
    for j, (a, b) in enumerate(zip(line, line[1:])):
        ax, ay = _wrap_lng(a.lng - p.lng) * kx, (a.lat - p.lat) * ky
        bx, by = _wrap_lng(b.lng - p.lng) * kx, (b.lat - p.lat) * ky
        dx, dy = bx - ax, by - ay
        seg2 = dx * dx + dy * dy
        t = 0.0 if seg2 == 0 else min(1.0, max(0.0, -(ax * dx + ay * dy) / seg2))
        if t == 0.0:
            q = a
        elif t == 1.0:
            q = b
        else:
            q = Coordinate(p.lat + (ay + t * dy) / ky, p.lng + (ax + t * dx) / kx)
        d = distance_m(p, q)
        if best is None or d < best.distance_m:
            best = Projection(d, q, j)
    return best
