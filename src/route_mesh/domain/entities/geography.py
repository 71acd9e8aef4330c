# domain/entities/geography.py
from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

COORD_EPS_DEG = 1e-6  # ~0.1 m

PointKind = Literal["checkpoint", "house"]
SegmentTag = Literal["on-network", "off-network", "custom"]
SourceKind = Literal["main-route", "saved-segment", "none"]


@dataclass(frozen=True)
class Coordinate:
    lat: float  # degrees, WGS84
    lng: float

    def is_finite(self) -> bool:
        return math.isfinite(self.lat) and math.isfinite(self.lng)

    def same_as(self, other: Coordinate, eps: float = COORD_EPS_DEG) -> bool:
        return abs(self.lat - other.lat) <= eps and abs(self.lng - other.lng) <= eps


Polyline = tuple[Coordinate, ...]


def clean_polyline(points: Iterable[Coordinate]) -> Polyline:
    """Drop non-finite vertices and consecutive duplicates."""
    out: list[Coordinate] = []
    for p in points:
        if not p.is_finite():
            continue
        if out and out[-1].same_as(p):
            continue
        out.append(p)
    return tuple(out)


@dataclass(frozen=True)
class PathSegment:
    label: str
    positions: Polyline
    tag: SegmentTag
    distance_m: float

    @property
    def is_off_network(self) -> bool:
        return self.tag == "off-network"


@dataclass(frozen=True)
class PointOfInterest:
    id: int | str
    position: Coordinate
    kind: PointKind = "checkpoint"
    payload: Mapping[str, Any] = field(default_factory=dict, compare=False, hash=False)


@dataclass(frozen=True)
class ClassifiedPoint:
    point: PointOfInterest
    distance_m: float
    nearest: Coordinate | None
    is_off_network: bool
    source: SourceKind = "none"
    source_label: str | None = None  # saved segment label when source == "saved-segment"
    source_index: int | None = None  # position in the saved-segment list
    segment: int | None = None  # edge of the source polyline holding `nearest`
