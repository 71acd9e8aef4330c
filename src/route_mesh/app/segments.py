# app/segments.py
"""
Segment persistence adapter.

Turns path results and operator-drawn polylines into PathSegment records and
moves them in and out of a key-value store. Every legacy record shape is
translated here so the core only ever sees PathSegment.
"""

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, model_validator

from route_mesh.domain.entities.geography import (
    Coordinate,
    PathSegment,
    SegmentTag,
    clean_polyline,
)
from route_mesh.domain.entities.graph import PathResult
from route_mesh.domain.geometry import distance_m, polyline_length_m
from route_mesh.domain.graph_builder import RoadIndex, Stitching, build_graph
from route_mesh.domain.hooks import NetworkHooks, NoopHooks
from route_mesh.io.segment_store import KeyValueStore

_TAG_BY_EDGE_KIND: dict[str, SegmentTag] = {
    "road": "on-network",
    "off-road": "off-network",
    "virtual": "off-network",
}


# ---------------- stored record shape ----------------


class LatLng(BaseModel):
    model_config = ConfigDict(extra="ignore")
    lat: float
    lng: float = Field(validation_alias=AliasChoices("lng", "lon"))

    @model_validator(mode="before")
    @classmethod
    def _from_pair(cls, v: Any):
        # legacy GeoJSON order: [lng, lat]
        if isinstance(v, (list, tuple)) and len(v) == 2:
            return {"lat": v[1], "lng": v[0]}
        return v


class SegmentRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)
    label: str = Field(default="", validation_alias=AliasChoices("label", "name"))
    positions: list[LatLng] = Field(
        validation_alias=AliasChoices("positions", "path", "coordinates")
    )
    isOffRoad: bool = Field(
        default=False, validation_alias=AliasChoices("isOffRoad", "offRoad", "is_off_road")
    )
    distance: float | None = Field(
        default=None, validation_alias=AliasChoices("distance", "distance_m", "length")
    )
    custom: bool = False

    @model_validator(mode="before")
    @classmethod
    def _legacy_type(cls, v: Any):
        if isinstance(v, dict) and "type" in v:
            v = dict(v)
            kind = v.pop("type")
            if kind == "custom":
                v.setdefault("custom", True)
            elif kind in ("off-road", "offroad", "off-network"):
                v.setdefault("isOffRoad", True)
        return v

    def to_segment(self) -> PathSegment | None:
        line = clean_polyline(Coordinate(p.lat, p.lng) for p in self.positions)
        if len(line) < 2:
            return None
        if self.custom:
            tag: SegmentTag = "custom"
        else:
            tag = "off-network" if self.isOffRoad else "on-network"
        dist = self.distance
        if dist is None or not math.isfinite(dist) or dist < 0:
            dist = polyline_length_m(line)
        return PathSegment(label=self.label, positions=line, tag=tag, distance_m=dist)

    @classmethod
    def from_segment(cls, seg: PathSegment) -> "SegmentRecord":
        return cls(
            label=seg.label,
            positions=[LatLng(lat=p.lat, lng=p.lng) for p in seg.positions],
            isOffRoad=seg.is_off_network,
            distance=seg.distance_m,
            custom=seg.tag == "custom",
        )

    def dump(self) -> dict:
        out = self.model_dump(exclude={"custom"})
        if self.custom:
            out["custom"] = True
        return out


# ---------------- shaping ----------------


def segments_from_path(result: PathResult, label: str) -> list[PathSegment]:
    """
    One segment per maximal run of edges sharing a stored tag.

    Each segment's distance is the sum of its edges' weights, so the segments
    add up to result.distance_m.
    """
    runs: list[tuple[SegmentTag, list]] = []
    for e in result.edges:
        tag = _TAG_BY_EDGE_KIND[e.kind]
        if runs and runs[-1][0] == tag:
            runs[-1][1].append(e)
        else:
            runs.append((tag, [e]))

    out = []
    for n, (tag, edges) in enumerate(runs, start=1):
        line = clean_polyline(p for e in edges for p in e.positions)
        if len(line) < 2:
            continue  # zero-length run
        name = label if len(runs) == 1 else f"{label} #{n}"
        out.append(PathSegment(name, line, tag, sum(e.weight_m for e in edges)))
    return out


def custom_road(label: str, polyline: Iterable[Coordinate]) -> PathSegment | None:
    line = clean_polyline(polyline)
    if len(line) < 2:
        return None
    return PathSegment(label, line, "custom", polyline_length_m(line))


def _same_segment(a: PathSegment, b: PathSegment) -> bool:
    return (
        a.tag == b.tag
        and len(a.positions) == len(b.positions)
        and all(p.same_as(q) for p, q in zip(a.positions, b.positions))
    )


def merge_segments(
    existing: Sequence[PathSegment], new: Iterable[PathSegment]
) -> list[PathSegment]:
    merged = list(existing)
    for seg in new:
        if not any(_same_segment(seg, old) for old in merged):
            merged.append(seg)
    return merged


# ---------------- custom road preview ----------------


@dataclass(frozen=True)
class Attachment:
    node_id: str
    position: Coordinate
    distance_m: float
    group: str


@dataclass(frozen=True)
class CustomRoadPreview:
    segment: PathSegment
    start: list[Attachment]
    end: list[Attachment]

    @property
    def connected(self) -> bool:
        return bool(self.start or self.end)


def preview_custom_road(
    label: str,
    polyline: Iterable[Coordinate],
    main_route: Sequence[Coordinate],
    saved_segments: Sequence[PathSegment],
    stitching: Stitching | None = None,
) -> CustomRoadPreview | None:
    """Report where a drawn road would attach to the current network. Persists nothing."""
    seg = custom_road(label, polyline)
    if seg is None:
        return None
    rule = stitching or Stitching()
    g = build_graph(main_route, saved_segments, [], stitching=rule)
    index = RoadIndex.from_graph(g)

    def attachments(p: Coordinate) -> list[Attachment]:
        chosen, welded = index.nearest(p, rule)
        out = []
        for i in dict.fromkeys(chosen + welded):
            node = g.nodes[index.ids[i]]
            out.append(Attachment(node.id, node.position, distance_m(p, node.position), node.group))
        return out

    return CustomRoadPreview(seg, attachments(seg.positions[0]), attachments(seg.positions[-1]))


# ---------------- repository ----------------


class SegmentRepository:
    """Whole-list read/replace of saved segments under one store key."""

    def __init__(
        self, store: KeyValueStore, key: str = "saved_paths", hooks: NetworkHooks | None = None
    ):
        self.store, self.key = store, key
        self.hooks = hooks or NoopHooks()

    def load(self) -> list[PathSegment]:
        raw = self.store.get(self.key) or []
        if not isinstance(raw, list):
            self.hooks.record_skipped(key=self.key, index=None, reason="not_a_list")
            return []
        out = []
        for i, item in enumerate(raw):
            try:
                seg = SegmentRecord.model_validate(item).to_segment()
            except ValidationError as exc:
                self.hooks.record_skipped(key=self.key, index=i, reason=str(exc.errors()[0]["type"]))
                continue
            if seg is None:
                self.hooks.record_skipped(key=self.key, index=i, reason="degenerate")
                continue
            out.append(seg)
        return out

    def save_all(self, segments: Iterable[PathSegment]) -> None:
        self.store.set(self.key, [SegmentRecord.from_segment(s).dump() for s in segments])

    def append(self, new: Iterable[PathSegment]) -> list[PathSegment]:
        merged = merge_segments(self.load(), new)
        self.save_all(merged)
        return merged

    def clear(self) -> None:
        self.store.delete(self.key)
