# app/export.py
from collections.abc import Sequence

from pydantic import BaseModel

from route_mesh.domain.entities.geography import PointOfInterest
from route_mesh.domain.entities.graph import GraphEdge, PathResult
from route_mesh.domain.geometry import bearing_deg, compass_direction, distance_m

_ALONG = {
    "road": "along the road",
    "off-road": "off-road",
    "virtual": "on a straight connector",
}


def format_distance(m: float) -> str:
    return f"{m / 1000:.2f} km" if m >= 1000 else f"{m:.2f} m"


class EdgeDetail(BaseModel):
    index: int
    edge_id: str
    source: str
    target: str
    kind: str
    distance_m: float
    bearing_deg: float
    direction: str
    description: str


class PathDetails(BaseModel):
    start: str
    goal: str
    node_path: list[str]
    point_ids: list[int | str]
    total_distance_m: float
    total_distance_text: str
    edges: list[EdgeDetail]


class PointDistance(BaseModel):
    source: int | str
    target: int | str
    distance_m: float


def _edge_detail(i: int, e: GraphEdge) -> EdgeDetail:
    a, b = e.positions[0], e.positions[-1]
    if e.weight_m <= 0 or a.same_as(b):
        brg, direction = 0.0, "-"
        text = "Connect in place"
    else:
        brg = bearing_deg(a, b)
        direction = compass_direction(brg)
        text = f"Head {direction} for {format_distance(e.weight_m)} {_ALONG[e.kind]}"
    return EdgeDetail(
        index=i,
        edge_id=e.id,
        source=e.source,
        target=e.target,
        kind=e.kind,
        distance_m=e.weight_m,
        bearing_deg=brg,
        direction=direction,
        description=text,
    )


def export_path_details(result: PathResult) -> PathDetails:
    """Flatten a path into a serialisable per-edge report."""
    return PathDetails(
        start=result.path[0],
        goal=result.path[-1],
        node_path=list(result.path),
        point_ids=list(result.point_ids),
        total_distance_m=result.distance_m,
        total_distance_text=format_distance(result.distance_m),
        edges=[_edge_detail(i, e) for i, e in enumerate(result.edges)],
    )


def pairwise_distances(points: Sequence[PointOfInterest]) -> list[PointDistance]:
    """Straight-line distance between every pair of points, to the centimetre."""
    pts = [p for p in points if p.position.is_finite()]
    out = []
    for i, a in enumerate(pts):
        for b in pts[i + 1 :]:
            d = round(distance_m(a.position, b.position), 2)
            out.append(PointDistance(source=a.id, target=b.id, distance_m=d))
    return out
