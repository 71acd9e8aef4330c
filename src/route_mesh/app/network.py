# app/network.py
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from route_mesh.app.export import PathDetails, PointDistance, export_path_details, pairwise_distances
from route_mesh.app.segments import (
    CustomRoadPreview,
    SegmentRepository,
    custom_road,
    preview_custom_road,
    segments_from_path,
)
from route_mesh.domain.classifier import classify
from route_mesh.domain.entities.geography import (
    ClassifiedPoint,
    Coordinate,
    PathSegment,
    PointKind,
    PointOfInterest,
)
from route_mesh.domain.entities.graph import PathResult, RouteGraph
from route_mesh.domain.errors import UnknownNodeError
from route_mesh.domain.graph_builder import Stitching, build_graph
from route_mesh.domain.hooks import NetworkHooks, NoopHooks
from route_mesh.domain.pathfinder import find_path
from route_mesh.io.routing_client import MainRoute, RoutingService


@dataclass
class RouteNetwork:
    """
    Session over one operator's points, the main route and the saved segments.

    Classification and the graph are rebuilt from the current snapshot on
    every call, never patched in place.
    """

    threshold_m: float
    segments: SegmentRepository
    routing: RoutingService | None = None
    stitching: Stitching = field(default_factory=Stitching)
    hooks: NetworkHooks = field(default_factory=NoopHooks)
    points: dict[int | str, PointOfInterest] = field(default_factory=dict)
    main_route: MainRoute = field(default_factory=MainRoute.empty)
    _generation: int = field(default=0, init=False, repr=False)
    _next_id: int = field(default=1, init=False, repr=False)

    # ---------------- points ----------------

    def add_point(
        self,
        position: Coordinate,
        *,
        kind: PointKind = "checkpoint",
        payload: Mapping[str, Any] | None = None,
        point_id: int | str | None = None,
    ) -> PointOfInterest:
        if point_id is None:
            while self._next_id in self.points:
                self._next_id += 1
            point_id = self._next_id
            self._next_id += 1
        if point_id in self.points:
            raise ValueError(f"point {point_id!r} already exists")
        p = PointOfInterest(point_id, position, kind, dict(payload or {}))
        self.points[point_id] = p
        return p

    def add_points(self, positions: Iterable[Coordinate]) -> list[PointOfInterest]:
        return [self.add_point(p) for p in positions]

    def remove_point(self, point_id: int | str) -> bool:
        return self.points.pop(point_id, None) is not None

    def waypoints(self) -> list[Coordinate]:
        return [p.position for p in self.points.values()]

    # ---------------- main route ----------------

    def request_main_route(self) -> int:
        """Start a new routing request; older tokens become stale."""
        self._generation += 1
        return self._generation

    def set_main_route(
        self, route: MainRoute | Sequence[Coordinate], token: int | None = None
    ) -> bool:
        if token is not None and token != self._generation:
            return False  # stale response
        self.main_route = route if isinstance(route, MainRoute) else MainRoute(tuple(route))
        return True

    def refresh_main_route(self) -> MainRoute:
        if self.routing is None:
            return self.main_route
        token = self.request_main_route()
        self.set_main_route(self.routing.route(self.waypoints()), token)
        return self.main_route

    # ---------------- derived views ----------------

    def saved_segments(self) -> list[PathSegment]:
        return self.segments.load()

    def classified(self) -> list[ClassifiedPoint]:
        return classify(
            self.points.values(),
            self.main_route.polyline,
            self.saved_segments(),
            self.threshold_m,
            hooks=self.hooks,
        )

    def graph(self) -> RouteGraph:
        saved = self.saved_segments()
        classified = classify(
            self.points.values(), self.main_route.polyline, saved, self.threshold_m, hooks=self.hooks
        )
        return build_graph(
            self.main_route.polyline, saved, classified, stitching=self.stitching, hooks=self.hooks
        )

    def distance_table(self) -> list[PointDistance]:
        return pairwise_distances(list(self.points.values()))

    # ---------------- queries ----------------

    def find_path(self, source: int | str, target: int | str) -> PathResult | None:
        for pid in (source, target):
            if pid not in self.points:
                raise UnknownNodeError(str(pid))
        g = self.graph()
        a, b = g.point_node(source), g.point_node(target)
        if a is None or b is None:
            return None  # point skipped for bad geometry
        return find_path(g, a.id, b.id, hooks=self.hooks)

    def details(self, result: PathResult) -> PathDetails:
        return export_path_details(result)

    # ---------------- saved segments ----------------

    def save_path(self, result: PathResult, label: str) -> list[PathSegment]:
        segs = segments_from_path(result, label)
        self.segments.append(segs)
        return segs

    def preview_custom_road(
        self, label: str, polyline: Iterable[Coordinate]
    ) -> CustomRoadPreview | None:
        return preview_custom_road(
            label, polyline, self.main_route.polyline, self.saved_segments(), self.stitching
        )

    def add_custom_road(self, label: str, polyline: Iterable[Coordinate]) -> PathSegment | None:
        seg = custom_road(label, polyline)
        if seg is not None:
            self.segments.append([seg])
        return seg

    def clear_segments(self) -> None:
        self.segments.clear()

    def reset(self) -> None:
        """Drop points and the main route; saved segments stay."""
        self.points.clear()
        self.main_route = MainRoute.empty()
        self._generation += 1
        self._next_id = 1
