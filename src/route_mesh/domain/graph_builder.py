# domain/graph_builder.py
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import numpy as np

from route_mesh.domain.entities.geography import (
    ClassifiedPoint,
    Coordinate,
    PathSegment,
    clean_polyline,
)
from route_mesh.domain.entities.graph import MAIN_GROUP, GraphEdge, GraphNode, RouteGraph
from route_mesh.domain.geometry import distance_m, distances_from
from route_mesh.domain.hooks import NetworkHooks, NoopHooks


@dataclass(frozen=True)
class Stitching:
    """Nearest-neighbour rule used to join fragments and points to the network."""

    radius_m: float = 1000.0
    max_neighbors: int = 3
    prefer_main_route: bool = True
    weld_tolerance_m: float = 0.1  # coincident nodes are always joined


def segment_group(i: int) -> str:
    return f"segment:{i}"


def point_group(k: int) -> str:
    return f"point:{k}"


class RoadIndex:
    """Flat numpy view over the road-kind nodes of a graph."""

    def __init__(self, nodes: Iterable[GraphNode]):
        road = [n for n in nodes if n.kind == "road"]
        self.ids = [n.id for n in road]
        self.groups = np.array([n.group for n in road], dtype=object)
        self.is_main = np.array([n.group == MAIN_GROUP for n in road], dtype=bool)
        self.lats = np.array([n.position.lat for n in road], dtype=float)
        self.lngs = np.array([n.position.lng for n in road], dtype=float)

    @classmethod
    def from_graph(cls, g: RouteGraph) -> "RoadIndex":
        return cls(g.nodes.values())

    def __len__(self) -> int:
        return len(self.ids)

    def nearest(
        self, p: Coordinate, rule: Stitching, *, exclude_group: str | None = None
    ) -> tuple[list[int], list[int]]:
        """
        Return (chosen, welded) index lists for p.

        chosen: up to rule.max_neighbors nodes within rule.radius_m, main-route
        nodes first when preferred, then ascending distance.
        welded: every node within rule.weld_tolerance_m.
        """
        if not len(self):
            return [], []
        d = distances_from(p, self.lats, self.lngs)
        mask = d <= rule.radius_m
        if exclude_group is not None:
            mask &= self.groups != exclude_group
        idx = np.flatnonzero(mask)
        if rule.prefer_main_route:
            order = sorted(idx, key=lambda i: (not self.is_main[i], d[i], i))
        else:
            order = sorted(idx, key=lambda i: (d[i], i))
        chosen = [int(i) for i in order[: max(0, rule.max_neighbors)]]
        welded = [int(i) for i in order if d[i] <= rule.weld_tolerance_m]
        return chosen, welded


class _Assembly:
    def __init__(self, stitching: Stitching, hooks: NetworkHooks):
        self.g = RouteGraph()
        self.rule = stitching
        self.hooks = hooks
        self._n_edges = 0
        self._joined: set[frozenset[str]] = set()
        self.index: RoadIndex | None = None

    def edge(self, a: GraphNode, b: GraphNode, kind, positions, weight: float | None = None):
        if kind == "virtual":
            pair = frozenset((a.id, b.id))
            if a.id == b.id or pair in self._joined:
                return None
            self._joined.add(pair)
        w = distance_m(positions[0], positions[-1]) if weight is None else weight
        e = GraphEdge(f"e{self._n_edges}", a.id, b.id, w, tuple(positions), kind)
        self._n_edges += 1
        return self.g.add_edge(e)

    def polyline(self, line, *, prefix: str, group: str, edge_kind) -> list[GraphNode]:
        nodes = [
            self.g.add_node(GraphNode(f"{prefix}{j}", p, "road", group=group))
            for j, p in enumerate(line)
        ]
        for a, b in zip(nodes, nodes[1:]):
            self.edge(a, b, edge_kind, (a.position, b.position))
        return nodes

    def chain(self, nodes: Sequence[GraphNode], kind) -> None:
        """Join consecutive nodes lying along one edge; weights are distances along it."""
        for a, b in zip(nodes, nodes[1:]):
            self._joined.add(frozenset((a.id, b.id)))
            self.edge(a, b, kind, (a.position, b.position))

    def stitch(self, node: GraphNode, *, exclude_group: str | None = None) -> list[str]:
        chosen, welded = self.index.nearest(node.position, self.rule, exclude_group=exclude_group)
        attached = []
        for i in dict.fromkeys(chosen + welded):
            other = self.g.nodes[self.index.ids[i]]
            if self.edge(node, other, "virtual", (node.position, other.position)):
                attached.append(other.id)
        return attached


def build_graph(
    main_route: Sequence[Coordinate],
    saved_segments: Iterable[PathSegment],
    classified_points: Iterable[ClassifiedPoint],
    *,
    stitching: Stitching | None = None,
    hooks: NetworkHooks | None = None,
) -> RouteGraph:
    """
    Assemble one undirected graph from the main route, saved segments and points.

    Node and edge ids follow input order, so identical inputs give an
    isomorphic graph. Degenerate geometry is skipped, never raised.
    """
    hooks = hooks or NoopHooks()
    asm = _Assembly(stitching or Stitching(), hooks)
    g = asm.g

    # 1) main route
    main = clean_polyline(main_route)
    if len(main) >= 2:
        asm.polyline(main, prefix="r", group=MAIN_GROUP, edge_kind="road")
    elif main_route:
        hooks.geometry_skipped(what="main_route", ref=None, reason="degenerate")

    # 2) saved segments, namespaced per segment
    ends: list[tuple[int, GraphNode, GraphNode]] = []
    edge_kinds = {"r": "road"}  # node-id prefix -> edge kind
    for i, seg in enumerate(saved_segments):
        line = clean_polyline(seg.positions)
        if len(line) < 2:
            hooks.geometry_skipped(what="segment", ref=seg.label, reason="degenerate")
            continue
        kind = edge_kinds[f"s{i}:"] = "off-road" if seg.is_off_network else "road"
        nodes = asm.polyline(line, prefix=f"s{i}:", group=segment_group(i), edge_kind=kind)
        ends.append((i, nodes[0], nodes[-1]))

    asm.index = RoadIndex.from_graph(g)

    # 3) stitch fragment endpoints into the rest of the network
    for i, first, last in ends:
        asm.stitch(first, exclude_group=segment_group(i))
        asm.stitch(last, exclude_group=segment_group(i))

    # 4) attach points through a virtual node at their projection
    attached: list[GraphNode] = []
    on_edge: dict[tuple[str, int], list[GraphNode]] = {}
    for k, cp in enumerate(classified_points):
        pos = cp.point.position
        if not pos.is_finite():
            hooks.geometry_skipped(what="point", ref=cp.point.id, reason="non_finite")
            continue
        pnode = g.add_node(
            GraphNode(f"p{k}", pos, cp.point.kind, point_id=cp.point.id, group=point_group(k))
        )
        if cp.nearest is None:
            continue  # empty network: left isolated
        anode = g.add_node(GraphNode(f"p{k}:a", cp.nearest, "virtual", group=point_group(k)))
        asm.edge(pnode, anode, "virtual", (pos, cp.nearest), weight=cp.distance_m)
        attached.append(anode)
        if cp.segment is not None:
            prefix = "r" if cp.source == "main-route" else f"s{cp.source_index}:"
            on_edge.setdefault((prefix, cp.segment), []).append(anode)

    # 5) projections split the edge they lie on, however far its vertices are
    for (prefix, j), nodes in on_edge.items():
        a, b = g.nodes.get(f"{prefix}{j}"), g.nodes.get(f"{prefix}{j + 1}")
        if a is None or b is None or prefix not in edge_kinds:
            continue  # classified against different geometry
        nodes.sort(key=lambda n: distance_m(a.position, n.position))
        asm.chain([a, *nodes, b], edge_kinds[prefix])

    # 6) stitch attach nodes like fragment endpoints
    for anode in attached:
        asm.stitch(anode)

    hooks.graph_built(
        nodes=len(g.nodes),
        edges=len(g.edges),
        virtual_edges=sum(e.kind == "virtual" for e in g.edges.values()),
        isolated=sum(not adj for adj in g.adjacency.values()),
        weight_m=g.total_weight_m,
    )
    return g
