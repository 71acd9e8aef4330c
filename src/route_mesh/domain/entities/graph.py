# domain/entities/graph.py
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Literal

from route_mesh.domain.entities.geography import Coordinate, Polyline

NodeKind = Literal["road", "checkpoint", "house", "virtual"]
EdgeKind = Literal["road", "off-road", "virtual"]
MAIN_GROUP = "main-route"
POINT_KINDS = ("checkpoint", "house")


@dataclass(frozen=True)
class GraphNode:
    id: str
    position: Coordinate
    kind: NodeKind
    point_id: int | str | None = None  # back-reference into the caller's point set
    group: str = MAIN_GROUP  # "main-route", "segment:<i>" or "point:<k>"


@dataclass(frozen=True)
class GraphEdge:
    id: str
    source: str
    target: str
    weight_m: float
    positions: Polyline
    kind: EdgeKind

    def other(self, node_id: str) -> str:
        return self.target if node_id == self.source else self.source

    def reversed(self) -> GraphEdge:
        return replace(
            self,
            source=self.target,
            target=self.source,
            positions=tuple(reversed(self.positions)),
        )


@dataclass
class RouteGraph:
    nodes: dict[str, GraphNode] = field(default_factory=dict)
    edges: dict[str, GraphEdge] = field(default_factory=dict)
    adjacency: dict[str, list[str]] = field(default_factory=dict)

    def add_node(self, node: GraphNode) -> GraphNode:
        self.nodes[node.id] = node
        self.adjacency.setdefault(node.id, [])
        return node

    def add_edge(self, edge: GraphEdge) -> GraphEdge:
        self.edges[edge.id] = edge
        self.adjacency[edge.source].append(edge.id)
        self.adjacency[edge.target].append(edge.id)
        return edge

    def neighbors(self, node_id: str):
        for eid in self.adjacency.get(node_id, ()):
            e = self.edges[eid]
            yield e.other(node_id), e

    def point_node(self, point_id: int | str) -> GraphNode | None:
        for n in self.nodes.values():
            if n.point_id == point_id and n.kind in POINT_KINDS:
                return n
        return None

    @property
    def total_weight_m(self) -> float:
        return sum(e.weight_m for e in self.edges.values())


@dataclass(frozen=True)
class PathResult:
    path: list[str]
    distance_m: float
    edges: list[GraphEdge]
    point_ids: tuple[int | str, ...] = ()  # points passed through, in path order
