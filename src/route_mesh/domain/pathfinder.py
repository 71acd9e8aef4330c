# domain/pathfinder.py
import heapq
import itertools
import math

from route_mesh.domain.entities.graph import POINT_KINDS, GraphEdge, PathResult, RouteGraph
from route_mesh.domain.errors import UnknownNodeError
from route_mesh.domain.geometry import distance_m
from route_mesh.domain.hooks import NetworkHooks, NoopHooks


def _reconstruct(came_from: dict[str, tuple[str, GraphEdge]], goal: str):
    path, edges = [goal], []
    cur = goal
    while cur in came_from:
        prev, e = came_from[cur]
        # normalise so the edge reads prev -> cur
        edges.append(e if e.source == prev else e.reversed())
        path.append(prev)
        cur = prev
    path.reverse()
    edges.reverse()
    return path, edges


def find_path(
    g: RouteGraph, start: str, goal: str, *, hooks: NetworkHooks | None = None
) -> PathResult | None:
    """
    A* over g from start to goal with a haversine heuristic.

    Returns None when goal is unreachable; raises UnknownNodeError only when
    start or goal is not a node of g.
    """
    hooks = hooks or NoopHooks()
    for nid in (start, goal):
        if nid not in g.nodes:
            raise UnknownNodeError(nid)

    target = g.nodes[goal].position

    def h(nid: str) -> float:
        return distance_m(g.nodes[nid].position, target)

    seq = itertools.count()  # FIFO among equal f-scores
    g_score: dict[str, float] = {start: 0.0}
    f_score: dict[str, float] = {start: h(start)}
    came_from: dict[str, tuple[str, GraphEdge]] = {}
    open_heap: list[tuple[float, int, str]] = [(f_score[start], next(seq), start)]
    closed: set[str] = set()
    expanded = 0

    while open_heap:
        f, _, cur = heapq.heappop(open_heap)
        if cur in closed or f > f_score.get(cur, math.inf):
            continue  # stale entry
        if cur == goal:
            path, edges = _reconstruct(came_from, goal)
            total = sum((e.weight_m for e in edges), 0.0)
            point_ids = tuple(
                g.nodes[nid].point_id for nid in path if g.nodes[nid].kind in POINT_KINDS
            )
            hooks.path_found(
                start=start, goal=goal, distance_m=total, edges=len(edges), expanded=expanded
            )
            return PathResult(path=path, distance_m=total, edges=edges, point_ids=point_ids)
        closed.add(cur)
        expanded += 1

        for nxt, e in g.neighbors(cur):
            if nxt in closed:
                continue
            tentative = g_score[cur] + e.weight_m
            if tentative < g_score.get(nxt, math.inf):
                came_from[nxt] = (cur, e)
                g_score[nxt] = tentative
                f_score[nxt] = tentative + h(nxt)
                heapq.heappush(open_heap, (f_score[nxt], next(seq), nxt))

    hooks.path_missing(start=start, goal=goal, expanded=expanded)
    return None
