# domain/hooks.py
from typing import Protocol


class NetworkHooks(Protocol):
    def points_classified(self, *, total, off_network, skipped): ...
    def graph_built(self, *, nodes, edges, virtual_edges, isolated, weight_m): ...
    def path_found(self, *, start, goal, distance_m, edges, expanded): ...
    def path_missing(self, *, start, goal, expanded): ...
    def geometry_skipped(self, *, what: str, ref, reason: str): ...
    def record_skipped(self, *, key: str, index, reason: str): ...
    def routing_failed(self, *, waypoints: int, reason: str): ...


class NoopHooks:
    def points_classified(self, **_):
        pass

    def graph_built(self, **_):
        pass

    def path_found(self, **_):
        pass

    def path_missing(self, **_):
        pass

    def geometry_skipped(self, **_):
        pass

    def record_skipped(self, **_):
        pass

    def routing_failed(self, **_):
        pass
