# domain/errors.py


class RouteMeshError(Exception):
    """Base class for route_mesh errors."""


class UnknownNodeError(RouteMeshError, LookupError):
    def __init__(self, node_id: str):
        super().__init__(f"node {node_id!r} is not in the graph")
        self.node_id = node_id


class ConfigError(RouteMeshError, ValueError):
    pass
