# io/network_logging.py
import json
import logging
import sys

from route_mesh.domain.hooks import NoopHooks


def _default_json_logger(name="route_mesh", level="INFO"):
    logger = logging.getLogger(name)
    if not logger.handlers:
        h = logging.StreamHandler(sys.stderr)

        class _JsonFormatter(logging.Formatter):
            def format(self, record: logging.LogRecord) -> str:
                payload = {
                    "level": record.levelname,
                    "msg": record.getMessage(),
                    "logger": record.name,
                }
                extra = getattr(record, "extra", None)
                if isinstance(extra, dict):
                    payload.update(extra)
                return json.dumps(payload, default=str)

        h.setFormatter(_JsonFormatter())
        logger.addHandler(h)
        logger.setLevel(level)
    return logger


class NetworkLogging(NoopHooks):
    """
    One place to shape and emit structured logs for classification, graph
    builds, path searches and the external boundaries.
    """

    def __init__(
        self,
        network: str = "default",
        level: str = "INFO",
        debug: bool = False,
        logger: logging.Logger | None = None,
    ):
        self.network, self.debug = network, debug
        self.log = logger or _default_json_logger(level=level)

    def _emit(self, level: str, msg: str, **extra):
        self.log.log(getattr(logging, level), msg, extra={"extra": {"network": self.network, **extra}})

    # core

    def points_classified(self, *, total, off_network, skipped):
        self._emit("INFO", "points_classified", total=total, off_network=off_network, skipped=skipped)

    def graph_built(self, *, nodes, edges, virtual_edges, isolated, weight_m):
        self._emit(
            "INFO",
            "graph_built",
            nodes=nodes,
            edges=edges,
            virtual_edges=virtual_edges,
            isolated=isolated,
            weight_m=round(weight_m, 3),
        )

    def path_found(self, *, start, goal, distance_m, edges, expanded):
        extra = {"expanded": expanded} if self.debug else {}
        self._emit(
            "INFO",
            "path_found",
            start=start,
            goal=goal,
            distance_m=round(distance_m, 3),
            edges=edges,
            **extra,
        )

    def path_missing(self, *, start, goal, expanded):
        extra = {"expanded": expanded} if self.debug else {}
        self._emit("INFO", "path_missing", start=start, goal=goal, **extra)

    def geometry_skipped(self, *, what, ref, reason):
        self._emit("WARNING", "geometry_skipped", what=what, ref=ref, reason=reason)

    # boundaries

    def record_skipped(self, *, key, index, reason):
        self._emit("WARNING", "record_skipped", key=key, index=index, reason=reason)

    def routing_failed(self, *, waypoints, reason):
        self._emit("WARNING", "routing_failed", waypoints=waypoints, reason=reason)
