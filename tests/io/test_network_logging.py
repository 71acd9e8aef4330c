# tests/io/test_network_logging.py
import json
import logging

from route_mesh.io.network_logging import NetworkLogging, _default_json_logger


def _records(caplog):
    return [(r.levelname, r.getMessage(), r.extra) for r in caplog.records]


def test_events_carry_structured_fields(caplog):
    log = NetworkLogging(network="kathmandu", logger=logging.getLogger("route_mesh.test"))
    with caplog.at_level(logging.INFO, logger="route_mesh.test"):
        log.points_classified(total=3, off_network=1, skipped=0)
        log.path_found(start="p0", goal="p1", distance_m=12.34567, edges=4, expanded=9)
        log.record_skipped(key="saved_paths", index=2, reason="degenerate")

    (lvl1, msg1, x1), (_, msg2, x2), (lvl3, msg3, x3) = _records(caplog)
    assert (lvl1, msg1) == ("INFO", "points_classified")
    assert x1 == {"network": "kathmandu", "total": 3, "off_network": 1, "skipped": 0}
    assert msg2 == "path_found"
    assert x2["distance_m"] == 12.346
    assert "expanded" not in x2
    assert (lvl3, msg3) == ("WARNING", "record_skipped")
    assert x3["index"] == 2


def test_debug_adds_search_effort(caplog):
    log = NetworkLogging(debug=True, logger=logging.getLogger("route_mesh.test.debug"))
    with caplog.at_level(logging.INFO, logger="route_mesh.test.debug"):
        log.path_missing(start="p0", goal="p1", expanded=5)
    assert caplog.records[0].extra["expanded"] == 5


def test_json_formatter_merges_extra():
    logger = _default_json_logger(name="route_mesh.test.json")
    handler = logger.handlers[0]
    record = logger.makeRecord(
        logger.name, logging.WARNING, __file__, 1, "routing_failed", (), None,
        extra={"extra": {"reason": "status_500", "waypoints": 2}},
    )
    payload = json.loads(handler.format(record))
    assert payload == {
        "level": "WARNING",
        "msg": "routing_failed",
        "logger": "route_mesh.test.json",
        "reason": "status_500",
        "waypoints": 2,
    }
