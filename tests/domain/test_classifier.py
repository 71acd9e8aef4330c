# tests/domain/test_classifier.py
import pytest

from route_mesh.domain.classifier import classify
from route_mesh.domain.entities.geography import Coordinate, PathSegment, PointOfInterest
from route_mesh.domain.hooks import NoopHooks

MAIN = (Coordinate(0.0, 0.0), Coordinate(0.0, 1.0))


class RecordingHooks(NoopHooks):
    def __init__(self):
        self.skipped = []
        self.summaries = []

    def geometry_skipped(self, *, what, ref, reason):
        self.skipped.append((what, ref, reason))

    def points_classified(self, **kw):
        self.summaries.append(kw)


def _poi(i, lat, lng, kind="checkpoint"):
    return PointOfInterest(i, Coordinate(lat, lng), kind)


def test_empty_network_is_provisionally_on_network():
    out = classify([_poi(1, 10.0, 10.0)], (), [], threshold_m=10.0)
    assert len(out) == 1
    cp = out[0]
    assert cp.is_off_network is False
    assert cp.nearest is None
    assert cp.source == "none"


@pytest.mark.parametrize("threshold", [0.001, 10.0, 50.0])
def test_point_on_vertex_is_on_network(threshold):
    (cp,) = classify([_poi(1, 0.0, 1.0)], MAIN, [], threshold_m=threshold)
    assert cp.distance_m == pytest.approx(0.0, abs=1e-9)
    assert cp.is_off_network is False
    assert cp.source == "main-route"


def test_off_network_point_near_main_route():
    (cp,) = classify([_poi(1, 0.001, 0.0005)], MAIN, [], threshold_m=50.0)
    assert cp.is_off_network is True
    assert cp.distance_m == pytest.approx(111.19, abs=0.05)
    assert cp.nearest.lng == pytest.approx(0.0005, abs=1e-9)


def test_threshold_is_strict():
    (cp,) = classify([_poi(1, 0.001, 0.5)], MAIN, [], threshold_m=1e9)
    (same,) = classify([_poi(1, 0.001, 0.5)], MAIN, [], threshold_m=cp.distance_m)
    assert same.is_off_network is False


def test_saved_segment_can_win_over_main_route():
    seg = PathSegment(
        "shortcut",
        (Coordinate(0.01, 0.0), Coordinate(0.01, 0.01)),
        "off-network",
        1111.95,
    )
    (cp,) = classify([_poi(7, 0.0099, 0.005)], MAIN, [seg], threshold_m=20.0)
    assert cp.source == "saved-segment"
    assert cp.source_label == "shortcut"
    assert cp.is_off_network is False
    assert cp.distance_m == pytest.approx(11.12, abs=0.05)


def test_degenerate_segments_do_not_count_as_network():
    seg = PathSegment("dot", (Coordinate(0.0, 0.0),), "custom", 0.0)
    (cp,) = classify([_poi(1, 5.0, 5.0)], (), [seg], threshold_m=10.0)
    assert cp.source == "none" and cp.is_off_network is False


def test_bad_points_are_skipped_not_fatal():
    hooks = RecordingHooks()
    pts = [_poi(i, 0.0, i / 100) for i in range(50)]
    pts.insert(10, _poi("bad", float("nan"), 0.0))
    out = classify(pts, MAIN, [], threshold_m=10.0, hooks=hooks)
    assert len(out) == 50
    assert "bad" not in {c.point.id for c in out}
    assert hooks.skipped == [("point", "bad", "non_finite")]
    assert hooks.summaries[-1]["skipped"] == 1


def test_classification_follows_inputs():
    p = _poi(1, 0.001, 0.5)
    before = classify([p], MAIN, [], threshold_m=50.0)[0]
    seg = PathSegment("near", (Coordinate(0.001, 0.4), Coordinate(0.001, 0.6)), "custom", 1.0)
    after = classify([p], MAIN, [seg], threshold_m=50.0)[0]
    assert before.is_off_network and not after.is_off_network
