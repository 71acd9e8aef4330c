# domain/classifier.py
from collections.abc import Iterable, Sequence

from route_mesh.domain.entities.geography import (
    ClassifiedPoint,
    Coordinate,
    PathSegment,
    PointOfInterest,
    clean_polyline,
)
from route_mesh.domain.geometry import nearest_point_on_polyline
from route_mesh.domain.hooks import NetworkHooks, NoopHooks


def _candidates(main_route: Sequence[Coordinate], saved: Iterable[PathSegment]):
    """Yield (source, label, index, polyline) for every polyline usable for projection."""
    main = clean_polyline(main_route)
    if len(main) >= 2:
        yield "main-route", None, None, main
    for i, seg in enumerate(saved):
        line = clean_polyline(seg.positions)
        if len(line) >= 2:
            yield "saved-segment", seg.label, i, line


def classify_point(
    point: PointOfInterest,
    candidates: Sequence[tuple[str, str | None, int | None, tuple[Coordinate, ...]]],
    threshold_m: float,
) -> ClassifiedPoint:
    best = None
    for source, label, index, line in candidates:
        proj = nearest_point_on_polyline(point.position, line)
        if proj.nearest is None:
            continue
        if best is None or proj.distance_m < best[0].distance_m:
            best = (proj, source, label, index)

    if best is None:
        # nothing to be off of
        return ClassifiedPoint(point, 0.0, None, False, "none")

    proj, source, label, index = best
    return ClassifiedPoint(
        point=point,
        distance_m=proj.distance_m,
        nearest=proj.nearest,
        is_off_network=proj.distance_m > threshold_m,
        source=source,
        source_label=label,
        source_index=index,
        segment=proj.segment,
    )


def classify(
    points: Iterable[PointOfInterest],
    main_route: Sequence[Coordinate],
    saved_segments: Iterable[PathSegment],
    threshold_m: float,
    *,
    hooks: NetworkHooks | None = None,
) -> list[ClassifiedPoint]:
    """
    Label every point on- or off-network against all known polylines.

    Always recomputed from scratch; points with non-finite coordinates are
    skipped so one bad input does not abort the batch.
    """
    hooks = hooks or NoopHooks()
    candidates = list(_candidates(main_route, saved_segments))
    out: list[ClassifiedPoint] = []
    skipped = 0
    for p in points:
        if not p.position.is_finite():
            skipped += 1
            hooks.geometry_skipped(what="point", ref=p.id, reason="non_finite")
            continue
        out.append(classify_point(p, candidates, threshold_m))
    hooks.points_classified(
        total=len(out), off_network=sum(c.is_off_network for c in out), skipped=skipped
    )
    return out
