# io/routing_client.py
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import httpx

from route_mesh.domain.entities.geography import Coordinate, Polyline, clean_polyline
from route_mesh.domain.hooks import NetworkHooks, NoopHooks


@dataclass(frozen=True)
class MainRoute:
    polyline: Polyline
    distance_m: float = 0.0
    time_s: float = 0.0

    @classmethod
    def empty(cls) -> "MainRoute":
        return cls(())

    @property
    def available(self) -> bool:
        return len(self.polyline) >= 2


@runtime_checkable
class RoutingService(Protocol):
    """
    Turns ordered waypoints into a drivable polyline.
    Failures come back as MainRoute.empty(), never as exceptions.
    """

    def route(self, waypoints: Sequence[Coordinate]) -> MainRoute: ...


class StaticRoutingService(RoutingService):
    def __init__(self, polyline: Sequence[Coordinate]):
        self.polyline = clean_polyline(polyline)

    def route(self, waypoints):
        if len(waypoints) < 2 or len(self.polyline) < 2:
            return MainRoute.empty()
        return MainRoute(self.polyline)


class _MalformedResponse(ValueError):
    pass


def parse_routing_response(data: dict) -> MainRoute:
    """Read a Geoapify routing FeatureCollection; sub-segments are concatenated in order."""
    try:
        feature = data["features"][0]
        coords = feature["geometry"]["coordinates"]
        if feature["geometry"].get("type") == "LineString":
            coords = [coords]
        points = [Coordinate(float(c[1]), float(c[0])) for part in coords for c in part]
        legs = (feature.get("properties") or {}).get("legs") or []
        dist = sum(float(leg.get("distance", 0.0)) for leg in legs)
        time_s = sum(float(leg.get("time", 0.0)) for leg in legs)
    except (KeyError, IndexError, TypeError, ValueError, AttributeError) as exc:
        raise _MalformedResponse(str(exc)) from exc
    return MainRoute(clean_polyline(points), dist, time_s)


class GeoapifyRoutingService(RoutingService):
    ROUTING_PATH = "/v1/routing"

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://api.geoapify.com",
        mode: str = "drive",
        timeout_s: float = 10.0,
        client: httpx.Client | None = None,
        hooks: NetworkHooks | None = None,
    ):
        self.api_key, self.mode = api_key, mode
        self.client = client or httpx.Client(base_url=base_url, timeout=timeout_s)
        self.hooks = hooks or NoopHooks()

    @staticmethod
    def format_waypoints(waypoints: Sequence[Coordinate]) -> str:
        return "|".join(f"{p.lat},{p.lng}" for p in waypoints)

    def _fetch(self, waypoints: Sequence[Coordinate]) -> MainRoute:
        params = {
            "waypoints": self.format_waypoints(waypoints),
            "mode": self.mode,
            "apiKey": self.api_key,
        }
        try:
            resp = self.client.get(self.ROUTING_PATH, params=params)
            resp.raise_for_status()
            return parse_routing_response(resp.json())
        except httpx.HTTPStatusError as exc:
            reason = f"status_{exc.response.status_code}"
        except httpx.HTTPError as exc:
            reason = type(exc).__name__
        except ValueError as exc:  # bad JSON or _MalformedResponse
            reason = f"malformed: {exc}"
        self.hooks.routing_failed(waypoints=len(waypoints), reason=reason)
        return MainRoute.empty()

    def route(self, waypoints: Sequence[Coordinate]) -> MainRoute:
        waypoints = [p for p in waypoints if p.is_finite()]
        if len(waypoints) < 2:
            return MainRoute.empty()
        return self._fetch(waypoints)

    def snap_to_road(self, p: Coordinate) -> Coordinate | None:
        """Route p to itself; the first returned vertex is its snap onto the road."""
        if not p.is_finite():
            return None
        result = self._fetch([p, p])
        return result.polyline[0] if result.polyline else None

    def close(self) -> None:
        self.client.close()
