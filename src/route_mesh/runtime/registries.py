# runtime/registries.py
from collections.abc import Callable
from typing import Any

from route_mesh.config.models import (
    RoutingGeoapifyModel,
    RoutingStaticModel,
    RoutingUnion,
    StoreJsonFileModel,
    StoreMemoryModel,
    StoreUnion,
)
from route_mesh.domain.errors import ConfigError
from route_mesh.io.routing_client import (
    GeoapifyRoutingService,
    RoutingService,
    StaticRoutingService,
)
from route_mesh.io.segment_store import JsonFileStore, KeyValueStore, MemoryStore

RoutingFactory = Callable[[RoutingUnion, dict], RoutingService]
StoreFactory = Callable[[StoreUnion, dict], KeyValueStore]

_routing_registry: dict[str, RoutingFactory] = {}
_store_registry: dict[str, StoreFactory] = {}


# ------------------- Routing services ---------------------------


def register_routing(kind: str):
    def deco(fn: RoutingFactory):
        _routing_registry[kind] = fn
        return fn

    return deco


def make_routing_service(cfg: RoutingUnion, *, deps: dict[str, Any] | None = None) -> RoutingService:
    try:
        factory = _routing_registry[cfg.kind]
    except KeyError:
        raise ConfigError(f"Unknown routing kind {cfg.kind!r}")
    return factory(cfg, deps or {})


@register_routing("geoapify")
def _make_geoapify(cfg: RoutingGeoapifyModel, deps):
    if not cfg.api_key:
        raise ConfigError("geoapify routing needs an api_key (or GEOAPIFY_API_KEY in .env)")
    return GeoapifyRoutingService(
        cfg.api_key,
        base_url=cfg.base_url,
        mode=cfg.mode,
        timeout_s=cfg.timeout_s,
        client=deps.get("http_client"),
        hooks=deps.get("hooks"),
    )


@register_routing("static")
def _make_static(cfg: RoutingStaticModel, deps):
    return StaticRoutingService(cfg.coordinates())


# ------------------- Segment stores ---------------------------


def register_store(kind: str):
    def deco(fn: StoreFactory):
        _store_registry[kind] = fn
        return fn

    return deco


def make_store(cfg: StoreUnion, *, deps: dict[str, Any] | None = None) -> KeyValueStore:
    try:
        factory = _store_registry[cfg.kind]
    except KeyError:
        raise ConfigError(f"Unknown store kind {cfg.kind!r}")
    return factory(cfg, deps or {})


@register_store("memory")
def _make_memory(cfg: StoreMemoryModel, deps):
    return MemoryStore(deps.get("initial"))


@register_store("json_file")
def _make_json_file(cfg: StoreJsonFileModel, deps):
    return JsonFileStore(cfg.file, hooks=deps.get("hooks"))
