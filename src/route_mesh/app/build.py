# route_mesh/app/build.py
from collections.abc import Mapping
from dataclasses import dataclass

from route_mesh.app.network import RouteNetwork
from route_mesh.app.segments import SegmentRepository
from route_mesh.config.models import NetworkConfigModel
from route_mesh.domain.hooks import NetworkHooks, NoopHooks
from route_mesh.io.config import parse_config
from route_mesh.io.network_logging import NetworkLogging
from route_mesh.io.segment_store import KeyValueStore
from route_mesh.runtime.registries import make_routing_service, make_store


@dataclass
class App:
    config: NetworkConfigModel
    hooks: NetworkHooks
    store: KeyValueStore
    network: RouteNetwork


def build(
    cfg: NetworkConfigModel | Mapping,
    *,
    use_logging: bool = True,
    http_client=None,
    store: KeyValueStore | None = None,
) -> App:
    # 0) Validate config
    model = parse_config(cfg)

    # 1) Hooks
    hooks = (
        NetworkLogging(network=model.name, level=model.log.level, debug=model.log.debug)
        if use_logging
        else NoopHooks()
    )

    # 2) Boundaries
    store = store or make_store(model.store, deps={"hooks": hooks})
    routing = make_routing_service(model.routing, deps={"http_client": http_client, "hooks": hooks})
    repo = SegmentRepository(store, key=model.segments_key, hooks=hooks)

    # 3) Session
    network = RouteNetwork(
        threshold_m=model.classifier.threshold_m,
        segments=repo,
        routing=routing,
        stitching=model.stitching.to_rule(),
        hooks=hooks,
    )
    return App(config=model, hooks=hooks, store=store, network=network)
