# route_mesh/cli.py
import argparse
import json
import sys

from route_mesh.app.build import build
from route_mesh.domain.entities.geography import Coordinate
from route_mesh.io.config import load_config


def _coords(pairs) -> list[Coordinate]:
    return [Coordinate(float(lat), float(lng)) for lat, lng in pairs]


def run(config_path: str, scenario_path: str, *, save_as: str | None = None) -> int:
    app = build(load_config(config_path))
    net = app.network

    with open(scenario_path, encoding="utf-8") as fp:
        scenario = json.load(fp)

    for p in scenario.get("points", []):
        if isinstance(p, dict):
            net.add_point(
                Coordinate(float(p["lat"]), float(p["lng"])),
                kind=p.get("kind", "checkpoint"),
                point_id=p.get("id"),
                payload=p.get("payload"),
            )
        else:
            net.add_point(_coords([p])[0])

    if "main_route" in scenario:
        net.set_main_route(_coords(scenario["main_route"]))
    else:
        net.refresh_main_route()

    for road in scenario.get("custom_roads", []):
        net.add_custom_road(road.get("label", ""), _coords(road["positions"]))

    query = scenario.get("query")
    if not query:
        print(json.dumps([d.model_dump() for d in net.distance_table()], indent=2))
        return 0

    result = net.find_path(query["from"], query["to"])
    if result is None:
        print(json.dumps({"found": False, "from": query["from"], "to": query["to"]}))
        return 1

    label = save_as or query.get("save_as")
    if label:
        net.save_path(result, label)
    print(net.details(result).model_dump_json(indent=2))
    return 0


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Shortest path across a patchwork route network.")
    ap.add_argument("config", help="network config (JSON)")
    ap.add_argument("scenario", help="points, optional main route and query (JSON)")
    ap.add_argument("--save-as", help="persist the found path under this label")
    args = ap.parse_args(argv)
    return run(args.config, args.scenario, save_as=args.save_as)


if __name__ == "__main__":
    sys.exit(main())
