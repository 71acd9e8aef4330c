# io/config.py
import json
import os
from collections.abc import Mapping
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

from route_mesh.config.models import NetworkConfigModel, RoutingGeoapifyModel
from route_mesh.domain.errors import ConfigError

API_KEY_ENV = "GEOAPIFY_API_KEY"


def _apply_env(model: NetworkConfigModel) -> NetworkConfigModel:
    if isinstance(model.routing, RoutingGeoapifyModel) and not model.routing.api_key:
        key = os.getenv(API_KEY_ENV, "").strip()
        if key:
            routing = model.routing.model_copy(update={"api_key": key})
            model = model.model_copy(update={"routing": routing})
    return model


def parse_config(raw: Mapping | NetworkConfigModel) -> NetworkConfigModel:
    if isinstance(raw, NetworkConfigModel):
        return _apply_env(raw)
    try:
        return _apply_env(NetworkConfigModel.model_validate(raw))
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc


def load_config(path: str | os.PathLike, *, dotenv: bool = True) -> NetworkConfigModel:
    """Read a JSON config file; a .env next to it (or in the cwd) may supply the API key."""
    path = Path(path)
    if dotenv:
        load_dotenv(path.resolve().parent / ".env")
        load_dotenv()
    with path.open("r", encoding="utf-8") as fp:
        try:
            raw = json.load(fp)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"{path}: {exc}") from exc
    return parse_config(raw)
