import os
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from route_mesh.domain.entities.geography import Coordinate
from route_mesh.domain.graph_builder import Stitching


class LogModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    debug: bool = False


# ----------------- CORE ---------------------


class ClassifierModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    # required; deployments use anything from 10 to 50 m
    threshold_m: float = Field(gt=0)


class StitchingModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    radius_m: float = Field(default=1000.0, gt=0)
    max_neighbors: int = Field(default=3, ge=1)
    prefer_main_route: bool = True
    weld_tolerance_m: float = Field(default=0.1, ge=0)

    def to_rule(self) -> Stitching:
        return Stitching(
            radius_m=self.radius_m,
            max_neighbors=self.max_neighbors,
            prefer_main_route=self.prefer_main_route,
            weld_tolerance_m=self.weld_tolerance_m,
        )


# ----------------- ROUTING SERVICE ---------------------


class RoutingGeoapifyModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["geoapify"] = "geoapify"
    base_url: str = "https://api.geoapify.com"
    api_key: str = ""
    mode: str = "drive"
    timeout_s: float = 10.0


class RoutingStaticModel(BaseModel):
    """Fixed polyline; for tests and offline runs."""

    model_config = ConfigDict(extra="forbid")
    kind: Literal["static"] = "static"
    polyline: list[tuple[float, float]] = Field(default_factory=list)  # (lat, lng)

    def coordinates(self) -> tuple[Coordinate, ...]:
        return tuple(Coordinate(lat, lng) for lat, lng in self.polyline)


RoutingUnion = Annotated[
    RoutingGeoapifyModel | RoutingStaticModel,
    Field(discriminator="kind"),
]

# ----------------- SEGMENT STORE ---------------------


class StoreMemoryModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["memory"] = "memory"


class StoreJsonFileModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["json_file"] = "json_file"
    file: str

    @field_validator("file")
    @classmethod
    def _expand(cls, v: str) -> str:
        return os.path.expandvars(os.path.expanduser(v))


StoreUnion = Annotated[StoreMemoryModel | StoreJsonFileModel, Field(discriminator="kind")]


# ------------------------------------------------------------------


class NetworkConfigModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str = "default"
    segments_key: str = "saved_paths"
    classifier: ClassifierModel
    stitching: StitchingModel = StitchingModel()
    routing: RoutingUnion = Field(default_factory=RoutingStaticModel)
    store: StoreUnion = Field(default_factory=StoreMemoryModel)
    log: LogModel = LogModel()
