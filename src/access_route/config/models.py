from math import isfinite
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LogModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    debug: bool = False


# ----------------- NODE INDEX ---------------------


class NodeIndexLinearModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["linear"] = "linear"


class NodeIndexGridModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["grid"] = "grid"
    cell_m: float = Field(5.0, gt=0)


NodeIndexUnion = Annotated[
    NodeIndexLinearModel | NodeIndexGridModel,
    Field(discriminator="kind"),
]


class GraphModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    merge_tolerance_m: float = Field(0.5, gt=0)
    index: NodeIndexUnion = Field(default_factory=NodeIndexLinearModel)


# ----------------- ROUTING ---------------------


class AvoidanceRuleModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    tag: str = Field(min_length=1)
    multiplier: float

    @field_validator("multiplier")
    @classmethod
    def _positive_finite(cls, v: float) -> float:
        # Dijkstra needs non-negative edge costs
        if not isfinite(v) or v <= 0:
            raise ValueError("multiplier must be a finite number > 0")
        return v


class RoutingModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    rules: list[AvoidanceRuleModel] = Field(
        default_factory=lambda: [AvoidanceRuleModel(tag="has_stairs", multiplier=10.0)]
    )
    max_access_m: float | None = None  # farthest a query point may sit from the network

    @field_validator("max_access_m")
    @classmethod
    def _nonneg(cls, v):
        if v is not None and v < 0:
            raise ValueError("max_access_m must be >= 0")
        return v


# ----------------- SNAPPING ---------------------


class SnapModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    threshold_px: float = Field(25.0, gt=0)
    zoom: float = 17.0


# ------------------------------------------------------------------


class RouterConfigModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str = "campus"
    run_id: str = "local"
    log: LogModel = LogModel()
    graph: GraphModel = Field(default_factory=GraphModel)
    routing: RoutingModel = Field(default_factory=RoutingModel)
    snap: SnapModel = Field(default_factory=SnapModel)
