# io/serialization.py
"""
Persisted polyline shape <-> graph.

A polyline is stored as an ordered ``[[lat, lng], ...]`` list plus a sparse
``{position: {"hasStairs": bool}}`` map. Positions index the coordinate list,
not node ids, since node ids only live as long as one graph.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from access_route.domain.entities.geography import LatLng, check_coordinates
from access_route.domain.entities.network import HAS_STAIRS
from access_route.domain.errors import InvalidPolylineError
from access_route.domain.graph.route_graph import PolylineResult, RouteGraph

# graph tag -> NodeTagsModel field
TAG_FIELDS: dict[str, str] = {HAS_STAIRS: "has_stairs"}


class NodeTagsModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)
    has_stairs: bool = Field(False, alias="hasStairs")

    @classmethod
    def from_tags(cls, tags: Iterable[str]) -> "NodeTagsModel":
        tags = set(tags)
        return cls(**{f: (t in tags) for t, f in TAG_FIELDS.items()})

    def to_tags(self) -> set[str]:
        return {t for t, f in TAG_FIELDS.items() if getattr(self, f)}


class SerializedPolyline(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)
    id: str
    coordinates: list[tuple[float, float]]
    node_tags: dict[int, NodeTagsModel] = Field(
        default_factory=dict, validation_alias=AliasChoices("node_tags", "nodeTags")
    )

    @field_validator("coordinates")
    @classmethod
    def _well_formed(cls, v):
        # >= 2 points, finite, in range; raises InvalidPolylineError (a ValueError)
        check_coordinates(v)
        return v

    @field_validator("node_tags", mode="before")
    @classmethod
    def _null_to_empty(cls, v):
        return {} if v is None else v

    @model_validator(mode="after")
    def _positions_in_range(self):
        n = len(self.coordinates)
        bad = [i for i in self.node_tags if not 0 <= i < n]
        if bad:
            raise InvalidPolylineError("invalid_tag_position", f"node_tags positions {bad} outside 0..{n - 1}")
        return self


class PolylineRecord(SerializedPolyline):
    """Row shape the persistence collaborator inserts."""

    is_public: bool = True
    name: str | None = None
    description: str | None = None


# ----------------- Views ---------------------


class RouteNodeView(BaseModel):
    id: str
    lat: float
    lng: float
    tags: list[str] = Field(default_factory=list)


class RouteEdgeView(BaseModel):
    source: str
    target: str
    weight: float  # metres
    polyline_id: str


class GraphView(BaseModel):
    nodes: list[RouteNodeView] = Field(default_factory=list)
    edges: list[RouteEdgeView] = Field(default_factory=list)


@dataclass
class DecodedPolyline:
    polyline_id: str
    coordinates: list[LatLng]
    tags_by_position: dict[int, set[str]] = field(default_factory=dict)


@dataclass
class LoadReport:
    loaded: list[str] = field(default_factory=list)
    rejected: list[tuple[str | None, str]] = field(default_factory=list)  # (polyline id, reason)
    coordinates: dict[str, list[LatLng]] = field(default_factory=dict)  # loaded id -> vertices


# ----------------- Encode ---------------------


def serialize_polyline(graph: RouteGraph, polyline_id: str, coordinates: Iterable) -> SerializedPolyline:
    points = check_coordinates(coordinates)
    node_tags: dict[int, NodeTagsModel] = {}
    for i, p in enumerate(points):
        node = graph.find_node_at(p)
        if node is None:
            continue
        rec = NodeTagsModel.from_tags(node.tags)
        if rec.to_tags():
            node_tags[i] = rec
    return SerializedPolyline(id=polyline_id, coordinates=[(p.lat, p.lng) for p in points], node_tags=node_tags)


def to_polyline_record(
    serialized: SerializedPolyline,
    *,
    is_public: bool = True,
    name: str | None = None,
    description: str | None = None,
) -> PolylineRecord:
    return PolylineRecord(
        id=serialized.id,
        coordinates=serialized.coordinates,
        node_tags=serialized.node_tags,
        is_public=is_public,
        name=name or None,
        description=description or None,
    )


def build_node_tags_map(graph: RouteGraph) -> dict[str, list[str]]:
    return {nid: sorted(n.tags) for nid, n in graph.nodes.items() if n.tags}


def graph_view(graph: RouteGraph) -> GraphView:
    return GraphView(
        nodes=[
            RouteNodeView(id=n.id, lat=n.position.lat, lng=n.position.lng, tags=sorted(n.tags))
            for n in graph.nodes.values()
        ],
        edges=[
            RouteEdgeView(source=e.node_a, target=e.node_b, weight=e.distance_m, polyline_id=e.polyline_id)
            for e in graph.edges.values()
        ],
    )


# ----------------- Decode ---------------------


def deserialize_polyline(data: SerializedPolyline | Mapping) -> DecodedPolyline:
    model = data if isinstance(data, SerializedPolyline) else SerializedPolyline.model_validate(data)
    tags = {i: rec.to_tags() for i, rec in model.node_tags.items()}
    return DecodedPolyline(
        polyline_id=model.id,
        coordinates=[LatLng(lat, lng) for lat, lng in model.coordinates],
        tags_by_position={i: t for i, t in tags.items() if t},
    )


def load_polyline(graph: RouteGraph, data: SerializedPolyline | Mapping) -> PolylineResult:
    decoded = deserialize_polyline(data)
    return graph.add_polyline(decoded.coordinates, decoded.polyline_id, tags=decoded.tags_by_position)


def rejection_reason(exc: ValidationError | InvalidPolylineError) -> str:
    """Stable reason code for a rejected payload."""
    if isinstance(exc, InvalidPolylineError):
        return exc.reason_code
    for err in exc.errors():
        cause = (err.get("ctx") or {}).get("error")
        if isinstance(cause, InvalidPolylineError):
            return cause.reason_code
    return "invalid_payload"


def load_polylines(graph: RouteGraph, items: Iterable[SerializedPolyline | Mapping]) -> LoadReport:
    """Rehydrate a graph; a malformed item is reported and skipped, the rest still load."""
    report = LoadReport()
    for item in items:
        pid = None
        if isinstance(item, SerializedPolyline):
            pid = item.id
        elif isinstance(item, Mapping):
            pid = item.get("id")
        try:
            decoded = deserialize_polyline(item)
            graph.add_polyline(decoded.coordinates, decoded.polyline_id, tags=decoded.tags_by_position)
        except (ValidationError, InvalidPolylineError) as exc:
            reason = rejection_reason(exc)
            graph.hooks.ingest_rejected(polyline_id=pid, reason=reason, message=str(exc))
            report.rejected.append((pid, reason))
            continue
        report.loaded.append(decoded.polyline_id)
        report.coordinates[decoded.polyline_id] = decoded.coordinates
    return report
