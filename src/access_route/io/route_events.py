# access_route/io/route_events.py

from dataclasses import dataclass, field


# Base type for analytics events
@dataclass
class RouteEvent:
    run_id: str
    seq: int  # emission order within the session
    name: str  # stable event name


@dataclass
class RouteComputed(RouteEvent):
    start: tuple[float, float]
    end: tuple[float, float]
    node_count: int
    distance_m: float
    cost: float
    avoided_tags: list[str] = field(default_factory=list)


@dataclass
class RouteUnreachable(RouteEvent):
    start: tuple[float, float]
    end: tuple[float, float] | str  # coordinate or target node id
    reason: str


@dataclass
class PolylineEdited(RouteEvent):
    polyline_id: str
    vertices: int
    node_snaps: int = 0
    edge_splits: int = 0
