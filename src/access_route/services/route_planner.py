# access_route/services/route_planner.py
from collections.abc import Sequence
from dataclasses import dataclass, field

from access_route.domain.entities.geography import Coord, LatLng, to_latlng
from access_route.domain.graph.route_graph import RouteGraph
from access_route.domain.routing.dijkstra import STAIRS_PENALTY, AvoidanceRule, NoPath, shortest_path
from access_route.domain.routing.snapping import nearest_node_geo
from access_route.io.recorder import Recorder
from access_route.io.route_events import RouteComputed, RouteUnreachable


@dataclass(frozen=True)
class Route:
    coordinates: list[LatLng]  # query start, network nodes..., query end
    node_ids: tuple[str, ...]
    distance_m: float  # along the network, penalties excluded
    cost: float
    avoided_tags: list[str] = field(default_factory=list)
    found: bool = True

    @property
    def has_avoided_tag(self) -> bool:
        return bool(self.avoided_tags)


@dataclass(frozen=True)
class Unreachable:
    reason: str  # empty_graph | start_off_network | end_off_network | unknown_end | unreachable
    found: bool = False


class RoutePlanner:
    """Answer "how do I get from here to there" against one session's graph."""

    def __init__(
        self,
        graph: RouteGraph,
        *,
        rules: Sequence[AvoidanceRule] = (STAIRS_PENALTY,),
        max_access_m: float | None = None,
        recorder: Recorder | None = None,
    ):
        self.graph, self.rules, self.max_access_m = graph, tuple(rules), max_access_m
        self.recorder = recorder

    def route(self, start: Coord, end: Coord | str, rules: Sequence[AvoidanceRule] | None = None) -> Route | Unreachable:
        rules = self.rules if rules is None else tuple(rules)
        start = to_latlng(start)
        end_point = None if isinstance(end, str) else to_latlng(end)
        end_ref = end if end_point is None else (end_point.lat, end_point.lng)

        if len(self.graph) == 0:
            return self._unreachable(start, end_ref, "empty_graph")
        hit = nearest_node_geo(self.graph, start, self.max_access_m)
        if hit is None:
            return self._unreachable(start, end_ref, "start_off_network")
        start_node = hit[0]
        if end_point is None:
            end_node = self.graph.get_node(end)
            if end_node is None:
                return self._unreachable(start, end_ref, "unknown_end")
        else:
            hit = nearest_node_geo(self.graph, end_point, self.max_access_m)
            if hit is None:
                return self._unreachable(start, end_ref, "end_off_network")
            end_node = hit[0]

        res = shortest_path(self.graph, start_node.id, end_node.id, rules)
        if isinstance(res, NoPath):
            return self._unreachable(start, end_ref, res.reason)

        coords = res.coordinates
        if start != start_node.position:
            coords.insert(0, start)
        if end_point is not None and end_point != end_node.position:
            coords.append(end_point)
        route = Route(coords, res.node_ids, res.distance_m, res.cost, res.avoided_tags(rules))

        self.graph.hooks.route_found(
            start=start_node.id,
            end=end_node.id,
            hops=len(res.node_ids) - 1,
            distance_m=route.distance_m,
            cost=route.cost,
            avoided_tags=route.avoided_tags,
        )
        if self.recorder is not None:
            self.recorder.record(
                RouteComputed,
                start=(start.lat, start.lng),
                end=(coords[-1].lat, coords[-1].lng),
                node_count=len(res.node_ids),
                distance_m=route.distance_m,
                cost=route.cost,
                avoided_tags=route.avoided_tags,
            )
        return route

    def _unreachable(self, start: LatLng, end_ref, reason: str) -> Unreachable:
        self.graph.hooks.route_unreachable(start=(start.lat, start.lng), end=end_ref, reason=reason)
        if self.recorder is not None:
            self.recorder.record(RouteUnreachable, start=(start.lat, start.lng), end=end_ref, reason=reason)
        return Unreachable(reason)
