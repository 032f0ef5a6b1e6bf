import heapq
import itertools
import math
from collections.abc import Sequence
from dataclasses import dataclass

from access_route.domain.entities.geography import LatLng
from access_route.domain.entities.network import HAS_STAIRS, Node
from access_route.domain.graph.route_graph import RouteGraph


@dataclass(frozen=True)
class AvoidanceRule:
    """Inflate the cost of stepping onto a node carrying ``tag``."""

    tag: str
    multiplier: float


STAIRS_PENALTY = AvoidanceRule(HAS_STAIRS, 10.0)


@dataclass(frozen=True)
class PathResult:
    node_ids: tuple[str, ...]
    nodes: tuple[Node, ...]
    cost: float  # search cost, penalties included
    distance_m: float  # physical length, never penalised
    found: bool = True

    @property
    def coordinates(self) -> list[LatLng]:
        return [n.position for n in self.nodes]

    def has_tag(self, tag: str) -> bool:
        return any(n.has_tag(tag) for n in self.nodes)

    def avoided_tags(self, rules: Sequence[AvoidanceRule]) -> list[str]:
        return sorted({r.tag for r in rules if self.has_tag(r.tag)})


@dataclass(frozen=True)
class NoPath:
    reason: str  # unknown_start | unknown_end | unreachable
    found: bool = False


def penalty_multiplier(node: Node, rules: Sequence[AvoidanceRule]) -> float:
    m = 1.0
    for rule in rules:
        if node.has_tag(rule.tag):
            m = max(m, rule.multiplier)
    return m


def shortest_path(
    graph: RouteGraph,
    start: str,
    goal: str,
    rules: Sequence[AvoidanceRule] = (),
) -> PathResult | NoPath:
    """
    Dijkstra over the graph's adjacency with tag penalties.

    Stepping into a node costs ``edge weight * max(1, multipliers of matching
    rules)``. Penalised nodes stay routable, so a stair-only connection is
    still returned and can be reported as such.
    """
    if start not in graph:
        return NoPath("unknown_start")
    if goal not in graph:
        return NoPath("unknown_end")

    dist: dict[str, float] = {start: 0.0}
    prev: dict[str, str] = {}
    done: set[str] = set()
    tie = itertools.count()
    heap: list[tuple[float, int, str]] = [(0.0, next(tie), start)]
    while heap:
        d, _, u = heapq.heappop(heap)
        if u in done:
            continue  # stale entry
        done.add(u)
        if u == goal:
            break
        for v, w in graph.get_node(u).adjacency.items():
            if v in done:
                continue
            nd = d + w * penalty_multiplier(graph.get_node(v), rules)
            if nd < dist.get(v, math.inf):
                dist[v] = nd
                prev[v] = u
                heapq.heappush(heap, (nd, next(tie), v))

    if goal not in done:
        return NoPath("unreachable")

    path = [goal]
    while path[-1] != start:
        path.append(prev[path[-1]])
    path.reverse()
    nodes = tuple(graph.get_node(n) for n in path)
    length = sum(a.adjacency[b.id] for a, b in zip(nodes, nodes[1:]))
    return PathResult(tuple(path), nodes, dist[goal], length)
