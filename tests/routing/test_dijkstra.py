# tests/routing/test_dijkstra.py
import pytest

from access_route.domain.entities.network import HAS_STAIRS
from access_route.domain.graph.route_graph import RouteGraph
from access_route.domain.routing.dijkstra import (
    STAIRS_PENALTY,
    AvoidanceRule,
    NoPath,
    penalty_multiplier,
    shortest_path,
)

S, T = (0.0, 0.0), (0.0, 0.002)
U = (0.0001, 0.001)  # stairs, on the shorter branch
L = (-0.00012, 0.001)  # step-free, slightly longer


@pytest.fixture
def forked() -> RouteGraph:
    g = RouteGraph()
    g.add_polyline([S, U, T], "upper", tags={1: [HAS_STAIRS]})
    g.add_polyline([S, L, T], "lower")
    return g


def _ids(g: RouteGraph, *points):
    return [g.find_node_at(p).id for p in points]


def test_plain_dijkstra_takes_the_shorter_branch(forked: RouteGraph):
    s, u, t = _ids(forked, S, U, T)
    res = shortest_path(forked, s, t)
    assert res.found
    assert list(res.node_ids) == [s, u, t]
    assert res.cost == pytest.approx(res.distance_m)


def test_stairs_penalty_detours_when_an_alternative_exists(forked: RouteGraph):
    s, l, t = _ids(forked, S, L, T)
    res = shortest_path(forked, s, t, [STAIRS_PENALTY])
    assert list(res.node_ids) == [s, l, t]
    assert not res.has_tag(HAS_STAIRS)
    assert res.avoided_tags([STAIRS_PENALTY]) == []


def test_stairs_only_route_is_returned_and_flagged():
    g = RouteGraph()
    res = g.add_polyline([(0.0, 0.0), (0.0, 0.0005), (0.0, 0.001)], "p", tags={1: [HAS_STAIRS]})
    a, _, c = res.nodes
    path = shortest_path(g, a.id, c.id, [STAIRS_PENALTY])
    assert path.found
    assert path.distance_m == pytest.approx(111.19, abs=0.01)
    # entering the stairs node costs 10x, leaving it does not
    assert path.cost == pytest.approx(55.6 * 10 + 55.6, abs=0.1)
    assert path.avoided_tags([STAIRS_PENALTY]) == [HAS_STAIRS]
    assert [p.lng for p in path.coordinates] == [0.0, 0.0005, 0.001]


def test_unreachable_and_unknown_ids():
    g = RouteGraph()
    g.add_polyline([(0.0, 0.0), (0.0, 0.001)], "a")
    g.add_polyline([(1.0, 1.0), (1.0, 1.001)], "b")
    a = g.find_node_at((0.0, 0.0)).id
    b = g.find_node_at((1.0, 1.0)).id
    assert shortest_path(g, a, b) == NoPath("unreachable")
    assert shortest_path(g, "node-x", b).reason == "unknown_start"
    assert shortest_path(g, a, "node-x").reason == "unknown_end"
    assert not shortest_path(g, a, b).found


def test_start_equals_end_is_a_trivial_path(forked: RouteGraph):
    (s,) = _ids(forked, S)
    res = shortest_path(forked, s, s)
    assert list(res.node_ids) == [s]
    assert res.cost == 0.0 and res.distance_m == 0.0


def test_penalty_takes_the_largest_matching_multiplier(forked: RouteGraph):
    u = forked.find_node_at(U)
    u.tags.add("steep")
    rules = [AvoidanceRule(HAS_STAIRS, 10.0), AvoidanceRule("steep", 3.0), AvoidanceRule("gravel", 50.0)]
    assert penalty_multiplier(u, rules) == 10.0
    assert penalty_multiplier(u, [AvoidanceRule("steep", 0.5)]) == 1.0
    assert penalty_multiplier(forked.find_node_at(L), rules) == 1.0
