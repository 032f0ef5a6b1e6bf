# tests/app/test_editor.py
import pytest

from access_route.app.controllers.editor import RouteEditor
from access_route.domain.entities.geography import LatLng, ScreenPoint
from access_route.domain.entities.network import HAS_STAIRS
from access_route.domain.errors import InvalidPolylineError
from access_route.domain.graph.route_graph import RouteGraph
from access_route.domain.routing.snapping import EdgeSnap, Snapper
from access_route.io.recorder import MemorySink, Recorder
from access_route.services.route_planner import RoutePlanner


class LinearProjector:
    """1 px per 1e-5 degree."""

    def project(self, p: LatLng) -> ScreenPoint:
        return ScreenPoint(p.lng * 1e5, -p.lat * 1e5)

    def unproject(self, s: ScreenPoint) -> LatLng:
        return LatLng(-s.y / 1e5, s.x / 1e5)


@pytest.fixture
def sink() -> MemorySink:
    return MemorySink()


@pytest.fixture
def editor(sink: MemorySink) -> RouteEditor:
    g = RouteGraph()
    return RouteEditor(g, Snapper(g, LinearProjector()), recorder=Recorder(sink, run_id="t"))


# ---------- Create / delete


def test_create_assigns_ids_and_keeps_vertices(editor: RouteEditor):
    r1 = editor.create([(0.0, 0.0), (0.0, 0.001)])
    r2 = editor.create([(0.001, 0.0), (0.001, 0.001)])
    assert r1.polyline_id != r2.polyline_id
    assert set(editor.polylines) == {r1.polyline_id, r2.polyline_id}
    assert len(r1.node_ids) == 2
    assert editor.graph.polyline_ids() == [r1.polyline_id, r2.polyline_id]


def test_create_rejects_malformed_input(editor: RouteEditor):
    with pytest.raises(InvalidPolylineError):
        editor.create([(0.0, 0.0)])
    assert editor.polylines == {} and len(editor.graph) == 0


def test_delete_cleans_graph_and_session(editor: RouteEditor):
    r = editor.create([(0.0, 0.0), (0.0, 0.001)], "p1")
    editor.delete(r.polyline_id)
    editor.delete(r.polyline_id)
    assert editor.polylines == {}
    assert len(editor.graph) == 0


# ---------- Snapping on create


def test_vertex_near_an_edge_splits_it(editor: RouteEditor):
    editor.create([(0.0, 0.0), (0.0, 0.001)], "p1")
    r2 = editor.create([(0.0005, 0.0005), (0.00001, 0.0005)], "p2", snap=True)

    assert [s.kind for s in r2.snaps] == ["none", "edge"]
    junction = editor.graph.get_node(r2.snaps[1].node_id)
    assert junction.degree == 3
    assert junction.position.lat == pytest.approx(0.0, abs=1e-12)
    assert junction.position.lng == pytest.approx(0.0005)

    # the split polyline's stored vertices gained the junction
    p1 = editor.polylines["p1"]
    assert len(p1) == 3
    assert editor.graph.find_node_at(p1[1]) is junction
    assert len(editor.graph.edges_of("p1")) == 2

    route = RoutePlanner(editor.graph).route((0.0, 0.0), (0.0005, 0.0005))
    assert route.found
    assert route.node_ids[1] == junction.id
    assert route.distance_m == pytest.approx(111.19, abs=0.05)


def test_junction_survives_deleting_the_snapping_polyline(editor: RouteEditor):
    editor.create([(0.0, 0.0), (0.0, 0.001)], "p1")
    r2 = editor.create([(0.0005, 0.0005), (0.00001, 0.0005)], "p2", snap=True)
    junction_id = r2.snaps[1].node_id
    editor.delete("p2")
    assert editor.graph.get_node(junction_id).degree == 2
    assert [len(s.coordinates) for s in editor.snapshot()] == [3]


# ---------- Edit


def test_edit_snaps_moved_vertex_onto_existing_node(editor: RouteEditor, sink: MemorySink):
    editor.create([(0.0, 0.0), (0.0, 0.001)], "p1")
    editor.create([(0.001, 0.0005), (0.0005, 0.0005)], "p2")
    end = editor.graph.find_node_at((0.0, 0.001))

    res = editor.edit("p2", [(0.001, 0.0005), (0.00002, 0.001)])
    assert [s.kind for s in res.snaps] == ["none", "node"]
    assert res.node_ids[1] == end.id
    assert res.coordinates[1] == end.position
    assert end.degree == 2

    (ev,) = sink.events
    assert ev.name == "PolylineEdited"
    assert (ev.run_id, ev.seq) == ("t", 1)
    assert (ev.polyline_id, ev.vertices, ev.node_snaps, ev.edge_splits) == ("p2", 2, 1, 0)


def test_edit_carries_tags_of_unmoved_vertices(editor: RouteEditor):
    r = editor.create([(0.0, 0.0), (0.0, 0.0005), (0.0, 0.001)], "p1")
    editor.tag_node(r.node_ids[1], [HAS_STAIRS])

    editor.edit("p1", [(0.0, 0.0), (0.0, 0.0005), (0.0005, 0.001)])
    assert editor.graph.find_node_at((0.0, 0.0005)).tags == {HAS_STAIRS}
    assert editor.graph.find_node_at((0.0005, 0.001)).tags == set()


def test_edit_unknown_or_malformed(editor: RouteEditor):
    assert editor.edit("missing", [(0.0, 0.0), (0.0, 0.001)]) is None
    editor.create([(0.0, 0.0), (0.0, 0.001)], "p1")
    before = dict(editor.graph.nodes)
    with pytest.raises(InvalidPolylineError):
        editor.edit("p1", [(0.0, 0.0), (float("nan"), 0.0)])
    assert dict(editor.graph.nodes) == before


# ---------- Tags / preview


def test_tag_node_replaces_tags(editor: RouteEditor):
    r = editor.create([(0.0, 0.0), (0.0, 0.001)], "p1")
    node = editor.tag_node(r.node_ids[0], [HAS_STAIRS])
    assert node.tags == {HAS_STAIRS}
    assert editor.tag_node(r.node_ids[0], []).tags == set()
    assert editor.tag_node("node-404", [HAS_STAIRS]) is None


def test_preview_excludes_the_polyline_being_dragged(editor: RouteEditor):
    editor.create([(0.0, 0.0), (0.0, 0.001)], "p1")
    assert isinstance(editor.preview((0.00001, 0.0003)), EdgeSnap)
    assert editor.preview((0.00001, 0.0003), editing="p1") is None
    assert len(editor.graph) == 2


# ---------- Persistence handoff


def test_snapshot_and_reload_into_a_new_session(editor: RouteEditor):
    r = editor.create([(0.0, 0.0), (0.0, 0.0005), (0.0, 0.001)], "p1")
    editor.tag_node(r.node_ids[1], [HAS_STAIRS])
    saved = [s.model_dump() for s in editor.snapshot()]

    g = RouteGraph()
    fresh = RouteEditor(g, Snapper(g, LinearProjector()))
    report = fresh.load(saved + [{"id": "bad", "coordinates": []}])
    assert report.loaded == ["p1"]
    assert report.rejected == [("bad", "too_few_coordinates")]
    assert list(fresh.polylines) == ["p1"]
    assert g.find_node_at((0.0, 0.0005)).tags == {HAS_STAIRS}

    # the reloaded polyline is editable like one drawn in this session
    assert fresh.edit("p1", [(0.0, 0.0), (0.0, 0.0005)]) is not None
