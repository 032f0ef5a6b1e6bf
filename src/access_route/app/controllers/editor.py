import itertools
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from access_route.domain.entities.geography import Coord, LatLng, check_coordinates
from access_route.domain.entities.network import Edge, Node
from access_route.domain.graph.route_graph import PolylineResult, RouteGraph
from access_route.domain.routing.snapping import EdgeSnap, NodeSnap, Snapper
from access_route.io.recorder import Recorder
from access_route.io.route_events import PolylineEdited
from access_route.io.serialization import LoadReport, SerializedPolyline, load_polylines, serialize_polyline


@dataclass(frozen=True)
class SnapOutcome:
    position: int  # vertex index in the edited polyline
    kind: str  # "node" | "edge" | "none"
    node_id: str | None = None


@dataclass
class EditResult:
    polyline_id: str
    coordinates: list[LatLng]
    result: PolylineResult
    snaps: list[SnapOutcome] = field(default_factory=list)

    @property
    def node_ids(self) -> list[str]:
        return [n.id for n in self.result.nodes]


class RouteEditor:
    """
    Drawing session over one graph: create, edit (with snapping), delete and tag.

    Keeps each polyline's vertex list so edits and edge splits can rebuild it,
    and so the session can be handed back to persistence via ``snapshot``.
    """

    def __init__(
        self,
        graph: RouteGraph,
        snapper: Snapper,
        *,
        recorder: Recorder | None = None,
    ):
        self.graph, self.snapper = graph, snapper
        self.recorder = recorder
        self._polylines: dict[str, list[LatLng]] = {}
        self._ids = itertools.count(1)

    @property
    def polylines(self) -> dict[str, list[LatLng]]:
        return {pid: list(c) for pid, c in self._polylines.items()}

    def _next_id(self) -> str:
        pid = f"polyline-{next(self._ids)}"
        while pid in self._polylines:
            pid = f"polyline-{next(self._ids)}"
        return pid

    # --------------- Drawing -----------------------------

    def create(self, coords: Sequence[Coord], polyline_id: str | None = None, *, snap: bool = False) -> EditResult:
        points = check_coordinates(coords)
        pid = polyline_id or self._next_id()
        if pid in self._polylines:
            self.graph.remove_polyline(pid)
        snaps = []
        if snap:
            points, snaps = self._snap_vertices(points, pid)
        self._polylines[pid] = points
        return EditResult(pid, list(points), self.graph.add_polyline(points, pid), snaps)

    def edit(self, polyline_id: str, coords: Sequence[Coord]) -> EditResult | None:
        """Re-snap and rebuild a polyline after its vertices were moved. Unknown id: None."""
        if polyline_id not in self._polylines:
            return None
        points = check_coordinates(coords)  # reject before retracting anything
        carried = self._tags_by_position(polyline_id)
        self.graph.remove_polyline(polyline_id)
        points, snaps = self._snap_vertices(points, polyline_id)
        self._polylines[polyline_id] = points
        tags = {i: carried[p] for i, p in enumerate(points) if p in carried}
        result = self.graph.add_polyline(points, polyline_id, tags=tags)
        if self.recorder is not None:
            self.recorder.record(
                PolylineEdited,
                polyline_id=polyline_id,
                vertices=len(points),
                node_snaps=sum(s.kind == "node" for s in snaps),
                edge_splits=sum(s.kind == "edge" for s in snaps),
            )
        return EditResult(polyline_id, list(points), result, snaps)

    def delete(self, polyline_id: str) -> None:
        self._polylines.pop(polyline_id, None)
        self.graph.remove_polyline(polyline_id)

    def tag_node(self, node_id: str, tags: Iterable[str]) -> Node | None:
        self.graph.update_node_tags(node_id, tags)
        return self.graph.get_node(node_id)

    def preview(self, p: Coord, *, editing: str | None = None) -> NodeSnap | EdgeSnap | None:
        """Snap target for a vertex being dragged, without touching the graph."""
        return self.snapper.snap(p, exclude_polyline=editing)

    # --------------- Snapping -----------------------------

    def _tags_by_position(self, polyline_id: str) -> dict[LatLng, set[str]]:
        # vertices that stay put keep their tags across the rebuild
        out = {}
        for p in self._polylines[polyline_id]:
            node = self.graph.find_node_at(p)
            if node is not None and node.tags:
                out[p] = set(node.tags)
        return out

    def _snap_vertices(self, points: list[LatLng], polyline_id: str) -> tuple[list[LatLng], list[SnapOutcome]]:
        snapped, outcomes = [], []
        for i, p in enumerate(points):
            hit = self.snapper.nearest_node(p)
            if hit is not None:
                snapped.append(hit.position)
                outcomes.append(SnapOutcome(i, "node", hit.node.id))
                continue
            on_edge = self.snapper.nearest_edge_point(p, exclude_polyline=polyline_id)
            if on_edge is not None:
                junction = self._split(on_edge)
                snapped.append(junction.position)
                outcomes.append(SnapOutcome(i, "edge", junction.id))
                continue
            snapped.append(p)
            outcomes.append(SnapOutcome(i, "none"))
        return snapped, outcomes

    def _split(self, snap: EdgeSnap) -> Node:
        edge = snap.edge
        owners = list(edge.claimants)
        junction = self.graph.split_edge(edge.id, snap.position)
        if junction.id in (edge.node_a, edge.node_b):
            return junction
        for pid in owners:
            coords = self._polylines.get(pid)
            if coords is None:
                continue  # added to the graph outside this session
            j = self._segment_index(coords, edge)
            if j is not None:
                coords.insert(j + 1, junction.position)
        return junction

    def _segment_index(self, coords: list[LatLng], edge: Edge) -> int | None:
        ids = [getattr(self.graph.find_node_at(p), "id", None) for p in coords]
        for j in range(len(ids) - 1):
            if edge.joins(ids[j], ids[j + 1]):
                return j
        return None

    # --------------- Persistence handoff -----------------------------

    def snapshot(self) -> list[SerializedPolyline]:
        return [serialize_polyline(self.graph, pid, c) for pid, c in self._polylines.items()]

    def load(self, items: Iterable[SerializedPolyline | Mapping]) -> LoadReport:
        report = load_polylines(self.graph, items)
        self._polylines.update(report.coordinates)
        return report
