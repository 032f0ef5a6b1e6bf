# domain/graph/route_graph.py
import itertools
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType

from access_route.app.protocols import NodeIndex
from access_route.domain.entities.geography import Coord, check_coordinates, haversine_m, to_latlng
from access_route.domain.entities.network import Edge, Node, edge_key
from access_route.domain.graph.hooks import GraphHooks, NoopHooks
from access_route.domain.graph.node_index import LinearScanIndex

MERGE_TOLERANCE_M = 0.5


@dataclass
class PolylineResult:
    nodes: list[Node]  # one per input coordinate, repeats allowed
    edges: list[Edge]  # created or reused, in polyline order


class RouteGraph:
    """
    Mutable undirected graph of walkable segments built from polylines.

    Single writer, in-memory, no internal locking: callers sharing one graph
    across threads must guard the whole object themselves.

    Invariants:
      • no two nodes lie within ``merge_tolerance_m`` of each other;
      • ``Node.adjacency`` mirrors ``edges``, both endpoints updated together;
      • a node with empty adjacency does not survive a polyline removal.
    """

    def __init__(
        self,
        *,
        merge_tolerance_m: float = MERGE_TOLERANCE_M,
        index: NodeIndex | None = None,
        hooks: GraphHooks | None = None,
    ):
        self.merge_tolerance_m = merge_tolerance_m
        self._nodes: dict[str, Node] = {}
        self._edges: dict[str, Edge] = {}
        self._by_polyline: dict[str, list[str]] = {}  # polyline id -> claimed edge ids
        self._index = index if index is not None else LinearScanIndex()
        self._ids = itertools.count(1)
        self.hooks = hooks if hooks is not None else NoopHooks()

    # --------------- Read side -----------------------------

    @property
    def nodes(self) -> Mapping[str, Node]:
        return MappingProxyType(self._nodes)

    @property
    def edges(self) -> Mapping[str, Edge]:
        return MappingProxyType(self._edges)

    @property
    def index(self) -> NodeIndex:
        return self._index

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def get_node(self, node_id: str) -> Node | None:
        return self._nodes.get(node_id)

    def get_edge(self, edge_id: str) -> Edge | None:
        return self._edges.get(edge_id)

    def edge_between(self, a: str, b: str) -> Edge | None:
        return self._edges.get(edge_key(a, b))

    def polyline_ids(self) -> list[str]:
        return list(self._by_polyline)

    def edges_of(self, polyline_id: str) -> list[Edge]:
        return [self._edges[e] for e in self._by_polyline.get(polyline_id, ())]

    def find_node_at(self, p: Coord) -> Node | None:
        return self._index.find_within(to_latlng(p), self.merge_tolerance_m)

    def nearest_node(self, p: Coord) -> tuple[Node, float] | None:
        return self._index.nearest(to_latlng(p))

    def total_distance_m(self) -> float:
        return sum(e.distance_m for e in self._edges.values())

    def stats(self) -> dict:
        degrees = Counter(n.degree for n in self._nodes.values())
        return {
            "nodes": len(self._nodes),
            "edges": len(self._edges),
            "polylines": len(self._by_polyline),
            "degree_histogram": dict(sorted(degrees.items())),
        }

    # --------------- Node merger -----------------------------

    def add_or_get_node(self, p: Coord, tags: Iterable[str] = ()) -> Node:
        p = to_latlng(p)
        node = self._index.find_within(p, self.merge_tolerance_m)
        if node is not None:
            node.tags.update(tags)  # merge never removes tags
            return node
        node = Node(id=f"node-{next(self._ids)}", position=p, tags=set(tags))
        self._nodes[node.id] = node
        self._index.add(node)
        return node

    # --------------- Edges & polylines -----------------------------

    def add_edge(self, a: Node, b: Node, polyline_id: str) -> Edge | None:
        """Link two nodes; an existing segment is reused, never double-weighted."""
        if a.id == b.id:
            return None
        eid = edge_key(a.id, b.id)
        edge = self._edges.get(eid)
        if edge is None:
            distance = haversine_m(a.position, b.position)
            edge = Edge(eid, a.id, b.id, distance, polyline_id, [polyline_id])
            self._edges[eid] = edge
            a.adjacency[b.id] = distance
            b.adjacency[a.id] = distance
        if polyline_id not in edge.claimants:
            edge.claimants.append(polyline_id)
        claimed = self._by_polyline.setdefault(polyline_id, [])
        if eid not in claimed:
            claimed.append(eid)
        return edge

    def add_polyline(
        self,
        coords: Sequence[Coord],
        polyline_id: str,
        *,
        tags: Mapping[int, Iterable[str]] | None = None,
    ) -> PolylineResult:
        points = check_coordinates(coords)  # raises before any mutation
        tags = tags or {}
        nodes = [self.add_or_get_node(p, tags.get(i, ())) for i, p in enumerate(points)]
        edges = []
        for a, b in zip(nodes, nodes[1:]):
            edge = self.add_edge(a, b, polyline_id)
            if edge is not None:
                edges.append(edge)
        self._by_polyline.setdefault(polyline_id, [])
        self.hooks.polyline_added(polyline_id=polyline_id, nodes=len(nodes), edges=len(edges))
        self.hooks.graph_stats(stats=self.stats())
        return PolylineResult(nodes, edges)

    def remove_polyline(self, polyline_id: str) -> None:
        claimed = self._by_polyline.pop(polyline_id, None)
        if claimed is None:
            return
        removed = 0
        for eid in claimed:
            edge = self._edges.get(eid)
            if edge is None:
                continue
            edge.claimants.remove(polyline_id)
            if edge.claimants:
                edge.polyline_id = edge.claimants[0]
                continue
            del self._edges[eid]
            removed += 1
            for nid, other in ((edge.node_a, edge.node_b), (edge.node_b, edge.node_a)):
                node = self._nodes.get(nid)
                if node is not None:
                    node.adjacency.pop(other, None)
        # sweep every node: a degenerate polyline can leave an edgeless node behind
        orphans = [nid for nid, node in self._nodes.items() if not node.adjacency]
        for nid in orphans:
            self._drop_node(nid)
        self.hooks.polyline_removed(polyline_id=polyline_id, edges=removed, orphans=len(orphans))
        self.hooks.graph_stats(stats=self.stats())

    def split_edge(self, edge_id: str, p: Coord) -> Node | None:
        """
        Insert a junction on an edge; every claimant keeps both halves.
        Endpoint identities and tags survive. Returns the junction, or None for an unknown edge.
        """
        edge = self._edges.get(edge_id)
        if edge is None:
            return None
        mid = self.add_or_get_node(p)
        if mid.id in (edge.node_a, edge.node_b):
            return mid
        a, b = self._nodes[edge.node_a], self._nodes[edge.node_b]
        del self._edges[edge_id]
        a.adjacency.pop(b.id, None)
        b.adjacency.pop(a.id, None)
        for pid in edge.claimants:
            self._by_polyline[pid].remove(edge_id)
            self.add_edge(a, mid, pid)
            self.add_edge(mid, b, pid)
        self.hooks.graph_stats(stats=self.stats())
        return mid

    def _drop_node(self, node_id: str) -> None:
        del self._nodes[node_id]
        self._index.discard(node_id)

    # --------------- Tags -----------------------------

    def update_node_tags(self, node_id: str, tags: Iterable[str]) -> None:
        node = self._nodes.get(node_id)
        if node is None:
            return
        node.tags = set(tags)
        self.hooks.node_tags_updated(node_id=node_id, tags=sorted(node.tags))

