import math
from dataclasses import dataclass

import numpy as np

from access_route.app.protocols import Projector
from access_route.domain.entities.geography import Coord, LatLng, ScreenPoint, to_latlng
from access_route.domain.entities.network import Edge, Node
from access_route.domain.graph.route_graph import RouteGraph

SNAP_THRESHOLD_PX = 25.0

_MERCATOR_R = 6_378_137.0
_MAX_LAT = 85.0511287798
_T_SCALE = 0.5 / (math.pi * _MERCATOR_R)


class WebMercatorProjector(Projector):
    """EPSG:3857 pixel projection at a fixed zoom, relative to a pixel origin (the view's top-left)."""

    def __init__(self, zoom: float, origin: ScreenPoint = ScreenPoint(0.0, 0.0), tile_size: int = 256):
        self.zoom, self.origin = zoom, origin
        self.scale = tile_size * 2.0**zoom

    def project(self, p: LatLng) -> ScreenPoint:
        lat = max(-_MAX_LAT, min(_MAX_LAT, p.lat))
        x = _MERCATOR_R * math.radians(p.lng)
        y = _MERCATOR_R * math.log(math.tan(math.pi / 4 + math.radians(lat) / 2))
        return ScreenPoint(
            self.scale * (_T_SCALE * x + 0.5) - self.origin.x,
            self.scale * (-_T_SCALE * y + 0.5) - self.origin.y,
        )

    def unproject(self, s: ScreenPoint) -> LatLng:
        x = ((s.x + self.origin.x) / self.scale - 0.5) / _T_SCALE
        y = (0.5 - (s.y + self.origin.y) / self.scale) / _T_SCALE
        lat = math.degrees(2 * math.atan(math.exp(y / _MERCATOR_R)) - math.pi / 2)
        return LatLng(lat, math.degrees(x / _MERCATOR_R))

    @classmethod
    def centered_on(cls, center: LatLng, zoom: float, size: tuple[int, int] = (1024, 768)):
        """Projector whose view of ``size`` pixels is centred on ``center``."""
        world = cls(zoom)
        c = world.project(center)
        return cls(zoom, ScreenPoint(c.x - size[0] / 2, c.y - size[1] / 2))


@dataclass(frozen=True)
class NodeSnap:
    node: Node
    distance_px: float

    @property
    def position(self) -> LatLng:
        return self.node.position


@dataclass(frozen=True)
class EdgeSnap:
    edge: Edge
    t: float  # clamped projection parameter along node_a -> node_b
    position: LatLng
    distance_px: float


class Snapper:
    """Screen-space nearest node / nearest edge point queries for interactive editing."""

    def __init__(self, graph: RouteGraph, projector: Projector, threshold_px: float = SNAP_THRESHOLD_PX):
        self.graph, self.projector, self.threshold_px = graph, projector, threshold_px

    def _xy(self, p: LatLng) -> tuple[float, float]:
        s = self.projector.project(p)
        return s.x, s.y

    def nearest_node(self, p: Coord) -> NodeSnap | None:
        nodes = list(self.graph.nodes.values())
        if not nodes:
            return None
        q = np.array(self._xy(to_latlng(p)))
        pts = np.array([self._xy(n.position) for n in nodes])
        d = np.hypot(pts[:, 0] - q[0], pts[:, 1] - q[1])
        i = int(np.argmin(d))
        if d[i] >= self.threshold_px:
            return None
        return NodeSnap(nodes[i], float(d[i]))

    def nearest_edge_point(self, p: Coord, *, exclude_polyline: str | None = None) -> EdgeSnap | None:
        edges = [e for e in self.graph.edges.values() if exclude_polyline not in e.claimants]
        if not edges:
            return None
        cache: dict[str, tuple[float, float]] = {}

        def xy(node_id: str) -> tuple[float, float]:
            if node_id not in cache:
                cache[node_id] = self._xy(self.graph.get_node(node_id).position)
            return cache[node_id]

        q = np.array(self._xy(to_latlng(p)))
        a = np.array([xy(e.node_a) for e in edges])
        b = np.array([xy(e.node_b) for e in edges])
        d = b - a
        len2 = np.einsum("ij,ij->i", d, d)
        valid = len2 > 0
        t = np.divide(np.einsum("ij,ij->i", q - a, d), len2, out=np.zeros_like(len2), where=valid)
        t = np.clip(t, 0.0, 1.0)  # no extrapolation past segment ends
        closest = a + t[:, None] * d
        dist = np.hypot(closest[:, 0] - q[0], closest[:, 1] - q[1])
        dist[~valid] = np.inf
        i = int(np.argmin(dist))
        if not dist[i] < self.threshold_px:
            return None
        at = self.projector.unproject(ScreenPoint(float(closest[i, 0]), float(closest[i, 1])))
        return EdgeSnap(edges[i], float(t[i]), at, float(dist[i]))

    def snap(self, p: Coord, *, exclude_polyline: str | None = None) -> NodeSnap | EdgeSnap | None:
        return self.nearest_node(p) or self.nearest_edge_point(p, exclude_polyline=exclude_polyline)


def nearest_node_geo(
    graph: RouteGraph, p: Coord, max_distance_m: float | None = None
) -> tuple[Node, float] | None:
    """Geographically nearest node, used to attach a route endpoint to the network."""
    hit = graph.nearest_node(p)
    if hit is None:
        return None
    if max_distance_m is not None and hit[1] > max_distance_m:
        return None
    return hit
