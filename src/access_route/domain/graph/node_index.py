import math
from collections import defaultdict

from access_route.app.protocols import NodeIndex
from access_route.domain.entities.geography import EARTH_RADIUS_M, LatLng, haversine_m
from access_route.domain.entities.network import Node

M_PER_DEG = 2.0 * math.pi * EARTH_RADIUS_M / 360.0


class LinearScanIndex(NodeIndex):
    """Scan every node on each lookup. Campus graphs are small enough for this."""

    def __init__(self):
        self._nodes: dict[str, Node] = {}

    def __len__(self) -> int:
        return len(self._nodes)

    def add(self, node: Node) -> None:
        self._nodes[node.id] = node

    def discard(self, node_id: str) -> None:
        self._nodes.pop(node_id, None)

    def find_within(self, p: LatLng, tolerance_m: float) -> Node | None:
        best, best_d = None, tolerance_m
        for node in self._nodes.values():
            d = haversine_m(node.position, p)
            if d < best_d:
                best, best_d = node, d
        return best

    def nearest(self, p: LatLng) -> tuple[Node, float] | None:
        best, best_d = None, math.inf
        for node in self._nodes.values():
            d = haversine_m(node.position, p)
            if d < best_d:
                best, best_d = node, d
        return None if best is None else (best, best_d)


class GridIndex(NodeIndex):
    """
    Bucket nodes into a lat/lng grid of roughly ``cell_m`` metres.
    Merge lookups only visit the cells the tolerance circle can reach, so
    results match LinearScanIndex exactly.
    """

    def __init__(self, cell_m: float = 5.0):
        if cell_m <= 0:
            raise ValueError("cell_m must be > 0")
        self.cell_deg = cell_m / M_PER_DEG
        # floor: the sliver left at the antimeridian joins column 0, so no column is narrower than a cell
        self._ncols = max(1, math.floor(360.0 / self.cell_deg))
        self._cells: dict[tuple[int, int], dict[str, Node]] = defaultdict(dict)
        self._where: dict[str, tuple[int, int]] = {}

    def __len__(self) -> int:
        return len(self._where)

    def _key(self, p: LatLng) -> tuple[int, int]:
        i = math.floor(p.lat / self.cell_deg)
        j = math.floor((p.lng + 180.0) / self.cell_deg) % self._ncols
        return i, j

    def add(self, node: Node) -> None:
        self.discard(node.id)
        key = self._key(node.position)
        self._cells[key][node.id] = node
        self._where[node.id] = key

    def discard(self, node_id: str) -> None:
        key = self._where.pop(node_id, None)
        if key is None:
            return
        bucket = self._cells[key]
        bucket.pop(node_id, None)
        if not bucket:
            del self._cells[key]

    def _candidates(self, p: LatLng, tolerance_m: float):
        tol_lat = tolerance_m / M_PER_DEG
        ri = math.ceil(tol_lat / self.cell_deg)
        # lng degrees shrink towards the poles; size the ring for the worst latitude it covers
        worst_lat = abs(p.lat) + tol_lat
        if worst_lat >= 90.0:
            rj = self._ncols // 2
        else:
            tol_lng = tolerance_m / (M_PER_DEG * math.cos(math.radians(worst_lat)))
            rj = min(self._ncols // 2, math.ceil(tol_lng / self.cell_deg))
        i0, j0 = self._key(p)
        if (2 * ri + 1) * (2 * rj + 1) > len(self._cells):
            for (i, j), bucket in self._cells.items():
                dj = abs(j - j0)
                if abs(i - i0) <= ri and min(dj, self._ncols - dj) <= rj:
                    yield from bucket.values()
            return
        for di in range(-ri, ri + 1):
            for dj in range(-rj, rj + 1):
                bucket = self._cells.get((i0 + di, (j0 + dj) % self._ncols))
                if bucket:
                    yield from bucket.values()

    def find_within(self, p: LatLng, tolerance_m: float) -> Node | None:
        best, best_d = None, tolerance_m
        for node in self._candidates(p, tolerance_m):
            d = haversine_m(node.position, p)
            if d < best_d:
                best, best_d = node, d
        return best

    def nearest(self, p: LatLng) -> tuple[Node, float] | None:
        # endpoint attachment is once per query; a full scan keeps it exact
        best, best_d = None, math.inf
        for bucket in self._cells.values():
            for node in bucket.values():
                d = haversine_m(node.position, p)
                if d < best_d:
                    best, best_d = node, d
        return None if best is None else (best, best_d)
