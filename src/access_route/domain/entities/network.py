from dataclasses import dataclass, field

from access_route.domain.entities.geography import LatLng

HAS_STAIRS = "has_stairs"


@dataclass
class Node:
    """A junction in the walkable network.

    ``adjacency`` mirrors the graph's edge set (neighbor id -> edge weight).
    Any edge mutation must update both endpoints in the same operation.
    """

    id: str
    position: LatLng
    tags: set[str] = field(default_factory=set)
    adjacency: dict[str, float] = field(default_factory=dict)

    @property
    def degree(self) -> int:
        return len(self.adjacency)

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags


@dataclass
class Edge:
    id: str
    node_a: str
    node_b: str
    distance_m: float
    polyline_id: str  # owning polyline
    claimants: list[str] = field(default_factory=list)  # every polyline sharing this segment

    def joins(self, a: str, b: str) -> bool:
        return {a, b} == {self.node_a, self.node_b}


def edge_key(a: str, b: str) -> str:
    lo, hi = (a, b) if a <= b else (b, a)
    return f"edge-{lo}-{hi}"
