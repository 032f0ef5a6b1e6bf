from typing import Protocol, runtime_checkable

from access_route.domain.entities.geography import LatLng, ScreenPoint
from access_route.domain.entities.network import Node


# ------------- Graph --------------------
@runtime_checkable
class NodeIndex(Protocol):
    """
    Responsibilities:
    • Keep a lookup structure over the graph's live nodes.
    • Answer "is there a node within tolerance of this point" (the merge test).
    • Answer "which node is closest to this point" (route endpoint attachment).
    Units: degrees for coordinates, metres for distances.
    """

    def add(self, node: Node) -> None: ...
    def discard(self, node_id: str) -> None: ...
    def find_within(self, p: LatLng, tolerance_m: float) -> Node | None:
        """Closest node strictly closer than ``tolerance_m``, or None."""

    def nearest(self, p: LatLng) -> tuple[Node, float] | None:
        """Closest node and its distance in metres, or None for an empty index."""


# ------------- Snapping --------------------
@runtime_checkable
class Projector(Protocol):
    """
    Maps geographic coordinates to the editor's screen space and back.
    Snap thresholds are in pixels so they stay constant across zoom levels.
    """

    def project(self, p: LatLng) -> ScreenPoint: ...
    def unproject(self, s: ScreenPoint) -> LatLng: ...
