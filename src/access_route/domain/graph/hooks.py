# domain/graph/hooks.py
from typing import Protocol


class GraphHooks(Protocol):
    def polyline_added(self, *, polyline_id, nodes, edges): ...
    def polyline_removed(self, *, polyline_id, edges, orphans): ...
    def node_tags_updated(self, *, node_id, tags): ...
    def graph_stats(self, *, stats): ...
    def route_found(self, *, start, end, hops, distance_m, cost, avoided_tags): ...
    def route_unreachable(self, *, start, end, reason): ...
    def ingest_rejected(self, *, polyline_id, reason, message): ...


class NoopHooks:
    def polyline_added(self, **_):
        pass

    def polyline_removed(self, **_):
        pass

    def node_tags_updated(self, **_):
        pass

    def graph_stats(self, **_):
        pass

    def route_found(self, **_):
        pass

    def route_unreachable(self, **_):
        pass

    def ingest_rejected(self, **_):
        pass
