# runtime/registries.py
from collections.abc import Callable

from access_route.app.protocols import NodeIndex
from access_route.config.models import NodeIndexGridModel, NodeIndexLinearModel, NodeIndexUnion
from access_route.domain.graph.node_index import GridIndex, LinearScanIndex

NodeIndexFactory = Callable[[NodeIndexUnion], NodeIndex]

_node_index_registry: dict[str, NodeIndexFactory] = {}


# ------------------- Node index registries ---------------------------


def register_node_index(kind: str):
    def deco(fn: NodeIndexFactory):
        _node_index_registry[kind] = fn
        return fn

    return deco


def make_node_index(cfg: NodeIndexUnion) -> NodeIndex:
    try:
        factory = _node_index_registry[cfg.kind]
    except KeyError:
        raise ValueError(f"Unknown node index kind {cfg.kind!r}") from None
    return factory(cfg)


@register_node_index("linear")
def _make_linear(cfg: NodeIndexLinearModel):
    return LinearScanIndex()


@register_node_index("grid")
def _make_grid(cfg: NodeIndexGridModel):
    return GridIndex(cell_m=cfg.cell_m)
