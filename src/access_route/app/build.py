# access_route/app/build.py
import sys
from collections.abc import Mapping
from dataclasses import dataclass

from access_route.app.controllers.editor import RouteEditor
from access_route.app.protocols import Projector
from access_route.config.models import RouterConfigModel
from access_route.domain.graph.hooks import GraphHooks, NoopHooks
from access_route.domain.graph.route_graph import RouteGraph
from access_route.domain.routing.dijkstra import AvoidanceRule
from access_route.domain.routing.snapping import Snapper, WebMercatorProjector
from access_route.io.graph_logging import GraphLogging  # JSON logs
from access_route.io.recorder import JsonlSink, Recorder
from access_route.runtime.registries import make_node_index
from access_route.services.route_planner import RoutePlanner


@dataclass
class App:
    config: RouterConfigModel
    graph: RouteGraph
    snapper: Snapper
    planner: RoutePlanner
    editor: RouteEditor
    hooks: GraphHooks
    recorder: Recorder | None


def build(
    cfg: RouterConfigModel | Mapping | None = None,
    *,
    use_logging: bool = True,
    projector: Projector | None = None,
    recorder: Recorder | None = None,
) -> App:
    # 0) Validate config
    if cfg is None:
        model = RouterConfigModel()
    else:
        model = cfg if isinstance(cfg, RouterConfigModel) else RouterConfigModel.model_validate(cfg)

    # 1) Hooks & analytics
    hooks = (
        GraphLogging(run_id=model.run_id, level=model.log.level, debug=model.log.debug)
        if use_logging
        else NoopHooks()
    )
    if recorder is None and use_logging:
        recorder = Recorder(JsonlSink(sys.stdout), run_id=model.run_id)

    # 2) Graph (one per session, injected everywhere below)
    graph = RouteGraph(
        merge_tolerance_m=model.graph.merge_tolerance_m,
        index=make_node_index(model.graph.index),
        hooks=hooks,
    )

    # 3) Services
    snapper = Snapper(
        graph,
        projector or WebMercatorProjector(model.snap.zoom),
        threshold_px=model.snap.threshold_px,
    )
    planner = RoutePlanner(
        graph,
        rules=[AvoidanceRule(r.tag, r.multiplier) for r in model.routing.rules],
        max_access_m=model.routing.max_access_m,
        recorder=recorder,
    )
    editor = RouteEditor(graph, snapper, recorder=recorder)

    return App(model, graph, snapper, planner, editor, hooks, recorder)
