# io/graph_logging.py
import json
import logging
import sys

from access_route.domain.graph.hooks import NoopHooks


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "msg": record.getMessage(),
            "logger": record.name,
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)
        return json.dumps(payload, default=str)


def default_json_logger(name="access_route", level="INFO", stream=None):
    logger = logging.getLogger(name)
    if not logger.handlers:
        h = logging.StreamHandler(stream or sys.stdout)
        h.setFormatter(_JsonFormatter())
        logger.addHandler(h)
    logger.setLevel(level)
    return logger


class GraphLogging(NoopHooks):
    """
    One place to shape and emit structured logs for graph mutations and route queries.
    """

    def __init__(
        self,
        run_id: str = "local",
        level: str = "INFO",
        debug: bool = False,
        logger: logging.Logger | None = None,
    ):
        self.run_id, self.debug = run_id, debug
        self.log = logger or default_json_logger(level=level)

    def _emit(self, level: int, msg: str, **extra):
        self.log.log(level, msg, extra={"extra": {"run_id": self.run_id, **extra}})

    # graph mutations

    def polyline_added(self, *, polyline_id, nodes, edges):
        self._emit(logging.INFO, "polyline_added", polyline_id=polyline_id, nodes=nodes, edges=edges)

    def polyline_removed(self, *, polyline_id, edges, orphans):
        self._emit(logging.INFO, "polyline_removed", polyline_id=polyline_id, edges=edges, orphans=orphans)

    def node_tags_updated(self, *, node_id, tags):
        self._emit(logging.INFO, "node_tags_updated", node_id=node_id, tags=tags)

    def graph_stats(self, *, stats):
        if self.debug:
            self._emit(logging.DEBUG, "graph_stats", **stats)

    # route queries

    def route_found(self, *, start, end, hops, distance_m, cost, avoided_tags):
        level = logging.WARNING if avoided_tags else logging.INFO
        self._emit(
            level,
            "route_found",
            start=start,
            end=end,
            hops=hops,
            distance_m=round(distance_m, 2),
            cost=round(cost, 2),
            avoided_tags=avoided_tags,
        )

    def route_unreachable(self, *, start, end, reason):
        self._emit(logging.INFO, "route_unreachable", start=start, end=end, reason=reason)

    # ingest

    def ingest_rejected(self, *, polyline_id, reason, message):
        self._emit(logging.WARNING, "ingest_rejected", polyline_id=polyline_id, reason=reason, error=message)
