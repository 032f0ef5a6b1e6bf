# io/recorder.py
import json
import logging
from dataclasses import asdict
from typing import Protocol

from access_route.io.route_events import RouteEvent

log = logging.getLogger("access_route.recorder")


class Sink(Protocol):
    def write(self, ev: RouteEvent) -> None: ...


class JsonlSink:
    """One JSON object per event, flushed so a tailing reader sees it at once."""

    def __init__(self, fp):
        self.fp = fp

    def write(self, ev: RouteEvent) -> None:
        self.fp.write(json.dumps(asdict(ev), default=str) + "\n")
        self.fp.flush()


class MemorySink:
    def __init__(self):
        self.events: list[RouteEvent] = []

    def write(self, ev: RouteEvent) -> None:
        self.events.append(ev)

    def named(self, name: str) -> list[RouteEvent]:
        return [ev for ev in self.events if ev.name == name]


class Recorder:
    """
    Stamps route events with the session's ``run_id`` and a running ``seq``,
    then fans them out to every sink. No sinks: events are counted and dropped.
    """

    def __init__(self, *sinks: Sink, run_id: str = "local"):
        self.sinks, self.run_id = sinks, run_id
        self._seq = 0

    @property
    def seq(self) -> int:
        return self._seq

    def record(self, event_cls: type[RouteEvent], **fields) -> RouteEvent:
        self._seq += 1
        ev = event_cls(run_id=self.run_id, seq=self._seq, name=event_cls.__name__, **fields)
        for s in self.sinks:
            try:
                s.write(ev)
            except Exception:
                # a failing sink must not fail the route query that produced the event
                log.exception("sink %s failed for %s", type(s).__name__, ev.name)
        return ev
