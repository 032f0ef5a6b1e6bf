"""Command-line entry: load saved polylines and route between two points."""

import argparse
import json
import sys
from pathlib import Path

from access_route.app.build import build
from access_route.io.config import load_config
from access_route.services.route_planner import Unreachable

NO_ROUTE_MESSAGE = "No accessible route found to this location"


def _latlng(text: str) -> tuple[float, float]:
    try:
        lat, lng = (float(v) for v in text.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected LAT,LNG, got {text!r}") from None
    return lat, lng


def _avoided_warning(tags: list[str]) -> str:
    names = ", ".join(t.removeprefix("has_").replace("_", " ") for t in tags)
    return f"This route includes {names}. No path avoiding them was found."


def run(polylines: Path, start, end, *, config=None, verbose: bool = False, out=None) -> int:
    out = out or sys.stdout
    app = build(load_config(config), use_logging=verbose)
    with Path(polylines).open(encoding="utf-8") as f:
        payload = json.load(f)
    items = payload.get("data", []) if isinstance(payload, dict) else payload
    report = app.editor.load(items)

    result = app.planner.route(start, end)
    summary = {"loaded": len(report.loaded), "rejected": [pid for pid, _ in report.rejected]}
    if isinstance(result, Unreachable):
        summary.update(found=False, reason=result.reason, message=NO_ROUTE_MESSAGE)
    else:
        summary.update(
            found=True,
            distance_m=round(result.distance_m, 1),
            nodes=list(result.node_ids),
            coordinates=[p.as_pair() for p in result.coordinates],
            has_avoided_tag=result.has_avoided_tag,
        )
        if result.has_avoided_tag:
            summary["warning"] = _avoided_warning(result.avoided_tags)
    json.dump(summary, out, indent=2)
    out.write("\n")
    return 0 if result.found else 1


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(prog="access-route", description=__doc__)
    ap.add_argument("polylines", type=Path, help="JSON list of saved polylines")
    ap.add_argument("--from", dest="start", type=_latlng, required=True, metavar="LAT,LNG")
    ap.add_argument("--to", dest="end", type=_latlng, required=True, metavar="LAT,LNG")
    ap.add_argument("--config", type=Path, default=None, help="JSON router config")
    ap.add_argument("-v", "--verbose", action="store_true", help="emit JSON logs")
    args = ap.parse_args(argv)
    return run(args.polylines, args.start, args.end, config=args.config, verbose=args.verbose)
