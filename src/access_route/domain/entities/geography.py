import math
from collections.abc import Iterable
from dataclasses import dataclass

from access_route.domain.errors import InvalidPolylineError

EARTH_RADIUS_M = 6_371_000.0


# Core geometry types used by the graph
@dataclass(frozen=True)
class LatLng:
    lat: float  # degrees, WGS84
    lng: float

    def as_pair(self) -> list[float]:
        return [self.lat, self.lng]


@dataclass(frozen=True)
class ScreenPoint:
    x: float  # pixels in the current view
    y: float


Coord = LatLng | tuple[float, float] | list[float]


def to_latlng(c: Coord) -> LatLng:
    return c if isinstance(c, LatLng) else LatLng(float(c[0]), float(c[1]))


def haversine_m(a: LatLng, b: LatLng) -> float:
    phi1 = math.radians(a.lat)
    phi2 = math.radians(b.lat)
    dphi = phi2 - phi1
    dlambda = math.radians(b.lng - a.lng)
    h = math.sin(dphi / 2.0) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2.0) ** 2
    return 2.0 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(max(0.0, h))))


def check_coordinate(c: Coord) -> LatLng:
    try:
        p = to_latlng(c)
    except (TypeError, ValueError, IndexError) as exc:
        raise InvalidPolylineError("non_finite_coordinate", f"not a [lat, lng] pair: {c!r}") from exc
    if not (math.isfinite(p.lat) and math.isfinite(p.lng)):
        raise InvalidPolylineError("non_finite_coordinate", f"non-finite coordinate {c!r}")
    if abs(p.lat) > 90.0 or abs(p.lng) > 180.0:
        raise InvalidPolylineError("coordinate_out_of_range", f"coordinate out of range {c!r}")
    return p


def check_coordinates(coords: Iterable[Coord]) -> list[LatLng]:
    """Validate a polyline at the ingest boundary; nothing touches the graph until this passes."""
    points = [check_coordinate(c) for c in coords]
    if len(points) < 2:
        raise InvalidPolylineError(
            "too_few_coordinates", f"a polyline needs at least 2 coordinates, got {len(points)}"
        )
    return points
