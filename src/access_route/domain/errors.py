from dataclasses import dataclass
from typing import Any

INGEST_REASON_CODES: frozenset[str] = frozenset(
    {
        "too_few_coordinates",
        "non_finite_coordinate",
        "coordinate_out_of_range",
        "invalid_tag_position",
        "invalid_payload",
    }
)


@dataclass(eq=False)
class RouteGraphError(ValueError):
    reason_code: str
    message: str
    details: dict[str, Any] | None = None

    def __str__(self) -> str:
        return self.message


class InvalidPolylineError(RouteGraphError):
    """Malformed polyline rejected before it reaches the graph."""
