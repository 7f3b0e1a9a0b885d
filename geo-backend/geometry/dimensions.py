from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .polyline import Polyline
from .stations import DEFAULT_MAX_STATIONS, build_stations

Point = Tuple[float, float]


@dataclass
class DimensionSettings:
    interdistance: float = 0.0
    dimension_offset: float = 1.0
    target_layer: Optional[str] = None
    at_vertices: bool = False
    reverse_side: bool = False
    max_stations: Optional[int] = DEFAULT_MAX_STATIONS

    def __post_init__(self) -> None:
        if self.interdistance < 0:
            raise ValueError("interdistance must be >= 0")


@dataclass(frozen=True)
class WidthDimension:
    """Aligned dimension measuring from the reference curve to the target curve."""

    station: float
    start: Point  # on the reference polyline
    end: Point  # closest point of the target polyline
    line_point: Point  # where the dimension line passes
    layer: Optional[str] = None

    @property
    def width(self) -> float:
        return math.hypot(self.end[0] - self.start[0], self.end[1] - self.start[1])


def build_width_dimensions(
    reference: Polyline,
    target: Polyline,
    start_point: Sequence[float],
    end_point: Sequence[float],
    settings: Optional[DimensionSettings] = None,
) -> List[WidthDimension]:
    """Width dimensions between two polylines, one per station of the reference.

    The picked points are projected on the reference polyline to get the
    station range; stations follow the pick order.
    """
    settings = settings or DimensionSettings()
    start_dist = reference.closest_point(start_point).distance
    end_dist = reference.closest_point(end_point).distance
    stations = build_stations(
        reference,
        start_dist,
        end_dist,
        settings.interdistance,
        settings.at_vertices,
        max_stations=settings.max_stations,
    )
    side = -math.pi / 2.0 if settings.reverse_side else math.pi / 2.0
    out: List[WidthDimension] = []
    for station in stations:
        p1 = reference.point_at_distance(station)
        p2 = target.closest_point(p1).point
        perp = reference.tangent_angle(station) + side
        mid = ((p1[0] + p2[0]) / 2.0, (p1[1] + p2[1]) / 2.0)
        line_point = (
            mid[0] + settings.dimension_offset * math.cos(perp),
            mid[1] + settings.dimension_offset * math.sin(perp),
        )
        out.append(WidthDimension(station, p1, p2, line_point, settings.target_layer))
    return out


__all__ = ["DimensionSettings", "WidthDimension", "build_width_dimensions"]
