"""Stations: sorted curvilinear distances along a curve.

Used to place dimensions at a regular interval and, optionally, at every
vertex and arc midpoint of the reference curve.
"""
from __future__ import annotations

import math
from typing import List, Optional, Protocol, Sequence

STATION_TOLERANCE = 1e-6
DEFAULT_MAX_STATIONS = 100000


class StationLimitExceeded(ValueError):
    def __init__(self, count: int, limit: int):
        super().__init__(f"Too many stations: {count} > {limit}")
        self.count = count
        self.limit = limit


class StationCurve(Protocol):
    @property
    def length(self) -> float: ...

    def vertex_distances(self) -> List[float]: ...

    def arc_midpoints(self) -> List[float]: ...


class BareCurve:
    """A curve known only by its length: no vertices, no arcs."""

    def __init__(self, length: float):
        self.length = float(length)

    def vertex_distances(self) -> List[float]:
        return []

    def arc_midpoints(self) -> List[float]:
        return []


def dedupe_sorted(values: Sequence[float], tolerance: float = STATION_TOLERANCE) -> List[float]:
    out: List[float] = []
    for v in sorted(values):
        if not out or v - out[-1] > tolerance:
            out.append(v)
    return out


def interval_station_count(start: float, end: float, interdistance: float) -> int:
    """Upper bound on the stations a regular interval yields, bounds included."""
    span = abs(end - start)
    if interdistance <= 0:
        return 1 if span == 0 else 2
    return int(math.ceil(span / interdistance)) + 1


def build_stations(
    curve: StationCurve,
    start: float,
    end: float,
    interdistance: float = 0.0,
    include_vertices: bool = False,
    tolerance: float = STATION_TOLERANCE,
    max_stations: Optional[int] = DEFAULT_MAX_STATIONS,
) -> List[float]:
    """Raises ValueError on non-finite input or an interval not above the
    tolerance, StationLimitExceeded before building more than ``max_stations``.
    """
    if not (math.isfinite(start) and math.isfinite(end)):
        raise ValueError("station range must be finite")
    if not math.isfinite(interdistance) or interdistance < 0:
        raise ValueError("interdistance must be a finite value >= 0")
    if 0 < interdistance <= tolerance:
        raise ValueError(f"interdistance must exceed {tolerance}")
    if max_stations is not None:
        count = interval_station_count(start, end, interdistance)
        if count > max_stations:
            raise StationLimitExceeded(count, max_stations)

    lo, hi = (start, end) if start <= end else (end, start)
    stations = [lo, hi]

    if interdistance > 0:
        k = 1
        d = lo + interdistance
        while d < hi - tolerance:
            stations.append(d)
            k += 1
            d = lo + k * interdistance

    if include_vertices:
        for vd in curve.vertex_distances():
            if lo - tolerance <= vd <= hi + tolerance:
                stations.append(min(max(vd, lo), hi))
        for md in curve.arc_midpoints():
            if lo <= md <= hi:
                stations.append(md)

    out = dedupe_sorted(stations, tolerance)
    if len(out) == 1:
        # Range shorter than the tolerance collapses onto the start.
        return [start]
    # Bounds survive deduplication exactly.
    out[0] = lo
    out[-1] = hi
    if start > end:
        out.reverse()
    return out


def build_stations_for_length(
    curve_length: float,
    start: float,
    end: float,
    interdistance: float = 0.0,
    include_vertices: bool = False,
    max_stations: Optional[int] = DEFAULT_MAX_STATIONS,
) -> List[float]:
    return build_stations(
        BareCurve(curve_length), start, end, interdistance, include_vertices, max_stations=max_stations
    )


__all__ = [
    "DEFAULT_MAX_STATIONS",
    "STATION_TOLERANCE",
    "BareCurve",
    "StationCurve",
    "StationLimitExceeded",
    "build_stations",
    "build_stations_for_length",
    "dedupe_sorted",
    "interval_station_count",
]
