from __future__ import annotations

import math
from dataclasses import dataclass
from enum import IntFlag
from typing import List, Optional, Sequence, Tuple

from .polyline import Polyline

Point = Tuple[float, float]


class SnapMode(IntFlag):
    NONE = 0
    VERTEX = 1 << 0
    ENDPOINT = 1 << 1
    MIDPOINT = 1 << 2
    NEAREST = 1 << 3
    CENTER = 1 << 4
    INTERSECTION = 1 << 5
    PERPENDICULAR = 1 << 6
    TANGENT = 1 << 7
    QUADRANT = 1 << 8
    INSERTION = 1 << 9
    NODE = 1 << 10
    PARALLEL = 1 << 11

    POLYLINE_POINTS = VERTEX | ENDPOINT
    POLYLINE_FULL = VERTEX | ENDPOINT | MIDPOINT | NEAREST
    CIRCLE_ARC = CENTER | QUADRANT | NEAREST
    BASIC = VERTEX | ENDPOINT | MIDPOINT | CENTER
    # modes detect_snap_points can produce; the others are reserved
    POLYLINE_SUPPORTED = VERTEX | ENDPOINT | MIDPOINT | NEAREST | CENTER | QUADRANT
    ALL = (
        VERTEX | ENDPOINT | MIDPOINT | NEAREST | CENTER | INTERSECTION
        | PERPENDICULAR | TANGENT | QUADRANT | INSERTION | NODE | PARALLEL
    )

    @classmethod
    def parse(cls, names: Sequence[str], supported: Optional["SnapMode"] = None) -> "SnapMode":
        """Combine mode names into one flag.

        With ``supported``, presets are narrowed to it and a mode name with no
        supported component raises ValueError instead of matching nothing.
        """
        mode = cls.NONE
        for name in names:
            try:
                flag = cls[name.strip().upper()]
            except KeyError:
                raise ValueError(f"unknown snap mode '{name}'") from None
            if supported is not None:
                if flag and not flag & supported:
                    raise ValueError(f"snap mode '{name}' is not available for polylines")
                flag &= supported
            mode |= flag
        return mode


PRIORITIES = {
    SnapMode.ENDPOINT: 10,
    SnapMode.VERTEX: 15,
    SnapMode.MIDPOINT: 20,
    SnapMode.CENTER: 25,
    SnapMode.INTERSECTION: 30,
    SnapMode.NODE: 35,
    SnapMode.INSERTION: 40,
    SnapMode.QUADRANT: 45,
    SnapMode.PERPENDICULAR: 50,
    SnapMode.TANGENT: 55,
    SnapMode.PARALLEL: 60,
    SnapMode.NEAREST: 100,
}
DEFAULT_PRIORITY = 200


@dataclass(frozen=True)
class SnapPoint:
    point: Point
    mode: SnapMode
    distance: float  # to the cursor
    segment_index: Optional[int] = None
    station: Optional[float] = None  # curvilinear distance along the polyline

    @property
    def priority(self) -> int:
        return PRIORITIES.get(self.mode, DEFAULT_PRIORITY)

    def sort_key(self) -> Tuple[int, float]:
        return self.priority, self.distance


def _dist(a: Point, b: Point) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def detect_snap_points(
    polyline: Polyline,
    cursor: Sequence[float],
    tolerance: float,
    modes: SnapMode = SnapMode.POLYLINE_FULL,
) -> List[SnapPoint]:
    """Snap candidates of ``polyline`` within ``tolerance`` of ``cursor``.

    Ordered by mode priority (endpoints first, nearest last), then by distance.
    """
    c = (float(cursor[0]), float(cursor[1]))
    found: List[SnapPoint] = []

    if modes & SnapMode.VERTEX:
        for i, v in enumerate(polyline.vertices):
            p = (v.x, v.y)
            found.append(SnapPoint(p, SnapMode.VERTEX, _dist(c, p), i, polyline.distance_at_vertex(i)))

    if modes & SnapMode.ENDPOINT:
        first = polyline.vertices[0]
        found.append(SnapPoint((first.x, first.y), SnapMode.ENDPOINT, _dist(c, (first.x, first.y)), 0, 0.0))
        if not polyline.closed:
            last = polyline.vertices[-1]
            p = (last.x, last.y)
            found.append(SnapPoint(p, SnapMode.ENDPOINT, _dist(c, p), len(polyline.vertices) - 1, polyline.length))

    if modes & SnapMode.MIDPOINT:
        for i, seg in enumerate(polyline.segments):
            p = seg.midpoint()
            found.append(SnapPoint(p, SnapMode.MIDPOINT, _dist(c, p), i,
                                   polyline.distance_at_vertex(i) + seg.length / 2.0))

    if modes & (SnapMode.CENTER | SnapMode.QUADRANT):
        for i, seg in enumerate(polyline.segments):
            if not seg.is_arc:
                continue
            center = seg.center
            if modes & SnapMode.CENTER:
                found.append(SnapPoint(center, SnapMode.CENTER, _dist(c, center), i))
            if modes & SnapMode.QUADRANT:
                r = seg.radius
                for k in range(4):
                    ang = k * math.pi / 2.0
                    q = (center[0] + r * math.cos(ang), center[1] + r * math.sin(ang))
                    foot, s = seg.closest(q)
                    if _dist(foot, q) <= 1e-9 * max(1.0, r):
                        found.append(SnapPoint(q, SnapMode.QUADRANT, _dist(c, q), i,
                                               polyline.distance_at_vertex(i) + s))

    if modes & SnapMode.NEAREST:
        proj = polyline.closest_point(c)
        found.append(SnapPoint(proj.point, SnapMode.NEAREST, abs(proj.offset), proj.segment_index, proj.distance))

    return sorted((s for s in found if s.distance <= tolerance), key=SnapPoint.sort_key)


def best_snap(
    polyline: Polyline,
    cursor: Sequence[float],
    tolerance: float,
    modes: SnapMode = SnapMode.POLYLINE_FULL,
) -> Optional[SnapPoint]:
    hits = detect_snap_points(polyline, cursor, tolerance, modes)
    return hits[0] if hits else None


__all__ = ["PRIORITIES", "SnapMode", "SnapPoint", "best_snap", "detect_snap_points"]
