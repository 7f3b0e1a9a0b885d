"""Plane intersections: lines, segments and circles, plus circle helpers.

All inputs are (x, y) sequences; extra coordinates are ignored. Results are
2D points.
"""
from __future__ import annotations

import math
from typing import List, NamedTuple, Optional, Sequence, Tuple

TOLERANCE = 1e-10

Point = Tuple[float, float]


class LineIntersection(NamedTuple):
    point: Point
    t1: float  # parameter along the first line, 0 at its start and 1 at its end
    t2: float

    @property
    def on_first(self) -> bool:
        return 0.0 <= self.t1 <= 1.0

    @property
    def on_second(self) -> bool:
        return 0.0 <= self.t2 <= 1.0

    @property
    def on_both(self) -> bool:
        return self.on_first and self.on_second


def _xy(p: Sequence[float]) -> Point:
    return float(p[0]), float(p[1])


def intersect_lines(
    a1: Sequence[float], a2: Sequence[float], b1: Sequence[float], b2: Sequence[float]
) -> Optional[LineIntersection]:
    """Crossing of the infinite lines (a1, a2) and (b1, b2); None when parallel."""
    x1, y1 = _xy(a1)
    x2, y2 = _xy(a2)
    x3, y3 = _xy(b1)
    x4, y4 = _xy(b2)
    denom = (x1 - x2) * (y3 - y4) - (y1 - y2) * (x3 - x4)
    if abs(denom) < TOLERANCE:
        return None
    t = ((x1 - x3) * (y3 - y4) - (y1 - y3) * (x3 - x4)) / denom
    u = -((x1 - x2) * (y1 - y3) - (y1 - y2) * (x1 - x3)) / denom
    return LineIntersection((x1 + t * (x2 - x1), y1 + t * (y2 - y1)), t, u)


def intersect_segments(
    a1: Sequence[float], a2: Sequence[float], b1: Sequence[float], b2: Sequence[float]
) -> Optional[Point]:
    hit = intersect_lines(a1, a2, b1, b2)
    return hit.point if hit is not None and hit.on_both else None


def intersect_line_circle(
    p1: Sequence[float], p2: Sequence[float], center: Sequence[float], radius: float
) -> List[Point]:
    """Zero, one (tangent) or two points, ordered along p1 -> p2."""
    x1, y1 = _xy(p1)
    x2, y2 = _xy(p2)
    cx, cy = _xy(center)
    dx, dy = x2 - x1, y2 - y1
    fx, fy = x1 - cx, y1 - cy
    a = dx * dx + dy * dy
    if a < TOLERANCE:
        raise ValueError("a line needs two distinct points")
    b = 2.0 * (fx * dx + fy * dy)
    c = fx * fx + fy * fy - radius * radius
    disc = b * b - 4.0 * a * c
    if disc < -TOLERANCE:
        return []
    if abs(disc) < TOLERANCE:
        t = -b / (2.0 * a)
        return [(x1 + t * dx, y1 + t * dy)]
    root = math.sqrt(disc)
    return [
        (x1 + t * dx, y1 + t * dy)
        for t in ((-b - root) / (2.0 * a), (-b + root) / (2.0 * a))
    ]


def intersect_circles(
    c1: Sequence[float], r1: float, c2: Sequence[float], r2: float
) -> Optional[List[Point]]:
    """Common points of two circles.

    Returns None for coincident circles (infinitely many points), an empty
    list when they are disjoint or nested, one point when tangent.
    """
    x1, y1 = _xy(c1)
    x2, y2 = _xy(c2)
    d = math.hypot(x2 - x1, y2 - y1)
    if d < TOLERANCE:
        if abs(r1 - r2) < TOLERANCE:
            return None
        return []
    if d > r1 + r2 + TOLERANCE or d < abs(r1 - r2) - TOLERANCE:
        return []
    a = (r1 * r1 - r2 * r2 + d * d) / (2.0 * d)
    h2 = r1 * r1 - a * a
    px = x1 + a * (x2 - x1) / d
    py = y1 + a * (y2 - y1) / d
    if h2 < TOLERANCE:
        return [(px, py)]
    h = math.sqrt(h2)
    rx = -h * (y2 - y1) / d
    ry = h * (x2 - x1) / d
    return [(px + rx, py + ry), (px - rx, py - ry)]


def tangent_points(external: Sequence[float], center: Sequence[float], radius: float) -> Optional[Tuple[Point, Point]]:
    """Points of contact of the two tangents from an outside point; None from inside or on the circle."""
    ex, ey = _xy(external)
    cx, cy = _xy(center)
    d = math.hypot(ex - cx, ey - cy)
    if d <= radius:
        return None
    base = math.atan2(ey - cy, ex - cx)
    spread = math.acos(radius / d)
    return (
        (cx + radius * math.cos(base + spread), cy + radius * math.sin(base + spread)),
        (cx + radius * math.cos(base - spread), cy + radius * math.sin(base - spread)),
    )


def circle_from_3_points(
    p1: Sequence[float], p2: Sequence[float], p3: Sequence[float]
) -> Optional[Tuple[Point, float]]:
    """(center, radius) of the circumscribed circle; None for collinear points."""
    ax, ay = _xy(p1)
    bx, by = _xy(p2)
    cx, cy = _xy(p3)
    d = 2.0 * (ax * (by - cy) + bx * (cy - ay) + cx * (ay - by))
    if abs(d) < TOLERANCE:
        return None
    a2 = ax * ax + ay * ay
    b2 = bx * bx + by * by
    c2 = cx * cx + cy * cy
    ux = (a2 * (by - cy) + b2 * (cy - ay) + c2 * (ay - by)) / d
    uy = (a2 * (cx - bx) + b2 * (ax - cx) + c2 * (bx - ax)) / d
    return (ux, uy), math.hypot(ax - ux, ay - uy)


# Arc measures; angles are the included angle in radians, sign ignored.

def arc_length(radius: float, angle: float) -> float:
    return radius * abs(angle)


def sector_area(radius: float, angle: float) -> float:
    return 0.5 * radius * radius * abs(angle)


def circular_segment_area(radius: float, angle: float) -> float:
    """Area between the chord and the arc."""
    a = abs(angle)
    return 0.5 * radius * radius * (a - math.sin(a))


def chord_length(radius: float, angle: float) -> float:
    return 2.0 * radius * math.sin(abs(angle) / 2.0)


def sagitta(radius: float, angle: float) -> float:
    return radius * (1.0 - math.cos(abs(angle) / 2.0))


__all__ = [
    "TOLERANCE",
    "LineIntersection",
    "arc_length",
    "chord_length",
    "circle_from_3_points",
    "circular_segment_area",
    "intersect_circles",
    "intersect_line_circle",
    "intersect_lines",
    "intersect_segments",
    "sagitta",
    "sector_area",
    "tangent_points",
]
