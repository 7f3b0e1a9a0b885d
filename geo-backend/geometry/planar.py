"""Planar point helpers: angles, bearings, projections and polygon measures.

Bearings are surveying bearings in grads, clockwise from north (0 north,
100 east). Angles are mathematical radians, counter-clockwise from +x.
"""
from __future__ import annotations

import math
from typing import Sequence, Tuple

TOLERANCE = 1e-10
TWO_PI = 2.0 * math.pi

Point = Tuple[float, float]


def normalize_angle(angle: float) -> float:
    """Angle in [0, 2*pi)."""
    a = math.fmod(angle, TWO_PI)
    if a < 0:
        a += TWO_PI
    return 0.0 if a >= TWO_PI else a


def angle_between_vectors(u: Sequence[float], v: Sequence[float]) -> float:
    """Unsigned angle between two 2D vectors; 0 when either is null."""
    mag = math.hypot(u[0], u[1]) * math.hypot(v[0], v[1])
    if mag < TOLERANCE:
        return 0.0
    cos = (u[0] * v[0] + u[1] * v[1]) / mag
    return math.acos(max(-1.0, min(1.0, cos)))


def bearing(p1: Sequence[float], p2: Sequence[float]) -> float:
    g = math.atan2(p2[0] - p1[0], p2[1] - p1[1]) * 200.0 / math.pi
    return g + 400.0 if g < 0 else g


def bearing_to_angle(grads: float) -> float:
    return (100.0 - grads) * math.pi / 200.0


def offset_point(p: Sequence[float], angle: float, distance: float) -> Point:
    return p[0] + distance * math.cos(angle), p[1] + distance * math.sin(angle)


def perpendicular_offset(p: Sequence[float], angle: float, distance: float, left: bool = True) -> Point:
    return offset_point(p, angle + (math.pi / 2.0 if left else -math.pi / 2.0), distance)


def lerp(p1: Sequence[float], p2: Sequence[float], t: float) -> Point:
    return p1[0] + (p2[0] - p1[0]) * t, p1[1] + (p2[1] - p1[1]) * t


def midpoint(p1: Sequence[float], p2: Sequence[float]) -> Point:
    return lerp(p1, p2, 0.5)


def _line_param(p: Sequence[float], a: Sequence[float], b: Sequence[float]) -> float:
    dx, dy = b[0] - a[0], b[1] - a[1]
    len2 = dx * dx + dy * dy
    if len2 < TOLERANCE:
        return 0.0
    return ((p[0] - a[0]) * dx + (p[1] - a[1]) * dy) / len2


def project_on_line(p: Sequence[float], a: Sequence[float], b: Sequence[float]) -> Point:
    """Foot of the perpendicular from p on the infinite line (a, b); a when a == b."""
    return lerp(a, b, _line_param(p, a, b))


def project_on_segment(p: Sequence[float], a: Sequence[float], b: Sequence[float]) -> Point:
    return lerp(a, b, max(0.0, min(1.0, _line_param(p, a, b))))


def distance_to_line(p: Sequence[float], a: Sequence[float], b: Sequence[float]) -> float:
    f = project_on_line(p, a, b)
    return math.hypot(p[0] - f[0], p[1] - f[1])


def distance_to_segment(p: Sequence[float], a: Sequence[float], b: Sequence[float]) -> float:
    f = project_on_segment(p, a, b)
    return math.hypot(p[0] - f[0], p[1] - f[1])


def rotate_point(p: Sequence[float], center: Sequence[float], angle: float) -> Point:
    c, s = math.cos(angle), math.sin(angle)
    dx, dy = p[0] - center[0], p[1] - center[1]
    return center[0] + dx * c - dy * s, center[1] + dx * s + dy * c


def is_left_of(a: Sequence[float], b: Sequence[float], p: Sequence[float]) -> bool:
    """True when p lies strictly left of the directed line a -> b."""
    return (b[0] - a[0]) * (p[1] - a[1]) - (b[1] - a[1]) * (p[0] - a[0]) > 0


def point_in_polygon(p: Sequence[float], polygon: Sequence[Sequence[float]]) -> bool:
    """Even-odd ray test; horizontal edges are skipped."""
    n = len(polygon)
    if n < 3:
        return False
    inside = False
    x, y = p[0], p[1]
    j = n - 1
    for i in range(n):
        xi, yi = polygon[i][0], polygon[i][1]
        xj, yj = polygon[j][0], polygon[j][1]
        dy = yj - yi
        if abs(dy) >= TOLERANCE and ((yi < y <= yj) or (yj < y <= yi)):
            if xi + (y - yi) / dy * (xj - xi) < x:
                inside = not inside
        j = i
    return inside


def _signed_area(points: Sequence[Sequence[float]]) -> float:
    n = len(points)
    total = 0.0
    for i in range(n):
        x1, y1 = points[i][0], points[i][1]
        x2, y2 = points[(i + 1) % n][0], points[(i + 1) % n][1]
        total += x1 * y2 - x2 * y1
    return total / 2.0


def polygon_area(points: Sequence[Sequence[float]]) -> float:
    if len(points) < 3:
        return 0.0
    return abs(_signed_area(points))


def polygon_perimeter(points: Sequence[Sequence[float]]) -> float:
    n = len(points)
    if n < 2:
        return 0.0
    return sum(
        math.hypot(points[(i + 1) % n][0] - points[i][0], points[(i + 1) % n][1] - points[i][1])
        for i in range(n)
    )


def polygon_centroid(points: Sequence[Sequence[float]]) -> Point:
    """Area centroid; the vertex mean for degenerate (zero-area) input."""
    n = len(points)
    if n == 0:
        return 0.0, 0.0
    area = _signed_area(points) if n >= 3 else 0.0
    if abs(area) < TOLERANCE:
        return sum(p[0] for p in points) / n, sum(p[1] for p in points) / n
    cx = cy = 0.0
    for i in range(n):
        x1, y1 = points[i][0], points[i][1]
        x2, y2 = points[(i + 1) % n][0], points[(i + 1) % n][1]
        f = x1 * y2 - x2 * y1
        cx += (x1 + x2) * f
        cy += (y1 + y2) * f
    return cx / (6.0 * area), cy / (6.0 * area)


__all__ = [
    "angle_between_vectors",
    "bearing",
    "bearing_to_angle",
    "distance_to_line",
    "distance_to_segment",
    "is_left_of",
    "lerp",
    "midpoint",
    "normalize_angle",
    "offset_point",
    "perpendicular_offset",
    "point_in_polygon",
    "polygon_area",
    "polygon_centroid",
    "polygon_perimeter",
    "project_on_line",
    "project_on_segment",
    "rotate_point",
]
