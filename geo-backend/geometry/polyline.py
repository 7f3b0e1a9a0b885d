"""Bulge-encoded 2D polylines with arc-length parameterisation.

A segment's bulge is tan(theta / 4) where theta is the included angle of the
arc, positive for counter-clockwise arcs. Zero bulge is a straight segment.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, NamedTuple, Optional, Sequence, Tuple

BULGE_EPSILON = 1e-6
TWO_PI = 2.0 * math.pi

Point = Tuple[float, float]


class Vertex(NamedTuple):
    x: float
    y: float
    bulge: float = 0.0


class Projection(NamedTuple):
    """Nearest point of a polyline to a query point."""

    point: Point
    distance: float  # curvilinear distance from the start
    offset: float  # signed, positive on the left of the direction of travel
    segment_index: int


def _norm_angle(a: float) -> float:
    a = math.fmod(a, TWO_PI)
    return a + TWO_PI if a < 0 else a


@dataclass(frozen=True)
class Segment:
    start: Point
    end: Point
    bulge: float = 0.0

    @property
    def chord(self) -> float:
        return math.hypot(self.end[0] - self.start[0], self.end[1] - self.start[1])

    @property
    def is_arc(self) -> bool:
        return abs(self.bulge) > BULGE_EPSILON and self.chord > 0.0

    @property
    def sweep(self) -> float:
        """Signed included angle of the arc, 0 for a straight segment."""
        return 4.0 * math.atan(self.bulge) if self.is_arc else 0.0

    @property
    def radius(self) -> float:
        if not self.is_arc:
            return math.inf
        return self.chord / (2.0 * math.sin(abs(self.sweep) / 2.0))

    @property
    def center(self) -> Optional[Point]:
        if not self.is_arc:
            return None
        c = self.chord
        ux = (self.end[0] - self.start[0]) / c
        uy = (self.end[1] - self.start[1]) / c
        mx = (self.start[0] + self.end[0]) / 2.0
        my = (self.start[1] + self.end[1]) / 2.0
        d = c * (1.0 - self.bulge * self.bulge) / (4.0 * self.bulge)
        return mx - uy * d, my + ux * d

    @property
    def length(self) -> float:
        if self.is_arc:
            return self.radius * abs(self.sweep)
        return self.chord

    def _start_angle(self) -> float:
        cx, cy = self.center
        return math.atan2(self.start[1] - cy, self.start[0] - cx)

    def point_at(self, s: float) -> Point:
        """Point at curvilinear distance ``s`` from the segment start."""
        length = self.length
        if length <= 0.0:
            return self.start
        t = min(max(s / length, 0.0), 1.0)
        if not self.is_arc:
            return (
                self.start[0] + (self.end[0] - self.start[0]) * t,
                self.start[1] + (self.end[1] - self.start[1]) * t,
            )
        cx, cy = self.center
        r = self.radius
        ang = self._start_angle() + self.sweep * t
        return cx + r * math.cos(ang), cy + r * math.sin(ang)

    def tangent_at(self, s: float) -> float:
        """Direction of travel (radians) at distance ``s``."""
        if not self.is_arc:
            return math.atan2(self.end[1] - self.start[1], self.end[0] - self.start[0])
        t = min(max(s / self.length, 0.0), 1.0)
        ang = self._start_angle() + self.sweep * t
        return ang + (math.pi / 2.0 if self.sweep > 0 else -math.pi / 2.0)

    def midpoint(self) -> Point:
        return self.point_at(self.length / 2.0)

    def closest(self, p: Point) -> Tuple[Point, float]:
        """Nearest point on the segment and its distance along the segment."""
        if self.length <= 0.0:
            return self.start, 0.0
        if not self.is_arc:
            dx = self.end[0] - self.start[0]
            dy = self.end[1] - self.start[1]
            c2 = dx * dx + dy * dy
            t = ((p[0] - self.start[0]) * dx + (p[1] - self.start[1]) * dy) / c2
            t = min(max(t, 0.0), 1.0)
            return (self.start[0] + dx * t, self.start[1] + dy * t), t * math.sqrt(c2)
        cx, cy = self.center
        r = self.radius
        sweep = self.sweep
        a0 = self._start_angle()
        ang = math.atan2(p[1] - cy, p[0] - cx)
        delta = _norm_angle(ang - a0) if sweep > 0 else _norm_angle(a0 - ang)
        if delta <= abs(sweep):
            return (cx + r * math.cos(ang), cy + r * math.sin(ang)), r * delta
        d_start = math.hypot(p[0] - self.start[0], p[1] - self.start[1])
        d_end = math.hypot(p[0] - self.end[0], p[1] - self.end[1])
        if d_start <= d_end:
            return self.start, 0.0
        return self.end, self.length


class Polyline:
    def __init__(self, vertices: Iterable[Sequence[float]], closed: bool = False):
        verts: List[Vertex] = []
        for v in vertices:
            bulge = float(v[2]) if len(v) > 2 else 0.0
            verts.append(Vertex(float(v[0]), float(v[1]), bulge))
        if len(verts) < 2:
            raise ValueError("a polyline needs at least two vertices")
        self.vertices: Tuple[Vertex, ...] = tuple(verts)
        self.closed = bool(closed)
        segs: List[Segment] = []
        count = len(verts) if self.closed else len(verts) - 1
        for i in range(count):
            a = verts[i]
            b = verts[(i + 1) % len(verts)]
            segs.append(Segment((a.x, a.y), (b.x, b.y), a.bulge))
        self.segments: Tuple[Segment, ...] = tuple(segs)
        cum = [0.0]
        for s in segs:
            cum.append(cum[-1] + s.length)
        self._cumulative = cum

    def __repr__(self) -> str:
        return f"Polyline({len(self.vertices)} vertices, closed={self.closed}, length={self.length:.3f})"

    @property
    def length(self) -> float:
        return self._cumulative[-1]

    @property
    def segment_count(self) -> int:
        return len(self.segments)

    def segment_length(self, index: int) -> float:
        return self.segments[index].length

    def distance_at_vertex(self, index: int) -> float:
        return self._cumulative[index]

    def vertex_distances(self) -> List[float]:
        return [self._cumulative[i] for i in range(len(self.vertices))]

    def arc_midpoints(self) -> List[float]:
        out = []
        for i, seg in enumerate(self.segments):
            if seg.is_arc:
                out.append(self._cumulative[i] + seg.length / 2.0)
        return out

    def clamp(self, distance: float) -> float:
        return min(max(distance, 0.0), self.length)

    def _locate(self, distance: float) -> Tuple[int, float]:
        d = self.clamp(distance)
        for i, seg in enumerate(self.segments):
            if d <= self._cumulative[i + 1] or i == len(self.segments) - 1:
                return i, d - self._cumulative[i]
        return len(self.segments) - 1, 0.0  # pragma: no cover - loop always returns

    def point_at_distance(self, distance: float) -> Point:
        i, s = self._locate(distance)
        return self.segments[i].point_at(s)

    def tangent_angle(self, distance: float) -> float:
        i, s = self._locate(distance)
        # Zero-length segments have no direction; look ahead then behind.
        if self.segments[i].length <= 0.0:
            for seg in self.segments[i:] + self.segments[:i][::-1]:
                if seg.length > 0.0:
                    return seg.tangent_at(0.0)
        return self.segments[i].tangent_at(s)

    def closest_point(self, p: Sequence[float]) -> Projection:
        q = (float(p[0]), float(p[1]))
        best: Optional[Projection] = None
        best_d2 = math.inf
        for i, seg in enumerate(self.segments):
            foot, s = seg.closest(q)
            d2 = (foot[0] - q[0]) ** 2 + (foot[1] - q[1]) ** 2
            if d2 < best_d2:
                best_d2 = d2
                best = Projection(foot, self._cumulative[i] + s, 0.0, i)
        heading = self.tangent_angle(best.distance)
        cross = math.cos(heading) * (q[1] - best.point[1]) - math.sin(heading) * (q[0] - best.point[0])
        offset = math.copysign(math.sqrt(best_d2), cross) if best_d2 > 0 else 0.0
        return best._replace(offset=offset)


__all__ = ["BULGE_EPSILON", "Polyline", "Projection", "Segment", "Vertex"]
