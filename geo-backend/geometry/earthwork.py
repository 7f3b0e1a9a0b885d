"""Earthwork quantities and triangle-surface helpers.

Cross sections are lists of (offset, z) pairs across the road axis; 3D
points are (x, y, z).
"""
from __future__ import annotations

import math
from typing import Dict, NamedTuple, Sequence, Tuple

TOLERANCE = 1e-10

# Loose volume over in-place volume.
BULKING_FACTORS: Dict[str, float] = {
    "topsoil": 1.25,
    "clay": 1.30,
    "sand": 1.10,
    "gravel": 1.15,
    "fragmented_rock": 1.50,
    "solid_rock": 1.65,
    "asphalt": 1.30,
}


class CutFill(NamedTuple):
    cut: float
    fill: float


def cross_section_areas(profile: Sequence[Sequence[float]], reference_level: float) -> CutFill:
    """Cut (above ``reference_level``) and fill (below) areas of a cross section.

    Each span is a trapezoid; a span crossing the reference level is split
    at the crossing into two triangles.
    """
    pts = [(float(p[0]), float(p[1])) for p in profile]
    cut = fill = 0.0
    for (x1, z1), (x2, z2) in zip(pts, pts[1:]):
        width = abs(x2 - x1)
        h1 = z1 - reference_level
        h2 = z2 - reference_level
        if h1 >= 0 and h2 >= 0:
            cut += (h1 + h2) * width / 2.0
        elif h1 <= 0 and h2 <= 0:
            fill += (abs(h1) + abs(h2)) * width / 2.0
        else:
            cross = abs(h1) / (abs(h1) + abs(h2)) * width
            if h1 > 0:
                cut += h1 * cross / 2.0
                fill += abs(h2) * (width - cross) / 2.0
            else:
                fill += abs(h1) * cross / 2.0
                cut += h2 * (width - cross) / 2.0
    return CutFill(cut, fill)


def average_end_area_volume(area1: float, area2: float, distance: float) -> float:
    return (area1 + area2) * distance / 2.0


def prismoidal_volume(area1: float, area_middle: float, area2: float, distance: float) -> float:
    return (area1 + 4.0 * area_middle + area2) * distance / 6.0


def total_volumes(sections: Sequence[Tuple[float, float, float]]) -> CutFill:
    """Sum average-end-area volumes over (station, cut_area, fill_area) sections in station order."""
    cut = fill = 0.0
    for (s1, c1, f1), (s2, c2, f2) in zip(sections, sections[1:]):
        dist = abs(s2 - s1)
        cut += average_end_area_volume(c1, c2, dist)
        fill += average_end_area_volume(f1, f2, dist)
    return CutFill(cut, fill)


def bulking_factor(volume_in_place: float, volume_loose: float) -> float:
    if volume_in_place < TOLERANCE:
        return 1.0
    return volume_loose / volume_in_place


def apply_bulking(volume_in_place: float, factor: float) -> float:
    return volume_in_place * factor


def compacted_volume(volume_loose: float, compaction_ratio: float) -> float:
    return volume_loose * compaction_ratio


def frustum_volume(top_area: float, bottom_area: float, height: float) -> float:
    """Excavation with sloped sides, as a truncated pyramid."""
    return height * (top_area + bottom_area + math.sqrt(top_area * bottom_area)) / 3.0


def trench_volume(width: float, depth: float, length: float, side_slope: float = 0.0) -> float:
    """Trench volume; ``side_slope`` is horizontal run per unit of depth on each side."""
    top = width + 2.0 * side_slope * depth
    return (width + top) * depth / 2.0 * length


def bedding_volume(bedding_thickness: float, trench_width: float, length: float) -> float:
    return trench_width * bedding_thickness * length


def surround_volume(pipe_diameter: float, trench_width: float, length: float, cover_above_pipe: float) -> float:
    """Backfill around a pipe up to ``cover_above_pipe`` over its crown, pipe excluded."""
    height = pipe_diameter + cover_above_pipe
    pipe = math.pi * pipe_diameter * pipe_diameter / 4.0
    return (trench_width * height - pipe) * length


def _normal(p1: Sequence[float], p2: Sequence[float], p3: Sequence[float]) -> Tuple[float, float, float]:
    ux, uy, uz = p2[0] - p1[0], p2[1] - p1[1], p2[2] - p1[2]
    vx, vy, vz = p3[0] - p1[0], p3[1] - p1[1], p3[2] - p1[2]
    return uy * vz - uz * vy, uz * vx - ux * vz, ux * vy - uy * vx


def interpolate_z(point: Sequence[float], p1: Sequence[float], p2: Sequence[float], p3: Sequence[float]) -> float:
    """z at (x, y) on the plane through three points; their mean z for a vertical plane."""
    nx, ny, nz = _normal(p1, p2, p3)
    if abs(nz) < TOLERANCE:
        return (p1[2] + p2[2] + p3[2]) / 3.0
    return p1[2] - (nx * (point[0] - p1[0]) + ny * (point[1] - p1[1])) / nz


def plane_slope(p1: Sequence[float], p2: Sequence[float], p3: Sequence[float]) -> float:
    """Steepest grade of the plane in percent, inf for a vertical plane."""
    nx, ny, nz = _normal(p1, p2, p3)
    if abs(nz) < TOLERANCE:
        return math.inf
    return math.hypot(nx, ny) / abs(nz) * 100.0


def plane_aspect(p1: Sequence[float], p2: Sequence[float], p3: Sequence[float]) -> float:
    """Downhill direction in grads, 0 north and 100 east.

    Points are taken counter-clockwise seen from above; clockwise input
    flips the normal and the result by 200.
    """
    nx, ny, _ = _normal(p1, p2, p3)
    az = math.atan2(nx, ny) * 200.0 / math.pi
    return az + 400.0 if az < 0 else az


def triangle_area(p1: Sequence[float], p2: Sequence[float], p3: Sequence[float]) -> float:
    return abs((p2[0] - p1[0]) * (p3[1] - p1[1]) - (p3[0] - p1[0]) * (p2[1] - p1[1])) / 2.0


def triangle_area_3d(p1: Sequence[float], p2: Sequence[float], p3: Sequence[float]) -> float:
    nx, ny, nz = _normal(p1, p2, p3)
    return math.sqrt(nx * nx + ny * ny + nz * nz) / 2.0


def prism_volume(p1: Sequence[float], p2: Sequence[float], p3: Sequence[float], reference_z: float) -> float:
    """Signed volume between a triangle and a horizontal plane, negative below it."""
    mean = (p1[2] + p2[2] + p3[2]) / 3.0 - reference_z
    return triangle_area(p1, p2, p3) * mean


__all__ = [
    "BULKING_FACTORS",
    "CutFill",
    "apply_bulking",
    "average_end_area_volume",
    "bedding_volume",
    "bulking_factor",
    "compacted_volume",
    "cross_section_areas",
    "frustum_volume",
    "interpolate_z",
    "plane_aspect",
    "plane_slope",
    "prism_volume",
    "prismoidal_volume",
    "surround_volume",
    "total_volumes",
    "trench_volume",
    "triangle_area",
    "triangle_area_3d",
]
