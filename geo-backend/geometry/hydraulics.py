"""Gravity drainage hydraulics (Manning-Strickler).

Q = K * S * Rh**(2/3) * I**(1/2) with K the Strickler coefficient, S the
wetted area, Rh the hydraulic radius and I the slope as a decimal. Pipe and
channel helpers take slopes in percent.
"""
from __future__ import annotations

import math
from typing import Dict, NamedTuple

TOLERANCE = 1e-10
DEFAULT_STRICKLER = 70.0

STRICKLER: Dict[str, float] = {
    "smooth_concrete": 80.0,
    "spun_concrete": 90.0,
    "concrete": 70.0,
    "rough_concrete": 60.0,
    "stoneware": 75.0,
    "ductile_iron": 80.0,
    "pvc_new": 100.0,
    "pvc_used": 90.0,
    "hdpe": 100.0,
    "steel": 85.0,
    "earth_ditch": 35.0,
    "grassed_ditch": 25.0,
    "riprap": 30.0,
}


class WettedSection(NamedTuple):
    area: float
    perimeter: float
    hydraulic_radius: float


EMPTY = WettedSection(0.0, 0.0, 0.0)


def _check_slope(slope: float) -> None:
    if slope < 0:
        raise ValueError("slope must be >= 0")


def manning_strickler_velocity(k: float, hydraulic_radius: float, slope: float) -> float:
    _check_slope(slope)
    return k * hydraulic_radius ** (2.0 / 3.0) * math.sqrt(slope)


def manning_strickler_flow(k: float, area: float, hydraulic_radius: float, slope: float) -> float:
    return area * manning_strickler_velocity(k, hydraulic_radius, slope)


def hydraulic_radius(area: float, perimeter: float) -> float:
    if perimeter < TOLERANCE:
        return 0.0
    return area / perimeter


def circular_section(diameter: float, fill_ratio: float) -> WettedSection:
    """Wetted section of a circular pipe filled to ``fill_ratio`` of its diameter."""
    if fill_ratio <= 0:
        return EMPTY
    if fill_ratio >= 1:
        return WettedSection(math.pi * diameter * diameter / 4.0, math.pi * diameter, diameter / 4.0)
    r = diameter / 2.0
    theta = 2.0 * math.acos(1.0 - fill_ratio * diameter / r)
    area = r * r * (theta - math.sin(theta)) / 2.0
    perimeter = r * theta
    return WettedSection(area, perimeter, area / perimeter)


def ovoid_section(height: float, fill_ratio: float) -> WettedSection:
    """T150 egg-shaped sewer, empirical fill law."""
    full_area = 0.510 * height * height
    full_perimeter = 2.64 * height
    if fill_ratio <= 0:
        return EMPTY
    if fill_ratio >= 1:
        return WettedSection(full_area, full_perimeter, full_area / full_perimeter)
    area = full_area * fill_ratio * (2.0 - fill_ratio)
    perimeter = full_perimeter * math.sqrt(fill_ratio)
    return WettedSection(area, perimeter, hydraulic_radius(area, perimeter))


def rectangular_section(width: float, height: float, water_depth: float) -> WettedSection:
    h = min(water_depth, height)
    if h <= 0:
        return EMPTY
    area = width * h
    perimeter = width + 2.0 * h
    return WettedSection(area, perimeter, area / perimeter)


def trapezoidal_section(bottom_width: float, water_depth: float, side_slope: float) -> WettedSection:
    """Ditch section; ``side_slope`` is horizontal run per unit of depth."""
    if water_depth <= 0:
        return EMPTY
    top = bottom_width + 2.0 * side_slope * water_depth
    area = (bottom_width + top) * water_depth / 2.0
    perimeter = bottom_width + 2.0 * water_depth * math.sqrt(1.0 + side_slope * side_slope)
    return WettedSection(area, perimeter, area / perimeter)


def full_pipe_flow(diameter: float, slope_percent: float, k: float = DEFAULT_STRICKLER) -> float:
    full = circular_section(diameter, 1.0)
    return manning_strickler_flow(k, full.area, full.hydraulic_radius, slope_percent / 100.0)


def required_pipe_diameter(flow: float, slope_percent: float, k: float = DEFAULT_STRICKLER) -> float:
    """Smallest diameter carrying ``flow`` m3/s running full."""
    slope = slope_percent / 100.0
    if slope <= 0:
        raise ValueError("slope must be > 0")
    return (flow * 4.0 ** (5.0 / 3.0) / (k * math.pi * math.sqrt(slope))) ** (3.0 / 8.0)


def self_cleaning_slope(diameter: float, min_velocity: float = 0.60, k: float = DEFAULT_STRICKLER) -> float:
    """Slope in percent giving ``min_velocity`` m/s in the pipe running full."""
    rh = diameter / 4.0
    return (min_velocity / (k * rh ** (2.0 / 3.0))) ** 2 * 100.0


def manhole_drop(upstream_invert: float, downstream_invert: float) -> float:
    return max(0.0, upstream_invert - downstream_invert)


def requires_energy_dissipation(drop: float, threshold: float = 0.80) -> bool:
    return drop > threshold


__all__ = [
    "DEFAULT_STRICKLER",
    "STRICKLER",
    "WettedSection",
    "circular_section",
    "full_pipe_flow",
    "hydraulic_radius",
    "manhole_drop",
    "manning_strickler_flow",
    "manning_strickler_velocity",
    "ovoid_section",
    "rectangular_section",
    "required_pipe_diameter",
    "requires_energy_dissipation",
    "self_cleaning_slope",
    "trapezoidal_section",
]
