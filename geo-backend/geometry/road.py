"""Road design: horizontal alignment and vertical profile.

Speeds are in km/h, lengths in metres and slopes/superelevations in percent
unless a name says otherwise.
"""
from __future__ import annotations

import math
from typing import NamedTuple, Sequence

GRAVITY = 9.81
TOLERANCE = 1e-10
COMFORT_FACTOR = 46.656  # 3.6**3, turns V**3 in km/h into m/s


class ClothoidPoint(NamedTuple):
    x: float
    y: float
    tau: float  # tangent rotation in radians


class VerticalCurve(NamedTuple):
    radius: float
    deflection: float  # offset at mid-length between tangents and curve
    is_crest: bool


def _ms(speed_kmh: float) -> float:
    return speed_kmh / 3.6


def clothoid_point(a: float, length: float) -> ClothoidPoint:
    """Local coordinates after ``length`` metres on a clothoid of parameter ``a``.

    Series expansion of the Fresnel integrals, accurate while tau stays
    well below 1 rad.
    """
    if a < TOLERANCE:
        return ClothoidPoint(0.0, 0.0, 0.0)
    tau = length * length / (2.0 * a * a)
    tau2 = tau * tau
    tau4 = tau2 * tau2
    x = length * (1.0 - tau2 / 10.0 + tau4 / 216.0)
    y = length * (tau / 3.0 - tau2 * tau / 42.0 + tau4 * tau / 1320.0)
    return ClothoidPoint(x, y, tau)


def clothoid_parameter(radius: float, length: float) -> float:
    """A such that A**2 = R * L."""
    return math.sqrt(radius * length)


def min_clothoid_length(radius: float, speed_kmh: float) -> float:
    if radius <= 0:
        raise ValueError("radius must be > 0")
    return speed_kmh ** 3 / (COMFORT_FACTOR * radius)


def min_curve_radius(speed_kmh: float, superelevation: float, friction: float = 0.13) -> float:
    grip = superelevation / 100.0 + friction
    if grip <= 0:
        raise ValueError("superelevation plus friction must be > 0")
    v = _ms(speed_kmh)
    return v * v / (GRAVITY * grip)


def recommended_superelevation(radius: float, speed_kmh: float, maximum: float = 7.0) -> float:
    if radius <= 0:
        raise ValueError("radius must be > 0")
    v = _ms(speed_kmh)
    return min(v * v / (GRAVITY * radius) * 100.0, maximum)


def curve_widening(radius: float, vehicle_length: float = 12.0) -> float:
    if radius < TOLERANCE:
        return 0.0
    return vehicle_length * vehicle_length / (2.0 * radius)


def stopping_distance(
    speed_kmh: float,
    reaction_time: float = 2.0,
    friction: float = 0.35,
    slope: float = 0.0,
) -> float:
    """Reaction distance plus braking distance; ``slope`` is positive uphill."""
    grip = friction + slope / 100.0
    if grip <= 0:
        raise ValueError("friction plus slope must be > 0")
    v = _ms(speed_kmh)
    return v * reaction_time + v * v / (2.0 * GRAVITY * grip)


def overtaking_distance(speed_kmh: float) -> float:
    return 6.0 * speed_kmh


def slope_percent(p1: Sequence[float], p2: Sequence[float]) -> float:
    """Grade from p1 to p2, both (x, y, z); 0 for a vertical pair."""
    run = math.hypot(p2[0] - p1[0], p2[1] - p1[1])
    if run < TOLERANCE:
        return 0.0
    return (p2[2] - p1[2]) / run * 100.0


def slope_per_mille(p1: Sequence[float], p2: Sequence[float]) -> float:
    return slope_percent(p1, p2) * 10.0


def vertical_curve(slope_in: float, slope_out: float, length: float) -> VerticalCurve:
    change = abs(slope_out - slope_in) / 100.0
    radius = length / change if change > 0 else math.inf
    return VerticalCurve(radius, length * change / 8.0, slope_in > slope_out)


def min_crest_curve_length(
    slope_in: float,
    slope_out: float,
    sight_distance: float,
    eye_height: float = 1.10,
    object_height: float = 0.15,
) -> float:
    change = abs(slope_in - slope_out)
    denom = 200.0 * (math.sqrt(eye_height) + math.sqrt(object_height))
    return change * sight_distance ** 2 / (denom * denom)


def min_sag_curve_length(
    slope_in: float,
    slope_out: float,
    sight_distance: float,
    headlight_height: float = 0.60,
    headlight_angle: float = 1.0,
) -> float:
    change = abs(slope_in - slope_out)
    spread = math.tan(math.radians(headlight_angle))
    return change * sight_distance ** 2 / (200.0 * (headlight_height + sight_distance * spread))


def vertical_curve_elevation(
    start_z: float, slope_in: float, length: float, position: float, slope_out: float
) -> float:
    """Elevation ``position`` metres into a parabolic vertical curve."""
    if length <= 0:
        raise ValueError("curve length must be > 0")
    i1 = slope_in / 100.0
    i2 = slope_out / 100.0
    return start_z + i1 * position + 0.5 * (i2 - i1) / length * position * position


__all__ = [
    "GRAVITY",
    "ClothoidPoint",
    "VerticalCurve",
    "clothoid_parameter",
    "clothoid_point",
    "curve_widening",
    "min_clothoid_length",
    "min_crest_curve_length",
    "min_curve_radius",
    "min_sag_curve_length",
    "overtaking_distance",
    "recommended_superelevation",
    "slope_per_mille",
    "slope_percent",
    "stopping_distance",
    "vertical_curve",
    "vertical_curve_elevation",
]
