"""Forward/inverse projection engine.

Dispatches on ``ProjectionDefinition.family`` and returns WGS84 longitude /
latitude in decimal degrees. Altitude is carried through untouched.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from typing import Iterable, List, NamedTuple, Tuple

from .catalog import ProjectionDefinition
from .datum import from_wgs84, to_wgs84
from .ellipsoids import get_ellipsoid
from .grids import DutchGrid, SwissGrid
from .lambert import LambertConic
from .mercator import TransverseMercator

logger = logging.getLogger(__name__)

METERS_PER_DEGREE_LON_AT_EQUATOR = 111320.0
METERS_PER_DEGREE_LAT = 110540.0


class GeodeticPoint(NamedTuple):
    longitude: float
    latitude: float
    altitude: float = 0.0


class ProjectedPoint(NamedTuple):
    x: float
    y: float
    z: float = 0.0


@dataclass(frozen=True)
class PlacedPoint:
    """A projected point together with the definition it is expressed in."""

    point: ProjectedPoint
    definition: ProjectionDefinition

    def to_geodetic(self) -> GeodeticPoint:
        return to_geodetic(self.point, self.definition)


class Accuracy(str, Enum):
    EXACT = "exact"
    GRID = "grid"
    APPROXIMATE = "approximate"


@dataclass
class Conversion:
    code: str
    accuracy: Accuracy
    points: List[Tuple[float, float, float]] = field(default_factory=list)


def accuracy_of(definition: ProjectionDefinition) -> Accuracy:
    if definition.is_geographic or definition.family in ("lcc", "tm"):
        return Accuracy.EXACT
    if definition.family in ("swiss", "dutch"):
        return Accuracy.GRID
    return Accuracy.APPROXIMATE


@lru_cache(maxsize=128)
def _projection(definition: ProjectionDefinition):
    ell = get_ellipsoid(definition.ellipsoid)
    if definition.family == "lcc":
        return LambertConic.build(
            ell,
            definition.central_meridian,
            definition.latitude_origin,
            definition.standard_parallels,
            scale_factor=definition.scale_factor,
            false_easting=definition.false_easting,
            false_northing=definition.false_northing,
        )
    if definition.family == "tm":
        return TransverseMercator.build(
            ell,
            definition.central_meridian,
            latitude_origin=definition.latitude_origin,
            scale_factor=definition.scale_factor,
            false_easting=definition.false_easting,
            false_northing=definition.false_northing,
        )
    if definition.family == "swiss":
        if definition.false_easting >= 2000000.0:
            return SwissGrid(offset_e=2000000.0, offset_n=1000000.0)
        return SwissGrid()
    if definition.family == "dutch":
        return DutchGrid()
    return None


def _anchor(definition: ProjectionDefinition) -> Tuple[float, float, float, float, float]:
    """Bounding-box centre in native units, its estimated longitude/latitude and the cosine of that latitude."""
    cx = (definition.min_x + definition.max_x) / 2.0
    cy = (definition.min_y + definition.max_y) / 2.0
    lat_c = definition.latitude_origin + (cy - definition.false_northing) / METERS_PER_DEGREE_LAT
    lat_c = max(-89.0, min(89.0, lat_c))
    cos_c = math.cos(math.radians(lat_c))
    lon_c = definition.central_meridian + (cx - definition.false_easting) / (METERS_PER_DEGREE_LON_AT_EQUATOR * cos_c)
    return cx, cy, lon_c, lat_c, cos_c


def _approximate_inverse(x: float, y: float, definition: ProjectionDefinition) -> Tuple[float, float]:
    cx, cy, lon_c, lat_c, cos_c = _anchor(definition)
    lon = lon_c + (x - cx) / (METERS_PER_DEGREE_LON_AT_EQUATOR * cos_c)
    lat = lat_c + (y - cy) / METERS_PER_DEGREE_LAT
    return max(-180.0, min(180.0, lon)), max(-90.0, min(90.0, lat))


def _approximate_forward(lon: float, lat: float, definition: ProjectionDefinition) -> Tuple[float, float]:
    cx, cy, lon_c, lat_c, cos_c = _anchor(definition)
    x = cx + (lon - lon_c) * METERS_PER_DEGREE_LON_AT_EQUATOR * cos_c
    y = cy + (lat - lat_c) * METERS_PER_DEGREE_LAT
    return x, y


def _warn_degraded(definition: ProjectionDefinition) -> None:
    logger.warning(
        "no exact formula for family %r; using approximate conversion (degraded precision)",
        definition.family,
        extra={"projection": definition.code, "accuracy": Accuracy.APPROXIMATE.value},
    )


def to_geodetic(projected: ProjectedPoint, definition: ProjectionDefinition) -> GeodeticPoint:
    x, y = float(projected[0]), float(projected[1])
    z = float(projected[2]) if len(projected) > 2 else 0.0
    if definition.is_geographic:
        return GeodeticPoint(x, y, z)
    proj = _projection(definition)
    if proj is None:
        _warn_degraded(definition)
        lon, lat = _approximate_inverse(x, y, definition)
        return GeodeticPoint(lon, lat, z)
    lon, lat = proj.inverse(x, y)
    if definition.family in ("lcc", "tm"):
        lon, lat = to_wgs84(lon, lat, get_ellipsoid(definition.ellipsoid), definition.datum)
    return GeodeticPoint(lon, lat, z)


def to_projected(geodetic: GeodeticPoint, definition: ProjectionDefinition) -> ProjectedPoint:
    lon, lat = float(geodetic[0]), float(geodetic[1])
    alt = float(geodetic[2]) if len(geodetic) > 2 else 0.0
    if definition.is_geographic:
        return ProjectedPoint(lon, lat, alt)
    proj = _projection(definition)
    if proj is None:
        _warn_degraded(definition)
        x, y = _approximate_forward(lon, lat, definition)
        return ProjectedPoint(x, y, alt)
    if definition.family in ("lcc", "tm"):
        lon, lat = from_wgs84(lon, lat, get_ellipsoid(definition.ellipsoid), definition.datum)
    x, y = proj.forward(lon, lat)
    return ProjectedPoint(x, y, alt)


def convert_to_geodetic(points: Iterable[Tuple[float, ...]], definition: ProjectionDefinition) -> Conversion:
    out = Conversion(code=definition.code, accuracy=accuracy_of(definition))
    for p in points:
        g = to_geodetic(ProjectedPoint(*p), definition)
        out.points.append((g.longitude, g.latitude, g.altitude))
    return out


def convert_to_projected(points: Iterable[Tuple[float, ...]], definition: ProjectionDefinition) -> Conversion:
    out = Conversion(code=definition.code, accuracy=accuracy_of(definition))
    for p in points:
        q = to_projected(GeodeticPoint(*p), definition)
        out.points.append((q.x, q.y, q.z))
    return out


__all__ = [
    "Accuracy",
    "Conversion",
    "GeodeticPoint",
    "PlacedPoint",
    "ProjectedPoint",
    "accuracy_of",
    "convert_to_geodetic",
    "convert_to_projected",
    "to_geodetic",
    "to_projected",
]
