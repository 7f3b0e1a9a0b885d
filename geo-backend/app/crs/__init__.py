"""Coordinate conversion core.

Modules:
 - catalog: projection definitions, lookup and search
 - engine: projected <-> WGS84 geodetic conversion
 - detector: guess a projection from drawing coordinates
 - lambert, mercator, grids, datum, ellipsoids: the underlying maths
 - geodesic: ellipsoidal distance
"""

__all__ = [
    "catalog",
    "detector",
    "engine",
    "geodesic",
]
