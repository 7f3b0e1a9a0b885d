"""Datum shifts to and from WGS84.

Seven-parameter Helmert transformations (position vector convention, as in
PROJ's ``+towgs84``): translations in metres, rotations in arc-seconds, scale
in ppm. Datums mapped to ``None`` are treated as coincident with WGS84 at the
precision of a drafting tool.
"""
from __future__ import annotations

import math
from typing import Dict, Optional, Tuple

from .ellipsoids import Ellipsoid, get_ellipsoid

Helmert = Tuple[float, float, float, float, float, float, float]

TO_WGS84: Dict[str, Optional[Helmert]] = {
    "WGS84": None,
    "RGF93": None,
    "ETRS89": None,
    "NAD83": None,
    "RDN2008": None,
    "RGAF09": None,
    "RGFG95": None,
    "RGR92": None,
    "RGM04": None,
    "NTF": (-168.0, -60.0, 320.0, 0.0, 0.0, 0.0, 0.0),
    "BD72": (-106.8686, 52.2978, -103.7239, 0.3366, -0.457, 1.8422, -1.2747),
    "OSGB36": (446.448, -125.157, 542.06, 0.15, 0.247, 0.842, -20.489),
    "LUREF": (-189.6806, 18.3463, -42.7695, -0.33746, -3.09264, 2.53861, 0.4598),
}

_ARCSEC = math.pi / (180.0 * 3600.0)
_WGS84 = get_ellipsoid("WGS84")


def is_wgs84_equivalent(datum: str) -> bool:
    return TO_WGS84.get(datum.upper()) is None


def geodetic_to_geocentric(lon: float, lat: float, h: float, ell: Ellipsoid) -> Tuple[float, float, float]:
    phi = math.radians(lat)
    lam = math.radians(lon)
    sin_phi = math.sin(phi)
    n = ell.a / math.sqrt(1.0 - ell.e2 * sin_phi * sin_phi)
    x = (n + h) * math.cos(phi) * math.cos(lam)
    y = (n + h) * math.cos(phi) * math.sin(lam)
    z = (n * (1.0 - ell.e2) + h) * sin_phi
    return x, y, z


def geocentric_to_geodetic(x: float, y: float, z: float, ell: Ellipsoid) -> Tuple[float, float, float]:
    p = math.hypot(x, y)
    lam = math.atan2(y, x)
    phi = math.atan2(z, p * (1.0 - ell.e2))
    h = 0.0
    for _ in range(10):
        sin_phi = math.sin(phi)
        n = ell.a / math.sqrt(1.0 - ell.e2 * sin_phi * sin_phi)
        h = p / math.cos(phi) - n
        nxt = math.atan2(z, p * (1.0 - ell.e2 * n / (n + h)))
        if abs(nxt - phi) < 1e-15:
            phi = nxt
            break
        phi = nxt
    sin_phi = math.sin(phi)
    n = ell.a / math.sqrt(1.0 - ell.e2 * sin_phi * sin_phi)
    h = p / math.cos(phi) - n
    return math.degrees(lam), math.degrees(phi), h


def _rotation(params: Helmert):
    rx, ry, rz = (params[3] * _ARCSEC, params[4] * _ARCSEC, params[5] * _ARCSEC)
    return (
        (1.0, -rz, ry),
        (rz, 1.0, -rx),
        (-ry, rx, 1.0),
    )


def _invert3(m):
    (a, b, c), (d, e, f), (g, h, i) = m
    det = a * (e * i - f * h) - b * (d * i - f * g) + c * (d * h - e * g)
    return (
        ((e * i - f * h) / det, (c * h - b * i) / det, (b * f - c * e) / det),
        ((f * g - d * i) / det, (a * i - c * g) / det, (c * d - a * f) / det),
        ((d * h - e * g) / det, (b * g - a * h) / det, (a * e - b * d) / det),
    )


def _apply(m, v):
    return tuple(m[r][0] * v[0] + m[r][1] * v[1] + m[r][2] * v[2] for r in range(3))


def helmert_forward(xyz: Tuple[float, float, float], params: Helmert) -> Tuple[float, float, float]:
    scale = 1.0 + params[6] * 1e-6
    rx = _apply(_rotation(params), xyz)
    return (
        params[0] + scale * rx[0],
        params[1] + scale * rx[1],
        params[2] + scale * rx[2],
    )


def helmert_inverse(xyz: Tuple[float, float, float], params: Helmert) -> Tuple[float, float, float]:
    scale = 1.0 + params[6] * 1e-6
    shifted = (
        (xyz[0] - params[0]) / scale,
        (xyz[1] - params[1]) / scale,
        (xyz[2] - params[2]) / scale,
    )
    return _apply(_invert3(_rotation(params)), shifted)


def to_wgs84(lon: float, lat: float, ell: Ellipsoid, datum: str) -> Tuple[float, float]:
    """Shift a point lying on the datum's ellipsoid surface to WGS84 longitude/latitude."""
    params = TO_WGS84.get(datum.upper())
    if params is None:
        return lon, lat
    xyz = geodetic_to_geocentric(lon, lat, 0.0, ell)
    out_lon, out_lat, _ = geocentric_to_geodetic(*helmert_forward(xyz, params), _WGS84)
    return out_lon, out_lat


def from_wgs84(lon: float, lat: float, ell: Ellipsoid, datum: str) -> Tuple[float, float]:
    """Inverse of :func:`to_wgs84`.

    The WGS84 height of the source surface point is unknown, so it is solved
    by fixed-point iteration until the source height is zero.
    """
    params = TO_WGS84.get(datum.upper())
    if params is None:
        return lon, lat
    h_wgs = 0.0
    src_lon, src_lat = lon, lat
    for _ in range(10):
        xyz = geodetic_to_geocentric(lon, lat, h_wgs, _WGS84)
        src_lon, src_lat, src_h = geocentric_to_geodetic(*helmert_inverse(xyz, params), ell)
        if abs(src_h) < 1e-7:
            break
        h_wgs -= src_h
    return src_lon, src_lat


__all__ = [
    "TO_WGS84",
    "is_wgs84_equivalent",
    "geodetic_to_geocentric",
    "geocentric_to_geodetic",
    "helmert_forward",
    "helmert_inverse",
    "to_wgs84",
    "from_wgs84",
]
