from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Sequence, Tuple

from .ellipsoids import Ellipsoid

logger = logging.getLogger(__name__)

LATITUDE_TOLERANCE = 1e-12
MAX_ITERATIONS = 50


def isometric_latitude(phi: float, e: float) -> float:
    s = e * math.sin(phi)
    return math.log(math.tan(math.pi / 4.0 + phi / 2.0)) - (e / 2.0) * math.log((1.0 + s) / (1.0 - s))


def latitude_from_isometric(iso: float, e: float) -> float:
    """Invert the isometric latitude by Newton iteration.

    Returns the best estimate and logs a warning when the iteration budget is
    exhausted before reaching the tolerance.
    """
    if math.isinf(iso):
        return math.copysign(math.pi / 2.0, iso)
    e2 = e * e
    phi = 2.0 * math.atan(math.exp(iso)) - math.pi / 2.0
    for _ in range(MAX_ITERATIONS):
        sin_phi = math.sin(phi)
        cos_phi = math.cos(phi)
        if cos_phi <= 0.0:
            return phi
        f = isometric_latitude(phi, e) - iso
        df = (1.0 - e2) / ((1.0 - e2 * sin_phi * sin_phi) * cos_phi)
        step = f / df
        phi -= step
        if abs(step) < LATITUDE_TOLERANCE:
            return phi
    logger.warning("latitude iteration did not converge (iso=%.12f)", iso)
    return phi


def _m(phi: float, e2: float) -> float:
    s = math.sin(phi)
    return math.cos(phi) / math.sqrt(1.0 - e2 * s * s)


def _t(phi: float, e: float) -> float:
    if phi >= math.pi / 2.0 - 1e-15:
        return 0.0
    return math.exp(-isometric_latitude(phi, e))


@dataclass(frozen=True)
class LambertConic:
    """Lambert conformal conic, one or two standard parallels."""

    ellipsoid: Ellipsoid
    lon0: float
    n: float
    af: float  # a * k0 * F
    rho0: float
    false_easting: float
    false_northing: float

    @classmethod
    def build(
        cls,
        ellipsoid: Ellipsoid,
        central_meridian: float,
        latitude_origin: float,
        standard_parallels: Sequence[float] = (),
        scale_factor: float = 1.0,
        false_easting: float = 0.0,
        false_northing: float = 0.0,
    ) -> "LambertConic":
        e = ellipsoid.e
        e2 = ellipsoid.e2
        phi0 = math.radians(latitude_origin)
        if len(standard_parallels) == 2:
            phi1, phi2 = (math.radians(p) for p in standard_parallels)
            m1, m2 = _m(phi1, e2), _m(phi2, e2)
            t1, t2 = _t(phi1, e), _t(phi2, e)
            if abs(phi1 - phi2) < 1e-12:
                n = math.sin(phi1)
            else:
                n = (math.log(m1) - math.log(m2)) / (math.log(t1) - math.log(t2))
            big_f = m1 / (n * t1 ** n)
            k0 = 1.0
        else:
            n = math.sin(phi0)
            big_f = _m(phi0, e2) / (n * _t(phi0, e) ** n)
            k0 = scale_factor
        af = ellipsoid.a * k0 * big_f
        rho0 = af * _t(phi0, e) ** n
        return cls(
            ellipsoid=ellipsoid,
            lon0=math.radians(central_meridian),
            n=n,
            af=af,
            rho0=rho0,
            false_easting=false_easting,
            false_northing=false_northing,
        )

    def forward(self, lon: float, lat: float) -> Tuple[float, float]:
        phi = math.radians(lat)
        rho = self.af * _t(phi, self.ellipsoid.e) ** self.n
        theta = self.n * (math.radians(lon) - self.lon0)
        x = self.false_easting + rho * math.sin(theta)
        y = self.false_northing + self.rho0 - rho * math.cos(theta)
        return x, y

    def inverse(self, x: float, y: float) -> Tuple[float, float]:
        dx = x - self.false_easting
        dy = self.rho0 - (y - self.false_northing)
        sign = 1.0 if self.n >= 0 else -1.0
        rho = sign * math.hypot(dx, dy)
        theta = math.atan2(sign * dx, sign * dy)
        lon = theta / self.n + self.lon0
        if rho == 0.0:
            phi = math.copysign(math.pi / 2.0, self.n)
        else:
            iso = -math.log(rho / self.af) / self.n
            phi = latitude_from_isometric(iso, self.ellipsoid.e)
        return math.degrees(lon), math.degrees(phi)


__all__ = ["LambertConic", "isometric_latitude", "latitude_from_isometric"]
