"""Transverse Mercator using the Krüger series (6th order in the third flattening).

Accurate to well below a millimetre within several thousand kilometres of
the central meridian, which covers UTM, MTM and the national grids built on
the same projection.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Tuple

from .ellipsoids import Ellipsoid

logger = logging.getLogger(__name__)


def _alpha(n: float) -> Tuple[float, ...]:
    n2, n3, n4, n5, n6 = n ** 2, n ** 3, n ** 4, n ** 5, n ** 6
    return (
        n / 2 - 2 * n2 / 3 + 5 * n3 / 16 + 41 * n4 / 180 - 127 * n5 / 288 + 7891 * n6 / 37800,
        13 * n2 / 48 - 3 * n3 / 5 + 557 * n4 / 1440 + 281 * n5 / 630 - 1983433 * n6 / 1935360,
        61 * n3 / 240 - 103 * n4 / 140 + 15061 * n5 / 26880 + 167603 * n6 / 181440,
        49561 * n4 / 161280 - 179 * n5 / 168 + 6601661 * n6 / 7257600,
        34729 * n5 / 80640 - 3418889 * n6 / 1995840,
        212378941 * n6 / 319334400,
    )


def _beta(n: float) -> Tuple[float, ...]:
    n2, n3, n4, n5, n6 = n ** 2, n ** 3, n ** 4, n ** 5, n ** 6
    return (
        n / 2 - 2 * n2 / 3 + 37 * n3 / 96 - n4 / 360 - 81 * n5 / 512 + 96199 * n6 / 604800,
        n2 / 48 + n3 / 15 - 437 * n4 / 1440 + 46 * n5 / 105 - 1118711 * n6 / 3870720,
        17 * n3 / 480 - 37 * n4 / 840 - 209 * n5 / 4480 + 5569 * n6 / 90720,
        4397 * n4 / 161280 - 11 * n5 / 504 - 830251 * n6 / 7257600,
        4583 * n5 / 161280 - 108847 * n6 / 3991680,
        20648693 * n6 / 638668800,
    )


def _conformal_tau(tau: float, e: float) -> float:
    sigma = math.sinh(e * math.atanh(e * tau / math.sqrt(1.0 + tau * tau)))
    return tau * math.sqrt(1.0 + sigma * sigma) - sigma * math.sqrt(1.0 + tau * tau)


def _tau_from_conformal(tau_p: float, e: float) -> float:
    e2 = e * e
    tau = tau_p
    for _ in range(20):
        tau_i = _conformal_tau(tau, e)
        delta = (
            (tau_p - tau_i)
            / math.sqrt(1.0 + tau_i * tau_i)
            * (1.0 + (1.0 - e2) * tau * tau)
            / ((1.0 - e2) * math.sqrt(1.0 + tau * tau))
        )
        tau += delta
        if abs(delta) < 1e-14 * max(1.0, abs(tau)):
            return tau
    logger.warning("conformal latitude iteration did not converge (tau'=%.12f)", tau_p)
    return tau


@dataclass(frozen=True)
class TransverseMercator:
    ellipsoid: Ellipsoid
    lon0: float
    k0: float
    false_easting: float
    false_northing: float
    big_a: float
    xi0: float
    alpha: Tuple[float, ...]
    beta: Tuple[float, ...]

    @classmethod
    def build(
        cls,
        ellipsoid: Ellipsoid,
        central_meridian: float,
        latitude_origin: float = 0.0,
        scale_factor: float = 0.9996,
        false_easting: float = 500000.0,
        false_northing: float = 0.0,
    ) -> "TransverseMercator":
        n = ellipsoid.n
        big_a = ellipsoid.a / (1.0 + n) * (1.0 + n ** 2 / 4 + n ** 4 / 64 + n ** 6 / 256)
        alpha = _alpha(n)
        chi0 = math.atan(_conformal_tau(math.tan(math.radians(latitude_origin)), ellipsoid.e))
        xi0 = chi0 + sum(a * math.sin(2 * (j + 1) * chi0) for j, a in enumerate(alpha))
        return cls(
            ellipsoid=ellipsoid,
            lon0=math.radians(central_meridian),
            k0=scale_factor,
            false_easting=false_easting,
            false_northing=false_northing,
            big_a=big_a,
            xi0=xi0,
            alpha=alpha,
            beta=_beta(n),
        )

    def forward(self, lon: float, lat: float) -> Tuple[float, float]:
        lam = math.radians(lon) - self.lon0
        tau_p = _conformal_tau(math.tan(math.radians(lat)), self.ellipsoid.e)
        xi_p = math.atan2(tau_p, math.cos(lam))
        eta_p = math.asinh(math.sin(lam) / math.sqrt(tau_p * tau_p + math.cos(lam) ** 2))
        xi, eta = xi_p, eta_p
        for j, a in enumerate(self.alpha, start=1):
            xi += a * math.sin(2 * j * xi_p) * math.cosh(2 * j * eta_p)
            eta += a * math.cos(2 * j * xi_p) * math.sinh(2 * j * eta_p)
        scale = self.k0 * self.big_a
        return self.false_easting + scale * eta, self.false_northing + scale * (xi - self.xi0)

    def inverse(self, x: float, y: float) -> Tuple[float, float]:
        scale = self.k0 * self.big_a
        xi = (y - self.false_northing) / scale + self.xi0
        eta = (x - self.false_easting) / scale
        xi_p, eta_p = xi, eta
        for j, b in enumerate(self.beta, start=1):
            xi_p -= b * math.sin(2 * j * xi) * math.cosh(2 * j * eta)
            eta_p -= b * math.cos(2 * j * xi) * math.sinh(2 * j * eta)
        sinh_eta = math.sinh(eta_p)
        cos_xi = math.cos(xi_p)
        tau_p = math.sin(xi_p) / math.sqrt(sinh_eta * sinh_eta + cos_xi * cos_xi)
        lam = math.atan2(sinh_eta, cos_xi)
        tau = _tau_from_conformal(tau_p, self.ellipsoid.e)
        return math.degrees(lam + self.lon0), math.degrees(math.atan(tau))


def utm_zone_for(longitude: float) -> int:
    zone = int(math.floor((longitude + 180.0) / 6.0)) + 1
    return min(max(zone, 1), 60)


def utm_central_meridian(zone: int) -> float:
    return -183.0 + 6.0 * zone


__all__ = ["TransverseMercator", "utm_zone_for", "utm_central_meridian"]
