"""National grids defined by published approximation polynomials.

Both grids map directly between WGS84 and grid coordinates with metre-level
absolute accuracy. The grid -> WGS84 polynomial is treated as the reference
direction; WGS84 -> grid starts from the published forward polynomial and is
refined by Newton iteration so that the two directions agree exactly.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Tuple

logger = logging.getLogger(__name__)

FORWARD_TOLERANCE_M = 1e-7
MAX_ITERATIONS = 50
_JACOBIAN_STEP_M = 1.0

Pair = Tuple[float, float]


def _refine(inverse: Callable[[float, float], Pair], lon: float, lat: float, guess: Pair) -> Pair:
    x, y = guess
    for _ in range(MAX_ITERATIONS):
        glon, glat = inverse(x, y)
        r_lon, r_lat = glon - lon, glat - lat
        h = _JACOBIAN_STEP_M
        lon_xp, lat_xp = inverse(x + h, y)
        lon_xm, lat_xm = inverse(x - h, y)
        lon_yp, lat_yp = inverse(x, y + h)
        lon_ym, lat_ym = inverse(x, y - h)
        j11 = (lon_xp - lon_xm) / (2 * h)
        j12 = (lon_yp - lon_ym) / (2 * h)
        j21 = (lat_xp - lat_xm) / (2 * h)
        j22 = (lat_yp - lat_ym) / (2 * h)
        det = j11 * j22 - j12 * j21
        if det == 0.0:
            break
        dx = (j22 * r_lon - j12 * r_lat) / det
        dy = (j11 * r_lat - j21 * r_lon) / det
        x -= dx
        y -= dy
        if abs(dx) < FORWARD_TOLERANCE_M and abs(dy) < FORWARD_TOLERANCE_M:
            return x, y
    logger.warning("grid forward refinement did not converge (lon=%.9f lat=%.9f)", lon, lat)
    return x, y


@dataclass(frozen=True)
class SwissGrid:
    """swisstopo approximate formulas. LV03 has zero offsets, LV95 adds 2 000 000 / 1 000 000."""

    offset_e: float = 0.0
    offset_n: float = 0.0

    def inverse(self, x: float, y: float) -> Pair:
        ya = (x - self.offset_e - 600000.0) / 1e6
        xa = (y - self.offset_n - 200000.0) / 1e6
        lam = (
            2.6779094
            + 4.728982 * ya
            + 0.791484 * ya * xa
            + 0.1306 * ya * xa ** 2
            - 0.0436 * ya ** 3
        )
        phi = (
            16.9023892
            + 3.238272 * xa
            - 0.270978 * ya ** 2
            - 0.002528 * xa ** 2
            - 0.0447 * ya ** 2 * xa
            - 0.0140 * xa ** 3
        )
        return lam * 100.0 / 36.0, phi * 100.0 / 36.0

    def _published_forward(self, lon: float, lat: float) -> Pair:
        phi = (lat * 3600.0 - 169028.66) / 10000.0
        lam = (lon * 3600.0 - 26782.5) / 10000.0
        e = (
            600072.37
            + 211455.93 * lam
            - 10938.51 * lam * phi
            - 0.36 * lam * phi ** 2
            - 44.54 * lam ** 3
        )
        n = (
            200147.07
            + 308807.95 * phi
            + 3745.25 * lam ** 2
            + 76.63 * phi ** 2
            - 194.56 * lam ** 2 * phi
            + 119.79 * phi ** 3
        )
        return e + self.offset_e, n + self.offset_n

    def forward(self, lon: float, lat: float) -> Pair:
        return _refine(self.inverse, lon, lat, self._published_forward(lon, lat))


# Kadaster RD -> Amersfoort (Bessel) coefficients, keyed by (power of dX, power of dY),
# values in arc-seconds.
_RD_K: Dict[Tuple[int, int], float] = {
    (0, 1): 3235.65389,
    (2, 0): -32.58297,
    (0, 2): -0.24750,
    (2, 1): -0.84978,
    (0, 3): -0.06550,
    (2, 2): -0.01709,
    (1, 0): -0.00738,
    (4, 0): 0.00530,
    (2, 3): -0.00039,
    (4, 1): 0.00033,
    (1, 1): -0.00012,
}
_RD_L: Dict[Tuple[int, int], float] = {
    (1, 0): 5260.52916,
    (1, 1): 105.94684,
    (1, 2): 2.45656,
    (3, 0): -0.81885,
    (1, 3): 0.05594,
    (3, 1): -0.05607,
    (0, 1): 0.01199,
    (3, 2): -0.00256,
    (1, 4): 0.00128,
    (0, 2): 0.00022,
    (2, 0): -0.00022,
    (5, 0): 0.00026,
}
_RD_X0, _RD_Y0 = 155000.0, 463000.0
_BESSEL_LAT0, _BESSEL_LON0 = 52.15517440, 5.38720621


@dataclass(frozen=True)
class DutchGrid:
    """Rijksdriehoeksmeting (RD New) through Amersfoort/Bessel, then to WGS84."""

    def to_bessel(self, x: float, y: float) -> Pair:
        dx = (x - _RD_X0) * 1e-5
        dy = (y - _RD_Y0) * 1e-5
        dphi = sum(c * dx ** p * dy ** q for (p, q), c in _RD_K.items())
        dlam = sum(c * dx ** p * dy ** q for (p, q), c in _RD_L.items())
        return _BESSEL_LON0 + dlam / 3600.0, _BESSEL_LAT0 + dphi / 3600.0

    def inverse(self, x: float, y: float) -> Pair:
        lon_b, lat_b = self.to_bessel(x, y)
        dphi = lat_b - 52.0
        dlam = lon_b - 5.0
        lat = lat_b + (96.862 + 11.714 * dphi + 0.125 * dlam) / 100000.0
        lon = lon_b + (37.902 - 0.329 * dphi + 14.667 * dlam) / 100000.0
        return lon, lat

    def _initial_guess(self, lon: float, lat: float) -> Pair:
        # Linear scale at the origin is close enough for Newton to take over.
        x = _RD_X0 + (lon - 5.38764) * 3600.0 / 5260.52916 * 1e5
        y = _RD_Y0 + (lat - 52.15616) * 3600.0 / 3235.65389 * 1e5
        return x, y

    def forward(self, lon: float, lat: float) -> Pair:
        return _refine(self.inverse, lon, lat, self._initial_guess(lon, lat))


__all__ = ["SwissGrid", "DutchGrid", "FORWARD_TOLERANCE_M"]
