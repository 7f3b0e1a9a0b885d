from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class Ellipsoid:
    name: str
    a: float
    inv_f: float

    @property
    def f(self) -> float:
        return 1.0 / self.inv_f

    @property
    def b(self) -> float:
        return self.a * (1.0 - self.f)

    @property
    def e2(self) -> float:
        f = self.f
        return f * (2.0 - f)

    @property
    def e(self) -> float:
        return math.sqrt(self.e2)

    @property
    def n(self) -> float:
        """Third flattening."""
        f = self.f
        return f / (2.0 - f)


def _from_axes(name: str, a: float, b: float) -> Ellipsoid:
    return Ellipsoid(name=name, a=a, inv_f=a / (a - b))


ELLIPSOIDS: Dict[str, Ellipsoid] = {
    "GRS80": Ellipsoid("GRS80", 6378137.0, 298.257222101),
    "WGS84": Ellipsoid("WGS84", 6378137.0, 298.257223563),
    "CLARKE1880IGN": _from_axes("CLARKE1880IGN", 6378249.2, 6356515.0),
    "INTL1924": Ellipsoid("INTL1924", 6378388.0, 297.0),
    "AIRY1830": Ellipsoid("AIRY1830", 6377563.396, 299.3249646),
    "BESSEL1841": Ellipsoid("BESSEL1841", 6377397.155, 299.1528128),
}


def get_ellipsoid(key: str) -> Ellipsoid:
    try:
        return ELLIPSOIDS[key.upper()]
    except KeyError:
        raise KeyError(f"unknown ellipsoid '{key}'") from None


__all__ = ["Ellipsoid", "ELLIPSOIDS", "get_ellipsoid"]
