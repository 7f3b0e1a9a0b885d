from __future__ import annotations

import math

import pytest

from app.crs.datum import (
    TO_WGS84,
    from_wgs84,
    geocentric_to_geodetic,
    geodetic_to_geocentric,
    helmert_forward,
    helmert_inverse,
    is_wgs84_equivalent,
    to_wgs84,
)
from app.crs.ellipsoids import ELLIPSOIDS, get_ellipsoid
from app.crs.lambert import isometric_latitude, latitude_from_isometric


def test_ellipsoid_derived_values():
    grs80 = get_ellipsoid("grs80")
    assert grs80.b == pytest.approx(6356752.314140, rel=0, abs=1e-5)
    assert grs80.e2 == pytest.approx(0.00669438002290, rel=0, abs=1e-14)
    clarke = get_ellipsoid("CLARKE1880IGN")
    assert clarke.b == pytest.approx(6356515.0, rel=0, abs=1e-6)
    assert set(ELLIPSOIDS) >= {"GRS80", "WGS84", "BESSEL1841", "AIRY1830", "INTL1924"}


def test_unknown_ellipsoid():
    with pytest.raises(KeyError):
        get_ellipsoid("MARS2000")


def test_wgs84_equivalent_datums():
    assert is_wgs84_equivalent("RGF93")
    assert is_wgs84_equivalent("etrs89")
    assert not is_wgs84_equivalent("NTF")
    assert not is_wgs84_equivalent("OSGB36")


def test_equivalent_datum_is_identity():
    grs80 = get_ellipsoid("GRS80")
    assert to_wgs84(2.35, 48.85, grs80, "RGF93") == (2.35, 48.85)
    assert from_wgs84(2.35, 48.85, grs80, "RGF93") == (2.35, 48.85)


def test_geocentric_round_trip():
    wgs = get_ellipsoid("WGS84")
    for lon, lat, h in ((0.0, 0.0, 0.0), (2.35, 48.85, 120.0), (-70.5, -33.4, -15.0), (145.0, 89.0, 10.0)):
        x, y, z = geodetic_to_geocentric(lon, lat, h, wgs)
        lon2, lat2, h2 = geocentric_to_geodetic(x, y, z, wgs)
        assert lon2 == pytest.approx(lon, rel=0, abs=1e-11)
        assert lat2 == pytest.approx(lat, rel=0, abs=1e-11)
        assert h2 == pytest.approx(h, rel=0, abs=1e-6)


def test_geocentric_equator():
    wgs = get_ellipsoid("WGS84")
    x, y, z = geodetic_to_geocentric(0.0, 0.0, 0.0, wgs)
    assert x == pytest.approx(6378137.0, rel=0, abs=1e-6)
    assert y == pytest.approx(0.0, rel=0, abs=1e-6)
    assert z == pytest.approx(0.0, rel=0, abs=1e-6)


def test_helmert_inverse_undoes_forward():
    xyz = (4201000.0, 172000.0, 4780000.0)
    for datum, params in TO_WGS84.items():
        if params is None:
            continue
        back = helmert_inverse(helmert_forward(xyz, params), params)
        for a, b in zip(back, xyz):
            assert a == pytest.approx(b, rel=0, abs=1e-6), datum


def test_ntf_shift_moves_points_by_tens_of_metres():
    clarke = get_ellipsoid("CLARKE1880IGN")
    lon, lat = to_wgs84(2.35, 48.85, clarke, "NTF")
    shift_m = math.hypot((lon - 2.35) * 111320.0 * math.cos(math.radians(48.85)), (lat - 48.85) * 110540.0)
    assert 10.0 < shift_m < 300.0


def test_from_wgs84_inverts_to_wgs84():
    for datum, ell_key in (("NTF", "CLARKE1880IGN"), ("BD72", "INTL1924"), ("OSGB36", "AIRY1830"), ("LUREF", "INTL1924")):
        ell = get_ellipsoid(ell_key)
        lon, lat = to_wgs84(4.5, 50.5, ell, datum)
        back = from_wgs84(lon, lat, ell, datum)
        assert back[0] == pytest.approx(4.5, rel=0, abs=1e-10), datum
        assert back[1] == pytest.approx(50.5, rel=0, abs=1e-10), datum


def test_isometric_latitude_inverse():
    e = get_ellipsoid("GRS80").e
    for deg in (-80.0, -12.5, 0.0, 46.5, 89.0):
        phi = math.radians(deg)
        assert latitude_from_isometric(isometric_latitude(phi, e), e) == pytest.approx(phi, rel=0, abs=1e-12)
    assert latitude_from_isometric(math.inf, e) == pytest.approx(math.pi / 2.0)
