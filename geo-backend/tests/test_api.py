import dataclasses
import math

import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.context import GeoSession
from app.crs.catalog import Catalog, builtin_catalog
from app.main import create_app

client = TestClient(create_app(Settings()))


def test_health():
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "projections": 40}
    assert resp.headers.get("X-Request-ID")


def test_incoming_request_id_is_echoed():
    resp = client.get("/health", headers={"X-Request-ID": "abc123"})
    assert resp.headers["X-Request-ID"] == "abc123"


def test_list_and_search_projections():
    resp = client.get("/crs/projections")
    assert resp.status_code == 200
    data = resp.json()
    assert len(data) == 40
    keys = [(d["country"], d["name"]) for d in data]
    assert keys == sorted(keys)

    swiss = client.get("/crs/projections", params={"q": "suisse"}).json()
    assert sorted(d["code"] for d in swiss) == ["CH1903+.LV95", "CH1903.LV03"]


def test_projections_by_country():
    data = client.get("/crs/projections/by-country").json()
    assert list(data) == sorted(data)
    assert [d["code"] for d in data["Belgique"]] == ["BD72.Belgian-Lambert-72", "ETRS89.Belgian-Lambert-2008"]


def test_get_projection_by_code_and_epsg():
    resp = client.get("/crs/projections/rgf93.lamb93")
    assert resp.status_code == 200
    body = resp.json()
    assert body["code"] == "RGF93.LAMB93"
    assert body["epsg"] == 2154
    assert body["display_name"] == "RGF93 / Lambert 93 [RGF93.LAMB93]"

    assert client.get("/crs/epsg/28992").json()["code"] == "Amersfoort.RD-New"
    assert client.get("/crs/projections/NOPE").status_code == 404
    assert client.get("/crs/epsg/1").status_code == 404


def test_to_geodetic_and_back():
    resp = client.post("/crs/to-geodetic", json={"code": "RGF93.LAMB93", "points": [[700000, 6600000, 12.5]]})
    assert resp.status_code == 200
    body = resp.json()
    assert body["code"] == "RGF93.LAMB93"
    assert body["accuracy"] == "exact"
    lon, lat, alt = body["points"][0]
    assert lon == pytest.approx(3.0, rel=0, abs=1e-9)
    assert lat == pytest.approx(46.5, rel=0, abs=1e-9)
    assert alt == 12.5

    back = client.post("/crs/to-projected", json={"code": "RGF93.LAMB93", "points": [[lon, lat]]}).json()
    assert back["points"][0][0] == pytest.approx(700000.0, rel=0, abs=1e-6)
    assert back["points"][0][1] == pytest.approx(6600000.0, rel=0, abs=1e-6)


def test_grid_accuracy_is_reported():
    body = client.post("/crs/to-geodetic", json={"code": "CH1903+.LV95", "points": [[2600000, 1200000]]}).json()
    assert body["accuracy"] == "grid"


def test_conversion_errors():
    assert client.post("/crs/to-geodetic", json={"code": "NOPE", "points": [[1, 2]]}).status_code == 404
    assert client.post("/crs/to-geodetic", json={"code": "LL84", "points": []}).status_code == 422
    assert client.post("/crs/to-geodetic", json={"code": "LL84", "points": [[1]]}).status_code == 422
    assert client.post("/crs/to-projected", json={"code": "", "points": [[1, 2]]}).status_code == 422


def test_point_limit():
    small = TestClient(create_app(Settings(max_points=2)))
    resp = small.post("/crs/to-geodetic", json={"code": "LL84", "points": [[1, 2], [3, 4], [5, 6]]})
    assert resp.status_code == 413
    assert small.post("/crs/detect", json={"points": [[1, 2], [3, 4], [5, 6]]}).status_code == 413


def test_detect_endpoint():
    resp = client.post("/crs/detect", json={"points": [[0, 0], [652000, 6862000]]})
    assert resp.status_code == 200
    body = resp.json()
    assert body["code"] == "RGF93.LAMB93"
    assert body["projection"]["epsg"] == 2154
    assert body["candidates"][0]["code"] == "RGF93.LAMB93"
    assert body["diagnostics"]["points_ignored"] == 1


def test_detect_nothing():
    body = client.post("/crs/detect", json={"points": [[0, 0]]}).json()
    assert body["code"] is None
    assert body["projection"] is None
    assert body["candidates"] == []


def test_distance_endpoint():
    resp = client.post("/crs/distance", json={"start": [0, 0], "end": [1, 0]})
    assert resp.status_code == 200
    body = resp.json()
    assert body["converged"] is True
    assert body["distance_m"] == pytest.approx(111319.4908, rel=0, abs=1e-3)
    assert client.post("/crs/distance", json={"start": [0, 95], "end": [1, 0]}).status_code == 422


def test_stations_from_length():
    resp = client.post("/stations", json={"length": 100, "interdistance": 10})
    assert resp.status_code == 200
    body = resp.json()
    assert body["stations"] == pytest.approx([float(v) for v in range(0, 101, 10)])
    assert body["points"] == []

    rev = client.post("/stations", json={"length": 100, "start": 100, "end": 0, "interdistance": 10}).json()
    assert rev["stations"][0] == 100.0
    assert rev["stations"][-1] == 0.0


def test_stations_from_polyline():
    payload = {"polyline": {"vertices": [[0, 0, 1], [2, 0]]}, "include_vertices": True}
    body = client.post("/stations", json=payload).json()
    assert body["stations"] == pytest.approx([0.0, math.pi / 2.0, math.pi])
    mid = body["points"][1]
    assert mid["x"] == pytest.approx(1.0)
    assert mid["y"] == pytest.approx(-1.0)


def test_stations_need_a_curve():
    assert client.post("/stations", json={"interdistance": 5}).status_code == 422
    assert client.post("/stations", json={"polyline": {"vertices": [[0, 0]]}}).status_code == 422


def test_project_endpoint():
    payload = {"polyline": {"vertices": [[0, 0], [10, 0]]}, "point": [5, 2]}
    body = client.post("/stations/project", json=payload).json()
    assert body["point"] == pytest.approx([5.0, 0.0])
    assert body["station"] == pytest.approx(5.0)
    assert body["offset"] == pytest.approx(2.0)
    assert body["segment_index"] == 0


def test_dimensions_endpoint():
    payload = {
        "reference": {"vertices": [[0, 0], [100, 0]]},
        "target": {"vertices": [[0, 5], [100, 5]]},
        "start_point": [0, 0],
        "end_point": [100, 0],
        "interdistance": 50,
        "target_layer": "COTES",
    }
    body = client.post("/stations/dimensions", json=payload).json()
    dims = body["dimensions"]
    assert [d["station"] for d in dims] == pytest.approx([0.0, 50.0, 100.0])
    assert all(d["width"] == pytest.approx(5.0) for d in dims)
    assert dims[0]["layer"] == "COTES"
    payload["interdistance"] = -1
    assert client.post("/stations/dimensions", json=payload).status_code == 422


def test_snap_endpoint():
    payload = {"polyline": {"vertices": [[0, 0], [10, 0]]}, "cursor": [0.2, 0.1], "tolerance": 1.0}
    body = client.post("/snap", json=payload).json()
    assert [s["mode"] for s in body["snaps"]] == ["ENDPOINT", "VERTEX", "NEAREST"]
    assert body["snaps"][0]["priority"] == 10

    payload["modes"] = ["NEAREST"]
    body = client.post("/snap", json=payload).json()
    assert [s["mode"] for s in body["snaps"]] == ["NEAREST"]

    payload["modes"] = ["SIDEWAYS"]
    assert client.post("/snap", json=payload).status_code == 422


def test_closed_session_is_unavailable():
    session = GeoSession(Settings())
    c = TestClient(create_app(session=session))
    session.close()
    assert c.get("/crs/projections").status_code == 503
    assert c.get("/health").json()["projections"] == 0


def test_lifespan_closes_session(monkeypatch):
    monkeypatch.setenv("CACHE_DISABLE", "1")
    session = GeoSession(Settings())
    with TestClient(create_app(session=session)) as c:
        assert c.get("/health").status_code == 200
        assert c.post("/stations", json={"length": 10, "interdistance": 5}).json()["stations"] == [0.0, 5.0, 10.0]
    assert not session.is_open


def _post_raw(c, path, body):
    return c.post(path, content=body, headers={"Content-Type": "application/json"})


def test_stations_reject_non_finite_input():
    for body in (
        '{"length": 10, "end": Infinity, "interdistance": 1}',
        '{"length": 10, "start": -Infinity}',
        '{"length": NaN, "interdistance": 1}',
        '{"length": Infinity}',
        '{"length": 10, "interdistance": Infinity}',
    ):
        assert _post_raw(client, "/stations", body).status_code == 422, body


def test_stations_reject_interval_below_tolerance():
    resp = client.post("/stations", json={"length": 1000000, "interdistance": 1e-9})
    assert resp.status_code == 422
    assert client.post("/stations", json={"length": 10, "interdistance": 0}).json()["stations"] == [0.0, 10.0]


def test_station_count_is_limited():
    small = TestClient(create_app(Settings(max_points=5)))
    resp = small.post("/stations", json={"length": 100, "interdistance": 10})
    assert resp.status_code == 413
    assert "Too many stations" in resp.json()["detail"]
    assert small.post("/stations", json={"length": 100, "interdistance": 25}).status_code == 200
    big = {"vertices": [[float(i), 0.0] for i in range(6)]}
    assert small.post("/stations", json={"polyline": big}).status_code == 413
    # the default limit still stops huge ranges before any work is done
    assert client.post("/stations", json={"length": 1e6, "interdistance": 1e-3}).status_code == 413


def test_dimension_count_is_limited():
    small = TestClient(create_app(Settings(max_points=5)))
    payload = {
        "reference": {"vertices": [[0, 0], [100, 0]]},
        "target": {"vertices": [[0, 5], [100, 5]]},
        "start_point": [0, 0],
        "end_point": [100, 0],
        "interdistance": 10,
    }
    assert small.post("/stations/dimensions", json=payload).status_code == 413
    payload["interdistance"] = 50
    assert len(small.post("/stations/dimensions", json=payload).json()["dimensions"]) == 3
    assert _post_raw(small, "/stations/dimensions", '{"reference": {"vertices": [[0, 0], [1, 0]]}, '
                     '"target": {"vertices": [[0, 1], [1, 1]]}, "start_point": [0, 0], "end_point": [1, 0], '
                     '"dimension_offset": NaN}').status_code == 422


def test_app_can_start_twice(monkeypatch):
    monkeypatch.setenv("CACHE_DISABLE", "1")
    session = GeoSession(Settings())
    app = create_app(session=session)
    for _ in range(2):
        with TestClient(app) as c:
            assert c.get("/crs/projections").status_code == 200
            assert c.get("/health").json()["projections"] == 40
        assert not session.is_open


def test_snap_rejects_modes_without_polyline_support():
    payload = {"polyline": {"vertices": [[0, 0], [10, 0]]}, "cursor": [0.2, 0.1], "tolerance": 1.0}
    for modes in (["INTERSECTION"], ["PERPENDICULAR"], ["NEAREST", "PARALLEL"]):
        payload["modes"] = modes
        resp = client.post("/snap", json=payload)
        assert resp.status_code == 422
        assert "not available" in resp.json()["detail"]
    payload["modes"] = ["ALL"]
    body = client.post("/snap", json=payload).json()
    assert [s["mode"] for s in body["snaps"]] == ["ENDPOINT", "VERTEX", "NEAREST"]


class _RecordingCache:
    def __init__(self):
        self.keys = []

    async def get_json(self, key):
        self.keys.append(key)
        return None

    async def set_json(self, key, value, ttl=None):
        return True

    async def close(self):
        return None


def test_detect_cache_key_depends_on_catalog_content():
    builtin = builtin_catalog()
    moved = [dataclasses.replace(d, max_x=d.max_x + 1.0) if i == 0 else d for i, d in enumerate(builtin)]
    keys = []
    for catalog in (builtin, Catalog(moved), builtin_catalog()):
        app = create_app(session=GeoSession(Settings(), catalog=catalog))
        app.state.cache = _RecordingCache()
        assert TestClient(app).post("/crs/detect", json={"points": [[652000, 6862000]]}).status_code == 200
        keys.extend(app.state.cache.keys)
    assert len(keys) == 3
    assert keys[0] != keys[1]
    assert keys[0] == keys[2]
