import math

import pytest

from geometry.polyline import Polyline
from geometry.stations import (
    BareCurve,
    StationLimitExceeded,
    build_stations,
    build_stations_for_length,
    dedupe_sorted,
    interval_station_count,
)


def test_regular_interval_includes_bounds():
    stations = build_stations_for_length(100.0, 0.0, 100.0, 10.0)
    assert stations == pytest.approx([float(v) for v in range(0, 101, 10)])
    assert stations[0] == 0.0
    assert stations[-1] == 100.0


def test_reversed_range_is_descending():
    stations = build_stations_for_length(100.0, 100.0, 0.0, 10.0)
    assert stations == pytest.approx([float(v) for v in range(100, -1, -10)])
    assert stations[0] == 100.0
    assert stations[-1] == 0.0


def test_no_interval_gives_bounds_only():
    assert build_stations_for_length(100.0, 20.0, 80.0) == [20.0, 80.0]


def test_interval_that_does_not_divide_range():
    stations = build_stations_for_length(100.0, 0.0, 25.0, 10.0)
    assert stations == pytest.approx([0.0, 10.0, 20.0, 25.0])


def test_interval_landing_near_end_is_merged():
    stations = build_stations_for_length(100.0, 0.0, 20.0000001, 10.0)
    assert stations == pytest.approx([0.0, 10.0, 20.0000001])
    assert stations[-1] == 20.0000001


def test_single_point_range():
    assert build_stations_for_length(100.0, 30.0, 30.0, 10.0) == [30.0]


def test_vertices_and_arc_midpoints_are_added():
    pl = Polyline([(0.0, 0.0), (10.0, 0.0, 1.0), (12.0, 0.0), (20.0, 0.0)])
    stations = build_stations(pl, 0.0, pl.length, 0.0, include_vertices=True)
    expected = [0.0, 10.0, 10.0 + math.pi / 2.0, 10.0 + math.pi, pl.length]
    assert stations == pytest.approx(expected)


def test_vertices_outside_range_are_skipped():
    pl = Polyline([(0.0, 0.0), (10.0, 0.0), (20.0, 0.0), (30.0, 0.0)])
    stations = build_stations(pl, 5.0, 25.0, 0.0, include_vertices=True)
    assert stations == pytest.approx([5.0, 10.0, 20.0, 25.0])


def test_vertices_ignored_unless_requested():
    pl = Polyline([(0.0, 0.0), (10.0, 0.0), (20.0, 0.0)])
    assert build_stations(pl, 0.0, 20.0) == [0.0, 20.0]


def test_bare_curve_has_no_features():
    curve = BareCurve(42)
    assert curve.length == 42.0
    assert curve.vertex_distances() == []
    assert curve.arc_midpoints() == []


def test_dedupe_sorted():
    assert dedupe_sorted([3.0, 1.0, 1.0000000001, 2.0]) == [1.0, 2.0, 3.0]


def test_station_set_invariants():
    pl = Polyline([(0.0, 0.0, 0.5), (10.0, 0.0), (10.0, 7.0, -0.3), (3.0, 9.0), (0.0, 20.0)])
    cases = [(0.0, pl.length, 2.5), (3.3, 17.1, 1.0), (17.1, 3.3, 4.0), (0.0, pl.length, 0.0)]
    for start, end, step in cases:
        stations = build_stations(pl, start, end, step, include_vertices=True)
        lo, hi = min(start, end), max(start, end)
        assert lo in stations and hi in stations
        assert all(lo <= s <= hi for s in stations)
        ordered = sorted(stations)
        assert all(b - a > 1e-6 for a, b in zip(ordered, ordered[1:]))
        if start > end:
            assert stations == sorted(stations, reverse=True)
        else:
            assert stations == ordered


def test_range_shorter_than_tolerance_collapses_to_start():
    assert build_stations_for_length(100.0, 5.0000004, 5.0, 1.0) == [5.0000004]


def test_non_finite_range_is_rejected():
    for start, end in [(0.0, math.inf), (-math.inf, 10.0), (math.nan, 10.0)]:
        with pytest.raises(ValueError):
            build_stations_for_length(10.0, start, end, 1.0)
    with pytest.raises(ValueError):
        build_stations_for_length(10.0, 0.0, 10.0, math.inf)


def test_interval_at_or_below_tolerance_is_rejected():
    for step in (1e-6, 1e-9):
        with pytest.raises(ValueError):
            build_stations_for_length(10.0, 0.0, 10.0, step)
    with pytest.raises(ValueError):
        build_stations_for_length(10.0, 0.0, 10.0, -1.0)


def test_station_count_is_capped_before_building():
    with pytest.raises(StationLimitExceeded) as exc:
        build_stations_for_length(1e6, 0.0, 1e6, 1e-3)
    assert exc.value.count > exc.value.limit
    assert exc.value.limit == 100000


def test_cap_counts_both_bounds():
    assert len(build_stations_for_length(100.0, 0.0, 100.0, 10.0, max_stations=11)) == 11
    with pytest.raises(StationLimitExceeded):
        build_stations_for_length(100.0, 0.0, 100.0, 10.0, max_stations=10)
    with pytest.raises(StationLimitExceeded):
        build_stations_for_length(100.0, 100.0, 0.0, 10.0, max_stations=10)
    assert len(build_stations_for_length(100.0, 0.0, 100.0, 0.01, max_stations=None)) == 10001


def test_interval_station_count():
    assert interval_station_count(0.0, 100.0, 10.0) == 11
    assert interval_station_count(0.0, 25.0, 10.0) == 4
    assert interval_station_count(5.0, 5.0, 0.0) == 1
    assert interval_station_count(0.0, 5.0, 0.0) == 2
