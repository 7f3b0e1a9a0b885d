import math

import pytest

from geometry.earthwork import (
    BULKING_FACTORS,
    apply_bulking,
    average_end_area_volume,
    bedding_volume,
    bulking_factor,
    compacted_volume,
    cross_section_areas,
    frustum_volume,
    interpolate_z,
    plane_aspect,
    plane_slope,
    prism_volume,
    prismoidal_volume,
    surround_volume,
    total_volumes,
    trench_volume,
    triangle_area,
    triangle_area_3d,
)


def test_section_fully_in_cut_or_fill():
    assert cross_section_areas([(0, 1), (2, 1)], 0.0) == (pytest.approx(2.0), 0.0)
    assert cross_section_areas([(-3, 9), (3, 9)], 10.0) == (0.0, pytest.approx(6.0))


def test_section_crossing_the_reference_is_split():
    areas = cross_section_areas([(0, 1), (2, -1)], 0.0)
    assert areas.cut == pytest.approx(0.5)
    assert areas.fill == pytest.approx(0.5)
    areas = cross_section_areas([(0, -1), (1, 0), (4, 3)], 0.0)
    assert areas.fill == pytest.approx(0.5)
    assert areas.cut == pytest.approx(4.5)


def test_degenerate_section():
    assert cross_section_areas([(0, 5)], 0.0) == (0.0, 0.0)
    assert cross_section_areas([], 0.0) == (0.0, 0.0)


def test_volumes_between_sections():
    assert average_end_area_volume(10.0, 20.0, 25.0) == pytest.approx(375.0)
    assert prismoidal_volume(10.0, 14.0, 20.0, 25.0) == pytest.approx((10 + 56 + 20) * 25 / 6)
    totals = total_volumes([(0.0, 10.0, 0.0), (20.0, 20.0, 4.0), (50.0, 0.0, 6.0)])
    assert totals.cut == pytest.approx(300.0 + 300.0)
    assert totals.fill == pytest.approx(40.0 + 150.0)
    assert total_volumes([(0.0, 10.0, 2.0)]) == (0.0, 0.0)


def test_bulking_and_compaction():
    assert bulking_factor(100.0, 125.0) == pytest.approx(1.25)
    assert bulking_factor(0.0, 10.0) == 1.0
    assert apply_bulking(100.0, BULKING_FACTORS["topsoil"]) == pytest.approx(125.0)
    assert compacted_volume(130.0, 0.9) == pytest.approx(117.0)


def test_excavation_shapes():
    assert frustum_volume(4.0, 4.0, 3.0) == pytest.approx(12.0)
    assert frustum_volume(0.0, 9.0, 3.0) == pytest.approx(9.0)
    assert trench_volume(0.8, 1.5, 10.0) == pytest.approx(12.0)
    assert trench_volume(1.0, 2.0, 10.0, side_slope=0.5) == pytest.approx((1.0 + 3.0) * 2.0 / 2 * 10.0)
    assert bedding_volume(0.1, 0.8, 10.0) == pytest.approx(0.8)
    pipe = math.pi * 0.3 ** 2 / 4
    assert surround_volume(0.3, 0.8, 10.0, 0.2) == pytest.approx((0.8 * 0.5 - pipe) * 10.0)


def test_plane_through_three_points():
    p1, p2, p3 = (0, 0, 0), (10, 0, 0), (0, 10, 10)
    assert interpolate_z((5, 5), p1, p2, p3) == pytest.approx(5.0)
    assert plane_slope(p1, p2, p3) == pytest.approx(100.0)
    # rises to the north, so it faces south
    assert plane_aspect(p1, p2, p3) == pytest.approx(200.0)
    assert plane_aspect((0, 0, 10), (10, 0, 0), (0, 10, 10)) == pytest.approx(100.0)


def test_vertical_plane():
    p1, p2, p3 = (0, 0, 0), (10, 0, 0), (10, 0, 9)
    assert plane_slope(p1, p2, p3) == math.inf
    assert interpolate_z((3, 3), p1, p2, p3) == pytest.approx(3.0)


def test_triangle_measures():
    p1, p2, p3 = (0, 0, 0), (4, 0, 0), (0, 3, 4)
    assert triangle_area(p1, p2, p3) == pytest.approx(6.0)
    assert triangle_area_3d(p1, p2, p3) == pytest.approx(10.0)
    assert prism_volume((0, 0, 2), (4, 0, 2), (0, 3, 2), 0.0) == pytest.approx(12.0)
    assert prism_volume((0, 0, 2), (4, 0, 2), (0, 3, 2), 5.0) == pytest.approx(-18.0)
