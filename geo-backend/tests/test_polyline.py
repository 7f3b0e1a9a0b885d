import math

import pytest

from geometry.polyline import Polyline, Segment


def semicircle():
    # Counter-clockwise half circle of radius 1 from (0, 0) to (2, 0), passing below.
    return Polyline([(0.0, 0.0, 1.0), (2.0, 0.0)])


def test_needs_two_vertices():
    with pytest.raises(ValueError):
        Polyline([(0.0, 0.0)])


def test_straight_polyline_lengths():
    pl = Polyline([(0.0, 0.0), (3.0, 4.0), (3.0, 10.0)])
    assert pl.length == pytest.approx(11.0)
    assert pl.segment_count == 2
    assert pl.segment_length(1) == pytest.approx(6.0)
    assert pl.vertex_distances() == pytest.approx([0.0, 5.0, 11.0])
    assert pl.arc_midpoints() == []


def test_closed_polyline_adds_closing_segment():
    pl = Polyline([(0.0, 0.0), (10.0, 0.0), (10.0, 10.0), (0.0, 10.0)], closed=True)
    assert pl.segment_count == 4
    assert pl.length == pytest.approx(40.0)
    assert pl.point_at_distance(35.0) == pytest.approx((0.0, 5.0))


def test_semicircle_geometry():
    seg = Segment((0.0, 0.0), (2.0, 0.0), 1.0)
    assert seg.is_arc
    assert seg.sweep == pytest.approx(math.pi)
    assert seg.radius == pytest.approx(1.0)
    assert seg.center == pytest.approx((1.0, 0.0))
    assert seg.length == pytest.approx(math.pi)
    assert seg.midpoint() == pytest.approx((1.0, -1.0))


def test_quarter_arc_center_and_length():
    # 90 degree counter-clockwise arc: bulge = tan(pi / 8).
    seg = Segment((1.0, 0.0), (0.0, 1.0), math.tan(math.pi / 8.0))
    assert seg.center == pytest.approx((0.0, 0.0), abs=1e-12)
    assert seg.radius == pytest.approx(1.0)
    assert seg.length == pytest.approx(math.pi / 2.0)
    mx, my = seg.midpoint()
    assert mx == pytest.approx(math.sqrt(0.5))
    assert my == pytest.approx(math.sqrt(0.5))


def test_negative_bulge_is_clockwise():
    seg = Segment((0.0, 0.0), (2.0, 0.0), -1.0)
    assert seg.sweep == pytest.approx(-math.pi)
    assert seg.midpoint() == pytest.approx((1.0, 1.0))


def test_tiny_bulge_is_straight():
    seg = Segment((0.0, 0.0), (2.0, 0.0), 1e-9)
    assert not seg.is_arc
    assert seg.center is None
    assert seg.length == pytest.approx(2.0)


def test_arc_polyline_distances():
    pl = Polyline([(0.0, 0.0, 1.0), (2.0, 0.0), (5.0, 0.0)])
    assert pl.length == pytest.approx(math.pi + 3.0)
    assert pl.arc_midpoints() == pytest.approx([math.pi / 2.0])
    assert pl.point_at_distance(math.pi / 2.0) == pytest.approx((1.0, -1.0))
    assert pl.point_at_distance(math.pi + 1.0) == pytest.approx((3.0, 0.0))


def test_point_at_distance_clamps():
    pl = Polyline([(0.0, 0.0), (10.0, 0.0)])
    assert pl.point_at_distance(-5.0) == (0.0, 0.0)
    assert pl.point_at_distance(50.0) == (10.0, 0.0)


def test_tangent_angles():
    pl = semicircle()
    start = pl.tangent_angle(0.0)
    assert math.cos(start) == pytest.approx(0.0, abs=1e-12)
    assert math.sin(start) == pytest.approx(-1.0)
    heading = pl.tangent_angle(math.pi / 2.0)
    assert math.cos(heading) == pytest.approx(1.0)
    assert math.sin(heading) == pytest.approx(0.0, abs=1e-12)
    assert Polyline([(0.0, 0.0), (0.0, 5.0)]).tangent_angle(2.0) == pytest.approx(math.pi / 2.0)


def test_zero_length_segment_uses_next_direction():
    pl = Polyline([(0.0, 0.0), (0.0, 0.0), (5.0, 0.0)])
    assert pl.tangent_angle(0.0) == pytest.approx(0.0)


def test_closest_point_offset_sign():
    pl = Polyline([(0.0, 0.0), (10.0, 0.0)])
    left = pl.closest_point((5.0, 2.0))
    assert left.point == pytest.approx((5.0, 0.0))
    assert left.distance == pytest.approx(5.0)
    assert left.offset == pytest.approx(2.0)
    assert left.segment_index == 0
    right = pl.closest_point((5.0, -3.0))
    assert right.offset == pytest.approx(-3.0)
    on_line = pl.closest_point((4.0, 0.0))
    assert on_line.offset == 0.0


def test_closest_point_beyond_end():
    pl = Polyline([(0.0, 0.0), (10.0, 0.0), (10.0, 10.0)])
    proj = pl.closest_point((12.0, 15.0))
    assert proj.point == pytest.approx((10.0, 10.0))
    assert proj.distance == pytest.approx(20.0)
    assert proj.segment_index == 1


def test_closest_point_on_arc():
    pl = semicircle()
    proj = pl.closest_point((1.0, -3.0))
    assert proj.point == pytest.approx((1.0, -1.0))
    assert proj.distance == pytest.approx(math.pi / 2.0)
    # Travelling east at the bottom of the arc, (1, -3) lies on the right.
    assert proj.offset == pytest.approx(-2.0)


def test_closest_point_outside_arc_span_snaps_to_endpoint():
    pl = semicircle()
    proj = pl.closest_point((-0.5, 1.0))
    assert proj.point == pytest.approx((0.0, 0.0))
    assert proj.distance == pytest.approx(0.0)
