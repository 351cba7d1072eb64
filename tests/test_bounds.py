"""Tests for bounds construction and intersection tests."""

from walkmap.schemas import DestinationRect
from walkmap.spatial.bounds import (
    Bounds,
    point_in_bounds,
    rect_intersects_bounds,
    segment_intersects_bounds,
)


BOX = Bounds(0, 10, 0, 10)


def test_from_viewport_snaps_outward():
    assert Bounds.from_viewport(10.2, 20.7, -0.5, 5.5) == Bounds(10, 21, -1, 6)


def test_from_points_with_margin():
    box = Bounds.from_points((5, 9), (2, 3), margin=1)
    assert box == Bounds(1, 6, 2, 10)
    assert box.center == (3.5, 6.0)
    assert box.padded(1) == Bounds(0, 7, 1, 11)


def test_empty_bounds():
    assert Bounds(5, 4, 0, 1).is_empty
    assert not Bounds(5, 5, 0, 0).is_empty


def test_point_in_bounds_includes_edges():
    assert point_in_bounds(0, 0, BOX)
    assert point_in_bounds(10, 10, BOX)
    assert BOX.contains(5, 5)
    assert not point_in_bounds(10.5, 5, BOX)
    assert not point_in_bounds(5, -0.1, BOX)


def test_segment_crossing_box():
    assert segment_intersects_bounds(-5, 5, 15, 5, BOX)
    assert segment_intersects_bounds(-5, -5, 15, 15, BOX)


def test_segment_missing_box():
    assert not segment_intersects_bounds(-5, -5, -1, 20, BOX)
    # Diagonal passing beside the corner
    assert not segment_intersects_bounds(-5, 8, 8, 21, BOX)


def test_parallel_segment_outside_box():
    assert not segment_intersects_bounds(-5, 20, 15, 20, BOX)
    assert not segment_intersects_bounds(12, -5, 12, 15, BOX)


def test_degenerate_segment():
    assert segment_intersects_bounds(5, 5, 5, 5, BOX)
    assert not segment_intersects_bounds(20, 20, 20, 20, BOX)


def test_segment_touching_edge():
    assert segment_intersects_bounds(10, 20, 10, 15, Bounds(0, 10, 0, 15))


def test_rect_intersection():
    assert rect_intersects_bounds(DestinationRect(min_x=8, max_x=20, min_y=8, max_y=20), BOX)
    assert rect_intersects_bounds(Bounds(10, 12, 10, 12), BOX)
    assert not rect_intersects_bounds(Bounds(11, 12, 0, 5), BOX)
