"""Tests for wiring.geometry helpers."""

import pytest
from models.wire import Point
from wiring.geometry import (
    Rect,
    axis_of,
    cross,
    distance,
    key_point,
    nearest_segment_index,
    project,
    rect_intersects_segment,
    rects_overlap,
    segments_intersect,
)


class TestProjection:
    def test_projects_onto_interior(self):
        proj = project((5, 3), (0, 0), (10, 0))
        assert proj.point == Point(5, 0)
        assert proj.t == pytest.approx(0.5)

    def test_clamps_before_start(self):
        proj = project((-4, 2), (0, 0), (10, 0))
        assert proj.point == Point(0, 0)
        assert proj.t == 0.0

    def test_clamps_after_end(self):
        proj = project((14, 2), (0, 0), (10, 0))
        assert proj.t == 1.0

    def test_zero_length_segment_projects_to_its_point(self):
        proj = project((3, 4), (1, 1), (1, 1))
        assert proj.point == Point(1, 1)
        assert proj.t == 0.0

    def test_distance_to_segment(self):
        assert distance((5, 3), (0, 0), (10, 0)) == pytest.approx(3.0)
        assert distance((13, 4), (0, 0), (10, 0)) == pytest.approx(5.0)

    def test_distance_to_degenerate_segment_is_point_distance(self):
        assert distance((3, 4), (0, 0), (0, 0)) == pytest.approx(5.0)


class TestAxis:
    def test_horizontal(self):
        assert axis_of((0, 0), (10, 0)) == "x"

    def test_vertical(self):
        assert axis_of((0, 0), (0, 10)) == "y"

    def test_diagonal_and_degenerate_have_no_axis(self):
        assert axis_of((0, 0), (5, 5)) is None
        assert axis_of((2, 2), (2, 2)) is None

    def test_collinearity(self):
        assert cross((0, 0), (5, 0), (10, 0)) == 0
        assert cross((0, 0), (5, 0), (5, 5)) != 0


class TestKeyPoint:
    def test_rounds_half_up(self):
        assert key_point((0.5, -0.5)) == (1, 0)
        assert key_point((2.4, 2.6)) == (2, 3)


class TestIntersections:
    def test_crossing_segments(self):
        assert segments_intersect((0, 0), (10, 10), (0, 10), (10, 0))

    def test_disjoint_segments(self):
        assert not segments_intersect((0, 0), (10, 0), (0, 5), (10, 5))

    def test_rect_contains_endpoint(self):
        assert rect_intersects_segment((1, 1), (50, 50), Rect(0, 0, 5, 5))

    def test_segment_crosses_rect(self):
        assert rect_intersects_segment((-10, 2), (10, 2), Rect(0, 0, 5, 5))

    def test_segment_misses_rect(self):
        assert not rect_intersects_segment((-10, 20), (10, 20), Rect(0, 0, 5, 5))

    def test_rects_touching_do_not_overlap(self):
        assert not rects_overlap((0, 0, 10, 10), (10, 0, 20, 10))
        assert rects_overlap((0, 0, 10, 10), (9, 0, 20, 10))

    def test_nearest_segment_index(self):
        pts = [(0, 0), (10, 0), (10, 10)]
        assert nearest_segment_index(pts, (4, 1)) == 0
        assert nearest_segment_index(pts, (11, 7)) == 1
        assert nearest_segment_index([(0, 0)], (1, 1)) == -1
