#!/usr/bin/env python3
"""
Tests for the geometry kernel: measurement, hit-testing and alignment snapping
"""

import math
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

import pytest

from calculations.errors import ScaleNotSetError
from calculations.geometry import (
    OrientedRect, Point, SnapKind, as_point, compute_polygon_metrics, distance,
    distance_to_polyline, is_valid_rotation, is_valid_rotation_step, meters_to_pixels,
    nearest_alignment_candidates, normalize_degrees,
    oriented_rect_corners, pixels_to_meters, point_in_oriented_rect, point_in_polygon,
    polygon_area, polygon_centroid, polygon_perimeter, polyline_length, rotate_point,
)

SQUARE = [(0, 0), (10, 0), (10, 10), (0, 10)]


def fixed_tolerance(value):
    return lambda kind: value


def test_distance_and_polyline_length():
    assert distance((0, 0), (3, 4)) == 5.0
    assert polyline_length([(0, 0), (3, 4), (3, 10)]) == 11.0
    assert polyline_length([(1, 1)]) == 0.0


def test_polygon_area_ignores_winding():
    assert polygon_area(SQUARE) == 100.0
    assert polygon_area(list(reversed(SQUARE))) == 100.0
    assert polygon_area([(0, 0), (1, 1)]) == 0.0


def test_polygon_perimeter_and_centroid():
    assert polygon_perimeter(SQUARE) == 40.0
    assert polygon_centroid(SQUARE) == Point(5.0, 5.0)


def test_as_point_accepts_pairs_and_mappings():
    assert as_point((1, 2)) == Point(1.0, 2.0)
    assert as_point({'x': 3, 'y': 4}) == Point(3.0, 4.0)


def test_point_in_polygon_interior_and_exterior():
    assert point_in_polygon((5, 5), SQUARE)
    assert not point_in_polygon((15, 5), SQUARE)
    assert not point_in_polygon((5, 5), [(0, 0), (1, 1)])


def test_point_in_polygon_boundary_rule():
    # left and top edges count as inside, right and bottom as outside
    assert point_in_polygon((0, 5), SQUARE)
    assert point_in_polygon((5, 0), SQUARE)
    assert not point_in_polygon((10, 5), SQUARE)
    assert not point_in_polygon((5, 10), SQUARE)


def test_distance_to_polyline():
    line = [(0, 0), (10, 0)]
    assert distance_to_polyline((5, 3), line) == 3.0
    assert distance_to_polyline((13, 4), line) == 5.0
    # closing segment only counts for closed shapes
    assert distance_to_polyline((-2, 5), SQUARE[:3]) > 2.0
    assert distance_to_polyline((-2, 5), SQUARE, closed=True) == 2.0


def test_normalize_degrees():
    assert normalize_degrees(360) == 0.0
    assert normalize_degrees(-90) == 270.0
    assert normalize_degrees(765) == 45.0


def test_rotation_grid():
    assert is_valid_rotation(-45)
    assert is_valid_rotation(405)
    assert not is_valid_rotation(30)
    assert not is_valid_rotation(float('nan'))
    assert is_valid_rotation_step(90)
    assert not is_valid_rotation_step(135)
    assert not is_valid_rotation_step(0)


def test_rotation_and_oriented_rect():
    rotated = rotate_point((1, 0), 90)
    assert rotated.x == pytest.approx(0.0, abs=1e-9)
    assert rotated.y == pytest.approx(1.0)

    corners = oriented_rect_corners((0, 0), 4, 2, 0)
    assert corners[0] == Point(-2.0, -1.0)
    assert corners[2] == Point(2.0, 1.0)

    assert point_in_oriented_rect((1.9, 0.9), (0, 0), 4, 2, 0)
    assert not point_in_oriented_rect((1.9, 0.9), (0, 0), 4, 2, 90)
    assert point_in_oriented_rect((0.9, 1.9), (0, 0), 4, 2, 90)


def test_unit_conversion_requires_scale():
    assert pixels_to_meters(100, 0.05) == pytest.approx(5.0)
    assert meters_to_pixels(5.0, 0.05) == pytest.approx(100.0)
    with pytest.raises(ScaleNotSetError):
        pixels_to_meters(100, None)
    with pytest.raises(ScaleNotSetError):
        meters_to_pixels(1.0, 0)


def test_compute_polygon_metrics():
    metrics = compute_polygon_metrics([{'x': 0, 'y': 0}, {'x': 100, 'y': 0}, {'x': 100, 'y': 100}, {'x': 0, 'y': 100}], 0.05)
    assert metrics['area_m2'] == pytest.approx(25.0)
    assert metrics['perimeter_m'] == pytest.approx(20.0)


class TestAlignmentSnapping:
    existing = [OrientedRect('a1', Point(0.0, 0.0), 10.0, 10.0, 0.0)]

    def test_corner_candidate_near_flush_corner(self):
        candidates = nearest_alignment_candidates((10.5, 0.2), 10, 10, 0, self.existing, fixed_tolerance(1.0))
        best = candidates[0]
        assert best.kind == SnapKind.CORNER
        assert best.point.x == pytest.approx(10.0)
        assert best.point.y == pytest.approx(0.0)
        assert best.source_id == 'a1'
        assert best.distance == pytest.approx(math.hypot(0.5, 0.2))

    def test_edge_candidate_keeps_parallel_coordinate(self):
        candidates = nearest_alignment_candidates((10.5, 3.0), 10, 10, 0, self.existing, fixed_tolerance(1.0))
        assert len(candidates) == 1
        assert candidates[0].kind == SnapKind.EDGE
        assert candidates[0].point.x == pytest.approx(10.0)
        assert candidates[0].point.y == pytest.approx(3.0)

    def test_nothing_within_tolerance(self):
        assert nearest_alignment_candidates((15, 0), 10, 10, 0, self.existing, fixed_tolerance(1.0)) == []

    def test_misaligned_rectangles_are_ignored(self):
        tilted = [OrientedRect('a1', Point(0.0, 0.0), 10.0, 10.0, 30.0)]
        assert nearest_alignment_candidates((10.5, 0.2), 10, 10, 0, tilted, fixed_tolerance(5.0)) == []

    def test_quarter_turn_counts_as_aligned(self):
        turned = [OrientedRect('a1', Point(0.0, 0.0), 20.0, 10.0, 90.0)]
        # in the new frame the existing rect is 10 wide, 20 tall
        candidates = nearest_alignment_candidates((10.4, 5.0), 10, 10, 0, turned, fixed_tolerance(1.0))
        assert candidates
        assert candidates[0].point.x == pytest.approx(10.0)

    def test_tolerance_is_per_kind(self):
        def tolerance(kind):
            return 1.0 if kind == SnapKind.CORNER else 0.1
        # edge snap needs to be within 0.1 perpendicular distance
        assert nearest_alignment_candidates((10.5, 3.0), 10, 10, 0, self.existing, tolerance) == []
        candidates = nearest_alignment_candidates((10.05, 3.0), 10, 10, 0, self.existing, tolerance)
        assert candidates[0].kind == SnapKind.EDGE
