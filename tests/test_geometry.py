"""
Tests for Geometry Module
==========================
"""

import math

import pytest
import numpy as np
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from facetouch.core.types import as_point_array, points_from_predictions, finger_segments
from facetouch.geometry.bounding_box import BoundingBox, BOX_EDGES, intersection_volume
from facetouch.geometry.calibration import ZAxisCalibrator


class TestPointSets:
    """Test suite for point set normalization."""

    def test_empty_inputs(self):
        """None and empty sequences are an empty (0, 3) set."""
        for value in (None, [], np.empty((0, 3))):
            arr = as_point_array(value)
            assert arr.shape == (0, 3)

    def test_list_of_triples(self):
        arr = as_point_array([[1, 2, 3], [4, 5, 6]])
        assert arr.shape == (2, 3)
        assert arr.dtype == np.float64

    def test_malformed_raises(self):
        with pytest.raises(ValueError):
            as_point_array([[1, 2], [3, 4]])
        with pytest.raises(ValueError):
            as_point_array([1, 2, 3])

    def test_predictions_flattened_and_mirrored(self):
        """Multiple detections concatenate in order; coordinates are negated."""
        points = points_from_predictions([[[1, 2, 3]], [], [[4, 5, 6], [7, 8, 9]]])
        assert points.shape == (3, 3)
        assert points[0].tolist() == [-1, -2, -3]
        assert points[2].tolist() == [-7, -8, -9]

    def test_predictions_without_negation(self):
        points = points_from_predictions([[[1, 2, 3]]], negate=False)
        assert points[0].tolist() == [1, 2, 3]

    def test_no_predictions(self):
        assert points_from_predictions([]).shape == (0, 3)

    def test_finger_segments_per_hand(self):
        """Two 21-point hands give ten chains, second hand offset by 21."""
        segments = finger_segments(np.zeros((42, 3)))
        assert len(segments) == 10
        assert segments[0] == [0, 1, 2, 3, 4]
        assert segments[5] == [21, 22, 23, 24, 25]


class TestBoundingBox:
    """Test suite for BoundingBox."""

    def test_empty_set_is_absent(self):
        assert BoundingBox.from_points([]) is None
        assert BoundingBox.from_points(np.empty((0, 3)), margin=5) is None

    def test_min_le_max(self):
        """Every axis has min <= max for random non-empty sets."""
        rng = np.random.default_rng(7)
        for n in (1, 2, 21, 468):
            box = BoundingBox.from_points(rng.normal(scale=50, size=(n, 3)))
            assert box.x_min <= box.x_max
            assert box.y_min <= box.y_max
            assert box.z_min <= box.z_max

    def test_single_point(self):
        box = BoundingBox.from_points([[1, 2, 3]])
        assert (box.x_min, box.x_max) == (1, 1)
        assert box.volume == 0

    def test_margin_inflates_x_only(self):
        box = BoundingBox.from_points([[0, 0, 0], [2, 3, 4]], margin=1)
        assert (box.x_min, box.x_max) == (-1, 3)
        assert (box.y_min, box.y_max) == (0, 3)
        assert (box.z_min, box.z_max) == (0, 4)

    @pytest.mark.parametrize("margin", [-1.0, float("nan")])
    def test_invalid_margin_rejected(self, margin):
        with pytest.raises(ValueError):
            BoundingBox.from_points([[0, 0, 0], [2, 3, 4]], margin=margin)

    def test_center(self):
        box = BoundingBox(0, 2, 0, 4, -2, 2)
        assert box.center == (1, 2, 0)

    def test_contains_x_is_strict(self):
        box = BoundingBox(0, 10, 0, 1, 0, 1)
        assert box.contains_x(5)
        assert not box.contains_x(0)
        assert not box.contains_x(10)

    def test_corners_order(self):
        """x varies slowest, z fastest; stable across calls."""
        box = BoundingBox(0, 1, 10, 11, 20, 21)
        corners = box.corners()
        assert len(corners) == 8
        assert corners[0] == (0, 10, 20)
        assert corners[1] == (0, 10, 21)
        assert corners[2] == (0, 11, 20)
        assert corners[4] == (1, 10, 20)
        assert corners[7] == (1, 11, 21)
        assert box.corners() == corners
        assert box.to_array().shape == (8, 3)

    def test_box_edges_reference_valid_corners(self):
        for chain in BOX_EDGES.values():
            assert all(0 <= i < 8 for i in chain)


class TestIntersectionVolume:
    """Test suite for bounding box intersection."""

    def test_overlapping_cubes(self):
        a = BoundingBox(0, 2, 0, 2, 0, 2)
        b = BoundingBox(1, 3, 1, 3, 1, 3)
        assert intersection_volume(a, b) == 1.0
        assert a.intersection_volume(b) == 1.0

    def test_symmetric(self):
        rng = np.random.default_rng(3)
        for _ in range(20):
            a = BoundingBox.from_points(rng.uniform(0, 10, size=(5, 3)))
            b = BoundingBox.from_points(rng.uniform(0, 10, size=(5, 3)))
            assert intersection_volume(a, b) == intersection_volume(b, a)

    def test_disjoint_on_one_axis(self):
        a = BoundingBox(0, 2, 0, 2, 0, 2)
        b = BoundingBox(0, 2, 0, 2, 5, 6)
        assert intersection_volume(a, b) == 0.0

    def test_contained_box(self):
        outer = BoundingBox(0, 10, 0, 10, 0, 10)
        inner = BoundingBox(2, 4, 2, 5, 2, 6)
        assert intersection_volume(outer, inner) == pytest.approx(2 * 3 * 4)

    def test_absent_box(self):
        a = BoundingBox(0, 2, 0, 2, 0, 2)
        assert intersection_volume(a, None) == 0.0
        assert intersection_volume(None, a) == 0.0
        assert intersection_volume(None, None) == 0.0


class TestZAxisCalibrator:
    """Test suite for hand depth recalibration."""

    @pytest.fixture
    def calibrator(self):
        return ZAxisCalibrator()

    @pytest.fixture
    def face_box(self):
        return BoundingBox(0, 100, 0, 100, 0, 10)

    def test_empty_hand(self, calibrator, face_box):
        result = calibrator.recalibrate([], face_box)
        assert result.points.shape == (0, 3)
        assert not result.is_in_front_of_face

    def test_absent_face_box(self, calibrator):
        hand = [[50, 50, 0]]
        result = calibrator.recalibrate(hand, None)
        assert result.points.tolist() == [[50, 50, 0]]
        assert not result.is_in_front_of_face

    def test_zero_width_face_box(self, calibrator):
        """Degrades to no recalibration instead of dividing by zero."""
        box = BoundingBox(5, 5, 0, 10, 0, 10)
        result = calibrator.recalibrate([[5, 5, 0]], box)
        assert result.points.tolist() == [[5, 5, 0]]
        assert not result.is_in_front_of_face
        assert np.all(np.isfinite(result.points))

    def test_hand_beside_face(self, calibrator, face_box):
        result = calibrator.recalibrate([[150, 50, 0], [160, 50, 0]], face_box)
        assert not result.is_in_front_of_face
        assert result.points[:, 2].tolist() == [0, 0]

    def test_hand_on_edge_is_not_in_front(self, calibrator, face_box):
        result = calibrator.recalibrate([[0, 50, 0]], face_box)
        assert not result.is_in_front_of_face

    def test_hand_at_center(self, calibrator, face_box):
        """Centered hand gets the full saturating boost."""
        result = calibrator.recalibrate([[40, 50, 0], [60, 50, 2]], face_box)
        expected = 35 * (math.atan(32 - 25) / (math.pi / 2) + 1) / 2
        assert result.is_in_front_of_face
        assert result.depth_shift == pytest.approx(expected)
        assert result.points[:, 2].tolist() == pytest.approx([expected, 2 + expected])
        # x and y untouched
        assert result.points[:, :2].tolist() == [[40, 50], [60, 50]]

    def test_boost_grows_toward_center(self, calibrator, face_box):
        near_edge = calibrator.recalibrate([[10, 50, 0]], face_box)
        midway = calibrator.recalibrate([[35, 50, 0]], face_box)
        center = calibrator.recalibrate([[50, 50, 0]], face_box)
        assert 0 < near_edge.depth_shift < midway.depth_shift < center.depth_shift < 35

    def test_input_not_mutated(self, calibrator, face_box):
        hand = np.array([[50.0, 50.0, 0.0]])
        calibrator.recalibrate(hand, face_box)
        assert hand[0, 2] == 0.0

    def test_scale_factor_range(self, calibrator):
        for ratio in (0.0, 0.25, 0.5, 0.78, 1.0):
            assert 0 < calibrator.scale_factor(ratio) < 1
