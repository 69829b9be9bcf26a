"""
Unit tests for the geometry helpers.

Pure math, so these tests use plain landmarks and known angles.
"""

import math

import numpy as np
import pytest

from core.domain.pose import PoseLandmark
from core.services.angle_calculator import AngleCalculator


class TestAngleBetweenVectors:
    """Tests for the degree angle between two 2D vectors."""

    def test_perpendicular_vectors_are_90_degrees(self):
        angle = AngleCalculator.angle_between_vectors(np.array([1.0, 0.0]), np.array([0.0, 2.0]))
        assert angle == pytest.approx(90.0)

    def test_opposite_vectors_are_180_degrees(self):
        angle = AngleCalculator.angle_between_vectors(np.array([1.0, 1.0]), np.array([-2.0, -2.0]))
        assert angle == pytest.approx(180.0)

    def test_parallel_vectors_do_not_produce_nan(self):
        """Floating point can push the cosine just past 1; it must be clamped."""
        v = np.array([0.1, 0.3])
        angle = AngleCalculator.angle_between_vectors(v, v * 3)
        assert not math.isnan(angle)
        assert angle == pytest.approx(0.0, abs=1e-6)

    def test_zero_length_vector_gives_zero(self):
        """A degenerate limb (two joints on top of each other) reads as 0, not NaN."""
        angle = AngleCalculator.angle_between_vectors(np.array([0.0, 0.0]), np.array([1.0, 0.0]))
        assert angle == 0.0


class TestWrappedAngleDifference:
    """Tests for orientation differences wrapped into [0, pi]."""

    def test_small_difference_is_unchanged(self):
        diff = AngleCalculator.wrapped_angle_difference(math.radians(10), math.radians(55))
        assert diff == pytest.approx(math.radians(45))

    def test_350_degrees_reads_as_10(self):
        diff = AngleCalculator.wrapped_angle_difference(math.radians(350), 0.0)
        assert math.degrees(diff) == pytest.approx(10.0)

    def test_difference_across_the_atan2_seam(self):
        """Orientations either side of +/-pi are close, not 2pi apart."""
        diff = AngleCalculator.wrapped_angle_difference(math.radians(179), math.radians(-179))
        assert math.degrees(diff) == pytest.approx(2.0)

    def test_result_never_exceeds_pi(self):
        for a in range(-720, 721, 37):
            diff = AngleCalculator.wrapped_angle_difference(math.radians(a), 0.0)
            assert 0.0 <= diff <= math.pi + 1e-12


class TestLineOrientation:
    """Tests for the orientation of a line between two landmarks."""

    def test_horizontal_line_is_zero(self):
        start = PoseLandmark(0.4, 0.3)
        end = PoseLandmark(0.6, 0.3)
        assert AngleCalculator.line_orientation(start, end) == pytest.approx(0.0)

    def test_diagonal_line_is_45_degrees(self):
        start = PoseLandmark(0.4, 0.3)
        end = PoseLandmark(0.5, 0.4)
        assert math.degrees(AngleCalculator.line_orientation(start, end)) == pytest.approx(45.0)


class TestPlanarSpeed:
    """Tests for wrist speed between two frames."""

    def test_speed_in_units_per_second(self):
        speed = AngleCalculator.planar_speed(PoseLandmark(0.0, 0.0), PoseLandmark(0.03, 0.04), 50.0)
        assert speed == pytest.approx(1.0)

    def test_zero_elapsed_time_gives_none(self):
        """Duplicate timestamps must not divide by zero."""
        assert AngleCalculator.planar_speed(PoseLandmark(0.0, 0.0), PoseLandmark(0.1, 0.0), 0.0) is None

    def test_negative_elapsed_time_gives_none(self):
        assert AngleCalculator.planar_speed(PoseLandmark(0.0, 0.0), PoseLandmark(0.1, 0.0), -5.0) is None

    def test_planar_speed_ignores_depth(self):
        speed = AngleCalculator.planar_speed(PoseLandmark(0.0, 0.0, 0.0), PoseLandmark(0.0, 0.0, 0.5), 10.0)
        assert speed == 0.0


class TestDistances:
    """Tests for 2D and 3D distances."""

    def test_distance_2d(self):
        assert AngleCalculator.distance_2d(PoseLandmark(0.0, 0.0), PoseLandmark(0.3, 0.4)) == pytest.approx(0.5)

    def test_distance_3d_includes_depth(self):
        distance = AngleCalculator.distance_3d(PoseLandmark(0.0, 0.0, 0.0), PoseLandmark(0.2, 0.3, 0.6))
        assert distance == pytest.approx(0.7)
