"""
Angle Calculator Service

Geometry used by the swing detector and the metrics calculator.
Angles between vectors are reported in degrees (0-180); line
orientations and rotation differences in radians.

This is pure mathematics - no external dependencies except numpy.
"""

import math
from typing import Optional, Protocol

import numpy as np


class Point(Protocol):
    x: float
    y: float
    z: float


class AngleCalculator:
    """
    Calculates angles, speeds and distances from pose landmarks.

    All methods are static - no state needed.
    """

    # -------------------------------------------------------------------------
    # Vectors and Angles
    # -------------------------------------------------------------------------

    @staticmethod
    def vector(start: Point, end: Point) -> np.ndarray:
        """2D vector from start to end in image coordinates."""
        return np.array([end.x - start.x, end.y - start.y], dtype=float)

    @staticmethod
    def angle_between_vectors(v1: np.ndarray, v2: np.ndarray) -> float:
        """
        Angle between two vectors in degrees (0-180).

        Degenerate (zero-length) vectors give 0 instead of NaN.

        Example:
            For arm bend: upper arm (shoulder -> elbow) vs
            forearm (elbow -> wrist); 0 means a straight arm.
        """
        norm1 = float(np.linalg.norm(v1))
        norm2 = float(np.linalg.norm(v2))
        if norm1 == 0.0 or norm2 == 0.0:
            return 0.0

        cos_angle = float(np.dot(v1, v2)) / (norm1 * norm2)

        # Clamp to valid range (handles floating point errors)
        cos_angle = float(np.clip(cos_angle, -1.0, 1.0))

        return float(np.degrees(np.arccos(cos_angle)))

    @staticmethod
    def line_orientation(start: Point, end: Point) -> float:
        """Orientation of the line start -> end, radians in (-pi, pi]."""
        return math.atan2(end.y - start.y, end.x - start.x)

    @staticmethod
    def wrapped_angle_difference(a: float, b: float) -> float:
        """
        Absolute difference between two orientations, wrapped into [0, pi].

        A raw difference of 350 degrees is reported as 10 degrees.
        """
        diff = abs(a - b) % (2 * math.pi)
        if diff > math.pi:
            diff = 2 * math.pi - diff
        return diff

    # -------------------------------------------------------------------------
    # Distances and Speeds
    # -------------------------------------------------------------------------

    @staticmethod
    def distance_2d(p1: Point, p2: Point) -> float:
        return math.hypot(p1.x - p2.x, p1.y - p2.y)

    @staticmethod
    def distance_3d(p1: Point, p2: Point) -> float:
        return math.sqrt(
            (p1.x - p2.x) ** 2 +
            (p1.y - p2.y) ** 2 +
            (p1.z - p2.z) ** 2
        )

    @staticmethod
    def planar_speed(p1: Point, p2: Point, elapsed_ms: float) -> Optional[float]:
        """
        Planar speed between two positions in units per second.

        Returns None when no time elapsed (or time went backwards).
        """
        if elapsed_ms <= 0:
            return None
        return AngleCalculator.distance_2d(p1, p2) / (elapsed_ms / 1000.0)
