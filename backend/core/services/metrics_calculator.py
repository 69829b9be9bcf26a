"""
Metrics Calculator Service

Biomechanical summary of one confirmed forehand swing:
shoulder turn, arm speed, contact snapshot and swing rhythm.

Pure functions over a finished frame sequence - no state, no I/O.
Missing data never raises; it degrades to zero values.
"""

from typing import Sequence

import numpy as np

from ..domain.analysis import ContactMetrics, SwingMetrics
from ..domain.pose import BodyPart, HipCenter, PoseFrame, SwingSide
from .angle_calculator import AngleCalculator


class MetricsCalculator:
    """
    Computes SwingMetrics from a frame sub-sequence.

    Usage:
        metrics = MetricsCalculator.calculate_metrics(event.frames, side=event.side)
        print(metrics.max_shoulder_turn, metrics.peak_arm_speed)

    All methods are static - no state needed.
    """

    # Shared visibility threshold; a joint counts only above it
    MIN_VISIBILITY = 0.4

    MIN_FRAMES = 5
    MIN_RHYTHM_FRAMES = 3

    # Raw wrist velocity (~0-2 units/s) to a 0-100 score
    SPEED_SCORE_FACTOR = 50.0
    # Normalized distance to a rough centimeter figure
    CM_SCALE = 150.0
    RHYTHM_CV_PENALTY = 200.0

    @classmethod
    def calculate_metrics(
        cls,
        frames: Sequence[PoseFrame],
        side: SwingSide = SwingSide.RIGHT,
        min_visibility: float = MIN_VISIBILITY,
    ) -> SwingMetrics:
        """
        Calculate the full metrics record for one swing.

        Args:
            frames: Frames of the swing, in time order
            side: Swinging arm
            min_visibility: Visibility threshold applied to every joint

        Returns:
            SwingMetrics (all zero if fewer than 5 frames)
        """
        if len(frames) < cls.MIN_FRAMES:
            return SwingMetrics()

        peak_arm_speed, contact_index = cls.calculate_peak_arm_speed(frames, side, min_visibility)

        return SwingMetrics(
            max_shoulder_turn=cls.calculate_max_shoulder_turn(frames, min_visibility),
            peak_arm_speed=peak_arm_speed,
            contact_metrics=cls.calculate_contact_metrics(frames[contact_index], side, min_visibility),
            swing_rhythm=cls.calculate_swing_rhythm(frames),
        )

    # -------------------------------------------------------------------------
    # Individual Metrics
    # -------------------------------------------------------------------------

    @staticmethod
    def calculate_max_shoulder_turn(
        frames: Sequence[PoseFrame],
        min_visibility: float = MIN_VISIBILITY,
    ) -> int:
        """
        Largest angle between the shoulder line and the hip line.

        Measured against the hips rather than the image axes, so camera
        tilt and the body's overall facing don't leak into the number.
        """
        max_turn = 0.0
        for frame in frames:
            left_shoulder = frame.visible_landmark(BodyPart.LEFT_SHOULDER, min_visibility)
            right_shoulder = frame.visible_landmark(BodyPart.RIGHT_SHOULDER, min_visibility)
            left_hip = frame.visible_landmark(BodyPart.LEFT_HIP, min_visibility)
            right_hip = frame.visible_landmark(BodyPart.RIGHT_HIP, min_visibility)
            if left_shoulder is None or right_shoulder is None or left_hip is None or right_hip is None:
                continue

            angle = AngleCalculator.angle_between_vectors(
                AngleCalculator.vector(left_shoulder, right_shoulder),
                AngleCalculator.vector(left_hip, right_hip),
            )
            max_turn = max(max_turn, angle)

        return round(max_turn)

    @classmethod
    def calculate_peak_arm_speed(
        cls,
        frames: Sequence[PoseFrame],
        side: SwingSide = SwingSide.RIGHT,
        min_visibility: float = MIN_VISIBILITY,
    ) -> tuple[int, int]:
        """
        Peak wrist speed as a 0-100 score.

        Returns:
            (speed_score, peak_frame_index). The peak frame doubles as
            the contact frame.
        """
        max_velocity = 0.0
        peak_index = 0

        for i in range(1, len(frames)):
            prev_wrist = frames[i - 1].visible_landmark(side.wrist, min_visibility)
            curr_wrist = frames[i].visible_landmark(side.wrist, min_visibility)
            if prev_wrist is None or curr_wrist is None:
                continue

            velocity = AngleCalculator.planar_speed(
                prev_wrist, curr_wrist, frames[i].timestamp_ms - frames[i - 1].timestamp_ms
            )
            if velocity is not None and velocity > max_velocity:
                max_velocity = velocity
                peak_index = i

        speed_score = min(100.0, max_velocity * cls.SPEED_SCORE_FACTOR)
        return round(speed_score), peak_index

    @classmethod
    def calculate_contact_metrics(
        cls,
        contact_frame: PoseFrame,
        side: SwingSide = SwingSide.RIGHT,
        min_visibility: float = MIN_VISIBILITY,
    ) -> ContactMetrics:
        """Extension, arm bend and contact depth at the contact frame."""
        shoulder = contact_frame.visible_landmark(side.shoulder, min_visibility)
        elbow = contact_frame.visible_landmark(side.elbow, min_visibility)
        wrist = contact_frame.visible_landmark(side.wrist, min_visibility)
        hip_center = HipCenter.from_frame(contact_frame, min_visibility)

        if shoulder is None or elbow is None or wrist is None or hip_center is None:
            return ContactMetrics()

        distance_from_core = AngleCalculator.distance_3d(hip_center, wrist) * cls.CM_SCALE

        arm_angle = AngleCalculator.angle_between_vectors(
            AngleCalculator.vector(shoulder, elbow),
            AngleCalculator.vector(elbow, wrist),
        )

        # Smaller z is closer to the camera: the wrist should lead the shoulder
        is_front_contact = wrist.z < shoulder.z

        return ContactMetrics(
            distance_from_core=round(distance_from_core),
            arm_angle=round(arm_angle),
            is_front_contact=is_front_contact,
        )

    @classmethod
    def calculate_swing_rhythm(cls, frames: Sequence[PoseFrame]) -> int:
        """
        Smoothness score (0-100) from the coefficient of variation
        of frame intervals. Steadier spacing scores higher.
        """
        if len(frames) < cls.MIN_RHYTHM_FRAMES:
            return 0

        timestamps = np.array([frame.timestamp_ms for frame in frames], dtype=float)
        intervals = np.diff(timestamps)

        mean = float(np.mean(intervals))
        std_dev = float(np.std(intervals))  # population std (ddof=0)
        cv = std_dev / mean if mean > 0 else 0.0

        return round(max(0.0, 100.0 - cv * cls.RHYTHM_CV_PENALTY))
