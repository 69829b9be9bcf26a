"""
Swing Detector Service

Streaming state machine that decides, frame by frame, whether a forehand
swing has just happened. Uses only kinematic cues from the pose stream:
an explosive wrist speed peak plus a genuine rotation of the shoulder line.

Single pass, bounded work per frame, no I/O. Safe to call straight from a
pose source callback.
"""

import logging
import math
import threading
from typing import Optional

from ..config import SwingDetectorConfig
from ..domain.analysis import DetectorState, SwingEvent
from ..domain.pose import BodyPart, FrameWindow, PoseFrame, SwingSide
from .angle_calculator import AngleCalculator

logger = logging.getLogger(__name__)


class SwingDetector:
    """
    Detects completed forehand swings in a live stream of pose frames.

    Usage:
        detector = SwingDetector()

        for frame in pose_source:
            event = detector.process_frame(frame)
            if event:
                metrics = MetricsCalculator.calculate_metrics(event.frames, event.side)

    The detector is ARMED while watching for a trigger and LOCKED during
    the cooldown after a confirmed swing. Frames that cannot be used are
    dropped silently.
    """

    def __init__(self, config: Optional[SwingDetectorConfig] = None):
        self.config = config or SwingDetectorConfig()
        self._lock = threading.Lock()
        self._window = FrameWindow(horizon_ms=self.config.window_ms)
        self._state = DetectorState.ARMED
        self._locked_until_ms: Optional[float] = None
        self._side: Optional[SwingSide] = None

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def state(self) -> DetectorState:
        return self._state

    @property
    def side(self) -> Optional[SwingSide]:
        """Swinging arm, once resolved for this session."""
        return self._side

    @property
    def locked_until_ms(self) -> Optional[float]:
        return self._locked_until_ms

    @property
    def window_size(self) -> int:
        return len(self._window)

    def reset(self) -> None:
        """Back to ARMED with an empty window and handedness undecided."""
        with self._lock:
            self._window.clear()
            self._state = DetectorState.ARMED
            self._locked_until_ms = None
            self._side = None

    def clear_window(self) -> None:
        """Drop buffered frames but keep handedness and lock state."""
        with self._lock:
            self._window.clear()

    # -------------------------------------------------------------------------
    # Frame Processing
    # -------------------------------------------------------------------------

    def process_frame(self, frame: PoseFrame) -> Optional[SwingEvent]:
        """
        Feed one pose frame.

        Returns:
            SwingEvent when this frame confirms a swing, otherwise None
        """
        with self._lock:
            if self._state is DetectorState.LOCKED:
                if self._locked_until_ms is not None and frame.timestamp_ms < self._locked_until_ms:
                    return None
                self._state = DetectorState.ARMED
                self._locked_until_ms = None

            if self._side is None:
                self._side = self._resolve_side(frame)
                if self._side is None:
                    return None
                logger.info(f"Swinging arm resolved: {self._side.value}")

            if not self._is_trackable(frame, self._side):
                if len(self._window):
                    logger.debug("Tracking lost, clearing frame window")
                self._window.clear()
                return None

            if not self._window.accepts(frame):
                logger.debug(f"Dropping out-of-order frame at {frame.timestamp_ms}ms")
                return None

            self._window.append(frame)

            if len(self._window) < self.config.min_frames:
                return None

            return self._evaluate_window(frame.timestamp_ms, self._side)

    def _resolve_side(self, frame: PoseFrame) -> Optional[SwingSide]:
        """Pick the better-tracked wrist as the swinging arm."""
        threshold = self.config.min_visibility
        left = frame.get_landmark(BodyPart.LEFT_WRIST)
        right = frame.get_landmark(BodyPart.RIGHT_WRIST)
        left_vis = left.visibility if left is not None and left.is_visible(threshold) else None
        right_vis = right.visibility if right is not None and right.is_visible(threshold) else None

        if left_vis is None and right_vis is None:
            return None
        if right_vis is None:
            return SwingSide.LEFT
        if left_vis is None:
            return SwingSide.RIGHT
        return SwingSide.LEFT if left_vis > right_vis else SwingSide.RIGHT

    def _is_trackable(self, frame: PoseFrame, side: SwingSide) -> bool:
        return frame.are_visible(
            (side.wrist, BodyPart.LEFT_SHOULDER, BodyPart.RIGHT_SHOULDER),
            self.config.min_visibility,
        )

    def _evaluate_window(self, now_ms: float, side: SwingSide) -> Optional[SwingEvent]:
        """Check both trigger conditions against the current window."""
        frames = list(self._window.frames)
        wrist_part = side.wrist

        # Wrist speed peak
        peak_speed = 0.0
        peak_index = 0
        for i in range(1, len(frames)):
            prev_wrist = frames[i - 1].get_landmark(wrist_part)
            curr_wrist = frames[i].get_landmark(wrist_part)
            if prev_wrist is None or curr_wrist is None:
                continue
            speed = AngleCalculator.planar_speed(
                prev_wrist, curr_wrist, frames[i].timestamp_ms - frames[i - 1].timestamp_ms
            )
            if speed is not None and speed > peak_speed:
                peak_speed = speed
                peak_index = i

        # Condition A: explosive, but not instantaneous
        rise_time_ms = frames[peak_index].timestamp_ms - frames[0].timestamp_ms
        if peak_speed <= self.config.min_peak_speed:
            return None
        if not self.config.min_rise_ms <= rise_time_ms <= self.config.max_rise_ms:
            return None

        # Condition B: the trunk actually turned
        rotation = self._shoulder_rotation(frames[0], frames[peak_index])
        if rotation <= math.radians(self.config.min_rotation_deg):
            return None

        radius = self.config.slice_radius
        start = max(0, peak_index - radius)
        end = min(len(frames), peak_index + radius + 1)

        event = SwingEvent(
            frames=tuple(frames[start:end]),
            peak_index=peak_index - start,
            peak_speed=peak_speed,
            rotation_deg=math.degrees(rotation),
            rise_time_ms=rise_time_ms,
            side=side,
        )

        self._window.clear()
        self._state = DetectorState.LOCKED
        self._locked_until_ms = now_ms + self.config.cooldown_ms

        logger.info(
            f"Swing confirmed: peak speed {peak_speed:.2f}/s, "
            f"rotation {event.rotation_deg:.0f}°, rise {rise_time_ms:.0f}ms"
        )
        return event

    @staticmethod
    def _shoulder_rotation(first: PoseFrame, second: PoseFrame) -> float:
        """Wrapped change of the shoulder-line orientation, radians."""
        orientations = []
        for frame in (first, second):
            left = frame.get_landmark(BodyPart.LEFT_SHOULDER)
            right = frame.get_landmark(BodyPart.RIGHT_SHOULDER)
            if left is None or right is None:
                return 0.0
            orientations.append(AngleCalculator.line_orientation(left, right))
        return AngleCalculator.wrapped_angle_difference(orientations[0], orientations[1])
