"""
Coaching Session Controller

Thin orchestration around the swing detector: owns the session state,
runs metrics and evaluation for each confirmed swing, applies the
post-feedback lockout and hands results to the feedback delivery.
"""

import logging
import threading
from typing import Any, Optional

from ..config import SwingDetectorConfig
from ..domain.analysis import SessionMode, SessionState, SwingOutcome
from ..domain.pose import PoseFrame
from .feedback_delivery import FeedbackDelivery, NullFeedbackDelivery
from .feedback_evaluator import FeedbackEvaluator
from .metrics_calculator import MetricsCalculator
from .swing_detector import SwingDetector

logger = logging.getLogger(__name__)


class CoachingSessionController:
    """
    One live coaching session.

    Usage:
        controller = CoachingSessionController()
        controller.start_session()

        for frame in pose_source:
            outcome = controller.submit_frame(frame)
            if outcome:
                print(outcome.result.score, outcome.result.feedback)

        controller.stop_session()
    """

    def __init__(
        self,
        detector_config: Optional[SwingDetectorConfig] = None,
        delivery: Optional[FeedbackDelivery] = None,
        feedback_lockout_ms: float = 3000.0,
        metrics_min_visibility: float = MetricsCalculator.MIN_VISIBILITY,
        require_reliable_metrics: bool = True,
    ):
        self.detector = SwingDetector(detector_config)
        self.delivery: FeedbackDelivery = delivery or NullFeedbackDelivery()
        self.feedback_lockout_ms = feedback_lockout_ms
        self.metrics_min_visibility = metrics_min_visibility
        self.require_reliable_metrics = require_reliable_metrics

        self._lock = threading.Lock()
        self.state = SessionState()

    # -------------------------------------------------------------------------
    # Session Control
    # -------------------------------------------------------------------------

    def start_session(self) -> None:
        """Reset everything and start watching for swings."""
        with self._lock:
            self.delivery.cancel_pending()
            self.detector.reset()
            self.state = SessionState(mode=SessionMode.WATCHING)
        logger.info("Coaching session started")

    def stop_session(self) -> None:
        """Drop buffered frames and cancel feedback still in flight."""
        with self._lock:
            self.detector.reset()
            self.delivery.cancel_pending()
            self.state.mode = SessionMode.IDLE
            self.state.locked_until_ms = None
        logger.info(f"Coaching session stopped after {self.state.swing_count} swings")

    @property
    def is_active(self) -> bool:
        return self.state.mode is SessionMode.WATCHING

    # -------------------------------------------------------------------------
    # Frame Handling
    # -------------------------------------------------------------------------

    def submit_frame(self, frame: PoseFrame) -> Optional[SwingOutcome]:
        """
        Feed one pose frame into the session.

        Returns:
            SwingOutcome when this frame confirmed a swing, otherwise None
        """
        with self._lock:
            if self.state.mode is not SessionMode.WATCHING:
                return None

            self.state.last_timestamp_ms = frame.timestamp_ms

            if self.state.locked_until_ms is not None:
                if frame.timestamp_ms < self.state.locked_until_ms:
                    return None
                self.state.locked_until_ms = None

            event = self.detector.process_frame(frame)
            if self.state.swing_side is None:
                self.state.swing_side = self.detector.side
            if event is None:
                return None

            metrics = MetricsCalculator.calculate_metrics(
                event.frames, side=event.side, min_visibility=self.metrics_min_visibility
            )
            result = FeedbackEvaluator.evaluate(metrics)

            self.state.swing_count += 1
            self.state.last_result = result
            self.state.last_metrics = metrics
            self.state.locked_until_ms = frame.timestamp_ms + self.feedback_lockout_ms

            # Slices shorter than the metrics minimum score as all zeros
            deliver = len(event.frames) >= MetricsCalculator.MIN_FRAMES and (
                not self.require_reliable_metrics or metrics.is_reliable()
            )
            self.state.need_more_data = not deliver

            outcome = SwingOutcome(
                swing_number=self.state.swing_count,
                event=event,
                metrics=metrics,
                result=result,
                delivered=deliver,
            )

        logger.info(
            f"Swing #{outcome.swing_number}: score {result.score} ({result.category.value})"
        )
        if deliver:
            self.delivery.deliver(outcome)
        else:
            logger.info("Metrics too weak to coach on, feedback skipped")
        return outcome

    # -------------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------------

    def report_collaborator_failure(self, reason: str) -> None:
        """Record an external failure. Kinematic state is left alone."""
        self.state.last_error = reason

    @property
    def status(self) -> str:
        if self.state.mode is SessionMode.IDLE:
            return "idle"
        if self.state.is_locked_out:
            return "locked_out"
        if self.state.need_more_data:
            return "need_more_data"
        return "watching"

    def snapshot(self) -> dict[str, Any]:
        """Plain view of the session for the UI layer."""
        state = self.state
        last = state.last_result
        return {
            "status": self.status,
            "swing_count": state.swing_count,
            "last_result": None if last is None else {
                "score": last.score,
                "category": last.category.value,
                "feedback": last.feedback,
            },
            "side": state.swing_side.value if state.swing_side else None,
            "error": state.last_error,
        }
