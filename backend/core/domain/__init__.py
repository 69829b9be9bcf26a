"""
Domain Models

Pure data structures representing forehand swing analysis concepts.
No external dependencies - just Python dataclasses and enums.
"""

from .pose import (
    BodyPart,
    FrameWindow,
    HipCenter,
    NUM_LANDMARKS,
    PoseFrame,
    PoseLandmark,
    SwingSide,
)
from .analysis import (
    ContactMetrics,
    DetectorState,
    FeedbackCategory,
    FeedbackResult,
    SessionMode,
    SessionState,
    SwingEvent,
    SwingMetrics,
    SwingOutcome,
)

__all__ = [
    "BodyPart",
    "FrameWindow",
    "HipCenter",
    "NUM_LANDMARKS",
    "PoseFrame",
    "PoseLandmark",
    "SwingSide",
    "ContactMetrics",
    "DetectorState",
    "FeedbackCategory",
    "FeedbackResult",
    "SessionMode",
    "SessionState",
    "SwingEvent",
    "SwingMetrics",
    "SwingOutcome",
]
