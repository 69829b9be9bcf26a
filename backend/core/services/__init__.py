"""
Services Layer

Business logic services for forehand swing coaching.
PoseDetector (MediaPipe) is not imported here; load it from
core.services.pose_detector when the vision extra is installed.
"""

from .angle_calculator import AngleCalculator
from .swing_detector import SwingDetector
from .metrics_calculator import MetricsCalculator
from .feedback_evaluator import FeedbackEvaluator, FEEDBACK_TEMPLATES
from .feedback_provider import (
    FeedbackNotConfigured,
    FeedbackServiceError,
    GeminiFeedbackProvider,
    GeminiSpeechProvider,
    TemplateFeedbackProvider,
    create_feedback_provider,
    create_speech_provider,
)
from .feedback_delivery import AsyncFeedbackDispatcher, CoachingMessage, NullFeedbackDelivery
from .session_controller import CoachingSessionController

__all__ = [
    "AngleCalculator",
    "SwingDetector",
    "MetricsCalculator",
    "FeedbackEvaluator",
    "FEEDBACK_TEMPLATES",
    "FeedbackNotConfigured",
    "FeedbackServiceError",
    "GeminiFeedbackProvider",
    "GeminiSpeechProvider",
    "TemplateFeedbackProvider",
    "create_feedback_provider",
    "create_speech_provider",
    "AsyncFeedbackDispatcher",
    "CoachingMessage",
    "NullFeedbackDelivery",
    "CoachingSessionController",
]
