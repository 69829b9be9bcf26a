"""
API Schemas

Pydantic models for request/response validation.
"""

from .pose import (
    LandmarkSchema,
    PoseFrameSchema,
    PoseDetectionRequest,
    PoseDetectionResponse,
    WebSocketMessageType,
    WebSocketMessage,
    FrameMessage,
)

from .analysis import (
    SwingSideEnum,
    FeedbackCategoryEnum,
    ContactMetricsSchema,
    SwingMetricsSchema,
    FeedbackResultSchema,
    SwingOutcomeSchema,
    MetricsRequest,
    FeedbackTextResponse,
    SpeechRequest,
    SessionStatusSchema,
    VideoAnalysisResponse,
    HealthResponse,
)

__all__ = [
    # Pose schemas
    "LandmarkSchema",
    "PoseFrameSchema",
    "PoseDetectionRequest",
    "PoseDetectionResponse",
    "WebSocketMessageType",
    "WebSocketMessage",
    "FrameMessage",
    # Analysis schemas
    "SwingSideEnum",
    "FeedbackCategoryEnum",
    "ContactMetricsSchema",
    "SwingMetricsSchema",
    "FeedbackResultSchema",
    "SwingOutcomeSchema",
    "MetricsRequest",
    "FeedbackTextResponse",
    "SpeechRequest",
    "SessionStatusSchema",
    "VideoAnalysisResponse",
    "HealthResponse",
]
