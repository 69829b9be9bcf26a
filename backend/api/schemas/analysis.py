"""
Analysis API Schemas

Pydantic models for swing metrics, feedback and session status.
"""

from pydantic import BaseModel, Field
from typing import Optional, List
from enum import Enum

from core.domain.analysis import (
    ContactMetrics,
    FeedbackResult,
    SwingMetrics,
    SwingOutcome,
)
from core.domain.pose import SwingSide
from .pose import PoseFrameSchema


class SwingSideEnum(str, Enum):
    """Swinging arm for API."""
    LEFT = "left"
    RIGHT = "right"

    def to_domain(self) -> SwingSide:
        return SwingSide(self.value)


class FeedbackCategoryEnum(str, Enum):
    """Feedback categories for API."""
    POWERFUL = "powerful"
    GOOD = "good"
    LOW_ROTATION = "low_rotation"
    SLOW_SWING = "slow_swing"
    UNEVEN_RHYTHM = "uneven_rhythm"


class ContactMetricsSchema(BaseModel):
    """Arm snapshot at the contact frame."""
    distance_from_core: int = Field(0, ge=0, description="Hip-center to wrist distance (approx. cm)")
    arm_angle: int = Field(0, ge=0, le=180, description="Upper arm vs forearm angle (degrees)")
    is_front_contact: bool = Field(False, description="Wrist in front of the shoulder at contact")


class SwingMetricsSchema(BaseModel):
    """
    Biomechanical metrics for one swing.
    """
    max_shoulder_turn: int = Field(0, ge=0, description="Max shoulder-vs-hip angle (degrees)")
    peak_arm_speed: int = Field(0, ge=0, le=100, description="Wrist speed score")
    contact_metrics: ContactMetricsSchema = Field(default_factory=ContactMetricsSchema)
    swing_rhythm: int = Field(0, ge=0, le=100, description="Smoothness score")

    class Config:
        json_schema_extra = {
            "example": {
                "max_shoulder_turn": 62,
                "peak_arm_speed": 78,
                "contact_metrics": {
                    "distance_from_core": 85,
                    "arm_angle": 24,
                    "is_front_contact": True
                },
                "swing_rhythm": 91
            }
        }

    @classmethod
    def from_domain(cls, metrics: SwingMetrics) -> "SwingMetricsSchema":
        contact = metrics.contact_metrics
        return cls(
            max_shoulder_turn=metrics.max_shoulder_turn,
            peak_arm_speed=metrics.peak_arm_speed,
            contact_metrics=ContactMetricsSchema(
                distance_from_core=contact.distance_from_core,
                arm_angle=contact.arm_angle,
                is_front_contact=contact.is_front_contact,
            ),
            swing_rhythm=metrics.swing_rhythm,
        )

    def to_domain(self) -> SwingMetrics:
        contact = self.contact_metrics
        return SwingMetrics(
            max_shoulder_turn=self.max_shoulder_turn,
            peak_arm_speed=self.peak_arm_speed,
            contact_metrics=ContactMetrics(
                distance_from_core=contact.distance_from_core,
                arm_angle=contact.arm_angle,
                is_front_contact=contact.is_front_contact,
            ),
            swing_rhythm=self.swing_rhythm,
        )


class FeedbackResultSchema(BaseModel):
    """
    Score and message for a swing.
    """
    score: int = Field(..., ge=0, le=100, description="Composite score out of 100")
    grade: str = Field(..., description="Letter grade (A-F)")
    category: FeedbackCategoryEnum = Field(..., description="Decision table category")
    feedback: str = Field(..., description="Short coaching message")

    @classmethod
    def from_domain(cls, result: FeedbackResult) -> "FeedbackResultSchema":
        return cls(
            score=result.score,
            grade=result.grade,
            category=FeedbackCategoryEnum(result.category.value),
            feedback=result.feedback,
        )


class SwingOutcomeSchema(BaseModel):
    """One confirmed swing with its analysis."""
    swing_number: int = Field(..., ge=1)
    timestamp_ms: float = Field(..., description="Timestamp of the peak (contact) frame")
    side: SwingSideEnum
    peak_speed: float = Field(..., description="Raw peak wrist speed (units/second)")
    rotation_deg: float = Field(..., description="Shoulder rotation into the peak (degrees)")
    metrics: SwingMetricsSchema
    result: FeedbackResultSchema
    delivered: bool = Field(True, description="Whether feedback was sent to the player")

    @classmethod
    def from_domain(cls, outcome: SwingOutcome) -> "SwingOutcomeSchema":
        return cls(
            swing_number=outcome.swing_number,
            timestamp_ms=outcome.event.timestamp_ms,
            side=SwingSideEnum(outcome.event.side.value),
            peak_speed=round(outcome.event.peak_speed, 3),
            rotation_deg=round(outcome.event.rotation_deg, 1),
            metrics=SwingMetricsSchema.from_domain(outcome.metrics),
            result=FeedbackResultSchema.from_domain(outcome.result),
            delivered=outcome.delivered,
        )


class MetricsRequest(BaseModel):
    """
    Request to compute metrics for a finished swing.
    """
    frames: List[PoseFrameSchema] = Field(..., description="Frames of one swing, in time order")
    side: SwingSideEnum = Field(SwingSideEnum.RIGHT, description="Swinging arm")


class FeedbackTextResponse(BaseModel):
    """Coaching comment for a swing."""
    feedback: str = Field(..., description="Natural-language coaching")
    score: int = Field(..., ge=0, le=100)
    source: str = Field(..., description="'gemini' or 'template'")


class SpeechRequest(BaseModel):
    """Text to turn into speech."""
    text: str = Field(..., min_length=1, max_length=500)


class SessionStatusSchema(BaseModel):
    """
    What the UI needs to render a session.
    """
    status: str = Field(..., description="idle, watching, locked_out or need_more_data")
    swing_count: int = Field(0, ge=0)
    last_result: Optional[dict] = Field(None, description="score, category, feedback of the last swing")
    side: Optional[SwingSideEnum] = None
    error: Optional[str] = Field(None, description="Last external service failure")


class VideoAnalysisResponse(BaseModel):
    """
    Swings found by replaying an uploaded video.
    """
    frames_processed: int = Field(..., ge=0)
    swing_count: int = Field(..., ge=0)
    swings: List[SwingOutcomeSchema] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """
    Health check response.
    """
    status: str = Field("healthy", description="Service status")
    version: str = Field(..., description="API version")
    mediapipe_available: bool = Field(..., description="Whether MediaPipe is working")
    feedback_provider: str = Field(..., description="'gemini' or 'template'")
    speech_available: bool = Field(..., description="Whether a speech provider is configured")
