"""
Pose API Schemas

Pydantic models for pose-related API requests and responses.
These define the JSON structure for communication with the frontend.
"""

from pydantic import BaseModel, Field
from typing import Optional, List
from enum import Enum

from core.domain.pose import PoseFrame, PoseLandmark


class LandmarkSchema(BaseModel):
    """
    Single body landmark.

    Coordinates are normalized (roughly 0.0 to 1.0; off-screen joints
    may fall outside). The list index is the MediaPipe landmark index.
    """
    x: float = Field(..., description="Horizontal position (0=left, 1=right)")
    y: float = Field(..., description="Vertical position (0=top, 1=bottom)")
    z: float = Field(0.0, description="Depth (negative=closer to camera)")
    visibility: float = Field(1.0, ge=0.0, le=1.0, description="Detection confidence")

    class Config:
        json_schema_extra = {
            "example": {
                "x": 0.45,
                "y": 0.32,
                "z": -0.15,
                "visibility": 0.95
            }
        }

    def to_domain(self) -> PoseLandmark:
        return PoseLandmark(x=self.x, y=self.y, z=self.z, visibility=self.visibility)


class PoseFrameSchema(BaseModel):
    """
    One timestamped pose: 33 MediaPipe landmarks.
    """
    landmarks: List[LandmarkSchema] = Field(..., description="Body landmarks in MediaPipe order")
    timestamp_ms: float = Field(..., ge=0, description="Capture time in milliseconds")
    frame_number: int = Field(0, ge=0, description="Sequential frame number")

    class Config:
        json_schema_extra = {
            "example": {
                "landmarks": [
                    {"x": 0.5, "y": 0.2, "z": 0.0, "visibility": 0.99}
                ],
                "timestamp_ms": 1500.0,
                "frame_number": 45
            }
        }

    def to_domain(self) -> PoseFrame:
        return PoseFrame.from_landmarks(
            [lm.to_domain() for lm in self.landmarks],
            timestamp_ms=self.timestamp_ms,
            frame_number=self.frame_number,
        )

    @classmethod
    def from_domain(cls, frame: PoseFrame) -> "PoseFrameSchema":
        return cls(
            landmarks=[
                LandmarkSchema(x=lm.x, y=lm.y, z=lm.z, visibility=lm.visibility)
                for lm in frame.landmarks
            ],
            timestamp_ms=frame.timestamp_ms,
            frame_number=frame.frame_number,
        )


class PoseDetectionRequest(BaseModel):
    """
    Request to detect pose in a base64-encoded image.
    """
    image_base64: str = Field(..., description="Base64 encoded JPEG/PNG image")
    timestamp_ms: float = Field(0, ge=0, description="Optional timestamp")
    frame_number: int = Field(0, ge=0, description="Optional frame number")


class PoseDetectionResponse(BaseModel):
    """
    Response from pose detection.
    """
    success: bool = Field(..., description="Whether detection succeeded")
    pose: Optional[PoseFrameSchema] = Field(None, description="Detected pose (null if no person found)")
    error: Optional[str] = Field(None, description="Error message if failed")
    processing_time_ms: float = Field(..., description="Time taken to process in milliseconds")


# =============================================================================
# WebSocket Message Schemas
# =============================================================================

class WebSocketMessageType(str, Enum):
    """Types of WebSocket messages."""
    # Client -> Server
    FRAME = "frame"                    # Pose landmarks or an image to detect
    START_SESSION = "start_session"    # Start (or restart) coaching
    END_SESSION = "end_session"        # Stop coaching and close
    GET_STATUS = "get_status"          # Ask for the session snapshot

    # Server -> Client
    POSE_RESULT = "pose_result"        # Pose detected from an image frame
    SWING_DETECTED = "swing_detected"  # Confirmed swing with metrics and score
    COACHING_FEEDBACK = "coaching_feedback"  # Final text (and audio) for a swing
    STATUS = "status"                  # Session snapshot
    ERROR = "error"
    SESSION_STARTED = "session_started"
    SESSION_ENDED = "session_ended"


class WebSocketMessage(BaseModel):
    """
    Base WebSocket message structure.

    All WebSocket communication uses this format.
    """
    type: WebSocketMessageType = Field(..., description="Message type")
    data: dict = Field(default_factory=dict, description="Message payload")
    timestamp: int = Field(0, description="Unix timestamp in milliseconds")


class FrameMessage(BaseModel):
    """
    Payload of a `frame` message.

    Either landmarks from a client-side pose model, or an image for
    the server-side MediaPipe detector.
    """
    landmarks: Optional[List[LandmarkSchema]] = Field(None, description="Client-detected landmarks")
    image_base64: Optional[str] = Field(None, description="Base64 encoded frame")
    timestamp_ms: Optional[float] = Field(None, ge=0, description="Capture time in milliseconds")
    frame_number: int = Field(0, ge=0, description="Frame sequence number")
