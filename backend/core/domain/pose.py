"""
Pose Domain Models

Data structures for representing human body pose landmarks
streamed from the pose estimator (MediaPipe Pose or the browser client).

MediaPipe Pose returns 33 landmarks:
https://developers.google.com/mediapipe/solutions/vision/pose_landmarker
"""
from collections import deque
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Optional, Sequence


class BodyPart(IntEnum):
    """
    MediaPipe Pose landmark indices.

    These map directly to MediaPipe's 33-point pose model.
    Only the indices the forehand analysis reads are named here.
    """
    NOSE = 0

    # Upper body
    LEFT_SHOULDER = 11
    RIGHT_SHOULDER = 12
    LEFT_ELBOW = 13
    RIGHT_ELBOW = 14
    LEFT_WRIST = 15
    RIGHT_WRIST = 16

    # Lower body
    LEFT_HIP = 23
    RIGHT_HIP = 24


NUM_LANDMARKS = 33


class SwingSide(Enum):
    """Which arm swings the racket. Resolved once per session."""
    LEFT = "left"
    RIGHT = "right"

    @property
    def shoulder(self) -> BodyPart:
        return BodyPart.LEFT_SHOULDER if self is SwingSide.LEFT else BodyPart.RIGHT_SHOULDER

    @property
    def elbow(self) -> BodyPart:
        return BodyPart.LEFT_ELBOW if self is SwingSide.LEFT else BodyPart.RIGHT_ELBOW

    @property
    def wrist(self) -> BodyPart:
        return BodyPart.LEFT_WRIST if self is SwingSide.LEFT else BodyPart.RIGHT_WRIST


@dataclass(frozen=True)
class PoseLandmark:
    """
    A single body landmark with 3D coordinates and visibility.

    Attributes:
        x: Horizontal position (0.0 = left edge, 1.0 = right edge)
        y: Vertical position (0.0 = top edge, 1.0 = bottom edge)
        z: Depth (smaller = closer to camera)
        visibility: Confidence score (0.0 to 1.0)

    Note:
        Coordinates are normalized to image dimensions.
        Frozen because a frame is never changed after ingestion.
    """
    x: float
    y: float
    z: float = 0.0
    visibility: float = 1.0

    def __post_init__(self) -> None:
        if not 0.0 <= self.visibility <= 1.0:
            raise ValueError("Landmark visibility must be between 0 and 1")

    def is_visible(self, threshold: float) -> bool:
        """Visible only when confidence strictly exceeds the threshold."""
        return self.visibility > threshold

    def to_pixel(self, width: int, height: int) -> tuple[int, int]:
        """Convert normalized coordinates to pixel coordinates."""
        return (int(self.x * width), int(self.y * height))


@dataclass(frozen=True)
class PoseFrame:
    """
    A complete pose detection result for a single camera frame.

    Attributes:
        landmarks: Landmarks indexed by BodyPart value (33 for MediaPipe)
        timestamp_ms: Monotonic capture time in milliseconds
        frame_number: Sequential frame number, if the source provides one
    """
    landmarks: tuple[PoseLandmark, ...]
    timestamp_ms: float
    frame_number: int = 0

    @classmethod
    def from_landmarks(
        cls,
        landmarks: Sequence[PoseLandmark],
        timestamp_ms: float,
        frame_number: int = 0,
    ) -> "PoseFrame":
        return cls(landmarks=tuple(landmarks), timestamp_ms=float(timestamp_ms), frame_number=frame_number)

    def get_landmark(self, body_part: BodyPart) -> Optional[PoseLandmark]:
        """Get a specific landmark by body part."""
        index = body_part.value
        if 0 <= index < len(self.landmarks):
            return self.landmarks[index]
        return None

    def visible_landmark(self, body_part: BodyPart, threshold: float) -> Optional[PoseLandmark]:
        """Get a landmark only if it passes the visibility threshold."""
        landmark = self.get_landmark(body_part)
        if landmark is not None and landmark.is_visible(threshold):
            return landmark
        return None

    def are_visible(self, body_parts: Sequence[BodyPart], threshold: float) -> bool:
        return all(self.visible_landmark(part, threshold) is not None for part in body_parts)

    @property
    def confidence(self) -> float:
        """Overall detection confidence (average visibility)."""
        if not self.landmarks:
            return 0.0
        return sum(lm.visibility for lm in self.landmarks) / len(self.landmarks)


@dataclass(frozen=True)
class HipCenter:
    """Midpoint of the two hips, only built when both are visible."""
    x: float
    y: float
    z: float

    @classmethod
    def from_frame(cls, frame: PoseFrame, threshold: float) -> Optional["HipCenter"]:
        left_hip = frame.visible_landmark(BodyPart.LEFT_HIP, threshold)
        right_hip = frame.visible_landmark(BodyPart.RIGHT_HIP, threshold)
        if left_hip is None or right_hip is None:
            return None
        return cls(
            x=(left_hip.x + right_hip.x) / 2,
            y=(left_hip.y + right_hip.y) / 2,
            z=(left_hip.z + right_hip.z) / 2,
        )


@dataclass
class FrameWindow:
    """
    Sliding, time-bounded buffer of recent frames.

    Frames are strictly increasing in timestamp. Retention is by elapsed
    time relative to the newest frame, never by count.
    """
    horizon_ms: float
    frames: deque[PoseFrame] = field(default_factory=deque)

    def __len__(self) -> int:
        return len(self.frames)

    @property
    def newest_timestamp(self) -> Optional[float]:
        return self.frames[-1].timestamp_ms if self.frames else None

    def accepts(self, frame: PoseFrame) -> bool:
        newest = self.newest_timestamp
        return newest is None or frame.timestamp_ms > newest

    def append(self, frame: PoseFrame) -> None:
        """Append a frame and drop anything older than the horizon."""
        self.frames.append(frame)
        cutoff = frame.timestamp_ms - self.horizon_ms
        while self.frames and self.frames[0].timestamp_ms < cutoff:
            self.frames.popleft()

    def clear(self) -> None:
        self.frames.clear()
