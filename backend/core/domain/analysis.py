"""
Swing Analysis Domain Models

Data structures for representing forehand swing detection results,
biomechanical metrics, feedback and coaching session state.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .pose import PoseFrame, SwingSide


class DetectorState(Enum):
    """
    Swing detector states.

    - ARMED: watching the frame window for a trigger
    - LOCKED: post-swing cooldown, frames are ignored
    """
    ARMED = "armed"
    LOCKED = "locked"


class SessionMode(Enum):
    """Coaching session mode."""
    IDLE = "idle"
    WATCHING = "watching"


class FeedbackCategory(Enum):
    """
    Feedback categories, in the order the evaluator checks them.
    """
    POWERFUL = "powerful"
    GOOD = "good"
    LOW_ROTATION = "low_rotation"
    SLOW_SWING = "slow_swing"
    UNEVEN_RHYTHM = "uneven_rhythm"


@dataclass(frozen=True)
class SwingEvent:
    """
    A confirmed swing emitted by the detector.

    Attributes:
        frames: Sub-sequence centered on the peak frame
        peak_index: Index of the peak-speed frame within `frames`
        peak_speed: Peak wrist planar speed (normalized units / second)
        rotation_deg: Shoulder-line rotation from window start to peak
        rise_time_ms: Time from window start to the peak frame
        side: Swinging arm
    """
    frames: tuple[PoseFrame, ...]
    peak_index: int
    peak_speed: float
    rotation_deg: float
    rise_time_ms: float
    side: SwingSide

    @property
    def peak_frame(self) -> PoseFrame:
        return self.frames[self.peak_index]

    @property
    def timestamp_ms(self) -> float:
        return self.peak_frame.timestamp_ms


@dataclass(frozen=True)
class ContactMetrics:
    """
    Snapshot of the arm at the contact frame (proxied by peak wrist speed).

    Attributes:
        distance_from_core: Hip-center to wrist distance, rough cm scale
        arm_angle: Angle between upper arm and forearm (degrees)
        is_front_contact: Wrist closer to the camera than the shoulder
    """
    distance_from_core: int = 0
    arm_angle: int = 0
    is_front_contact: bool = False


@dataclass(frozen=True)
class SwingMetrics:
    """
    Biomechanical summary of one swing.

    All-zero when the swing had too little data.
    """
    max_shoulder_turn: int = 0
    peak_arm_speed: int = 0
    contact_metrics: ContactMetrics = field(default_factory=ContactMetrics)
    swing_rhythm: int = 0

    def is_reliable(
        self,
        min_shoulder_turn: int = 10,
        min_arm_speed: int = 20,
        min_distance_from_core: int = 10,
    ) -> bool:
        """Whether the numbers are plausible enough to coach on."""
        return (
            self.max_shoulder_turn > min_shoulder_turn
            and self.peak_arm_speed > min_arm_speed
            and self.contact_metrics.distance_from_core > min_distance_from_core
        )


@dataclass(frozen=True)
class FeedbackResult:
    """
    Score and short coaching message for one swing.

    Attributes:
        score: 0-100 composite rating
        category: Which rule of the decision table matched
        feedback: Human-readable message
    """
    score: int
    category: FeedbackCategory
    feedback: str

    @property
    def grade(self) -> str:
        """Convert score to letter grade."""
        if self.score >= 90:
            return "A"
        elif self.score >= 80:
            return "B"
        elif self.score >= 70:
            return "C"
        elif self.score >= 60:
            return "D"
        else:
            return "F"


@dataclass(frozen=True)
class SwingOutcome:
    """Everything the session produced for one confirmed swing."""
    swing_number: int
    event: SwingEvent
    metrics: SwingMetrics
    result: FeedbackResult
    delivered: bool


@dataclass
class SessionState:
    """
    Mutable coaching session state.

    Owned by the session controller; created at session start and
    discarded at session stop.
    """
    mode: SessionMode = SessionMode.IDLE
    swing_count: int = 0
    locked_until_ms: Optional[float] = None
    last_result: Optional[FeedbackResult] = None
    last_metrics: Optional[SwingMetrics] = None
    swing_side: Optional[SwingSide] = None
    last_error: Optional[str] = None
    need_more_data: bool = False
    last_timestamp_ms: Optional[float] = None

    @property
    def is_locked_out(self) -> bool:
        if self.locked_until_ms is None or self.last_timestamp_ms is None:
            return False
        return self.last_timestamp_ms < self.locked_until_ms
