"""
Shared fixtures for the unit tests.

Frames are built from a neutral standing pose: hips level, shoulders
centered above them, right arm out to the side. Tests only move the
joints they care about.
"""

import math

import pytest

from core.domain.pose import NUM_LANDMARKS, BodyPart, PoseFrame, PoseLandmark


SHOULDER_CENTER = (0.5, 0.3)
SHOULDER_HALF_WIDTH = 0.1


def build_frame(
    timestamp_ms: float,
    wrist_x: float = 0.5,
    wrist_y: float = 0.4,
    wrist_z: float = -0.1,
    left_wrist_x: float = 0.35,
    shoulder_deg: float = 0.0,
    right_wrist_visibility: float = 0.9,
    left_wrist_visibility: float = 0.5,
    shoulder_visibility: float = 0.9,
    hip_visibility: float = 0.9,
    frame_number: int = 0,
) -> PoseFrame:
    """One frame with the shoulder line turned `shoulder_deg` from the hips."""
    landmarks = [PoseLandmark(x=0.5, y=0.5, z=0.0, visibility=0.9) for _ in range(NUM_LANDMARKS)]

    theta = math.radians(shoulder_deg)
    cx, cy = SHOULDER_CENTER
    dx = SHOULDER_HALF_WIDTH * math.cos(theta)
    dy = SHOULDER_HALF_WIDTH * math.sin(theta)
    landmarks[BodyPart.LEFT_SHOULDER] = PoseLandmark(cx - dx, cy - dy, 0.0, shoulder_visibility)
    landmarks[BodyPart.RIGHT_SHOULDER] = PoseLandmark(cx + dx, cy + dy, 0.0, shoulder_visibility)

    landmarks[BodyPart.LEFT_HIP] = PoseLandmark(0.4, 0.6, 0.0, hip_visibility)
    landmarks[BodyPart.RIGHT_HIP] = PoseLandmark(0.6, 0.6, 0.0, hip_visibility)

    landmarks[BodyPart.RIGHT_ELBOW] = PoseLandmark(0.6, 0.35, -0.05, 0.9)
    landmarks[BodyPart.RIGHT_WRIST] = PoseLandmark(wrist_x, wrist_y, wrist_z, right_wrist_visibility)
    landmarks[BodyPart.LEFT_WRIST] = PoseLandmark(left_wrist_x, 0.45, 0.0, left_wrist_visibility)

    return PoseFrame.from_landmarks(landmarks, timestamp_ms=timestamp_ms, frame_number=frame_number)


def build_swing(start_ms: float = 0.0, rotation_deg: float = 45.0) -> list[PoseFrame]:
    """
    Six frames, 40ms apart, ending in a forehand.

    The wrist moves at 0.5 units/s, then 1.0 units/s into the last frame.
    The shoulders creep round and snap to `rotation_deg` on the last frame,
    so only the last frame can satisfy both trigger conditions.
    """
    wrist_xs = [0.5, 0.52, 0.54, 0.56, 0.58, 0.62]
    turns = [0.0, 5.0, 10.0, 15.0, 20.0, rotation_deg]
    return [
        build_frame(start_ms + i * 40.0, wrist_x=x, shoulder_deg=turn, frame_number=i)
        for i, (x, turn) in enumerate(zip(wrist_xs, turns))
    ]


def build_quick_swing(start_ms: float = 0.0, rotation_deg: float = 45.0) -> list[PoseFrame]:
    """
    Four frames over 112.5ms: the shortest window that can fire.

    Wrist speeds are 0.5, 0.5 and 1.0 units/s; the shoulder line turns
    by `rotation_deg` between the first and last frame.
    """
    wrist_xs = [0.5, 0.51875, 0.5375, 0.575]
    turns = [0.0, rotation_deg / 3, 2 * rotation_deg / 3, rotation_deg]
    return [
        build_frame(start_ms + i * 37.5, wrist_x=x, shoulder_deg=turn, frame_number=i)
        for i, (x, turn) in enumerate(zip(wrist_xs, turns))
    ]


def build_trigger_window(start_ms: float = 0.0, rotation_deg: float = 45.0) -> list[PoseFrame]:
    """
    Five frames over 150ms with the wrist speed peak on frame 3.

    Wrist speeds are 0.5, 0.5, 1.0 and 0.5 units/s. The shoulder line
    reaches `rotation_deg` at the peak and holds it on the last frame.
    """
    wrist_xs = [0.5, 0.51875, 0.5375, 0.575, 0.59375]
    turns = [0.0, rotation_deg / 3, 2 * rotation_deg / 3, rotation_deg, rotation_deg]
    return [
        build_frame(start_ms + i * 37.5, wrist_x=x, shoulder_deg=turn, frame_number=i)
        for i, (x, turn) in enumerate(zip(wrist_xs, turns))
    ]


def frame_to_json(frame: PoseFrame) -> dict:
    """Frame as the client sends it over the wire."""
    return {
        "landmarks": [
            {"x": lm.x, "y": lm.y, "z": lm.z, "visibility": lm.visibility}
            for lm in frame.landmarks
        ],
        "timestamp_ms": frame.timestamp_ms,
        "frame_number": frame.frame_number,
    }


@pytest.fixture
def make_frame():
    return build_frame


@pytest.fixture
def swing_frames():
    return build_swing


@pytest.fixture
def quick_swing_frames():
    return build_quick_swing


@pytest.fixture
def trigger_window_frames():
    return build_trigger_window


@pytest.fixture
def frame_json():
    return frame_to_json
