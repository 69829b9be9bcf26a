"""
Pose Detector Service

Server-side pose frame source: wraps MediaPipe Pose and turns images,
base64 frames or video files into PoseFrames for the swing detector.

Needs the optional `vision` extra (mediapipe, opencv-python). Import
this module lazily so the rest of the service runs without it.

Note: MediaPipe's type stubs are incomplete, so we use type: ignore comments
for mp.solutions access.
"""

import base64
from typing import Any, Generator, List, Optional

import cv2
import mediapipe as mp
import numpy as np

from ..domain.pose import PoseFrame, PoseLandmark


class PoseDetector:
    """
    Detects human body pose using MediaPipe Pose.

    Usage:
        with PoseDetector() as detector:
            frame = detector.detect_pose(image, timestamp_ms=now_ms)

            for frame in detector.process_video("forehand.mp4"):
                controller.submit_frame(frame)
    """

    _mp_pose: Any

    def __init__(
        self,
        model_complexity: int = 1,
        min_detection_confidence: float = 0.5,
        min_tracking_confidence: float = 0.5,
    ):
        """
        Initialize the pose detector.

        Args:
            model_complexity: 0, 1, or 2. Higher = more accurate but slower.
                             0 keeps up with a live webcam.
            min_detection_confidence: Minimum confidence for person detection.
            min_tracking_confidence: Minimum confidence for landmark tracking.
        """
        self._mp_pose = mp.solutions.pose  # type: ignore[attr-defined]

        self.pose = self._mp_pose.Pose(
            static_image_mode=False,
            model_complexity=model_complexity,
            smooth_landmarks=True,
            enable_segmentation=False,
            min_detection_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence,
        )

    def __enter__(self) -> "PoseDetector":
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[Any]
    ) -> None:
        self.close()

    def close(self) -> None:
        """Release MediaPipe resources."""
        self.pose.close()

    # -------------------------------------------------------------------------
    # Core Detection Methods
    # -------------------------------------------------------------------------

    def detect_pose(
        self,
        image: np.ndarray,
        timestamp_ms: float = 0,
        frame_number: int = 0
    ) -> Optional[PoseFrame]:
        """
        Detect pose in a single BGR image.

        Returns:
            PoseFrame with 33 landmarks, or None if no person detected
        """
        # MediaPipe expects RGB
        if len(image.shape) == 3 and image.shape[2] == 3:
            image_rgb = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
        else:
            image_rgb = image

        results = self.pose.process(image_rgb)

        if not results.pose_landmarks:
            return None

        return PoseFrame.from_landmarks(
            self._convert_landmarks(results.pose_landmarks.landmark),
            timestamp_ms=timestamp_ms,
            frame_number=frame_number,
        )

    def detect_from_base64(
        self,
        base64_image: str,
        timestamp_ms: float = 0,
        frame_number: int = 0
    ) -> Optional[PoseFrame]:
        """
        Detect pose from a base64-encoded JPEG/PNG.

        Returns:
            PoseFrame or None if the image could not be decoded
            or no person was found
        """
        image_bytes = base64.b64decode(base64_image)
        nparr = np.frombuffer(image_bytes, np.uint8)
        image = cv2.imdecode(nparr, cv2.IMREAD_COLOR)

        if image is None:
            return None

        return self.detect_pose(image, timestamp_ms, frame_number)

    def process_video(
        self,
        video_path: str,
        max_frames: Optional[int] = None,
    ) -> Generator[PoseFrame, None, None]:
        """
        Replay a video file as a pose stream.

        Timestamps come from the video's frame rate, so a replay
        looks to the detector exactly like a live camera.

        Yields:
            PoseFrame for each frame where a pose was detected
        """
        cap = cv2.VideoCapture(video_path)

        if not cap.isOpened():
            raise ValueError(f"Could not open video: {video_path}")

        fps = cap.get(cv2.CAP_PROP_FPS) or 30.0
        frame_count = 0
        processed_count = 0

        try:
            while True:
                ret, frame = cap.read()
                if not ret:
                    break

                timestamp_ms = (frame_count / fps) * 1000
                pose_frame = self.detect_pose(frame, timestamp_ms=timestamp_ms, frame_number=frame_count)
                frame_count += 1

                if pose_frame:
                    yield pose_frame
                    processed_count += 1

                if max_frames and processed_count >= max_frames:
                    break
        finally:
            cap.release()

    # -------------------------------------------------------------------------
    # Private Helper Methods
    # -------------------------------------------------------------------------

    @staticmethod
    def _convert_landmarks(mp_landmarks: Any) -> List[PoseLandmark]:
        """Convert MediaPipe landmarks to our domain model."""
        return [
            PoseLandmark(
                x=mp_lm.x,
                y=mp_lm.y,
                z=mp_lm.z,
                visibility=min(max(float(mp_lm.visibility), 0.0), 1.0),
            )
            for mp_lm in mp_landmarks
        ]
