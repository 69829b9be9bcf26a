"""
WebSocket Handler

Live forehand coaching over a WebSocket connection.
The frontend streams pose frames (landmarks from its own pose model, or
camera images for server-side MediaPipe) and receives swing detections,
scores and coaching feedback as they happen.
"""

import time
import logging
from dataclasses import dataclass
from typing import Any, Optional
from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from .schemas import (
    FrameMessage,
    PoseFrameSchema,
    SessionStatusSchema,
    SwingOutcomeSchema,
    WebSocketMessage,
    WebSocketMessageType,
)
from core.config import Settings, get_settings
from core.domain.pose import PoseFrame
from core.services import (
    AsyncFeedbackDispatcher,
    CoachingMessage,
    CoachingSessionController,
    create_feedback_provider,
    create_speech_provider,
)

# Configure logging
logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


def session_status(controller: CoachingSessionController) -> dict:
    return SessionStatusSchema(**controller.snapshot()).model_dump(mode="json")


@dataclass
class CoachConnection:
    """Per-connection coaching state."""
    controller: CoachingSessionController
    dispatcher: AsyncFeedbackDispatcher
    pose_detector: Optional[Any] = None


class ConnectionManager:
    """
    Manages WebSocket connections.

    Every connection gets its own coaching session; nothing is shared.
    """

    def __init__(self):
        self.active_connections: list[WebSocket] = []
        self.sessions: dict[WebSocket, CoachConnection] = {}

    async def connect(self, websocket: WebSocket, settings: Settings) -> CoachConnection:
        """Accept new WebSocket connection and build its session."""
        await websocket.accept()
        self.active_connections.append(websocket)

        async def send_feedback(message: CoachingMessage) -> None:
            await self.send_message(websocket, WebSocketMessageType.COACHING_FEEDBACK, {
                "swing_number": message.swing_number,
                "score": message.score,
                "feedback": message.text,
                "audio_base64": message.audio_base64,
            })

        dispatcher = AsyncFeedbackDispatcher(
            send=send_feedback,
            text_provider=create_feedback_provider(settings),
            speech_provider=create_speech_provider(settings),
        )
        controller = CoachingSessionController(
            detector_config=settings.detector_config(),
            delivery=dispatcher,
            feedback_lockout_ms=settings.feedback_lockout_ms,
            metrics_min_visibility=settings.metrics_min_visibility,
            require_reliable_metrics=settings.require_reliable_metrics,
        )
        dispatcher.on_failure = controller.report_collaborator_failure

        connection = CoachConnection(controller=controller, dispatcher=dispatcher)
        self.sessions[websocket] = connection

        logger.info(f"New WebSocket connection. Total: {len(self.active_connections)}")
        return connection

    def disconnect(self, websocket: WebSocket) -> None:
        """Handle WebSocket disconnection."""
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)

        connection = self.sessions.pop(websocket, None)
        if connection is not None:
            connection.controller.stop_session()
            if connection.pose_detector is not None:
                connection.pose_detector.close()

        logger.info(f"WebSocket disconnected. Remaining: {len(self.active_connections)}")

    async def send_json(self, websocket: WebSocket, data: dict) -> None:
        """Send JSON data to a specific connection."""
        try:
            await websocket.send_json(data)
        except Exception as e:
            logger.error(f"Failed to send WebSocket message: {e}")

    async def send_message(
        self,
        websocket: WebSocket,
        msg_type: WebSocketMessageType,
        data: dict,
    ) -> None:
        message = WebSocketMessage(type=msg_type, data=data, timestamp=_now_ms())
        await self.send_json(websocket, message.model_dump(mode="json"))

    async def send_error(self, websocket: WebSocket, error: str) -> None:
        await self.send_message(websocket, WebSocketMessageType.ERROR, {"error": error})


# Global connection manager
manager = ConnectionManager()


async def websocket_endpoint(websocket: WebSocket) -> None:
    """
    WebSocket endpoint for live coaching.

    Protocol:
    1. Client connects and sends `start_session`
    2. Client streams `frame` messages
    3. Server answers `swing_detected` for each confirmed swing,
       then `coaching_feedback` once the comment is ready
    4. Client sends `end_session` (or just disconnects)

    Message format (client -> server):
    {
        "type": "frame",
        "data": {
            "landmarks": [{"x": 0.5, "y": 0.3, "z": -0.1, "visibility": 0.9}, ...],
            "timestamp_ms": 1532.4
        },
        "timestamp": 1704067200000
    }

    Message format (server -> client):
    {
        "type": "swing_detected",
        "data": {"swing": {...}, "session": {"status": "locked_out", ...}},
        "timestamp": 1704067200025
    }
    """
    connection = await manager.connect(websocket, get_settings())

    try:
        await manager.send_message(websocket, WebSocketMessageType.STATUS, session_status(connection.controller))

        # Main message loop
        while True:
            try:
                data = await websocket.receive_json()
            except ValueError:
                await manager.send_error(websocket, "Invalid JSON")
                continue

            msg_type = data.get("type") if isinstance(data, dict) else None

            if msg_type == WebSocketMessageType.FRAME.value:
                await handle_frame(websocket, connection, data)

            elif msg_type == WebSocketMessageType.START_SESSION.value:
                connection.controller.start_session()
                await manager.send_message(
                    websocket, WebSocketMessageType.SESSION_STARTED, session_status(connection.controller)
                )

            elif msg_type == WebSocketMessageType.GET_STATUS.value:
                await manager.send_message(
                    websocket, WebSocketMessageType.STATUS, session_status(connection.controller)
                )

            elif msg_type == WebSocketMessageType.END_SESSION.value:
                connection.controller.stop_session()
                await manager.send_message(
                    websocket, WebSocketMessageType.SESSION_ENDED, session_status(connection.controller)
                )
                await websocket.close()
                break

            else:
                await manager.send_error(websocket, f"Unknown message type: {msg_type}")

    except WebSocketDisconnect:
        logger.info("Client disconnected")
    except Exception as e:
        logger.error(f"WebSocket error: {e}")
    finally:
        manager.disconnect(websocket)


async def handle_frame(websocket: WebSocket, connection: CoachConnection, message: dict) -> None:
    """
    Turn one frame message into a PoseFrame and feed the session.
    """
    controller = connection.controller
    if not controller.is_active:
        await manager.send_error(websocket, "Session not started")
        return

    try:
        payload = FrameMessage.model_validate(message.get("data") or {})
    except ValidationError as e:
        await manager.send_error(websocket, f"Invalid frame: {e.errors()[0]['msg']}")
        return

    timestamp_ms = payload.timestamp_ms
    if timestamp_ms is None:
        timestamp_ms = float(message.get("timestamp") or time.monotonic() * 1000)

    if payload.landmarks:
        pose_frame: Optional[PoseFrame] = PoseFrame.from_landmarks(
            [lm.to_domain() for lm in payload.landmarks],
            timestamp_ms=timestamp_ms,
            frame_number=payload.frame_number,
        )
    elif payload.image_base64:
        pose_frame = await detect_image_frame(websocket, connection, payload, timestamp_ms)
        if pose_frame is None:
            return
    else:
        await manager.send_error(websocket, "Frame needs landmarks or image_base64")
        return

    outcome = controller.submit_frame(pose_frame)
    if outcome is not None:
        await manager.send_message(websocket, WebSocketMessageType.SWING_DETECTED, {
            "swing": SwingOutcomeSchema.from_domain(outcome).model_dump(mode="json"),
            "session": session_status(controller),
        })


async def detect_image_frame(
    websocket: WebSocket,
    connection: CoachConnection,
    payload: FrameMessage,
    timestamp_ms: float,
) -> Optional[PoseFrame]:
    """Run server-side MediaPipe on an image frame."""
    start_time = time.time()

    if connection.pose_detector is None:
        try:
            from core.services.pose_detector import PoseDetector
            connection.pose_detector = PoseDetector(model_complexity=0)
        except Exception as e:
            logger.error(f"Pose detector unavailable: {e}")
            await manager.send_error(websocket, "Server-side pose detection is not available")
            return None

    try:
        pose_frame = connection.pose_detector.detect_from_base64(
            payload.image_base64,
            timestamp_ms=timestamp_ms,
            frame_number=payload.frame_number,
        )
    except Exception as e:
        logger.error(f"Frame processing error: {e}")
        await manager.send_error(websocket, str(e))
        return None

    await manager.send_message(websocket, WebSocketMessageType.POSE_RESULT, {
        "frame_number": payload.frame_number,
        "pose": PoseFrameSchema.from_domain(pose_frame).model_dump() if pose_frame else None,
        "processing_time_ms": (time.time() - start_time) * 1000,
    })
    return pose_frame
