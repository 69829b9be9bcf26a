"""
Tests for the REST routes and the live coaching WebSocket.

External services are replaced through FastAPI dependency overrides;
the WebSocket runs with no Gemini key so feedback comes from templates.
"""

import pytest
from fastapi.testclient import TestClient

from api.routes import get_feedback_provider, get_speech_provider
from core.config import get_settings
from core.services import TemplateFeedbackProvider
from core.services.feedback_provider import FeedbackServiceError
from main import app


class FakeSpeechProvider:
    async def synthesize(self, text):
        if not text.strip():
            raise ValueError("Text is required")
        return b"RIFF-wav-bytes"


class BrokenFeedbackProvider:
    async def generate(self, metrics, result):
        raise FeedbackServiceError("upstream down")


@pytest.fixture
def client(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    get_settings.cache_clear()
    app.dependency_overrides[get_feedback_provider] = lambda: TemplateFeedbackProvider()
    app.dependency_overrides[get_speech_provider] = lambda: None
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    get_settings.cache_clear()


GOOD_METRICS = {
    "max_shoulder_turn": 80,
    "peak_arm_speed": 100,
    "contact_metrics": {"distance_from_core": 120, "arm_angle": 15, "is_front_contact": True},
    "swing_rhythm": 100,
}


class TestRestRoutes:
    """Stateless helper endpoints."""

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["health"] == "/api/health"

    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["feedback_provider"] == "template"
        assert body["speech_available"] is False

    def test_pose_detect_with_garbage_image_reports_failure(self, client):
        response = client.post("/api/pose/detect", json={"image_base64": "bm90LWFuLWltYWdl"})

        assert response.status_code == 200
        assert response.json()["success"] is False

    def test_metrics_for_a_swing(self, client, swing_frames, frame_json):
        frames = [frame_json(frame) for frame in swing_frames()[1:]]

        response = client.post("/api/swing/metrics", json={"frames": frames, "side": "right"})

        assert response.status_code == 200
        body = response.json()
        assert body["max_shoulder_turn"] == 45
        assert body["peak_arm_speed"] == 50
        assert body["contact_metrics"]["distance_from_core"] == 38
        assert body["swing_rhythm"] == 100

    def test_metrics_with_too_few_frames_are_zero(self, client, swing_frames, frame_json):
        frames = [frame_json(frame) for frame in swing_frames()[:2]]

        response = client.post("/api/swing/metrics", json={"frames": frames})

        assert response.json()["peak_arm_speed"] == 0

    def test_evaluate(self, client):
        response = client.post("/api/swing/evaluate", json=GOOD_METRICS)

        assert response.status_code == 200
        body = response.json()
        assert body["score"] == 100
        assert body["grade"] == "A"
        assert body["category"] == "powerful"

    def test_evaluate_rejects_out_of_range_metrics(self, client):
        response = client.post("/api/swing/evaluate", json={**GOOD_METRICS, "peak_arm_speed": 250})
        assert response.status_code == 422

    def test_feedback_text_from_templates(self, client):
        response = client.post("/api/feedback/text", json=GOOD_METRICS)

        assert response.status_code == 200
        body = response.json()
        assert body["source"] == "template"
        assert body["score"] == 100
        assert body["feedback"].startswith("Powerful swing")

    def test_feedback_text_provider_failure_is_502(self, client):
        app.dependency_overrides[get_feedback_provider] = lambda: BrokenFeedbackProvider()

        response = client.post("/api/feedback/text", json=GOOD_METRICS)

        assert response.status_code == 502

    def test_speech_without_provider_is_503(self, client):
        response = client.post("/api/feedback/speech", json={"text": "Great swing"})
        assert response.status_code == 503

    def test_speech_returns_wav(self, client):
        app.dependency_overrides[get_speech_provider] = lambda: FakeSpeechProvider()

        response = client.post("/api/feedback/speech", json={"text": "Great swing"})

        assert response.status_code == 200
        assert response.headers["content-type"] == "audio/wav"
        assert response.content == b"RIFF-wav-bytes"

    def test_speech_rejects_empty_text(self, client):
        app.dependency_overrides[get_speech_provider] = lambda: FakeSpeechProvider()
        response = client.post("/api/feedback/speech", json={"text": ""})
        assert response.status_code == 422


class TestCoachingWebSocket:
    """Live session over /ws/coach."""

    def test_full_session(self, client, swing_frames, frame_json):
        """
        Given a started session,
        when the frames of one forehand are streamed,
        then the server reports the swing and sends coaching feedback.
        """
        with client.websocket_connect("/ws/coach") as ws:
            hello = ws.receive_json()
            assert hello["type"] == "status"
            assert hello["data"]["status"] == "idle"

            ws.send_json({"type": "start_session"})
            started = ws.receive_json()
            assert started["type"] == "session_started"
            assert started["data"]["status"] == "watching"

            for frame in swing_frames():
                ws.send_json({"type": "frame", "data": frame_json(frame)})

            # Feedback is delivered on its own task, so it may overtake the detection
            replies = {}
            for _ in range(2):
                message = ws.receive_json()
                replies[message["type"]] = message
            assert set(replies) == {"swing_detected", "coaching_feedback"}

            detected = replies["swing_detected"]
            swing = detected["data"]["swing"]
            assert swing["swing_number"] == 1
            assert swing["side"] == "right"
            assert swing["result"]["score"] == 54
            assert detected["data"]["session"]["status"] == "locked_out"

            feedback = replies["coaching_feedback"]
            assert feedback["data"]["swing_number"] == 1
            assert feedback["data"]["feedback"] == swing["result"]["feedback"]
            assert feedback["data"]["audio_base64"] is None

            ws.send_json({"type": "get_status"})
            status = ws.receive_json()
            assert status["type"] == "status"
            assert status["data"]["swing_count"] == 1

            ws.send_json({"type": "end_session"})
            ended = ws.receive_json()
            assert ended["type"] == "session_ended"
            assert ended["data"]["status"] == "idle"

    def test_frame_before_start_is_an_error(self, client, make_frame, frame_json):
        with client.websocket_connect("/ws/coach") as ws:
            ws.receive_json()

            ws.send_json({"type": "frame", "data": frame_json(make_frame(0.0))})

            reply = ws.receive_json()
            assert reply["type"] == "error"
            assert "not started" in reply["data"]["error"]

    def test_empty_frame_is_an_error(self, client):
        with client.websocket_connect("/ws/coach") as ws:
            ws.receive_json()
            ws.send_json({"type": "start_session"})
            ws.receive_json()

            ws.send_json({"type": "frame", "data": {"timestamp_ms": 10}})

            reply = ws.receive_json()
            assert reply["type"] == "error"

    def test_unknown_message_type(self, client):
        with client.websocket_connect("/ws/coach") as ws:
            ws.receive_json()

            ws.send_json({"type": "dance"})

            reply = ws.receive_json()
            assert reply["type"] == "error"
            assert "dance" in reply["data"]["error"]
