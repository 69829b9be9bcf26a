"""
Unit tests for asynchronous feedback delivery.

Each test drives its own event loop with asyncio.run; providers are
small fakes so no network is involved.
"""

import asyncio

import httpx

from core.domain.analysis import FeedbackCategory, FeedbackResult, SwingEvent, SwingMetrics, SwingOutcome
from core.domain.pose import SwingSide
from core.services.feedback_delivery import AsyncFeedbackDispatcher, CoachingMessage
from core.services.feedback_provider import FeedbackServiceError, GeminiFeedbackProvider
from core.services.session_controller import CoachingSessionController


def make_outcome(frame, swing_number=1, score=64):
    event = SwingEvent(
        frames=(frame,),
        peak_index=0,
        peak_speed=1.2,
        rotation_deg=50.0,
        rise_time_ms=120.0,
        side=SwingSide.RIGHT,
    )
    result = FeedbackResult(score=score, category=FeedbackCategory.SLOW_SWING, feedback="Swing faster.")
    return SwingOutcome(
        swing_number=swing_number,
        event=event,
        metrics=SwingMetrics(max_shoulder_turn=50, peak_arm_speed=30),
        result=result,
        delivered=True,
    )


class FixedTextProvider:
    def __init__(self, text):
        self.text = text
        self.calls = 0

    async def generate(self, metrics, result):
        self.calls += 1
        return self.text


class FailingTextProvider:
    async def generate(self, metrics, result):
        raise FeedbackServiceError("quota exceeded")


class CrashingTextProvider:
    async def generate(self, metrics, result):
        raise RuntimeError("unexpected reply shape")


class SlowTextProvider:
    async def generate(self, metrics, result):
        await asyncio.sleep(10)
        return "too late"


class FixedSpeechProvider:
    def __init__(self, audio=b"RIFFfake"):
        self.audio = audio
        self.texts = []

    async def synthesize(self, text):
        self.texts.append(text)
        return self.audio


class FailingSpeechProvider:
    async def synthesize(self, text):
        raise FeedbackServiceError("tts down")


class CrashingSpeechProvider:
    async def synthesize(self, text):
        raise KeyError("inlineData")


class TestCoachingMessage:
    def test_audio_is_base64_encoded(self):
        message = CoachingMessage(swing_number=1, score=80, text="Nice", audio_wav=b"abc")
        assert message.audio_base64 == "YWJj"

    def test_no_audio_gives_none(self):
        assert CoachingMessage(swing_number=1, score=80, text="Nice").audio_base64 is None


class TestAsyncFeedbackDispatcher:
    """Fire-and-forget delivery with template fallback."""

    def test_provider_text_and_audio_are_sent(self, make_frame):
        sent = []
        speech = FixedSpeechProvider()

        async def scenario():
            async def send(message):
                sent.append(message)

            dispatcher = AsyncFeedbackDispatcher(
                send=send,
                text_provider=FixedTextProvider("Turn earlier."),
                speech_provider=speech,
            )
            dispatcher.deliver(make_outcome(make_frame(0.0)))
            await dispatcher.wait_idle()

        asyncio.run(scenario())

        assert len(sent) == 1
        assert sent[0].text == "Turn earlier."
        assert sent[0].score == 64
        assert sent[0].audio_wav == b"RIFFfake"
        assert speech.texts == ["Turn earlier."]

    def test_deliver_returns_before_the_provider_runs(self, make_frame):
        provider = FixedTextProvider("Later.")

        async def scenario():
            async def send(message):
                pass

            dispatcher = AsyncFeedbackDispatcher(send=send, text_provider=provider)
            dispatcher.deliver(make_outcome(make_frame(0.0)))
            calls_after_deliver = provider.calls
            pending_after_deliver = dispatcher.pending
            await dispatcher.wait_idle()
            return calls_after_deliver, pending_after_deliver

        calls_after_deliver, pending_after_deliver = asyncio.run(scenario())

        assert calls_after_deliver == 0
        assert pending_after_deliver == 1
        assert provider.calls == 1

    def test_provider_failure_falls_back_to_template(self, make_frame):
        sent = []
        failures = []

        async def scenario():
            async def send(message):
                sent.append(message)

            dispatcher = AsyncFeedbackDispatcher(
                send=send,
                text_provider=FailingTextProvider(),
                on_failure=failures.append,
            )
            dispatcher.deliver(make_outcome(make_frame(0.0)))
            await dispatcher.wait_idle()

        asyncio.run(scenario())

        assert [m.text for m in sent] == ["Swing faster."]
        assert len(failures) == 1
        assert "quota exceeded" in failures[0]

    def test_speech_failure_still_sends_text(self, make_frame):
        sent = []
        failures = []

        async def scenario():
            async def send(message):
                sent.append(message)

            dispatcher = AsyncFeedbackDispatcher(
                send=send,
                speech_provider=FailingSpeechProvider(),
                on_failure=failures.append,
            )
            dispatcher.deliver(make_outcome(make_frame(0.0)))
            await dispatcher.wait_idle()

        asyncio.run(scenario())

        assert sent[0].text == "Swing faster."
        assert sent[0].audio_wav is None
        assert failures == ["speech unavailable: tts down"]

    def test_cancel_pending_drops_feedback_in_flight(self, make_frame):
        sent = []

        async def scenario():
            async def send(message):
                sent.append(message)

            dispatcher = AsyncFeedbackDispatcher(send=send, text_provider=SlowTextProvider())
            dispatcher.deliver(make_outcome(make_frame(0.0)))
            await asyncio.sleep(0)

            dispatcher.cancel_pending()
            await asyncio.sleep(0)
            return dispatcher.pending

        pending = asyncio.run(scenario())

        assert pending == 0
        assert sent == []

    def test_unexpected_provider_error_still_sends_template(self, make_frame):
        """
        Given text and speech providers that fail with non-service errors,
        when a swing is delivered,
        then the template text is still sent and both failures are reported.
        """
        sent = []
        failures = []

        async def scenario():
            async def send(message):
                sent.append(message)

            dispatcher = AsyncFeedbackDispatcher(
                send=send,
                text_provider=CrashingTextProvider(),
                speech_provider=CrashingSpeechProvider(),
                on_failure=failures.append,
            )
            dispatcher.deliver(make_outcome(make_frame(0.0)))
            await dispatcher.wait_idle()

        asyncio.run(scenario())

        assert [m.text for m in sent] == ["Swing faster."]
        assert sent[0].audio_wav is None
        assert failures[0] == "feedback unavailable: unexpected reply shape"
        assert failures[1].startswith("speech unavailable:")


class TestDeliveryThroughSession:
    """Controller and dispatcher wired together the way the WebSocket does."""

    def test_gateway_page_from_gemini_falls_back_and_is_reported(self, swing_frames):
        """
        Given Gemini answering 200 with an HTML gateway page,
        when a live session confirms a swing,
        then the template feedback is sent and the session records the error.
        """
        sent = []
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>gateway</html>"))
        provider = GeminiFeedbackProvider("secret", "m", "https://gemini.test/v1beta", transport=transport)

        async def scenario():
            async def send(message):
                sent.append(message)

            dispatcher = AsyncFeedbackDispatcher(send=send, text_provider=provider)
            controller = CoachingSessionController(delivery=dispatcher)
            dispatcher.on_failure = controller.report_collaborator_failure
            controller.start_session()

            outcomes = [o for o in map(controller.submit_frame, swing_frames()) if o is not None]
            await dispatcher.wait_idle()
            return controller, outcomes

        controller, outcomes = asyncio.run(scenario())

        assert len(outcomes) == 1
        assert [m.text for m in sent] == [outcomes[0].result.feedback]
        assert "unreadable" in controller.snapshot()["error"]
        assert controller.state.swing_count == 1
