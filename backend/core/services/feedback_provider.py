"""
Feedback Provider Services

Adapters for the external services that turn a scored swing into
natural-language coaching and speech. The core only knows the shapes:
metrics in, short text out; text in, WAV bytes out.

- TemplateFeedbackProvider: offline, returns the evaluator's message
- GeminiFeedbackProvider: Gemini generateContent over HTTP
- GeminiSpeechProvider: Gemini TTS, raw PCM wrapped in a WAV container
"""

import base64
import io
import logging
import wave
from typing import Any, Optional, Protocol

import httpx

from ..config import Settings
from ..domain.analysis import FeedbackResult, SwingMetrics

logger = logging.getLogger(__name__)


class FeedbackServiceError(Exception):
    """Raised when a feedback or speech service call fails."""
    pass


class FeedbackNotConfigured(FeedbackServiceError):
    """Raised when a service is requested but no credentials are set."""
    pass


class FeedbackTextProvider(Protocol):
    async def generate(self, metrics: SwingMetrics, result: FeedbackResult) -> str:
        ...


class SpeechProvider(Protocol):
    async def synthesize(self, text: str) -> bytes:
        ...


COACHING_PROMPT = """
You are an elite tennis coach analyzing performance data.
Metrics from a player's forehand:
- Shoulder Turn: {shoulder}°
- Contact Distance: {distance}cm
- Contact In Front Of Body: {front}
- Swing Speed Score: {speed}/100
- Overall Score: {score}/100

Based ONLY on these numbers, give one concise, encouraging and actionable
piece of feedback in {language}, under 20 words. Speak directly to the player
and do not mention the numbers.
"""


def build_coaching_prompt(metrics: SwingMetrics, result: FeedbackResult, language: str = "English") -> str:
    return COACHING_PROMPT.format(
        shoulder=metrics.max_shoulder_turn,
        distance=metrics.contact_metrics.distance_from_core,
        front="yes" if metrics.contact_metrics.is_front_contact else "no",
        speed=metrics.peak_arm_speed,
        score=result.score,
        language=language,
    ).strip()


def pcm_to_wav(pcm: bytes, sample_rate: int = 24000, channels: int = 1, sample_width: int = 2) -> bytes:
    """Wrap raw little-endian PCM samples in a WAV container."""
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav_file:
        wav_file.setnchannels(channels)
        wav_file.setsampwidth(sample_width)
        wav_file.setframerate(sample_rate)
        wav_file.writeframes(pcm)
    return buffer.getvalue()


class TemplateFeedbackProvider:
    """Returns the evaluator's template message. Never fails."""

    async def generate(self, metrics: SwingMetrics, result: FeedbackResult) -> str:
        return result.feedback


class _GeminiClient:
    """
    Minimal Gemini REST client.

    Thin on purpose: one POST per call, errors mapped to
    FeedbackServiceError.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not api_key:
            raise FeedbackNotConfigured("Gemini API key is not configured")
        self._api_key = api_key
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def _generate_content(self, body: dict[str, Any]) -> dict[str, Any]:
        url = f"{self._base_url}/models/{self._model}:generateContent"
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(url, params={"key": self._api_key}, json=body)
                response.raise_for_status()
                return response.json()
        except ValueError as e:
            logger.error(f"Gemini returned a non-JSON body for {self._model}")
            raise FeedbackServiceError("Gemini returned an unreadable response") from e
        except httpx.HTTPStatusError as e:
            logger.error(f"Gemini returned {e.response.status_code} for {self._model}")
            raise FeedbackServiceError(f"Gemini API error: {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error(f"Gemini request failed: {e}")
            raise FeedbackServiceError(f"Gemini request failed: {e}") from e

    @staticmethod
    def _first_part(data: dict[str, Any]) -> dict[str, Any]:
        try:
            part = data["candidates"][0]["content"]["parts"][0]
        except (KeyError, IndexError, TypeError) as e:
            raise FeedbackServiceError("Gemini response contained no content") from e
        if not isinstance(part, dict):
            raise FeedbackServiceError("Gemini response contained no content")
        return part


class GeminiFeedbackProvider(_GeminiClient):
    """Short coaching comment written by a Gemini text model."""

    def __init__(self, *args: Any, language: str = "English", **kwargs: Any):
        super().__init__(*args, **kwargs)
        self._language = language

    async def generate(self, metrics: SwingMetrics, result: FeedbackResult) -> str:
        prompt = build_coaching_prompt(metrics, result, self._language)
        data = await self._generate_content({"contents": [{"parts": [{"text": prompt}]}]})
        text = self._first_part(data).get("text")
        if not isinstance(text, str) or not text.strip():
            raise FeedbackServiceError("Gemini returned empty feedback")
        return text.strip()


class GeminiSpeechProvider(_GeminiClient):
    """Speech for a coaching comment via Gemini TTS."""

    SAMPLE_RATE = 24000

    def __init__(self, *args: Any, voice: str = "Puck", **kwargs: Any):
        super().__init__(*args, **kwargs)
        self._voice = voice

    async def synthesize(self, text: str) -> bytes:
        clean = text.strip()
        if not clean:
            raise ValueError("Text is required")

        body = {
            "contents": [{"parts": [{"text": clean}]}],
            "generationConfig": {
                "responseModalities": ["AUDIO"],
                "speechConfig": {
                    "voiceConfig": {"prebuiltVoiceConfig": {"voiceName": self._voice}},
                },
            },
        }
        data = await self._generate_content(body)
        inline = self._first_part(data).get("inlineData") or {}
        audio_b64 = inline.get("data") if isinstance(inline, dict) else None
        if not audio_b64:
            raise FeedbackServiceError("Gemini returned no audio")

        try:
            pcm = base64.b64decode(audio_b64, validate=True)
        except (TypeError, ValueError) as e:
            raise FeedbackServiceError("Gemini returned malformed audio") from e
        return pcm_to_wav(pcm, sample_rate=self.SAMPLE_RATE)


# =============================================================================
# Factories
# =============================================================================

def create_feedback_provider(settings: Settings) -> FeedbackTextProvider:
    """Gemini when a key is configured, templates otherwise."""
    if not settings.gemini_configured:
        return TemplateFeedbackProvider()
    return GeminiFeedbackProvider(
        settings.gemini_api_key,
        settings.gemini_text_model,
        settings.gemini_base_url,
        timeout=settings.gemini_timeout_seconds,
        language=settings.feedback_language,
    )


def create_speech_provider(settings: Settings) -> Optional[SpeechProvider]:
    """Gemini TTS when a key is configured, no speech otherwise."""
    if not settings.gemini_configured:
        return None
    return GeminiSpeechProvider(
        settings.gemini_api_key,
        settings.gemini_tts_model,
        settings.gemini_base_url,
        timeout=settings.gemini_timeout_seconds,
        voice=settings.gemini_voice,
    )
