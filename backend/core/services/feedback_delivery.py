"""
Feedback Delivery Service

Routes a scored swing to the text/speech providers without blocking
frame ingestion. Each delivery runs as its own asyncio task; stopping a
session cancels whatever is still in flight.
"""

import asyncio
import base64
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Protocol

from ..domain.analysis import SwingOutcome
from .feedback_provider import (
    FeedbackServiceError,
    FeedbackTextProvider,
    SpeechProvider,
    TemplateFeedbackProvider,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CoachingMessage:
    """What finally reaches the player for one swing."""
    swing_number: int
    score: int
    text: str
    audio_wav: Optional[bytes] = None

    @property
    def audio_base64(self) -> Optional[str]:
        if self.audio_wav is None:
            return None
        return base64.b64encode(self.audio_wav).decode("ascii")


class FeedbackDelivery(Protocol):
    def deliver(self, outcome: SwingOutcome) -> None:
        ...

    def cancel_pending(self) -> None:
        ...


class NullFeedbackDelivery:
    """Delivers nothing. Used for offline replays and tests."""

    def deliver(self, outcome: SwingOutcome) -> None:
        pass

    def cancel_pending(self) -> None:
        pass


class AsyncFeedbackDispatcher:
    """
    Fire-and-forget delivery on the running event loop.

    Usage:
        dispatcher = AsyncFeedbackDispatcher(send=push_to_client)
        controller = CoachingSessionController(delivery=dispatcher)

    Provider failures fall back to the template message and are
    reported through `on_failure`; they never reach the caller.
    """

    def __init__(
        self,
        send: Callable[[CoachingMessage], Awaitable[None]],
        text_provider: Optional[FeedbackTextProvider] = None,
        speech_provider: Optional[SpeechProvider] = None,
        on_failure: Optional[Callable[[str], None]] = None,
    ):
        self._send = send
        self._text_provider = text_provider or TemplateFeedbackProvider()
        self._speech_provider = speech_provider
        self.on_failure = on_failure
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def deliver(self, outcome: SwingOutcome) -> None:
        """Schedule delivery and return immediately."""
        task = asyncio.get_running_loop().create_task(self._run(outcome))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def cancel_pending(self) -> None:
        if self._tasks:
            logger.info(f"Cancelling {len(self._tasks)} pending feedback deliveries")
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()

    async def wait_idle(self) -> None:
        """Wait until every scheduled delivery has finished."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _run(self, outcome: SwingOutcome) -> None:
        result = outcome.result

        try:
            text = await self._text_provider.generate(outcome.metrics, result)
        except FeedbackServiceError as e:
            logger.warning(f"Feedback provider failed, using template: {e}")
            self._report(f"feedback unavailable: {e}")
            text = result.feedback
        except Exception as e:
            logger.exception("Unexpected feedback provider error, using template")
            self._report(f"feedback unavailable: {e}")
            text = result.feedback

        audio = None
        if self._speech_provider is not None:
            try:
                audio = await self._speech_provider.synthesize(text)
            except FeedbackServiceError as e:
                logger.warning(f"Speech provider failed: {e}")
                self._report(f"speech unavailable: {e}")
            except Exception as e:
                logger.exception("Unexpected speech provider error")
                self._report(f"speech unavailable: {e}")

        await self._send(CoachingMessage(
            swing_number=outcome.swing_number,
            score=result.score,
            text=text,
            audio_wav=audio,
        ))

    def _report(self, reason: str) -> None:
        if self.on_failure is not None:
            self.on_failure(reason)
