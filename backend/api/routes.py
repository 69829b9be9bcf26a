"""
REST API Routes

FastAPI routes for forehand swing analysis.
Stateless helpers around the core: pose detection, metrics, scoring,
coaching text/speech and offline video replay. Live coaching runs
over the WebSocket endpoint.
"""

import time
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, UploadFile, File
from fastapi.responses import Response

from .schemas import (
    PoseDetectionRequest,
    PoseDetectionResponse,
    PoseFrameSchema,
    MetricsRequest,
    SwingMetricsSchema,
    FeedbackResultSchema,
    FeedbackTextResponse,
    SpeechRequest,
    SwingOutcomeSchema,
    VideoAnalysisResponse,
    HealthResponse,
)
from core.config import Settings, get_settings
from core.services import (
    CoachingSessionController,
    FeedbackEvaluator,
    FeedbackServiceError,
    MetricsCalculator,
    TemplateFeedbackProvider,
    create_feedback_provider,
    create_speech_provider,
)
from core.services.feedback_provider import FeedbackTextProvider, SpeechProvider

# Configure logging
logger = logging.getLogger(__name__)

# Create router
router = APIRouter()


# =============================================================================
# Dependencies
# =============================================================================

def get_feedback_provider(settings: Settings = Depends(get_settings)) -> FeedbackTextProvider:
    return create_feedback_provider(settings)


def get_speech_provider(settings: Settings = Depends(get_settings)) -> Optional[SpeechProvider]:
    return create_speech_provider(settings)


# =============================================================================
# Health Check
# =============================================================================

@router.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="Health check endpoint"
)
async def health_check(settings: Settings = Depends(get_settings)) -> HealthResponse:
    """
    Check if the API is running, whether MediaPipe is available and
    which feedback services are configured.
    """
    mediapipe_ok = False
    try:
        from core.services.pose_detector import PoseDetector
        with PoseDetector(model_complexity=0):
            mediapipe_ok = True
    except Exception as e:
        logger.warning(f"MediaPipe not available: {e}")

    return HealthResponse(
        status="healthy",
        version=settings.api_version,
        mediapipe_available=mediapipe_ok,
        feedback_provider="gemini" if settings.gemini_configured else "template",
        speech_available=settings.gemini_configured,
    )


# =============================================================================
# Pose Detection
# =============================================================================

@router.post(
    "/pose/detect",
    response_model=PoseDetectionResponse,
    tags=["Pose Detection"],
    summary="Detect pose in a single image"
)
async def detect_pose(request: PoseDetectionRequest) -> PoseDetectionResponse:
    """
    Detect human pose in a base64-encoded image.

    Useful for testing the server-side pose source. For live coaching,
    stream frames over the WebSocket endpoint instead.
    """
    start_time = time.time()

    try:
        from core.services.pose_detector import PoseDetector
        with PoseDetector() as detector:
            pose_frame = detector.detect_from_base64(
                request.image_base64,
                timestamp_ms=request.timestamp_ms,
                frame_number=request.frame_number
            )

        processing_time = (time.time() - start_time) * 1000

        if pose_frame is None:
            return PoseDetectionResponse(
                success=False,
                pose=None,
                error="No person detected in image",
                processing_time_ms=processing_time
            )

        return PoseDetectionResponse(
            success=True,
            pose=PoseFrameSchema.from_domain(pose_frame),
            error=None,
            processing_time_ms=processing_time
        )

    except Exception as e:
        logger.error(f"Pose detection failed: {e}")
        processing_time = (time.time() - start_time) * 1000
        return PoseDetectionResponse(
            success=False,
            pose=None,
            error=str(e),
            processing_time_ms=processing_time
        )


# =============================================================================
# Swing Analysis
# =============================================================================

@router.post(
    "/swing/metrics",
    response_model=SwingMetricsSchema,
    tags=["Swing Analysis"],
    summary="Compute biomechanical metrics for one swing"
)
async def compute_metrics(
    request: MetricsRequest,
    settings: Settings = Depends(get_settings),
) -> SwingMetricsSchema:
    """
    Compute shoulder turn, arm speed, contact snapshot and rhythm for
    the frames of one swing. Fewer than 5 frames gives all zeros.
    """
    frames = [frame.to_domain() for frame in request.frames]
    metrics = MetricsCalculator.calculate_metrics(
        frames,
        side=request.side.to_domain(),
        min_visibility=settings.metrics_min_visibility,
    )
    return SwingMetricsSchema.from_domain(metrics)


@router.post(
    "/swing/evaluate",
    response_model=FeedbackResultSchema,
    tags=["Swing Analysis"],
    summary="Score a swing and pick a feedback message"
)
async def evaluate_swing(metrics: SwingMetricsSchema) -> FeedbackResultSchema:
    return FeedbackResultSchema.from_domain(FeedbackEvaluator.evaluate(metrics.to_domain()))


@router.post(
    "/analysis/video",
    response_model=VideoAnalysisResponse,
    tags=["Swing Analysis"],
    summary="Find and score forehands in a video"
)
async def analyze_video(
    video: UploadFile = File(..., description="Video file (MP4, MOV)"),
    settings: Settings = Depends(get_settings),
) -> VideoAnalysisResponse:
    """
    Replay an uploaded video through a fresh coaching session.

    The video is:
    1. Saved temporarily
    2. Run frame-by-frame through MediaPipe
    3. Fed to the swing detector as if it were a live camera
    4. Scored swing by swing
    """
    import tempfile
    import os

    try:
        from core.services.pose_detector import PoseDetector
    except ImportError as e:
        logger.error(f"Video analysis unavailable: {e}")
        raise HTTPException(status_code=503, detail="MediaPipe is not installed")

    controller = CoachingSessionController(
        detector_config=settings.detector_config(),
        feedback_lockout_ms=settings.feedback_lockout_ms,
        metrics_min_visibility=settings.metrics_min_visibility,
    )

    temp_path = None
    try:
        suffix = os.path.splitext(video.filename or ".mp4")[1]
        with tempfile.NamedTemporaryFile(delete=False, suffix=suffix) as temp_file:
            temp_path = temp_file.name
            temp_file.write(await video.read())

        swings = []
        frames_processed = 0
        controller.start_session()
        with PoseDetector() as detector:
            for frame in detector.process_video(temp_path):
                frames_processed += 1
                outcome = controller.submit_frame(frame)
                if outcome:
                    swings.append(SwingOutcomeSchema.from_domain(outcome))
        controller.stop_session()

        logger.info(f"Video replay found {len(swings)} swings in {frames_processed} frames")
        return VideoAnalysisResponse(
            frames_processed=frames_processed,
            swing_count=len(swings),
            swings=swings,
        )

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Video analysis failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    finally:
        if temp_path and os.path.exists(temp_path):
            os.unlink(temp_path)


# =============================================================================
# Coaching Feedback
# =============================================================================

@router.post(
    "/feedback/text",
    response_model=FeedbackTextResponse,
    tags=["Feedback"],
    summary="Coaching comment for a swing"
)
async def feedback_text(
    metrics: SwingMetricsSchema,
    provider: FeedbackTextProvider = Depends(get_feedback_provider),
) -> FeedbackTextResponse:
    """
    Natural-language coaching from the configured provider
    (Gemini, or the built-in templates without an API key).
    """
    domain_metrics = metrics.to_domain()
    result = FeedbackEvaluator.evaluate(domain_metrics)

    try:
        text = await provider.generate(domain_metrics, result)
    except FeedbackServiceError as e:
        logger.error(f"Feedback generation failed: {e}")
        raise HTTPException(status_code=502, detail="Failed to generate feedback")

    source = "template" if isinstance(provider, TemplateFeedbackProvider) else "gemini"
    return FeedbackTextResponse(feedback=text, score=result.score, source=source)


@router.post(
    "/feedback/speech",
    tags=["Feedback"],
    summary="Speak a coaching comment",
    response_class=Response,
    responses={200: {"content": {"audio/wav": {}}}},
)
async def feedback_speech(
    request: SpeechRequest,
    provider: Optional[SpeechProvider] = Depends(get_speech_provider),
) -> Response:
    """Synthesize the text as a WAV file."""
    if provider is None:
        raise HTTPException(status_code=503, detail="Speech provider is not configured")

    try:
        audio = await provider.synthesize(request.text)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except FeedbackServiceError as e:
        logger.error(f"Speech synthesis failed: {e}")
        raise HTTPException(status_code=502, detail="Failed to synthesize speech")

    return Response(content=audio, media_type="audio/wav")
