"""
ForehandCoach Backend API

FastAPI application for live tennis forehand coaching from pose data.

Run with:
    uvicorn main:app --reload --host 0.0.0.0 --port 8000

API docs available at:
    http://localhost:8000/docs (Swagger UI)
    http://localhost:8000/redoc (ReDoc)
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import router as api_router
from api.websocket import websocket_endpoint
from core.config import get_settings

settings = get_settings()

# =============================================================================
# Logging Configuration
# =============================================================================

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


# =============================================================================
# Lifespan (startup/shutdown)
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Runs startup code before app starts accepting requests,
    and cleanup code when app shuts down.
    """
    # Startup
    logger.info(" ForehandCoach API starting up...")
    logger.info(" API docs: http://localhost:8000/docs")
    logger.info(" WebSocket: ws://localhost:8000/ws/coach")

    if settings.gemini_configured:
        logger.info(f" Coaching feedback: Gemini ({settings.gemini_text_model})")
    else:
        logger.info(" Coaching feedback: built-in templates (GEMINI_API_KEY not set)")

    yield  # App runs here

    # Shutdown
    logger.info(" ForehandCoach API shutting down...")


# =============================================================================
# FastAPI App
# =============================================================================

app = FastAPI(
    title=settings.api_title,
    description="""
    **Live Forehand Coach**

    Swing detection, biomechanics scoring and spoken coaching for tennis forehands.

    ## Features

    - **Live Swing Detection** from a stream of pose frames
    - **Biomechanical Metrics** (shoulder turn, arm speed, contact point, rhythm)
    - **Scoring** with a short coaching message per swing
    - **Coaching Voice** via Gemini text and speech (optional)

    ## Endpoints

    - `GET /api/health` - Health check
    - `POST /api/pose/detect` - Single image pose detection
    - `POST /api/swing/metrics` - Metrics for one swing
    - `POST /api/swing/evaluate` - Score and message for metrics
    - `POST /api/feedback/text` - Coaching comment
    - `POST /api/feedback/speech` - Spoken coaching (WAV)
    - `POST /api/analysis/video` - Replay a video through the coach
    - `WS /ws/coach` - Live coaching session

    ## WebSocket Protocol

    Connect to `/ws/coach`, send `start_session`, then stream frames:
```json
    {
        "type": "frame",
        "data": {"landmarks": [...], "timestamp_ms": 1532.4},
        "timestamp": 1704067200000
    }
```
    """,
    version=settings.api_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


# =============================================================================
# CORS Middleware
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Routes
# =============================================================================

# Include REST API routes
app.include_router(api_router, prefix="/api")

# WebSocket endpoint
app.websocket("/ws/coach")(websocket_endpoint)


# =============================================================================
# Root endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - API information.
    """
    return {
        "name": settings.api_title,
        "version": settings.api_version,
        "description": "Live tennis forehand coach",
        "docs": "/docs",
        "health": "/api/health",
        "websocket": "ws://localhost:8000/ws/coach"
    }


# =============================================================================
# Run directly (for development)
# =============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower()
    )
