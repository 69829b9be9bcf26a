"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables (or a local .env file)
with defaults calibrated for a webcam at roughly 15-30 fps.
"""

from dataclasses import dataclass
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class SwingDetectorConfig:
    """
    Trigger thresholds for the swing detector.

    Speeds are in normalized image units per second, times in milliseconds.
    """
    min_visibility: float = 0.4
    window_ms: float = 400.0
    min_frames: int = 4
    min_peak_speed: float = 0.75
    min_rise_ms: float = 60.0
    max_rise_ms: float = 250.0
    min_rotation_deg: float = 40.0
    slice_radius: int = 4
    cooldown_ms: float = 2000.0

    def __post_init__(self) -> None:
        if self.window_ms <= 0:
            raise ValueError("window_ms must be positive")
        if self.min_frames < 2:
            raise ValueError("min_frames must be at least 2")
        if self.min_rise_ms > self.max_rise_ms:
            raise ValueError("min_rise_ms must not exceed max_rise_ms")
        if self.cooldown_ms < 0:
            raise ValueError("cooldown_ms cannot be negative")


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    For lists (like cors_origins), use comma-separated values in env.
    """

    # API Configuration
    api_title: str = "ForehandCoach API"
    api_version: str = "1.0.0"
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173",
        description="Comma-separated list of allowed CORS origins. Use * for development only."
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # Swing detector
    detector_min_visibility: float = Field(default=0.4, ge=0.0, le=1.0)
    detector_window_ms: float = Field(default=400.0, gt=0)
    detector_min_frames: int = Field(default=4, ge=2)
    detector_min_peak_speed: float = Field(
        default=0.75,
        description="Minimum peak wrist speed in normalized units per second"
    )
    detector_min_rise_ms: float = Field(default=60.0, ge=0)
    detector_max_rise_ms: float = Field(default=250.0, ge=0)
    detector_min_rotation_deg: float = Field(default=40.0, ge=0, le=180)
    detector_slice_radius: int = Field(default=4, ge=0)
    detector_cooldown_ms: float = Field(default=2000.0, ge=0)

    # Metrics
    metrics_min_visibility: float = Field(
        default=0.4, ge=0.0, le=1.0,
        description="Shared visibility threshold for every metric"
    )

    # Session
    feedback_lockout_ms: float = Field(
        default=3000.0, ge=0,
        description="Pause after a confirmed swing while feedback is delivered"
    )
    require_reliable_metrics: bool = Field(
        default=True,
        description="Skip feedback delivery for implausibly small metrics"
    )

    # Gemini feedback services
    gemini_api_key: str = Field(
        default="",
        description="Gemini API key. Without it the template provider is used and speech is disabled."
    )
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_text_model: str = "gemini-2.5-flash"
    gemini_tts_model: str = "gemini-2.5-flash-preview-tts"
    gemini_voice: str = "Puck"
    gemini_timeout_seconds: float = Field(default=15.0, gt=0)
    feedback_language: str = Field(
        default="English",
        description="Language the coaching comment is written in"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def gemini_configured(self) -> bool:
        return bool(self.gemini_api_key)

    def detector_config(self) -> SwingDetectorConfig:
        return SwingDetectorConfig(
            min_visibility=self.detector_min_visibility,
            window_ms=self.detector_window_ms,
            min_frames=self.detector_min_frames,
            min_peak_speed=self.detector_min_peak_speed,
            min_rise_ms=self.detector_min_rise_ms,
            max_rise_ms=self.detector_max_rise_ms,
            min_rotation_deg=self.detector_min_rotation_deg,
            slice_radius=self.detector_slice_radius,
            cooldown_ms=self.detector_cooldown_ms,
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    For tests, call get_settings.cache_clear() to reset.
    """
    return Settings()
