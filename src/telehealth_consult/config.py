"""Runtime configuration. Loads from environment variables and an optional .env file."""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Consultation settings. Override via environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Gemini (insights and end-of-session report)
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.0-flash"

    # Deepgram live capture
    DEEPGRAM_API_KEY: str = ""
    DEEPGRAM_MODEL: str = "nova-3-medical"
    TRANSCRIPTION_LANGUAGE: str = "en"

    # Consultation REST API (insight route and consultation store)
    CONSULTATION_API_URL: str = "http://localhost:5000"

    # Both AI calls are time-boxed; on timeout they degrade to empty/baseline results.
    AI_TIMEOUT_SECONDS: float = 10.0
    CONTEXT_WINDOW_ENTRIES: int = 5
    DEFAULT_INSIGHT_CONFIDENCE: float = 0.7

    FOLLOW_UP_DAYS: int = 7
    REVENUE_PER_CONSULTATION: float = 150.0

    # Speech capture restart-on-close: capped, exponential backoff
    CAPTURE_MAX_RESTARTS: int = 3
    CAPTURE_BACKOFF_SECONDS: float = 0.5

    LOG_LEVEL: str = "INFO"


def get_settings() -> Settings:
    return Settings()
