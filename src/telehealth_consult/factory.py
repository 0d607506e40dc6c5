"""Wire a ``SessionRegistry`` from ``Settings``."""

from __future__ import annotations

from .ai.base import InsightService, ReportService
from .ai.gemini import GeminiInsightService, GeminiReportService
from .ai.http_client import HttpInsightService
from .ai.insights import InsightGenerator
from .capture.deepgram_source import DeepgramCaptureSource
from .config import Settings, get_settings
from .persistence.adapter import PersistenceAdapter
from .persistence.repositories import (
    AnalyticsRepository,
    ConsultationRepository,
    InMemoryAnalyticsRepository,
)
from .persistence.rest import RestConsultationRepository
from .report.synthesizer import ReportSynthesizer
from .session.registry import SessionRegistry


def build_registry(
    settings: Settings | None = None,
    consultations: ConsultationRepository | None = None,
    analytics: AnalyticsRepository | None = None,
) -> SessionRegistry:
    """Build a registry backed by Gemini, Deepgram and the consultation API.

    Without an explicit repository, consultations are posted to
    ``CONSULTATION_API_URL`` and analytics are kept in memory. Without a
    Gemini key, insights come from the API's analyze route and reports
    fall back to the deterministic baseline.
    """
    settings = settings or get_settings()

    insight_service: InsightService
    report_service: ReportService | None = None
    if settings.GEMINI_API_KEY:
        insight_service = GeminiInsightService(
            api_key=settings.GEMINI_API_KEY,
            model=settings.GEMINI_MODEL,
            timeout=settings.AI_TIMEOUT_SECONDS,
        )
        report_service = GeminiReportService(
            api_key=settings.GEMINI_API_KEY,
            model=settings.GEMINI_MODEL,
            timeout=settings.AI_TIMEOUT_SECONDS,
        )
    else:
        insight_service = HttpInsightService(
            settings.CONSULTATION_API_URL, timeout=settings.AI_TIMEOUT_SECONDS
        )

    generator = InsightGenerator(
        insight_service,
        language=settings.TRANSCRIPTION_LANGUAGE,
        context_window=settings.CONTEXT_WINDOW_ENTRIES,
        default_confidence=settings.DEFAULT_INSIGHT_CONFIDENCE,
        timeout=settings.AI_TIMEOUT_SECONDS,
    )
    synthesizer = ReportSynthesizer(
        report_service,
        timeout=settings.AI_TIMEOUT_SECONDS,
        follow_up_days=settings.FOLLOW_UP_DAYS,
    )
    persistence = PersistenceAdapter(
        consultations or RestConsultationRepository(settings.CONSULTATION_API_URL),
        analytics or InMemoryAnalyticsRepository(),
        revenue_per_consultation=settings.REVENUE_PER_CONSULTATION,
    )

    def capture_factory() -> DeepgramCaptureSource:
        return DeepgramCaptureSource(
            api_key=settings.DEEPGRAM_API_KEY,
            model=settings.DEEPGRAM_MODEL,
            language=settings.TRANSCRIPTION_LANGUAGE,
            max_restarts=settings.CAPTURE_MAX_RESTARTS,
            backoff_seconds=settings.CAPTURE_BACKOFF_SECONDS,
        )

    return SessionRegistry(
        capture_factory,
        persistence,
        insight_generator=generator,
        report_synthesizer=synthesizer,
    )
