"""Shared pytest fixtures and test markers.

Test tiers
----------
  unit        Fast, fully offline, zero external dependencies.
              Always run.

  integration Whole-session flows with fake AI services and in-memory
              repositories. Always run.

  quality     Property-based (Hypothesis) checks of the transcript,
              state machine, elapsed-time and speaker invariants.

  live        Real Gemini / Deepgram calls. Skipped unless the required
              environment variables are set.

Run specific tiers:
  pytest tests/unit tests/integration tests/quality   # offline only
  pytest tests/live -m live                           # live only
  pytest tests/ -v                                    # everything
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from telehealth_consult.ai.insights import InsightGenerator
from telehealth_consult.capture.manual import ManualCaptureSource
from telehealth_consult.persistence.adapter import PersistenceAdapter
from telehealth_consult.persistence.repositories import (
    InMemoryAnalyticsRepository,
    InMemoryConsultationRepository,
)
from telehealth_consult.report.synthesizer import ReportSynthesizer
from telehealth_consult.session.orchestrator import ConsultationSession
from tests.fixtures.fakes import FakeClock, StaticInsightService, StaticReportService

DOCTOR_ID = "doctor-001"
PATIENT_ID = "patient-001"


# ---------------------------------------------------------------------------
# Pytest markers
# ---------------------------------------------------------------------------

def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast offline unit tests")
    config.addinivalue_line("markers", "integration: whole-session flows with fakes")
    config.addinivalue_line("markers", "quality: property-based invariants")
    config.addinivalue_line("markers", "live: requires real credentials (skipped by default)")


# ---------------------------------------------------------------------------
# Clock and collaborators
# ---------------------------------------------------------------------------

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 3, 5, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def capture() -> ManualCaptureSource:
    return ManualCaptureSource()


@pytest.fixture
def analysis_response() -> dict:
    return {
        "diagnosticSuggestions": ["Tension-type headache", "Migraine without aura"],
        "recommendedTests": ["Blood pressure measurement", "Neurological examination"],
        "treatmentOptions": ["Ibuprofen 400mg as needed"],
        "urgencyLevel": "medium",
        "confidence": 0.82,
        "clinicalNotes": "No red-flag symptoms reported.",
    }


@pytest.fixture
def insight_service(analysis_response: dict) -> StaticInsightService:
    return StaticInsightService(response=analysis_response)


@pytest.fixture
def insight_generator(insight_service: StaticInsightService, clock: FakeClock) -> InsightGenerator:
    generator = InsightGenerator(insight_service, timeout=2.0, clock=clock)
    yield generator
    generator.close()


@pytest.fixture
def report_draft() -> dict:
    return {
        "patientSummary": "You have a tension-type headache. Rest and stay hydrated.",
        "doctorSummary": "Three-day frontal headache, no neurological deficit.",
        "diagnosis": "Tension-type headache",
        "prescriptions": ["Ibuprofen 400mg PRN, max 3 per day"],
        "recommendations": ["Hydration", "Sleep hygiene"],
    }


@pytest.fixture
def report_service(report_draft: dict) -> StaticReportService:
    return StaticReportService(response=report_draft)


@pytest.fixture
def synthesizer() -> ReportSynthesizer:
    """Baseline-only synthesizer."""
    return ReportSynthesizer()


@pytest.fixture
def session(
    capture: ManualCaptureSource,
    insight_generator: InsightGenerator,
    synthesizer: ReportSynthesizer,
    clock: FakeClock,
) -> ConsultationSession:
    consultation = ConsultationSession(
        DOCTOR_ID,
        PATIENT_ID,
        capture=capture,
        insight_generator=insight_generator,
        report_synthesizer=synthesizer,
        clock=clock,
    )
    yield consultation
    consultation.close()


@pytest.fixture
def consultations() -> InMemoryConsultationRepository:
    return InMemoryConsultationRepository()


@pytest.fixture
def analytics() -> InMemoryAnalyticsRepository:
    return InMemoryAnalyticsRepository()


@pytest.fixture
def persistence(
    consultations: InMemoryConsultationRepository,
    analytics: InMemoryAnalyticsRepository,
    clock: FakeClock,
) -> PersistenceAdapter:
    return PersistenceAdapter(consultations, analytics, clock=clock)
