"""Example: run one consultation end to end (demo mode with canned AI responses).

Usage:
    # Demo mode, no API keys needed:
    python examples/consultation_demo.py

    # Real Gemini insights and report:
    GEMINI_API_KEY=<key> python examples/consultation_demo.py
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from unittest.mock import MagicMock

# Make sure the package is importable when running from the project root
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from telehealth_consult.ai.base import InsightService, ReportService
from telehealth_consult.ai.gemini import GeminiInsightService, GeminiReportService
from telehealth_consult.ai.insights import InsightGenerator
from telehealth_consult.capture.manual import ManualCaptureSource
from telehealth_consult.log import configure_logging
from telehealth_consult.persistence.adapter import PersistenceAdapter, week_start
from telehealth_consult.persistence.repositories import (
    InMemoryAnalyticsRepository,
    InMemoryConsultationRepository,
)
from telehealth_consult.report.synthesizer import ReportSynthesizer
from telehealth_consult.session.models import SessionEvent
from telehealth_consult.session.registry import SessionRegistry


DEMO_SEGMENTS = [
    ("Good morning, what brings you in today?", 0.78),
    ("I feel a pounding headache behind my eyes for three days", 0.62),
    ("Any nausea? Based on your symptoms the diagnosis looks like a tension headache", 0.91),
    ("No nausea, but my neck is stiff in the morning", 0.66),
]

DEMO_ANALYSIS = {
    "diagnosticSuggestions": ["Tension-type headache"],
    "recommendedTests": ["Blood pressure measurement"],
    "urgencyLevel": "low",
    "confidence": 0.81,
}

DEMO_REPORT = {
    "patientSummary": "You most likely have a tension headache. Rest, hydrate and limit screen time.",
    "doctorSummary": "3-day frontal headache with neck stiffness on waking. No red flags.",
    "diagnosis": "Tension-type headache",
    "prescriptions": ["Ibuprofen 400mg PRN, max 3 per day"],
    "recommendations": ["Posture correction", "Return if vision changes"],
}


def _services() -> tuple[InsightService, ReportService]:
    if os.environ.get("GEMINI_API_KEY"):
        print("Using Gemini for insights and report\n")
        return GeminiInsightService(), GeminiReportService()

    print("GEMINI_API_KEY not set, using canned AI responses\n")
    insight_service = MagicMock(spec=InsightService)
    insight_service.analyze.return_value = DEMO_ANALYSIS
    report_service = MagicMock(spec=ReportService)
    report_service.reduce.return_value = DEMO_REPORT
    return insight_service, report_service


def _print_event(event: SessionEvent) -> None:
    if event.kind.value == "transcript_appended":
        print(f"  [{event.data.speaker.value:>7}] {event.data.text}")
    elif event.kind.value == "insight_added":
        print(f"  (insight/{event.data.kind.value}) {event.data.content}")
    elif event.kind.value == "phase_changed":
        print(f"-- phase: {event.phase.value}")


def run_demo() -> None:
    configure_logging("WARNING")
    print("=== Consultation Demo ===\n")

    insight_service, report_service = _services()
    generator = InsightGenerator(insight_service)
    synthesizer = ReportSynthesizer(report_service)
    consultations = InMemoryConsultationRepository()
    analytics = InMemoryAnalyticsRepository()
    capture = ManualCaptureSource()

    registry = SessionRegistry(
        lambda: capture,
        PersistenceAdapter(consultations, analytics),
        insight_generator=generator,
        report_synthesizer=synthesizer,
    )

    session = registry.create(doctor_id="dr-demo", patient_id="pt-demo")
    session.subscribe(_print_event)
    session.start()
    for text, confidence in DEMO_SEGMENTS:
        capture.emit(text, confidence=confidence)
        session.wait_for_insights(timeout=15)
    session.add_doctor_note("Neck muscles tender on palpation.")
    session.set_notes("Afebrile. BP 118/76.")
    session.stop()

    record = registry.commit(session.session_id)
    report = session.report_result

    print("\n=== Report ===")
    print(report.model_dump_json(indent=2))
    print("\n=== Stored consultation ===")
    print(json.dumps(record.model_dump(mode="json", by_alias=True), indent=2))
    print("\n=== Weekly analytics ===")
    row = analytics.get_week("dr-demo", week_start(record.consultation_date))
    print(row.model_dump_json(indent=2) if row else "(none)")

    generator.close()
    synthesizer.close()


if __name__ == "__main__":
    run_demo()
