"""Unit tests for InsightGenerator: response mapping and best-effort failure handling."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone

import pytest

from telehealth_consult.ai.base import InsightService
from telehealth_consult.ai.insights import (
    FALLBACK_DIAGNOSTIC_TEXT,
    FALLBACK_TREATMENT_TEXT,
    InsightGenerator,
    RollingContext,
    extract_symptoms,
)
from telehealth_consult.ai.models import ContextRange, InsightKind, Priority
from telehealth_consult.errors import AIUnavailable
from telehealth_consult.transcript.buffer import TranscriptBuffer
from telehealth_consult.transcript.models import Speaker, TranscriptEntry
from tests.fixtures.fakes import StaticInsightService

T0 = datetime(2025, 3, 5, 9, 0, tzinfo=timezone.utc)


def _filled_buffer(count: int) -> TranscriptBuffer:
    buffer = TranscriptBuffer()
    for i in range(count):
        speaker = Speaker.DOCTOR if i % 2 == 0 else Speaker.PATIENT
        buffer.append(
            TranscriptEntry(speaker=speaker, text=f"line {i}", confidence=0.9, captured_at=T0 + timedelta(seconds=i))
        )
    return buffer


@pytest.fixture
def make_generator(clock):
    generators: list[InsightGenerator] = []

    def _make(service, **kwargs) -> InsightGenerator:
        kwargs.setdefault("timeout", 2.0)
        generator = InsightGenerator(service, clock=clock, **kwargs)
        generators.append(generator)
        return generator

    yield _make
    for generator in generators:
        generator.close()


def _analyze(generator: InsightGenerator, text: str = "I have had a headache and fever for three days"):
    buffer = _filled_buffer(3)
    entry = buffer.append(TranscriptEntry(speaker=Speaker.PATIENT, text=text, confidence=0.6))
    return generator.analyze_segment(entry, generator.rolling_context(buffer))


class TestRollingContext:
    def test_window_covers_last_entries(self, make_generator, insight_service) -> None:
        generator = make_generator(insight_service, context_window=5)
        context = generator.rolling_context(_filled_buffer(8))
        assert [e.text for e in context.entries] == ["line 3", "line 4", "line 5", "line 6", "line 7"]
        assert context.span == ContextRange(start=3, end=8)

    def test_short_buffer(self, make_generator, insight_service) -> None:
        generator = make_generator(insight_service)
        context = generator.rolling_context(_filled_buffer(2))
        assert context.span == ContextRange(start=0, end=2)
        assert len(context.span) == 2

    def test_render_uses_speaker_lines(self) -> None:
        buffer = _filled_buffer(2)
        context = RollingContext(entries=buffer.all(), span=ContextRange(start=0, end=2))
        assert context.render() == "doctor: line 0\npatient: line 1"


class TestMapping:
    def test_two_insights_from_first_suggestions(self, make_generator, insight_service, clock) -> None:
        insights = _analyze(make_generator(insight_service))

        assert [i.kind for i in insights] == [InsightKind.DIAGNOSTIC, InsightKind.TREATMENT]
        assert insights[0].content == "Tension-type headache"
        assert insights[1].content == "Blood pressure measurement"
        assert all(i.confidence == pytest.approx(0.82) for i in insights)
        assert all(i.priority is Priority.MEDIUM for i in insights)
        assert all(i.generated_at == clock.now for i in insights)
        assert insights[0].id != insights[1].id

    def test_source_range_covers_triggering_segment(self, make_generator, insight_service) -> None:
        insights = _analyze(make_generator(insight_service, context_window=5))
        assert insights[0].source_context_range == ContextRange(start=0, end=4)

    def test_empty_lists_use_fallback_text(self, make_generator) -> None:
        service = StaticInsightService(response={"diagnosticSuggestions": [], "recommendedTests": []})
        insights = _analyze(make_generator(service))
        assert insights[0].content == FALLBACK_DIAGNOSTIC_TEXT
        assert insights[1].content == FALLBACK_TREATMENT_TEXT

    def test_missing_confidence_defaults(self, make_generator) -> None:
        service = StaticInsightService(response={"diagnosticSuggestions": ["Viral URI"]})
        insights = _analyze(make_generator(service))
        assert all(i.confidence == pytest.approx(0.7) for i in insights)

    def test_custom_default_confidence(self, make_generator) -> None:
        service = StaticInsightService(response={})
        insights = _analyze(make_generator(service, default_confidence=0.5))
        assert insights[0].confidence == pytest.approx(0.5)

    @pytest.mark.parametrize(
        ("urgency", "priority"),
        [
            ("low", Priority.LOW),
            ("medium", Priority.MEDIUM),
            ("HIGH", Priority.HIGH),
            ("emergency", Priority.HIGH),
            ("unheard-of", Priority.MEDIUM),
        ],
    )
    def test_urgency_maps_to_priority(self, make_generator, urgency, priority) -> None:
        service = StaticInsightService(response={"urgencyLevel": urgency})
        insights = _analyze(make_generator(service))
        assert insights[0].priority is priority

    def test_unknown_fields_ignored(self, make_generator) -> None:
        service = StaticInsightService(response={"diagnosticSuggestions": ["Flu"], "extra": {"nested": True}})
        assert _analyze(make_generator(service))[0].content == "Flu"


class TestRequest:
    def test_request_carries_segment_context_and_symptoms(self, make_generator, insight_service) -> None:
        _analyze(make_generator(insight_service, language="es"))
        request = insight_service.requests[0]
        assert request.transcript == "I have had a headache and fever for three days"
        assert request.speaker == "patient"
        assert request.language == "es"
        assert request.symptoms == ["headache", "fever"]
        assert request.context.endswith("patient: I have had a headache and fever for three days")

    def test_extract_symptoms_case_insensitive(self) -> None:
        assert extract_symptoms("Severe PAIN with Nausea") == ["pain", "nausea"]
        assert extract_symptoms("all good") == []


class TestFailures:
    def test_service_exception_returns_empty(self, make_generator, caplog) -> None:
        service = StaticInsightService(error=ConnectionError("network down"))
        with caplog.at_level(logging.WARNING, logger="telehealth_consult.ai.insights"):
            assert _analyze(make_generator(service)) == []
        assert "network down" in caplog.text

    def test_ai_unavailable_returns_empty(self, make_generator) -> None:
        service = StaticInsightService(error=AIUnavailable("quota"))
        assert _analyze(make_generator(service)) == []

    def test_timeout_returns_empty(self, make_generator) -> None:
        service = StaticInsightService(response={"diagnosticSuggestions": ["late"]}, delay=0.5)
        assert _analyze(make_generator(service, timeout=0.05)) == []

    def test_hung_calls_do_not_starve_later_calls(self, make_generator, analysis_response) -> None:
        release = threading.Event()

        class HangsThenRecovers(InsightService):
            def __init__(self) -> None:
                self.calls = 0

            def analyze(self, request):
                self.calls += 1
                if self.calls <= 4:
                    release.wait(timeout=5)
                return analysis_response

        generator = make_generator(HangsThenRecovers(), timeout=0.2)
        try:
            for _ in range(4):
                assert _analyze(generator) == []
            assert len(_analyze(generator)) == 2
        finally:
            release.set()

    @pytest.mark.parametrize("response", [None, "text", ["a", "b"], 42])
    def test_non_object_response_returns_empty(self, make_generator, response) -> None:
        assert _analyze(make_generator(StaticInsightService(response=response))) == []

    def test_out_of_range_confidence_is_malformed(self, make_generator) -> None:
        service = StaticInsightService(response={"diagnosticSuggestions": ["x"], "confidence": 7})
        assert _analyze(make_generator(service)) == []

    def test_wrong_field_type_is_malformed(self, make_generator) -> None:
        service = StaticInsightService(response={"diagnosticSuggestions": "not a list"})
        assert _analyze(make_generator(service)) == []
