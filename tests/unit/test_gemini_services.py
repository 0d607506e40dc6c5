"""Unit tests for the Gemini insight and report services (client mocked)."""

from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import pytest

from telehealth_consult.ai.gemini import (
    INSIGHT_SYSTEM_PROMPT,
    REPORT_SYSTEM_PROMPT,
    GeminiInsightService,
    GeminiReportService,
)
from telehealth_consult.ai.models import InsightRequest, ReportRequest
from telehealth_consult.errors import AIUnavailable


def _client_returning(text: str | None) -> MagicMock:
    client = MagicMock()
    client.models.generate_content.return_value = MagicMock(text=text)
    return client


@pytest.fixture
def insight_request() -> InsightRequest:
    return InsightRequest(
        transcript="My chest hurts when I breathe",
        speaker="patient",
        language="en",
        context="doctor: What brings you in?\npatient: My chest hurts when I breathe",
        symptoms=["pain"],
    )


class TestGeminiInsightService:
    def test_parses_json_response(self, insight_request) -> None:
        payload = {"diagnosticSuggestions": ["Pleuritis"], "recommendedTests": ["Chest X-ray"], "confidence": 0.6}
        client = _client_returning(json.dumps(payload))
        service = GeminiInsightService(api_key="test-key", model="gemini-test", client=client)

        assert service.analyze(insight_request) == payload

        kwargs = client.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-test"
        assert "My chest hurts when I breathe" in kwargs["contents"]
        assert "Symptoms mentioned: pain" in kwargs["contents"]
        assert kwargs["config"]["system_instruction"] == INSIGHT_SYSTEM_PROMPT
        assert kwargs["config"]["response_mime_type"] == "application/json"

    def test_strips_markdown_fence(self, insight_request) -> None:
        client = _client_returning('```json\n{"diagnosticSuggestions": ["Costochondritis"]}\n```')
        service = GeminiInsightService(api_key="k", client=client)
        assert service.analyze(insight_request) == {"diagnosticSuggestions": ["Costochondritis"]}

    @pytest.mark.parametrize("text", [None, "", "   ", "not json", "[1, 2]"])
    def test_unusable_output_raises(self, insight_request, text) -> None:
        service = GeminiInsightService(api_key="k", client=_client_returning(text))
        with pytest.raises(AIUnavailable):
            service.analyze(insight_request)

    def test_sdk_error_wrapped(self, insight_request) -> None:
        client = MagicMock()
        client.models.generate_content.side_effect = RuntimeError("429 quota exceeded")
        service = GeminiInsightService(api_key="k", client=client)
        with pytest.raises(AIUnavailable, match="quota") as excinfo:
            service.analyze(insight_request)
        assert isinstance(excinfo.value.__cause__, RuntimeError)

    def test_builds_client_from_env(self, monkeypatch) -> None:
        monkeypatch.setenv("GEMINI_API_KEY", "env-key")
        monkeypatch.setenv("GEMINI_MODEL", "gemini-env")
        with patch("telehealth_consult.ai.gemini.genai.Client") as client_cls:
            service = GeminiInsightService()
        client_cls.assert_called_once_with(api_key="env-key", http_options={"timeout": 10000})
        assert service.model == "gemini-env"


class TestGeminiReportService:
    def test_prompt_includes_transcript_insights_and_notes(self) -> None:
        draft = {
            "patientSummary": "p",
            "doctorSummary": "d",
            "diagnosis": "Pleuritis",
            "prescriptions": [],
            "recommendations": [],
        }
        client = _client_returning(json.dumps(draft))
        service = GeminiReportService(api_key="k", client=client)

        result = service.reduce(
            ReportRequest(
                transcript="patient: my chest hurts",
                insights=["Pleuritis", "Chest X-ray"],
                notes="Afebrile.",
            )
        )

        assert result == draft
        kwargs = client.models.generate_content.call_args.kwargs
        assert "patient: my chest hurts" in kwargs["contents"]
        assert "- Chest X-ray" in kwargs["contents"]
        assert "Afebrile." in kwargs["contents"]
        assert kwargs["config"]["system_instruction"] == REPORT_SYSTEM_PROMPT

    def test_empty_inputs_render_placeholders(self) -> None:
        client = _client_returning("{}")
        GeminiReportService(api_key="k", client=client).reduce(ReportRequest(transcript=""))
        contents = client.models.generate_content.call_args.kwargs["contents"]
        assert "(empty)" in contents
        assert "AI INSIGHTS:\nnone" in contents
