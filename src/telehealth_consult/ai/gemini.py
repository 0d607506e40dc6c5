"""Gemini-backed insight and report services (google-genai SDK)."""

from __future__ import annotations

import json
import os
from typing import Any

from google import genai

from ..errors import AIUnavailable
from .base import InsightService, ReportService
from .models import InsightRequest, ReportRequest

DEFAULT_MODEL = "gemini-2.0-flash"

INSIGHT_SYSTEM_PROMPT = """You are a medical AI assistant helping a doctor during a live consultation.
Analyze the latest transcript segment in the context of the recent conversation and
provide diagnostic insights and recommended tests.

The consultation may be conducted in several languages. Always respond in English.
AI suggestions supplement, and never replace, the doctor's clinical judgment.
Patient safety is the highest priority.

Return ONLY a JSON object with:
- diagnosticSuggestions: array of strings
- recommendedTests: array of strings
- treatmentOptions: array of strings
- urgencyLevel: one of low, medium, high, emergency
- confidence: number between 0 and 1
- clinicalNotes: string"""

REPORT_SYSTEM_PROMPT = """You are generating a draft consultation report for doctor review.

Rules:
- Use ONLY the transcript, the AI insights, and the doctor's notes provided.
- Do NOT invent medical facts.
- Write in clear, professional English.

Return ONLY a JSON object with:
- patientSummary: string, plain-language summary for the patient
- doctorSummary: string, clinical summary for the record
- diagnosis: string
- prescriptions: array of strings
- recommendations: array of strings
- followUpDate: optional ISO date (YYYY-MM-DD)"""


class _GeminiJSONService:
    """Shared Gemini plumbing: one JSON-mode generate call per request."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        client: Any = None,
        timeout: float = 10.0,
    ) -> None:
        key = api_key or os.environ.get("GEMINI_API_KEY", "")
        self.model = model or os.environ.get("GEMINI_MODEL", DEFAULT_MODEL)
        # Bounds the HTTP request itself; the SDK takes milliseconds
        self._client = client or genai.Client(
            api_key=key, http_options={"timeout": int(timeout * 1000)}
        )

    def _generate_json(self, prompt: str, system_instruction: str) -> dict[str, Any]:
        try:
            response = self._client.models.generate_content(
                model=self.model,
                contents=prompt,
                config={
                    "system_instruction": system_instruction,
                    "response_mime_type": "application/json",
                    "temperature": 0.0,
                },
            )
        except Exception as exc:  # noqa: BLE001 - SDK raises transport and API errors alike
            raise AIUnavailable(f"Gemini call failed: {exc}") from exc

        raw_text = (response.text or "").strip()
        if not raw_text:
            raise AIUnavailable("Empty response from Gemini")

        # Models occasionally wrap JSON mode output in a markdown fence
        if raw_text.startswith("```"):
            raw_text = raw_text.strip("`")
            if raw_text.lower().startswith("json"):
                raw_text = raw_text[4:].strip()

        try:
            parsed = json.loads(raw_text)
        except json.JSONDecodeError as exc:
            raise AIUnavailable(f"Gemini returned invalid JSON: {exc}") from exc
        if not isinstance(parsed, dict):
            raise AIUnavailable(f"Gemini returned {type(parsed).__name__}, expected an object")
        return parsed


class GeminiInsightService(_GeminiJSONService, InsightService):
    """Per-segment consultation analysis."""

    def analyze(self, request: InsightRequest) -> dict[str, Any]:
        prompt = (
            f"Language: {request.language}\n"
            f"Speaker of latest segment: {request.speaker}\n"
            f"Symptoms mentioned: {', '.join(request.symptoms) or 'none'}\n\n"
            f"Recent conversation:\n{request.context}\n\n"
            f"Latest segment:\n{request.transcript}"
        )
        return self._generate_json(prompt, INSIGHT_SYSTEM_PROMPT)


class GeminiReportService(_GeminiJSONService, ReportService):
    """End-of-session report reducer."""

    def reduce(self, request: ReportRequest) -> dict[str, Any]:
        insights = "\n".join(f"- {content}" for content in request.insights) or "none"
        prompt = (
            f"CONSULTATION TRANSCRIPT:\n{request.transcript or '(empty)'}\n\n"
            f"AI INSIGHTS:\n{insights}\n\n"
            f"DOCTOR NOTES:\n{request.notes or 'none'}"
        )
        return self._generate_json(prompt, REPORT_SYSTEM_PROMPT)
