"""Report Synthesizer: deterministic baseline first, AI enhancement second.

  1. Compute elapsed duration from the stopped session.
  2. Build the baseline report from transcript size, duration and doctor
     notes. This never calls out, so every session ends with a report.
  3. Ask the AI reducer for a full report under a time-box.
  4. A well-formed AI draft replaces the baseline wholesale. A failed call
     or a malformed draft keeps the baseline; nothing partial is merged.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from pydantic import ValidationError

from ..ai.base import ReportService, TimeBox
from ..ai.models import ReportDraft, ReportRequest
from ..errors import AIUnavailable, InvalidTransition
from ..session.models import Phase, SessionState
from ..transcript.models import Speaker, render_lines
from .models import ConsultationReport

logger = logging.getLogger(__name__)

DEFAULT_FOLLOW_UP_DAYS = 7
BASELINE_DIAGNOSIS = "Pending clinical review"


def format_duration(seconds: float) -> str:
    minutes, secs = divmod(int(seconds), 60)
    if minutes and secs:
        return f"{minutes} min {secs} s"
    if minutes:
        return f"{minutes} min"
    return f"{secs} s"


class ReportSynthesizer:
    """Reduce a stopped ``SessionState`` into a ``ConsultationReport``."""

    def __init__(
        self,
        service: ReportService | None = None,
        timeout: float = 10.0,
        follow_up_days: int = DEFAULT_FOLLOW_UP_DAYS,
    ) -> None:
        self._service = service
        self._timebox = TimeBox(timeout, name="report-ai") if service else None
        self.follow_up_days = follow_up_days

    def synthesize(self, session: SessionState) -> ConsultationReport:
        if session.phase not in (Phase.STOPPED, Phase.REPORTED) or session.stopped_at is None:
            raise InvalidTransition(session.phase.value, "synthesize a report for")

        duration = session.elapsed_seconds()
        baseline = self.baseline(session, duration)
        if self._service is None or self._timebox is None:
            return baseline

        request = ReportRequest(
            transcript=render_lines(session.transcript),
            insights=[insight.content for insight in session.insights_by_time()],
            notes=session.doctor_notes,
        )
        try:
            raw = self._timebox.call(self._service.reduce, request)
            if not isinstance(raw, dict):
                raise AIUnavailable(f"Report response must be an object, got {type(raw).__name__}")
            draft = ReportDraft.model_validate(raw)
        except ValidationError as exc:
            logger.warning(
                "Malformed AI report for session %s, keeping baseline: %s",
                session.session_id,
                exc.errors(include_url=False),
            )
            return baseline
        except Exception as exc:  # noqa: BLE001 - the AI reducer is best-effort
            logger.warning(
                "AI report unavailable for session %s, keeping baseline: %s",
                session.session_id,
                exc,
            )
            return baseline

        return ConsultationReport(
            patient_summary=draft.patient_summary,
            doctor_summary=draft.doctor_summary,
            diagnosis=draft.diagnosis,
            prescriptions=draft.prescriptions,
            recommendations=draft.recommendations,
            follow_up_date=draft.follow_up_date or baseline.follow_up_date,
            duration_seconds=duration,
            ai_enhanced=True,
        )

    def baseline(self, session: SessionState, duration: float) -> ConsultationReport:
        """Deterministic, AI-independent report."""
        if session.stopped_at is None:
            raise InvalidTransition(session.phase.value, "synthesize a report for")
        entries = session.transcript
        doctor_lines = sum(1 for entry in entries if entry.speaker is Speaker.DOCTOR)
        patient_lines = len(entries) - doctor_lines
        length = format_duration(duration)

        doctor_summary = (
            f"Consultation of {length} with {len(entries)} transcript entries "
            f"({doctor_lines} doctor, {patient_lines} patient) and "
            f"{len(session.insights)} AI insights."
        )
        notes = session.doctor_notes.strip()
        if notes:
            doctor_summary += f" Doctor notes: {notes}"

        return ConsultationReport(
            patient_summary=(
                f"Your consultation lasted {length}. "
                "Your doctor will review the discussion and follow up with you."
            ),
            doctor_summary=doctor_summary,
            diagnosis=BASELINE_DIAGNOSIS,
            prescriptions=[],
            recommendations=[
                "Review the consultation transcript and doctor notes",
                f"Schedule a follow-up consultation within {self.follow_up_days} days",
            ],
            follow_up_date=session.stopped_at.date() + timedelta(days=self.follow_up_days),
            duration_seconds=duration,
            ai_enhanced=False,
        )

    def close(self) -> None:
        if self._timebox is not None:
            self._timebox.shutdown()
