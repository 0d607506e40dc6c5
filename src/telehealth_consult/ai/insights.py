"""Insight Generator Adapter.

Wraps ``InsightService`` for use during recording:

  1. The session snapshots a ``RollingContext`` (last N buffer entries and the
     buffer span they cover) right after appending a segment.
  2. ``analyze_segment`` runs later on a worker thread, calls the service under
     a time-box, and maps the response to at most two ``Insight`` records.
  3. Any failure (network, timeout, malformed response) returns ``[]`` and is
     logged. Nothing is raised to the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from pydantic import ValidationError

from ..errors import AIUnavailable
from ..transcript.buffer import TranscriptBuffer
from ..transcript.models import TranscriptEntry, render_lines
from .base import InsightService, TimeBox
from .models import (
    ContextRange,
    Insight,
    InsightAnalysis,
    InsightKind,
    InsightRequest,
    Priority,
)

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT_WINDOW = 5
DEFAULT_CONFIDENCE = 0.7

SYMPTOM_TERMS: tuple[str, ...] = (
    "pain",
    "headache",
    "fever",
    "cough",
    "nausea",
    "fatigue",
    "dizziness",
)

FALLBACK_DIAGNOSTIC_TEXT = "No specific diagnostic suggestion yet; continue taking the history."
FALLBACK_TREATMENT_TEXT = "No additional tests recommended at this point."

_URGENCY_PRIORITY: dict[str, Priority] = {
    "low": Priority.LOW,
    "medium": Priority.MEDIUM,
    "high": Priority.HIGH,
    "emergency": Priority.HIGH,
}


@dataclass(frozen=True)
class RollingContext:
    """The bounded window of recent entries supplied with an insight request."""

    entries: tuple[TranscriptEntry, ...]
    span: ContextRange

    def render(self) -> str:
        return render_lines(self.entries)


def extract_symptoms(text: str) -> list[str]:
    """Return the known symptom terms that occur in ``text`` (case-insensitive)."""
    lowered = text.lower()
    return [term for term in SYMPTOM_TERMS if term in lowered]


class InsightGenerator:
    """Best-effort incremental insight generation for one or more sessions."""

    def __init__(
        self,
        service: InsightService,
        language: str = "en",
        context_window: int = DEFAULT_CONTEXT_WINDOW,
        default_confidence: float = DEFAULT_CONFIDENCE,
        timeout: float = 10.0,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._service = service
        self.language = language
        self.context_window = context_window
        self.default_confidence = default_confidence
        self._timebox = TimeBox(timeout, name="insight-ai")
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def rolling_context(self, buffer: TranscriptBuffer) -> RollingContext:
        """Snapshot the last ``context_window`` entries and the span they cover.

        Must be taken while the caller holds the session lock so the span
        only references entries already in the buffer.
        """
        entries = buffer.tail(self.context_window)
        end = len(buffer)
        return RollingContext(entries=entries, span=ContextRange(start=end - len(entries), end=end))

    def analyze_segment(self, segment: TranscriptEntry, recent_context: RollingContext) -> list[Insight]:
        request = InsightRequest(
            transcript=segment.text,
            speaker=segment.speaker.value,
            language=self.language,
            context=recent_context.render(),
            symptoms=extract_symptoms(segment.text),
        )
        try:
            raw = self._timebox.call(self._service.analyze, request)
            if not isinstance(raw, dict):
                raise AIUnavailable(f"Insight response must be an object, got {type(raw).__name__}")
            analysis = InsightAnalysis.model_validate(raw)
        except ValidationError as exc:
            logger.warning("Malformed insight response for entry %s: %s", segment.id, exc)
            return []
        except Exception as exc:  # noqa: BLE001 - insight generation is best-effort
            logger.warning("Insight generation unavailable for entry %s: %s", segment.id, exc)
            return []

        return self._to_insights(analysis, recent_context.span)

    def _to_insights(self, analysis: InsightAnalysis, span: ContextRange) -> list[Insight]:
        confidence = (
            analysis.confidence if analysis.confidence is not None else self.default_confidence
        )
        priority = _URGENCY_PRIORITY.get((analysis.urgency_level or "").lower(), Priority.MEDIUM)
        generated_at = self._clock()

        diagnostic = next(iter(analysis.diagnostic_suggestions), "") or FALLBACK_DIAGNOSTIC_TEXT
        treatment = next(iter(analysis.recommended_tests), "") or FALLBACK_TREATMENT_TEXT
        return [
            Insight(
                kind=InsightKind.DIAGNOSTIC,
                content=diagnostic,
                confidence=confidence,
                priority=priority,
                generated_at=generated_at,
                source_context_range=span,
            ),
            Insight(
                kind=InsightKind.TREATMENT,
                content=treatment,
                confidence=confidence,
                priority=priority,
                generated_at=generated_at,
                source_context_range=span,
            ),
        ]

    def close(self) -> None:
        self._timebox.shutdown()
