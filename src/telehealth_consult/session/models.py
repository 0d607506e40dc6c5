"""Session phases, pause accounting, state snapshots and emitted events."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..ai.models import Insight
from ..transcript.models import TranscriptEntry


class Phase(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    PAUSED = "paused"
    STOPPED = "stopped"
    REPORTED = "reported"


class PausedInterval(BaseModel):
    """A pause; ``end`` is None while the session is still paused."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime | None = None

    def duration_seconds(self, until: datetime) -> float:
        end = self.end or until
        return max(0.0, (end - self.start).total_seconds())


def elapsed_seconds(
    started_at: datetime | None,
    paused_intervals: Sequence[PausedInterval],
    until: datetime,
) -> float:
    """Recording time between ``started_at`` and ``until`` minus every pause. Never negative."""
    if started_at is None:
        return 0.0
    total = (until - started_at).total_seconds()
    paused = sum(interval.duration_seconds(until) for interval in paused_intervals)
    return max(0.0, total - paused)


class SessionState(BaseModel):
    """Immutable snapshot of one consultation session."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    patient_id: str | None = None
    doctor_id: str
    phase: Phase = Phase.IDLE
    started_at: datetime | None = None
    stopped_at: datetime | None = None
    paused_intervals: tuple[PausedInterval, ...] = ()
    transcript: tuple[TranscriptEntry, ...] = ()
    insights: tuple[Insight, ...] = ()
    doctor_notes: str = ""

    def elapsed_seconds(self, now: datetime | None = None) -> float:
        until = self.stopped_at or now
        if until is None:
            raise ValueError("now is required for a session that has not stopped")
        return elapsed_seconds(self.started_at, self.paused_intervals, until)

    def insights_by_time(self) -> list[Insight]:
        """Insights in display order. Arrival order is not transcript order."""
        return sorted(self.insights, key=lambda insight: insight.generated_at)


class EventKind(str, Enum):
    PHASE_CHANGED = "phase_changed"
    TRANSCRIPT_APPENDED = "transcript_appended"
    INSIGHT_ADDED = "insight_added"
    SEGMENT_DROPPED = "segment_dropped"
    REPORT_READY = "report_ready"


class SessionEvent(BaseModel):
    """Message pushed from a session to its UI subscribers."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: EventKind
    session_id: str
    phase: Phase
    data: Any = Field(default=None, description="Entry, insight, report, or drop reason")
