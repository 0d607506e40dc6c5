"""Pydantic models for captured speech and the consultation transcript."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Speaker(str, Enum):
    DOCTOR = "doctor"
    PATIENT = "patient"


class Segment(BaseModel):
    """One finalized unit of recognized speech, as emitted by a capture source."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(..., description="Recognized text")
    confidence: float = Field(default=0.0, description="Recognizer confidence 0-1")
    start: float | None = Field(default=None, description="Offset in the audio stream, seconds")
    end: float | None = Field(default=None, description="End offset in the audio stream, seconds")


class TranscriptEntry(BaseModel):
    """A speaker-attributed transcript line. Immutable once appended.

    Range checks on ``text`` and ``confidence`` are enforced by
    ``TranscriptBuffer.append`` so that a bad entry surfaces as ``InvalidEntry``.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    speaker: Speaker = Field(..., description="Doctor or patient")
    text: str = Field(..., description="Transcribed text for this entry")
    confidence: float = Field(..., description="Confidence score 0-1")
    captured_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def render(self) -> str:
        """Render as a ``speaker: text`` line, the format fed to the AI services."""
        return f"{self.speaker.value}: {self.text}"


def render_lines(entries: list[TranscriptEntry] | tuple[TranscriptEntry, ...]) -> str:
    return "\n".join(entry.render() for entry in entries)
