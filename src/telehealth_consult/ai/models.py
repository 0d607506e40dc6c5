"""Pydantic models for AI insights and the AI service request/response contracts."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class InsightKind(str, Enum):
    DIAGNOSTIC = "diagnostic"
    TREATMENT = "treatment"
    CLINICAL_NOTE = "clinical_note"
    WARNING = "warning"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ContextRange(BaseModel):
    """Half-open span ``[start, end)`` of transcript positions behind an insight."""

    model_config = ConfigDict(frozen=True)

    start: int = Field(..., ge=0)
    end: int = Field(..., ge=0)

    @model_validator(mode="after")
    def _ordered(self) -> "ContextRange":
        if self.end < self.start:
            raise ValueError(f"end ({self.end}) must not precede start ({self.start})")
        return self

    def __len__(self) -> int:
        return self.end - self.start


class Insight(BaseModel):
    """A structured AI suggestion. Never mutated after creation."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    kind: InsightKind
    content: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    priority: Priority = Priority.MEDIUM
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    source_context_range: ContextRange


class InsightRequest(BaseModel):
    """Payload sent to ``InsightService.analyze``."""

    transcript: str = Field(..., description="Text of the segment that triggered the call")
    speaker: str = Field(..., description="Attributed speaker of the segment")
    language: str = Field(default="en")
    context: str = Field(default="", description="Rolling context, one 'speaker: text' line per entry")
    symptoms: list[str] = Field(default_factory=list)


class InsightAnalysis(BaseModel):
    """Response of ``InsightService.analyze``. Unknown fields are ignored."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    diagnostic_suggestions: list[str] = Field(default_factory=list, alias="diagnosticSuggestions")
    recommended_tests: list[str] = Field(default_factory=list, alias="recommendedTests")
    treatment_options: list[str] = Field(default_factory=list, alias="treatmentOptions")
    urgency_level: str | None = Field(default=None, alias="urgencyLevel")
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    clinical_notes: str | None = Field(default=None, alias="clinicalNotes")


class ReportRequest(BaseModel):
    """Payload sent to ``ReportService.reduce``."""

    transcript: str
    insights: list[str] = Field(default_factory=list)
    notes: str = ""


class ReportDraft(BaseModel):
    """Well-formed response of ``ReportService.reduce``.

    Every field except ``followUpDate`` is required; a response missing any of
    them is malformed and rejected as a whole.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    patient_summary: str = Field(..., min_length=1, alias="patientSummary")
    doctor_summary: str = Field(..., min_length=1, alias="doctorSummary")
    diagnosis: str = Field(..., min_length=1)
    prescriptions: list[str]
    recommendations: list[str]
    follow_up_date: date | None = Field(default=None, alias="followUpDate")
