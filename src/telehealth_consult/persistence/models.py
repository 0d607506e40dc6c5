"""Consultation record and weekly analytics models.

Field aliases follow the consultation REST API (camelCase), so
``model_dump(by_alias=True)`` is the request body and API responses
validate directly.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


class ConsultationCreate(BaseModel):
    """Payload for ``ConsultationRepository.create``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    doctor_id: str = Field(..., alias="doctorId")
    patient_id: str = Field(..., alias="patientId")
    transcript: str = ""
    doctor_notes: str = Field(default="", alias="doctorNotes")
    ai_suggestions: str = Field(default="", alias="aiSuggestions")
    diagnosis: str = ""
    prescriptions: list[str] = Field(default_factory=list)
    duration_minutes: int = Field(default=0, ge=0, alias="durationMinutes")
    status: str = "completed"
    consultation_date: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), alias="consultationDate"
    )


class ConsultationRecord(ConsultationCreate):
    """A stored consultation. The API uses integer ids; they are kept as strings."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)

    id: str


class AnalyticsDelta(BaseModel):
    """Increment applied to a doctor's weekly analytics row."""

    model_config = ConfigDict(frozen=True)

    patients_seen: int = 1
    consultation_hours: float = 0.0
    revenue: float = 0.0


class WeeklyAnalytics(BaseModel):
    doctor_id: str
    week_start: datetime
    patients_seen: int = 0
    consultation_hours: float = 0.0
    revenue: float = 0.0

    def apply(self, delta: AnalyticsDelta) -> "WeeklyAnalytics":
        return self.model_copy(
            update={
                "patients_seen": self.patients_seen + delta.patients_seen,
                "consultation_hours": self.consultation_hours + delta.consultation_hours,
                "revenue": self.revenue + delta.revenue,
            }
        )
