"""Structured end-of-session consultation report."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field


class ConsultationReport(BaseModel):
    """Write-once report derived from a stopped session."""

    model_config = ConfigDict(frozen=True)

    patient_summary: str
    doctor_summary: str
    diagnosis: str
    prescriptions: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    follow_up_date: date | None = None
    duration_seconds: float = Field(default=0.0, ge=0.0)
    ai_enhanced: bool = Field(default=False, description="True when the AI reducer replaced the baseline")
