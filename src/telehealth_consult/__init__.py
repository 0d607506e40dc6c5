"""Consultation session orchestration: live transcription, AI insights, reports."""

from .errors import (
    AIUnavailable,
    ConsultationError,
    InvalidEntry,
    InvalidTransition,
    NoPatientBound,
    PersistenceFailed,
    SessionNotFound,
)
from .session import ConsultationSession, Phase, SessionRegistry, SessionState

__all__ = [
    "AIUnavailable",
    "ConsultationError",
    "InvalidEntry",
    "InvalidTransition",
    "NoPatientBound",
    "PersistenceFailed",
    "SessionNotFound",
    "ConsultationSession",
    "Phase",
    "SessionRegistry",
    "SessionState",
]
