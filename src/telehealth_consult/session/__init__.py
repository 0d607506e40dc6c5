from .models import (
    EventKind,
    PausedInterval,
    Phase,
    SessionEvent,
    SessionState,
    elapsed_seconds,
)
from .orchestrator import ConsultationSession, SessionListener
from .registry import SessionRegistry

__all__ = [
    "EventKind",
    "PausedInterval",
    "Phase",
    "SessionEvent",
    "SessionState",
    "elapsed_seconds",
    "ConsultationSession",
    "SessionListener",
    "SessionRegistry",
]
