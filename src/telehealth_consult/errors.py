"""Exception taxonomy for consultation sessions.

Only caller misuse (``InvalidTransition``, ``NoPatientBound``) and
``PersistenceFailed`` ever reach the UI layer. ``AIUnavailable`` is raised by
AI clients and converted into empty or baseline results at the adapter
boundary.
"""

from __future__ import annotations


class ConsultationError(Exception):
    """Base class for every error raised by this package."""


class InvalidTransition(ConsultationError):
    """Raised when an action is not permitted from the session's current phase."""

    def __init__(self, phase: str, action: str) -> None:
        self.phase = phase
        self.action = action
        super().__init__(f"Cannot {action} a session in phase {phase!r}")


class NoPatientBound(ConsultationError):
    """Raised when recording is started before a patient is bound to the session."""


class InvalidEntry(ConsultationError, ValueError):
    """Raised when a transcript entry has empty text or an out-of-range confidence."""


class AIUnavailable(ConsultationError):
    """Raised by AI clients on network errors, timeouts, or malformed responses."""


class PersistenceFailed(ConsultationError):
    """Raised when the consultation store rejects the final write."""


class SessionNotFound(ConsultationError, KeyError):
    """Raised when a session id is not held by the registry."""
