"""Explicit, id-keyed handle on the consultations a process is running.

Replaces ambient per-client session storage: callers hold a registry
(one per app or request scope), create sessions through it and refer to
them by id. Sessions are independent of each other; only the persistence
layer is shared.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING

from ..ai.insights import InsightGenerator
from ..capture.base import SpeechCaptureSource
from ..errors import InvalidTransition, SessionNotFound
from ..transcript.speaker import SpeakerClassifier
from .models import Phase
from .orchestrator import ConsultationSession

if TYPE_CHECKING:
    from ..persistence.adapter import PersistenceAdapter
    from ..persistence.models import ConsultationRecord
    from ..report.synthesizer import ReportSynthesizer

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Creates, looks up and commits consultation sessions."""

    def __init__(
        self,
        capture_factory: Callable[[], SpeechCaptureSource],
        persistence: PersistenceAdapter,
        insight_generator: InsightGenerator | None = None,
        report_synthesizer: ReportSynthesizer | None = None,
        classifier: SpeakerClassifier | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._capture_factory = capture_factory
        self._persistence = persistence
        self._insight_generator = insight_generator
        self._report_synthesizer = report_synthesizer
        self._classifier = classifier
        self._clock = clock
        self._sessions: dict[str, ConsultationSession] = {}
        self._committing: set[str] = set()
        self._lock = threading.Lock()

    def create(self, doctor_id: str, patient_id: str | None = None) -> ConsultationSession:
        session = ConsultationSession(
            doctor_id,
            patient_id,
            capture=self._capture_factory(),
            insight_generator=self._insight_generator,
            report_synthesizer=self._report_synthesizer,
            classifier=self._classifier,
            clock=self._clock,
        )
        with self._lock:
            self._sessions[session.session_id] = session
        logger.info("Created session %s for doctor %s", session.session_id, doctor_id)
        return session

    def get(self, session_id: str) -> ConsultationSession:
        with self._lock:
            try:
                return self._sessions[session_id]
            except KeyError:
                raise SessionNotFound(session_id) from None

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def commit(self, session_id: str) -> ConsultationRecord:
        """Report (if needed) and persist a finished session, then forget it.

        The session stays registered when persistence fails so the caller
        can retry.

        Raises:
            SessionNotFound: unknown or already committed session id.
            InvalidTransition: the session has not been stopped.
            PersistenceFailed: the store rejected the write.
        """
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFound(session_id)
            if session_id in self._committing:
                raise InvalidTransition(session.phase.value, "commit (already in progress)")
            self._committing.add(session_id)

        try:
            if session.phase is Phase.STOPPED:
                session.report()
            report = session.report_result
            if session.phase is not Phase.REPORTED or report is None:
                raise InvalidTransition(session.phase.value, "commit")

            record = self._persistence.commit(session.state, report)
        except BaseException:
            with self._lock:
                self._committing.discard(session_id)
            raise

        # An id is never free to commit while still registered
        with self._lock:
            self._sessions.pop(session_id, None)
            self._committing.discard(session_id)
        logger.info("Committed session %s as consultation %s", session_id, record.id)
        return record

    def discard(self, session_id: str) -> None:
        """Drop a session without persisting it."""
        with self._lock:
            if session_id in self._committing:
                phase = self._sessions[session_id].phase.value
                raise InvalidTransition(phase, "discard (commit in progress)")
            session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFound(session_id)
        session.close()
