"""Session State Machine for one consultation.

Phases and permitted actions:

  idle      --start(patient)-->  recording
  recording --pause()--------->  paused
  paused    --resume()-------->  recording
  recording --stop()---------->  stopped
  paused    --stop()---------->  stopped
  stopped   --report()-------->  reported   (terminal)

Any other action raises ``InvalidTransition`` and leaves the session as it
was. Entering ``recording`` subscribes to the capture source; leaving it
unsubscribes.

Two locks are used. ``_transition_lock`` serializes user actions.
``_lock`` guards state and is never held while calling the capture source,
the AI services, or event listeners, because capture threads call back into
``_on_segment``.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable, Iterable
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from ..ai.insights import InsightGenerator, RollingContext
from ..ai.models import Insight
from ..capture.base import SpeechCaptureSource
from ..errors import InvalidEntry, InvalidTransition, NoPatientBound
from ..transcript.buffer import TranscriptBuffer
from ..transcript.models import Segment, Speaker, TranscriptEntry
from ..transcript.speaker import LexicalSpeakerClassifier, SpeakerClassifier
from .models import (
    EventKind,
    PausedInterval,
    Phase,
    SessionEvent,
    SessionState,
    elapsed_seconds,
)

if TYPE_CHECKING:
    from ..report.models import ConsultationReport
    from ..report.synthesizer import ReportSynthesizer

logger = logging.getLogger(__name__)

SessionListener = Callable[[SessionEvent], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConsultationSession:
    """Owns the transcript, insights, notes and phase of one consultation."""

    def __init__(
        self,
        doctor_id: str,
        patient_id: str | None = None,
        *,
        capture: SpeechCaptureSource,
        insight_generator: InsightGenerator | None = None,
        report_synthesizer: ReportSynthesizer | None = None,
        classifier: SpeakerClassifier | None = None,
        session_id: str | None = None,
        clock: Callable[[], datetime] | None = None,
        max_insight_workers: int = 2,
    ) -> None:
        if report_synthesizer is None:
            from ..report.synthesizer import ReportSynthesizer

            report_synthesizer = ReportSynthesizer()

        self.session_id = session_id or uuid.uuid4().hex
        self.doctor_id = doctor_id
        self._patient_id = patient_id
        self._capture = capture
        self._generator = insight_generator
        self._synthesizer = report_synthesizer
        self._classifier = classifier or LexicalSpeakerClassifier()
        self._clock = clock or _utcnow

        self._buffer = TranscriptBuffer()
        self._insights: list[Insight] = []
        self._notes = ""
        self._phase = Phase.IDLE
        self._started_at: datetime | None = None
        self._stopped_at: datetime | None = None
        self._paused: list[PausedInterval] = []
        self._report: ConsultationReport | None = None

        self._lock = threading.RLock()
        self._transition_lock = threading.Lock()
        self._inflight = 0
        self._idle = threading.Condition(self._lock)
        self._listeners: list[SessionListener] = []
        self._executor = ThreadPoolExecutor(
            max_workers=max_insight_workers,
            thread_name_prefix=f"insights-{self.session_id[:8]}",
        )

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def phase(self) -> Phase:
        with self._lock:
            return self._phase

    @property
    def patient_id(self) -> str | None:
        with self._lock:
            return self._patient_id

    @property
    def transcript(self) -> tuple[TranscriptEntry, ...]:
        return self._buffer.all()

    @property
    def insights(self) -> tuple[Insight, ...]:
        with self._lock:
            return tuple(self._insights)

    @property
    def doctor_notes(self) -> str:
        with self._lock:
            return self._notes

    @property
    def report_result(self) -> ConsultationReport | None:
        with self._lock:
            return self._report

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._snapshot()

    def elapsed_seconds(self, now: datetime | None = None) -> float:
        with self._lock:
            until = self._stopped_at or now or self._clock()
            return elapsed_seconds(self._started_at, self._paused, until)

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a UI listener. Returns a callable that removes it."""
        with self._lock:
            self._listeners.append(listener)

        def _remove() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _remove

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start(self, patient_id: str | None = None) -> None:
        """Begin recording. Binds ``patient_id`` if given.

        Raises:
            InvalidTransition: unless the session is idle.
            NoPatientBound: if no patient was bound at creation or here.
            RuntimeError: if the capture source cannot start.
        """
        with self._transition_lock:
            with self._lock:
                self._require((Phase.IDLE,), "start")
                patient = patient_id or self._patient_id
                if not patient:
                    raise NoPatientBound(
                        f"Session {self.session_id} has no patient; register or select one first"
                    )

            self._capture.subscribe(self._on_segment)

            with self._lock:
                self._patient_id = patient
                self._started_at = self._clock()
                self._phase = Phase.RECORDING
                event = self._event(EventKind.PHASE_CHANGED)

        logger.info("Session %s started for patient %s", self.session_id, patient)
        self._emit([event])

    def pause(self) -> None:
        with self._transition_lock:
            with self._lock:
                self._require((Phase.RECORDING,), "pause")

            self._capture.unsubscribe()

            with self._lock:
                self._paused.append(PausedInterval(start=self._clock()))
                self._phase = Phase.PAUSED
                event = self._event(EventKind.PHASE_CHANGED)

        logger.info("Session %s paused", self.session_id)
        self._emit([event])

    def resume(self) -> None:
        with self._transition_lock:
            with self._lock:
                self._require((Phase.PAUSED,), "resume")

            self._capture.subscribe(self._on_segment)

            with self._lock:
                self._close_open_pause(self._clock())
                self._phase = Phase.RECORDING
                event = self._event(EventKind.PHASE_CHANGED)

        logger.info("Session %s resumed", self.session_id)
        self._emit([event])

    def stop(self) -> None:
        """Finalize elapsed time. Later segments and insight results are dropped."""
        with self._transition_lock:
            with self._lock:
                self._require((Phase.RECORDING, Phase.PAUSED), "stop")
                was_recording = self._phase is Phase.RECORDING

            # Capture is released before any state changes
            if was_recording:
                self._capture.unsubscribe()

            with self._lock:
                now = self._clock()
                self._close_open_pause(now)
                self._stopped_at = now
                self._phase = Phase.STOPPED
                event = self._event(EventKind.PHASE_CHANGED)

        logger.info(
            "Session %s stopped after %.1fs of recording",
            self.session_id,
            self.elapsed_seconds(),
        )
        self._emit([event])

    def report(self) -> ConsultationReport:
        """Synthesize the end-of-session report. Terminal; the state is frozen afterwards."""
        with self._transition_lock:
            with self._lock:
                self._require((Phase.STOPPED,), "report")
                snapshot = self._snapshot()

            report = self._synthesizer.synthesize(snapshot)

            with self._lock:
                self._report = report
                self._phase = Phase.REPORTED
                events = [
                    self._event(EventKind.PHASE_CHANGED),
                    self._event(EventKind.REPORT_READY, report),
                ]

        self._executor.shutdown(wait=False, cancel_futures=True)
        logger.info(
            "Session %s reported (ai_enhanced=%s)", self.session_id, report.ai_enhanced
        )
        self._emit(events)
        return report

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    def set_notes(self, text: str) -> None:
        """Replace the doctor's free-text notes. Allowed until the report exists."""
        with self._lock:
            self._require(
                (Phase.IDLE, Phase.RECORDING, Phase.PAUSED, Phase.STOPPED), "edit notes of"
            )
            self._notes = text

    def add_doctor_note(self, text: str) -> TranscriptEntry | None:
        """Append a typed doctor line to the transcript with full confidence.

        Returns None when the text is blank; the entry is dropped and logged.
        """
        with self._lock:
            self._require((Phase.RECORDING, Phase.PAUSED), "add a note to")
            try:
                entry = self._buffer.append(
                    TranscriptEntry(
                        speaker=Speaker.DOCTOR,
                        text=text,
                        confidence=1.0,
                        captured_at=self._clock(),
                    )
                )
            except InvalidEntry as exc:
                logger.warning("Dropping doctor note for session %s: %s", self.session_id, exc)
                return None
            event = self._event(EventKind.TRANSCRIPT_APPENDED, entry)

        self._emit([event])
        return entry

    # ------------------------------------------------------------------
    # Speech segments and insights
    # ------------------------------------------------------------------

    def _on_segment(self, segment: Segment) -> None:
        context: RollingContext | None = None
        with self._lock:
            if self._phase is not Phase.RECORDING:
                logger.warning(
                    "Dropping segment for session %s in phase %s",
                    self.session_id,
                    self._phase.value,
                )
                events = [self._event(EventKind.SEGMENT_DROPPED, f"phase {self._phase.value}")]
                entry = None
            else:
                speaker = self._classifier.classify(segment.text, segment.confidence)
                try:
                    entry = self._buffer.append(
                        TranscriptEntry(
                            speaker=speaker,
                            text=segment.text,
                            confidence=segment.confidence,
                            captured_at=self._clock(),
                        )
                    )
                except InvalidEntry as exc:
                    logger.warning("Dropping segment for session %s: %s", self.session_id, exc)
                    events = [self._event(EventKind.SEGMENT_DROPPED, str(exc))]
                    entry = None
                else:
                    events = [self._event(EventKind.TRANSCRIPT_APPENDED, entry)]
                    if self._generator is not None:
                        context = self._generator.rolling_context(self._buffer)
                        self._inflight += 1

        self._emit(events)
        if entry is not None and context is not None:
            self._dispatch(entry, context)

    def _dispatch(self, entry: TranscriptEntry, context: RollingContext) -> None:
        try:
            future = self._executor.submit(self._generate_insights, entry, context)
        except RuntimeError:
            logger.debug("Session %s no longer accepts insight work", self.session_id)
            self._finish_inflight()
            return
        future.add_done_callback(self._on_generation_done)

    def _generate_insights(self, entry: TranscriptEntry, context: RollingContext) -> None:
        generator = self._generator
        try:
            if generator is None:
                return
            self._accept_insights(generator.analyze_segment(entry, context))
        finally:
            self._finish_inflight()

    def _on_generation_done(self, future: Future) -> None:
        if future.cancelled():
            self._finish_inflight()
            return
        exc = future.exception()
        if exc is not None:
            logger.error(
                "Insight task failed for session %s", self.session_id, exc_info=exc
            )

    def _accept_insights(self, insights: list[Insight]) -> None:
        if not insights:
            return
        with self._lock:
            if self._phase is not Phase.RECORDING:
                logger.info(
                    "Discarding %d insights for session %s in phase %s",
                    len(insights),
                    self.session_id,
                    self._phase.value,
                )
                return
            self._insights.extend(insights)
            events = [self._event(EventKind.INSIGHT_ADDED, insight) for insight in insights]

        logger.debug("Session %s received %d insights", self.session_id, len(insights))
        self._emit(events)

    def _finish_inflight(self) -> None:
        with self._idle:
            self._inflight -= 1
            self._idle.notify_all()

    def wait_for_insights(self, timeout: float | None = None) -> bool:
        """Block until every dispatched insight call has finished.

        Returns False if ``timeout`` expired first.
        """
        with self._idle:
            return self._idle.wait_for(lambda: self._inflight == 0, timeout=timeout)

    def close(self) -> None:
        """Release capture and worker threads without producing a report."""
        self._capture.unsubscribe()
        self._executor.shutdown(wait=False, cancel_futures=True)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require(self, allowed: Iterable[Phase], action: str) -> None:
        if self._phase not in allowed:
            raise InvalidTransition(self._phase.value, action)

    def _close_open_pause(self, now: datetime) -> None:
        if self._paused and self._paused[-1].end is None:
            self._paused[-1] = self._paused[-1].model_copy(update={"end": now})

    def _snapshot(self) -> SessionState:
        return SessionState(
            session_id=self.session_id,
            patient_id=self._patient_id,
            doctor_id=self.doctor_id,
            phase=self._phase,
            started_at=self._started_at,
            stopped_at=self._stopped_at,
            paused_intervals=tuple(self._paused),
            transcript=self._buffer.all(),
            insights=tuple(self._insights),
            doctor_notes=self._notes,
        )

    def _event(self, kind: EventKind, data: object = None) -> SessionEvent:
        return SessionEvent(kind=kind, session_id=self.session_id, phase=self._phase, data=data)

    def _emit(self, events: list[SessionEvent]) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for event in events:
            for listener in listeners:
                try:
                    listener(event)
                except Exception:  # noqa: BLE001 - a broken UI subscriber must not stop the session
                    logger.exception(
                        "Listener failed handling %s for session %s", event.kind.value, self.session_id
                    )
