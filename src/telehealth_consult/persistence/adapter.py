"""Persistence Adapter: one consultation write per session, plus weekly analytics."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, time, timedelta, timezone

from ..errors import InvalidTransition, PersistenceFailed
from ..report.models import ConsultationReport
from ..session.models import Phase, SessionState
from ..transcript.models import render_lines
from .models import AnalyticsDelta, ConsultationCreate, ConsultationRecord
from .repositories import AnalyticsRepository, ConsultationRepository

logger = logging.getLogger(__name__)

REVENUE_PER_CONSULTATION = 150.0


def week_start(moment: datetime) -> datetime:
    """Sunday 00:00 UTC of the week containing ``moment``."""
    moment = moment.astimezone(timezone.utc)
    days_since_sunday = (moment.weekday() + 1) % 7
    day = moment.date() - timedelta(days=days_since_sunday)
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


class PersistenceAdapter:
    """Maps a reported session into a stored consultation.

    There is no internal retry: a retried write could duplicate the
    consultation, so ``PersistenceFailed`` goes back to the caller.
    """

    def __init__(
        self,
        consultations: ConsultationRepository,
        analytics: AnalyticsRepository | None = None,
        revenue_per_consultation: float = REVENUE_PER_CONSULTATION,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._consultations = consultations
        self._analytics = analytics
        self.revenue_per_consultation = revenue_per_consultation
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def build_record(self, session: SessionState, report: ConsultationReport) -> ConsultationCreate:
        if not session.patient_id:
            raise InvalidTransition(session.phase.value, "persist a session without a patient")
        duration_seconds = session.elapsed_seconds()
        return ConsultationCreate(
            doctor_id=session.doctor_id,
            patient_id=session.patient_id,
            transcript=render_lines(session.transcript),
            doctor_notes=session.doctor_notes,
            ai_suggestions="\n".join(i.content for i in session.insights_by_time()),
            diagnosis=report.diagnosis,
            prescriptions=list(report.prescriptions),
            duration_minutes=int(duration_seconds // 60),
            status="completed",
            consultation_date=session.started_at or session.stopped_at,
        )

    def commit(self, session: SessionState, report: ConsultationReport) -> ConsultationRecord:
        """Store the consultation, then update the doctor's weekly analytics.

        Raises:
            InvalidTransition: if the session has not reached the reported phase.
            PersistenceFailed: if the consultation store rejects the write.
        """
        if session.phase is not Phase.REPORTED:
            raise InvalidTransition(session.phase.value, "commit")

        payload = self.build_record(session, report)
        try:
            record = self._consultations.create(payload)
        except Exception as exc:
            logger.error("Consultation write failed for session %s: %s", session.session_id, exc)
            raise PersistenceFailed(
                f"Could not store consultation for session {session.session_id}: {exc}"
            ) from exc

        self._update_analytics(record)
        return record

    def _update_analytics(self, record: ConsultationRecord) -> None:
        if self._analytics is None:
            return
        delta = AnalyticsDelta(
            patients_seen=1,
            consultation_hours=record.duration_minutes / 60,
            revenue=self.revenue_per_consultation,
        )
        try:
            self._analytics.upsert_week(record.doctor_id, week_start(self._clock()), delta)
        except Exception as exc:  # noqa: BLE001 - analytics is best-effort after a stored consultation
            logger.warning("Analytics update failed for doctor %s: %s", record.doctor_id, exc)
