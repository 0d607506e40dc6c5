"""Repository contracts and in-memory implementations."""

from __future__ import annotations

import threading
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from .models import AnalyticsDelta, ConsultationCreate, ConsultationRecord, WeeklyAnalytics


class ConsultationRepository(ABC):
    """Create/read/update consultations by id."""

    @abstractmethod
    def create(self, record: ConsultationCreate) -> ConsultationRecord:
        """Store a new consultation and return it with its id."""

    def get(self, consultation_id: str) -> ConsultationRecord | None:
        raise NotImplementedError(f"{type(self).__name__} does not support reads")

    def update(self, consultation_id: str, updates: dict[str, Any]) -> ConsultationRecord | None:
        raise NotImplementedError(f"{type(self).__name__} does not support updates")


class AnalyticsRepository(ABC):
    """Per-doctor, per-week counters."""

    @abstractmethod
    def upsert_week(self, doctor_id: str, week_start: datetime, delta: AnalyticsDelta) -> None:
        """Add ``delta`` to the row for (doctor_id, week_start), creating it if absent."""


class InMemoryConsultationRepository(ConsultationRepository):
    def __init__(self) -> None:
        self._records: dict[str, ConsultationRecord] = {}
        self._lock = threading.Lock()

    def create(self, record: ConsultationCreate) -> ConsultationRecord:
        stored = ConsultationRecord(id=str(uuid.uuid4()), **record.model_dump())
        with self._lock:
            self._records[stored.id] = stored
        return stored

    def get(self, consultation_id: str) -> ConsultationRecord | None:
        with self._lock:
            return self._records.get(consultation_id)

    def update(self, consultation_id: str, updates: dict[str, Any]) -> ConsultationRecord | None:
        with self._lock:
            current = self._records.get(consultation_id)
            if current is None:
                return None
            data = current.model_dump()
            data.update({k: v for k, v in updates.items() if k != "id"})
            updated = ConsultationRecord.model_validate(data)
            self._records[consultation_id] = updated
            return updated

    def all(self) -> list[ConsultationRecord]:
        with self._lock:
            return list(self._records.values())


class InMemoryAnalyticsRepository(AnalyticsRepository):
    def __init__(self) -> None:
        self._rows: dict[tuple[str, datetime], WeeklyAnalytics] = {}
        self._lock = threading.Lock()

    def upsert_week(self, doctor_id: str, week_start: datetime, delta: AnalyticsDelta) -> None:
        key = (doctor_id, week_start)
        with self._lock:
            row = self._rows.get(key) or WeeklyAnalytics(doctor_id=doctor_id, week_start=week_start)
            self._rows[key] = row.apply(delta)

    def get_week(self, doctor_id: str, week_start: datetime) -> WeeklyAnalytics | None:
        with self._lock:
            return self._rows.get((doctor_id, week_start))
