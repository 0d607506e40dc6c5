"""Consultation repository backed by the consultation REST API."""

from __future__ import annotations

import logging

import requests
from pydantic import ValidationError

from .models import ConsultationCreate, ConsultationRecord
from .repositories import ConsultationRepository

logger = logging.getLogger(__name__)

CONSULTATIONS_PATH = "/api/consultations"


class RestConsultationRepository(ConsultationRepository):
    """POSTs consultations to ``/api/consultations``.

    The API only exposes creation; reads and updates fall back to the
    base class and raise ``NotImplementedError``.
    """

    def __init__(
        self,
        base_url: str,
        session: requests.Session | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._timeout = timeout

    def create(self, record: ConsultationCreate) -> ConsultationRecord:
        """Returns the stored record. Raises requests.HTTPError on a non-2xx reply.

        A 2xx reply means the consultation is stored, so a body that does not
        parse as a record yields the submitted fields plus whatever id the
        API sent back (empty if none) instead of an error.
        """
        response = self._session.post(
            f"{self.base_url}{CONSULTATIONS_PATH}",
            json=record.model_dump(mode="json", by_alias=True),
            headers={"Content-Type": "application/json"},
            timeout=self._timeout,
        )
        response.raise_for_status()

        try:
            body = response.json()
        except ValueError:
            body = None
        stored = body.get("consultation", body) if isinstance(body, dict) else None
        try:
            return ConsultationRecord.model_validate(stored)
        except ValidationError as exc:
            stored_id = stored.get("id") if isinstance(stored, dict) else None
            logger.warning(
                "Consultation API stored the record (HTTP %s) but returned an unreadable body: %s",
                response.status_code,
                exc,
            )
            return ConsultationRecord(id=str(stored_id or ""), **record.model_dump())
