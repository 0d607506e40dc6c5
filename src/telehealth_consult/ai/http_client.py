"""Insight service backed by the consultation REST API."""

from __future__ import annotations

from typing import Any

import requests

from ..errors import AIUnavailable
from .base import InsightService
from .models import InsightRequest

ANALYZE_PATH = "/api/ai/analyze-consultation"


class HttpInsightService(InsightService):
    """POSTs segments to ``/api/ai/analyze-consultation``."""

    def __init__(
        self,
        base_url: str,
        session: requests.Session | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._timeout = timeout

    def analyze(self, request: InsightRequest) -> dict[str, Any]:
        try:
            response = self._session.post(
                f"{self.base_url}{ANALYZE_PATH}",
                json=request.model_dump(),
                headers={"Content-Type": "application/json"},
                timeout=self._timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise AIUnavailable(f"Insight API request failed: {exc}") from exc

        if not isinstance(data, dict):
            raise AIUnavailable("Insight API returned a non-object body")
        return data
