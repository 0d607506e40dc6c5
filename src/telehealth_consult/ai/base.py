"""Abstract AI service contracts and the time-box shared by both AI calls."""

from __future__ import annotations

import itertools
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, TypeVar

from ..errors import AIUnavailable
from .models import InsightRequest, ReportRequest

T = TypeVar("T")


class InsightService(ABC):
    """Incremental medical analysis of one transcript segment."""

    @abstractmethod
    def analyze(self, request: InsightRequest) -> dict[str, Any]:
        """Return a dict with diagnosticSuggestions, recommendedTests, confidence.

        May raise anything; callers treat every failure as ``AIUnavailable``.
        """


class ReportService(ABC):
    """Reduces a whole consultation into a structured report."""

    @abstractmethod
    def reduce(self, request: ReportRequest) -> dict[str, Any]:
        """Return a dict with patientSummary, doctorSummary, diagnosis,
        prescriptions and recommendations."""


class TimeBox:
    """Runs a blocking call on its own daemon thread and gives up after ``timeout`` seconds.

    A call that times out keeps running on its thread until the SDK's own
    request timeout ends it, but its result is never observed. Each call
    gets a fresh thread, so hung calls never hold up later ones.
    """

    def __init__(self, timeout: float, name: str = "ai-call") -> None:
        self.timeout = timeout
        self._name = name
        self._calls = itertools.count(1)
        self._closed = False

    def call(self, fn: Callable[..., T], *args: Any) -> T:
        if self._closed:
            raise AIUnavailable("AI time-box is shut down")
        outcome: dict[str, Any] = {}

        def run() -> None:
            try:
                outcome["result"] = fn(*args)
            except BaseException as exc:  # noqa: BLE001 - re-raised on the caller's thread
                outcome["error"] = exc

        worker = threading.Thread(target=run, name=f"{self._name}-{next(self._calls)}", daemon=True)
        worker.start()
        worker.join(self.timeout)
        if worker.is_alive():
            raise AIUnavailable(f"AI call timed out after {self.timeout:.1f}s")
        if "error" in outcome:
            raise outcome["error"]
        return outcome["result"]

    def shutdown(self) -> None:
        self._closed = True
