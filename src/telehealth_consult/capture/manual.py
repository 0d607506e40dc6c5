"""Push-based capture source for typed input, replays and tests."""

from __future__ import annotations

import threading

from ..transcript.models import Segment
from .base import SegmentHandler, SpeechCaptureSource


class ManualCaptureSource(SpeechCaptureSource):
    """Delivers segments pushed with ``emit`` while a subscriber is attached."""

    def __init__(self) -> None:
        self._handler: SegmentHandler | None = None
        self._lock = threading.Lock()
        self.subscribe_count = 0
        self.unsubscribe_count = 0

    def subscribe(self, on_segment: SegmentHandler) -> None:
        with self._lock:
            self._handler = on_segment
            self.subscribe_count += 1

    def unsubscribe(self) -> None:
        with self._lock:
            if self._handler is not None:
                self.unsubscribe_count += 1
            self._handler = None

    @property
    def is_active(self) -> bool:
        with self._lock:
            return self._handler is not None

    def emit(self, text: str, confidence: float = 1.0) -> bool:
        """Push one finalized segment. Returns False if nobody is subscribed."""
        with self._lock:
            handler = self._handler
        if handler is None:
            return False
        handler(Segment(text=text, confidence=confidence))
        return True
