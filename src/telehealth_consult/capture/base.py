"""Abstract speech capture source."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable

from ..transcript.models import Segment

SegmentHandler = Callable[[Segment], None]


class SpeechCaptureSource(ABC):
    """Emits finalized speech segments to a single subscriber.

    The session subscribes on every transition into recording and
    unsubscribes on every transition away from it.
    """

    @abstractmethod
    def subscribe(self, on_segment: SegmentHandler) -> None:
        """Start capture and deliver finalized segments to ``on_segment``.

        Raises:
            RuntimeError: if capture could not be started.
        """

    @abstractmethod
    def unsubscribe(self) -> None:
        """Stop capture. Safe to call when not subscribed."""

    @property
    @abstractmethod
    def is_active(self) -> bool:
        """True while a subscriber is attached."""
