"""Append-only, thread-safe transcript log."""

from __future__ import annotations

import threading

from ..errors import InvalidEntry
from .models import TranscriptEntry


class TranscriptBuffer:
    """Ordered log of transcript entries.

    Entries are never removed, edited, or reordered. Speech callbacks and
    typed-note handlers may append from different threads.
    """

    def __init__(self) -> None:
        self._entries: list[TranscriptEntry] = []
        self._lock = threading.Lock()

    def append(self, entry: TranscriptEntry) -> TranscriptEntry:
        """Append an entry and return the entry actually stored.

        ``captured_at`` is clamped to the previous entry's timestamp when the
        caller's clock ran backwards, so capture order and ``captured_at``
        order always agree.

        Raises:
            InvalidEntry: if ``text`` is blank or ``confidence`` is outside [0, 1].
        """
        if not entry.text or not entry.text.strip():
            raise InvalidEntry("Transcript entry text must not be empty")
        if not 0.0 <= entry.confidence <= 1.0:
            raise InvalidEntry(
                f"Transcript entry confidence {entry.confidence!r} is outside [0, 1]"
            )

        with self._lock:
            if self._entries and entry.captured_at < self._entries[-1].captured_at:
                entry = entry.model_copy(update={"captured_at": self._entries[-1].captured_at})
            self._entries.append(entry)
            return entry

    def tail(self, n: int) -> tuple[TranscriptEntry, ...]:
        """Return the most recent ``n`` entries in chronological order."""
        if n <= 0:
            return ()
        with self._lock:
            return tuple(self._entries[-n:])

    def all(self) -> tuple[TranscriptEntry, ...]:
        with self._lock:
            return tuple(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
