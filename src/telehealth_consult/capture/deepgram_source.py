"""Live speech capture over the Deepgram streaming WebSocket.

Connection lifecycle:
  - subscribe() opens the socket and wires transcript, error and close handlers.
  - unsubscribe() calls connection.finish(); without it Deepgram holds the
    socket open until its ~12s silence timeout.
  - An unexpected close while subscribed schedules a reconnect with
    exponential backoff. After ``max_restarts`` consecutive failures the
    source gives up and reports to ``on_error`` instead of looping forever.
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable
from typing import Any

from deepgram import DeepgramClient, LiveOptions, LiveTranscriptionEvents

from ..transcript.models import Segment
from .base import SegmentHandler, SpeechCaptureSource

logger = logging.getLogger(__name__)


class DeepgramCaptureSource(SpeechCaptureSource):
    """Stream microphone audio to Deepgram and emit finalized segments."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "nova-3-medical",
        language: str = "en",
        keyterms: list[str] | None = None,
        max_restarts: int = 3,
        backoff_seconds: float = 0.5,
        on_error: Callable[[Exception], None] | None = None,
    ) -> None:
        key = api_key or os.environ.get("DEEPGRAM_API_KEY", "")
        self._client = DeepgramClient(key)
        self._model = model
        self._language = language
        self._keyterms = keyterms or []
        self.max_restarts = max_restarts
        self.backoff_seconds = backoff_seconds
        self._on_error = on_error

        self._lock = threading.RLock()
        self._connection: Any = None
        self._handler: SegmentHandler | None = None
        self._restarts = 0
        self._restart_timer: threading.Timer | None = None

    def subscribe(self, on_segment: SegmentHandler) -> None:
        with self._lock:
            if self._handler is not None:
                raise RuntimeError("Capture source already has a subscriber")
            self._handler = on_segment
            self._restarts = 0
            try:
                self._connect()
            except RuntimeError:
                self._handler = None
                raise

    def unsubscribe(self) -> None:
        with self._lock:
            self._handler = None
            conn = self._connection
            self._connection = None
            timer = self._restart_timer
            self._restart_timer = None

        if timer is not None:
            timer.cancel()
        if conn is not None:
            conn.finish()

    @property
    def is_active(self) -> bool:
        with self._lock:
            return self._handler is not None

    @property
    def is_connected(self) -> bool:
        with self._lock:
            return self._connection is not None

    @property
    def restarts(self) -> int:
        with self._lock:
            return self._restarts

    def send_audio(self, chunk: bytes) -> None:
        """Send a raw audio chunk to the open WebSocket."""
        with self._lock:
            if self._connection is None:
                raise RuntimeError("Call subscribe() before send_audio()")
            self._connection.send(chunk)

    # ------------------------------------------------------------------
    # Connection management
    # ------------------------------------------------------------------

    def _connect(self) -> None:
        options = LiveOptions(
            model=self._model,
            language=self._language,
            smart_format=True,
            keyterm=self._keyterms,
            interim_results=False,
        )
        connection = self._client.listen.websocket.v("1")

        def _on_message(_self: Any, result: Any, **kwargs: Any) -> None:  # noqa: ANN401
            self._handle_transcript(result)

        def _on_error(_self: Any, error: Any, **kwargs: Any) -> None:  # noqa: ANN401
            logger.warning("Deepgram stream error: %s", error)

        def _on_close(_self: Any, **kwargs: Any) -> None:  # noqa: ANN401
            self._handle_close(connection)

        connection.on(LiveTranscriptionEvents.Transcript, _on_message)
        connection.on(LiveTranscriptionEvents.Error, _on_error)
        connection.on(LiveTranscriptionEvents.Close, _on_close)

        if not connection.start(options):
            raise RuntimeError("Failed to connect to Deepgram WebSocket")
        self._connection = connection

    def _handle_transcript(self, result: Any) -> None:  # noqa: ANN401
        alternative = result.channel.alternatives[0]
        sentence = alternative.transcript
        if not sentence or not getattr(result, "is_final", True):
            return
        words = alternative.words or []
        segment = Segment(
            text=sentence,
            confidence=float(getattr(alternative, "confidence", 0.0) or 0.0),
            start=words[0].start if words else None,
            end=words[-1].end if words else None,
        )
        with self._lock:
            handler = self._handler
            self._restarts = 0
        if handler is not None:
            handler(segment)

    def _handle_close(self, connection: Any) -> None:  # noqa: ANN401
        with self._lock:
            # finish() from unsubscribe also fires Close; only react to drops
            if self._handler is None or connection is not self._connection:
                return
            self._connection = None
        logger.warning("Deepgram stream closed unexpectedly while recording")
        self._schedule_restart()

    def _schedule_restart(self) -> None:
        with self._lock:
            if self._handler is None:
                return
            if self._restarts >= self.max_restarts:
                give_up = True
            else:
                give_up = False
                delay = self.backoff_seconds * (2 ** self._restarts)
                self._restarts += 1
                timer = threading.Timer(delay, self._restart)
                timer.daemon = True
                self._restart_timer = timer
                timer.start()
                logger.info(
                    "Reconnecting to Deepgram in %.2fs (attempt %d/%d)",
                    delay,
                    self._restarts,
                    self.max_restarts,
                )

        if give_up:
            logger.error("Deepgram capture gave up after %d restart attempts", self.max_restarts)
            if self._on_error is not None:
                self._on_error(
                    RuntimeError(f"Speech capture failed after {self.max_restarts} restarts")
                )

    def _restart(self) -> None:
        with self._lock:
            self._restart_timer = None
            if self._handler is None:
                return
            try:
                self._connect()
                return
            except RuntimeError as exc:
                logger.warning("Deepgram reconnect failed: %s", exc)
        self._schedule_restart()
