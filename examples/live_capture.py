"""Example: a consultation fed by the Deepgram streaming capture source (demo mode).

The Deepgram WebSocket is mocked; transcript events are fired by hand the way
the SDK would deliver them, including an unexpected socket drop that the
capture source reconnects from.

Usage:
    python examples/live_capture.py
"""

from __future__ import annotations

import sys
import time
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from deepgram import LiveTranscriptionEvents

from telehealth_consult.capture.deepgram_source import DeepgramCaptureSource
from telehealth_consult.session.orchestrator import ConsultationSession


def _result(text: str, confidence: float) -> SimpleNamespace:
    alternative = SimpleNamespace(transcript=text, confidence=confidence, words=[])
    return SimpleNamespace(channel=SimpleNamespace(alternatives=[alternative]), is_final=True)


def run_demo() -> None:
    """Simulate a recording with a mock Deepgram WebSocket."""
    print("=== Live Capture Demo (mock mode) ===\n")

    handlers: dict = {}
    mock_connection = MagicMock()
    mock_connection.start.return_value = True
    mock_connection.on.side_effect = lambda event, handler: handlers.__setitem__(event, handler)

    with patch("telehealth_consult.capture.deepgram_source.DeepgramClient") as mock_client:
        mock_client.return_value.listen.websocket.v.return_value = mock_connection
        source = DeepgramCaptureSource(api_key="demo-key", backoff_seconds=0.05)

    session = ConsultationSession("dr-demo", "pt-demo", capture=source)
    session.start()

    print("Sending audio chunks...")
    for _ in range(3):
        source.send_audio(b"\x00" * 1024)

    on_transcript = handlers[LiveTranscriptionEvents.Transcript]
    on_transcript(None, _result("My throat has been sore since Monday", 0.64))

    print("Simulating an unexpected socket close...")
    handlers[LiveTranscriptionEvents.Close](None)
    time.sleep(0.2)
    print("Reconnect attempts:", source.restarts)

    handlers[LiveTranscriptionEvents.Transcript](
        None, _result("On examination the diagnosis is viral pharyngitis", 0.93)
    )

    session.stop()
    report = session.report()

    for entry in session.transcript:
        print(f"  [{entry.speaker.value:>7}] {entry.text}")
    print("\nconnection.finish() called:", mock_connection.finish.called)
    print("Audio chunks sent:", mock_connection.send.call_count)
    print("Report:", report.doctor_summary)
    session.close()


if __name__ == "__main__":
    run_demo()
