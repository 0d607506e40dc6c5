from .base import SegmentHandler, SpeechCaptureSource
from .deepgram_source import DeepgramCaptureSource
from .manual import ManualCaptureSource

__all__ = [
    "SegmentHandler",
    "SpeechCaptureSource",
    "DeepgramCaptureSource",
    "ManualCaptureSource",
]
