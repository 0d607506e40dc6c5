from .buffer import TranscriptBuffer
from .models import Segment, Speaker, TranscriptEntry
from .speaker import LexicalSpeakerClassifier, SpeakerClassifier, classify

__all__ = [
    "TranscriptBuffer",
    "Segment",
    "Speaker",
    "TranscriptEntry",
    "LexicalSpeakerClassifier",
    "SpeakerClassifier",
    "classify",
]
