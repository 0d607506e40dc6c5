"""Speaker attribution for transcript segments.

The production classifier is a lexical decision table, not voice biometrics.
It sits behind ``SpeakerClassifier`` so a biometric implementation can be
swapped in without touching the session.

Decision table (evaluated top to bottom, first match wins):

  confidence > 0.8  and any clinical term in text        -> doctor
  confidence < 0.7  and any first-person marker in text  -> patient
  otherwise                                              -> patient

Matching is a case-insensitive substring test. The default is the patient so
that doctor authority is never attributed on weak evidence.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from .models import Speaker

CLINICAL_TERMS: tuple[str, ...] = (
    "diagnosis",
    "symptoms",
    "treatment",
    "prescription",
    "examination",
)
FIRST_PERSON_MARKERS: tuple[str, ...] = ("i feel", "my")

DOCTOR_MIN_CONFIDENCE = 0.8
PATIENT_MAX_CONFIDENCE = 0.7


class SpeakerClassifier(ABC):
    """Assigns a speaker to a segment of recognized speech."""

    @abstractmethod
    def classify(self, text: str, confidence: float) -> Speaker:
        """Return the speaker for ``text`` recognized with ``confidence``."""


@dataclass(frozen=True)
class AttributionRule:
    speaker: Speaker
    terms: tuple[str, ...]
    min_confidence: float | None = None  # exclusive
    max_confidence: float | None = None  # exclusive

    def matches(self, lowered: str, confidence: float) -> bool:
        if self.min_confidence is not None and not confidence > self.min_confidence:
            return False
        if self.max_confidence is not None and not confidence < self.max_confidence:
            return False
        return any(term in lowered for term in self.terms)


DEFAULT_RULES: tuple[AttributionRule, ...] = (
    AttributionRule(Speaker.DOCTOR, CLINICAL_TERMS, min_confidence=DOCTOR_MIN_CONFIDENCE),
    AttributionRule(Speaker.PATIENT, FIRST_PERSON_MARKERS, max_confidence=PATIENT_MAX_CONFIDENCE),
)


class LexicalSpeakerClassifier(SpeakerClassifier):
    """Deterministic, pure decision-table classifier."""

    def __init__(
        self,
        rules: tuple[AttributionRule, ...] = DEFAULT_RULES,
        default: Speaker = Speaker.PATIENT,
    ) -> None:
        self._rules = rules
        self._default = default

    def classify(self, text: str, confidence: float) -> Speaker:
        lowered = text.lower()
        for rule in self._rules:
            if rule.matches(lowered, confidence):
                return rule.speaker
        return self._default


_DEFAULT_CLASSIFIER = LexicalSpeakerClassifier()


def classify(text: str, confidence: float) -> Speaker:
    """Classify with the default lexical decision table."""
    return _DEFAULT_CLASSIFIER.classify(text, confidence)
