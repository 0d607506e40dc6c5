"""Unit tests for the lexical speaker attribution policy."""

from __future__ import annotations

import pytest

from telehealth_consult.transcript.models import Speaker
from telehealth_consult.transcript.speaker import (
    CLINICAL_TERMS,
    AttributionRule,
    LexicalSpeakerClassifier,
    SpeakerClassifier,
    classify,
)


class TestDecisionTable:
    def test_clinical_terms_at_high_confidence_are_doctor(self) -> None:
        assert classify("Patient reports symptoms of treatment diagnosis examination", 0.9) is Speaker.DOCTOR

    def test_first_person_at_low_confidence_is_patient(self) -> None:
        assert classify("I feel very tired and my head hurts", 0.5) is Speaker.PATIENT

    def test_default_is_patient(self) -> None:
        assert classify("ok", 0.75) is Speaker.PATIENT

    @pytest.mark.parametrize("term", CLINICAL_TERMS)
    def test_each_clinical_term_triggers_doctor(self, term: str) -> None:
        assert classify(f"Let us talk about the {term} now", 0.95) is Speaker.DOCTOR

    def test_match_is_case_insensitive(self) -> None:
        assert classify("YOUR PRESCRIPTION IS READY", 0.85) is Speaker.DOCTOR

    def test_match_is_substring(self) -> None:
        assert classify("The examinations went well", 0.85) is Speaker.DOCTOR

    def test_doctor_threshold_is_exclusive(self) -> None:
        assert classify("Here is the diagnosis", 0.8) is Speaker.PATIENT

    def test_clinical_terms_at_low_confidence_fall_through(self) -> None:
        assert classify("the treatment plan", 0.5) is Speaker.PATIENT

    def test_patient_threshold_is_exclusive(self) -> None:
        # 0.7 is neither < 0.7 nor > 0.8: default applies, which is also patient
        assert classify("my knee hurts", 0.7) is Speaker.PATIENT

    def test_doctor_rule_wins_over_patient_markers(self) -> None:
        assert classify("my diagnosis is bronchitis", 0.9) is Speaker.DOCTOR


class TestClassifierAbstraction:
    def test_lexical_classifier_is_a_speaker_classifier(self) -> None:
        assert isinstance(LexicalSpeakerClassifier(), SpeakerClassifier)

    def test_custom_rules_and_default(self) -> None:
        classifier = LexicalSpeakerClassifier(
            rules=(AttributionRule(Speaker.PATIENT, ("ouch",)),),
            default=Speaker.DOCTOR,
        )
        assert classifier.classify("ouch that hurts", 0.99) is Speaker.PATIENT
        assert classifier.classify("breathe in", 0.99) is Speaker.DOCTOR

    def test_classifier_is_deterministic(self) -> None:
        classifier = LexicalSpeakerClassifier()
        results = {classifier.classify("treatment today", 0.9) for _ in range(50)}
        assert results == {Speaker.DOCTOR}
