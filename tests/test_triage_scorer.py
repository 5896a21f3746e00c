"""Unit tests for the deterministic triage scorer.

Tests cover:
- Blood pressure parsing and classification
- Per-channel vital sign thresholds
- Symptom severity scoring
- Age escalation
- Final priority and confidence
"""

import pytest

from hms_engine.models.clinical_models import TriagePriority
from hms_engine.services.triage_scorer import (
    TriageScorer,
    calculate_symptom_score,
    classify_blood_pressure,
    parse_blood_pressure,
)


@pytest.fixture
def scorer():
    return TriageScorer()


class TestBloodPressure:
    """Test blood pressure parsing and classification."""

    def test_parse(self):
        """Test well-formed and malformed readings."""
        assert parse_blood_pressure("120/80") == (120, 80)
        assert parse_blood_pressure(" 150 / 95 ") == (150, 95)
        assert parse_blood_pressure("abc") is None
        assert parse_blood_pressure("120") is None
        assert parse_blood_pressure("120/80/60") is None
        assert parse_blood_pressure("") is None

    def test_classification_bands(self):
        """Test crisis, hypotension, hypertension and mild hypotension."""
        assert classify_blood_pressure(190, 100) == ("critical", "hypertensive crisis")
        assert classify_blood_pressure(150, 125) == ("critical", "hypertensive crisis")
        assert classify_blood_pressure(85, 70) == ("critical", "hypotension")
        assert classify_blood_pressure(145, 85) == ("warning", "hypertension")
        assert classify_blood_pressure(98, 70) == ("warning", "mild hypotension")
        assert classify_blood_pressure(120, 80) == ("none", None)

    def test_low_diastolic_alone_not_scored(self):
        """Test a normal systolic with a low diastolic is not flagged."""
        assert classify_blood_pressure(110, 58) == ("none", None)
        assert classify_blood_pressure(122, 65) == ("none", None)
        assert classify_blood_pressure(118, 60) == ("none", None)

    def test_low_systolic_boundaries(self):
        """Test the inclusive systolic bounds of both hypotension bands."""
        assert classify_blood_pressure(90, 70) == ("critical", "hypotension")
        assert classify_blood_pressure(91, 70) == ("warning", "mild hypotension")
        assert classify_blood_pressure(100, 70) == ("warning", "mild hypotension")
        assert classify_blood_pressure(101, 70) == ("none", None)


class TestSymptomScore:
    """Test symptom lexicon scoring."""

    def test_exact_matches(self):
        """Test exact terms contribute their severity."""
        assert calculate_symptom_score(["chest pain"]) == 3
        assert calculate_symptom_score(["Vomiting", "cough"]) == 3

    def test_partial_match_counts_once(self):
        """Test a symptom containing a term contributes one severity."""
        assert calculate_symptom_score(["sudden severe chest pain"]) == 3

    def test_unknown_symptoms(self):
        """Test unknown symptoms score zero."""
        assert calculate_symptom_score(["itchy elbow"]) == 0
        assert calculate_symptom_score([]) == 0


class TestVitalsAssessment:
    """Test per-channel vital sign classification."""

    def test_normal_vitals(self, scorer, normal_vitals):
        """Test in-range vitals give low priority and no reasoning."""
        priority, reasoning, unparseable = scorer.assess_vitals(normal_vitals)
        assert priority == "low"
        assert reasoning == []
        assert unparseable == []

    def test_warning_channel(self, scorer, normal_vitals):
        """Test a single warning channel gives medium priority."""
        vitals = normal_vitals.model_copy(update={"pulse_rate": 110})
        priority, reasoning, _ = scorer.assess_vitals(vitals)
        assert priority == "medium"
        assert reasoning == ["Tachycardia (110 bpm)"]

    def test_critical_channel(self, scorer, normal_vitals):
        """Test a critical channel gives high priority."""
        vitals = normal_vitals.model_copy(update={"oxygen_saturation": 88})
        priority, reasoning, _ = scorer.assess_vitals(vitals)
        assert priority == "high"
        assert reasoning == ["Severe hypoxemia (SpO2 88%)"]

    def test_threshold_boundaries_inclusive(self, scorer, normal_vitals):
        """Test threshold values themselves trigger the tier."""
        vitals = normal_vitals.model_copy(update={"temperature": 38.5, "respiratory_rate": 20})
        priority, reasoning, _ = scorer.assess_vitals(vitals)
        assert priority == "medium"
        assert "High fever (38.5°C)" in reasoning
        assert "Tachypnea (20 breaths/min)" in reasoning

    def test_unparseable_blood_pressure(self, scorer, normal_vitals):
        """Test a malformed reading is flagged instead of defaulted."""
        vitals = normal_vitals.model_copy(update={"blood_pressure": "abc"})
        priority, reasoning, unparseable = scorer.assess_vitals(vitals)
        assert priority == "low"
        assert unparseable == ["blood_pressure"]
        assert reasoning == ["Blood pressure (abc) could not be parsed"]


class TestSuggestPriority:
    """Test the final triage suggestion."""

    def test_hypertensive_crisis(self, scorer, normal_vitals):
        """Test a crisis reading is critical with confidence 0.9."""
        vitals = normal_vitals.model_copy(update={"blood_pressure": "190/130"})
        suggestion = scorer.suggest_priority(vitals, [], 40)

        assert suggestion.priority == TriagePriority.CRITICAL
        assert suggestion.confidence == 0.9
        assert "Blood pressure (190/130) indicates hypertensive crisis" in suggestion.reasoning

    @pytest.mark.parametrize("reading", ["118/60", "122/65", "110/58"])
    def test_low_diastolic_is_normal(self, scorer, normal_vitals, reading):
        """Test ordinary readings with a low diastolic triage as normal."""
        vitals = normal_vitals.model_copy(update={"blood_pressure": reading})
        suggestion = scorer.suggest_priority(vitals, [], 30)

        assert suggestion.priority == TriagePriority.NORMAL
        assert suggestion.confidence == 0.7
        assert suggestion.reasoning == []

    def test_systolic_hypotension_critical(self, scorer, normal_vitals):
        """Test a systolic of 88 is critical hypotension."""
        vitals = normal_vitals.model_copy(update={"blood_pressure": "88/70"})
        suggestion = scorer.suggest_priority(vitals, [], 30)

        assert suggestion.priority == TriagePriority.CRITICAL
        assert suggestion.reasoning == ["Blood pressure (88/70) indicates hypotension"]

    def test_symptoms_without_vitals(self, scorer):
        """Test chest pain alone is urgent with confidence 0.6."""
        suggestion = scorer.suggest_priority(None, ["chest pain"], 40)

        assert suggestion.priority == TriagePriority.URGENT
        assert suggestion.confidence == 0.6
        assert suggestion.reasoning == [
            "Moderate severity symptoms detected",
            "No vital signs available for assessment",
        ]

    def test_high_symptoms_without_vitals(self, scorer):
        """Test high symptom scores without vitals are critical at 0.7."""
        suggestion = scorer.suggest_priority(None, ["chest pain", "shortness of breath"])
        assert suggestion.priority == TriagePriority.CRITICAL
        assert suggestion.confidence == 0.7

    def test_nothing_known(self, scorer):
        """Test no vitals and no symptoms is normal at 0.5."""
        suggestion = scorer.suggest_priority(None, [])
        assert suggestion.priority == TriagePriority.NORMAL
        assert suggestion.confidence == 0.5

    def test_normal_patient(self, scorer, normal_vitals):
        """Test in-range vitals and no symptoms is normal at 0.7."""
        suggestion = scorer.suggest_priority(normal_vitals, [], 30)
        assert suggestion.priority == TriagePriority.NORMAL
        assert suggestion.confidence == 0.7
        assert suggestion.reasoning == []

    def test_warning_vitals_urgent(self, scorer, normal_vitals):
        """Test warning vitals give urgent at 0.8."""
        vitals = normal_vitals.model_copy(update={"temperature": 38.9})
        suggestion = scorer.suggest_priority(vitals, [], 30)
        assert suggestion.priority == TriagePriority.URGENT
        assert suggestion.confidence == 0.8

    def test_elderly_escalation(self, scorer, normal_vitals):
        """Test age over 65 escalates medium vitals to critical."""
        vitals = normal_vitals.model_copy(update={"temperature": 38.9})
        suggestion = scorer.suggest_priority(vitals, [], 72)

        assert suggestion.priority == TriagePriority.CRITICAL
        assert suggestion.reasoning[-1] == "Age (72) is a risk factor"

    def test_child_with_moderate_symptoms(self, scorer, normal_vitals):
        """Test young age is noted without escalating low vitals."""
        suggestion = scorer.suggest_priority(normal_vitals, ["vomiting"], 3)

        assert suggestion.priority == TriagePriority.NORMAL
        assert suggestion.reasoning == [
            "Low severity symptoms detected",
            "Age (3) is a risk factor",
        ]

    def test_unparseable_reported(self, scorer, normal_vitals):
        """Test unparseable channels are listed on the suggestion."""
        vitals = normal_vitals.model_copy(update={"blood_pressure": "--"})
        suggestion = scorer.suggest_priority(vitals, [], 30)
        assert suggestion.unparseable_vitals == ["blood_pressure"]
        assert suggestion.priority == TriagePriority.NORMAL

    def test_deterministic(self, scorer, normal_vitals):
        """Test identical inputs give identical suggestions."""
        vitals = normal_vitals.model_copy(update={"pulse_rate": 130, "blood_pressure": "150/95"})
        first = scorer.suggest_priority(vitals, ["headache", "nausea"], 50)
        second = scorer.suggest_priority(vitals, ["headache", "nausea"], 50)
        assert first == second
