"""
Triage Priority Scorer

Suggests a triage priority (normal / urgent / critical) from vital signs
and presenting symptoms. Fully deterministic: thresholds and the symptom
lexicon are static tables, so the same inputs always give the same
priority, confidence and reasoning.

Scoring:
1. Each vital-sign channel is classified none / warning / critical
2. Any critical channel -> vitals priority high, else any warning -> medium
3. Symptoms are scored against a severity lexicon (3 / 2 / 1 per match)
4. Very young (<5) and elderly (>65) patients escalate medium to high
5. Vitals priority and symptom score combine into the final priority
"""

from dataclasses import dataclass
from typing import Literal

from hms_engine.config.logging_config import get_logger
from hms_engine.models.clinical_models import TriagePriority, TriageSuggestion, VitalSigns

logger = get_logger(__name__)

Tier = Literal["none", "warning", "critical"]
VitalsPriority = Literal["low", "medium", "high"]


@dataclass(frozen=True)
class ChannelThresholds:
    """Inclusive warning/critical bounds for one vital-sign channel."""
    warning_low: float | None = None
    warning_high: float | None = None
    critical_low: float | None = None
    critical_high: float | None = None

    def classify(self, value: float) -> tuple[Tier, str | None]:
        """Return (tier, side) where side is 'low' or 'high'."""
        if self.critical_low is not None and value <= self.critical_low:
            return "critical", "low"
        if self.critical_high is not None and value >= self.critical_high:
            return "critical", "high"
        if self.warning_low is not None and value <= self.warning_low:
            return "warning", "low"
        if self.warning_high is not None and value >= self.warning_high:
            return "warning", "high"
        return "none", None


# High bounds are (systolic, diastolic) and either value crossing counts.
# Low bounds are systolic only; a low diastolic alone is not scored.
BP_CRISIS = (180, 120)
BP_HYPERTENSION = (140, 90)
BP_HYPOTENSION_SYSTOLIC = 90
BP_MILD_HYPOTENSION_SYSTOLIC = 100

VITAL_THRESHOLDS: dict[str, ChannelThresholds] = {
    "temperature": ChannelThresholds(warning_high=38.5, critical_low=35, critical_high=41.1),
    "pulse_rate": ChannelThresholds(
        warning_low=55, warning_high=100, critical_low=25, critical_high=150
    ),
    "oxygen_saturation": ChannelThresholds(warning_low=94, critical_low=90),
    "respiratory_rate": ChannelThresholds(
        warning_low=12, warning_high=20, critical_low=6, critical_high=45
    ),
}

# (channel, tier, side) -> reasoning template
VITAL_LABELS: dict[tuple[str, Tier, str], str] = {
    ("temperature", "critical", "low"): "Hypothermia ({value}°C)",
    ("temperature", "critical", "high"): "Hyperpyrexia ({value}°C)",
    ("temperature", "warning", "high"): "High fever ({value}°C)",
    ("pulse_rate", "critical", "low"): "Severe bradycardia ({value} bpm)",
    ("pulse_rate", "critical", "high"): "Severe tachycardia ({value} bpm)",
    ("pulse_rate", "warning", "low"): "Bradycardia ({value} bpm)",
    ("pulse_rate", "warning", "high"): "Tachycardia ({value} bpm)",
    ("oxygen_saturation", "critical", "low"): "Severe hypoxemia (SpO2 {value}%)",
    ("oxygen_saturation", "warning", "low"): "Moderate hypoxemia (SpO2 {value}%)",
    ("respiratory_rate", "critical", "low"): "Severe bradypnea ({value} breaths/min)",
    ("respiratory_rate", "critical", "high"): "Severe tachypnea ({value} breaths/min)",
    ("respiratory_rate", "warning", "low"): "Bradypnea ({value} breaths/min)",
    ("respiratory_rate", "warning", "high"): "Tachypnea ({value} breaths/min)",
}

# Ordered high -> low; partial matches take the first hit
SYMPTOM_SEVERITY: dict[str, int] = {
    # High severity
    "chest pain": 3,
    "difficulty breathing": 3,
    "shortness of breath": 3,
    "severe bleeding": 3,
    "unconscious": 3,
    "unresponsive": 3,
    "seizure": 3,
    "stroke": 3,
    "heart attack": 3,
    # Medium severity
    "moderate bleeding": 2,
    "high fever": 2,
    "vomiting": 2,
    "dehydration": 2,
    "severe pain": 2,
    "fracture": 2,
    "head injury": 2,
    "allergic reaction": 2,
    # Low severity
    "mild pain": 1,
    "cough": 1,
    "cold": 1,
    "sore throat": 1,
    "headache": 1,
    "nausea": 1,
    "rash": 1,
    "minor injury": 1,
}

HIGH_SYMPTOM_SCORE = 5
MODERATE_SYMPTOM_SCORE = 3
AGE_RISK_SYMPTOM_SCORE = 2
PEDIATRIC_RISK_AGE = 5
GERIATRIC_RISK_AGE = 65


def parse_blood_pressure(bp: str) -> tuple[int, int] | None:
    """Parse 'systolic/diastolic'; None when it is not two integers."""
    parts = bp.split("/")
    if len(parts) != 2:
        return None
    try:
        return int(parts[0].strip()), int(parts[1].strip())
    except ValueError:
        return None


def classify_blood_pressure(systolic: int, diastolic: int) -> tuple[Tier, str | None]:
    """Return (tier, clinical label) for a blood pressure reading."""
    if systolic >= BP_CRISIS[0] or diastolic >= BP_CRISIS[1]:
        return "critical", "hypertensive crisis"
    if systolic <= BP_HYPOTENSION_SYSTOLIC:
        return "critical", "hypotension"
    if systolic >= BP_HYPERTENSION[0] or diastolic >= BP_HYPERTENSION[1]:
        return "warning", "hypertension"
    if systolic <= BP_MILD_HYPOTENSION_SYSTOLIC:
        return "warning", "mild hypotension"
    return "none", None


def calculate_symptom_score(symptoms: list[str]) -> int:
    """
    Sum lexicon severities over the symptoms.

    Each symptom contributes one term: an exact match if there is one,
    otherwise the first lexicon term it contains.
    """
    score = 0
    for symptom in symptoms:
        symptom_lower = symptom.lower().strip()
        if symptom_lower in SYMPTOM_SEVERITY:
            score += SYMPTOM_SEVERITY[symptom_lower]
            continue
        for term, severity in SYMPTOM_SEVERITY.items():
            if term in symptom_lower:
                score += severity
                break
    return score


def _symptom_line(score: int) -> str | None:
    if score >= HIGH_SYMPTOM_SCORE:
        return "High severity symptoms detected"
    if score >= MODERATE_SYMPTOM_SCORE:
        return "Moderate severity symptoms detected"
    if score > 0:
        return "Low severity symptoms detected"
    return None


class TriageScorer:
    """Deterministic triage priority suggestion."""

    def assess_vitals(
        self, vitals: VitalSigns
    ) -> tuple[VitalsPriority, list[str], list[str]]:
        """
        Classify each vital-sign channel.

        Returns:
            (vitals priority, reasoning lines, unparseable channels)
        """
        reasoning: list[str] = []
        unparseable: list[str] = []
        critical_count = 0
        warning_count = 0

        bp = parse_blood_pressure(vitals.blood_pressure)
        if bp is None:
            unparseable.append("blood_pressure")
            reasoning.append(f"Blood pressure ({vitals.blood_pressure}) could not be parsed")
            logger.warning("Unparseable blood pressure", value=vitals.blood_pressure)
        else:
            tier, label = classify_blood_pressure(*bp)
            if tier == "critical":
                critical_count += 1
            elif tier == "warning":
                warning_count += 1
            if label:
                reasoning.append(f"Blood pressure ({vitals.blood_pressure}) indicates {label}")

        for channel, thresholds in VITAL_THRESHOLDS.items():
            value = getattr(vitals, channel)
            tier, side = thresholds.classify(value)
            if tier == "none":
                continue
            reasoning.append(VITAL_LABELS[(channel, tier, side)].format(value=f"{value:g}"))
            if tier == "critical":
                critical_count += 1
            else:
                warning_count += 1

        if critical_count > 0:
            priority: VitalsPriority = "high"
        elif warning_count > 0:
            priority = "medium"
        else:
            priority = "low"

        logger.debug(
            "Vitals assessed",
            priority=priority,
            critical_count=critical_count,
            warning_count=warning_count,
        )
        return priority, reasoning, unparseable

    def suggest_priority(
        self,
        vitals: VitalSigns | None,
        symptoms: list[str] | None = None,
        age: int = 30,
    ) -> TriageSuggestion:
        """
        Suggest a triage priority.

        Args:
            vitals: Latest vital signs, or None when not yet recorded.
            symptoms: Presenting symptoms (free text).
            age: Patient age in years.

        Returns:
            TriageSuggestion with priority, confidence and reasoning.
        """
        symptoms = symptoms or []
        symptom_score = calculate_symptom_score(symptoms)

        if vitals is None:
            suggestion = self._symptoms_only(symptom_score)
        else:
            suggestion = self._with_vitals(vitals, symptom_score, age)

        logger.info(
            "Triage priority suggested",
            priority=suggestion.priority.value,
            confidence=suggestion.confidence,
            symptom_score=symptom_score,
            has_vitals=vitals is not None,
        )
        return suggestion

    def _symptoms_only(self, symptom_score: int) -> TriageSuggestion:
        if symptom_score >= HIGH_SYMPTOM_SCORE:
            priority, confidence = TriagePriority.CRITICAL, 0.7
            line = "High severity symptoms detected"
        elif symptom_score >= MODERATE_SYMPTOM_SCORE:
            priority, confidence = TriagePriority.URGENT, 0.6
            line = "Moderate severity symptoms detected"
        else:
            priority, confidence = TriagePriority.NORMAL, 0.5
            line = "Low severity symptoms detected"

        return TriageSuggestion(
            priority=priority,
            confidence=confidence,
            reasoning=[line, "No vital signs available for assessment"],
        )

    def _with_vitals(
        self,
        vitals: VitalSigns,
        symptom_score: int,
        age: int,
    ) -> TriageSuggestion:
        vitals_priority, reasoning, unparseable = self.assess_vitals(vitals)

        line = _symptom_line(symptom_score)
        if line:
            reasoning.append(line)

        if age < PEDIATRIC_RISK_AGE or age > GERIATRIC_RISK_AGE:
            if vitals_priority == "medium" or symptom_score >= AGE_RISK_SYMPTOM_SCORE:
                reasoning.append(f"Age ({age}) is a risk factor")
                if vitals_priority == "medium":
                    vitals_priority = "high"

        if vitals_priority == "high" or symptom_score >= HIGH_SYMPTOM_SCORE:
            priority, confidence = TriagePriority.CRITICAL, 0.9
        elif vitals_priority == "medium" or symptom_score >= MODERATE_SYMPTOM_SCORE:
            priority, confidence = TriagePriority.URGENT, 0.8
        else:
            priority, confidence = TriagePriority.NORMAL, 0.7

        return TriageSuggestion(
            priority=priority,
            confidence=confidence,
            reasoning=reasoning,
            unparseable_vitals=unparseable,
        )


# Singleton instance
_scorer_instance: TriageScorer | None = None


def get_triage_scorer() -> TriageScorer:
    """Get the singleton triage scorer."""
    global _scorer_instance
    if _scorer_instance is None:
        _scorer_instance = TriageScorer()
    return _scorer_instance
