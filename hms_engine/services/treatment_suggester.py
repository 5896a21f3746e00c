"""
Treatment Suggester

Looks diagnoses up in a static diagnosis -> treatments table, falling
back to substring matches and then to a symptom -> treatments table.
Suggestions are advisory only.
"""

from hms_engine.config.logging_config import get_logger
from hms_engine.models.clinical_models import TreatmentSuggestion

logger = get_logger(__name__)

MAX_SUGGESTIONS = 5
SYMPTOM_MATCH_WEIGHT = 0.5

DIAGNOSIS_TREATMENTS: dict[str, tuple[str, ...]] = {
    "malaria": (
        "Artemisinin-based combination therapy (ACT)",
        "Oral rehydration and antipyretics",
        "Follow-up blood test after treatment",
    ),
    "pneumonia": (
        "Appropriate antibiotics based on severity",
        "Supportive care including hydration and rest",
        "Antipyretics for fever",
    ),
    "urinary tract infection": (
        "Antibiotics (e.g., Nitrofurantoin, Trimethoprim-Sulfamethoxazole)",
        "Increased fluid intake",
        "Analgesics for pain relief",
    ),
    "hypertension": (
        "Lifestyle modifications (diet, exercise, salt restriction)",
        "Antihypertensive medication as appropriate",
        "Regular blood pressure monitoring",
    ),
    "diabetes": (
        "Blood glucose monitoring",
        "Dietary modifications and exercise",
        "Oral hypoglycemics or insulin as appropriate",
    ),
    "asthma": (
        "Short-acting beta agonists for acute symptoms",
        "Inhaled corticosteroids for long-term control",
        "Avoidance of triggers",
    ),
    "gastritis": (
        "Proton pump inhibitors or H2 blockers",
        "Avoidance of irritating foods and NSAIDs",
        "Antacids for symptom relief",
    ),
    "bronchitis": (
        "Rest and increased fluid intake",
        "Bronchodilators if wheezing present",
        "Antibiotics only if bacterial infection suspected",
    ),
    "tonsillitis": (
        "Analgesics for pain and fever",
        "Antibiotics if bacterial infection confirmed",
        "Warm salt water gargles",
    ),
    "otitis media": (
        "Analgesics for pain",
        "Antibiotics if indicated",
        "Decongestants may help with eustachian tube function",
    ),
}

SYMPTOM_TREATMENTS: dict[str, tuple[str, ...]] = {
    "pain": (
        "Appropriate analgesics based on pain severity",
        "Physical therapy if indicated",
        "Identify and treat underlying cause",
    ),
    "fever": (
        "Antipyretics (Paracetamol or Ibuprofen)",
        "Adequate hydration",
        "Identify and treat underlying cause",
    ),
    "cough": (
        "Cough suppressants for dry cough",
        "Expectorants for productive cough",
        "Treat underlying cause",
    ),
    "diarrhea": (
        "Oral rehydration therapy",
        "Probiotics may be beneficial",
        "Antimotility agents if appropriate",
    ),
    "vomiting": (
        "Antiemetics if severe",
        "Oral rehydration therapy",
        "Small, frequent meals once tolerated",
    ),
    "rash": (
        "Topical corticosteroids for inflammation",
        "Antihistamines for itching",
        "Identify and avoid triggers",
    ),
    "headache": (
        "Appropriate analgesics",
        "Rest in quiet, dark environment for migraine",
        "Identify and address triggers",
    ),
}


def _match(diagnosis: str) -> tuple[tuple[str, ...], float]:
    """Treatments and match weight for one diagnosis."""
    text = diagnosis.lower().strip()
    if not text:
        return (), 0.0

    if text in DIAGNOSIS_TREATMENTS:
        return DIAGNOSIS_TREATMENTS[text], 1.0

    for key, treatments in DIAGNOSIS_TREATMENTS.items():
        if key in text or text in key:
            return treatments, 1.0

    for symptom, treatments in SYMPTOM_TREATMENTS.items():
        if symptom in text:
            return treatments, SYMPTOM_MATCH_WEIGHT

    return (), 0.0


def _notes(confidence: float) -> str:
    if confidence == 0:
        return "No matching treatments found for the provided diagnoses"
    if confidence < 0.5:
        return "Limited matches found. Consider consulting treatment guidelines"
    if confidence < 1:
        return "Some treatments suggested based on partial matches"
    return "Treatments suggested based on standard guidelines"


class TreatmentSuggester:
    """Table-driven treatment suggestions for diagnoses."""

    def suggest(self, diagnoses: list[str]) -> TreatmentSuggestion:
        """
        Suggest treatments for a list of diagnoses.

        Args:
            diagnoses: Free-text diagnoses.

        Returns:
            TreatmentSuggestion with at most five unique suggestions.
        """
        if not diagnoses:
            return TreatmentSuggestion(
                suggestions=[], confidence=0.0, notes="No diagnosis provided"
            )

        suggestions: list[str] = []
        matched = 0.0
        for diagnosis in diagnoses:
            treatments, weight = _match(diagnosis)
            matched += weight
            for treatment in treatments:
                if treatment not in suggestions:
                    suggestions.append(treatment)

        confidence = min(matched / len(diagnoses), 1.0)

        logger.info(
            "Treatments suggested",
            diagnosis_count=len(diagnoses),
            suggestion_count=len(suggestions),
            confidence=confidence,
        )
        return TreatmentSuggestion(
            suggestions=suggestions[:MAX_SUGGESTIONS],
            confidence=confidence,
            notes=_notes(confidence),
        )


# Singleton instance
_suggester_instance: TreatmentSuggester | None = None


def get_treatment_suggester() -> TreatmentSuggester:
    """Get the singleton treatment suggester."""
    global _suggester_instance
    if _suggester_instance is None:
        _suggester_instance = TreatmentSuggester()
    return _suggester_instance
