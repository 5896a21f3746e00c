"""
Lab Result Summarizer

Classifies numeric lab result fields against adult reference ranges and
produces a short narrative summary.

For each known field (matched by lower-cased key):
- below min: abnormal (Low); critical when below 70% of min
- above max: abnormal (High); critical when above 150% of max
- otherwise: normal

Unknown fields and non-numeric values are skipped. The summary holds at
most three lines, led by an ATTENTION line when critical values exist.
"""

import random
from dataclasses import dataclass
from typing import Any, Literal

from hms_engine.config.config import get_settings
from hms_engine.config.logging_config import get_logger
from hms_engine.models.clinical_models import LabSummary, LabTest, LabTestStatus

logger = get_logger(__name__)


@dataclass(frozen=True)
class ReferenceRange:
    """Normal range for one analyte."""
    min: float
    max: float
    unit: str


REFERENCE_RANGES: dict[str, ReferenceRange] = {
    # Complete Blood Count
    "wbc": ReferenceRange(4.0, 11.0, "×10⁹/L"),
    "rbc": ReferenceRange(4.5, 5.5, "×10¹²/L"),
    "hemoglobin": ReferenceRange(13.5, 17.5, "g/dL"),
    "hematocrit": ReferenceRange(41, 50, "%"),
    "platelets": ReferenceRange(150, 450, "×10⁹/L"),
    # Liver Function Tests
    "alt": ReferenceRange(7, 56, "U/L"),
    "ast": ReferenceRange(10, 40, "U/L"),
    "alp": ReferenceRange(44, 147, "U/L"),
    "bilirubin": ReferenceRange(0.3, 1.2, "mg/dL"),
    "albumin": ReferenceRange(3.5, 5.0, "g/dL"),
    # Lipid Profile
    "total_cholesterol": ReferenceRange(0, 200, "mg/dL"),
    "ldl": ReferenceRange(0, 100, "mg/dL"),
    "hdl": ReferenceRange(40, 60, "mg/dL"),
    "triglycerides": ReferenceRange(0, 150, "mg/dL"),
    # Blood Glucose
    "fasting_glucose": ReferenceRange(70, 100, "mg/dL"),
    "random_glucose": ReferenceRange(70, 140, "mg/dL"),
    "hba1c": ReferenceRange(4.0, 5.7, "%"),
    # Kidney Function
    "creatinine": ReferenceRange(0.7, 1.3, "mg/dL"),
    "bun": ReferenceRange(7, 20, "mg/dL"),
    "egfr": ReferenceRange(90, 120, "mL/min/1.73m²"),
    # Electrolytes
    "sodium": ReferenceRange(135, 145, "mmol/L"),
    "potassium": ReferenceRange(3.5, 5.0, "mmol/L"),
    "chloride": ReferenceRange(98, 107, "mmol/L"),
    "bicarbonate": ReferenceRange(22, 29, "mmol/L"),
}

ABNORMAL_PHRASES: dict[str, dict[str, tuple[str, ...]]] = {
    "wbc": {
        "high": ("Elevated white blood cell count suggests possible infection or inflammation",),
        "low": ("Low white blood cell count may indicate bone marrow suppression or viral infection",),
    },
    "rbc": {
        "high": ("Elevated red blood cell count may indicate polycythemia or dehydration",),
        "low": ("Low red blood cell count suggests possible anemia",),
    },
    "hemoglobin": {
        "high": ("Elevated hemoglobin may indicate polycythemia or dehydration",),
        "low": ("Low hemoglobin indicates anemia",),
    },
    "platelets": {
        "high": ("Elevated platelet count suggests possible inflammation or infection",),
        "low": ("Low platelet count (thrombocytopenia) may increase bleeding risk",),
    },
    "alt": {
        "high": ("Elevated ALT suggests liver cell damage",),
        "low": ("Low ALT is generally not clinically significant",),
    },
    "ast": {
        "high": ("Elevated AST suggests liver or muscle damage",),
        "low": ("Low AST is generally not clinically significant",),
    },
    "bilirubin": {
        "high": ("Elevated bilirubin may indicate liver dysfunction or hemolysis",),
        "low": ("Low bilirubin is generally not clinically significant",),
    },
    "total_cholesterol": {
        "high": ("Elevated total cholesterol increases cardiovascular risk",),
        "low": ("Low cholesterol may be associated with malnutrition or liver disease",),
    },
    "ldl": {
        "high": ('Elevated LDL ("bad cholesterol") increases cardiovascular risk',),
        "low": ("Low LDL is generally beneficial for cardiovascular health",),
    },
    "hdl": {
        "high": ('High HDL ("good cholesterol") is generally protective against heart disease',),
        "low": ("Low HDL may increase cardiovascular risk",),
    },
    "triglycerides": {
        "high": ("Elevated triglycerides increase cardiovascular risk and may indicate metabolic syndrome",),
        "low": ("Low triglycerides are generally not clinically significant",),
    },
    "fasting_glucose": {
        "high": ("Elevated fasting glucose suggests diabetes or prediabetes",),
        "low": ("Low blood glucose (hypoglycemia) may cause symptoms like dizziness and confusion",),
    },
    "hba1c": {
        "high": ("Elevated HbA1c indicates poor glycemic control over the past 3 months",),
        "low": ("Low HbA1c may indicate recent hypoglycemic episodes",),
    },
    "creatinine": {
        "high": ("Elevated creatinine suggests decreased kidney function",),
        "low": ("Low creatinine may indicate decreased muscle mass",),
    },
    "sodium": {
        "high": ("Elevated sodium (hypernatremia) may indicate dehydration",),
        "low": ("Low sodium (hyponatremia) may cause neurological symptoms",),
    },
    "potassium": {
        "high": ("Elevated potassium (hyperkalemia) may affect cardiac function",),
        "low": ("Low potassium (hypokalemia) may cause muscle weakness and cardiac arrhythmias",),
    },
}

GENERIC_PHRASES: dict[str, tuple[str, ...]] = {
    "high": (
        "Elevated {test} levels detected",
        "{test} is above normal range",
        "High {test} may require clinical attention",
    ),
    "low": (
        "Low {test} levels detected",
        "{test} is below normal range",
        "Decreased {test} may require clinical attention",
    ),
}

CRITICAL_LOW_FACTOR = 0.7
CRITICAL_HIGH_FACTOR = 1.5

NO_DATA_LINE = "No detailed results available for analysis"
ALL_NORMAL_LINE = "All test results are within normal ranges"
ATTENTION_LINE = "ATTENTION: Critical values detected that may require immediate clinical attention"


def format_number(value: float) -> str:
    """Render whole numbers without a trailing '.0'."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _is_numeric(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class LabResultSummarizer:
    """Reference-range classification of lab results."""

    def __init__(
        self,
        phrase_selection: Literal["first", "random"] | None = None,
        rng: random.Random | None = None,
        max_summary_lines: int | None = None,
    ):
        """
        Initialize the summarizer.

        Args:
            phrase_selection: "first" always picks the first phrase of a
                synonym set; "random" picks one with `rng`.
            rng: Random source for "random" selection (seed it for repeatability).
            max_summary_lines: Maximum summary length.
        """
        settings = get_settings()
        self.phrase_selection = (
            phrase_selection if phrase_selection is not None else settings.lab_phrase_selection
        )
        self.rng = rng or random.Random()
        self.max_summary_lines = (
            max_summary_lines
            if max_summary_lines is not None
            else settings.lab_summary_max_lines
        )

    def summarize(self, lab_test: LabTest) -> LabSummary:
        """
        Summarize a completed lab test.

        Tests that are not completed, or have no result fields, yield a
        single "no data" line with empty result lists.
        """
        results = lab_test.results
        if (
            lab_test.status != LabTestStatus.COMPLETED
            or results is None
            or results.custom_fields is None
        ):
            logger.debug(
                "No lab results to summarize",
                lab_test_id=lab_test.id,
                status=lab_test.status.value,
            )
            return LabSummary(summary=[NO_DATA_LINE])

        summary: list[str] = []
        abnormal: list[str] = []
        critical: list[str] = []
        normal: list[str] = []

        for key, value in results.custom_fields.items():
            if not _is_numeric(value):
                continue
            field_key = key.lower()
            reference = REFERENCE_RANGES.get(field_key)
            if reference is None:
                continue

            test_name = key.replace("_", " ")
            value_text = format_number(value)
            range_text = (
                f"{format_number(reference.min)}-{format_number(reference.max)} {reference.unit}"
            )

            if value < reference.min:
                line = f"{test_name.upper()}: {value_text} {reference.unit} (Low - Normal range: {range_text})"
                abnormal.append(line)
                summary.append(self._pick_phrase(field_key, "low", test_name))
                if value < reference.min * CRITICAL_LOW_FACTOR:
                    critical.append(line)
            elif value > reference.max:
                line = f"{test_name.upper()}: {value_text} {reference.unit} (High - Normal range: {range_text})"
                abnormal.append(line)
                summary.append(self._pick_phrase(field_key, "high", test_name))
                if value > reference.max * CRITICAL_HIGH_FACTOR:
                    critical.append(line)
            else:
                normal.append(
                    f"{test_name.upper()}: {value_text} {reference.unit} (Normal range: {range_text})"
                )

        if not summary:
            summary.append(ALL_NORMAL_LINE)
        if critical:
            summary.insert(0, ATTENTION_LINE)

        logger.info(
            "Lab results summarized",
            lab_test_id=lab_test.id,
            abnormal_count=len(abnormal),
            critical_count=len(critical),
            normal_count=len(normal),
        )
        return LabSummary(
            summary=summary[: self.max_summary_lines],
            abnormal_results=abnormal,
            critical_results=critical,
            normal_results=normal,
        )

    def _pick_phrase(self, field_key: str, direction: str, test_name: str) -> str:
        phrases = ABNORMAL_PHRASES.get(field_key, {}).get(direction)
        if phrases is None:
            phrases = tuple(p.format(test=test_name) for p in GENERIC_PHRASES[direction])
        if self.phrase_selection == "random":
            return self.rng.choice(phrases)
        return phrases[0]


# Singleton instance
_summarizer_instance: LabResultSummarizer | None = None


def get_lab_summarizer() -> LabResultSummarizer:
    """Get the singleton lab result summarizer."""
    global _summarizer_instance
    if _summarizer_instance is None:
        _summarizer_instance = LabResultSummarizer()
    return _summarizer_instance
