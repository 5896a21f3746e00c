"""
Patient History Summarizer

Condenses a patient's record into a short plain-text brief for the
consulting doctor: demographics, past conditions, allergies, current
medications, the latest vital signs, and the three most recent
consultations and lab tests.
"""

from hms_engine.config.logging_config import get_logger
from hms_engine.models.clinical_models import LabTest, MedicalHistory, Patient, VitalSigns
from hms_engine.models.report_models import Consultation

logger = get_logger(__name__)

RECENT_LIMIT = 3
NO_DIAGNOSIS = "No diagnosis recorded"

# Checked in display order
CONDITION_LABELS: tuple[tuple[str, str], ...] = (
    ("has_diabetes", "Diabetes"),
    ("has_hypertension", "Hypertension"),
    ("has_heart_disease", "Heart Disease"),
    ("has_asthma", "Asthma"),
    ("has_cancer", "Cancer"),
    ("has_surgeries", "Previous Surgeries"),
)


def _history_lines(history: MedicalHistory) -> list[str]:
    lines = []
    conditions = [label for attr, label in CONDITION_LABELS if getattr(history, attr)]
    if conditions:
        lines.append(f"Medical History: {', '.join(conditions)}")
    if history.has_allergies and history.allergies:
        lines.append(f"Allergies: {', '.join(history.allergies)}")
    if history.medications:
        lines.append(f"Current Medications: {', '.join(history.medications)}")
    return lines


def _vitals_line(vitals: VitalSigns) -> str:
    return (
        f"Latest Vitals: BP {vitals.blood_pressure}, HR {vitals.pulse_rate} bpm, "
        f"Temp {vitals.temperature:g}°C, SpO2 {vitals.oxygen_saturation}%, "
        f"RR {vitals.respiratory_rate}/min"
    )


def summarize_history(
    patient: Patient,
    consultations: list[Consultation],
    lab_tests: list[LabTest],
    vitals: list[VitalSigns],
    medical_history: MedicalHistory | None = None,
) -> str:
    """
    Summarize a patient's history as newline-separated lines.

    Records may be passed in any order; the latest vitals and the most
    recent consultations and tests are picked by timestamp.

    Args:
        patient: Patient demographics.
        consultations: Past consultations.
        lab_tests: Ordered lab tests.
        vitals: Recorded vital-sign snapshots.
        medical_history: Past medical history, if recorded.
    """
    lines = [f"{patient.full_name}, {patient.age} years, {patient.gender}"]

    if medical_history is not None:
        lines.extend(_history_lines(medical_history))

    if vitals:
        latest = max(vitals, key=lambda v: v.recorded_at)
        lines.append(_vitals_line(latest))

    if consultations:
        recent = sorted(consultations, key=lambda c: c.start_time, reverse=True)[:RECENT_LIMIT]
        entries = [
            f"{c.start_time:%Y-%m-%d}: {', '.join(c.diagnosis) if c.diagnosis else NO_DIAGNOSIS}"
            for c in recent
        ]
        lines.append(f"Recent Consultations: {'; '.join(entries)}")

    if lab_tests:
        recent_tests = sorted(lab_tests, key=lambda t: t.requested_at, reverse=True)[:RECENT_LIMIT]
        entries = [
            f"{t.requested_at:%Y-%m-%d}: {t.test_type} ({t.status.value})" for t in recent_tests
        ]
        lines.append(f"Recent Tests: {'; '.join(entries)}")

    logger.info(
        "Patient history summarized",
        patient_id=patient.id,
        line_count=len(lines),
    )
    return "\n".join(lines)
