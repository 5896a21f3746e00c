"""Unit tests for the patient history summary."""

from datetime import datetime

import pytest

from hms_engine.models.clinical_models import (
    LabTest,
    LabTestStatus,
    MedicalHistory,
    Patient,
    VitalSigns,
)
from hms_engine.models.report_models import Consultation
from hms_engine.services.history_summarizer import summarize_history


@pytest.fixture
def patient():
    return Patient(id="p-1", full_name="Amina Otieno", age=58, gender="female")


def _vitals(bp: str, recorded_at: datetime) -> VitalSigns:
    return VitalSigns(
        blood_pressure=bp,
        pulse_rate=84,
        temperature=37.0,
        oxygen_saturation=97,
        respiratory_rate=18,
        recorded_at=recorded_at,
    )


def _consultation(cid: str, day: int, diagnosis: list[str]) -> Consultation:
    return Consultation(
        id=cid,
        patient_id="p-1",
        department="general",
        start_time=datetime(2025, 4, day, 9, 0),
        diagnosis=diagnosis,
    )


class TestSummarizeHistory:
    """Test the plain-text history brief."""

    def test_demographics_only(self, patient):
        """Test a patient with no records gives one line."""
        assert summarize_history(patient, [], [], []) == "Amina Otieno, 58 years, female"

    def test_medical_history_lines(self, patient):
        """Test conditions, allergies and medications lines."""
        history = MedicalHistory(
            has_diabetes=True,
            has_asthma=True,
            has_surgeries=True,
            has_allergies=True,
            allergies=["Penicillin"],
            medications=["Metformin", "Salbutamol"],
        )
        lines = summarize_history(patient, [], [], [], history).split("\n")

        assert lines[1:] == [
            "Medical History: Diabetes, Asthma, Previous Surgeries",
            "Allergies: Penicillin",
            "Current Medications: Metformin, Salbutamol",
        ]

    def test_allergies_need_flag(self, patient):
        """Test allergies are listed only when flagged."""
        history = MedicalHistory(has_allergies=False, allergies=["Latex"])
        assert summarize_history(patient, [], [], [], history) == "Amina Otieno, 58 years, female"

    def test_latest_vitals(self, patient):
        """Test the most recently recorded vitals are reported."""
        vitals = [
            _vitals("130/85", datetime(2025, 4, 1, 8, 0)),
            _vitals("142/92", datetime(2025, 4, 10, 8, 0)),
        ]
        lines = summarize_history(patient, [], [], vitals).split("\n")

        assert lines[1] == "Latest Vitals: BP 142/92, HR 84 bpm, Temp 37°C, SpO2 97%, RR 18/min"

    def test_recent_consultations(self, patient):
        """Test only the three most recent consultations are listed."""
        consultations = [
            _consultation("c1", 1, ["Malaria"]),
            _consultation("c4", 20, []),
            _consultation("c2", 5, ["Hypertension", "Gastritis"]),
            _consultation("c3", 12, ["Bronchitis"]),
        ]
        lines = summarize_history(patient, consultations, [], []).split("\n")

        assert lines[1] == (
            "Recent Consultations: 2025-04-20: No diagnosis recorded; "
            "2025-04-12: Bronchitis; 2025-04-05: Hypertension, Gastritis"
        )

    def test_recent_tests(self, patient):
        """Test lab tests show date, type and status."""
        tests = [
            LabTest(id="l1", test_type="Lipid Profile", requested_at=datetime(2025, 4, 2),
                    status=LabTestStatus.COMPLETED),
            LabTest(id="l2", test_type="Urinalysis", requested_at=datetime(2025, 4, 9),
                    status=LabTestStatus.IN_PROGRESS),
        ]
        lines = summarize_history(patient, [], tests, []).split("\n")

        assert lines[1] == (
            "Recent Tests: 2025-04-09: Urinalysis (in-progress); "
            "2025-04-02: Lipid Profile (completed)"
        )

    def test_line_order(self, patient):
        """Test sections appear in a fixed order."""
        summary = summarize_history(
            patient,
            [_consultation("c1", 3, ["Asthma"])],
            [LabTest(id="l1", test_type="Urinalysis", requested_at=datetime(2025, 4, 3))],
            [_vitals("120/80", datetime(2025, 4, 3, 8, 0))],
            MedicalHistory(has_hypertension=True),
        )
        prefixes = [line.split(":")[0] for line in summary.split("\n")[1:]]
        assert prefixes == ["Medical History", "Latest Vitals", "Recent Consultations", "Recent Tests"]
