"""
Pydantic models for clinical observations and decision-support output.

Covers vital signs (with Glasgow Coma Scale and AVPU), lab tests and
their results, and the structured results returned by the triage
scorer, lab summarizer and treatment suggester.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model accepting both snake_case names and camelCase aliases."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Vital Signs
# ============================================================================

class AVPU(str, Enum):
    """AVPU consciousness scale."""
    ALERT = "alert"
    VERBAL = "verbal"
    PAIN = "pain"
    UNRESPONSIVE = "unresponsive"


class GlasgowComaScale(CamelModel):
    """
    Glasgow Coma Scale assessment.

    The total is always derived from the three components, so it can
    never drift from their sum.
    """
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    eye_opening: int = Field(..., ge=1, le=4, description="Eye opening response (1-4)")
    verbal_response: int = Field(..., ge=1, le=5, description="Verbal response (1-5)")
    motor_response: int = Field(..., ge=1, le=6, description="Motor response (1-6)")

    @computed_field
    @property
    def total(self) -> int:
        """Total score (3-15)."""
        return self.eye_opening + self.verbal_response + self.motor_response

    @property
    def interpretation(self) -> str:
        """Severity band for the total score."""
        if self.total == 15:
            return "Normal"
        if self.total >= 13:
            return "Minor injury"
        if self.total >= 9:
            return "Moderate injury"
        return "Severe injury"

    def with_component(
        self,
        component: Literal["eye_opening", "verbal_response", "motor_response"],
        value: int,
    ) -> "GlasgowComaScale":
        """Return a new assessment with one component replaced (validated)."""
        data = self.model_dump(exclude={"total"})
        data[component] = value
        return GlasgowComaScale(**data)


class VitalSigns(CamelModel):
    """
    One vital-signs snapshot.

    Immutable once recorded: re-assessment produces a new snapshot.
    """
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    blood_pressure: str = Field(..., description="Blood pressure as 'systolic/diastolic'")
    pulse_rate: int = Field(..., ge=0, description="Pulse rate (beats/min)")
    temperature: float = Field(..., description="Body temperature (°C)")
    oxygen_saturation: int = Field(..., ge=0, le=100, description="SpO2 (%)")
    respiratory_rate: int = Field(..., ge=0, description="Respiratory rate (breaths/min)")
    recorded_at: datetime = Field(default_factory=datetime.now, description="Recording time")
    recorded_by: str = Field(default="", description="Who recorded the observation")
    notes: str | None = Field(default=None, description="Free-text notes")
    weight: float | None = Field(default=None, ge=0, description="Weight (kg)")
    height: float | None = Field(default=None, ge=0, description="Height (cm)")
    glasgow_coma_scale: GlasgowComaScale | None = Field(
        default=None, description="Glasgow Coma Scale assessment"
    )
    avpu: AVPU | None = Field(default=None, description="AVPU level")


# ============================================================================
# Triage
# ============================================================================

class TriagePriority(str, Enum):
    """Final triage priority."""
    NORMAL = "normal"
    URGENT = "urgent"
    CRITICAL = "critical"


class TriageSuggestion(BaseModel):
    """Suggested triage priority with its explanation."""
    priority: TriagePriority = Field(..., description="Suggested priority")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Confidence (0-1)")
    reasoning: list[str] = Field(default_factory=list, description="Ordered reasoning lines")
    unparseable_vitals: list[str] = Field(
        default_factory=list,
        description="Vital-sign channels that could not be parsed and were not scored"
    )


# ============================================================================
# Lab Tests
# ============================================================================

class LabTestStatus(str, Enum):
    """Lifecycle of an ordered lab test."""
    PENDING = "pending"
    SENT = "sent"
    RECEIVED = "received"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class LabResults(CamelModel):
    """Results entered for a lab test."""
    findings: str = Field(default="", description="Free-text findings")
    interpretation: str | None = Field(default=None, description="Interpretation")
    performed_by: str = Field(default="", description="Who performed the test")
    performed_at: datetime | None = Field(default=None, description="When the test was performed")
    custom_fields: dict[str, Any] | None = Field(
        default=None, description="Named result fields (numeric values are analysed)"
    )


class LabTest(CamelModel):
    """One ordered lab test."""
    id: str = Field(..., description="Lab test ID")
    patient_id: str = Field(default="", description="Patient ID")
    test_type: str = Field(..., description="Test type (e.g. 'Complete Blood Count (CBC)')")
    category: str = Field(default="", description="Department (e.g. 'hematology')")
    status: LabTestStatus = Field(default=LabTestStatus.PENDING, description="Test status")
    sample_id: str | None = Field(default=None, description="Sample identifier")
    requested_at: datetime = Field(default_factory=datetime.now, description="Request time")
    results: LabResults | None = Field(default=None, description="Results when available")


class LabSummary(BaseModel):
    """Categorized lab findings and narrative summary."""
    summary: list[str] = Field(default_factory=list, description="Narrative summary lines")
    abnormal_results: list[str] = Field(default_factory=list, description="Out-of-range results")
    critical_results: list[str] = Field(default_factory=list, description="Critically out-of-range results")
    normal_results: list[str] = Field(default_factory=list, description="In-range results")


# ============================================================================
# Treatment Suggestions
# ============================================================================

class TreatmentSuggestion(BaseModel):
    """Treatment options suggested for a set of diagnoses."""
    suggestions: list[str] = Field(default_factory=list, description="Suggested treatments")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Match confidence (0-1)")
    notes: str = Field(..., description="How the suggestions were derived")


# ============================================================================
# Patient History
# ============================================================================

class Patient(CamelModel):
    """Patient demographics used in history summaries."""
    id: str = Field(..., description="Patient ID")
    full_name: str = Field(..., description="Full name")
    age: int = Field(..., ge=0, description="Age in years")
    gender: Literal["male", "female", "other"] = Field(..., description="Gender")


class MedicalHistory(CamelModel):
    """Recorded past medical history."""
    has_diabetes: bool = Field(default=False, description="Diabetes")
    has_hypertension: bool = Field(default=False, description="Hypertension")
    has_heart_disease: bool = Field(default=False, description="Heart disease")
    has_asthma: bool = Field(default=False, description="Asthma")
    has_cancer: bool = Field(default=False, description="Cancer")
    has_surgeries: bool = Field(default=False, description="Previous surgeries")
    has_allergies: bool = Field(default=False, description="Known allergies")
    allergies: list[str] = Field(default_factory=list, description="Allergy list")
    medications: list[str] = Field(default_factory=list, description="Current medications")
    family_history: list[str] = Field(default_factory=list, description="Family history")
    notes: str = Field(default="", description="Free-text notes")
