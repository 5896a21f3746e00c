"""
Pydantic models for patient numbering settings.

`PatientNumberingSettings` is the only persisted state of the engine.
It is read, possibly mutated and written back on every number issued.
"""

from datetime import datetime
from enum import Enum

from pydantic import Field, model_validator

from hms_engine.models.clinical_models import CamelModel


class NumberingCategory(str, Enum):
    """Patient identifier categories."""
    OUTPATIENT = "outpatient"
    INPATIENT = "inpatient"
    EMERGENCY = "emergency"


class ResetInterval(str, Enum):
    """When a category's sequence restarts at its starting value."""
    DAILY = "daily"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    NEVER = "never"
    PER_ADMISSION = "per-admission"


class CategoryNumberingSettings(CamelModel):
    """Numbering settings for one category."""
    enabled: bool = Field(default=True, description="Whether numbers are issued")
    format: str = Field(
        ...,
        min_length=1,
        description="Template with {year}, {month}, {day} and {sequence} placeholders"
    )
    starting_sequence: int = Field(default=1, ge=0, description="First value of each epoch")
    current_sequence: int = Field(default=1, ge=0, description="Next value to issue")
    reset_interval: ResetInterval = Field(
        default=ResetInterval.YEARLY, description="Sequence reset policy"
    )
    last_reset: datetime | None = Field(
        default=None, description="When a number was last issued"
    )


def _default_category(prefix: str) -> CategoryNumberingSettings:
    return CategoryNumberingSettings(format=f"{prefix}-{{year}}-{{sequence}}")


class PatientNumberingSettings(CamelModel):
    """Numbering settings for all categories."""
    outpatient: CategoryNumberingSettings = Field(
        default_factory=lambda: _default_category("OP"), description="Outpatient numbering"
    )
    inpatient: CategoryNumberingSettings = Field(
        default_factory=lambda: _default_category("IP"), description="Inpatient numbering"
    )
    emergency: CategoryNumberingSettings = Field(
        default_factory=lambda: _default_category("EM"), description="Emergency numbering"
    )

    @model_validator(mode="after")
    def check_per_admission(self) -> "PatientNumberingSettings":
        """Only inpatient numbering may reset per admission."""
        for category in (NumberingCategory.OUTPATIENT, NumberingCategory.EMERGENCY):
            if self.for_category(category).reset_interval == ResetInterval.PER_ADMISSION:
                raise ValueError(
                    f"{category.value} numbering cannot use the per-admission reset interval"
                )
        return self

    def for_category(self, category: NumberingCategory) -> CategoryNumberingSettings:
        """Get the settings for one category."""
        return getattr(self, category.value)
