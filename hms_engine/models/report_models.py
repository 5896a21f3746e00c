"""
Pydantic models for the performance and trend report.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from hms_engine.models.clinical_models import CamelModel

ReportPeriod = Literal["day", "week", "month"]


class Consultation(CamelModel):
    """A consultation as supplied by the surrounding application."""
    id: str = Field(..., description="Consultation ID")
    patient_id: str = Field(..., description="Patient ID")
    department: str = Field(..., description="Department")
    doctor_id: str = Field(default="", description="Doctor ID")
    start_time: datetime = Field(..., description="Start time")
    end_time: datetime | None = Field(default=None, description="End time when completed")
    status: Literal["in-progress", "completed"] = Field(
        default="in-progress", description="Consultation status"
    )
    diagnosis: list[str] = Field(default_factory=list, description="Recorded diagnoses")


class Payment(CamelModel):
    """A received payment."""
    id: str = Field(..., description="Payment ID")
    patient_id: str = Field(default="", description="Patient ID")
    invoice_id: str | None = Field(default=None, description="Invoice paid")
    amount: float = Field(..., description="Amount received")
    method: str = Field(default="cash", description="Payment method")
    timestamp: datetime = Field(..., description="When the payment was received")


class PeriodMetrics(BaseModel):
    """Metrics for one reporting period."""
    patient_count: int = Field(default=0, description="Distinct patients consulted")
    consultation_count: int = Field(default=0, description="Consultations started")
    lab_test_count: int = Field(default=0, description="Lab tests requested")
    revenue: float = Field(default=0.0, description="Payments received")
    average_consultation_time: float = Field(
        default=0.0, description="Mean duration of completed consultations (minutes)"
    )


class TrendMetric(BaseModel):
    """Comparison of the two most recent periods for one metric."""
    current: float = Field(..., description="Most recent period value")
    previous: float = Field(..., description="Preceding period value")
    change: str = Field(..., description="Percentage change, e.g. '+12.3%'")
    trend: Literal["up", "down", "stable"] = Field(..., description="Direction")


class DepartmentPerformance(BaseModel):
    """Per-department consultation and revenue figures."""
    consultation_count: int = Field(default=0, description="Consultations")
    average_consultation_time: float = Field(default=0.0, description="Mean duration (minutes)")
    revenue: float = Field(default=0.0, description="Invoiced revenue")


class PerformanceReport(BaseModel):
    """Grouped metrics, trends and one-period-ahead forecasts."""
    period: ReportPeriod = Field(..., description="Grouping period")
    summary: str = Field(default="", description="Plain-text report")
    metrics: dict[str, PeriodMetrics] = Field(default_factory=dict, description="Metrics by period key")
    trends: dict[str, TrendMetric] = Field(default_factory=dict, description="Trends by metric")
    department_performance: dict[str, DepartmentPerformance] = Field(
        default_factory=dict, description="Performance by department"
    )
    predictions: dict[str, float] = Field(default_factory=dict, description="Next-period forecasts")
