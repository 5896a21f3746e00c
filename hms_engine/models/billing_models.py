"""
Pydantic models for invoices, price lists and billing anomaly results.
"""

from datetime import datetime
from typing import Literal

from pydantic import Field, model_validator

from hms_engine.models.clinical_models import CamelModel


class BillingItem(CamelModel):
    """A single invoice line item."""
    id: str = Field(..., description="Line item ID")
    patient_id: str = Field(default="", description="Patient ID")
    service_id: str = Field(default="", description="Service charge ID")
    service_name: str = Field(..., description="Service name (baseline key)")
    quantity: int = Field(..., ge=0, description="Quantity")
    unit_price: float = Field(..., ge=0, description="Unit price")
    total_amount: float | None = Field(
        default=None, description="Line total; quantity x unit price when omitted"
    )
    department: str = Field(default="", description="Billing department")
    category: str = Field(default="", description="Billing category")
    status: Literal["pending", "paid", "cancelled", "waived"] = Field(
        default="pending", description="Payment status"
    )

    @model_validator(mode="after")
    def fill_total_amount(self) -> "BillingItem":
        """Compute the line total at creation when it was not supplied."""
        if self.total_amount is None:
            self.total_amount = self.quantity * self.unit_price
        return self


class Invoice(CamelModel):
    """An invoice grouping billing line items."""
    id: str = Field(..., description="Invoice ID")
    patient_id: str = Field(default="", description="Patient ID")
    visit_id: str = Field(default="", description="Visit ID")
    items: list[BillingItem] = Field(default_factory=list, description="Line items")
    status: Literal["pending", "paid", "cancelled", "waived"] = Field(
        default="pending", description="Invoice status"
    )
    created_at: datetime = Field(default_factory=datetime.now, description="Creation time")

    @property
    def total_amount(self) -> float:
        """Sum of line totals."""
        return sum(item.total_amount or 0.0 for item in self.items)


class ServiceCharge(CamelModel):
    """Reference price list entry."""
    id: str = Field(default="", description="Service charge ID")
    name: str = Field(..., description="Service name")
    department: str = Field(default="", description="Department")
    amount: float = Field(..., ge=0, description="Standard amount")
    category: str = Field(default="", description="Category")


class AnomalyResult(CamelModel):
    """Anomaly flag for one invoice line item."""
    item_id: str = Field(..., description="Flagged line item ID")
    is_anomaly: bool = Field(default=True, description="Whether the item is anomalous")
    score: float = Field(..., ge=0.0, le=1.0, description="Anomaly score (0-1)")
    reason: str = Field(..., description="Why the item was flagged")
    suggested_action: str | None = Field(default=None, description="Suggested follow-up")


class AnomalyReport(CamelModel):
    """Billing anomaly detection result for one invoice."""
    has_anomalies: bool = Field(..., description="True when any item is flagged")
    anomalies: list[AnomalyResult] = Field(default_factory=list, description="Flagged items")
    overall_risk_score: float = Field(
        default=0.0, ge=0.0, le=1.0, description="Mean score of flagged items"
    )
