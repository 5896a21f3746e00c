"""
Billing Anomaly Detector

Flags invoice line items priced or quantified outside historical norms.
Stored amounts are never modified; results only annotate items by ID.

Baseline: mean unit price per service name, seeded from the reference
price list and folded with every historical invoice line.

Per item:
- price: unit price >= 1.5x baseline -> score min((ratio - 1) / 2, 1);
  any positive price against a zero baseline scores 1
- quantity: above 3 -> score min((quantity - 3) / 7, 1), counted only
  when it exceeds 0.3; combined with a price flag by taking the max
"""

from dataclasses import dataclass

from hms_engine.config.config import get_settings
from hms_engine.config.logging_config import get_logger
from hms_engine.models.billing_models import (
    AnomalyReport,
    AnomalyResult,
    BillingItem,
    Invoice,
    ServiceCharge,
)

logger = get_logger(__name__)

PRICE_ACTION = "Verify pricing with service department"
QUANTITY_ACTION = "Verify quantity with ordering physician"
QUANTITY_SCORE_SPAN = 7


@dataclass
class PriceBaseline:
    """Running mean of observed unit prices for one service."""
    total: float = 0.0
    count: int = 0

    def add(self, price: float) -> None:
        self.total += price
        self.count += 1

    @property
    def average(self) -> float:
        return self.total / self.count if self.count else 0.0


def build_price_baselines(
    historical_invoices: list[Invoice],
    service_charges: list[ServiceCharge],
) -> dict[str, PriceBaseline]:
    """Mean unit price per service name from price list and history."""
    baselines: dict[str, PriceBaseline] = {}

    for charge in service_charges:
        baselines.setdefault(charge.name, PriceBaseline()).add(charge.amount)

    for invoice in historical_invoices:
        for item in invoice.items:
            baselines.setdefault(item.service_name, PriceBaseline()).add(item.unit_price)

    return baselines


def _round_half_up(value: float) -> int:
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


def _format_amount(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


class BillingAnomalyDetector:
    """Price and quantity outlier detection for invoices."""

    def __init__(
        self,
        price_ratio_threshold: float | None = None,
        quantity_threshold: int | None = None,
        quantity_flag_score: float | None = None,
    ):
        settings = get_settings()
        self.price_ratio_threshold = (
            price_ratio_threshold
            if price_ratio_threshold is not None
            else settings.billing_price_ratio_threshold
        )
        self.quantity_threshold = (
            quantity_threshold
            if quantity_threshold is not None
            else settings.billing_quantity_threshold
        )
        self.quantity_flag_score = (
            quantity_flag_score
            if quantity_flag_score is not None
            else settings.billing_quantity_flag_score
        )

    def detect_anomalies(
        self,
        invoice: Invoice,
        historical_invoices: list[Invoice] | None = None,
        service_charges: list[ServiceCharge] | None = None,
    ) -> AnomalyReport:
        """
        Detect anomalous line items in an invoice.

        Args:
            invoice: Invoice to check.
            historical_invoices: Past invoices forming the price baseline.
            service_charges: Reference price list.

        Returns:
            AnomalyReport with per-item flags and the mean anomaly score.
        """
        baselines = build_price_baselines(historical_invoices or [], service_charges or [])

        anomalies = []
        for item in invoice.items:
            result = self._check_item(item, baselines.get(item.service_name))
            if result is not None:
                anomalies.append(result)

        overall_risk = (
            sum(a.score for a in anomalies) / len(anomalies) if anomalies else 0.0
        )

        if anomalies:
            logger.info(
                "Billing anomalies detected",
                invoice_id=invoice.id,
                anomaly_count=len(anomalies),
                overall_risk_score=round(overall_risk, 3),
            )
        else:
            logger.debug("No billing anomalies", invoice_id=invoice.id)

        return AnomalyReport(
            has_anomalies=bool(anomalies),
            anomalies=anomalies,
            overall_risk_score=overall_risk,
        )

    def _check_item(
        self,
        item: BillingItem,
        baseline: PriceBaseline | None,
    ) -> AnomalyResult | None:
        score = 0.0
        reason: str | None = None
        action: str | None = None

        if baseline is not None and baseline.average == 0:
            # Any charge for a service that is otherwise free
            if item.unit_price > 0:
                score = 1.0
                reason = (
                    f"Price ({_format_amount(item.unit_price)}) charged for a service "
                    f"with an average price of 0"
                )
                action = PRICE_ACTION
        elif baseline is not None:
            average = baseline.average
            ratio = item.unit_price / average
            if ratio >= self.price_ratio_threshold:
                score = min((ratio - 1) / 2, 1.0)
                percent = _round_half_up((ratio - 1) * 100)
                reason = (
                    f"Price ({_format_amount(item.unit_price)}) is {percent}% "
                    f"higher than average ({average:.2f})"
                )
                action = PRICE_ACTION

        if item.quantity > self.quantity_threshold:
            quantity_score = min(
                (item.quantity - self.quantity_threshold) / QUANTITY_SCORE_SPAN, 1.0
            )
            if quantity_score > self.quantity_flag_score:
                if reason is not None:
                    score = max(score, quantity_score)
                    reason += f" and quantity ({item.quantity}) is unusually high"
                else:
                    score = quantity_score
                    reason = f"Quantity ({item.quantity}) is unusually high for this service"
                    action = QUANTITY_ACTION

        if reason is None:
            return None

        return AnomalyResult(
            item_id=item.id,
            is_anomaly=True,
            score=score,
            reason=reason,
            suggested_action=action,
        )


# Singleton instance
_detector_instance: BillingAnomalyDetector | None = None


def get_billing_anomaly_detector() -> BillingAnomalyDetector:
    """Get the singleton billing anomaly detector."""
    global _detector_instance
    if _detector_instance is None:
        _detector_instance = BillingAnomalyDetector()
    return _detector_instance
