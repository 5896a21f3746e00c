"""
Performance and Trend Reporter

Groups consultations, lab tests, invoices and payments into day, week
(keyed by Monday) or month periods, then computes per-period metrics,
the trend between the two most recent periods, per-department figures
and a one-period-ahead least-squares forecast.
"""

from collections import defaultdict
from datetime import datetime, timedelta
from typing import Callable, Iterable, TypeVar

import numpy as np

from hms_engine.config.logging_config import get_logger
from hms_engine.models.billing_models import Invoice
from hms_engine.models.clinical_models import LabTest
from hms_engine.models.report_models import (
    Consultation,
    DepartmentPerformance,
    Payment,
    PerformanceReport,
    PeriodMetrics,
    ReportPeriod,
    TrendMetric,
)

logger = get_logger(__name__)

T = TypeVar("T")

TREND_METRICS = ("patient_count", "consultation_count", "lab_test_count", "revenue")
FORECAST_WINDOW = 3
PERIOD_TITLES = {"day": "Daily", "week": "Weekly", "month": "Monthly"}


# ============================================================================
# Arithmetic helpers
# ============================================================================

def linear_regression(data: list[float]) -> tuple[float, float]:
    """
    Ordinary least squares over x = 0..n-1.

    Returns:
        (slope, intercept); slope is 0 and the intercept is the single
        value (or 0) when there are fewer than two points.
    """
    if len(data) <= 1:
        return 0.0, float(data[0]) if data else 0.0

    x = np.arange(len(data), dtype=float)
    slope, intercept = np.polyfit(x, np.asarray(data, dtype=float), 1)
    return float(slope), float(intercept)


def predict_next_value(data: list[float]) -> float:
    """Extrapolate one step past the last point."""
    if len(data) < 2:
        return float(data[-1]) if data else 0.0
    slope, intercept = linear_regression(data)
    return slope * len(data) + intercept


def predict_trends(history: list[float], periods: int = 1) -> list[float]:
    """Extrapolate `periods` values past the end of `history`."""
    if len(history) < 2:
        last = float(history[-1]) if history else 0.0
        return [last] * periods

    slope, intercept = linear_regression(history)
    n = len(history)
    return [slope * (n + i) + intercept for i in range(periods)]


def format_change(current: float, previous: float) -> str:
    """Percentage change as '+12.3%', '-4.0%', '+∞%' or '0%'."""
    if previous == 0:
        return "+∞%" if current > 0 else "0%"

    percent = (current - previous) / previous * 100
    sign = "+" if percent >= 0 else ""
    return f"{sign}{percent:.1f}%"


def period_key(timestamp: datetime, period: ReportPeriod) -> str:
    """Bucket key for a timestamp; keys sort chronologically."""
    if period == "week":
        monday = timestamp.date() - timedelta(days=timestamp.weekday())
        return monday.isoformat()
    if period == "month":
        return f"{timestamp.year:04d}-{timestamp.month:02d}"
    return timestamp.date().isoformat()


def group_by_period(
    items: Iterable[T],
    timestamp_of: Callable[[T], datetime],
    period: ReportPeriod,
) -> dict[str, list[T]]:
    """Group items into period buckets."""
    grouped: dict[str, list[T]] = defaultdict(list)
    for item in items:
        grouped[period_key(timestamp_of(item), period)].append(item)
    return dict(grouped)


def _duration_minutes(consultation: Consultation) -> float:
    return (consultation.end_time - consultation.start_time).total_seconds() / 60


def _format_amount(value: float) -> str:
    return f"{value:,.0f}" if float(value).is_integer() else f"{value:,.2f}"


# ============================================================================
# Reporter
# ============================================================================

class PerformanceReporter:
    """Period metrics, trends and forecasts for hospital activity."""

    def generate_report(
        self,
        consultations: list[Consultation],
        lab_tests: list[LabTest],
        invoices: list[Invoice],
        payments: list[Payment],
        period: ReportPeriod = "month",
    ) -> PerformanceReport:
        """
        Build a performance report.

        Args:
            consultations: Consultations (grouped by start time).
            lab_tests: Lab tests (grouped by request time).
            invoices: Invoices (grouped by creation time).
            payments: Payments (grouped by timestamp).
            period: Grouping period.
        """
        grouped_consultations = group_by_period(consultations, lambda c: c.start_time, period)
        grouped_lab_tests = group_by_period(lab_tests, lambda t: t.requested_at, period)
        grouped_invoices = group_by_period(invoices, lambda i: i.created_at, period)
        grouped_payments = group_by_period(payments, lambda p: p.timestamp, period)

        periods = sorted(
            set(grouped_consultations)
            | set(grouped_lab_tests)
            | set(grouped_invoices)
            | set(grouped_payments)
        )

        metrics = {
            key: self._period_metrics(
                grouped_consultations.get(key, []),
                grouped_lab_tests.get(key, []),
                grouped_payments.get(key, []),
            )
            for key in periods
        }

        trends = self._trends(metrics, periods)
        departments = self._department_performance(consultations, invoices)
        predictions = self._predictions(metrics, periods)

        report = PerformanceReport(
            period=period,
            metrics=metrics,
            trends=trends,
            department_performance=departments,
            predictions=predictions,
        )
        report.summary = self.render_summary(report)

        logger.info(
            "Performance report generated",
            period=period,
            period_count=len(periods),
            department_count=len(departments),
        )
        return report

    def _period_metrics(
        self,
        consultations: list[Consultation],
        lab_tests: list[LabTest],
        payments: list[Payment],
    ) -> PeriodMetrics:
        durations = [_duration_minutes(c) for c in consultations if c.end_time is not None]
        return PeriodMetrics(
            patient_count=len({c.patient_id for c in consultations}),
            consultation_count=len(consultations),
            lab_test_count=len(lab_tests),
            revenue=sum(p.amount for p in payments),
            average_consultation_time=sum(durations) / len(durations) if durations else 0.0,
        )

    def _trends(
        self,
        metrics: dict[str, PeriodMetrics],
        periods: list[str],
    ) -> dict[str, TrendMetric]:
        if len(periods) < 2:
            return {}

        current = metrics[periods[-1]]
        previous = metrics[periods[-2]]

        trends = {}
        for name in TREND_METRICS:
            cur = getattr(current, name)
            prev = getattr(previous, name)
            if cur > prev:
                direction = "up"
            elif cur < prev:
                direction = "down"
            else:
                direction = "stable"
            trends[name] = TrendMetric(
                current=cur,
                previous=prev,
                change=format_change(cur, prev),
                trend=direction,
            )
        return trends

    def _department_performance(
        self,
        consultations: list[Consultation],
        invoices: list[Invoice],
    ) -> dict[str, DepartmentPerformance]:
        departments: dict[str, DepartmentPerformance] = {}
        completed_counts: dict[str, int] = defaultdict(int)

        for consultation in consultations:
            dept = departments.setdefault(consultation.department, DepartmentPerformance())
            dept.consultation_count += 1
            if consultation.end_time is not None:
                completed_counts[consultation.department] += 1
                n = completed_counts[consultation.department]
                dept.average_consultation_time += (
                    _duration_minutes(consultation) - dept.average_consultation_time
                ) / n

        # Revenue only for departments that saw consultations
        for invoice in invoices:
            for item in invoice.items:
                if item.department in departments:
                    departments[item.department].revenue += item.total_amount or 0.0

        return departments

    def _predictions(
        self,
        metrics: dict[str, PeriodMetrics],
        periods: list[str],
    ) -> dict[str, float]:
        if not periods:
            return {}

        window = periods[-FORECAST_WINDOW:]
        return {
            name: predict_next_value([getattr(metrics[key], name) for key in window])
            for name in TREND_METRICS
        }

    def render_summary(self, report: PerformanceReport) -> str:
        """Plain-text rendering of a report."""
        lines = [f"Hospital Performance Report ({PERIOD_TITLES[report.period]})", ""]

        if report.trends:
            lines.append("Performance Trends:")
            patients = report.trends["patient_count"]
            lines.append(
                f"- Patient volume: {patients.change} "
                f"({patients.current:g} vs {patients.previous:g})"
            )
            visits = report.trends["consultation_count"]
            lines.append(
                f"- Consultations: {visits.change} ({visits.current:g} vs {visits.previous:g})"
            )
            revenue = report.trends["revenue"]
            lines.append(
                f"- Revenue: {revenue.change} "
                f"({_format_amount(revenue.current)} vs {_format_amount(revenue.previous)})"
            )
            lines.append("")

        lines.append("Department Performance:")
        top = sorted(
            report.department_performance.items(),
            key=lambda kv: kv[1].consultation_count,
            reverse=True,
        )[:3]
        for name, dept in top:
            lines.append(
                f"- {name}: {dept.consultation_count} consultations, "
                f"avg {dept.average_consultation_time:.1f} minutes, "
                f"revenue {_format_amount(dept.revenue)}"
            )
        lines.append("")

        if report.predictions:
            lines.append("Predictions for Next Period:")
            lines.append(f"- Estimated patient volume: {round(report.predictions['patient_count'])}")
            lines.append(
                f"- Estimated consultations: {round(report.predictions['consultation_count'])}"
            )
            lines.append(
                f"- Estimated revenue: {_format_amount(round(report.predictions['revenue']))}"
            )

        return "\n".join(lines)


# Singleton instance
_reporter_instance: PerformanceReporter | None = None


def get_performance_reporter() -> PerformanceReporter:
    """Get the singleton performance reporter."""
    global _reporter_instance
    if _reporter_instance is None:
        _reporter_instance = PerformanceReporter()
    return _reporter_instance
