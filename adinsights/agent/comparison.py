from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, List

from adinsights.agent.metrics import PeriodMetrics, aggregate_period, format_amount

COMPARED_METRICS = ("spend", "conversions", "clicks", "revenue")
SIGNIFICANT_CHANGE_PCT = 20


@dataclass(frozen=True)
class MetricChange:
    absolute: float
    percentage: str
    direction: str
    magnitude: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "absolute": self.absolute,
            "percentage": self.percentage,
            "direction": self.direction,
            "magnitude": self.magnitude,
        }


@dataclass(frozen=True)
class ComparisonResult:
    period1: PeriodMetrics
    period2: PeriodMetrics
    changes: Dict[str, MetricChange] = field(default_factory=dict)
    insights: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "period1": self.period1.to_dict(),
            "period2": self.period2.to_dict(),
            "changes": {name: change.to_dict() for name, change in self.changes.items()},
            "insights": list(self.insights),
        }


def metric_change(current: float, baseline: float) -> MetricChange | None:
    # No baseline means no meaningful percentage; the metric is left out.
    if baseline <= 0:
        return None
    change = (current - baseline) / baseline * 100
    return MetricChange(
        absolute=round(current - baseline, 2),
        percentage=f"{change:.1f}%",
        direction="increase" if change > 0 else "decrease",
        magnitude="significant" if abs(change) > SIGNIFICANT_CHANGE_PCT else "modest",
    )


def compare_metrics(period1: PeriodMetrics, period2: PeriodMetrics) -> ComparisonResult:
    changes: Dict[str, MetricChange] = {}
    for name in COMPARED_METRICS:
        change = metric_change(period1.metric_value(name), period2.metric_value(name))
        if change is not None:
            changes[name] = change

    insights: List[str] = []
    conversions = changes.get("conversions")
    if conversions is not None and conversions.direction == "increase":
        insights.append(f"Conversions improved by {conversions.percentage} compared to {period2.label}")

    roas1 = Decimal(period1.roas)
    roas2 = Decimal(period2.roas)
    if roas1 > roas2:
        insights.append(f"ROAS improved by {format_amount(roas1 - roas2)} ({period1.roas} vs {period2.roas})")

    return ComparisonResult(period1=period1, period2=period2, changes=changes, insights=insights)


def compare_performance(
    period1_rows: Iterable[Any],
    period2_rows: Iterable[Any],
    period1_label: str,
    period2_label: str,
) -> ComparisonResult:
    return compare_metrics(
        aggregate_period(period1_rows, period1_label),
        aggregate_period(period2_rows, period2_label),
    )
