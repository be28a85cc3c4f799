from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

MICROS_PER_UNIT = 1_000_000
_CENT = Decimal("0.01")


def _camel(name: str) -> str:
    head, *tail = name.split("_")
    return head + "".join(part.title() for part in tail)


def _section(record: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = record.get(name) or record.get(_camel(name))
    return value if isinstance(value, dict) else {}


def _value(section: Dict[str, Any], name: str) -> Any:
    if name in section:
        return section[name]
    return section.get(_camel(name))


def _to_int(value: Any) -> int:
    if value is None or value == "":
        return 0
    try:
        return int(Decimal(str(value)))
    except (InvalidOperation, OverflowError, ValueError):
        return 0


def _to_float(value: Any) -> float:
    if value is None or value == "":
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _to_date(value: Any) -> Optional[date]:
    if isinstance(value, date):
        return value
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def to_decimal(value: Any) -> Decimal:
    return Decimal(str(value))


def micros_to_amount(micros: int) -> Decimal:
    return Decimal(micros) / MICROS_PER_UNIT


def format_amount(value: Any) -> str:
    """Fixed two-decimal rendering, half-up like the reporting UI expects."""
    return str(to_decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP))


def format_ratio(numerator: Any, denominator: Any) -> str:
    denominator = to_decimal(denominator)
    if denominator <= 0:
        return "0"
    return format_amount(to_decimal(numerator) / denominator)


def format_rate(numerator: Any, denominator: Any) -> str:
    denominator = to_decimal(denominator)
    if denominator <= 0:
        return "0%"
    return format_amount(to_decimal(numerator) / denominator * 100) + "%"


@dataclass(frozen=True)
class MetricsRow:
    campaign_id: Optional[str] = None
    campaign_name: str = ""
    date: Optional[date] = None
    day_of_week: Optional[str] = None
    device: Optional[str] = None
    product_title: Optional[str] = None
    impressions: int = 0
    clicks: int = 0
    cost_micros: int = 0
    conversions: float = 0.0
    conversions_value: float = 0.0
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_api(cls, record: Dict[str, Any]) -> "MetricsRow":
        """Build a row from a searchStream result, accepting snake_case or camelCase keys.

        Every field is optional upstream; missing or unparseable measures become 0.
        """
        campaign = _section(record, "campaign")
        segments = _section(record, "segments")
        metrics = _section(record, "metrics")
        campaign_id = _value(campaign, "id")
        return cls(
            campaign_id=str(campaign_id) if campaign_id is not None else None,
            campaign_name=str(_value(campaign, "name") or ""),
            date=_to_date(_value(segments, "date") or record.get("date")),
            day_of_week=_value(segments, "day_of_week"),
            device=_value(segments, "device"),
            product_title=_value(segments, "product_title"),
            impressions=_to_int(_value(metrics, "impressions")),
            clicks=_to_int(_value(metrics, "clicks")),
            cost_micros=_to_int(_value(metrics, "cost_micros")),
            conversions=_to_float(_value(metrics, "conversions")),
            conversions_value=_to_float(_value(metrics, "conversions_value")),
            raw=record,
        )

    @property
    def spend(self) -> Decimal:
        return micros_to_amount(self.cost_micros)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.campaign_id,
            "name": self.campaign_name,
            "date": self.date.isoformat() if self.date else None,
            "device": self.device,
            "impressions": self.impressions,
            "clicks": self.clicks,
            "spend": format_amount(self.spend),
            "conversions": round(self.conversions, 2),
            "revenue": format_amount(self.conversions_value),
        }


def parse_rows(records: Iterable[Any]) -> List[MetricsRow]:
    return [r if isinstance(r, MetricsRow) else MetricsRow.from_api(r) for r in records]


@dataclass(frozen=True)
class PeriodMetrics:
    label: str
    campaign_count: int = 0
    cost_micros: int = 0
    total_conversions: float = 0.0
    total_clicks: int = 0
    total_revenue: float = 0.0
    total_impressions: int = 0

    @property
    def spend(self) -> str:
        return format_amount(micros_to_amount(self.cost_micros))

    @property
    def revenue(self) -> str:
        return format_amount(self.total_revenue)

    @property
    def conversions(self) -> float:
        return round(self.total_conversions, 2)

    @property
    def clicks(self) -> int:
        return self.total_clicks

    @property
    def impressions(self) -> int:
        return self.total_impressions

    @property
    def roas(self) -> str:
        return format_ratio(self.total_revenue, micros_to_amount(self.cost_micros))

    @property
    def conversion_rate(self) -> str:
        return format_rate(self.total_conversions, self.total_clicks)

    @property
    def ctr(self) -> str:
        return format_rate(self.total_clicks, self.total_impressions)

    def metric_value(self, name: str) -> float:
        """Value of a compared metric as shown to the user (spend and revenue rounded to cents)."""
        if name == "spend":
            return float(self.spend)
        if name == "revenue":
            return float(self.revenue)
        if name == "conversions":
            return self.total_conversions
        if name == "clicks":
            return float(self.clicks)
        raise ValueError(f"Unknown comparison metric {name}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "campaignCount": self.campaign_count,
            "spend": self.spend,
            "conversions": self.conversions,
            "clicks": self.clicks,
            "revenue": self.revenue,
            "impressions": self.impressions,
            "roas": self.roas,
            "conversionRate": self.conversion_rate,
            "ctr": self.ctr,
        }


def aggregate_period(rows: Iterable[Any], label: str) -> PeriodMetrics:
    parsed = parse_rows(rows)
    # fsum keeps float totals independent of row order
    return PeriodMetrics(
        label=label,
        campaign_count=len(parsed),
        cost_micros=sum(r.cost_micros for r in parsed),
        total_conversions=math.fsum(r.conversions for r in parsed),
        total_clicks=sum(r.clicks for r in parsed),
        total_revenue=math.fsum(r.conversions_value for r in parsed),
        total_impressions=sum(r.impressions for r in parsed),
    )


def rollup_by_campaign(rows: Iterable[Any]) -> List[MetricsRow]:
    """Collapse per-day/per-device rows into one row per campaign, in first-seen order."""
    merged: Dict[str, MetricsRow] = {}
    for row in parse_rows(rows):
        key = row.campaign_id or row.campaign_name
        current = merged.get(key)
        if current is None:
            merged[key] = replace(row, date=None, day_of_week=None, device=None)
            continue
        merged[key] = replace(
            current,
            impressions=current.impressions + row.impressions,
            clicks=current.clicks + row.clicks,
            cost_micros=current.cost_micros + row.cost_micros,
            conversions=current.conversions + row.conversions,
            conversions_value=current.conversions_value + row.conversions_value,
        )
    return list(merged.values())
