from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable

from adinsights.agent.metrics import format_amount, format_ratio, micros_to_amount, parse_rows

SEASONS = ("Spring", "Summer", "Fall", "Winter")
MONTHS_PER_SEASON = 3


def season_for_month(month_index: int) -> str:
    """Season of a zero-based month index (0 = January)."""
    if 2 <= month_index <= 4:
        return "Spring"
    if 5 <= month_index <= 7:
        return "Summer"
    if 8 <= month_index <= 10:
        return "Fall"
    return "Winter"


@dataclass
class SeasonSummary:
    cost_micros: int = 0
    conversions: float = 0.0
    revenue: float = 0.0
    row_count: int = 0

    @property
    def total_spend(self) -> str:
        return format_amount(micros_to_amount(self.cost_micros))

    @property
    def roas(self) -> str:
        return format_ratio(self.revenue, micros_to_amount(self.cost_micros))

    @property
    def avg_campaigns(self) -> int:
        # Approximation: rows spread evenly across three months, not distinct campaigns.
        return math.floor(self.row_count / MONTHS_PER_SEASON + 0.5)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalSpend": self.total_spend,
            "totalConversions": round(self.conversions, 2),
            "roas": self.roas,
            "avgCampaigns": self.avg_campaigns,
        }


def detect_seasonal_patterns(rows: Iterable[Any], today: date | None = None) -> Dict[str, SeasonSummary]:
    """Bucket rows into seasons by calendar month of their date.

    Rows without a date count towards the season of ``today``.
    """
    fallback = today or datetime.now(timezone.utc).date()
    buckets: Dict[str, SeasonSummary] = {}
    for row in parse_rows(rows):
        season = season_for_month((row.date or fallback).month - 1)
        bucket = buckets.setdefault(season, SeasonSummary())
        bucket.cost_micros += row.cost_micros
        bucket.conversions += row.conversions
        bucket.revenue += row.conversions_value
        bucket.row_count += 1

    return {season: buckets[season] for season in SEASONS if season in buckets}
