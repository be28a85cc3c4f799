from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Mapping, Sequence

from adinsights.agent.comparison import COMPARED_METRICS, ComparisonResult
from adinsights.agent.metrics import PeriodMetrics
from adinsights.agent.patterns import CampaignMatch
from adinsights.agent.seasonal import SeasonSummary

HIGH_SPEND_THRESHOLD = Decimal("5000")
LOW_CONVERSION_RATE_PCT = Decimal("2")
LOW_CTR_PCT = Decimal("1")


def _pct(value: str) -> Decimal:
    return Decimal(value.rstrip("%"))


def empty_result_insight(label: str) -> Dict[str, Any]:
    return {
        "summary": f"No campaign data was returned for {label}.",
        "keyFindings": ["The current filters produced an empty result set."],
        "recommendations": ["Broaden the date range or remove restrictive campaign filters."],
        "limitations": "Insufficient data returned from the ads query.",
    }


def period_insight(metrics: PeriodMetrics) -> Dict[str, Any]:
    if metrics.campaign_count == 0:
        return empty_result_insight(metrics.label)

    summary = (
        f"{metrics.label}: spent {metrics.spend} for {metrics.conversions:,.2f} conversions "
        f"and {metrics.revenue} revenue (ROAS {metrics.roas})."
    )
    findings = [
        f"{metrics.clicks:,} clicks from {metrics.impressions:,} impressions (CTR {metrics.ctr}).",
        f"Conversion rate {metrics.conversion_rate} across {metrics.campaign_count} report rows.",
    ]

    recommendations: List[str] = []
    spend = Decimal(metrics.spend)
    if spend > 0 and Decimal(metrics.roas) < 1:
        recommendations.append("Spend exceeds attributed revenue; review bids and pause low-return campaigns.")
    if spend > HIGH_SPEND_THRESHOLD and _pct(metrics.conversion_rate) < LOW_CONVERSION_RATE_PCT:
        recommendations.append("Focus on conversion rate optimization before scaling spend.")
    if metrics.impressions > 0 and _pct(metrics.ctr) < LOW_CTR_PCT:
        recommendations.append("Improve expected CTR through better ad copy and extensions.")
    if not recommendations:
        recommendations.append("Monitor performance and continue testing.")

    return {"summary": summary, "keyFindings": findings, "recommendations": recommendations, "limitations": None}


def comparison_insight(result: ComparisonResult) -> Dict[str, Any]:
    p1, p2 = result.period1, result.period2
    if p1.campaign_count == 0 and p2.campaign_count == 0:
        return empty_result_insight(f"{p1.label} or {p2.label}")

    findings = list(result.insights)
    for name, change in result.changes.items():
        findings.append(f"{name.title()}: {change.direction} of {change.percentage} ({change.magnitude}).")

    conversions = result.changes.get("conversions")
    spend = result.changes.get("spend")
    if conversions is not None:
        verb = "rose" if conversions.direction == "increase" else "did not grow"
        summary = f"Conversions {verb} ({conversions.percentage}) in {p1.label} versus {p2.label}."
    else:
        summary = f"Compared {p1.label} with {p2.label}; {p2.label} has no conversions to measure change against."

    recommendations: List[str] = []
    if conversions is not None and conversions.direction == "decrease":
        recommendations.append("Investigate recent bid, budget or landing page changes that may be suppressing conversions.")
        if spend is not None and spend.direction == "increase":
            recommendations.append("Spend grew while conversions fell; pause or rebalance the least efficient campaigns.")
    else:
        recommendations.append("Sustain the campaigns driving growth and verify budgets can absorb further demand.")

    missing = [m for m in COMPARED_METRICS if m not in result.changes]
    limitations = None
    if missing:
        limitations = f"No baseline in {p2.label} for: {', '.join(missing)}."

    return {"summary": summary, "keyFindings": findings, "recommendations": recommendations, "limitations": limitations}


def search_insights(search_text: str, matches: Sequence[CampaignMatch], total_campaigns: int) -> List[str]:
    if not matches:
        return [f"No campaigns matched the themes in '{search_text}' among {total_campaigns} campaigns."]

    names = list(dict.fromkeys(m.campaign.campaign_name for m in matches))
    top = matches[0]
    themes = sorted({m.match_type for m in matches})
    return [
        f"{len(names)} of {total_campaigns} campaigns match '{search_text}'.",
        f"Best match: {top.campaign.campaign_name} ({top.match_type}, relevance {top.relevance_score:.0f}).",
        f"Matched themes: {', '.join(themes)}.",
    ]


def seasonal_insight(seasons: Mapping[str, SeasonSummary]) -> Dict[str, Any]:
    if not seasons:
        return empty_result_insight("the selected seasons")

    ranked = sorted(seasons.items(), key=lambda item: Decimal(item[1].roas), reverse=True)
    best_season, best = ranked[0]
    findings = [
        f"{season}: spend {s.total_spend}, {s.conversions:,.2f} conversions, ROAS {s.roas}."
        for season, s in seasons.items()
    ]
    recommendations = [f"Plan budget increases ahead of {best_season}, the strongest season by ROAS."]
    limitations = None
    if len(seasons) < 4:
        limitations = "Data does not cover all four seasons; widen the date range for a full-year view."
    return {
        "summary": f"{best_season} delivers the best return (ROAS {best.roas}).",
        "keyFindings": findings,
        "recommendations": recommendations,
        "limitations": limitations,
    }
