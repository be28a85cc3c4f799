from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from adinsights.ads.client import QueryExecutor
from adinsights.agent.comparison import ComparisonResult, compare_performance
from adinsights.agent.dates import DateInterval
from adinsights.agent.insights import (
    comparison_insight,
    empty_result_insight,
    period_insight,
    search_insights,
    seasonal_insight,
)
from adinsights.agent.intent import QUOTED_PATTERN, Intent, ParsedQuery, parse_query
from adinsights.agent.metrics import MetricsRow, aggregate_period, parse_rows, rollup_by_campaign
from adinsights.agent.patterns import match_campaigns
from adinsights.agent.query_builder import GaqlQuery, build_dynamic_query
from adinsights.agent.query_validator import validate_gaql
from adinsights.agent.seasonal import detect_seasonal_patterns

logger = logging.getLogger(__name__)

SEASONAL_LOOKBACK_DAYS = 365


@dataclass
class AnalysisPipeline:
    executor: QueryExecutor

    async def _fetch(self, account_id: str, query: GaqlQuery) -> List[MetricsRow]:
        text = query.to_gaql()
        validate_gaql(text)
        logger.debug("Executing query against %s:\n%s", account_id, text)
        records = await self.executor(text, account_id)
        return parse_rows(records)

    async def fetch_period(
        self,
        account_id: str,
        interval: DateInterval,
        analysis_type: str = "campaign",
        campaign_filter: Optional[str] = None,
    ) -> List[MetricsRow]:
        query = build_dynamic_query(analysis_type, interval, campaign_filter)
        return await self._fetch(account_id, query)

    async def compare_periods(
        self,
        account_id: str,
        period1: DateInterval,
        period2: DateInterval,
        analysis_type: str = "campaign",
        campaign_filter: Optional[str] = None,
    ) -> ComparisonResult:
        """Fetch both periods concurrently and compare their totals.

        If either fetch fails the whole comparison fails with that error.
        """
        rows1, rows2 = await asyncio.gather(
            self.fetch_period(account_id, period1, analysis_type, campaign_filter),
            self.fetch_period(account_id, period2, analysis_type, campaign_filter),
        )
        logger.info(
            "Compared %s (%d rows) with %s (%d rows) for %s",
            period1.label,
            len(rows1),
            period2.label,
            len(rows2),
            account_id,
        )
        return compare_performance(rows1, rows2, period1.label, period2.label)

    async def search_campaigns(self, account_id: str, search_text: str, date_range: DateInterval) -> Dict[str, Any]:
        rows = await self.fetch_period(account_id, date_range)
        campaigns = rollup_by_campaign(rows)
        matches = match_campaigns(search_text, campaigns)
        return {
            "matches": [m.to_dict() for m in matches],
            "totalFound": len(matches),
            "insights": search_insights(search_text, matches, len(campaigns)),
        }

    async def seasonal(self, account_id: str, date_range: DateInterval) -> Dict[str, Any]:
        rows = await self.fetch_period(account_id, date_range)
        seasons = detect_seasonal_patterns(rows, today=date_range.end)
        return {
            "seasons": {name: summary.to_dict() for name, summary in seasons.items()},
            "insight": seasonal_insight(seasons),
        }

    async def single_period(
        self,
        account_id: str,
        interval: DateInterval,
        analysis_type: str = "campaign",
        campaign_filter: Optional[str] = None,
    ) -> Dict[str, Any]:
        rows = await self.fetch_period(account_id, interval, analysis_type, campaign_filter)
        metrics = aggregate_period(rows, interval.label)
        return {
            "period": metrics.to_dict(),
            "campaigns": [row.to_dict() for row in rollup_by_campaign(rows)],
            "insight": period_insight(metrics),
        }

    async def ask(self, account_id: str, question: str, now: date | datetime | None = None) -> Dict[str, Any]:
        parsed = parse_query(question, now)
        ranges = parsed.date_ranges
        # Only explicitly quoted names are pushed into the upstream query.
        quoted = QUOTED_PATTERN.findall(question)
        campaign_filter = quoted[0] if quoted else None
        logger.info("Question for %s classified as %s (%s dates)", account_id, parsed.intent.value, ranges.kind)

        notes: List[str] = []
        if parsed.intent is Intent.COMPARISON and ranges.is_comparison:
            result = await self.compare_periods(
                account_id,
                ranges.primary,
                ranges.comparison,
                parsed.analysis_type,
                campaign_filter,
            )
            return self._envelope(parsed, comparison_insight(result), result.to_dict())

        if parsed.intent is Intent.COMPARISON:
            notes.append("No second period could be resolved from the question; showing a single period instead.")

        if parsed.intent is Intent.SEASONAL:
            window = ranges.primary
            if ranges.kind == "default":
                window = DateInterval(
                    start=window.end - timedelta(days=SEASONAL_LOOKBACK_DAYS),
                    end=window.end,
                    label="Last 365 Days",
                )
            data = await self.seasonal(account_id, window)
            return self._envelope(parsed, data.pop("insight"), data, notes)

        if parsed.intent is Intent.CAMPAIGN_SEARCH:
            data = await self.search_campaigns(account_id, question, ranges.primary)
            if data["totalFound"]:
                insight = {
                    "summary": f"Found {data['totalFound']} campaign matches in {ranges.primary.label}.",
                    "keyFindings": data["insights"],
                    "recommendations": ["Compare the matched campaigns against the same period last year."],
                    "limitations": None,
                }
            else:
                insight = empty_result_insight(ranges.primary.label)
                insight["keyFindings"] = data["insights"]
            return self._envelope(parsed, insight, data, notes)

        data = await self.single_period(account_id, ranges.primary, parsed.analysis_type, campaign_filter)
        return self._envelope(parsed, data.pop("insight"), data, notes)

    def _envelope(
        self,
        parsed: ParsedQuery,
        insight: Dict[str, Any],
        data: Dict[str, Any],
        notes: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        limitations = [n for n in [insight.get("limitations"), *(notes or [])] if n]
        return {
            "question": parsed.text,
            **parsed.to_dict(),
            "summary": insight["summary"],
            "keyFindings": insight["keyFindings"],
            "recommendations": insight["recommendations"],
            "limitations": " ".join(limitations) or None,
            "data": data,
        }

