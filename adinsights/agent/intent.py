from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Pattern, Tuple

from adinsights.agent.dates import DateRanges, resolve_date_ranges


class Intent(str, Enum):
    COMPARISON = "comparison"
    SEASONAL = "seasonal"
    CAMPAIGN_SEARCH = "campaign_search"
    SINGLE_PERIOD = "single_period"


@dataclass(frozen=True)
class IntentRule:
    name: str
    pattern: Pattern[str]
    intent: Intent

    def matches(self, query: str) -> bool:
        return bool(self.pattern.search(query))


INTENT_RULES: Tuple[IntentRule, ...] = (
    IntentRule(
        "comparison",
        re.compile(
            r"\b(?:compare[sd]?|comparing|comparison|vs|versus|against|yoy|year\s+over\s+year|"
            r"same\s+time\s+last\s+year|last\s+year|(?:previous|prior)\s+(?:period|week|month|quarter|year))\b",
            re.IGNORECASE,
        ),
        Intent.COMPARISON,
    ),
    IntentRule(
        "seasonal",
        re.compile(
            r"\b(?:season(?:s|al|ality)?|holidays?|christmas|black\s+friday|cyber\s+monday|"
            r"4th\s+of\s+july|july\s+4th|fourth\s+of\s+july|independence\s+day|summer|winter|spring|autumn)\b",
            re.IGNORECASE,
        ),
        Intent.SEASONAL,
    ),
    IntentRule(
        "campaign_search",
        re.compile(
            r"\bcampaigns?\s+(?:with|containing|including|named|called|matching|like)\b|"
            r"\b(?:find|search(?:\s+for)?|show(?:\s+me)?|list)\s+(?:all\s+)?(?:my\s+)?(?:the\s+)?campaigns?\b|"
            r"\"[^\"]+\"",
            re.IGNORECASE,
        ),
        Intent.CAMPAIGN_SEARCH,
    ),
    # Trend questions run over one window, so they resolve to a single period.
    IntentRule(
        "trend",
        re.compile(r"\b(?:trends?|trending|over\s+time|growth|decline|trajectory)\b", re.IGNORECASE),
        Intent.SINGLE_PERIOD,
    ),
)


QUOTED_PATTERN = re.compile(r"\"([^\"]+)\"")
FOLLOWING_TOKEN_PATTERN = re.compile(r"\bcampaigns?\s+(?:with|containing|including)\s+(?!\")(\S+)", re.IGNORECASE)
PRECEDING_TOKEN_PATTERN = re.compile(r"(?<!\S)([^\s\"]+)\s+campaigns?\b", re.IGNORECASE)

ANALYSIS_TYPE_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("keyword", ("keyword", "search term", "quality score")),
    ("ad", ("ad copy", "ad performance", "ad text", "headline", "creative")),
    ("shopping", ("shopping", "product", "merchant")),
    ("impressionShare", ("impression share", "lost impression", "budget lost", "rank lost")),
)
DEFAULT_ANALYSIS_TYPE = "campaign"


def classify_intent(query: str) -> Intent:
    for rule in INTENT_RULES:
        if rule.matches(query):
            return rule.intent
    return Intent.SINGLE_PERIOD


def extract_campaign_filters(query: str) -> List[str]:
    found = list(QUOTED_PATTERN.findall(query))

    m = FOLLOWING_TOKEN_PATTERN.search(query) or PRECEDING_TOKEN_PATTERN.search(query)
    if m:
        found.append(m.group(1))

    return list(dict.fromkeys(found))


def select_analysis_type(query: str) -> str:
    q = query.lower()
    for analysis_type, terms in ANALYSIS_TYPE_RULES:
        if any(term in q for term in terms):
            return analysis_type
    return DEFAULT_ANALYSIS_TYPE


@dataclass(frozen=True)
class ParsedQuery:
    text: str
    intent: Intent
    date_ranges: DateRanges
    filters: Tuple[str, ...]
    analysis_type: str

    @property
    def campaign_filter(self) -> str | None:
        return self.filters[0] if self.filters else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intent": self.intent.value,
            "dateRanges": self.date_ranges.to_dict(),
            "filters": list(self.filters),
            "analysisType": self.analysis_type,
        }


def parse_query(text: str, now: date | datetime | None = None) -> ParsedQuery:
    return ParsedQuery(
        text=text,
        intent=classify_intent(text),
        date_ranges=resolve_date_ranges(text, now),
        filters=tuple(extract_campaign_filters(text)),
        analysis_type=select_analysis_type(text),
    )
