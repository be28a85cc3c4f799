from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Pattern, Tuple

from adinsights.agent.metrics import MetricsRow, parse_rows

THEME_PATTERNS: Tuple[Tuple[str, Pattern[str]], ...] = (
    ("holiday", re.compile(r"4th of july|july 4th|independence|patriotic|summer sale|holiday", re.IGNORECASE)),
    ("seasonal", re.compile(r"summer|winter|spring|fall|autumn|seasonal", re.IGNORECASE)),
    ("promotional", re.compile(r"sale|discount|promo|deal|offer|special", re.IGNORECASE)),
    ("brand", re.compile(r"brand|branding|awareness", re.IGNORECASE)),
    ("conversion", re.compile(r"conversion|purchase|buy|shop", re.IGNORECASE)),
)


@dataclass(frozen=True)
class CampaignMatch:
    campaign: MetricsRow
    match_type: str
    relevance_score: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "campaign": self.campaign.to_dict(),
            "matchType": self.match_type,
            "relevanceScore": round(self.relevance_score, 2),
        }


def calculate_relevance(query: str, campaign_name: str) -> float:
    query_words = query.lower().split()
    name_words = campaign_name.lower().split()
    if not query_words:
        return 0.0

    hits = 0
    for word in query_words:
        if any(word in name_word or name_word in word for name_word in name_words):
            hits += 1
    return hits / len(query_words) * 100


def match_campaigns(query: str, campaigns: Iterable[Any]) -> List[CampaignMatch]:
    """Tag campaigns with every theme shared by the query and the campaign name.

    A campaign appears once per shared theme. When some themed campaign also
    shares words with the query, themed campaigns scoring 0 are left out, so
    "summer sale" finds "Summer Sale Blowout" but not "Winter Clearance". When
    none does, every theme-only match is kept at score 0 rather than returning
    nothing. Results are ordered by relevance, highest first, keeping input
    order between equal scores.
    """
    query_themes = [(theme, pattern) for theme, pattern in THEME_PATTERNS if pattern.search(query)]
    matches: List[CampaignMatch] = []
    for campaign in parse_rows(campaigns):
        name = campaign.campaign_name.lower()
        themes = [theme for theme, pattern in query_themes if pattern.search(name)]
        if not themes:
            continue
        score = calculate_relevance(query, name)
        matches.extend(CampaignMatch(campaign=campaign, match_type=theme, relevance_score=score) for theme in themes)
    if any(m.relevance_score > 0 for m in matches):
        matches = [m for m in matches if m.relevance_score > 0]
    return sorted(matches, key=lambda m: m.relevance_score, reverse=True)
