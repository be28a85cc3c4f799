from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from typing import Any, Callable, Dict, Tuple

from adinsights.agent.dates import DateInterval

CORE_FIELDS: Dict[str, Tuple[str, ...]] = {
    "customer": (
        "customer.id",
        "customer.descriptive_name",
        "customer.currency_code",
        "customer.time_zone",
        "customer.auto_tagging_enabled",
        "customer.manager",
        "customer.test_account",
    ),
    "campaign": (
        "campaign.id",
        "campaign.name",
        "campaign.status",
        "campaign.serving_status",
        "campaign.advertising_channel_type",
        "campaign.advertising_channel_sub_type",
        "campaign.bidding_strategy_type",
        "campaign.start_date",
        "campaign.end_date",
    ),
    "ad_group": ("ad_group.id", "ad_group.name", "ad_group.status", "ad_group.type"),
    "keyword": (
        "ad_group_criterion.keyword.text",
        "ad_group_criterion.keyword.match_type",
        "ad_group_criterion.status",
    ),
    "quality_score": (
        "ad_group_criterion.quality_info.quality_score",
        "ad_group_criterion.quality_info.creative_quality_score",
        "ad_group_criterion.quality_info.post_click_quality_score",
        "ad_group_criterion.quality_info.search_predicted_ctr",
    ),
    "ad": (
        "ad_group_ad.ad.id",
        "ad_group_ad.ad.type",
        "ad_group_ad.ad.expanded_text_ad.headline_part1",
        "ad_group_ad.ad.expanded_text_ad.headline_part2",
        "ad_group_ad.ad.expanded_text_ad.description",
        "ad_group_ad.ad.responsive_search_ad.headlines",
        "ad_group_ad.ad.responsive_search_ad.descriptions",
        "ad_group_ad.status",
    ),
    "shopping": (
        "segments.product_item_id",
        "segments.product_title",
        "segments.product_brand",
        "segments.product_category_level1",
        "segments.product_category_level2",
        "segments.product_category_level3",
        "segments.product_condition",
        "segments.product_country",
        "segments.product_language",
    ),
    "search_terms": ("search_term_view.search_term", "search_term_view.status"),
}

SEGMENT_FIELDS: Dict[str, Tuple[str, ...]] = {
    "time": (
        "segments.date",
        "segments.day_of_week",
        "segments.hour",
        "segments.month",
        "segments.quarter",
        "segments.week",
        "segments.year",
    ),
    "device": ("segments.device",),
    "geographic": (
        "segments.geo_target_city",
        "segments.geo_target_region",
        "segments.geo_target_country",
        "segments.geo_target_metro",
    ),
    "customer": ("segments.new_versus_returning_customers",),
}

METRIC_FIELDS: Dict[str, Tuple[str, ...]] = {
    "core": (
        "metrics.impressions",
        "metrics.clicks",
        "metrics.cost_micros",
        "metrics.conversions",
        "metrics.conversions_value",
    ),
    "rates": (
        "metrics.ctr",
        "metrics.average_cpc",
        "metrics.average_cpm",
        "metrics.cost_per_conversion",
        "metrics.value_per_conversion",
    ),
    "impression_share": (
        "metrics.search_impression_share",
        "metrics.search_budget_lost_impression_share",
        "metrics.search_rank_lost_impression_share",
        "metrics.search_exact_match_impression_share",
        "metrics.content_impression_share",
        "metrics.content_budget_lost_impression_share",
        "metrics.content_rank_lost_impression_share",
    ),
}

VALID_DATE_RANGES = (
    "LAST_7_DAYS",
    "LAST_14_DAYS",
    "LAST_30_DAYS",
    "LAST_90_DAYS",
    "THIS_MONTH",
    "LAST_MONTH",
    "THIS_QUARTER",
    "LAST_QUARTER",
    "THIS_YEAR",
    "LAST_YEAR",
    "ALL_TIME",
)
# Predefined ranges the API rejects, mapped onto the closest accepted one.
DATE_RANGE_SUBSTITUTES = {"LAST_90_DAYS": "THIS_QUARTER", "ALL_TIME": "THIS_YEAR"}
DEFAULT_DATE_RANGE = "LAST_30_DAYS"

DATE_FIELD = "segments.date"
CAMPAIGN_NAME_FIELD = "campaign.name"


def normalize_date_range_literal(period: str | None) -> str:
    period = (period or "").upper()
    if period in DATE_RANGE_SUBSTITUTES:
        return DATE_RANGE_SUBSTITUTES[period]
    return period if period in VALID_DATE_RANGES else DEFAULT_DATE_RANGE


def quote_literal(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


@dataclass(frozen=True)
class Condition:
    field: str
    operator: str
    value: Any

    def render(self) -> str:
        if self.operator == "DURING":
            return f"{self.field} DURING {normalize_date_range_literal(self.value)}"
        if self.operator == "BETWEEN":
            start, end = self.value
            return f"{self.field} BETWEEN {_render_value(start)} AND {_render_value(end)}"
        return f"{self.field} {self.operator} {_render_value(self.value)}"


def _render_value(value: Any) -> str:
    if isinstance(value, date):
        return quote_literal(value.isoformat())
    if isinstance(value, str):
        return quote_literal(value)
    return str(value)


@dataclass(frozen=True)
class GaqlQuery:
    fields: Tuple[str, ...]
    resource: str
    conditions: Tuple[Condition, ...] = ()
    order_by: Tuple[str, ...] = ()

    def with_date_range(self, interval: DateInterval) -> "GaqlQuery":
        """Swap the template's predefined date window for an explicit BETWEEN range."""
        if not any(c.field == DATE_FIELD for c in self.conditions):
            return self
        conditions = tuple(
            Condition(DATE_FIELD, "BETWEEN", (interval.start, interval.end)) if c.field == DATE_FIELD else c
            for c in self.conditions
        )
        return replace(self, conditions=conditions)

    def with_campaign_filter(self, campaign_filter: str) -> "GaqlQuery":
        condition = Condition(CAMPAIGN_NAME_FIELD, "CONTAINS_IGNORE_CASE", campaign_filter)
        return replace(self, conditions=self.conditions + (condition,))

    def to_gaql(self) -> str:
        lines = ["SELECT", ",\n".join(f"  {f}" for f in self.fields), f"FROM {self.resource}"]
        if self.conditions:
            rendered = [c.render() for c in self.conditions]
            lines.append("WHERE " + "\n  AND ".join(rendered))
        if self.order_by:
            lines.append("ORDER BY " + ", ".join(self.order_by))
        return "\n".join(lines)


def _during(date_range: str) -> Condition:
    return Condition(DATE_FIELD, "DURING", date_range)


def _has_impressions() -> Condition:
    return Condition("metrics.impressions", ">", 0)


def account_overview(date_range: str = DEFAULT_DATE_RANGE) -> GaqlQuery:
    return GaqlQuery(fields=CORE_FIELDS["customer"], resource="customer")


def campaign_intelligence(date_range: str = DEFAULT_DATE_RANGE) -> GaqlQuery:
    return GaqlQuery(
        fields=(
            CORE_FIELDS["customer"][:1]
            + CORE_FIELDS["campaign"]
            + SEGMENT_FIELDS["time"][:1]
            + SEGMENT_FIELDS["device"]
            + METRIC_FIELDS["core"]
            + METRIC_FIELDS["rates"]
        ),
        resource="campaign",
        conditions=(_during(date_range), _has_impressions()),
        order_by=("metrics.cost_micros DESC",),
    )


def impression_share_intelligence(date_range: str = DEFAULT_DATE_RANGE) -> GaqlQuery:
    return GaqlQuery(
        fields=(
            CORE_FIELDS["campaign"][1:4]
            + SEGMENT_FIELDS["time"][:1]
            + METRIC_FIELDS["core"][:4]
            + METRIC_FIELDS["impression_share"][:4]
        ),
        resource="campaign",
        conditions=(
            _during(date_range),
            _has_impressions(),
            Condition("campaign.advertising_channel_type", "=", "SEARCH"),
        ),
        order_by=("metrics.search_impression_share DESC",),
    )


def shopping_intelligence(date_range: str = DEFAULT_DATE_RANGE) -> GaqlQuery:
    return GaqlQuery(
        fields=(
            CORE_FIELDS["campaign"][1:2]
            + CORE_FIELDS["ad_group"][1:2]
            + CORE_FIELDS["shopping"]
            + SEGMENT_FIELDS["time"][:1]
            + METRIC_FIELDS["core"]
            + METRIC_FIELDS["rates"][:2]
        ),
        resource="shopping_performance_view",
        conditions=(_during(date_range), _has_impressions()),
        order_by=("metrics.conversions_value DESC",),
    )


def performance_max_intelligence(date_range: str = DEFAULT_DATE_RANGE) -> GaqlQuery:
    return GaqlQuery(
        fields=(
            CORE_FIELDS["campaign"][1:3]
            + SEGMENT_FIELDS["time"][:1]
            + METRIC_FIELDS["core"]
            + METRIC_FIELDS["rates"][:2]
        ),
        resource="campaign",
        conditions=(
            _during(date_range),
            Condition("campaign.advertising_channel_type", "=", "PERFORMANCE_MAX"),
            _has_impressions(),
        ),
        order_by=("metrics.conversions DESC",),
    )


def customer_lifetime_value_intelligence(date_range: str = DEFAULT_DATE_RANGE) -> GaqlQuery:
    core = METRIC_FIELDS["core"]
    return GaqlQuery(
        fields=(
            CORE_FIELDS["campaign"][1:2]
            + SEGMENT_FIELDS["time"][:1]
            + SEGMENT_FIELDS["customer"]
            + core[3:5]
            + core[2:3]
            + core[1:2]
        ),
        resource="campaign",
        conditions=(_during(date_range), Condition("metrics.conversions", ">", 0)),
        order_by=("metrics.conversions_value DESC",),
    )


def search_terms_intelligence(date_range: str = DEFAULT_DATE_RANGE) -> GaqlQuery:
    return GaqlQuery(
        fields=(
            CORE_FIELDS["search_terms"]
            + CORE_FIELDS["campaign"][1:2]
            + CORE_FIELDS["ad_group"][1:2]
            + CORE_FIELDS["keyword"][:2]
            + SEGMENT_FIELDS["time"][:1]
            + SEGMENT_FIELDS["device"]
            + METRIC_FIELDS["core"]
            + METRIC_FIELDS["rates"][:2]
        ),
        resource="search_term_view",
        conditions=(_during(date_range), _has_impressions()),
        order_by=("metrics.conversions_value DESC",),
    )


def keyword_intelligence(date_range: str = DEFAULT_DATE_RANGE) -> GaqlQuery:
    return GaqlQuery(
        fields=(
            CORE_FIELDS["campaign"][1:2]
            + CORE_FIELDS["ad_group"][1:2]
            + CORE_FIELDS["keyword"]
            + SEGMENT_FIELDS["time"][:1]
            + SEGMENT_FIELDS["device"]
            + METRIC_FIELDS["core"][:4]
            + METRIC_FIELDS["rates"][:2]
        ),
        resource="keyword_view",
        conditions=(
            _during(date_range),
            Condition("ad_group_criterion.status", "=", "ENABLED"),
            _has_impressions(),
        ),
        order_by=("metrics.cost_micros DESC",),
    )


def quality_score_intelligence(date_range: str = DEFAULT_DATE_RANGE) -> GaqlQuery:
    return GaqlQuery(
        fields=(
            CORE_FIELDS["campaign"][1:2]
            + CORE_FIELDS["ad_group"][1:2]
            + CORE_FIELDS["keyword"][:2]
            + CORE_FIELDS["quality_score"]
            + METRIC_FIELDS["core"][:4]
        ),
        resource="ad_group_criterion",
        conditions=(
            _during(date_range),
            Condition("ad_group_criterion.status", "=", "ENABLED"),
            Condition("ad_group_criterion.type", "=", "KEYWORD"),
            _has_impressions(),
        ),
        order_by=("ad_group_criterion.quality_info.quality_score ASC",),
    )


def ad_intelligence(date_range: str = DEFAULT_DATE_RANGE) -> GaqlQuery:
    return GaqlQuery(
        fields=(
            CORE_FIELDS["campaign"][1:2]
            + CORE_FIELDS["ad_group"][1:2]
            + CORE_FIELDS["ad"]
            + SEGMENT_FIELDS["time"][:1]
            + SEGMENT_FIELDS["device"]
            + METRIC_FIELDS["core"][:4]
            + METRIC_FIELDS["rates"][:2]
        ),
        resource="ad_group_ad",
        conditions=(
            _during(date_range),
            Condition("ad_group_ad.status", "=", "ENABLED"),
            _has_impressions(),
        ),
        order_by=("metrics.conversions DESC",),
    )


def device_time_intelligence(date_range: str = DEFAULT_DATE_RANGE) -> GaqlQuery:
    return GaqlQuery(
        fields=(
            CORE_FIELDS["campaign"][1:2]
            + SEGMENT_FIELDS["time"][:3]
            + SEGMENT_FIELDS["device"]
            + METRIC_FIELDS["core"]
            + METRIC_FIELDS["rates"][:2]
        ),
        resource="campaign",
        conditions=(_during(date_range), _has_impressions()),
        order_by=("segments.date DESC", "segments.hour ASC"),
    )


QUERY_TEMPLATES: Dict[str, Callable[..., GaqlQuery]] = {
    "accountOverview": account_overview,
    "campaignIntelligence": campaign_intelligence,
    "impressionShareIntelligence": impression_share_intelligence,
    "shoppingIntelligence": shopping_intelligence,
    "performanceMaxIntelligence": performance_max_intelligence,
    "customerLifetimeValueIntelligence": customer_lifetime_value_intelligence,
    "searchTermsIntelligence": search_terms_intelligence,
    "keywordIntelligence": keyword_intelligence,
    "qualityScoreIntelligence": quality_score_intelligence,
    "adIntelligence": ad_intelligence,
    "deviceTimeIntelligence": device_time_intelligence,
}

ANALYSIS_TEMPLATES = {
    "campaign": "campaignIntelligence",
    "keyword": "keywordIntelligence",
    "ad": "adIntelligence",
    "shopping": "shoppingIntelligence",
    "impressionShare": "impressionShareIntelligence",
}
DEFAULT_TEMPLATE = "campaignIntelligence"


def template_for(analysis_type: str | None) -> Callable[..., GaqlQuery]:
    name = ANALYSIS_TEMPLATES.get(analysis_type or "", analysis_type or "")
    return QUERY_TEMPLATES.get(name, QUERY_TEMPLATES[DEFAULT_TEMPLATE])


def build_dynamic_query(
    analysis_type: str | None,
    date_range: DateInterval | None = None,
    campaign_filter: str | None = None,
    period: str = DEFAULT_DATE_RANGE,
) -> GaqlQuery:
    """Compose the report query for an analysis type.

    ``analysis_type`` is either a selector category (``keyword``, ``ad`` ...) or a
    template name; anything else falls back to campaign intelligence. An explicit
    ``date_range`` replaces the template's predefined ``period`` window.
    """
    query = template_for(analysis_type)(period)
    if date_range is not None:
        query = query.with_date_range(date_range)
    if campaign_filter:
        query = query.with_campaign_filter(campaign_filter)
    return query
