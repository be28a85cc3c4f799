from datetime import date

import pytest

from adinsights.agent.dates import DateInterval
from adinsights.agent.query_builder import (
    QUERY_TEMPLATES,
    build_dynamic_query,
    campaign_intelligence,
    normalize_date_range_literal,
)
from adinsights.agent.query_validator import validate_gaql

JUNE = DateInterval(date(2024, 6, 1), date(2024, 6, 30), "June 2024")


def test_default_template_uses_predefined_window():
    text = campaign_intelligence().to_gaql()
    assert text.startswith("SELECT\n  customer.id,\n  campaign.id,")
    assert "FROM campaign" in text
    assert "WHERE segments.date DURING LAST_30_DAYS\n  AND metrics.impressions > 0" in text
    assert text.endswith("ORDER BY metrics.cost_micros DESC")


def test_explicit_range_replaces_during_clause():
    text = build_dynamic_query("campaign", JUNE).to_gaql()
    assert "DURING" not in text
    assert "segments.date BETWEEN '2024-06-01' AND '2024-06-30'" in text


def test_campaign_filter_precedes_order_by():
    text = build_dynamic_query("campaign", JUNE, "Summer").to_gaql()
    filter_at = text.index("AND campaign.name CONTAINS_IGNORE_CASE 'Summer'")
    assert filter_at < text.index("ORDER BY")


def test_filter_literal_is_escaped():
    text = build_dynamic_query("campaign", JUNE, "Bob's \\ Sale").to_gaql()
    assert "CONTAINS_IGNORE_CASE 'Bob\\'s \\\\ Sale'" in text
    validate_gaql(text)


@pytest.mark.parametrize(
    "analysis_type, resource",
    [
        ("campaign", "campaign"),
        ("keyword", "keyword_view"),
        ("ad", "ad_group_ad"),
        ("shopping", "shopping_performance_view"),
        ("impressionShare", "campaign"),
        ("searchTermsIntelligence", "search_term_view"),
        ("nonsense", "campaign"),
        (None, "campaign"),
    ],
)
def test_analysis_type_selects_template(analysis_type, resource):
    assert build_dynamic_query(analysis_type).resource == resource


def test_every_template_passes_the_validator():
    for name, template in QUERY_TEMPLATES.items():
        query = template()
        validate_gaql(query.to_gaql())
        validate_gaql(query.with_date_range(JUNE).to_gaql())


def test_account_overview_has_no_date_condition():
    query = QUERY_TEMPLATES["accountOverview"]()
    assert query.with_date_range(JUNE) == query
    assert "WHERE" not in query.to_gaql()


@pytest.mark.parametrize(
    "period, expected",
    [
        ("last_7_days", "LAST_7_DAYS"),
        ("LAST_90_DAYS", "THIS_QUARTER"),
        ("ALL_TIME", "THIS_YEAR"),
        ("yesterday-ish", "LAST_30_DAYS"),
        (None, "LAST_30_DAYS"),
    ],
)
def test_normalize_date_range_literal(period, expected):
    assert normalize_date_range_literal(period) == expected


def test_predefined_period_is_normalized_in_query():
    text = build_dynamic_query("campaign", period="ALL_TIME").to_gaql()
    assert "DURING THIS_YEAR" in text
