from datetime import date, datetime

from adinsights.agent.dates import DATE_RULES, month_interval, parse_month, resolve_date_ranges

REFERENCE = date(2024, 6, 15)


def test_same_time_last_year_compares_current_month():
    ranges = resolve_date_ranges("same time last year", now=REFERENCE)
    assert ranges.is_comparison
    assert ranges.primary.start == date(2024, 6, 1)
    assert ranges.primary.end == date(2024, 6, 30)
    assert ranges.primary.label == "June 2024"
    assert ranges.comparison.start == date(2023, 6, 1)
    assert ranges.comparison.end == date(2023, 6, 30)
    assert ranges.comparison.label == "June 2023"


def test_this_month_vs_last_year():
    ranges = resolve_date_ranges("How is this month vs last year?", now=date(2024, 2, 10))
    assert ranges.kind == "comparison"
    assert ranges.primary.end == date(2024, 2, 29)
    assert ranges.comparison.end == date(2023, 2, 28)


def test_independence_day_window():
    ranges = resolve_date_ranges("july 4th yoy", now=date(2024, 3, 1))
    assert ranges.primary.start == date(2024, 6, 15)
    assert ranges.primary.end == date(2024, 7, 15)
    assert ranges.primary.label == "July 4th 2024"
    assert ranges.comparison.start == date(2023, 6, 15)
    assert ranges.comparison.label == "July 4th 2023"


def test_custom_range_is_literal():
    ranges = resolve_date_ranges("from 2023-01-01 to 2023-01-31", now=REFERENCE)
    assert ranges.kind == "single"
    assert ranges.comparison is None
    assert (ranges.primary.start, ranges.primary.end) == (date(2023, 1, 1), date(2023, 1, 31))
    assert ranges.primary.label == "2023-01-01 to 2023-01-31"


def test_custom_range_does_not_check_order():
    ranges = resolve_date_ranges("from 2023-02-01 to 2023-01-01", now=REFERENCE)
    assert ranges.primary.start > ranges.primary.end


def test_invalid_custom_date_falls_through_to_next_rule():
    ranges = resolve_date_ranges("from 2024-02-30 to 2024-03-01", now=REFERENCE)
    assert ranges.primary.start == date(2024, 1, 1)
    assert ranges.primary.label == "from 2024"


def test_month_and_year():
    ranges = resolve_date_ranges("march 2022", now=REFERENCE)
    assert ranges.primary.start == date(2022, 3, 1)
    assert ranges.primary.end == date(2022, 3, 31)
    assert ranges.primary.label == "march 2022"


def test_month_abbreviation_and_leap_year():
    ranges = resolve_date_ranges("spend in Feb 2024", now=REFERENCE)
    assert ranges.primary.start == date(2024, 2, 1)
    assert ranges.primary.end == date(2024, 2, 29)


def test_unknown_month_word_defaults_to_january():
    ranges = resolve_date_ranges("zzz 2022", now=REFERENCE)
    assert ranges.primary.start == date(2022, 1, 1)
    assert ranges.primary.end == date(2022, 1, 31)
    assert ranges.primary.label == "zzz 2022"


def test_default_trailing_window():
    ranges = resolve_date_ranges("how are my campaigns doing", now=REFERENCE)
    assert ranges.kind == "default"
    assert not ranges.is_comparison
    assert ranges.primary.start == date(2024, 5, 16)
    assert ranges.primary.end == REFERENCE
    assert ranges.primary.label == "Last 30 Days"


def test_accepts_datetime_reference():
    ranges = resolve_date_ranges("yoy", now=datetime(2024, 12, 31, 23, 59))
    assert ranges.primary.label == "December 2024"


def test_rule_order_is_first_match_wins():
    assert [name for name, _ in DATE_RULES] == ["year_over_year", "custom_range", "month_year", "trailing_30_days"]
    # yoy wins even though a month and year are also present
    ranges = resolve_date_ranges("march 2022 yoy", now=REFERENCE)
    assert ranges.primary.label == "June 2024"


def test_month_helpers():
    assert parse_month("SEPTEMBER") == 9
    assert parse_month("sep") == 9
    assert month_interval(2023, 12, "x").end == date(2023, 12, 31)
    assert month_interval(1900, 2, "x").end == date(1900, 2, 28)


def test_to_dict_shape():
    payload = resolve_date_ranges("march 2022", now=REFERENCE).to_dict()
    assert payload["primary"] == {"start": "2022-03-01", "end": "2022-03-31", "label": "march 2022"}
    assert payload["comparison"] is None
