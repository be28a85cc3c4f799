from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional, Tuple

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

MONTH_NUMBERS = {
    "january": 1, "jan": 1,
    "february": 2, "feb": 2,
    "march": 3, "mar": 3,
    "april": 4, "apr": 4,
    "may": 5,
    "june": 6, "jun": 6,
    "july": 7, "jul": 7,
    "august": 8, "aug": 8,
    "september": 9, "sep": 9,
    "october": 10, "oct": 10,
    "november": 11, "nov": 11,
    "december": 12, "dec": 12,
}

YOY_PATTERN = re.compile(r"(?:this|current)\s+(\w+)\s+vs\s+last\s+year", re.IGNORECASE)
SAME_TIME_LAST_YEAR_PATTERN = re.compile(r"same\s+time\s+last\s+year|year\s+over\s+year|yoy", re.IGNORECASE)
INDEPENDENCE_DAY_PATTERN = re.compile(r"4th of july|july 4th|fourth of july|independence day", re.IGNORECASE)
CUSTOM_RANGE_PATTERN = re.compile(r"from\s+(\d{4}-\d{2}-\d{2})\s+to\s+(\d{4}-\d{2}-\d{2})", re.IGNORECASE)
MONTH_YEAR_PATTERN = re.compile(r"(\w+)\s+(\d{4})", re.IGNORECASE)

DEFAULT_LOOKBACK_DAYS = 30


@dataclass(frozen=True)
class DateInterval:
    start: date
    end: date
    label: str

    def to_dict(self) -> Dict[str, str]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat(), "label": self.label}


@dataclass(frozen=True)
class DateRanges:
    primary: DateInterval
    comparison: Optional[DateInterval] = None
    kind: str = "single"

    @property
    def is_comparison(self) -> bool:
        return self.kind == "comparison" and self.comparison is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "primary": self.primary.to_dict(),
            "comparison": self.comparison.to_dict() if self.comparison else None,
        }


def parse_month(token: str) -> int:
    # Unknown month words fall back to January.
    return MONTH_NUMBERS.get(token.lower(), 1)


def month_name(month: int) -> str:
    return MONTH_NAMES[month - 1] if 1 <= month <= 12 else "Unknown"


def month_interval(year: int, month: int, label: str) -> DateInterval:
    last_day = calendar.monthrange(year, month)[1]
    return DateInterval(start=date(year, month, 1), end=date(year, month, last_day), label=label)


def _as_date(now: date | datetime | None) -> date:
    if now is None:
        return datetime.now(timezone.utc).date()
    if isinstance(now, datetime):
        return now.date()
    return now


def _year_over_year(query: str, today: date) -> Optional[DateRanges]:
    if not (YOY_PATTERN.search(query) or SAME_TIME_LAST_YEAR_PATTERN.search(query)):
        return None

    this_year = today.year
    last_year = this_year - 1
    if INDEPENDENCE_DAY_PATTERN.search(query):
        return DateRanges(
            primary=DateInterval(date(this_year, 6, 15), date(this_year, 7, 15), f"July 4th {this_year}"),
            comparison=DateInterval(date(last_year, 6, 15), date(last_year, 7, 15), f"July 4th {last_year}"),
            kind="comparison",
        )

    month = today.month
    return DateRanges(
        primary=month_interval(this_year, month, f"{month_name(month)} {this_year}"),
        comparison=month_interval(last_year, month, f"{month_name(month)} {last_year}"),
        kind="comparison",
    )


def _custom_range(query: str, today: date) -> Optional[DateRanges]:
    m = CUSTOM_RANGE_PATTERN.search(query)
    if not m:
        return None
    try:
        start = date.fromisoformat(m.group(1))
        end = date.fromisoformat(m.group(2))
    except ValueError:
        return None
    return DateRanges(primary=DateInterval(start, end, f"{m.group(1)} to {m.group(2)}"))


def _month_year(query: str, today: date) -> Optional[DateRanges]:
    m = MONTH_YEAR_PATTERN.search(query)
    if not m:
        return None
    year = int(m.group(2))
    if year < 1:
        return None
    month = parse_month(m.group(1))
    return DateRanges(primary=month_interval(year, month, f"{m.group(1)} {year}"))


def _trailing_window(query: str, today: date) -> Optional[DateRanges]:
    start = today - timedelta(days=DEFAULT_LOOKBACK_DAYS)
    return DateRanges(primary=DateInterval(start, today, "Last 30 Days"), kind="default")


DateRule = Tuple[str, Callable[[str, date], Optional[DateRanges]]]

# Evaluated in order; the first handler returning a value wins.
DATE_RULES: Tuple[DateRule, ...] = (
    ("year_over_year", _year_over_year),
    ("custom_range", _custom_range),
    ("month_year", _month_year),
    ("trailing_30_days", _trailing_window),
)


def resolve_date_ranges(query: str, now: date | datetime | None = None) -> DateRanges:
    today = _as_date(now)
    for _, handler in DATE_RULES:
        ranges = handler(query, today)
        if ranges is not None:
            return ranges
    return _trailing_window(query, today)
