from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence

from .models import DateRange, DateRanges

WINDOW_DAYS: Dict[str, int] = {
    "d1": 1,
    "d7": 7,
    "d28": 28,
    "d90": 90,
    "d180": 180,
    "d365": 365,
}
DEFAULT_WINDOW = "d7"
DASHBOARD_WINDOWS = ("d1", "d7", "d28")
DETAIL_WINDOWS = tuple(WINDOW_DAYS)

_COMPACT_DATE = re.compile(r"^\d{8}$")


def resolve_window(value: Optional[str], allowed: Sequence[str]) -> str:
    if value in allowed:
        return value
    return DEFAULT_WINDOW


def window_days(window_key: str) -> int:
    return WINDOW_DAYS.get(window_key, WINDOW_DAYS[DEFAULT_WINDOW])


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def format_date(day: date) -> str:
    return day.strftime("%Y-%m-%d")


def parse_date_dimension(value: str) -> str:
    """Turn the Data API's ``YYYYMMDD`` date dimension into ``YYYY-MM-DD``."""
    if not _COMPACT_DATE.match(value):
        return value
    return f"{value[0:4]}-{value[4:6]}-{value[6:8]}"


def compute_ranges(window_key: str, today: Optional[date] = None) -> DateRanges:
    """
    Current window ends yesterday (UTC); the previous window is the same
    number of days immediately before it.
    """

    days = window_days(window_key)
    today = today or utc_today()
    current_end = today - timedelta(days=1)
    current_start = current_end - timedelta(days=days - 1)
    previous_end = current_start - timedelta(days=1)
    previous_start = previous_end - timedelta(days=days - 1)
    return DateRanges(
        current=DateRange(start_date=format_date(current_start), end_date=format_date(current_end)),
        previous=DateRange(start_date=format_date(previous_start), end_date=format_date(previous_end)),
    )


def build_date_list(start_date: str, days: int) -> List[str]:
    start = date.fromisoformat(start_date)
    return [format_date(start + timedelta(days=offset)) for offset in range(days)]
