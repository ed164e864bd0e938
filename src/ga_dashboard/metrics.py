from __future__ import annotations

from typing import Any, Dict, List, Sequence, Tuple

from .client import DATA_BASE, GoogleApiClient
from .dates import build_date_list, parse_date_dimension
from .models import DateRange, DateRanges, NewUsersDelta, SeriesPoint, SeriesRow

NEW_USERS_METRIC = "newUsers"
CURRENT_RANGE_LABEL = "date_range_0"
PREVIOUS_RANGE_LABEL = "date_range_1"


def _metric_value(values: Sequence[Dict[str, Any]], index: int) -> int:
    if len(values) <= index:
        return 0
    raw = values[index].get("value")
    if raw is None:
        return 0
    try:
        return int(float(raw))
    except (ValueError, OverflowError):
        return 0


def _first_dimension(row: Dict[str, Any]) -> str:
    dimension_values = row.get("dimensionValues") or []
    if not dimension_values:
        return ""
    return dimension_values[0].get("value") or ""


async def _run_report(
    client: GoogleApiClient, token: str, property_id: str, body: Dict[str, Any]
) -> List[Dict[str, Any]]:
    data = await client.fetch_json(
        f"{DATA_BASE}/properties/{property_id}:runReport",
        token,
        method="POST",
        json_body=body,
    )
    return data.get("rows") or []


def summarize_rows(rows: Sequence[Dict[str, Any]]) -> NewUsersDelta:
    """
    Read a two-range ``runReport`` response into a current/previous pair.

    Rows are tagged ``date_range_0`` (current) and ``date_range_1``
    (previous). A single untagged row with two or more metric values is read
    positionally as ``[current, previous]``; some responses to multi-range
    queries without dimensions come back flattened that way.
    """

    current = 0
    previous = 0
    for row in rows:
        label = _first_dimension(row)
        value = _metric_value(row.get("metricValues") or [], 0)
        if label == CURRENT_RANGE_LABEL:
            current = value
        elif label == PREVIOUS_RANGE_LABEL:
            previous = value

    if not rows:
        current, previous = 0, 0
    elif len(rows) == 1 and not rows[0].get("dimensionValues"):
        values = rows[0].get("metricValues") or []
        if len(values) >= 2:
            current = _metric_value(values, 0)
            previous = _metric_value(values, 1)

    return NewUsersDelta.from_totals(current, previous)


async def fetch_new_users_summary(
    client: GoogleApiClient, token: str, property_id: str, ranges: DateRanges
) -> NewUsersDelta:
    body = {
        "dateRanges": [ranges.current.as_dict(), ranges.previous.as_dict()],
        "metrics": [{"name": NEW_USERS_METRIC}],
    }
    return summarize_rows(await _run_report(client, token, property_id, body))


async def fetch_new_users_series(
    client: GoogleApiClient, token: str, property_id: str, date_range: DateRange
) -> List[SeriesRow]:
    body = {
        "dateRanges": [date_range.as_dict()],
        "metrics": [{"name": NEW_USERS_METRIC}],
        "dimensions": [{"name": "date"}],
        "orderBys": [{"dimension": {"dimensionName": "date"}}],
    }
    rows = await _run_report(client, token, property_id, body)
    return [
        SeriesRow(
            date=parse_date_dimension(_first_dimension(row)),
            value=_metric_value(row.get("metricValues") or [], 0),
        )
        for row in rows
    ]


def build_series(
    ranges: DateRanges,
    current_rows: Sequence[SeriesRow],
    previous_rows: Sequence[SeriesRow],
    days: int,
) -> Tuple[List[SeriesPoint], int, int]:
    """
    Zero-fill both windows to ``days`` points and pair them by offset: day
    ``i`` of the current window sits next to day ``i`` of the previous one,
    whatever the weekday.

    Returns ``(series, current_total, previous_total)``.
    """

    current_dates = build_date_list(ranges.current.start_date, days)
    previous_dates = build_date_list(ranges.previous.start_date, days)
    current_map = {row.date: row.value for row in current_rows}
    previous_map = {row.date: row.value for row in previous_rows}

    series = [
        SeriesPoint(
            date=day,
            current=current_map.get(day, 0),
            previous=previous_map.get(previous_dates[index], 0),
        )
        for index, day in enumerate(current_dates)
    ]
    current_total = sum(point.current for point in series)
    previous_total = sum(point.previous for point in series)
    return series, current_total, previous_total
