from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Sequence


@dataclass(frozen=True)
class PropertySummary:
    property_id: str
    display_name: str


@dataclass(frozen=True)
class WebStreamInfo:
    """
    The preferred web data stream of a property.

    Both fields mirror ``webStreamData`` from the Admin API and may be missing
    when the stream was created without a site URL.
    """

    default_uri: Optional[str] = None
    measurement_id: Optional[str] = None


@dataclass(frozen=True)
class DateRange:
    """
    Inclusive calendar range in ``YYYY-MM-DD`` form (UTC).

    The field names are sent verbatim to the Data API through ``as_dict``.
    """

    start_date: str
    end_date: str

    def as_dict(self) -> Dict[str, str]:
        return {"startDate": self.start_date, "endDate": self.end_date}


@dataclass(frozen=True)
class DateRanges:
    current: DateRange
    previous: DateRange


@dataclass(frozen=True)
class NewUsersDelta:
    """
    New users for the current window compared to the previous one.

    ``pct`` is a ratio (0.25 means +25%) and stays ``None`` when the previous
    window had no new users.
    """

    current: int
    previous: int
    delta: int
    pct: Optional[float]

    @classmethod
    def from_totals(cls, current: int, previous: int) -> "NewUsersDelta":
        delta = current - previous
        pct = None if previous == 0 else delta / previous
        return cls(current=current, previous=previous, delta=delta, pct=pct)


@dataclass(frozen=True)
class SeriesRow:
    date: str
    value: int


@dataclass(frozen=True)
class SeriesPoint:
    date: str
    current: int
    previous: int


@dataclass(frozen=True)
class DashboardProperty:
    property_id: str
    display_name: str
    default_uri: Optional[str] = None
    new_users: Optional[NewUsersDelta] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class DashboardResponse:
    updated_at: str
    window: str
    properties: Sequence[DashboardProperty] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return _serialize(self)


@dataclass(frozen=True)
class PropertyDetail:
    property_id: str
    display_name: str
    default_uri: Optional[str] = None

    @classmethod
    def fallback(cls, property_id: str) -> "PropertyDetail":
        return cls(property_id=property_id, display_name=property_id, default_uri=None)


@dataclass(frozen=True)
class PropertyDetailResponse:
    updated_at: str
    window: str
    property: PropertyDetail
    summary: Optional[NewUsersDelta] = None
    series: Sequence[SeriesPoint] = field(default_factory=list)
    error: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return _serialize(self)


def _serialize(obj: Any) -> Any:
    """
    Convert the response dataclasses into the camelCase JSON shape the
    frontend consumes. Field names and nullability here are the public
    contract of the API.
    """

    if isinstance(obj, DashboardResponse):
        return {
            "updatedAt": obj.updated_at,
            "window": obj.window,
            "properties": [_serialize(item) for item in obj.properties],
        }
    if isinstance(obj, PropertyDetailResponse):
        return {
            "updatedAt": obj.updated_at,
            "window": obj.window,
            "property": _serialize(obj.property),
            "summary": _serialize(obj.summary),
            "series": [_serialize(point) for point in obj.series],
            "error": obj.error,
        }
    if isinstance(obj, DashboardProperty):
        return {
            "propertyId": obj.property_id,
            "displayName": obj.display_name,
            "defaultUri": obj.default_uri,
            "newUsers": _serialize(obj.new_users),
            "error": obj.error,
        }
    if isinstance(obj, PropertyDetail):
        return {
            "propertyId": obj.property_id,
            "displayName": obj.display_name,
            "defaultUri": obj.default_uri,
        }
    if isinstance(obj, NewUsersDelta):
        return {
            "current": obj.current,
            "previous": obj.previous,
            "delta": obj.delta,
            "pct": obj.pct,
        }
    if isinstance(obj, SeriesPoint):
        return {"date": obj.date, "current": obj.current, "previous": obj.previous}
    if isinstance(obj, DateRange):
        return obj.as_dict()
    if isinstance(obj, Iterable) and not isinstance(obj, (str, bytes)):
        return [_serialize(item) for item in obj]
    return obj
