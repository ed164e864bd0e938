from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Awaitable, Callable, List, Optional, Protocol, Sequence, Tuple, TypeVar

from .catalog import (
    dedupe_by_domain,
    filter_properties,
    get_property_metadata,
    list_data_streams,
    list_properties,
    pick_web_stream,
)
from .client import GoogleApiClient
from .configuration import DashboardConfig
from .dates import DASHBOARD_WINDOWS, DETAIL_WINDOWS, compute_ranges, resolve_window, window_days
from .errors import PolicyExclusion, error_message
from .metrics import build_series, fetch_new_users_series, fetch_new_users_summary
from .models import (
    DashboardProperty,
    DashboardResponse,
    DateRanges,
    NewUsersDelta,
    PropertyDetail,
    PropertyDetailResponse,
    PropertySummary,
    SeriesPoint,
    WebStreamInfo,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class TokenProvider(Protocol):
    async def get_access_token(self) -> str:
        ...


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _timestamp(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _sort_key(prop: DashboardProperty) -> int:
    return prop.new_users.current if prop.new_users is not None else -1


async def run_limited(
    items: Sequence[T],
    limit: int,
    worker: Callable[[T, int], Awaitable[R]],
) -> List[R]:
    """
    Run ``worker`` over ``items`` with at most ``limit`` calls in flight.

    Each runner claims the next unprocessed index until the list is
    exhausted; results keep the input order whatever the completion order.
    """

    results: List[Optional[R]] = [None] * len(items)
    next_index = 0

    async def runner() -> None:
        nonlocal next_index
        while next_index < len(items):
            index = next_index
            next_index += 1
            results[index] = await worker(items[index], index)

    await asyncio.gather(*(runner() for _ in range(min(limit, len(items)))))
    return results  # type: ignore[return-value]


@dataclass(frozen=True)
class _StreamResult:
    summary: PropertySummary
    web_stream: Optional[WebStreamInfo] = None
    error: Optional[str] = None


class DashboardService:
    """
    Builds the "all properties" and "single property" payloads.

    Nothing is cached between calls: each build gets a fresh token and
    re-reads the catalog, streams and reports from Google.
    """

    def __init__(
        self,
        config: DashboardConfig,
        client: GoogleApiClient,
        token_provider: TokenProvider,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.config = config
        self.client = client
        self.token_provider = token_provider
        self.clock = clock

    def _today(self) -> date:
        return self.clock().astimezone(timezone.utc).date()

    async def build_dashboard(self, window: Optional[str]) -> DashboardResponse:
        window_key = resolve_window(window, DASHBOARD_WINDOWS)
        token = await self.token_provider.get_access_token()
        ranges = compute_ranges(window_key, today=self._today())

        summaries = await list_properties(self.client, token)
        targets = filter_properties(summaries, self.config.allowlist_ids(), self.config.blocklist_ids())
        logger.info("Building dashboard for %d of %d properties (%s)", len(targets), len(summaries), window_key)

        async def resolve_stream(summary: PropertySummary, _: int) -> Optional[_StreamResult]:
            try:
                streams = await list_data_streams(self.client, token, summary.property_id)
                web_stream = pick_web_stream(streams)
            except Exception as exc:
                logger.warning("Stream lookup failed for property %s: %s", summary.property_id, exc)
                return _StreamResult(summary=summary, error=error_message(exc))
            if web_stream is None:
                return None
            return _StreamResult(summary=summary, web_stream=web_stream)

        stream_results = await run_limited(targets, self.config.worker_count(), resolve_stream)

        error_rows: List[DashboardProperty] = []
        report_targets: List[_StreamResult] = []
        for result in stream_results:
            if result is None:
                continue
            if result.error:
                error_rows.append(
                    DashboardProperty(
                        property_id=result.summary.property_id,
                        display_name=result.summary.display_name,
                        error=result.error,
                    )
                )
                continue
            report_targets.append(result)

        async def fetch_report(result: _StreamResult, _: int) -> DashboardProperty:
            default_uri = result.web_stream.default_uri if result.web_stream else None
            try:
                new_users = await fetch_new_users_summary(self.client, token, result.summary.property_id, ranges)
            except Exception as exc:
                logger.warning("New users report failed for property %s: %s", result.summary.property_id, exc)
                return DashboardProperty(
                    property_id=result.summary.property_id,
                    display_name=result.summary.display_name,
                    default_uri=default_uri,
                    error=error_message(exc),
                )
            return DashboardProperty(
                property_id=result.summary.property_id,
                display_name=result.summary.display_name,
                default_uri=default_uri,
                new_users=new_users,
            )

        report_rows = await run_limited(report_targets, self.config.worker_count(), fetch_report)

        ordered = sorted([*report_rows, *error_rows], key=_sort_key, reverse=True)
        return DashboardResponse(
            updated_at=_timestamp(self.clock()),
            window=window_key,
            properties=dedupe_by_domain(ordered),
        )

    async def build_property_detail(self, property_id: str, window: Optional[str]) -> PropertyDetailResponse:
        window_key = resolve_window(window, DETAIL_WINDOWS)
        updated_at = _timestamp(self.clock())
        fallback = PropertyDetail.fallback(property_id)

        def error_response(prop: PropertyDetail, message: str) -> PropertyDetailResponse:
            return PropertyDetailResponse(
                updated_at=updated_at,
                window=window_key,
                property=prop,
                summary=None,
                series=[],
                error=message,
            )

        exclusion = self._policy_exclusion(property_id)
        if exclusion is not None:
            logger.info("Property %s hidden by policy: %s", property_id, exclusion.kind)
            return error_response(fallback, exclusion.message)

        token = await self.token_provider.get_access_token()
        ranges = compute_ranges(window_key, today=self._today())
        days = window_days(window_key)

        try:
            prop = await get_property_metadata(self.client, token, property_id)
        except Exception as exc:
            logger.warning("Metadata lookup failed for property %s: %s", property_id, exc)
            return error_response(fallback, error_message(exc))

        try:
            summary, series = await self._load_series(token, property_id, ranges, days)
        except Exception as exc:
            logger.warning("Daily series failed for property %s: %s", property_id, exc)
            return error_response(prop, error_message(exc))

        return PropertyDetailResponse(
            updated_at=updated_at,
            window=window_key,
            property=prop,
            summary=summary,
            series=series,
            error=None,
        )

    async def _load_series(
        self, token: str, property_id: str, ranges: DateRanges, days: int
    ) -> Tuple[NewUsersDelta, List[SeriesPoint]]:
        # both requests run to completion so neither failure goes unobserved
        results = await asyncio.gather(
            fetch_new_users_series(self.client, token, property_id, ranges.current),
            fetch_new_users_series(self.client, token, property_id, ranges.previous),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        current_rows, previous_rows = results
        series, current_total, previous_total = build_series(ranges, current_rows, previous_rows, days)
        return NewUsersDelta.from_totals(current_total, previous_total), series

    def _policy_exclusion(self, property_id: str) -> Optional[PolicyExclusion]:
        if property_id in self.config.blocklist_ids():
            return PolicyExclusion(PolicyExclusion.EXCLUDED)
        allowlist = self.config.allowlist_ids()
        if allowlist is not None and property_id not in allowlist:
            return PolicyExclusion(PolicyExclusion.NOT_INCLUDED)
        return None
