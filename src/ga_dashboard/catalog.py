from __future__ import annotations

import re
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Set

from .client import ADMIN_BASE, GoogleApiClient
from .models import DashboardProperty, PropertyDetail, PropertySummary, WebStreamInfo

WEB_DATA_STREAM = "WEB_DATA_STREAM"

_SCHEME = re.compile(r"^https?://")


async def list_properties(client: GoogleApiClient, token: str) -> List[PropertySummary]:
    """
    Flatten every account summary visible to the service account into one
    ordered list of properties.
    """

    account_summaries = await client.paginate(f"{ADMIN_BASE}/accountSummaries", token, "accountSummaries")
    summaries: List[PropertySummary] = []
    for account_summary in account_summaries:
        for property_summary in account_summary.get("propertySummaries") or []:
            property_name = property_summary.get("property") or ""
            property_id = property_name.split("/")[-1]
            if not property_id:
                continue
            summaries.append(
                PropertySummary(
                    property_id=property_id,
                    display_name=property_summary.get("displayName") or property_id,
                )
            )
    return summaries


async def list_data_streams(client: GoogleApiClient, token: str, property_id: str) -> List[Dict[str, Any]]:
    return await client.paginate(f"{ADMIN_BASE}/properties/{property_id}/dataStreams", token, "dataStreams")


def pick_web_stream(streams: Sequence[Dict[str, Any]]) -> Optional[WebStreamInfo]:
    """
    Choose the stream that represents the property's site.

    Web streams are those typed ``WEB_DATA_STREAM`` or carrying
    ``webStreamData``. The first one with a ``defaultUri`` wins, otherwise the
    first web stream in listing order. ``None`` means no web presence.
    """

    web_streams = [
        stream for stream in streams if stream.get("type") == WEB_DATA_STREAM or stream.get("webStreamData")
    ]
    if not web_streams:
        return None
    preferred = next(
        (stream for stream in web_streams if (stream.get("webStreamData") or {}).get("defaultUri")),
        web_streams[0],
    )
    web_data = preferred.get("webStreamData") or {}
    return WebStreamInfo(
        default_uri=web_data.get("defaultUri") or None,
        measurement_id=web_data.get("measurementId") or None,
    )


async def get_property_metadata(client: GoogleApiClient, token: str, property_id: str) -> PropertyDetail:
    prop = await client.fetch_json(f"{ADMIN_BASE}/properties/{property_id}", token)
    web_stream = pick_web_stream(await list_data_streams(client, token, property_id))
    return PropertyDetail(
        property_id=property_id,
        display_name=prop.get("displayName") or property_id,
        default_uri=web_stream.default_uri if web_stream else None,
    )


def filter_properties(
    summaries: Sequence[PropertySummary],
    allowlist: Optional[FrozenSet[str]],
    blocklist: FrozenSet[str],
) -> List[PropertySummary]:
    # allowlist first, then blocklist: an id in both is dropped
    filtered = [summary for summary in summaries if allowlist is None or summary.property_id in allowlist]
    return [summary for summary in filtered if summary.property_id not in blocklist]


def normalize_uri(value: str) -> str:
    stripped = _SCHEME.sub("", value)
    if stripped.endswith("/"):
        stripped = stripped[:-1]
    return stripped.lower()


def dedupe_by_domain(properties: Sequence[DashboardProperty]) -> List[DashboardProperty]:
    """Keep the first row per site domain; rows without a URI are always kept."""
    deduped: List[DashboardProperty] = []
    seen: Set[str] = set()
    for prop in properties:
        if not prop.default_uri:
            deduped.append(prop)
            continue
        key = normalize_uri(prop.default_uri)
        if key in seen:
            continue
        seen.add(key)
        deduped.append(prop)
    return deduped
