import httpx
import pytest

from conftest import account_summaries, web_stream
from ga_dashboard.catalog import (
    dedupe_by_domain,
    filter_properties,
    get_property_metadata,
    list_properties,
    normalize_uri,
    pick_web_stream,
)
from ga_dashboard.configuration import DashboardConfig
from ga_dashboard.errors import RemoteApiError
from ga_dashboard.models import DashboardProperty, NewUsersDelta, PropertySummary


@pytest.mark.asyncio
async def test_list_properties_flattens_accounts_and_pages(api):
    api.add(
        "GET",
        "/v1beta/accountSummaries",
        {
            "accountSummaries": [
                {"propertySummaries": [{"property": "properties/1", "displayName": "One"}]},
                {"propertySummaries": [{"property": "properties/2"}, {"property": ""}, {"displayName": "no id"}]},
                {},
            ],
            "nextPageToken": "next",
        },
        account_summaries(("3", "Three")),
    )

    summaries = await list_properties(api.client(), "t")

    assert summaries == [
        PropertySummary(property_id="1", display_name="One"),
        PropertySummary(property_id="2", display_name="2"),
        PropertySummary(property_id="3", display_name="Three"),
    ]
    assert api.requests[1].url.params["pageToken"] == "next"


def test_pick_web_stream_prefers_first_stream_with_uri():
    streams = [
        {"type": "ANDROID_APP_DATA_STREAM", "androidAppStreamData": {"packageName": "x"}},
        web_stream(None, "G-FIRST"),
        web_stream("https://b.example", "G-SECOND"),
        web_stream("https://c.example", "G-THIRD"),
    ]
    info = pick_web_stream(streams)
    assert info.default_uri == "https://b.example"
    assert info.measurement_id == "G-SECOND"


def test_pick_web_stream_falls_back_to_first_web_stream():
    info = pick_web_stream([{"type": "WEB_DATA_STREAM"}, web_stream(None, "G-2")])
    assert info.default_uri is None
    assert info.measurement_id is None


def test_pick_web_stream_accepts_untyped_stream_with_web_data():
    info = pick_web_stream([{"webStreamData": {"defaultUri": "https://a.example"}}])
    assert info.default_uri == "https://a.example"


def test_pick_web_stream_returns_none_without_web_streams():
    assert pick_web_stream([]) is None
    assert pick_web_stream([{"type": "IOS_APP_DATA_STREAM"}]) is None


@pytest.mark.asyncio
async def test_get_property_metadata(api):
    api.add("GET", "/v1beta/properties/42", {"displayName": "Shop"})
    api.add("GET", "/v1beta/properties/42/dataStreams", {"dataStreams": [web_stream("https://shop.example/")]})

    prop = await get_property_metadata(api.client(), "t", "42")

    assert prop.property_id == "42"
    assert prop.display_name == "Shop"
    assert prop.default_uri == "https://shop.example/"


@pytest.mark.asyncio
async def test_get_property_metadata_propagates_remote_errors(api):
    api.add("GET", "/v1beta/properties/42", httpx.Response(404, text="not found"))

    with pytest.raises(RemoteApiError):
        await get_property_metadata(api.client(), "t", "42")


def _summaries(*ids):
    return [PropertySummary(property_id=value, display_name=value) for value in ids]


def test_filter_properties_allowlist_then_blocklist():
    config = DashboardConfig(allowlist=["1", "2"], blocklist=["2"])
    kept = filter_properties(_summaries("1", "2", "3"), config.allowlist_ids(), config.blocklist_ids())
    assert [summary.property_id for summary in kept] == ["1"]


def test_filter_properties_builtin_blocklist_always_applies():
    config = DashboardConfig()
    kept = filter_properties(_summaries("1", "508295014"), config.allowlist_ids(), config.blocklist_ids())
    assert [summary.property_id for summary in kept] == ["1"]


def test_normalize_uri():
    assert normalize_uri("https://A.com/") == "a.com"
    assert normalize_uri("http://a.com") == "a.com"
    assert normalize_uri("a.com/path/") == "a.com/path"


def _row(property_id, uri, current=None):
    new_users = NewUsersDelta.from_totals(current, 0) if current is not None else None
    return DashboardProperty(property_id=property_id, display_name=property_id, default_uri=uri, new_users=new_users)


def test_dedupe_by_domain_keeps_first_occurrence():
    rows = [_row("1", "https://a.com/", 10), _row("2", "http://a.com", 5), _row("3", "https://b.com", 1)]
    assert [row.property_id for row in dedupe_by_domain(rows)] == ["1", "3"]


def test_dedupe_never_merges_rows_without_uri():
    rows = [_row("1", None, 10), _row("2", None, 5), _row("3", "", 1)]
    assert [row.property_id for row in dedupe_by_domain(rows)] == ["1", "2", "3"]
