"""
Shared fixtures: a fake Google API backend served through httpx.MockTransport
and a stub token provider, so no test touches the network.
"""

import json
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import httpx
import pytest

from ga_dashboard.client import GoogleApiClient
from ga_dashboard.configuration import DashboardConfig
from ga_dashboard.service import DashboardService

# "today" for every service built by the fixtures; d7 current window is
# 2026-01-01..2026-01-07, previous is 2025-12-25..2025-12-31
FIXED_NOW = datetime(2026, 1, 8, 9, 30, tzinfo=timezone.utc)

RouteResult = Union[Dict[str, Any], httpx.Response, Callable[[httpx.Request], httpx.Response]]


class FakeTokenProvider:
    def __init__(self, token: str = "test-token", error: Optional[Exception] = None):
        self.token = token
        self.error = error
        self.calls = 0

    async def get_access_token(self) -> str:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.token


class GoogleApiStub:
    """Routes requests by (method, path); unknown routes answer 404."""

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], List[RouteResult]] = {}
        self.requests: List[httpx.Request] = []

    def add(self, method: str, path: str, *results: RouteResult) -> None:
        self.routes[(method, path)] = list(results)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, text="no route")
        # consume in order; the last result keeps answering
        result = queue.pop(0) if len(queue) > 1 else queue[0]
        if callable(result):
            return result(request)
        if isinstance(result, httpx.Response):
            return result
        return httpx.Response(200, json=result)

    def client(self) -> GoogleApiClient:
        return GoogleApiClient(httpx.AsyncClient(transport=httpx.MockTransport(self.handler)))

    def paths(self) -> List[str]:
        return [request.url.path for request in self.requests]


def request_json(request: httpx.Request) -> Dict[str, Any]:
    return json.loads(request.content.decode("utf-8"))


def report_rows(*pairs: Tuple[str, int]) -> Dict[str, Any]:
    return {
        "rows": [
            {"dimensionValues": [{"value": label}], "metricValues": [{"value": str(value)}]}
            for label, value in pairs
        ]
    }


def web_stream(uri: Optional[str], measurement_id: str = "G-TEST") -> Dict[str, Any]:
    data: Dict[str, Any] = {"measurementId": measurement_id}
    if uri is not None:
        data["defaultUri"] = uri
    return {"type": "WEB_DATA_STREAM", "webStreamData": data}


def account_summaries(*properties: Tuple[str, str]) -> Dict[str, Any]:
    return {
        "accountSummaries": [
            {
                "propertySummaries": [
                    {"property": f"properties/{property_id}", "displayName": name}
                    for property_id, name in properties
                ]
            }
        ]
    }


@pytest.fixture
def api() -> GoogleApiStub:
    return GoogleApiStub()


@pytest.fixture
def token_provider() -> FakeTokenProvider:
    return FakeTokenProvider()


@pytest.fixture
def make_service(api: GoogleApiStub, token_provider: FakeTokenProvider):
    def _factory(config: Optional[DashboardConfig] = None) -> DashboardService:
        return DashboardService(
            config=config or DashboardConfig(),
            client=api.client(),
            token_provider=token_provider,
            clock=lambda: FIXED_NOW,
        )

    return _factory
