"""
Thin async JSON client for the GA4 Admin and Data REST APIs.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from .errors import DEFAULT_ERROR, EmptyResponseError, RemoteApiError

logger = logging.getLogger(__name__)

ADMIN_BASE = "https://analyticsadmin.googleapis.com/v1beta"
DATA_BASE = "https://analyticsdata.googleapis.com/v1beta"


class GoogleApiClient:
    """
    Issues authenticated requests against the Google Analytics REST APIs.

    Every call sends ``Authorization: Bearer <token>``. Non-2xx responses and
    transport failures are raised as ``RemoteApiError``; the caller decides
    whether that aborts the request or only marks one property as failed.
    """

    def __init__(self, http_client: Optional[httpx.AsyncClient] = None):
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient()

    async def __aenter__(self) -> "GoogleApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.http_client.aclose()

    async def fetch_json(
        self,
        url: str,
        token: str,
        method: str = "GET",
        params: Optional[Dict[str, str]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
            "Cache-Control": "no-store",
        }
        try:
            response = await self.http_client.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=headers,
            )
        except httpx.HTTPError as exc:
            logger.warning("Google API request failed [%s %s]: %s", method, url, exc)
            raise RemoteApiError(0, type(exc).__name__, str(exc)) from exc

        if not response.is_success:
            raise RemoteApiError(response.status_code, response.reason_phrase, response.text)

        if not response.content:
            raise EmptyResponseError(DEFAULT_ERROR, code="empty_response")
        try:
            payload = response.json()
        except ValueError as exc:
            raise EmptyResponseError(DEFAULT_ERROR, code="invalid_json") from exc
        if not isinstance(payload, dict):
            raise EmptyResponseError(DEFAULT_ERROR, code="invalid_json")
        return payload

    async def paginate(self, url: str, token: str, items_key: str) -> List[Dict[str, Any]]:
        """
        Follow ``nextPageToken`` until exhausted and return every page's
        ``items_key`` entries in listing order.
        """

        items: List[Dict[str, Any]] = []
        page_token: Optional[str] = None
        while True:
            params = {"pageToken": page_token} if page_token else None
            data = await self.fetch_json(url, token, params=params)
            items.extend(data.get(items_key) or [])
            page_token = data.get("nextPageToken") or None
            if not page_token:
                return items
