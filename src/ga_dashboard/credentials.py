"""
Service account token exchange for the Google Analytics APIs.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from .configuration import DashboardConfig
from .errors import AuthError

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/analytics.readonly"]
TOKEN_URI = "https://oauth2.googleapis.com/token"


class ServiceAccountTokenProvider:
    """
    Exchanges the configured service account key for a bearer token.

    A new token is requested on every call: nothing is cached between
    dashboard requests.
    """

    def __init__(self, config: DashboardConfig):
        self.config = config

    async def get_access_token(self) -> str:
        credentials = self._build_credentials()
        try:
            await asyncio.to_thread(credentials.refresh, Request())
        except GoogleAuthError as exc:
            logger.error("Service account token refresh failed: %s", exc)
            raise AuthError(f"Unable to authorize the Google Analytics service account. {exc}") from exc

        token: Optional[str] = credentials.token
        if not token:
            raise AuthError("Unable to authorize the Google Analytics service account.")
        return token

    def _build_credentials(self) -> service_account.Credentials:
        client_email = self.config.client_email
        private_key = self.config.normalized_private_key()
        if not client_email or not private_key:
            raise AuthError("Missing GA_CLIENT_EMAIL or GA_PRIVATE_KEY environment variables.")

        info = {
            "type": "service_account",
            "client_email": client_email,
            "private_key": private_key,
            "token_uri": TOKEN_URI,
        }
        try:
            return service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
        except (ValueError, TypeError) as exc:
            raise AuthError(f"Invalid GA_PRIVATE_KEY: {exc}") from exc
