# config parameters for the GA4 new users dashboard

from __future__ import annotations

import os
from typing import FrozenSet, List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEFAULT_BLOCKLIST: FrozenSet[str] = frozenset({"508295014"})
DEFAULT_CONCURRENCY = 5


def _split_ids(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [value.strip() for value in raw.split(",") if value.strip()]


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


class DashboardConfig(BaseModel):
    """Configuration for the GA4 dashboard backend."""

    client_email: Optional[str] = None
    """Service account email (GA_CLIENT_EMAIL)"""

    private_key: Optional[str] = None
    """Service account PEM key, may contain literal \\n escapes (GA_PRIVATE_KEY)"""

    allowlist: List[str] = Field(default_factory=list)
    """Only these property ids are reported when non-empty"""

    blocklist: List[str] = Field(default_factory=list)
    """Extra property ids to hide, on top of DEFAULT_BLOCKLIST"""

    concurrency: int = DEFAULT_CONCURRENCY
    """Simultaneous in-flight property lookups per fan-out stage"""

    dashboard_password: Optional[str] = None
    """Shared Basic Auth password; the API is open when unset"""

    log_level: str = "INFO"

    def normalized_private_key(self) -> Optional[str]:
        if self.private_key is None:
            return None
        return self.private_key.replace("\\n", "\n")

    def allowlist_ids(self) -> Optional[FrozenSet[str]]:
        ids = frozenset(value.strip() for value in self.allowlist if value.strip())
        return ids or None

    def blocklist_ids(self) -> FrozenSet[str]:
        return DEFAULT_BLOCKLIST | frozenset(value.strip() for value in self.blocklist if value.strip())

    def worker_count(self) -> int:
        return max(1, self.concurrency)

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> "DashboardConfig":
        """Create a DashboardConfig from the process environment (and .env)."""
        if load_env_file:
            load_dotenv()
        return cls(
            client_email=os.getenv("GA_CLIENT_EMAIL") or None,
            private_key=os.getenv("GA_PRIVATE_KEY") or None,
            allowlist=_split_ids(os.getenv("GA_PROPERTY_ALLOWLIST")),
            blocklist=_split_ids(os.getenv("GA_PROPERTY_BLOCKLIST")),
            concurrency=_env_int("GA_CONCURRENCY", DEFAULT_CONCURRENCY),
            dashboard_password=os.getenv("DASHBOARD_PASSWORD") or None,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
