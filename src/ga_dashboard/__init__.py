"""
GA4 new users dashboard backend.

Pulls "new users" for every GA4 property visible to a service account,
compares the current window with the previous one and serves the result to
the dashboard frontend.
"""

from .configuration import DashboardConfig  # noqa: F401
from .errors import (  # noqa: F401
    AuthError,
    DashboardError,
    EmptyResponseError,
    PolicyExclusion,
    RemoteApiError,
)
from .models import (  # noqa: F401
    DashboardProperty,
    DashboardResponse,
    DateRange,
    DateRanges,
    NewUsersDelta,
    PropertyDetail,
    PropertyDetailResponse,
    PropertySummary,
    SeriesPoint,
    SeriesRow,
    WebStreamInfo,
)
from .service import DashboardService  # noqa: F401
