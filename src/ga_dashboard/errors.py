"""
Exceptions raised by the GA4 dashboard backend.
"""

from typing import Optional

DEFAULT_ERROR = "Unexpected response from Google APIs."


class DashboardError(Exception):
    """Base exception for the dashboard backend"""

    def __init__(self, message: str, code: Optional[str] = None):
        self.message = message
        self.code = code
        super().__init__(self.message)


class AuthError(DashboardError):
    """Service account credentials are missing or were rejected"""
    pass


class RemoteApiError(DashboardError):
    """A Google API call returned a non-2xx status or could not be sent"""

    def __init__(self, status: int, status_text: str, body: str = ""):
        self.status = status
        self.status_text = status_text
        self.body = body
        suffix = f" {body}" if body else ""
        super().__init__(f"Google API error {status} {status_text}.{suffix}", code="remote_api_error")


class EmptyResponseError(DashboardError):
    """A Google API call succeeded but returned no usable JSON body"""
    pass


class PolicyExclusion(DashboardError):
    """A property is hidden by the allowlist/blocklist configuration"""

    EXCLUDED = "excluded"
    NOT_INCLUDED = "not_included"

    _MESSAGES = {
        EXCLUDED: "Property is excluded from the dashboard.",
        NOT_INCLUDED: "Property is not included in GA_PROPERTY_ALLOWLIST.",
    }

    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(self._MESSAGES[kind], code=kind)


def error_message(exc: BaseException) -> str:
    message = getattr(exc, "message", None) or str(exc)
    return message or DEFAULT_ERROR
