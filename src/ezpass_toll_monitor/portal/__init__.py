from .auth import (
    AuthenticationClient,
    LoginOutcome,
    PortalCredentials,
    RetryPolicy,
    classify_login_response,
    extract_csrf_token,
)
from .fetcher import TollDataFetcher
from .markers import PortalMarkers

__all__ = [
    "AuthenticationClient",
    "LoginOutcome",
    "PortalCredentials",
    "PortalMarkers",
    "RetryPolicy",
    "TollDataFetcher",
    "classify_login_response",
    "extract_csrf_token",
]
