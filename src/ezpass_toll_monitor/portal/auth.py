from __future__ import annotations

import enum
import logging
import re
import time
from dataclasses import dataclass
from typing import Callable, Optional

import requests

from ..errors import (
    CsrfTokenNotFoundError,
    InvalidCredentialsError,
    LoginConflictUnresolvedError,
    NetworkError,
    ServiceUnavailableError,
)
from ..models import PortalCookie, PortalSession
from ..session_store import SessionStore
from .markers import PortalMarkers


logger = logging.getLogger(__name__)

LOGIN_CONFLICT_BACKOFF_SECONDS = 90.0


class LoginOutcome(enum.Enum):
    SUCCESS = "success"
    CONFLICT = "conflict"
    SERVICE_DOWN = "service_down"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class PortalCredentials:
    username: str
    password: str


@dataclass(frozen=True)
class CsrfToken:
    name: str
    value: str


@dataclass(frozen=True)
class RetryPolicy:
    """
    How a login conflict ("Account Already Logged In") is retried: `max_attempts` extra submissions,
    each preceded by a fixed `backoff_seconds` wait. `sleep` is swappable so tests don't block.
    """

    max_attempts: int = 1
    backoff_seconds: float = LOGIN_CONFLICT_BACKOFF_SECONDS
    sleep: Callable[[float], None] = time.sleep

    def wait(self) -> None:
        self.sleep(self.backoff_seconds)


def looks_like_service_down(body: str, *, markers: Optional[PortalMarkers] = None) -> bool:
    m = markers or PortalMarkers()
    text = (body or "").lower()
    return any(p.lower() in text for p in m.service_down_patterns)


def classify_login_response(body: str, *, markers: Optional[PortalMarkers] = None) -> LoginOutcome:
    """
    Classify a login POST response body. All of the portal's wording-dependent checks live here.
    """
    m = markers or PortalMarkers()
    text = body or ""
    if m.logged_in_marker in text:
        return LoginOutcome.SUCCESS
    if m.already_logged_in_marker in text:
        return LoginOutcome.CONFLICT
    if looks_like_service_down(text, markers=m):
        return LoginOutcome.SERVICE_DOWN
    return LoginOutcome.UNKNOWN


def extract_csrf_token(html: str, *, markers: Optional[PortalMarkers] = None) -> Optional[CsrfToken]:
    m = markers or PortalMarkers()
    match = re.search(m.token_field_pattern, html or "")
    if not match:
        return None
    return CsrfToken(name=match.group(1), value=match.group(2))


def cookies_from_jar(jar) -> tuple[PortalCookie, ...]:
    return tuple(
        PortalCookie(name=c.name, value=c.value or "", domain=c.domain or "", path=c.path or "/")
        for c in jar
    )


def http_with_cookies(session: PortalSession, http_factory: Callable[[], requests.Session]) -> requests.Session:
    http = http_factory()
    for c in session.cookies:
        http.cookies.set(c.name, c.value, domain=c.domain, path=c.path)
    return http


class AuthenticationClient:
    """
    Logs into the EZPass portal and hands out a cached-or-fresh authenticated session.

    Flow: GET login page -> pull the `token_*` anti-forgery field -> POST credentials -> classify.
    The portal allows a single active session per account; on "Account Already Logged In" we wait
    once (RetryPolicy) and retry with a fresh token. We never retry more than the policy allows.
    """

    def __init__(
        self,
        *,
        base_url: str,
        creds: PortalCredentials,
        store: SessionStore,
        retry_policy: Optional[RetryPolicy] = None,
        markers: Optional[PortalMarkers] = None,
        http_factory: Callable[[], requests.Session] = requests.Session,
        timeout_seconds: float = 30.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.creds = creds
        self.store = store
        self.retry_policy = retry_policy or RetryPolicy()
        self.markers = markers or PortalMarkers()
        self._http_factory = http_factory
        self._timeout = timeout_seconds

        # Set on every authenticate(); lets callers tell a cached session from a fresh login.
        self.last_session_was_cached: bool = False

    def authenticate(self, *, force_fresh: bool = False) -> PortalSession:
        if not force_fresh:
            cached = self.store.load()
            if cached is not None:
                logger.info("Using cached session...")
                self.last_session_was_cached = True
                return cached

        self.last_session_was_cached = False
        return self.login()

    def login(self) -> PortalSession:
        http = self._http_factory()

        token = self._fetch_login_token(http)
        logger.info("Logging in as %s...", self.creds.username)
        body = self._submit_credentials(http, token)
        outcome = classify_login_response(body, markers=self.markers)

        if outcome is LoginOutcome.CONFLICT:
            outcome, body = self._retry_after_conflict(http)
            if outcome is not LoginOutcome.SUCCESS:
                raise LoginConflictUnresolvedError(
                    "Login still failed after waiting for the other session to time out. "
                    "Please wait 5 minutes and try again.",
                    body=body,
                )

        if outcome is LoginOutcome.SUCCESS:
            session = self.store.new_session(cookies_from_jar(http.cookies))
            self.store.save(session)
            logger.info("Login successful; session cached for %d minutes", int(self.store.ttl_seconds // 60))
            return session

        if outcome is LoginOutcome.SERVICE_DOWN:
            raise ServiceUnavailableError("EZPass service is currently unavailable (login response).", body=body)

        raise InvalidCredentialsError("Login failed - invalid credentials or unexpected response.", body=body)

    def _retry_after_conflict(self, http: requests.Session) -> tuple[LoginOutcome, str]:
        outcome, body = LoginOutcome.CONFLICT, ""
        for attempt in range(1, self.retry_policy.max_attempts + 1):
            logger.warning(
                "Account is already logged in from another session; waiting %.0f seconds before retry %d/%d.",
                self.retry_policy.backoff_seconds,
                attempt,
                self.retry_policy.max_attempts,
            )
            self.retry_policy.wait()

            try:
                token = self._fetch_login_token(http)
            except (ServiceUnavailableError, CsrfTokenNotFoundError) as e:
                raise LoginConflictUnresolvedError(
                    f"Login retry after the session conflict could not start: {e}", body=e.body
                ) from e
            body = self._submit_credentials(http, token)
            outcome = classify_login_response(body, markers=self.markers)
            if outcome is LoginOutcome.SUCCESS:
                logger.info("Login successful on retry")
                break
        return outcome, body

    def _fetch_login_token(self, http: requests.Session) -> CsrfToken:
        url = f"{self.base_url}{self.markers.login_page_path}"
        logger.info("Getting login page...")
        try:
            resp = http.get(url, timeout=self._timeout)
        except requests.RequestException as e:
            raise NetworkError(f"Failed to get login page: {e}") from e

        html = resp.text or ""
        logger.debug("Login page status=%s length=%d", resp.status_code, len(html))

        if looks_like_service_down(html, markers=self.markers):
            raise ServiceUnavailableError(
                "Maine EZPass service is currently unavailable. "
                "This is likely maintenance on their end; try again in 30 minutes to a few hours.",
                body=html,
            )

        token = extract_csrf_token(html, markers=self.markers)
        if token is None:
            raise CsrfTokenNotFoundError("Could not find CSRF token on login page.", body=html)

        logger.debug("Found CSRF token %s (value %s...)", token.name, token.value[:8])
        return token

    def _submit_credentials(self, http: requests.Session, token: CsrfToken) -> str:
        url = f"{self.base_url}{self.markers.login_submit_path}"
        data = {
            token.name: token.value,
            "username": self.creds.username,
            "password": self.creds.password,
            self.markers.submit_field: self.markers.submit_value,
        }
        try:
            resp = http.post(url, data=data, timeout=self._timeout)
        except requests.RequestException as e:
            raise NetworkError(f"Login request failed: {e}") from e

        logger.debug("Login response status=%s", resp.status_code)
        return resp.text or ""
