from __future__ import annotations

import logging
from typing import Callable, Optional

import requests

from ..errors import DataFormatError, NetworkError
from ..models import MonthPeriod, PortalSession
from .auth import http_with_cookies
from .markers import PortalMarkers


logger = logging.getLogger(__name__)


class TollDataFetcher:
    """
    Downloads the posted-tolls CSV for one month using an authenticated session.

    No retries here: a bad response usually means the session silently expired, and whether to
    log in again is the caller's call.
    """

    def __init__(
        self,
        *,
        base_url: str,
        markers: Optional[PortalMarkers] = None,
        http_factory: Callable[[], requests.Session] = requests.Session,
        timeout_seconds: float = 30.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.markers = markers or PortalMarkers()
        self._http_factory = http_factory
        self._timeout = timeout_seconds

    def fetch(self, session: PortalSession, period: MonthPeriod) -> str:
        return self.fetch_month(session, month_index=period.month_index, year=period.year)

    def fetch_month(self, session: PortalSession, *, month_index: int, year: int) -> str:
        http = http_with_cookies(session, self._http_factory)
        url = f"{self.base_url}{self.markers.feed_path}"
        headers = {
            "Referer": f"{self.base_url}{self.markers.summary_path}",
            "Sec-Fetch-Site": "same-origin",
        }

        logger.info("Fetching toll data for %d/%d...", month_index + 1, year)
        try:
            resp = http.get(
                url,
                params={"year": year, "month": month_index},
                headers=headers,
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise NetworkError(f"Failed to fetch toll data: {e}") from e

        body = resp.text or ""
        logger.debug("Feed response status=%s length=%d bytes", resp.status_code, len(body))
        self.validate(body)
        return body

    def validate(self, body: str) -> None:
        first_line = body.lstrip("\ufeff").split("\n", 1)[0].strip()
        lowered = first_line.lower()

        if any(p in lowered for p in self.markers.feed_markup_prefixes):
            raise DataFormatError(
                "Received HTML instead of CSV data (possible login failure or expired session).",
                body=body,
            )

        if len(body) < self.markers.feed_min_length:
            raise DataFormatError(f"CSV response too short ({len(body)} bytes) - no data returned.", body=body)

        if self.markers.feed_header_marker.lower() not in lowered:
            logger.debug("First line of response: %s", first_line[:200])
            raise DataFormatError("CSV response missing expected headers.", body=body)
