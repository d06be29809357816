from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PortalMarkers:
    """
    The EZPass portal is a server-rendered web app; paths and page wording may change over time.
    Keep all URL paths and text hooks here for easy maintenance.
    """

    # Endpoints (relative to the configured base URL)
    login_page_path: str = "/EZPass/Login.do"
    login_submit_path: str = "/EZPass/ProcessLogin.do"
    summary_path: str = "/EZPass/Summary.do"
    feed_path: str = "/EZPass/DownloadPostedTolls.do"

    # Login form
    token_field_pattern: str = r'name="(token_[^"]+)"\s+value="([^"]+)"'
    submit_field: str = "cmdSubmit"
    submit_value: str = "Login"

    # Response bodies
    logged_in_marker: str = "ProcessLogout.do"
    already_logged_in_marker: str = "Account Already Logged In"
    # Case-insensitive; the maintenance page reads "The online Maine Customer Service Center is currently unavailable."
    service_down_patterns: tuple[str, ...] = ("currently unavailable", "We're Sorry")

    # Feed
    feed_header_marker: str = "Transaction Date"
    feed_markup_prefixes: tuple[str, ...] = ("<html", "<!doctype")
    feed_min_length: int = 50
