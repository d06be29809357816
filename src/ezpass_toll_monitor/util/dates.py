from __future__ import annotations

import calendar
from datetime import date, datetime
from typing import Optional

from dateutil import parser as date_parser


def parse_us_date(value: str) -> date:
    """
    Parse dates like:
    - "12/26/2025"
    - "1/3/2026"
    """
    if value is None:
        raise ValueError("parse_us_date: value is None")
    s = value.strip()
    if not s:
        raise ValueError("parse_us_date: empty string")
    dt = date_parser.parse(s, dayfirst=False, yearfirst=False)
    return dt.date()


def parse_us_datetime(date_value: str, time_value: str = "") -> Optional[datetime]:
    """
    Combine a feed date cell and time cell ("12/26/2025", "07:41:12 AM") into a datetime.

    Returns None when the cells do not parse; the feed is display data, not something to fail on.
    """
    d = (date_value or "").strip()
    if not d:
        return None
    t = (time_value or "").strip()
    try:
        return date_parser.parse(f"{d} {t}".strip(), dayfirst=False, yearfirst=False)
    except (ValueError, OverflowError):
        return None


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]
