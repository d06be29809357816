from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from .util.dates import days_in_month, parse_us_date, parse_us_datetime


@dataclass(frozen=True)
class PortalCookie:
    name: str
    value: str
    domain: str = ""
    path: str = "/"


@dataclass(frozen=True)
class PortalSession:
    """
    An authenticated portal session: the cookie jar captured right after login plus when it was created.
    """

    cookies: tuple[PortalCookie, ...]
    created_at: float

    def age(self, now: float) -> float:
        return now - self.created_at


@dataclass(frozen=True)
class MonthPeriod:
    month: int
    year: int

    def __post_init__(self) -> None:
        if not 1 <= int(self.month) <= 12:
            raise ValueError(f"month must be 1-12, got {self.month!r}")
        if int(self.year) < 1:
            raise ValueError(f"year must be positive, got {self.year!r}")

    @classmethod
    def containing(cls, day: date) -> "MonthPeriod":
        return cls(month=day.month, year=day.year)

    @property
    def month_index(self) -> int:
        # The feed endpoint counts months from 0 (January) to 11 (December).
        return self.month - 1

    @property
    def days_in_month(self) -> int:
        return days_in_month(self.year, self.month)

    def is_current(self, today: date) -> bool:
        return self.month == today.month and self.year == today.year

    def label(self) -> str:
        return f"{self.month}/{self.year}"


class TollTransaction(BaseModel):
    posting_date: str = ""
    tag: str = ""
    transaction_date: str
    transaction_time: str = ""
    facility: str = ""
    entry_plaza: str = ""
    exit_plaza: str = ""

    amount: Decimal = Field(ge=0)
    amount_raw: str = ""
    eligible: bool = False

    model_config = {"frozen": True}

    @property
    def transaction_timestamp(self) -> Optional[datetime]:
        return parse_us_datetime(self.transaction_date, self.transaction_time)

    @property
    def posted_on(self) -> Optional[date]:
        try:
            return parse_us_date(self.posting_date)
        except (ValueError, OverflowError):
            return None

    @property
    def when_display(self) -> str:
        return f"{self.transaction_date} {self.transaction_time}".strip()
