from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from .analyzer import TollReport, analyze
from .errors import DataFormatError
from .models import MonthPeriod
from .parser import parse_toll_csv
from .portal.auth import AuthenticationClient
from .portal.fetcher import TollDataFetcher


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckResult:
    report: TollReport
    csv_text: str


class TollMonitor:
    """
    One toll check: authenticate (cached or fresh), download the month's CSV, parse, analyze.

    Errors propagate; the only automatic retry is the login-conflict wait inside AuthenticationClient.
    """

    def __init__(self, *, auth: AuthenticationClient, fetcher: TollDataFetcher) -> None:
        self.auth = auth
        self.fetcher = fetcher

    def check(
        self,
        period: MonthPeriod,
        *,
        estimate_month_end: bool = False,
        verify_amount: Optional[Decimal] = None,
        today: Optional[date] = None,
        force_fresh_session: bool = False,
    ) -> CheckResult:
        today = today or date.today()
        logger.debug("Target period: %s (API month index: %d)", period.label(), period.month_index)

        session = self.auth.authenticate(force_fresh=force_fresh_session)
        try:
            csv_text = self.fetcher.fetch(session, period)
        except DataFormatError:
            if self.auth.last_session_was_cached:
                # Most likely the cached session expired server-side; make the next run log in fresh.
                logger.warning("Feed response was not CSV while using a cached session; discarding the cached session.")
                self.auth.store.invalidate()
            raise

        transactions = parse_toll_csv(csv_text)
        report = analyze(
            transactions,
            period,
            estimate_month_end=estimate_month_end,
            today=today,
            verify_amount=verify_amount,
        )
        logger.debug(
            "Parsing complete: %d total, %d eligible, eligible amount %s",
            report.tally.total_count,
            report.tally.eligible_count,
            report.tally.eligible_amount,
        )
        return CheckResult(report=report, csv_text=csv_text)
