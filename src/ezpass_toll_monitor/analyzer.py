from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from .models import MonthPeriod, TollTransaction
from .util.money import ZERO, quantize_cents


logger = logging.getLogger(__name__)

BRONZE_THRESHOLD = 30
GOLD_THRESHOLD = 40

EXIT_DISCOUNT_VERIFIED = 0
EXIT_DISCOUNT_MISMATCH = 4

VERIFY_TOLERANCE = Decimal("0.015")


class Tier(str, enum.Enum):
    NONE = "None"
    BRONZE = "Bronze"
    GOLD = "Gold"

    @property
    def discount_percent(self) -> int:
        return {Tier.NONE: 0, Tier.BRONZE: 20, Tier.GOLD: 40}[self]

    @property
    def exit_status(self) -> int:
        # Consumed by cron/notification wrappers; do not renumber.
        return {Tier.GOLD: 1, Tier.BRONZE: 2, Tier.NONE: 3}[self]

    @property
    def message(self) -> str:
        return {
            Tier.GOLD: "40% discount - Maximum savings!",
            Tier.BRONZE: "20% discount",
            Tier.NONE: "No discount",
        }[self]


def tier_for_count(count: int) -> Tier:
    if count >= GOLD_THRESHOLD:
        return Tier.GOLD
    if count >= BRONZE_THRESHOLD:
        return Tier.BRONZE
    return Tier.NONE


@dataclass(frozen=True)
class TollTally:
    total_count: int
    eligible_count: int
    eligible_amount: Decimal


def tally(transactions: Iterable[TollTransaction]) -> TollTally:
    total = 0
    eligible = 0
    amount = ZERO
    for t in transactions:
        total += 1
        if t.eligible:
            eligible += 1
            amount += t.amount
    return TollTally(total_count=total, eligible_count=eligible, eligible_amount=quantize_cents(amount))


@dataclass(frozen=True)
class Estimation:
    current_day: int
    days_in_month: int
    daily_average: float
    projected_total: float

    @property
    def projected_count(self) -> int:
        # Python's round() ties to even, like printf("%.0f").
        return int(round(self.projected_total))

    @property
    def tier(self) -> Tier:
        return tier_for_count(self.projected_count)


def estimate(eligible_count: int, current_day: int, days_in_month: int) -> Estimation:
    """
    Linear month-end projection of the eligible toll count from the daily average so far.
    """
    if current_day <= 0:
        raise ValueError(f"current_day must be positive, got {current_day}")
    daily_average = eligible_count / current_day
    return Estimation(
        current_day=current_day,
        days_in_month=days_in_month,
        daily_average=daily_average,
        projected_total=daily_average * days_in_month,
    )


@dataclass(frozen=True)
class DiscountedToll:
    transaction: TollTransaction
    discount_percent: int
    discounted_amount: Decimal
    savings: Decimal

    @property
    def discounted(self) -> bool:
        return self.transaction.eligible and self.discount_percent > 0


def discounted_amount(transaction: TollTransaction, tier_percent: int) -> DiscountedToll:
    amount = transaction.amount
    if not transaction.eligible or tier_percent <= 0:
        return DiscountedToll(transaction, tier_percent, amount, ZERO)

    discounted = quantize_cents(amount * (1 - Decimal(tier_percent) / 100))
    return DiscountedToll(transaction, tier_percent, discounted, amount - discounted)


@dataclass(frozen=True)
class Verification:
    expected: Decimal
    stated: Decimal
    matched: bool
    difference: Decimal

    @property
    def direction(self) -> Optional[str]:
        if self.matched:
            return None
        if self.difference > 0:
            return "charged more than expected"
        return "charged less than expected"

    @property
    def exit_status(self) -> int:
        return EXIT_DISCOUNT_VERIFIED if self.matched else EXIT_DISCOUNT_MISMATCH


def verify_discount(stated_amount: Decimal, eligible_amount: Decimal, tier_percent: int) -> Verification:
    """
    Compare a discount amount stated on a statement against what the month's eligible tolls imply.
    """
    stated = Decimal(str(stated_amount))
    expected = ZERO
    if tier_percent > 0:
        expected = quantize_cents(Decimal(str(eligible_amount)) * Decimal(tier_percent) / 100)
    difference = stated - expected
    return Verification(
        expected=expected,
        stated=stated,
        matched=abs(difference) < VERIFY_TOLERANCE,
        difference=difference,
    )


@dataclass(frozen=True)
class TollReport:
    period: MonthPeriod
    transactions: tuple[TollTransaction, ...]
    tally: TollTally
    tier: Tier
    estimation: Optional[Estimation]
    display_tier: Tier
    discounted: tuple[DiscountedToll, ...]
    total_savings: Decimal
    verification: Optional[Verification] = None

    @property
    def tracking_count(self) -> int:
        # The count the exit status is based on: projected under estimation, actual otherwise.
        if self.estimation is not None:
            return self.estimation.projected_count
        return self.tally.eligible_count

    @property
    def tracking_tier(self) -> Tier:
        return tier_for_count(self.tracking_count)

    @property
    def exit_status(self) -> int:
        if self.verification is not None:
            return self.verification.exit_status
        return self.tracking_tier.exit_status


def analyze(
    transactions: Sequence[TollTransaction],
    period: MonthPeriod,
    *,
    estimate_month_end: bool = False,
    today: Optional[date] = None,
    verify_amount: Optional[Decimal] = None,
) -> TollReport:
    today = today or date.today()
    txns = tuple(transactions)
    counts = tally(txns)
    actual_tier = tier_for_count(counts.eligible_count)

    estimation: Optional[Estimation] = None
    if estimate_month_end and period.is_current(today) and today.day > 0:
        estimation = estimate(counts.eligible_count, today.day, period.days_in_month)
        logger.debug(
            "Estimation: day %d of %d | daily avg %.2f | projected %.1f",
            estimation.current_day,
            estimation.days_in_month,
            estimation.daily_average,
            estimation.projected_total,
        )

    # Per-toll discounts use the projected tier under estimation, even when it differs from the
    # actual tier so far.
    display_tier = estimation.tier if estimation is not None else actual_tier
    rows = tuple(discounted_amount(t, display_tier.discount_percent) for t in txns)
    total_savings = sum((r.savings for r in rows), ZERO)

    verification: Optional[Verification] = None
    if verify_amount is not None:
        verification = verify_discount(verify_amount, counts.eligible_amount, actual_tier.discount_percent)

    return TollReport(
        period=period,
        transactions=txns,
        tally=counts,
        tier=actual_tier,
        estimation=estimation,
        display_tier=display_tier,
        discounted=rows,
        total_savings=total_savings,
        verification=verification,
    )
