from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from ezpass_toll_monitor.analyzer import analyze
from ezpass_toll_monitor.models import MonthPeriod, TollTransaction
from ezpass_toll_monitor.report import progress_bar, render_report, render_sms, render_verification


DECEMBER = MonthPeriod(month=12, year=2025)
JANUARY = MonthPeriod(month=1, year=2026)


def _txns(n: int, amount: str = "1.00", *, eligible: bool = True) -> list[TollTransaction]:
    return [
        TollTransaction(
            posting_date="01/03/2026",
            transaction_date="01/02/2026",
            transaction_time="08:00:00",
            facility="ME Turnpike",
            entry_plaza="Exit 44, Scarborough",
            exit_plaza="Exit 53",
            amount=Decimal(amount),
            amount_raw=f"${amount}",
            eligible=eligible,
        )
        for _ in range(n)
    ]


def test_progress_bar() -> None:
    assert progress_bar(0) == "[--------]"
    assert progress_bar(8) == "[=-------]"
    assert progress_bar(35) == "[=======-]"
    assert progress_bar(40) == "[========]"
    assert progress_bar(75) == "[========]"


def test_render_sms_gold() -> None:
    report = analyze(_txns(40, "1.55"), DECEMBER, today=date(2026, 1, 10))
    assert render_sms(report) == "EZPass: [========] 40/40\nGold 40% | -$24.80/mo"


def test_render_sms_bronze() -> None:
    report = analyze(_txns(35), DECEMBER, today=date(2026, 1, 10))
    assert render_sms(report) == "EZPass: [=======-] 35/40\nBronze 20% | 5→Gold +$7.00"


def test_render_sms_no_discount() -> None:
    report = analyze(_txns(8, "0.80"), DECEMBER, today=date(2026, 1, 10))
    assert render_sms(report) == "EZPass: [=-------] 8/40\n8 → Gold -$2.56"


def test_render_sms_uses_projection_under_estimation() -> None:
    report = analyze(_txns(5), JANUARY, estimate_month_end=True, today=date(2026, 1, 10))
    # 5 / 10 * 31 = 15.5 -> 16 (ties to even)
    assert render_sms(report).splitlines() == ["EZPass: [===-----] 16/40", "Est 16 → Gold -$2.00"]


def test_render_report_past_month() -> None:
    text = render_report(analyze(_txns(35) + _txns(1, "3.00", eligible=False), DECEMBER, today=date(2026, 1, 10)))

    assert "TOLL REPORT FOR 12/2025" in text
    assert "Total tolls posted: 36" in text
    assert "Discount-eligible tolls: 35" in text
    assert ">> Discount Tier: Bronze" in text
    assert "   20% discount" in text
    assert "1. 01/02/2026 08:00:00 - ME Turnpike:" in text
    assert "   From Exit 44, Scarborough to Exit 53" in text
    assert "   Toll: $1.00 -> $0.80 (save $0.20 with 20% discount)" in text
    assert "   Toll: $3.00 [Not Eligible]" in text
    assert "Total Savings This Month: $7.00" in text


def test_render_report_eligible_without_discount() -> None:
    text = render_report(analyze(_txns(3), DECEMBER, today=date(2026, 1, 10)))
    assert "   Toll: $1.00 [Eligible - no discount yet]" in text
    assert "Total Savings" not in text
    assert ">> Discount Tier: None" in text


def test_render_report_estimation_block() -> None:
    text = render_report(analyze(_txns(8, "0.80"), JANUARY, estimate_month_end=True, today=date(2026, 1, 4)))

    assert "Current day: 4 of 31" in text
    assert "Estimated month-end discount-eligible tolls: 62.0" in text
    assert ">> Projected Discount Tier: Gold" in text
    assert "   Estimated: 62.0 tolls" in text
    assert "TIP" not in text
    assert "(save $0.32 with 40% discount)" in text


@pytest.mark.parametrize(
    ("eligible", "expected_lines"),
    [
        (5, ["TIP: Need 14.5 more tolls for 20% discount"]),
        (
            11,
            [
                "TIP: Need 5.9 more tolls for 40% discount",
                "WARNING: Or reduce by 5.1 tolls to drop to no discount tier",
            ],
        ),
    ],
)
def test_render_report_next_tier_tips(eligible: int, expected_lines: list[str]) -> None:
    text = render_report(analyze(_txns(eligible), JANUARY, estimate_month_end=True, today=date(2026, 1, 10)))
    for line in expected_lines:
        assert line in text


def test_render_report_no_tolls() -> None:
    text = render_report(analyze([], DECEMBER, today=date(2026, 1, 10)))
    assert "No tolls posted this month yet." in text
    assert "TOLL TRANSACTIONS" not in text


def test_render_verification_match() -> None:
    report = analyze(_txns(40, "1.55"), DECEMBER, today=date(2026, 1, 10), verify_amount=Decimal("24.80"))
    text = render_verification(report)

    assert "DISCOUNT VERIFICATION FOR 12/2025" in text
    assert "Discount tier:            Gold (40%)" in text
    assert "Eligible toll total:      $62.00" in text
    assert "Expected discount:        $24.80" in text
    assert ">> MATCH: Discount amount verified successfully." in text


def test_render_verification_mismatch() -> None:
    report = analyze(_txns(40, "1.55"), DECEMBER, today=date(2026, 1, 10), verify_amount=Decimal("20.00"))
    text = render_verification(report)

    assert ">> MISMATCH: EZPass charged less than expected by $4.80" in text


def test_render_verification_requires_verification() -> None:
    with pytest.raises(ValueError):
        render_verification(analyze(_txns(1), DECEMBER, today=date(2026, 1, 10)))
