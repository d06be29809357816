from __future__ import annotations

from decimal import Decimal

from .analyzer import BRONZE_THRESHOLD, GOLD_THRESHOLD, Tier, TollReport
from .util.money import money_str, quantize_cents


RULE = "=" * 60
WIDE_RULE = "=" * 70
THIN_RULE = "-" * 60


def progress_bar(current: int, target: int = GOLD_THRESHOLD, width: int = 8) -> str:
    filled = min(int((current / target) * width), width) if target > 0 else width
    filled = max(filled, 0)
    return "[" + "=" * filled + "-" * (width - filled) + "]"


def render_report(report: TollReport) -> str:
    lines: list[str] = [
        "",
        RULE,
        f"TOLL REPORT FOR {report.period.label()}",
        RULE,
        f"Total tolls posted: {report.tally.total_count}",
        f"Discount-eligible tolls: {report.tally.eligible_count}",
        RULE,
    ]

    est = report.estimation
    if est is not None:
        projected = f"{est.projected_total:.1f}"
        lines += [
            "",
            f"Current day: {est.current_day} of {est.days_in_month}",
            f"Estimated month-end discount-eligible tolls: {projected}",
            RULE,
            "",
            f">> Projected Discount Tier: {est.tier.value}",
            f"   {est.tier.message}",
            f"   Estimated: {projected} tolls",
        ]
        if est.projected_total < BRONZE_THRESHOLD:
            lines += ["", f"TIP: Need {BRONZE_THRESHOLD - est.projected_total:.1f} more tolls for 20% discount"]
        elif est.projected_total < GOLD_THRESHOLD:
            lines += [
                "",
                f"TIP: Need {GOLD_THRESHOLD - est.projected_total:.1f} more tolls for 40% discount",
                f"WARNING: Or reduce by {est.projected_total - (BRONZE_THRESHOLD - 1):.1f} tolls to drop to no discount tier",
            ]
    else:
        lines += [
            "",
            f">> Discount Tier: {report.tier.value}",
            f"   {report.tier.message}",
            f"   Total: {report.tally.eligible_count} tolls",
        ]

    if report.discounted:
        lines += ["", WIDE_RULE, "TOLL TRANSACTIONS THIS MONTH", WIDE_RULE]
        for i, row in enumerate(report.discounted, start=1):
            t = row.transaction
            lines += [
                "",
                f"{i}. {t.when_display} - {t.facility}:",
                f"   From {t.entry_plaza} to {t.exit_plaza}",
            ]
            if row.discounted:
                lines.append(
                    f"   Toll: {money_str(t.amount)} -> {money_str(row.discounted_amount)} "
                    f"(save {money_str(row.savings)} with {row.discount_percent}% discount)"
                )
            elif t.eligible:
                lines.append(f"   Toll: {money_str(t.amount)} [Eligible - no discount yet]")
            else:
                lines.append(f"   Toll: {money_str(t.amount)} [Not Eligible]")

        if report.total_savings > 0:
            lines += ["", f"Total Savings This Month: {money_str(report.total_savings)}"]
        lines += ["", WIDE_RULE]
    elif report.tally.total_count == 0:
        lines += ["", "No tolls posted this month yet.", ""]

    return "\n".join(lines)


def render_verification(report: TollReport) -> str:
    v = report.verification
    if v is None:
        raise ValueError("report has no discount verification")

    lines = [
        "",
        RULE,
        f"DISCOUNT VERIFICATION FOR {report.period.label()}",
        RULE,
        "",
        f"Discount-eligible tolls:  {report.tally.eligible_count}",
        f"Discount tier:            {report.tier.value} ({report.tier.discount_percent}%)",
        f"Eligible toll total:      {money_str(report.tally.eligible_amount)}",
        "",
        THIN_RULE,
        f"Expected discount:        {money_str(v.expected)}",
        f"EZPass stated discount:   {money_str(v.stated)}",
        THIN_RULE,
        "",
    ]
    if v.matched:
        lines.append(">> MATCH: Discount amount verified successfully.")
    else:
        lines += [
            f">> MISMATCH: EZPass {v.direction} by {money_str(abs(v.difference))}",
            "   Review toll details with --verbose for discrepancies.",
        ]
    lines.append("")
    return "\n".join(lines)


def render_sms(report: TollReport) -> str:
    """
    Two short lines for SMS gateways, e.g.:

        EZPass: [======--] 31/40
        Bronze 20% | 9→Gold +$12.40
    """
    count = report.tracking_count
    tier = report.tracking_tier
    amount = report.tally.eligible_amount
    header = f"EZPass: {progress_bar(count)} {count}/{GOLD_THRESHOLD}"

    if tier is Tier.GOLD:
        return f"{header}\nGold 40% | -{money_str(_pct(amount, 40))}/mo"
    if tier is Tier.BRONZE:
        needed = GOLD_THRESHOLD - count
        return f"{header}\nBronze 20% | {needed}→Gold +{money_str(_pct(amount, 20))}"

    est_display = f"Est {count}" if report.estimation is not None else str(count)
    return f"{header}\n{est_display} → Gold -{money_str(_pct(amount, 40))}"


def _pct(amount: Decimal, percent: int) -> Decimal:
    return quantize_cents(amount * Decimal(percent) / 100)
