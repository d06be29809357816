from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP


logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def quantize_cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_toll_amount(value: str) -> Decimal:
    """
    Parse toll cells like:
    - "$0.80"
    - "$.80"   (the portal drops the leading zero)
    - "$1,234.50"

    Anything that is not a finite, non-negative amount resolves to 0.00; a bad cell must
    never abort the whole month.
    """
    s = (value or "").strip()
    if s.startswith("$"):
        s = s[1:]
    s = s.replace(",", "").strip()
    if s.startswith("."):
        s = "0" + s

    try:
        dec = Decimal(s)
    except (InvalidOperation, ValueError):
        logger.debug("Unparsable toll amount %r; using 0.00", value)
        return ZERO

    if not dec.is_finite() or dec < 0:
        logger.debug("Out-of-range toll amount %r; using 0.00", value)
        return ZERO
    try:
        return quantize_cents(dec)
    except InvalidOperation:
        # more digits than the decimal context holds, e.g. "1e30"
        logger.debug("Out-of-range toll amount %r; using 0.00", value)
        return ZERO


def money_str(amount: Decimal) -> str:
    return f"${quantize_cents(amount):,.2f}"
