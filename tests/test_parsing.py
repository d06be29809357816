from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from conftest import FEED_HEADER
from ezpass_toll_monitor.errors import DataFormatError
from ezpass_toll_monitor.parser import parse_toll_csv
from ezpass_toll_monitor.util.dates import days_in_month, parse_us_date, parse_us_datetime
from ezpass_toll_monitor.util.money import money_str, parse_toll_amount


FEED = "\n".join(
    [
        FEED_HEADER,
        '"01/03/2026","12345678","01/02/2026","07:41:12","ME Turnpike","Exit 44, Scarborough","Exit 53, Falmouth","$.80","Yes"',
        '"01/03/2026","12345678","01/02/2026","17:05:40","ME Turnpike","Exit 53, Falmouth","Exit 44, Scarborough","$0.80","Yes"',
        '"01/05/2026","12345678","01/04/2026","11:12:00","ME Turnpike","York Toll","","$3.00","No"',
        '"01/06/2026","12345678","01/05/2026","09:00:00","ME Turnpike","New Gloucester","","$1.25","yes"',
        '"","","","","","","","",""',
        '"Total","","","","","","","$5.85",""',
        "",
    ]
)


def test_parse_toll_amount_formats() -> None:
    assert parse_toll_amount("$.80") == Decimal("0.80")
    assert parse_toll_amount("$0.80") == Decimal("0.80")
    assert parse_toll_amount("$1,234.5") == Decimal("1234.50")
    assert parse_toll_amount(" $3.00 ") == Decimal("3.00")


@pytest.mark.parametrize(
    "raw",
    ["N/A", "$", "", "$abc", "NaN", "Infinity", "$-1.00", "$1e30", "$99999999999999999999999999999", "$1E+50"],
)
def test_parse_toll_amount_bad_values_default_to_zero(raw: str) -> None:
    assert parse_toll_amount(raw) == Decimal("0.00")


def test_money_str() -> None:
    assert money_str(Decimal("0.8")) == "$0.80"
    assert money_str(Decimal("1234.5")) == "$1,234.50"


def test_parse_toll_csv_rows_in_feed_order() -> None:
    txns = parse_toll_csv(FEED)

    assert [t.transaction_time for t in txns] == ["07:41:12", "17:05:40", "11:12:00", "09:00:00"]
    first = txns[0]
    assert first.posting_date == "01/03/2026"
    assert first.tag == "12345678"
    assert first.facility == "ME Turnpike"
    assert first.entry_plaza == "Exit 44, Scarborough"
    assert first.exit_plaza == "Exit 53, Falmouth"
    assert first.amount == Decimal("0.80")
    assert first.amount_raw == "$.80"
    assert first.eligible is True


def test_parse_toll_csv_skips_blank_and_footer_rows() -> None:
    txns = parse_toll_csv(FEED)
    assert len(txns) == 4
    assert all(t.transaction_date for t in txns)


def test_parse_toll_csv_eligibility_is_exact_match() -> None:
    txns = parse_toll_csv(FEED)
    assert [t.eligible for t in txns] == [True, True, False, False]


def test_parse_toll_csv_is_deterministic() -> None:
    assert parse_toll_csv(FEED) == parse_toll_csv(FEED)


def test_parse_toll_csv_unparsable_amount_is_zero() -> None:
    feed = FEED_HEADER + '\n"01/03/2026","1","01/02/2026","07:41:12","ME Turnpike","A","B","FREE","Yes"\n'
    (txn,) = parse_toll_csv(feed)
    assert txn.amount == Decimal("0.00")
    assert txn.amount_raw == "FREE"
    assert txn.eligible is True


def test_parse_toll_csv_ignores_byte_order_mark() -> None:
    txns = parse_toll_csv("\ufeff" + FEED)
    assert len(txns) == 4
    assert txns[0].posting_date == "01/03/2026"


def test_parse_toll_csv_header_only() -> None:
    assert parse_toll_csv(FEED_HEADER + "\n") == ()


def test_transaction_timestamp_and_posting_date() -> None:
    first = parse_toll_csv(FEED)[0]
    assert first.transaction_timestamp == datetime(2026, 1, 2, 7, 41, 12)
    assert first.posted_on == date(2026, 1, 3)
    assert first.when_display == "01/02/2026 07:41:12"


def test_parse_us_date_helpers() -> None:
    assert parse_us_date("12/26/2025") == date(2025, 12, 26)
    assert parse_us_datetime("garbage", "xyz") is None
    assert parse_us_datetime("") is None
    assert days_in_month(2024, 2) == 29
    assert days_in_month(2026, 1) == 31


def test_parse_toll_csv_oversized_amount_is_zero() -> None:
    feed = FEED_HEADER + '\n"01/03/2026","1","01/02/2026","07:41:12","ME Turnpike","A","B","$1e30","Yes"\n'
    (txn,) = parse_toll_csv(feed)
    assert txn.amount == Decimal("0.00")
    assert txn.amount_raw == "$1e30"


def test_parse_toll_csv_malformed_feed_raises_data_format_error() -> None:
    # one field past the csv module's field size limit
    feed = FEED_HEADER + '\n"01/03/2026","1","01/02/2026","07:41:12","' + "x" * 200_000 + '","A","B","$1.00","Yes"\n'
    with pytest.raises(DataFormatError, match="Malformed CSV") as excinfo:
        parse_toll_csv(feed)
    assert excinfo.value.body == feed
