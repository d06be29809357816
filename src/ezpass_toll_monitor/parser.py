from __future__ import annotations

import csv
import io
import logging

from .errors import DataFormatError
from .models import TollTransaction
from .util.money import parse_toll_amount


logger = logging.getLogger(__name__)

# Feed columns, in order:
#   "Posting Date","Tag/Vehicle Reg.","Transaction Date","Transaction Time","Facility",
#   "Entry/Barrier Plaza","Exit Plaza","Toll","Discount Eligible?"
COL_POSTING_DATE = "Posting Date"
COL_TAG = "Tag/Vehicle Reg."
COL_TRANSACTION_DATE = "Transaction Date"
COL_TRANSACTION_TIME = "Transaction Time"
COL_FACILITY = "Facility"
COL_ENTRY_PLAZA = "Entry/Barrier Plaza"
COL_EXIT_PLAZA = "Exit Plaza"
COL_TOLL = "Toll"
COL_DISCOUNT_ELIGIBLE = "Discount Eligible?"

DISCOUNT_ELIGIBLE_VALUE = "Yes"


def _cell(row: dict, key: str) -> str:
    return (row.get(key) or "").strip()


def parse_toll_csv(text: str) -> tuple[TollTransaction, ...]:
    """
    Parse the posted-tolls CSV into transactions, in feed order.

    Plaza names can contain commas ("Exit 44, Scarborough"), so this goes through the csv module
    rather than splitting lines. Footer/blank rows (no transaction date or no toll) are skipped.
    Raises DataFormatError when the csv module rejects the feed itself.
    """
    reader = csv.DictReader(io.StringIO((text or "").lstrip("\ufeff")))
    out: list[TollTransaction] = []
    skipped = 0

    try:
        for row in reader:
            trans_date = _cell(row, COL_TRANSACTION_DATE)
            amount_str = _cell(row, COL_TOLL)
            if not trans_date or not amount_str:
                skipped += 1
                continue

            out.append(
                TollTransaction(
                    posting_date=_cell(row, COL_POSTING_DATE),
                    tag=_cell(row, COL_TAG),
                    transaction_date=trans_date,
                    transaction_time=_cell(row, COL_TRANSACTION_TIME),
                    facility=_cell(row, COL_FACILITY),
                    entry_plaza=_cell(row, COL_ENTRY_PLAZA),
                    exit_plaza=_cell(row, COL_EXIT_PLAZA),
                    amount=parse_toll_amount(amount_str),
                    amount_raw=amount_str,
                    eligible=_cell(row, COL_DISCOUNT_ELIGIBLE) == DISCOUNT_ELIGIBLE_VALUE,
                )
            )
    except csv.Error as e:
        raise DataFormatError(f"Malformed CSV data on line {reader.line_num}: {e}", body=text) from e

    logger.debug("Parsed %d toll rows (skipped %d blank/footer rows)", len(out), skipped)
    return tuple(out)
