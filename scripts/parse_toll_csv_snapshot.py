#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import sys
from datetime import date
from pathlib import Path


def _ensure_src_on_path() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    src = repo_root / "src"
    if str(src) not in sys.path:
        sys.path.insert(0, str(src))


def _read_text(path: str) -> str:
    p = Path(path)
    if not p.exists():
        raise SystemExit(f"File not found: {p}")
    return p.read_text(encoding="utf-8", errors="replace")


def main(argv: list[str] | None = None) -> int:
    _ensure_src_on_path()

    from ezpass_toll_monitor.analyzer import analyze
    from ezpass_toll_monitor.models import MonthPeriod
    from ezpass_toll_monitor.parser import parse_toll_csv

    p = argparse.ArgumentParser(
        prog="parse_toll_csv_snapshot",
        description=(
            "Parse a saved posted-tolls CSV (from `check --download`) into structured JSON.\n"
            "This is intended for debugging parsing regressions offline (no portal login, no secrets)."
        ),
    )
    p.add_argument("--file", required=True, help="Path to a toll-data-M-YYYY.csv file")
    p.add_argument("--month", type=int, required=True, help="Month the file covers (1-12)")
    p.add_argument("--year", type=int, required=True, help="Year the file covers")
    p.add_argument("--out", default="", help="Optional output JSON path (otherwise prints to stdout)")
    args = p.parse_args(argv)

    transactions = parse_toll_csv(_read_text(args.file))
    period = MonthPeriod(month=args.month, year=args.year)
    # Analyze as of the last day of the month so no estimation kicks in.
    report = analyze(transactions, period, today=date(period.year, period.month, period.days_in_month))

    payload = {
        "transactions": [t.model_dump(mode="json") for t in transactions],
        "tally": {
            "total_count": report.tally.total_count,
            "eligible_count": report.tally.eligible_count,
            "eligible_amount": str(report.tally.eligible_amount),
        },
        "tier": report.tier.value,
        "total_savings": str(report.total_savings),
    }
    out_json = json.dumps(payload, indent=2, sort_keys=False)
    if args.out:
        Path(args.out).write_text(out_json, encoding="utf-8")
    else:
        print(out_json)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
