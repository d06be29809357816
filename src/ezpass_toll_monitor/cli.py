from __future__ import annotations

import argparse
import logging
import os
import re
import sys
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .config import AppConfig, load_config
from .errors import FAILURE_EXIT_STATUS, PortalError
from .logging_config import configure_logging
from .models import MonthPeriod
from .monitor import TollMonitor
from .portal.auth import AuthenticationClient, PortalCredentials
from .portal.fetcher import TollDataFetcher
from .report import render_report, render_sms, render_verification
from .session_store import SessionStore
from .util.debug_bundle import create_debug_bundle, save_debug_artifact


logger = logging.getLogger("ezpass_toll_monitor")

_VERIFY_AMOUNT_RE = re.compile(r"^[0-9]+(\.[0-9]{1,2})?$")


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="ezpass-toll-monitor",
        description=(
            "Check Maine EZPass discount-eligible tolls for a month. Exit codes: 0 discount verified, "
            "1 Gold (40+), 2 Bronze (30-39) or failure, 3 no discount (0-29), 4 discount mismatch."
        ),
    )
    p.add_argument(
        "--env-file",
        default=".env",
        help="Path to a dotenv file (default: .env). If missing, env vars must already be set.",
    )

    sub = p.add_subparsers(dest="cmd", required=True)

    check = sub.add_parser("check", help="Download the month's posted tolls and report the discount tier")
    check.add_argument("--config", default="config.yaml", help="Path to YAML config (default: config.yaml)")
    check.add_argument("--username", default="", help="EZPass username (default: EZPASS_USERNAME)")
    check.add_argument("--password", default="", help="EZPass password (default: EZPASS_PASSWORD)")
    check.add_argument("--month", type=int, default=None, help="Month to check (1-12, default: current)")
    check.add_argument("--year", type=int, default=None, help="Year to check (default: current)")
    check.add_argument("--estimate", action="store_true", help="Project month-end totals (current month only)")
    check.add_argument("--verbose", action="store_true", help="Debug logging; save unexpected portal responses")
    check.add_argument("--download", action="store_true", help="Save the CSV data to toll-data-M-YYYY.csv")
    check.add_argument("--sms-format", action="store_true", help="Compact two-line SMS-friendly output")
    check.add_argument(
        "--verify-discount",
        default="",
        metavar="AMOUNT",
        help="Verify the discount EZPass stated on your statement (e.g. 24.80) against the toll data",
    )
    check.add_argument(
        "--fresh-session",
        action="store_true",
        help="Ignore the cached portal session and log in again.",
    )

    clear = sub.add_parser("clear-session", help="Delete the cached portal session")
    clear.add_argument("--config", default="config.yaml", help="Path to YAML config (default: config.yaml)")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    env_path = Path(args.env_file)
    if env_path.exists():
        load_dotenv(env_path)

    # Default logging: can be overridden once config is loaded.
    configure_logging(level=os.getenv("LOG_LEVEL", "INFO"))

    if args.cmd == "clear-session":
        cfg = load_config(args.config)
        store = SessionStore(cfg.session.file_path)
        store.invalidate()
        print(f"Cleared cached session: {store.path}")
        return 0

    if args.cmd == "check":
        cfg = load_config(args.config)
        configure_logging(
            level="DEBUG" if args.verbose else cfg.logging.level,
            file_path=cfg.logging.file_path,
            secrets=(cfg.portal.password, args.password),
        )
        return _run_check(cfg, args)

    raise AssertionError("Unhandled command")


def _parse_verify_amount(raw: str) -> Optional[Decimal]:
    s = (raw or "").strip()
    if not s:
        return None
    if not _VERIFY_AMOUNT_RE.match(s):
        raise SystemExit("Error: --verify-discount requires a numeric amount (e.g., 24.80)")
    return Decimal(s)


def _resolve_period(args: argparse.Namespace, today: date) -> MonthPeriod:
    try:
        return MonthPeriod(
            month=today.month if args.month is None else args.month,
            year=today.year if args.year is None else args.year,
        )
    except ValueError as e:
        raise SystemExit(f"Error: {e}") from e


def _build_monitor(cfg: AppConfig, creds: PortalCredentials) -> TollMonitor:
    store = SessionStore(cfg.session.file_path)
    auth = AuthenticationClient(
        base_url=cfg.portal.base_url,
        creds=creds,
        store=store,
        timeout_seconds=cfg.portal.timeout_seconds,
    )
    fetcher = TollDataFetcher(base_url=cfg.portal.base_url, timeout_seconds=cfg.portal.timeout_seconds)
    return TollMonitor(auth=auth, fetcher=fetcher)


def _run_check(cfg: AppConfig, args: argparse.Namespace) -> int:
    username = (args.username or cfg.portal.username).strip()
    password = args.password or cfg.portal.password
    if not username or not password:
        raise SystemExit(
            "Error: Username and password required. Set EZPASS_USERNAME and EZPASS_PASSWORD in your .env, "
            "or pass --username and --password."
        )

    verify_amount = _parse_verify_amount(args.verify_discount)
    today = date.today()
    period = _resolve_period(args, today)

    monitor = _build_monitor(cfg, PortalCredentials(username=username, password=password))
    try:
        result = monitor.check(
            period,
            estimate_month_end=args.estimate,
            verify_amount=verify_amount,
            today=today,
            force_fresh_session=args.fresh_session,
        )
    except PortalError as e:
        return _report_failure(cfg, e, verbose=args.verbose)

    report = result.report
    if args.download:
        csv_path = Path(f"toll-data-{period.month}-{period.year}.csv")
        try:
            csv_path.write_text(result.csv_text, encoding="utf-8")
        except OSError as e:
            print(f"Error: could not save CSV data to {csv_path}: {e}", file=sys.stderr)
            logger.error("Failed to write %s", csv_path, exc_info=True)
            return FAILURE_EXIT_STATUS
        print(f"[OK] CSV data saved to: {csv_path}")

    if args.sms_format:
        print(render_sms(report))
        exit_status = report.tracking_tier.exit_status
    elif report.verification is not None:
        print(render_verification(report))
        exit_status = report.exit_status
    else:
        print(render_report(report))
        exit_status = report.exit_status

    logger.debug(
        "Final count: %d | Exit code: %d (3=None, 2=Bronze, 1=Gold)",
        report.tracking_count,
        exit_status,
    )
    return exit_status


def _report_failure(cfg: AppConfig, e: PortalError, *, verbose: bool) -> int:
    print(f"Error: {e}", file=sys.stderr)
    logger.error("Toll check failed (%s): %s", e.kind, e)

    if verbose:
        try:
            if e.body:
                artifact = save_debug_artifact(debug_dir=cfg.output.debug_dir, name=e.kind, content=e.body)
                logger.info("Response saved to: %s", artifact)
            bundle = create_debug_bundle(
                debug_dir=cfg.output.debug_dir,
                log_file=cfg.logging.file_path,
                out_dir=str(Path(cfg.output.debug_dir).parent),
            )
            logger.info("Wrote debug bundle: %s", bundle)
        except OSError:
            logger.debug("Failed to write debug artifacts.", exc_info=True)

    if cfg.output.distinct_error_statuses:
        return e.distinct_status
    return e.exit_status
