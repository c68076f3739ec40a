"""
main.py - CLI orchestration for the statement reconciler.

This module is orchestration-only:
1. load raw schedule/payment records (JSON or CSV)
2. reconcile
3. format as text or JSON
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from datetime import date
from pathlib import Path
from typing import Any

import pandas as pd

from logging_config import get_logger, setup_logging
from normalize import InvalidInputError, normalize_date
from reconcile import reconcile, reconcile_statement
from report import format_statement, format_statement_json

logger = get_logger("statement-recon")

SUPPORTED_SUFFIXES = {".json", ".csv"}


def _configure_output_symbols() -> str:
    """Configure stdout encoding and return a safe failure symbol."""
    try:
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8", errors="replace")
    except Exception:
        pass

    try:
        "✗—•".encode(sys.stdout.encoding or "utf-8")
        return "✗"
    except Exception:
        return "X"


FAIL_CHAR = _configure_output_symbols()


def _load_csv(path: str) -> list[dict[str, Any]]:
    try:
        df = pd.read_csv(path, dtype=str, encoding="utf-8-sig")
    except UnicodeDecodeError:
        logger.warning(
            "csv_encoding_warning | path=%s | reason='utf-8 decode failed' | fallback=latin-1",
            path,
        )
        df = pd.read_csv(path, dtype=str, encoding="latin-1")
    except pd.errors.EmptyDataError:
        logger.warning("csv_empty | path=%s | fallback=[]", path)
        return []
    except Exception as exc:
        raise ValueError(f"Failed to read CSV '{path}': {exc}") from exc

    df.columns = [str(col).strip() for col in df.columns]
    df = df.dropna(how="all")
    logger.info("csv_loaded | path=%s | rows=%s | columns=%s", path, len(df), list(df.columns))
    return df.to_dict(orient="records")


def _load_json(path: str) -> Any:
    try:
        with open(path, encoding="utf-8-sig") as handle:
            data = json.load(handle)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in '{path}': {exc}") from exc
    logger.info("json_loaded | path=%s | type=%s", path, type(data).__name__)
    return data


def load_records(path: str) -> Any:
    """Load raw records from a JSON or CSV file.

    CSV files always yield a list of row mappings. JSON files yield whatever
    they contain; reconcile() rejects anything that is not a list of records.
    """
    if path is None:
        raise ValueError("path cannot be None")

    path = str(path).strip()
    if not path:
        raise ValueError("path cannot be empty")

    if not os.path.exists(path):
        raise FileNotFoundError(f"Input file not found: {path}")

    suffix = Path(path).suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise ValueError(
            f"Unsupported input format '{suffix or '(none)'}' for {path}. "
            f"Use one of: {sorted(SUPPORTED_SUFFIXES)}"
        )

    if suffix == ".csv":
        return _load_csv(path)
    return _load_json(path)


def _parse_as_of(value: str | None) -> date | None:
    if value is None:
        return date.today()
    if value.strip().lower() == "none":
        return None
    parsed = normalize_date(value)
    if parsed is None:
        raise argparse.ArgumentTypeError(f"invalid date: {value!r}")
    return parsed


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the statement reconciler."""
    parser = argparse.ArgumentParser(
        prog="statement-recon",
        description=(
            "Statement Reconciler\n"
            "Consolidates installment schedules with recorded payments into "
            "a statement with outstanding balances and Paid/Partial/Unpaid status."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s --schedules schedules.json --payments payments.json\n"
            "  %(prog)s --schedules schedules.csv --payments payments.csv --json\n"
            "  %(prog)s --statement customer_statement.json --as-of 2024-06-30\n"
        ),
    )
    parser.add_argument("--schedules", "-s", type=str, help="Path to the schedules file (.json, .csv)")
    parser.add_argument("--payments", "-p", type=str, help="Path to the payments file (.json, .csv)")
    parser.add_argument(
        "--statement",
        type=str,
        help="Path to a statement envelope JSON with Schedules and Payments",
    )
    parser.add_argument(
        "--as-of",
        type=str,
        default=None,
        help="Reference date for overdue counts (YYYY-MM-DD, default today, 'none' to skip)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose (DEBUG-level) logging")
    parser.add_argument("--json", action="store_true", help="Output the statement as JSON")
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Output logs as JSON lines (for production/log aggregation)",
    )

    args = parser.parse_args(argv)
    setup_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        json_format=True if args.log_json else None,
    )

    if args.statement and (args.schedules or args.payments):
        parser.error("Use --statement OR --schedules/--payments, not both")
    if not args.statement and not args.schedules:
        parser.error("Provide either --statement PATH or --schedules PATH")

    try:
        as_of = _parse_as_of(args.as_of)
    except argparse.ArgumentTypeError as exc:
        parser.error(str(exc))

    try:
        if args.statement:
            logger.info("cli_mode | mode=statement | path=%s", args.statement)
            statement = reconcile_statement(load_records(args.statement), as_of=as_of)
        else:
            logger.info(
                "cli_mode | mode=collections | schedules=%s | payments=%s",
                args.schedules,
                args.payments,
            )
            payments = load_records(args.payments) if args.payments else []
            statement = reconcile(load_records(args.schedules), payments, as_of=as_of)

        if args.json:
            print(json.dumps(format_statement_json(statement), indent=2))
        else:
            print(format_statement(statement))
    except FileNotFoundError as exc:
        logger.error("cli_error | type=FileNotFoundError | error=%s", exc)
        print(f"\n{FAIL_CHAR} Error: {exc}")
        raise SystemExit(1) from exc
    except (InvalidInputError, ValueError) as exc:
        logger.error("cli_error | type=%s | error=%s", type(exc).__name__, exc)
        print(f"\n{FAIL_CHAR} Error: {exc}")
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        print("\nInterrupted.")
        raise SystemExit(130)
    except Exception as exc:
        logger.error(
            "cli_error | type=%s | error=%s",
            type(exc).__name__,
            exc,
            exc_info=True,
        )
        print(f"\nUnexpected error: {exc}")
        print("Run with --verbose for full traceback.")
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
