"""
test_summarize.py - Summary Aggregator Tests

Usage: python test_summarize.py
"""

from __future__ import annotations

import os
import sys
from datetime import date
from decimal import Decimal

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from consolidate import classify_status
from models import ConsolidatedRow, PaymentStatus
from summarize import summarize


def _configure_output_symbols() -> tuple[str, str, str]:
    try:
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8", errors="replace")
    except Exception:
        pass

    try:
        "✓✗═".encode(sys.stdout.encoding or "utf-8")
        return "✓", "✗", "═"
    except Exception:
        return "[OK]", "[FAIL]", "="


PASS, FAIL, LINE = _configure_output_symbols()


def _row(
    schedule_id: str,
    due: str,
    paid: str,
    due_date: date | None = None,
    surcharge: str = "0",
) -> ConsolidatedRow:
    due_amount = Decimal(due)
    total_paid = Decimal(paid)
    outstanding = max(Decimal("0"), due_amount - total_paid)
    return ConsolidatedRow(
        schedule_id=schedule_id,
        due_amount=due_amount,
        total_paid=total_paid,
        outstanding=outstanding,
        due_date=due_date,
        status=classify_status(total_paid, outstanding),
        surcharge_amount=Decimal(surcharge),
    )


ROWS = [
    _row("S1", "1000.00", "1000.00", date(2024, 1, 15)),
    _row("S2", "1000.00", "400.00", date(2024, 2, 15)),
    _row("S3", "1000.00", "0.00", date(2024, 3, 15), surcharge="25.00"),
    _row("S4", "500.00", "600.00", None),
]


def test_empty_rows() -> None:
    summary = summarize([])
    assert summary.row_count == 0
    assert summary.total_due == 0
    assert summary.total_paid == 0
    assert summary.total_outstanding == 0
    assert summary.paid_count == 0
    assert summary.first_due_date is None
    assert summary.overdue_count is None
    assert summary.is_settled is False


def test_totals_are_row_sums() -> None:
    summary = summarize(ROWS)
    assert summary.total_due == Decimal("3500.00")
    assert summary.total_paid == Decimal("2000.00")
    assert summary.total_outstanding == sum((row.outstanding for row in ROWS), Decimal("0"))
    assert summary.total_outstanding == Decimal("1600.00")


def test_status_counts() -> None:
    summary = summarize(ROWS)
    assert summary.row_count == 4
    assert summary.paid_count == 2
    assert summary.partial_count == 1
    assert summary.unpaid_count == 1
    assert summary.is_settled is False


def test_due_date_range_ignores_missing() -> None:
    summary = summarize(ROWS)
    assert summary.first_due_date == date(2024, 1, 15)
    assert summary.last_due_date == date(2024, 3, 15)


def test_as_of_counts() -> None:
    summary = summarize(ROWS, as_of=date(2024, 2, 20))
    # S1 is paid, S2 still owes: only S2 is overdue. S3 is upcoming.
    assert summary.overdue_count == 1
    assert summary.upcoming_count == 1

    later = summarize(ROWS, as_of=date(2024, 12, 31))
    assert later.overdue_count == 2
    assert later.upcoming_count == 0


def test_surcharge_and_grand_total() -> None:
    summary = summarize(ROWS)
    assert summary.total_surcharge == Decimal("25.00")
    assert summary.grand_total == Decimal("3525.00")


def test_settled_when_all_paid() -> None:
    summary = summarize([_row("S1", "100", "100"), _row("S2", "50", "75")])
    assert summary.is_settled is True
    assert summary.paid_count == summary.row_count == 2


TESTS = [
    test_empty_rows,
    test_totals_are_row_sums,
    test_status_counts,
    test_due_date_range_ignores_missing,
    test_as_of_counts,
    test_surcharge_and_grand_total,
    test_settled_when_all_paid,
]


def main() -> int:
    passed = 0
    failed = 0

    print(LINE * 42)
    print("  Summary Aggregator Tests")
    print(LINE * 42)

    for test in TESTS:
        name = test.__name__.removeprefix("test_").replace("_", " ")
        try:
            test()
        except AssertionError as exc:
            failed += 1
            print(f"    {FAIL} {name} {exc}")
        else:
            passed += 1
            print(f"    {PASS} {name}")

    print(f"\n{LINE * 42}")
    print(f"  Results: {passed}/{passed + failed} passed")
    print(f"{LINE * 42}")
    return failed


if __name__ == "__main__":
    raise SystemExit(1 if main() else 0)
