"""
test_consolidate.py - Row Consolidation Tests

Validation for:
- classify_status rule order
- select_latest_payment ordering and tie-break
- consolidate row-per-schedule output
- surcharge_for

Usage: python test_consolidate.py
"""

from __future__ import annotations

import os
import sys
from datetime import datetime
from decimal import Decimal

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from consolidate import classify_status, consolidate, consolidate_row, select_latest_payment, surcharge_for
from models import PaymentRecord, PaymentStatus, ScheduleEntry
from payment_index import build_index
from reconcile import reconcile


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


def _schedule(schedule_id: str, due: str, **extra) -> ScheduleEntry:
    return ScheduleEntry(schedule_id=schedule_id, due_amount=Decimal(due), **extra)


def _payment(
    payment_id: str,
    schedule_id: str | None,
    amount: str,
    when: datetime | None = None,
    method: str | None = None,
) -> PaymentRecord:
    return PaymentRecord(
        payment_id=payment_id,
        schedule_id=schedule_id,
        amount=Decimal(amount),
        payment_date=when,
        method=method,
    )


# Category 1: status classification

def test_status_rules() -> None:
    cases = [
        (Decimal("1000"), Decimal("0"), PaymentStatus.PAID),
        (Decimal("400"), Decimal("600"), PaymentStatus.PARTIAL),
        (Decimal("0"), Decimal("1000"), PaymentStatus.UNPAID),
        (Decimal("0"), Decimal("0"), PaymentStatus.UNPAID),
        (Decimal("-50"), Decimal("150"), PaymentStatus.UNPAID),
    ]
    for total_paid, outstanding, expected in cases:
        assert classify_status(total_paid, outstanding) is expected, (total_paid, outstanding)


# Category 2: latest payment selection

def test_latest_payment_is_max_date() -> None:
    payments = [
        _payment("P1", "S1", "300", datetime(2024, 2, 1), "Cash"),
        _payment("P2", "S1", "300", datetime(2024, 3, 1), "Cheque"),
        _payment("P3", "S1", "300", datetime(2024, 1, 1), "Online"),
    ]
    assert select_latest_payment(payments).payment_id == "P2"


def test_latest_payment_tie_keeps_first_listed() -> None:
    payments = [
        _payment("P1", "S1", "100", datetime(2024, 1, 1)),
        _payment("P2", "S1", "100", datetime(2024, 5, 1), "Cash"),
        _payment("P3", "S1", "100", datetime(2024, 5, 1), "Cheque"),
    ]
    assert select_latest_payment(payments).payment_id == "P2"
    assert select_latest_payment(list(reversed(payments))).payment_id == "P3"


def test_undated_payments_rank_last() -> None:
    payments = [
        _payment("P1", "S1", "100", None, "Cash"),
        _payment("P2", "S1", "100", datetime(2023, 12, 31), "Cheque"),
    ]
    assert select_latest_payment(payments).payment_id == "P2"

    undated = [_payment("P1", "S1", "100"), _payment("P2", "S1", "100")]
    assert select_latest_payment(undated).payment_id == "P1"
    assert select_latest_payment([]) is None


def test_selection_does_not_reorder_bucket() -> None:
    payments = [
        _payment("P1", "S1", "100", datetime(2024, 1, 1)),
        _payment("P2", "S1", "100", datetime(2024, 6, 1)),
    ]
    select_latest_payment(payments)
    assert [payment.payment_id for payment in payments] == ["P1", "P2"]


# Category 3: consolidation

def test_one_row_per_schedule_in_order() -> None:
    schedules = [_schedule("S3", "10"), _schedule("S1", "20"), _schedule("S2", "30")]
    index = build_index([_payment("P1", "S1", "20")])
    rows = consolidate(schedules, index)
    assert [row.schedule_id for row in rows] == ["S3", "S1", "S2"]
    assert [row.status for row in rows] == [
        PaymentStatus.UNPAID,
        PaymentStatus.PAID,
        PaymentStatus.UNPAID,
    ]


def test_row_fields_copied_and_computed() -> None:
    schedule = _schedule(
        "S1",
        "1000",
        plan_id="PLN1",
        description="Installment 2",
        installment_no=2,
    )
    payments = [
        _payment("P1", "S1", "250", datetime(2024, 1, 5), "Cash"),
        _payment("P2", "S1", "150.50", datetime(2024, 2, 5), "Cheque"),
    ]
    row = consolidate_row(schedule, payments)
    assert row.plan_id == "PLN1"
    assert row.description == "Installment 2"
    assert row.installment_no == 2
    assert row.total_paid == Decimal("400.50")
    assert row.outstanding == Decimal("599.50")
    assert row.status is PaymentStatus.PARTIAL
    assert row.latest_payment_method == "Cheque"
    assert row.latest_payment_date == datetime(2024, 2, 5)
    assert row.payment_count == 2
    assert row.payment_ids == ["P1", "P2"]


def test_no_payments_means_unpaid_full_balance() -> None:
    row = consolidate_row(_schedule("S1", "1000"), [])
    assert row.total_paid == Decimal("0")
    assert row.outstanding == Decimal("1000")
    assert row.status is PaymentStatus.UNPAID
    assert row.latest_payment_method is None
    assert row.latest_payment_date is None


def test_overpayment_floors_outstanding() -> None:
    payments = [
        _payment("P1", "S1", "300", datetime(2024, 2, 1)),
        _payment("P2", "S1", "300", datetime(2024, 3, 1)),
    ]
    row = consolidate_row(_schedule("S1", "500"), payments)
    assert row.total_paid == Decimal("600")
    assert row.outstanding == Decimal("0")
    assert row.status is PaymentStatus.PAID
    assert row.overpaid_amount == Decimal("100")


def test_zero_due_rows() -> None:
    unpaid = consolidate_row(_schedule("S1", "0"), [])
    assert unpaid.outstanding == 0 and unpaid.status is PaymentStatus.UNPAID

    paid = consolidate_row(_schedule("S1", "0"), [_payment("P1", "S1", "5")])
    assert paid.outstanding == 0 and paid.status is PaymentStatus.PAID


def test_empty_schedule_id_never_matches() -> None:
    index = {"": [_payment("P1", "", "100")]}
    rows = consolidate([_schedule("", "100")], index)
    assert rows[0].total_paid == 0
    assert rows[0].status is PaymentStatus.UNPAID


def test_duplicate_schedule_ids_share_bucket() -> None:
    index = build_index([_payment("P1", "S1", "100")])
    rows = consolidate([_schedule("S1", "100"), _schedule("S1", "100")], index)
    assert len(rows) == 2
    assert all(row.total_paid == Decimal("100") for row in rows)


# Category 4: surcharge

def test_surcharge_amount() -> None:
    applied = _schedule("S1", "1000", surcharge_applied=True, surcharge_rate=Decimal("2.5"))
    assert surcharge_for(applied) == Decimal("25.00")

    not_applied = _schedule("S1", "1000", surcharge_applied=False, surcharge_rate=Decimal("2.5"))
    assert surcharge_for(not_applied) == Decimal("0")

    no_rate = _schedule("S1", "1000", surcharge_applied=True)
    assert surcharge_for(no_rate) == Decimal("0")

    rounded = _schedule("S1", "333.33", surcharge_applied=True, surcharge_rate=Decimal("1.5"))
    assert surcharge_for(rounded) == Decimal("5.00")


def test_surcharge_out_of_range_falls_back_to_zero() -> None:
    huge = _schedule("S1", "1e25", surcharge_applied=True, surcharge_rate=Decimal("1000"))
    assert surcharge_for(huge) == Decimal("0")

    result = reconcile(
        [{"ScheduleId": "S1", "DueAmount": "1e25", "SurchargeApplied": True, "SurchargeRate": "1000"}],
        [],
    )
    assert len(result.rows) == 1
    assert result.rows[0].surcharge_amount == Decimal("0")
    assert result.rows[0].status == PaymentStatus.UNPAID


TESTS = [
    test_status_rules,
    test_latest_payment_is_max_date,
    test_latest_payment_tie_keeps_first_listed,
    test_undated_payments_rank_last,
    test_selection_does_not_reorder_bucket,
    test_one_row_per_schedule_in_order,
    test_row_fields_copied_and_computed,
    test_no_payments_means_unpaid_full_balance,
    test_overpayment_floors_outstanding,
    test_zero_due_rows,
    test_empty_schedule_id_never_matches,
    test_duplicate_schedule_ids_share_bucket,
    test_surcharge_amount,
    test_surcharge_out_of_range_falls_back_to_zero,
]


def main() -> int:
    passed = 0
    failed = 0

    print(LINE * 42)
    print("  Row Consolidation Tests")
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
