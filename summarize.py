"""
summarize.py - Reduce consolidated rows into a statement summary.

Totals are always sums of the row fields already computed by
consolidate.py, never re-derived from raw input.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from logging_config import get_logger
from models import ZERO, ConsolidatedRow, PaymentStatus, StatementSummary

logger = get_logger(__name__)


def summarize(rows: Sequence[ConsolidatedRow], as_of: date | None = None) -> StatementSummary:
    """Aggregate rows in a single pass.

    Args:
        rows: Consolidated rows, as returned by consolidate().
        as_of: Reference date for overdue/upcoming counts. When None those
            counts are left as None.
    """
    total_due = ZERO
    total_paid = ZERO
    total_outstanding = ZERO
    total_surcharge = ZERO
    counts = {status: 0 for status in PaymentStatus}
    first_due: date | None = None
    last_due: date | None = None
    overdue = 0
    upcoming = 0

    for row in rows:
        total_due += row.due_amount
        total_paid += row.total_paid
        total_outstanding += row.outstanding
        total_surcharge += row.surcharge_amount
        counts[row.status] += 1

        due = row.due_date
        if due is None:
            continue
        if first_due is None or due < first_due:
            first_due = due
        if last_due is None or due > last_due:
            last_due = due
        if as_of is not None:
            if due < as_of and row.outstanding > 0:
                overdue += 1
            elif due > as_of:
                upcoming += 1

    summary = StatementSummary(
        total_due=total_due,
        total_paid=total_paid,
        total_outstanding=total_outstanding,
        paid_count=counts[PaymentStatus.PAID],
        partial_count=counts[PaymentStatus.PARTIAL],
        unpaid_count=counts[PaymentStatus.UNPAID],
        row_count=len(rows),
        total_surcharge=total_surcharge,
        grand_total=total_due + total_surcharge,
        first_due_date=first_due,
        last_due_date=last_due,
        overdue_count=overdue if as_of is not None else None,
        upcoming_count=upcoming if as_of is not None else None,
    )
    logger.debug(
        "summarize | rows=%s | total_due=%s | total_paid=%s | total_outstanding=%s | paid=%s",
        summary.row_count,
        summary.total_due,
        summary.total_paid,
        summary.total_outstanding,
        summary.paid_count,
    )
    return summary
