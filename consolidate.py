"""
consolidate.py - Merge each schedule entry with its matched payments.

For every schedule entry, in input order, this module produces one
`ConsolidatedRow` carrying:
- total paid across the matched payments
- outstanding balance, floored at zero
- method and date of the latest matched payment
- Paid / Partial / Unpaid status
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal, InvalidOperation
from functools import cmp_to_key

from logging_config import get_logger
from models import ZERO, ConsolidatedRow, PaymentRecord, PaymentStatus, ScheduleEntry
from normalize import MONEY_QUANTUM, ROUNDING
from payment_index import PaymentIndex, index_key

logger = get_logger(__name__)

HUNDRED = Decimal("100")


def _latest_first(left: tuple[int, PaymentRecord], right: tuple[int, PaymentRecord]) -> int:
    """Order by payment_date descending, then by original position ascending.

    Undated payments rank after every dated one. Equal dates keep their
    original relative order, so the earliest-listed payment wins a tie.
    """
    left_pos, left_payment = left
    right_pos, right_payment = right
    left_date = left_payment.payment_date
    right_date = right_payment.payment_date

    if left_date != right_date:
        if left_date is None:
            return 1
        if right_date is None:
            return -1
        return -1 if left_date > right_date else 1

    return left_pos - right_pos


def select_latest_payment(payments: Sequence[PaymentRecord]) -> PaymentRecord | None:
    """Return the matched payment with the latest payment_date, or None."""
    if not payments:
        return None
    ranked = sorted(enumerate(payments), key=cmp_to_key(_latest_first))
    return ranked[0][1]


def classify_status(total_paid: Decimal, outstanding: Decimal) -> PaymentStatus:
    """Classify a row. Rules are evaluated in order; first match wins."""
    if outstanding == 0 and total_paid > 0:
        return PaymentStatus.PAID
    if total_paid > 0 and outstanding > 0:
        return PaymentStatus.PARTIAL
    return PaymentStatus.UNPAID


def surcharge_for(schedule: ScheduleEntry) -> Decimal:
    """Surcharge owed on top of due_amount, zero when none applies."""
    if not schedule.has_surcharge:
        return ZERO
    amount = schedule.due_amount * schedule.surcharge_rate / HUNDRED
    try:
        return amount.quantize(MONEY_QUANTUM, rounding=ROUNDING)
    except InvalidOperation:
        logger.warning(
            "surcharge_for | out_of_range=%s | schedule_id=%r | fallback=0.00",
            amount,
            schedule.schedule_id,
        )
        return ZERO


def consolidate_row(schedule: ScheduleEntry, payments: Sequence[PaymentRecord]) -> ConsolidatedRow:
    """Build the consolidated row for one schedule entry and its payments."""
    total_paid = sum((payment.amount for payment in payments), ZERO)
    outstanding = max(ZERO, schedule.due_amount - total_paid)
    latest = select_latest_payment(payments)
    status = classify_status(total_paid, outstanding)

    logger.debug(
        "consolidate_row | schedule_id=%r | payments=%s | due=%s | paid=%s | outstanding=%s | status=%s",
        schedule.schedule_id,
        len(payments),
        schedule.due_amount,
        total_paid,
        outstanding,
        status.value,
    )

    return ConsolidatedRow(
        schedule_id=schedule.schedule_id,
        plan_id=schedule.plan_id,
        description=schedule.description,
        installment_no=schedule.installment_no,
        due_date=schedule.due_date,
        due_amount=schedule.due_amount,
        total_paid=total_paid,
        outstanding=outstanding,
        latest_payment_method=latest.method if latest else None,
        latest_payment_date=latest.payment_date if latest else None,
        status=status,
        payment_count=len(payments),
        payment_ids=[payment.payment_id for payment in payments],
        surcharge_amount=surcharge_for(schedule),
    )


def consolidate(schedules: Sequence[ScheduleEntry], index: PaymentIndex) -> list[ConsolidatedRow]:
    """Produce one row per schedule entry, in the same order as `schedules`."""
    rows: list[ConsolidatedRow] = []
    matched_keys: set[str] = set()

    for schedule in schedules:
        key = index_key(schedule.schedule_id)
        bucket = index.get(key, []) if key else []
        if bucket:
            matched_keys.add(key)
        rows.append(consolidate_row(schedule, bucket))

    unmatched = [key for key in index if key not in matched_keys]
    if unmatched:
        logger.debug(
            "consolidate | unmatched_schedule_keys=%s | payments_ignored=%s",
            len(unmatched),
            sum(len(index[key]) for key in unmatched),
        )
    return rows
