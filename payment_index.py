"""
payment_index.py - Group payment records by schedule key.

The index is the only place payments are joined to schedules. A payment
without a schedule key is orphaned and left out of the index entirely; it
is not an error and is never reported on the statement.
"""

from __future__ import annotations

from collections.abc import Iterable

from logging_config import get_logger
from models import PaymentRecord

logger = get_logger(__name__)

PaymentIndex = dict[str, list[PaymentRecord]]


def index_key(schedule_id: str | None) -> str:
    """Return the join key for a schedule identifier ('' means no key)."""
    return (schedule_id or "").strip()


def build_index(payments: Iterable[PaymentRecord]) -> PaymentIndex:
    """Group payments by trimmed schedule_id, keeping input order per bucket."""
    index: PaymentIndex = {}
    orphaned = 0
    total = 0

    for payment in payments:
        total += 1
        key = index_key(payment.schedule_id)
        if not key:
            orphaned += 1
            continue
        index.setdefault(key, []).append(payment)

    logger.debug(
        "build_index | payments=%s | buckets=%s | orphaned=%s",
        total,
        len(index),
        orphaned,
    )
    return index
