"""
reconcile.py - Public entry point of the reconciliation engine.

Runs the four pipeline stages in order:
1. normalize   raw records -> ScheduleEntry / PaymentRecord
2. index       payments grouped by schedule key
3. consolidate one row per schedule entry
4. summarize   aggregate figures over the rows

Every call recomputes everything from its inputs; nothing is cached and no
state survives between calls.
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from datetime import date
from typing import Any

from consolidate import consolidate
from logging_config import get_logger
from models import CustomerStatement, Statement
from normalize import (
    InvalidInputError,
    normalize_payments,
    normalize_schedules,
    normalize_text,
    resolve_field,
)
from payment_index import build_index
from summarize import summarize

logger = get_logger("reconcile")

__all__ = ["InvalidInputError", "reconcile", "reconcile_statement"]


def reconcile(schedules: Any, payments: Any, as_of: date | None = None) -> Statement:
    """Reconcile raw schedule and payment collections into a Statement.

    Raises:
        InvalidInputError: if either collection is not a list or holds an
            element that is not a record.
    """
    pipeline_start = time.perf_counter()

    stage_start = time.perf_counter()
    schedule_entries = normalize_schedules(schedules)
    payment_records = normalize_payments(payments)
    logger.debug(
        "pipeline_stage | stage=1/4 | name=normalize | schedules=%s | payments=%s | duration_ms=%.2f",
        len(schedule_entries),
        len(payment_records),
        (time.perf_counter() - stage_start) * 1000.0,
    )

    stage_start = time.perf_counter()
    index = build_index(payment_records)
    logger.debug(
        "pipeline_stage | stage=2/4 | name=index | buckets=%s | duration_ms=%.2f",
        len(index),
        (time.perf_counter() - stage_start) * 1000.0,
    )

    stage_start = time.perf_counter()
    rows = consolidate(schedule_entries, index)
    logger.debug(
        "pipeline_stage | stage=3/4 | name=consolidate | rows=%s | duration_ms=%.2f",
        len(rows),
        (time.perf_counter() - stage_start) * 1000.0,
    )

    stage_start = time.perf_counter()
    summary = summarize(rows, as_of=as_of)
    logger.debug(
        "pipeline_stage | stage=4/4 | name=summarize | duration_ms=%.2f",
        (time.perf_counter() - stage_start) * 1000.0,
    )

    logger.info(
        "reconcile_complete | rows=%s | paid=%s | partial=%s | unpaid=%s | outstanding=%s | duration_ms=%.2f",
        summary.row_count,
        summary.paid_count,
        summary.partial_count,
        summary.unpaid_count,
        summary.total_outstanding,
        (time.perf_counter() - pipeline_start) * 1000.0,
    )
    return Statement(rows=rows, summary=summary)


def reconcile_statement(envelope: Any, as_of: date | None = None) -> CustomerStatement:
    """Reconcile a statement envelope as served by the data layer.

    The envelope looks like
    `{"CustomerId", "CustomerName", "PlanId", "Schedules", "Payments"}`
    with any of the supported key casings. Missing collections count as empty.
    """
    if not isinstance(envelope, Mapping):
        raise InvalidInputError(
            f"statement is not a record (got {type(envelope).__name__})"
        )

    schedules = resolve_field(envelope, "schedules")
    payments = resolve_field(envelope, "payments")
    statement = reconcile(
        [] if schedules is None else schedules,
        [] if payments is None else payments,
        as_of=as_of,
    )
    return CustomerStatement(
        rows=statement.rows,
        summary=statement.summary,
        customer_id=normalize_text(resolve_field(envelope, "customer_id")),
        customer_name=normalize_text(resolve_field(envelope, "customer_name")),
        plan_id=normalize_text(resolve_field(envelope, "plan_id")),
    )
