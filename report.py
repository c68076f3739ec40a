"""
report.py - Human-readable and JSON-ready statement formatting.

This module converts a `Statement` into:
- terminal-friendly text output for CLI usage
- machine-friendly dictionary output for the HTTP API

Display formatting (currency, dates) lives here only; the engine itself
works on Decimal and date values.
"""

from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Optional

from logging_config import get_logger
from models import ConsolidatedRow, CustomerStatement, PaymentStatus, Statement, StatementSummary

logger = get_logger(__name__)

OUTPUT_WIDTH = 104
SEPARATOR = "=" * OUTPUT_WIDTH
RULE = "-" * OUTPUT_WIDTH
PLACEHOLDER = "—"
MAX_DESCRIPTION_WIDTH = 22

STATUS_MARKERS: dict[PaymentStatus, str] = {
    PaymentStatus.PAID: "[PAID]",
    PaymentStatus.PARTIAL: "[PARTIAL]",
    PaymentStatus.UNPAID: "[UNPAID]",
}


def _money(value: Optional[Decimal]) -> str:
    if value is None:
        return PLACEHOLDER
    return f"{value:,.2f}"


def _money_json(value: Optional[Decimal]) -> Optional[str]:
    if value is None:
        return None
    return f"{value:.2f}"


def _date_json(value: date | datetime | None) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime) and value.time() == time():
        return value.date().isoformat()
    return value.isoformat()


def _date_text(value: date | datetime | None) -> str:
    rendered = _date_json(value)
    return rendered if rendered is not None else PLACEHOLDER


def _truncate(text: Optional[str], width: int) -> str:
    if not text:
        return PLACEHOLDER
    return text if len(text) <= width else text[: width - 2] + ".."


def _row_label(row: ConsolidatedRow) -> str:
    if row.description:
        return row.description
    if row.installment_no is not None:
        return f"Installment {row.installment_no}"
    return row.schedule_id or PLACEHOLDER


def _summary_lines(summary: StatementSummary) -> list[str]:
    lines = [
        f"  Total Due:          {_money(summary.total_due)}",
        f"  Total Paid:         {_money(summary.total_paid)}",
        f"  Total Outstanding:  {_money(summary.total_outstanding)}",
        f"  Installments Paid:  {summary.paid_count}/{summary.row_count}"
        f"  (partial: {summary.partial_count}, unpaid: {summary.unpaid_count})",
    ]
    if summary.total_surcharge > 0:
        lines.append(f"  Surcharge:          {_money(summary.total_surcharge)}")
        lines.append(f"  Grand Total:        {_money(summary.grand_total)}")
    if summary.first_due_date is not None:
        lines.append(
            f"  Due Dates:          {_date_text(summary.first_due_date)}"
            f" to {_date_text(summary.last_due_date)}"
        )
    if summary.overdue_count is not None:
        lines.append(
            f"  Overdue:            {summary.overdue_count}"
            f"  |  Upcoming: {summary.upcoming_count}"
        )
    return lines


def format_statement(statement: Statement | None) -> str:
    """Format a Statement into a text block for the terminal."""
    if statement is None:
        logger.error("report_input_error | statement_none=True | fallback=error_block")
        return "\n" + SEPARATOR + "\n  ERROR: No statement data available\n" + SEPARATOR + "\n"

    lines: list[str] = ["", SEPARATOR, "  Consolidated Payment Statement", SEPARATOR]

    if isinstance(statement, CustomerStatement):
        lines.append("")
        lines.append(f"  Customer ID:    {statement.customer_id or PLACEHOLDER}")
        lines.append(f"  Customer Name:  {statement.customer_name or PLACEHOLDER}")
        if statement.plan_id:
            lines.append(f"  Plan ID:        {statement.plan_id}")

    lines.append("")
    if not statement.rows:
        lines.append("  No payment data found.")
    else:
        header = (
            f"  {'Scheduled Payment':<{MAX_DESCRIPTION_WIDTH}} {'Due Date':<10} "
            f"{'Due':>12} {'Paid':>12} {'Method':<12} {'Paid On':<10} "
            f"{'Outstanding':>12} Status"
        )
        lines.append(header)
        lines.append("  " + RULE[2:])
        for row in statement.rows:
            paid = _money(row.total_paid) if row.total_paid > 0 else PLACEHOLDER
            lines.append(
                f"  {_truncate(_row_label(row), MAX_DESCRIPTION_WIDTH):<{MAX_DESCRIPTION_WIDTH}} "
                f"{_date_text(row.due_date):<10} "
                f"{_money(row.due_amount):>12} "
                f"{paid:>12} "
                f"{_truncate(row.latest_payment_method, 12):<12} "
                f"{_date_text(row.latest_payment_date):<10} "
                f"{_money(row.outstanding):>12} "
                f"{STATUS_MARKERS[row.status]}"
            )

    lines.append("")
    lines.extend(_summary_lines(statement.summary))

    overpaid = [row for row in statement.rows if row.overpaid_amount > 0]
    if overpaid:
        lines.append("")
        lines.append(f"  NOTE: {len(overpaid)} installment(s) received more than the amount due")
        for row in overpaid:
            lines.append(
                f"    • {_row_label(row)}: overpaid by {_money(row.overpaid_amount)}"
            )

    lines.append("")
    lines.append(SEPARATOR)
    lines.append("")
    return "\n".join(lines)


def _row_json(row: ConsolidatedRow) -> dict[str, Any]:
    return {
        "schedule_id": row.schedule_id,
        "plan_id": row.plan_id,
        "description": row.description,
        "installment_no": row.installment_no,
        "due_date": _date_json(row.due_date),
        "due_amount": _money_json(row.due_amount),
        "total_paid": _money_json(row.total_paid),
        "outstanding": _money_json(row.outstanding),
        "latest_payment_method": row.latest_payment_method,
        "latest_payment_date": _date_json(row.latest_payment_date),
        "status": row.status.value,
        "payment_count": row.payment_count,
        "payment_ids": list(row.payment_ids),
        "surcharge_amount": _money_json(row.surcharge_amount),
    }


def _summary_json(summary: StatementSummary) -> dict[str, Any]:
    return {
        "total_due": _money_json(summary.total_due),
        "total_paid": _money_json(summary.total_paid),
        "total_outstanding": _money_json(summary.total_outstanding),
        "total_surcharge": _money_json(summary.total_surcharge),
        "grand_total": _money_json(summary.grand_total),
        "paid_count": summary.paid_count,
        "partial_count": summary.partial_count,
        "unpaid_count": summary.unpaid_count,
        "row_count": summary.row_count,
        "first_due_date": _date_json(summary.first_due_date),
        "last_due_date": _date_json(summary.last_due_date),
        "overdue_count": summary.overdue_count,
        "upcoming_count": summary.upcoming_count,
        "is_settled": summary.is_settled,
    }


def format_statement_json(statement: Statement | None) -> dict[str, Any]:
    """Format a Statement as a JSON-compatible dictionary.

    Money is rendered as 2-decimal strings so no float conversion happens.
    """
    if statement is None:
        logger.error("report_json_input_error | statement_none=True | fallback=error_payload")
        return {
            "status": "error",
            "rows": [],
            "summary": None,
            "warnings": ["Statement object was None"],
        }

    payload: dict[str, Any] = {
        "status": "ok",
        "rows": [_row_json(row) for row in statement.rows],
        "summary": _summary_json(statement.summary),
        "warnings": [
            f"{row.schedule_id or PLACEHOLDER}: overpaid by {_money_json(row.overpaid_amount)}"
            for row in statement.rows
            if row.overpaid_amount > 0
        ],
    }
    if isinstance(statement, CustomerStatement):
        payload["customer"] = {
            "customer_id": statement.customer_id,
            "customer_name": statement.customer_name,
            "plan_id": statement.plan_id,
        }
    return payload
