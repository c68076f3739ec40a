"""
normalize.py - Input normalization module.

Turns raw schedule and payment records (mappings whose keys may use any of
several casings) into canonical `ScheduleEntry` / `PaymentRecord` models.

Value normalizers:
    normalize_text(value)      -> trimmed str or None
    normalize_money(value)     -> Decimal quantized to cents
    normalize_date(value)      -> date or None
    normalize_datetime(value)  -> naive datetime or None
    normalize_int(value)       -> int or None
    normalize_flag(value)      -> bool

Record normalizers:
    normalize_schedule(raw) / normalize_schedules(raws)
    normalize_payment(raw)  / normalize_payments(raws)

Design principles:
    - Field aliases are resolved once, here, from FIELD_ALIASES
    - Bad values degrade to neutral defaults (0 / None), never raise
    - Only structurally invalid input raises InvalidInputError
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import date, datetime, time, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

import pandas as pd
from dateutil import parser as dateparser

from logging_config import get_logger
from models import ZERO, PaymentRecord, ScheduleEntry

logger = get_logger(__name__)

MONEY_QUANTUM = Decimal("0.01")
ROUNDING = ROUND_HALF_UP

NULL_TOKENS = {"null", "none", "nan", "n/a"}
TRUE_TOKENS = {"true", "t", "yes", "y", "1"}
CURRENCY_SYMBOLS = ("$", "€", "£", "¥", "₹", "Rs.", "PKR", "USD")

# Two fill-in values differing in year, month and day. A date part missing
# from the text comes out different under each; both are leap years.
DATE_DEFAULTS = (datetime(2000, 1, 1), datetime(2004, 2, 2))

# Ordered alias table: the first alias present with a non-null value wins.
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    # Schedule fields
    "schedule_id": ("ScheduleId", "scheduleId", "scheduleid", "schedule_id"),
    "plan_id": ("PlanId", "planId", "planid", "plan_id"),
    "description": (
        "ScheduledPayment",
        "scheduledPayment",
        "PaymentDescription",
        "paymentDescription",
        "paymentdescription",
        "payment_description",
    ),
    "installment_no": ("InstallmentNo", "installmentNo", "installmentno", "installment_no"),
    "due_date": ("DueDate", "dueDate", "duedate", "due_date"),
    "due_amount": ("DueAmount", "dueAmount", "dueamount", "due_amount", "Amount", "amount"),
    "surcharge_applied": (
        "SurchargeApplied",
        "surchargeApplied",
        "surchargeapplied",
        "surcharge_applied",
    ),
    "surcharge_rate": ("SurchargeRate", "surchargeRate", "surchargerate", "surcharge_rate"),
    "notes": ("Description", "description"),
    # Payment fields
    "payment_id": ("PaymentId", "paymentId", "paymentid", "payment_id"),
    "amount": ("Amount", "amount", "PaymentAmount", "paymentAmount", "payment_amount"),
    "method": ("Method", "method", "PaymentMethod", "paymentMethod", "payment_method"),
    "payment_date": ("PaymentDate", "paymentDate", "paymentdate", "payment_date"),
    "customer_id": ("CustomerId", "customerId", "customerid", "customer_id"),
    "reference_no": ("ReferenceNo", "referenceNo", "referenceno", "reference_no"),
    "status": ("Status", "status"),
    "remarks": ("Remarks", "remarks"),
    # Statement envelope fields
    "customer_name": ("CustomerName", "customerName", "customername", "customer_name"),
    "schedules": ("Schedules", "schedules"),
    "payments": ("Payments", "payments"),
}


class InvalidInputError(ValueError):
    """Raised when input is structurally unusable (not a list, not a record)."""


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        text = value.strip()
        return not text or text.lower() in NULL_TOKENS
    if isinstance(value, (list, tuple, dict, set)):
        return False
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def resolve_field(raw: Mapping[str, Any], field: str) -> Any:
    """Return the first present, non-null value among the aliases of `field`."""
    for alias in FIELD_ALIASES[field]:
        if alias not in raw:
            continue
        value = raw[alias]
        if _is_missing(value):
            continue
        return value
    return None


def normalize_text(value: Any) -> str | None:
    """Trim a text value; absent or blank becomes None."""
    if _is_missing(value):
        return None
    if isinstance(value, float) and value.is_integer():
        # CSV readers turn integer identifiers into floats when a column has gaps.
        value = int(value)
    text = str(value).strip()
    return text or None


def normalize_money(value: Any) -> Decimal:
    """Parse a monetary value permissively into a cent-quantized Decimal.

    Missing, non-numeric and non-finite values become 0.00.
    """
    if _is_missing(value):
        return ZERO

    if isinstance(value, bool):
        logger.warning("normalize_money | boolean=%r | fallback=0.00", value)
        return ZERO

    if isinstance(value, Decimal):
        parsed = value
    elif isinstance(value, int):
        parsed = Decimal(value)
    elif isinstance(value, float):
        if not math.isfinite(value):
            logger.warning("normalize_money | non_finite=%r | fallback=0.00", value)
            return ZERO
        parsed = Decimal(str(value))
    else:
        cleaned = str(value).strip()
        is_negative = cleaned.startswith("(") and cleaned.endswith(")")
        for symbol in CURRENCY_SYMBOLS:
            cleaned = cleaned.replace(symbol, "")
        cleaned = (
            cleaned.replace("(", "")
            .replace(")", "")
            .replace(",", "")
            .replace(" ", "")
            .strip()
        )
        if not cleaned:
            logger.warning("normalize_money | parse_failed | raw=%r | fallback=0.00", value)
            return ZERO
        try:
            parsed = Decimal(cleaned)
        except (InvalidOperation, ValueError, TypeError):
            logger.warning("normalize_money | parse_failed | raw=%r | fallback=0.00", value)
            return ZERO
        if is_negative:
            parsed = -parsed

    if not parsed.is_finite():
        logger.warning("normalize_money | non_finite=%r | fallback=0.00", value)
        return ZERO

    try:
        return parsed.quantize(MONEY_QUANTUM, rounding=ROUNDING)
    except InvalidOperation:
        logger.warning("normalize_money | out_of_range=%r | fallback=0.00", value)
        return ZERO


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def normalize_datetime(value: Any) -> datetime | None:
    """Parse a timestamp into a naive datetime (UTC when the input carried a zone)."""
    if _is_missing(value):
        return None

    if isinstance(value, datetime):
        if isinstance(value, pd.Timestamp):
            value = value.to_pydatetime()
        return _to_naive_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time())

    if not isinstance(value, str):
        logger.warning("normalize_datetime | unsupported_type=%s | fallback=None", type(value).__name__)
        return None

    text = value.strip()
    if not any(char.isdigit() for char in text):
        logger.warning("normalize_datetime | rejected_no_digits | raw=%r", text)
        return None

    try:
        parsed = dateparser.parse(text, dayfirst=False, default=DATE_DEFAULTS[0])
        check = dateparser.parse(text, dayfirst=False, default=DATE_DEFAULTS[1])
    except (ValueError, TypeError, OverflowError) as exc:
        logger.warning(
            "normalize_datetime | parse_error=%s | raw=%r | fallback=None",
            type(exc).__name__,
            text,
        )
        return None

    # Any date part taken from the defaults differs between the two parses.
    if parsed.date() != check.date():
        logger.warning("normalize_datetime | partial_date | raw=%r | fallback=None", text)
        return None

    return _to_naive_utc(parsed)


def normalize_date(value: Any) -> date | None:
    """Parse a calendar date; unparseable input becomes None."""
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    parsed = normalize_datetime(value)
    return parsed.date() if parsed is not None else None


def normalize_int(value: Any) -> int | None:
    """Parse an integral value; anything non-integral becomes None."""
    if _is_missing(value) or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        logger.warning("normalize_int | parse_failed | raw=%r | fallback=None", value)
        return None
    if not parsed.is_finite() or parsed != parsed.to_integral_value():
        logger.warning("normalize_int | not_integral | raw=%r | fallback=None", value)
        return None
    return int(parsed)


def normalize_flag(value: Any) -> bool:
    """Interpret a yes/no style value; absent means False."""
    if _is_missing(value):
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float, Decimal)):
        return value != 0
    return str(value).strip().lower() in TRUE_TOKENS


def _require_record(raw: Any, label: str) -> Mapping[str, Any]:
    if not isinstance(raw, Mapping):
        raise InvalidInputError(f"{label} is not a record (got {type(raw).__name__})")
    return raw


def _require_collection(raws: Any, label: str) -> list[Any] | tuple[Any, ...]:
    if not isinstance(raws, (list, tuple)):
        raise InvalidInputError(f"{label} must be a list of records (got {type(raws).__name__})")
    return raws


def normalize_schedule(raw: Any, label: str = "schedule") -> ScheduleEntry:
    """Build a canonical ScheduleEntry from one raw record."""
    record = _require_record(raw, label)

    schedule_id = normalize_text(resolve_field(record, "schedule_id")) or ""
    if not schedule_id:
        logger.warning("normalize_schedule | empty_schedule_id | record=%s", label)

    rate_raw = resolve_field(record, "surcharge_rate")
    return ScheduleEntry(
        schedule_id=schedule_id,
        plan_id=normalize_text(resolve_field(record, "plan_id")),
        description=normalize_text(resolve_field(record, "description")),
        installment_no=normalize_int(resolve_field(record, "installment_no")),
        due_date=normalize_date(resolve_field(record, "due_date")),
        due_amount=normalize_money(resolve_field(record, "due_amount")),
        surcharge_applied=normalize_flag(resolve_field(record, "surcharge_applied")),
        surcharge_rate=None if rate_raw is None else normalize_money(rate_raw),
        notes=normalize_text(resolve_field(record, "notes")),
    )


def normalize_payment(raw: Any, label: str = "payment") -> PaymentRecord:
    """Build a canonical PaymentRecord from one raw record."""
    record = _require_record(raw, label)
    return PaymentRecord(
        payment_id=normalize_text(resolve_field(record, "payment_id")) or "",
        schedule_id=normalize_text(resolve_field(record, "schedule_id")),
        amount=normalize_money(resolve_field(record, "amount")),
        method=normalize_text(resolve_field(record, "method")),
        payment_date=normalize_datetime(resolve_field(record, "payment_date")),
        customer_id=normalize_text(resolve_field(record, "customer_id")),
        reference_no=normalize_text(resolve_field(record, "reference_no")),
        status=normalize_text(resolve_field(record, "status")),
        remarks=normalize_text(resolve_field(record, "remarks")),
    )


def normalize_schedules(raws: Any) -> list[ScheduleEntry]:
    """Normalize a whole schedule collection, preserving order."""
    records = _require_collection(raws, "schedules")
    return [
        normalize_schedule(raw, label=f"schedules[{index}]")
        for index, raw in enumerate(records)
    ]


def normalize_payments(raws: Any) -> list[PaymentRecord]:
    """Normalize a whole payment collection, preserving order."""
    records = _require_collection(raws, "payments")
    return [
        normalize_payment(raw, label=f"payments[{index}]")
        for index, raw in enumerate(records)
    ]
