"""
models.py - Data models for the statement reconciliation pipeline.

Every stage of the pipeline communicates exclusively through these models:

    normalize.py      ->  ScheduleEntry, PaymentRecord
    payment_index.py  ->  dict[str, list[PaymentRecord]]
    consolidate.py    ->  list[ConsolidatedRow]
    summarize.py      ->  StatementSummary
    reconcile.py      ->  Statement / CustomerStatement
    report.py         ->  str / dict (uses Statement as input)

Design principles:
1. Input records are canonical: field-name casing drift is resolved once in
   normalize.py and never seen again downstream
2. Money is always Decimal, quantized to cents, never float
3. Derived models carry no identity and are recomputed on every call

Schema relationships:
    PaymentStatus   --used by--> ConsolidatedRow.status
    ScheduleEntry   --copied into--> ConsolidatedRow
    PaymentRecord   --aggregated into--> ConsolidatedRow.total_paid
    ConsolidatedRow --reduced into--> StatementSummary
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

ZERO = Decimal("0.00")


class PaymentStatus(str, Enum):
    """Settlement state of one installment after applying matched payments."""

    # Something was paid and nothing is left owing (overpayment included).
    PAID = "Paid"

    # Something was paid but a balance remains.
    PARTIAL = "Partial"

    # Nothing was paid, whatever the due amount.
    UNPAID = "Unpaid"


class ScheduleEntry(BaseModel):
    """One installment obligation from a payment plan.

    This is the source of truth for what is owed. The statement contains
    exactly one row per schedule entry, in input order.

    The schedule_id is the join key against PaymentRecord.schedule_id. It is
    stored trimmed. An empty schedule_id is tolerated: such an entry still
    produces a row, but no payment can ever be matched to it.
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "examples": [
                {
                    "schedule_id": "S1",
                    "plan_id": "PLN-01",
                    "description": "Installment 1",
                    "installment_no": 1,
                    "due_date": "2024-01-15",
                    "due_amount": "1000.00",
                    "surcharge_applied": False,
                    "surcharge_rate": None,
                    "notes": None,
                }
            ]
        },
    )

    schedule_id: str = Field(
        default="",
        description="Trimmed schedule identifier used to match payments.",
    )
    plan_id: Optional[str] = Field(
        default=None,
        description="Identifier of the payment plan that owns this installment.",
    )
    description: Optional[str] = Field(
        default=None,
        description=(
            "Human label for the installment, e.g. 'Down Payment' or "
            "'Installment 3'. Taken from ScheduledPayment or PaymentDescription."
        ),
    )
    installment_no: Optional[int] = Field(
        default=None,
        description="Position of the installment within the plan sequence.",
    )
    due_date: Optional[date] = Field(
        default=None,
        description="Date the installment falls due. None when absent or unparseable.",
    )
    due_amount: Decimal = Field(
        default=ZERO,
        description="Amount owed. Zero when absent or non-numeric.",
    )
    surcharge_applied: bool = Field(
        default=False,
        description="Whether a surcharge percentage applies to this installment.",
    )
    surcharge_rate: Optional[Decimal] = Field(
        default=None,
        description="Surcharge percentage, e.g. 2.50 for 2.5%.",
    )
    notes: Optional[str] = Field(
        default=None,
        description="Free-text notes stored alongside the schedule row.",
    )

    @property
    def has_surcharge(self) -> bool:
        """Whether a non-zero surcharge applies."""
        return self.surcharge_applied and bool(self.surcharge_rate)


class PaymentRecord(BaseModel):
    """One recorded payment transaction.

    A payment whose schedule_id is empty is orphaned: it is dropped when the
    payment index is built and never affects any statement row. A payment
    whose schedule_id names no known schedule is equally invisible.
    """

    model_config = ConfigDict(frozen=True)

    payment_id: str = Field(default="", description="Payment identifier.")
    schedule_id: Optional[str] = Field(
        default=None,
        description="Trimmed schedule identifier this payment settles, if any.",
    )
    amount: Decimal = Field(
        default=ZERO,
        description="Amount paid. Zero when absent or non-numeric.",
    )
    method: Optional[str] = Field(
        default=None,
        description="Payment method, e.g. 'Cash', 'Cheque', 'Bank Transfer'.",
    )
    payment_date: Optional[datetime] = Field(
        default=None,
        description=(
            "When the payment was made. Naive datetime; timezone-aware input "
            "is converted to UTC. Used to pick the latest payment."
        ),
    )
    customer_id: Optional[str] = Field(default=None, description="Paying customer.")
    reference_no: Optional[str] = Field(default=None, description="Bank or receipt reference.")
    status: Optional[str] = Field(default=None, description="Recorded payment status.")
    remarks: Optional[str] = Field(default=None, description="Free-text remarks.")

    @property
    def is_orphaned(self) -> bool:
        """Whether this payment carries no schedule key at all."""
        return not self.schedule_id


class ConsolidatedRow(BaseModel):
    """Merged view of one schedule entry with all of its matched payments.

    Invariants:
        outstanding == max(0, due_amount - total_paid)
        status follows classify_status(total_paid, outstanding)
    """

    model_config = ConfigDict(frozen=True)

    schedule_id: str = Field(..., description="Schedule identifier copied from the entry.")
    plan_id: Optional[str] = Field(default=None)
    description: Optional[str] = Field(default=None)
    installment_no: Optional[int] = Field(default=None)
    due_date: Optional[date] = Field(default=None)
    due_amount: Decimal = Field(default=ZERO)
    total_paid: Decimal = Field(
        default=ZERO,
        description="Sum of the amounts of every matched payment.",
    )
    outstanding: Decimal = Field(
        default=ZERO,
        ge=0,
        description="Remaining amount owed, floored at zero. Never negative.",
    )
    latest_payment_method: Optional[str] = Field(
        default=None,
        description="Method of the matched payment with the latest payment_date.",
    )
    latest_payment_date: Optional[datetime] = Field(
        default=None,
        description="payment_date of the latest matched payment.",
    )
    status: PaymentStatus = Field(default=PaymentStatus.UNPAID)
    payment_count: int = Field(default=0, ge=0, description="Number of matched payments.")
    payment_ids: list[str] = Field(
        default_factory=list,
        description="Identifiers of matched payments, in original input order.",
    )
    surcharge_amount: Decimal = Field(
        default=ZERO,
        description="due_amount * surcharge_rate / 100 when a surcharge applies.",
    )

    @property
    def overpaid_amount(self) -> Decimal:
        """How much was paid beyond the due amount (zero if not overpaid)."""
        excess = self.total_paid - self.due_amount
        return excess if excess > 0 else ZERO


class StatementSummary(BaseModel):
    """Aggregate figures across every consolidated row.

    Totals are sums of the already-computed row fields, so the summary can
    never disagree with the rows it was built from.
    """

    model_config = ConfigDict(frozen=True)

    total_due: Decimal = Field(default=ZERO)
    total_paid: Decimal = Field(default=ZERO)
    total_outstanding: Decimal = Field(default=ZERO)
    paid_count: int = Field(default=0, ge=0)
    partial_count: int = Field(default=0, ge=0)
    unpaid_count: int = Field(default=0, ge=0)
    row_count: int = Field(default=0, ge=0)
    total_surcharge: Decimal = Field(default=ZERO)
    grand_total: Decimal = Field(
        default=ZERO,
        description="total_due plus total_surcharge.",
    )
    first_due_date: Optional[date] = Field(default=None)
    last_due_date: Optional[date] = Field(default=None)
    overdue_count: Optional[int] = Field(
        default=None,
        description=(
            "Rows due before the as-of date that still have a balance. "
            "None when no as-of date was supplied."
        ),
    )
    upcoming_count: Optional[int] = Field(
        default=None,
        description="Rows due after the as-of date. None when no as-of date was supplied.",
    )

    @property
    def is_settled(self) -> bool:
        """Whether every row is fully paid."""
        return self.row_count > 0 and self.paid_count == self.row_count


class Statement(BaseModel):
    """Result of one reconciliation: the rows plus their summary."""

    model_config = ConfigDict(frozen=True)

    rows: list[ConsolidatedRow] = Field(default_factory=list)
    summary: StatementSummary = Field(default_factory=StatementSummary)


class CustomerStatement(Statement):
    """Statement enriched with the customer envelope fields from the data layer."""

    customer_id: Optional[str] = Field(default=None)
    customer_name: Optional[str] = Field(default=None)
    plan_id: Optional[str] = Field(default=None)
