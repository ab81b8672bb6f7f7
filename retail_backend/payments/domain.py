# payments/domain.py

"""
PAYMENT ALLOCATION DOMAIN (PURE)

Value objects shared by the allocation calculator, the orchestrator and the
obligation models.

DESIGN PRINCIPLES:
- No database access
- No Django imports
- Money is always an integer in minor currency units (cents)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

STATUS_PENDING = "pending"
STATUS_PARTIAL = "partial"
STATUS_PAID = "paid"

PAYMENT_STATUS_CHOICES = [
    (STATUS_PENDING, "Pending"),
    (STATUS_PARTIAL, "Partially paid"),
    (STATUS_PAID, "Paid"),
]

DIRECTION_CUSTOMER = "customer"
DIRECTION_SUPPLIER = "supplier"

DIRECTION_CHOICES = [
    (DIRECTION_CUSTOMER, "Customer payment"),
    (DIRECTION_SUPPLIER, "Supplier payment"),
]


def derive_status(*, total_amount: int, paid_amount: int) -> str:
    """
    Status is never stored independently of the amounts.
    """
    if paid_amount >= total_amount:
        return STATUS_PAID
    if paid_amount > 0:
        return STATUS_PARTIAL
    return STATUS_PENDING


@dataclass(frozen=True)
class Obligation:
    """
    Snapshot of one unpaid order / purchase invoice, taken under lock.
    """

    id: str
    reference: str
    total_amount: int
    paid_amount: int
    created_at: datetime

    @property
    def outstanding_amount(self) -> int:
        return max(self.total_amount - self.paid_amount, 0)

    @property
    def status(self) -> str:
        return derive_status(
            total_amount=self.total_amount, paid_amount=self.paid_amount
        )

    @property
    def display_reference(self) -> str:
        return (self.reference or "").strip() or str(self.id)


@dataclass(frozen=True)
class PaymentAllocationRequest:
    """
    selected_obligation_ids=None means every outstanding obligation is eligible.
    """

    payer_id: str
    payment_amount: int
    selected_obligation_ids: tuple[str, ...] | None = None

    def __post_init__(self):
        object.__setattr__(self, "payer_id", str(self.payer_id))
        if self.selected_obligation_ids is not None:
            object.__setattr__(
                self,
                "selected_obligation_ids",
                tuple(str(i) for i in self.selected_obligation_ids),
            )


@dataclass(frozen=True)
class AllocationOutcome:
    obligation_id: str
    reference: str
    amount_allocated: int
    new_status: str

    def as_dict(self) -> dict:
        return {
            "obligation_id": self.obligation_id,
            "reference": self.reference,
            "amount_allocated": self.amount_allocated,
            "new_status": self.new_status,
        }


@dataclass(frozen=True)
class AllocationComputation:
    """
    Output of the pure calculator (before anything is persisted).
    """

    outcomes: tuple[AllocationOutcome, ...]
    total_allocated: int
    excess_payment: int

    @property
    def payment_amount(self) -> int:
        return self.total_allocated + self.excess_payment


@dataclass(frozen=True)
class AllocationResult:
    """
    Reconciled summary returned to callers once the transaction commits.
    """

    payer_id: str
    payment_amount: int
    outcomes: tuple[AllocationOutcome, ...]
    total_allocated: int
    excess_payment: int
    remaining_balance: int
    allocation_id: str | None = None
    journal_entry_id: int | None = None
    selected_obligation_ids: tuple[str, ...] | None = field(default=None)

    def as_dict(self) -> dict:
        return {
            "allocation_id": self.allocation_id,
            "payer_id": self.payer_id,
            "payment_amount": self.payment_amount,
            "outcomes": [o.as_dict() for o in self.outcomes],
            "total_allocated": self.total_allocated,
            "excess_payment": self.excess_payment,
            "remaining_balance": self.remaining_balance,
            "journal_entry_id": self.journal_entry_id,
        }
