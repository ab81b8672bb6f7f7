# payments/services/allocation_calculator.py

"""
ALLOCATION CALCULATOR (PURE)

This module answers ONE question:
"How should this payment be split across these obligations?"

RULES:
- No database access, no side effects
- Oldest debt first: created_at ascending, then id ascending
- An obligation never receives more than its outstanding amount
- total_allocated + excess_payment == payment_amount, always
"""

from __future__ import annotations

from typing import Iterable

from payments.domain import (
    AllocationComputation,
    AllocationOutcome,
    Obligation,
    derive_status,
)
from payments.services.exceptions import AllocationError, InvalidAmount


def validate_payment_amount(payment_amount) -> int:
    # bool is an int subclass in Python
    if isinstance(payment_amount, bool) or not isinstance(payment_amount, int):
        raise InvalidAmount(
            f"Payment amount must be an integer in minor units, got {payment_amount!r}"
        )
    if payment_amount <= 0:
        raise InvalidAmount("Payment amount must be greater than zero.")
    return payment_amount


def _validate_obligation(obligation: Obligation) -> None:
    if obligation.paid_amount < 0:
        raise AllocationError(
            f"Obligation {obligation.id} has a negative paid amount ({obligation.paid_amount})"
        )
    if obligation.paid_amount > obligation.total_amount:
        raise AllocationError(
            f"Obligation {obligation.id} is over-paid "
            f"(paid={obligation.paid_amount}, total={obligation.total_amount})"
        )


def allocation_order_key(obligation: Obligation):
    return (obligation.created_at, str(obligation.id))


def eligible_obligations(
    obligations: Iterable[Obligation], selected_ids=None
) -> list[Obligation]:
    """
    An empty selection is treated like no selection.
    Unknown or already paid ids in the selection are dropped silently.
    """
    pool = [o for o in obligations if o.outstanding_amount > 0]

    if selected_ids:
        wanted = {str(i) for i in selected_ids}
        pool = [o for o in pool if str(o.id) in wanted]

    return sorted(pool, key=allocation_order_key)


def compute_allocation(
    *,
    obligations: Iterable[Obligation],
    payment_amount: int,
    selected_ids=None,
) -> AllocationComputation:
    payment_amount = validate_payment_amount(payment_amount)

    obligations = list(obligations)
    for obligation in obligations:
        _validate_obligation(obligation)

    remaining = payment_amount
    outcomes: list[AllocationOutcome] = []

    for obligation in eligible_obligations(obligations, selected_ids):
        if remaining == 0:
            break

        allocate = min(remaining, obligation.outstanding_amount)
        if allocate <= 0:
            continue

        outcomes.append(
            AllocationOutcome(
                obligation_id=str(obligation.id),
                reference=obligation.display_reference,
                amount_allocated=allocate,
                new_status=derive_status(
                    total_amount=obligation.total_amount,
                    paid_amount=obligation.paid_amount + allocate,
                ),
            )
        )
        remaining -= allocate

    return AllocationComputation(
        outcomes=tuple(outcomes),
        total_allocated=payment_amount - remaining,
        excess_payment=remaining,
    )


def calculate_remaining_balance(obligations: Iterable[Obligation]) -> int:
    return sum(o.outstanding_amount for o in obligations)
