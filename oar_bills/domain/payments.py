"""Payment processing - bill state changes from payments and payment history"""

from datetime import date, datetime
from typing import Iterable, List, Optional, Tuple

from oar_bills.domain.billing_cycle import cycle_start, is_historical
from oar_bills.domain.exceptions import ValidationError
from oar_bills.domain.models import Bill, BillState, BillStatus, Frequency, PaymentResult, Transaction
from oar_bills.domain.recurrence import derive_status, next_occurrence
from oar_bills.utils.date_utils import as_day


def validate_payment(amount: int, paid_at: date | datetime, today: Optional[date] = None) -> date:
    """
    Check payment input and return the payment day.

    Same-day payments are allowed; anything after today is rejected.

    Raises:
        ValidationError: Invalid amount or payment date
    """
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValidationError(f"Amount must be an integer in minor units, got {amount!r}")
    if amount < 0:
        raise ValidationError("Amount must not be negative")
    if not isinstance(paid_at, date):
        raise ValidationError(f"Invalid payment date: {paid_at!r}")

    paid_day = as_day(paid_at)
    today = as_day(today or date.today())
    if paid_day > today:
        raise ValidationError(f"Payment date {paid_day.isoformat()} is in the future")
    return paid_day


def _advance(bill: Bill, today: Optional[date]) -> PaymentResult:
    """Close the current cycle: move to the next occurrence or end the bill"""
    next_due = next_occurrence(bill.due_date, bill.frequency, bill.end_date)

    if next_due is None:
        # One-time bill or end date reached
        return PaymentResult(
            due_date=bill.due_date,
            amount_due=0,
            status=BillStatus.PAID,
            bill_ended=True,
            cycle_advanced=True,
        )

    return PaymentResult(
        due_date=next_due,
        amount_due=bill.base_amount,
        status=derive_status(next_due, today),
        cycle_advanced=True,
    )


def process_payment(
    bill: Bill,
    amount: int,
    paid_at: date | datetime,
    advance_cycle: bool,
    today: Optional[date] = None,
) -> PaymentResult:
    """
    Calculate bill state after logging a payment.

    Business rules:
    1. Historical payment (before the current cycle): bill state unchanged,
       the caller records the transaction only
    2. advance_cycle=True (full payment): advance due date, reset amount due to
       the base amount; one-time or ended bills become paid
    3. advance_cycle=False (partial payment): keep the due date, reduce amount
       due (clamped at 0); a one-time bill paid down to 0 is completed

    Raises:
        ValidationError: Invalid amount or future-dated payment
    """
    paid_day = validate_payment(amount, paid_at, today)

    if is_historical(bill, paid_day):
        return PaymentResult(
            due_date=bill.due_date,
            amount_due=bill.amount_due,
            status=bill.status,
            is_historical=True,
        )

    if advance_cycle:
        return _advance(bill, today)

    new_amount_due = max(0, bill.amount_due - amount)

    if Frequency(bill.frequency) is Frequency.ONCE and new_amount_due == 0:
        return PaymentResult(
            due_date=bill.due_date,
            amount_due=0,
            status=BillStatus.PAID,
            bill_ended=True,
        )

    return PaymentResult(
        due_date=bill.due_date,
        amount_due=new_amount_due,
        status=derive_status(bill.due_date, today),
    )


def _state(result: PaymentResult) -> BillState:
    return BillState(
        due_date=result.due_date,
        amount_due=result.amount_due,
        status=result.status,
        bill_ended=result.bill_ended,
    )


def _open_cycle(due_date: date, amount_due: int, today: Optional[date]) -> BillState:
    return BillState(due_date=due_date, amount_due=amount_due, status=derive_status(due_date, today))


def _settle_cycle(
    payments: List[Tuple[date, int]],
    start: date,
    end: date,
    carried: int,
    base_amount: int,
) -> Tuple[int, int]:
    """
    Credit payments to the cycle (start, end] of a recurring bill.

    A payment dated on the due date settles this cycle first; only the part
    of it exceeding base_amount carries into the next cycle.

    Returns:
        (amount credited to this cycle, amount carried into the next one)
    """
    inside = carried + sum(amount for day, amount in payments if start < day < end)
    on_due = sum(amount for day, amount in payments if day == end)
    total = inside + on_due
    spill = max(0, min(on_due, total - base_amount))
    return total - spill, spill


def recompute_from_history(
    bill: Bill,
    transactions: Iterable[Transaction],
    today: Optional[date] = None,
) -> BillState:
    """
    Rebuild bill state from its full payment history.

    Used after a payment is added out of order, edited or deleted, instead of
    patching amount_due incrementally. Balances are computed from the base
    amount, so the result depends only on the bill's cycle position and the
    transaction set, and applying the result and recomputing is a no-op.

    Payments dated on a due date belong to the cycle ending that day until it
    is covered (auto-pay dates its payments on the due date). Whatever is left
    counts toward the following cycle.

    If no payment falls in the current cycle, looks back exactly one cycle to
    undo an advance whose payment has since been removed:
    - previous cycle unpaid: revert to it with the full base amount due
    - previous cycle partially paid: revert with the remainder due
    - previous cycle fully paid: stay on the current cycle
    """
    payments: List[Tuple[date, int]] = [(as_day(t.paid_at), t.amount) for t in transactions]

    start = cycle_start(bill.due_date, bill.frequency)
    if start is None:
        # One-time bill: every payment counts
        total_paid = sum(amount for _, amount in payments)
        if total_paid >= bill.base_amount:
            return _state(_advance(bill, today))
        return _open_cycle(bill.due_date, bill.base_amount - total_paid, today)

    previous_start = cycle_start(start, bill.frequency)
    earlier_start = cycle_start(previous_start, bill.frequency)

    # The cycle before the previous one only absorbs payments dated on its due date
    _, carried = _settle_cycle(payments, earlier_start, previous_start, 0, bill.base_amount)
    previous_paid, carried = _settle_cycle(payments, previous_start, start, carried, bill.base_amount)

    later = [amount for day, amount in payments if day > start]
    if later or carried:
        current_paid = carried + sum(later)
        if current_paid >= bill.base_amount:
            return _state(_advance(bill, today))
        return _open_cycle(bill.due_date, bill.base_amount - current_paid, today)

    if previous_paid >= bill.base_amount:
        return _open_cycle(bill.due_date, bill.base_amount, today)

    # TODO: generalize to N-cycle lookback when several consecutive advancing payments are removed
    return _open_cycle(start, max(0, bill.base_amount - previous_paid), today)
