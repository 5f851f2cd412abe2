"""Billing cycle classification - current cycle vs historical payments"""

from dataclasses import replace
from datetime import date, datetime
from typing import Optional

from oar_bills.domain.models import Bill, BillStatus, Frequency, Transaction
from oar_bills.domain.recurrence import previous_occurrence
from oar_bills.utils.date_utils import as_day


def cycle_start(due_date: date, frequency: Frequency | str) -> Optional[date]:
    """Start of the cycle ending at due_date, or None for one-time bills"""
    return previous_occurrence(due_date, frequency)


def is_historical(bill: Bill, paid_at: date | datetime) -> bool:
    """
    True if paid_at falls before the bill's current cycle started.

    Comparison is day-level and exclusive below: a payment made on the cycle
    start day belongs to the current cycle. One-time bills have no prior
    cycle, so none of their payments are historical.
    """
    start = cycle_start(bill.due_date, bill.frequency)
    if start is None:
        return False
    return as_day(paid_at) < start


def affects_current_cycle(bill: Bill, transaction: Transaction) -> bool:
    """
    True if adding, editing or removing this payment changes the bill's state.

    Besides current-cycle payments this also catches the payment that caused
    the latest cycle advance: historical against the current due date but
    inside the previous cycle.
    """
    if not is_historical(bill, transaction.paid_at):
        return True

    previous_due = cycle_start(bill.due_date, bill.frequency)
    previous_cycle_bill = replace(bill, due_date=previous_due)
    return not is_historical(previous_cycle_bill, transaction.paid_at)


def is_frozen(bill: Bill) -> bool:
    """Archived bills and completed one-time bills keep their state; payments are recorded only"""
    if bill.is_archived:
        return True
    return Frequency(bill.frequency) is Frequency.ONCE and BillStatus(bill.status) is BillStatus.PAID
