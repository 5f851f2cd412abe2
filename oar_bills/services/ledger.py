"""Payment ledger - log, edit and delete payments while keeping bill state consistent"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

from oar_bills.domain.billing_cycle import affects_current_cycle, is_frozen
from oar_bills.domain.exceptions import BillNotFoundError, TransactionNotFoundError
from oar_bills.domain.models import Bill, Transaction
from oar_bills.domain.payments import process_payment, recompute_from_history, validate_payment
from oar_bills.infrastructure.database.repositories import BillRepository, TransactionRepository
from oar_bills.infrastructure.observability.metrics import bill_recomputations_counter, record_payment
from oar_bills.utils.date_utils import as_day

logger = logging.getLogger(__name__)


@dataclass
class LoggedPayment:
    transaction: Transaction
    is_historical: bool


class PaymentLedger:
    """
    Writes payments and the bill state they imply within the caller's session.

    The caller owns the commit, so the transaction record and the bill update
    land together or not at all.
    """

    def __init__(self, db: Session, today: Optional[date] = None):
        self.db = db
        self.today = today
        self.bills = BillRepository(db)
        self.transactions = TransactionRepository(db)

    def _bill(self, bill_id: str) -> Bill:
        bill = self.bills.get(bill_id)
        if bill is None:
            raise BillNotFoundError(f"Bill not found: {bill_id}")
        return bill

    def _transaction(self, transaction_id: str) -> Transaction:
        transaction = self.transactions.get(transaction_id)
        if transaction is None:
            raise TransactionNotFoundError(f"Transaction not found: {transaction_id}")
        return transaction

    def log_payment(
        self,
        bill_id: str,
        amount: int,
        paid_at: date | datetime,
        notes: Optional[str] = None,
        advance_cycle: bool = True,
    ) -> LoggedPayment:
        """
        Record a payment and apply it to the bill.

        Historical payments, and payments against archived or completed
        one-time bills, are recorded but leave the bill untouched.

        Raises:
            ValidationError: Invalid amount or future-dated payment
            BillNotFoundError: Unknown bill
        """
        bill = self._bill(bill_id)
        payment = process_payment(bill, amount, paid_at, advance_cycle, today=self.today)

        transaction = self.transactions.create(bill_id, amount, as_day(paid_at), notes)
        if not payment.is_historical and not is_frozen(bill):
            self.bills.apply_state(bill_id, payment)

        record_payment(payment.is_historical, advance_cycle)
        logger.info(
            "Payment logged",
            extra={
                "bill_id": bill_id,
                "transaction_id": transaction.id,
                "is_historical": payment.is_historical,
                "cycle_advanced": payment.cycle_advanced,
            },
        )
        return LoggedPayment(transaction=transaction, is_historical=payment.is_historical)

    def update_transaction(
        self,
        transaction_id: str,
        amount: int,
        paid_at: date | datetime,
        notes: Optional[str] = None,
    ) -> Transaction:
        """
        Edit a payment; rebuilds the bill if the old or the new version touches
        the current cycle.

        Raises:
            ValidationError: Invalid amount or future-dated payment
            TransactionNotFoundError: Unknown payment
        """
        existing = self._transaction(transaction_id)
        paid_day = validate_payment(amount, paid_at, self.today)
        bill = self._bill(existing.bill_id)

        updated = Transaction(id=existing.id, bill_id=existing.bill_id, amount=amount, paid_at=paid_day, notes=notes)
        self.transactions.update(transaction_id, amount, paid_day, notes)

        if is_frozen(bill):
            return updated
        if affects_current_cycle(bill, existing) or affects_current_cycle(bill, updated):
            self._recompute(bill)
        return updated

    def delete_transaction(self, transaction_id: str) -> None:
        """
        Remove a payment; rebuilds the bill if the payment touched the current
        cycle, which may revert a cycle advance.

        Raises:
            TransactionNotFoundError: Unknown payment
        """
        existing = self._transaction(transaction_id)
        bill = self._bill(existing.bill_id)

        self.transactions.delete(transaction_id)

        if not is_frozen(bill) and affects_current_cycle(bill, existing):
            self._recompute(bill)

    def _recompute(self, bill: Bill) -> None:
        state = recompute_from_history(bill, self.transactions.by_bill_id(bill.id), today=self.today)
        self.bills.apply_state(bill.id, state)
        bill_recomputations_counter.inc()
        logger.info(
            "Bill recomputed from history",
            extra={"bill_id": bill.id, "due_date": state.due_date.isoformat(), "amount_due": state.amount_due},
        )
