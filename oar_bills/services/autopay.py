"""Auto-pay batch settlement for bills paid externally (direct debit, card on file)"""

import logging
import time
from datetime import date
from typing import Callable, Optional

from sqlalchemy.orm import Session

from oar_bills.config import settings
from oar_bills.domain.models import AutoPayResult, Bill
from oar_bills.domain.payments import process_payment
from oar_bills.infrastructure.database.repositories import BillRepository, TransactionRepository
from oar_bills.infrastructure.database.session import SessionLocal, session_scope
from oar_bills.infrastructure.observability.logging import log_autopay_batch
from oar_bills.infrastructure.observability.metrics import autopay_batch_histogram, record_autopay

logger = logging.getLogger(__name__)


class AutoPayBatchRunner:
    """
    Acknowledges payments for bills marked as auto-pay.

    No money is moved: for each eligible bill a transaction is recorded and the
    bill advances to its next cycle. Each bill is its own atomic unit, so one
    failure never aborts the batch.
    """

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self.session_factory = session_factory

    def run(self, today: Optional[date] = None) -> AutoPayResult:
        """
        Settle every eligible auto-pay bill.

        Eligibility: is_auto_pay, status != paid, due_date <= today, not archived.
        Safe to re-run: settled bills move past today or become paid.
        """
        today = today or date.today()
        start_time = time.time()

        with session_scope(self.session_factory) as db:
            eligible = BillRepository(db).get_autopay_eligible(today)

        result = AutoPayResult()
        with autopay_batch_histogram.time():
            for bill in eligible:
                try:
                    with session_scope(self.session_factory) as db:
                        self._settle(db, bill, today)
                    result.processed += 1
                except Exception as e:
                    logger.error(f"Failed to auto-pay bill {bill.id}: {e}", extra={"bill_id": bill.id})
                    result.failed += 1
                    result.failed_ids.append(bill.id)

        record_autopay(result)
        log_autopay_batch(result, (time.time() - start_time) * 1000)
        return result

    def _settle(self, db: Session, bill: Bill, today: date) -> None:
        # Payment is dated on the original due date, not the processing date
        payment = process_payment(bill, bill.base_amount, bill.due_date, advance_cycle=True, today=today)

        TransactionRepository(db).create(
            bill_id=bill.id,
            amount=bill.base_amount,
            paid_at=bill.due_date,
            notes=settings.autopay_note,
        )
        BillRepository(db).apply_state(bill.id, payment)
