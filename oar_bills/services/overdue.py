"""Daily sweep marking pending bills overdue"""

import time
from datetime import date
from typing import Callable, Optional

from sqlalchemy.orm import Session

from oar_bills.domain.models import BillStatus, SweepResult
from oar_bills.domain.recurrence import derive_status
from oar_bills.infrastructure.database.repositories import BillRepository
from oar_bills.infrastructure.database.session import SessionLocal, session_scope
from oar_bills.infrastructure.observability.logging import log_overdue_sweep
from oar_bills.infrastructure.observability.metrics import overdue_updated_counter


class OverdueSweep:
    """Moves pending bills past their due date to overdue"""

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self.session_factory = session_factory

    def run(self, today: Optional[date] = None) -> SweepResult:
        """
        Each write only applies if the bill is still pending; a bill changed by
        another writer in the meantime is skipped and not counted.
        """
        today = today or date.today()
        start_time = time.time()
        result = SweepResult()

        with session_scope(self.session_factory) as db:
            repo = BillRepository(db)
            for bill in repo.get_overdue_candidates(today):
                result.checked += 1
                if derive_status(bill.due_date, today) is not BillStatus.OVERDUE:
                    continue
                if repo.mark_overdue_if_pending(bill.id):
                    result.updated += 1

        overdue_updated_counter.inc(result.updated)
        log_overdue_sweep(result, (time.time() - start_time) * 1000)
        return result
