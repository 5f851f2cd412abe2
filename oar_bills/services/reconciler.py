"""Startup catch-up for scheduled work missed while the service was down"""

import logging
from datetime import date, datetime, timezone
from typing import Optional

from oar_bills.domain.models import AutoPayResult, CatchUpResult, SweepResult
from oar_bills.services.autopay import AutoPayBatchRunner
from oar_bills.services.overdue import OverdueSweep

logger = logging.getLogger(__name__)


class StartupReconciler:
    """
    Runs the overdue sweep and then the auto-pay batch, once per instance.

    The "already executed" flag lives in memory only; with several service
    instances each one will reconcile once. Both steps are idempotent, so this
    is safe but redundant.
    """

    def __init__(self, sweep: Optional[OverdueSweep] = None, autopay: Optional[AutoPayBatchRunner] = None):
        self.sweep = sweep or OverdueSweep()
        self.autopay = autopay or AutoPayBatchRunner()
        self.executed = False

    def run(self, today: Optional[date] = None) -> CatchUpResult:
        if self.executed:
            logger.info("Startup catch-up already executed, skipping")
            return CatchUpResult(
                overdue_check=SweepResult(),
                auto_pay=AutoPayResult(),
                completed_at=datetime.now(timezone.utc),
                skipped=True,
            )

        logger.info("Starting startup catch-up")
        overdue_check = SweepResult()
        auto_pay = AutoPayResult()

        try:
            overdue_check = self.sweep.run(today)
        except Exception as e:
            # Auto-pay still runs
            logger.error(f"Overdue sweep failed during catch-up: {e}")

        try:
            auto_pay = self.autopay.run(today)
        except Exception as e:
            logger.error(f"Auto-pay failed during catch-up: {e}")

        self.executed = True

        logger.info(
            "Startup catch-up complete",
            extra={"marked_overdue": overdue_check.updated, "autopay_processed": auto_pay.processed},
        )
        return CatchUpResult(
            overdue_check=overdue_check,
            auto_pay=auto_pay,
            completed_at=datetime.now(timezone.utc),
        )


# Process-wide instance used by the application lifespan
startup_reconciler = StartupReconciler()
