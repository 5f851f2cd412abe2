"""POST /v1/jobs/* - entry points for the external scheduler"""

from fastapi import APIRouter, Depends

from oar_bills.api.v1.schemas import AutoPayResponse, SweepResponse
from oar_bills.api.dependencies import get_autopay_runner, get_overdue_sweep
from oar_bills.services.autopay import AutoPayBatchRunner
from oar_bills.services.overdue import OverdueSweep

router = APIRouter()


@router.post("/jobs/autopay", response_model=AutoPayResponse)
def run_autopay(runner: AutoPayBatchRunner = Depends(get_autopay_runner)):
    """Settle due auto-pay bills; safe to call repeatedly (e.g. from a daily cron)"""
    result = runner.run()
    return AutoPayResponse(processed=result.processed, failed=result.failed, failed_ids=result.failed_ids)


@router.post("/jobs/overdue-sweep", response_model=SweepResponse)
def run_overdue_sweep(sweep: OverdueSweep = Depends(get_overdue_sweep)):
    """Mark pending bills past their due date as overdue"""
    result = sweep.run()
    return SweepResponse(checked=result.checked, updated=result.updated)
