"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from oar_bills.domain.estimation import EstimationService
from oar_bills.domain.forecast import ForecastProjector
from oar_bills.infrastructure.database.repositories import BillRepository, TransactionRepository
from oar_bills.infrastructure.database.session import SessionLocal, get_db
from oar_bills.services.autopay import AutoPayBatchRunner
from oar_bills.services.overdue import OverdueSweep


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_forecast_projector(db: Session = Depends(get_db)) -> ForecastProjector:
    """Projector estimating variable bills from the bill's payment history"""
    estimation = EstimationService.default(BillRepository(db), TransactionRepository(db))
    return ForecastProjector(estimation)


def get_autopay_runner() -> AutoPayBatchRunner:
    return AutoPayBatchRunner(SessionLocal)


def get_overdue_sweep() -> OverdueSweep:
    return OverdueSweep(SessionLocal)
