"""GET /v1/forecast - projected bills and totals per month"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from oar_bills.api.v1.schemas import (
    ForecastBillSchema,
    ForecastRangeResponse,
    ForecastResponse,
    ForecastSummarySchema,
    MonthlyTotalSchema,
)
from oar_bills.api.dependencies import get_forecast_projector
from oar_bills.config import settings
from oar_bills.domain.forecast import ForecastProjector, annual_summary, summarize
from oar_bills.infrastructure.database.repositories import BillRepository
from oar_bills.infrastructure.database.session import get_db
from oar_bills.infrastructure.observability.metrics import forecast_duration_histogram
from oar_bills.utils.date_utils import format_month, format_relative_due_date, parse_month
from oar_bills.utils.money import format_money

router = APIRouter()


def _month(value: Optional[str]) -> date:
    if value is None:
        return date.today().replace(day=1)
    try:
        return parse_month(value)
    except ValueError:
        raise HTTPException(status_code=400, detail="Month must be in YYYY-MM format")


@router.get("/forecast", response_model=ForecastResponse)
async def get_forecast(
    month: Optional[str] = Query(None, description="Target month, YYYY-MM"),
    tag: Optional[str] = Query(None, description="Tag slug filter"),
    db: Session = Depends(get_db),
    projector: ForecastProjector = Depends(get_forecast_projector),
):
    """Bills due in the month, with estimates for variable bills and amortized savings"""
    target = _month(month)

    with forecast_duration_histogram.labels(scope="month").time():
        bills = BillRepository(db).get_active(tag)
        forecast_bills = await projector.project_month(bills, target, tag)

    summary = summarize(forecast_bills)
    return ForecastResponse(
        month=format_month(target),
        bills=[
            ForecastBillSchema(
                bill_id=fb.bill.id,
                title=fb.bill.title,
                due_date=fb.due_date,
                frequency=fb.bill.frequency.value,
                display_amount=fb.display_amount,
                is_estimated=fb.is_estimated,
                amortization_amount=fb.amortization_amount,
                formatted_amount=format_money(fb.display_amount),
                due_label=format_relative_due_date(fb.due_date, fb.bill.status.value),
                tags=fb.bill.tags,
            )
            for fb in forecast_bills
        ],
        summary=ForecastSummarySchema(**vars(summary)),
    )


@router.get("/forecast/range", response_model=ForecastRangeResponse)
async def get_forecast_range(
    start: Optional[str] = Query(None, description="First month, YYYY-MM"),
    count: int = Query(12, ge=1, le=settings.forecast_max_months),
    tag: Optional[str] = Query(None, description="Tag slug filter"),
    db: Session = Depends(get_db),
    projector: ForecastProjector = Depends(get_forecast_projector),
):
    """Month-by-month totals plus the total across the range"""
    first = _month(start)

    with forecast_duration_histogram.labels(scope="range").time():
        bills = BillRepository(db).get_active(tag)
        totals = await projector.project_range(bills, first, count, tag)

    return ForecastRangeResponse(
        months=[MonthlyTotalSchema(**vars(t)) for t in totals],
        annual=ForecastSummarySchema(**vars(annual_summary(totals))),
    )
