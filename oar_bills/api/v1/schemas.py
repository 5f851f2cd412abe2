"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from datetime import date
from typing import List, Optional


class PaymentRequest(BaseModel):
    """Request body for POST /v1/bills/{bill_id}/payments"""

    amount: int = Field(..., gt=0, description="Amount paid in minor units")
    paid_at: date
    notes: Optional[str] = Field(None, max_length=500)
    advance_cycle: bool = Field(True, description="Full payment advances the due date; partial only reduces amount due")


class PaymentResponse(BaseModel):
    """Response for POST /v1/bills/{bill_id}/payments"""

    transaction_id: str
    is_historical: bool


class TransactionUpdateRequest(BaseModel):
    """Request body for PUT /v1/transactions/{transaction_id}"""

    amount: int = Field(..., gt=0, description="Amount paid in minor units")
    paid_at: date
    notes: Optional[str] = Field(None, max_length=500)


class TransactionSchema(BaseModel):
    """Single payment record"""

    id: str
    bill_id: str
    amount: int
    paid_at: date
    notes: Optional[str] = None


class ForecastBillSchema(BaseModel):
    """Bill projected into the requested month"""

    bill_id: str
    title: str
    due_date: date
    frequency: str
    display_amount: int
    is_estimated: bool
    amortization_amount: Optional[int] = None
    formatted_amount: str = Field(..., description="Display amount with currency, e.g. '49.99 zł'")
    due_label: str = Field(..., description="Relative due date, e.g. 'Due in 3 days'")
    tags: List[str] = []


class ForecastSummarySchema(BaseModel):
    total_due: int
    total_to_save: int
    grand_total: int


class ForecastResponse(BaseModel):
    """Response for GET /v1/forecast"""

    month: str
    bills: List[ForecastBillSchema]
    summary: ForecastSummarySchema


class MonthlyTotalSchema(BaseModel):
    month: str
    month_label: str
    total_due: int
    total_to_save: int
    grand_total: int


class ForecastRangeResponse(BaseModel):
    """Response for GET /v1/forecast/range"""

    months: List[MonthlyTotalSchema]
    annual: ForecastSummarySchema


class AutoPayResponse(BaseModel):
    """Response for POST /v1/jobs/autopay"""

    processed: int
    failed: int
    failed_ids: List[str]


class SweepResponse(BaseModel):
    """Response for POST /v1/jobs/overdue-sweep"""

    checked: int
    updated: int
