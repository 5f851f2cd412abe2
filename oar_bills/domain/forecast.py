"""Forecast projection - bills due in a month, estimates and amortization"""

import asyncio
from datetime import date
from typing import Dict, Iterable, List, Optional

from oar_bills.config import settings
from oar_bills.domain.estimation import EstimationService
from oar_bills.domain.models import (
    Bill,
    BillStatus,
    ForecastBill,
    ForecastSummary,
    Frequency,
    MonthlyForecastTotal,
)
from oar_bills.domain.recurrence import occurrences_between
from oar_bills.utils.date_utils import add_months, end_of_month, format_month, start_of_month
from oar_bills.utils.money import round_half_up

# Bills recurring less often than monthly; value is months per cycle
AMORTIZED_MONTHS: Dict[Frequency, int] = {
    Frequency.BIMONTHLY: 2,
    Frequency.QUARTERLY: 3,
    Frequency.YEARLY: 12,
}


def amortization_amount(bill: Bill) -> Optional[int]:
    """
    Monthly amount to set aside for bills due less often than monthly.

    Example:
        yearly 100000 -> 8333
        bimonthly 20000 -> 10000
    """
    months = AMORTIZED_MONTHS.get(Frequency(bill.frequency))
    if months is None:
        return None
    return round_half_up(bill.base_amount, months)


def project_occurrence(bill: Bill, month_start: date, month_end: date) -> Optional[date]:
    """First occurrence of the bill inside the month, if any"""
    occurrences = occurrences_between(bill.due_date, bill.frequency, month_start, month_end, bill.end_date)
    return occurrences[0] if occurrences else None


def is_forecastable(bill: Bill, tag: Optional[str] = None) -> bool:
    if bill.is_archived or BillStatus(bill.status) is BillStatus.PAID:
        return False
    return tag is None or tag in bill.tags


def summarize(forecast_bills: Iterable[ForecastBill]) -> ForecastSummary:
    """Sum display amounts and amortized savings"""
    forecast_bills = list(forecast_bills)
    total_due = sum(fb.display_amount for fb in forecast_bills)
    total_to_save = sum(fb.amortization_amount for fb in forecast_bills if fb.amortization_amount is not None)
    return ForecastSummary(total_due=total_due, total_to_save=total_to_save, grand_total=total_due + total_to_save)


def annual_summary(monthly_totals: Iterable[MonthlyForecastTotal]) -> ForecastSummary:
    """Totals across a projected range, e.g. twelve months"""
    monthly_totals = list(monthly_totals)
    total_due = sum(m.total_due for m in monthly_totals)
    total_to_save = sum(m.total_to_save for m in monthly_totals)
    return ForecastSummary(total_due=total_due, total_to_save=total_to_save, grand_total=total_due + total_to_save)


class ForecastProjector:
    """Projects active bills into target months"""

    def __init__(self, estimation: EstimationService):
        self.estimation = estimation

    async def project_month(
        self,
        bills: Iterable[Bill],
        target_month: date,
        tag: Optional[str] = None,
    ) -> List[ForecastBill]:
        """
        Project every active bill into the month containing target_month.

        Bills without an occurrence in the month are skipped. Variable bills
        are estimated concurrently and flagged as estimates.
        """
        month_start = start_of_month(target_month)
        month_end = end_of_month(target_month)

        forecast_bills: List[ForecastBill] = []
        for bill in bills:
            if not is_forecastable(bill, tag):
                continue

            projected = project_occurrence(bill, month_start, month_end)
            if projected is None:
                continue

            forecast_bills.append(
                ForecastBill(
                    bill=bill,
                    due_date=projected,
                    display_amount=bill.base_amount,
                    amortization_amount=amortization_amount(bill),
                )
            )

        variable = [fb for fb in forecast_bills if fb.bill.is_variable]
        if variable:
            # Concurrent only for async history sources; the SQLAlchemy repository blocks, so these run in turn
            estimates = await asyncio.gather(
                *(self.estimation.estimate_amount(fb.bill.id, month_start) for fb in variable)
            )
            for fb, estimate in zip(variable, estimates):
                fb.display_amount = estimate
                fb.is_estimated = True

        forecast_bills.sort(key=lambda fb: fb.due_date)
        return forecast_bills

    async def project_range(
        self,
        bills: Iterable[Bill],
        start_month: date,
        count: int,
        tag: Optional[str] = None,
    ) -> List[MonthlyForecastTotal]:
        """Monthly totals for count consecutive months starting at start_month"""
        bills = list(bills)
        count = max(0, min(count, settings.forecast_max_months))
        first = start_of_month(start_month)

        totals: List[MonthlyForecastTotal] = []
        for offset in range(count):
            month = add_months(first, offset)
            summary = summarize(await self.project_month(bills, month, tag))
            totals.append(
                MonthlyForecastTotal(
                    month=format_month(month),
                    month_label=month.strftime("%b"),
                    total_due=summary.total_due,
                    total_to_save=summary.total_to_save,
                    grand_total=summary.grand_total,
                )
            )
        return totals
