"""Unit tests for variable bill estimation"""

import pytest
from datetime import date
from typing import Dict, List, Optional
from oar_bills.domain.estimation import AverageOfLastN, EstimationService, SameMonthPriorYear
from oar_bills.domain.exceptions import BillNotFoundError
from oar_bills.domain.models import Bill, Transaction


class InMemoryHistory:
    """Payment history backed by a list"""

    def __init__(self, payments: List[Transaction]):
        self.payments = payments

    def by_bill_id(self, bill_id: str, limit: Optional[int] = None) -> List[Transaction]:
        matching = sorted((p for p in self.payments if p.bill_id == bill_id), key=lambda p: p.paid_at, reverse=True)
        return matching if limit is None else matching[:limit]

    def by_bill_id_and_month(self, bill_id: str, year: int, month: int) -> List[Transaction]:
        return [
            p for p in self.payments
            if p.bill_id == bill_id and p.paid_at.year == year and p.paid_at.month == month
        ]


class InMemoryBills:
    def __init__(self, bills: Dict[str, Bill]):
        self.bills = bills

    def get(self, bill_id: str) -> Optional[Bill]:
        return self.bills.get(bill_id)


def _paid(paid_at: date, amount: int, bill_id: str = "gas") -> Transaction:
    return Transaction(id=f"{bill_id}-{paid_at.isoformat()}", bill_id=bill_id, amount=amount, paid_at=paid_at)


async def test_average_of_last_n_uses_most_recent_payments():
    history = InMemoryHistory([
        _paid(date(2025, 1, 10), 50000),
        _paid(date(2025, 3, 10), 10000),
        _paid(date(2025, 4, 10), 12000),
        _paid(date(2025, 5, 10), 14000),
    ])

    assert await AverageOfLastN(history, n=3).estimate("gas", date(2025, 7, 1)) == 12000


async def test_average_of_last_n_rounds_half_up():
    history = InMemoryHistory([_paid(date(2025, 4, 10), 100), _paid(date(2025, 5, 10), 101)])

    assert await AverageOfLastN(history, n=3).estimate("gas", date(2025, 7, 1)) == 101


async def test_average_of_last_n_without_history():
    assert await AverageOfLastN(InMemoryHistory([])).estimate("gas", date(2025, 7, 1)) is None


async def test_average_of_last_zero_payments_has_no_estimate():
    history = InMemoryHistory([_paid(date(2025, 5, 10), 9000)])

    assert await AverageOfLastN(history, n=0).estimate("gas", date(2025, 7, 1)) is None


async def test_same_month_prior_year_takes_latest_payment_in_month():
    history = InMemoryHistory([
        _paid(date(2024, 7, 3), 30000),
        _paid(date(2024, 7, 28), 31000),
        _paid(date(2025, 6, 1), 9000),
    ])

    assert await SameMonthPriorYear(history).estimate("gas", date(2025, 7, 1)) == 31000


async def test_same_month_prior_year_without_match():
    history = InMemoryHistory([_paid(date(2025, 6, 1), 9000)])

    assert await SameMonthPriorYear(history).estimate("gas", date(2025, 7, 1)) is None


async def test_service_prefers_seasonal_estimate(make_bill):
    """Winter heating bill: last year's January beats the summer average"""
    history = InMemoryHistory([
        _paid(date(2025, 1, 15), 40000),
        _paid(date(2025, 10, 15), 9000),
        _paid(date(2025, 11, 15), 12000),
    ])
    service = EstimationService.default(InMemoryBills({"gas": make_bill(id="gas")}), history)

    assert await service.estimate_amount("gas", date(2026, 1, 1)) == 40000


async def test_service_falls_back_to_average(make_bill):
    history = InMemoryHistory([_paid(date(2025, 5, 15), 9000), _paid(date(2025, 6, 15), 11000)])
    service = EstimationService.default(InMemoryBills({"gas": make_bill(id="gas")}), history)

    assert await service.estimate_amount("gas", date(2025, 8, 1)) == 10000


async def test_service_falls_back_to_base_amount(make_bill):
    bills = InMemoryBills({"gas": make_bill(id="gas", base_amount=7500)})
    service = EstimationService.default(bills, InMemoryHistory([]))

    assert await service.estimate_amount("gas", date(2025, 8, 1)) == 7500


async def test_service_unknown_bill_raises():
    service = EstimationService.default(InMemoryBills({}), InMemoryHistory([]))

    with pytest.raises(BillNotFoundError):
        await service.estimate_amount("missing", date(2025, 8, 1))
