"""Amount estimation for variable bills"""

import logging
from abc import ABC, abstractmethod
from datetime import date
from typing import List, Optional, Protocol, Sequence

from oar_bills.config import settings
from oar_bills.domain.exceptions import BillNotFoundError
from oar_bills.domain.models import Bill, Transaction
from oar_bills.utils.money import round_half_up

logger = logging.getLogger(__name__)


class PaymentHistory(Protocol):
    """Read access to a bill's payments, most recent first"""

    def by_bill_id(self, bill_id: str, limit: Optional[int] = None) -> List[Transaction]: ...

    def by_bill_id_and_month(self, bill_id: str, year: int, month: int) -> List[Transaction]: ...


class BillLookup(Protocol):
    def get(self, bill_id: str) -> Optional[Bill]: ...


class EstimationStrategy(ABC):
    """Estimates a variable bill's amount for a target month"""

    name: str = "base"

    @abstractmethod
    async def estimate(self, bill_id: str, target_month: date) -> Optional[int]:
        """Estimated amount in minor units, or None if there is not enough data"""


class AverageOfLastN(EstimationStrategy):
    """Average of the most recent N payments"""

    name = "average_of_last_n"

    def __init__(self, history: PaymentHistory, n: Optional[int] = None):
        self.history = history
        self.n = settings.estimation_sample_size if n is None else n

    async def estimate(self, bill_id: str, target_month: date) -> Optional[int]:
        payments = self.history.by_bill_id(bill_id, limit=self.n)[: self.n]
        if not payments:
            return None
        return round_half_up(sum(p.amount for p in payments), len(payments))


class SameMonthPriorYear(EstimationStrategy):
    """Amount paid in the same calendar month one year earlier (seasonal bills)"""

    name = "same_month_prior_year"

    def __init__(self, history: PaymentHistory):
        self.history = history

    async def estimate(self, bill_id: str, target_month: date) -> Optional[int]:
        payments = self.history.by_bill_id_and_month(bill_id, target_month.year - 1, target_month.month)
        if not payments:
            return None
        latest = max(payments, key=lambda p: p.paid_at)
        return latest.amount


class EstimationService:
    """
    Picks the first strategy that produces an estimate.

    Default order:
    1. SameMonthPriorYear (most accurate for seasonal bills)
    2. AverageOfLastN
    3. The bill's base amount
    """

    def __init__(self, bills: BillLookup, strategies: Sequence[EstimationStrategy]):
        self.bills = bills
        self.strategies = list(strategies)

    @classmethod
    def default(cls, bills: BillLookup, history: PaymentHistory) -> "EstimationService":
        return cls(bills, [SameMonthPriorYear(history), AverageOfLastN(history)])

    async def estimate_amount(self, bill_id: str, target_month: date) -> int:
        """
        Raises:
            BillNotFoundError: No strategy had data and the bill does not exist
        """
        for strategy in self.strategies:
            estimate = await strategy.estimate(bill_id, target_month)
            if estimate is not None:
                logger.debug(
                    "Estimated variable bill",
                    extra={"bill_id": bill_id, "strategy": strategy.name, "amount": estimate},
                )
                return estimate

        bill = self.bills.get(bill_id)
        if bill is None:
            raise BillNotFoundError(f"Bill not found: {bill_id}")
        return bill.base_amount
