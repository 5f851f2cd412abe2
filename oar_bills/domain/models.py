"""Domain models - pure Python dataclasses representing bills, payments and forecasts"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import List, Optional


class Frequency(str, Enum):
    """How often a bill falls due"""

    ONCE = "once"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    TWICE_MONTHLY = "twicemonthly"
    MONTHLY = "monthly"
    BIMONTHLY = "bimonthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class BillStatus(str, Enum):
    """Derived bill status; never set directly by callers"""

    PENDING = "pending"
    OVERDUE = "overdue"
    PAID = "paid"


@dataclass
class Bill:
    """Recurring or one-time obligation"""

    id: str
    title: str
    base_amount: int  # minor units
    amount_due: int  # outstanding balance of the current cycle
    due_date: date
    frequency: Frequency = Frequency.MONTHLY
    status: BillStatus = BillStatus.PENDING
    end_date: Optional[date] = None
    is_auto_pay: bool = False
    is_variable: bool = False
    is_archived: bool = False
    tags: List[str] = field(default_factory=list)


@dataclass
class Transaction:
    """Payment logged against a bill"""

    id: str
    bill_id: str
    amount: int
    paid_at: date
    notes: Optional[str] = None


@dataclass
class PaymentResult:
    """Bill state produced by a single payment"""

    due_date: date
    amount_due: int
    status: BillStatus
    is_historical: bool = False
    bill_ended: bool = False
    cycle_advanced: bool = False


@dataclass
class BillState:
    """Bill state rebuilt from a complete payment history"""

    due_date: date
    amount_due: int
    status: BillStatus
    bill_ended: bool = False


@dataclass
class AutoPayResult:
    """Outcome of an auto-pay batch"""

    processed: int = 0
    failed: int = 0
    failed_ids: List[str] = field(default_factory=list)


@dataclass
class SweepResult:
    """Outcome of the overdue status sweep"""

    checked: int = 0
    updated: int = 0


@dataclass
class CatchUpResult:
    """Outcome of the startup reconciliation"""

    overdue_check: SweepResult
    auto_pay: AutoPayResult
    completed_at: datetime
    skipped: bool = False


@dataclass
class ForecastBill:
    """Bill projected into a target month"""

    bill: Bill
    due_date: date  # projected occurrence
    display_amount: int
    is_estimated: bool = False
    amortization_amount: Optional[int] = None


@dataclass
class ForecastSummary:
    """Totals for a set of forecast bills"""

    total_due: int
    total_to_save: int
    grand_total: int


@dataclass
class MonthlyForecastTotal:
    """Forecast totals for one month of a range"""

    month: str  # YYYY-MM
    month_label: str  # Jan, Feb, ...
    total_due: int
    total_to_save: int
    grand_total: int
