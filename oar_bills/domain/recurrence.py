"""Recurrence engine - next/previous occurrence math and status derivation"""

from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Tuple

from dateutil.relativedelta import relativedelta
from dateutil.rrule import MONTHLY, WEEKLY, YEARLY, rrule

from oar_bills.domain.models import BillStatus, Frequency
from oar_bills.utils.date_utils import as_day, start_of_month

# Frequency -> (rrule unit, interval). ONCE has no rule.
FREQUENCY_RULES: Dict[Frequency, Tuple[int, int]] = {
    Frequency.WEEKLY: (WEEKLY, 1),
    Frequency.BIWEEKLY: (WEEKLY, 2),
    Frequency.TWICE_MONTHLY: (MONTHLY, 1),
    Frequency.MONTHLY: (MONTHLY, 1),
    Frequency.BIMONTHLY: (MONTHLY, 2),
    Frequency.QUARTERLY: (MONTHLY, 3),
    Frequency.YEARLY: (YEARLY, 1),
}


def _to_datetime(day: date) -> datetime:
    return datetime(day.year, day.month, day.day)


def paired_day(day: int) -> int:
    """Second day of a twice-monthly bill: 5 pairs with 19, 20 pairs with 6"""
    return day + 14 if day <= 14 else day - 14


def build_rule(
    due_date: date,
    frequency: Frequency | str,
    end_date: Optional[date] = None,
    dtstart: Optional[date] = None,
) -> Optional[rrule]:
    """
    Build the recurrence rule anchored on a bill's due date.

    The by* parts are pinned to the due date so the rule can also be started
    from an earlier, aligned dtstart (used when walking backwards).

    Raises:
        ValueError: Unknown frequency
    """
    frequency = Frequency(frequency)
    if frequency is Frequency.ONCE:
        return None

    unit, interval = FREQUENCY_RULES[frequency]
    options = {"dtstart": _to_datetime(dtstart or due_date), "interval": interval}

    if frequency is Frequency.TWICE_MONTHLY:
        options["bymonthday"] = sorted({due_date.day, paired_day(due_date.day)})
    elif unit == MONTHLY:
        # Months without this day are skipped, not clamped
        options["bymonthday"] = due_date.day
    elif unit == YEARLY:
        options["bymonth"] = due_date.month
        options["bymonthday"] = due_date.day
    else:
        options["byweekday"] = due_date.weekday()

    if end_date is not None:
        options["until"] = _to_datetime(as_day(end_date))

    return rrule(unit, **options)


def next_occurrence(
    due_date: date,
    frequency: Frequency | str,
    end_date: Optional[date] = None,
) -> Optional[date]:
    """
    Next due date after due_date, or None for one-time bills and ended series.

    Examples:
        2025-01-31 monthly -> 2025-03-31 (February has no 31st)
        2024-02-29 yearly  -> 2028-02-29
        2025-03-20 twicemonthly -> 2025-04-06
    """
    due_date = as_day(due_date)
    rule = build_rule(due_date, frequency, end_date)
    if rule is None:
        return None

    following = rule.after(_to_datetime(due_date))
    return following.date() if following else None


def previous_occurrence(due_date: date, frequency: Frequency | str) -> Optional[date]:
    """Occurrence immediately before due_date; inverse of next_occurrence"""
    due_date = as_day(due_date)
    frequency = Frequency(frequency)
    if frequency is Frequency.ONCE:
        return None

    unit, interval = FREQUENCY_RULES[frequency]
    if unit == WEEKLY:
        return due_date - timedelta(weeks=interval)

    # Start far enough back to cover skipped months/years, keeping interval alignment
    if unit == YEARLY:
        anchor = date(due_date.year - 8, 1, 1)
    elif frequency is Frequency.TWICE_MONTHLY:
        anchor = start_of_month(due_date) - relativedelta(months=2)
    else:
        anchor = start_of_month(due_date) - relativedelta(months=12 * interval)

    rule = build_rule(due_date, frequency, dtstart=anchor)
    preceding = rule.before(_to_datetime(due_date))
    return preceding.date() if preceding else None


def occurrences_between(
    due_date: date,
    frequency: Frequency | str,
    start: date,
    end: date,
    end_date: Optional[date] = None,
) -> List[date]:
    """All occurrences of the series starting at due_date inside [start, end]"""
    due_date = as_day(due_date)
    if Frequency(frequency) is Frequency.ONCE:
        return [due_date] if start <= due_date <= end else []

    if end_date is not None and as_day(end_date) < start:
        return []

    rule = build_rule(due_date, frequency, end_date)
    return [o.date() for o in rule.between(_to_datetime(start), _to_datetime(end), inc=True)]


def derive_status(due_date: date | datetime, today: Optional[date] = None) -> BillStatus:
    """Overdue if the due day is strictly before today, pending otherwise"""
    today = as_day(today or date.today())
    return BillStatus.OVERDUE if as_day(due_date) < today else BillStatus.PENDING
