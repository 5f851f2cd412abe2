"""Date manipulation utilities"""

import calendar
from datetime import date, datetime
from typing import Optional

from dateutil.relativedelta import relativedelta


def as_day(value: date | datetime) -> date:
    """Strip the time-of-day component, if any"""
    if isinstance(value, datetime):
        return value.date()
    return value


def start_of_month(day: date) -> date:
    return day.replace(day=1)


def end_of_month(day: date) -> date:
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def add_months(day: date, months: int) -> date:
    """Shift by whole months, clamping to the last day of a shorter month"""
    return day + relativedelta(months=months)


def parse_month(value: str) -> date:
    """Parse a YYYY-MM string into the first day of that month"""
    return datetime.strptime(value, "%Y-%m").date()


def format_month(day: date) -> str:
    return day.strftime("%Y-%m")


def format_relative_due_date(due_date: date, status: str, today: Optional[date] = None) -> str:
    """
    Human-readable distance to a due date, e.g. "Due in 3 days" or "Overdue by 1 day".

    Paid one-time bills read "Paid"; recurring bills never stay paid because they
    advance to the next cycle.
    """
    if status == "paid":
        return "Paid"

    today = today or date.today()
    diff_days = (as_day(due_date) - today).days

    if diff_days < 0:
        overdue = abs(diff_days)
        return "Overdue by 1 day" if overdue == 1 else f"Overdue by {overdue} days"
    if diff_days == 0:
        return "Due today"
    if diff_days == 1:
        return "Due tomorrow"
    if diff_days == 7:
        return "Due in 1 week"
    if diff_days <= 13:
        return f"Due in {diff_days} days"
    if diff_days <= 27:
        return f"Due in {diff_days // 7} weeks"

    delta = relativedelta(as_day(due_date), today)
    months = delta.years * 12 + delta.months

    if months == 1 or diff_days <= 45:
        return "Due in about 1 month"
    if months <= 5:
        return f"Due in {months} months"
    return "Due in over 6 months"
