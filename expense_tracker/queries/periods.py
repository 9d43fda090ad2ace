"""
Calendar Period Arithmetic

Period bounds are calendar-aligned and computed from "now":
every period is "since X", an inclusive lower bound with no upper bound.
"""

from datetime import date, datetime, timedelta
from typing import Optional, Union

from expense_tracker.models.views import Period


def as_date(value: Union[date, datetime]) -> date:
    """Drop the time of day from a datetime; dates pass through."""
    if isinstance(value, datetime):
        return value.date()
    return value


def add_years(day: date, years: int) -> date:
    """Same calendar day `years` later; Feb 29 falls back to Feb 28."""
    try:
        return day.replace(year=day.year + years)
    except ValueError:
        return day.replace(year=day.year + years, day=28)


def shift_month(year: int, month: int, offset: int) -> tuple[int, int]:
    """(year, month) moved by `offset` months, rolling over year boundaries."""
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def previous_month(year: int, month: int) -> tuple[int, int]:
    """The calendar month before (year, month); January rolls back to December."""
    return shift_month(year, month, -1)


def period_start(period: Period, now: Union[date, datetime]) -> Optional[date]:
    """
    First day included in a period, or None for Period.NONE.

    - today:   the current day
    - week:    the most recent Sunday (weeks start on Sunday)
    - month:   the 1st of the current month
    - quarter: the 1st of the current quarter's first month
    - year:    January 1st
    """
    today = as_date(now)
    period = Period(period)

    if period == Period.TODAY:
        return today
    if period == Period.WEEK:
        # date.weekday(): Monday=0 .. Sunday=6; days since Sunday:
        days_since_sunday = (today.weekday() + 1) % 7
        return today - timedelta(days=days_since_sunday)
    if period == Period.MONTH:
        return today.replace(day=1)
    if period == Period.QUARTER:
        quarter = (today.month - 1) // 3
        return date(today.year, quarter * 3 + 1, 1)
    if period == Period.YEAR:
        return date(today.year, 1, 1)
    return None


def in_month(day: date, year: int, month: int) -> bool:
    return day.year == year and day.month == month
