"""Calendar arithmetic shared by the calculator, matcher and schedulers."""

import calendar
from datetime import date, timedelta


def add_months(start: date, months: int) -> date:
    """Shift by whole calendar months, clamping to the last day of the target month.

    Jan 31 + 1 month is Feb 28 (or 29). Negative offsets are allowed.
    """
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def add_years(start: date, years: int) -> date:
    return add_months(start, years * 12)


def add_weeks(start: date, weeks: int) -> date:
    return start + timedelta(weeks=weeks)


def days_between(start: date, end: date) -> int:
    """Signed number of calendar days from start to end."""
    return (end - start).days


def days_in_previous_month(day: date) -> int:
    """Length of the calendar month before the one containing day."""
    return (day.replace(day=1) - timedelta(days=1)).day


def whole_months_between(start: date, end: date) -> int:
    """Largest m with add_months(start, m) <= end (negative when end precedes start)."""
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if add_months(start, months) > end:
        months -= 1
    return months
