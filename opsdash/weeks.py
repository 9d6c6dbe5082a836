from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional


MONTH_NAMES = list(calendar.month_name)[1:]


def week_start(value: date) -> date:
    """Monday on or before ``value`` (time of day dropped)."""
    if isinstance(value, datetime):
        value = value.date()
    # weekday(): Monday=0 .. Sunday=6
    return value - timedelta(days=value.weekday())


def format_week_label(value: date) -> str:
    return f"{value.month}/{value.day}/{value.year}"


def month_name(month: int) -> str:
    return MONTH_NAMES[month - 1]


def sorted_weeks(weeks: Iterable[date]) -> List[date]:
    return sorted({week_start(w) for w in weeks})


def available_years(weeks: Iterable[date]) -> List[int]:
    return sorted({w.year for w in weeks}, reverse=True)


def available_months(weeks: Iterable[date], year: int) -> List[int]:
    return sorted({w.month for w in weeks if w.year == year})


def week_window(weeks: Iterable[date], year: Optional[int] = None, month: Optional[int] = None) -> List[date]:
    """Narrow the ordered week list to a year, and to a month within that year.

    A month without a year selects nothing narrower than all weeks. Weeks are
    matched on the Monday that starts them, so a week straddling a month end
    belongs to the month it starts in.
    """
    window = sorted_weeks(weeks)
    if year is None:
        return window
    window = [w for w in window if w.year == year]
    if month is not None:
        window = [w for w in window if w.month == month]
    return window
