"""
Business-day arithmetic for leave requests and payslip leave valuation.
"""
import calendar
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Optional, Set

import pandas as pd

def to_calendar_date(value: Any) -> Optional[date]:
    """Calendar date of ``value`` in its own timezone, or None if it cannot be read.

    Accepts ``date``, ``datetime``/``Timestamp`` and date strings. The time of
    day is dropped without any timezone conversion, so a holiday stored as
    ``2024-03-08T23:30:00+02:00`` stays on the 8th.
    """
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and not value.strip():
        return None
    try:
        ts = pd.to_datetime(value, errors="coerce")
    except (TypeError, ValueError):
        return None
    if not isinstance(ts, pd.Timestamp):
        return None
    return ts.date()

def holiday_dates(holidays: Iterable[Any]) -> Set[date]:
    """Normalize holiday values (or objects with ``holiday_date``) to a set of dates."""
    dates = set()
    for h in holidays or ():
        d = to_calendar_date(getattr(h, "holiday_date", h))
        if d is not None:
            dates.add(d)
    return dates

def count_business_days(start: Any, end: Any, holidays: Iterable[Any] = ()) -> int:
    """Count weekdays from ``start`` to ``end`` inclusive that are not holidays.

    Returns 0 when either date is missing or unreadable, or when ``end`` is
    before ``start``.
    """
    start_date = to_calendar_date(start)
    end_date = to_calendar_date(end)
    if start_date is None or end_date is None:
        return 0
    if end_date < start_date:
        return 0

    excluded = holiday_dates(holidays)
    count = 0
    current = start_date
    while current <= end_date:
        # Monday=0 .. Sunday=6
        if current.weekday() < 5 and current not in excluded:
            count += 1
        current += timedelta(days=1)
    return count

def business_days_in_month(year: int, month: int, holidays: Iterable[Any] = ()) -> int:
    last_day = calendar.monthrange(year, month)[1]
    return count_business_days(date(year, month, 1), date(year, month, last_day), holidays)

def leave_value(
    balance_days: float,
    basic_salary: float,
    year: int,
    month: int,
    holidays: Iterable[Any] = (),
) -> float:
    """Cash value of unused leave: balance days at the month's daily basic rate."""
    working_days = business_days_in_month(year, month, holidays)
    if working_days == 0:
        return 0.0
    return balance_days * (basic_salary / working_days)
