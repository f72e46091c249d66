"""Date manipulation utilities"""

import calendar
from datetime import date


def add_months(from_date: date, months: int) -> date:
    """
    Add calendar months to a date, clamping to the last day of the target month.

    2024-01-31 + 1 month -> 2024-02-29, + 2 months -> 2024-03-31.
    """
    month_index = from_date.month - 1 + months
    year = from_date.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(from_date.day, last_day))


def format_iso_date(value: date) -> str:
    """Format a date as YYYY-MM-DD"""
    return value.strftime("%Y-%m-%d")
