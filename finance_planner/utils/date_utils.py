"""Date manipulation utilities"""

import calendar
from datetime import date
from typing import List, Tuple


def days_in_month(year: int, month: int) -> int:
    """Number of days in the given month"""
    return calendar.monthrange(year, month)[1]


def add_months(from_date: date, months: int) -> Tuple[int, int]:
    """(year, month) that lies `months` calendar months after from_date's month"""
    index = from_date.year * 12 + (from_date.month - 1) + months
    return index // 12, index % 12 + 1


def clamp_day(year: int, month: int, day: int) -> date:
    """Date in the given month, clamping day to the month length (31 -> 28 in February)"""
    return date(year, month, min(day, days_in_month(year, month)))


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """First and last day of a month (inclusive)"""
    return date(year, month, 1), date(year, month, days_in_month(year, month))


def months_between(start: date, end: date) -> int:
    """Whole calendar months from start's month to end's month"""
    return (end.year - start.year) * 12 + (end.month - start.month)


def generate_month_range(today: date, count: int) -> List[Tuple[int, int]]:
    """Trailing `count` months ending with today's month, oldest first"""
    return [add_months(today, -offset) for offset in range(count - 1, -1, -1)]


def month_label(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"
