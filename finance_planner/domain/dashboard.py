"""Dashboard aggregation - monthly totals, category breakdown and trend"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Tuple

from finance_planner.domain.models import (
    EXPENSE,
    INCOME,
    PAID,
    CategoryTotal,
    DashboardSummary,
    LedgerEntry,
    MonthlyTrendPoint,
)
from finance_planner.utils.date_utils import generate_month_range, month_label

ZERO = Decimal("0.00")


def category_breakdown(entries: Iterable[LedgerEntry], type_: str) -> List[CategoryTotal]:
    """Per-category {total, count} of paid entries of one type, largest total first"""
    totals: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    counts: Dict[str, int] = defaultdict(int)

    for entry in entries:
        if entry.status != PAID or entry.type != type_:
            continue
        totals[entry.category] += entry.amount
        counts[entry.category] += 1

    breakdown = [CategoryTotal(category=c, total=totals[c], count=counts[c]) for c in totals]
    return sorted(breakdown, key=lambda c: (-c.total, c.category))


def monthly_totals(entries: Iterable[LedgerEntry]) -> Dict[Tuple[int, int], Tuple[Decimal, Decimal]]:
    """(income, expenses) of paid entries keyed by (year, month)"""
    totals: Dict[Tuple[int, int], Tuple[Decimal, Decimal]] = {}

    for entry in entries:
        if entry.status != PAID:
            continue
        key = (entry.date.year, entry.date.month)
        income, expenses = totals.get(key, (ZERO, ZERO))
        if entry.type == INCOME:
            income += entry.amount
        elif entry.type == EXPENSE:
            expenses += entry.amount
        totals[key] = (income, expenses)

    return totals


def build_monthly_trend(entries: Iterable[LedgerEntry], today: date, months: int) -> List[MonthlyTrendPoint]:
    """
    Income/expense totals for the trailing `months` months, oldest first.

    Months without transactions are reported as zeros instead of being
    omitted so the series always has `months` points.
    """
    totals = monthly_totals(entries)
    trend = []
    for year, month in generate_month_range(today, months):
        income, expenses = totals.get((year, month), (ZERO, ZERO))
        trend.append(
            MonthlyTrendPoint(
                month=month_label(year, month),
                income=income,
                expenses=expenses,
                balance=income - expenses,
            )
        )
    return trend


def summarize(
    entries: List[LedgerEntry],
    today: date,
    total_balance: Decimal,
    months: int = 6,
) -> DashboardSummary:
    """
    Main entry point: build the dashboard from the entries of the trailing window.

    `entries` must cover at least the trailing `months` months; entries
    outside that window are ignored by the trend and only entries of
    today's month feed the monthly figures.
    """
    current = [e for e in entries if (e.date.year, e.date.month) == (today.year, today.month)]

    income_breakdown = category_breakdown(current, INCOME)
    expenses_breakdown = category_breakdown(current, EXPENSE)

    monthly_income = sum((c.total for c in income_breakdown), ZERO)
    monthly_expenses = sum((c.total for c in expenses_breakdown), ZERO)

    return DashboardSummary(
        total_balance=total_balance,
        monthly_income=monthly_income,
        monthly_expenses=monthly_expenses,
        monthly_balance=monthly_income - monthly_expenses,
        expenses_breakdown=expenses_breakdown,
        income_breakdown=income_breakdown,
        monthly_trend=build_monthly_trend(entries, today, months),
    )
