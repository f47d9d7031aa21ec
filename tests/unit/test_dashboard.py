"""Unit tests for dashboard aggregation"""

from datetime import date
from decimal import Decimal
from finance_planner.domain.dashboard import build_monthly_trend, category_breakdown, summarize
from finance_planner.domain.models import LedgerEntry


def entry(day: date, amount: str, type_: str = "expense", category: str = "Alimentação", status: str = "paid"):
    return LedgerEntry(date=day, amount=Decimal(amount), type=type_, category=category, status=status)


def test_category_breakdown_sorted_by_total_then_name():
    """Test largest total first, ties broken by category name"""
    entries = [
        entry(date(2024, 3, 1), "10.00", category="Lazer"),
        entry(date(2024, 3, 2), "40.00", category="Moradia"),
        entry(date(2024, 3, 3), "10.00", category="Compras"),
        entry(date(2024, 3, 4), "5.00", category="Moradia"),
    ]

    breakdown = category_breakdown(entries, "expense")

    assert [c.category for c in breakdown] == ["Moradia", "Compras", "Lazer"]
    assert breakdown[0].total == Decimal("45.00")
    assert breakdown[0].count == 2


def test_pending_entries_ignored():
    entries = [entry(date(2024, 3, 1), "10.00", status="pending")]
    assert category_breakdown(entries, "expense") == []


def test_monthly_trend_zero_fills_and_is_chronological():
    """Test months without data are reported as zeros"""
    entries = [
        entry(date(2024, 1, 15), "100.00", type_="income", category="Salário"),
        entry(date(2024, 3, 10), "30.00"),
    ]

    trend = build_monthly_trend(entries, date(2024, 3, 20), 3)

    assert [p.month for p in trend] == ["2024-01", "2024-02", "2024-03"]
    assert trend[0].income == Decimal("100.00")
    assert trend[1].income == Decimal("0.00") and trend[1].expenses == Decimal("0.00")
    assert trend[2].balance == Decimal("-30.00")


def test_monthly_trend_crosses_year_boundary():
    trend = build_monthly_trend([], date(2024, 2, 1), 4)
    assert [p.month for p in trend] == ["2023-11", "2023-12", "2024-01", "2024-02"]


def test_summarize_current_month_only():
    """Test monthly figures use only today's month; trend uses the window"""
    today = date(2024, 3, 20)
    entries = [
        entry(date(2024, 3, 1), "1000.00", type_="income", category="Salário"),
        entry(date(2024, 3, 31), "200.00", category="Moradia"),
        entry(date(2024, 2, 28), "999.00", category="Lazer"),
    ]

    summary = summarize(entries, today, total_balance=Decimal("1234.56"))

    assert summary.monthly_income == Decimal("1000.00")
    assert summary.monthly_expenses == Decimal("200.00")
    assert summary.monthly_balance == Decimal("800.00")
    assert summary.total_balance == Decimal("1234.56")
    assert [c.category for c in summary.expenses_breakdown] == ["Moradia"]
    assert len(summary.monthly_trend) == 6
    assert summary.monthly_trend[-2].expenses == Decimal("999.00")


def test_summarize_empty():
    summary = summarize([], date(2024, 3, 20), total_balance=Decimal("0.00"), months=1)

    assert summary.monthly_income == Decimal("0.00")
    assert summary.expenses_breakdown == []
    assert [p.month for p in summary.monthly_trend] == ["2024-03"]
