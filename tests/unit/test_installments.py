"""Unit tests for installment plan generation"""

from datetime import date
from decimal import Decimal
from finance_planner.domain.installments import (
    calculate_paid_installments,
    generate_installment_plan,
    has_installment_due_in,
    installment_due_date,
)


def test_generate_installment_plan_equal_split():
    """Test plan with evenly divisible amount"""
    installments = generate_installment_plan(Decimal("400.00"), 4, date(2024, 1, 10), 10)

    assert len(installments) == 4
    assert all(inst.amount == Decimal("100.00") for inst in installments)
    assert sum(inst.amount for inst in installments) == Decimal("400.00")


def test_generate_installment_plan_rounding():
    """Test last installment absorbs remainder"""
    installments = generate_installment_plan(Decimal("100.00"), 3, date(2024, 1, 10), 10)

    assert [inst.amount for inst in installments] == [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")]
    assert sum(inst.amount for inst in installments) == Decimal("100.00")


def test_generate_installment_plan_dates():
    """Test monthly due dates on the payment day"""
    installments = generate_installment_plan(Decimal("300.00"), 3, date(2024, 11, 3), 20)

    assert [inst.due_date for inst in installments] == [date(2024, 11, 20), date(2024, 12, 20), date(2025, 1, 20)]
    assert [inst.number for inst in installments] == [1, 2, 3]


def test_due_date_clamped_to_month_length():
    """Test payment day 31 falls on the last day of shorter months"""
    assert installment_due_date(date(2024, 1, 31), 31, 2) == date(2024, 2, 29)
    assert installment_due_date(date(2023, 1, 31), 31, 2) == date(2023, 2, 28)
    assert installment_due_date(date(2024, 1, 31), 31, 4) == date(2024, 4, 30)


def test_generate_installment_plan_zero_amount():
    """Test handling of zero amount"""
    assert generate_installment_plan(Decimal("0"), 3, date(2024, 1, 1), 1) == []


def test_paid_installments_future_start():
    assert calculate_paid_installments(date(2024, 5, 1), 10, 12, date(2024, 4, 1)) == 0


def test_paid_installments_counts_current_month_after_payment_day():
    """Test the current month counts once the payment day has passed"""
    start = date(2024, 1, 5)
    assert calculate_paid_installments(start, 10, 12, date(2024, 3, 9)) == 2
    assert calculate_paid_installments(start, 10, 12, date(2024, 3, 10)) == 3


def test_paid_installments_clamped_to_plan_size():
    assert calculate_paid_installments(date(2020, 1, 1), 1, 6, date(2024, 1, 1)) == 6


def test_has_installment_due_in():
    """Test only months with an unpaid installment match"""
    start = date(2024, 1, 15)

    assert has_installment_due_in(start, 3, 0, 2024, 1)
    assert has_installment_due_in(start, 3, 1, 2024, 2)
    assert not has_installment_due_in(start, 3, 2, 2024, 2)
    assert not has_installment_due_in(start, 3, 0, 2024, 4)
    assert not has_installment_due_in(start, 3, 0, 2023, 12)
