"""Installment plan generation for monthly payment plans"""

from datetime import date
from decimal import Decimal
from typing import List

from finance_planner.domain.balances import to_money
from finance_planner.domain.models import InstallmentDue
from finance_planner.utils.date_utils import add_months, clamp_day, months_between


def installment_due_date(start_date: date, payment_day: int, number: int) -> date:
    """Due date of installment `number` (1-based), clamped to the month length"""
    year, month = add_months(start_date, number - 1)
    return clamp_day(year, month, payment_day)


def generate_installment_plan(
    total_amount: Decimal,
    num_installments: int,
    start_date: date,
    payment_day: int,
) -> List[InstallmentDue]:
    """
    Split a purchase into equal monthly installments.

    Requirements:
    - One installment per month starting at start_date's month
    - Due on payment_day, clamped to the month length
    - Last installment absorbs rounding remainder so the parts sum to the total

    Example:
        R$100.00 in 3 → [33.33, 33.33, 33.34]
        10000 cents / 3 = 3333 base, remainder 1
        Last installment: 3333 + 1 = 3334
    """
    amount_cents = int(to_money(total_amount) * 100)
    if amount_cents <= 0 or num_installments <= 0:
        return []

    base_amount = amount_cents // num_installments
    remainder = amount_cents % num_installments

    installments = []
    for i in range(num_installments):
        # Last installment absorbs remainder to ensure exact total
        cents = base_amount + (remainder if i == num_installments - 1 else 0)

        installments.append(
            InstallmentDue(
                number=i + 1,
                due_date=installment_due_date(start_date, payment_day, i + 1),
                amount=to_money(Decimal(cents) / 100),
            )
        )

    return installments


def calculate_paid_installments(start_date: date, payment_day: int, total_installments: int, today: date) -> int:
    """
    How many installments should already be paid by `today`.

    Counts whole months elapsed since start_date, plus the current month
    once today's day has reached both the start day and payment_day.
    """
    if start_date > today:
        return 0

    total_months = months_between(start_date, today)
    if today.day >= start_date.day and today.day >= payment_day:
        total_months += 1

    return min(max(0, total_months), total_installments)


def has_installment_due_in(start_date: date, total_installments: int, current_paid: int, year: int, month: int) -> bool:
    """True when an unpaid installment of the plan falls in the given month"""
    months_passed = months_between(start_date, date(year, month, 1))
    return 0 <= months_passed < total_installments and months_passed >= current_paid
