"""Balance mutation rules for accounts and credit cards"""

import uuid
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from finance_planner.domain.exceptions import LimitExceededError, NegativeBalanceError, ValidationError
from finance_planner.domain.models import (
    ACCOUNT,
    ADD,
    CREDIT_CARD,
    EXPENSE,
    INCOME,
    PAID,
    SUBTRACT,
    BalanceEffect,
)

CENTS = Decimal("0.01")


def to_money(value) -> Decimal:
    """Quantize any numeric input to cents without passing through float"""
    if isinstance(value, float):
        value = repr(value)
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def apply_delta(current: Decimal, amount: Decimal, operation: str) -> Decimal:
    """Return current +/- amount"""
    if operation == ADD:
        return to_money(current + amount)
    if operation == SUBTRACT:
        return to_money(current - amount)
    raise ValidationError("Operation must be add or subtract", [f"operation: unknown value {operation!r}"])


def account_balance_after(current: Decimal, amount: Decimal, operation: str) -> Decimal:
    """New account balance. Accounts may go negative."""
    return apply_delta(current, amount, operation)


def credit_card_balance_after(current: Decimal, limit: Decimal, amount: Decimal, operation: str) -> Decimal:
    """
    New credit card balance, enforcing 0 <= balance <= limit.

    Raises:
        LimitExceededError: result would exceed the card limit
        NegativeBalanceError: result would drop below zero
    """
    new_balance = apply_delta(current, amount, operation)

    if new_balance > limit:
        raise LimitExceededError(
            f"Operation would exceed the card limit ({new_balance} > {to_money(limit)})"
        )
    if new_balance < 0:
        raise NegativeBalanceError(f"Card balance cannot be negative ({new_balance})")

    return new_balance


def balance_effects(
    status: str,
    type_: str,
    amount: Decimal,
    account_id: Optional[uuid.UUID],
    credit_card_id: Optional[uuid.UUID],
) -> List[BalanceEffect]:
    """
    Balance changes a transaction contributes while it is paid.

    Rules:
    - pending transactions contribute nothing
    - account: income adds, expense subtracts
    - credit card: only expenses add to the card balance; card income
      (refunds) is not applied automatically
    """
    if status != PAID:
        return []

    effects = []
    if account_id is not None:
        effects.append(
            BalanceEffect(
                target=ACCOUNT,
                target_id=account_id,
                amount=amount,
                operation=ADD if type_ == INCOME else SUBTRACT,
            )
        )

    if credit_card_id is not None and type_ == EXPENSE:
        effects.append(BalanceEffect(target=CREDIT_CARD, target_id=credit_card_id, amount=amount, operation=ADD))

    return effects


def reverse_effect(effect: BalanceEffect) -> BalanceEffect:
    """Inverse of an effect (add <-> subtract)"""
    return BalanceEffect(
        target=effect.target,
        target_id=effect.target_id,
        amount=effect.amount,
        operation=SUBTRACT if effect.operation == ADD else ADD,
    )
