"""Materialize recurring expense templates into monthly transactions"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

from finance_planner.domain.exceptions import DomainException, DuplicateKeyError, ValidationError
from finance_planner.infrastructure.database.models import RecurringExpense, Transaction
from finance_planner.infrastructure.database.repositories import RecurringExpenseRepository
from finance_planner.infrastructure.observability.metrics import recurring_generation_counter
from finance_planner.services.ledger import LedgerService
from finance_planner.utils.date_utils import clamp_day, month_bounds

logger = logging.getLogger(__name__)


@dataclass
class GenerationReport:
    """Outcome of generating every active template for one month"""

    generated: List[Dict[str, Any]] = field(default_factory=list)
    skipped: List[Dict[str, Any]] = field(default_factory=list)


def resolve_target_month(month: Optional[int], year: Optional[int], today: Optional[date] = None):
    today = today or date.today()
    return (year or today.year), (month or today.month)


class RecurringExpenseService:
    """Generates fixed expense transactions from recurring templates"""

    def __init__(self, ledger: LedgerService):
        self.ledger = ledger
        self.expenses = RecurringExpenseRepository(ledger.db)

    def _generate(self, expense: RecurringExpense, year: int, month: int) -> Transaction:
        """
        Create the template's transaction for one month (no commit).

        Idempotent per (owner, description, amount, month): a fixed
        transaction already present in the window is a DuplicateKeyError.
        """
        if not expense.is_active:
            raise ValidationError("Recurring expense is inactive", ["isActive: template is inactive"])

        start, end = month_bounds(year, month)
        existing = self.ledger.transactions.find_fixed_in_period(
            expense.user_id, expense.description, expense.amount, start, end
        )
        if existing is not None:
            raise DuplicateKeyError("Transaction for this month was already generated")

        occurrence = clamp_day(year, month, expense.day_of_month)
        transaction = self.ledger.add_transaction(
            expense.user_id,
            {
                "description": expense.description,
                "amount": expense.amount,
                "type": "expense",
                "nature": "fixed",
                "category": expense.category,
                "status": "paid",
                "date": occurrence,
                "account_id": expense.account_id,
                "credit_card_id": expense.credit_card_id,
                "group_id": expense.group_id,
                "paid_by": expense.paid_by,
                "recurring_expense_id": expense.id,
            },
        )
        expense.last_generated = occurrence
        return transaction

    def generate(
        self,
        expense_id: uuid.UUID,
        user_id: uuid.UUID,
        month: Optional[int] = None,
        year: Optional[int] = None,
    ) -> Transaction:
        """Generate one template's transaction for the target month (default: current)"""
        year, month = resolve_target_month(month, year)

        def operation():
            expense = self.expenses.get_owned(expense_id, user_id)
            return self._generate(expense, year, month)

        transaction = self.ledger.atomic(operation, user_id)
        recurring_generation_counter.labels(outcome="generated").inc()
        return transaction

    def generate_all(self, user_id: uuid.UUID, month: Optional[int] = None, year: Optional[int] = None) -> GenerationReport:
        """
        Generate every active template for the target month.

        Each template runs in its own unit; a failing template is reported
        in `skipped` and does not undo the others.
        """
        year, month = resolve_target_month(month, year)
        report = GenerationReport()

        expense_ids = [e.id for e in self.expenses.list_by_user(user_id, is_active=True)]
        for expense_id in expense_ids:

            def operation(expense_id=expense_id):
                expense = self.expenses.get_owned(expense_id, user_id)
                return expense.description, self._generate(expense, year, month)

            try:
                description, transaction = self.ledger.atomic(operation, user_id)
            except DomainException as e:
                expense = self.expenses.get_owned(expense_id, user_id)
                reason = "Already generated" if isinstance(e, DuplicateKeyError) else str(e)
                report.skipped.append({"expense": expense.description, "reason": reason})
                recurring_generation_counter.labels(outcome="skipped").inc()
                logger.info("Recurring expense skipped", extra={"expense_id": str(expense_id), "reason": reason})
                continue

            report.generated.append({"expense": description, "transactionId": str(transaction.id)})
            recurring_generation_counter.labels(outcome="generated").inc()

        return report
