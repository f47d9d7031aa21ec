"""Transaction lifecycle and balance consistency

Every create/update/delete runs the transaction write and its balance
mutations inside one database transaction. Account and credit card rows
carry a version column; if another request changed one of them in the
meantime, the flush raises StaleDataError and the whole operation is re-run
from a fresh read.
"""

import time
import uuid
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, Optional, TypeVar

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from finance_planner.config import settings
from finance_planner.domain.balances import (
    account_balance_after,
    balance_effects,
    credit_card_balance_after,
    reverse_effect,
)
from finance_planner.domain.dashboard import summarize
from finance_planner.domain.exceptions import (
    BalanceConflictError,
    ConcurrentUpdateError,
    ValidationError,
)
from finance_planner.domain.models import ACCOUNT, CREDIT_CARD, BalanceEffect, DashboardSummary
from finance_planner.infrastructure.database.models import Account, CreditCard, Transaction
from finance_planner.infrastructure.database.repositories import (
    AccountRepository,
    CreditCardRepository,
    GroupRepository,
    Page,
    TransactionFilters,
    TransactionRepository,
)
from finance_planner.infrastructure.observability.logging import (
    log_balance_change,
    log_balance_conflict,
    log_transaction_event,
)
from finance_planner.infrastructure.observability.metrics import (
    optimistic_retry_counter,
    record_balance_conflict,
    record_transaction_operation,
)
from finance_planner.utils.date_utils import add_months, month_bounds

T = TypeVar("T")

# Fields whose change can move money between balances
BALANCE_FIELDS = ("amount", "type", "status", "account_id", "credit_card_id")


def effects_of(transaction: Transaction):
    return balance_effects(
        transaction.status,
        transaction.type,
        transaction.amount,
        transaction.account_id,
        transaction.credit_card_id,
    )


class LedgerService:
    """Transaction CRUD with correlated account and credit card balance maintenance"""

    def __init__(self, db: Session, request_id: Optional[str] = None):
        self.db = db
        self.request_id = request_id
        self.accounts = AccountRepository(db)
        self.cards = CreditCardRepository(db)
        self.transactions = TransactionRepository(db)
        self.groups = GroupRepository(db)

    # Unit of work

    def atomic(self, operation: Callable[[], T], user_id: Optional[uuid.UUID] = None) -> T:
        """
        Run operation and commit it as a single database transaction.

        Retry strategy:
        - Re-run on StaleDataError (concurrent balance update), up to
          settings.balance_retry_attempts attempts with exponential backoff
        - Any other error rolls back and propagates unchanged
        """
        attempt = 0
        while True:
            try:
                result = operation()
                self.db.commit()
                return result

            except StaleDataError as e:
                self.db.rollback()
                attempt += 1
                optimistic_retry_counter.inc()

                if attempt >= settings.balance_retry_attempts:
                    raise ConcurrentUpdateError("Balance was modified concurrently, try again") from e

                time.sleep(settings.balance_retry_backoff * (2 ** (attempt - 1)))

            except BalanceConflictError as e:
                self.db.rollback()
                record_balance_conflict(e)
                log_balance_conflict(self.request_id, str(user_id), type(e).__name__, str(e))
                raise

            except Exception:
                self.db.rollback()
                raise

    # Balance mutation

    def apply_effect(self, effect: BalanceEffect, user_id: uuid.UUID) -> Decimal:
        """Apply one balance effect to an owned account or card; returns the new balance"""
        if effect.target == ACCOUNT:
            account = self.accounts.get_owned(effect.target_id, user_id)
            account.balance = account_balance_after(account.balance, effect.amount, effect.operation)
            new_balance = account.balance
        else:
            card = self.cards.get_owned(effect.target_id, user_id)
            card.current_balance = credit_card_balance_after(
                card.current_balance, card.limit, effect.amount, effect.operation
            )
            new_balance = card.current_balance

        log_balance_change(
            self.request_id,
            effect.target,
            str(effect.target_id),
            effect.operation,
            str(effect.amount),
            str(new_balance),
        )
        return new_balance

    def apply_effects(self, effects: Iterable[BalanceEffect], user_id: uuid.UUID) -> int:
        count = 0
        for effect in effects:
            self.apply_effect(effect, user_id)
            count += 1
        return count

    def adjust_account_balance(
        self, account_id: uuid.UUID, user_id: uuid.UUID, amount: Decimal, operation: str
    ) -> Account:
        """Manual add/subtract on an account balance"""

        def operation_():
            account = self.accounts.get_owned(account_id, user_id)
            self.apply_effect(BalanceEffect(ACCOUNT, account.id, amount, operation), user_id)
            return account

        return self.atomic(operation_, user_id)

    def adjust_credit_card_balance(
        self, card_id: uuid.UUID, user_id: uuid.UUID, amount: Decimal, operation: str
    ) -> CreditCard:
        """Manual add/subtract on a credit card balance, range-checked against the limit"""

        def operation_():
            card = self.cards.get_owned(card_id, user_id)
            self.apply_effect(BalanceEffect(CREDIT_CARD, card.id, amount, operation), user_id)
            return card

        return self.atomic(operation_, user_id)

    # Validation

    def validate_references(
        self,
        user_id: uuid.UUID,
        account_id: Optional[uuid.UUID],
        credit_card_id: Optional[uuid.UUID],
        group_id: Optional[uuid.UUID] = None,
    ) -> None:
        """
        Check a transaction's references before anything is written.

        Raises:
            ValidationError: neither an account nor a credit card is referenced
            NotFoundError: a referenced account/card is not the caller's, or the
                caller is not a member of the referenced group
        """
        if account_id is None and credit_card_id is None:
            raise ValidationError(
                "Transaction must be linked to an account or a credit card",
                ["accountId: required when creditCardId is missing"],
            )

        if account_id is not None:
            self.accounts.get_owned(account_id, user_id)
        if credit_card_id is not None:
            self.cards.get_owned(credit_card_id, user_id)
        if group_id is not None:
            self.groups.require_membership(group_id, user_id)

    # Lifecycle (no commit; usable inside a larger unit)

    def add_transaction(self, user_id: uuid.UUID, fields: Dict[str, Any]) -> Transaction:
        """Validate, persist and apply the balance effects of a new transaction"""
        fields = dict(fields)
        fields.setdefault("status", "paid")
        fields.setdefault("nature", "variable")
        if fields.get("date") is None:
            fields["date"] = date.today()

        self.validate_references(
            user_id, fields.get("account_id"), fields.get("credit_card_id"), fields.get("group_id")
        )

        transaction = self.transactions.add(Transaction(user_id=user_id, **fields))
        self.apply_effects(effects_of(transaction), user_id)
        return transaction

    def change_transaction(
        self, transaction_id: uuid.UUID, user_id: uuid.UUID, changes: Dict[str, Any]
    ) -> Transaction:
        """
        Update a transaction, keeping balances consistent.

        Order:
        1. Validate the merged references (nothing written yet)
        2. Reverse the original effects if it was paid
        3. Apply the field changes
        4. Apply the new effects if the result is paid
        """
        transaction = self.transactions.get_owned(transaction_id, user_id)

        merged = {key: changes.get(key, getattr(transaction, key)) for key in BALANCE_FIELDS}
        self.validate_references(
            user_id,
            merged["account_id"],
            merged["credit_card_id"],
            changes.get("group_id"),
        )

        self.apply_effects([reverse_effect(e) for e in effects_of(transaction)], user_id)

        for key, value in changes.items():
            setattr(transaction, key, value)

        self.apply_effects(effects_of(transaction), user_id)
        self.db.flush()
        return transaction

    def remove_transaction(self, transaction_id: uuid.UUID, user_id: uuid.UUID) -> Transaction:
        transaction = self.transactions.get_owned(transaction_id, user_id)
        self.apply_effects([reverse_effect(e) for e in effects_of(transaction)], user_id)
        self.transactions.delete(transaction)
        self.db.flush()
        return transaction

    # Public operations (one committed unit each)

    def create_transaction(self, user_id: uuid.UUID, fields: Dict[str, Any]) -> Transaction:
        transaction = self.atomic(lambda: self.add_transaction(user_id, fields), user_id)
        self._record("create", user_id, transaction.id, transaction.status, len(effects_of(transaction)))
        return transaction

    def update_transaction(
        self, transaction_id: uuid.UUID, user_id: uuid.UUID, changes: Dict[str, Any]
    ) -> Transaction:
        transaction = self.atomic(lambda: self.change_transaction(transaction_id, user_id, changes), user_id)
        self._record("update", user_id, transaction.id, transaction.status, len(effects_of(transaction)))
        return transaction

    def delete_transaction(self, transaction_id: uuid.UUID, user_id: uuid.UUID) -> None:
        def operation_():
            # Deleted rows are unreadable after commit; snapshot what the log needs
            transaction = self.remove_transaction(transaction_id, user_id)
            return transaction.status, len(effects_of(transaction))

        status, effects = self.atomic(operation_, user_id)
        self._record("delete", user_id, transaction_id, status, effects)

    def get_transaction(self, transaction_id: uuid.UUID, user_id: uuid.UUID) -> Transaction:
        return self.transactions.get_visible(transaction_id, user_id)

    def list_transactions(self, user_id: uuid.UUID, filters: TransactionFilters, page: int, limit: int) -> Page:
        if filters.group_id is not None:
            self.groups.require_membership(filters.group_id, user_id)
        return self.transactions.search(user_id, filters, page, limit)

    def _record(self, operation: str, user_id: uuid.UUID, transaction_id: uuid.UUID, status: str, effects: int) -> None:
        record_transaction_operation(operation)
        log_transaction_event(self.request_id, str(user_id), operation, str(transaction_id), status, effects)

    # Dashboard

    def dashboard(
        self,
        user_id: uuid.UUID,
        group_id: Optional[uuid.UUID] = None,
        months: Optional[int] = None,
        today: Optional[date] = None,
    ) -> DashboardSummary:
        """
        Current-month summary plus trailing trend, for the caller or a group.

        totalBalance is always the sum of account balances owned by the
        scope's users (the caller, or every member of the group).
        """
        today = today or date.today()
        months = months or settings.dashboard_trend_months

        if group_id is not None:
            self.groups.require_membership(group_id, user_id)
            owners = self.groups.member_user_ids(group_id)
        else:
            owners = [user_id]

        start_year, start_month = add_months(today, -(months - 1))
        window_start, _ = month_bounds(start_year, start_month)
        _, window_end = month_bounds(today.year, today.month)

        if group_id is not None:
            entries = self.transactions.paid_entries_between(window_start, window_end, group_id=group_id)
        else:
            entries = self.transactions.paid_entries_between(window_start, window_end, user_id=user_id)

        return summarize(entries, today, self.accounts.total_balance(owners), months)
