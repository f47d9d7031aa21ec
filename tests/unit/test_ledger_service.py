"""Unit tests for the ledger unit of work and optimistic locking"""

import uuid
import pytest
from decimal import Decimal
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError
from finance_planner.config import settings
from finance_planner.domain.exceptions import (
    ConcurrentUpdateError,
    LimitExceededError,
    NotFoundError,
    ValidationError,
)
from finance_planner.domain.models import BalanceEffect
from finance_planner.infrastructure.database.models import Account, CreditCard
from finance_planner.infrastructure.database.repositories import (
    AccountRepository,
    CreditCardRepository,
    UserRepository,
)
from finance_planner.services.ledger import LedgerService


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    monkeypatch.setattr(settings, "balance_retry_backoff", 0)


@pytest.fixture
def owner(db: Session):
    user = UserRepository(db).create("Alice", "alice", "not-a-real-hash")
    db.commit()
    return user.id


def test_atomic_retries_on_stale_data(db: Session):
    """Test a concurrent update triggers a re-run"""
    calls = []

    def operation():
        calls.append(1)
        if len(calls) < 2:
            raise StaleDataError("row changed")
        return "done"

    assert LedgerService(db).atomic(operation) == "done"
    assert len(calls) == 2


def test_atomic_gives_up_after_retry_limit(db: Session):
    calls = []

    def operation():
        calls.append(1)
        raise StaleDataError("row changed")

    with pytest.raises(ConcurrentUpdateError):
        LedgerService(db).atomic(operation)
    assert len(calls) == settings.balance_retry_attempts


def test_atomic_rolls_back_on_balance_conflict(db: Session, owner):
    """Test a rejected card mutation leaves nothing behind"""
    card = CreditCardRepository(db).create(
        owner, name="Visa", bank="Nubank", limit=Decimal("100.00"), closing_day=1, due_day=10
    )
    db.commit()
    card_id = card.id
    ledger = LedgerService(db)

    def operation():
        ledger.apply_effect(BalanceEffect("credit_card", card_id, Decimal("60.00"), "add"), owner)
        ledger.apply_effect(BalanceEffect("credit_card", card_id, Decimal("60.00"), "add"), owner)

    with pytest.raises(LimitExceededError):
        ledger.atomic(operation, owner)

    assert db.get(CreditCard, card_id).current_balance == Decimal("0.00")


def test_concurrent_balance_update_is_retried(db: Session, owner):
    """Test a rival commit between read and write is not lost"""
    account = AccountRepository(db).create(owner, name="Checking", type="checking", balance=Decimal("100.00"))
    db.commit()
    account_id = account.id
    ledger = LedgerService(db)
    attempts = []

    def operation():
        attempts.append(1)
        ledger.accounts.get_owned(account_id, owner)
        if len(attempts) == 1:
            rival = sessionmaker(bind=db.get_bind())()
            try:
                row = rival.get(Account, account_id)
                row.balance = row.balance + Decimal("50.00")
                rival.commit()
            finally:
                rival.close()
        ledger.apply_effect(BalanceEffect("account", account_id, Decimal("30.00"), "subtract"), owner)

    ledger.atomic(operation, owner)

    db.expire_all()
    assert db.get(Account, account_id).balance == Decimal("120.00")
    assert len(attempts) == 2


def test_validate_references_requires_a_target(db: Session, owner):
    with pytest.raises(ValidationError) as exc_info:
        LedgerService(db).validate_references(owner, None, None)
    assert exc_info.value.details == ["accountId: required when creditCardId is missing"]


def test_validate_references_rejects_foreign_account(db: Session, owner):
    """Test another user's account is reported as not found"""
    stranger = UserRepository(db).create("Bob", "bob", "not-a-real-hash")
    account = AccountRepository(db).create(stranger.id, name="Savings", type="savings", balance=Decimal("0"))
    db.commit()

    with pytest.raises(NotFoundError):
        LedgerService(db).validate_references(owner, account.id, None)


def test_validate_references_rejects_unknown_group(db: Session, owner):
    account = AccountRepository(db).create(owner, name="Checking", type="checking", balance=Decimal("0"))
    db.commit()

    with pytest.raises(NotFoundError):
        LedgerService(db).validate_references(owner, account.id, None, uuid.uuid4())
