"""Data access layer for finance planner entities

Every fetch-by-id takes the caller identity and raises NotFoundError when the
record is missing or belongs to someone else, so existence never leaks.
"""

import math
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session

from finance_planner.domain.exceptions import NotFoundError
from finance_planner.domain.models import PAID, LedgerEntry
from finance_planner.infrastructure.database.models import (
    Account,
    CreditCard,
    FamilyMember,
    Group,
    Installment,
    Membership,
    RecurringExpense,
    Transaction,
    User,
)


@dataclass
class Page:
    """One page of results plus pagination metadata"""

    items: List[Any]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def pagination(self) -> Dict[str, int]:
        return {"page": self.page, "limit": self.limit, "total": self.total, "pages": self.pages}


def paginate(query: Query, page: int, limit: int) -> Page:
    """Apply offset/limit to an already ordered query"""
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return Page(items=items, page=page, limit=limit, total=total)


@dataclass
class TransactionFilters:
    """Optional List filters; None means "no filter" """

    type: Optional[str] = None
    category: Optional[str] = None
    status: Optional[str] = None
    account_id: Optional[uuid.UUID] = None
    credit_card_id: Optional[uuid.UUID] = None
    group_id: Optional[uuid.UUID] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class UserRepository:
    """Repository for users"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, name: str, username: str, password_hash: str) -> User:
        user = User(name=name, username=username.lower(), password_hash=password_hash)
        self.db.add(user)
        self.db.flush()
        return user

    def get_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_by_username(self, username: str) -> Optional[User]:
        return self.db.query(User).filter(User.username == username.lower()).first()

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.lower()).first()


class AccountRepository:
    """Repository for bank accounts"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, user_id: uuid.UUID, **fields) -> Account:
        account = Account(user_id=user_id, **fields)
        self.db.add(account)
        self.db.flush()
        return account

    def get_owned(self, account_id: uuid.UUID, user_id: uuid.UUID) -> Account:
        account = (
            self.db.query(Account)
            .filter(Account.id == account_id, Account.user_id == user_id)
            .first()
        )
        if account is None:
            raise NotFoundError("Account not found")
        return account

    def list_by_user(self, user_id: uuid.UUID, page: int, limit: int) -> Page:
        query = self.db.query(Account).filter(Account.user_id == user_id).order_by(Account.created_at.desc())
        return paginate(query, page, limit)

    def total_balance(self, user_ids: Sequence[uuid.UUID]) -> Decimal:
        """Sum of balances of every account owned by the given users"""
        if not user_ids:
            return Decimal("0.00")
        total = self.db.query(func.sum(Account.balance)).filter(Account.user_id.in_(user_ids)).scalar()
        return total if total is not None else Decimal("0.00")

    def balance_by_type(self, user_id: uuid.UUID) -> List[Tuple[str, Decimal, int]]:
        rows = (
            self.db.query(Account.type, func.sum(Account.balance), func.count(Account.id))
            .filter(Account.user_id == user_id)
            .group_by(Account.type)
            .order_by(Account.type)
            .all()
        )
        return [(type_, total, count) for type_, total, count in rows]

    def delete(self, account: Account) -> None:
        self.db.delete(account)


class CreditCardRepository:
    """Repository for credit cards"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, user_id: uuid.UUID, **fields) -> CreditCard:
        card = CreditCard(user_id=user_id, **fields)
        self.db.add(card)
        self.db.flush()
        return card

    def get_owned(self, card_id: uuid.UUID, user_id: uuid.UUID) -> CreditCard:
        card = (
            self.db.query(CreditCard)
            .filter(CreditCard.id == card_id, CreditCard.user_id == user_id)
            .first()
        )
        if card is None:
            raise NotFoundError("Credit card not found")
        return card

    def list_by_user(self, user_id: uuid.UUID, page: int, limit: int) -> Page:
        query = (
            self.db.query(CreditCard)
            .filter(CreditCard.user_id == user_id)
            .order_by(CreditCard.created_at.desc())
        )
        return paginate(query, page, limit)

    def totals(self, user_id: uuid.UUID) -> Tuple[Decimal, Decimal, int]:
        """Summed limits and used balances of the user's cards, plus the card count"""
        total_limit, total_balance, count = (
            self.db.query(func.sum(CreditCard.limit), func.sum(CreditCard.current_balance), func.count(CreditCard.id))
            .filter(CreditCard.user_id == user_id)
            .one()
        )
        zero = Decimal("0.00")
        return (
            total_limit if total_limit is not None else zero,
            total_balance if total_balance is not None else zero,
            count,
        )

    def delete(self, card: CreditCard) -> None:
        self.db.delete(card)


class TransactionRepository:
    """Repository for transactions"""

    def __init__(self, db: Session):
        self.db = db

    def add(self, transaction: Transaction) -> Transaction:
        self.db.add(transaction)
        self.db.flush()
        return transaction

    def get_owned(self, transaction_id: uuid.UUID, user_id: uuid.UUID) -> Transaction:
        transaction = (
            self.db.query(Transaction)
            .filter(Transaction.id == transaction_id, Transaction.user_id == user_id)
            .first()
        )
        if transaction is None:
            raise NotFoundError("Transaction not found")
        return transaction

    def get_visible(self, transaction_id: uuid.UUID, user_id: uuid.UUID) -> Transaction:
        """Owned transaction, or one linked to a group the user belongs to"""
        member_groups = self.db.query(Membership.group_id).filter(Membership.user_id == user_id)
        transaction = (
            self.db.query(Transaction)
            .filter(
                Transaction.id == transaction_id,
                or_(Transaction.user_id == user_id, Transaction.group_id.in_(member_groups)),
            )
            .first()
        )
        if transaction is None:
            raise NotFoundError("Transaction not found")
        return transaction

    def search(self, user_id: uuid.UUID, filters: TransactionFilters, page: int, limit: int) -> Page:
        """
        Filtered, paginated list sorted by date then creation time, newest first.

        With a group filter the whole group's transactions are listed (the
        caller's membership is checked by the service); otherwise only the
        caller's own.
        """
        query = self.db.query(Transaction)

        if filters.group_id is not None:
            query = query.filter(Transaction.group_id == filters.group_id)
        else:
            query = query.filter(Transaction.user_id == user_id)

        if filters.type:
            query = query.filter(Transaction.type == filters.type)
        if filters.category:
            query = query.filter(Transaction.category.icontains(filters.category, autoescape=True))
        if filters.status:
            query = query.filter(Transaction.status == filters.status)
        if filters.account_id is not None:
            query = query.filter(Transaction.account_id == filters.account_id)
        if filters.credit_card_id is not None:
            query = query.filter(Transaction.credit_card_id == filters.credit_card_id)
        if filters.start_date is not None:
            query = query.filter(Transaction.date >= filters.start_date)
        if filters.end_date is not None:
            query = query.filter(Transaction.date <= filters.end_date)

        query = query.order_by(Transaction.date.desc(), Transaction.created_at.desc())
        return paginate(query, page, limit)

    def paid_entries_between(
        self,
        start: date,
        end: date,
        user_id: Optional[uuid.UUID] = None,
        group_id: Optional[uuid.UUID] = None,
    ) -> List[LedgerEntry]:
        """Paid transactions in [start, end] for an owner or a group"""
        query = self.db.query(
            Transaction.date, Transaction.amount, Transaction.type, Transaction.category, Transaction.status
        ).filter(Transaction.status == PAID, Transaction.date >= start, Transaction.date <= end)

        if group_id is not None:
            query = query.filter(Transaction.group_id == group_id)
        else:
            query = query.filter(Transaction.user_id == user_id)

        return [
            LedgerEntry(date=row.date, amount=row.amount, type=row.type, category=row.category, status=row.status)
            for row in query.all()
        ]

    def recent_history(self, user_id: uuid.UUID, type_: str, limit: int = 100) -> List[Tuple[str, str]]:
        """(description, category) of the user's latest transactions of one type"""
        rows = (
            self.db.query(Transaction.description, Transaction.category)
            .filter(Transaction.user_id == user_id, Transaction.type == type_, Transaction.category != "")
            .order_by(Transaction.created_at.desc())
            .limit(limit)
            .all()
        )
        return [(d, c) for d, c in rows]

    def find_fixed_in_period(
        self, user_id: uuid.UUID, description: str, amount: Decimal, start: date, end: date
    ) -> Optional[Transaction]:
        """Fixed transaction already generated for a recurring expense in the period"""
        return (
            self.db.query(Transaction)
            .filter(
                Transaction.user_id == user_id,
                Transaction.description == description,
                Transaction.amount == amount,
                Transaction.nature == "fixed",
                Transaction.date >= start,
                Transaction.date <= end,
            )
            .first()
        )

    def count_referencing(
        self, account_id: Optional[uuid.UUID] = None, credit_card_id: Optional[uuid.UUID] = None
    ) -> int:
        query = self.db.query(func.count(Transaction.id))
        if account_id is not None:
            query = query.filter(Transaction.account_id == account_id)
        if credit_card_id is not None:
            query = query.filter(Transaction.credit_card_id == credit_card_id)
        return query.scalar() or 0

    def delete(self, transaction: Transaction) -> None:
        self.db.delete(transaction)


class GroupRepository:
    """Repository for groups and memberships"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, owner_id: uuid.UUID, name: str) -> Group:
        group = Group(owner_id=owner_id, name=name)
        self.db.add(group)
        self.db.flush()
        self.add_member(group.id, owner_id, "owner")
        return group

    def find_by_name(self, owner_id: uuid.UUID, name: str) -> Optional[Group]:
        return self.db.query(Group).filter(Group.owner_id == owner_id, Group.name == name).first()

    def get_membership(self, group_id: uuid.UUID, user_id: uuid.UUID) -> Optional[Membership]:
        return (
            self.db.query(Membership)
            .filter(Membership.group_id == group_id, Membership.user_id == user_id)
            .first()
        )

    def require_membership(self, group_id: uuid.UUID, user_id: uuid.UUID) -> Membership:
        """Caller's membership in the group; non-members get NotFoundError"""
        membership = self.get_membership(group_id, user_id)
        if membership is None:
            raise NotFoundError("Group not found")
        return membership

    def list_for_user(self, user_id: uuid.UUID) -> Tuple[List[Group], List[Membership]]:
        memberships = self.db.query(Membership).filter(Membership.user_id == user_id).all()
        if not memberships:
            return [], []
        group_ids = [m.group_id for m in memberships]
        groups = self.db.query(Group).filter(Group.id.in_(group_ids)).order_by(Group.name).all()
        return groups, memberships

    def members(self, group_id: uuid.UUID) -> List[Membership]:
        return (
            self.db.query(Membership)
            .filter(Membership.group_id == group_id)
            .order_by(Membership.created_at)
            .all()
        )

    def member_user_ids(self, group_id: uuid.UUID) -> List[uuid.UUID]:
        return [row[0] for row in self.db.query(Membership.user_id).filter(Membership.group_id == group_id).all()]

    def add_member(self, group_id: uuid.UUID, user_id: uuid.UUID, role: str = "member") -> Membership:
        membership = Membership(group_id=group_id, user_id=user_id, role=role)
        self.db.add(membership)
        self.db.flush()
        return membership


class FamilyMemberRepository:
    """Repository for family members"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, user_id: uuid.UUID, name: str, color: str) -> FamilyMember:
        member = FamilyMember(user_id=user_id, name=name, color=color)
        self.db.add(member)
        self.db.flush()
        return member

    def find_by_name(self, user_id: uuid.UUID, name: str) -> Optional[FamilyMember]:
        return (
            self.db.query(FamilyMember)
            .filter(FamilyMember.user_id == user_id, FamilyMember.name == name)
            .first()
        )

    def get_owned(self, member_id: uuid.UUID, user_id: uuid.UUID) -> FamilyMember:
        member = (
            self.db.query(FamilyMember)
            .filter(FamilyMember.id == member_id, FamilyMember.user_id == user_id)
            .first()
        )
        if member is None:
            raise NotFoundError("Family member not found")
        return member

    def list_by_user(self, user_id: uuid.UUID) -> List[FamilyMember]:
        return self.db.query(FamilyMember).filter(FamilyMember.user_id == user_id).order_by(FamilyMember.name).all()

    def delete(self, member: FamilyMember) -> None:
        self.db.delete(member)


class RecurringExpenseRepository:
    """Repository for recurring expense templates"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, user_id: uuid.UUID, **fields) -> RecurringExpense:
        expense = RecurringExpense(user_id=user_id, **fields)
        self.db.add(expense)
        self.db.flush()
        return expense

    def get_owned(self, expense_id: uuid.UUID, user_id: uuid.UUID) -> RecurringExpense:
        expense = (
            self.db.query(RecurringExpense)
            .filter(RecurringExpense.id == expense_id, RecurringExpense.user_id == user_id)
            .first()
        )
        if expense is None:
            raise NotFoundError("Recurring expense not found")
        return expense

    def list_by_user(self, user_id: uuid.UUID, is_active: Optional[bool] = None) -> List[RecurringExpense]:
        query = self.db.query(RecurringExpense).filter(RecurringExpense.user_id == user_id)
        if is_active is not None:
            query = query.filter(RecurringExpense.is_active == is_active)
        return query.order_by(RecurringExpense.day_of_month, RecurringExpense.description).all()

    def delete(self, expense: RecurringExpense) -> None:
        self.db.delete(expense)


class InstallmentRepository:
    """Repository for installment plans"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, user_id: uuid.UUID, **fields) -> Installment:
        plan = Installment(user_id=user_id, **fields)
        self.db.add(plan)
        self.db.flush()
        return plan

    def get_owned(self, plan_id: uuid.UUID, user_id: uuid.UUID) -> Installment:
        plan = (
            self.db.query(Installment)
            .filter(Installment.id == plan_id, Installment.user_id == user_id)
            .first()
        )
        if plan is None:
            raise NotFoundError("Installment plan not found")
        return plan

    def list_by_user(
        self,
        user_id: uuid.UUID,
        status: Optional[str] = None,
        group_id: Optional[uuid.UUID] = None,
        started_before: Optional[date] = None,
    ) -> List[Installment]:
        query = self.db.query(Installment).filter(Installment.user_id == user_id)
        if status:
            query = query.filter(Installment.status == status)
        if group_id is not None:
            query = query.filter(Installment.group_id == group_id)
        if started_before is not None:
            query = query.filter(Installment.start_date <= started_before)
        return query.order_by(Installment.start_date.desc()).all()

    def delete(self, plan: Installment) -> None:
        self.db.delete(plan)
