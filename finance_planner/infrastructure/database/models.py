"""SQLAlchemy ORM models for the finance planner"""

import uuid
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func
from sqlalchemy.types import TypeDecorator

from finance_planner.domain.balances import to_money

Base = declarative_base()


class Money(TypeDecorator):
    """Exact money column: integer cents in storage, Decimal in Python"""

    impl = BigInteger
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return int(to_money(value) * 100)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return to_money(Decimal(int(value)) / 100)


class TimestampMixin:
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class User(TimestampMixin, Base):
    """Registered user; owner identity of every other record"""

    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    username = Column(String(20), nullable=False, unique=True, index=True)
    email = Column(String(254), nullable=True, unique=True)
    password_hash = Column(Text, nullable=False)


class Account(TimestampMixin, Base):
    """Bank account; balance may go negative"""

    __tablename__ = "accounts"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    type = Column(String(20), nullable=False)
    balance = Column(Money, nullable=False, default=Decimal("0.00"))
    bank = Column(String(100), nullable=True)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}
    __table_args__ = (Index("ix_accounts_user_type", "user_id", "type"),)


class CreditCard(TimestampMixin, Base):
    """Credit card; 0 <= current_balance <= limit"""

    __tablename__ = "credit_cards"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    bank = Column(String(100), nullable=False)
    limit = Column("credit_limit", Money, nullable=False)
    current_balance = Column(Money, nullable=False, default=Decimal("0.00"))
    closing_day = Column(Integer, nullable=False)
    due_day = Column(Integer, nullable=False)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    @property
    def available_limit(self) -> Decimal:
        return self.limit - self.current_balance


class Group(TimestampMixin, Base):
    """Family/shared group"""

    __tablename__ = "groups"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    owner_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    memberships = relationship("Membership", back_populates="group", cascade="all, delete-orphan")

    __table_args__ = (UniqueConstraint("owner_id", "name", name="uq_groups_owner_name"),)


class Membership(TimestampMixin, Base):
    """User membership in a group"""

    __tablename__ = "memberships"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    group_id = Column(UUID(as_uuid=True), ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String(10), nullable=False, default="member")

    group = relationship("Group", back_populates="memberships")
    user = relationship("User")

    __table_args__ = (UniqueConstraint("user_id", "group_id", name="uq_memberships_user_group"),)


class FamilyMember(TimestampMixin, Base):
    """Named household member used as a "paid by" label"""

    __tablename__ = "family_members"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    color = Column(String(20), nullable=False, default="#3498db")

    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_family_members_user_name"),)


class RecurringExpense(TimestampMixin, Base):
    """Monthly expense template"""

    __tablename__ = "recurring_expenses"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    description = Column(String(200), nullable=False)
    amount = Column(Money, nullable=False)
    category = Column(String(50), nullable=False)
    day_of_month = Column(Integer, nullable=False)
    account_id = Column(UUID(as_uuid=True), ForeignKey("accounts.id"), nullable=True)
    credit_card_id = Column(UUID(as_uuid=True), ForeignKey("credit_cards.id"), nullable=True)
    group_id = Column(UUID(as_uuid=True), ForeignKey("groups.id", ondelete="SET NULL"), nullable=True)
    paid_by = Column(String(100), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    last_generated = Column(Date, nullable=True)

    __table_args__ = (
        Index("ix_recurring_user_active", "user_id", "is_active"),
        Index("ix_recurring_user_day", "user_id", "day_of_month"),
    )


class Installment(TimestampMixin, Base):
    """Multi-month payment plan"""

    __tablename__ = "installments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    description = Column(String(200), nullable=False)
    total_amount = Column(Money, nullable=False)
    installments = Column(Integer, nullable=False)
    category = Column(String(50), nullable=False)
    start_date = Column(Date, nullable=False, index=True)
    current_paid = Column(Integer, nullable=False, default=0)
    payment_day = Column(Integer, nullable=False)
    status = Column(String(10), nullable=False, default="active")
    account_id = Column(UUID(as_uuid=True), ForeignKey("accounts.id"), nullable=True)
    credit_card_id = Column(UUID(as_uuid=True), ForeignKey("credit_cards.id"), nullable=True)
    group_id = Column(UUID(as_uuid=True), ForeignKey("groups.id", ondelete="SET NULL"), nullable=True, index=True)
    paid_by = Column(String(100), nullable=True)

    __table_args__ = (Index("ix_installments_user_status", "user_id", "status"),)


class Transaction(TimestampMixin, Base):
    """Income or expense; amount is always positive, direction lives in `type`"""

    __tablename__ = "transactions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    description = Column(String(200), nullable=False)
    amount = Column(Money, nullable=False)
    type = Column(String(10), nullable=False)
    nature = Column(String(10), nullable=False, default="variable")
    category = Column(String(50), nullable=False)
    status = Column(String(10), nullable=False, default="paid")
    date = Column(Date, nullable=False)
    account_id = Column(UUID(as_uuid=True), ForeignKey("accounts.id"), nullable=True, index=True)
    credit_card_id = Column(UUID(as_uuid=True), ForeignKey("credit_cards.id"), nullable=True, index=True)
    group_id = Column(UUID(as_uuid=True), ForeignKey("groups.id", ondelete="SET NULL"), nullable=True, index=True)
    paid_by = Column(String(100), nullable=True)

    # Category suggestion accepted for this transaction
    ai_category = Column(String(50), nullable=True)
    ai_explanation = Column(String(500), nullable=True)
    ai_confidence = Column(Float, nullable=True)

    # Installment linkage
    installment_id = Column(UUID(as_uuid=True), ForeignKey("installments.id", ondelete="SET NULL"), nullable=True)
    installment_current = Column(Integer, nullable=True)
    installment_total = Column(Integer, nullable=True)

    recurring_expense_id = Column(
        UUID(as_uuid=True), ForeignKey("recurring_expenses.id", ondelete="SET NULL"), nullable=True
    )

    __table_args__ = (
        Index("ix_transactions_user_date", "user_id", "date"),
        Index("ix_transactions_user_category", "user_id", "category"),
        Index("ix_transactions_user_type", "user_id", "type"),
        Index("ix_transactions_user_status", "user_id", "status"),
    )
