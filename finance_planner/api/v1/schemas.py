"""Pydantic schemas for API request/response validation"""

import datetime as dt
import uuid
from decimal import Decimal
from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

PositiveMoney = Annotated[Decimal, Field(gt=0, max_digits=14, decimal_places=2)]
NonNegativeMoney = Annotated[Decimal, Field(ge=0, max_digits=14, decimal_places=2)]
DayOfMonth = Annotated[int, Field(ge=1, le=31)]

AccountType = Literal["checking", "savings", "investment", "credit"]
TransactionType = Literal["income", "expense"]
TransactionNature = Literal["fixed", "variable"]
TransactionStatus = Literal["paid", "pending"]
BalanceOperation = Literal["add", "subtract"]
MembershipRole = Literal["owner", "member"]
InstallmentStatus = Literal["active", "completed", "cancelled"]


class Schema(BaseModel):
    """camelCase on the wire, snake_case in Python"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        str_strip_whitespace=True,
    )


def reject_nulls(values: Any, fields: tuple) -> Any:
    """Partial updates may omit required fields but not null them"""
    if isinstance(values, dict):
        for name in fields:
            for key in (name, to_camel(name)):
                if key in values and values[key] is None:
                    raise ValueError(f"{to_camel(name)} cannot be null")
    return values


class Pagination(Schema):
    page: int
    limit: int
    total: int
    pages: int


class MessageResponse(Schema):
    message: str


# Auth


class RegisterRequest(Schema):
    """Request body for POST /auth/register"""

    name: str = Field(..., min_length=1, max_length=100)
    username: str = Field(..., min_length=3, max_length=20, pattern=r"^[a-zA-Z0-9_]+$")
    password: str = Field(..., min_length=6, max_length=72)


class LoginRequest(Schema):
    """Request body for POST /auth/login"""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class ProfileUpdateRequest(Schema):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[str] = Field(None, max_length=254, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class ChangePasswordRequest(Schema):
    """Request body for POST /auth/change-password"""

    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=72)


class UserResponse(Schema):
    id: uuid.UUID
    name: str
    username: str
    email: Optional[str] = None
    created_at: dt.datetime


class AuthResponse(Schema):
    message: str
    token: str
    user: UserResponse


# Accounts


class AccountCreateRequest(Schema):
    """Request body for POST /accounts"""

    name: str = Field(..., min_length=1, max_length=100)
    type: AccountType
    balance: NonNegativeMoney = Decimal("0.00")
    bank: Optional[str] = Field(None, max_length=100)


class AccountUpdateRequest(Schema):
    """Request body for PUT /accounts/{id}; balance changes go through /balance"""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    type: Optional[AccountType] = None
    bank: Optional[str] = Field(None, max_length=100)

    @model_validator(mode="before")
    @classmethod
    def check_nulls(cls, values: Any) -> Any:
        return reject_nulls(values, ("name", "type"))


class BalanceAdjustRequest(Schema):
    """Request body for PUT /accounts/{id}/balance and /credit-cards/{id}/balance"""

    amount: PositiveMoney
    operation: BalanceOperation


class AccountResponse(Schema):
    id: uuid.UUID
    name: str
    type: str
    balance: Decimal
    bank: Optional[str] = None
    created_at: dt.datetime
    updated_at: dt.datetime


class AccountMutationResponse(Schema):
    message: str
    account: AccountResponse


class AccountListResponse(Schema):
    accounts: List[AccountResponse]
    pagination: Pagination


class AccountTypeTotal(Schema):
    type: str
    total: Decimal
    count: int


class BalanceSummaryResponse(Schema):
    total_balance: Decimal
    breakdown: List[AccountTypeTotal]


# Credit cards


class CreditCardCreateRequest(Schema):
    """Request body for POST /credit-cards"""

    name: str = Field(..., min_length=1, max_length=100)
    bank: str = Field(..., min_length=1, max_length=100)
    limit: NonNegativeMoney
    current_balance: NonNegativeMoney = Decimal("0.00")
    closing_day: DayOfMonth
    due_day: DayOfMonth

    @model_validator(mode="after")
    def check_balance_within_limit(self) -> "CreditCardCreateRequest":
        if self.current_balance > self.limit:
            raise ValueError("currentBalance cannot exceed the card limit")
        return self


class CreditCardUpdateRequest(Schema):
    """Request body for PUT /credit-cards/{id}; balance changes go through /balance"""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    bank: Optional[str] = Field(None, min_length=1, max_length=100)
    limit: Optional[NonNegativeMoney] = None
    closing_day: Optional[DayOfMonth] = None
    due_day: Optional[DayOfMonth] = None

    @model_validator(mode="before")
    @classmethod
    def check_nulls(cls, values: Any) -> Any:
        return reject_nulls(values, ("name", "bank", "limit", "closing_day", "due_day"))


class CreditCardResponse(Schema):
    id: uuid.UUID
    name: str
    bank: str
    limit: Decimal
    current_balance: Decimal
    available_limit: Decimal
    closing_day: int
    due_day: int
    created_at: dt.datetime
    updated_at: dt.datetime


class CreditCardMutationResponse(Schema):
    message: str
    credit_card: CreditCardResponse


class CreditCardListResponse(Schema):
    credit_cards: List[CreditCardResponse]
    pagination: Pagination


class CreditCardTotalsResponse(Schema):
    total_limit: Decimal
    total_current_balance: Decimal
    total_available_limit: Decimal
    credit_cards_count: int


# Transactions


class TransactionCreateRequest(Schema):
    """Request body for POST /transactions"""

    description: str = Field(..., min_length=1, max_length=200)
    amount: PositiveMoney
    type: TransactionType
    nature: TransactionNature = "variable"
    category: str = Field(..., min_length=1, max_length=50)
    status: TransactionStatus = "paid"
    date: Optional[dt.date] = None
    account_id: Optional[uuid.UUID] = None
    credit_card_id: Optional[uuid.UUID] = None
    group_id: Optional[uuid.UUID] = None
    paid_by: Optional[str] = Field(None, max_length=100)
    ai_category: Optional[str] = Field(None, max_length=50)
    ai_explanation: Optional[str] = Field(None, max_length=500)
    ai_confidence: Optional[float] = Field(None, ge=0, le=1)

    @model_validator(mode="after")
    def check_balance_target(self) -> "TransactionCreateRequest":
        if self.account_id is None and self.credit_card_id is None:
            raise ValueError("Transaction must be linked to an account or a credit card")
        return self


class TransactionUpdateRequest(Schema):
    """Request body for PUT /transactions/{id}; only sent fields change"""

    description: Optional[str] = Field(None, min_length=1, max_length=200)
    amount: Optional[PositiveMoney] = None
    type: Optional[TransactionType] = None
    nature: Optional[TransactionNature] = None
    category: Optional[str] = Field(None, min_length=1, max_length=50)
    status: Optional[TransactionStatus] = None
    date: Optional[dt.date] = None
    account_id: Optional[uuid.UUID] = None
    credit_card_id: Optional[uuid.UUID] = None
    group_id: Optional[uuid.UUID] = None
    paid_by: Optional[str] = Field(None, max_length=100)
    ai_category: Optional[str] = Field(None, max_length=50)
    ai_explanation: Optional[str] = Field(None, max_length=500)
    ai_confidence: Optional[float] = Field(None, ge=0, le=1)

    @model_validator(mode="before")
    @classmethod
    def check_nulls(cls, values: Any) -> Any:
        return reject_nulls(values, ("description", "amount", "type", "nature", "category", "status", "date"))


class TransactionResponse(Schema):
    id: uuid.UUID
    description: str
    amount: Decimal
    type: str
    nature: str
    category: str
    status: str
    date: dt.date
    account_id: Optional[uuid.UUID] = None
    credit_card_id: Optional[uuid.UUID] = None
    user_id: uuid.UUID
    group_id: Optional[uuid.UUID] = None
    paid_by: Optional[str] = None
    ai_category: Optional[str] = None
    ai_explanation: Optional[str] = None
    ai_confidence: Optional[float] = None
    installment_id: Optional[uuid.UUID] = None
    installment_current: Optional[int] = None
    installment_total: Optional[int] = None
    recurring_expense_id: Optional[uuid.UUID] = None
    created_at: dt.datetime
    updated_at: dt.datetime


class TransactionMutationResponse(Schema):
    message: str
    transaction: TransactionResponse


class TransactionListResponse(Schema):
    transactions: List[TransactionResponse]
    pagination: Pagination


class CategoryTotalSchema(Schema):
    category: str
    total: Decimal
    count: int


class CategoriesBreakdown(Schema):
    expenses: List[CategoryTotalSchema]
    income: List[CategoryTotalSchema]


class MonthlyTrendSchema(Schema):
    month: str
    income: Decimal
    expenses: Decimal
    balance: Decimal


class DashboardResponse(Schema):
    """Response for GET /transactions/summary/dashboard"""

    total_balance: Decimal
    monthly_income: Decimal
    monthly_expenses: Decimal
    monthly_balance: Decimal
    categories_breakdown: CategoriesBreakdown
    monthly_trend: List[MonthlyTrendSchema]


# Groups and family members


class GroupCreateRequest(Schema):
    name: str = Field(..., min_length=2, max_length=100)


class GroupResponse(Schema):
    id: uuid.UUID
    name: str
    owner_id: uuid.UUID
    created_at: dt.datetime


class MembershipResponse(Schema):
    id: uuid.UUID
    user_id: uuid.UUID
    group_id: uuid.UUID
    role: str
    created_at: dt.datetime


class GroupListResponse(Schema):
    groups: List[GroupResponse]
    memberships: List[MembershipResponse]


class GroupMutationResponse(Schema):
    message: str
    group: GroupResponse


class MemberAddRequest(Schema):
    username: str = Field(..., min_length=3, max_length=20)
    role: MembershipRole = "member"


class MemberAddResponse(Schema):
    message: str
    membership: MembershipResponse


class MemberListResponse(Schema):
    members: List[MembershipResponse]


class FamilyMemberRequest(Schema):
    name: str = Field(..., min_length=1, max_length=100)
    color: Optional[str] = Field(None, max_length=20)


class FamilyMemberResponse(Schema):
    id: uuid.UUID
    name: str
    color: str
    created_at: dt.datetime


# Recurring expenses


class RecurringExpenseRequest(Schema):
    """Request body for POST and PUT /recurring-expenses"""

    description: str = Field(..., min_length=1, max_length=200)
    amount: PositiveMoney
    category: str = Field(..., min_length=1, max_length=50)
    day_of_month: DayOfMonth
    account_id: Optional[uuid.UUID] = None
    credit_card_id: Optional[uuid.UUID] = None
    group_id: Optional[uuid.UUID] = None
    paid_by: Optional[str] = Field(None, max_length=100)
    is_active: bool = True

    @model_validator(mode="after")
    def check_balance_target(self) -> "RecurringExpenseRequest":
        if self.account_id is None and self.credit_card_id is None:
            raise ValueError("Recurring expense must be linked to an account or a credit card")
        return self


class RecurringExpenseResponse(Schema):
    id: uuid.UUID
    description: str
    amount: Decimal
    category: str
    day_of_month: int
    account_id: Optional[uuid.UUID] = None
    credit_card_id: Optional[uuid.UUID] = None
    group_id: Optional[uuid.UUID] = None
    paid_by: Optional[str] = None
    is_active: bool
    last_generated: Optional[dt.date] = None
    created_at: dt.datetime


class GenerateRequest(Schema):
    month: Optional[int] = Field(None, ge=1, le=12)
    year: Optional[int] = Field(None, ge=1970, le=9999)


class GenerateResponse(Schema):
    message: str
    transaction: TransactionResponse


class GenerateAllResponse(Schema):
    message: str
    generated: List[Dict[str, str]]
    skipped: List[Dict[str, str]]


# Installments


class InstallmentCreateRequest(Schema):
    """Request body for POST /installments"""

    description: str = Field(..., min_length=1, max_length=200)
    total_amount: PositiveMoney
    installments: int = Field(..., ge=1, le=120)
    category: str = Field(..., min_length=1, max_length=50)
    start_date: dt.date
    payment_day: DayOfMonth
    account_id: Optional[uuid.UUID] = None
    credit_card_id: Optional[uuid.UUID] = None
    group_id: Optional[uuid.UUID] = None
    paid_by: Optional[str] = Field(None, max_length=100)
    initial_paid: Optional[int] = Field(None, ge=0)
    auto_mark_paid: bool = True

    @model_validator(mode="after")
    def check_balance_target(self) -> "InstallmentCreateRequest":
        if self.account_id is None and self.credit_card_id is None:
            raise ValueError("Installment plan must be linked to an account or a credit card")
        return self


class InstallmentUpdateRequest(Schema):
    description: Optional[str] = Field(None, min_length=1, max_length=200)
    total_amount: Optional[PositiveMoney] = None
    installments: Optional[int] = Field(None, ge=1, le=120)
    category: Optional[str] = Field(None, min_length=1, max_length=50)
    start_date: Optional[dt.date] = None
    payment_day: Optional[DayOfMonth] = None
    account_id: Optional[uuid.UUID] = None
    credit_card_id: Optional[uuid.UUID] = None
    group_id: Optional[uuid.UUID] = None
    paid_by: Optional[str] = Field(None, max_length=100)

    @model_validator(mode="before")
    @classmethod
    def check_nulls(cls, values: Any) -> Any:
        return reject_nulls(
            values, ("description", "total_amount", "installments", "category", "start_date", "payment_day")
        )


class InstallmentDueSchema(Schema):
    number: int
    due_date: dt.date
    amount: Decimal


class InstallmentResponse(Schema):
    id: uuid.UUID
    description: str
    total_amount: Decimal
    installments: int
    category: str
    start_date: dt.date
    current_paid: int
    payment_day: int
    status: str
    account_id: Optional[uuid.UUID] = None
    credit_card_id: Optional[uuid.UUID] = None
    group_id: Optional[uuid.UUID] = None
    paid_by: Optional[str] = None
    schedule: List[InstallmentDueSchema] = []
    created_at: dt.datetime


class InstallmentCreateResponse(Schema):
    message: str
    installment: InstallmentResponse
    created_transactions: int


class PayRequest(Schema):
    payment_date: Optional[dt.date] = None


class PayResponse(Schema):
    message: str
    installment: InstallmentResponse
    transaction: TransactionResponse


class MarkPaidRequest(Schema):
    paid_count: int = Field(..., ge=1)


class MarkPaidResponse(Schema):
    message: str
    installment: InstallmentResponse
    created_transactions: int


# Category suggestions


class SuggestionRequest(Schema):
    description: str = Field(..., min_length=1, max_length=200)
    amount: PositiveMoney
    type: TransactionType


class SuggestionSchema(Schema):
    category: str
    confidence: float
    explanation: str
    source: str = "ai"


class SuggestionResponse(Schema):
    suggestion: SuggestionSchema


class FeedbackRequest(Schema):
    original_suggestion: SuggestionSchema
    user_choice: str = Field(..., min_length=1, max_length=50)
    description: str = Field(..., min_length=1, max_length=200)


class CategoriesResponse(Schema):
    income: List[str]
    expense: List[str]
