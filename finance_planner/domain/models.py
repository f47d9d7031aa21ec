"""Domain models - pure Python dataclasses representing business entities"""

import uuid
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List

ACCOUNT = "account"
CREDIT_CARD = "credit_card"

ADD = "add"
SUBTRACT = "subtract"

INCOME = "income"
EXPENSE = "expense"

PAID = "paid"
PENDING = "pending"


@dataclass(frozen=True)
class BalanceEffect:
    """Signed change a paid transaction applies to one balance holder"""

    target: str  # "account" or "credit_card"
    target_id: uuid.UUID
    amount: Decimal
    operation: str  # "add" or "subtract"


@dataclass
class LedgerEntry:
    """Transaction fields the dashboard needs"""

    date: date
    amount: Decimal
    type: str
    category: str
    status: str


@dataclass
class CategoryTotal:
    """Per-category sum for one month"""

    category: str
    total: Decimal
    count: int


@dataclass
class MonthlyTrendPoint:
    """Income and expense totals for one calendar month"""

    month: str  # "YYYY-MM"
    income: Decimal
    expenses: Decimal
    balance: Decimal


@dataclass
class DashboardSummary:
    """Monthly financial summary for an owner or a group"""

    total_balance: Decimal
    monthly_income: Decimal
    monthly_expenses: Decimal
    monthly_balance: Decimal
    expenses_breakdown: List[CategoryTotal] = field(default_factory=list)
    income_breakdown: List[CategoryTotal] = field(default_factory=list)
    monthly_trend: List[MonthlyTrendPoint] = field(default_factory=list)


@dataclass
class InstallmentDue:
    """Single payment in an installment plan"""

    number: int
    due_date: date
    amount: Decimal


@dataclass
class SimilarTransaction:
    """Historical transaction ranked by description similarity"""

    description: str
    category: str
    score: float


@dataclass
class CategorySuggestion:
    """Suggested category for a new transaction"""

    category: str
    confidence: float
    explanation: str
    source: str  # "ai", "history" or "default"
