"""Transaction endpoints and the dashboard summary"""

import uuid
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query

from finance_planner.api.v1.schemas import (
    DashboardResponse,
    MessageResponse,
    TransactionCreateRequest,
    TransactionListResponse,
    TransactionMutationResponse,
    TransactionResponse,
    TransactionStatus,
    TransactionType,
    TransactionUpdateRequest,
)
from finance_planner.api.dependencies import get_current_user, get_ledger_service
from finance_planner.infrastructure.database.models import User
from finance_planner.infrastructure.database.repositories import TransactionFilters
from finance_planner.services.ledger import LedgerService

router = APIRouter()


@router.get("", response_model=TransactionListResponse)
def list_transactions(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    type: Optional[TransactionType] = None,
    category: Optional[str] = Query(None, max_length=50),
    status: Optional[TransactionStatus] = None,
    account_id: Optional[uuid.UUID] = Query(None, alias="accountId"),
    credit_card_id: Optional[uuid.UUID] = Query(None, alias="creditCardId"),
    group_id: Optional[uuid.UUID] = Query(None, alias="groupId"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    current_user: User = Depends(get_current_user),
    ledger: LedgerService = Depends(get_ledger_service),
):
    """
    List transactions, newest first.

    With groupId the whole group's transactions are listed (members only).
    """
    filters = TransactionFilters(
        type=type,
        category=category,
        status=status,
        account_id=account_id,
        credit_card_id=credit_card_id,
        group_id=group_id,
        start_date=start_date,
        end_date=end_date,
    )
    result = ledger.list_transactions(current_user.id, filters, page, limit)
    return {"transactions": result.items, "pagination": result.pagination()}


@router.post("", response_model=TransactionMutationResponse, status_code=201)
def create_transaction(
    body: TransactionCreateRequest,
    current_user: User = Depends(get_current_user),
    ledger: LedgerService = Depends(get_ledger_service),
):
    """
    Record a transaction and apply its balance effects atomically.

    Errors:
    - 400: no account/card referenced, or malformed fields
    - 404: referenced account, card or group is not the caller's
    - 409: the card limit would be exceeded or its balance would go negative
    """
    transaction = ledger.create_transaction(current_user.id, body.model_dump())
    return {"message": "Transaction created successfully", "transaction": transaction}


@router.get("/summary/dashboard", response_model=DashboardResponse)
def dashboard(
    group_id: Optional[uuid.UUID] = Query(None, alias="groupId"),
    months: Optional[int] = Query(None, ge=1, le=24),
    current_user: User = Depends(get_current_user),
    ledger: LedgerService = Depends(get_ledger_service),
):
    summary = ledger.dashboard(current_user.id, group_id=group_id, months=months)
    return {
        "total_balance": summary.total_balance,
        "monthly_income": summary.monthly_income,
        "monthly_expenses": summary.monthly_expenses,
        "monthly_balance": summary.monthly_balance,
        "categories_breakdown": {
            "expenses": summary.expenses_breakdown,
            "income": summary.income_breakdown,
        },
        "monthly_trend": summary.monthly_trend,
    }


@router.get("/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    ledger: LedgerService = Depends(get_ledger_service),
):
    return ledger.get_transaction(transaction_id, current_user.id)


@router.put("/{transaction_id}", response_model=TransactionMutationResponse)
def update_transaction(
    transaction_id: uuid.UUID,
    body: TransactionUpdateRequest,
    current_user: User = Depends(get_current_user),
    ledger: LedgerService = Depends(get_ledger_service),
):
    """Only the fields present in the body change; explicit null clears an optional reference"""
    transaction = ledger.update_transaction(transaction_id, current_user.id, body.model_dump(exclude_unset=True))
    return {"message": "Transaction updated successfully", "transaction": transaction}


@router.delete("/{transaction_id}", response_model=MessageResponse)
def delete_transaction(
    transaction_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    ledger: LedgerService = Depends(get_ledger_service),
):
    ledger.delete_transaction(transaction_id, current_user.id)
    return {"message": "Transaction deleted successfully"}
