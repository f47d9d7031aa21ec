"""Account endpoints"""

import uuid
from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from finance_planner.api.v1.schemas import (
    AccountCreateRequest,
    AccountListResponse,
    AccountMutationResponse,
    AccountResponse,
    AccountUpdateRequest,
    BalanceAdjustRequest,
    BalanceSummaryResponse,
    MessageResponse,
)
from finance_planner.api.dependencies import get_current_user, get_ledger_service
from finance_planner.domain.exceptions import ReferenceInUseError
from finance_planner.infrastructure.database.models import User
from finance_planner.infrastructure.database.repositories import AccountRepository, TransactionRepository
from finance_planner.infrastructure.database.session import get_db
from finance_planner.services.ledger import LedgerService

router = APIRouter()


@router.get("", response_model=AccountListResponse)
def list_accounts(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    result = AccountRepository(db).list_by_user(current_user.id, page, limit)
    return {"accounts": result.items, "pagination": result.pagination()}


@router.post("", response_model=AccountMutationResponse, status_code=201)
def create_account(
    body: AccountCreateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    account = AccountRepository(db).create(current_user.id, **body.model_dump())
    db.commit()
    return {"message": "Account created successfully", "account": account}


@router.get("/summary/balance", response_model=BalanceSummaryResponse)
def balance_summary(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Total of the caller's account balances, broken down by account type"""
    accounts = AccountRepository(db)
    breakdown = [
        {"type": type_, "total": total, "count": count}
        for type_, total, count in accounts.balance_by_type(current_user.id)
    ]
    return {"total_balance": accounts.total_balance([current_user.id]), "breakdown": breakdown}


@router.get("/{account_id}", response_model=AccountResponse)
def get_account(
    account_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return AccountRepository(db).get_owned(account_id, current_user.id)


@router.put("/{account_id}", response_model=AccountMutationResponse)
def update_account(
    account_id: uuid.UUID,
    body: AccountUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    account = AccountRepository(db).get_owned(account_id, current_user.id)
    for key, value in body.model_dump(exclude_unset=True).items():
        setattr(account, key, value)
    db.commit()
    return {"message": "Account updated successfully", "account": account}


@router.put("/{account_id}/balance", response_model=AccountMutationResponse)
def adjust_balance(
    account_id: uuid.UUID,
    body: BalanceAdjustRequest,
    current_user: User = Depends(get_current_user),
    ledger: LedgerService = Depends(get_ledger_service),
):
    account = ledger.adjust_account_balance(account_id, current_user.id, body.amount, body.operation)
    return {"message": "Balance updated successfully", "account": account}


@router.delete("/{account_id}", response_model=MessageResponse)
def delete_account(
    account_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete an account no transaction refers to"""
    accounts = AccountRepository(db)
    account = accounts.get_owned(account_id, current_user.id)
    if TransactionRepository(db).count_referencing(account_id=account.id):
        raise ReferenceInUseError("Account has transactions and cannot be deleted")

    accounts.delete(account)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ReferenceInUseError("Account is referenced by recurring expenses or installments") from e
    return {"message": "Account deleted successfully"}
