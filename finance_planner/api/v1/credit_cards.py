"""Credit card endpoints"""

import uuid
from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from finance_planner.api.v1.schemas import (
    BalanceAdjustRequest,
    CreditCardCreateRequest,
    CreditCardListResponse,
    CreditCardMutationResponse,
    CreditCardResponse,
    CreditCardTotalsResponse,
    CreditCardUpdateRequest,
    MessageResponse,
)
from finance_planner.api.dependencies import get_current_user, get_ledger_service
from finance_planner.domain.exceptions import ReferenceInUseError, ValidationError
from finance_planner.infrastructure.database.models import User
from finance_planner.infrastructure.database.repositories import CreditCardRepository, TransactionRepository
from finance_planner.infrastructure.database.session import get_db
from finance_planner.services.ledger import LedgerService

router = APIRouter()


@router.get("", response_model=CreditCardListResponse)
def list_credit_cards(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    result = CreditCardRepository(db).list_by_user(current_user.id, page, limit)
    return {"credit_cards": result.items, "pagination": result.pagination()}


@router.post("", response_model=CreditCardMutationResponse, status_code=201)
def create_credit_card(
    body: CreditCardCreateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    card = CreditCardRepository(db).create(current_user.id, **body.model_dump())
    db.commit()
    return {"message": "Credit card created successfully", "credit_card": card}


@router.get("/summary/totals", response_model=CreditCardTotalsResponse)
def credit_card_totals(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Limits, used balances and available credit summed over the caller's cards"""
    total_limit, total_balance, count = CreditCardRepository(db).totals(current_user.id)
    return {
        "total_limit": total_limit,
        "total_current_balance": total_balance,
        "total_available_limit": total_limit - total_balance,
        "credit_cards_count": count,
    }


@router.get("/{card_id}", response_model=CreditCardResponse)
def get_credit_card(
    card_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return CreditCardRepository(db).get_owned(card_id, current_user.id)


@router.put("/{card_id}", response_model=CreditCardMutationResponse)
def update_credit_card(
    card_id: uuid.UUID,
    body: CreditCardUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update card details; the limit can never drop below the current balance"""
    card = CreditCardRepository(db).get_owned(card_id, current_user.id)
    changes = body.model_dump(exclude_unset=True)

    if "limit" in changes and changes["limit"] < card.current_balance:
        raise ValidationError(
            "Card limit cannot be lower than the current balance",
            [f"limit: must be at least {card.current_balance}"],
        )

    for key, value in changes.items():
        setattr(card, key, value)
    db.commit()
    return {"message": "Credit card updated successfully", "credit_card": card}


@router.put("/{card_id}/balance", response_model=CreditCardMutationResponse)
def adjust_balance(
    card_id: uuid.UUID,
    body: BalanceAdjustRequest,
    current_user: User = Depends(get_current_user),
    ledger: LedgerService = Depends(get_ledger_service),
):
    card = ledger.adjust_credit_card_balance(card_id, current_user.id, body.amount, body.operation)
    return {"message": "Balance updated successfully", "credit_card": card}


@router.delete("/{card_id}", response_model=MessageResponse)
def delete_credit_card(
    card_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete a card no transaction refers to"""
    cards = CreditCardRepository(db)
    card = cards.get_owned(card_id, current_user.id)
    if TransactionRepository(db).count_referencing(credit_card_id=card.id):
        raise ReferenceInUseError("Credit card has transactions and cannot be deleted")

    cards.delete(card)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ReferenceInUseError("Credit card is referenced by recurring expenses or installments") from e
    return {"message": "Credit card deleted successfully"}
