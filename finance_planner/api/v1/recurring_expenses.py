"""Recurring expense templates and monthly generation"""

import uuid
from typing import List, Optional
from fastapi import APIRouter, Depends, Query

from finance_planner.api.v1.schemas import (
    GenerateAllResponse,
    GenerateRequest,
    GenerateResponse,
    MessageResponse,
    RecurringExpenseRequest,
    RecurringExpenseResponse,
)
from finance_planner.api.dependencies import get_current_user, get_ledger_service
from finance_planner.infrastructure.database.models import User
from finance_planner.infrastructure.database.repositories import RecurringExpenseRepository
from finance_planner.services.ledger import LedgerService
from finance_planner.services.recurring import RecurringExpenseService

router = APIRouter()


@router.get("", response_model=List[RecurringExpenseResponse])
def list_recurring_expenses(
    is_active: Optional[bool] = Query(None, alias="isActive"),
    current_user: User = Depends(get_current_user),
    ledger: LedgerService = Depends(get_ledger_service),
):
    return RecurringExpenseRepository(ledger.db).list_by_user(current_user.id, is_active=is_active)


@router.post("", response_model=RecurringExpenseResponse, status_code=201)
def create_recurring_expense(
    body: RecurringExpenseRequest,
    current_user: User = Depends(get_current_user),
    ledger: LedgerService = Depends(get_ledger_service),
):
    fields = body.model_dump()

    def operation():
        ledger.validate_references(current_user.id, body.account_id, body.credit_card_id, body.group_id)
        return RecurringExpenseRepository(ledger.db).create(current_user.id, **fields)

    return ledger.atomic(operation, current_user.id)


@router.post("/generate-all", response_model=GenerateAllResponse)
def generate_all(
    body: Optional[GenerateRequest] = None,
    current_user: User = Depends(get_current_user),
    ledger: LedgerService = Depends(get_ledger_service),
):
    """
    Generate the month's transaction for every active template.

    Templates already generated for the month, or failing validation, are
    reported in `skipped`; the others are still generated.
    """
    body = body or GenerateRequest()
    report = RecurringExpenseService(ledger).generate_all(current_user.id, body.month, body.year)
    return {
        "message": f"{len(report.generated)} transactions generated, {len(report.skipped)} skipped",
        "generated": report.generated,
        "skipped": report.skipped,
    }


@router.get("/{expense_id}", response_model=RecurringExpenseResponse)
def get_recurring_expense(
    expense_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    ledger: LedgerService = Depends(get_ledger_service),
):
    return RecurringExpenseRepository(ledger.db).get_owned(expense_id, current_user.id)


@router.put("/{expense_id}", response_model=RecurringExpenseResponse)
def update_recurring_expense(
    expense_id: uuid.UUID,
    body: RecurringExpenseRequest,
    current_user: User = Depends(get_current_user),
    ledger: LedgerService = Depends(get_ledger_service),
):
    """Replace the template; already generated transactions are not touched"""
    fields = body.model_dump()

    def operation():
        expense = RecurringExpenseRepository(ledger.db).get_owned(expense_id, current_user.id)
        ledger.validate_references(current_user.id, body.account_id, body.credit_card_id, body.group_id)
        for key, value in fields.items():
            setattr(expense, key, value)
        return expense

    return ledger.atomic(operation, current_user.id)


@router.delete("/{expense_id}", response_model=MessageResponse)
def delete_recurring_expense(
    expense_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    ledger: LedgerService = Depends(get_ledger_service),
):
    expenses = RecurringExpenseRepository(ledger.db)
    ledger.atomic(lambda: expenses.delete(expenses.get_owned(expense_id, current_user.id)), current_user.id)
    return {"message": "Recurring expense deleted successfully"}


@router.post("/{expense_id}/generate", response_model=GenerateResponse, status_code=201)
def generate(
    expense_id: uuid.UUID,
    body: Optional[GenerateRequest] = None,
    current_user: User = Depends(get_current_user),
    ledger: LedgerService = Depends(get_ledger_service),
):
    body = body or GenerateRequest()
    transaction = RecurringExpenseService(ledger).generate(expense_id, current_user.id, body.month, body.year)
    return {"message": "Transaction generated successfully", "transaction": transaction}
