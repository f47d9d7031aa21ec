"""Installment plan endpoints"""

import uuid
from typing import List, Optional
from fastapi import APIRouter, Depends, Query

from finance_planner.api.v1.schemas import (
    InstallmentCreateRequest,
    InstallmentCreateResponse,
    InstallmentDueSchema,
    InstallmentResponse,
    InstallmentStatus,
    InstallmentUpdateRequest,
    MarkPaidRequest,
    MarkPaidResponse,
    MessageResponse,
    PayRequest,
    PayResponse,
)
from finance_planner.api.dependencies import get_current_user, get_ledger_service
from finance_planner.infrastructure.database.models import Installment, User
from finance_planner.services.installments import InstallmentService
from finance_planner.services.ledger import LedgerService

router = APIRouter()


def get_installment_service(ledger: LedgerService = Depends(get_ledger_service)) -> InstallmentService:
    return InstallmentService(ledger)


def serialize_plan(service: InstallmentService, plan: Installment) -> InstallmentResponse:
    """Plan fields plus its full due schedule"""
    response = InstallmentResponse.model_validate(plan)
    response.schedule = [InstallmentDueSchema.model_validate(due) for due in service.schedule(plan)]
    return response


@router.get("", response_model=List[InstallmentResponse])
def list_installments(
    status: Optional[InstallmentStatus] = None,
    group_id: Optional[uuid.UUID] = Query(None, alias="groupId"),
    month: Optional[str] = Query(None, pattern=r"^\d{4}-(0[1-9]|1[0-2])$"),
    current_user: User = Depends(get_current_user),
    service: InstallmentService = Depends(get_installment_service),
):
    """
    List the caller's plans.

    With month=YYYY-MM only plans with an unpaid installment due in that
    month are returned.
    """
    target = None
    if month:
        year, month_number = month.split("-")
        target = (int(year), int(month_number))

    plans = service.list(current_user.id, status=status, group_id=group_id, month=target)
    return [serialize_plan(service, plan) for plan in plans]


@router.post("", response_model=InstallmentCreateResponse, status_code=201)
def create_installment(
    body: InstallmentCreateRequest,
    current_user: User = Depends(get_current_user),
    service: InstallmentService = Depends(get_installment_service),
):
    """
    Create a plan; installments already due are recorded as paid expenses.

    initialPaid sets the paid count explicitly; otherwise, with autoMarkPaid,
    it is derived from the start date and payment day.
    """
    fields = body.model_dump(exclude={"initial_paid", "auto_mark_paid"})
    plan, created = service.create(
        current_user.id, fields, initial_paid=body.initial_paid, auto_mark_paid=body.auto_mark_paid
    )
    message = "Installment plan created successfully"
    if created:
        message += f" ({created} installments marked as paid)"
    return {"message": message, "installment": serialize_plan(service, plan), "created_transactions": created}


@router.get("/{plan_id}", response_model=InstallmentResponse)
def get_installment(
    plan_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    service: InstallmentService = Depends(get_installment_service),
):
    return serialize_plan(service, service.get(plan_id, current_user.id))


@router.put("/{plan_id}/pay", response_model=PayResponse)
def pay_installment(
    plan_id: uuid.UUID,
    body: Optional[PayRequest] = None,
    current_user: User = Depends(get_current_user),
    service: InstallmentService = Depends(get_installment_service),
):
    body = body or PayRequest()
    plan, transaction = service.pay_next(plan_id, current_user.id, body.payment_date)
    return {
        "message": f"Installment {plan.current_paid}/{plan.installments} paid",
        "installment": serialize_plan(service, plan),
        "transaction": transaction,
    }


@router.put("/{plan_id}/mark-paid", response_model=MarkPaidResponse)
def mark_paid(
    plan_id: uuid.UUID,
    body: MarkPaidRequest,
    current_user: User = Depends(get_current_user),
    service: InstallmentService = Depends(get_installment_service),
):
    plan, created = service.mark_paid(plan_id, current_user.id, body.paid_count)
    return {
        "message": f"{created} installments marked as paid",
        "installment": serialize_plan(service, plan),
        "created_transactions": created,
    }


@router.put("/{plan_id}/cancel", response_model=InstallmentResponse)
def cancel_installment(
    plan_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    service: InstallmentService = Depends(get_installment_service),
):
    return serialize_plan(service, service.cancel(plan_id, current_user.id))


@router.put("/{plan_id}", response_model=InstallmentResponse)
def update_installment(
    plan_id: uuid.UUID,
    body: InstallmentUpdateRequest,
    current_user: User = Depends(get_current_user),
    service: InstallmentService = Depends(get_installment_service),
):
    plan = service.update(plan_id, current_user.id, body.model_dump(exclude_unset=True))
    return serialize_plan(service, plan)


@router.delete("/{plan_id}", response_model=MessageResponse)
def delete_installment(
    plan_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    service: InstallmentService = Depends(get_installment_service),
):
    service.delete(plan_id, current_user.id)
    return {"message": "Installment plan deleted successfully"}
