"""Installment plans and the transactions their payments produce"""

import uuid
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from finance_planner.domain.exceptions import ValidationError
from finance_planner.domain.installments import (
    calculate_paid_installments,
    generate_installment_plan,
    has_installment_due_in,
)
from finance_planner.domain.models import InstallmentDue
from finance_planner.infrastructure.database.models import Installment, Transaction
from finance_planner.infrastructure.database.repositories import InstallmentRepository
from finance_planner.services.ledger import LedgerService


class InstallmentService:
    """Creates plans and pays their installments through the ledger"""

    def __init__(self, ledger: LedgerService):
        self.ledger = ledger
        self.plans = InstallmentRepository(ledger.db)

    def schedule(self, plan: Installment) -> List[InstallmentDue]:
        return generate_installment_plan(plan.total_amount, plan.installments, plan.start_date, plan.payment_day)

    def _pay(self, plan: Installment, due: InstallmentDue, payment_date: Optional[date] = None) -> Transaction:
        """Record one installment as a paid expense linked to the plan (no commit)"""
        return self.ledger.add_transaction(
            plan.user_id,
            {
                "description": f"{plan.description} ({due.number}/{plan.installments})"[:200],
                "amount": due.amount,
                "type": "expense",
                "nature": "fixed",
                "category": plan.category,
                "status": "paid",
                "date": payment_date or due.due_date,
                "account_id": plan.account_id,
                "credit_card_id": plan.credit_card_id,
                "group_id": plan.group_id,
                "paid_by": plan.paid_by,
                "installment_id": plan.id,
                "installment_current": due.number,
                "installment_total": plan.installments,
            },
        )

    def _pay_up_to(self, plan: Installment, paid_count: int) -> List[Transaction]:
        schedule = self.schedule(plan)
        created = [self._pay(plan, due) for due in schedule[plan.current_paid:paid_count]]
        plan.current_paid = paid_count
        if plan.current_paid >= plan.installments:
            plan.status = "completed"
        return created

    def create(
        self,
        user_id: uuid.UUID,
        fields: Dict[str, Any],
        initial_paid: Optional[int] = None,
        auto_mark_paid: bool = True,
        today: Optional[date] = None,
    ) -> Tuple[Installment, int]:
        """
        Create a plan and the transactions of the installments already paid.

        `initial_paid` wins over `auto_mark_paid`; with neither, nothing is
        marked paid.
        """
        today = today or date.today()

        def operation():
            self.ledger.validate_references(
                user_id, fields.get("account_id"), fields.get("credit_card_id"), fields.get("group_id")
            )
            total = fields["installments"]
            if initial_paid is not None:
                paid_count = min(max(0, initial_paid), total)
            elif auto_mark_paid:
                paid_count = calculate_paid_installments(fields["start_date"], fields["payment_day"], total, today)
            else:
                paid_count = 0

            plan = self.plans.create(user_id, current_paid=0, status="active", **fields)
            created = self._pay_up_to(plan, paid_count) if paid_count else []
            return plan, len(created)

        return self.ledger.atomic(operation, user_id)

    def get(self, plan_id: uuid.UUID, user_id: uuid.UUID) -> Installment:
        return self.plans.get_owned(plan_id, user_id)

    def update(self, plan_id: uuid.UUID, user_id: uuid.UUID, changes: Dict[str, Any]) -> Installment:
        def operation():
            plan = self.plans.get_owned(plan_id, user_id)
            if "account_id" in changes or "credit_card_id" in changes or changes.get("group_id"):
                self.ledger.validate_references(
                    user_id,
                    changes.get("account_id", plan.account_id),
                    changes.get("credit_card_id", plan.credit_card_id),
                    changes.get("group_id"),
                )
            for key, value in changes.items():
                setattr(plan, key, value)
            if plan.current_paid > plan.installments:
                raise ValidationError(
                    "Installment count cannot be lower than installments already paid",
                    [f"installments: at least {plan.current_paid}"],
                )
            if plan.status != "cancelled":
                plan.status = "completed" if plan.current_paid >= plan.installments else "active"
            return plan

        return self.ledger.atomic(operation, user_id)

    def pay_next(
        self, plan_id: uuid.UUID, user_id: uuid.UUID, payment_date: Optional[date] = None
    ) -> Tuple[Installment, Transaction]:
        def operation():
            plan = self.plans.get_owned(plan_id, user_id)
            self._ensure_payable(plan)
            due = self.schedule(plan)[plan.current_paid]
            transaction = self._pay(plan, due, payment_date)
            plan.current_paid += 1
            if plan.current_paid >= plan.installments:
                plan.status = "completed"
            return plan, transaction

        return self.ledger.atomic(operation, user_id)

    def mark_paid(self, plan_id: uuid.UUID, user_id: uuid.UUID, paid_count: int) -> Tuple[Installment, int]:
        """Pay every installment up to paid_count (clamped to the plan size)"""

        def operation():
            plan = self.plans.get_owned(plan_id, user_id)
            self._ensure_payable(plan)
            target = min(max(0, paid_count), plan.installments)
            if target <= plan.current_paid:
                raise ValidationError(
                    f"{plan.current_paid} installments are already paid, use a larger number",
                    [f"paidCount: must be greater than {plan.current_paid}"],
                )
            created = self._pay_up_to(plan, target)
            return plan, len(created)

        return self.ledger.atomic(operation, user_id)

    def cancel(self, plan_id: uuid.UUID, user_id: uuid.UUID) -> Installment:
        def operation():
            plan = self.plans.get_owned(plan_id, user_id)
            plan.status = "cancelled"
            return plan

        return self.ledger.atomic(operation, user_id)

    def delete(self, plan_id: uuid.UUID, user_id: uuid.UUID) -> None:
        """Delete the plan; its already generated transactions stay in the ledger"""

        def operation():
            plan = self.plans.get_owned(plan_id, user_id)
            self.plans.delete(plan)

        self.ledger.atomic(operation, user_id)

    def list(
        self,
        user_id: uuid.UUID,
        status: Optional[str] = None,
        group_id: Optional[uuid.UUID] = None,
        month: Optional[Tuple[int, int]] = None,
    ) -> List[Installment]:
        """Plans of the user; with `month` only those with an unpaid installment due then"""
        if month is None:
            return self.plans.list_by_user(user_id, status=status, group_id=group_id)

        year, month_number = month
        plans = self.plans.list_by_user(user_id, status=status, group_id=group_id)
        return [
            p
            for p in plans
            if p.status != "cancelled"
            and has_installment_due_in(p.start_date, p.installments, p.current_paid, year, month_number)
        ]

    @staticmethod
    def _ensure_payable(plan: Installment) -> None:
        if plan.status == "cancelled":
            raise ValidationError("Installment plan is cancelled", ["status: cancelled"])
        if plan.current_paid >= plan.installments:
            raise ValidationError("Installment plan is already complete", ["status: completed"])
