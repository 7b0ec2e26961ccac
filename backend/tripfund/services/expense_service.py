"""
Expense service for expense-related business logic.
"""
import logging
from decimal import Decimal
from typing import List
from sqlalchemy.orm import Session
from tripfund.core import money
from tripfund.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from tripfund.db.session import transaction
from tripfund.models.expense import Expense, ExpenseParticipant
from tripfund.models.trip import TripMember, MemberRole
from tripfund.repositories.expense import ExpenseRepository
from tripfund.repositories.membership import MembershipRepository
from tripfund.schemas.expense import (
    ExpenseCreate, ExpenseParticipantResponse, ExpenseResponse, ExpenseUpdate, ParticipantShare
)
from tripfund.services.permission_service import PermissionService

logger = logging.getLogger(__name__)


def allocate_shares(amount: Decimal, participants: List[ParticipantShare]) -> List[Decimal]:
    """
    Resolve each participant's share of ``amount``.

    Either every participant carries an explicit share and the shares add up
    to the amount exactly, or none does and the amount is split evenly in
    whole cents.
    """
    explicit = [p.share_amount for p in participants if p.share_amount is not None]
    if not explicit:
        return money.split_evenly(amount, len(participants))
    if len(explicit) != len(participants):
        raise ValidationError("Give a share for every participant or for none")

    shares = [money.quantize(s) for s in explicit]
    if any(s < 0 for s in shares):
        raise ValidationError("Share amounts cannot be negative")
    if money.total(shares) != money.quantize(amount):
        raise ValidationError("Share amounts must add up to the expense amount")
    return shares


class ExpenseService:
    """Record and query expenses of a trip."""

    def __init__(self, db: Session):
        self.db = db
        self.members = MembershipRepository(db)
        self.expenses = ExpenseRepository(db)
        self.permissions = PermissionService(self.members)

    def record_expense(self, trip_id: int, created_by: int, data: ExpenseCreate) -> ExpenseResponse:
        """Create an expense with participants and their shares."""
        amount = money.quantize(data.amount)
        if amount <= 0:
            raise ValidationError("Expense amount must be positive")

        with transaction(self.db):
            self.permissions.check_trip_permission(trip_id, created_by)

            payer = self.members.get_member(data.payer_member_id, trip_id=trip_id, active_only=True)
            if not payer:
                raise ValidationError("Payer is not a member of this trip")

            participants = self._build_participants(trip_id, payer, amount, data.participants)

            is_paid_from_fund = data.is_paid_from_fund
            if is_paid_from_fund is None:
                # Admins hold the fund pool, so their payments come out of it by default
                is_paid_from_fund = payer.role == MemberRole.ADMIN

            expense = Expense(
                trip_id=trip_id,
                payer_member_id=payer.id,
                amount=amount,
                is_paid_from_fund=is_paid_from_fund,
                is_income=data.is_income,
                description=data.description,
                expense_date=data.expense_date,
                created_by=created_by,
            )
            expense.participants = participants
            self.expenses.add(expense)

        logger.info(f"Expense {expense.id} of {amount} recorded in trip {trip_id} by user {created_by}")
        return self._to_response(self.expenses.get(expense.id))

    def list_expenses(self, trip_id: int, user_id: int) -> List[ExpenseResponse]:
        self.permissions.check_trip_permission(trip_id, user_id)
        return [self._to_response(e) for e in self.expenses.list_for_trip(trip_id)]

    def update_expense(self, expense_id: int, user_id: int, data: ExpenseUpdate) -> ExpenseResponse:
        """
        Edit an expense. Allowed for its creator and trip admins.

        Changing the payer re-derives ``is_paid_from_fund`` from the new payer's
        role unless the flag is given explicitly. When participants are given
        they replace the old ones; when only the amount changes, the existing
        participants split the new amount evenly.
        """
        with transaction(self.db):
            expense = self._get_editable(expense_id, user_id, "edit")
            trip_id = expense.trip_id

            amount = money.quantize(data.amount) if data.amount is not None else money.quantize(expense.amount)
            if amount <= 0:
                raise ValidationError("Expense amount must be positive")

            payer = expense.payer
            if data.payer_member_id is not None and data.payer_member_id != expense.payer_member_id:
                payer = self.members.get_member(data.payer_member_id, trip_id=trip_id, active_only=True)
                if not payer:
                    raise ValidationError("Payer is not a member of this trip")
                expense.payer_member_id = payer.id
                expense.is_paid_from_fund = payer.role == MemberRole.ADMIN
            if data.is_paid_from_fund is not None:
                expense.is_paid_from_fund = data.is_paid_from_fund

            if data.participants is not None:
                expense.participants = self._build_participants(trip_id, payer, amount, data.participants)
            elif amount != money.quantize(expense.amount):
                current = [ParticipantShare(member_id=p.trip_member_id) for p in expense.participants]
                expense.participants = self._build_participants(trip_id, payer, amount, current)

            expense.amount = amount
            for field in ("is_income", "description", "expense_date"):
                value = getattr(data, field)
                if value is not None:
                    setattr(expense, field, value)
            self.db.flush()

        logger.info(f"Expense {expense_id} updated by user {user_id}")
        return self._to_response(self.expenses.get(expense_id))

    def delete_expense(self, expense_id: int, user_id: int) -> None:
        """Delete an expense. Allowed for its creator and trip admins."""
        with transaction(self.db):
            expense = self._get_editable(expense_id, user_id, "delete")
            self.expenses.delete(expense)

        logger.info(f"Expense {expense_id} deleted by user {user_id}")

    def _get_editable(self, expense_id: int, user_id: int, action: str) -> Expense:
        expense = self.expenses.get(expense_id, for_update=True)
        if not expense:
            raise NotFoundError("Expense not found")
        actor = self.permissions.check_trip_permission(expense.trip_id, user_id)
        if expense.created_by != user_id and actor.role != MemberRole.ADMIN:
            raise AuthorizationError(f"Only the creator or an admin can {action} this expense")
        return expense

    def _build_participants(
        self,
        trip_id: int,
        payer: TripMember,
        amount: Decimal,
        participants: List[ParticipantShare],
    ) -> List[ExpenseParticipant]:
        """Validate participants and turn them into share rows."""
        if not participants:
            # If no participants specified, payer carries the whole amount
            return [ExpenseParticipant(trip_member_id=payer.id, share_amount=amount)]

        member_ids = [p.member_id for p in participants]
        if len(set(member_ids)) != len(member_ids):
            raise ValidationError("Each participant may appear only once")
        valid = self.members.list_active_members_by_ids(trip_id, member_ids)
        if len(valid) != len(member_ids):
            raise ValidationError("Some participants are not members of this trip")
        shares = allocate_shares(amount, participants)
        return [
            ExpenseParticipant(trip_member_id=p.member_id, share_amount=share)
            for p, share in zip(participants, shares)
        ]

    @staticmethod
    def _to_response(expense: Expense) -> ExpenseResponse:
        return ExpenseResponse(
            id=expense.id,
            trip_id=expense.trip_id,
            payer_member_id=expense.payer_member_id,
            payer_name=expense.payer.name,
            amount=expense.amount,
            is_paid_from_fund=expense.is_paid_from_fund,
            is_income=expense.is_income,
            description=expense.description,
            expense_date=expense.expense_date,
            participants=[
                ExpenseParticipantResponse(
                    member_id=p.trip_member_id,
                    member_name=p.member.name,
                    share_amount=p.share_amount,
                )
                for p in expense.participants
            ],
            created_at=expense.created_at,
        )
