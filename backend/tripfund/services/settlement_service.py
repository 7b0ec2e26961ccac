"""
Settlement service for proposing and recording transfers that zero every
member's balance.
"""
import heapq
import logging
from decimal import Decimal
from typing import List, Tuple
from sqlalchemy.orm import Session
from tripfund.core import money
from tripfund.core.exceptions import AuthorizationError, ConflictError, NotFoundError
from tripfund.core.utils import utcnow
from tripfund.db.session import transaction
from tripfund.models.settlement import Settlement
from tripfund.models.trip import MemberRole
from tripfund.repositories.expense import ExpenseRepository
from tripfund.repositories.membership import MembershipRepository
from tripfund.repositories.settlement import SettlementRepository
from tripfund.schemas.balance import Balance
from tripfund.schemas.settlement import SettlementPlan, SettlementRecordResponse, Transfer
from tripfund.services.ledger_service import LedgerService
from tripfund.services.permission_service import PermissionService

logger = logging.getLogger(__name__)


def plan_settlement(balances: List[Balance]) -> SettlementPlan:
    """
    Net balances into transfers using greedy matching.

    The largest creditor is always paired with the largest debtor; whichever
    side is left with a remainder goes back on its heap. On equal magnitudes
    the lower member id wins. Uses at most N-1 transfers for N unsettled
    members, and because amounts are exact decimals every remainder ends at
    zero. Not guaranteed to be the minimum number of transfers.
    """
    names = {b.member_id: b.member_name for b in balances}
    # heapq is a min-heap, so magnitudes are stored negated
    creditors: List[Tuple[Decimal, int]] = []
    debtors: List[Tuple[Decimal, int]] = []
    for b in balances:
        amount = money.to_decimal(b.balance)
        if money.is_negligible(amount):
            continue
        if amount > 0:
            heapq.heappush(creditors, (-amount, b.member_id))
        else:
            heapq.heappush(debtors, (amount, b.member_id))

    transfers: List[Transfer] = []
    while creditors and debtors:
        credit, creditor_id = heapq.heappop(creditors)
        debt, debtor_id = heapq.heappop(debtors)
        credit, debt = -credit, -debt

        amount = min(credit, debt)
        transfers.append(Transfer(
            from_member_id=debtor_id,
            from_name=names.get(debtor_id, ""),
            to_member_id=creditor_id,
            to_name=names.get(creditor_id, ""),
            amount=money.quantize(amount),
        ))

        credit -= amount
        debt -= amount
        if not money.is_negligible(credit):
            heapq.heappush(creditors, (-credit, creditor_id))
        if not money.is_negligible(debt):
            heapq.heappush(debtors, (-debt, debtor_id))

    if creditors or debtors:
        # Only reachable when the input does not net to zero (e.g. money left in the fund pool)
        logger.debug(f"Unmatched balances after settlement: creditors={creditors} debtors={debtors}")

    return SettlementPlan(
        settlements=transfers,
        total_transactions=len(transfers),
        total_amount=money.quantize(money.total(t.amount for t in transfers)),
    )


class SettlementService:
    """Plan settlements for a trip and keep a record of agreed transfers."""

    def __init__(self, db: Session):
        self.db = db
        self.members = MembershipRepository(db)
        self.settlements = SettlementRepository(db)
        self.permissions = PermissionService(self.members)
        self.ledger = LedgerService(self.members, ExpenseRepository(db))

    def plan_for_trip(self, trip_id: int) -> SettlementPlan:
        """Compute balances and the transfer plan on demand."""
        return plan_settlement(self.ledger.compute_balances(trip_id))

    def record_plan(self, trip_id: int, user_id: int) -> List[SettlementRecordResponse]:
        """Replace the trip's open settlement records with the current plan."""
        with transaction(self.db):
            self.permissions.check_trip_permission(trip_id, user_id, MemberRole.ADMIN)
            plan = self.plan_for_trip(trip_id)
            removed = self.settlements.delete_unsettled(trip_id)
            self.settlements.add_all([
                Settlement(
                    trip_id=trip_id,
                    from_member_id=t.from_member_id,
                    to_member_id=t.to_member_id,
                    amount=t.amount,
                    is_settled=False,
                )
                for t in plan.settlements
            ])

        logger.info(
            f"Recorded {plan.total_transactions} settlements for trip {trip_id} "
            f"(replaced {removed} open records)"
        )
        return self.history(trip_id, user_id)

    def mark_paid(self, settlement_id: int, user_id: int) -> SettlementRecordResponse:
        """Confirm a recorded transfer. Allowed for admins and the two parties."""
        with transaction(self.db):
            settlement = self.settlements.get(settlement_id, for_update=True)
            if not settlement:
                raise NotFoundError("Settlement not found")
            actor = self.permissions.check_trip_permission(settlement.trip_id, user_id)
            parties = {settlement.from_member_id, settlement.to_member_id}
            if actor.role != MemberRole.ADMIN and actor.id not in parties:
                raise AuthorizationError("Only admins or the involved members can confirm a settlement")
            if settlement.is_settled:
                raise ConflictError("Settlement is already marked as paid")

            settlement.is_settled = True
            settlement.settled_at = utcnow()

        logger.info(f"Settlement {settlement_id} marked as paid by user {user_id}")
        return self._to_response(settlement)

    def history(self, trip_id: int, user_id: int) -> List[SettlementRecordResponse]:
        self.permissions.check_trip_permission(trip_id, user_id)
        return [self._to_response(s) for s in self.settlements.list_for_trip(trip_id)]

    @staticmethod
    def _to_response(settlement: Settlement) -> SettlementRecordResponse:
        return SettlementRecordResponse(
            id=settlement.id,
            trip_id=settlement.trip_id,
            from_member_id=settlement.from_member_id,
            from_name=settlement.from_member.name,
            to_member_id=settlement.to_member_id,
            to_name=settlement.to_member.name,
            amount=settlement.amount,
            is_settled=settlement.is_settled,
            settled_at=settlement.settled_at,
            created_at=settlement.created_at,
        )
