"""
Ledger service: derives every member's financial position from the raw
contribution and expense rows.

Positions are recomputed on each call; nothing is cached, so a balance can
never be stale. Income rows carry their own flag and are reported in the
trip statistics but take no part in member balances.
"""
from collections import defaultdict
from decimal import Decimal
from typing import Dict, List
from tripfund.core import money
from tripfund.core.exceptions import NotFoundError
from tripfund.models.expense import Expense
from tripfund.models.trip import Trip, TripMember
from tripfund.repositories.expense import ExpenseRepository
from tripfund.repositories.membership import MembershipRepository
from tripfund.schemas.balance import Balance, DailyExpense, TripStatistics, TripSummary

# Second-half average above or below the first-half average by these factors
TREND_UP = Decimal("1.2")
TREND_DOWN = Decimal("0.8")


def daily_expenses(expenses: List[Expense]) -> List[DailyExpense]:
    """Group spending by day, oldest first. Undated rows count on the day they were recorded."""
    amounts: Dict = defaultdict(Decimal)
    counts: Dict = defaultdict(int)
    for expense in expenses:
        day = expense.expense_date or expense.created_at.date()
        amounts[day] += money.to_decimal(expense.amount)
        counts[day] += 1
    return [
        DailyExpense(date=day, amount=money.quantize(amounts[day]), count=counts[day])
        for day in sorted(amounts)
    ]


def spending_trend(days: List[DailyExpense]) -> str:
    """
    Compare the average daily spend of the later half of the trip with the
    earlier half. With an odd number of days the middle one joins the later half.
    """
    if len(days) <= 1:
        return "stable"
    middle = len(days) // 2
    first = money.total(d.amount for d in days[:middle]) / middle
    second = money.total(d.amount for d in days[middle:]) / (len(days) - middle)
    if second > first * TREND_UP:
        return "increasing"
    if second < first * TREND_DOWN:
        return "decreasing"
    return "stable"


class LedgerService:
    """Read-only aggregation over membership and expense repositories."""

    def __init__(self, members: MembershipRepository, expenses: ExpenseRepository):
        self.members = members
        self.expenses = expenses

    def compute_balances(self, trip_id: int) -> List[Balance]:
        """
        Balance per active member: contribution + total_paid - total_share.

        ``total_paid`` counts only expenses the member paid out of pocket
        (not from the fund); ``total_share`` counts the member's participant
        shares across all expenses.
        """
        trip = self._get_trip(trip_id)
        members = self._active_members(trip)
        expenses = [e for e in self.expenses.list_for_trip(trip_id) if not e.is_income]
        return self._balances(members, expenses)

    def trip_statistics(self, trip_id: int) -> TripStatistics:
        """Trip totals, per-member balances and the day-by-day spending."""
        trip = self._get_trip(trip_id)
        members = self._active_members(trip)
        all_expenses = self.expenses.list_for_trip(trip_id)
        spending = [e for e in all_expenses if not e.is_income]

        total_expenses = money.total(e.amount for e in spending)
        fund_expenses = money.total(e.amount for e in spending if e.is_paid_from_fund)
        total_contributions = money.total(m.contribution for m in members)

        daily = daily_expenses(spending)
        summary = TripSummary(
            total_expenses=money.quantize(total_expenses),
            total_income=money.quantize(money.total(e.amount for e in all_expenses if e.is_income)),
            total_contributions=money.quantize(total_contributions),
            fund_expenses=money.quantize(fund_expenses),
            member_reimbursements=money.quantize(total_expenses - fund_expenses),
            fund_balance=money.quantize(total_contributions - fund_expenses),
            member_count=len(members),
            expense_count=len(all_expenses),
        )
        return TripStatistics(
            trip_id=trip.id,
            trip_name=trip.name,
            currency=trip.currency,
            summary=summary,
            members=self._balances(members, spending),
            daily_expenses=daily,
            trend=spending_trend(daily),
        )

    def _get_trip(self, trip_id: int) -> Trip:
        trip = self.members.get_trip(trip_id)
        if not trip:
            raise NotFoundError("Trip not found")
        return trip

    def _active_members(self, trip: Trip) -> List[TripMember]:
        members = self.members.list_active_members(trip.id)
        if not members:
            raise NotFoundError("Trip has no active members")
        return members

    @staticmethod
    def _balances(members: List[TripMember], expenses: List[Expense]) -> List[Balance]:
        paid: Dict[int, Decimal] = {m.id: Decimal(0) for m in members}
        share: Dict[int, Decimal] = {m.id: Decimal(0) for m in members}

        for expense in expenses:
            if not expense.is_paid_from_fund and expense.payer_member_id in paid:
                paid[expense.payer_member_id] += money.to_decimal(expense.amount)
            for participant in expense.participants:
                # Shares of removed members stay on record but leave the active ledger
                if participant.trip_member_id in share:
                    share[participant.trip_member_id] += money.to_decimal(participant.share_amount)

        balances = []
        for member in members:
            contribution = money.to_decimal(member.contribution)
            balances.append(Balance(
                member_id=member.id,
                member_name=member.name,
                role=member.role,
                is_virtual=member.is_virtual,
                contribution=money.quantize(contribution),
                total_paid=money.quantize(paid[member.id]),
                total_share=money.quantize(share[member.id]),
                balance=money.quantize(contribution + paid[member.id] - share[member.id]),
            ))
        return balances
