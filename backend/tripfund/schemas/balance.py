"""
Pydantic schemas for derived ledger positions.
"""
from pydantic import BaseModel
from typing import List
import datetime
from decimal import Decimal
from tripfund.models.trip import MemberRole


class Balance(BaseModel):
    """A member's financial position, derived on demand and never stored."""
    member_id: int
    member_name: str = ""
    role: MemberRole = MemberRole.MEMBER
    is_virtual: bool = False
    contribution: Decimal = Decimal("0.00")  # Paid into the fund pool
    total_paid: Decimal = Decimal("0.00")  # Paid out of pocket for non-fund expenses
    total_share: Decimal = Decimal("0.00")  # Owed as share of expenses
    balance: Decimal  # contribution + total_paid - total_share


class TripSummary(BaseModel):
    """Trip-level totals."""
    total_expenses: Decimal
    total_income: Decimal
    total_contributions: Decimal
    fund_expenses: Decimal
    member_reimbursements: Decimal  # Expenses members paid themselves
    fund_balance: Decimal  # total_contributions - fund_expenses
    member_count: int
    expense_count: int


class DailyExpense(BaseModel):
    """Spending on one day."""
    date: datetime.date
    amount: Decimal
    count: int


class TripStatistics(BaseModel):
    """Schema for trip statistics response."""
    trip_id: int
    trip_name: str
    currency: str
    summary: TripSummary
    members: List[Balance]
    daily_expenses: List[DailyExpense] = []  # Oldest day first
    trend: str = "stable"  # increasing, decreasing or stable
