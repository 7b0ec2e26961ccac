"""
Pydantic schemas for Expense entity.
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal


class ParticipantShare(BaseModel):
    """A participant and, optionally, an explicit share."""
    member_id: int
    share_amount: Optional[Decimal] = None  # Omit on every participant for an even split


class ExpenseCreate(BaseModel):
    """Schema for expense creation."""
    amount: Decimal = Field(..., gt=0)
    payer_member_id: int
    participants: List[ParticipantShare] = []  # Empty means the payer carries it all
    is_paid_from_fund: Optional[bool] = None  # Defaults to "payer is an admin"
    is_income: bool = False
    description: Optional[str] = None
    expense_date: Optional[date] = None


class ExpenseUpdate(BaseModel):
    """Schema for expense update. Omitted fields keep their value."""
    amount: Optional[Decimal] = Field(default=None, gt=0)
    payer_member_id: Optional[int] = None
    participants: Optional[List[ParticipantShare]] = None  # Replaces all participants when given
    is_paid_from_fund: Optional[bool] = None
    is_income: Optional[bool] = None
    description: Optional[str] = None
    expense_date: Optional[date] = None


class ExpenseParticipantResponse(BaseModel):
    """Schema for expense participant response."""
    member_id: int
    member_name: str
    share_amount: Decimal


class ExpenseResponse(BaseModel):
    """Schema for expense response."""
    id: int
    trip_id: int
    payer_member_id: int
    payer_name: str
    amount: Decimal
    is_paid_from_fund: bool
    is_income: bool
    description: Optional[str] = None
    expense_date: Optional[date] = None
    participants: List[ExpenseParticipantResponse] = []
    created_at: datetime
