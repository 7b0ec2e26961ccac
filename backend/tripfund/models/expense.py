"""
Expense model for tracking spending.
"""
from sqlalchemy import Column, Boolean, Numeric, Date, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship
from tripfund.db.base import BaseModel


class Expense(BaseModel):
    """Expense model representing a single spending (or income) event."""
    __tablename__ = "expenses"

    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    payer_member_id = Column(Integer, ForeignKey("trip_members.id"), nullable=False, index=True)
    amount = Column(Numeric(15, 2), nullable=False)  # Never negative, see is_income
    is_paid_from_fund = Column(Boolean, default=False, nullable=False)
    is_income = Column(Boolean, default=False, nullable=False)
    description = Column(Text, nullable=True)
    expense_date = Column(Date, nullable=True, index=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    # Relationships
    trip = relationship("Trip", back_populates="expenses")
    payer = relationship("TripMember", foreign_keys=[payer_member_id])
    participants = relationship("ExpenseParticipant", back_populates="expense", cascade="all, delete-orphan")


class ExpenseParticipant(BaseModel):
    """A member's share of one expense."""
    __tablename__ = "expense_participants"

    expense_id = Column(Integer, ForeignKey("expenses.id"), nullable=False, index=True)
    trip_member_id = Column(Integer, ForeignKey("trip_members.id"), nullable=False, index=True)
    share_amount = Column(Numeric(15, 2), nullable=False)

    # Relationships
    expense = relationship("Expense", back_populates="participants")
    member = relationship("TripMember")
