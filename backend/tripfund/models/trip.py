"""
Trip and membership models.
"""
from decimal import Decimal
from sqlalchemy import (
    Column, String, Date, Boolean, Enum as SQLEnum, ForeignKey, Integer, Numeric, Text,
    UniqueConstraint, Index,
)
from sqlalchemy.orm import relationship
from tripfund.db.base import BaseModel
import enum


class MemberRole(str, enum.Enum):
    """Role of a member within a trip."""
    ADMIN = "admin"
    MEMBER = "member"


class Trip(BaseModel):
    """Trip model representing a group travel event."""
    __tablename__ = "trips"

    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    start_date = Column(Date, nullable=True, index=True)
    end_date = Column(Date, nullable=True, index=True)
    currency = Column(String(3), nullable=False, default="CNY")  # Display label only, no conversion
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Relationships
    creator = relationship("User", foreign_keys=[created_by])
    members = relationship("TripMember", back_populates="trip", order_by="TripMember.id")
    expenses = relationship("Expense", back_populates="trip", cascade="all, delete-orphan")
    invitations = relationship("TripInvitation", back_populates="trip", cascade="all, delete-orphan")
    settlements = relationship("Settlement", back_populates="trip", cascade="all, delete-orphan")


class TripMember(BaseModel):
    """
    A participant of a trip, either a real user or a virtual placeholder.

    Expenses reference members by ``TripMember.id``, never by user id, so a
    virtual row can later be claimed by a real user without touching any
    expense rows. Rows are never deleted, only deactivated.
    """
    __tablename__ = "trip_members"

    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)  # Null iff virtual
    is_virtual = Column(Boolean, default=False, nullable=False)
    display_name = Column(String(100), nullable=True)  # Required iff virtual
    role = Column(SQLEnum(MemberRole), default=MemberRole.MEMBER, nullable=False)
    contribution = Column(Numeric(15, 2), default=Decimal("0.00"), nullable=False)  # Paid into the fund pool
    is_active = Column(Boolean, default=True, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    # Relationships
    trip = relationship("Trip", back_populates="members")
    user = relationship("User", foreign_keys=[user_id], back_populates="memberships")

    __table_args__ = (
        UniqueConstraint("trip_id", "user_id", name="uq_trip_member_user"),  # NULLs (virtual rows) never collide
        Index("ix_trip_member_role_active", "trip_id", "role", "is_active"),
    )

    @property
    def name(self) -> str:
        """Username for real members, display name for virtual ones."""
        if not self.is_virtual and self.user is not None:
            return self.user.username or self.display_name or "Unknown user"
        return self.display_name or "Virtual member"
