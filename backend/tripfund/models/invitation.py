"""
Trip invitation model.
"""
from sqlalchemy import Column, DateTime, Enum as SQLEnum, ForeignKey, Integer, Text, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from tripfund.db.base import BaseModel
import enum


class InviteType(str, enum.Enum):
    """ADD creates a new member row, REPLACE claims a virtual one."""
    ADD = "ADD"
    REPLACE = "REPLACE"


class InvitationStatus(str, enum.Enum):
    """Invitation lifecycle. Everything but PENDING is terminal."""
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"
    CANCELLED = "CANCELLED"


class TripInvitation(BaseModel):
    """Invitation of a user into a trip."""
    __tablename__ = "trip_invitations"

    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    invited_user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    invite_type = Column(SQLEnum(InviteType), default=InviteType.ADD, nullable=False)
    target_member_id = Column(Integer, ForeignKey("trip_members.id"), nullable=True)  # Required iff REPLACE
    status = Column(SQLEnum(InvitationStatus), default=InvitationStatus.PENDING, nullable=False)
    message = Column(Text, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False)
    responded_at = Column(DateTime, nullable=True)
    # invited_user_id while PENDING, NULL afterwards; unique per trip
    pending_user_id = Column(Integer, nullable=True)

    # Relationships
    trip = relationship("Trip", back_populates="invitations")
    invited_user = relationship("User", foreign_keys=[invited_user_id])
    inviter = relationship("User", foreign_keys=[created_by])
    target_member = relationship("TripMember", foreign_keys=[target_member_id])

    __table_args__ = (
        UniqueConstraint("trip_id", "pending_user_id", name="uq_invitation_one_pending"),
        Index("ix_invitation_status_expiry", "status", "expires_at"),  # For the expiry sweep
    )
