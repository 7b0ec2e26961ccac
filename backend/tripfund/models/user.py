"""
User model. Accounts are managed by the auth service; this table mirrors the
fields the ledger needs to address invitations and name members.
"""
from sqlalchemy import Column, String, Boolean
from sqlalchemy.orm import relationship
from tripfund.db.base import BaseModel


class User(BaseModel):
    """User model with immutable username."""
    __tablename__ = "users"

    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(100), unique=True, nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    memberships = relationship("TripMember", foreign_keys="TripMember.user_id", back_populates="user")
