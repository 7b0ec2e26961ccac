"""
Settlement model storing proposed transfers between members.
"""
from sqlalchemy import Column, Boolean, DateTime, ForeignKey, Integer, Numeric
from sqlalchemy.orm import relationship
from tripfund.db.base import BaseModel


class Settlement(BaseModel):
    """A recorded transfer of intent from one member to another."""
    __tablename__ = "settlements"

    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    from_member_id = Column(Integer, ForeignKey("trip_members.id"), nullable=False)
    to_member_id = Column(Integer, ForeignKey("trip_members.id"), nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    is_settled = Column(Boolean, default=False, nullable=False)
    settled_at = Column(DateTime, nullable=True)

    # Relationships
    trip = relationship("Trip", back_populates="settlements")
    from_member = relationship("TripMember", foreign_keys=[from_member_id])
    to_member = relationship("TripMember", foreign_keys=[to_member_id])
