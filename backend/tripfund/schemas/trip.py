"""
Pydantic schemas for Trip entity.
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, datetime
from tripfund.schemas.member import MemberResponse


class TripBase(BaseModel):
    """Base trip schema."""
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    currency: str = Field(default="CNY", min_length=3, max_length=3)


class TripCreate(TripBase):
    """Schema for trip creation."""
    pass


class TripResponse(TripBase):
    """Schema for trip response."""
    id: int
    created_by: int
    created_at: datetime

    class Config:
        from_attributes = True


class TripDetailResponse(TripResponse):
    """Schema for detailed trip response with members."""
    members: List[MemberResponse] = []
