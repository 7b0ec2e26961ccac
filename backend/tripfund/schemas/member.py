"""
Pydantic schemas for TripMember entity.
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from tripfund.models.trip import MemberRole


class VirtualMemberCreate(BaseModel):
    """Schema for adding a placeholder member."""
    display_name: str = Field(..., min_length=1, max_length=100)


class RoleUpdate(BaseModel):
    """Schema for changing a member's role."""
    role: MemberRole


class ContributionUpdate(BaseModel):
    """Schema for setting a member's fund contribution."""
    contribution: Decimal = Field(..., ge=0)


class ContributionItem(BaseModel):
    """One entry of a batch contribution update."""
    member_id: int
    contribution: Decimal = Field(..., ge=0)


class ContributionBatch(BaseModel):
    """Schema for batch contribution update."""
    contributions: List[ContributionItem] = Field(..., min_length=1)


class MemberResponse(BaseModel):
    """Schema for member response."""
    id: int
    trip_id: int
    user_id: Optional[int] = None
    name: str
    is_virtual: bool
    display_name: Optional[str] = None
    role: MemberRole
    contribution: Decimal
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
