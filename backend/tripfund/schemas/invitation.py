"""
Pydantic schemas for TripInvitation entity.
"""
from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import datetime
from tripfund.models.invitation import InviteType, InvitationStatus


class InvitationCreate(BaseModel):
    """Schema for invitation creation."""
    invited_user_id: int
    invite_type: InviteType = InviteType.ADD
    target_member_id: Optional[int] = None  # Required for REPLACE
    message: Optional[str] = Field(default=None, max_length=500)


class InvitationResponse(BaseModel):
    """Schema for invitation response."""
    id: int
    trip_id: int
    trip_name: str
    invited_user_id: int
    invited_username: str
    invite_type: InviteType
    target_member_id: Optional[int] = None
    target_member_name: Optional[str] = None
    status: InvitationStatus
    message: Optional[str] = None
    created_by: int
    inviter_username: str
    created_at: datetime
    expires_at: datetime
    responded_at: Optional[datetime] = None


class InvitationListResponse(BaseModel):
    """Schema for paginated invitation list."""
    invitations: List[InvitationResponse]
    pagination: Dict[str, int]


class AcceptInvitationResult(BaseModel):
    """Schema for the outcome of an accepted invitation."""
    member_id: int
    is_replacement: bool
    message: str
    replaced_member_name: Optional[str] = None


class SweepResult(BaseModel):
    """Schema for the expiry sweep outcome."""
    count: int
