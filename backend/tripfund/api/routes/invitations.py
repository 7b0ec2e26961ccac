"""
Invitation routes: sending, answering and listing trip invitations.
"""
from fastapi import APIRouter, Depends, Query, status
from typing import Optional
from tripfund.models.user import User
from tripfund.models.invitation import InvitationStatus
from tripfund.schemas.invitation import (
    InvitationCreate, InvitationResponse, InvitationListResponse,
    AcceptInvitationResult, SweepResult
)
from tripfund.services.invitation_service import InvitationService
from tripfund.api.dependencies import get_current_user, get_invitation_service, require_maintenance_key

router = APIRouter(tags=["invitations"])


@router.post(
    "/trips/{trip_id}/invitations",
    response_model=InvitationResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_invitation(
    trip_id: int,
    invitation_data: InvitationCreate,
    current_user: User = Depends(get_current_user),
    service: InvitationService = Depends(get_invitation_service)
):
    """Invite a user to the trip, or to take over a virtual member."""
    return service.create_invitation(
        trip_id,
        current_user.id,
        invitation_data.invited_user_id,
        invitation_data.invite_type,
        invitation_data.target_member_id,
        invitation_data.message,
    )


@router.get("/invitations", response_model=InvitationListResponse)
async def list_invitations(
    direction: str = Query("received", pattern="^(received|sent)$"),
    invitation_status: Optional[InvitationStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    service: InvitationService = Depends(get_invitation_service)
):
    """Invitations the current user received or sent."""
    return service.list_invitations(current_user.id, direction, invitation_status, page, limit)


@router.post(
    "/invitations/sweep",
    response_model=SweepResult,
    dependencies=[Depends(require_maintenance_key)]
)
async def sweep_expired_invitations(
    service: InvitationService = Depends(get_invitation_service)
):
    """Expire every overdue pending invitation. For schedulers holding the maintenance key."""
    return SweepResult(count=service.sweep_expired())


@router.get("/invitations/{invitation_id}", response_model=InvitationResponse)
async def get_invitation(
    invitation_id: int,
    current_user: User = Depends(get_current_user),
    service: InvitationService = Depends(get_invitation_service)
):
    """Invitation detail, visible to the invitee and the inviter."""
    return service.get_invitation(invitation_id, current_user.id)


@router.post("/invitations/{invitation_id}/accept", response_model=AcceptInvitationResult)
async def accept_invitation(
    invitation_id: int,
    current_user: User = Depends(get_current_user),
    service: InvitationService = Depends(get_invitation_service)
):
    """Accept an invitation and join the trip."""
    return service.accept_invitation(invitation_id, current_user.id)


@router.post("/invitations/{invitation_id}/reject")
async def reject_invitation(
    invitation_id: int,
    current_user: User = Depends(get_current_user),
    service: InvitationService = Depends(get_invitation_service)
):
    """Decline an invitation."""
    service.reject_invitation(invitation_id, current_user.id)
    return {"message": "Invitation rejected"}


@router.delete("/invitations/{invitation_id}")
async def cancel_invitation(
    invitation_id: int,
    current_user: User = Depends(get_current_user),
    service: InvitationService = Depends(get_invitation_service)
):
    """Withdraw a pending invitation."""
    service.cancel_invitation(invitation_id, current_user.id)
    return {"message": "Invitation cancelled"}
