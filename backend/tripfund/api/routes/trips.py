"""
Trip, member and ledger routes.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from tripfund.db.session import get_db
from tripfund.models.user import User
from tripfund.models.trip import TripMember
from tripfund.repositories.membership import MembershipRepository
from tripfund.schemas.balance import Balance, TripStatistics
from tripfund.schemas.member import (
    VirtualMemberCreate, RoleUpdate, ContributionUpdate, ContributionBatch, MemberResponse
)
from tripfund.schemas.trip import TripCreate, TripResponse, TripDetailResponse
from tripfund.services.ledger_service import LedgerService
from tripfund.services.member_service import MemberService
from tripfund.services.permission_service import PermissionService
from tripfund.services.trip_service import TripService
from tripfund.api.dependencies import (
    get_current_user, get_ledger_service, get_member_service, get_trip_service
)

router = APIRouter(prefix="/trips", tags=["trips"])


def check_trip_access(trip_id: int, user_id: int, db: Session) -> TripMember:
    """Check if user is an active member of the trip."""
    return PermissionService(MembershipRepository(db)).check_trip_permission(trip_id, user_id)


@router.post("", response_model=TripResponse, status_code=status.HTTP_201_CREATED)
async def create_trip(
    trip_data: TripCreate,
    current_user: User = Depends(get_current_user),
    service: TripService = Depends(get_trip_service)
):
    """Create a new trip. The creator becomes its admin."""
    return service.create_trip(current_user.id, trip_data)


@router.get("/{trip_id}", response_model=TripDetailResponse)
async def get_trip(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    service: TripService = Depends(get_trip_service)
):
    """Get trip details."""
    return service.get_trip(trip_id, current_user.id)


@router.get("/{trip_id}/members", response_model=List[MemberResponse])
async def list_members(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    service: MemberService = Depends(get_member_service)
):
    """List active members, admins first."""
    return service.list_members(trip_id, current_user.id)


@router.post("/{trip_id}/members/virtual", response_model=MemberResponse, status_code=status.HTTP_201_CREATED)
async def add_virtual_member(
    trip_id: int,
    member_data: VirtualMemberCreate,
    current_user: User = Depends(get_current_user),
    service: MemberService = Depends(get_member_service)
):
    """Add a placeholder member for someone without an account."""
    return service.add_virtual_member(trip_id, member_data.display_name, current_user.id)


@router.put("/{trip_id}/members/{member_id}/role", response_model=MemberResponse)
async def update_member_role(
    trip_id: int,
    member_id: int,
    role_data: RoleUpdate,
    current_user: User = Depends(get_current_user),
    service: MemberService = Depends(get_member_service)
):
    """Promote or demote a member."""
    return service.update_member_role(trip_id, member_id, role_data.role, current_user.id)


@router.delete("/{trip_id}/members/{member_id}")
async def remove_member(
    trip_id: int,
    member_id: int,
    current_user: User = Depends(get_current_user),
    service: MemberService = Depends(get_member_service)
):
    """Remove a member from the trip. Their history is kept."""
    service.remove_member(trip_id, member_id, current_user.id)
    return {"message": "Member removed successfully"}


@router.put("/{trip_id}/members/{member_id}/contribution", response_model=MemberResponse)
async def update_contribution(
    trip_id: int,
    member_id: int,
    contribution_data: ContributionUpdate,
    current_user: User = Depends(get_current_user),
    service: MemberService = Depends(get_member_service)
):
    """Set a member's contribution to the fund pool."""
    return service.update_contribution(trip_id, member_id, contribution_data.contribution, current_user.id)


@router.put("/{trip_id}/contributions", response_model=List[MemberResponse])
async def batch_update_contributions(
    trip_id: int,
    batch: ContributionBatch,
    current_user: User = Depends(get_current_user),
    service: MemberService = Depends(get_member_service)
):
    """Set several contributions in one go."""
    return service.batch_update_contributions(trip_id, batch.contributions, current_user.id)


@router.get("/{trip_id}/balances", response_model=List[Balance])
async def get_balances(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    ledger: LedgerService = Depends(get_ledger_service)
):
    """Current balance of every active member."""
    check_trip_access(trip_id, current_user.id, db)
    return ledger.compute_balances(trip_id)


@router.get("/{trip_id}/statistics", response_model=TripStatistics)
async def get_statistics(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    ledger: LedgerService = Depends(get_ledger_service)
):
    """Trip totals and member balances."""
    check_trip_access(trip_id, current_user.id, db)
    return ledger.trip_statistics(trip_id)
