"""
Settlement routes.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from tripfund.db.session import get_db
from tripfund.models.user import User
from tripfund.schemas.settlement import SettlementPlan, SettlementRecordResponse
from tripfund.services.settlement_service import SettlementService
from tripfund.api.dependencies import get_current_user, get_settlement_service
from tripfund.api.routes.trips import check_trip_access

router = APIRouter(prefix="/settlement", tags=["settlement"])


@router.get("/{trip_id}/plan", response_model=SettlementPlan)
async def get_settlement_plan(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    service: SettlementService = Depends(get_settlement_service)
):
    """Propose transfers that settle every balance."""
    check_trip_access(trip_id, current_user.id, db)
    return service.plan_for_trip(trip_id)


@router.post("/{trip_id}/record", response_model=List[SettlementRecordResponse])
async def record_settlement_plan(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    service: SettlementService = Depends(get_settlement_service)
):
    """Save the current plan, replacing open records."""
    return service.record_plan(trip_id, current_user.id)


@router.get("/{trip_id}/history", response_model=List[SettlementRecordResponse])
async def get_settlement_history(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    service: SettlementService = Depends(get_settlement_service)
):
    """Recorded settlements, newest first."""
    return service.history(trip_id, current_user.id)


@router.post("/records/{settlement_id}/paid", response_model=SettlementRecordResponse)
async def mark_settlement_paid(
    settlement_id: int,
    current_user: User = Depends(get_current_user),
    service: SettlementService = Depends(get_settlement_service)
):
    """Confirm that a recorded transfer was paid."""
    return service.mark_paid(settlement_id, current_user.id)
