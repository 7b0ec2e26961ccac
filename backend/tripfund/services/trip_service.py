"""
Trip service: trip creation and detail lookup.
"""
import logging
from decimal import Decimal
from sqlalchemy.orm import Session
from tripfund.core.exceptions import NotFoundError
from tripfund.db.session import transaction
from tripfund.models.trip import Trip, TripMember, MemberRole
from tripfund.repositories.membership import MembershipRepository
from tripfund.schemas.member import MemberResponse
from tripfund.schemas.trip import TripCreate, TripDetailResponse
from tripfund.services.permission_service import PermissionService

logger = logging.getLogger(__name__)


class TripService:
    def __init__(self, db: Session):
        self.db = db
        self.members = MembershipRepository(db)
        self.permissions = PermissionService(self.members)

    def create_trip(self, owner_id: int, data: TripCreate) -> Trip:
        """Create a trip; the owner becomes its first admin."""
        with transaction(self.db):
            if not self.members.get_user(owner_id):
                raise NotFoundError("User not found")

            trip = Trip(
                name=data.name,
                description=data.description,
                start_date=data.start_date,
                end_date=data.end_date,
                currency=data.currency.upper(),
                created_by=owner_id,
            )
            self.members.add(trip)

            # Add creator as admin member
            self.members.add(TripMember(
                trip_id=trip.id,
                user_id=owner_id,
                is_virtual=False,
                role=MemberRole.ADMIN,
                contribution=Decimal("0.00"),
                is_active=True,
                created_by=owner_id,
            ))

        logger.info(f"Trip {trip.id} created by user {owner_id}")
        return trip

    def get_trip(self, trip_id: int, user_id: int) -> TripDetailResponse:
        """Trip details with its active members."""
        self.permissions.check_trip_permission(trip_id, user_id)
        trip = self.members.get_trip(trip_id)
        members = self.members.list_active_members(trip_id)
        return TripDetailResponse(
            id=trip.id,
            name=trip.name,
            description=trip.description,
            start_date=trip.start_date,
            end_date=trip.end_date,
            currency=trip.currency,
            created_by=trip.created_by,
            created_at=trip.created_at,
            members=[MemberResponse.model_validate(m) for m in members],
        )
