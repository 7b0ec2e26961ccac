"""
Membership repository: trips, users and trip member rows.
"""
from typing import Iterable, List, Optional
from sqlalchemy.orm import Session, joinedload
from tripfund.models.trip import Trip, TripMember, MemberRole
from tripfund.models.user import User


class MembershipRepository:
    """Reads and writes trip membership state through one session."""

    def __init__(self, db: Session):
        self.db = db

    def get_trip(self, trip_id: int) -> Optional[Trip]:
        return self.db.query(Trip).filter(Trip.id == trip_id).first()

    def get_user(self, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def add(self, obj) -> None:
        """Stage a new trip or member row and assign its id."""
        self.db.add(obj)
        self.db.flush()

    def get_member(
        self,
        member_id: int,
        trip_id: Optional[int] = None,
        active_only: bool = False,
        for_update: bool = False,
    ) -> Optional[TripMember]:
        query = self.db.query(TripMember).filter(TripMember.id == member_id)
        if trip_id is not None:
            query = query.filter(TripMember.trip_id == trip_id)
        if active_only:
            query = query.filter(TripMember.is_active.is_(True))
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.first()

    def get_member_by_user(
        self,
        trip_id: int,
        user_id: int,
        active_only: bool = True,
        for_update: bool = False,
    ) -> Optional[TripMember]:
        query = self.db.query(TripMember).filter(
            TripMember.trip_id == trip_id,
            TripMember.user_id == user_id,
        )
        if active_only:
            query = query.filter(TripMember.is_active.is_(True))
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.first()

    def list_active_members(self, trip_id: int) -> List[TripMember]:
        """Active members, admins first, then in joining order."""
        members = self.db.query(TripMember).options(
            joinedload(TripMember.user)
        ).filter(
            TripMember.trip_id == trip_id,
            TripMember.is_active.is_(True)
        ).order_by(TripMember.id).all()
        return sorted(members, key=lambda m: (m.role != MemberRole.ADMIN, m.id))

    def list_active_members_by_ids(
        self, trip_id: int, member_ids: Iterable[int], for_update: bool = False
    ) -> List[TripMember]:
        query = self.db.query(TripMember).filter(
            TripMember.trip_id == trip_id,
            TripMember.id.in_(list(member_ids)),
            TripMember.is_active.is_(True)
        )
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.all()

    def lock_active_admins(self, trip_id: int) -> List[TripMember]:
        """Lock the trip's active admin rows so admin-count checks hold until commit."""
        return self.db.query(TripMember).filter(
            TripMember.trip_id == trip_id,
            TripMember.role == MemberRole.ADMIN,
            TripMember.is_active.is_(True)
        ).with_for_update().populate_existing().all()

    def find_active_virtual_by_name(self, trip_id: int, display_name: str) -> Optional[TripMember]:
        return self.db.query(TripMember).filter(
            TripMember.trip_id == trip_id,
            TripMember.is_virtual.is_(True),
            TripMember.display_name == display_name,
            TripMember.is_active.is_(True)
        ).first()

    def active_user_ids(self, trip_id: int) -> List[int]:
        """User ids of active real members, for notification fan-out."""
        rows = self.db.query(TripMember.user_id).filter(
            TripMember.trip_id == trip_id,
            TripMember.user_id.isnot(None),
            TripMember.is_active.is_(True)
        ).all()
        return [row[0] for row in rows]
