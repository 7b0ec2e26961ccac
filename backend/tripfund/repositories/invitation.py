"""
Invitation repository.
"""
from datetime import datetime
from typing import List, Optional, Tuple
from sqlalchemy.orm import Session, joinedload
from tripfund.models.invitation import TripInvitation, InvitationStatus


class InvitationRepository:
    """Query and transition trip invitations."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, invitation_id: int, for_update: bool = False) -> Optional[TripInvitation]:
        query = self.db.query(TripInvitation).filter(TripInvitation.id == invitation_id)
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.first()

    def find_pending(self, trip_id: int, invited_user_id: int) -> Optional[TripInvitation]:
        return self.db.query(TripInvitation).filter(
            TripInvitation.trip_id == trip_id,
            TripInvitation.invited_user_id == invited_user_id,
            TripInvitation.status == InvitationStatus.PENDING
        ).first()

    def add(self, invitation: TripInvitation) -> None:
        """Stage a new invitation; a second PENDING one for the same user and trip fails the flush."""
        self.db.add(invitation)
        self.db.flush()

    def transition_from_pending(
        self, invitation_id: int, status: InvitationStatus, responded_at: Optional[datetime]
    ) -> bool:
        """
        Move one invitation out of PENDING with a conditional UPDATE.

        Returns False when the row was no longer PENDING, i.e. a concurrent
        request already moved it.
        """
        values = {TripInvitation.status: status, TripInvitation.pending_user_id: None}
        if responded_at is not None:
            values[TripInvitation.responded_at] = responded_at
        changed = self.db.query(TripInvitation).filter(
            TripInvitation.id == invitation_id,
            TripInvitation.status == InvitationStatus.PENDING
        ).update(values, synchronize_session=False)
        return changed == 1

    def expire_overdue(self, now: datetime) -> int:
        """Bulk PENDING -> EXPIRED for everything past its expiry; returns rows changed."""
        return self.db.query(TripInvitation).filter(
            TripInvitation.status == InvitationStatus.PENDING,
            TripInvitation.expires_at < now
        ).update(
            {TripInvitation.status: InvitationStatus.EXPIRED, TripInvitation.pending_user_id: None},
            synchronize_session=False
        )

    def list_for_user(
        self,
        user_id: int,
        sent: bool = False,
        status: Optional[InvitationStatus] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> Tuple[List[TripInvitation], int]:
        query = self.db.query(TripInvitation)
        if sent:
            query = query.filter(TripInvitation.created_by == user_id)
        else:
            query = query.filter(TripInvitation.invited_user_id == user_id)
        if status is not None:
            query = query.filter(TripInvitation.status == status)

        total = query.count()
        invitations = query.options(
            joinedload(TripInvitation.trip),
            joinedload(TripInvitation.inviter),
            joinedload(TripInvitation.invited_user),
            joinedload(TripInvitation.target_member),
        ).order_by(
            TripInvitation.created_at.desc(), TripInvitation.id.desc()
        ).offset(offset).limit(limit).all()
        return invitations, total
