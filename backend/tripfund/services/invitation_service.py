"""
Invitation service: the membership state machine.

An invitation starts PENDING and ends in exactly one of ACCEPTED, REJECTED,
CANCELLED or EXPIRED. Leaving PENDING always goes through a conditional
UPDATE on the status column, so when two requests race for the same
invitation only one of them can win.

Accepting a REPLACE invitation turns the target virtual member into the
invitee's real membership in place: the row id is kept, so every expense,
share and contribution recorded against the placeholder now belongs to the
real user and no balance moves.
"""
import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from tripfund.core.config import settings
from tripfund.core.exceptions import (
    AuthorizationError,
    ConflictError,
    ExpiredError,
    NotFoundError,
    ValidationError,
)
from tripfund.core.utils import pagination, utcnow
from tripfund.db.session import transaction
from tripfund.models.invitation import TripInvitation, InviteType, InvitationStatus
from tripfund.models.trip import TripMember, MemberRole
from tripfund.repositories.invitation import InvitationRepository
from tripfund.repositories.membership import MembershipRepository
from tripfund.schemas.invitation import (
    AcceptInvitationResult,
    InvitationListResponse,
    InvitationResponse,
)
from tripfund.services.notification_service import (
    NotificationEvent,
    Notifier,
    dispatch,
    get_notifier,
)
from tripfund.services.permission_service import PermissionService

logger = logging.getLogger(__name__)

# Queued (event, recipients, payload) triples, sent once the transaction commits
Outbox = List[Tuple[NotificationEvent, List[int], Dict[str, Any]]]


class InvitationService:
    """Create, answer and expire trip invitations."""

    def __init__(self, db: Session, notifier: Optional[Notifier] = None):
        self.db = db
        self.members = MembershipRepository(db)
        self.invitations = InvitationRepository(db)
        self.permissions = PermissionService(self.members)
        self.notifier = notifier or get_notifier()

    def create_invitation(
        self,
        trip_id: int,
        created_by: int,
        invited_user_id: int,
        invite_type: InviteType = InviteType.ADD,
        target_member_id: Optional[int] = None,
        message: Optional[str] = None,
    ) -> InvitationResponse:
        """Invite a registered user to a trip, optionally to take over a virtual member."""
        invite_type = InviteType(invite_type)

        with transaction(self.db):
            self.permissions.check_trip_permission(trip_id, created_by, MemberRole.ADMIN)

            if not self.members.get_user(invited_user_id):
                raise NotFoundError("Invited user not found")
            if self.members.get_member_by_user(trip_id, invited_user_id):
                raise ConflictError("User is already a member of this trip")
            if self.invitations.find_pending(trip_id, invited_user_id):
                raise ConflictError("User already has a pending invitation to this trip")

            if invite_type == InviteType.REPLACE:
                if target_member_id is None:
                    raise ValidationError("A target member is required to replace a virtual member")
                target = self.members.get_member(target_member_id, trip_id=trip_id, active_only=True)
                if not target or not target.is_virtual:
                    raise ValidationError("Target member does not exist or is not a virtual member")
            elif target_member_id is not None:
                raise ValidationError("Only replace invitations can name a target member")

            invitation = TripInvitation(
                trip_id=trip_id,
                invited_user_id=invited_user_id,
                invite_type=invite_type,
                target_member_id=target_member_id,
                status=InvitationStatus.PENDING,
                message=message,
                pending_user_id=invited_user_id,
                created_by=created_by,
                expires_at=utcnow() + timedelta(days=settings.INVITATION_TTL_DAYS),
            )
            try:
                self.invitations.add(invitation)
            except IntegrityError as e:
                # A concurrent request created the pending invitation first
                raise ConflictError("User already has a pending invitation to this trip") from e
            response = self._to_response(invitation)

        logger.info(
            f"Invitation {invitation.id} ({invite_type.value}) sent for trip {trip_id} "
            f"to user {invited_user_id} by user {created_by}"
        )
        dispatch(self.notifier, NotificationEvent.INVITATION_RECEIVED, [invited_user_id], {
            "inviter_name": response.inviter_username,
            "trip_name": response.trip_name,
            "message": message,
        })
        return response

    def accept_invitation(self, invitation_id: int, user_id: int) -> AcceptInvitationResult:
        """
        Accept an invitation and join the trip.

        Raises ExpiredError for an overdue invitation; the EXPIRED status is
        committed before raising so later calls see the same outcome.
        """
        outbox: Outbox = []
        expired = False

        with transaction(self.db):
            invitation = self._get_pending_for_invitee(invitation_id, user_id)
            now = utcnow()
            if now > invitation.expires_at:
                self.invitations.transition_from_pending(invitation.id, InvitationStatus.EXPIRED, None)
                expired = True
            else:
                result = self._join(invitation, user_id, now, outbox)

        if expired:
            logger.info(f"Invitation {invitation_id} expired before it was accepted")
            raise ExpiredError("Invitation has expired")

        logger.info(
            f"Invitation {invitation_id} accepted by user {user_id}; "
            f"member {result.member_id} (replacement={result.is_replacement})"
        )
        self._flush_outbox(outbox)
        return result

    def reject_invitation(self, invitation_id: int, user_id: int) -> None:
        """Decline an invitation. Only the invitee can do this."""
        with transaction(self.db):
            invitation = self._get_pending_for_invitee(invitation_id, user_id)
            self._finish(invitation, InvitationStatus.REJECTED)
            payload = {
                "member_name": invitation.invited_user.username,
                "trip_name": invitation.trip.name,
            }
            inviter_id = invitation.created_by

        logger.info(f"Invitation {invitation_id} rejected by user {user_id}")
        dispatch(self.notifier, NotificationEvent.INVITATION_REJECTED, [inviter_id], payload)

    def cancel_invitation(self, invitation_id: int, user_id: int) -> None:
        """Withdraw a pending invitation. Only its creator can do this."""
        with transaction(self.db):
            invitation = self.invitations.get(invitation_id, for_update=True)
            if not invitation:
                raise NotFoundError("Invitation not found")
            if invitation.created_by != user_id:
                raise AuthorizationError("Only the inviter can cancel this invitation")
            if invitation.status != InvitationStatus.PENDING:
                raise ConflictError("Only pending invitations can be cancelled")
            self._finish(invitation, InvitationStatus.CANCELLED)
            payload = {"trip_name": invitation.trip.name}
            invitee_id = invitation.invited_user_id

        logger.info(f"Invitation {invitation_id} cancelled by user {user_id}")
        dispatch(self.notifier, NotificationEvent.INVITATION_CANCELLED, [invitee_id], payload)

    def sweep_expired(self) -> int:
        """Mark every overdue PENDING invitation as EXPIRED."""
        with transaction(self.db):
            count = self.invitations.expire_overdue(utcnow())

        if count:
            logger.info(f"Expired {count} overdue invitations")
        return count

    def list_invitations(
        self,
        user_id: int,
        direction: str = "received",
        status: Optional[InvitationStatus] = None,
        page: int = 1,
        limit: int = 10,
    ) -> InvitationListResponse:
        """Invitations received by (or sent by) the user, newest first."""
        if direction not in ("received", "sent"):
            raise ValidationError("direction must be 'received' or 'sent'")
        if page < 1 or limit < 1:
            raise ValidationError("page and limit must be positive")

        invitations, total = self.invitations.list_for_user(
            user_id,
            sent=direction == "sent",
            status=InvitationStatus(status) if status is not None else None,
            offset=(page - 1) * limit,
            limit=limit,
        )
        return InvitationListResponse(
            invitations=[self._to_response(i) for i in invitations],
            pagination=pagination(page, limit, total),
        )

    def get_invitation(self, invitation_id: int, user_id: int) -> InvitationResponse:
        invitation = self.invitations.get(invitation_id)
        if not invitation:
            raise NotFoundError("Invitation not found")
        if user_id not in (invitation.invited_user_id, invitation.created_by):
            raise AuthorizationError("You cannot view this invitation")
        return self._to_response(invitation)

    def _get_pending_for_invitee(self, invitation_id: int, user_id: int) -> TripInvitation:
        invitation = self.invitations.get(invitation_id, for_update=True)
        if not invitation:
            raise NotFoundError("Invitation not found")
        if invitation.invited_user_id != user_id:
            raise AuthorizationError("This invitation is not addressed to you")
        if invitation.status == InvitationStatus.EXPIRED:
            raise ExpiredError("Invitation has expired")
        if invitation.status != InvitationStatus.PENDING:
            raise ConflictError(f"Invitation is already {invitation.status.value}")
        return invitation

    def _finish(self, invitation: TripInvitation, status: InvitationStatus) -> None:
        if not self.invitations.transition_from_pending(invitation.id, status, utcnow()):
            raise ConflictError("Invitation was already answered")

    def _join(self, invitation: TripInvitation, user_id: int, now, outbox: Outbox) -> AcceptInvitationResult:
        trip_id = invitation.trip_id
        if self.members.get_member_by_user(trip_id, user_id, for_update=True):
            raise ConflictError("You are already a member of this trip")

        replaced_name = None
        if invitation.invite_type == InviteType.REPLACE:
            member = self.members.get_member(
                invitation.target_member_id, trip_id=trip_id, active_only=True, for_update=True
            )
            if not member or not member.is_virtual:
                raise ConflictError("The member to replace is no longer available")
            if self.members.get_member_by_user(trip_id, user_id, active_only=False):
                # The unique (trip, user) row already exists as a removed membership
                raise ConflictError("You have a removed membership in this trip; ask for a new invitation to rejoin")
            replaced_name = member.display_name
            member.user_id = user_id
            member.is_virtual = False
            member.display_name = None
        else:
            member = self.members.get_member_by_user(trip_id, user_id, active_only=False, for_update=True)
            if member:
                member.is_active = True
                member.role = MemberRole.MEMBER
            else:
                member = TripMember(
                    trip_id=trip_id,
                    user_id=user_id,
                    is_virtual=False,
                    role=MemberRole.MEMBER,
                    is_active=True,
                    created_by=invitation.created_by,
                )
                self.db.add(member)

        try:
            self.db.flush()
        except IntegrityError as e:
            # Another acceptance created this user's membership first
            raise ConflictError("You are already a member of this trip") from e

        if not self.invitations.transition_from_pending(invitation.id, InvitationStatus.ACCEPTED, now):
            raise ConflictError("Invitation was already answered")

        member_name = invitation.invited_user.username
        trip_name = invitation.trip.name
        outbox.append((NotificationEvent.INVITATION_ACCEPTED, [invitation.created_by], {
            "member_name": member_name,
            "trip_name": trip_name,
        }))
        others = [uid for uid in self.members.active_user_ids(trip_id) if uid != user_id]
        outbox.append((NotificationEvent.MEMBER_JOINED, others, {
            "member_name": member_name,
            "trip_name": trip_name,
            "replaced_member_name": replaced_name,
        }))

        is_replacement = replaced_name is not None
        return AcceptInvitationResult(
            member_id=member.id,
            is_replacement=is_replacement,
            message=f"Replaced virtual member {replaced_name}" if is_replacement else "Joined the trip",
            replaced_member_name=replaced_name,
        )

    def _flush_outbox(self, outbox: Outbox) -> None:
        for event, recipients, payload in outbox:
            dispatch(self.notifier, event, recipients, payload)

    @staticmethod
    def _to_response(invitation: TripInvitation) -> InvitationResponse:
        target = invitation.target_member
        return InvitationResponse(
            id=invitation.id,
            trip_id=invitation.trip_id,
            trip_name=invitation.trip.name,
            invited_user_id=invitation.invited_user_id,
            invited_username=invitation.invited_user.username,
            invite_type=invitation.invite_type,
            target_member_id=invitation.target_member_id,
            target_member_name=target.name if target else None,
            status=invitation.status,
            message=invitation.message,
            created_by=invitation.created_by,
            inviter_username=invitation.inviter.username,
            created_at=invitation.created_at,
            expires_at=invitation.expires_at,
            responded_at=invitation.responded_at,
        )
