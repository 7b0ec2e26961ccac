"""
Permission checks shared by the trip, member, expense and settlement services.
"""
from typing import Optional, Tuple
from tripfund.core.exceptions import AuthorizationError, NotFoundError
from tripfund.models.trip import Trip, TripMember, MemberRole
from tripfund.repositories.membership import MembershipRepository


class PermissionService:
    """Resolve the acting user's membership and role within a trip."""

    def __init__(self, members: MembershipRepository):
        self.members = members

    def get_trip(self, trip_id: int) -> Trip:
        trip = self.members.get_trip(trip_id)
        if not trip:
            raise NotFoundError("Trip not found")
        return trip

    def check_trip_permission(
        self,
        trip_id: int,
        user_id: int,
        required_role: Optional[MemberRole] = None,
    ) -> TripMember:
        """Return the user's active member row, enforcing ``required_role`` if given."""
        self.get_trip(trip_id)
        member = self.members.get_member_by_user(trip_id, user_id)
        if not member:
            raise AuthorizationError("You are not a member of this trip")
        if required_role == MemberRole.ADMIN and member.role != MemberRole.ADMIN:
            raise AuthorizationError("Only trip admins can perform this operation")
        return member

    def check_member_permission(
        self,
        trip_id: int,
        member_id: int,
        user_id: int,
        for_update: bool = False,
    ) -> Tuple[TripMember, TripMember]:
        """Admin acting on another active member of the same trip."""
        requesting = self.check_trip_permission(trip_id, user_id, MemberRole.ADMIN)
        target = self.members.get_member(member_id, trip_id=trip_id, active_only=True, for_update=for_update)
        if not target:
            raise NotFoundError("Member not found or already removed")
        return requesting, target
