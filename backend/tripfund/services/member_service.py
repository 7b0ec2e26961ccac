"""
Member service: virtual members, roles, soft removal and fund contributions.

Every operation that can reduce the number of admins locks the trip's admin
rows first and re-counts under that lock, so two concurrent demotions cannot
leave a trip without an admin.
"""
import logging
from decimal import Decimal
from typing import List
from sqlalchemy.orm import Session
from tripfund.core import money
from tripfund.core.exceptions import ConflictError, NotFoundError, ValidationError
from tripfund.db.session import transaction
from tripfund.models.trip import TripMember, MemberRole
from tripfund.repositories.membership import MembershipRepository
from tripfund.schemas.member import ContributionItem
from tripfund.services.permission_service import PermissionService

logger = logging.getLogger(__name__)


class MemberService:
    """Membership-row operations on a trip."""

    def __init__(self, db: Session):
        self.db = db
        self.members = MembershipRepository(db)
        self.permissions = PermissionService(self.members)

    def list_members(self, trip_id: int, user_id: int) -> List[TripMember]:
        self.permissions.check_trip_permission(trip_id, user_id)
        return self.members.list_active_members(trip_id)

    def add_virtual_member(self, trip_id: int, display_name: str, added_by: int) -> TripMember:
        """Add a placeholder member that a real user can claim later."""
        name = (display_name or "").strip()
        if not name:
            raise ValidationError("Display name is required for a virtual member")

        with transaction(self.db):
            self.permissions.check_trip_permission(trip_id, added_by, MemberRole.ADMIN)
            if self.members.find_active_virtual_by_name(trip_id, name):
                raise ConflictError("A member with this name already exists")

            member = TripMember(
                trip_id=trip_id,
                user_id=None,
                is_virtual=True,
                display_name=name,
                role=MemberRole.MEMBER,
                contribution=Decimal("0.00"),
                is_active=True,
                created_by=added_by,
            )
            self.members.add(member)

        logger.info(f"Virtual member {member.id} ({name}) added to trip {trip_id} by user {added_by}")
        return member

    def remove_member(self, trip_id: int, member_id: int, removed_by: int) -> TripMember:
        """Soft-remove a member. Admins cannot remove themselves or the last admin."""
        with transaction(self.db):
            _, target = self.permissions.check_member_permission(
                trip_id, member_id, removed_by, for_update=True
            )
            if target.role == MemberRole.ADMIN:
                self._ensure_another_admin(trip_id, "remove")
            if target.user_id == removed_by:
                raise ValidationError("You cannot remove yourself")

            target.is_active = False

        logger.info(f"Member {member_id} removed from trip {trip_id} by user {removed_by}")
        return target

    def update_member_role(self, trip_id: int, member_id: int, role: MemberRole, updated_by: int) -> TripMember:
        """Promote or demote a member, keeping at least one active admin."""
        role = MemberRole(role)
        with transaction(self.db):
            _, target = self.permissions.check_member_permission(
                trip_id, member_id, updated_by, for_update=True
            )
            if target.role == role:
                return target
            if target.role == MemberRole.ADMIN:
                self._ensure_another_admin(trip_id, "demote")
            if target.user_id == updated_by:
                raise ValidationError("You cannot change your own role")
            if role == MemberRole.ADMIN and target.is_virtual:
                raise ValidationError("Virtual members cannot be admins")

            target.role = role

        logger.info(f"Member {member_id} of trip {trip_id} is now {role.value}")
        return target

    def update_contribution(self, trip_id: int, member_id: int, amount, updated_by: int) -> TripMember:
        """Set a member's fund-pool contribution."""
        contribution = self._valid_contribution(amount)
        with transaction(self.db):
            _, target = self.permissions.check_member_permission(
                trip_id, member_id, updated_by, for_update=True
            )
            target.contribution = contribution

        logger.info(f"Contribution of member {member_id} in trip {trip_id} set to {contribution}")
        return target

    def batch_update_contributions(
        self, trip_id: int, items: List[ContributionItem], updated_by: int
    ) -> List[TripMember]:
        """Set several contributions at once; all rows change or none do."""
        if not items:
            raise ValidationError("No contributions given")
        member_ids = [item.member_id for item in items]
        if len(set(member_ids)) != len(member_ids):
            raise ValidationError("Each member may appear only once")
        amounts = {item.member_id: self._valid_contribution(item.contribution) for item in items}

        with transaction(self.db):
            self.permissions.check_trip_permission(trip_id, updated_by, MemberRole.ADMIN)
            members = self.members.list_active_members_by_ids(trip_id, member_ids, for_update=True)
            if len(members) != len(member_ids):
                raise NotFoundError("Some members do not exist or were removed")
            for member in members:
                member.contribution = amounts[member.id]

        logger.info(f"Batch contribution update for trip {trip_id}: {len(members)} members")
        return sorted(members, key=lambda m: member_ids.index(m.id))

    @staticmethod
    def display_name(member: TripMember) -> str:
        """Username for real members, display name for virtual ones."""
        return member.name

    def _ensure_another_admin(self, trip_id: int, action: str) -> None:
        admins = self.members.lock_active_admins(trip_id)
        if len(admins) <= 1:
            raise ConflictError(f"Cannot {action} the last admin of a trip")

    @staticmethod
    def _valid_contribution(amount) -> Decimal:
        value = money.quantize(amount)
        if value < 0:
            raise ValidationError("Contribution cannot be negative")
        return value
