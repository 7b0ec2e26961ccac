"""Models package - Import all models for SQLAlchemy registration."""
from tripfund.models.user import User
from tripfund.models.trip import Trip, TripMember, MemberRole
from tripfund.models.expense import Expense, ExpenseParticipant
from tripfund.models.invitation import TripInvitation, InviteType, InvitationStatus
from tripfund.models.settlement import Settlement

__all__ = [
    "User",
    "Trip",
    "TripMember",
    "MemberRole",
    "Expense",
    "ExpenseParticipant",
    "TripInvitation",
    "InviteType",
    "InvitationStatus",
    "Settlement",
]
