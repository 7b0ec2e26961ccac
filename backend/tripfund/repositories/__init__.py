"""Repositories package - narrow query/persistence handles over a Session."""
from tripfund.repositories.membership import MembershipRepository
from tripfund.repositories.expense import ExpenseRepository
from tripfund.repositories.invitation import InvitationRepository
from tripfund.repositories.settlement import SettlementRepository

__all__ = [
    "MembershipRepository",
    "ExpenseRepository",
    "InvitationRepository",
    "SettlementRepository",
]
