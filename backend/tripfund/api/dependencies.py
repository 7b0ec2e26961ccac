"""
Shared route dependencies: authentication and service construction.
"""
import secrets
from typing import Optional
from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from tripfund.core.config import settings
from tripfund.core.security import decode_access_token
from tripfund.db.session import get_db
from tripfund.models.user import User
from tripfund.services.expense_service import ExpenseService
from tripfund.services.invitation_service import InvitationService
from tripfund.services.ledger_service import LedgerService
from tripfund.services.member_service import MemberService
from tripfund.services.notification_service import Notifier, get_notifier
from tripfund.services.settlement_service import SettlementService
from tripfund.services.trip_service import TripService
from tripfund.repositories.expense import ExpenseRepository
from tripfund.repositories.membership import MembershipRepository

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> User:
    """Resolve the bearer token to an active user."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception

    payload = decode_access_token(credentials.credentials)
    if payload is None or payload.get("sub") is None:
        raise credentials_exception

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise credentials_exception

    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active:
        raise credentials_exception
    return user


def require_maintenance_key(x_maintenance_key: Optional[str] = Header(default=None)) -> None:
    """Gate maintenance endpoints behind MAINTENANCE_API_KEY; an unset key disables them."""
    expected = settings.MAINTENANCE_API_KEY
    if not expected or not x_maintenance_key or not secrets.compare_digest(x_maintenance_key, expected):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="A valid maintenance key is required",
        )


def get_trip_service(db: Session = Depends(get_db)) -> TripService:
    return TripService(db)


def get_member_service(db: Session = Depends(get_db)) -> MemberService:
    return MemberService(db)


def get_expense_service(db: Session = Depends(get_db)) -> ExpenseService:
    return ExpenseService(db)


def get_ledger_service(db: Session = Depends(get_db)) -> LedgerService:
    return LedgerService(MembershipRepository(db), ExpenseRepository(db))


def get_settlement_service(db: Session = Depends(get_db)) -> SettlementService:
    return SettlementService(db)


def get_notifier_dependency() -> Notifier:
    return get_notifier()


def get_invitation_service(
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier_dependency)
) -> InvitationService:
    return InvitationService(db, notifier=notifier)
