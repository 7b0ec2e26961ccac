"""
Expire overdue pending invitations. Meant to run from cron.
"""
import sys
import os
import logging

# Add the backend directory to Python path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from tripfund.core.config import settings
from tripfund.core.logging_config import setup_logging
from tripfund.db.session import SessionLocal
from tripfund.services.invitation_service import InvitationService

logger = logging.getLogger(__name__)


def sweep() -> int:
    """Run one sweep and return how many invitations expired."""
    db = SessionLocal()
    try:
        return InvitationService(db).sweep_expired()
    finally:
        db.close()


if __name__ == "__main__":
    setup_logging(settings.LOG_LEVEL)
    try:
        count = sweep()
    except Exception:
        logger.exception("Invitation sweep failed")
        sys.exit(1)
    logger.info(f"Invitation sweep finished: {count} expired")
