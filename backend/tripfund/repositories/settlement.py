"""
Settlement record repository.
"""
from typing import List, Optional
from sqlalchemy.orm import Session, joinedload
from tripfund.models.settlement import Settlement


class SettlementRepository:
    """Persist and query recorded settlements."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, settlement_id: int, for_update: bool = False) -> Optional[Settlement]:
        query = self.db.query(Settlement).filter(Settlement.id == settlement_id)
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.first()

    def list_for_trip(self, trip_id: int) -> List[Settlement]:
        """Newest first."""
        return self.db.query(Settlement).options(
            joinedload(Settlement.from_member),
            joinedload(Settlement.to_member),
        ).filter(
            Settlement.trip_id == trip_id
        ).order_by(Settlement.created_at.desc(), Settlement.id.desc()).all()

    def delete_unsettled(self, trip_id: int) -> int:
        return self.db.query(Settlement).filter(
            Settlement.trip_id == trip_id,
            Settlement.is_settled.is_(False)
        ).delete(synchronize_session=False)

    def add_all(self, settlements: List[Settlement]) -> None:
        self.db.add_all(settlements)
        self.db.flush()
