"""
Expense repository: the read side the ledger aggregates over.
"""
from typing import List, Optional
from sqlalchemy.orm import Session, selectinload
from tripfund.models.expense import Expense, ExpenseParticipant


class ExpenseRepository:
    """Query and persist expenses with their participant shares."""

    def __init__(self, db: Session):
        self.db = db

    def list_for_trip(self, trip_id: int) -> List[Expense]:
        """All expenses of a trip with participants eagerly loaded."""
        return self.db.query(Expense).options(
            selectinload(Expense.participants).joinedload(ExpenseParticipant.member),
            selectinload(Expense.payer),
        ).filter(
            Expense.trip_id == trip_id
        ).order_by(Expense.id).all()

    def get(self, expense_id: int, for_update: bool = False) -> Optional[Expense]:
        query = self.db.query(Expense).filter(Expense.id == expense_id)
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.first()

    def add(self, expense: Expense) -> None:
        self.db.add(expense)
        self.db.flush()

    def delete(self, expense: Expense) -> None:
        self.db.delete(expense)
        self.db.flush()
