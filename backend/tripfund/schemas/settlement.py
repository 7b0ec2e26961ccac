"""
Pydantic schemas for settlement plans and records.
"""
from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime
from decimal import Decimal


class Transfer(BaseModel):
    """Schema for a single proposed transfer."""
    from_member_id: int
    from_name: str = ""
    to_member_id: int
    to_name: str = ""
    amount: Decimal


class SettlementPlan(BaseModel):
    """Schema for a settlement plan."""
    settlements: List[Transfer] = []
    total_transactions: int = 0
    total_amount: Decimal = Decimal("0.00")


class SettlementRecordResponse(BaseModel):
    """Schema for a persisted settlement."""
    id: int
    trip_id: int
    from_member_id: int
    from_name: str
    to_member_id: int
    to_name: str
    amount: Decimal
    is_settled: bool
    settled_at: Optional[datetime] = None
    created_at: datetime
