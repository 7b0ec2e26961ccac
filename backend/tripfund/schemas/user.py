"""
Pydantic schemas for User entity.
"""
from pydantic import BaseModel
from datetime import datetime


class UserResponse(BaseModel):
    """Schema for user response."""
    id: int
    username: str
    email: str
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
