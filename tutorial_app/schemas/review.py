"""
Pydantic schemas for reviews and ratings
"""
from pydantic import BaseModel
from typing import Optional
from uuid import UUID
from datetime import datetime


# Range and emptiness checks live in the rating service so they surface as 400s
class ReviewCreate(BaseModel):
    rating: int
    comment: Optional[str] = None


class QuickRating(BaseModel):
    rating: int


class ReviewUpdate(BaseModel):
    rating: Optional[int] = None
    comment: Optional[str] = None


class ReviewRead(BaseModel):
    id: UUID
    user_id: UUID
    tutorial_id: UUID
    rating: int
    comment: str
    is_verified: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
