"""
Pydantic schemas for categories
"""
from pydantic import BaseModel, Field
from typing import Optional
from uuid import UUID
from datetime import datetime

HEX_COLOR_PATTERN = "^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$"


class CategoryCreate(BaseModel):
    """Schema for creating a category"""
    name: str = Field(..., min_length=1, max_length=50)
    description: str = Field(..., min_length=1, max_length=200)
    color: str = Field("#3B82F6", pattern=HEX_COLOR_PATTERN)


class CategoryUpdate(BaseModel):
    """Partial category update"""
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = Field(None, min_length=1, max_length=200)
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)
    is_active: Optional[bool] = None


class CategoryRead(BaseModel):
    id: UUID
    name: str
    description: str
    color: str
    tutorial_count: int
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
