"""
Pydantic schemas for tutorials and tutorial progress
"""
from pydantic import BaseModel, Field
from typing import List, Dict, Any, Optional
from uuid import UUID
from datetime import datetime

DIFFICULTY_PATTERN = "^(beginner|intermediate|advanced)$"


class TutorialCreate(BaseModel):
    """Schema for creating a tutorial"""
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=500)
    difficulty: str = Field("beginner", pattern=DIFFICULTY_PATTERN)
    duration: Optional[str] = Field(None, max_length=50)
    category_id: Optional[UUID] = None
    is_published: bool = False


class TutorialUpdate(BaseModel):
    """Partial tutorial update"""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    difficulty: Optional[str] = Field(None, pattern=DIFFICULTY_PATTERN)
    duration: Optional[str] = Field(None, max_length=50)
    category_id: Optional[UUID] = None
    is_published: Optional[bool] = None


class TutorialRead(BaseModel):
    """Tutorial with its rating aggregate"""
    id: UUID
    title: str
    description: str
    difficulty: str
    duration: Optional[str] = None
    category_id: Optional[UUID] = None
    teacher_id: UUID
    is_published: bool
    rating: float
    rating_count: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProgressUpdate(BaseModel):
    """Schema for updating tutorial progress"""
    progress: Optional[float] = Field(
        None, allow_inf_nan=False, description="Completion percentage, clamped to 0-100"
    )
    status: Optional[str] = Field(None, description="not_started | in_progress | completed")
    current_section: Optional[str] = Field(None, alias="currentSection", max_length=255)
    time_spent: Optional[int] = Field(None, alias="timeSpent", description="Minutes to add")

    class Config:
        populate_by_name = True


class ProgressRead(BaseModel):
    """Progress for one user on one tutorial"""
    id: Optional[UUID] = None
    user_id: UUID
    tutorial_id: UUID
    status: str
    progress_percentage: int
    time_spent: int
    last_position: str
    quiz_attempts: List[Dict[str, Any]] = []
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    last_accessed: Optional[datetime] = None

    class Config:
        from_attributes = True
