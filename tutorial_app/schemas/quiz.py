"""
Pydantic schemas for quiz-related requests and responses
"""
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Dict, Any, Optional
from uuid import UUID
from datetime import datetime

QUESTION_TYPE_PATTERN = "^(multiple_choice|true_false|short_answer)$"


def answer_to_text(value: Any) -> str:
    """Correct answers are stored as text"""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value).strip()


class QuestionCreate(BaseModel):
    """Question as authored by a teacher"""
    question: str = Field(..., min_length=1, max_length=1000)
    type: str = Field(..., pattern=QUESTION_TYPE_PATTERN)
    options: List[str] = Field(default_factory=list)
    correct_answer: Any
    explanation: Optional[str] = Field(None, max_length=1000)
    points: int = Field(1, ge=1, le=10)
    order: Optional[int] = Field(None, ge=1)
    is_active: bool = True

    @field_validator("correct_answer")
    @classmethod
    def correct_answer_as_text(cls, value: Any) -> str:
        if value is None:
            raise ValueError("Correct answer is required")
        text = answer_to_text(value)
        if not text:
            raise ValueError("Correct answer is required")
        return text

    @model_validator(mode="after")
    def check_options(self):
        if self.type == "multiple_choice" and not 2 <= len(self.options) <= 6:
            raise ValueError("Multiple choice questions need between 2 and 6 options")
        return self


class QuizCreate(BaseModel):
    """Request schema for quiz creation"""
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=500)
    tutorial_id: UUID
    time_limit: int = Field(0, ge=0, le=180, description="Minutes, 0 = unlimited")
    passing_score: Optional[int] = Field(None, ge=0, le=100, description="Percentage needed to pass")
    max_attempts: int = Field(0, ge=0, description="0 = unlimited")
    show_correct_answers: bool = True
    questions: List[QuestionCreate] = Field(default_factory=list)


class QuizUpdate(BaseModel):
    """Partial quiz update; questions, when given, replace the existing set"""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=500)
    time_limit: Optional[int] = Field(None, ge=0, le=180)
    passing_score: Optional[int] = Field(None, ge=0, le=100)
    max_attempts: Optional[int] = Field(None, ge=0)
    show_correct_answers: Optional[bool] = None
    is_active: Optional[bool] = None
    questions: Optional[List[QuestionCreate]] = None


class QuestionPublic(BaseModel):
    """Question as shown to a student - never carries the answer"""
    id: UUID
    question: str
    type: str
    options: List[str]
    points: int
    order: int

    class Config:
        from_attributes = True


class QuestionRead(QuestionPublic):
    """Question with answer, for the quiz owner"""
    correct_answer: str
    explanation: Optional[str] = None
    is_active: bool

    class Config:
        from_attributes = True


class QuizRead(BaseModel):
    """Quiz metadata"""
    id: UUID
    title: str
    description: Optional[str] = None
    tutorial_id: UUID
    teacher_id: UUID
    time_limit: int
    passing_score: int
    max_attempts: int
    show_correct_answers: bool
    is_published: bool
    is_active: bool
    total_questions: int
    total_attempts: int
    average_score: float
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class QuizSubmission(BaseModel):
    """Schema for quiz submission"""
    answers: Dict[str, Any]  # {question_id: answer}
    time_spent: int = Field(0, ge=0, alias="timeSpent", description="Minutes")

    class Config:
        populate_by_name = True


class AttemptRead(BaseModel):
    """Quiz attempt state"""
    id: UUID
    user_id: UUID
    quiz_id: UUID
    attempt_number: int
    status: str
    total_questions: int
    correct_answers: int
    points_earned: int
    total_points: int
    score: int
    passing_score: int
    is_passed: bool
    answers: Optional[Dict[str, Any]] = None
    results: Optional[List[Dict[str, Any]]] = None
    time_limit: int
    time_taken: int
    started_at: datetime
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True
