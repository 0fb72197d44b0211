"""
Quiz model - teacher-authored quiz attached to a tutorial
"""
from sqlalchemy import Column, String, Integer, Float, Boolean, TIMESTAMP, ForeignKey, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from tutorial_app.database import Base
import uuid


class Quiz(Base):
    """
    Quizzes table

    time_limit is in minutes (0 = unlimited), max_attempts 0 = unlimited.
    total_questions, total_attempts and average_score are denormalized.
    """
    __tablename__ = "quizzes"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(200), nullable=False)
    description = Column(String(500))
    tutorial_id = Column(UUID(as_uuid=True), ForeignKey("tutorials.id"), nullable=False, index=True)
    teacher_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    time_limit = Column(Integer, nullable=False, default=0)
    passing_score = Column(Integer, nullable=False, default=70)
    max_attempts = Column(Integer, nullable=False, default=0)
    show_correct_answers = Column(Boolean, nullable=False, default=True)
    is_published = Column(Boolean, nullable=False, default=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    total_questions = Column(Integer, nullable=False, default=0)
    total_attempts = Column(Integer, nullable=False, default=0)
    average_score = Column(Float, nullable=False, default=0.0)
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    tutorial = relationship("Tutorial", back_populates="quizzes")
    questions = relationship(
        "Question",
        back_populates="quiz",
        cascade="all, delete-orphan",
        order_by="Question.order"
    )
    attempts = relationship("QuizAttempt", back_populates="quiz", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Quiz(id={self.id}, title={self.title}, published={self.is_published})>"
