"""
QuizAttempt model - one user's run through a quiz
"""
from sqlalchemy import Column, String, Integer, Boolean, TIMESTAMP, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from tutorial_app.database import Base, JSONType
import uuid


class QuizAttempt(Base):
    """
    Quiz attempts table

    Created in_progress by start(); completed, timeout and abandoned are terminal.
    score is always computed server side.
    """
    __tablename__ = "quiz_attempts"
    __table_args__ = (
        Index("ix_quiz_attempts_user_quiz", "user_id", "quiz_id"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    quiz_id = Column(UUID(as_uuid=True), ForeignKey("quizzes.id"), nullable=False)
    attempt_number = Column(Integer, nullable=False, default=1)
    status = Column(String(20), nullable=False, default="in_progress", index=True)
    question_ids = Column(JSONType, nullable=False, default=list)  # snapshot at start
    total_questions = Column(Integer, nullable=False, default=0)
    correct_answers = Column(Integer, nullable=False, default=0)
    points_earned = Column(Integer, nullable=False, default=0)
    total_points = Column(Integer, nullable=False, default=0)
    score = Column(Integer, nullable=False, default=0)
    passing_score = Column(Integer, nullable=False, default=70)
    is_passed = Column(Boolean, nullable=False, default=False)
    answers = Column(JSONType)  # {question_id: answer}
    results = Column(JSONType)  # per-question grading breakdown
    time_limit = Column(Integer, nullable=False, default=0)  # minutes, snapshot of quiz
    time_taken = Column(Integer, nullable=False, default=0)  # minutes
    started_at = Column(TIMESTAMP, nullable=False)
    completed_at = Column(TIMESTAMP)

    quiz = relationship("Quiz", back_populates="attempts")

    def __repr__(self):
        return f"<QuizAttempt(id={self.id}, user_id={self.user_id}, status={self.status}, score={self.score})>"
