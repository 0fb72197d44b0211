"""
Question model - one gradable item of a quiz
"""
from sqlalchemy import Column, String, Text, Integer, Boolean, TIMESTAMP, ForeignKey, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from tutorial_app.database import Base, JSONType
import uuid


class Question(Base):
    """
    Questions table - correct_answer is stored as text and compared loosely
    """
    __tablename__ = "questions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    quiz_id = Column(UUID(as_uuid=True), ForeignKey("quizzes.id"), nullable=False)
    question = Column(String(1000), nullable=False)
    type = Column(String(20), nullable=False)  # multiple_choice | true_false | short_answer
    options = Column(JSONType, nullable=False, default=list)
    correct_answer = Column(String(500), nullable=False)
    explanation = Column(Text)
    points = Column(Integer, nullable=False, default=1)
    order = Column(Integer, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(TIMESTAMP, server_default=func.now())

    quiz = relationship("Quiz", back_populates="questions")

    def __repr__(self):
        return f"<Question(id={self.id}, quiz_id={self.quiz_id}, order={self.order})>"
